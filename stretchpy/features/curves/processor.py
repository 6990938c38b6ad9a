from stretchpy.domain.interfaces import IProcessor
from stretchpy.domain.models import Settings
from stretchpy.features.curves.logic import CurveFunction
from stretchpy.features.curves.models import BaseCurveConfig
from stretchpy.kernel.image.buffer import PixelBuffer
from stretchpy.kernel.system.performance import time_function


class BaseCurveProcessor(IProcessor):
    """
    Applies exposure and the base tone curve to the lightness channel.
    """

    name = "basecurve"

    def __init__(self, config: BaseCurveConfig):
        self.config = config

    def curve(self) -> CurveFunction:
        gain = 2.0 ** self.config.exposure
        return CurveFunction([(x, y * gain) for x, y in self.config.points])

    @time_function
    def process(self, buffer: PixelBuffer, settings: Settings) -> PixelBuffer:
        if not self.config.points and abs(self.config.exposure) < 0.001:
            return buffer

        func = self.curve()
        data = buffer.mutate_copy()
        data[:, :, 0] = func.interpolate_array(data[:, :, 0])
        return PixelBuffer.wrap(data)
