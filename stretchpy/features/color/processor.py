from stretchpy.domain.errors import UnsupportedColorDepthError
from stretchpy.domain.interfaces import IProcessor
from stretchpy.domain.models import Settings
from stretchpy.features.color.logic import lab_to_srgb, rgb_to_lab
from stretchpy.features.color.models import ColorConfig
from stretchpy.kernel.image.buffer import PixelBuffer


def _require_rgb(buffer: PixelBuffer, stage: str) -> None:
    if buffer.channels != 3:
        raise UnsupportedColorDepthError(
            f"Expected 3 channels, got {buffer.channels}", stage=stage
        )


class ToLabProcessor(IProcessor):
    """
    White balance + camera matrix, into Lab so curves only touch lightness.
    """

    name = "tolab"

    def __init__(self, config: ColorConfig):
        self.config = config

    def process(self, buffer: PixelBuffer, settings: Settings) -> PixelBuffer:
        _require_rgb(buffer, self.name)
        return PixelBuffer.wrap(rgb_to_lab(buffer.data, self.config.combined_matrix()))


class FromLabProcessor(IProcessor):
    """
    Back to display-encoded sRGB.
    """

    name = "fromlab"

    def process(self, buffer: PixelBuffer, settings: Settings) -> PixelBuffer:
        _require_rgb(buffer, self.name)
        return PixelBuffer.wrap(lab_to_srgb(buffer.data))
