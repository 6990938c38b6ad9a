from dataclasses import dataclass
from typing import Optional
from stretchpy.domain.errors import UnsupportedColorDepthError
from stretchpy.domain.interfaces import IProcessor
from stretchpy.domain.models import GenericImage, RawSensorData, Settings, Source
from stretchpy.features.demosaic.logic import demosaic, shift_cfa
from stretchpy.kernel.image.buffer import PixelBuffer


@dataclass(frozen=True)
class DemosaicConfig:
    """
    CFA layout of the uncropped sensor; None for already-RGB sources.
    """

    cfa: Optional[str] = None

    @classmethod
    def for_source(cls, source: Source) -> "DemosaicConfig":
        if isinstance(source, RawSensorData):
            return cls(cfa=source.cfa)
        if isinstance(source, GenericImage):
            return cls()
        raise TypeError(f"Unknown source type {type(source).__name__}")


class DemosaicProcessor(IProcessor):
    """
    Turns the go-float mosaic into full RGB. Integer crops move the pattern
    origin, so the CFA is shifted by the top/left crop before interpolation.
    """

    name = "demosaic"

    def __init__(self, config: DemosaicConfig):
        self.config = config

    def process(self, buffer: PixelBuffer, settings: Settings) -> PixelBuffer:
        if self.config.cfa is None:
            return buffer

        if buffer.channels != 1:
            raise UnsupportedColorDepthError(
                f"Demosaic expects a single channel mosaic, got {buffer.channels} channels",
                stage=self.name,
            )

        cfa = shift_cfa(self.config.cfa, settings.crop_top, settings.crop_left)
        rgb = demosaic(buffer.data[:, :, 0], cfa, fast=settings.use_fastpath)
        return PixelBuffer.wrap(rgb)
