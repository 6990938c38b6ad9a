from dataclasses import replace
from typing import Optional
from stretchpy.domain.interfaces import IImageLoader
from stretchpy.domain.models import GenericImage, Settings, Source
from stretchpy.features.stretch.logic import apply_histogram_stretch
from stretchpy.infrastructure.export.writer import OutputParams, write_image
from stretchpy.infrastructure.loaders.factory import loader_factory
from stretchpy.kernel.image.buffer import PixelBuffer
from stretchpy.kernel.system.logging import get_logger
from stretchpy.services.rendering.pipeline import Pipeline

logger = get_logger(__name__)


def should_stretch(source: Source) -> bool:
    """
    Float RGBA sources are assumed to be finished already and are written as-is.
    """
    if not isinstance(source, GenericImage):
        return True
    data = source.data
    return not (data.dtype.kind == "f" and data.ndim == 3 and data.shape[2] == 4)


def default_bit_depth(source: Source) -> int:
    """
    TIFF depth matching the decoded source: 8-bit images stay 8-bit, float
    images stay float, everything else (RAW included) is written as 16-bit.
    """
    if isinstance(source, GenericImage):
        if source.data.dtype == "uint8":
            return 8
        if source.data.dtype.kind == "f":
            return 32
    return 16


class ExportService:
    """
    Decode -> pipeline -> auto stretch -> encode, for one file at a time.
    """

    def __init__(self, loader: Optional[IImageLoader] = None) -> None:
        self.loader = loader if loader is not None else loader_factory

    def render(
        self,
        file_path: str,
        settings: Optional[Settings] = None,
        exposure: Optional[float] = None,
        stretch: bool = True,
    ) -> PixelBuffer:
        source = self.loader.load(file_path)
        return self.render_source(source, settings, exposure=exposure, stretch=stretch)

    def render_source(
        self,
        source: Source,
        settings: Optional[Settings] = None,
        exposure: Optional[float] = None,
        stretch: bool = True,
    ) -> PixelBuffer:
        pipeline = Pipeline.new_from_source(source)
        if exposure is not None:
            pipeline.ops = replace(
                pipeline.ops, basecurve=replace(pipeline.ops.basecurve, exposure=exposure)
            )

        buffer = pipeline.output_float(settings)
        if stretch and should_stretch(source):
            buffer = apply_histogram_stretch(buffer)
        return buffer

    def export(
        self,
        file_path: str,
        output_path: str,
        settings: Optional[Settings] = None,
        exposure: Optional[float] = None,
        stretch: bool = True,
        bit_depth: Optional[int] = None,
    ) -> str:
        params = OutputParams.from_path(output_path)
        source = self.loader.load(file_path)
        buffer = self.render_source(source, settings, exposure=exposure, stretch=stretch)
        if bit_depth is None:
            bit_depth = default_bit_depth(source)
            logger.debug(f"Bit depth follows the source: {bit_depth}")
        return write_image(params, buffer, bit_depth=bit_depth)
