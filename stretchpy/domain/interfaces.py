from typing import Protocol, runtime_checkable
from stretchpy.domain.models import Settings, Source
from stretchpy.kernel.image.buffer import PixelBuffer


@runtime_checkable
class IProcessor(Protocol):
    """
    Interface for any pipeline operator.
    Implementations are pure: the same buffer and settings give the same output.
    """

    name: str

    def process(self, buffer: PixelBuffer, settings: Settings) -> PixelBuffer: ...


class ISourceProcessor(Protocol):
    """
    Interface for the entry operator that turns a Source into the first buffer.
    """

    name: str

    def process(self, source: Source, settings: Settings) -> PixelBuffer: ...


class IImageLoader(Protocol):
    """
    Strategy interface for decoding a file into a Source.
    """

    def load(self, file_path: str) -> Source: ...
