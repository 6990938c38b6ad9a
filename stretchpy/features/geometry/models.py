from dataclasses import dataclass
from stretchpy.domain.models import GenericImage, Orientation, RawSensorData, Source


@dataclass(frozen=True)
class TransformConfig:
    """
    Orientation recorded by the source; composed with Settings.rotation.
    """

    orientation: Orientation = Orientation.NORMAL

    @classmethod
    def for_source(cls, source: Source) -> "TransformConfig":
        if isinstance(source, RawSensorData):
            return cls(orientation=source.orientation)
        if isinstance(source, GenericImage):
            return cls()
        raise TypeError(f"Unknown source type {type(source).__name__}")
