from dataclasses import dataclass
from typing import Tuple
from stretchpy.domain.models import RawSensorData, Source
from stretchpy.domain.types import CurvePoint

# Slopes the curve to go from linear raw data to a more natural look
RAW_BASE_CURVE: Tuple[CurvePoint, ...] = ((0.50, 0.60),)



@dataclass(frozen=True)
class BaseCurveConfig:
    """
    Exposure (in EV) and tone curve control points for the L channel.
    """

    exposure: float = 0.0
    points: Tuple[CurvePoint, ...] = ()

    @classmethod
    def for_source(cls, source: Source) -> "BaseCurveConfig":
        if isinstance(source, RawSensorData):
            return cls(exposure=0.0, points=RAW_BASE_CURVE)
        return cls()
