from dataclasses import dataclass
from typing import Tuple
import numpy as np
from stretchpy.domain.models import GenericImage, RawSensorData, SRGB_TO_XYZ, Source


@dataclass(frozen=True)
class ColorConfig:
    """
    White balance multipliers and the camera RGB -> XYZ matrix.
    """

    wb_coeffs: Tuple[float, float, float] = (1.0, 1.0, 1.0)
    cam_to_xyz: Tuple[Tuple[float, float, float], ...] = SRGB_TO_XYZ

    @classmethod
    def for_source(cls, source: Source) -> "ColorConfig":
        if isinstance(source, RawSensorData):
            r, g, b = (float(c) for c in source.wb_coeffs)
            # Anchor to green; a missing/zero green coefficient means "no WB info"
            wb = (r / g, 1.0, b / g) if g > 0 and r > 0 and b > 0 else (1.0, 1.0, 1.0)
            matrix = source.cam_to_xyz if source.cam_to_xyz is not None else SRGB_TO_XYZ
            return cls(wb_coeffs=wb, cam_to_xyz=matrix)
        if isinstance(source, GenericImage):
            return cls()
        raise TypeError(f"Unknown source type {type(source).__name__}")

    def combined_matrix(self) -> np.ndarray:
        """
        cam_to_xyz with the white balance folded in.
        """
        matrix = np.array(self.cam_to_xyz, dtype=np.float64)
        return matrix @ np.diag(np.array(self.wb_coeffs, dtype=np.float64))
