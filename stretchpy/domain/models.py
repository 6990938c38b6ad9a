import hashlib
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from functools import cached_property
from typing import Optional, Tuple, Union
import numpy as np
from stretchpy.domain.errors import DecodeFailureError

CFA_COLORS = "RGB"

# sRGB (D65) -> XYZ, used when a sensor ships no calibration matrix
SRGB_TO_XYZ: Tuple[Tuple[float, float, float], ...] = (
    (0.4124564, 0.3575761, 0.1804375),
    (0.2126729, 0.7151522, 0.0721750),
    (0.0193339, 0.1191920, 0.9503041),
)


class Rotation(Enum):
    """
    User requested rotation, clockwise.
    """

    NONE = 0
    ROTATE90 = 90
    ROTATE180 = 180
    ROTATE270 = 270

    @property
    def quarter_turns(self) -> int:
        return self.value // 90

    @classmethod
    def from_degrees(cls, degrees: int) -> "Rotation":
        return cls(int(degrees) % 360)


class Orientation(IntEnum):
    """
    EXIF orientation tag of the source.
    """

    NORMAL = 1
    HORIZONTAL_FLIP = 2
    ROTATE180 = 3
    VERTICAL_FLIP = 4
    TRANSPOSE = 5
    ROTATE90 = 6
    TRANSVERSE = 7
    ROTATE270 = 8

    def decompose(self) -> Tuple[int, bool]:
        """
        Returns (clockwise quarter turns, horizontal flip applied first).
        """
        return _ORIENTATION_STEPS[self]

    @classmethod
    def from_libraw_flip(cls, flip: int) -> "Orientation":
        return _LIBRAW_FLIPS.get(int(flip), cls.NORMAL)


_ORIENTATION_STEPS = {
    Orientation.NORMAL: (0, False),
    Orientation.HORIZONTAL_FLIP: (0, True),
    Orientation.ROTATE180: (2, False),
    Orientation.VERTICAL_FLIP: (2, True),
    Orientation.TRANSPOSE: (3, True),
    Orientation.ROTATE90: (1, False),
    Orientation.TRANSVERSE: (1, True),
    Orientation.ROTATE270: (3, False),
}

_LIBRAW_FLIPS = {
    0: Orientation.NORMAL,
    3: Orientation.ROTATE180,
    5: Orientation.ROTATE270,
    6: Orientation.ROTATE90,
}


@dataclass(frozen=True)
class Settings:
    """
    Global parameters of a single pipeline run.
    Bounds of 0 mean "unbounded". Integer crops are applied before any scaling,
    rotate_crop_* are fractions of the rotated frame.
    """

    max_width: int = 0
    max_height: int = 0
    use_fastpath: bool = False

    crop_top: int = 0
    crop_bottom: int = 0
    crop_left: int = 0
    crop_right: int = 0

    rotation: Rotation = Rotation.NONE
    rotate_crop_angle: float = 0.0
    rotate_crop_top: float = 0.0
    rotate_crop_bottom: float = 0.0
    rotate_crop_left: float = 0.0
    rotate_crop_right: float = 0.0


@dataclass(frozen=True, eq=False)
class RawSensorData:
    """
    Undemosaiced sensor plane as handed over by a RAW decoder.

    `cfa` is the 2x2 filter pattern read row-major from the top-left pixel,
    `black_levels` follow the same site order.
    """

    data: np.ndarray
    cfa: str = "RGGB"
    orientation: Orientation = Orientation.NORMAL
    wb_coeffs: Tuple[float, float, float] = (1.0, 1.0, 1.0)
    black_levels: Tuple[float, float, float, float] = (0.0, 0.0, 0.0, 0.0)
    white_level: float = 65535.0
    cam_to_xyz: Optional[Tuple[Tuple[float, float, float], ...]] = None

    @property
    def width(self) -> int:
        return int(self.data.shape[1])

    @property
    def height(self) -> int:
        return int(self.data.shape[0])

    def validate(self) -> None:
        if self.data.ndim != 2 or self.data.size == 0:
            raise DecodeFailureError(
                f"RAW plane must be a non-empty 2D array, got shape {self.data.shape}"
            )
        if len(self.cfa) != 4 or any(c not in CFA_COLORS for c in self.cfa):
            raise DecodeFailureError(f"Unsupported CFA pattern '{self.cfa}'")
        if len(self.black_levels) != 4:
            raise DecodeFailureError("Expected one black level per CFA site")
        if self.white_level <= max(self.black_levels):
            raise DecodeFailureError(
                f"White level {self.white_level} is not above black levels"
            )
        if self.cam_to_xyz is not None and np.shape(self.cam_to_xyz) != (3, 3):
            raise DecodeFailureError("Camera matrix must be 3x3")

    @cached_property
    def fingerprint(self) -> str:
        hasher = hashlib.md5()
        hasher.update(b"raw")
        hasher.update(str(self.data.shape).encode())
        hasher.update(str(self.data.dtype).encode())
        hasher.update(np.ascontiguousarray(self.data).tobytes())
        hasher.update(
            repr(
                (
                    self.cfa,
                    int(self.orientation),
                    self.wb_coeffs,
                    self.black_levels,
                    self.white_level,
                    self.cam_to_xyz,
                )
            ).encode()
        )
        return hasher.hexdigest()


@dataclass(frozen=True, eq=False)
class GenericImage:
    """
    An already decoded image: (H, W) or (H, W, C) of uint8, uint16 or float.
    """

    data: np.ndarray
    srgb_encoded: bool = True

    @property
    def width(self) -> int:
        return int(self.data.shape[1])

    @property
    def height(self) -> int:
        return int(self.data.shape[0])

    def validate(self) -> None:
        if self.data.ndim not in (2, 3) or self.data.size == 0:
            raise DecodeFailureError(
                f"Image must be a non-empty 2D or 3D array, got shape {self.data.shape}"
            )
        if self.data.ndim == 3 and self.data.shape[2] not in (1, 3, 4):
            raise DecodeFailureError(
                f"Unsupported channel count {self.data.shape[2]}"
            )

    @cached_property
    def fingerprint(self) -> str:
        hasher = hashlib.md5()
        hasher.update(b"generic")
        hasher.update(str(self.data.shape).encode())
        hasher.update(str(self.data.dtype).encode())
        hasher.update(np.ascontiguousarray(self.data).tobytes())
        hasher.update(str(self.srgb_encoded).encode())
        return hasher.hexdigest()


Source = Union[RawSensorData, GenericImage]


@dataclass(frozen=True)
class QuantizedImage:
    """
    Finished pipeline output at a fixed integer bit depth.
    """

    width: int
    height: int
    channels: int
    bit_depth: int
    data: np.ndarray = field(repr=False)
