from typing import Any, cast
import numpy as np
from stretchpy.domain.types import ImageBuffer


def ensure_image(arr: Any) -> ImageBuffer:
    """
    Returns `arr` as a float32 ImageBuffer, converting the dtype when needed.
    """
    if not isinstance(arr, np.ndarray):
        raise TypeError(f"Expected numpy.ndarray, got {type(arr)}")

    if arr.dtype != np.float32:
        arr = arr.astype(np.float32)

    return cast(ImageBuffer, arr)


def validate_crop_fraction(val: float) -> bool:
    return bool(np.isfinite(val)) and 0.0 <= val <= 1.0
