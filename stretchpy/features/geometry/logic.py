from typing import Tuple
import cv2
import numpy as np
from stretchpy.domain.errors import DimensionLimitExceededError
from stretchpy.domain.types import Dimensions, ImageBuffer
from stretchpy.kernel.image.logic import round_half_up
from stretchpy.kernel.image.validation import ensure_image, validate_crop_fraction
from stretchpy.kernel.system.performance import time_function


def _keep_channel_axis(res: np.ndarray, like: np.ndarray) -> np.ndarray:
    # OpenCV drops a trailing axis of length 1
    if res.ndim == 2 and like.ndim == 3:
        return res[:, :, np.newaxis]
    return res


def apply_orientation(img: ImageBuffer, quarter_turns: int, flip_horizontal: bool) -> ImageBuffer:
    """
    Mirrors (optionally) then rotates clockwise by 90 degree steps.
    """
    res = img
    if flip_horizontal:
        res = res[:, ::-1]
    k = quarter_turns % 4
    if k:
        # np.rot90 is counter-clockwise for positive k
        res = np.rot90(res, k=-k)
    return ensure_image(np.ascontiguousarray(res))


@time_function
def apply_fine_rotation(img: ImageBuffer, angle: float, fast: bool = False) -> ImageBuffer:
    """
    Rotates the image counter-clockwise by `angle` degrees around its center,
    keeping the frame size. Corners outside the source are black.
    """
    if angle == 0.0:
        return img

    h, w = img.shape[:2]
    center = (w / 2.0, h / 2.0)
    m_mat = cv2.getRotationMatrix2D(center, angle, 1.0)

    res = cv2.warpAffine(
        np.ascontiguousarray(img),
        m_mat,
        (w, h),
        flags=cv2.INTER_NEAREST if fast else cv2.INTER_LINEAR,
        borderMode=cv2.BORDER_CONSTANT,
        borderValue=(0, 0, 0),
    )
    return ensure_image(_keep_channel_axis(res, img))


def get_fractional_crop_coords(
    h: int,
    w: int,
    top: float,
    bottom: float,
    left: float,
    right: float,
    stage: str = "rotatecrop",
) -> Tuple[int, int, int, int]:
    """
    Converts edge fractions (0.0 - 1.0) into a (y1, y2, x1, x2) window.
    Each axis loses round(dim * (a + b)) pixels.
    """
    fractions = (top, bottom, left, right)
    if not all(validate_crop_fraction(f) for f in fractions):
        raise DimensionLimitExceededError(
            f"Crop fractions must lie in [0, 1], got {fractions}", stage=stage
        )

    new_h = h - round_half_up(h * (top + bottom))
    new_w = w - round_half_up(w * (left + right))
    if new_h <= 0 or new_w <= 0:
        raise DimensionLimitExceededError(
            f"Cropping {w}x{h} by {fractions} leaves {new_w}x{new_h}", stage=stage
        )

    y1 = min(round_half_up(h * top), h - new_h)
    x1 = min(round_half_up(w * left), w - new_w)
    return y1, y1 + new_h, x1, x1 + new_w


def get_scaled_dimensions(h: int, w: int, max_width: int, max_height: int) -> Dimensions:
    """
    Fits (h, w) inside the bounds keeping the aspect ratio. Never upscales;
    a bound of 0 means unbounded.
    """
    if max_width < 0 or max_height < 0:
        raise DimensionLimitExceededError(
            f"Size bounds must be non-negative, got {max_width}x{max_height}", stage="resize"
        )

    scale = 1.0
    if max_width > 0:
        scale = max(scale, w / float(max_width))
    if max_height > 0:
        scale = max(scale, h / float(max_height))

    if scale <= 1.0:
        return h, w

    return max(1, round_half_up(h / scale)), max(1, round_half_up(w / scale))


@time_function
def resize_image(img: ImageBuffer, h: int, w: int, fast: bool = False) -> ImageBuffer:
    if img.shape[0] == h and img.shape[1] == w:
        return img
    res = cv2.resize(
        np.ascontiguousarray(img),
        (w, h),
        interpolation=cv2.INTER_NEAREST if fast else cv2.INTER_AREA,
    )
    return ensure_image(_keep_channel_axis(res, img))
