import math
from typing import cast
import numpy as np
from stretchpy.domain.types import ImageBuffer, LUMA_R, LUMA_G, LUMA_B
from stretchpy.kernel.image.validation import ensure_image


def round_half_up(val: float) -> int:
    """
    Rounds .5 away from zero for positive values (Python's round() is banker's).
    """
    return int(math.floor(val + 0.5))


def ensure_rgb(img: np.ndarray) -> np.ndarray:
    """
    Ensures the input image is a 3-channel RGB array. Alpha is dropped.
    """
    if img.ndim == 2:
        return cast(np.ndarray, np.stack([img] * 3, axis=-1))
    if img.ndim == 3 and img.shape[2] == 1:
        return cast(np.ndarray, np.concatenate([img] * 3, axis=-1))
    if img.ndim == 3 and img.shape[2] == 4:
        return img[:, :, :3]
    return img


def get_luminance(img: np.ndarray) -> np.ndarray:
    """
    Calculates relative luminance using Rec. 709 coefficients.
    Single channel images are their own luminance.
    """
    if img.ndim == 3 and img.shape[2] < 3:
        return cast(np.ndarray, img[..., 0])
    return cast(
        np.ndarray, LUMA_R * img[..., 0] + LUMA_G * img[..., 1] + LUMA_B * img[..., 2]
    )


def srgb_to_linear(img: np.ndarray) -> ImageBuffer:
    img = ensure_image(img)
    res = np.where(
        img <= 0.04045,
        img / 12.92,
        np.power((np.maximum(img, 0.0) + 0.055) / 1.055, 2.4),
    )
    return ensure_image(res)


def linear_to_srgb(img: np.ndarray) -> ImageBuffer:
    img = ensure_image(img)
    res = np.where(
        img <= 0.0031308,
        img * 12.92,
        1.055 * np.power(np.maximum(img, 0.0), 1.0 / 2.4) - 0.055,
    )
    return ensure_image(res)


def uint8_to_float32(img: np.ndarray) -> ImageBuffer:
    return ensure_image(img.astype(np.float32) / 255.0)


def uint16_to_float32(img: np.ndarray) -> ImageBuffer:
    return ensure_image(img.astype(np.float32) / 65535.0)


def float_to_uint8(img: np.ndarray) -> np.ndarray:
    scaled = np.clip(img, 0.0, 1.0) * 255.0 + 0.5
    return cast(np.ndarray, scaled.astype(np.uint8))


def float_to_uint16(img: np.ndarray) -> np.ndarray:
    scaled = np.clip(img, 0.0, 1.0) * 65535.0 + 0.5
    return cast(np.ndarray, scaled.astype(np.uint16))
