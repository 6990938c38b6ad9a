from typing import Tuple
import numpy as np
from stretchpy.domain.errors import DimensionLimitExceededError, UnsupportedColorDepthError
from stretchpy.domain.models import GenericImage, RawSensorData, Settings
from stretchpy.domain.types import ImageBuffer
from stretchpy.features.demosaic.logic import shift_cfa
from stretchpy.kernel.image.logic import ensure_rgb, srgb_to_linear, uint16_to_float32, uint8_to_float32
from stretchpy.kernel.image.validation import ensure_image

STAGE = "gofloat"


def crop_window(h: int, w: int, settings: Settings) -> Tuple[int, int, int, int]:
    """
    Returns the (y1, y2, x1, x2) window left after the integer margins.
    """
    margins = (settings.crop_top, settings.crop_bottom, settings.crop_left, settings.crop_right)
    if any(int(m) != m or m < 0 for m in margins):
        raise DimensionLimitExceededError(
            f"Crop margins must be non-negative integers, got {margins}", stage=STAGE
        )

    new_h = h - settings.crop_top - settings.crop_bottom
    new_w = w - settings.crop_left - settings.crop_right
    if new_h <= 0 or new_w <= 0:
        raise DimensionLimitExceededError(
            f"Cropping {w}x{h} by {margins} leaves {new_w}x{new_h}", stage=STAGE
        )

    y1 = int(settings.crop_top)
    x1 = int(settings.crop_left)
    return y1, y1 + new_h, x1, x1 + new_w


def raw_to_float(source: RawSensorData, settings: Settings) -> ImageBuffer:
    """
    Black-subtracts and scales the visible sensor plane into 0.0 - 1.0.
    Result is a (H, W, 1) mosaic; values are not clipped.
    """
    data = source.data
    if data.dtype.kind not in "uif":
        raise UnsupportedColorDepthError(
            f"RAW plane dtype {data.dtype} is not supported", stage=STAGE
        )

    y1, y2, x1, x2 = crop_window(data.shape[0], data.shape[1], settings)
    plane = data[y1:y2, x1:x2].astype(np.float32)

    # Per-site black levels follow the CFA, so they move with the crop origin too
    blacks = np.array(source.black_levels, dtype=np.float32).reshape(2, 2)
    order = shift_cfa("0123", y1, x1)
    blacks = np.array([blacks.flat[int(i)] for i in order], dtype=np.float32).reshape(2, 2)

    h, w = plane.shape
    black_map = np.tile(blacks, ((h + 1) // 2, (w + 1) // 2))[:h, :w]
    scale = np.float32(source.white_level) - black_map

    res = (plane - black_map) / scale
    return ensure_image(res[:, :, np.newaxis])


def generic_to_float(source: GenericImage, settings: Settings) -> ImageBuffer:
    """
    Normalizes an 8/16-bit or float image to float RGB and linearizes sRGB data.
    """
    data = source.data
    if data.dtype == np.uint8:
        img = uint8_to_float32(data)
    elif data.dtype == np.uint16:
        img = uint16_to_float32(data)
    elif data.dtype.kind == "f":
        img = ensure_image(data)
    else:
        raise UnsupportedColorDepthError(
            f"Image dtype {data.dtype} is not supported", stage=STAGE
        )

    img = ensure_rgb(img)

    y1, y2, x1, x2 = crop_window(img.shape[0], img.shape[1], settings)
    img = img[y1:y2, x1:x2]

    if source.srgb_encoded:
        img = srgb_to_linear(img)
    return ensure_image(np.ascontiguousarray(img))
