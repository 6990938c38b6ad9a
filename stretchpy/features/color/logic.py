import numpy as np
from numba import njit, prange  # type: ignore
from stretchpy.domain.types import ImageBuffer
from stretchpy.kernel.image.validation import ensure_image
from stretchpy.kernel.system.performance import time_function

# D65 reference white
WHITE_X = 0.95047
WHITE_Y = 1.0
WHITE_Z = 1.08883

# XYZ (D65) -> linear sRGB
XYZ_TO_SRGB = np.array(
    [
        [3.2404542, -1.5371385, -0.4985314],
        [-0.9692660, 1.8760108, 0.0415560],
        [0.0556434, -0.2040259, 1.0572252],
    ],
    dtype=np.float32,
)

_EPS = (6.0 / 29.0) ** 3
_KAPPA = 3.0 * (6.0 / 29.0) ** 2


@njit(cache=True)
def _lab_f(t: float) -> float:
    if t > _EPS:
        return t ** (1.0 / 3.0)
    return t / _KAPPA + 4.0 / 29.0


@njit(cache=True)
def _lab_f_inv(t: float) -> float:
    if t > 6.0 / 29.0:
        return t * t * t
    return _KAPPA * (t - 4.0 / 29.0)


@njit(parallel=True, cache=True)
def _rgb_to_lab_jit(img: np.ndarray, matrix: np.ndarray) -> np.ndarray:
    """
    Camera RGB -> XYZ (via matrix) -> Lab. L is scaled to 0-1, a/b by 1/100.
    """
    h, w, _ = img.shape
    res = np.empty((h, w, 3), dtype=np.float32)
    for y in prange(h):
        for x in range(w):
            r = img[y, x, 0]
            g = img[y, x, 1]
            b = img[y, x, 2]
            cx = matrix[0, 0] * r + matrix[0, 1] * g + matrix[0, 2] * b
            cy = matrix[1, 0] * r + matrix[1, 1] * g + matrix[1, 2] * b
            cz = matrix[2, 0] * r + matrix[2, 1] * g + matrix[2, 2] * b

            fx = _lab_f(cx / WHITE_X)
            fy = _lab_f(cy / WHITE_Y)
            fz = _lab_f(cz / WHITE_Z)

            res[y, x, 0] = (116.0 * fy - 16.0) / 100.0
            res[y, x, 1] = 5.0 * (fx - fy)
            res[y, x, 2] = 2.0 * (fy - fz)
    return res


@njit(parallel=True, cache=True)
def _lab_to_srgb_jit(img: np.ndarray, matrix: np.ndarray) -> np.ndarray:
    """
    Lab -> XYZ -> linear sRGB -> sRGB transfer curve. Out-of-gamut values are kept.
    """
    h, w, _ = img.shape
    res = np.empty((h, w, 3), dtype=np.float32)
    for y in prange(h):
        for x in range(w):
            fy = (img[y, x, 0] * 100.0 + 16.0) / 116.0
            fx = fy + img[y, x, 1] / 5.0
            fz = fy - img[y, x, 2] / 2.0

            cx = WHITE_X * _lab_f_inv(fx)
            cy = WHITE_Y * _lab_f_inv(fy)
            cz = WHITE_Z * _lab_f_inv(fz)

            for ch in range(3):
                lin = matrix[ch, 0] * cx + matrix[ch, 1] * cy + matrix[ch, 2] * cz
                if lin <= 0.0031308:
                    res[y, x, ch] = lin * 12.92
                else:
                    res[y, x, ch] = 1.055 * lin ** (1.0 / 2.4) - 0.055
    return res


@time_function
def rgb_to_lab(img: ImageBuffer, cam_to_xyz: np.ndarray) -> ImageBuffer:
    matrix = np.ascontiguousarray(cam_to_xyz, dtype=np.float32)
    return ensure_image(_rgb_to_lab_jit(np.ascontiguousarray(ensure_image(img)), matrix))


@time_function
def lab_to_srgb(img: ImageBuffer) -> ImageBuffer:
    return ensure_image(_lab_to_srgb_jit(np.ascontiguousarray(ensure_image(img)), XYZ_TO_SRGB))
