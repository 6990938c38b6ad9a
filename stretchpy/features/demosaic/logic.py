import numpy as np
from numba import njit, prange  # type: ignore
from stretchpy.domain.types import ImageBuffer
from stretchpy.kernel.image.validation import ensure_image
from stretchpy.kernel.system.performance import time_function

COLOR_INDEX = {"R": 0, "G": 1, "B": 2}


def shift_cfa(cfa: str, dy: int, dx: int) -> str:
    """
    Returns the 2x2 pattern seen from a frame whose origin moved by (dy, dx).
    """
    return "".join(cfa[((y + dy) % 2) * 2 + (x + dx) % 2] for y in range(2) for x in range(2))


def cfa_to_codes(cfa: str) -> np.ndarray:
    codes = np.array([COLOR_INDEX[c] for c in cfa], dtype=np.int64)
    return codes.reshape(2, 2)


@njit(parallel=True, cache=True)
def _demosaic_bilinear_jit(mosaic: np.ndarray, colors: np.ndarray) -> np.ndarray:
    """
    Each missing color is the mean of the same-color sites in the 3x3 neighborhood.
    """
    h, w = mosaic.shape
    res = np.empty((h, w, 3), dtype=np.float32)

    for y in prange(h):
        for x in range(w):
            s0 = 0.0
            s1 = 0.0
            s2 = 0.0
            n0 = 0
            n1 = 0
            n2 = 0
            for dy in range(-1, 2):
                yy = y + dy
                if yy < 0 or yy >= h:
                    continue
                for dx in range(-1, 2):
                    xx = x + dx
                    if xx < 0 or xx >= w:
                        continue
                    c = colors[yy % 2, xx % 2]
                    v = mosaic[yy, xx]
                    if c == 0:
                        s0 += v
                        n0 += 1
                    elif c == 1:
                        s1 += v
                        n1 += 1
                    else:
                        s2 += v
                        n2 += 1

            own = colors[y % 2, x % 2]
            res[y, x, 0] = mosaic[y, x] if own == 0 else (s0 / n0 if n0 > 0 else 0.0)
            res[y, x, 1] = mosaic[y, x] if own == 1 else (s1 / n1 if n1 > 0 else 0.0)
            res[y, x, 2] = mosaic[y, x] if own == 2 else (s2 / n2 if n2 > 0 else 0.0)
    return res


@njit(parallel=True, cache=True)
def _demosaic_superpixel_jit(mosaic: np.ndarray, colors: np.ndarray) -> np.ndarray:
    """
    Fast path: every pixel takes the colors of its aligned 2x2 block.
    """
    h, w = mosaic.shape
    res = np.empty((h, w, 3), dtype=np.float32)

    for y in prange(h):
        by = y - (y % 2)
        # Trailing odd row borrows the previous full block
        if by + 1 >= h and by >= 2:
            by -= 2
        for x in range(w):
            bx = x - (x % 2)
            if bx + 1 >= w and bx >= 2:
                bx -= 2
            s0 = 0.0
            s1 = 0.0
            s2 = 0.0
            n0 = 0
            n1 = 0
            n2 = 0
            for dy in range(2):
                yy = min(by + dy, h - 1)
                for dx in range(2):
                    xx = min(bx + dx, w - 1)
                    c = colors[yy % 2, xx % 2]
                    v = mosaic[yy, xx]
                    if c == 0:
                        s0 += v
                        n0 += 1
                    elif c == 1:
                        s1 += v
                        n1 += 1
                    else:
                        s2 += v
                        n2 += 1
            res[y, x, 0] = s0 / n0 if n0 > 0 else 0.0
            res[y, x, 1] = s1 / n1 if n1 > 0 else 0.0
            res[y, x, 2] = s2 / n2 if n2 > 0 else 0.0
    return res


@time_function
def demosaic(mosaic: ImageBuffer, cfa: str, fast: bool = False) -> ImageBuffer:
    """
    Reconstructs RGB from a single-channel CFA mosaic of shape (H, W).
    """
    colors = cfa_to_codes(cfa)
    plane = np.ascontiguousarray(ensure_image(mosaic))
    if fast:
        return ensure_image(_demosaic_superpixel_jit(plane, colors))
    return ensure_image(_demosaic_bilinear_jit(plane, colors))
