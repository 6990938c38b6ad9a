from dataclasses import dataclass
from typing import Tuple, Union
import numpy as np
from numba import njit, prange  # type: ignore
from stretchpy.domain.errors import NumericDegenerateError
from stretchpy.kernel.image.buffer import PixelBuffer
from stretchpy.kernel.image.logic import get_luminance
from stretchpy.kernel.image.validation import ensure_image
from stretchpy.kernel.system.logging import get_logger
from stretchpy.kernel.system.performance import time_function

logger = get_logger(__name__)

ImageLike = Union[PixelBuffer, np.ndarray]

MIN_GAMMA = 0.01
MAX_GAMMA = 1.5


@njit(parallel=True, cache=True)
def _stretch_jit(
    flat: np.ndarray,
    input_shadow: float,
    input_range: float,
    gamma_inv: float,
    apply_gamma: bool,
    output_shadow: float,
    output_range: float,
) -> None:
    """
    In-place per-sample remap. input_range == 0 skips normalization.
    """
    for i in prange(flat.shape[0]):
        x = flat[i]
        if input_range != 0.0:
            x = (x - input_shadow) / input_range
            if apply_gamma:
                # Negative bases have no real power; they clamp to 0 below anyway
                x = x ** gamma_inv if x > 0.0 else 0.0
        x = x * output_range + output_shadow
        if x < 0.0:
            x = 0.0
        elif x > 1.0:
            x = 1.0
        flat[i] = x


def _as_array(image: ImageLike) -> np.ndarray:
    if isinstance(image, PixelBuffer):
        return image.data
    if isinstance(image, np.ndarray):
        return image
    raise TypeError(f"Expected PixelBuffer or numpy.ndarray, got {type(image)}")


def midtone_sample(data: np.ndarray) -> float:
    """
    Element n // 2 of all samples sorted together, every channel mixed into
    one sequence. This is a sample median, not a luminance median.
    """
    flat = np.asarray(data, dtype=np.float32).reshape(-1)
    if flat.size == 0:
        raise NumericDegenerateError("Cannot take the median of an empty image")
    mid = flat.size // 2
    return float(np.partition(flat, mid)[mid])


def gamma_from_midtone(midtone: float) -> float:
    """
    Dark images get gamma > 1 (brightening), bright ones gamma < 1.
    """
    if midtone < 0.5:
        m = midtone * 2.0
        return min(1.0 + 1.2 * (1.0 - m), MAX_GAMMA)
    if midtone > 0.5:
        m = midtone * 2.0 - 1.0
        return max(1.0 - m, MIN_GAMMA)
    return 1.0


@dataclass(frozen=True)
class Stretcher:
    """
    Automatic tone stretch derived from a single image.

    `from_image` measures the luminance range and the sample median, `apply`
    maps [input_shadow, input_highlight] onto [output_shadow, output_highlight]
    through a power curve of exponent 1/gamma.

    A constant image has input_shadow == input_highlight. Normalizing it would
    divide by zero, so in that case the samples are only remapped and clamped.
    """

    gamma: float
    midtones: float
    input_shadow: float
    input_highlight: float
    output_shadow: float = 0.0
    output_highlight: float = 1.0

    @classmethod
    @time_function
    def from_image(cls, image: ImageLike) -> "Stretcher":
        data = _as_array(image)
        if data.size == 0:
            raise NumericDegenerateError("Cannot stretch an empty image")

        lum = get_luminance(data) if data.ndim == 3 else data
        input_shadow = float(np.min(lum))
        input_highlight = float(np.max(lum))
        if not (np.isfinite(input_shadow) and np.isfinite(input_highlight)):
            raise NumericDegenerateError(
                f"Image statistics are not finite ({input_shadow}, {input_highlight})"
            )

        midtones = midtone_sample(data)
        gamma = gamma_from_midtone(midtones)

        stretcher = cls(
            gamma=gamma,
            midtones=midtones,
            input_shadow=input_shadow,
            input_highlight=input_highlight,
        )
        if stretcher.is_degenerate:
            logger.warning(
                f"Constant image (level {input_shadow:.4f}); skipping normalization"
            )
        logger.debug(f"Stretch parameters: {stretcher}")
        return stretcher

    @property
    def is_degenerate(self) -> bool:
        return self.input_highlight == self.input_shadow

    @property
    def gamma_correction(self) -> float:
        return 1.0 / self.gamma

    def apply_inplace(self, data: np.ndarray) -> None:
        """
        Remaps a writable float32 array in place.
        """
        if data.dtype != np.float32:
            raise TypeError(f"apply_inplace needs float32 data, got {data.dtype}")
        if not data.flags.writeable:
            raise ValueError("apply_inplace needs a writable array")

        flat = data.reshape(-1)
        if not np.shares_memory(flat, data):
            raise ValueError("apply_inplace needs a contiguous array")

        _stretch_jit(
            flat,
            self.input_shadow,
            0.0 if self.is_degenerate else self.input_highlight - self.input_shadow,
            self.gamma_correction,
            self.midtones != 0.5,
            self.output_shadow,
            self.output_highlight - self.output_shadow,
        )

    @time_function
    def apply(self, image: ImageLike) -> PixelBuffer:
        """
        Returns a stretched copy; the input is left untouched.
        """
        if isinstance(image, PixelBuffer):
            data = image.mutate_copy()
        else:
            data = np.array(ensure_image(_as_array(image)), dtype=np.float32, order="C", copy=True)
        self.apply_inplace(data)
        return PixelBuffer.wrap(data)

    def params(self) -> Tuple[float, float, float, float]:
        return self.gamma, self.midtones, self.input_shadow, self.input_highlight


def apply_histogram_stretch(image: ImageLike) -> PixelBuffer:
    """
    Analyzes and stretches `image` in one call.
    """
    return Stretcher.from_image(image).apply(image)
