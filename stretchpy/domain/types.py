from typing import TypeAlias, Tuple
import numpy as np
import numpy.typing as npt


# Floating point image 0.0 - 1.0 (Height, Width, Channels)
ImageBuffer: TypeAlias = npt.NDArray[np.float32]

# (Height, Width)
Dimensions: TypeAlias = Tuple[int, int]

# (x, y) control point of a tone curve, both in 0.0 - 1.0
CurvePoint: TypeAlias = Tuple[float, float]

# https://en.wikipedia.org/wiki/Luma_(video)
LUMA_COEFFS = np.array([0.2126, 0.7152, 0.0722], dtype=np.float32)
LUMA_R = 0.2126
LUMA_G = 0.7152
LUMA_B = 0.0722
