from typing import Any, Tuple
import numpy as np
from stretchpy.domain.types import ImageBuffer
from stretchpy.kernel.image.validation import ensure_image


class PixelBuffer:
    """
    Immutable float32 pixel plane of shape (Height, Width, Channels).

    The wrapped array is flagged read-only, so a buffer can be shared between
    pipeline stages and cache entries freely. A stage that wants to write
    asks for `mutate_copy()` and wraps the result in a new buffer.
    """

    __slots__ = ("_data",)

    def __init__(self, data: Any, copy: bool = True):
        if copy:
            arr = np.array(data, dtype=np.float32, order="C", copy=True)
        else:
            # Caller hands the array over; no one else may write to it afterwards.
            arr = np.ascontiguousarray(ensure_image(data))

        if arr.ndim == 2:
            arr = arr[:, :, np.newaxis]
        if arr.ndim != 3:
            raise ValueError(f"PixelBuffer needs a 2D or 3D array, got {arr.ndim}D")

        arr.flags.writeable = False
        self._data: ImageBuffer = arr

    @classmethod
    def wrap(cls, data: np.ndarray) -> "PixelBuffer":
        """
        Takes ownership of a freshly produced array without copying it.
        """
        return cls(data, copy=False)

    @property
    def data(self) -> ImageBuffer:
        return self._data

    @property
    def width(self) -> int:
        return int(self._data.shape[1])

    @property
    def height(self) -> int:
        return int(self._data.shape[0])

    @property
    def channels(self) -> int:
        return int(self._data.shape[2])

    @property
    def shape(self) -> Tuple[int, int, int]:
        h, w, c = self._data.shape
        return int(h), int(w), int(c)

    def mutate_copy(self) -> ImageBuffer:
        """
        Returns a private, writable copy of the samples.
        """
        return ensure_image(self._data.copy())

    def flat(self) -> np.ndarray:
        """
        Row-major, channel-interleaved view of every sample.
        """
        return self._data.reshape(-1)

    def __repr__(self) -> str:
        return f"PixelBuffer(width={self.width}, height={self.height}, channels={self.channels})"
