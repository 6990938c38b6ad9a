import os
from dataclasses import dataclass
from enum import Enum
import cv2
import numpy as np
import tifffile
from PIL import Image
from stretchpy.domain.errors import EncodeFailureError, UnsupportedFormatError
from stretchpy.kernel.image.buffer import PixelBuffer
from stretchpy.kernel.image.logic import ensure_rgb, float_to_uint16, float_to_uint8
from stretchpy.kernel.system.logging import get_logger

logger = get_logger(__name__)


class FileFormat(Enum):
    JPEG = "jpg"
    TIFF = "tif"
    OPENEXR = "exr"

    @property
    def extension(self) -> str:
        return self.value

    @classmethod
    def from_extension(cls, ext: str) -> "FileFormat":
        key = ext.lower().lstrip(".")
        if key in ("jpg", "jpeg"):
            return cls.JPEG
        if key in ("tif", "tiff"):
            return cls.TIFF
        if key == "exr":
            return cls.OPENEXR
        raise UnsupportedFormatError(f"Unsupported file format '{ext}'")


@dataclass(frozen=True)
class OutputParams:
    """
    Where and how to write a finished image.
    """

    path: str
    file_name: str
    format: FileFormat = FileFormat.TIFF

    @classmethod
    def from_path(cls, path: str) -> "OutputParams":
        """
        A directory gets the default name; otherwise the extension picks the format.
        """
        if os.path.isdir(path):
            return cls(path=path, file_name="Stacked", format=FileFormat.TIFF)

        directory = os.path.dirname(path) or "."
        stem, ext = os.path.splitext(os.path.basename(path))
        return cls(
            path=directory,
            file_name=stem or "Stacked",
            format=FileFormat.from_extension(ext or ".tif"),
        )

    @property
    def full_path(self) -> str:
        return os.path.join(self.path, f"{self.file_name}.{self.format.extension}")


def _write_jpeg(path: str, rgb: np.ndarray) -> None:
    Image.fromarray(float_to_uint8(rgb)).save(path, format="JPEG", quality=95)


def _write_tiff(path: str, rgb: np.ndarray, bit_depth: int) -> None:
    if bit_depth == 8:
        data = float_to_uint8(rgb)
    elif bit_depth == 16:
        data = float_to_uint16(rgb)
    elif bit_depth == 32:
        data = np.ascontiguousarray(rgb, dtype=np.float32)
    else:
        raise UnsupportedFormatError(f"Unsupported TIFF bit depth {bit_depth}")
    tifffile.imwrite(path, data, photometric="rgb", compression="zlib")


def _write_exr(path: str, rgb: np.ndarray) -> None:
    bgr = np.ascontiguousarray(rgb[:, :, ::-1], dtype=np.float32)
    if not cv2.imwrite(path, bgr):
        raise EncodeFailureError(f"OpenCV could not write {path}")


def write_image(params: OutputParams, buffer: PixelBuffer, bit_depth: int = 16) -> str:
    """
    Encodes `buffer` to disk. JPEG is always 8-bit and EXR always float;
    `bit_depth` (8, 16 or 32 for float) only applies to TIFF.
    Returns the written path.
    """
    path = params.full_path
    rgb = ensure_rgb(buffer.data)

    try:
        os.makedirs(params.path, exist_ok=True)
        if params.format == FileFormat.JPEG:
            _write_jpeg(path, rgb)
        elif params.format == FileFormat.TIFF:
            _write_tiff(path, rgb, bit_depth)
        elif params.format == FileFormat.OPENEXR:
            _write_exr(path, rgb)
        else:
            raise UnsupportedFormatError(f"Unsupported file format {params.format}")
    except EncodeFailureError:
        raise
    except Exception as e:
        logger.error(f"Export failed for {path}: {e}")
        raise EncodeFailureError(f"Cannot write {path}: {e}") from e

    logger.info(f"Wrote {path} ({buffer.width}x{buffer.height})")
    return path
