import numpy as np
import imageio.v3 as iio
from stretchpy.domain.errors import DecodeFailureError
from stretchpy.domain.interfaces import IImageLoader
from stretchpy.domain.models import GenericImage
from stretchpy.kernel.system.logging import get_logger

logger = get_logger(__name__)


class ImageioLoader(IImageLoader):
    """
    Loader for already rendered images (JPEG, PNG, TIFF, ...).
    Float images are taken as linear, integer ones as sRGB encoded.
    """

    def load(self, file_path: str) -> GenericImage:
        try:
            img = iio.imread(file_path)
        except Exception as e:
            logger.error(f"Image decode failed for {file_path}: {e}")
            raise DecodeFailureError(f"Cannot decode image {file_path}: {e}") from e

        img = np.asarray(img)
        # Multi-page files come back as (pages, H, W, C); keep the first page
        if img.ndim == 4:
            img = img[0]

        source = GenericImage(data=img, srgb_encoded=img.dtype.kind != "f")
        source.validate()
        logger.info(f"Loaded image {file_path} ({source.width}x{source.height}, {img.dtype})")
        return source
