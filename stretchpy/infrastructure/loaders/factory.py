import os
from stretchpy.domain.errors import DecodeFailureError
from stretchpy.domain.models import Source
from stretchpy.infrastructure.loaders.constants import SUPPORTED_RAW_EXTENSIONS
from stretchpy.infrastructure.loaders.image_loader import ImageioLoader
from stretchpy.infrastructure.loaders.rawpy_loader import RawpyLoader
from stretchpy.kernel.system.logging import get_logger

logger = get_logger(__name__)


class LoaderFactory:
    """
    Picks a loader by extension. Unknown extensions try the generic decoder
    first and fall back to LibRaw.
    """

    def __init__(self) -> None:
        self.raw_loader = RawpyLoader()
        self.image_loader = ImageioLoader()

    def load(self, file_path: str) -> Source:
        if not os.path.isfile(file_path):
            raise DecodeFailureError(f"No such file: {file_path}")

        ext = os.path.splitext(file_path)[1].lower()
        if ext in SUPPORTED_RAW_EXTENSIONS:
            return self.raw_loader.load(file_path)

        try:
            return self.image_loader.load(file_path)
        except DecodeFailureError as e:
            logger.info(f"Generic decode failed, trying RAW decoder: {e}")
            return self.raw_loader.load(file_path)


loader_factory = LoaderFactory()
