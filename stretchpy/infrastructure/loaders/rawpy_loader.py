from typing import Any, Optional, Tuple
import numpy as np
import rawpy
from stretchpy.domain.errors import DecodeFailureError
from stretchpy.domain.interfaces import IImageLoader
from stretchpy.domain.models import SRGB_TO_XYZ, Orientation, RawSensorData
from stretchpy.kernel.system.logging import get_logger

logger = get_logger(__name__)


def camera_matrix_from_xyz(xyz_to_cam: np.ndarray) -> Optional[Tuple[Tuple[float, float, float], ...]]:
    """
    Turns LibRaw's XYZ -> camera matrix into a white-preserving camera -> XYZ
    matrix: rows of camera -> sRGB are normalized to 1 before inversion.
    Returns None when the camera has no calibration data.
    """
    xyz_to_cam = np.asarray(xyz_to_cam, dtype=np.float64)[:3, :3]
    if not np.any(xyz_to_cam):
        return None

    srgb_to_xyz = np.array(SRGB_TO_XYZ, dtype=np.float64)
    cam_from_srgb = xyz_to_cam @ srgb_to_xyz
    row_sums = cam_from_srgb.sum(axis=1, keepdims=True)
    if np.any(row_sums == 0):
        return None
    cam_from_srgb = cam_from_srgb / row_sums

    try:
        srgb_from_cam = np.linalg.inv(cam_from_srgb)
    except np.linalg.LinAlgError:
        return None

    matrix = srgb_to_xyz @ srgb_from_cam
    return tuple(tuple(float(v) for v in row) for row in matrix)


def raw_to_source(raw: Any) -> RawSensorData:
    """
    Copies everything the pipeline needs out of an open rawpy handle.
    """
    if raw.raw_type != rawpy.RawType.Flat:
        raise DecodeFailureError("Only single-plane (Bayer) RAW files are supported")

    colors = np.asarray(raw.raw_colors_visible)
    if colors.shape[0] < 2 or colors.shape[1] < 2:
        raise DecodeFailureError("RAW image is too small")

    desc = raw.color_desc.decode("ascii")
    site_colors = [int(c) for c in colors[:2, :2].reshape(-1)]
    cfa = "".join(desc[c] for c in site_colors)
    if set(cfa) - set("RGB"):
        raise DecodeFailureError(f"Unsupported color filter array '{desc}'")

    blacks = list(raw.black_level_per_channel)
    wb = list(raw.camera_whitebalance)

    return RawSensorData(
        data=np.array(raw.raw_image_visible, copy=True),
        cfa=cfa,
        orientation=Orientation.from_libraw_flip(raw.sizes.flip),
        wb_coeffs=(float(wb[0]), float(wb[1]), float(wb[2])),
        black_levels=tuple(float(blacks[c]) for c in site_colors),  # type: ignore[arg-type]
        white_level=float(raw.white_level),
        cam_to_xyz=camera_matrix_from_xyz(raw.rgb_xyz_matrix),
    )


class RawpyLoader(IImageLoader):
    """
    Standard loader for digital RAW files (DNG, CR2, NEF, etc.)
    """

    def load(self, file_path: str) -> RawSensorData:
        try:
            with rawpy.imread(file_path) as raw:
                source = raw_to_source(raw)
        except DecodeFailureError:
            raise
        except Exception as e:
            logger.error(f"RAW decode failed for {file_path}: {e}")
            raise DecodeFailureError(f"Cannot decode RAW file {file_path}: {e}") from e

        source.validate()
        logger.info(f"Loaded RAW {file_path} ({source.width}x{source.height}, {source.cfa})")
        return source
