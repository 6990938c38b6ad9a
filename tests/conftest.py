import os

os.environ.setdefault("NUMBA_THREADING_LAYER", "workqueue")

import numpy as np
import pytest

from stretchpy.domain.models import GenericImage, RawSensorData


@pytest.fixture
def gradient_rgb() -> np.ndarray:
    """128x64 uint8 image with a horizontal ramp in each channel."""
    ramp = np.linspace(0, 255, 128, dtype=np.float32)
    img = np.empty((64, 128, 3), dtype=np.uint8)
    img[:, :, 0] = ramp.astype(np.uint8)
    img[:, :, 1] = ramp[::-1].astype(np.uint8)
    img[:, :, 2] = 128
    return img


@pytest.fixture
def generic_source(gradient_rgb: np.ndarray) -> GenericImage:
    return GenericImage(data=gradient_rgb)


@pytest.fixture
def raw_source() -> RawSensorData:
    rng = np.random.default_rng(7)
    data = rng.integers(512, 16000, size=(64, 128), dtype=np.uint16)
    return RawSensorData(
        data=data,
        cfa="RGGB",
        wb_coeffs=(2.0, 1.0, 1.5),
        black_levels=(512.0, 512.0, 512.0, 512.0),
        white_level=16383.0,
    )
