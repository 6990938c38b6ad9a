import numpy as np
import pytest

from stretchpy.domain.errors import UnsupportedColorDepthError
from stretchpy.domain.models import SRGB_TO_XYZ, GenericImage, RawSensorData, Settings
from stretchpy.features.color.logic import lab_to_srgb, rgb_to_lab
from stretchpy.features.color.models import ColorConfig
from stretchpy.features.color.processor import FromLabProcessor, ToLabProcessor
from stretchpy.kernel.image.buffer import PixelBuffer
from stretchpy.kernel.image.logic import linear_to_srgb


def test_white_is_full_lightness_neutral():
    img = np.ones((1, 1, 3), dtype=np.float32)
    lab = rgb_to_lab(img, np.array(SRGB_TO_XYZ))
    assert lab[0, 0, 0] == pytest.approx(1.0, abs=1e-3)
    assert lab[0, 0, 1] == pytest.approx(0.0, abs=1e-3)
    assert lab[0, 0, 2] == pytest.approx(0.0, abs=1e-3)


def test_black_is_zero_lightness():
    lab = rgb_to_lab(np.zeros((1, 1, 3), dtype=np.float32), np.array(SRGB_TO_XYZ))
    assert lab[0, 0, 0] == pytest.approx(0.0, abs=1e-6)


def test_round_trip_returns_display_encoded_rgb():
    rng = np.random.default_rng(1)
    linear = rng.uniform(0.01, 1.0, size=(8, 8, 3)).astype(np.float32)
    back = lab_to_srgb(rgb_to_lab(linear, np.array(SRGB_TO_XYZ)))
    assert np.allclose(back, linear_to_srgb(linear), atol=1e-3)


def test_color_config_normalizes_white_balance():
    source = RawSensorData(data=np.zeros((2, 2), dtype=np.uint16), wb_coeffs=(2048.0, 1024.0, 1536.0))
    config = ColorConfig.for_source(source)
    assert config.wb_coeffs == (2.0, 1.0, 1.5)
    assert config.cam_to_xyz == SRGB_TO_XYZ


def test_color_config_ignores_missing_white_balance():
    source = RawSensorData(data=np.zeros((2, 2), dtype=np.uint16), wb_coeffs=(0.0, 0.0, 0.0))
    assert ColorConfig.for_source(source).wb_coeffs == (1.0, 1.0, 1.0)


def test_color_config_generic_defaults():
    source = GenericImage(data=np.zeros((2, 2, 3), dtype=np.uint8))
    assert ColorConfig.for_source(source) == ColorConfig()


def test_combined_matrix_folds_white_balance():
    config = ColorConfig(wb_coeffs=(2.0, 1.0, 1.0))
    matrix = config.combined_matrix()
    expected = np.array(SRGB_TO_XYZ)
    assert np.allclose(matrix[:, 0], expected[:, 0] * 2.0)
    assert np.allclose(matrix[:, 1:], expected[:, 1:])


def test_processors_require_three_channels():
    buf = PixelBuffer(np.zeros((2, 2, 1), dtype=np.float32))
    with pytest.raises(UnsupportedColorDepthError) as exc:
        ToLabProcessor(ColorConfig()).process(buf, Settings())
    assert exc.value.stage == "tolab"
    with pytest.raises(UnsupportedColorDepthError) as exc:
        FromLabProcessor().process(buf, Settings())
    assert exc.value.stage == "fromlab"
