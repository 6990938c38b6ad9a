import numpy as np
import pytest

from stretchpy.kernel.image.buffer import PixelBuffer
from stretchpy.kernel.image.logic import (
    ensure_rgb,
    float_to_uint16,
    float_to_uint8,
    get_luminance,
    linear_to_srgb,
    round_half_up,
    srgb_to_linear,
)
from stretchpy.kernel.image.validation import ensure_image, validate_crop_fraction


def test_ensure_image_converts_dtype():
    res = ensure_image(np.zeros((2, 2), dtype=np.float64))
    assert res.dtype == np.float32


def test_ensure_image_invalid():
    with pytest.raises(TypeError):
        ensure_image([1, 2, 3])  # type: ignore


def test_validate_crop_fraction():
    assert validate_crop_fraction(0.0)
    assert validate_crop_fraction(1.0)
    assert not validate_crop_fraction(1.01)
    assert not validate_crop_fraction(float("inf"))


def test_round_half_up():
    assert round_half_up(0.5) == 1
    assert round_half_up(2.5) == 3
    assert round_half_up(2.49) == 2
    assert round_half_up(31.49) == 31


def test_ensure_rgb_shapes():
    assert ensure_rgb(np.zeros((3, 4))).shape == (3, 4, 3)
    assert ensure_rgb(np.zeros((3, 4, 1))).shape == (3, 4, 3)
    assert ensure_rgb(np.zeros((3, 4, 4))).shape == (3, 4, 3)
    rgb = np.zeros((3, 4, 3))
    assert ensure_rgb(rgb) is rgb


def test_get_luminance_rgb():
    img = np.ones((1, 1, 3), dtype=np.float32)
    assert np.isclose(get_luminance(img)[0, 0], 1.0)


def test_get_luminance_green_weighted():
    img = np.zeros((1, 2, 3), dtype=np.float32)
    img[0, 0, 1] = 1.0
    img[0, 1, 2] = 1.0
    lum = get_luminance(img)
    assert lum[0, 0] > lum[0, 1]


def test_get_luminance_single_channel():
    img = np.full((2, 2, 1), 0.3, dtype=np.float32)
    assert np.allclose(get_luminance(img), 0.3)


def test_srgb_round_trip():
    vals = np.linspace(0.0, 1.0, 11, dtype=np.float32)
    assert np.allclose(linear_to_srgb(srgb_to_linear(vals)), vals, atol=1e-5)


def test_srgb_known_values():
    assert srgb_to_linear(np.array([0.5], dtype=np.float32))[0] == pytest.approx(0.214, abs=1e-3)
    assert linear_to_srgb(np.array([0.0], dtype=np.float32))[0] == 0.0


def test_quantization_rounds_and_clips():
    img = np.array([-0.5, 0.0, 0.5, 1.0, 2.0], dtype=np.float32)
    assert float_to_uint8(img).tolist() == [0, 0, 128, 255, 255]
    assert float_to_uint16(img).tolist() == [0, 0, 32768, 65535, 65535]


class TestPixelBuffer:
    def test_two_dimensional_input_gets_channel_axis(self):
        buf = PixelBuffer(np.zeros((3, 5)))
        assert buf.shape == (3, 5, 1)
        assert (buf.width, buf.height, buf.channels) == (5, 3, 1)
        assert buf.data.dtype == np.float32

    def test_read_only(self):
        buf = PixelBuffer(np.zeros((2, 2, 3), dtype=np.float32))
        with pytest.raises(ValueError):
            buf.data[0, 0, 0] = 1.0

    def test_copy_does_not_freeze_caller_array(self):
        arr = np.zeros((2, 2, 3), dtype=np.float32)
        PixelBuffer(arr)
        assert arr.flags.writeable
        arr[0, 0, 0] = 1.0

    def test_wrap_takes_ownership(self):
        arr = np.zeros((2, 2, 3), dtype=np.float32)
        buf = PixelBuffer.wrap(arr)
        assert np.shares_memory(buf.data, arr)
        assert not arr.flags.writeable

    def test_mutate_copy_is_private(self):
        buf = PixelBuffer(np.zeros((2, 2, 3), dtype=np.float32))
        data = buf.mutate_copy()
        data[:] = 1.0
        assert buf.data.max() == 0.0

    def test_flat_is_interleaved(self):
        arr = np.arange(12, dtype=np.float32).reshape(2, 2, 3)
        assert PixelBuffer(arr).flat().tolist() == list(range(12))

    def test_rejects_bad_rank(self):
        with pytest.raises(ValueError):
            PixelBuffer(np.zeros(4))

    def test_repr(self):
        assert repr(PixelBuffer(np.zeros((2, 3, 3)))) == "PixelBuffer(width=3, height=2, channels=3)"
