import os

import numpy as np
import pytest
import tifffile
from PIL import Image

from stretchpy.domain.errors import EncodeFailureError, UnsupportedFormatError
from stretchpy.domain.models import GenericImage, Settings
from stretchpy.infrastructure.export import writer
from stretchpy.infrastructure.export.writer import FileFormat, OutputParams, write_image
from stretchpy.kernel.image.buffer import PixelBuffer
from stretchpy.services.export.service import ExportService, default_bit_depth, should_stretch


def _ramp(h: int = 16, w: int = 24) -> PixelBuffer:
    img = np.zeros((h, w, 3), dtype=np.float32)
    img[:, :, 0] = np.linspace(0.0, 1.0, w, dtype=np.float32)
    img[:, :, 1] = 0.5
    return PixelBuffer(img)


class _StaticLoader:
    def __init__(self, source):
        self.source = source
        self.calls = []

    def load(self, file_path):
        self.calls.append(file_path)
        return self.source


class TestFileFormat:
    @pytest.mark.parametrize(
        "ext, expected",
        [
            (".jpg", FileFormat.JPEG),
            ("JPEG", FileFormat.JPEG),
            (".tif", FileFormat.TIFF),
            (".TIFF", FileFormat.TIFF),
            ("exr", FileFormat.OPENEXR),
        ],
    )
    def test_from_extension(self, ext, expected):
        assert FileFormat.from_extension(ext) == expected

    def test_unknown_extension(self):
        with pytest.raises(UnsupportedFormatError) as exc:
            FileFormat.from_extension(".png")
        assert exc.value.stage == "encode"


class TestOutputParams:
    def test_directory_gets_default_name(self, tmp_path):
        params = OutputParams.from_path(str(tmp_path))
        assert params.full_path == os.path.join(str(tmp_path), "Stacked.tif")

    def test_file_path(self, tmp_path):
        params = OutputParams.from_path(str(tmp_path / "shot.jpeg"))
        assert params.format == FileFormat.JPEG
        assert params.file_name == "shot"
        assert params.full_path.endswith("shot.jpg")

    def test_missing_extension_defaults_to_tiff(self, tmp_path):
        params = OutputParams.from_path(str(tmp_path / "new" / "shot"))
        assert params.format == FileFormat.TIFF


class TestWriteImage:
    def test_jpeg(self, tmp_path):
        path = write_image(OutputParams(str(tmp_path), "a", FileFormat.JPEG), _ramp())
        with Image.open(path) as img:
            assert img.size == (24, 16)
            assert img.mode == "RGB"

    @pytest.mark.parametrize("bit_depth, dtype", [(8, np.uint8), (16, np.uint16), (32, np.float32)])
    def test_tiff_depths(self, tmp_path, bit_depth, dtype):
        path = write_image(OutputParams(str(tmp_path), "a", FileFormat.TIFF), _ramp(), bit_depth=bit_depth)
        data = tifffile.imread(path)
        assert data.shape == (16, 24, 3)
        assert data.dtype == dtype

    def test_tiff_16bit_values(self, tmp_path):
        path = write_image(OutputParams(str(tmp_path), "a", FileFormat.TIFF), _ramp())
        data = tifffile.imread(path)
        assert data[0, 0, 0] == 0
        assert data[0, -1, 0] == 65535
        assert data[0, 0, 1] == 32768

    def test_single_channel_is_expanded(self, tmp_path):
        buf = PixelBuffer(np.full((4, 4), 0.5, dtype=np.float32))
        path = write_image(OutputParams(str(tmp_path), "g", FileFormat.TIFF), buf)
        assert tifffile.imread(path).shape == (4, 4, 3)

    def test_creates_missing_directory(self, tmp_path):
        target = tmp_path / "nested" / "dir"
        path = write_image(OutputParams(str(target), "a", FileFormat.TIFF), _ramp())
        assert os.path.isfile(path)

    def test_bad_bit_depth(self, tmp_path):
        with pytest.raises(UnsupportedFormatError):
            write_image(OutputParams(str(tmp_path), "a", FileFormat.TIFF), _ramp(), bit_depth=12)

    def test_exr_writer_failure_is_encode_error(self, tmp_path, monkeypatch):
        monkeypatch.setattr(writer.cv2, "imwrite", lambda path, data: False)
        with pytest.raises(EncodeFailureError):
            write_image(OutputParams(str(tmp_path), "a", FileFormat.OPENEXR), _ramp())

    def test_library_errors_are_wrapped(self, tmp_path, monkeypatch):
        def broken(*args, **kwargs):
            raise OSError("disk full")

        monkeypatch.setattr(writer.tifffile, "imwrite", broken)
        with pytest.raises(EncodeFailureError) as exc:
            write_image(OutputParams(str(tmp_path), "a", FileFormat.TIFF), _ramp())
        assert "disk full" in str(exc.value)
        assert isinstance(exc.value.__cause__, OSError)


class TestExportService:
    def test_should_stretch(self, raw_source):
        assert should_stretch(raw_source)
        assert should_stretch(GenericImage(data=np.zeros((2, 2, 3), dtype=np.uint8)))
        assert should_stretch(GenericImage(data=np.zeros((2, 2, 4), dtype=np.uint16)))
        assert should_stretch(GenericImage(data=np.zeros((2, 2, 3), dtype=np.float32)))
        assert not should_stretch(GenericImage(data=np.zeros((2, 2, 4), dtype=np.float32)))

    def test_float_rgb_is_stretched(self):
        img = np.zeros((8, 8, 3), dtype=np.float32)
        img[:, :, :] = np.linspace(0.2, 0.6, 8, dtype=np.float32)[None, :, None]
        service = ExportService(loader=_StaticLoader(GenericImage(data=img, srgb_encoded=False)))
        buf = service.render("in.exr")
        assert buf.data.min() == pytest.approx(0.0, abs=1e-6)
        assert buf.data.max() == pytest.approx(1.0, abs=1e-6)

    def test_float_rgba_is_written_as_is(self):
        img = np.zeros((8, 8, 4), dtype=np.float32)
        img[:, :, :3] = np.linspace(0.2, 0.6, 8, dtype=np.float32)[None, :, None]
        img[:, :, 3] = 1.0
        service = ExportService(loader=_StaticLoader(GenericImage(data=img, srgb_encoded=False)))
        stretched = service.render("in.exr")
        plain = service.render("in.exr", stretch=False)
        assert np.array_equal(stretched.data, plain.data)
        assert stretched.data.max() < 0.99

    def test_default_bit_depth(self, raw_source):
        assert default_bit_depth(raw_source) == 16
        assert default_bit_depth(GenericImage(data=np.zeros((2, 2, 3), dtype=np.uint8))) == 8
        assert default_bit_depth(GenericImage(data=np.zeros((2, 2, 3), dtype=np.uint16))) == 16
        assert default_bit_depth(GenericImage(data=np.zeros((2, 2, 3), dtype=np.float32))) == 32

    def test_render_stretches_full_range(self, generic_source):
        service = ExportService(loader=_StaticLoader(generic_source))
        buf = service.render("in.png", Settings(max_width=64))
        assert (buf.width, buf.height) == (64, 32)
        assert buf.data.min() == pytest.approx(0.0, abs=1e-6)
        assert buf.data.max() == pytest.approx(1.0, abs=1e-6)

    def test_render_without_stretch(self, generic_source):
        service = ExportService(loader=_StaticLoader(generic_source))
        plain = service.render("in.png", stretch=False)
        assert plain.data.min() >= 0.0
        assert plain.data.max() <= 1.0

    def test_exposure_override_brightens(self, raw_source):
        service = ExportService(loader=_StaticLoader(raw_source))
        base = service.render("in.dng", stretch=False)
        brighter = service.render("in.dng", exposure=1.0, stretch=False)
        assert brighter.data.mean() > base.data.mean()

    def test_exposure_override_ignored_without_curve(self, generic_source):
        service = ExportService(loader=_StaticLoader(generic_source))
        base = service.render("in.png", stretch=False)
        shifted = service.render("in.png", exposure=1.0, stretch=False)
        assert np.array_equal(shifted.data, base.data)

    def test_export_writes_file(self, tmp_path, raw_source):
        loader = _StaticLoader(raw_source)
        out = ExportService(loader=loader).export(
            "frame.dng", str(tmp_path / "frame.tif"), Settings(max_width=32)
        )
        assert loader.calls == ["frame.dng"]
        assert tifffile.imread(out).shape == (16, 32, 3)

    def test_export_depth_follows_source(self, tmp_path, raw_source, generic_source):
        raw_out = ExportService(loader=_StaticLoader(raw_source)).export(
            "frame.dng", str(tmp_path / "raw.tif")
        )
        assert tifffile.imread(raw_out).dtype == np.uint16

        png_out = ExportService(loader=_StaticLoader(generic_source)).export(
            "frame.png", str(tmp_path / "png.tif")
        )
        assert tifffile.imread(png_out).dtype == np.uint8

    def test_export_explicit_depth_wins(self, tmp_path, generic_source):
        out = ExportService(loader=_StaticLoader(generic_source)).export(
            "frame.png", str(tmp_path / "png.tif"), bit_depth=32
        )
        assert tifffile.imread(out).dtype == np.float32
