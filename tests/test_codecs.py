import io
import subprocess

import pytest
from PIL import Image

from conftest import make_jpeg, make_png, make_truncated_jpeg
from kuma_imagemin import codecs
from kuma_imagemin.codecs import (
    CodecResult,
    ImageKind,
    build_codecs,
    compress_jpeg,
    compress_png,
    probe,
    quality_band,
)
from kuma_imagemin.exceptions import CodecUnavailableError


@pytest.mark.parametrize(
    "quality,band",
    [(0, (0, 10)), (1, (0, 10)), (2, (0, 2)), (10, (0, 10)), (11, (1, 11)), (80, (70, 80)), (99, (89, 99)), (100, None)],
)
def test_quality_band(quality, band):
    assert quality_band(quality) == band


class FakeRun:
    def __init__(self, returncode=0, stdout=b"quantized", stderr=b""):
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        self.calls = []

    def __call__(self, cmd, input=None, capture_output=False):
        self.calls.append((cmd, input))
        return subprocess.CompletedProcess(cmd, self.returncode, self.stdout, self.stderr)


@pytest.fixture
def fake_pngquant(monkeypatch):
    run = FakeRun()
    monkeypatch.setattr(codecs.shutil, "which", lambda name: f"/usr/bin/{name}")
    monkeypatch.setattr(codecs.subprocess, "run", run)
    return run


def test_compress_png_passes_quality_band(fake_pngquant):
    result = compress_png(b"png-bytes", 80)

    assert result == CodecResult(data=b"quantized", succeeded=True)
    cmd, stdin = fake_pngquant.calls[0]
    assert cmd == ["/usr/bin/pngquant", "--quality=70-80", "-"]
    assert stdin == b"png-bytes"


def test_compress_png_without_constraint_at_100(fake_pngquant):
    compress_png(b"png-bytes", 100)
    cmd, _ = fake_pngquant.calls[0]
    assert not any(arg.startswith("--quality") for arg in cmd)


def test_compress_png_lowest_band(fake_pngquant):
    compress_png(b"png-bytes", 0)
    cmd, _ = fake_pngquant.calls[0]
    assert "--quality=0-10" in cmd


def test_compress_png_quality_not_reached(fake_pngquant):
    fake_pngquant.returncode = 99
    fake_pngquant.stdout = b""

    result = compress_png(b"png-bytes", 90)

    assert result.succeeded is False
    assert result.data is None


def test_compress_png_other_failure_is_not_raised(fake_pngquant, caplog):
    fake_pngquant.returncode = 15
    fake_pngquant.stdout = b""
    fake_pngquant.stderr = b"error: not a PNG"

    result = compress_png(b"png-bytes", 90)

    assert result.succeeded is False
    assert "not a PNG" in caplog.text


def test_compress_png_missing_binary(monkeypatch):
    monkeypatch.setattr(codecs.shutil, "which", lambda name: None)
    with pytest.raises(CodecUnavailableError):
        compress_png(b"png-bytes", 80)


def test_build_codecs_binds_binary(fake_pngquant):
    table = build_codecs(pngquant="my-pngquant")
    assert set(table) == {ImageKind.PNG, ImageKind.JPEG}

    table[ImageKind.PNG](b"x", 50)

    assert fake_pngquant.calls[0][0][0] == "/usr/bin/my-pngquant"


def _noisy_jpeg(quality: int = 95) -> bytes:
    img = Image.new("RGB", (64, 64))
    img.putdata([((x * 7) % 256, (y * 5) % 256, (x * y) % 256) for y in range(64) for x in range(64)])
    buf = io.BytesIO()
    img.save(buf, format="JPEG", quality=quality)
    return buf.getvalue()


def test_compress_jpeg_lower_quality_shrinks():
    original = _noisy_jpeg(95)

    result = compress_jpeg(original, 30)

    assert result.succeeded
    assert result.ratio(len(original)) < 1
    info = probe(result.data)
    assert info.kind is ImageKind.JPEG
    assert (info.width, info.height) == (64, 64)


def test_compress_jpeg_always_returns_output():
    original = _noisy_jpeg(10)

    result = compress_jpeg(original, 100)

    assert result.succeeded
    assert result.data
    # the caller decides what to do with a bigger result
    assert result.ratio(len(original)) > 1


def test_compress_jpeg_quality_zero_is_clamped():
    img = Image.new("RGB", (16, 16), (10, 20, 30))
    buf = io.BytesIO()
    img.save(buf, format="JPEG")

    result = compress_jpeg(buf.getvalue(), 0)

    assert probe(result.data).kind is ImageKind.JPEG


def test_probe_identifies_supported_kinds():
    png = probe(make_png(size=(3, 2)))
    assert (png.kind, png.width, png.height) == (ImageKind.PNG, 3, 2)
    jpg = probe(make_jpeg(size=(5, 4)))
    assert (jpg.kind, jpg.width, jpg.height) == (ImageKind.JPEG, 5, 4)


def test_probe_rejects_other_content():
    gif = io.BytesIO()
    Image.new("RGB", (2, 2)).save(gif, format="GIF")
    assert probe(gif.getvalue()) is None
    assert probe(b"") is None
    assert probe(b"plain text") is None


def test_ratio():
    assert CodecResult(b"1234", True).ratio(10) == 0.4
    with pytest.raises(ValueError):
        CodecResult(None, False).ratio(10)


def test_compress_jpeg_truncated_input_fails_without_raising(caplog):
    data = make_truncated_jpeg()
    assert probe(data).kind is ImageKind.JPEG

    result = compress_jpeg(data, 80)

    assert result == CodecResult(data=None, succeeded=False)
    assert "could not decode" in caplog.text


def test_probe_treats_oversized_image_as_unsupported(monkeypatch):
    monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 10)

    assert probe(make_png(size=(8, 8))) is None


def test_probe_reads_header_from_path(tmp_path):
    photo = tmp_path / "photo.png"
    photo.write_bytes(make_png(size=(3, 2), pad_to=5000))
    info = probe(photo)
    assert (info.kind, info.width, info.height) == (ImageKind.PNG, 3, 2)

    notes = tmp_path / "notes.txt"
    notes.write_text("not an image")
    assert probe(notes) is None


def test_probe_path_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        probe(tmp_path / "gone.png")
