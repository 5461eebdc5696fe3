import io
from pathlib import Path
from typing import Any, Callable, List, Optional

import pytest
from PIL import Image

from kuma_imagemin.codecs import CodecResult, ImageKind
from kuma_imagemin.ledger import ContentLedger


def make_png(color=(255, 0, 0), size=(1, 1), pad_to: Optional[int] = None) -> bytes:
    """Return a valid PNG, optionally padded with trailing zero bytes to ``pad_to``."""
    buf = io.BytesIO()
    Image.new("RGB", size, color).save(buf, format="PNG")
    data = buf.getvalue()
    if pad_to is not None:
        assert len(data) <= pad_to
        data += b"\x00" * (pad_to - len(data))
    return data


def make_jpeg(color=(0, 128, 255), size=(8, 8), pad_to: Optional[int] = None) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", size, color).save(buf, format="JPEG", quality=95)
    data = buf.getvalue()
    if pad_to is not None:
        assert len(data) <= pad_to
        data += b"\x00" * (pad_to - len(data))
    return data


def make_truncated_jpeg() -> bytes:
    """First half of a 64x64 JPEG: the header parses, the scan data is cut short."""
    img = Image.new("RGB", (64, 64))
    img.putdata([((x * 7) % 256, (y * 5) % 256, (x * y) % 256) for y in range(64) for x in range(64)])
    buf = io.BytesIO()
    img.save(buf, format="JPEG", quality=95)
    data = buf.getvalue()
    return data[: len(data) // 2]


class RecordingCodec:
    """Codec stand-in returning a fixed result and remembering its inputs."""

    def __init__(self, output: Optional[bytes] = None, *, fail: bool = False,
                 produce: Optional[Callable[[bytes, int], bytes]] = None) -> None:
        self.output = output
        self.fail = fail
        self.produce = produce
        self.calls: List[Any] = []

    def __call__(self, data: bytes, quality: int) -> CodecResult:
        self.calls.append((data, quality))
        if self.fail:
            return CodecResult(data=None, succeeded=False)
        if self.produce is not None:
            return CodecResult(data=self.produce(data, quality), succeeded=True)
        return CodecResult(data=self.output, succeeded=True)


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    """Keep tests away from the real user/local config files and env vars."""
    from kuma_imagemin import config as cfg

    user_dir = tmp_path / "_user_config"
    monkeypatch.setattr(cfg, "USER_CONFIG_DIR", user_dir)
    monkeypatch.setattr(cfg, "USER_CONFIG_PATH", user_dir / "config.yaml")
    monkeypatch.setattr(cfg, "LOCAL_CONFIG_PATH", tmp_path / "_local" / ".kumarc.yaml")
    monkeypatch.setattr(cfg, "APP_DATA_DIR", tmp_path / "_appdata")
    monkeypatch.setattr(
        cfg, "SOURCE_USER_CONFIG", f"user global config file ({user_dir / 'config.yaml'})"
    )
    monkeypatch.setattr(
        cfg, "SOURCE_LOCAL_CONFIG", f"local project config file ({tmp_path / '_local' / '.kumarc.yaml'})"
    )
    for key in cfg.DEFAULT_CONFIG:
        monkeypatch.delenv(cfg.ENV_VAR_PREFIX + key.upper(), raising=False)
    return tmp_path


@pytest.fixture
def ledger(tmp_path: Path) -> ContentLedger:
    return ContentLedger(tmp_path / "state" / "ledger.json")


@pytest.fixture
def image_dir(tmp_path: Path) -> Path:
    d = tmp_path / "images"
    d.mkdir()
    return d


@pytest.fixture
def shrinking_codecs():
    """Codecs returning a 400 byte PNG and a small unpadded JPEG."""
    return {
        ImageKind.PNG: RecordingCodec(make_png((0, 255, 0), pad_to=400)),
        ImageKind.JPEG: RecordingCodec(make_jpeg((0, 255, 0))),
    }
