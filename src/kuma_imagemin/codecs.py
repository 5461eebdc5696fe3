"""Adapters around the external PNG and JPEG encoders.

PNG files are quantized with the ``pngquant`` binary, JPEG files are
re-encoded with Pillow. Both adapters take raw bytes and a 0-100 quality and
return a :class:`CodecResult`; an encoder declining to produce output is a
result, not an exception.
"""

from __future__ import annotations

import enum
import io
import logging
import shutil
import subprocess
from dataclasses import dataclass
from functools import partial
from typing import BinaryIO, Callable, Dict, Optional, Tuple, Union

from PIL import Image

from .exceptions import CodecUnavailableError
from .utils import PathLike

logger = logging.getLogger(__name__)

DEFAULT_PNGQUANT = "pngquant"
# pngquant exit status when the --quality minimum cannot be met
PNGQUANT_QUALITY_TOO_LOW = 99


class ImageKind(str, enum.Enum):
    PNG = "png"
    JPEG = "jpg"


# Pillow format names accepted for each kind. MPO is what Pillow reports for
# many camera JPEGs carrying a second preview frame.
_FORMAT_KINDS = {
    "PNG": ImageKind.PNG,
    "JPEG": ImageKind.JPEG,
    "MPO": ImageKind.JPEG,
}

# Raised by Pillow for image data it refuses or fails to decode
_DECODE_ERRORS = (OSError, SyntaxError, ValueError, Image.DecompressionBombError)


@dataclass(frozen=True)
class ImageInfo:
    kind: ImageKind
    width: int
    height: int


@dataclass(frozen=True)
class CodecResult:
    data: Optional[bytes]
    succeeded: bool

    def ratio(self, original_len: int) -> float:
        """``len(output) / len(input)``; below 1 means the output is smaller."""
        if self.data is None:
            raise ValueError("no encoder output to compare")
        if original_len == 0:
            return float("inf") if self.data else 1.0
        return len(self.data) / original_len


Codec = Callable[[bytes, int], CodecResult]


def _identify(fp: BinaryIO) -> Optional[Tuple[str, int, int]]:
    try:
        with Image.open(fp) as img:
            return img.format or "", img.size[0], img.size[1]
    except _DECODE_ERRORS as exc:
        logger.debug("Probe failed: %s", exc)
        return None


def probe(source: Union[bytes, PathLike]) -> Optional[ImageInfo]:
    """Identify an image from its header. ``None`` if unrecognized or unsupported.

    ``source`` is either the raw bytes or a path; a path is opened and only
    the header is read. Errors opening the path itself propagate.
    """
    if isinstance(source, bytes):
        found = _identify(io.BytesIO(source))
    else:
        with open(source, "rb") as f:
            found = _identify(f)
    if found is None:
        return None
    fmt, width, height = found
    kind = _FORMAT_KINDS.get(fmt)
    if kind is None:
        return None
    return ImageInfo(kind=kind, width=width, height=height)


def quality_band(quality: int) -> Optional[Tuple[int, int]]:
    """Widen a quality target into the ``min-max`` band given to pngquant.

    Palette quantization can fail outright at a narrow target, so the target
    becomes a tolerance band. ``None`` means no constraint (best effort).
    """
    if quality <= 1:
        return (0, 10)
    if quality >= 100:
        return None
    return (max(quality - 10, 0), quality)


def compress_png(data: bytes, quality: int, *, binary: str = DEFAULT_PNGQUANT) -> CodecResult:
    executable = shutil.which(binary)
    if executable is None:
        raise CodecUnavailableError(
            f"pngquant executable '{binary}' not found. Install pngquant or set pngquant_path."
        )
    cmd = [executable]
    band = quality_band(quality)
    if band is not None:
        cmd.append(f"--quality={band[0]}-{band[1]}")
    cmd.append("-")
    proc = subprocess.run(cmd, input=data, capture_output=True)
    if proc.returncode == PNGQUANT_QUALITY_TOO_LOW:
        logger.debug("pngquant could not reach quality band %s", band)
        return CodecResult(data=None, succeeded=False)
    if proc.returncode != 0 or not proc.stdout:
        logger.warning(
            "pngquant exited with status %s: %s",
            proc.returncode,
            proc.stderr.decode("utf-8", "replace").strip(),
        )
        return CodecResult(data=None, succeeded=False)
    return CodecResult(data=proc.stdout, succeeded=True)


def compress_jpeg(data: bytes, quality: int) -> CodecResult:
    """Re-encode with Pillow. Undecodable input is a failed result, not an error."""
    # libjpeg treats anything below 1 as 1
    quality = min(max(quality, 1), 100)
    try:
        with Image.open(io.BytesIO(data)) as img:
            save_kwargs = {
                "format": "JPEG",
                "quality": quality,
                "optimize": True,
                "progressive": True,
            }
            for key in ("icc_profile", "exif"):
                if img.info.get(key):
                    save_kwargs[key] = img.info[key]
            if img.mode not in ("RGB", "L", "CMYK"):
                img = img.convert("RGB")
            out = io.BytesIO()
            img.save(out, **save_kwargs)
    except _DECODE_ERRORS as exc:
        logger.warning("Pillow could not decode JPEG data: %s", exc)
        return CodecResult(data=None, succeeded=False)
    return CodecResult(data=out.getvalue(), succeeded=True)


def build_codecs(pngquant: str = DEFAULT_PNGQUANT) -> Dict[ImageKind, Codec]:
    """Return the dispatch table binding each supported kind to its codec."""
    return {
        ImageKind.PNG: partial(compress_png, binary=pngquant),
        ImageKind.JPEG: compress_jpeg,
    }


__all__ = [
    "ImageKind",
    "ImageInfo",
    "CodecResult",
    "Codec",
    "probe",
    "quality_band",
    "compress_png",
    "compress_jpeg",
    "build_codecs",
]
