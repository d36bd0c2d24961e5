"""
Qt-free image I/O utilities.

Normalizes editor sources (raw bytes or ``data:`` URLs) to encoded bytes,
decodes them to RGBA Pillow images (PSD via psd-tools), encodes frames back
to PNG/JPEG, and computes short content fingerprints for log messages.
Safe to import without a display.
"""

import base64
import binascii
import hashlib
import io
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import unquote_to_bytes

from PIL import Image, ImageOps
from psd_tools import PSDImage

from image_edit_dialog.config import (
    EXPORT_QUALITY_DEFAULT, PNG_COMPRESS_LEVEL, OUTPUT_FORMAT_DEFAULT,
    OUTPUT_FORMATS, FORMAT_MIME_TYPES,
)

# Allow very large images (Pillow's default limit is ~178MP)
Image.MAX_IMAGE_PIXELS = None

_PSD_SIGNATURE = b"8BPS"


class DecodeError(Exception):
    """Raised when a source cannot be decoded into an image."""


@dataclass(frozen=True)
class ExportSettings:
    """Encoder options for exported frames."""
    format: str = OUTPUT_FORMAT_DEFAULT
    quality: float = EXPORT_QUALITY_DEFAULT  # 0.0-1.0, lossy formats only
    compress_level: int = PNG_COMPRESS_LEVEL
    jpeg_subsampling: int = 0
    jpeg_optimize: bool = True


# =============================================================================
# Sources
# =============================================================================
def parse_data_url(url: str) -> bytes:
    """Return the payload of a ``data:`` URL (base64 or percent-encoded)."""
    header, sep, payload = url.partition(",")
    if not header.startswith("data:") or not sep:
        raise ValueError("not a data URL")
    if header.endswith(";base64"):
        try:
            return base64.b64decode(payload, validate=False)
        except (binascii.Error, ValueError) as exc:
            raise ValueError(f"invalid base64 payload: {exc}") from exc
    return unquote_to_bytes(payload)


def read_source(source: bytes | bytearray | memoryview | str) -> bytes:
    """Normalize an editor source to encoded image bytes."""
    if isinstance(source, (bytes, bytearray, memoryview)):
        return bytes(source)
    if isinstance(source, str):
        return parse_data_url(source)
    raise TypeError(f"unsupported image source type: {type(source).__name__}")


def load_source_file(path: Path) -> bytes:
    """Read an image file for callers that hand the editor a path."""
    return Path(path).read_bytes()


def to_data_url(data: bytes, fmt: str = OUTPUT_FORMAT_DEFAULT) -> str:
    """Wrap encoded bytes in a base64 ``data:`` URL."""
    mime = FORMAT_MIME_TYPES.get(fmt.upper(), "application/octet-stream")
    return f"data:{mime};base64,{base64.b64encode(data).decode('ascii')}"


def fingerprint(data: bytes) -> str:
    """Short content fingerprint ``"{size_hex}_{hash8}"`` used in log messages."""
    return f"{len(data):x}_{hashlib.sha256(data).hexdigest()[:8]}"


# =============================================================================
# Decode / Encode
# =============================================================================
def decode_image(data: bytes) -> Image.Image:
    """Decode encoded bytes to a fully loaded RGBA image.

    PSD data is composited with psd-tools, everything else goes through
    Pillow with EXIF orientation applied.  Raises ``DecodeError``.
    """
    if not data:
        raise DecodeError("empty image data")
    try:
        if data[:4] == _PSD_SIGNATURE:
            img = PSDImage.open(io.BytesIO(data)).composite()
            if img is None:
                raise DecodeError("PSD has no composite image")
        else:
            img = Image.open(io.BytesIO(data))
            img.load()
            img = ImageOps.exif_transpose(img)
        return img.convert("RGBA")
    except DecodeError:
        raise
    except Exception as exc:
        raise DecodeError(str(exc)) from exc


def encode_image(image: Image.Image, settings: ExportSettings | None = None) -> bytes:
    """Encode an image with the given export settings (PNG by default)."""
    settings = settings or ExportSettings()
    fmt = settings.format.upper()
    if fmt not in OUTPUT_FORMATS:
        raise ValueError(f"unsupported output format: {settings.format}")

    buf = io.BytesIO()
    if fmt == "JPEG":
        quality = max(1, min(100, int(round(settings.quality * 100))))
        image.convert("RGB").save(
            buf, "JPEG",
            quality=quality,
            optimize=settings.jpeg_optimize,
            subsampling=settings.jpeg_subsampling,
        )
    else:
        image.save(buf, "PNG", compress_level=settings.compress_level)
    return buf.getvalue()


def unique_path(out_path: Path) -> Path:
    """Return a unique path by appending -01, -02, etc. if file already exists."""
    if not out_path.exists():
        return out_path
    stem = out_path.stem
    suffix = out_path.suffix
    parent = out_path.parent
    counter = 1
    while True:
        candidate = parent / f"{stem}-{counter:02d}{suffix}"
        if not candidate.exists():
            return candidate
        counter += 1
