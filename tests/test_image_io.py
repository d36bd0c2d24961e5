"""Tests for source normalization, decoding and encoding."""

import base64

import pytest
from PIL import Image

from image_edit_dialog.image_io import (
    DecodeError, ExportSettings, decode_image, encode_image, fingerprint,
    load_source_file, parse_data_url, read_source, to_data_url, unique_path,
)


def test_read_source_bytes_like():
    assert read_source(b"abc") == b"abc"
    assert read_source(bytearray(b"abc")) == b"abc"
    assert read_source(memoryview(b"abc")) == b"abc"


def test_read_source_rejects_other_types():
    with pytest.raises(TypeError):
        read_source(123)


def test_data_url_base64():
    payload = b"\x89PNG fake"
    url = "data:image/png;base64," + base64.b64encode(payload).decode("ascii")
    assert read_source(url) == payload


def test_data_url_percent_encoded():
    assert parse_data_url("data:text/plain,a%20b") == b"a b"


def test_not_a_data_url():
    with pytest.raises(ValueError):
        read_source("https://example.com/image.png")


def test_to_data_url_round_trip(make_png):
    data = make_png(3, 3)
    url = to_data_url(data)
    assert url.startswith("data:image/png;base64,")
    assert parse_data_url(url) == data


def test_decode_png_to_rgba(make_png):
    img = decode_image(make_png(12, 7))
    assert img.mode == "RGBA"
    assert img.size == (12, 7)


def test_decode_rgb_jpeg_gains_alpha():
    img = Image.new("RGB", (8, 8), (10, 200, 30))
    data = encode_image(img, ExportSettings(format="JPEG"))
    assert decode_image(data).mode == "RGBA"


@pytest.mark.parametrize("data", [b"", b"garbage", b"8BPS broken psd"])
def test_decode_errors(data):
    with pytest.raises(DecodeError):
        decode_image(data)


def test_encode_png_keeps_alpha():
    img = Image.new("RGBA", (5, 5), (1, 2, 3, 40))
    data = encode_image(img)
    assert data.startswith(b"\x89PNG")
    assert decode_image(data).getpixel((2, 2)) == (1, 2, 3, 40)


def test_encode_jpeg_flattens_alpha():
    img = Image.new("RGBA", (5, 5), (1, 2, 3, 40))
    data = encode_image(img, ExportSettings(format="jpeg", quality=0.5))
    assert data[:2] == b"\xff\xd8"


def test_encode_unsupported_format():
    with pytest.raises(ValueError):
        encode_image(Image.new("RGBA", (2, 2)), ExportSettings(format="GIF"))


def test_fingerprint_format():
    fp = fingerprint(b"x" * 255)
    size, digest = fp.split("_")
    assert size == "ff"
    assert len(digest) == 8


def test_load_source_file(tmp_path, make_png):
    path = tmp_path / "photo.png"
    path.write_bytes(make_png(4, 4))
    assert decode_image(load_source_file(path)).size == (4, 4)


def test_unique_path(tmp_path):
    target = tmp_path / "out.png"
    assert unique_path(target) == target
    target.write_bytes(b"")
    assert unique_path(target) == tmp_path / "out-01.png"
    (tmp_path / "out-01.png").write_bytes(b"")
    assert unique_path(target) == tmp_path / "out-02.png"
