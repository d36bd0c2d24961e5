"""Shared fixtures for the editor test suite (no display required)."""

import io

import pytest
from PIL import Image

from image_edit_dialog.session import EditorSession


def encode_png(image: Image.Image) -> bytes:
    buf = io.BytesIO()
    image.save(buf, "PNG")
    return buf.getvalue()


@pytest.fixture
def make_png():
    """Factory for solid-color PNG bytes."""
    def _make(width: int, height: int, color=(200, 50, 50, 255)) -> bytes:
        return encode_png(Image.new("RGBA", (width, height), color))
    return _make


@pytest.fixture
def split_image():
    """100x50 image: left half red, right half blue."""
    img = Image.new("RGBA", (100, 50), (255, 0, 0, 255))
    img.paste((0, 0, 255, 255), (50, 0, 100, 50))
    return img


@pytest.fixture
def session():
    return EditorSession()


@pytest.fixture
def source_bytes(make_png):
    """1000x800 source, fitted to 625x500 on screen."""
    return make_png(1000, 800)


@pytest.fixture
def opened(session, source_bytes):
    """Session with the 1000x800 source opened and decoded."""
    ticket = session.open(source_bytes)
    assert session.decode_now(ticket)
    return session


def drag(session: EditorSession, x0, y0, x1, y1):
    session.pointer_down(x0, y0)
    session.pointer_move(x1, y1)
    session.pointer_up()
