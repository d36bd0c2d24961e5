"""Tests for the render pipeline and render target."""

import pytest
from PIL import Image

from image_edit_dialog.models import CropArea, DisplayDimensions, ImageHandle, TransformState
from image_edit_dialog.render import (
    RenderTarget, affine_coefficients, apply_tonal_filter, draw_crop_overlay,
    render, render_composite,
)

DISPLAY = DisplayDimensions(100, 50)
RED = (255, 0, 0, 255)
BLUE = (0, 0, 255, 255)


@pytest.fixture
def handle(split_image):
    return ImageHandle.from_image(split_image)


def solid_handle(color, size=(100, 50)):
    return ImageHandle.from_image(Image.new("RGBA", size, color))


def test_identity_affine_coefficients():
    assert affine_coefficients(100, 50, TransformState()) == (1.0, 0.0, 0.0, 0.0, 1.0, 0.0)


def test_identity_render_keeps_pixels(handle):
    frame = render_composite(handle, DISPLAY, TransformState())
    assert frame.size == (100, 50)
    assert frame.getpixel((10, 25)) == RED
    assert frame.getpixel((90, 25)) == BLUE


def test_image_is_stretched_to_display():
    frame = render_composite(solid_handle(RED, (50, 25)), DISPLAY, TransformState())
    assert frame.size == (100, 50)
    assert frame.getpixel((50, 25)) == RED


def test_flip_horizontal_mirrors(handle):
    frame = render_composite(handle, DISPLAY, TransformState(flip_horizontal=True))
    assert frame.getpixel((10, 25)) == BLUE
    assert frame.getpixel((90, 25)) == RED


def test_flip_vertical_mirrors():
    img = Image.new("RGBA", (100, 50), RED)
    img.paste(BLUE, (0, 25, 100, 50))
    frame = render_composite(ImageHandle.from_image(img), DISPLAY, TransformState(flip_vertical=True))
    assert frame.getpixel((50, 5)) == BLUE
    assert frame.getpixel((50, 45)) == RED


def test_rotate_180_swaps_halves(handle):
    frame = render_composite(handle, DISPLAY, TransformState(rotation=180))
    assert frame.getpixel((10, 25)) == BLUE
    assert frame.getpixel((90, 25)) == RED


def test_rotate_90_leaves_uncovered_corners_transparent(handle):
    frame = render_composite(handle, DISPLAY, TransformState(rotation=90))
    assert frame.getpixel((2, 2))[3] == 0
    assert frame.getpixel((97, 47))[3] == 0
    assert frame.getpixel((50, 25))[3] == 255


@pytest.fixture
def top_bottom():
    """100x50 image: top half red, bottom half blue."""
    img = Image.new("RGBA", (100, 50), RED)
    img.paste(BLUE, (0, 25, 100, 50))
    return ImageHandle.from_image(img)


def test_rotate_90_turns_clockwise(top_bottom):
    frame = render_composite(top_bottom, DISPLAY, TransformState(rotation=90))
    # Top of the source ends up on the right
    assert frame.getpixel((65, 25)) == RED
    assert frame.getpixel((35, 25)) == BLUE


def test_rotate_270_turns_counter_clockwise(top_bottom):
    frame = render_composite(top_bottom, DISPLAY, TransformState(rotation=270))
    assert frame.getpixel((35, 25)) == RED
    assert frame.getpixel((65, 25)) == BLUE


def test_rotate_flip_and_zoom_compose(top_bottom):
    state = TransformState(rotation=90, flip_horizontal=True, zoom=2.0)
    frame = render_composite(top_bottom, DISPLAY, state)
    # Zoomed 2x the rotated image covers the whole frame
    assert frame.getpixel((5, 25))[3] == 255
    assert frame.getpixel((94, 25))[3] == 255
    assert frame.getpixel((70, 25)) == RED
    assert frame.getpixel((30, 25)) == BLUE


def test_zoom_out_shrinks_about_center():
    frame = render_composite(solid_handle(RED), DISPLAY, TransformState(zoom=0.5))
    assert frame.getpixel((2, 2))[3] == 0
    assert frame.getpixel((50, 25)) == RED


def test_zoom_in_covers_frame():
    frame = render_composite(solid_handle(RED), DISPLAY, TransformState(zoom=2.0))
    assert frame.getpixel((0, 0)) == RED
    assert frame.getpixel((99, 49)) == RED


def test_brightness_zero_is_black():
    frame = render_composite(solid_handle((200, 120, 40, 255)), DISPLAY, TransformState(brightness=0))
    assert frame.getpixel((50, 25)) == (0, 0, 0, 255)


def test_contrast_zero_is_mid_grey():
    frame = render_composite(solid_handle((200, 120, 40, 255)), DISPLAY, TransformState(contrast=0))
    r, g, b, a = frame.getpixel((50, 25))
    assert all(abs(v - 128) <= 1 for v in (r, g, b))
    assert a == 255


def test_saturation_zero_is_greyscale():
    frame = render_composite(solid_handle((200, 120, 40, 255)), DISPLAY, TransformState(saturation=0))
    r, g, b, _ = frame.getpixel((50, 25))
    assert r == g == b


def test_saturation_uses_rec709_luma():
    frame = render_composite(solid_handle(RED), DISPLAY, TransformState(saturation=0))
    r, g, b, _ = frame.getpixel((50, 25))
    # 0.2126 * 255, not Rec.601's 0.299 * 255
    assert r == g == b
    assert abs(r - 54) <= 1


def test_half_saturation_blends_towards_luma():
    frame = render_composite(solid_handle(RED), DISPLAY, TransformState(saturation=50))
    r, g, b, _ = frame.getpixel((50, 25))
    assert abs(r - 155) <= 1
    assert abs(g - 27) <= 1
    assert abs(b - 27) <= 1


def test_tonal_filter_keeps_alpha():
    img = Image.new("RGBA", (4, 4), (200, 120, 40, 77))
    out = apply_tonal_filter(img, TransformState(brightness=150, saturation=50))
    assert out.getpixel((1, 1))[3] == 77


def test_neutral_tonal_filter_is_passthrough():
    img = Image.new("RGBA", (4, 4), RED)
    assert apply_tonal_filter(img, TransformState()) is img


def test_crop_overlay_layers():
    frame = Image.new("RGBA", (100, 50), RED)
    out = draw_crop_overlay(frame, CropArea(20, 10, 40, 20))
    # Inside the crop, away from guides and handles
    assert out.getpixel((40, 20)) == RED
    # Outside the crop is dimmed
    r, g, b, a = out.getpixel((2, 40))
    assert 110 < r < 140 and g == 0 and b == 0 and a == 255
    # Corner handle
    assert out.getpixel((17, 7)) == (255, 255, 255, 255)
    # Source frame untouched
    assert frame.getpixel((2, 40)) == RED


def test_render_without_crop_matches_composite(handle):
    state = TransformState(rotation=90, brightness=120)
    assert render(handle, DISPLAY, state).tobytes() == render_composite(handle, DISPLAY, state).tobytes()


def test_render_target_dirty_cycle():
    target = RenderTarget()
    assert target.dirty
    frame = Image.new("RGBA", (2, 2))
    target.present(frame, frame)
    assert not target.dirty
    assert target.frame is frame
    assert target.render_count == 1
    target.invalidate()
    assert target.dirty
    target.clear()
    assert target.frame is None and target.composite is None
