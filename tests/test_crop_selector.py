"""Tests for pointer-driven crop selection."""

import pytest

from image_edit_dialog.crop_selector import CropSelector
from image_edit_dialog.models import CropArea


@pytest.fixture
def selector():
    sel = CropSelector()
    sel.set_frame_size(100, 80)
    return sel


def test_press_outside_frame_is_ignored(selector):
    assert not selector.press(150, 10)
    assert not selector.press(-1, 10)
    assert not selector.dragging
    assert selector.crop is None


def test_press_starts_zero_size_rectangle(selector):
    assert selector.press(10.4, 20.6)
    assert selector.dragging
    assert selector.crop == CropArea(10, 21, 0, 0)


def test_free_drag(selector):
    selector.press(10, 10)
    assert selector.move(60, 40)
    assert selector.crop == CropArea(10, 10, 50, 30)


def test_reverse_drag_is_normalized(selector):
    selector.press(60, 40)
    selector.move(10, 10)
    assert selector.crop == CropArea(10, 10, 50, 30)


def test_drag_is_clamped_to_frame(selector):
    selector.press(50, 50)
    selector.move(500, 500)
    assert selector.crop == CropArea(50, 50, 50, 30)
    selector.move(-20, -20)
    assert selector.crop == CropArea(0, 0, 50, 50)


def test_move_without_change_reports_false(selector):
    selector.press(10, 10)
    assert selector.move(30, 30)
    assert not selector.move(30, 30)


def test_aspect_lock_square():
    sel = CropSelector()
    sel.set_frame_size(625, 500)
    sel.aspect_ratio = 1.0
    sel.press(300, 250)
    sel.move(540, 400)
    assert sel.crop == CropArea(300, 250, 240, 240)


def test_aspect_lock_reverse_direction():
    sel = CropSelector()
    sel.set_frame_size(625, 500)
    sel.aspect_ratio = 1.0
    sel.press(300, 300)
    sel.move(60, 200)
    assert sel.crop == CropArea(60, 60, 240, 240)


def test_aspect_lock_widescreen():
    sel = CropSelector()
    sel.set_frame_size(625, 500)
    sel.aspect_ratio = 16 / 9
    sel.press(0, 0)
    sel.move(160, 10)
    assert sel.crop == CropArea(0, 0, 160, 90)


def test_release_keeps_pending_crop(selector):
    selector.press(10, 10)
    selector.move(60, 40)
    assert selector.release()
    assert not selector.dragging
    assert selector.crop == CropArea(10, 10, 50, 30)
    # Moves after release do nothing
    assert not selector.move(90, 70)
    assert not selector.release()


def test_crop_property_returns_copy(selector):
    selector.press(10, 10)
    selector.move(60, 40)
    crop = selector.crop
    crop.width = 999
    assert selector.crop.width == 50


def test_frame_resize_clamps_pending_crop(selector):
    selector.press(10, 10)
    selector.move(90, 70)
    selector.release()
    selector.set_frame_size(50, 40)
    assert selector.crop == CropArea(10, 10, 40, 30)


def test_clear(selector):
    selector.press(10, 10)
    selector.move(20, 20)
    selector.clear()
    assert selector.crop is None
    assert not selector.dragging
