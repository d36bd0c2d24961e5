"""
Render pipeline: current editor state to a composited RGBA frame (Qt-free).

``render()`` is a pure function of its arguments.  The frame is sized to
the display dimensions; the image is stretched to fill it, tonally
filtered, then rotated/scaled/flipped about the frame center the same way
a 2D canvas context applies ``translate -> rotate -> scale -> translate``.
Areas the transformed image no longer covers are transparent.  The crop
overlay is drawn on a separate layer so exported pixels never contain it;
the session keeps ``render()`` without a crop as its composite and adds
the overlay on top for the visible frame.
"""

import math

from PIL import Image, ImageDraw

from image_edit_dialog.config import (
    HANDLE_SIZE, OVERLAY_MASK_COLOR, OVERLAY_BORDER_COLOR, OVERLAY_BORDER_WIDTH,
    OVERLAY_GRID_COLOR, OVERLAY_HANDLE_COLOR, TONAL_DEFAULT,
)
from image_edit_dialog.models import CropArea, DisplayDimensions, ImageHandle, TransformState

_TRANSPARENT = (0, 0, 0, 0)


# =============================================================================
# Pipeline stages
# =============================================================================
def _tonal_lut(brightness: int, contrast: int) -> list[int]:
    """Per-channel lookup table for ``brightness(b%) contrast(c%)``."""
    b = brightness / 100.0
    c = contrast / 100.0
    lut = []
    for v in range(256):
        x = min(255.0, v * b)
        x = (x - 127.5) * c + 127.5
        lut.append(int(round(max(0.0, min(255.0, x)))))
    return lut


# Rec.709 luma weights, as used by the CSS saturate() filter
_LUMA = (0.2126, 0.7152, 0.0722)


def _saturate_matrix(saturation: int) -> tuple[float, ...]:
    """12-tuple RGB->RGB matrix for ``saturate(s%)``."""
    s = saturation / 100.0
    matrix = []
    for row in range(3):
        for col in range(3):
            identity = 1.0 if row == col else 0.0
            matrix.append(_LUMA[col] + (identity - _LUMA[col]) * s)
        matrix.append(0.0)
    return tuple(matrix)


def apply_tonal_filter(image: Image.Image, transform: TransformState) -> Image.Image:
    """Apply brightness, contrast, then saturation to the RGB bands; alpha is kept."""
    if transform.is_neutral_tonal:
        return image
    r, g, b, alpha = image.convert("RGBA").split()
    rgb = Image.merge("RGB", (r, g, b))
    if transform.brightness != TONAL_DEFAULT or transform.contrast != TONAL_DEFAULT:
        rgb = rgb.point(_tonal_lut(transform.brightness, transform.contrast) * 3)
    if transform.saturation != TONAL_DEFAULT:
        rgb = rgb.convert("RGB", _saturate_matrix(transform.saturation))
    rgb.putalpha(alpha)
    return rgb


def affine_coefficients(width: int, height: int, transform: TransformState) -> tuple[float, ...]:
    """Inverse affine (output -> source) for Pillow's ``Image.transform``.

    The forward map is ``q = C + R(theta) * S(sx, sy) * (p - C)`` with C the
    frame center and y pointing down, so positive angles turn clockwise.
    """
    theta = math.radians(transform.rotation % 360)
    cos = round(math.cos(theta), 12)
    sin = round(math.sin(theta), 12)
    sx = -transform.zoom if transform.flip_horizontal else transform.zoom
    sy = -transform.zoom if transform.flip_vertical else transform.zoom

    a, b = cos / sx, sin / sx
    d, e = -sin / sy, cos / sy
    cx, cy = width / 2.0, height / 2.0
    c = cx - a * cx - b * cy
    f = cy - d * cx - e * cy
    return a, b, c, d, e, f


def render_composite(
    handle: ImageHandle, display: DisplayDimensions, transform: TransformState,
) -> Image.Image:
    """Render the image with geometry and tonal filter applied, no overlay."""
    size = (display.width, display.height)
    base = handle.image.convert("RGBA")
    if base.size != size:
        base = base.resize(size, Image.Resampling.LANCZOS)
    base = apply_tonal_filter(base, transform)

    if transform.is_identity_geometry:
        return base.copy()
    return base.transform(
        size, Image.Transform.AFFINE,
        affine_coefficients(display.width, display.height, transform),
        resample=Image.Resampling.BICUBIC,
        fillcolor=_TRANSPARENT,
    )


def _fill(draw: ImageDraw.ImageDraw, x0: int, y0: int, x1: int, y1: int, color) -> None:
    """Fill the half-open box ``[x0, x1) x [y0, y1)``; empty boxes are skipped."""
    if x1 > x0 and y1 > y0:
        draw.rectangle((x0, y0, x1 - 1, y1 - 1), fill=color)


def draw_crop_overlay(frame: Image.Image, crop: CropArea) -> Image.Image:
    """Return a copy of ``frame`` with the crop mask, border, thirds and handles."""
    fw, fh = frame.size
    x, y, w, h = crop.x, crop.y, crop.width, crop.height
    layer = Image.new("RGBA", frame.size, _TRANSPARENT)
    draw = ImageDraw.Draw(layer)

    # Dim the four regions outside the crop
    _fill(draw, 0, 0, fw, y, OVERLAY_MASK_COLOR)
    _fill(draw, 0, y + h, fw, fh, OVERLAY_MASK_COLOR)
    _fill(draw, 0, y, x, y + h, OVERLAY_MASK_COLOR)
    _fill(draw, x + w, y, fw, y + h, OVERLAY_MASK_COLOR)

    # Border straddles the crop edge
    draw.rectangle(
        (x - 1, y - 1, x + w, y + h),
        outline=OVERLAY_BORDER_COLOR, width=OVERLAY_BORDER_WIDTH,
    )

    # Rule-of-thirds guides
    if w > 0 and h > 0:
        for i in (1, 2):
            gx = x + int(round(w * i / 3))
            gy = y + int(round(h * i / 3))
            draw.line([(gx, y), (gx, y + h - 1)], fill=OVERLAY_GRID_COLOR, width=1)
            draw.line([(x, gy), (x + w - 1, gy)], fill=OVERLAY_GRID_COLOR, width=1)

    # Corner handles centered on each corner
    half = HANDLE_SIZE // 2
    for cx, cy in ((x, y), (x + w, y), (x, y + h), (x + w, y + h)):
        draw.rectangle(
            (cx - half, cy - half, cx - half + HANDLE_SIZE - 1, cy - half + HANDLE_SIZE - 1),
            fill=OVERLAY_HANDLE_COLOR,
        )

    return Image.alpha_composite(frame.convert("RGBA"), layer)


def render(
    handle: ImageHandle, display: DisplayDimensions, transform: TransformState,
    crop: CropArea | None = None,
) -> Image.Image:
    """Render the visible frame; pass ``crop`` only while the crop tool is active."""
    frame = render_composite(handle, display, transform)
    if crop is not None:
        frame = draw_crop_overlay(frame, crop)
    return frame


# =============================================================================
# Render target
# =============================================================================
class RenderTarget:
    """Single-owner frame buffer scoped to one editor session.

    Frames are replaced wholesale by ``present()``.  ``invalidate()`` marks
    the buffer stale; the owner re-renders on the next read.
    """

    def __init__(self):
        self._composite: Image.Image | None = None
        self._frame: Image.Image | None = None
        self._dirty = True
        self.render_count = 0

    @property
    def dirty(self) -> bool:
        return self._dirty

    @property
    def composite(self) -> Image.Image | None:
        return self._composite

    @property
    def frame(self) -> Image.Image | None:
        return self._frame

    def invalidate(self) -> None:
        self._dirty = True

    def present(self, composite: Image.Image | None, frame: Image.Image | None) -> None:
        self._composite = composite
        self._frame = frame
        self._dirty = False
        self.render_count += 1

    def clear(self) -> None:
        self._composite = None
        self._frame = None
        self._dirty = True
