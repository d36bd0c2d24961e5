"""
Data models and editing-geometry utilities.

ImageHandle, DisplayDimensions, TransformState and CropArea are the core
data structures shared by the session, the render pipeline and the Qt
widgets.  Handles, dimensions and transform states are immutable values:
an edit produces a new instance instead of mutating the current one.
The helper functions at the bottom handle bounds fitting, rectangle
normalization/clamping and aspect-ratio projection.
"""

from dataclasses import dataclass
from enum import Enum

from PIL import Image

from image_edit_dialog.config import (
    MAX_DISPLAY_WIDTH, MAX_DISPLAY_HEIGHT,
    ZOOM_DEFAULT, ZOOM_MIN, ZOOM_MAX,
    TONAL_DEFAULT, TONAL_MIN, TONAL_MAX,
)


# =============================================================================
# Data classes
# =============================================================================
class ToolMode(Enum):
    """Active editing tool; only CROP routes pointer events to the selector."""
    CROP = "crop"
    TRANSFORM = "transform"
    ADJUST = "adjust"


@dataclass(frozen=True)
class ImageHandle:
    """Decoded bitmap plus its intrinsic pixel size."""
    image: Image.Image
    width: int
    height: int

    @classmethod
    def from_image(cls, image: Image.Image) -> "ImageHandle":
        return cls(image, image.width, image.height)


@dataclass(frozen=True)
class DisplayDimensions:
    """Size the current image is stretched to inside the editing frame."""
    width: int = 0
    height: int = 0


@dataclass(frozen=True)
class TransformState:
    """Geometric and tonal parameters applied at render time."""
    zoom: float = ZOOM_DEFAULT
    rotation: int = 0
    flip_horizontal: bool = False
    flip_vertical: bool = False
    brightness: int = TONAL_DEFAULT
    contrast: int = TONAL_DEFAULT
    saturation: int = TONAL_DEFAULT

    @property
    def is_identity_geometry(self) -> bool:
        return (
            self.zoom == 1.0 and self.rotation % 360 == 0
            and not self.flip_horizontal and not self.flip_vertical
        )

    @property
    def is_neutral_tonal(self) -> bool:
        return self.brightness == self.contrast == self.saturation == TONAL_DEFAULT


@dataclass
class CropArea:
    """Crop rectangle in display-pixel coordinates (top-left origin)."""
    x: int = 0
    y: int = 0
    width: int = 0
    height: int = 0

    @property
    def has_extent(self) -> bool:
        return self.width > 0 and self.height > 0

    def box(self) -> tuple[int, int, int, int]:
        """Return the ``(left, upper, right, lower)`` box Pillow expects."""
        return self.x, self.y, self.x + self.width, self.y + self.height


@dataclass(frozen=True)
class AspectRatioOption:
    """Labelled aspect-ratio preset; ``ratio`` is width / height or None for free."""
    label: str
    ratio: float | None = None


# =============================================================================
# Geometry utilities
# =============================================================================
def fit_to_bounds(
    width: float, height: float,
    max_width: int = MAX_DISPLAY_WIDTH, max_height: int = MAX_DISPLAY_HEIGHT,
) -> DisplayDimensions:
    """Scale ``width`` x ``height`` to fit the bounding box, preserving aspect.

    Width is fitted first; if the result is still too tall both dimensions
    are rescaled by height.  1000x800 in 700x500 gives 625x500.
    """
    disp_w = float(width)
    disp_h = float(height)
    if disp_w > max_width:
        disp_h = max_width / disp_w * disp_h
        disp_w = max_width
    if disp_h > max_height:
        disp_w = max_height / disp_h * disp_w
        disp_h = max_height
    return DisplayDimensions(max(1, int(round(disp_w))), max(1, int(round(disp_h))))


def normalize_rect(x: int, y: int, width: int, height: int) -> CropArea:
    """Flip the origin of a rectangle with negative extents so both are >= 0."""
    if width < 0:
        x += width
        width = -width
    if height < 0:
        y += height
        height = -height
    return CropArea(x, y, width, height)


def clamp_rect(crop: CropArea, frame_w: int, frame_h: int) -> CropArea:
    """Clamp a normalized rectangle so it lies fully within the frame."""
    x = min(max(0, crop.x), frame_w)
    y = min(max(0, crop.y), frame_h)
    w = max(0, min(crop.width, frame_w - x))
    h = max(0, min(crop.height, frame_h - y))
    return CropArea(x, y, w, h)


def project_aspect(width: int, height: int, ratio: float | None) -> int:
    """Return the height locked to ``|width| / ratio``, keeping the drag direction.

    With no ratio the raw height is returned unchanged.
    """
    if ratio is None:
        return height
    locked = int(round(abs(width) / ratio))
    return locked if height >= 0 else -locked


def clamp_zoom(value: float) -> float:
    return max(ZOOM_MIN, min(float(value), ZOOM_MAX))


def clamp_tonal(value: int) -> int:
    return max(TONAL_MIN, min(int(value), TONAL_MAX))
