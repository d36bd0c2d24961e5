"""
Pointer-driven crop rectangle selection (Qt-free).

States are Idle and Dragging.  Pointer-down records the anchor and starts
a zero-size rectangle; each move recomputes the rectangle from the anchor,
applies the optional aspect-ratio lock, normalizes negative extents and
clamps to the frame.  Pointer-up or leaving the frame keeps the last
rectangle as the pending crop.
"""

import logging

from image_edit_dialog.models import CropArea, clamp_rect, normalize_rect, project_aspect

logger = logging.getLogger(__name__)


class CropSelector:
    """Owns the pending crop rectangle and the drag state."""

    def __init__(self):
        self._frame_w = 0
        self._frame_h = 0
        self._anchor: tuple[int, int] | None = None
        self._crop: CropArea | None = None
        self.aspect_ratio: float | None = None

    @property
    def dragging(self) -> bool:
        return self._anchor is not None

    @property
    def crop(self) -> CropArea | None:
        if self._crop is None:
            return None
        return CropArea(self._crop.x, self._crop.y, self._crop.width, self._crop.height)

    def set_frame_size(self, width: int, height: int) -> None:
        """Resize the selectable frame; a pending crop is clamped into it."""
        self._frame_w = width
        self._frame_h = height
        if self._crop is not None:
            self._crop = clamp_rect(self._crop, width, height)

    def clear(self) -> None:
        """Drop the pending crop and abort any drag."""
        self._anchor = None
        self._crop = None

    def press(self, x: float, y: float) -> bool:
        """Start a drag at ``(x, y)``; ignored outside the frame."""
        ix, iy = int(round(x)), int(round(y))
        if not (0 <= ix <= self._frame_w and 0 <= iy <= self._frame_h):
            return False
        self._anchor = (ix, iy)
        self._crop = CropArea(ix, iy, 0, 0)
        return True

    def move(self, x: float, y: float) -> bool:
        """Update the rectangle while dragging; returns True if it changed."""
        if self._anchor is None:
            return False
        cur_x = max(0, min(int(round(x)), self._frame_w))
        cur_y = max(0, min(int(round(y)), self._frame_h))
        ax, ay = self._anchor

        width = cur_x - ax
        height = project_aspect(width, cur_y - ay, self.aspect_ratio)

        crop = clamp_rect(normalize_rect(ax, ay, width, height), self._frame_w, self._frame_h)
        if crop == self._crop:
            return False
        self._crop = crop
        return True

    def release(self) -> bool:
        """End the drag, keeping the rectangle as pending; returns True if a drag ended."""
        if self._anchor is None:
            return False
        self._anchor = None
        logger.debug("Crop selection finished: %s", self._crop)
        return True
