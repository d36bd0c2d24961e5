"""
Editor session: the Qt-free state machine behind the image editor dialog.

One ``EditorSession`` owns the current image handle, display dimensions,
transform state, crop selector, undo history and render target.  Decodes
are asynchronous from the session's point of view: ``open()``, ``undo()``
and ``redo()`` return a ``DecodeTicket`` and the caller delivers the result
through ``on_decoded()`` / ``on_decode_failed()`` (or runs it inline with
``decode_now()``).  Every mutation marks the render target dirty and
notifies subscribers once; the next ``frame()`` call renders exactly once.
"""

import logging
from dataclasses import replace
from typing import Callable

from PIL import Image

from image_edit_dialog.config import (
    MAX_DISPLAY_WIDTH, MAX_DISPLAY_HEIGHT, ROTATION_STEP, ZOOM_STEP, TONAL_DEFAULT,
)
from image_edit_dialog.crop_selector import CropSelector
from image_edit_dialog.history import History
from image_edit_dialog.image_io import (
    DecodeError, ExportSettings, decode_image, encode_image, fingerprint, read_source,
)
from image_edit_dialog.loader import DecodeTicket, DecodeTracker, decode_ticket
from image_edit_dialog.models import (
    AspectRatioOption, CropArea, DisplayDimensions, ImageHandle, ToolMode, TransformState,
    clamp_tonal, clamp_zoom, fit_to_bounds,
)
from image_edit_dialog.ratios import default_ratio_options
from image_edit_dialog.render import RenderTarget, draw_crop_overlay, render

logger = logging.getLogger(__name__)


class EditorSession:
    """Crop/rotate/flip/zoom/adjust editor for a single source image."""

    def __init__(self, max_width: int = MAX_DISPLAY_WIDTH, max_height: int = MAX_DISPLAY_HEIGHT):
        self._max_w = max_width
        self._max_h = max_height

        self._tracker = DecodeTracker()
        self._history = History()
        self._selector = CropSelector()
        self._target = RenderTarget()
        self._listeners: list[Callable[[], None]] = []

        self._handle: ImageHandle | None = None
        self._display = DisplayDimensions()
        self._transform = TransformState()
        self._tool = ToolMode.CROP
        self._aspect_options = default_ratio_options()

        self._is_open = False
        self._loading = False
        self._error: str | None = None
        # History index of the image currently on screen
        self._shown_index = -1

    # --- Observers ---

    def subscribe(self, callback: Callable[[], None]) -> None:
        self._listeners.append(callback)

    def unsubscribe(self, callback: Callable[[], None]) -> None:
        if callback in self._listeners:
            self._listeners.remove(callback)

    def _changed(self, rerender: bool = True) -> None:
        if rerender:
            self._target.invalidate()
        for callback in list(self._listeners):
            callback()

    # --- Read-only state ---

    @property
    def is_open(self) -> bool:
        return self._is_open

    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def failed(self) -> bool:
        return self._error is not None

    @property
    def error(self) -> str | None:
        return self._error

    @property
    def handle(self) -> ImageHandle | None:
        return self._handle

    @property
    def display(self) -> DisplayDimensions:
        return self._display

    @property
    def transform(self) -> TransformState:
        return self._transform

    @property
    def tool(self) -> ToolMode:
        return self._tool

    @property
    def crop(self) -> CropArea | None:
        return self._selector.crop

    @property
    def dragging(self) -> bool:
        return self._selector.dragging

    @property
    def aspect_ratio(self) -> float | None:
        return self._selector.aspect_ratio

    @property
    def aspect_ratio_options(self) -> list[AspectRatioOption]:
        return list(self._aspect_options)

    @property
    def history(self) -> History:
        return self._history

    @property
    def can_undo(self) -> bool:
        return self._history.can_undo

    @property
    def can_redo(self) -> bool:
        return self._history.can_redo

    # =========================================================================
    # Open / close / decode delivery
    # =========================================================================

    def open(
        self, source: bytes | str, aspect_ratios: list[AspectRatioOption] | None = None,
    ) -> DecodeTicket | None:
        """Activate the editor on ``source`` and return the decode to run.

        Returns None when the source is not even a readable payload (the
        session is then open but failed).

        Raises:
            TypeError: ``source`` is neither bytes-like nor a string.
        """
        self._reset_state()
        self._is_open = True
        self._aspect_options = list(aspect_ratios) if aspect_ratios else default_ratio_options()

        try:
            data = read_source(source)
        except ValueError as exc:
            logger.warning("Failed to load image: %s", exc)
            self._error = str(exc)
            self._changed()
            return None

        self._loading = True
        ticket = self._tracker.issue(data, "open")
        logger.info("Opening image %s (decode #%d)", fingerprint(data), ticket.token)
        self._changed()
        return ticket

    def close(self) -> None:
        """Deactivate without output; in-flight decodes become no-ops."""
        if not self._is_open:
            return
        self._reset_state()
        self._is_open = False
        logger.info("Editor closed")
        self._changed()

    def escape(self) -> bool:
        """Keyboard escape: same as ``close()`` while open."""
        if not self._is_open:
            return False
        self.close()
        return True

    def _reset_state(self) -> None:
        self._tracker.invalidate()
        self._history.clear()
        self._selector.clear()
        self._selector.aspect_ratio = None
        self._target.clear()
        self._handle = None
        self._display = DisplayDimensions()
        self._transform = TransformState()
        self._tool = ToolMode.CROP
        self._loading = False
        self._error = None
        self._shown_index = -1

    def on_decoded(self, token: int, image: Image.Image) -> bool:
        """Apply a finished decode; stale tokens and closed sessions are ignored."""
        if not self._is_open:
            logger.debug("Ignoring decode #%d for a closed editor", token)
            return False
        ticket = self._tracker.settle(token)
        if ticket is None:
            return False

        self._set_handle(ImageHandle.from_image(image))
        if ticket.reason == "open":
            self._history.reset(ticket.data)
            self._transform = TransformState()
            self._selector.clear()
            self._loading = False
        self._shown_index = self._history.index
        logger.info(
            "Decoded image %dx%d (%s #%d), display %dx%d",
            self._handle.width, self._handle.height, ticket.reason, token,
            self._display.width, self._display.height,
        )
        self._changed()
        return True

    def on_decode_failed(self, token: int, message: str) -> bool:
        """Record a failed decode; the failure is terminal for an open."""
        if not self._is_open:
            return False
        ticket = self._tracker.settle(token)
        if ticket is None:
            return False

        logger.warning("Failed to decode image (%s #%d): %s", ticket.reason, token, message)
        if ticket.reason == "open":
            self._loading = False
            self._error = message
        else:
            # Back to the entry still on screen
            self._history.seek(self._shown_index)
        self._changed()
        return True

    def decode_now(self, ticket: DecodeTicket | None) -> bool:
        """Run ``ticket`` synchronously and deliver the result."""
        if ticket is None:
            return False
        try:
            image = decode_ticket(ticket)
        except DecodeError as exc:
            return self.on_decode_failed(ticket.token, str(exc))
        return self.on_decoded(ticket.token, image)

    def _set_handle(self, handle: ImageHandle) -> None:
        self._handle = handle
        self._display = fit_to_bounds(handle.width, handle.height, self._max_w, self._max_h)
        self._selector.set_frame_size(self._display.width, self._display.height)

    # =========================================================================
    # Tools and crop selection
    # =========================================================================

    def set_tool(self, tool: ToolMode) -> None:
        if tool == self._tool:
            return
        self._selector.release()
        self._tool = tool
        self._changed()

    def set_aspect_ratio(self, ratio: float | None) -> None:
        """Lock the next drag to ``ratio``; an existing pending crop keeps its shape."""
        self._selector.aspect_ratio = ratio
        self._changed(rerender=False)

    def _crop_input_enabled(self) -> bool:
        return self._tool == ToolMode.CROP and self._handle is not None

    def pointer_down(self, x: float, y: float) -> bool:
        if not self._crop_input_enabled():
            return False
        if self._selector.press(x, y):
            self._changed()
            return True
        return False

    def pointer_move(self, x: float, y: float) -> bool:
        if not self._crop_input_enabled():
            return False
        if self._selector.move(x, y):
            self._changed()
            return True
        return False

    def pointer_up(self) -> bool:
        if self._selector.release():
            self._changed(rerender=False)
            return True
        return False

    def pointer_leave(self) -> bool:
        return self.pointer_up()

    def apply_crop(self) -> bool:
        """Replace the image with the pending crop region of the composited frame."""
        crop = self._selector.crop
        if self._handle is None or crop is None or not crop.has_extent:
            logger.debug("Ignoring crop commit without a positive crop area: %s", crop)
            return False
        if self._tracker.pending:
            logger.debug("Ignoring crop commit while a decode is pending")
            return False

        region = self.composite().crop(crop.box())
        data = encode_image(region)
        self._set_handle(ImageHandle.from_image(decode_image(data)))
        self._history.commit(data)
        self._shown_index = self._history.index
        self._selector.clear()
        logger.info(
            "Committed crop %dx%d at (%d, %d) as %s (history %d/%d)",
            crop.width, crop.height, crop.x, crop.y, fingerprint(data),
            self._history.index + 1, len(self._history),
        )
        self._changed()
        return True

    # =========================================================================
    # History navigation
    # =========================================================================

    def undo(self) -> DecodeTicket | None:
        """Step back one snapshot and return the decode that will show it."""
        if not self._is_open or not self._history.can_undo:
            return None
        data = self._history.undo()
        ticket = self._tracker.issue(data, "undo")
        logger.info(
            "Undo to history %d/%d (decode #%d)",
            self._history.index + 1, len(self._history), ticket.token,
        )
        self._changed(rerender=False)
        return ticket

    def redo(self) -> DecodeTicket | None:
        """Step forward over a snapshot an undo left behind."""
        if not self._is_open or not self._history.can_redo:
            return None
        data = self._history.redo()
        ticket = self._tracker.issue(data, "redo")
        logger.info(
            "Redo to history %d/%d (decode #%d)",
            self._history.index + 1, len(self._history), ticket.token,
        )
        self._changed(rerender=False)
        return ticket

    # =========================================================================
    # Transform controls
    # =========================================================================

    def _update_transform(self, **changes) -> None:
        updated = replace(self._transform, **changes)
        if updated != self._transform:
            self._transform = updated
            self._changed()

    def rotate_left(self) -> None:
        self._update_transform(rotation=(self._transform.rotation - ROTATION_STEP) % 360)

    def rotate_right(self) -> None:
        self._update_transform(rotation=(self._transform.rotation + ROTATION_STEP) % 360)

    def toggle_flip_horizontal(self) -> None:
        self._update_transform(flip_horizontal=not self._transform.flip_horizontal)

    def toggle_flip_vertical(self) -> None:
        self._update_transform(flip_vertical=not self._transform.flip_vertical)

    def zoom_in(self) -> None:
        self.set_zoom(round(self._transform.zoom + ZOOM_STEP, 2))

    def zoom_out(self) -> None:
        self.set_zoom(round(self._transform.zoom - ZOOM_STEP, 2))

    def set_zoom(self, value: float) -> None:
        self._update_transform(zoom=clamp_zoom(value))

    def set_brightness(self, value: int) -> None:
        self._update_transform(brightness=clamp_tonal(value))

    def set_contrast(self, value: int) -> None:
        self._update_transform(contrast=clamp_tonal(value))

    def set_saturation(self, value: int) -> None:
        self._update_transform(saturation=clamp_tonal(value))

    def reset_all(self) -> None:
        """Restore default transforms and drop the pending crop; history is kept."""
        self._transform = TransformState()
        self._selector.clear()
        self._changed()

    def reset_tonal(self) -> None:
        self._update_transform(
            brightness=TONAL_DEFAULT, contrast=TONAL_DEFAULT, saturation=TONAL_DEFAULT,
        )

    # =========================================================================
    # Rendering and export
    # =========================================================================

    def _ensure_rendered(self) -> None:
        if self._handle is None or not self._target.dirty:
            return
        composite = render(self._handle, self._display, self._transform)
        crop = self._selector.crop if self._tool == ToolMode.CROP else None
        frame = draw_crop_overlay(composite, crop) if crop is not None else composite
        self._target.present(composite, frame)

    def frame(self) -> Image.Image | None:
        """The visible frame, including the crop overlay in crop mode."""
        self._ensure_rendered()
        return self._target.frame

    def composite(self) -> Image.Image | None:
        """The visible frame without any overlay."""
        self._ensure_rendered()
        return self._target.composite

    @property
    def render_count(self) -> int:
        return self._target.render_count

    def export(self, settings: ExportSettings | None = None) -> bytes | None:
        """Encode the pending crop region, or the whole frame, as currently shown."""
        if self._handle is None:
            logger.debug("Nothing to export")
            return None
        output = self.composite()
        crop = self._selector.crop
        if crop is not None and crop.has_extent:
            output = output.crop(crop.box())
        data = encode_image(output, settings)
        logger.info("Exported %dx%d image (%d bytes)", output.width, output.height, len(data))
        return data

    def save(self, settings: ExportSettings | None = None) -> bytes | None:
        """Export then close; returns None and stays open if nothing can be exported."""
        data = self.export(settings)
        if data is None:
            return None
        self.close()
        return data
