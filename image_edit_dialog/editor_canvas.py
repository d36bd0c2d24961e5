"""
Editing canvas widget and Qt image helpers.

This module contains everything that touches both Qt **and** image display:
``pil_to_qpixmap``, the background ``DecodeThread``, and the
``EditorCanvas`` that shows the session frame and feeds pointer events to
the crop selector.
"""

from PIL import Image
from PyQt6.QtWidgets import QWidget, QSizePolicy
from PyQt6.QtCore import Qt, QPointF, pyqtSignal, QThread
from PyQt6.QtGui import QPainter, QPixmap, QColor, QImage, QMouseEvent, QPaintEvent

from image_edit_dialog.image_io import DecodeError
from image_edit_dialog.loader import DecodeTicket, decode_ticket
from image_edit_dialog.models import ToolMode
from image_edit_dialog.session import EditorSession


# =============================================================================
# Qt ↔ PIL helpers
# =============================================================================

def pil_to_qpixmap(pil_img: Image.Image) -> QPixmap:
    """Convert a PIL Image to QPixmap."""
    img_rgba = pil_img.convert("RGBA")
    data = img_rgba.tobytes("raw", "RGBA")
    qimg = QImage(data, img_rgba.width, img_rgba.height, QImage.Format.Format_RGBA8888)
    return QPixmap.fromImage(qimg.copy())


# =============================================================================
# Background decoder
# =============================================================================

class DecodeThread(QThread):
    """Decodes one ticket off the GUI thread; results carry the ticket token."""
    decoded = pyqtSignal(int, object)
    failed = pyqtSignal(int, str)

    def __init__(self, ticket: DecodeTicket, parent=None):
        super().__init__(parent)
        self._ticket = ticket

    def run(self):
        try:
            image = decode_ticket(self._ticket)
        except DecodeError as e:
            self.failed.emit(self._ticket.token, str(e))
            return
        self.decoded.emit(self._ticket.token, image)


# =============================================================================
# Editor Canvas: session frame with pointer-driven crop selection
# =============================================================================

class EditorCanvas(QWidget):
    """Draws the session frame 1:1, centered, and forwards pointer input."""

    def __init__(self, session: EditorSession, parent=None):
        super().__init__(parent)
        self.setMinimumSize(400, 300)
        self.setMouseTracking(True)
        self.setSizePolicy(QSizePolicy.Policy.Expanding, QSizePolicy.Policy.Expanding)

        self._session = session
        self._frame: Image.Image | None = None
        self._pixmap: QPixmap | None = None
        session.subscribe(self._on_session_changed)

    def _on_session_changed(self):
        if self._session.tool == ToolMode.CROP:
            self.setCursor(Qt.CursorShape.CrossCursor)
        else:
            self.setCursor(Qt.CursorShape.ArrowCursor)
        self.update()

    # --- Coordinate mapping ---

    def _frame_offset(self) -> tuple[float, float]:
        display = self._session.display
        return (self.width() - display.width) / 2, (self.height() - display.height) / 2

    def _to_frame(self, pos: QPointF) -> tuple[float, float]:
        ox, oy = self._frame_offset()
        return pos.x() - ox, pos.y() - oy

    # --- Painting ---

    def _current_pixmap(self) -> QPixmap | None:
        frame = self._session.frame()
        if frame is None:
            self._frame = None
            self._pixmap = None
        elif frame is not self._frame:
            self._frame = frame
            self._pixmap = pil_to_qpixmap(frame)
        return self._pixmap

    def paintEvent(self, event: QPaintEvent):
        painter = QPainter(self)
        painter.fillRect(self.rect(), QColor(30, 30, 30))

        pixmap = self._current_pixmap()
        if pixmap is None:
            painter.setPen(QColor(128, 128, 128))
            if self._session.loading:
                msg = "Loading image…"
            elif self._session.failed:
                msg = "Failed to load image"
            else:
                msg = "No image loaded"
            painter.drawText(self.rect(), Qt.AlignmentFlag.AlignCenter, msg)
            painter.end()
            return

        ox, oy = self._frame_offset()
        painter.drawPixmap(QPointF(ox, oy), pixmap)
        painter.end()

    # --- Mouse interaction ---

    def mousePressEvent(self, event: QMouseEvent):
        if event.button() != Qt.MouseButton.LeftButton:
            return
        self._session.pointer_down(*self._to_frame(event.position()))

    def mouseMoveEvent(self, event: QMouseEvent):
        if not self._session.dragging:
            return
        x, y = self._to_frame(event.position())
        self._session.pointer_move(x, y)
        # Leaving the frame ends the drag
        display = self._session.display
        if not (0 <= x <= display.width and 0 <= y <= display.height):
            self._session.pointer_leave()

    def mouseReleaseEvent(self, event: QMouseEvent):
        if event.button() == Qt.MouseButton.LeftButton:
            self._session.pointer_up()

    def leaveEvent(self, event):
        self._session.pointer_leave()
        super().leaveEvent(event)
