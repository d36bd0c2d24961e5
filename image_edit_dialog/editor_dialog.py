"""
Modal image editor dialog.

Hosts an ``EditorSession`` behind a header (undo/redo/reset/close), a tool
bar (crop, transform, adjust), a per-tool option panel, the editing
canvas and a footer with export settings and Save & Use / Cancel.
Decodes run on ``DecodeThread`` workers and are delivered back to the
session on the GUI thread.
"""

from PyQt6.QtWidgets import (
    QDialog, QWidget, QVBoxLayout, QHBoxLayout, QGridLayout, QPushButton, QLabel,
    QGroupBox, QComboBox, QSlider, QStackedWidget, QButtonGroup,
)
from PyQt6.QtCore import Qt, pyqtSignal
from PyQt6.QtGui import QKeyEvent

from image_edit_dialog.config import (
    PNG_COMPRESS_LEVEL, OUTPUT_FORMATS, OUTPUT_FORMAT_DEFAULT, EXPORT_QUALITY_DEFAULT,
    JPEG_SUBSAMPLING_OPTIONS, JPEG_SUBSAMPLING_DEFAULT, JPEG_SUBSAMPLING_MAP,
    ZOOM_MIN, ZOOM_MAX, TONAL_MIN, TONAL_MAX,
)
from image_edit_dialog.editor_canvas import EditorCanvas, DecodeThread
from image_edit_dialog.image_io import ExportSettings
from image_edit_dialog.loader import DecodeTicket
from image_edit_dialog.models import AspectRatioOption, ToolMode
from image_edit_dialog.session import EditorSession


class ImageEditorDialog(QDialog):
    """Crop / transform / adjust a single image and hand back the encoded result."""

    saved = pyqtSignal(bytes)

    _TOOLS = [
        (ToolMode.CROP, "✂ Crop"),
        (ToolMode.TRANSFORM, "⟳ Transform"),
        (ToolMode.ADJUST, "☀ Adjust"),
    ]

    def __init__(self, parent=None, aspect_ratios: list[AspectRatioOption] | None = None):
        super().__init__(parent)
        self.setWindowTitle("Image Editor")
        self.setModal(True)
        self.setMinimumSize(1000, 680)

        self._session = EditorSession()
        self._aspect_ratios = aspect_ratios
        self._threads: set[DecodeThread] = set()

        self._build_ui()
        self._session.subscribe(self._sync_controls)
        self._sync_controls()

    @property
    def session(self) -> EditorSession:
        return self._session

    @property
    def export_format(self) -> str:
        return self._export_format.currentText()

    # =========================================================================
    # UI construction
    # =========================================================================

    def _build_ui(self):
        layout = QVBoxLayout(self)
        layout.setContentsMargins(8, 8, 8, 8)

        layout.addLayout(self._build_header())

        body = QHBoxLayout()
        body.addWidget(self._build_tool_bar())
        self._panel = QStackedWidget()
        self._panel.setFixedWidth(240)
        self._panel.addWidget(self._build_crop_panel())
        self._panel.addWidget(self._build_transform_panel())
        self._panel.addWidget(self._build_adjust_panel())
        body.addWidget(self._panel)
        self._canvas = EditorCanvas(self._session)
        body.addWidget(self._canvas, stretch=1)
        layout.addLayout(body, stretch=1)

        layout.addLayout(self._build_footer())

    def _build_header(self) -> QHBoxLayout:
        header = QHBoxLayout()
        title = QLabel("🖼 Image Editor")
        title.setStyleSheet("font-weight: bold; font-size: 11pt;")
        header.addWidget(title)
        header.addStretch()

        self._btn_undo = QPushButton("↶ Undo")
        self._btn_undo.setToolTip("Undo last crop")
        self._btn_undo.clicked.connect(self._undo)
        header.addWidget(self._btn_undo)

        self._btn_redo = QPushButton("↷ Redo")
        self._btn_redo.setToolTip("Redo undone crop")
        self._btn_redo.clicked.connect(self._redo)
        header.addWidget(self._btn_redo)

        btn_reset = QPushButton("⟲ Reset All")
        btn_reset.setToolTip("Reset transforms, adjustments and crop selection")
        btn_reset.clicked.connect(self._session.reset_all)
        header.addWidget(btn_reset)

        btn_close = QPushButton("✕")
        btn_close.setToolTip("Close")
        btn_close.clicked.connect(self.reject)
        header.addWidget(btn_close)
        return header

    def _build_tool_bar(self) -> QWidget:
        bar = QWidget()
        bar_layout = QVBoxLayout(bar)
        bar_layout.setContentsMargins(0, 0, 0, 0)
        self._tool_group = QButtonGroup(self)
        self._tool_group.setExclusive(True)
        self._tool_buttons: dict[ToolMode, QPushButton] = {}
        for idx, (tool, label) in enumerate(self._TOOLS):
            btn = QPushButton(label)
            btn.setCheckable(True)
            btn.clicked.connect(lambda checked, t=tool: self._session.set_tool(t))
            self._tool_group.addButton(btn, idx)
            self._tool_buttons[tool] = btn
            bar_layout.addWidget(btn)
        bar_layout.addStretch()
        return bar

    def _build_crop_panel(self) -> QWidget:
        page = QWidget()
        page_layout = QVBoxLayout(page)
        page_layout.setContentsMargins(0, 0, 0, 0)

        ratio_group = QGroupBox("Aspect Ratio")
        self._ratio_layout = QGridLayout(ratio_group)
        self._ratio_group = QButtonGroup(self)
        self._ratio_group.setExclusive(True)
        self._ratio_buttons: list[QPushButton] = []
        page_layout.addWidget(ratio_group)

        self._btn_apply_crop = QPushButton("✔ Apply Crop")
        self._btn_apply_crop.clicked.connect(self._session.apply_crop)
        page_layout.addWidget(self._btn_apply_crop)

        hint = QLabel("Click and drag on the image to select crop area")
        hint.setWordWrap(True)
        hint.setStyleSheet("color: #888; font-size: 8pt;")
        page_layout.addWidget(hint)

        page_layout.addStretch()
        return page

    def _rebuild_ratio_buttons(self):
        """Clear and recreate aspect ratio buttons from the session options."""
        for btn in self._ratio_buttons:
            self._ratio_group.removeButton(btn)
            self._ratio_layout.removeWidget(btn)
            btn.deleteLater()
        self._ratio_buttons.clear()

        for i, option in enumerate(self._session.aspect_ratio_options):
            btn = QPushButton(option.label)
            btn.setCheckable(True)
            btn.clicked.connect(lambda checked, r=option.ratio: self._session.set_aspect_ratio(r))
            self._ratio_group.addButton(btn, i)
            self._ratio_layout.addWidget(btn, i // 2, i % 2)
            self._ratio_buttons.append(btn)

    def _build_transform_panel(self) -> QWidget:
        page = QWidget()
        page_layout = QVBoxLayout(page)
        page_layout.setContentsMargins(0, 0, 0, 0)

        rotate_group = QGroupBox("Rotate")
        rotate_layout = QHBoxLayout(rotate_group)
        btn_left = QPushButton("⟲ Left")
        btn_left.setToolTip("Rotate Left 90°")
        btn_left.clicked.connect(self._session.rotate_left)
        rotate_layout.addWidget(btn_left)
        btn_right = QPushButton("⟳ Right")
        btn_right.setToolTip("Rotate Right 90°")
        btn_right.clicked.connect(self._session.rotate_right)
        rotate_layout.addWidget(btn_right)
        page_layout.addWidget(rotate_group)

        flip_group = QGroupBox("Flip")
        flip_layout = QHBoxLayout(flip_group)
        self._btn_flip_h = QPushButton("⇆ Horizontal")
        self._btn_flip_h.setCheckable(True)
        self._btn_flip_h.clicked.connect(self._session.toggle_flip_horizontal)
        flip_layout.addWidget(self._btn_flip_h)
        self._btn_flip_v = QPushButton("⇅ Vertical")
        self._btn_flip_v.setCheckable(True)
        self._btn_flip_v.clicked.connect(self._session.toggle_flip_vertical)
        flip_layout.addWidget(self._btn_flip_v)
        page_layout.addWidget(flip_group)

        zoom_group = QGroupBox("Zoom")
        zoom_layout = QVBoxLayout(zoom_group)
        zoom_row = QHBoxLayout()
        self._btn_zoom_out = QPushButton("−")
        self._btn_zoom_out.clicked.connect(self._session.zoom_out)
        zoom_row.addWidget(self._btn_zoom_out)
        self._zoom_label = QLabel("100%")
        self._zoom_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        zoom_row.addWidget(self._zoom_label, stretch=1)
        self._btn_zoom_in = QPushButton("+")
        self._btn_zoom_in.clicked.connect(self._session.zoom_in)
        zoom_row.addWidget(self._btn_zoom_in)
        zoom_layout.addLayout(zoom_row)
        self._zoom_slider = QSlider(Qt.Orientation.Horizontal)
        self._zoom_slider.setRange(int(ZOOM_MIN * 100), int(ZOOM_MAX * 100))
        self._zoom_slider.valueChanged.connect(lambda v: self._session.set_zoom(v / 100))
        zoom_layout.addWidget(self._zoom_slider)
        page_layout.addWidget(zoom_group)

        page_layout.addStretch()
        return page

    def _build_adjust_panel(self) -> QWidget:
        page = QWidget()
        page_layout = QVBoxLayout(page)
        page_layout.setContentsMargins(0, 0, 0, 0)

        self._tonal_sliders: dict[str, tuple[QSlider, QLabel]] = {}
        for key, title, setter in (
            ("brightness", "☀ Brightness", self._session.set_brightness),
            ("contrast", "◐ Contrast", self._session.set_contrast),
            ("saturation", "🎨 Saturation", self._session.set_saturation),
        ):
            group = QGroupBox(title)
            row = QHBoxLayout(group)
            slider = QSlider(Qt.Orientation.Horizontal)
            slider.setRange(TONAL_MIN, TONAL_MAX)
            slider.valueChanged.connect(setter)
            row.addWidget(slider, stretch=1)
            value_label = QLabel("100%")
            value_label.setFixedWidth(40)
            row.addWidget(value_label)
            self._tonal_sliders[key] = (slider, value_label)
            page_layout.addWidget(group)

        btn_reset = QPushButton("⟲ Reset Adjustments")
        btn_reset.clicked.connect(self._session.reset_tonal)
        page_layout.addWidget(btn_reset)

        page_layout.addStretch()
        return page

    def _build_footer(self) -> QHBoxLayout:
        footer = QHBoxLayout()
        self._dimensions_label = QLabel("")
        self._dimensions_label.setStyleSheet("color: #aaa; font-size: 8pt;")
        footer.addWidget(self._dimensions_label)
        footer.addStretch()

        footer.addWidget(QLabel("Format:"))
        self._export_format = QComboBox()
        self._export_format.addItems(OUTPUT_FORMATS)
        self._export_format.setCurrentText(OUTPUT_FORMAT_DEFAULT)
        self._export_format.currentTextChanged.connect(self._on_export_format_changed)
        footer.addWidget(self._export_format)

        self._quality_label = QLabel("Quality:")
        footer.addWidget(self._quality_label)
        self._quality_slider = QSlider(Qt.Orientation.Horizontal)
        self._quality_slider.setRange(1, 100)
        self._quality_slider.setValue(int(EXPORT_QUALITY_DEFAULT * 100))
        self._quality_slider.setFixedWidth(100)
        footer.addWidget(self._quality_slider)
        self._quality_value = QLabel(str(self._quality_slider.value()))
        self._quality_value.setFixedWidth(24)
        self._quality_slider.valueChanged.connect(lambda v: self._quality_value.setText(str(v)))
        footer.addWidget(self._quality_value)

        self._subsampling = QComboBox()
        self._subsampling.addItems(JPEG_SUBSAMPLING_OPTIONS)
        self._subsampling.setCurrentText(JPEG_SUBSAMPLING_DEFAULT)
        footer.addWidget(self._subsampling)
        self._on_export_format_changed(self._export_format.currentText())

        btn_cancel = QPushButton("Cancel")
        btn_cancel.clicked.connect(self.reject)
        footer.addWidget(btn_cancel)

        self._btn_save = QPushButton("💾 Save && Use")
        self._btn_save.setDefault(True)
        self._btn_save.clicked.connect(self._save)
        footer.addWidget(self._btn_save)
        return footer

    def _on_export_format_changed(self, fmt: str):
        """Show/hide JPEG-specific controls based on selected format."""
        is_jpeg = fmt == "JPEG"
        for w in (self._quality_label, self._quality_slider, self._quality_value, self._subsampling):
            w.setVisible(is_jpeg)

    def _get_export_settings(self) -> ExportSettings:
        """Build export settings from current UI state."""
        return ExportSettings(
            format=self._export_format.currentText(),
            quality=self._quality_slider.value() / 100.0,
            compress_level=PNG_COMPRESS_LEVEL,
            jpeg_subsampling=JPEG_SUBSAMPLING_MAP[self._subsampling.currentText()],
        )

    # =========================================================================
    # Session wiring
    # =========================================================================

    def open_image(self, source: bytes | str):
        """Start editing ``source`` (encoded bytes or a data URL)."""
        ticket = self._session.open(source, self._aspect_ratios)
        self._rebuild_ratio_buttons()
        self._start_decode(ticket)

    def _start_decode(self, ticket: DecodeTicket | None):
        if ticket is None:
            return
        thread = DecodeThread(ticket, self)
        thread.decoded.connect(self._on_decoded)
        thread.failed.connect(self._on_decode_failed)
        thread.finished.connect(lambda t=thread: self._threads.discard(t))
        self._threads.add(thread)
        thread.start()

    # Worker results, queued onto the GUI thread
    def _on_decoded(self, token: int, image):
        self._session.on_decoded(token, image)

    def _on_decode_failed(self, token: int, message: str):
        self._session.on_decode_failed(token, message)

    def _undo(self):
        self._start_decode(self._session.undo())

    def _redo(self):
        self._start_decode(self._session.redo())

    def _sync_controls(self):
        """Mirror session state into the widgets without feeding changes back."""
        session = self._session
        transform = session.transform
        has_image = session.handle is not None

        self._tool_buttons[session.tool].setChecked(True)
        self._panel.setCurrentIndex([t for t, _ in self._TOOLS].index(session.tool))

        for btn, option in zip(self._ratio_buttons, session.aspect_ratio_options):
            if option.ratio == session.aspect_ratio:
                btn.setChecked(True)
                break

        crop = session.crop
        self._btn_apply_crop.setVisible(crop is not None and crop.width > 0)
        self._btn_undo.setEnabled(session.can_undo)
        self._btn_redo.setEnabled(session.can_redo)

        self._btn_flip_h.setChecked(transform.flip_horizontal)
        self._btn_flip_v.setChecked(transform.flip_vertical)
        self._zoom_label.setText(f"{round(transform.zoom * 100)}%")
        self._btn_zoom_out.setEnabled(transform.zoom > ZOOM_MIN)
        self._btn_zoom_in.setEnabled(transform.zoom < ZOOM_MAX)
        self._zoom_slider.blockSignals(True)
        self._zoom_slider.setValue(int(round(transform.zoom * 100)))
        self._zoom_slider.blockSignals(False)

        for key, (slider, value_label) in self._tonal_sliders.items():
            value = getattr(transform, key)
            slider.blockSignals(True)
            slider.setValue(value)
            slider.blockSignals(False)
            value_label.setText(f"{value}%")

        if has_image:
            self._dimensions_label.setText(
                f"Original: {session.handle.width} x {session.handle.height}px"
            )
        else:
            self._dimensions_label.setText("")
        self._btn_save.setEnabled(not session.loading)

    # =========================================================================
    # Save / close
    # =========================================================================

    def _save(self):
        data = self._session.save(self._get_export_settings())
        if data is None:
            return
        self.saved.emit(data)
        self.accept()

    def keyPressEvent(self, event: QKeyEvent):
        if event.key() == Qt.Key.Key_Escape:
            self.reject()
            return
        super().keyPressEvent(event)

    def done(self, result: int):
        """Close the session and let in-flight decode threads finish."""
        self._session.escape()
        for thread in list(self._threads):
            thread.wait(2000)
        super().done(result)
