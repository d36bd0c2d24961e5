"""
Application entry point and dark-theme stylesheet.

Usage:
    python -m image_edit_dialog [SOURCE [OUTPUT]]
    image-edit-dialog [SOURCE [OUTPUT]]        (after pip install)

Opens SOURCE (or asks for a file) in the editor dialog and writes the
saved result to OUTPUT, defaulting to ``<stem>-edited.<ext>`` next to it.
"""

import logging
import os
import sys
from pathlib import Path

from PyQt6.QtWidgets import QApplication, QFileDialog, QMessageBox

from image_edit_dialog.config import LOG_LEVEL_ENV
from image_edit_dialog.editor_dialog import ImageEditorDialog
from image_edit_dialog.image_io import load_source_file, unique_path
from image_edit_dialog.ratios import load_ratio_options

logger = logging.getLogger(__name__)

DARK_STYLESHEET = """
    QDialog { background: #2b2b2b; }
    QWidget { background: #2b2b2b; color: #ddd; font-size: 10pt; }
    QGroupBox { border: 1px solid #555; border-radius: 4px; margin-top: 8px; padding-top: 12px; font-weight: bold; }
    QGroupBox::title { subcontrol-origin: margin; left: 8px; padding: 0 4px; }
    QPushButton { background: #3a3a3a; border: 1px solid #555; border-radius: 4px; padding: 6px 12px; }
    QPushButton:hover { background: #4a4a4a; }
    QPushButton:pressed { background: #2a2a2a; }
    QPushButton:checked { background: #3a6ea5; border-color: #5a8ec5; }
    QPushButton:disabled { color: #666; }
    QComboBox { background: #3a3a3a; border: 1px solid #555; padding: 2px 6px; }
"""

_EXTENSIONS = {"PNG": ".png", "JPEG": ".jpg"}


def _default_output(source: Path, fmt: str) -> Path:
    return unique_path(source.with_name(f"{source.stem}-edited{_EXTENSIONS.get(fmt, '.png')}"))


def main():
    logging.basicConfig(
        level=os.environ.get(LOG_LEVEL_ENV, "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = QApplication(sys.argv)
    app.setStyleSheet(DARK_STYLESHEET)

    args = sys.argv[1:]
    if args:
        source = Path(args[0])
    else:
        picked, _ = QFileDialog.getOpenFileName(
            None, "Open Image", str(Path.home()),
            "Images (*.png *.jpg *.jpeg *.bmp *.gif *.tiff *.tif *.webp *.psd)",
        )
        if not picked:
            return
        source = Path(picked)
    output = Path(args[1]) if len(args) > 1 else None

    try:
        data = load_source_file(source)
    except OSError as e:
        QMessageBox.critical(None, "Error", f"Could not read {source}:\n{e}")
        sys.exit(1)

    dialog = ImageEditorDialog(aspect_ratios=load_ratio_options())

    def _write_result(result: bytes):
        fmt = dialog.export_format
        out_path = output or _default_output(source, fmt)
        try:
            out_path.write_bytes(result)
        except OSError as e:
            logger.error("Could not write %s: %s", out_path, e)
            QMessageBox.critical(None, "Error", f"Could not write {out_path}:\n{e}")
            return
        logger.info("Wrote edited image to %s", out_path)

    dialog.saved.connect(_write_result)
    dialog.open_image(data)

    try:
        sys.exit(0 if dialog.exec() == ImageEditorDialog.DialogCode.Accepted else 1)
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
