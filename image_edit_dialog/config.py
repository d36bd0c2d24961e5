"""
Application constants and configuration.

DEFAULT_ASPECT_RATIOS provides the built-in aspect ratio presets. Runtime
presets are loaded from aspect_ratios.json via the ratios module. All other
constants control display fitting, transform/tonal bounds, the crop overlay,
and export encoding.

The ``config_dir()`` helper returns the platform-appropriate config
directory and is shared by all persistence modules.
"""

import os
import sys
from pathlib import Path

# =============================================================================
# APP IDENTITY & CONFIG DIRECTORY
# =============================================================================
APP_NAME = "image-edit-dialog"

# Environment variable read by app.main() to pick the logging level
LOG_LEVEL_ENV = "IMAGE_EDIT_DIALOG_LOG_LEVEL"


def config_dir() -> Path:
    """Return the platform-appropriate config directory, creating it if needed."""
    if sys.platform == "win32":
        base = Path(os.environ.get("APPDATA", Path.home() / "AppData" / "Roaming"))
    elif sys.platform == "darwin":
        base = Path.home() / "Library" / "Application Support"
    else:
        base = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))
    directory = base / APP_NAME
    directory.mkdir(parents=True, exist_ok=True)
    return directory

# =============================================================================
# DEFAULT ASPECT RATIOS: built-in presets when aspect_ratios.json is missing
# =============================================================================
DEFAULT_ASPECT_RATIOS = [
    {"label": "Free"},
    {"label": "1:1", "ratio_w": 1, "ratio_h": 1},
    {"label": "4:3", "ratio_w": 4, "ratio_h": 3},
    {"label": "16:9", "ratio_w": 16, "ratio_h": 9},
    {"label": "3:2", "ratio_w": 3, "ratio_h": 2},
    {"label": "2:3", "ratio_w": 2, "ratio_h": 3},
]

# Bounding box the current image is fitted into for on-screen compositing
MAX_DISPLAY_WIDTH = 700
MAX_DISPLAY_HEIGHT = 500

# Zoom (scale factor applied about the frame center)
ZOOM_DEFAULT = 1.0
ZOOM_MIN = 0.5
ZOOM_MAX = 3.0
ZOOM_STEP = 0.1

# Rotation step for rotate left/right (degrees)
ROTATION_STEP = 90

# Tonal adjustments (percent, 100 = unchanged)
TONAL_DEFAULT = 100
TONAL_MIN = 0
TONAL_MAX = 200

# Crop overlay
HANDLE_SIZE = 10
OVERLAY_MASK_COLOR = (0, 0, 0, 128)
OVERLAY_BORDER_COLOR = (255, 255, 255, 255)
OVERLAY_BORDER_WIDTH = 2
OVERLAY_GRID_COLOR = (255, 255, 255, 128)
OVERLAY_HANDLE_COLOR = (255, 255, 255, 255)

# PNG compression level (0-9, 9 = maximum compression)
PNG_COMPRESS_LEVEL = 9

# Export quality (0.0-1.0); only lossy formats honour it
EXPORT_QUALITY_DEFAULT = 0.9

# JPEG export defaults
JPEG_SUBSAMPLING_OPTIONS = ["4:4:4", "4:2:2", "4:2:0"]
JPEG_SUBSAMPLING_DEFAULT = "4:4:4"

# Map subsampling labels to Pillow integer values
JPEG_SUBSAMPLING_MAP = {"4:4:4": 0, "4:2:2": 1, "4:2:0": 2}

# Output format options
OUTPUT_FORMATS = ["PNG", "JPEG"]
OUTPUT_FORMAT_DEFAULT = "PNG"

# MIME types used when wrapping encoded bytes in a data URL
FORMAT_MIME_TYPES = {"PNG": "image/png", "JPEG": "image/jpeg"}
