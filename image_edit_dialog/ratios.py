"""
Aspect ratio presets: load, save, and validate the crop-lock options.

Runtime presets are stored in a JSON file in the user's config directory
(provided by ``config.config_dir()``).  On first launch (or if the file
is missing/corrupt), the file is created from DEFAULT_ASPECT_RATIOS.
This module is Qt-free.

The on-disk format uses a versioned envelope::

    {"version": 1, "ratios": [{"label": "Free"},
                              {"label": "4:3", "ratio_w": 4, "ratio_h": 3}]}

An entry without ``ratio_w``/``ratio_h`` is the free (unlocked) option.
"""

import json
import logging
from copy import deepcopy
from math import gcd
from pathlib import Path

from image_edit_dialog.config import DEFAULT_ASPECT_RATIOS, config_dir
from image_edit_dialog.models import AspectRatioOption

logger = logging.getLogger(__name__)

_RATIOS_FILENAME = "aspect_ratios.json"
_FORMAT_VERSION = 1

_RATIO_KEYS = ("ratio_w", "ratio_h")


# =============================================================================
# Aspect-ratio helpers
# =============================================================================
def normalize_ratio(w: int, h: int) -> tuple[int, int]:
    """Reduce ratio to simplest form via GCD. (16, 10) → (8, 5)"""
    g = gcd(w, h)
    return w // g, h // g


def ratio_label(w: int, h: int) -> str:
    """Normalized display label. (16, 10) → '8:5'"""
    nw, nh = normalize_ratio(w, h)
    return f"{nw}:{nh}"


def to_options(data: list[dict]) -> list[AspectRatioOption]:
    """Convert validated preset dicts to ``AspectRatioOption`` values."""
    options = []
    for entry in data:
        if "ratio_w" in entry:
            options.append(AspectRatioOption(entry["label"], entry["ratio_w"] / entry["ratio_h"]))
        else:
            options.append(AspectRatioOption(entry["label"], None))
    return options


def default_ratio_options() -> list[AspectRatioOption]:
    return to_options(DEFAULT_ASPECT_RATIOS)


def _ratios_path() -> Path:
    """Return the full path to aspect_ratios.json."""
    return config_dir() / _RATIOS_FILENAME


# =============================================================================
# Validation
# =============================================================================
def validate_ratio_options(data: object) -> list[str]:
    """
    Validate a list of aspect ratio presets.

    Returns a list of error strings (empty means valid).
    """
    errors: list[str] = []

    if not isinstance(data, list) or not data:
        errors.append("Aspect ratios must be a non-empty list")
        return errors

    labels_seen: set[str] = set()
    keys_seen: dict[str, str] = {}  # ratio_label -> preset label
    free_seen = False

    for i, entry in enumerate(data):
        prefix = f"Ratio #{i + 1}"

        if not isinstance(entry, dict):
            errors.append(f"{prefix}: must be a dict")
            continue

        label = entry.get("label", "")
        if not isinstance(label, str) or not label.strip():
            errors.append(f"{prefix}: label must be a non-empty string")
        elif label in labels_seen:
            errors.append(f"{prefix}: duplicate label '{label}'")
        else:
            labels_seen.add(label)

        present = [k for k in _RATIO_KEYS if k in entry]
        if not present:
            if free_seen:
                errors.append(f"{prefix}: only one free (unlocked) option is allowed")
            free_seen = True
            continue
        if len(present) != len(_RATIO_KEYS):
            errors.append(f"{prefix}: ratio_w and ratio_h must be given together")
            continue

        valid = True
        for key in _RATIO_KEYS:
            val = entry.get(key)
            if not isinstance(val, int) or isinstance(val, bool) or val <= 0:
                errors.append(f"{prefix}: {key} must be a positive integer, got {val!r}")
                valid = False

        # Check for duplicate normalized ratios (e.g. 4:3 and 8:6)
        if valid:
            rkey = ratio_label(entry["ratio_w"], entry["ratio_h"])
            if rkey in keys_seen:
                errors.append(f"{prefix} ('{label}'): ratio {rkey} duplicates '{keys_seen[rkey]}'")
            else:
                keys_seen[rkey] = label

    return errors


# =============================================================================
# Load / Save
# =============================================================================
def load_ratio_options() -> list[AspectRatioOption]:
    """
    Load aspect ratio presets from aspect_ratios.json.

    If the file is missing, corrupt, or fails validation, writes the
    defaults and returns them.
    """
    path = _ratios_path()

    if not path.exists():
        logger.info("aspect_ratios.json not found, creating with defaults at %s", path)
        _write_defaults(path)
        return default_ratio_options()

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError) as exc:
        logger.warning("Failed to read aspect_ratios.json (%s), restoring defaults", exc)
        _write_defaults(path)
        return default_ratio_options()

    if not isinstance(raw, dict) or raw.get("version") != _FORMAT_VERSION or "ratios" not in raw:
        logger.warning("aspect_ratios.json missing version envelope, restoring defaults")
        _write_defaults(path)
        return default_ratio_options()

    data = raw["ratios"]
    errors = validate_ratio_options(data)
    if errors:
        logger.warning(
            "aspect_ratios.json validation failed:\n  %s\nRestoring defaults.",
            "\n  ".join(errors),
        )
        _write_defaults(path)
        return default_ratio_options()

    return to_options(data)


def save_ratio_options(ratios: list[dict]) -> None:
    """
    Validate and write presets to aspect_ratios.json in versioned envelope.

    Raises ValueError if validation fails.
    Raises OSError if the file cannot be written.
    """
    errors = validate_ratio_options(ratios)
    if errors:
        raise ValueError("Invalid aspect ratios:\n  " + "\n  ".join(errors))

    envelope = {"version": _FORMAT_VERSION, "ratios": ratios}
    path = _ratios_path()
    path.write_text(json.dumps(envelope, indent=2, ensure_ascii=False), encoding="utf-8")
    logger.info("Saved %d aspect ratio preset(s) to %s", len(ratios), path)


def _write_defaults(path: Path) -> None:
    """Write DEFAULT_ASPECT_RATIOS to the given path in versioned envelope."""
    try:
        envelope = {"version": _FORMAT_VERSION, "ratios": deepcopy(DEFAULT_ASPECT_RATIOS)}
        path.write_text(
            json.dumps(envelope, indent=2, ensure_ascii=False),
            encoding="utf-8",
        )
    except OSError as exc:
        logger.error("Could not write default aspect ratios to %s: %s", path, exc)
