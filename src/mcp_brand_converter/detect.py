"""
Format Detection
================

Classifies artifacts by file extension for dispatch, and separately judges
whether an artifact looks like an Excalidraw export. The second check is a
heuristic for reporting only; it never drives dispatch.
"""

import json
import logging
from enum import Enum
from pathlib import Path

from .errors import UnsupportedFormatError

logger = logging.getLogger(__name__)


class Format(str, Enum):
    SVG = "svg"
    JSON_SCENE = "json-scene"
    RASTER = "raster"


EXTENSION_FORMATS = {
    '.json': Format.JSON_SCENE,
    '.svg': Format.SVG,
    '.png': Format.RASTER,
    '.jpg': Format.RASTER,
    '.jpeg': Format.RASTER,
}

RASTER_EXTENSIONS = ('.png', '.jpg', '.jpeg')

SVG_MARKERS = ('excalidraw', 'Made with Excalidraw', 'data-source="excalidraw"')


def detect_format(path) -> Format:
    """Format for a path, decided by its lowercased extension alone."""
    suffix = Path(path).suffix.lower()
    try:
        return EXTENSION_FORMATS[suffix]
    except KeyError:
        raise UnsupportedFormatError(
            f"Unsupported file type: {suffix or '(none)'}. Supported: .json, .svg, .png, .jpg, .jpeg"
        ) from None


def is_raster_path(path) -> bool:
    return Path(path).suffix.lower() in RASTER_EXTENSIONS


def looks_like_excalidraw(path) -> bool:
    """Heuristic check that an artifact was produced by Excalidraw.

    - JSON: document type is "excalidraw" or it has an elements list
    - SVG: markup contains one of the Excalidraw export markers
    - anything else: the filename mentions excalidraw (weak signal)

    Unreadable or unparseable files count as not Excalidraw.
    """
    file_path = Path(path)
    suffix = file_path.suffix.lower()

    try:
        if suffix == '.json':
            data = json.loads(file_path.read_text(encoding='utf-8'))
            if not isinstance(data, dict):
                return False
            return data.get('type') == 'excalidraw' or isinstance(data.get('elements'), list)

        if suffix == '.svg':
            content = file_path.read_text(encoding='utf-8')
            return any(marker in content for marker in SVG_MARKERS)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.warning("Could not inspect %s for Excalidraw markers: %s", file_path, e)
        return False

    return 'excalidraw' in file_path.name.lower()
