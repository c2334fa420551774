"""
Excalidraw Scene Strategy
=========================

Structural rewrite of an Excalidraw JSON scene: element colors, text fonts
and stroke widths, plus branding markers merged into appState. Fields the
rules do not target are carried over untouched and element order is kept.

Stroke widths are multiplied on every run, so branding a scene twice scales
them twice.
"""

import asyncio
import copy
import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from ..brand_config import BrandConfig, Template
from ..detect import is_raster_path
from ..errors import ArtifactIOError
from ..mapping import map_color, resolve_font
from ..results import ConversionResult, success
from .files import read_text, write_atomic

logger = logging.getLogger(__name__)

RASTER_TARGET_MESSAGE = (
    "JSON processed with branding applied. To generate an image, open the scene in Excalidraw."
)


def _brand_element(element: dict, template: Template, config: BrandConfig) -> dict:
    for key in ('strokeColor', 'backgroundColor'):
        brand_color = map_color(element.get(key), config.color_mapping)
        if brand_color is not None:
            element[key] = brand_color

    if element.get('type') == 'text' and template.replace_fonts:
        element['fontFamily'] = resolve_font(template, config.fonts, element.get('fontFamily'))

    stroke_width = element.get('strokeWidth')
    if isinstance(stroke_width, (int, float)) and not isinstance(stroke_width, bool):
        element['strokeWidth'] = stroke_width * template.line_thickness_multiplier

    return element


def brand_scene(
    document: dict,
    template_id: str,
    template: Template,
    config: BrandConfig,
    now: Optional[datetime] = None,
) -> dict:
    """Return a branded copy of an Excalidraw scene document.

    Args:
        document: Parsed scene with an `elements` list
        template_id: Template id recorded in appState
        template: Template rules to apply
        config: Brand configuration
        now: Timestamp recorded in appState (default: current UTC time)

    Returns:
        New scene dict; the input is not modified
    """
    elements = document.get('elements')
    if not isinstance(elements, list):
        raise ArtifactIOError("Excalidraw scene has no 'elements' list")

    scene = copy.deepcopy(document)
    scene['elements'] = [
        _brand_element(element, template, config) if isinstance(element, dict) else element
        for element in scene['elements']
    ]

    timestamp = (now or datetime.now(timezone.utc)).isoformat()
    app_state = scene.get('appState')
    scene['appState'] = {
        **(app_state if isinstance(app_state, dict) else {}),
        'companyBranded': True,
        'brandTemplate': template_id,
        'brandTimestamp': timestamp,
    }
    return scene


class SceneStrategy:
    def __init__(self, config: BrandConfig):
        self.config = config

    async def transform(
        self, source: Path, template_id: str, template: Template, output: Path
    ) -> ConversionResult:
        return await asyncio.to_thread(self._transform, source, template_id, template, output)

    def _transform(self, source: Path, template_id: str, template: Template, output: Path) -> ConversionResult:
        content = read_text(source)
        try:
            document = json.loads(content)
        except json.JSONDecodeError as e:
            raise ArtifactIOError(f"Invalid JSON: {str(e)}") from e
        if not isinstance(document, dict):
            raise ArtifactIOError("Excalidraw scene must be a JSON object")

        scene = brand_scene(document, template_id, template, self.config)
        data = json.dumps(scene, indent=2, ensure_ascii=False).encode('utf-8')

        # No scene renderer here; raster targets get the JSON next to them
        if is_raster_path(output):
            target = output.with_suffix('.json')
            write_atomic(target, data)
            logger.info("Branded scene %s written as JSON to %s (no rasterization)", source.name, target.name)
            return success("json", template_id, message=RASTER_TARGET_MESSAGE, outputFile=target.name)

        write_atomic(output, data)
        logger.info("Branded scene %s -> %s with template '%s'", source.name, output.name, template_id)
        return success("json", template_id)
