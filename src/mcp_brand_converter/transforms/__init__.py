"""
Format Strategies
=================

One strategy per artifact format, all sharing the `transform` capability:

- SvgStrategy: text-level rewrite of SVG markup, optional rasterization
- SceneStrategy: structural rewrite of an Excalidraw JSON scene
- RasterStrategy: watermark compositing onto a bitmap

The format set is closed; the converter selects a strategy from a plain
mapping keyed by `Format`.
"""

from pathlib import Path
from typing import Protocol

from ..brand_config import Template
from ..results import ConversionResult
from .raster import RasterStrategy, watermark_image
from .scene import SceneStrategy, brand_scene
from .svg import SvgStrategy, brand_svg


class TransformStrategy(Protocol):
    async def transform(
        self, source: Path, template_id: str, template: Template, output: Path
    ) -> ConversionResult:
        ...


__all__ = [
    "TransformStrategy",
    "SvgStrategy",
    "SceneStrategy",
    "RasterStrategy",
    "brand_svg",
    "brand_scene",
    "watermark_image",
]
