"""
Local Conversion
================

Dispatches an artifact to the strategy for its format. This is the path the
one-shot CLI (and therefore the container tier) runs, and the path used
when external services are disabled.
"""

import logging
from pathlib import Path
from typing import Optional

from .brand_config import BrandConfig, Template
from .detect import Format, detect_format
from .errors import ArtifactIOError
from .results import ConversionResult
from .transforms import RasterStrategy, SceneStrategy, SvgStrategy, TransformStrategy

logger = logging.getLogger(__name__)


class BrandConverter:
    """Applies a brand template to SVG, Excalidraw JSON or raster artifacts."""

    def __init__(self, config: BrandConfig):
        self.config = config
        self.strategies: dict[Format, TransformStrategy] = {
            Format.SVG: SvgStrategy(config),
            Format.JSON_SCENE: SceneStrategy(config),
            Format.RASTER: RasterStrategy(config),
        }

    async def convert(
        self,
        source,
        template_id: Optional[str],
        output,
        template: Optional[Template] = None,
    ) -> ConversionResult:
        """Convert one artifact.

        Args:
            source: Input artifact path (.svg, .json, .png, .jpg, .jpeg)
            template_id: Template id; unknown ids use the default template
            output: Output path; its extension picks the output encoding
            template: Explicit template rules, overriding the looked-up ones

        Returns:
            ConversionResult with processMethod svg, json or raster

        Raises:
            UnsupportedFormatError: source extension is not supported
            ArtifactIOError: source is missing or unreadable, or output cannot be written
            ProcessingError: SVG rasterization failed
        """
        source = Path(source)
        output = Path(output)

        fmt = detect_format(source)
        if not source.is_file():
            raise ArtifactIOError(f"File not found: {source}")

        resolved_id, resolved = self.config.resolve_template(template_id)
        if template_id and resolved_id != template_id:
            logger.info("Unknown template '%s', using '%s'", template_id, resolved_id)

        logger.info("Processing %s (%s) with template: %s", source.name, fmt.value, resolved_id)
        return await self.strategies[fmt].transform(source, resolved_id, template or resolved, output)
