"""
Branding Pipeline
=================

Service-backed conversion with a fixed fallback order, first success wins:

1. remote style service
2. AI model runner (tool call picks the style, local strategies apply it)
3. containerised converter
4. verbatim copy of the input, tagged "fallback-copy"

Tiers 1-3 that are not configured fail immediately. Their failures are
logged and demoted to "try the next tier"; no tier is retried. Only a
missing, unreadable or unsupported input reaches the caller as an error.
"""

import asyncio
import logging
import shutil
from functools import partial
from pathlib import Path
from typing import Awaitable, Callable, Optional, Sequence

from .brand_config import Template
from .converter import BrandConverter
from .detect import detect_format
from .errors import ArtifactIOError, BrandError, ProcessingError, UpstreamServiceError
from .results import ConversionResult, success
from .services import MEDIA_TYPES, ContainerProcessor, ModelRunnerClient, StyleServiceClient
from .transforms.files import write_atomic

logger = logging.getLogger(__name__)

FALLBACK_COPY = "fallback-copy"

Attempt = tuple[str, Callable[[], Awaitable[ConversionResult]]]


async def first_success(
    attempts: Sequence[Attempt], fallback: Callable[[], Awaitable[ConversionResult]]
) -> ConversionResult:
    """Await each attempt in order and return the first result; `fallback` runs unguarded last."""
    for name, attempt in attempts:
        try:
            return await attempt()
        except (UpstreamServiceError, ProcessingError) as e:
            logger.warning("%s failed, trying next tier: %s", name, e)
    return await fallback()


class BrandingPipeline:
    def __init__(
        self,
        converter: BrandConverter,
        style_service: Optional[StyleServiceClient] = None,
        model_runner: Optional[ModelRunnerClient] = None,
        processor: Optional[ContainerProcessor] = None,
    ):
        self.converter = converter
        self.config = converter.config
        self.style_service = style_service
        self.model_runner = model_runner
        self.processor = processor

    async def convert(self, source, template_id: Optional[str], output) -> ConversionResult:
        """Convert an artifact through the fallback chain.

        Raises:
            UnsupportedFormatError: source extension is not supported
            ArtifactIOError: source is missing or unreadable, or the final copy failed
        """
        source = Path(source)
        output = Path(output)

        detect_format(source)
        try:
            image = await asyncio.to_thread(source.read_bytes)
        except OSError as e:
            raise ArtifactIOError(f"File not found or unreadable: {source}") from e

        resolved_id, template = self.config.resolve_template(template_id)
        logger.info("Processing %s through service pipeline with template: %s", source.name, resolved_id)

        return await first_success(
            [
                ("Style service", partial(self._via_style_service, image, source, resolved_id, template, output)),
                ("Model runner", partial(self._via_model_runner, image, source, resolved_id, output)),
                ("Container processor", partial(self._via_container, source, resolved_id, output)),
            ],
            fallback=partial(self._copy_verbatim, source, resolved_id, output),
        )

    async def _via_style_service(
        self, image: bytes, source: Path, template_id: str, template: Template, output: Path
    ) -> ConversionResult:
        if self.style_service is None:
            raise UpstreamServiceError("Style service endpoint not configured")

        processed, metadata = await self.style_service.process(
            image,
            source.suffix.lstrip('.').lower(),
            template_id,
            template,
            output.suffix.lstrip('.').lower() or 'png',
        )
        try:
            await asyncio.to_thread(write_atomic, output, processed)
        except ArtifactIOError as e:
            raise ProcessingError(str(e)) from e

        return success("style-service", template_id, serviceMetadata=metadata)

    async def _via_model_runner(
        self, image: bytes, source: Path, template_id: str, output: Path
    ) -> ConversionResult:
        if self.model_runner is None:
            raise UpstreamServiceError("Model runner not configured")

        _, requested = self.config.resolve_template(template_id)
        media_type = MEDIA_TYPES.get(source.suffix.lstrip('.').lower(), 'application/octet-stream')
        params = await self.model_runner.request_style_params(image, media_type, template_id, requested)

        style_id, style = self.config.resolve_template(params.get("style_name"))
        updates = {}
        if isinstance(params.get("add_logo"), bool):
            updates["add_watermark"] = params["add_logo"]
        if isinstance(params.get("logo_position"), str):
            updates["watermark_position"] = params["logo_position"]

        try:
            result = await self.converter.convert(
                source, style_id, output, template=style.model_copy(update=updates)
            )
        except BrandError as e:
            raise ProcessingError(f"Applying model style parameters failed: {e}") from e

        return success(
            "model-runner",
            style_id,
            strategy=result.process_method,
            modelUsed=self.model_runner.model,
            styleParams=params,
            message=result.metadata.get("message"),
            outputFile=result.metadata.get("outputFile"),
        )

    async def _via_container(self, source: Path, template_id: str, output: Path) -> ConversionResult:
        if self.processor is None:
            raise UpstreamServiceError("Container processor not configured")

        metadata = await self.processor.run(source, template_id, output)
        return success(
            "container",
            template_id,
            strategy=metadata.get("processMethod"),
            message=metadata.get("message"),
            outputFile=metadata.get("outputFile"),
        )

    async def _copy_verbatim(self, source: Path, template_id: str, output: Path) -> ConversionResult:
        output.parent.mkdir(parents=True, exist_ok=True)
        try:
            await asyncio.to_thread(shutil.copyfile, source, output)
        except OSError as e:
            raise ArtifactIOError(f"Failed to copy {source} to {output}: {e}") from e

        logger.warning("All processing tiers failed, copied %s unchanged", source.name)
        return success(FALLBACK_COPY, template_id, message="Processing failed, returned original image")
