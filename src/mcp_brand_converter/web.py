"""
REST API
========

Upload-and-convert endpoints served alongside the MCP transports.

Routes:
- POST /api/convert   multipart upload: file (or image), template, outputFormat
- GET  /api/templates available brand templates
- GET  /api/health    liveness and external service configuration
- GET  /uploads/...   uploaded and converted artifacts

Uploads are stored as `<ms-timestamp>-<random>-<name>` in the uploads directory and
results in its `converted/` subdirectory.
"""

import asyncio
import logging
import time
import uuid
from pathlib import Path

from starlette.applications import Starlette
from starlette.datastructures import UploadFile
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Mount, Route
from starlette.staticfiles import StaticFiles

from . import __version__
from .brand_config import BrandConfig, list_templates
from .errors import BrandError
from .settings import Settings
from .transforms.files import write_atomic

logger = logging.getLogger(__name__)

OUTPUT_FORMATS = ('svg', 'png')


def _upload_prefix() -> str:
    return f"{int(time.time() * 1000)}-{uuid.uuid4().hex[:8]}"


def _safe_name(filename: str) -> str:
    name = Path(filename or '').name.strip()
    return name or 'upload'


def api_routes(settings: Settings, config: BrandConfig, runner) -> list:
    """REST routes bound to a converter (`BrandConverter` or `BrandingPipeline`)."""

    settings.converted_dir.mkdir(parents=True, exist_ok=True)

    async def templates(request: Request) -> JSONResponse:
        return JSONResponse(list_templates(config))

    async def health(request: Request) -> JSONResponse:
        return JSONResponse({
            "status": "healthy",
            "version": __version__,
            "services": settings.service_status(),
        })

    async def convert(request: Request) -> JSONResponse:
        form = await request.form()
        upload = form.get('file') or form.get('image')
        if not isinstance(upload, UploadFile):
            return JSONResponse({"message": "No file uploaded"}, status_code=400)

        template_id = str(form.get('template') or settings.default_template)
        output_format = str(form.get('outputFormat') or 'png').lower()
        if output_format not in OUTPUT_FORMATS:
            return JSONResponse(
                {"message": f"Unsupported output format: {output_format}. Supported: svg, png"},
                status_code=400,
            )

        name = _safe_name(upload.filename)
        prefix = _upload_prefix()
        input_path = settings.uploads_dir / f"{prefix}-{name}"
        output_path = settings.converted_dir / f"{prefix}-{Path(name).stem}-converted.{output_format}"

        try:
            data = await upload.read()
            await upload.close()
            await asyncio.to_thread(write_atomic, input_path, data)
            result = await runner.convert(input_path, template_id, output_path)
        except BrandError as e:
            logger.error("Error processing %s: %s", name, e)
            return JSONResponse(
                {"message": "Failed to process file", "error": str(e)}, status_code=500
            )

        output_file = result.metadata.get("outputFile", output_path.name)
        return JSONResponse({
            "success": result.success,
            "inputFile": input_path.name,
            "outputFile": output_file,
            "originalUrl": str(request.url_for("uploads", path=input_path.name)),
            "convertedUrl": str(request.url_for("uploads", path=f"converted/{output_file}")),
            "templateName": template_id,
            "metadata": result.metadata,
        })

    return [
        Route("/api/convert", endpoint=convert, methods=["POST"]),
        Route("/api/templates", endpoint=templates, methods=["GET"]),
        Route("/api/health", endpoint=health, methods=["GET"]),
        Mount("/uploads", app=StaticFiles(directory=str(settings.uploads_dir)), name="uploads"),
    ]


def create_app(settings: Settings, config: BrandConfig, runner) -> Starlette:
    """Standalone REST application."""
    return Starlette(routes=api_routes(settings, config, runner))
