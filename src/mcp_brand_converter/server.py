#!/usr/bin/env python3
"""
MCP Brand Converter - Server Implementation
===========================================

Provides tools to apply company branding to Excalidraw exports.

Supported inputs:
- Excalidraw scene (.json) - element colors, fonts, stroke widths
- SVG (.svg) - colors, fonts, watermark; optional PNG/JPG output
- PNG/JPG (.png, .jpg, .jpeg) - watermark

Tools:
- brand_templates: List the available brand templates
- brand_detect: Report an artifact's format and whether it looks like Excalidraw
- brand_convert: Apply a brand template to an artifact
- brand_health: Report which external processing services are configured
"""

import json
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Annotated

from mcp.server.fastmcp import FastMCP
from pydantic import Field

from .brand_config import list_templates
from .converter import BrandConverter
from .detect import detect_format, looks_like_excalidraw
from .errors import BrandError
from .settings import Settings, build_brand_config, build_pipeline

logger = logging.getLogger(__name__)

# Configuration from environment
SETTINGS = Settings.from_env()
PROJECT_DIR = SETTINGS.project_dir
BRAND = build_brand_config(SETTINGS)
CONVERTER = BrandConverter(BRAND)
RUNNER = build_pipeline(SETTINGS, BRAND)


def _resolve_path(path: str) -> Path:
    """Resolve path relative to project directory and validate it stays within."""
    resolved = (PROJECT_DIR / path).resolve()
    try:
        resolved.relative_to(PROJECT_DIR.resolve())
    except ValueError:
        raise ValueError(f"Path '{path}' escapes the project directory")
    return resolved


def _relative(path: Path) -> str:
    return str(path.relative_to(PROJECT_DIR.resolve()))


@asynccontextmanager
async def server_lifespan(server: FastMCP):
    """Initialize on startup, cleanup on shutdown."""
    PROJECT_DIR.mkdir(parents=True, exist_ok=True)
    logger.info("Project directory: %s", PROJECT_DIR)
    logger.info("Style service: %s", SETTINGS.style_service_endpoint or "Not configured (using fallback)")
    logger.info("Model Runner: %s", SETTINGS.model_runner_url or "Not configured (using fallback)")
    yield


# Initialize the MCP server
mcp = FastMCP("mcp-brand-converter", lifespan=server_lifespan)


def create_server() -> FastMCP:
    """Create and return the MCP server instance."""
    return mcp


# ============================================================================
# Templates & Health
# ============================================================================

@mcp.tool()
def brand_templates() -> str:
    """List the brand templates that can be applied.

    Returns:
        JSON string with a `templates` list of {id, name, description}
    """
    return json.dumps(list_templates(BRAND), indent=2)


@mcp.tool()
def brand_health() -> str:
    """Report server liveness and whether the optional external services are configured.

    Services are never probed; the report only reflects configuration.
    """
    from . import __version__

    return json.dumps({
        "status": "healthy",
        "version": __version__,
        "pipeline": SETTINGS.pipeline,
        "services": SETTINGS.service_status(),
    }, indent=2)


# ============================================================================
# Detection
# ============================================================================

@mcp.tool()
def brand_detect(
    path: Annotated[str, Field(description="Path to the artifact relative to project directory")],
) -> str:
    """Detect an artifact's format and whether it looks like an Excalidraw export.

    The Excalidraw check is a heuristic: scene documents and SVG markers are
    reliable, raster files are judged by filename only.

    Args:
        path: Path to the artifact (relative to project directory)

    Returns:
        JSON string with format and is_excalidraw
    """
    try:
        file_path = _resolve_path(path)

        if not file_path.exists():
            return json.dumps({"error": f"File not found: {path}"})

        return json.dumps({
            "path": path,
            "format": detect_format(file_path).value,
            "is_excalidraw": looks_like_excalidraw(file_path),
        }, indent=2)

    except (ValueError, BrandError) as e:
        return json.dumps({"error": str(e)})


# ============================================================================
# Conversion
# ============================================================================

@mcp.tool()
async def brand_convert(
    path: Annotated[str, Field(description="Source artifact (.json, .svg, .png, .jpg, .jpeg)")],
    output_path: Annotated[str, Field(description="Output path; extension selects the encoding")],
    template: Annotated[str, Field(description="Brand template id (see brand_templates)")] = "excalidraw",
    use_services: Annotated[bool, Field(description="Try external style services before local processing")] = False,
) -> str:
    """Apply a brand template to an Excalidraw export.

    Local processing by format:
    - .json scene -> .json (raster targets get a .json beside them; no rendering)
    - .svg -> .svg, .png or .jpg
    - .png/.jpg -> .png or .jpg with watermark

    With use_services, the remote style service, the model runner and the
    container processor are tried first; if all fail the input is copied
    unchanged and processMethod is "fallback-copy".

    Args:
        path: Source artifact path (relative to project directory)
        output_path: Output artifact path (relative to project directory)
        template: Template id; unknown ids use the default template
        use_services: Route through the external service fallback chain

    Returns:
        JSON string with success, output path and conversion metadata
    """
    try:
        source = _resolve_path(path)
        target = _resolve_path(output_path)

        if not source.exists():
            return json.dumps({"error": f"Source file not found: {path}"})

        runner = RUNNER if use_services else CONVERTER
        result = await runner.convert(source, template, target)

        written = target.parent / result.metadata.get("outputFile", target.name)
        return json.dumps({
            "success": result.success,
            "source": path,
            "output": _relative(written),
            "metadata": result.metadata,
        }, indent=2)

    except ValueError as e:
        return json.dumps({"error": str(e)})
    except BrandError as e:
        return json.dumps({"error": f"Conversion failed: {str(e)}"})
