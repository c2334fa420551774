"""
MCP Brand Converter
===================

MCP server that converts Excalidraw exports into company-branded diagrams.

Supports:
- Excalidraw scenes (.json): color mapping, brand fonts, stroke scaling
- SVG exports (.svg): color mapping, brand fonts, watermark, PNG/JPG output
- Raster exports (.png, .jpg): watermark

Processing paths:
- Local: format strategies only
- Services: remote style service, AI model runner, container processor,
  then a verbatim copy when everything else fails

Transport modes:
- STDIO (default): For Claude Desktop and other MCP clients
- SSE: Server-Sent Events over HTTP, plus the REST API
- HTTP: Streamable HTTP transport, plus the REST API
- API: REST API only
"""

__version__ = "0.1.0"

from .brand_config import BrandConfig, Template, load_brand_config
from .converter import BrandConverter
from .pipeline import BrandingPipeline
from .results import ConversionResult

__all__ = [
    "BrandConfig",
    "BrandConverter",
    "BrandingPipeline",
    "ConversionResult",
    "Template",
    "load_brand_config",
    "__version__",
]
