#!/usr/bin/env python3
"""
MCP Brand Converter - Entry Point

Supports multiple transport modes:
- stdio: Standard I/O (default, for Claude Desktop)
- sse: Server-Sent Events over HTTP, with the REST API
- http: Streamable HTTP transport, with the REST API
- api: REST API only

and a one-shot conversion mode (--input/--output) used by the container
processing tier.
"""

import argparse
import asyncio
import json
import logging
import os
import sys
from contextlib import asynccontextmanager


def _configure_logging(level: str) -> None:
    # stdout carries the stdio transport and one-shot results
    logging.basicConfig(
        level=getattr(logging, level),
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _convert_once(args) -> int:
    from .brand_config import load_brand_config
    from .converter import BrandConverter
    from .errors import BrandError

    try:
        config = load_brand_config(os.environ.get("BRAND_CONFIG_PATH") or None)
        template = args.template or os.environ.get("TEMPLATE_NAME") or config.default_template
        result = asyncio.run(BrandConverter(config).convert(args.input, template, args.output))
    except BrandError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(json.dumps(result.to_dict(), indent=2))
    return 0


def main():
    parser = argparse.ArgumentParser(
        description="MCP server that applies company branding to Excalidraw exports",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run with STDIO transport (default, for Claude Desktop)
  mcp-brand-converter

  # Run MCP over SSE plus the REST API on port 8080
  mcp-brand-converter --transport sse --port 8080

  # Run the REST API only
  mcp-brand-converter --transport api --port 5000

  # Specify project directory for file operations
  mcp-brand-converter --project-dir /path/to/files

  # Convert a single file locally and print the result
  mcp-brand-converter --input diagram.svg --output branded.png --template excalidraw

Note: external services are configured through MCP_ENDPOINT, MODEL_RUNNER_URL
and PROCESSOR_IMAGE.
"""
    )
    parser.add_argument(
        "--transport",
        choices=["stdio", "sse", "http", "api"],
        default="stdio",
        help="Transport mode (default: stdio)"
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8080,
        help="Port for SSE/HTTP/API transport (default: 8080)"
    )
    parser.add_argument(
        "--host",
        type=str,
        default="0.0.0.0",
        help="Host to bind for SSE/HTTP/API transport (default: 0.0.0.0)"
    )
    parser.add_argument(
        "--project-dir",
        type=str,
        default=os.getcwd(),
        help="Project directory for file operations (default: current directory)"
    )
    parser.add_argument(
        "--input",
        type=str,
        help="Convert this file once and exit (requires --output)"
    )
    parser.add_argument(
        "--output",
        type=str,
        help="Output path for --input"
    )
    parser.add_argument(
        "--template",
        type=str,
        help="Template id for --input (default: TEMPLATE_NAME or the brand default)"
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
        help="Logging level (default: INFO)"
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__import__('mcp_brand_converter').__version__}"
    )

    args = parser.parse_args()
    _configure_logging(args.log_level)

    if args.input:
        if not args.output:
            parser.error("--input requires --output")
        sys.exit(_convert_once(args))

    # Set project directory environment variable
    os.environ["MCP_PROJECT_DIR"] = os.path.abspath(args.project_dir)

    # Import server after setting environment
    from .server import BRAND, RUNNER, SETTINGS, mcp

    if args.transport == "stdio":
        # Standard STDIO transport (default)
        mcp.run()
        return

    from starlette.applications import Starlette
    from starlette.routing import Mount
    import uvicorn

    from .web import api_routes

    routes = api_routes(SETTINGS, BRAND, RUNNER)

    if args.transport == "api":
        app = Starlette(routes=routes)
        print(f"Starting REST API on {args.host}:{args.port}")

    elif args.transport == "sse":
        app = Starlette(routes=routes + [Mount("/", app=mcp.sse_app())])
        print(f"Starting SSE server on {args.host}:{args.port}")
        print(f"SSE endpoint: http://{args.host}:{args.port}/sse")

    else:
        mcp_app = mcp.streamable_http_app()

        @asynccontextmanager
        async def lifespan(app):
            async with mcp.session_manager.run():
                yield

        app = Starlette(routes=routes + [Mount("/", app=mcp_app)], lifespan=lifespan)
        print(f"Starting HTTP server on {args.host}:{args.port}")
        print(f"MCP endpoint: http://{args.host}:{args.port}/mcp")

    print(f"REST API: http://{args.host}:{args.port}/api")
    print(f"Project directory: {args.project_dir}")
    uvicorn.run(app, host=args.host, port=args.port)


if __name__ == "__main__":
    main()
