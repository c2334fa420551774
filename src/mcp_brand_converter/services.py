"""
External Processing Services
============================

Backends tried by the branding pipeline before it falls back to copying the
input verbatim:

- StyleServiceClient: remote MCP-style conversion service (HTTP, JSON)
- ModelRunnerClient: AI model behind an OpenAI-compatible chat API, asked
  for a structured `process_image` tool call
- ContainerProcessor: this package's one-shot CLI run inside a container

Every backend signals failure with UpstreamServiceError or ProcessingError
and every call is bounded by an explicit timeout.
"""

import asyncio
import base64
import binascii
import json
import logging
from pathlib import Path
from typing import Optional

import httpx

from .brand_config import BrandConfig, Template
from .errors import ProcessingError, UpstreamServiceError

logger = logging.getLogger(__name__)

MEDIA_TYPES = {
    'png': 'image/png',
    'jpg': 'image/jpeg',
    'jpeg': 'image/jpeg',
    'svg': 'image/svg+xml',
    'json': 'application/json',
}


# ============================================================================
# Remote Style Service
# ============================================================================

class StyleServiceClient:
    """Client for a remote structured style-conversion service."""

    def __init__(
        self,
        endpoint: str,
        config: BrandConfig,
        api_key: Optional[str] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.endpoint = endpoint
        self.config = config
        self.api_key = api_key
        self.timeout = timeout
        self.transport = transport

    def _headers(self) -> dict:
        headers = {'Content-Type': 'application/json'}
        if self.api_key:
            headers['Authorization'] = f'Bearer {self.api_key}'
        return headers

    def _brand_payload(self, template: Template) -> dict:
        colors = self.config.colors
        return {
            "colors": [colors.primary, colors.secondary, colors.accent, colors.dark, colors.light],
            "color_mapping": dict(self.config.color_mapping),
            "font_family": self.config.fonts.primary,
            "watermark": {
                "enabled": template.add_watermark,
                "text": self.config.watermark.text,
                "position": self.config.watermark_corner(template),
                "opacity": self.config.watermark.opacity,
            },
            "line_thickness_multiplier": template.line_thickness_multiplier,
        }

    async def process(
        self,
        image: bytes,
        image_format: str,
        template_id: str,
        template: Template,
        output_format: str,
    ) -> tuple[bytes, dict]:
        """Send an artifact for conversion.

        Returns:
            (processed artifact bytes, service metadata)

        Raises:
            UpstreamServiceError: on timeout, non-2xx status or malformed response
        """
        request = {
            "type": "image_style_conversion",
            "input": {
                "image": {
                    "data": base64.b64encode(image).decode('ascii'),
                    "format": image_format or 'png',
                },
                "template": template_id,
                "brand_config": self._brand_payload(template),
                "options": {
                    "preserve_content": True,
                    "quality": 95,
                    "output_format": output_format,
                },
            },
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(self.endpoint, json=request, headers=self._headers())
                response.raise_for_status()
                data = response.json()
        except httpx.TimeoutException as e:
            raise UpstreamServiceError(f"Style service timed out after {self.timeout}s") from e
        except httpx.HTTPError as e:
            raise UpstreamServiceError(f"Style service request failed: {e}") from e
        except ValueError as e:
            raise UpstreamServiceError(f"Style service returned invalid JSON: {e}") from e

        try:
            output = data["output"]
            processed = base64.b64decode(output["processed_image"]["data"], validate=True)
            metadata = output.get("metadata") or {}
        except (KeyError, TypeError, AttributeError, binascii.Error) as e:
            raise UpstreamServiceError(f"Malformed style service response: {e!r}") from e

        if not processed:
            raise UpstreamServiceError("Style service returned an empty image")
        if not isinstance(metadata, dict):
            metadata = {"serviceMetadata": metadata}
        return processed, metadata


# ============================================================================
# AI Model Runner
# ============================================================================

PROCESS_IMAGE_TOOL = {
    "type": "function",
    "function": {
        "name": "process_image",
        "description": "Process and convert an image to match company branding",
        "parameters": {
            "type": "object",
            "properties": {
                "style_name": {
                    "type": "string",
                    "description": "The name of the style template to apply",
                },
                "color_adjustments": {
                    "type": "object",
                    "properties": {
                        "primary_color": {"type": "string"},
                        "secondary_color": {"type": "string"},
                    },
                },
                "add_logo": {
                    "type": "boolean",
                    "description": "Whether to add the company logo",
                },
                "logo_position": {
                    "type": "string",
                    "enum": ["top-left", "top-right", "bottom-left", "bottom-right", "center"],
                },
            },
            "required": ["style_name"],
        },
    },
}


class ModelRunnerClient:
    """Asks a chat-completion model which style parameters to apply."""

    def __init__(
        self,
        base_url: str,
        config: BrandConfig,
        engine: str = "llama.cpp",
        model: str = "ai/llama3.2:1B-Q8_0",
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip('/')
        self.config = config
        self.engine = engine
        self.model = model
        self.timeout = timeout
        self.transport = transport

    @property
    def completions_url(self) -> str:
        return f"{self.base_url}/engines/{self.engine}/v1/chat/completions"

    def _system_prompt(self, template_id: str, template: Template) -> str:
        colors = self.config.colors
        return (
            "You are an expert in corporate branding and image style conversion. "
            f"Apply the company's {template_id} style ({template.name}) to the provided diagram.\n"
            f"- Primary color: {colors.primary}\n"
            f"- Secondary color: {colors.secondary}\n"
            f"- Watermark position: {self.config.watermark_corner(template)}\n"
            f"- Font family: {self.config.fonts.primary}"
        )

    def build_request(self, image: bytes, media_type: str, template_id: str, template: Template) -> dict:
        encoded = base64.b64encode(image).decode('ascii')
        return {
            "model": self.model,
            "messages": [
                {"role": "system", "content": self._system_prompt(template_id, template)},
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": f"Convert this image to match our company's {template_id} style."},
                        {"type": "image_url", "image_url": {"url": f"data:{media_type};base64,{encoded}"}},
                    ],
                },
            ],
            "tools": [PROCESS_IMAGE_TOOL],
            "tool_choice": {"type": "function", "function": {"name": "process_image"}},
        }

    async def request_style_params(
        self, image: bytes, media_type: str, template_id: str, template: Template
    ) -> dict:
        """Return the arguments of the model's `process_image` tool call.

        Raises:
            UpstreamServiceError: on transport failure or when the response has no usable tool call
        """
        request = self.build_request(image, media_type, template_id, template)
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(self.completions_url, json=request)
                response.raise_for_status()
                data = response.json()
        except httpx.TimeoutException as e:
            raise UpstreamServiceError(f"Model runner timed out after {self.timeout}s") from e
        except httpx.HTTPError as e:
            raise UpstreamServiceError(f"Model runner request failed: {e}") from e
        except ValueError as e:
            raise UpstreamServiceError(f"Model runner returned invalid JSON: {e}") from e

        try:
            tool_call = data["choices"][0]["message"]["tool_calls"][0]
            arguments = tool_call["function"]["arguments"]
            params = json.loads(arguments) if isinstance(arguments, str) else arguments
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise UpstreamServiceError(f"Model response has no process_image tool call: {e!r}") from e

        style_name = params.get("style_name") if isinstance(params, dict) else None
        if not isinstance(style_name, str) or not style_name:
            raise UpstreamServiceError("Model tool call is missing 'style_name'")
        return params


# ============================================================================
# Container Processor
# ============================================================================

class ContainerProcessor:
    """Runs the one-shot converter CLI inside a throwaway container."""

    def __init__(
        self,
        image: str = "company-style-processor:latest",
        docker_bin: str = "docker",
        timeout: float = 120.0,
    ):
        self.image = image
        self.docker_bin = docker_bin
        self.timeout = timeout

    def command(self, source: Path, template_id: str, output: Path) -> list:
        return [
            self.docker_bin, 'run', '--rm',
            '-v', f'{source.parent.resolve()}:/work/in:ro',
            '-v', f'{output.parent.resolve()}:/work/out',
            '-e', f'TEMPLATE_NAME={template_id}',
            self.image,
            '--input', f'/work/in/{source.name}',
            '--output', f'/work/out/{output.name}',
            '--template', template_id,
        ]

    async def run(self, source: Path, template_id: str, output: Path) -> dict:
        """Convert inside the container and return the result metadata it printed.

        Raises:
            ProcessingError: when the binary is missing, the run times out or fails,
                or no output file appears
        """
        output.parent.mkdir(parents=True, exist_ok=True)
        cmd = self.command(source, template_id, output)

        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError as e:
            raise ProcessingError(f"{self.docker_bin} not found") from e
        except OSError as e:
            raise ProcessingError(f"Failed to start container: {e}") from e

        try:
            stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=self.timeout)
        except asyncio.TimeoutError:
            process.kill()
            await process.wait()
            raise ProcessingError(f"Container processing timed out after {self.timeout} seconds") from None

        stdout_text = stdout.decode('utf-8', errors='replace') if stdout else ''
        stderr_text = stderr.decode('utf-8', errors='replace') if stderr else ''

        if process.returncode != 0:
            raise ProcessingError(
                f"Container processing failed (exit {process.returncode}): {stderr_text.strip() or 'Unknown error'}"
            )

        try:
            result = json.loads(stdout_text)
            metadata = result.get("metadata") or {}
        except (ValueError, AttributeError):
            metadata = {}
        if not isinstance(metadata, dict):
            metadata = {}

        produced = output.parent / Path(str(metadata.get("outputFile", output.name))).name
        if not produced.exists() or produced.stat().st_size == 0:
            raise ProcessingError("Container completed but no output file was created")
        return metadata
