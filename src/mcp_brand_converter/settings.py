"""
Settings
========

Runtime configuration read from the environment, and the wiring of the
converter and pipeline from it.
"""

import os
from pathlib import Path
from typing import Literal, Mapping, Optional

from pydantic import BaseModel, ConfigDict

from .brand_config import BrandConfig, load_brand_config
from .converter import BrandConverter
from .pipeline import BrandingPipeline
from .services import ContainerProcessor, ModelRunnerClient, StyleServiceClient


class Settings(BaseModel):
    model_config = ConfigDict(frozen=True, protected_namespaces=())

    project_dir: Path
    uploads_dir: Path
    brand_config_path: Optional[Path] = None
    default_template: str = "excalidraw"
    pipeline: Literal["services", "local"] = "services"

    style_service_endpoint: Optional[str] = None
    style_service_api_key: Optional[str] = None
    style_service_timeout: float = 30.0

    model_runner_url: Optional[str] = None
    model_runner_engine: str = "llama.cpp"
    model_name: str = "ai/llama3.2:1B-Q8_0"
    model_runner_timeout: float = 60.0

    processor_image: Optional[str] = "company-style-processor:latest"
    processor_timeout: float = 120.0
    docker_bin: str = "docker"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if environ is None else environ
        project_dir = Path(env.get("MCP_PROJECT_DIR", os.getcwd())).resolve()

        values = {
            "project_dir": project_dir,
            "uploads_dir": Path(env.get("BRAND_UPLOADS_DIR") or project_dir / "uploads"),
            "brand_config_path": env.get("BRAND_CONFIG_PATH") or None,
            "default_template": env.get("BRAND_DEFAULT_TEMPLATE") or "excalidraw",
            "pipeline": env.get("BRAND_PIPELINE") or "services",
            "style_service_endpoint": env.get("MCP_ENDPOINT") or None,
            "style_service_api_key": env.get("MCP_API_KEY") or None,
            "model_runner_url": env.get("MODEL_RUNNER_URL") or None,
            "processor_image": env.get("PROCESSOR_IMAGE", "company-style-processor:latest") or None,
        }
        optional = {
            "style_service_timeout": "MCP_TIMEOUT",
            "model_runner_engine": "MODEL_RUNNER_ENGINE",
            "model_name": "DEFAULT_MODEL",
            "model_runner_timeout": "MODEL_RUNNER_TIMEOUT",
            "processor_timeout": "PROCESSOR_TIMEOUT",
            "docker_bin": "DOCKER_BIN",
        }
        for field, name in optional.items():
            if env.get(name):
                values[field] = env[name]
        return cls.model_validate(values)

    @property
    def converted_dir(self) -> Path:
        return self.uploads_dir / "converted"

    def service_status(self) -> dict:
        return {
            "modelRunner": "configured" if self.model_runner_url else "not_configured",
            "styleService": "configured" if self.style_service_endpoint else "not_configured",
        }


def build_brand_config(settings: Settings) -> BrandConfig:
    return load_brand_config(settings.brand_config_path)


def build_pipeline(settings: Settings, config: BrandConfig):
    """Converter for the configured pipeline mode: local strategies only, or the service chain."""
    converter = BrandConverter(config)
    if settings.pipeline == "local":
        return converter

    style_service = None
    if settings.style_service_endpoint:
        style_service = StyleServiceClient(
            settings.style_service_endpoint,
            config,
            api_key=settings.style_service_api_key,
            timeout=settings.style_service_timeout,
        )

    model_runner = None
    if settings.model_runner_url:
        model_runner = ModelRunnerClient(
            settings.model_runner_url,
            config,
            engine=settings.model_runner_engine,
            model=settings.model_name,
            timeout=settings.model_runner_timeout,
        )

    processor = None
    if settings.processor_image:
        processor = ContainerProcessor(
            image=settings.processor_image,
            docker_bin=settings.docker_bin,
            timeout=settings.processor_timeout,
        )

    return BrandingPipeline(converter, style_service, model_runner, processor)
