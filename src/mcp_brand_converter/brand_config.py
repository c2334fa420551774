"""
Brand Configuration
===================

Company colors, fonts, watermark and named diagram templates used by the
branding transforms.

The configuration is an immutable value. It is built once (from the
built-in defaults or a JSON file) and handed to the converter and each
strategy at construction time.

JSON files use camelCase keys, e.g.::

    {
      "colorMapping": {"#1971c2": "#0066CC"},
      "templates": {
        "excalidraw": {"name": "Excalidraw Brand Converter", "adjustColors": true}
      }
    }

Any section left out keeps its built-in value.
"""

import json
from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from .errors import ArtifactIOError

WatermarkPosition = Literal["top-left", "top-right", "bottom-left", "bottom-right"]

WATERMARK_POSITIONS = ("top-left", "top-right", "bottom-left", "bottom-right")
DEFAULT_WATERMARK_POSITION = "bottom-right"


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


# ============================================================================
# Palette, Fonts, Watermark
# ============================================================================

class BrandColors(_Frozen):
    primary: str = "#0066CC"
    secondary: str = "#FF9900"
    accent: str = "#00CC99"
    dark: str = "#333333"
    light: str = "#F5F5F5"
    neutral: str = "#CCCCCC"
    success: str = "#00AA55"
    warning: str = "#FFCC00"
    error: str = "#CC3300"
    info: str = "#0099FF"


# Excalidraw default swatches to company colors
DEFAULT_COLOR_MAPPING = {
    "#1971c2": "#0066CC",
    "#e67700": "#FF9900",
    "#087f5b": "#00CC99",
    "#000000": "#333333",
    "#343a40": "#333333",
    "#868e96": "#CCCCCC",
}


class BrandFonts(_Frozen):
    primary: str = "Helvetica Neue, Arial, sans-serif"
    secondary: str = "Georgia, Times, serif"
    monospace: str = "Courier New, monospace"
    weights: dict[str, int] = Field(
        default_factory=lambda: {"light": 300, "regular": 400, "semibold": 600, "bold": 700}
    )

    @model_validator(mode="after")
    def _check_weights(self):
        for name, weight in self.weights.items():
            if not 100 <= weight <= 900:
                raise ValueError(f"Font weight '{name}' must be within 100..900, got {weight}")
        return self


class WatermarkConfig(_Frozen):
    text: str = "Company Brand"
    opacity: float = Field(default=0.15, ge=0.0, le=1.0)
    position: WatermarkPosition = DEFAULT_WATERMARK_POSITION
    font_size: int = Field(default=12, gt=0)
    raster_font_size: int = Field(default=14, gt=0)


# ============================================================================
# Templates
# ============================================================================

class Template(_Frozen):
    """A named bundle of style rules applied to one artifact."""

    name: str
    description: Optional[str] = None
    preserve_layout: bool = True
    adjust_colors: bool = True
    add_watermark: bool = True
    # Kept as a plain string: model-runner overrides may carry values outside
    # the four corners, which resolve to the default corner at render time.
    watermark_position: Optional[str] = None
    replace_fonts: bool = True
    line_thickness_multiplier: float = Field(default=1.0, gt=0)


def _default_templates() -> dict[str, Template]:
    return {
        "excalidraw": Template(
            name="Excalidraw Brand Converter",
            description="Brand colors, fonts and watermark for Excalidraw exports",
            watermark_position="bottom-right",
        ),
        "default": Template(
            name="Default Template",
            description="General purpose company style",
        ),
        "technical": Template(
            name="Technical Diagram",
            description="Thin lines for dense technical drawings",
            line_thickness_multiplier=0.75,
        ),
        "presentation": Template(
            name="Presentation Style",
            description="Bold lines, no watermark",
            add_watermark=False,
            line_thickness_multiplier=1.25,
        ),
    }


class BrandConfig(_Frozen):
    colors: BrandColors = Field(default_factory=BrandColors)
    color_mapping: dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_COLOR_MAPPING))
    fonts: BrandFonts = Field(default_factory=BrandFonts)
    watermark: WatermarkConfig = Field(default_factory=WatermarkConfig)
    templates: dict[str, Template] = Field(default_factory=_default_templates)
    default_template: str = "excalidraw"

    @model_validator(mode="after")
    def _check_default_template(self):
        if self.default_template not in self.templates:
            raise ValueError(
                f"Default template '{self.default_template}' is not defined. "
                f"Available: {', '.join(self.templates) or 'none'}"
            )
        return self

    def resolve_template(self, template_id: Optional[str]) -> tuple[str, Template]:
        """Return (id, template), falling back to the default template for unknown ids."""
        if template_id and template_id in self.templates:
            return template_id, self.templates[template_id]
        return self.default_template, self.templates[self.default_template]

    def watermark_corner(self, template: Template) -> str:
        """Corner for the watermark; unknown or unset positions use bottom-right."""
        position = template.watermark_position or self.watermark.position
        if position in WATERMARK_POSITIONS:
            return position
        return DEFAULT_WATERMARK_POSITION


DEFAULT_BRAND = BrandConfig()


def load_brand_config(path: Optional[str | Path] = None) -> BrandConfig:
    """Load brand configuration from a JSON file, or the built-in brand when no path is given."""
    if not path:
        return DEFAULT_BRAND

    config_path = Path(path)
    try:
        data = json.loads(config_path.read_text(encoding='utf-8'))
    except OSError as e:
        raise ArtifactIOError(f"Cannot read brand config {config_path}: {e}") from e
    except json.JSONDecodeError as e:
        raise ArtifactIOError(f"Invalid JSON in brand config {config_path}: {e}") from e

    return BrandConfig.model_validate(data)


def list_templates(config: BrandConfig) -> dict:
    """Template listing in the shape served to clients."""
    return {
        "templates": [
            {"id": template_id, "name": template.name, "description": template.description}
            for template_id, template in config.templates.items()
        ]
    }
