"""Shared fixtures for the branding tests."""

import json

import pytest

from mcp_brand_converter.brand_config import DEFAULT_BRAND, BrandConfig, Template
from mcp_brand_converter.converter import BrandConverter


EXCALIDRAW_SVG = """<svg version="1.1" xmlns="http://www.w3.org/2000/svg" viewBox="0 0 200 100" width="200" height="100">
  <!-- svg-source:excalidraw -->
  <rect x="10" y="10" width="80" height="40" stroke="#1971c2" fill="#e67700"/>
  <ellipse cx="150" cy="30" rx="20" ry="10" stroke="#087f5b" fill="#868e96"/>
  <path d="M10 80 L190 80" stroke="#000000"/>
  <text x="20" y="70" font-family="Virgil, Segoe UI Emoji" fill="#343a40">Hello</text>
</svg>
"""


@pytest.fixture
def brand() -> BrandConfig:
    return DEFAULT_BRAND


@pytest.fixture
def thick_brand() -> BrandConfig:
    """Brand with a template that doubles stroke widths."""
    return BrandConfig(
        templates={
            **DEFAULT_BRAND.templates,
            "thick": Template(name="Thick Lines", line_thickness_multiplier=2.0),
        }
    )


@pytest.fixture
def converter(brand) -> BrandConverter:
    return BrandConverter(brand)


@pytest.fixture
def svg_file(tmp_path):
    path = tmp_path / "diagram.svg"
    path.write_text(EXCALIDRAW_SVG, encoding='utf-8')
    return path


@pytest.fixture
def scene() -> dict:
    return {
        "type": "excalidraw",
        "version": 2,
        "source": "https://excalidraw.com",
        "elements": [
            {
                "id": "rect-1",
                "type": "rectangle",
                "x": 10,
                "y": 20,
                "strokeColor": "#1971c2",
                "backgroundColor": "#e67700",
                "strokeWidth": 2,
                "seed": 1234,
            },
            {
                "id": "text-1",
                "type": "text",
                "text": "Hello",
                "fontFamily": 1,
                "strokeColor": "#abcdef",
                "backgroundColor": "transparent",
                "strokeWidth": 1,
            },
            {
                "id": "arrow-1",
                "type": "arrow",
                "strokeColor": "#000000",
                "points": [[0, 0], [100, 0]],
            },
        ],
        "appState": {"viewBackgroundColor": "#ffffff", "gridSize": None},
    }


@pytest.fixture
def scene_file(tmp_path, scene):
    path = tmp_path / "diagram.json"
    path.write_text(json.dumps(scene), encoding='utf-8')
    return path
