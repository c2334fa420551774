"""Tests for the SVG branding strategy."""

import asyncio

import pytest

from conftest import EXCALIDRAW_SVG
from mcp_brand_converter.brand_config import Template
from mcp_brand_converter.errors import ProcessingError
from mcp_brand_converter.transforms import brand_svg, svg as svg_strategy


PLAIN = Template(name="plain", adjust_colors=False, replace_fonts=False, add_watermark=False)


def test_every_mapped_color_is_replaced(brand):
    template = Template(name="colors", adjust_colors=True, replace_fonts=False, add_watermark=False)

    result = brand_svg(EXCALIDRAW_SVG, template, brand)

    for source_color, brand_color in brand.color_mapping.items():
        assert source_color in EXCALIDRAW_SVG
        assert source_color not in result
        assert brand_color in result


def test_color_replacement_is_literal(brand):
    template = Template(name="colors", adjust_colors=True, replace_fonts=False, add_watermark=False)
    markup = '<svg><!-- old #1971c2 --><g id="#1971c2"/></svg>'

    result = brand_svg(markup, template, brand)

    assert result == '<svg><!-- old #0066CC --><g id="#0066CC"/></svg>'


def test_colors_untouched_when_disabled(brand):
    assert brand_svg(EXCALIDRAW_SVG, PLAIN, brand) == EXCALIDRAW_SVG


def test_fonts_replaced_with_primary_stack(brand):
    template = Template(name="fonts", adjust_colors=False, replace_fonts=True, add_watermark=False)

    result = brand_svg(EXCALIDRAW_SVG, template, brand)

    assert 'Virgil' not in result
    assert f'font-family="{brand.fonts.primary}"' in result


def test_watermark_inserted_before_closing_tag(brand):
    template = Template(name="wm", adjust_colors=False, replace_fonts=False, add_watermark=True)

    result = brand_svg(EXCALIDRAW_SVG, template, brand)

    assert 'id="company-watermark"' in result
    assert result.index('company-watermark') < result.rindex('</svg>')
    assert result.rstrip().endswith('</svg>')
    assert f'opacity="{brand.watermark.opacity}"' in result
    assert 'x="95%" y="95%" text-anchor="end"' in result
    assert brand.watermark.text in result


def test_watermark_honours_template_corner(brand):
    template = Template(
        name="wm", adjust_colors=False, replace_fonts=False, add_watermark=True,
        watermark_position="top-left",
    )

    result = brand_svg(EXCALIDRAW_SVG, template, brand)

    assert 'x="5%" y="5%" text-anchor="start"' in result


def test_watermark_skipped_without_closing_tag(brand, tmp_path, converter):
    markup = '<svg xmlns="http://www.w3.org/2000/svg"><rect fill="#abcdef"/>'
    source = tmp_path / "truncated.svg"
    source.write_text(markup, encoding='utf-8')
    output = tmp_path / "out.svg"

    result = asyncio.run(converter.convert(source, "excalidraw", output))

    assert result.success
    assert output.read_text(encoding='utf-8') == markup


def test_convert_svg_to_svg(converter, svg_file, tmp_path, brand):
    output = tmp_path / "branded" / "diagram.svg"

    result = asyncio.run(converter.convert(svg_file, "excalidraw", output))

    assert result.success
    assert result.metadata == {"processMethod": "svg", "templateApplied": "excalidraw"}
    branded = output.read_text(encoding='utf-8')
    assert "#0066CC" in branded
    assert "company-watermark" in branded


def test_convert_svg_with_unknown_template(converter, svg_file, tmp_path):
    result = asyncio.run(converter.convert(svg_file, "nonexistent", tmp_path / "out.svg"))

    assert result.success
    assert result.metadata["templateApplied"] == "excalidraw"


def test_png_output_is_rasterized(converter, svg_file, tmp_path, monkeypatch):
    rendered = {}

    def fake_rasterize(markup, suffix):
        rendered["markup"] = markup
        rendered["suffix"] = suffix
        return b"\x89PNG fake"

    monkeypatch.setattr(svg_strategy, "rasterize_svg", fake_rasterize)
    output = tmp_path / "diagram.png"

    result = asyncio.run(converter.convert(svg_file, "excalidraw", output))

    assert result.metadata["processMethod"] == "svg"
    assert rendered["suffix"] == ".png"
    assert "company-watermark" in rendered["markup"]
    assert output.read_bytes() == b"\x89PNG fake"


def test_failed_rasterization_leaves_no_output(converter, svg_file, tmp_path, monkeypatch):
    def broken_rasterize(markup, suffix):
        raise ProcessingError("renderer crashed")

    monkeypatch.setattr(svg_strategy, "rasterize_svg", broken_rasterize)
    output = tmp_path / "diagram.png"

    with pytest.raises(ProcessingError):
        asyncio.run(converter.convert(svg_file, "excalidraw", output))

    assert list(tmp_path.iterdir()) == [svg_file]
