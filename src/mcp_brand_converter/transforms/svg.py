"""
SVG Strategy
============

Text-level rewrite of SVG markup. Colors are replaced as literal substrings,
so a mapped color inside a comment or an id is replaced too. Fonts are
rewritten per `font-family="..."` attribute. The watermark group goes right
before the last closing `</svg>` tag; markup without one is left as is.
"""

import asyncio
import io
import logging
import re
from html import escape
from pathlib import Path

from PIL import Image

from ..brand_config import BrandConfig, Template
from ..errors import ProcessingError
from ..results import ConversionResult, success
from .files import read_text, write_atomic

logger = logging.getLogger(__name__)

FONT_FAMILY_RE = re.compile(r'font-family="[^"]*"')

# (x, y, text-anchor, dominant-baseline) per corner
_CORNERS = {
    'top-left': ('5%', '5%', 'start', 'hanging'),
    'top-right': ('95%', '5%', 'end', 'hanging'),
    'bottom-left': ('5%', '95%', 'start', 'auto'),
    'bottom-right': ('95%', '95%', 'end', 'auto'),
}


def _watermark_group(template: Template, config: BrandConfig) -> str:
    x, y, anchor, baseline = _CORNERS[config.watermark_corner(template)]
    return (
        f'\n  <g opacity="{config.watermark.opacity}" id="company-watermark">\n'
        f'    <text x="{x}" y="{y}" text-anchor="{anchor}" dominant-baseline="{baseline}" '
        f'font-family="{escape(config.fonts.primary)}" font-size="{config.watermark.font_size}" '
        f'fill="{config.colors.primary}">{escape(config.watermark.text)}</text>\n'
        f'  </g>\n'
    )


def brand_svg(markup: str, template: Template, config: BrandConfig) -> str:
    """Apply the template's color, font and watermark rules to SVG markup."""
    result = markup

    if template.adjust_colors:
        for source_color, brand_color in config.color_mapping.items():
            result = result.replace(source_color, brand_color)

    if template.replace_fonts:
        result = FONT_FAMILY_RE.sub(f'font-family="{escape(config.fonts.primary)}"', result)

    if template.add_watermark:
        end = result.rfind('</svg>')
        if end != -1:
            result = result[:end] + _watermark_group(template, config) + result[end:]
        else:
            logger.debug("No closing </svg> tag, watermark skipped")

    return result


def rasterize_svg(markup: str, suffix: str) -> bytes:
    """Render SVG markup to PNG or JPEG bytes at the SVG's own size."""
    try:
        import cairosvg
    except (ImportError, OSError) as e:
        raise ProcessingError(f"cairosvg is not available for SVG rasterization: {e}") from e

    try:
        png = cairosvg.svg2png(bytestring=markup.encode('utf-8'))
    except Exception as e:
        raise ProcessingError(f"Failed to rasterize SVG: {e}") from e

    if suffix == '.png':
        return png

    # JPEG has no alpha; flatten onto white
    with Image.open(io.BytesIO(png)) as rendered:
        rgba = rendered.convert('RGBA')
    flat = Image.new('RGB', rgba.size, (255, 255, 255))
    flat.paste(rgba, mask=rgba.getchannel('A'))
    buffer = io.BytesIO()
    flat.save(buffer, format='JPEG', quality=95)
    return buffer.getvalue()


class SvgStrategy:
    def __init__(self, config: BrandConfig):
        self.config = config

    async def transform(
        self, source: Path, template_id: str, template: Template, output: Path
    ) -> ConversionResult:
        return await asyncio.to_thread(self._transform, source, template_id, template, output)

    def _transform(self, source: Path, template_id: str, template: Template, output: Path) -> ConversionResult:
        markup = read_text(source)
        branded = brand_svg(markup, template, self.config)

        suffix = output.suffix.lower()
        if suffix in ('.png', '.jpg', '.jpeg'):
            data = rasterize_svg(branded, suffix)
        else:
            data = branded.encode('utf-8')

        write_atomic(output, data)
        logger.info("Branded SVG %s -> %s with template '%s'", source.name, output.name, template_id)
        return success("svg", template_id)
