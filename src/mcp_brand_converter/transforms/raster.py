"""
Raster Strategy
===============

Composites the brand watermark onto PNG/JPG exports. Colors are not
remapped on bitmaps; without a watermark the pixels pass through untouched.
"""

import asyncio
import io
import logging
from pathlib import Path

from PIL import Image, ImageColor, ImageDraw, ImageFont, UnidentifiedImageError

from ..brand_config import BrandConfig, Template
from ..errors import ArtifactIOError
from ..results import ConversionResult, success
from .files import write_atomic

logger = logging.getLogger(__name__)

WATERMARK_MARGIN = 20

FONT_CANDIDATES = [
    "/System/Library/Fonts/HelveticaNeue.ttc",
    "/System/Library/Fonts/Helvetica.ttc",
    "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
    "/usr/share/fonts/truetype/liberation/LiberationSans-Regular.ttf",
    "DejaVuSans.ttf",
    "Arial.ttf",
]


def _load_font(size: int):
    for path in FONT_CANDIDATES:
        try:
            return ImageFont.truetype(path, size)
        except OSError:
            continue
    return ImageFont.load_default(size=size)


def watermark_origin(corner: str, image_size: tuple, text_size: tuple) -> tuple:
    """Top-left point of the watermark text box for a corner, 20px from the edges."""
    width, height = image_size
    text_w, text_h = text_size
    right = width - text_w - WATERMARK_MARGIN
    bottom = height - text_h - WATERMARK_MARGIN

    if corner == 'top-left':
        return WATERMARK_MARGIN, WATERMARK_MARGIN
    if corner == 'top-right':
        return right, WATERMARK_MARGIN
    if corner == 'bottom-left':
        return WATERMARK_MARGIN, bottom
    return right, bottom


def watermark_image(image: Image.Image, template: Template, config: BrandConfig) -> Image.Image:
    """Return the image with the brand watermark drawn on it, or the image itself when disabled."""
    if not template.add_watermark:
        return image

    base = image.convert('RGBA')
    overlay = Image.new('RGBA', base.size, (0, 0, 0, 0))
    draw = ImageDraw.Draw(overlay)

    font = _load_font(config.watermark.raster_font_size)
    text = config.watermark.text
    left, top, right, bottom = draw.textbbox((0, 0), text, font=font)
    x, y = watermark_origin(
        config.watermark_corner(template), base.size, (right - left, bottom - top)
    )

    red, green, blue = ImageColor.getrgb(config.colors.primary)[:3]
    alpha = round(255 * config.watermark.opacity)
    draw.text((x - left, y - top), text, font=font, fill=(red, green, blue, alpha))

    composed = Image.alpha_composite(base, overlay)
    if 'A' not in image.getbands() and 'transparency' not in image.info:
        return composed.convert('RGB')
    return composed


def encode_image(image: Image.Image, suffix: str) -> bytes:
    buffer = io.BytesIO()
    if suffix in ('.jpg', '.jpeg'):
        if image.mode not in ('RGB', 'L'):
            rgba = image.convert('RGBA')
            flat = Image.new('RGB', rgba.size, (255, 255, 255))
            flat.paste(rgba, mask=rgba.getchannel('A'))
            image = flat
        image.save(buffer, format='JPEG', quality=95)
    else:
        image.save(buffer, format='PNG')
    return buffer.getvalue()


class RasterStrategy:
    def __init__(self, config: BrandConfig):
        self.config = config

    async def transform(
        self, source: Path, template_id: str, template: Template, output: Path
    ) -> ConversionResult:
        return await asyncio.to_thread(self._transform, source, template_id, template, output)

    def _transform(self, source: Path, template_id: str, template: Template, output: Path) -> ConversionResult:
        try:
            with Image.open(source) as opened:
                opened.load()
                branded = watermark_image(opened, template, self.config)
                suffix = output.suffix.lower()
                target = output
                # Bitmaps cannot become vector markup; write a PNG beside the target
                if suffix not in ('.png', '.jpg', '.jpeg'):
                    target = output.with_suffix('.png')
                encoding = 'JPEG' if target.suffix.lower() in ('.jpg', '.jpeg') else 'PNG'
                # Unwatermarked output in the source encoding keeps the original bytes
                if branded is opened and opened.format == encoding:
                    data = source.read_bytes()
                else:
                    data = encode_image(branded, target.suffix.lower())
        except (OSError, UnidentifiedImageError) as e:
            raise ArtifactIOError(f"Failed to process image {source}: {e}") from e

        write_atomic(target, data)
        logger.info("Branded raster %s -> %s with template '%s'", source.name, target.name, template_id)
        if target != output:
            return success("raster", template_id, outputFile=target.name)
        return success("raster", template_id)
