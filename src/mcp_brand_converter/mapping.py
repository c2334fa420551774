"""Color and font lookups shared by the format strategies."""

from typing import Mapping, Optional

from .brand_config import BrandFonts, Template


def map_color(source: Optional[str], color_mapping: Mapping[str, str]) -> Optional[str]:
    """Brand color for an exact, case-sensitive source color, or None when unmapped.

    No nearest-color matching is attempted; unmapped colors are left alone.
    """
    if not isinstance(source, str):
        return None
    return color_mapping.get(source)


def resolve_font(template: Template, fonts: BrandFonts, source=None):
    """Font family for an element: the brand primary stack, or `source` when fonts are kept."""
    if template.replace_fonts:
        return fonts.primary
    return source
