"""Utility functions for map sheet export."""

from .font_utils import load_font, measure_text, text_width
from .image_utils import (
    aspect_fit,
    flatten_to_rgb,
    hex_to_rgba,
    is_transparent,
    parse_color,
    paste_fitted,
    rgba_to_hex,
)

__all__ = [
    "load_font",
    "measure_text",
    "text_width",
    "aspect_fit",
    "flatten_to_rgb",
    "hex_to_rgba",
    "is_transparent",
    "parse_color",
    "paste_fitted",
    "rgba_to_hex",
]
