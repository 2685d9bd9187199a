"""Font loading and text measurement."""

from functools import lru_cache
from typing import Union

from PIL import ImageFont

Font = Union[ImageFont.FreeTypeFont, ImageFont.ImageFont]

_REGULAR_CANDIDATES = [
    # Linux
    "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
    "/usr/share/fonts/TTF/DejaVuSans.ttf",
    "/usr/share/fonts/truetype/liberation/LiberationSans-Regular.ttf",
    "/usr/share/fonts/liberation-sans/LiberationSans-Regular.ttf",
    "/usr/share/fonts/truetype/freefont/FreeSans.ttf",
    # macOS
    "/System/Library/Fonts/Helvetica.ttc",
    "/Library/Fonts/Arial.ttf",
    # Windows
    "C:\\Windows\\Fonts\\arial.ttf",
]

_BOLD_CANDIDATES = [
    "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf",
    "/usr/share/fonts/TTF/DejaVuSans-Bold.ttf",
    "/usr/share/fonts/truetype/liberation/LiberationSans-Bold.ttf",
    "/usr/share/fonts/liberation-sans/LiberationSans-Bold.ttf",
    "/usr/share/fonts/truetype/freefont/FreeSansBold.ttf",
    "/System/Library/Fonts/Helvetica.ttc",
    "C:\\Windows\\Fonts\\arialbd.ttf",
]


@lru_cache(maxsize=128)
def load_font(size: int, bold: bool = False) -> Font:
    """Load a TrueType font at *size* pixels, falling back to Pillow's bundled font.

    Tries several common system font paths on Linux/macOS/Windows.
    """
    size = max(1, int(size))
    for font_path in _BOLD_CANDIDATES if bold else _REGULAR_CANDIDATES:
        try:
            return ImageFont.truetype(font_path, size)
        except OSError:
            continue

    # Bundled font; scalable when Pillow is built with FreeType
    return ImageFont.load_default(size=size)


def measure_text(font: Font, text: str) -> tuple[int, int]:
    """Rendered ``(width, height)`` of *text* in *font*."""
    if not text:
        return (0, 0)
    left, top, right, bottom = font.getbbox(text)
    return (right - left, bottom - top)


def text_width(font: Font, text: str) -> float:
    """Advance width of *text*, used for fitting and wrapping decisions."""
    if not text:
        return 0.0
    return float(font.getlength(text))
