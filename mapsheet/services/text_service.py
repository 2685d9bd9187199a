"""Title and free-text rendering."""

import logging
from typing import Optional

from PIL import Image, ImageDraw

from ..models.template import Align, TextContent, TitleContent
from ..utils.font_utils import Font, load_font, text_width
from ..utils.image_utils import hex_to_rgba, is_transparent

logger = logging.getLogger(__name__)

# Font sizes in templates are CSS pixels
CSS_DPI = 96
TITLE_INSET = 10
TEXT_PADDING = 5
LINE_HEIGHT = 1.2


def scaled_font_size(font_size: float, dpi: int) -> int:
    """Convert a CSS pixel font size to output pixels at *dpi*."""
    return max(1, round(font_size * dpi / CSS_DPI))


def wrap_text(text: str, font: Font, max_width: float) -> list[str]:
    """Greedy word wrap.

    Words are added to a line until the measured width would exceed
    *max_width*. A single word wider than the box gets a line of its own.
    Explicit newlines start new paragraphs; blank lines are kept.
    """
    lines: list[str] = []
    for paragraph in text.split("\n"):
        words = paragraph.split()
        if not words:
            lines.append("")
            continue

        line = words[0]
        for word in words[1:]:
            candidate = f"{line} {word}"
            if text_width(font, candidate) > max_width:
                lines.append(line)
                line = word
            else:
                line = candidate
        lines.append(line)
    return lines


def _fill_background(draw: ImageDraw.ImageDraw, box: tuple[int, int, int, int], color: Optional[str]) -> None:
    if is_transparent(color):
        return
    x, y, w, h = box
    draw.rectangle([x, y, x + w - 1, y + h - 1], fill=hex_to_rgba(color))


def render_title(
    image: Image.Image,
    box: tuple[int, int, int, int],
    content: TitleContent,
    dpi: int,
    text: Optional[str] = None,
) -> None:
    """Draw a single-line title vertically centred in *box*.

    Args:
        text: Export title; the element's own text is used when empty.
    """
    x, y, width, height = box
    draw = ImageDraw.Draw(image, "RGBA")
    _fill_background(draw, box, content.background_color)

    title = text or content.text
    if not title:
        return

    font = load_font(scaled_font_size(content.font_size, dpi), bold=content.is_bold)
    cy = y + height / 2
    if content.align == Align.LEFT:
        anchor, tx = "lm", x + TITLE_INSET
    elif content.align == Align.RIGHT:
        anchor, tx = "rm", x + width - TITLE_INSET
    else:
        anchor, tx = "mm", x + width / 2

    draw.text((tx, cy), title, fill=hex_to_rgba(content.color), font=font, anchor=anchor)


def render_text(
    image: Image.Image,
    box: tuple[int, int, int, int],
    content: TextContent,
    dpi: int,
) -> int:
    """Draw word-wrapped text into *box*.

    Lines that run past the bottom of the box are still drawn.

    Returns:
        Number of lines drawn.
    """
    x, y, width, height = box
    draw = ImageDraw.Draw(image, "RGBA")
    _fill_background(draw, box, content.background_color)

    if not content.text:
        return 0

    size = scaled_font_size(content.font_size, dpi)
    font = load_font(size, bold=content.is_bold)
    lines = wrap_text(content.text, font, width - 2 * TEXT_PADDING)
    line_height = size * LINE_HEIGHT
    color = hex_to_rgba(content.color)

    if content.align == Align.CENTER:
        anchor, tx = "ma", x + width / 2
    elif content.align == Align.RIGHT:
        anchor, tx = "ra", x + width - TEXT_PADDING
    else:
        anchor, tx = "la", x + TEXT_PADDING

    line_y = y + TEXT_PADDING
    for line in lines:
        if line:
            draw.text((tx, line_y), line, fill=color, font=font, anchor=anchor)
        line_y += line_height

    if line_y > y + height:
        logger.debug("Text element overflows its box by %.0fpx", line_y - (y + height))
    return len(lines)
