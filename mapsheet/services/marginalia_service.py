"""Scale bar and north arrow rendering."""

import logging
from typing import Optional, Sequence, Union

from PIL import Image, ImageDraw

from ..config import DEFAULT_NICE_NUMBERS
from ..models.template import ScaleUnits
from ..utils.font_utils import load_font, measure_text

logger = logging.getLogger(__name__)

FEET_PER_MILE = 5280
METERS_PER_FOOT = 0.3048

SCALE_BAR_PADDING = 4
SCALE_BAR_SEGMENTS = 4
# Fraction of the available length a chosen round number may use
NICE_FILL_RATIO = 0.9
DEFAULT_NICE_LENGTH = 100

BLACK = (0, 0, 0, 255)
WHITE = (255, 255, 255, 255)


def choose_nice_length(max_length: float, ladder: Optional[Sequence[float]] = None) -> float:
    """Largest ladder value no greater than 90% of *max_length*.

    Falls back to 100 when every ladder value is too long.
    """
    ladder = sorted(ladder or DEFAULT_NICE_NUMBERS)
    chosen: float = DEFAULT_NICE_LENGTH
    for value in ladder:
        if value <= max_length * NICE_FILL_RATIO:
            chosen = value
        else:
            break
    return chosen


def _units_key(units: Union[ScaleUnits, str, None]) -> str:
    if isinstance(units, ScaleUnits):
        return units.value
    return (units or "").strip().lower()


def format_scale_label(length_feet: float, units: Union[ScaleUnits, str, None] = ScaleUnits.FEET) -> str:
    """Human label for a scale bar of *length_feet* ground feet.

    >>> format_scale_label(2000)
    '2,000 feet'
    >>> format_scale_label(10000)
    '1.9 miles'
    >>> format_scale_label(5000, "meters")
    '1.5 km'
    """
    key = _units_key(units)
    if key in (ScaleUnits.FEET.value, ScaleUnits.FT.value):
        if length_feet >= FEET_PER_MILE:
            return f"{length_feet / FEET_PER_MILE:.1f} miles"
        return f"{length_feet:,.0f} feet"
    if key in (ScaleUnits.METERS.value, ScaleUnits.M.value):
        meters = length_feet * METERS_PER_FOOT
        if meters >= 1000:
            return f"{meters / 1000:.1f} km"
        return f"{round(meters)} m"
    return f"{length_feet:,.0f} ft"


def scale_bar_length(
    box_width: float,
    scale: float,
    dpi: int,
    ladder: Optional[Sequence[float]] = None,
) -> tuple[float, float]:
    """Ground length and pixel width of the bar drawn in a box *box_width* wide.

    Args:
        box_width: Element width in pixels.
        scale: Ground feet per page inch.
        dpi: Output resolution.
        ladder: Round lengths to choose from.

    Returns:
        ``(length_feet, bar_width_px)``
    """
    max_length = scale * (box_width - 2 * SCALE_BAR_PADDING) / dpi
    length = choose_nice_length(max_length, ladder)
    return length, length / scale * dpi


def render_scale_bar(
    image: Image.Image,
    box: tuple[int, int, int, int],
    scale: float,
    dpi: int,
    units: Union[ScaleUnits, str, None] = ScaleUnits.FEET,
    ladder: Optional[Sequence[float]] = None,
) -> tuple[float, str]:
    """Draw a four-segment alternating scale bar into *box*.

    Returns:
        The ground length (feet) and the label drawn.
    """
    x, y, width, height = box
    draw = ImageDraw.Draw(image, "RGBA")

    length, bar_w = scale_bar_length(width, scale, dpi, ladder)
    label = format_scale_label(length, units)

    bar_h = min(height * 0.25, 10)
    bar_x = x + SCALE_BAR_PADDING
    bar_y = y + height - SCALE_BAR_PADDING - bar_h - 16

    # Alternating segments
    seg_w = bar_w / SCALE_BAR_SEGMENTS
    for i in range(SCALE_BAR_SEGMENTS):
        sx = bar_x + i * seg_w
        draw.rectangle([sx, bar_y, sx + seg_w, bar_y + bar_h], fill=BLACK if i % 2 == 0 else WHITE)
    draw.rectangle([bar_x, bar_y, bar_x + bar_w, bar_y + bar_h], outline=BLACK, width=1)

    # End ticks
    for tick_x in (bar_x, bar_x + bar_w):
        draw.line([(tick_x, bar_y - 3), (tick_x, bar_y + bar_h + 3)], fill=BLACK, width=1)

    font = load_font(max(1, round(min(height * 0.3, 12))))
    text_y = bar_y + bar_h + 4
    label_w, _label_h = measure_text(font, label)
    draw.text((bar_x + bar_w / 2 - label_w / 2, text_y), label, fill=BLACK, font=font)
    draw.text((bar_x, text_y), "0", fill=BLACK, font=font)

    logger.debug("Scale bar: %s (%.1f px) at 1in = %.0fft", label, bar_w, scale)
    return length, label


def render_north_arrow(image: Image.Image, box: tuple[int, int, int, int]) -> None:
    """Draw a two-tone north arrow centred in *box* with an "N" above the tip.

    The right half of the arrow is solid black, the left half white with a
    black outline.
    """
    x, y, width, height = box
    draw = ImageDraw.Draw(image, "RGBA")

    cx = x + width / 2
    cy = y + height / 2
    size = min(width, height) * 0.8

    tip = (cx, cy - size / 2)
    notch = (cx, cy + size / 6)
    draw.polygon([tip, (cx + size / 6, cy + size / 3), notch], fill=BLACK)
    draw.polygon([tip, (cx - size / 6, cy + size / 3), notch], fill=WHITE, outline=BLACK)

    font = load_font(max(round(size / 4), 10), bold=True)
    draw.text((cx, tip[1] - 2), "N", fill=BLACK, font=font, anchor="mb")
