"""Color parsing and raster helpers."""

import re
from typing import Optional, Union

from PIL import Image, ImageColor

RGBA = tuple[int, int, int, int]

_RGBA_FUNC = re.compile(
    r"^rgba?\(\s*([\d.]+)\s*,\s*([\d.]+)\s*,\s*([\d.]+)\s*(?:,\s*([\d.]+)\s*)?\)$",
    re.IGNORECASE,
)


def hex_to_rgba(hex_color: str, alpha: int = 255) -> RGBA:
    """Convert a hex color or CSS color name to an RGBA tuple (black if unparseable).

    ``transparent`` maps to fully transparent black.
    """
    value = hex_color.strip()
    if value.lower() == "transparent":
        return (0, 0, 0, 0)
    digits = value.lstrip("#")
    try:
        if len(digits) == 3:
            r, g, b = (int(c * 2, 16) for c in digits)
        elif len(digits) == 6:
            r, g, b = int(digits[0:2], 16), int(digits[2:4], 16), int(digits[4:6], 16)
        elif len(digits) == 8:
            r, g, b = int(digits[0:2], 16), int(digits[2:4], 16), int(digits[4:6], 16)
            alpha = int(digits[6:8], 16)
        else:
            return _named_to_rgba(value, alpha)
    except ValueError:
        return _named_to_rgba(value, alpha)
    return (r, g, b, alpha)


def _named_to_rgba(value: str, alpha: int) -> RGBA:
    # CSS names, hsl() and the other forms Pillow understands
    try:
        rgb = ImageColor.getrgb(value)
    except ValueError:
        return (0, 0, 0, alpha)
    if len(rgb) == 4:
        return rgb
    return (rgb[0], rgb[1], rgb[2], alpha)


def is_transparent(color: Optional[str]) -> bool:
    """True when *color* is empty or parses to zero alpha (e.g. ``transparent``)."""
    return not color or hex_to_rgba(color)[3] == 0


def parse_color(value: Optional[Union[str, list[float], tuple]], default: str = "#000000") -> RGBA:
    """Parse ``#rrggbb``, ``rgb()``/``rgba()`` strings or ``[r, g, b, a]`` lists.

    Alpha in ``rgba()`` strings and 4-element lists may be 0-1 (CSS / Esri
    convention) or 0-255.
    """
    if value is None or value == "":
        return hex_to_rgba(default)

    if isinstance(value, (list, tuple)):
        channels = [float(c) for c in value]
        if len(channels) < 3:
            return hex_to_rgba(default)
        alpha = channels[3] if len(channels) > 3 else 1.0
        r, g, b = (_channel_to_byte(c) for c in channels[:3])
        return (r, g, b, _alpha_to_byte(alpha))

    match = _RGBA_FUNC.match(value.strip())
    if match:
        r, g, b, a = match.groups()
        alpha = float(a) if a is not None else 1.0
        r, g, b = (_channel_to_byte(float(c)) for c in (r, g, b))
        return (r, g, b, _alpha_to_byte(alpha))

    return hex_to_rgba(value)


def _channel_to_byte(value: float) -> int:
    return max(0, min(255, int(value)))


def _alpha_to_byte(alpha: float) -> int:
    if alpha <= 1.0:
        return max(0, min(255, round(alpha * 255)))
    return max(0, min(255, int(alpha)))


def rgba_to_hex(color: RGBA) -> str:
    """Format as ``#rrggbb`` (alpha dropped) or ``#rrggbbaa`` when not opaque."""
    r, g, b, a = color
    if a == 255:
        return f"#{r:02x}{g:02x}{b:02x}"
    return f"#{r:02x}{g:02x}{b:02x}{a:02x}"


def flatten_to_rgb(image: Image.Image, background: tuple[int, int, int] = (255, 255, 255)) -> Image.Image:
    """Composite any alpha onto *background* and return an RGB image."""
    if image.mode == "RGB":
        return image
    if image.mode in ("RGBA", "LA") or (image.mode == "P" and "transparency" in image.info):
        rgba = image.convert("RGBA")
        flat = Image.new("RGB", rgba.size, background)
        flat.paste(rgba, mask=rgba.split()[3])
        return flat
    return image.convert("RGB")


def aspect_fit(
    image_size: tuple[int, int],
    box: tuple[int, int, int, int],
) -> tuple[int, int, int, int]:
    """Fit *image_size* inside *box* ``(x, y, w, h)`` preserving aspect.

    The image fills the box along its longer relative axis and is centered
    (letterboxed) along the other.

    Returns:
        ``(x, y, width, height)`` of the fitted image.
    """
    img_w, img_h = image_size
    x, y, box_w, box_h = box
    if img_w <= 0 or img_h <= 0 or box_w <= 0 or box_h <= 0:
        return (x, y, 0, 0)

    img_aspect = img_w / img_h
    box_aspect = box_w / box_h
    if img_aspect > box_aspect:
        draw_w = box_w
        draw_h = max(1, round(box_w / img_aspect))
        return (x, y + (box_h - draw_h) // 2, draw_w, draw_h)

    draw_h = box_h
    draw_w = max(1, round(box_h * img_aspect))
    return (x + (box_w - draw_w) // 2, y, draw_w, draw_h)


def paste_fitted(
    canvas: Image.Image,
    image: Image.Image,
    box: tuple[int, int, int, int],
    resample: int = Image.Resampling.LANCZOS,
) -> tuple[int, int, int, int]:
    """Aspect-fit *image* into *box* on *canvas*, honoring its transparency.

    Returns:
        The ``(x, y, width, height)`` actually covered.
    """
    fx, fy, fw, fh = aspect_fit(image.size, box)
    if fw == 0 or fh == 0:
        return (fx, fy, 0, 0)
    source = image.convert("RGBA").resize((fw, fh), resample=resample)
    canvas.paste(source, (fx, fy), source)
    return (fx, fy, fw, fh)
