"""Legend items from layer renderers, and legend drawing."""

import json
import logging
from pathlib import Path
from typing import Iterable, Optional, Protocol, Sequence, Union

import yaml
from PIL import Image, ImageDraw

from ..models.legend import (
    ClassBreakInfo,
    ClassBreaksRenderer,
    LayerInfo,
    LayerSymbol,
    LegendItem,
    LegendLayout,
    LegendSymbol,
    SimpleRenderer,
    SymbolType,
    UniqueValueRenderer,
)
from ..models.template import LegendContent
from ..utils.font_utils import load_font, measure_text
from ..utils.image_utils import hex_to_rgba, parse_color, rgba_to_hex
from .legend_layout_service import LegendLayoutService

logger = logging.getLogger(__name__)

DEFAULT_SYMBOL_COLOR = "#666666"
PLACEHOLDER_COLOR = "#888888"
SWATCH_OUTLINE_COLOR = "#333333"
LABEL_COLOR = "#333333"
BORDER_COLOR = "#999999"


class LegendSource(Protocol):
    """Supplies the visible layers whose symbols make up the legend."""

    def list_visible_layers(self) -> Sequence[LayerInfo]: ...


class StaticLegendSource:
    """Legend source over a fixed list of layers (loaded from a file, for instance)."""

    def __init__(self, layers: Iterable[LayerInfo]):
        self._layers = list(layers)

    def list_visible_layers(self) -> Sequence[LayerInfo]:
        return list(self._layers)


# ---------------------------------------------------------------------------
# Flattening
# ---------------------------------------------------------------------------


def normalize_symbol(symbol: Optional[LayerSymbol]) -> Optional[LegendSymbol]:
    """Reduce a layer symbol to a fill or line swatch."""
    if symbol is None:
        return None

    kind = SymbolType.LINE if "line" in symbol.type.lower() else SymbolType.FILL
    outline = symbol.outline.color if symbol.outline is not None else None

    if symbol.color is None and kind == SymbolType.FILL and outline is not None:
        fill = (0, 0, 0, 0)
    else:
        fill = parse_color(symbol.color, default=DEFAULT_SYMBOL_COLOR)

    return LegendSymbol(
        type=kind,
        color=rgba_to_hex(fill),
        outline_color=rgba_to_hex(parse_color(outline)) if outline is not None else None,
        has_transparent_fill=kind == SymbolType.FILL and fill[3] == 0,
    )


def _class_break_label(info: ClassBreakInfo) -> str:
    if info.label:
        return info.label
    if info.min_value is not None and info.max_value is not None:
        return f"{info.min_value:g} - {info.max_value:g}"
    if info.max_value is not None:
        return f"<= {info.max_value:g}"
    if info.min_value is not None:
        return f">= {info.min_value:g}"
    return "Other"


def flatten_layers(layers: Iterable[LayerInfo]) -> list[LegendItem]:
    """Flatten layers into legend items.

    A simple renderer gives one item carrying its symbol. Unique-value and
    class-breaks renderers give a header item followed by one sub-item per
    class. Layers without a title are skipped.
    """
    items: list[LegendItem] = []
    for layer in layers:
        if not layer.title:
            continue

        renderer = layer.renderer
        if renderer is None:
            items.append(LegendItem(label=layer.title))
        elif isinstance(renderer, SimpleRenderer):
            items.append(LegendItem(label=layer.title, symbol=normalize_symbol(renderer.symbol)))
        elif isinstance(renderer, UniqueValueRenderer):
            items.append(LegendItem(label=layer.title, is_header=True))
            for info in renderer.infos:
                items.append(
                    LegendItem(
                        label=info.label or info.value or "Other",
                        symbol=normalize_symbol(info.symbol),
                        is_sub_item=True,
                    )
                )
        elif isinstance(renderer, ClassBreaksRenderer):
            items.append(LegendItem(label=layer.title, is_header=True))
            for info in renderer.infos:
                items.append(
                    LegendItem(
                        label=_class_break_label(info),
                        symbol=normalize_symbol(info.symbol),
                        is_sub_item=True,
                    )
                )
    return items


def collect_legend_items(source: Optional[LegendSource]) -> list[LegendItem]:
    """Fresh legend items for one export."""
    if source is None:
        return []
    return flatten_layers(source.list_visible_layers())


def load_legend_file(path: Union[str, Path]) -> list[LegendItem]:
    """Read legend entries from a YAML or JSON file.

    The file holds either ``layers`` (layer renderers, flattened here) or
    ``items`` (already-flat legend items). A bare list is read as layers.
    """
    path = Path(path)
    with open(path) as f:
        if path.suffix.lower() == ".json":
            data = json.load(f)
        else:
            data = yaml.safe_load(f)

    if data is None:
        return []
    if isinstance(data, list):
        data = {"layers": data}
    if "items" in data:
        return [LegendItem.model_validate(item) for item in data["items"] or []]
    layers = [LayerInfo.model_validate(layer) for layer in data.get("layers") or []]
    return flatten_layers(layers)


# ---------------------------------------------------------------------------
# Drawing
# ---------------------------------------------------------------------------


class LegendRenderer:
    """Draws a legend panel using layouts from :class:`LegendLayoutService`."""

    TITLE_FONT_SIZE = 12

    def __init__(self, layout_service: Optional[LegendLayoutService] = None):
        self.layout_service = layout_service or LegendLayoutService()

    def render(
        self,
        image: Image.Image,
        box: tuple[int, int, int, int],
        items: Sequence[LegendItem],
        content: Optional[LegendContent] = None,
    ) -> LegendLayout:
        """Draw the legend into *box* ``(x, y, w, h)`` on *image*.

        Returns:
            The layout that was used.
        """
        content = content or LegendContent()
        x, y, width, height = box
        draw = ImageDraw.Draw(image, "RGBA")

        # Background panel and border
        draw.rectangle([x, y, x + width - 1, y + height - 1], fill=hex_to_rgba(content.background_color))
        draw.rectangle([x, y, x + width - 1, y + height - 1], outline=hex_to_rgba(BORDER_COLOR), width=1)

        layout = self.layout_service.compute_layout(width, height, items, show_title=content.show_title)
        if layout.overflow:
            logger.warning("Legend with %d items does not fit a %dx%d box; labels may overflow", len(items), width, height)

        if content.show_title:
            title_font = load_font(self.TITLE_FONT_SIZE, bold=True)
            draw.text(
                (x + layout.padding, y + layout.padding),
                content.title or "Legend",
                fill=hex_to_rgba("#000000"),
                font=title_font,
            )

        font = load_font(layout.font_size)
        header_font = load_font(layout.font_size, bold=True)
        label_rgba = hex_to_rgba(LABEL_COLOR)

        for index, item in enumerate(items):
            rx, ry, _rw, rh = layout.item_rect(index)
            cx = x + rx + (layout.sub_item_indent if item.is_sub_item else 0)
            cy = y + ry

            if item.is_header:
                text_x = cx
                item_font = header_font
            else:
                self._draw_swatch(draw, item.symbol, cx, cy, layout.symbol_size, rh)
                text_x = cx + layout.symbol_size + self.layout_service.SYMBOL_GAP
                item_font = font

            _lw, lh = measure_text(item_font, item.label)
            text_y = cy + (rh - lh) / 2
            draw.text((text_x, text_y), item.label, fill=label_rgba, font=item_font, anchor="lt")

        return layout

    @staticmethod
    def _draw_swatch(
        draw: ImageDraw.ImageDraw,
        symbol: Optional[LegendSymbol],
        x: float,
        y: float,
        size: int,
        row_height: int,
    ) -> None:
        mid_y = y + row_height / 2
        swatch_h = max(2, round(size * 0.75))
        top = mid_y - swatch_h / 2
        outline_rgba = hex_to_rgba(SWATCH_OUTLINE_COLOR)

        if symbol is None:
            draw.rectangle([x, top, x + size, top + swatch_h], fill=hex_to_rgba(PLACEHOLDER_COLOR))
            return

        color = hex_to_rgba(symbol.color)
        if symbol.type == SymbolType.LINE:
            draw.line([(x, mid_y), (x + size, mid_y)], fill=color, width=max(2, size // 6))
            return

        if symbol.outline_color:
            outline_rgba = hex_to_rgba(symbol.outline_color)
        if symbol.has_transparent_fill:
            draw.rectangle([x, top, x + size, top + swatch_h], outline=outline_rgba, width=1)
        else:
            draw.rectangle([x, top, x + size, top + swatch_h], fill=color, outline=outline_rgba, width=1)
