"""Tests for mapsheet.services.legend_service."""

import numpy as np
import pytest
from PIL import Image

from mapsheet.models.legend import (
    ClassBreakInfo,
    ClassBreaksRenderer,
    LayerInfo,
    LayerSymbol,
    LegendItem,
    SimpleRenderer,
    SymbolOutline,
    SymbolType,
    UniqueValueInfo,
    UniqueValueRenderer,
)
from mapsheet.models.template import LegendContent
from mapsheet.services.legend_layout_service import LegendLayoutService
from mapsheet.services.legend_service import (
    LegendRenderer,
    StaticLegendSource,
    collect_legend_items,
    flatten_layers,
    load_legend_file,
    normalize_symbol,
)


# ---------------------------------------------------------------------------
# Symbol normalization
# ---------------------------------------------------------------------------

class TestNormalizeSymbol:
    def test_none(self):
        assert normalize_symbol(None) is None

    def test_fill_from_rgba_list(self):
        symbol = normalize_symbol(LayerSymbol(type="simple-fill", color=[255, 0, 0, 1]))
        assert symbol.type == SymbolType.FILL
        assert symbol.color == "#ff0000"
        assert not symbol.has_transparent_fill

    def test_line(self):
        symbol = normalize_symbol(LayerSymbol(type="simple-line", color="#00ff00"))
        assert symbol.type == SymbolType.LINE
        assert symbol.color == "#00ff00"

    def test_transparent_fill_keeps_outline(self):
        symbol = normalize_symbol(
            LayerSymbol(color=[0, 0, 0, 0], outline=SymbolOutline(color=[10, 20, 30, 255], width=1))
        )
        assert symbol.has_transparent_fill
        assert symbol.outline_color == "#0a141e"

    def test_outline_only_is_transparent(self):
        symbol = normalize_symbol(LayerSymbol(outline=SymbolOutline(color="#123456")))
        assert symbol.has_transparent_fill

    def test_missing_color_defaults_grey(self):
        assert normalize_symbol(LayerSymbol()).color == "#666666"


# ---------------------------------------------------------------------------
# Flattening
# ---------------------------------------------------------------------------

class TestFlattenLayers:
    def test_simple_layer(self):
        items = flatten_layers(
            [LayerInfo(title="Parcels", renderer=SimpleRenderer(symbol=LayerSymbol(color="#ffcc00")))]
        )
        assert len(items) == 1
        assert items[0].label == "Parcels"
        assert items[0].symbol.color == "#ffcc00"
        assert not items[0].is_header

    def test_unique_value_header_and_subitems(self):
        renderer = UniqueValueRenderer(
            infos=[
                UniqueValueInfo(value="R1", label="Residential", symbol=LayerSymbol(color="#ffff00")),
                UniqueValueInfo(value="C2", symbol=LayerSymbol(color="#ff0000")),
            ]
        )
        items = flatten_layers([LayerInfo(title="Zoning", renderer=renderer)])
        assert [i.label for i in items] == ["Zoning", "Residential", "C2"]
        assert items[0].is_header and items[0].symbol is None
        assert all(i.is_sub_item for i in items[1:])

    def test_class_breaks_labels(self):
        renderer = ClassBreaksRenderer(
            infos=[
                ClassBreakInfo(min_value=0, max_value=10),
                ClassBreakInfo(min_value=10, max_value=25.5, label="Medium"),
            ]
        )
        items = flatten_layers([LayerInfo(title="Density", renderer=renderer)])
        assert [i.label for i in items] == ["Density", "0 - 10", "Medium"]

    def test_untitled_layers_skipped(self):
        items = flatten_layers([LayerInfo(title=None), LayerInfo(title=""), LayerInfo(title="Roads")])
        assert [i.label for i in items] == ["Roads"]

    def test_layer_without_renderer(self):
        items = flatten_layers([LayerInfo(title="Imagery")])
        assert items == [LegendItem(label="Imagery")]

    def test_parse_camel_case_layers(self):
        layer = LayerInfo.model_validate(
            {
                "title": "Flood Zones",
                "renderer": {
                    "type": "classBreaks",
                    "infos": [{"minValue": 1, "maxValue": 2, "symbol": {"type": "simple-fill", "color": "#0000ff"}}],
                },
            }
        )
        items = flatten_layers([layer])
        assert items[1].label == "1 - 2"
        assert items[1].symbol.color == "#0000ff"


class TestLegendSource:
    def test_collect_from_source(self):
        source = StaticLegendSource([LayerInfo(title="A"), LayerInfo(title="B")])
        assert [i.label for i in collect_legend_items(source)] == ["A", "B"]

    def test_collect_without_source(self):
        assert collect_legend_items(None) == []

    def test_load_layers_file(self, tmp_path):
        path = tmp_path / "legend.yaml"
        path.write_text(
            "layers:\n"
            "  - title: Parcels\n"
            "    renderer:\n"
            "      type: simple\n"
            "      symbol: {type: simple-fill, color: '#ffcc00'}\n"
            "  - title: Zoning\n"
            "    renderer:\n"
            "      type: uniqueValue\n"
            "      infos:\n"
            "        - {value: R1, label: Residential}\n"
        )
        items = load_legend_file(path)
        assert [i.label for i in items] == ["Parcels", "Zoning", "Residential"]

    def test_load_items_file(self, tmp_path):
        path = tmp_path / "legend.json"
        path.write_text('{"items": [{"label": "Wells", "symbol": {"type": "fill", "color": "#00ffff"}}]}')
        items = load_legend_file(path)
        assert items[0].label == "Wells"
        assert items[0].symbol.color == "#00ffff"

    def test_load_empty_file(self, tmp_path):
        path = tmp_path / "legend.yaml"
        path.write_text("")
        assert load_legend_file(path) == []


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------

class TestLegendRenderer:
    def test_background_and_border(self, legend_items):
        canvas = Image.new("RGB", (400, 300), (0, 0, 0))
        renderer = LegendRenderer()
        renderer.render(canvas, (50, 50, 200, 150), legend_items, LegendContent(background_color="#ffffff"))
        arr = np.array(canvas)
        # Border pixel is the grey legend frame
        assert tuple(arr[50, 120]) == (153, 153, 153)
        # Outside untouched
        assert tuple(arr[10, 10]) == (0, 0, 0)
        # Inside the panel, away from content, is background
        assert tuple(arr[195, 240]) == (255, 255, 255)

    def test_returns_layout_from_service(self, legend_items):
        layout_service = LegendLayoutService()
        renderer = LegendRenderer(layout_service)
        canvas = Image.new("RGB", (400, 300), (255, 255, 255))
        layout = renderer.render(canvas, (0, 0, 300, 200), legend_items)
        assert layout is layout_service.compute_layout(300, 200, legend_items, show_title=True)

    def test_fill_swatch_drawn(self):
        items = [LegendItem(label="Red", symbol=normalize_symbol(LayerSymbol(color="#ff0000")))]
        canvas = Image.new("RGB", (300, 200), (255, 255, 255))
        layout = LegendRenderer().render(canvas, (0, 0, 300, 200), items, LegendContent(show_title=False))
        x, y, _w, h = layout.item_rect(0)
        cx = int(x + layout.symbol_size / 2)
        cy = int(y + h / 2)
        assert tuple(np.array(canvas)[cy, cx]) == (255, 0, 0)

    def test_placeholder_for_missing_symbol(self):
        items = [LegendItem(label="Imagery")]
        canvas = Image.new("RGB", (300, 200), (255, 255, 255))
        layout = LegendRenderer().render(canvas, (0, 0, 300, 200), items, LegendContent(show_title=False))
        x, y, _w, h = layout.item_rect(0)
        assert tuple(np.array(canvas)[int(y + h / 2), int(x + layout.symbol_size / 2)]) == (136, 136, 136)

    def test_empty_legend_draws_panel(self):
        canvas = Image.new("RGB", (100, 100), (0, 0, 0))
        LegendRenderer().render(canvas, (0, 0, 100, 100), [])
        assert tuple(np.array(canvas)[90, 90]) == (255, 255, 255)

    @pytest.mark.parametrize("count", [1, 40, 150])
    def test_many_items_render(self, make_items, count):
        canvas = Image.new("RGB", (200, 300), (255, 255, 255))
        layout = LegendRenderer().render(canvas, (0, 0, 200, 300), make_items(count))
        assert layout.capacity >= count
