"""Data models for map sheet export."""

from .geometry import Extent, ExportArea, Point, Polygon, Polyline, ScreenRect, parse_geometry
from .legend import (
    LayerInfo,
    LegendItem,
    LegendLayout,
    LegendSymbol,
    SymbolType,
)
from .template import (
    PAGE_DIMENSIONS,
    Element,
    ImageElement,
    LegendElement,
    MapElement,
    NorthArrowElement,
    PageSize,
    ScaleBarElement,
    Template,
    TextElement,
    TitleElement,
)

__all__ = [
    "Extent",
    "ExportArea",
    "Point",
    "Polygon",
    "Polyline",
    "ScreenRect",
    "parse_geometry",
    "LayerInfo",
    "LegendItem",
    "LegendLayout",
    "LegendSymbol",
    "SymbolType",
    "PAGE_DIMENSIONS",
    "Element",
    "ImageElement",
    "LegendElement",
    "MapElement",
    "NorthArrowElement",
    "PageSize",
    "ScaleBarElement",
    "Template",
    "TextElement",
    "TitleElement",
]
