"""Legend models: layer renderers in, flat legend items and layouts out."""

from dataclasses import dataclass
from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# Colors arrive either as CSS strings ("#3366cc", "rgba(...)") or RGBA lists
# with 0-255 channels and an optional 0-1 alpha.
ColorValue = Union[str, list[float]]


class _LegendModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class SymbolType(str, Enum):
    """How a legend swatch is drawn."""

    FILL = "fill"
    LINE = "line"


class LegendSymbol(_LegendModel):
    """Normalized swatch for one legend item."""

    type: SymbolType = SymbolType.FILL
    color: str = "#666666"
    outline_color: Optional[str] = None
    has_transparent_fill: bool = False


class LegendItem(_LegendModel):
    """One entry in the map key.

    A header (``is_header``) is followed by its sub-items (``is_sub_item``);
    the layout keeps such a group together where it can.
    """

    label: str
    symbol: Optional[LegendSymbol] = None
    is_header: bool = False
    is_sub_item: bool = False


# ---------------------------------------------------------------------------
# Layer renderers, as supplied by the legend data source
# ---------------------------------------------------------------------------


class SymbolOutline(_LegendModel):
    color: Optional[ColorValue] = None
    width: Optional[float] = None


class LayerSymbol(_LegendModel):
    """A layer's raw symbol (``simple-fill``, ``simple-line``, ``simple-marker``...)."""

    type: str = "simple-fill"
    color: Optional[ColorValue] = None
    outline: Optional[SymbolOutline] = None


class SimpleRenderer(_LegendModel):
    type: Literal["simple"] = "simple"
    symbol: Optional[LayerSymbol] = None


class UniqueValueInfo(_LegendModel):
    value: Optional[str] = None
    label: Optional[str] = None
    symbol: Optional[LayerSymbol] = None


class UniqueValueRenderer(_LegendModel):
    type: Literal["uniqueValue"] = "uniqueValue"
    infos: list[UniqueValueInfo] = Field(default_factory=list)


class ClassBreakInfo(_LegendModel):
    min_value: Optional[float] = None
    max_value: Optional[float] = None
    label: Optional[str] = None
    symbol: Optional[LayerSymbol] = None


class ClassBreaksRenderer(_LegendModel):
    type: Literal["classBreaks"] = "classBreaks"
    infos: list[ClassBreakInfo] = Field(default_factory=list)


Renderer = Annotated[
    Union[SimpleRenderer, UniqueValueRenderer, ClassBreaksRenderer],
    Field(discriminator="type"),
]


class LayerInfo(_LegendModel):
    """A visible operational layer as reported by the legend data source."""

    title: Optional[str] = None
    renderer: Optional[Renderer] = None


# ---------------------------------------------------------------------------
# Computed layout
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LegendLayout:
    """Legend geometry for one box and one item list. Sizes are pixels."""

    num_columns: int
    column_width: float
    item_height: int
    font_size: int
    symbol_size: int
    items_per_column: int
    padding: int
    column_gap: int
    sub_item_indent: int
    title_height: int = 0
    # Half-open item index ranges, one per column
    columns: tuple[tuple[int, int], ...] = ()
    overflow: bool = False

    @property
    def capacity(self) -> int:
        return self.num_columns * self.items_per_column

    def item_position(self, index: int) -> tuple[int, int]:
        """``(column, row)`` of the item at *index*."""
        for col, (start, end) in enumerate(self.columns):
            if start <= index < end:
                return (col, index - start)
        raise IndexError(f"Item {index} is not placed in this layout")

    def item_rect(self, index: int) -> tuple[float, float, float, int]:
        """``(x, y, width, height)`` of an item's row, relative to the legend box."""
        col, row = self.item_position(index)
        x = self.padding + col * (self.column_width + self.column_gap)
        y = self.padding + self.title_height + row * self.item_height
        return (x, y, self.column_width, self.item_height)
