"""Legend layout engine.

Chooses how many columns a legend needs and how large its items can be for a
given box. The search is a pure function of ``(box, items, show_title)``;
results are memoised per service instance.

Rules, in priority order:

1. Fewer columns always win over larger items.
2. Within a column count, the largest item height whose labels all fit wins.
3. A single column is accepted even when labels overflow; there is nothing
   narrower to fall back to.
4. If nothing fits, use the minimum item size and as many columns as needed.
"""

import logging
import math
from typing import Sequence

from ..models.legend import LegendItem, LegendLayout
from ..utils.font_utils import load_font, text_width

logger = logging.getLogger(__name__)


class LegendLayoutService:
    """Computes :class:`LegendLayout` for a box and a list of legend items."""

    PADDING = 8
    COLUMN_GAP = 12
    SUB_ITEM_INDENT = 12
    SYMBOL_GAP = 6
    TITLE_HEIGHT = 20

    MIN_ITEM_HEIGHT = 12
    MAX_ITEM_HEIGHT = 32
    ITEM_HEIGHT_STEP = 2

    MIN_FONT_SIZE = 8
    MAX_FONT_SIZE = 16
    MIN_SYMBOL_SIZE = 8
    MAX_SYMBOL_SIZE = 20

    MAX_COLUMNS = 4
    REFERENCE_FONT_SIZE = 11
    MIN_COLUMN_WIDTH = 60

    def __init__(self):
        self._cache: dict[tuple, LegendLayout] = {}

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def compute_layout(
        self,
        width: float,
        height: float,
        items: Sequence[LegendItem],
        show_title: bool = True,
    ) -> LegendLayout:
        """Lay out *items* inside a ``width`` x ``height`` pixel box.

        Args:
            width: Box width in pixels.
            height: Box height in pixels.
            items: Legend items in display order.
            show_title: Whether a title row is reserved at the top.

        Returns:
            The chosen layout. ``overflow`` is set when some label does not fit
            its column (single column or fallback layouts only).
        """
        items = tuple(items)
        key = (round(width), round(height), items, show_title)
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        layout = self._search(round(width), round(height), items, show_title)
        self._cache[key] = layout
        logger.debug(
            "Legend layout for %d items in %dx%d: %d col(s) x %d, item %dpx, font %dpx%s",
            len(items),
            round(width),
            round(height),
            layout.num_columns,
            layout.items_per_column,
            layout.item_height,
            layout.font_size,
            " (overflow)" if layout.overflow else "",
        )
        return layout

    def clear_cache(self) -> None:
        self._cache.clear()

    def interpolate_sizes(self, item_height: int) -> tuple[int, int]:
        """Font and symbol size for *item_height*, linear between the bounds."""
        span = self.MAX_ITEM_HEIGHT - self.MIN_ITEM_HEIGHT
        t = (item_height - self.MIN_ITEM_HEIGHT) / span if span else 1.0
        t = min(1.0, max(0.0, t))
        font_size = round(self.MIN_FONT_SIZE + t * (self.MAX_FONT_SIZE - self.MIN_FONT_SIZE))
        symbol_size = round(self.MIN_SYMBOL_SIZE + t * (self.MAX_SYMBOL_SIZE - self.MIN_SYMBOL_SIZE))
        return font_size, min(symbol_size, max(1, item_height - 2))

    def label_space(self, item: LegendItem, column_width: float, symbol_size: int) -> float:
        """Horizontal room left for *item*'s label in a column."""
        space = column_width
        if item.is_sub_item:
            space -= self.SUB_ITEM_INDENT
        if not item.is_header:
            space -= symbol_size + self.SYMBOL_GAP
        return space

    def label_width(self, item: LegendItem, font_size: int) -> float:
        """Measured label width; headers are set in bold."""
        return text_width(load_font(font_size, bold=item.is_header), item.label)

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    def _search(
        self,
        width: int,
        height: int,
        items: tuple[LegendItem, ...],
        show_title: bool,
    ) -> LegendLayout:
        n = len(items)
        title_height = self.TITLE_HEIGHT if show_title else 0
        avail_w = max(0, width - 2 * self.PADDING)
        avail_h = max(0, height - 2 * self.PADDING - title_height)

        if n == 0:
            font_size, symbol_size = self.interpolate_sizes(self.MAX_ITEM_HEIGHT)
            return self._make_layout(
                items, 1, float(avail_w), self.MAX_ITEM_HEIGHT, font_size, symbol_size,
                avail_h // self.MAX_ITEM_HEIGHT, title_height, overflow=False,
            )

        max_columns = self._max_columns(avail_w, items)
        for num_columns in range(1, max_columns + 1):
            column_width = self._column_width(avail_w, num_columns)
            for item_height in range(self.MAX_ITEM_HEIGHT, self.MIN_ITEM_HEIGHT - 1, -self.ITEM_HEIGHT_STEP):
                items_per_column = avail_h // item_height
                if items_per_column * num_columns < n:
                    continue

                font_size, symbol_size = self.interpolate_sizes(item_height)
                fits = self._labels_fit(items, column_width, font_size, symbol_size)
                if not fits and num_columns > 1:
                    continue

                return self._make_layout(
                    items, num_columns, column_width, item_height, font_size, symbol_size,
                    items_per_column, title_height, overflow=not fits,
                )

        # Nothing fits: smallest items, as many columns as it takes
        item_height = self.MIN_ITEM_HEIGHT
        items_per_column = max(1, avail_h // item_height)
        num_columns = max(1, math.ceil(n / items_per_column))
        font_size, symbol_size = self.interpolate_sizes(item_height)
        column_width = self._column_width(avail_w, num_columns)
        logger.debug("No legend layout fits; falling back to %d columns", num_columns)
        return self._make_layout(
            items, num_columns, column_width, item_height, font_size, symbol_size,
            items_per_column, title_height, overflow=True,
        )

    def _max_columns(self, avail_w: int, items: tuple[LegendItem, ...]) -> int:
        """Most columns the width supports at the minimum viable column width."""
        min_column = self._min_column_width(items)
        columns = int((avail_w + self.COLUMN_GAP) // (min_column + self.COLUMN_GAP))
        return max(1, min(self.MAX_COLUMNS, columns))

    def _min_column_width(self, items: tuple[LegendItem, ...]) -> float:
        widths = sorted(
            self.label_width(item, self.REFERENCE_FONT_SIZE)
            + (self.SUB_ITEM_INDENT if item.is_sub_item else 0)
            for item in items
        )
        median = widths[len(widths) // 2]
        return max(self.MIN_COLUMN_WIDTH, median + self.MIN_SYMBOL_SIZE + self.SYMBOL_GAP)

    def _column_width(self, avail_w: int, num_columns: int) -> float:
        return max(0.0, (avail_w - (num_columns - 1) * self.COLUMN_GAP) / num_columns)

    def _labels_fit(
        self,
        items: tuple[LegendItem, ...],
        column_width: float,
        font_size: int,
        symbol_size: int,
    ) -> bool:
        return all(
            self.label_width(item, font_size) <= self.label_space(item, column_width, symbol_size)
            for item in items
        )

    def _assign_columns(
        self,
        items: tuple[LegendItem, ...],
        num_columns: int,
        items_per_column: int,
    ) -> tuple[tuple[int, int], ...]:
        """Split item indices into columns, filling top to bottom.

        A header that would end a column while its sub-items start the next is
        pushed into the next column, provided the rest still fits.
        """
        n = len(items)
        columns = []
        start = 0
        for col in range(num_columns):
            end = min(start + items_per_column, n)
            is_last = col == num_columns - 1
            if not is_last and end < n and end - start > 1:
                stranded = items[end - 1].is_header and items[end].is_sub_item
                remaining_capacity = (num_columns - col - 1) * items_per_column
                if stranded and n - (end - 1) <= remaining_capacity:
                    end -= 1
            columns.append((start, end))
            start = end
        return tuple(columns)

    def _make_layout(
        self,
        items: tuple[LegendItem, ...],
        num_columns: int,
        column_width: float,
        item_height: int,
        font_size: int,
        symbol_size: int,
        items_per_column: int,
        title_height: int,
        overflow: bool,
    ) -> LegendLayout:
        return LegendLayout(
            num_columns=num_columns,
            column_width=column_width,
            item_height=item_height,
            font_size=font_size,
            symbol_size=symbol_size,
            items_per_column=items_per_column,
            padding=self.PADDING,
            column_gap=self.COLUMN_GAP,
            sub_item_indent=self.SUB_ITEM_INDENT,
            title_height=title_height,
            columns=self._assign_columns(items, num_columns, items_per_column),
            overflow=overflow,
        )
