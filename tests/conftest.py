"""Shared test fixtures."""

import numpy as np
import pytest
from PIL import Image

from mapsheet.config import AppConfig
from mapsheet.models.geometry import Extent
from mapsheet.models.legend import LegendItem, LegendSymbol, SymbolType
from mapsheet.models.template import PageSize, Template
from mapsheet.services.raster_view import GeoRasterView


@pytest.fixture
def test_config(tmp_path):
    """Config with near-instant capture settling and a temp output dir."""
    return AppConfig(
        output_dir=tmp_path / "output",
        settle_delay=0.0,
        settle_timeout=0.05,
        busy_poll_interval=0.01,
    )


@pytest.fixture
def default_template():
    """Letter landscape starter template."""
    return Template.default(PageSize.LETTER_LANDSCAPE)


@pytest.fixture
def map_only_template():
    """Template with just a map element filling most of the page."""
    return Template.model_validate(
        {
            "name": "Map Only",
            "pageSize": "letter-landscape",
            "elements": [{"type": "map", "x": 5, "y": 5, "width": 90, "height": 90}],
        }
    )


@pytest.fixture
def world_extent():
    """World extent covered by the basemap raster (feet)."""
    return Extent(xmin=0, ymin=0, xmax=40000, ymax=40000)


@pytest.fixture
def quadrant_basemap():
    """400x400 basemap with red/green/blue/white quadrants."""
    arr = np.zeros((400, 400, 4), dtype=np.uint8)
    # Red top-left quadrant
    arr[:200, :200] = [255, 0, 0, 255]
    # Green top-right quadrant
    arr[:200, 200:] = [0, 255, 0, 255]
    # Blue bottom-left quadrant
    arr[200:, :200] = [0, 0, 255, 255]
    # White bottom-right quadrant
    arr[200:, 200:] = [255, 255, 255, 255]
    return Image.fromarray(arr, "RGBA")


@pytest.fixture
def raster_view(quadrant_basemap, world_extent):
    """Map view over the quadrant basemap, showing all of it."""
    return GeoRasterView(quadrant_basemap, world_extent, viewport_size=(800, 500))


@pytest.fixture
def solid_red_image():
    """64x64 solid red RGBA image."""
    return Image.new("RGBA", (64, 64), (255, 0, 0, 255))


@pytest.fixture
def small_test_image():
    """32x32 image with some non-trivial content for testing."""
    arr = np.zeros((32, 32, 4), dtype=np.uint8)
    arr[:16, :16] = [255, 0, 0, 255]
    arr[:16, 16:] = [0, 255, 0, 255]
    arr[16:, :16] = [0, 0, 255, 255]
    arr[16:, 16:] = [255, 255, 255, 255]
    return Image.fromarray(arr, "RGBA")


@pytest.fixture
def make_items():
    """Factory for flat legend items with fill swatches."""

    def _make(count: int, label: str = "Item") -> list[LegendItem]:
        return [
            LegendItem(label=f"{label} {i}", symbol=LegendSymbol(type=SymbolType.FILL, color="#3366cc"))
            for i in range(count)
        ]

    return _make


@pytest.fixture
def legend_items():
    """A small mixed legend: one plain layer and a grouped layer."""
    return [
        LegendItem(label="Parcels", symbol=LegendSymbol(color="#ffcc00", outline_color="#333333")),
        LegendItem(label="Zoning", is_header=True),
        LegendItem(label="Residential", symbol=LegendSymbol(color="#ffff00"), is_sub_item=True),
        LegendItem(label="Commercial", symbol=LegendSymbol(color="#ff0000"), is_sub_item=True),
        LegendItem(label="Roads", symbol=LegendSymbol(type=SymbolType.LINE, color="#000000")),
    ]
