"""Tests for mapsheet.services.composition_service."""

import numpy as np
import pytest
from PIL import Image

from mapsheet.errors import MissingMapElement
from mapsheet.models.geometry import ExportArea
from mapsheet.models.template import Template
from mapsheet.services.composition_service import CompositionService

DPI = 100


@pytest.fixture
def service(test_config):
    return CompositionService(test_config)


@pytest.fixture
def export_area():
    return ExportArea(xmin=0, ymin=0, xmax=5500, ymax=4250, scale=500)


@pytest.fixture
def map_raster():
    return Image.new("RGB", (990, 765), (255, 0, 0))


def _template(*elements, background="#ffffff") -> Template:
    return Template.model_validate(
        {
            "name": "Test",
            "pageSize": "letter-landscape",
            "backgroundColor": background,
            "elements": [{"type": "map", "x": 5, "y": 5, "width": 90, "height": 90}, *elements],
        }
    )


# ---------------------------------------------------------------------------
# Page and map
# ---------------------------------------------------------------------------

class TestPage:
    def test_page_size(self, service, map_only_template, map_raster):
        result = service.compose(map_only_template, map_raster, dpi=DPI)
        assert result.image.size == (1100, 850)
        assert result.image.mode == "RGB"
        assert result.warnings == []

    def test_background_color(self, service, map_raster):
        template = _template(background="#102030")
        result = service.compose(template, map_raster, dpi=DPI)
        assert result.image.getpixel((5, 5)) == (16, 32, 48)

    def test_named_background_color(self, service, map_raster):
        result = service.compose(_template(background="white"), map_raster, dpi=DPI)
        assert result.image.getpixel((5, 5)) == (255, 255, 255)

    def test_transparent_background_is_white(self, service, map_raster):
        result = service.compose(_template(background="transparent"), map_raster, dpi=DPI)
        assert result.image.getpixel((5, 5)) == (255, 255, 255)

    def test_default_dpi_from_config(self, service, map_only_template, map_raster):
        result = service.compose(map_only_template, map_raster)
        assert result.image.size == (1650, 1275)

    def test_missing_map_element(self, service, map_raster):
        template = Template.model_validate({"elements": [{"type": "title"}]})
        with pytest.raises(MissingMapElement):
            service.compose(template, map_raster, dpi=DPI)

    def test_hidden_map_counts_as_missing(self, service, map_raster):
        template = Template.model_validate({"elements": [{"type": "map", "visible": False}]})
        with pytest.raises(MissingMapElement):
            service.compose(template, map_raster, dpi=DPI)


class TestMap:
    def test_map_pasted_with_border(self, service, map_only_template, map_raster):
        arr = np.array(service.compose(map_only_template, map_raster, dpi=DPI).image)
        x, y, w, h = map_only_template.elements[0].to_pixels((1100, 850))
        assert tuple(arr[y + h // 2, x + w // 2]) == (255, 0, 0)
        assert tuple(arr[y + h // 2, x]) == (0, 0, 0)
        assert tuple(arr[y, x + w // 2]) == (0, 0, 0)
        assert tuple(arr[y + h - 1, x + w // 2]) == (0, 0, 0)
        assert tuple(arr[y + h // 2, x - 2]) == (255, 255, 255)

    def test_map_resized_to_box(self, service, map_only_template, small_test_image):
        arr = np.array(service.compose(map_only_template, small_test_image, dpi=DPI).image)
        x, y, w, h = map_only_template.elements[0].to_pixels((1100, 850))
        # Quadrants stretched over the whole element
        assert tuple(arr[y + h // 4, x + w // 4]) == (255, 0, 0)
        assert tuple(arr[y + 3 * h // 4, x + 3 * w // 4]) == (255, 255, 255)


# ---------------------------------------------------------------------------
# Element dispatch
# ---------------------------------------------------------------------------

class TestElements:
    def test_idempotent(self, service, default_template, legend_items, export_area):
        raster = Image.new("RGB", (100, 100), (0, 128, 0))
        first = service.compose(default_template, raster, legend_items, title="Site", export_area=export_area, dpi=DPI)
        second = service.compose(default_template, raster, legend_items, title="Site", export_area=export_area, dpi=DPI)
        assert first.image.tobytes() == second.image.tobytes()
        assert first.warnings == second.warnings == []

    def test_document_order(self, service, map_raster):
        # A text block drawn after the map covers part of it
        template = _template(
            {"type": "text", "x": 10, "y": 10, "width": 20, "height": 20, "content": {"backgroundColor": "#00ff00"}}
        )
        arr = np.array(service.compose(template, map_raster, dpi=DPI).image)
        assert tuple(arr[170, 220]) == (0, 255, 0)

    def test_invisible_element_skipped(self, service, map_raster):
        template = _template(
            {
                "type": "text",
                "x": 10,
                "y": 10,
                "width": 20,
                "height": 20,
                "visible": False,
                "content": {"backgroundColor": "#00ff00"},
            }
        )
        arr = np.array(service.compose(template, map_raster, dpi=DPI).image)
        assert tuple(arr[170, 220]) == (255, 0, 0)

    def test_zero_size_element_skipped(self, service, map_raster):
        template = _template({"type": "northArrow", "x": 10, "y": 10, "width": 0, "height": 20})
        result = service.compose(template, map_raster, dpi=DPI)
        assert result.warnings == []

    def test_legend_layout_reported(self, service, default_template, legend_items, export_area, map_raster):
        result = service.compose(default_template, map_raster, legend_items, export_area=export_area, dpi=DPI)
        assert result.legend_layout is not None
        assert result.legend_layout.num_columns >= 1

    def test_scalebar_without_area_warns(self, service, default_template, map_raster):
        result = service.compose(default_template, map_raster, dpi=DPI)
        assert len(result.warnings) == 1
        assert "scalebar" in result.warnings[0]

    def test_north_arrow_drawn(self, service, map_raster):
        template = _template({"type": "northArrow", "x": 0, "y": 0, "width": 5, "height": 5})
        arr = np.array(service.compose(template, map_raster, dpi=DPI).image)
        assert (arr[0:42, 0:55] == 0).all(axis=2).any()


class TestImageElements:
    def test_preloaded_image_drawn(self, service, map_raster):
        template = _template({"type": "logo", "x": 0, "y": 0, "width": 5, "height": 5, "content": {"url": "logo.png"}})
        logo = Image.new("RGBA", (10, 10), (0, 0, 255, 255))
        result = service.compose(template, map_raster, dpi=DPI, images={1: logo})
        assert result.warnings == []
        assert result.image.getpixel((27, 21)) == (0, 0, 255)

    def test_unloaded_image_warns(self, service, map_raster):
        template = _template(
            {"type": "image", "id": "img-1", "x": 0, "y": 0, "width": 5, "height": 5, "content": {"url": "http://x/a.png"}}
        )
        result = service.compose(template, map_raster, dpi=DPI)
        assert len(result.warnings) == 1
        assert "img-1" in result.warnings[0]
        # The area stays blank
        assert result.image.getpixel((27, 21)) == (255, 255, 255)

    def test_image_without_url_silent(self, service, map_raster):
        template = _template({"type": "image", "x": 0, "y": 0, "width": 5, "height": 5})
        result = service.compose(template, map_raster, dpi=DPI)
        assert result.warnings == []
