"""Compositor: draws every template element onto one page raster."""

import logging
from dataclasses import dataclass, field
from typing import Mapping, Optional, Sequence

from PIL import Image, ImageDraw

from ..config import AppConfig, get_config
from ..errors import MissingMapElement
from ..models.geometry import ExportArea
from ..models.legend import LegendItem, LegendLayout
from ..models.template import (
    ImageElement,
    LegendElement,
    MapElement,
    NorthArrowElement,
    ScaleBarElement,
    Template,
    TextElement,
    TitleElement,
)
from ..utils.image_utils import hex_to_rgba, is_transparent
from .image_service import render_image
from .legend_layout_service import LegendLayoutService
from .legend_service import LegendRenderer
from .marginalia_service import render_north_arrow, render_scale_bar
from .text_service import render_text, render_title

logger = logging.getLogger(__name__)


@dataclass
class CompositionResult:
    """The composed page and what happened while drawing it."""

    image: Image.Image
    warnings: list[str] = field(default_factory=list)
    legend_layout: Optional[LegendLayout] = None


class CompositionService:
    """Composites a template's elements, in document order, onto an RGB page."""

    MAP_BORDER_COLOR = "#000000"

    def __init__(
        self,
        config: Optional[AppConfig] = None,
        layout_service: Optional[LegendLayoutService] = None,
    ):
        self.config = config or get_config()
        self.legend_renderer = LegendRenderer(layout_service)

    def compose(
        self,
        template: Template,
        map_image: Image.Image,
        legend_items: Sequence[LegendItem] = (),
        title: Optional[str] = None,
        export_area: Optional[ExportArea] = None,
        dpi: Optional[int] = None,
        images: Optional[Mapping[int, Image.Image]] = None,
    ) -> CompositionResult:
        """Draw the page.

        Args:
            template: Page layout.
            map_image: Captured map raster for the map element.
            legend_items: Flattened legend entries.
            title: Export title; title elements fall back to their own text.
            export_area: Resolved area; its scale drives scale bars.
            dpi: Output resolution (defaults to the configured export DPI).
            images: Pre-loaded images keyed by element index in
                ``template.elements``.

        Returns:
            CompositionResult with the page and any per-element warnings.

        Raises:
            MissingMapElement: If the template has no visible map element.
        """
        if template.map_element() is None:
            raise MissingMapElement()

        dpi = dpi or self.config.export_dpi
        images = images or {}
        page_size = template.page_pixels(dpi)
        # A transparent page background leaves the paper white
        bg = (255, 255, 255)
        if not is_transparent(template.background_color):
            bg = hex_to_rgba(template.background_color)[:3]
        page = Image.new("RGB", page_size, bg)
        result = CompositionResult(image=page)

        logger.info("Composing %dx%d page (%s, %d dpi)", page_size[0], page_size[1], template.page_label, dpi)

        for index, element in enumerate(template.elements):
            if not element.visible:
                continue
            box = element.to_pixels(page_size)
            if box[2] <= 0 or box[3] <= 0:
                logger.debug("Skipping zero-size %s element %s", element.type, element.id)
                continue

            if isinstance(element, MapElement):
                self._draw_map(page, box, map_image)
                continue

            try:
                if isinstance(element, TitleElement):
                    render_title(page, box, element.content, dpi, text=title)
                elif isinstance(element, TextElement):
                    render_text(page, box, element.content, dpi)
                elif isinstance(element, LegendElement):
                    result.legend_layout = self.legend_renderer.render(page, box, legend_items, element.content)
                elif isinstance(element, ScaleBarElement):
                    if export_area is None:
                        raise ValueError("no export area scale available")
                    render_scale_bar(
                        page,
                        box,
                        export_area.scale,
                        dpi,
                        units=element.content.units,
                        ladder=self.config.nice_numbers,
                    )
                elif isinstance(element, NorthArrowElement):
                    render_north_arrow(page, box)
                elif isinstance(element, ImageElement):
                    image = images.get(index)
                    if image is None and not element.content.url:
                        logger.debug("No image for %s element %s", element.type, element.id or index)
                    elif image is None:
                        result.warnings.append(
                            f"Image for {element.type} element '{element.id or index}' could not be loaded; skipped"
                        )
                        logger.warning("No image for %s element %s; skipped", element.type, element.id or index)
                    else:
                        render_image(page, box, image)
            except Exception as e:
                message = f"Failed to draw {element.type} element '{element.id or index}': {e}"
                logger.warning(message)
                result.warnings.append(message)

        return result

    def _draw_map(self, page: Image.Image, box: tuple[int, int, int, int], map_image: Image.Image) -> None:
        x, y, w, h = box
        raster = map_image
        if raster.size != (w, h):
            raster = raster.resize((w, h), Image.Resampling.LANCZOS)
        if raster.mode == "RGBA":
            page.paste(raster, (x, y), raster)
        else:
            page.paste(raster.convert("RGB"), (x, y))

        draw = ImageDraw.Draw(page)
        draw.rectangle([x, y, x + w - 1, y + h - 1], outline=hex_to_rgba(self.MAP_BORDER_COLOR)[:3], width=1)
