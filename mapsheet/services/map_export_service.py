"""End-to-end export: resolve, capture, compose, encode."""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Optional, Sequence, Union

from PIL import Image

from ..config import AppConfig
from ..errors import CaptureUnavailable, ExportInProgress, InvalidTemplate
from ..models.geometry import ExportArea, Point, Polygon, Polyline
from ..models.legend import LegendItem, LegendLayout
from ..models.template import ImageElement, Template
from .capture_service import CaptureService, MapView
from .composition_service import CompositionService
from .export_service import ExportFormat, ExportService, build_filename
from .legend_service import LegendSource, collect_legend_items
from .scale_service import map_element_inches, resolve_export_area, resolve_feature_export_area
from .session import ExportSession

logger = logging.getLogger(__name__)


@dataclass
class ExportResult:
    """A finished export."""

    data: bytes
    filename: str
    format: ExportFormat
    export_area: ExportArea
    page_size: tuple[int, int]
    warnings: list[str] = field(default_factory=list)
    legend_layout: Optional[LegendLayout] = None

    @property
    def media_type(self) -> str:
        return self.format.media_type


class MapExportService:
    """Runs exports against one map view, one at a time."""

    def __init__(
        self,
        session: ExportSession,
        config: Optional[AppConfig] = None,
        capture_service: Optional[CaptureService] = None,
        export_service: Optional[ExportService] = None,
    ):
        self.session = session
        self.config = config or session.config
        self.capture_service = capture_service or CaptureService(self.config)
        self.composition_service = CompositionService(self.config, session.layout_service)
        self.export_service = export_service or ExportService(self.config)
        self._lock = asyncio.Lock()

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    async def export(
        self,
        template: Template,
        view: Optional[MapView],
        title: Optional[str] = None,
        fmt: Union[ExportFormat, str] = ExportFormat.PDF,
        scale: Optional[float] = None,
        anchor: Optional[tuple[float, float]] = None,
        export_area: Optional[ExportArea] = None,
        legend_items: Optional[Sequence[LegendItem]] = None,
        legend_source: Optional[LegendSource] = None,
        logo_url: Optional[str] = None,
        dpi: Optional[int] = None,
        on: Optional[date] = None,
    ) -> ExportResult:
        """Produce one map sheet.

        Args:
            template: Page layout; must contain a visible map element.
            view: Live map view to capture from.
            title: Map title for title elements and the filename.
            fmt: Output format.
            scale: Ground feet per page inch; ``None`` fits the current view.
            anchor: Center of the export window (defaults to the view center).
            export_area: Pre-resolved area; overrides *scale* and *anchor*.
            legend_items: Legend entries; read from *legend_source* when None.
            legend_source: Provider of visible layers for the legend.
            logo_url: Fallback URL for ``logo`` elements without their own.
            dpi: Output resolution (defaults to the configured export DPI).
            on: Date stamped into the filename (defaults to today).

        Raises:
            ExportInProgress: If another export is running.
            InvalidTemplate: If the template has no usable map element.
            CaptureUnavailable: If there is no view to capture from.
            EncodingError: If the page cannot be encoded.
        """
        if self._lock.locked():
            raise ExportInProgress()

        async with self._lock:
            fmt = ExportFormat.parse(fmt)
            dpi = dpi or self.config.export_dpi
            warnings: list[str] = []

            # Validate before touching the view
            map_element_inches(template)
            page_size = template.page_pixels(dpi)
            _mx, _my, map_w, map_h = template.map_element().to_pixels(page_size)
            if map_w <= 0 or map_h <= 0:
                raise InvalidTemplate(f"Map element is {map_w}x{map_h}px at {dpi} dpi")
            if view is None:
                raise CaptureUnavailable("No map view available to capture")

            area = export_area or resolve_export_area(template, view.get_current_extent(), scale, anchor)
            logger.info(
                "Exporting '%s' as %s: %s, 1in = %.0fft%s",
                title or template.name or "untitled",
                fmt.value,
                template.page_label,
                area.scale,
                " (auto)" if area.is_auto else "",
            )

            capture = await self.capture_service.capture(view, area, (map_w, map_h))
            if not capture.settled:
                warnings.append("Map did not finish loading before capture; some imagery may be missing")

            if legend_items is None:
                legend_items = collect_legend_items(legend_source)

            images = await self._load_images(template, logo_url, warnings)

            composed = self.composition_service.compose(
                template,
                capture.image,
                legend_items=legend_items,
                title=title,
                export_area=area,
                dpi=dpi,
                images=images,
            )
            warnings.extend(composed.warnings)

            data = self.export_service.encode(composed.image, fmt, page_inches=template.page_inches)
            return ExportResult(
                data=data,
                filename=build_filename(title or template.name, fmt, on),
                format=fmt,
                export_area=area,
                page_size=page_size,
                warnings=warnings,
                legend_layout=composed.legend_layout,
            )

    async def export_feature(
        self,
        template: Template,
        view: Optional[MapView],
        geometry: Union[Point, Polyline, Polygon],
        **kwargs,
    ) -> ExportResult:
        """Export a sheet framed on one feature (auto scale around its extent)."""
        area = resolve_feature_export_area(template, geometry)
        return await self.export(template, view, export_area=area, **kwargs)

    async def _load_images(
        self,
        template: Template,
        logo_url: Optional[str],
        warnings: list[str],
    ) -> dict[int, Image.Image]:
        images: dict[int, Image.Image] = {}
        for index, element in enumerate(template.elements):
            if not isinstance(element, ImageElement) or not element.visible:
                continue
            url = element.content.url
            if not url and element.type == "logo":
                url = logo_url
            if not url:
                continue

            image = await self.session.images.load_optional(url)
            if image is not None:
                images[index] = image
            elif not element.content.url:
                warnings.append(f"Logo image {url} could not be loaded; skipped")
        return images
