"""Map sheet export services."""

from .capture_service import CaptureResult, CaptureService, MapView, view_lease
from .composition_service import CompositionResult, CompositionService
from .export_service import ExportFormat, ExportService, build_filename
from .image_service import ImageService
from .legend_layout_service import LegendLayoutService
from .legend_service import LegendRenderer, LegendSource, StaticLegendSource, flatten_layers
from .map_export_service import ExportResult, MapExportService
from .raster_view import GeoRasterView
from .scale_service import resolve_export_area, resolve_feature_export_area
from .session import ExportSession

__all__ = [
    "CaptureResult",
    "CaptureService",
    "MapView",
    "view_lease",
    "CompositionResult",
    "CompositionService",
    "ExportFormat",
    "ExportService",
    "build_filename",
    "ImageService",
    "LegendLayoutService",
    "LegendRenderer",
    "LegendSource",
    "StaticLegendSource",
    "flatten_layers",
    "ExportResult",
    "MapExportService",
    "GeoRasterView",
    "resolve_export_area",
    "resolve_feature_export_area",
    "ExportSession",
]
