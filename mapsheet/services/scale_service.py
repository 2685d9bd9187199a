"""Scale resolution: from a ground scale (or auto-fit) to an export area."""

import logging
from typing import Optional, Union

from ..errors import InvalidTemplate, MissingMapElement
from ..models.geometry import Extent, ExportArea, Point, Polygon, Polyline
from ..models.template import Template

logger = logging.getLogger(__name__)

# Buffer around a point feature, in map units
POINT_BUFFER = 500.0

# Polygon/polyline extents are expanded by this factor to leave context
FEATURE_EXPAND_FACTOR = 1.5


def map_element_inches(template: Template) -> tuple[float, float]:
    """Physical ``(width, height)`` of the template's map element.

    Raises:
        MissingMapElement: If the template has no visible map element.
        InvalidTemplate: If the map element has zero width or height.
    """
    element = template.map_element()
    if element is None:
        raise MissingMapElement()

    width_in, height_in = element.to_inches(template.page_inches)
    if width_in <= 0 or height_in <= 0:
        raise InvalidTemplate(
            f"Map element has degenerate size {element.width:g}% x {element.height:g}% of the page"
        )
    return width_in, height_in


def resolve_export_area(
    template: Template,
    view_extent: Extent,
    scale: Optional[float] = None,
    anchor: Optional[tuple[float, float]] = None,
) -> ExportArea:
    """Derive the geographic window captured for the map element.

    Args:
        template: Page template with a map element.
        view_extent: The map view's current visible extent.
        scale: Ground units (feet) per page inch, or ``None`` to fit the view.
        anchor: Center of the window; defaults to the view center.

    Returns:
        ExportArea whose aspect ratio equals the map element's.

    Raises:
        InvalidTemplate: If the map element is missing or degenerate.
        ValueError: If *scale* is not positive.
    """
    width_in, height_in = map_element_inches(template)
    center = anchor if anchor is not None else view_extent.center

    if scale is not None:
        if scale <= 0:
            raise ValueError(f"Scale must be positive, got {scale}")
        area = ExportArea(
            **Extent.from_center(center, width_in * scale, height_in * scale).model_dump(),
            scale=scale,
        )
        logger.debug("Fixed scale %.2f ft/in -> %.1f x %.1f", scale, area.width, area.height)
        return area

    # Auto: the smallest scale at which the map element shows the whole view
    scale_x = view_extent.width / width_in
    scale_y = view_extent.height / height_in
    auto_scale = max(scale_x, scale_y)
    if auto_scale <= 0:
        raise InvalidTemplate("Current view extent is empty; cannot fit the map element to it")

    area = ExportArea(
        **Extent.from_center(center, width_in * auto_scale, height_in * auto_scale).model_dump(),
        scale=auto_scale,
        is_auto=True,
    )
    logger.debug("Auto scale %.2f ft/in from view %.1f x %.1f", auto_scale, view_extent.width, view_extent.height)
    return area


def extent_for_geometry(geometry: Union[Point, Polyline, Polygon]) -> Extent:
    """Frame a feature: a buffered point, or its bounds expanded for context."""
    if isinstance(geometry, Point):
        return Extent.from_center((geometry.x, geometry.y), 2 * POINT_BUFFER, 2 * POINT_BUFFER)

    bounds = Extent.from_bounds(geometry.to_shapely().bounds)
    if bounds.width == 0 and bounds.height == 0:
        return Extent.from_center(bounds.center, 2 * POINT_BUFFER, 2 * POINT_BUFFER)
    return bounds.expand(FEATURE_EXPAND_FACTOR)


def resolve_feature_export_area(
    template: Template,
    geometry: Union[Point, Polyline, Polygon],
) -> ExportArea:
    """Export area centered on a feature, scaled so the whole feature fits."""
    return resolve_export_area(template, extent_for_geometry(geometry))
