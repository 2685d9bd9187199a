"""Projected extents, screen rectangles and feature geometry."""

from dataclasses import dataclass
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter, model_validator
from shapely.geometry import LineString, MultiLineString, MultiPolygon
from shapely.geometry import Point as ShapelyPoint
from shapely.geometry import Polygon as ShapelyPolygon
from shapely.geometry.base import BaseGeometry


class Extent(BaseModel):
    """Axis-aligned rectangle in the map's projected coordinate system."""

    xmin: float
    ymin: float
    xmax: float
    ymax: float

    @model_validator(mode="after")
    def _check_order(self) -> "Extent":
        if self.xmax < self.xmin or self.ymax < self.ymin:
            raise ValueError("Extent max must not be less than min")
        return self

    @property
    def width(self) -> float:
        return self.xmax - self.xmin

    @property
    def height(self) -> float:
        return self.ymax - self.ymin

    @property
    def center(self) -> tuple[float, float]:
        """Return center point (x, y)."""
        return ((self.xmin + self.xmax) / 2, (self.ymin + self.ymax) / 2)

    @property
    def corners(self) -> list[tuple[float, float]]:
        """Corners in order top-left, top-right, bottom-right, bottom-left."""
        return [
            (self.xmin, self.ymax),
            (self.xmax, self.ymax),
            (self.xmax, self.ymin),
            (self.xmin, self.ymin),
        ]

    @classmethod
    def from_center(cls, center: tuple[float, float], width: float, height: float) -> "Extent":
        cx, cy = center
        return cls(
            xmin=cx - width / 2,
            ymin=cy - height / 2,
            xmax=cx + width / 2,
            ymax=cy + height / 2,
        )

    @classmethod
    def from_bounds(cls, bounds: tuple[float, float, float, float]) -> "Extent":
        """Build from a shapely-style ``(minx, miny, maxx, maxy)`` tuple."""
        xmin, ymin, xmax, ymax = bounds
        return cls(xmin=xmin, ymin=ymin, xmax=xmax, ymax=ymax)

    def expand(self, factor: float) -> "Extent":
        """Scale width and height by *factor* about the center."""
        return Extent.from_center(self.center, self.width * factor, self.height * factor)

    def to_tuple(self) -> tuple[float, float, float, float]:
        """Return as (xmin, ymin, xmax, ymax) tuple."""
        return (self.xmin, self.ymin, self.xmax, self.ymax)


class ExportArea(Extent):
    """The geographic window captured for a template's map element.

    ``scale`` is ground units (feet) per page inch.
    """

    scale: float = Field(..., gt=0, description="Ground units per page inch")
    is_auto: bool = Field(default=False, description="Scale derived from the view extent")

    def as_extent(self) -> Extent:
        return Extent(xmin=self.xmin, ymin=self.ymin, xmax=self.xmax, ymax=self.ymax)


@dataclass(frozen=True)
class ScreenRect:
    """Rectangle in view (screen) pixels."""

    left: float
    top: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.left + self.width

    @property
    def bottom(self) -> float:
        return self.top + self.height

    @property
    def aspect_ratio(self) -> float:
        return self.width / self.height if self.height else 0.0

    @classmethod
    def bounding(cls, points: list[tuple[float, float]]) -> "ScreenRect":
        """Smallest rectangle containing every point."""
        xs = [p[0] for p in points]
        ys = [p[1] for p in points]
        return cls(left=min(xs), top=min(ys), width=max(xs) - min(xs), height=max(ys) - min(ys))


# ---------------------------------------------------------------------------
# Feature geometry
# ---------------------------------------------------------------------------


class Point(BaseModel):
    kind: Literal["point"] = "point"
    x: float
    y: float

    def to_shapely(self) -> BaseGeometry:
        return ShapelyPoint(self.x, self.y)


class Polyline(BaseModel):
    kind: Literal["polyline"] = "polyline"
    paths: list[list[tuple[float, float]]] = Field(..., min_length=1)

    def to_shapely(self) -> BaseGeometry:
        return MultiLineString([LineString(path) for path in self.paths])


class Polygon(BaseModel):
    kind: Literal["polygon"] = "polygon"
    rings: list[list[tuple[float, float]]] = Field(..., min_length=1)

    def to_shapely(self) -> BaseGeometry:
        return MultiPolygon([ShapelyPolygon(ring) for ring in self.rings])


Geometry = Annotated[Union[Point, Polyline, Polygon], Field(discriminator="kind")]

_geometry_adapter: TypeAdapter = TypeAdapter(Geometry)


def parse_geometry(raw: dict[str, Any]) -> Union[Point, Polyline, Polygon]:
    """Decide a feature geometry's kind once, at ingestion.

    Accepts either an already tagged mapping (with ``kind``) or Esri-style JSON
    where the kind is implied by the presence of ``rings``, ``paths`` or ``x``/``y``.

    Raises:
        ValueError: If the mapping matches none of the known shapes.
    """
    data = dict(raw)
    kind: Optional[str] = data.get("kind")
    if kind is None:
        if "rings" in data:
            kind = "polygon"
        elif "paths" in data:
            kind = "polyline"
        elif "x" in data and "y" in data:
            kind = "point"
        else:
            raise ValueError("Unrecognised geometry: expected rings, paths or x/y")
        data["kind"] = kind
    data.pop("spatialReference", None)
    return _geometry_adapter.validate_python(data)
