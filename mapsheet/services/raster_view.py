"""A map view backed by a georeferenced raster.

``GeoRasterView`` behaves like an interactive map widget of fixed viewport
size: asking it to show an extent makes it show *at least* that extent at the
viewport's own aspect ratio, so the visible extent generally differs from the
requested one. It is what the CLI captures from, and a faithful stand-in for a
live view in tests.
"""

import asyncio
import logging
from pathlib import Path
from typing import Optional, Union

from PIL import Image, ImageDraw

from ..models.geometry import Extent, ScreenRect
from ..utils.image_utils import hex_to_rgba

logger = logging.getLogger(__name__)


class GeoRasterView:
    """Map view over an in-memory image covering *image_extent*."""

    def __init__(
        self,
        image: Image.Image,
        image_extent: Extent,
        viewport_size: tuple[int, int] = (1280, 800),
        extent: Optional[Extent] = None,
        busy_polls: int = 0,
        background: str = "#ffffff",
    ):
        """
        Args:
            image: Basemap raster.
            image_extent: World extent covered by *image*.
            viewport_size: Screen ``(width, height)`` of the view in pixels.
            extent: Initial extent to show; defaults to the whole image.
            busy_polls: How many ``is_busy`` checks report True after each
                extent change (simulates tiles still loading).
            background: Fill for areas outside the raster.
        """
        self.image = image.convert("RGBA")
        self.image_extent = image_extent
        self.viewport_size = viewport_size
        self.busy_polls = busy_polls
        self.background = hex_to_rgba(background)

        self._pending_busy = 0
        self._overlays: dict[str, tuple[Extent, str]] = {}
        self._overlay_visible: dict[str, bool] = {}
        self.extent_history: list[Extent] = []

        self._extent = self._fit_to_viewport(extent or image_extent)

    @classmethod
    def from_file(
        cls,
        path: Union[str, Path],
        image_extent: Extent,
        viewport_size: tuple[int, int] = (1280, 800),
    ) -> "GeoRasterView":
        """Open a basemap image from disk."""
        with Image.open(path) as img:
            image = img.convert("RGBA")
        return cls(image, image_extent, viewport_size=viewport_size)

    # ------------------------------------------------------------------
    # Extent
    # ------------------------------------------------------------------

    @property
    def resolution(self) -> float:
        """World units per screen pixel."""
        return self._extent.width / self.viewport_size[0]

    def _fit_to_viewport(self, requested: Extent) -> Extent:
        vw, vh = self.viewport_size
        res = max(requested.width / vw, requested.height / vh)
        if res <= 0:
            res = self.image_extent.width / vw
        return Extent.from_center(requested.center, vw * res, vh * res)

    def get_current_extent(self) -> Extent:
        return self._extent

    async def set_extent(self, extent: Extent, animate: bool = False) -> None:
        self._extent = self._fit_to_viewport(extent)
        self.extent_history.append(self._extent)
        self._pending_busy = self.busy_polls
        await asyncio.sleep(0)

    def is_busy(self) -> bool:
        if self._pending_busy > 0:
            self._pending_busy -= 1
            return True
        return False

    # ------------------------------------------------------------------
    # Projection
    # ------------------------------------------------------------------

    def project_to_screen(self, x: float, y: float) -> tuple[float, float]:
        res = self.resolution
        return ((x - self._extent.xmin) / res, (self._extent.ymax - y) / res)

    def screen_to_world(self, px: float, py: float) -> tuple[float, float]:
        res = self.resolution
        return (self._extent.xmin + px * res, self._extent.ymax - py * res)

    def _world_to_image(self, x: float, y: float) -> tuple[float, float]:
        img_w, img_h = self.image.size
        ext = self.image_extent
        return (
            (x - ext.xmin) / ext.width * img_w,
            (ext.ymax - y) / ext.height * img_h,
        )

    # ------------------------------------------------------------------
    # Overlays
    # ------------------------------------------------------------------

    def add_overlay(self, overlay_id: str, extent: Extent, color: str = "#004E7C") -> None:
        """Draw an outline around *extent* on every capture while visible."""
        self._overlays[overlay_id] = (extent, color)
        self._overlay_visible[overlay_id] = True

    def is_overlay_visible(self, overlay_id: str) -> bool:
        return self._overlay_visible.get(overlay_id, False)

    def set_overlay_visible(self, overlay_id: str, visible: bool) -> None:
        self._overlay_visible[overlay_id] = visible

    # ------------------------------------------------------------------
    # Capture
    # ------------------------------------------------------------------

    async def capture_region(self, rect: ScreenRect, output_size: tuple[int, int]) -> Image.Image:
        """Resample the world window under *rect* straight to *output_size*."""
        x0, y0 = self._world_to_image(*self.screen_to_world(rect.left, rect.top))
        x1, y1 = self._world_to_image(*self.screen_to_world(rect.right, rect.bottom))

        captured = self.image.transform(
            output_size,
            Image.Transform.EXTENT,
            data=(x0, y0, x1, y1),
            resample=Image.Resampling.BICUBIC,
            fillcolor=self.background,
        )
        self._draw_visible_overlays(captured, rect, output_size)
        await asyncio.sleep(0)
        return captured

    def _draw_visible_overlays(
        self,
        captured: Image.Image,
        rect: ScreenRect,
        output_size: tuple[int, int],
    ) -> None:
        scale_x = output_size[0] / rect.width
        scale_y = output_size[1] / rect.height
        draw = ImageDraw.Draw(captured, "RGBA")
        for overlay_id, (extent, color) in self._overlays.items():
            if not self._overlay_visible.get(overlay_id):
                continue
            corners = []
            for x, y in (extent.corners[0], extent.corners[2]):
                sx, sy = self.project_to_screen(x, y)
                corners.append(((sx - rect.left) * scale_x, (sy - rect.top) * scale_y))
            (left, top), (right, bottom) = corners
            draw.rectangle([left, top, right, bottom], outline=hex_to_rgba(color), width=3)
