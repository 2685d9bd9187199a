"""Capture adapter: a pixel-exact raster of an export area from a live map view."""

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator, Iterable, Optional, Protocol, runtime_checkable

from PIL import Image

from ..config import AppConfig, get_config
from ..errors import CaptureUnavailable
from ..models.geometry import Extent, ExportArea, ScreenRect

logger = logging.getLogger(__name__)


@runtime_checkable
class MapView(Protocol):
    """The map-view capability the capture adapter drives.

    Extent changes and captures are awaitable; the rest are immediate queries
    or toggles on the view.
    """

    def get_current_extent(self) -> Extent: ...

    async def set_extent(self, extent: Extent, animate: bool = False) -> None: ...

    def project_to_screen(self, x: float, y: float) -> tuple[float, float]: ...

    async def capture_region(self, rect: ScreenRect, output_size: tuple[int, int]) -> Image.Image: ...

    def is_busy(self) -> bool: ...

    def is_overlay_visible(self, overlay_id: str) -> bool: ...

    def set_overlay_visible(self, overlay_id: str, visible: bool) -> None: ...


@dataclass
class CaptureResult:
    """Raster of an export area plus how it was obtained."""

    image: Image.Image
    screen_rect: ScreenRect
    settled: bool
    oversample: float


@asynccontextmanager
async def view_lease(view: MapView, hidden_overlays: Iterable[str] = ()) -> AsyncIterator[MapView]:
    """Borrow *view* for the duration of the block.

    Saves the extent and the visibility of *hidden_overlays*, hides those
    overlays, and on exit restores both, whether or not the block raised.
    """
    original_extent = view.get_current_extent()
    original_overlays = {overlay_id: view.is_overlay_visible(overlay_id) for overlay_id in hidden_overlays}
    try:
        for overlay_id in original_overlays:
            view.set_overlay_visible(overlay_id, False)
        yield view
    finally:
        try:
            for overlay_id, visible in original_overlays.items():
                view.set_overlay_visible(overlay_id, visible)
        finally:
            await view.set_extent(original_extent, animate=False)
            logger.debug("Restored view extent %s", original_extent.to_tuple())


async def wait_for_settle(
    view: MapView,
    delay: float = 0.5,
    timeout: float = 5.0,
    poll_interval: float = 0.1,
) -> bool:
    """Wait for the view to finish loading imagery.

    Sleeps a fixed *delay*, then polls ``is_busy`` for at most *timeout*
    seconds.

    Returns:
        True if the view went idle, False if the wait timed out.
    """
    await asyncio.sleep(delay)
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while view.is_busy():
        if loop.time() >= deadline:
            logger.warning("Map view still busy after %.1fs; capturing what has loaded", timeout)
            return False
        await asyncio.sleep(poll_interval)
    return True


def project_extent(view: MapView, extent: Extent) -> ScreenRect:
    """Screen rectangle covered by the four corners of *extent*."""
    corners = [view.project_to_screen(x, y) for x, y in extent.corners]
    return ScreenRect.bounding(corners)


class CaptureService:
    """Drives a :class:`MapView` to capture exactly one export area."""

    def __init__(self, config: Optional[AppConfig] = None):
        self.config = config or get_config()

    async def capture(
        self,
        view: Optional[MapView],
        area: Optional[ExportArea],
        output_size: tuple[int, int],
    ) -> CaptureResult:
        """Capture *area* from *view* as an image of exactly *output_size* pixels.

        Args:
            view: The live map view.
            area: Geographic window to capture.
            output_size: ``(width, height)`` of the returned raster.

        Returns:
            CaptureResult holding the raster and the screen rectangle used.

        Raises:
            CaptureUnavailable: If the view or area is missing, or the area
                projects to an empty screen rectangle.
        """
        if view is None:
            raise CaptureUnavailable("No map view available to capture")
        if area is None:
            raise CaptureUnavailable("No export area defined")

        out_w, out_h = output_size
        if out_w <= 0 or out_h <= 0:
            raise CaptureUnavailable(f"Requested capture size {out_w}x{out_h} is empty")

        async with view_lease(view, [self.config.export_area_overlay_id]):
            await view.set_extent(area.as_extent(), animate=False)
            settled = await wait_for_settle(
                view,
                delay=self.config.settle_delay,
                timeout=self.config.settle_timeout,
                poll_interval=self.config.busy_poll_interval,
            )

            rect = project_extent(view, area)
            if rect.width <= 0 or rect.height <= 0:
                raise CaptureUnavailable("Export area projects to an empty screen rectangle")

            oversample = max(out_w / rect.width, out_h / rect.height)
            logger.info(
                "Capturing screen rect %.0fx%.0f at (%.0f, %.0f) -> %dx%d (oversample %.2f)",
                rect.width,
                rect.height,
                rect.left,
                rect.top,
                out_w,
                out_h,
                oversample,
            )
            image = await view.capture_region(rect, (out_w, out_h))

        if image.size != (out_w, out_h):
            logger.debug("Resampling capture from %s to %s", image.size, (out_w, out_h))
            image = image.resize((out_w, out_h), Image.Resampling.LANCZOS)

        return CaptureResult(image=image, screen_rect=rect, settled=settled, oversample=oversample)
