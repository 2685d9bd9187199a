"""Caller-owned resources shared by the exports of one session."""

import logging
from typing import Optional

import httpx

from ..config import AppConfig, get_config
from .image_service import ImageService
from .legend_layout_service import LegendLayoutService

logger = logging.getLogger(__name__)


class ExportSession:
    """Owns the HTTP client for image loads and the legend layout cache.

    Use as an async context manager; the client is closed on exit::

        async with ExportSession() as session:
            result = await MapExportService(session).export(...)
    """

    def __init__(self, config: Optional[AppConfig] = None):
        self.config = config or get_config()
        self.layout_service = LegendLayoutService()
        self._client: Optional[httpx.AsyncClient] = None
        self._images: Optional[ImageService] = None

    async def __aenter__(self) -> "ExportSession":
        self._client = httpx.AsyncClient(timeout=self.config.image_timeout, follow_redirects=True)
        self._images = ImageService(self._client, timeout=self.config.image_timeout)
        logger.debug("Export session opened")
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
            self._images = None
        self.layout_service.clear_cache()
        logger.debug("Export session closed")

    @property
    def is_open(self) -> bool:
        return self._client is not None

    @property
    def images(self) -> ImageService:
        if self._images is None:
            raise RuntimeError("ExportSession is not open; use 'async with ExportSession()'")
        return self._images
