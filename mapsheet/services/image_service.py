"""Loading and placing logo/image elements."""

import base64
import logging
from io import BytesIO
from pathlib import Path
from typing import Optional
from urllib.parse import unquote_to_bytes

import httpx
from PIL import Image, UnidentifiedImageError

from ..utils.image_utils import paste_fitted

logger = logging.getLogger(__name__)


class ImageLoadError(Exception):
    """An image URL could not be fetched or decoded."""


def _decode_data_url(url: str) -> bytes:
    header, sep, payload = url.partition(",")
    if not sep:
        raise ImageLoadError("Malformed data URL")
    if header.endswith(";base64"):
        try:
            return base64.b64decode(payload, validate=False)
        except ValueError as e:
            raise ImageLoadError(f"Bad base64 payload: {e}") from e
    return unquote_to_bytes(payload)


class ImageService:
    """Fetches element images over HTTP(S), from ``data:`` URLs or from disk."""

    def __init__(self, client: Optional[httpx.AsyncClient] = None, timeout: float = 30.0):
        self._client = client
        self.timeout = timeout

    async def fetch_bytes(self, url: str) -> bytes:
        """Raw bytes behind *url*.

        Raises:
            ImageLoadError: If the resource cannot be read.
        """
        if url.startswith("data:"):
            return _decode_data_url(url)

        if url.startswith(("http://", "https://")):
            try:
                if self._client is not None:
                    response = await self._client.get(url, timeout=self.timeout)
                else:
                    async with httpx.AsyncClient(timeout=self.timeout) as client:
                        response = await client.get(url)
                response.raise_for_status()
            except (httpx.HTTPError, httpx.InvalidURL) as e:
                raise ImageLoadError(f"{url}: {e}") from e
            return response.content

        path = Path(url[len("file://"):] if url.startswith("file://") else url)
        try:
            return path.read_bytes()
        except (OSError, ValueError) as e:
            raise ImageLoadError(f"{url}: {e}") from e

    async def load(self, url: str) -> Image.Image:
        """Fetch and decode *url* into an RGBA image.

        Raises:
            ImageLoadError: If the resource cannot be fetched or decoded.
        """
        data = await self.fetch_bytes(url)
        try:
            with Image.open(BytesIO(data)) as img:
                return img.convert("RGBA")
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as e:
            raise ImageLoadError(f"{url}: not a readable image ({e})") from e

    async def load_optional(self, url: Optional[str]) -> Optional[Image.Image]:
        """Like :meth:`load`, but logs and returns None on failure."""
        if not url:
            return None
        try:
            return await self.load(url)
        except ImageLoadError as e:
            logger.warning("Failed to load image %s", e)
            return None


def render_image(
    canvas: Image.Image,
    box: tuple[int, int, int, int],
    image: Image.Image,
) -> tuple[int, int, int, int]:
    """Aspect-fit *image* into *box*, letterboxed and centred."""
    return paste_fitted(canvas, image, box)
