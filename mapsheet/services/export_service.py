"""Encoding composed pages to PDF, PNG or JPEG."""

import logging
import re
from datetime import date
from enum import Enum
from io import BytesIO
from pathlib import Path
from typing import Optional, Union

from PIL import Image
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas as pdf_canvas

from ..config import AppConfig, get_config
from ..errors import EncodingError
from ..utils.image_utils import flatten_to_rgb

logger = logging.getLogger(__name__)

POINTS_PER_INCH = 72
DEFAULT_BASENAME = "map_export"

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9]")


class ExportFormat(str, Enum):
    PDF = "pdf"
    PNG = "png"
    JPG = "jpg"

    @classmethod
    def parse(cls, value: Union["ExportFormat", str]) -> "ExportFormat":
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower().lstrip(".")
        if key == "jpeg":
            key = "jpg"
        try:
            return cls(key)
        except ValueError:
            raise ValueError(f"Unsupported export format: {value!r}") from None

    @property
    def extension(self) -> str:
        return self.value

    @property
    def media_type(self) -> str:
        return {
            ExportFormat.PDF: "application/pdf",
            ExportFormat.PNG: "image/png",
            ExportFormat.JPG: "image/jpeg",
        }[self]


def build_filename(title: Optional[str], fmt: Union[ExportFormat, str], on: Optional[date] = None) -> str:
    """``<title>_<YYYY-MM-DD>.<ext>`` with every non-alphanumeric title character replaced by ``_``.

    >>> build_filename("Parcel 12/B", "pdf", date(2024, 3, 5))
    'Parcel_12_B_2024-03-05.pdf'
    """
    fmt = ExportFormat.parse(fmt)
    base = _UNSAFE_CHARS.sub("_", title or "") or DEFAULT_BASENAME
    stamp = (on or date.today()).isoformat()
    return f"{base}_{stamp}.{fmt.extension}"


class ExportService:
    """Encodes a page raster and writes it out."""

    def __init__(self, config: Optional[AppConfig] = None):
        self.config = config or get_config()

    def encode(
        self,
        image: Image.Image,
        fmt: Union[ExportFormat, str],
        page_inches: Optional[tuple[float, float]] = None,
    ) -> bytes:
        """Encode *image* as *fmt*.

        Args:
            image: Composed page.
            fmt: Target format.
            page_inches: Physical page size; required for PDF.

        Returns:
            The encoded file contents.

        Raises:
            EncodingError: If encoding fails.
        """
        fmt = ExportFormat.parse(fmt)
        try:
            if fmt == ExportFormat.PDF:
                if page_inches is None:
                    raise ValueError("PDF export needs the physical page size")
                data = self._encode_pdf(image, page_inches)
            elif fmt == ExportFormat.JPG:
                data = self._encode_jpeg(image)
            else:
                buffer = BytesIO()
                image.save(buffer, format="PNG")
                data = buffer.getvalue()
        except (OSError, ValueError) as e:
            raise EncodingError(f"Could not encode page as {fmt.value.upper()}: {e}") from e

        logger.info("Encoded %dx%d page as %s (%d bytes)", image.width, image.height, fmt.value, len(data))
        return data

    def _encode_jpeg(self, image: Image.Image) -> bytes:
        buffer = BytesIO()
        flatten_to_rgb(image).save(buffer, format="JPEG", quality=self.config.jpeg_quality)
        return buffer.getvalue()

    def _encode_pdf(self, image: Image.Image, page_inches: tuple[float, float]) -> bytes:
        """One page sized to the sheet, the whole raster embedded as a JPEG."""
        width_in, height_in = page_inches
        page_w = width_in * POINTS_PER_INCH
        page_h = height_in * POINTS_PER_INCH
        orientation = "landscape" if width_in > height_in else "portrait"
        logger.debug("PDF page %.2fx%.2fin (%s)", width_in, height_in, orientation)

        buffer = BytesIO()
        pdf = pdf_canvas.Canvas(buffer, pagesize=(page_w, page_h))
        pdf.drawImage(ImageReader(BytesIO(self._encode_jpeg(image))), 0, 0, width=page_w, height=page_h)
        pdf.showPage()
        pdf.save()
        return buffer.getvalue()

    def write(
        self,
        data: bytes,
        filename: str,
        output_dir: Optional[Union[str, Path]] = None,
    ) -> Path:
        """Write encoded *data* under *output_dir* (the configured output directory by default)."""
        directory = Path(output_dir) if output_dir is not None else self.config.output_dir
        path = directory / filename
        try:
            directory.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        except OSError as e:
            raise EncodingError(f"Could not write {path}: {e}") from e
        logger.info("Wrote %s", path)
        return path
