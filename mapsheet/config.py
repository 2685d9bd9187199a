"""Configuration management for map sheet export."""

import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field

# Round scale-bar lengths in ground units (feet)
DEFAULT_NICE_NUMBERS = [10, 20, 25, 50, 100, 200, 250, 500, 1000, 2000, 2500, 5000, 10000, 20000]


class AppConfig(BaseModel):
    """Application-level configuration."""

    # Output
    export_dpi: int = Field(default=150, ge=36, le=600, description="Export resolution (DPI)")
    jpeg_quality: int = Field(
        default=92,
        ge=1,
        le=100,
        description="JPEG quality for JPEG output and the PDF page image",
    )
    output_dir: Path = Field(
        default=Path.cwd() / "output",
        description="Default output directory",
    )

    # Capture
    settle_delay: float = Field(default=0.5, ge=0.0, description="Fixed wait after an extent change (s)")
    settle_timeout: float = Field(default=5.0, ge=0.0, description="Max wait for the view to stop updating (s)")
    busy_poll_interval: float = Field(default=0.1, gt=0.0, description="Busy-flag poll interval (s)")
    export_area_overlay_id: str = Field(
        default="export-area-layer",
        description="Overlay drawing the export area indicator, hidden during capture",
    )

    # Images
    image_timeout: float = Field(default=30.0, gt=0.0, description="Timeout for remote image loads (s)")

    # Scale bar
    nice_numbers: list[int] = Field(
        default_factory=lambda: list(DEFAULT_NICE_NUMBERS),
        description="Ladder of round scale-bar lengths",
    )

    @classmethod
    def load(cls) -> "AppConfig":
        """Load configuration from environment and defaults."""
        defaults = cls.model_fields
        return cls(
            export_dpi=int(os.environ.get("MAPSHEET_EXPORT_DPI", defaults["export_dpi"].default)),
            jpeg_quality=int(os.environ.get("MAPSHEET_JPEG_QUALITY", defaults["jpeg_quality"].default)),
            output_dir=Path(os.environ.get("MAPSHEET_OUTPUT_DIR", str(defaults["output_dir"].default))),
        )


# Global config instance
_config: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """Get or create global configuration."""
    global _config
    if _config is None:
        _config = AppConfig.load()
    return _config
