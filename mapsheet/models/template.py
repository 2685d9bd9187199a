"""Page template models.

A template is pure data: a page size and an ordered list of elements whose
geometry is a percentage of the page. Nothing here knows about DPI until
:meth:`Element.to_pixels` is asked for a concrete page size.
"""

import json
from enum import Enum
from pathlib import Path
from typing import Annotated, Literal, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class PageSize(str, Enum):
    """Named page sizes, plus ``custom``."""

    LETTER_LANDSCAPE = "letter-landscape"
    LETTER_PORTRAIT = "letter-portrait"
    LEGAL_LANDSCAPE = "legal-landscape"
    LEGAL_PORTRAIT = "legal-portrait"
    TABLOID_LANDSCAPE = "tabloid-landscape"
    TABLOID_PORTRAIT = "tabloid-portrait"
    A4_LANDSCAPE = "a4-landscape"
    A4_PORTRAIT = "a4-portrait"
    A3_LANDSCAPE = "a3-landscape"
    A3_PORTRAIT = "a3-portrait"
    CUSTOM = "custom"


# Page dimensions in inches (width, height, label)
PAGE_DIMENSIONS = {
    PageSize.LETTER_LANDSCAPE: (11.0, 8.5, "Letter Landscape"),
    PageSize.LETTER_PORTRAIT: (8.5, 11.0, "Letter Portrait"),
    PageSize.LEGAL_LANDSCAPE: (14.0, 8.5, "Legal Landscape"),
    PageSize.LEGAL_PORTRAIT: (8.5, 14.0, "Legal Portrait"),
    PageSize.TABLOID_LANDSCAPE: (17.0, 11.0, "Tabloid Landscape"),
    PageSize.TABLOID_PORTRAIT: (11.0, 17.0, "Tabloid Portrait"),
    PageSize.A4_LANDSCAPE: (11.69, 8.27, "A4 Landscape"),
    PageSize.A4_PORTRAIT: (8.27, 11.69, "A4 Portrait"),
    PageSize.A3_LANDSCAPE: (16.54, 11.69, "A3 Landscape"),
    PageSize.A3_PORTRAIT: (11.69, 16.54, "A3 Portrait"),
}

DEFAULT_CUSTOM_WIDTH = 11.0
DEFAULT_CUSTOM_HEIGHT = 8.5


class _CamelModel(BaseModel):
    """Accepts both the camelCase keys of stored templates and snake_case."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Align(str, Enum):
    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"


class ScaleUnits(str, Enum):
    FEET = "feet"
    FT = "ft"
    METERS = "meters"
    M = "m"


# ---------------------------------------------------------------------------
# Element content variants
# ---------------------------------------------------------------------------


class TextContent(_CamelModel):
    """Content of a ``text`` element. Font size is in CSS pixels (96 DPI)."""

    text: str = ""
    color: str = "#000000"
    font_size: float = Field(default=12, gt=0)
    font_weight: str = "normal"
    align: Align = Align.LEFT
    background_color: Optional[str] = None

    @field_validator("font_weight", mode="before")
    @classmethod
    def _weight_to_str(cls, value):
        return str(value)

    @property
    def is_bold(self) -> bool:
        weight = self.font_weight.strip().lower()
        if weight.isdigit():
            return int(weight) >= 600
        return weight in ("bold", "bolder")


class TitleContent(TextContent):
    """Content of a ``title`` element."""

    text: str = "Map Title"
    font_size: float = Field(default=24, gt=0)
    font_weight: str = "bold"
    align: Align = Align.CENTER


class LegendContent(_CamelModel):
    title: str = "Legend"
    show_title: bool = True
    background_color: str = "#ffffff"


class ImageContent(_CamelModel):
    url: Optional[str] = None


class ScaleBarContent(_CamelModel):
    # Unrecognised units are kept and labelled in feet
    units: str = ScaleUnits.FEET.value


# ---------------------------------------------------------------------------
# Elements
# ---------------------------------------------------------------------------


class _ElementBase(_CamelModel):
    """Common geometry, as percentages of page width and height."""

    id: Optional[str] = None
    x: float = Field(default=0, ge=0, description="Left edge, % of page width")
    y: float = Field(default=0, ge=0, description="Top edge, % of page height")
    width: float = Field(default=10, ge=0, description="% of page width")
    height: float = Field(default=10, ge=0, description="% of page height")
    visible: bool = True

    def to_pixels(self, page_size: tuple[int, int]) -> tuple[int, int, int, int]:
        """Absolute ``(x, y, width, height)`` on a page of *page_size* pixels."""
        page_w, page_h = page_size
        return (
            round(self.x / 100 * page_w),
            round(self.y / 100 * page_h),
            round(self.width / 100 * page_w),
            round(self.height / 100 * page_h),
        )

    def to_inches(self, page_inches: tuple[float, float]) -> tuple[float, float]:
        """Physical ``(width, height)`` of the element in inches."""
        return (self.width / 100 * page_inches[0], self.height / 100 * page_inches[1])


class MapElement(_ElementBase):
    type: Literal["map"] = "map"


class TitleElement(_ElementBase):
    type: Literal["title"] = "title"
    content: TitleContent = Field(default_factory=TitleContent)


class TextElement(_ElementBase):
    type: Literal["text"] = "text"
    content: TextContent = Field(default_factory=TextContent)


class LegendElement(_ElementBase):
    type: Literal["legend"] = "legend"
    content: LegendContent = Field(default_factory=LegendContent)


class ScaleBarElement(_ElementBase):
    type: Literal["scalebar"] = "scalebar"
    content: ScaleBarContent = Field(default_factory=ScaleBarContent)


class NorthArrowElement(_ElementBase):
    type: Literal["northArrow"] = "northArrow"


class ImageElement(_ElementBase):
    type: Literal["logo", "image"] = "image"
    content: ImageContent = Field(default_factory=ImageContent)


Element = Annotated[
    Union[
        MapElement,
        TitleElement,
        TextElement,
        LegendElement,
        ScaleBarElement,
        NorthArrowElement,
        ImageElement,
    ],
    Field(discriminator="type"),
]


class Template(_CamelModel):
    """A reusable page layout."""

    id: Optional[str] = None
    name: Optional[str] = None
    page_size: PageSize = PageSize.LETTER_LANDSCAPE
    custom_width: Optional[float] = Field(default=None, gt=0, description="Inches, for custom pages")
    custom_height: Optional[float] = Field(default=None, gt=0, description="Inches, for custom pages")
    background_color: str = "#ffffff"
    elements: list[Element] = Field(default_factory=list)

    @property
    def page_inches(self) -> tuple[float, float]:
        """Physical page ``(width, height)`` in inches."""
        if self.page_size == PageSize.CUSTOM:
            return (
                self.custom_width or DEFAULT_CUSTOM_WIDTH,
                self.custom_height or DEFAULT_CUSTOM_HEIGHT,
            )
        width, height, _label = PAGE_DIMENSIONS[self.page_size]
        return (width, height)

    @property
    def page_label(self) -> str:
        if self.page_size == PageSize.CUSTOM:
            width, height = self.page_inches
            return f'Custom ({width:g}"x{height:g}")'
        return PAGE_DIMENSIONS[self.page_size][2]

    @property
    def is_landscape(self) -> bool:
        width, height = self.page_inches
        return width > height

    def page_pixels(self, dpi: int) -> tuple[int, int]:
        """Page size in pixels at *dpi*."""
        width, height = self.page_inches
        return (round(width * dpi), round(height * dpi))

    def map_element(self) -> Optional[MapElement]:
        """The first visible map element, if any."""
        for element in self.elements:
            if isinstance(element, MapElement) and element.visible:
                return element
        return None

    @classmethod
    def from_file(cls, path: Path) -> "Template":
        """Load a template from a YAML or JSON file."""
        path = Path(path)
        with open(path) as f:
            if path.suffix.lower() == ".json":
                data = json.load(f)
            else:
                data = yaml.safe_load(f)
        return cls.model_validate(data)

    def to_yaml(self, path: Path) -> None:
        """Save the template to a YAML file using the stored (camelCase) keys."""
        data = self.model_dump(mode="json", by_alias=True, exclude_none=True)
        with open(path, "w") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)

    @classmethod
    def default(cls, page_size: PageSize = PageSize.LETTER_LANDSCAPE) -> "Template":
        """Starter layout: map, title band, legend, scale bar and a footer note."""
        return cls(
            id="default",
            name="Default Template",
            page_size=page_size,
            elements=[
                MapElement(id="map-1", x=2, y=12, width=65, height=75),
                TitleElement(
                    id="title-1",
                    x=0,
                    y=0,
                    width=100,
                    height=10,
                    content=TitleContent(background_color="#1e293b", color="#ffffff"),
                ),
                LegendElement(id="legend-1", x=70, y=12, width=28, height=60),
                ScaleBarElement(id="scalebar-1", x=45, y=88, width=20, height=4),
                NorthArrowElement(id="north-1", x=70, y=76, width=8, height=10),
                TextElement(
                    id="footer-1",
                    x=0,
                    y=93,
                    width=100,
                    height=7,
                    content=TextContent(
                        text="This map is for informational purposes only.",
                        font_size=10,
                        align=Align.CENTER,
                        background_color="#f8fafc",
                        color="#64748b",
                    ),
                ),
            ],
        )
