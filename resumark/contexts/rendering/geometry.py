"""
Overlay placement geometry.

Pure functions computing where the header band and the watermark land on a
page, given the page's pixel size and the overlay's native aspect ratio.
Every placement preserves the overlay's aspect ratio.
"""

import math
from dataclasses import dataclass

from resumark.contexts.rendering.exceptions import InvalidAssetGeometry, InvalidPageGeometry

# A4 portrait, the only supported output format
A4_WIDTH_MM = 210.0
A4_HEIGHT_MM = 297.0
MM_PER_INCH = 25.4

# Header artwork is 120pt tall on an A4 page measured in points (595 x 842)
HEADER_DESIGN_HEIGHT = 120.0
REFERENCE_PAGE_HEIGHT = 842.0

# Watermark spans 60% of the page width, centered on both axes
WATERMARK_WIDTH_FRACTION = 0.6


@dataclass(frozen=True)
class PageGeometry:
    """
    Pixel size of every page of one document.

    Attributes:
        width_px: Page width in pixels
        height_px: Page height in pixels
    """

    width_px: int
    height_px: int

    def __post_init__(self):
        if self.width_px <= 0 or self.height_px <= 0:
            raise InvalidPageGeometry(self.width_px, self.height_px)

    @classmethod
    def a4(cls, dpi: int) -> "PageGeometry":
        """A4 portrait page at the given resolution (e.g., 150 dpi -> 1240x1754px)."""
        return cls(
            width_px=round(A4_WIDTH_MM / MM_PER_INCH * dpi),
            height_px=round(A4_HEIGHT_MM / MM_PER_INCH * dpi),
        )

    @property
    def size(self) -> tuple:
        """(width, height) tuple as Pillow expects it."""
        return (self.width_px, self.height_px)

    def mm_to_px(self, mm: float) -> float:
        """Convert millimetres to pixels at this page's horizontal scale."""
        return mm * self.width_px / A4_WIDTH_MM


@dataclass(frozen=True)
class PlacementRect:
    """
    Overlay placement in page pixel coordinates (origin top-left).

    Attributes:
        x: Left edge
        y: Top edge
        width: Drawn width
        height: Drawn height
    """

    x: float
    y: float
    width: float
    height: float

    def to_box(self) -> tuple:
        """
        Integer (left, top, width, height) for raster drawing.

        Width and height are at least one pixel so tiny overlays never vanish.
        """
        return (
            int(round(self.x)),
            int(round(self.y)),
            max(1, int(round(self.width))),
            max(1, int(round(self.height))),
        )


def validate_aspect_ratio(aspect_ratio: float) -> float:
    """
    Reject aspect ratios that would produce NaN or infinite placements.

    Raises:
        InvalidAssetGeometry: If aspect_ratio is not a finite number > 0
    """
    try:
        ratio = float(aspect_ratio)
    except (TypeError, ValueError) as e:
        raise InvalidAssetGeometry("Aspect ratio is not a number", aspect_ratio=None) from e

    if not math.isfinite(ratio) or ratio <= 0:
        raise InvalidAssetGeometry("Aspect ratio must be finite and positive", aspect_ratio=ratio)

    return ratio


def header_placement(geometry: PageGeometry, aspect_ratio: float) -> PlacementRect:
    """
    Top band anchored at the page's top-left corner.

    The height is a constant proportion of the page height, so the header looks
    the same at any output resolution; the width follows the aspect ratio.

    Args:
        geometry: Page size
        aspect_ratio: Header artwork width / height

    Returns:
        PlacementRect at (0, 0)
    """
    ratio = validate_aspect_ratio(aspect_ratio)
    height = HEADER_DESIGN_HEIGHT / REFERENCE_PAGE_HEIGHT * geometry.height_px
    return PlacementRect(x=0.0, y=0.0, width=height * ratio, height=height)


def watermark_placement(geometry: PageGeometry, aspect_ratio: float) -> PlacementRect:
    """
    Watermark centered on both axes at 60% of the page width.

    Args:
        geometry: Page size
        aspect_ratio: Watermark artwork width / height

    Returns:
        PlacementRect whose center is the page center
    """
    ratio = validate_aspect_ratio(aspect_ratio)
    width = geometry.width_px * WATERMARK_WIDTH_FRACTION
    height = width / ratio
    return PlacementRect(
        x=(geometry.width_px - width) / 2,
        y=(geometry.height_px - height) / 2,
        width=width,
        height=height,
    )
