"""Error taxonomy for the rendering context."""

from typing import Optional


class RenderError(Exception):
    """Base class for all rendering-context errors."""


class InvalidAssetGeometry(RenderError, ValueError):
    """
    Raised when an overlay's aspect ratio cannot be placed on a page.

    A zero, negative or non-finite aspect ratio is rejected before any
    placement math runs. Only the affected overlay is dropped.

    Attributes:
        aspect_ratio: The rejected aspect ratio
        reference: Overlay reference the ratio came from, when known
    """

    def __init__(self, message: str, aspect_ratio: Optional[float] = None, reference: Optional[str] = None):
        self.message = message
        self.aspect_ratio = aspect_ratio
        self.reference = reference

        parts = [message]
        if aspect_ratio is not None:
            parts.append(f"Aspect ratio: {aspect_ratio!r}")
        if reference:
            parts.append(f"Asset: {_shorten(reference)}")

        super().__init__("\n".join(parts))


class InvalidPageGeometry(RenderError, ValueError):
    """
    Raised when the configured page size (or resolution) has no pixels.

    This is a configuration error: no document can be laid out, so it is
    raised before any content or asset work starts.

    Attributes:
        width_px: Rejected page width
        height_px: Rejected page height
    """

    def __init__(self, width_px: int, height_px: int):
        self.width_px = width_px
        self.height_px = height_px
        super().__init__(f"Page size must be positive, got {width_px}x{height_px}px")


class AssetLoadFailure(RenderError):
    """
    An overlay asset could not be fetched or decoded.

    Recovered: carried inside UnavailableAsset, never raised out of generate().

    Attributes:
        reference: The asset reference (path, URL or data URL)
        original_error: The underlying I/O, HTTP or decode error
    """

    def __init__(self, reference: str, original_error: Optional[BaseException] = None):
        self.reference = reference
        self.original_error = original_error

        message = f"Failed to load overlay asset: {_shorten(reference)}"
        if original_error is not None:
            message += f"\nOriginal error: {type(original_error).__name__}: {original_error}"

        super().__init__(message)


class RasterizationFailure(RenderError):
    """
    The content rasterizer failed or violated its contract. Fatal.

    Attributes:
        message: Error description
        original_error: Exception raised by the rasterizer, if any
    """

    def __init__(self, message: str, original_error: Optional[BaseException] = None):
        self.message = message
        self.original_error = original_error

        parts = [message]
        if original_error is not None:
            parts.append(f"Original error: {type(original_error).__name__}: {original_error}")

        super().__init__("\n".join(parts))


class UnsupportedContentError(RasterizationFailure):
    """
    An atomic content unit is taller than the page content area.

    Such a unit can neither be split nor placed, so the document is rejected
    rather than silently overflowing the page.

    Attributes:
        unit_height: Height of the offending unit in pixels
        capacity: Available content height per page in pixels
        excerpt: Leading text of the unit, for diagnostics
    """

    def __init__(self, unit_height: float, capacity: float, excerpt: str = ""):
        self.unit_height = unit_height
        self.capacity = capacity
        self.excerpt = excerpt

        message = (
            f"Atomic content unit is {unit_height:.0f}px tall but a page holds only "
            f"{capacity:.0f}px of content"
        )
        if excerpt:
            message += f": {excerpt[:60]!r}"

        super().__init__(message)


class OverlayDrawFailure(RenderError):
    """
    Drawing one overlay onto one page failed. Recovered per page.

    Attributes:
        overlay: Overlay name ("header" or "watermark")
        page_number: 1-indexed page the draw failed on
        original_error: The underlying drawing error
    """

    def __init__(self, overlay: str, page_number: int, original_error: Optional[BaseException] = None):
        self.overlay = overlay
        self.page_number = page_number
        self.original_error = original_error

        message = f"Failed to draw {overlay} on page {page_number}"
        if original_error is not None:
            message += f": {type(original_error).__name__}: {original_error}"

        super().__init__(message)


class ArtifactEncodingFailure(RenderError):
    """The composited pages could not be serialized into a valid PDF. Fatal."""


def _shorten(reference: str, limit: int = 80) -> str:
    """Truncate long references (data URLs) for error messages."""
    return reference if len(reference) <= limit else reference[:limit] + "..."
