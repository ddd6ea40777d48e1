"""
Page compositing.

Rasterizes sanitized content through a ContentRasterizer, then stamps the
header band and the watermark onto every resulting page. Overlays are drawn
after the content, so they always sit on top of it.

Page count and order are fixed once rasterization returns; compositing only
changes pixels. An overlay that fails to draw on one page is logged and
skipped for that page alone.
"""

from dataclasses import dataclass, field
from io import BytesIO
from typing import Callable, List, Optional, Sequence, Tuple

from PIL import Image

from resumark.contexts.authoring.content_tree import ContentTree
from resumark.contexts.rendering.assets import LoadedAsset, OverlayAsset, OverlaySet
from resumark.contexts.rendering.exceptions import (
    ArtifactEncodingFailure,
    OverlayDrawFailure,
    RasterizationFailure,
)
from resumark.contexts.rendering.geometry import (
    PageGeometry,
    PlacementRect,
    header_placement,
    watermark_placement,
)
from resumark.contexts.rendering.logger import _log_debug, _log_warning
from resumark.contexts.rendering.rasterizer import ContentRasterizer, RasterizeOptions

# Drawing order on each page: header first, then watermark
OVERLAY_PLACEMENTS: Tuple[Tuple[str, Callable[[PageGeometry, float], PlacementRect]], ...] = (
    ("header", header_placement),
    ("watermark", watermark_placement),
)


@dataclass
class Page:
    """
    One page surface of a generated document.

    Attributes:
        number: 1-indexed page number
        surface: RGB Pillow image at the document's page geometry
        overlays: Names of overlays successfully drawn onto this page
    """

    number: int
    surface: Image.Image
    overlays: List[str] = field(default_factory=list)


@dataclass
class GeneratedDocument:
    """
    Composited pages ready for serialization.

    Attributes:
        pages: Pages in order (tuple: the sequence is fixed after rasterization)
        geometry: Page size shared by every page
        draw_failures: Overlay draws that failed and were skipped
    """

    pages: Tuple[Page, ...]
    geometry: PageGeometry
    draw_failures: List[OverlayDrawFailure] = field(default_factory=list)

    @property
    def page_count(self) -> int:
        return len(self.pages)

    def to_pdf_bytes(self, dpi: int) -> bytes:
        """
        Serialize all pages into one PDF blob.

        Args:
            dpi: Resolution recorded in the PDF, so pages come out at A4 size

        Raises:
            ArtifactEncodingFailure: If Pillow cannot encode the pages
        """
        surfaces = [page.surface.convert("RGB") for page in self.pages]
        buffer = BytesIO()
        try:
            surfaces[0].save(
                buffer,
                format="PDF",
                save_all=True,
                append_images=surfaces[1:],
                resolution=float(dpi),
            )
        except (OSError, ValueError) as e:
            raise ArtifactEncodingFailure(f"Could not encode {len(surfaces)} page(s) as PDF: {e}") from e
        return buffer.getvalue()


def rasterize_content(
    tree: ContentTree,
    geometry: PageGeometry,
    rasterizer: ContentRasterizer,
    options: Optional[RasterizeOptions] = None,
) -> List[Image.Image]:
    """
    Run the rasterizer and check its output contract.

    Args:
        tree: Sanitized content tree
        geometry: Page size every returned surface must have
        rasterizer: Content rasterizer to delegate to
        options: Defaults to avoiding splits of atomic units

    Returns:
        Page surfaces in order (at least one)

    Raises:
        RasterizationFailure: If the rasterizer raises, returns no pages, or
            returns a page with the wrong size
    """
    options = options or RasterizeOptions(avoid_splitting_atomic_units=True)
    try:
        surfaces = list(rasterizer.rasterize(tree, geometry, options))
    except RasterizationFailure:
        raise
    except Exception as e:
        raise RasterizationFailure("Content rasterizer failed", original_error=e) from e

    if not surfaces:
        raise RasterizationFailure("Content rasterizer returned no pages")

    for number, surface in enumerate(surfaces, start=1):
        if tuple(surface.size) != geometry.size:
            raise RasterizationFailure(
                f"Page {number} is {surface.size[0]}x{surface.size[1]}px, "
                f"expected {geometry.width_px}x{geometry.height_px}px"
            )

    return surfaces


def visible_region(rect: PlacementRect, page_size: Tuple[int, int]) -> Optional[Tuple[int, int, int, int]]:
    """
    Intersect a placement with the page.

    Returns:
        Integer (left, top, right, bottom) of the on-page part, or None when the
        placement lies entirely off the page
    """
    left, top, width, height = rect.to_box()
    page_width, page_height = page_size
    visible = (max(0, left), max(0, top), min(page_width, left + width), min(page_height, top + height))
    if visible[2] <= visible[0] or visible[3] <= visible[1]:
        return None
    return visible


def draw_overlay(surface: Image.Image, asset: OverlayAsset, rect: PlacementRect) -> None:
    """
    Draw one overlay onto one page surface in place.

    The asset is scaled to the placement size and alpha-blended using its own
    alpha channel (which already carries the overlay's opacity). Only the
    part that lands on the page is resampled, so an overlay far wider than the
    page costs no more than a page-sized image.
    """
    visible = visible_region(rect, surface.size)
    if visible is None:
        return

    left, top, width, height = rect.to_box()
    scale_x = asset.native_width / width
    scale_y = asset.native_height / height
    vis_left, vis_top, vis_right, vis_bottom = visible
    source_box = (
        (vis_left - left) * scale_x,
        (vis_top - top) * scale_y,
        (vis_right - left) * scale_x,
        (vis_bottom - top) * scale_y,
    )
    scaled = asset.image.resize(
        (vis_right - vis_left, vis_bottom - vis_top),
        Image.Resampling.LANCZOS,
        box=source_box,
    )
    surface.paste(scaled, (vis_left, vis_top), scaled)


def _apply_page_overlays(
    page: Page,
    geometry: PageGeometry,
    overlays: OverlaySet,
    failures: List[OverlayDrawFailure],
) -> None:
    for name, placement in OVERLAY_PLACEMENTS:
        result = getattr(overlays, name)
        if not isinstance(result, LoadedAsset):
            continue
        try:
            rect = placement(geometry, result.asset.aspect_ratio)
            draw_overlay(page.surface, result.asset, rect)
        except Exception as e:
            failure = OverlayDrawFailure(name, page.number, e)
            failures.append(failure)
            _log_warning(str(failure))
            continue
        page.overlays.append(name)


def composite_pages(
    surfaces: Sequence[Image.Image],
    geometry: PageGeometry,
    overlays: OverlaySet,
) -> GeneratedDocument:
    """
    Stamp available overlays onto every page.

    Args:
        surfaces: Rasterized page surfaces, in order
        geometry: Page size shared by all surfaces
        overlays: Header and watermark load results

    Returns:
        GeneratedDocument wrapping the same surfaces, now composited
    """
    pages = tuple(Page(number=number, surface=surface) for number, surface in enumerate(surfaces, start=1))
    failures: List[OverlayDrawFailure] = []

    for page in pages:
        _apply_page_overlays(page, geometry, overlays, failures)
        _log_debug(f"Page {page.number}/{len(pages)} overlays: {', '.join(page.overlays) or 'none'}")

    return GeneratedDocument(pages=pages, geometry=geometry, draw_failures=failures)


def compose_document(
    tree: ContentTree,
    geometry: PageGeometry,
    overlays: OverlaySet,
    rasterizer: ContentRasterizer,
) -> GeneratedDocument:
    """
    Rasterize a sanitized tree and composite overlays onto its pages.

    Raises:
        RasterizationFailure: If rasterization fails (no partial document)
    """
    surfaces = rasterize_content(tree, geometry, rasterizer)
    return composite_pages(surfaces, geometry, overlays)
