"""
Overlay asset loading.

Resolves header and watermark references to decoded RGBA images. Loading is
best-effort: any fetch or decode problem yields an UnavailableAsset so the
document is still produced, just without that overlay.

Supported references:
    - data URLs        data:image/png;base64,iVBORw0...
    - http(s) URLs     fetched with httpx
    - file paths       read off the event loop

Raster formats are decoded by Pillow. SVG artwork (data:image/svg+xml, *.svg,
or bytes that sniff as SVG) is first rasterized with cairosvg at the page
width, so vector headers stay sharp when scaled onto the page.

Nothing is cached; each generate() call loads its own assets.
"""

import asyncio
import base64
from dataclasses import dataclass
from io import BytesIO
from pathlib import Path
from typing import List, Optional, Union
from urllib.parse import unquote_to_bytes

import httpx
from PIL import Image

from resumark.contexts.rendering.config import DEFAULT_HTTP_TIMEOUT_S, RenderConfig
from resumark.contexts.rendering.exceptions import AssetLoadFailure, InvalidAssetGeometry
from resumark.contexts.rendering.logger import log_overlay_status

SVG_MIME_TYPE = "image/svg+xml"


@dataclass(frozen=True)
class OverlayAsset:
    """
    Decoded overlay image with opacity already applied to its alpha channel.

    Attributes:
        image: RGBA Pillow image at native size
        native_width: Decoded width in pixels
        native_height: Decoded height in pixels
        opacity: Opacity baked into the alpha channel (0.0-1.0)
        reference: Where the asset came from
    """

    image: Image.Image
    native_width: int
    native_height: int
    opacity: float = 1.0
    reference: str = ""

    def __post_init__(self):
        if self.native_width <= 0 or self.native_height <= 0:
            raise InvalidAssetGeometry(
                f"Overlay has degenerate size {self.native_width}x{self.native_height}px",
                reference=self.reference,
            )

    @property
    def aspect_ratio(self) -> float:
        return self.native_width / self.native_height


@dataclass(frozen=True)
class LoadedAsset:
    """An overlay that decoded successfully."""

    asset: OverlayAsset

    @property
    def available(self) -> bool:
        return True


@dataclass(frozen=True)
class UnavailableAsset:
    """
    An overlay that will be skipped on every page.

    Attributes:
        reference: The reference that failed (None when no overlay was configured)
        failure: Why loading failed (None when no overlay was configured)
    """

    reference: Optional[str] = None
    failure: Optional[AssetLoadFailure] = None

    @property
    def available(self) -> bool:
        return False


AssetResult = Union[LoadedAsset, UnavailableAsset]


@dataclass(frozen=True)
class OverlaySet:
    """Header and watermark load results for one document."""

    header: AssetResult
    watermark: AssetResult

    def missing(self) -> List[str]:
        """Names of overlays that will not be drawn."""
        return [name for name, result in (("header", self.header), ("watermark", self.watermark)) if not result.available]


def _decode_data_url(reference: str) -> bytes:
    """Decode the payload of a data: URL (base64 or percent-encoded)."""
    header, sep, payload = reference.partition(",")
    if not sep:
        raise ValueError("Malformed data URL: missing ',' separator")
    if header.endswith(";base64"):
        return base64.b64decode(payload, validate=True)
    return unquote_to_bytes(payload)


async def _fetch_bytes(reference: str, client: Optional[httpx.AsyncClient], timeout: float) -> bytes:
    if reference.startswith("data:"):
        return _decode_data_url(reference)

    if reference.startswith(("http://", "https://")):
        if client is not None:
            response = await client.get(reference, timeout=timeout)
            response.raise_for_status()
            return response.content
        async with httpx.AsyncClient(timeout=timeout, follow_redirects=True) as own_client:
            response = await own_client.get(reference)
            response.raise_for_status()
            return response.content

    return await asyncio.to_thread(Path(reference).expanduser().read_bytes)


def apply_opacity(image: Image.Image, opacity: float) -> Image.Image:
    """
    Return an RGBA copy of image with its alpha channel scaled by opacity.

    Opacity is clamped to [0, 1]; 1.0 returns an unscaled RGBA copy.
    """
    opacity = min(1.0, max(0.0, float(opacity)))
    rgba = image.convert("RGBA")
    if opacity >= 1.0:
        return rgba
    alpha = rgba.getchannel("A").point(lambda value: round(value * opacity))
    rgba.putalpha(alpha)
    return rgba


def is_svg(reference: str, data: bytes) -> bool:
    """Whether an overlay is SVG, judged by its data URL type, file suffix or leading bytes."""
    if reference.startswith("data:"):
        media_type = reference[len("data:"):].partition(",")[0].split(";")[0]
        if media_type.strip().lower() == SVG_MIME_TYPE:
            return True
    elif reference.split("?")[0].lower().endswith(".svg"):
        return True

    head = data[:1024].lstrip(b"\xef\xbb\xbf \t\r\n").lower()
    return head.startswith(b"<svg") or (head.startswith(b"<?xml") and b"<svg" in head)


def rasterize_svg(data: bytes, output_width: Optional[int] = None) -> bytes:
    """
    Render SVG bytes to PNG bytes.

    Args:
        data: SVG document
        output_width: Target width in pixels; the height follows the SVG's aspect
            ratio. None renders at the SVG's own size.
    """
    # Imported on first use: cairosvg loads the native cairo library on import
    import cairosvg

    return cairosvg.svg2png(bytestring=data, output_width=output_width)


def decode_overlay(
    data: bytes,
    opacity: float = 1.0,
    reference: str = "",
    svg_width: Optional[int] = None,
) -> OverlayAsset:
    """
    Decode image bytes into an OverlayAsset.

    Args:
        data: Raster image or SVG bytes
        opacity: Uniform opacity baked into the alpha channel
        reference: Where the bytes came from (also used to recognise SVG)
        svg_width: Width to render SVG artwork at (None = its own size)

    Raises:
        PIL.UnidentifiedImageError: If the bytes are not a supported image
        InvalidAssetGeometry: If the image has a degenerate size
    """
    if is_svg(reference, data):
        data = rasterize_svg(data, output_width=svg_width)

    with Image.open(BytesIO(data)) as source:
        source.load()
        image = apply_opacity(source, opacity)

    width, height = image.size
    asset = OverlayAsset(
        image=image,
        native_width=width,
        native_height=height,
        opacity=min(1.0, max(0.0, float(opacity))),
        reference=reference,
    )
    return asset


async def load_overlay(
    reference: Optional[str],
    opacity: float = 1.0,
    client: Optional[httpx.AsyncClient] = None,
    timeout: float = DEFAULT_HTTP_TIMEOUT_S,
    svg_width: Optional[int] = None,
) -> AssetResult:
    """
    Load one overlay asset, never raising for fetch or decode problems.

    Args:
        reference: Data URL, http(s) URL or file path (None/blank = no overlay)
        opacity: Uniform opacity baked into the decoded image
        client: Shared httpx client for URL references (one is created if omitted)
        timeout: HTTP timeout in seconds
        svg_width: Width to render SVG artwork at (None = its own size)

    Returns:
        LoadedAsset on success, UnavailableAsset otherwise
    """
    if not reference or not reference.strip():
        return UnavailableAsset()

    try:
        data = await _fetch_bytes(reference, client, timeout)
        asset = decode_overlay(data, opacity=opacity, reference=reference, svg_width=svg_width)
    except Exception as e:
        return UnavailableAsset(reference=reference, failure=AssetLoadFailure(reference, e))

    return LoadedAsset(asset=asset)


async def load_overlays(config: RenderConfig, client: Optional[httpx.AsyncClient] = None) -> OverlaySet:
    """
    Load the header and watermark concurrently.

    A failure in one does not affect the other; both results are logged.

    Args:
        config: Render configuration holding overlay references and opacities
        client: Optional shared httpx client

    Returns:
        OverlaySet with one AssetResult per overlay
    """
    overlays = config.overlays
    svg_width = config.geometry.width_px
    header, watermark = await asyncio.gather(
        load_overlay(overlays.header, overlays.header_opacity, client, config.asset_timeout_s, svg_width),
        load_overlay(overlays.watermark, overlays.watermark_opacity, client, config.asset_timeout_s, svg_width),
    )

    for name, result in (("header", header), ("watermark", watermark)):
        if isinstance(result, LoadedAsset):
            log_overlay_status(name, True, f"({result.asset.native_width}x{result.asset.native_height}px)")
        elif result.failure is not None:
            log_overlay_status(name, False, str(result.failure))
        else:
            log_overlay_status(name, False, "no asset configured")

    return OverlaySet(header=header, watermark=watermark)
