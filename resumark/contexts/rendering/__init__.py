"""
Rendering Context

Responsibilities:
- Strips on-screen overlay placeholders from content trees
- Rasterizes content into fixed-size A4 pages without splitting atomic units
- Loads header and watermark assets (best-effort) and stamps them onto every page
- Serializes pages into a single PDF and saves a local copy

Owns: Page geometry, overlay placement, PDF generation
Never: Modifies the caller's content tree or talks to the remote store
"""

from resumark.contexts.rendering.config import RenderConfig, load_render_config
from resumark.contexts.rendering.exceptions import (
    ArtifactEncodingFailure,
    AssetLoadFailure,
    InvalidAssetGeometry,
    InvalidPageGeometry,
    OverlayDrawFailure,
    RasterizationFailure,
    RenderError,
    UnsupportedContentError,
)
from resumark.contexts.rendering.pipeline import PdfArtifact, generate, generate_sync

__all__ = [
    # Configuration
    "RenderConfig",
    "load_render_config",
    # Entry points
    "generate",
    "generate_sync",
    "PdfArtifact",
    # Errors
    "RenderError",
    "InvalidAssetGeometry",
    "InvalidPageGeometry",
    "AssetLoadFailure",
    "RasterizationFailure",
    "UnsupportedContentError",
    "OverlayDrawFailure",
    "ArtifactEncodingFailure",
]
