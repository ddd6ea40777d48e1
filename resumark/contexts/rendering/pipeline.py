"""
PDF generation pipeline.

Public entry point of the rendering context:

    artifact = await generate(tree, "Jane Doe", config)

Steps:
1. Resolve the filename (<subject>_Resume.pdf, or the configured default)
2. Sanitize the content tree
3. Load header and watermark concurrently (failures only drop that overlay)
4. Rasterize and composite every page
5. Serialize to a single PDF blob and verify its page count
6. Save a local copy (best-effort)

Each call owns its sanitized tree, decoded assets and page surfaces; nothing is
shared between concurrent calls.
"""

import asyncio
import re
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional

import httpx

from resumark.contexts.authoring.content_tree import ContentTree
from resumark.contexts.rendering.assets import load_overlays
from resumark.contexts.rendering.compositor import compose_document
from resumark.contexts.rendering.config import RenderConfig
from resumark.contexts.rendering.exceptions import ArtifactEncodingFailure
from resumark.contexts.rendering.logger import (
    _log_info,
    _log_warning,
    log_generation_result,
    log_generation_start,
)
from resumark.contexts.rendering.rasterizer import ContentRasterizer, PillowRasterizer
from resumark.contexts.rendering.sanitizer import sanitize
from resumark.utils.event_logging import log_pipeline_event
from resumark.utils.pdf_processing import page_count

FILENAME_SUFFIX = "_Resume.pdf"

# Path separators and control characters (NUL included) never reach the filesystem
UNSAFE_FILENAME_CHARS = re.compile(r"[\\/\x00-\x1f\x7f]")

# Saves a blob under a filename and returns where it went
Saver = Callable[[bytes, str], Path]


@dataclass
class PdfArtifact:
    """
    Finished PDF handed back to the caller.

    Attributes:
        blob: PDF bytes
        filename: Suggested filename
        page_count: Number of pages in the PDF
        missing_overlays: Overlays that could not be loaded and were left out
        saved_path: Where the local copy was written (None if not saved)
        save_error: Why the local save failed (None if it succeeded or was skipped)
    """

    blob: bytes
    filename: str
    page_count: int
    missing_overlays: List[str] = field(default_factory=list)
    saved_path: Optional[Path] = None
    save_error: Optional[str] = None

    @property
    def size_bytes(self) -> int:
        return len(self.blob)


def suggested_filename(filename_hint: Optional[str], default: str = "Resume.pdf") -> str:
    """
    Build the download filename from the subject's name.

    Examples:
        >>> suggested_filename("Jane Doe")
        'Jane Doe_Resume.pdf'
        >>> suggested_filename("   ")
        'Resume.pdf'
        >>> suggested_filename("Jane/Doe")
        'Jane_Doe_Resume.pdf'
    """
    name = (filename_hint or "").strip()
    if not name:
        return default
    name = UNSAFE_FILENAME_CHARS.sub("_", name)
    return f"{name}{FILENAME_SUFFIX}"


class LocalFileSaver:
    """
    Writes PDFs into a directory, creating it if needed.

    Example:
        >>> saver = LocalFileSaver(Path("outs/results"))
        >>> saver(blob, "Jane Doe_Resume.pdf")
        PosixPath('outs/results/Jane Doe_Resume.pdf')
    """

    def __init__(self, output_dir: Path):
        self.output_dir = Path(output_dir)

    def __call__(self, blob: bytes, filename: str) -> Path:
        self.output_dir.mkdir(parents=True, exist_ok=True)
        path = self.output_dir / filename
        path.write_bytes(blob)
        return path


def _save_copy(artifact: PdfArtifact, saver: Saver) -> None:
    """Run the local save; any failure is recorded on the artifact, not raised."""
    try:
        artifact.saved_path = saver(artifact.blob, artifact.filename)
    except Exception as e:
        artifact.save_error = f"{type(e).__name__}: {e}"
        _log_warning(f"Could not save {artifact.filename} locally: {artifact.save_error}")
        return
    _log_info(f"PDF saved to: {artifact.saved_path}")


def _emit_event(events_file: Optional[Path], event_type: str, record_id: str, **extra_fields) -> None:
    """Append a pipeline event; a failed write is logged and never fails the run."""
    try:
        log_pipeline_event(events_file, event_type, record_id, "rendering", **extra_fields)
    except Exception as e:
        _log_warning(f"Could not record {event_type} event in {events_file}: {type(e).__name__}: {e}")


async def generate(
    tree: ContentTree,
    filename_hint: Optional[str],
    config: RenderConfig,
    rasterizer: Optional[ContentRasterizer] = None,
    saver: Optional[Saver] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> PdfArtifact:
    """
    Render a content tree into a PDF with header and watermark on every page.

    Args:
        tree: Caller-owned content tree (not modified)
        filename_hint: Subject name for the filename; blank uses config.default_filename
        config: Render configuration for this call
        rasterizer: Content rasterizer (default: PillowRasterizer built from config)
        saver: Local save action (default: LocalFileSaver(config.output_dir)
            when config.save_locally is true, otherwise no save)
        client: Shared httpx client for URL overlay references

    Returns:
        PdfArtifact, possibly without overlays that failed to load

    Raises:
        RasterizationFailure: If the content could not be rasterized
        ArtifactEncodingFailure: If the pages could not be serialized
    """
    start_time = time.time()
    filename = suggested_filename(filename_hint, config.default_filename)
    geometry = config.geometry
    rasterizer = rasterizer or PillowRasterizer.from_config(config)
    if saver is None and config.save_locally:
        saver = LocalFileSaver(Path(config.output_dir))

    log_generation_start(filename, len(tree.nodes), geometry.width_px, geometry.height_px)

    sanitized = sanitize(tree)
    overlays = await load_overlays(config, client=client)
    document = compose_document(sanitized, geometry, overlays, rasterizer)

    blob = document.to_pdf_bytes(config.dpi)
    encoded_pages = page_count(blob)
    if encoded_pages != document.page_count:
        raise ArtifactEncodingFailure(
            f"Encoded PDF has {encoded_pages} page(s), expected {document.page_count}"
        )

    artifact = PdfArtifact(
        blob=blob,
        filename=filename,
        page_count=document.page_count,
        missing_overlays=overlays.missing(),
    )

    log_generation_result(
        filename,
        artifact.page_count,
        artifact.size_bytes,
        time.time() - start_time,
        missing_overlays=artifact.missing_overlays,
        draw_failures=len(document.draw_failures),
    )
    _emit_event(
        config.events_path,
        "generation_completed",
        tree.subject_name or filename,
        filename=filename,
        page_count=artifact.page_count,
        missing_overlays=artifact.missing_overlays,
        draw_failures=len(document.draw_failures),
    )

    if saver is not None:
        _save_copy(artifact, saver)

    return artifact


def generate_sync(
    tree: ContentTree,
    filename_hint: Optional[str],
    config: RenderConfig,
    rasterizer: Optional[ContentRasterizer] = None,
    saver: Optional[Saver] = None,
) -> PdfArtifact:
    """Blocking wrapper around generate() for callers without an event loop."""
    return asyncio.run(generate(tree, filename_hint, config, rasterizer=rasterizer, saver=saver))
