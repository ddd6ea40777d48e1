"""
Rendering context logger.

Provides logging interface for rendering context with automatic [render] prefix.
All rendering modules should import from this module, not from utils.logger directly.
"""

from pathlib import Path
from typing import Iterable, Optional

from loguru import logger

from resumark.utils.logger import setup_logger as _setup_logger

CONTEXT_PREFIX = "[render]"


def setup_rendering_logger(log_dir: Path, dpi: Optional[int] = None, verbose: bool = False) -> Path:
    """
    Setup logger for rendering context.

    Args:
        log_dir: Directory for this rendering session
        dpi: Output resolution, recorded in the provenance header
        verbose: Show DEBUG messages on the console too

    Returns:
        Path to log file

    Example:
        from resumark.contexts.rendering.logger import setup_rendering_logger, _log_info

        log_file = setup_rendering_logger(log_dir, dpi=150)
        _log_info("Starting generation...")
    """
    return _setup_logger(
        context_name="render",
        log_dir=log_dir,
        extra_provenance={"DPI": dpi} if dpi is not None else None,
        console_level="DEBUG" if verbose else "INFO",
    )


# Wrapper functions with automatic [render] prefix


def _log_info(message: str) -> None:
    """Log info message with [render] prefix."""
    logger.info(f"{CONTEXT_PREFIX} {message}")


def _log_success(message: str) -> None:
    """Log success message with [render] prefix."""
    logger.success(f"{CONTEXT_PREFIX} {message}")


def _log_error(message: str) -> None:
    """Log error message with [render] prefix."""
    logger.error(f"{CONTEXT_PREFIX} {message}")


def _log_warning(message: str) -> None:
    """Log warning message with [render] prefix."""
    logger.warning(f"{CONTEXT_PREFIX} {message}")


def _log_debug(message: str) -> None:
    """Log debug message with [render] prefix."""
    logger.debug(f"{CONTEXT_PREFIX} {message}")


# High-level rendering-specific logging helpers


def log_generation_start(filename: str, node_count: int, width_px: int, height_px: int) -> None:
    """Log start of a generation run."""
    _log_info(f"Generating {filename}")
    _log_debug(f"  Top-level nodes: {node_count}")
    _log_debug(f"  Page geometry: {width_px}x{height_px}px")


def log_overlay_status(name: str, available: bool, detail: str = "") -> None:
    """Log whether an overlay will be stamped onto the pages."""
    if available:
        _log_debug(f"Overlay '{name}' loaded {detail}".rstrip())
    else:
        _log_warning(f"Overlay '{name}' unavailable, pages will be generated without it")
        if detail:
            _log_debug(f"  {detail}")


def log_generation_result(
    filename: str,
    page_count: int,
    size_bytes: int,
    elapsed_time: float,
    missing_overlays: Iterable[str] = (),
    draw_failures: int = 0,
) -> None:
    """
    Log the outcome of a successful generation.

    Degraded output (missing overlays, per-page draw failures) is reported as
    warnings; the artifact itself is still valid.
    """
    _log_success(f"{filename}: {page_count} page(s), {size_bytes} bytes ({elapsed_time:.2f}s)")

    missing = list(missing_overlays)
    if missing:
        _log_warning(f"Generated without overlays: {', '.join(missing)}")
    if draw_failures:
        _log_warning(f"{draw_failures} overlay draw(s) failed and were skipped")
