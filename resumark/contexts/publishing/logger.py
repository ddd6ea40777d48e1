"""
Publishing context logger.

Provides logging interface for publishing context with automatic [publish] prefix.
All publishing modules should import from this module, not from utils.logger directly.
"""

from pathlib import Path
from typing import Iterable, Optional

from loguru import logger

from resumark.utils.logger import setup_logger as _setup_logger

CONTEXT_PREFIX = "[publish]"


def setup_publishing_logger(log_dir: Path, record_id: Optional[str] = None, verbose: bool = False) -> Path:
    """
    Setup logger for publishing context.

    Args:
        log_dir: Directory for this publishing session
        record_id: Resume record being published, recorded in the provenance header
        verbose: Show DEBUG messages on the console too

    Returns:
        Path to log file
    """
    return _setup_logger(
        context_name="publish",
        log_dir=log_dir,
        extra_provenance={"Record": record_id} if record_id else None,
        console_level="DEBUG" if verbose else "INFO",
    )


# Wrapper functions with automatic [publish] prefix


def _log_info(message: str) -> None:
    """Log info message with [publish] prefix."""
    logger.info(f"{CONTEXT_PREFIX} {message}")


def _log_success(message: str) -> None:
    """Log success message with [publish] prefix."""
    logger.success(f"{CONTEXT_PREFIX} {message}")


def _log_error(message: str) -> None:
    """Log error message with [publish] prefix."""
    logger.error(f"{CONTEXT_PREFIX} {message}")


def _log_warning(message: str) -> None:
    """Log warning message with [publish] prefix."""
    logger.warning(f"{CONTEXT_PREFIX} {message}")


def _log_debug(message: str) -> None:
    """Log debug message with [publish] prefix."""
    logger.debug(f"{CONTEXT_PREFIX} {message}")


# High-level publishing-specific logging helpers


def log_publish_result(record_id: str, pdf_url: Optional[str], failed_stages: Iterable[str] = ()) -> None:
    """
    Log the outcome of a publish run.

    The PDF itself was generated whenever this is called; persistence stages
    that failed are reported as errors without implying the download failed.
    """
    failed = list(failed_stages)
    if not failed:
        _log_success(f"Published {record_id}: {pdf_url}")
        return

    _log_warning(f"Published {record_id} with failures in: {', '.join(failed)}")
    if pdf_url:
        _log_info(f"  PDF URL: {pdf_url}")
    else:
        _log_info("  PDF was generated but not uploaded")
