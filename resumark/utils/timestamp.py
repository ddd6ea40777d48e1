"""Timestamp formatting utilities."""

from datetime import datetime


def now() -> str:
    """Second-resolution timestamp safe for directory names (e.g., 20251114_123456)."""
    return datetime.now().strftime("%Y%m%d_%H%M%S")


def now_exact() -> str:
    """ISO 8601 timestamp with microseconds, used for event records."""
    return datetime.now().isoformat()
