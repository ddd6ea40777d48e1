"""
Shared utilities for resumark.

Common functionality used across contexts:
- Logger setup and pipeline event logging
- PDF inspection
- Timestamps
"""

from resumark.utils.pdf_processing import page_count
from resumark.utils.timestamp import now, now_exact

__all__ = ["page_count", "now", "now_exact"]
