"""
PDF inspection utilities.

Helper functions:
    page_count: Page count from a PDF path or in-memory blob.
    page_sizes: Media box sizes (points) for every page.
"""

from io import BytesIO
from pathlib import Path
from typing import List, Optional, Tuple, Union

from PyPDF2 import PdfReader
from PyPDF2.errors import PdfReadError

PdfSource = Union[str, Path, bytes]


def _reader(source: PdfSource) -> PdfReader:
    if isinstance(source, bytes):
        return PdfReader(BytesIO(source))
    return PdfReader(str(source))


def page_count(source: PdfSource) -> Optional[int]:
    """Get page count from a PDF path or blob, or None if unreadable."""
    try:
        return len(_reader(source).pages)
    except (PdfReadError, OSError, ValueError):
        return None


def page_sizes(source: PdfSource) -> List[Tuple[float, float]]:
    """
    Get (width, height) in PDF points for every page.

    Args:
        source: PDF path or in-memory blob

    Returns:
        One (width, height) tuple per page, in page order
    """
    reader = _reader(source)
    return [(float(page.mediabox.width), float(page.mediabox.height)) for page in reader.pages]
