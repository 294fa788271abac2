"""Byte-offset lookup of fixed textual markers in a PDF buffer."""

from __future__ import annotations

from ...errors import ByteRangeNotFoundError
from .buffer import PdfBuffer

__all__ = ["BYTERANGE_MARKERS", "CONTENTS_MARKER", "find_byterange", "find_last"]

# Producers disagree on the space before "["
BYTERANGE_MARKERS = (b"/ByteRange[", b"/ByteRange [")

CONTENTS_MARKER = b"/Contents"


def find_last(buffer: PdfBuffer, marker: bytes) -> int:
    """Return the rightmost offset of *marker*, or -1 when absent."""
    return buffer.rfind(marker)


def find_byterange(buffer: PdfBuffer) -> int:
    """Return the offset of the rightmost /ByteRange marker.

    Both spellings are tried and the later one wins.

    Raises:
        ByteRangeNotFoundError: If neither spelling occurs.
    """
    pos = max(find_last(buffer, marker) for marker in BYTERANGE_MARKERS)
    if pos == -1:
        raise ByteRangeNotFoundError("No /ByteRange found in PDF -- not a signed PDF?")
    return pos
