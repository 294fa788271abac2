"""ByteRange resolution.

Replaces the provisional ``/ByteRange [0 /********** ...]`` written by
the allocator with the real offsets, without moving a single byte.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from ...errors import ByteRangeNotFoundError, MalformedPlaceholderError
from .buffer import ByteRange, PdfBuffer, SignaturePlaceholder
from .locator import CONTENTS_MARKER
from .objects import BYTERANGE_PLACEHOLDER

__all__ = ["PreparedDocument", "resolve_byterange"]

_logger = logging.getLogger(__name__)

_PDF_WHITESPACE = b" \t\r\n\f\x00"


@dataclass(frozen=True, slots=True)
class PreparedDocument:
    """A document whose ByteRange is final and whose placeholder is still empty."""

    buffer: PdfBuffer
    byte_range: ByteRange
    placeholder: SignaturePlaceholder

    @property
    def signed_content(self) -> bytes:
        """The bytes the signature covers (both spans, concatenated)."""
        return self.byte_range.covered(self.buffer)


def _locate_placeholder(buffer: PdfBuffer, search_from: int) -> SignaturePlaceholder:
    contents_pos = buffer.find(CONTENTS_MARKER, search_from)
    if contents_pos == -1:
        raise MalformedPlaceholderError("No /Contents entry after the provisional /ByteRange")

    after_tag = contents_pos + len(CONTENTS_MARKER)
    lt = buffer.find(b"<", after_tag)
    if lt == -1:
        raise MalformedPlaceholderError("No '<' after /Contents")
    if buffer.slice(after_tag, lt).strip(_PDF_WHITESPACE):
        raise MalformedPlaceholderError("/Contents is not followed by a hex string")
    gt = buffer.find(b">", lt + 1)
    if gt == -1:
        raise MalformedPlaceholderError("Unterminated /Contents hex string")

    length = gt - lt - 1
    if length <= 0 or length % 2:
        raise MalformedPlaceholderError(
            f"Placeholder hex width must be even and positive, got {length}"
        )
    if buffer.slice(lt + 1, gt).strip(b"0"):
        raise MalformedPlaceholderError("Placeholder is not zero-filled")
    return SignaturePlaceholder(lt + 1, length)


def resolve_byterange(pdf: bytes | PdfBuffer) -> PreparedDocument:
    """Write the final ByteRange into a freshly allocated document.

    Raises:
        ByteRangeNotFoundError: If no provisional ByteRange is present.
        MalformedPlaceholderError: If /Contents cannot be located or the
            resolved ByteRange text does not fit in the provisional one.
    """
    buffer = pdf if isinstance(pdf, PdfBuffer) else PdfBuffer(pdf)

    br_pos = buffer.rfind(BYTERANGE_PLACEHOLDER)
    if br_pos == -1:
        raise ByteRangeNotFoundError("No provisional /ByteRange placeholder in document")

    placeholder = _locate_placeholder(buffer, br_pos + len(BYTERANGE_PLACEHOLDER))
    byte_range = ByteRange.for_placeholder(placeholder, len(buffer))
    byte_range.validate(len(buffer))

    text = byte_range.to_pdf().encode("ascii")
    if len(text) > len(BYTERANGE_PLACEHOLDER):
        raise MalformedPlaceholderError(
            f"Resolved ByteRange ({len(text)} chars) longer than placeholder "
            f"({len(BYTERANGE_PLACEHOLDER)} chars)"
        )
    buffer = buffer.splice(br_pos, text.ljust(len(BYTERANGE_PLACEHOLDER), b" "))

    _logger.debug(
        "ByteRange resolved to %s, placeholder at %d (%d hex chars)",
        list(byte_range.as_tuple()),
        placeholder.start,
        placeholder.length,
    )
    return PreparedDocument(buffer, byte_range, placeholder)
