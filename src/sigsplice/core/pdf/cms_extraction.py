"""ByteRange and CMS extraction from signed PDFs."""

from __future__ import annotations

import re
from typing import NamedTuple

from ...errors import MalformedByteRangeError, MalformedPkcs7Error
from .asn1 import extract_der_from_padded_hex
from .buffer import ByteRange, PdfBuffer
from .locator import find_byterange

# Four integers after the marker, any whitespace between them
BYTERANGE_PATTERN = re.compile(rb"/ByteRange\s*\[\s*(\d+)\s+(\d+)\s+(\d+)\s+(\d+)\s*\]")


class ExtractedSignature(NamedTuple):
    """What a verifier needs from a signed PDF."""

    byte_range: ByteRange
    signed_data: bytes
    cms_der: bytes


def parse_byterange(buffer: PdfBuffer, pos: int) -> ByteRange:
    """Read the /ByteRange array starting at *pos* and check it against the file.

    Raises:
        MalformedByteRangeError: If the array is not four integers or the
            integers do not describe two ordered spans inside the file.
    """
    m = BYTERANGE_PATTERN.match(buffer.data, pos)
    if m is None:
        snippet = buffer.data[pos : pos + 60]
        raise MalformedByteRangeError(f"Cannot read /ByteRange integers: {snippet!r}")
    byte_range = ByteRange(*(int(g) for g in m.groups()))
    byte_range.validate(len(buffer))
    return byte_range


def extract_cms(buffer: PdfBuffer, byte_range: ByteRange) -> bytes:
    """
    Extract the CMS DER blob from the gap between the two signed spans.

    Raises:
        MalformedByteRangeError: If the gap is not a ``<...>`` hex string.
        MalformedPkcs7Error: If the hex cannot be decoded to a DER SEQUENCE.
    """
    gap_start = byte_range.start0 + byte_range.length0
    gap = buffer.slice(gap_start, byte_range.start1)
    if len(gap) < 2 or gap[:1] != b"<" or gap[-1:] != b">":
        raise MalformedByteRangeError(
            f"ByteRange gap at {gap_start}..{byte_range.start1} is not a hex string"
        )

    try:
        hex_str = gap[1:-1].decode("ascii").strip()
        return extract_der_from_padded_hex(hex_str)
    except ValueError as e:
        raise MalformedPkcs7Error(f"Invalid hex in CMS blob: {e}") from e


def extract_signature_data(pdf_bytes: bytes | PdfBuffer) -> ExtractedSignature:
    """
    Extract ByteRange, signed data and CMS blob of the last signature.

    Raises:
        ByteRangeNotFoundError: If the PDF has no /ByteRange.
        MalformedByteRangeError: If the ByteRange is unusable.
        MalformedPkcs7Error: If the hex field does not hold DER.
    """
    buffer = pdf_bytes if isinstance(pdf_bytes, PdfBuffer) else PdfBuffer(pdf_bytes)
    byte_range = parse_byterange(buffer, find_byterange(buffer))
    signed_data = byte_range.covered(buffer)
    return ExtractedSignature(byte_range, signed_data, extract_cms(buffer, byte_range))
