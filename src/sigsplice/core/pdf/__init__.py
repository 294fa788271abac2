"""PDF placeholder allocation, signature embedding, and verification."""

from .buffer import ByteRange, PdfBuffer, SignaturePlaceholder
from .builder import allocate_placeholder, validate_pdf
from .cms_extraction import BYTERANGE_PATTERN, ExtractedSignature, extract_signature_data
from .embedder import embed_signature
from .locator import find_byterange, find_last
from .objects import BYTERANGE_PLACEHOLDER_STR, contents_placeholder
from .position import (
    POSITION_ALIASES,
    POSITION_PRESETS,
    SelectionRect,
    parse_page_spec,
    parse_rect,
    resolve_position,
)
from .resolver import PreparedDocument, resolve_byterange
from .verify import VerificationResult, verify_detached_signature, verify_embedded_signature

__all__ = [
    "BYTERANGE_PATTERN",
    "BYTERANGE_PLACEHOLDER_STR",
    "POSITION_ALIASES",
    "POSITION_PRESETS",
    "ByteRange",
    "ExtractedSignature",
    "PdfBuffer",
    "PreparedDocument",
    "SelectionRect",
    "SignaturePlaceholder",
    "VerificationResult",
    "allocate_placeholder",
    "contents_placeholder",
    "embed_signature",
    "extract_signature_data",
    "find_byterange",
    "find_last",
    "parse_page_spec",
    "parse_rect",
    "resolve_byterange",
    "resolve_position",
    "validate_pdf",
    "verify_detached_signature",
    "verify_embedded_signature",
]
