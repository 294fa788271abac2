"""Signature embedding into the reserved /Contents placeholder."""

from __future__ import annotations

import logging

from ...errors import PDFError, SignatureTooLargeError
from .buffer import PdfBuffer
from .resolver import PreparedDocument

__all__ = ["embed_signature"]

_logger = logging.getLogger(__name__)


def embed_signature(prepared: PreparedDocument, der: bytes) -> PdfBuffer:
    """Insert DER bytes as zero-padded hex into the placeholder.

    Raises:
        SignatureTooLargeError: If the hex form exceeds the placeholder width.
    """
    placeholder = prepared.placeholder
    der_hex = der.hex().encode("ascii")
    if len(der_hex) > placeholder.length:
        raise SignatureTooLargeError(
            f"Signature too large: {len(der_hex)} hex chars > {placeholder.length} reserved"
        )

    padded = der_hex + b"0" * (placeholder.length - len(der_hex))
    signed = prepared.buffer.splice(placeholder.start, padded)
    if len(signed) != len(prepared.buffer):
        raise PDFError(f"Embedding changed PDF size: {len(prepared.buffer)} -> {len(signed)}")

    _logger.debug(
        "Embedded %d bytes of DER (%d hex chars free)", len(der), placeholder.length - len(der_hex)
    )
    return signed
