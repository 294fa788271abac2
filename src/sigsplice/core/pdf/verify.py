"""
Verification of embedded PDF signatures.

Extracts ByteRange data and the CMS blob, then checks the signature in
two stages that are never merged: first the signature over the
authenticated attributes, then the ``messageDigest`` attribute against
the bytes the ByteRange covers.
"""

from __future__ import annotations

import io
import logging
from typing import TypedDict

from ...errors import FailureReason, SignatureError, SigspliceError
from .. import require_pikepdf as _require_pikepdf
from ..cms import check_content_digest, parse_signed_data, verify_attributes_signature
from .cms_extraction import extract_signature_data

_logger = logging.getLogger(__name__)


class VerificationResult(TypedDict):
    """Result of signature verification."""

    valid: bool  # Overall result
    reason: FailureReason | None  # Why verification failed, None when valid
    byte_range: list[int] | None  # The four ByteRange integers, once parsed
    details: list[str]  # Human-readable messages
    signer: dict[str, str | None] | None  # Certificate info (name, email, org, dn)


def _failed(
    reason: FailureReason | None,
    details: list[str],
    byte_range: list[int] | None = None,
    signer: dict[str, str | None] | None = None,
) -> VerificationResult:
    return {
        "valid": False,
        "reason": reason,
        "byte_range": byte_range,
        "details": details,
        "signer": signer,
    }


def verify_detached_signature(signed_data: bytes, cms_der: bytes) -> VerificationResult:
    """Verify a detached CMS/PKCS#7 signature against the data it covers.

    Returns:
        VerificationResult; ``byte_range`` is always None.
    """
    from ..cert_info import extract_cert_info

    details = [f"CMS blob: {len(cms_der)} bytes"]

    try:
        decoded = parse_signed_data(cms_der)
    except SignatureError as e:
        return _failed(e.reason, [*details, f"PKCS#7 error: {e}"])

    signer: dict[str, str | None] | None
    try:
        signer = extract_cert_info(decoded.certificate)
    except (ValueError, TypeError, KeyError, AttributeError):
        _logger.debug("Could not extract signer info from CMS", exc_info=True)
        signer = None
    if signer and signer.get("name"):
        details.append(f"Signer: {signer['name']}")
    algo_upper = decoded.digest_algorithm.upper()

    # Stage 1: signature over the authenticated attributes
    try:
        verify_attributes_signature(decoded)
    except SignatureError as e:
        return _failed(e.reason, [*details, f"Signature INVALID: {e}"], signer=signer)
    details.append(f"Signature OK -- {algo_upper} over authenticated attributes")

    # Stage 2: messageDigest against the covered bytes
    try:
        check_content_digest(decoded, signed_data)
    except SignatureError as e:
        return _failed(e.reason, [*details, f"Hash MISMATCH: {e}"], signer=signer)
    details.append(f"Hash OK -- {algo_upper} matches CMS messageDigest")

    return {
        "valid": True,
        "reason": None,
        "byte_range": None,
        "details": details,
        "signer": signer,
    }


def verify_embedded_signature(pdf_bytes: bytes) -> VerificationResult:
    """
    Verify the last embedded PDF signature.

    Checks, in order:
    1. the rightmost /ByteRange exists and is four sane integers;
    2. the gap between the spans holds a decodable PKCS#7 blob;
    3. the signature verifies over the authenticated attributes;
    4. the messageDigest attribute matches the covered bytes.

    Never raises on verification failure -- returns valid=False with a
    ``reason`` and details.
    """
    try:
        extracted = extract_signature_data(pdf_bytes)
    except SigspliceError as e:
        return _failed(e.reason, [f"Structure error: {e}"])

    byte_range = list(extracted.byte_range.as_tuple())
    result = verify_detached_signature(extracted.signed_data, extracted.cms_der)
    result["byte_range"] = byte_range
    result["details"].insert(0, f"ByteRange OK -- signed data: {len(extracted.signed_data)} bytes")

    # pikepdf structural check (informational, does not override signature validity)
    pikepdf = _require_pikepdf()
    try:
        with pikepdf.open(io.BytesIO(pdf_bytes)) as pdf:
            page_count = len(pdf.pages)
        result["details"].append(f"pikepdf: valid PDF, {page_count} page(s)")
    except (ValueError, RuntimeError, OSError, pikepdf.PdfError) as e:
        _logger.warning("pikepdf structural check failed (non-fatal): %s", e)
        result["details"].append(f"pikepdf: structural warning -- {e}")

    if result["valid"]:
        _logger.info("Signature valid: %s", (result["signer"] or {}).get("name"))
    else:
        _logger.info("Signature invalid: %s", result["reason"])
    return result
