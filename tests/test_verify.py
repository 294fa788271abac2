"""Tests for sigsplice.core.pdf.verify -- embedded signature verification and tampering."""

from __future__ import annotations

import pytest

from sigsplice.core.pdf import (
    SelectionRect,
    extract_signature_data,
    verify_detached_signature,
    verify_embedded_signature,
)
from sigsplice.core.signing import sign_pdf
from sigsplice.errors import FailureReason


@pytest.fixture
def signed_pdf(valid_pdf_bytes, local_signer):
    return sign_pdf(valid_pdf_bytes, local_signer)


def _flip(data: bytes, offset: int) -> bytes:
    return data[:offset] + bytes([data[offset] ^ 0x01]) + data[offset + 1 :]


# ── Happy path ──────────────────────────────────────────────────────


def test_valid_result_shape(signed_pdf):
    result = verify_embedded_signature(signed_pdf)
    assert result["valid"] is True
    assert result["reason"] is None
    br = result["byte_range"]
    assert br is not None
    assert br[0] == 0
    assert br[2] + br[3] == len(signed_pdf)
    assert any("Signature OK" in d for d in result["details"])
    assert any("Hash OK" in d for d in result["details"])


def test_verify_detached_signature_directly(signed_pdf):
    extracted = extract_signature_data(signed_pdf)
    result = verify_detached_signature(extracted.signed_data, extracted.cms_der)
    assert result["valid"] is True
    assert result["byte_range"] is None


def test_scenario_three_pages_rect_on_second_page(three_page_pdf, local_signer):
    assert 40_000 < len(three_page_pdf) < 70_000
    signed = sign_pdf(
        three_page_pdf, local_signer, page=1, selection=SelectionRect(100, 200, 300, 250)
    )

    extracted = extract_signature_data(signed)
    br = extracted.byte_range
    gap = signed[br.length0 : br.start1]
    assert gap.startswith(b"<")
    assert gap.endswith(b">")
    assert br.length0 + br.length1 == len(signed) - len(gap)

    result = verify_embedded_signature(signed)
    assert result["valid"] is True
    assert any("3 page(s)" in d for d in result["details"])


# ── Tampering ───────────────────────────────────────────────────────


@pytest.mark.parametrize("where", ["start", "middle", "end"])
def test_mutation_outside_signature(signed_pdf, where):
    br = extract_signature_data(signed_pdf).byte_range
    offset = {"start": 10, "middle": br.length0 // 2, "end": len(signed_pdf) - 3}[where]
    result = verify_embedded_signature(_flip(signed_pdf, offset))
    assert result["valid"] is False
    assert result["reason"] is FailureReason.INVALID_CONTENT_DIGEST


def test_mutation_in_signature_value(signed_pdf):
    extracted = extract_signature_data(signed_pdf)
    cms_der = extracted.cms_der
    # The RSA signature value is the last element of the SignerInfo, at the end of the DER
    index = len(cms_der) - 10
    tampered_der = cms_der[:index] + bytes([cms_der[index] ^ 0xFF]) + cms_der[index + 1 :]
    start = extracted.byte_range.length0 + 1
    tampered = (
        signed_pdf[:start] + tampered_der.hex().encode() + signed_pdf[start + len(cms_der) * 2 :]
    )
    assert len(tampered) == len(signed_pdf)
    result = verify_embedded_signature(tampered)
    assert result["valid"] is False
    assert result["reason"] is FailureReason.INVALID_AUTHENTICATED_ATTRIBUTES


def test_mutation_in_signature_hex_header(signed_pdf):
    br = extract_signature_data(signed_pdf).byte_range
    start = br.length0 + 1
    tampered = signed_pdf[:start] + b"ff" + signed_pdf[start + 2 :]
    result = verify_embedded_signature(tampered)
    assert result["valid"] is False
    assert result["reason"] is FailureReason.MALFORMED_PKCS7


def test_unsigned_pdf(valid_pdf_bytes):
    result = verify_embedded_signature(valid_pdf_bytes)
    assert result["valid"] is False
    assert result["reason"] is FailureReason.BYTE_RANGE_NOT_FOUND
    assert result["byte_range"] is None


def test_byterange_past_eof(signed_pdf):
    truncated = signed_pdf[:-20]
    result = verify_embedded_signature(truncated)
    assert result["valid"] is False
    assert result["reason"] is FailureReason.MALFORMED_BYTE_RANGE


def test_appended_bytes_are_not_covered(signed_pdf):
    # A later append leaves the signed spans as they were
    result = verify_embedded_signature(signed_pdf + b"\n% trailing junk\n")
    assert result["valid"] is True
    assert result["byte_range"][2] + result["byte_range"][3] == len(signed_pdf)
