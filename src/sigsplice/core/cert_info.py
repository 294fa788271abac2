# pyright: reportUnknownMemberType=false, reportUnknownVariableType=false, reportUnknownArgumentType=false
"""
Certificate information extraction from CMS/PKCS#7 blobs, X.509 certs, and signed PDFs.

Used for the signer summary in verification results and for the default
display name of a local signature.
"""

from __future__ import annotations

__all__ = [
    "extract_cert_info",
    "extract_cert_info_from_cms",
    "extract_cert_info_from_pdf",
]

import datetime
import logging

from asn1crypto import x509 as asn1_x509

from ..errors import CertificateError, SigspliceError
from .cms import parse_signed_data
from .pdf.cms_extraction import extract_signature_data

_logger = logging.getLogger(__name__)

# OIDs for common subject fields
_OID_CN = "2.5.4.3"
_OID_EMAIL = "1.2.840.113549.1.9.1"
_OID_ORG = "2.5.4.10"


def extract_cert_info(cert: asn1_x509.Certificate) -> dict[str, str | None]:
    """Extract CN, email, org, dn, serial and expiry from a certificate.

    Also logs warnings for expired or not-yet-valid certificates.
    """
    not_after: datetime.datetime | None = None
    try:
        not_before = cert.not_valid_before
        not_after = cert.not_valid_after
        now = datetime.datetime.now(datetime.timezone.utc)
        if not_before and now < not_before:
            _logger.warning("Certificate is not yet valid (notBefore: %s)", not_before)
        elif not_after and now > not_after:
            _logger.warning("Certificate has expired (notAfter: %s)", not_after)
    except (KeyError, TypeError, ValueError) as e:
        _logger.debug("Cannot check certificate validity dates: %s", e)

    fields: dict[str, str | None] = {"name": None, "email": None, "organization": None}
    oid_map = {_OID_CN: "name", _OID_EMAIL: "email", _OID_ORG: "organization"}

    for rdn in cert.subject.chosen:
        for attr in rdn:
            oid = attr["type"].dotted
            if oid in oid_map:
                fields[oid_map[oid]] = attr["value"].native

    fields["dn"] = cert.subject.human_friendly
    fields["serial"] = f"{cert.serial_number:x}"
    fields["not_after"] = not_after.isoformat() if not_after else None
    return fields


def extract_cert_info_from_cms(cms_der: bytes) -> dict[str, str | None]:
    """
    Extract signer certificate info from a CMS/PKCS#7 DER blob.

    Raises:
        CertificateError: If parsing fails or no certificate is found.
    """
    try:
        decoded = parse_signed_data(cms_der)
    except SigspliceError as e:
        raise CertificateError(f"Failed to parse CMS/PKCS#7 blob: {e}") from e
    return extract_cert_info(decoded.certificate)


def extract_cert_info_from_pdf(pdf_bytes: bytes) -> dict[str, str | None]:
    """
    Extract signer certificate info from the last signature of a signed PDF.

    Raises:
        CertificateError: If the PDF has no usable signature.
    """
    try:
        extracted = extract_signature_data(pdf_bytes)
    except SigspliceError as e:
        raise CertificateError(f"No embedded signature found in this PDF: {e}") from e
    return extract_cert_info_from_cms(extracted.cms_der)
