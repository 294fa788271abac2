"""Sigsplice error types.

Errors fall into three families so callers can pick the right remedy:

- :class:`PDFError` -- the document is malformed or cannot hold the signature.
- :class:`SignerError` -- the remote signer is unreachable, busy or too slow.
- :class:`SignatureError` -- the embedded signature is invalid.

Every concrete error carries a :class:`FailureReason` so results can be
reported without inspecting exception types.
"""

from __future__ import annotations

from enum import Enum

__all__ = [
    "ByteRangeNotFoundError",
    "CertificateError",
    "ConfigError",
    "FailureReason",
    "InvalidAuthenticatedAttributesError",
    "InvalidContentDigestError",
    "MalformedByteRangeError",
    "MalformedMessageError",
    "MalformedPkcs7Error",
    "MalformedPlaceholderError",
    "PDFError",
    "SignatureError",
    "SignatureTooLargeError",
    "SignerBusyError",
    "SignerDisconnectedError",
    "SignerError",
    "SignerRejectedError",
    "SignerTimeoutError",
    "SignerUnavailableError",
    "SigspliceError",
]


class FailureReason(str, Enum):
    """Machine-readable failure kinds."""

    BYTE_RANGE_NOT_FOUND = "ByteRangeNotFound"
    MALFORMED_BYTE_RANGE = "MalformedByteRange"
    MALFORMED_PLACEHOLDER = "MalformedPlaceholder"
    SIGNATURE_TOO_LARGE = "SignatureTooLarge"
    SIGNER_UNAVAILABLE = "SignerUnavailable"
    SIGNER_BUSY = "SignerBusy"
    SIGNER_DISCONNECTED = "SignerDisconnected"
    SIGNER_TIMEOUT = "SignerTimeout"
    SIGNER_REJECTED = "SignerRejected"
    MALFORMED_MESSAGE = "MalformedMessage"
    INVALID_AUTHENTICATED_ATTRIBUTES = "InvalidAuthenticatedAttributes"
    INVALID_CONTENT_DIGEST = "InvalidContentDigest"
    MALFORMED_PKCS7 = "MalformedPkcs7"


class SigspliceError(Exception):
    """Base error for Sigsplice operations."""

    reason: FailureReason | None = None


# ── Document errors ─────────────────────────────────────────────────


class PDFError(SigspliceError):
    """PDF structure, parsing, or building error."""


class ByteRangeNotFoundError(PDFError):
    """No /ByteRange marker in the document."""

    reason = FailureReason.BYTE_RANGE_NOT_FOUND


class MalformedByteRangeError(PDFError):
    """The /ByteRange array is unreadable or inconsistent with the file."""

    reason = FailureReason.MALFORMED_BYTE_RANGE


class MalformedPlaceholderError(PDFError):
    """The /Contents placeholder is missing, unterminated, or mis-sized."""

    reason = FailureReason.MALFORMED_PLACEHOLDER


class SignatureTooLargeError(PDFError):
    """The encoded signature does not fit into the reserved placeholder."""

    reason = FailureReason.SIGNATURE_TOO_LARGE


# ── Remote signer errors ────────────────────────────────────────────


class SignerError(SigspliceError):
    """The remote signer could not complete the request."""


class SignerUnavailableError(SignerError):
    """No remote signer is connected."""

    reason = FailureReason.SIGNER_UNAVAILABLE


class SignerBusyError(SignerError):
    """The remote signer channel already has the maximum in-flight requests."""

    reason = FailureReason.SIGNER_BUSY


class SignerDisconnectedError(SignerError):
    """The remote signer went away while a request was pending."""

    reason = FailureReason.SIGNER_DISCONNECTED


class SignerTimeoutError(SignerError):
    """The remote signer did not answer in time."""

    reason = FailureReason.SIGNER_TIMEOUT


class SignerRejectedError(SignerError):
    """The remote signer answered with an error instead of a signature."""

    reason = FailureReason.SIGNER_REJECTED


class MalformedMessageError(SignerError):
    """A frame on a signer or client channel could not be decoded."""

    reason = FailureReason.MALFORMED_MESSAGE


# ── Signature errors ────────────────────────────────────────────────


class SignatureError(SigspliceError):
    """The embedded signature is invalid."""


class MalformedPkcs7Error(SignatureError):
    """The signature blob is not a usable PKCS#7 SignedData structure."""

    reason = FailureReason.MALFORMED_PKCS7


class InvalidAuthenticatedAttributesError(SignatureError):
    """The signature does not verify over the authenticated attributes."""

    reason = FailureReason.INVALID_AUTHENTICATED_ATTRIBUTES


class InvalidContentDigestError(SignatureError):
    """The messageDigest attribute does not match the signed content."""

    reason = FailureReason.INVALID_CONTENT_DIGEST


# ── Misc ────────────────────────────────────────────────────────────


class ConfigError(SigspliceError):
    """Configuration validation error."""


class CertificateError(SigspliceError):
    """Certificate or private key parsing error."""
