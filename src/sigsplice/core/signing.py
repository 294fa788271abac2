"""
Signing pipeline -- embedded detached PKCS#7 signatures in PDFs.

Signing is split in two so the private key may live elsewhere:

1. :func:`prepare_signing` allocates the placeholder, resolves the
   ByteRange and builds the authenticated attributes.  Its result holds
   the digest a key holder has to sign.
2. :func:`finish_signing` wraps the returned signature and certificate in
   SignedData, embeds it, and verifies the result before returning it.

:func:`sign_pdf` runs both steps with an in-process :class:`Signer`.
"""

from __future__ import annotations

__all__ = [
    "LocalSigner",
    "PendingSignature",
    "Signer",
    "SigningOptions",
    "finish_signing",
    "prepare_signing",
    "sign_pdf",
]

import hashlib
import logging
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec, padding, rsa
from cryptography.hazmat.primitives.asymmetric.utils import Prehashed

from ..constants import DEFAULT_DIGEST_ALGORITHM, DEFAULT_REASON, DEFAULT_SIGNATURE_CAPACITY
from ..errors import (
    CertificateError,
    FailureReason,
    InvalidAuthenticatedAttributesError,
    InvalidContentDigestError,
    MalformedPkcs7Error,
    PDFError,
    SigspliceError,
)
from .cert_info import extract_cert_info
from .cms import (
    assemble_signed_data,
    attributes_der,
    build_signed_attributes,
    hash_function,
    load_certificate,
)
from .pdf import (
    PreparedDocument,
    SelectionRect,
    allocate_placeholder,
    embed_signature,
    resolve_byterange,
    verify_embedded_signature,
)

if TYPE_CHECKING:
    from asn1crypto import cms
    from asn1crypto import x509 as asn1_x509

_logger = logging.getLogger(__name__)


# ── Signers ──────────────────────────────────────────────────────────


@runtime_checkable
class Signer(Protocol):
    """Holder of a private key and its certificate."""

    @property
    def certificate(self) -> asn1_x509.Certificate: ...

    def sign_digest(self, digest: bytes, digest_algorithm: str) -> bytes:
        """Sign a precomputed digest and return the raw signature value."""
        ...


class LocalSigner:
    """Signer backed by an in-memory RSA or EC private key."""

    def __init__(
        self,
        private_key: rsa.RSAPrivateKey | ec.EllipticCurvePrivateKey,
        certificate: asn1_x509.Certificate | bytes | str,
    ) -> None:
        if not isinstance(private_key, (rsa.RSAPrivateKey, ec.EllipticCurvePrivateKey)):
            raise CertificateError(f"Unsupported private key type: {type(private_key).__name__}")
        self._key = private_key
        if isinstance(certificate, (bytes, str)):
            certificate = load_certificate(certificate)
        self._certificate = certificate

    @classmethod
    def from_pem_files(
        cls, key_path: str | Path, cert_path: str | Path, password: bytes | None = None
    ) -> LocalSigner:
        """Load a PEM private key and a PEM/DER certificate from disk."""
        try:
            key_bytes = Path(key_path).read_bytes()
            cert_bytes = Path(cert_path).read_bytes()
        except OSError as e:
            raise CertificateError(f"Cannot read key or certificate: {e}") from e
        try:
            key = serialization.load_pem_private_key(key_bytes, password=password)
        except (ValueError, TypeError) as e:
            raise CertificateError(f"Failed to load private key from {key_path}: {e}") from e
        return cls(key, cert_bytes)  # type: ignore[arg-type]

    @property
    def certificate(self) -> asn1_x509.Certificate:
        return self._certificate

    def sign_digest(self, digest: bytes, digest_algorithm: str) -> bytes:
        algo = Prehashed(hash_function(digest_algorithm))
        if isinstance(self._key, rsa.RSAPrivateKey):
            return self._key.sign(digest, padding.PKCS1v15(), algo)
        return self._key.sign(digest, ec.ECDSA(algo))


# ── Options ──────────────────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class SigningOptions:
    """Placement and appearance of the signature field.

    Attributes:
        page: Page for the signature -- 0-based int, "first", or "last".
        selection: Rectangle drawn on the rendered page (top-left origin).
            If None, the ``position`` preset is used.
        position: Preset position name ("bottom-right", "br", etc.).
        name: Signer display name. Local signing falls back to the
            certificate's common name.
        reason: Signature reason string.
        capacity: Bytes of DER reserved in /Contents.
        digest_algorithm: hashlib name of the digest algorithm.
    """

    page: int | str = 0
    selection: SelectionRect | None = None
    position: str = "bottom-right"
    name: str | None = None
    reason: str = DEFAULT_REASON
    capacity: int = DEFAULT_SIGNATURE_CAPACITY
    digest_algorithm: str = DEFAULT_DIGEST_ALGORITHM


_OPTIONS_FIELDS = frozenset(SigningOptions.__dataclass_fields__)


def _resolve_options(
    options: SigningOptions | None,
    kwargs: dict[str, object],
) -> SigningOptions:
    """Merge explicit keyword arguments into an options instance.

    Keyword arguments override the corresponding fields in *options*.
    Unknown keys raise TypeError.
    """
    unknown = set(kwargs) - _OPTIONS_FIELDS
    if unknown:
        raise TypeError(f"Unexpected keyword arguments: {', '.join(sorted(unknown))}")

    if options is None:
        options = SigningOptions()
    if not kwargs:
        return options
    return replace(options, **kwargs)  # type: ignore[arg-type]


# ── Two-phase pipeline ───────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class PendingSignature:
    """A prepared document waiting for a signature over its attributes."""

    prepared: PreparedDocument
    attributes: cms.CMSAttributes
    attributes_der: bytes
    digest_algorithm: str
    signing_time: datetime

    @property
    def attributes_digest(self) -> bytes:
        """Digest of the attribute SET -- the value the key holder signs."""
        return hashlib.new(self.digest_algorithm, self.attributes_der).digest()


def prepare_signing(
    pdf_bytes: bytes,
    options: SigningOptions | None = None,
    signing_time: datetime | None = None,
    **kwargs: object,
) -> PendingSignature:
    """Allocate the placeholder, resolve the ByteRange, build the attributes."""
    opts = _resolve_options(options, kwargs)
    if signing_time is None:
        signing_time = datetime.now(timezone.utc).replace(microsecond=0)

    _logger.debug("Step 1: Allocating signature placeholder")
    allocated = allocate_placeholder(
        pdf_bytes,
        opts.page,
        opts.selection,
        name=opts.name,
        reason=opts.reason,
        capacity=opts.capacity,
        signing_time=signing_time,
        position=opts.position,
    )

    _logger.debug("Step 2: Resolving ByteRange")
    prepared = resolve_byterange(allocated)

    _logger.debug("Step 3: Building authenticated attributes")
    attributes = build_signed_attributes(
        prepared.signed_content, signing_time, opts.digest_algorithm
    )
    return PendingSignature(
        prepared=prepared,
        attributes=attributes,
        attributes_der=attributes_der(attributes),
        digest_algorithm=opts.digest_algorithm,
        signing_time=signing_time,
    )


_REASON_ERRORS: dict[FailureReason | None, type[SigspliceError]] = {
    FailureReason.INVALID_AUTHENTICATED_ATTRIBUTES: InvalidAuthenticatedAttributesError,
    FailureReason.INVALID_CONTENT_DIGEST: InvalidContentDigestError,
    FailureReason.MALFORMED_PKCS7: MalformedPkcs7Error,
}


def finish_signing(
    pending: PendingSignature,
    certificate: asn1_x509.Certificate | bytes | str,
    signature: bytes,
) -> bytes:
    """Embed a signature produced for ``pending.attributes_digest``.

    Runs a full verification of the result; nothing is returned unless
    the embedded signature verifies.

    Raises:
        SignatureTooLargeError: If the SignedData does not fit the placeholder.
        SignatureError: If the signed PDF does not verify.
    """
    if isinstance(certificate, (bytes, str)):
        certificate = load_certificate(certificate)

    _logger.debug("Step 4: Assembling SignedData")
    cms_der = assemble_signed_data(
        pending.attributes, certificate, signature, pending.digest_algorithm
    )
    _logger.debug("SignedData: %d bytes", len(cms_der))

    _logger.debug("Step 5: Embedding signature")
    signed_pdf = embed_signature(pending.prepared, cms_der).data

    _logger.debug("Step 6: Verifying signature")
    result = verify_embedded_signature(signed_pdf)
    if not result["valid"]:
        detail_str = "\n  ".join(result["details"])
        _logger.error("Post-sign verification failed: %s", detail_str)
        error_cls = _REASON_ERRORS.get(result["reason"], PDFError)
        raise error_cls(
            f"Post-sign verification FAILED:\n  {detail_str}\n"
            "The signed PDF may be corrupt -- not saved."
        )
    _logger.debug("Signature verified successfully")
    return signed_pdf


def sign_pdf(
    pdf_bytes: bytes,
    signer: Signer,
    options: SigningOptions | None = None,
    **kwargs: object,
) -> bytes:
    """
    Sign a PDF with an embedded detached PKCS#7 signature.

    Args:
        pdf_bytes: Raw PDF file content.
        signer: Key holder used for the signature.
        options: Signature placement and appearance options.
            Individual keyword arguments (page, selection, position, name,
            reason, capacity, digest_algorithm) are also accepted and
            override the corresponding options fields.

    Returns:
        Complete PDF with embedded signature.
    """
    opts = _resolve_options(options, kwargs)
    if opts.name is None:
        opts = replace(opts, name=extract_cert_info(signer.certificate).get("name"))

    _logger.info("Signing PDF: %d bytes, page=%s, name=%s", len(pdf_bytes), opts.page, opts.name)
    pending = prepare_signing(pdf_bytes, opts)
    signature = signer.sign_digest(pending.attributes_digest, pending.digest_algorithm)
    signed_pdf = finish_signing(pending, signer.certificate, signature)
    _logger.info("Signed PDF complete: %d bytes", len(signed_pdf))
    return signed_pdf
