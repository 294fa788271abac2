# pyright: reportUnknownMemberType=false, reportUnknownVariableType=false, reportUnknownArgumentType=false
"""
Detached PKCS#7 (CMS SignedData) encoding and decoding.

The signature never covers the document directly: it covers the DER of
the authenticated attribute SET, which in turn carries the digest of the
signed content.  Verification therefore has two independent stages:

1. the signature over the attribute SET (:func:`verify_attributes_signature`);
2. the ``messageDigest`` attribute against the content (:func:`check_content_digest`).
"""

from __future__ import annotations

__all__ = [
    "DecodedSignedData",
    "assemble_signed_data",
    "attributes_der",
    "build_signed_attributes",
    "check_content_digest",
    "hash_function",
    "load_certificate",
    "parse_signed_data",
    "resolve_hash_algo",
    "signature_algorithm_for",
    "verify_attributes_signature",
]

import hashlib
import hmac
import logging
from dataclasses import dataclass
from datetime import datetime

from asn1crypto import algos, cms, core, pem
from asn1crypto import x509 as asn1_x509
from cryptography import x509 as crypto_x509
from cryptography.exceptions import InvalidSignature, UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec, padding, rsa

from ..constants import DEFAULT_DIGEST_ALGORITHM
from ..errors import (
    CertificateError,
    InvalidAuthenticatedAttributesError,
    InvalidContentDigestError,
    MalformedPkcs7Error,
)

_logger = logging.getLogger(__name__)

# Map signature-algorithm identifiers that some signers put in the
# digestAlgorithm field to plain hashlib names.
_DIGEST_ALGO_MAP: dict[str, str] = {
    "sha1_rsa": "sha1",
    "sha256_rsa": "sha256",
    "sha384_rsa": "sha384",
    "sha512_rsa": "sha512",
    "1.2.840.113549.1.1.5": "sha1",  # sha1WithRSAEncryption OID
    "1.2.840.113549.1.1.11": "sha256",  # sha256WithRSAEncryption OID
    "1.2.840.113549.1.1.12": "sha384",  # sha384WithRSAEncryption OID
    "1.2.840.113549.1.1.13": "sha512",  # sha512WithRSAEncryption OID
}

_SUPPORTED_DIGESTS = frozenset({"sha1", "sha224", "sha256", "sha384", "sha512"})


# ── Algorithms ───────────────────────────────────────────────────────


def resolve_hash_algo(algo_raw: str) -> str | None:
    """Resolve a CMS digest algorithm identifier to a hashlib-compatible name.

    Args:
        algo_raw: Algorithm name or OID from asn1crypto (.native or .dotted).

    Returns:
        hashlib algorithm name, or None if unrecognized.
    """
    if algo_raw in _SUPPORTED_DIGESTS:
        return algo_raw
    return _DIGEST_ALGO_MAP.get(algo_raw)


def hash_function(algorithm: str) -> hashes.HashAlgorithm:
    """Return the ``cryptography`` hash object for a hashlib name."""
    return getattr(hashes, algorithm.upper())()


def signature_algorithm_for(certificate: asn1_x509.Certificate, digest_algorithm: str) -> str:
    """Pick the SignerInfo signatureAlgorithm for the certificate's key type."""
    key_algo = certificate.public_key.algorithm
    if key_algo == "rsa":
        return "rsassa_pkcs1v15"
    if key_algo == "ec":
        return f"{digest_algorithm}_ecdsa"
    raise CertificateError(f"Unsupported signer key type: {key_algo}")


# ── Certificates ─────────────────────────────────────────────────────


def load_certificate(data: bytes | str) -> asn1_x509.Certificate:
    """Load an X.509 certificate from PEM (text or bytes) or DER."""
    raw = data.encode("ascii") if isinstance(data, str) else data
    try:
        if pem.detect(raw):
            _, _, raw = pem.unarmor(raw)
        cert = asn1_x509.Certificate.load(raw)
        # asn1crypto parses lazily; touch the subject to surface errors here
        _ = cert.subject.native
    except (ValueError, TypeError, KeyError) as e:
        raise CertificateError(f"Failed to parse X.509 certificate: {e}") from e
    return cert


# ── Encoding ─────────────────────────────────────────────────────────


def build_signed_attributes(
    content: bytes,
    signing_time: datetime,
    digest_algorithm: str = DEFAULT_DIGEST_ALGORITHM,
) -> cms.CMSAttributes:
    """Authenticated attributes: content type, message digest, signing time."""
    message_digest = hashlib.new(digest_algorithm, content).digest()
    return cms.CMSAttributes(
        [
            cms.CMSAttribute({"type": "content_type", "values": ["data"]}),
            cms.CMSAttribute({"type": "message_digest", "values": [message_digest]}),
            cms.CMSAttribute(
                {
                    "type": "signing_time",
                    "values": [cms.Time({"utc_time": core.UTCTime(signing_time)})],
                }
            ),
        ]
    )


def attributes_der(attributes: cms.CMSAttributes) -> bytes:
    """DER of the attribute SET, universally tagged, as covered by the signature."""
    return b"\x31" + attributes.dump()[1:]


def assemble_signed_data(
    attributes: cms.CMSAttributes,
    certificate: asn1_x509.Certificate,
    signature: bytes,
    digest_algorithm: str = DEFAULT_DIGEST_ALGORITHM,
) -> bytes:
    """Build a detached SignedData ContentInfo around a finished signature.

    Returns:
        DER-encoded ContentInfo.
    """
    digest_algo = algos.DigestAlgorithm({"algorithm": digest_algorithm})
    signer_info = cms.SignerInfo(
        {
            "version": "v1",
            "sid": cms.SignerIdentifier(
                {
                    "issuer_and_serial_number": cms.IssuerAndSerialNumber(
                        {
                            "issuer": certificate.issuer,
                            "serial_number": certificate.serial_number,
                        }
                    )
                }
            ),
            "digest_algorithm": digest_algo,
            "signed_attrs": attributes,
            "signature_algorithm": algos.SignedDigestAlgorithm(
                {"algorithm": signature_algorithm_for(certificate, digest_algorithm)}
            ),
            "signature": signature,
        }
    )
    content_info = cms.ContentInfo(
        {
            "content_type": "signed_data",
            "content": cms.SignedData(
                {
                    "version": "v1",
                    "digest_algorithms": [digest_algo],
                    "encap_content_info": {"content_type": "data"},
                    "certificates": [certificate],
                    "signer_infos": [signer_info],
                }
            ),
        }
    )
    return content_info.dump()


# ── Decoding ─────────────────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class DecodedSignedData:
    """The parts of a SignedData structure that verification needs."""

    digest_algorithm: str
    certificate: asn1_x509.Certificate
    content_type: str
    message_digest: bytes
    signing_time: datetime | None
    signed_attrs_der: bytes
    signature: bytes
    signature_algorithm: str


def _find_attribute(attrs: cms.CMSAttributes, name: str) -> cms.CMSAttribute | None:
    for attr in attrs:
        if attr["type"].native == name:
            return attr
    return None


def _signer_certificate(
    signed_data: cms.SignedData, signer_info: cms.SignerInfo
) -> asn1_x509.Certificate:
    certificates = signed_data["certificates"]
    certs = [c.chosen for c in certificates if c.name == "certificate"] if certificates else []
    if not certs:
        raise MalformedPkcs7Error("SignedData carries no signer certificate")

    sid = signer_info["sid"]
    if sid.name == "issuer_and_serial_number":
        wanted = sid.chosen
        for cert in certs:
            if (
                cert.serial_number == wanted["serial_number"].native
                and cert.issuer == wanted["issuer"]
            ):
                return cert
        _logger.debug("No certificate matches the signer id; using the first one")
    return certs[0]


def parse_signed_data(der: bytes) -> DecodedSignedData:
    """Decode a detached SignedData blob.

    Raises:
        MalformedPkcs7Error: If the structure cannot be parsed or misses a
            field that verification depends on.
    """
    try:
        content_info = cms.ContentInfo.load(der)
        if content_info["content_type"].native != "signed_data":
            raise MalformedPkcs7Error(
                f"Expected signed_data, got {content_info['content_type'].native}"
            )
        signed_data = content_info["content"]
        signer_infos = signed_data["signer_infos"]
        if len(signer_infos) == 0:
            raise MalformedPkcs7Error("SignedData has no SignerInfo")
        signer_info = signer_infos[0]

        algo_id = signer_info["digest_algorithm"]["algorithm"]
        digest_algorithm = resolve_hash_algo(algo_id.native) or resolve_hash_algo(algo_id.dotted)
        if digest_algorithm is None:
            raise MalformedPkcs7Error(f"Unsupported digest algorithm: {algo_id.dotted}")

        signed_attrs = signer_info["signed_attrs"]
        if signed_attrs is core.VOID or len(signed_attrs) == 0:
            raise MalformedPkcs7Error("SignerInfo has no authenticated attributes")

        content_type_attr = _find_attribute(signed_attrs, "content_type")
        digest_attr = _find_attribute(signed_attrs, "message_digest")
        if content_type_attr is None:
            raise MalformedPkcs7Error("Authenticated attributes lack contentType")
        if digest_attr is None:
            raise MalformedPkcs7Error("Authenticated attributes lack messageDigest")
        time_attr = _find_attribute(signed_attrs, "signing_time")

        return DecodedSignedData(
            digest_algorithm=digest_algorithm,
            certificate=_signer_certificate(signed_data, signer_info),
            content_type=content_type_attr["values"][0].native,
            message_digest=digest_attr["values"][0].native,
            signing_time=time_attr["values"][0].native if time_attr is not None else None,
            signed_attrs_der=signed_attrs.untag().dump(),
            signature=signer_info["signature"].native,
            signature_algorithm=signer_info["signature_algorithm"]["algorithm"].native,
        )
    except (ValueError, TypeError, KeyError, AttributeError, IndexError) as e:
        raise MalformedPkcs7Error(f"Failed to parse CMS/PKCS#7 blob: {e}") from e


# ── Verification ─────────────────────────────────────────────────────


def verify_attributes_signature(decoded: DecodedSignedData) -> None:
    """Check the signature over the DER of the authenticated attribute SET.

    Raises:
        InvalidAuthenticatedAttributesError: If the signature does not verify.
        MalformedPkcs7Error: If the key type or signature algorithm is unsupported.
    """
    try:
        public_key = crypto_x509.load_der_x509_certificate(
            decoded.certificate.dump()
        ).public_key()
    except (ValueError, UnsupportedAlgorithm) as e:
        raise MalformedPkcs7Error(f"Cannot load signer public key: {e}") from e

    hash_algo = hash_function(decoded.digest_algorithm)
    try:
        if isinstance(public_key, rsa.RSAPublicKey):
            if decoded.signature_algorithm == "rsassa_pss":
                raise MalformedPkcs7Error("RSASSA-PSS signatures are not supported")
            public_key.verify(
                decoded.signature, decoded.signed_attrs_der, padding.PKCS1v15(), hash_algo
            )
        elif isinstance(public_key, ec.EllipticCurvePublicKey):
            public_key.verify(decoded.signature, decoded.signed_attrs_der, ec.ECDSA(hash_algo))
        else:
            raise MalformedPkcs7Error(f"Unsupported public key type: {type(public_key).__name__}")
    except InvalidSignature as e:
        raise InvalidAuthenticatedAttributesError(
            "Signature does not verify over the authenticated attributes"
        ) from e


def check_content_digest(decoded: DecodedSignedData, content: bytes) -> None:
    """Compare the ``messageDigest`` attribute with the digest of *content*.

    Raises:
        InvalidContentDigestError: On mismatch.
    """
    actual = hashlib.new(decoded.digest_algorithm, content).digest()
    if not hmac.compare_digest(actual, decoded.message_digest):
        raise InvalidContentDigestError(
            f"{decoded.digest_algorithm.upper()} of signed content {actual.hex()} "
            f"does not match messageDigest {decoded.message_digest.hex()}"
        )
