"""Tests for sigsplice.core.cms -- SignedData encoding, decoding and the two verification stages."""

from __future__ import annotations

import hashlib
from datetime import datetime, timezone

import pytest
from asn1crypto import cms as asn1_cms
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec, padding

from sigsplice.core.cms import (
    assemble_signed_data,
    attributes_der,
    build_signed_attributes,
    check_content_digest,
    load_certificate,
    parse_signed_data,
    resolve_hash_algo,
    signature_algorithm_for,
    verify_attributes_signature,
)
from sigsplice.errors import (
    CertificateError,
    InvalidAuthenticatedAttributesError,
    InvalidContentDigestError,
    MalformedPkcs7Error,
)

_MOMENT = datetime(2024, 3, 1, 12, 30, 0, tzinfo=timezone.utc)
_CONTENT = b"the covered bytes of a document"


def _signed_blob(key, cert_pem, content=_CONTENT, digest="sha256"):
    cert = load_certificate(cert_pem)
    attrs = build_signed_attributes(content, _MOMENT, digest)
    to_sign = attributes_der(attrs)
    algo = getattr(hashes, digest.upper())()
    if isinstance(key, ec.EllipticCurvePrivateKey):
        signature = key.sign(to_sign, ec.ECDSA(algo))
    else:
        signature = key.sign(to_sign, padding.PKCS1v15(), algo)
    return assemble_signed_data(attrs, cert, signature, digest)


# ── Algorithms and certificates ─────────────────────────────────────


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("sha256", "sha256"),
        ("sha256_rsa", "sha256"),
        ("1.2.840.113549.1.1.11", "sha256"),
        ("md5", None),
    ],
)
def test_resolve_hash_algo(raw, expected):
    assert resolve_hash_algo(raw) == expected


def test_load_certificate_pem_and_der(rsa_cert_pem):
    cert = load_certificate(rsa_cert_pem)
    assert load_certificate(cert.dump()).serial_number == cert.serial_number
    assert load_certificate(rsa_cert_pem.decode("ascii")).subject == cert.subject


def test_load_certificate_garbage():
    with pytest.raises(CertificateError):
        load_certificate(b"\x30\x03\x02\x01\x01")


def test_signature_algorithm_for(rsa_cert_pem, ec_cert_pem):
    assert signature_algorithm_for(load_certificate(rsa_cert_pem), "sha256") == "rsassa_pkcs1v15"
    assert signature_algorithm_for(load_certificate(ec_cert_pem), "sha384") == "sha384_ecdsa"


# ── Attributes ──────────────────────────────────────────────────────


def test_signed_attributes_content():
    attrs = build_signed_attributes(_CONTENT, _MOMENT)
    native = {a["type"].native: a["values"][0].native for a in attrs}
    assert native["content_type"] == "data"
    assert native["message_digest"] == hashlib.sha256(_CONTENT).digest()
    assert native["signing_time"] == _MOMENT


def test_attributes_der_is_universal_set():
    der = attributes_der(build_signed_attributes(_CONTENT, _MOMENT))
    assert der[0] == 0x31


# ── Round trip ──────────────────────────────────────────────────────


def test_parse_signed_data_fields(rsa_key, rsa_cert_pem):
    decoded = parse_signed_data(_signed_blob(rsa_key, rsa_cert_pem))
    assert decoded.digest_algorithm == "sha256"
    assert decoded.content_type == "data"
    assert decoded.message_digest == hashlib.sha256(_CONTENT).digest()
    assert decoded.signing_time == _MOMENT
    assert decoded.signature_algorithm == "rsassa_pkcs1v15"
    assert decoded.certificate.subject == load_certificate(rsa_cert_pem).subject
    assert decoded.signed_attrs_der == attributes_der(build_signed_attributes(_CONTENT, _MOMENT))


def test_detached_blob_has_no_content(rsa_key, rsa_cert_pem):
    info = asn1_cms.ContentInfo.load(_signed_blob(rsa_key, rsa_cert_pem))
    encap = info["content"]["encap_content_info"]
    assert encap["content_type"].native == "data"
    assert encap["content"].native is None


@pytest.mark.parametrize("digest", ["sha256", "sha384", "sha512"])
def test_verify_rsa(rsa_key, rsa_cert_pem, digest):
    decoded = parse_signed_data(_signed_blob(rsa_key, rsa_cert_pem, digest=digest))
    verify_attributes_signature(decoded)
    check_content_digest(decoded, _CONTENT)


def test_verify_ec(ec_key, ec_cert_pem):
    decoded = parse_signed_data(_signed_blob(ec_key, ec_cert_pem))
    assert decoded.signature_algorithm == "sha256_ecdsa"
    verify_attributes_signature(decoded)
    check_content_digest(decoded, _CONTENT)


# ── Failures ────────────────────────────────────────────────────────


def test_stage_one_detects_wrong_key(rsa_cert_pem, ec_key, ec_cert_pem):
    # EC signature wrapped with the RSA certificate
    cert = load_certificate(rsa_cert_pem)
    attrs = build_signed_attributes(_CONTENT, _MOMENT)
    bogus = ec_key.sign(attributes_der(attrs), ec.ECDSA(hashes.SHA256()))
    decoded = parse_signed_data(assemble_signed_data(attrs, cert, bogus))
    with pytest.raises(InvalidAuthenticatedAttributesError):
        verify_attributes_signature(decoded)


def test_stage_two_detects_other_content(rsa_key, rsa_cert_pem):
    decoded = parse_signed_data(_signed_blob(rsa_key, rsa_cert_pem))
    verify_attributes_signature(decoded)
    with pytest.raises(InvalidContentDigestError, match="does not match messageDigest"):
        check_content_digest(decoded, _CONTENT + b"!")


@pytest.mark.parametrize("blob", [b"", b"\x30\x00", b"garbage", b"\x30\x03\x02\x01\x01"])
def test_parse_rejects_garbage(blob):
    with pytest.raises(MalformedPkcs7Error):
        parse_signed_data(blob)


def test_parse_rejects_missing_attributes(rsa_key, rsa_cert_pem):
    info = asn1_cms.ContentInfo.load(_signed_blob(rsa_key, rsa_cert_pem))
    signer_info = info["content"]["signer_infos"][0]
    signer_info["signed_attrs"] = asn1_cms.CMSAttributes(
        [a for a in signer_info["signed_attrs"] if a["type"].native != "message_digest"]
    )
    with pytest.raises(MalformedPkcs7Error, match="messageDigest"):
        parse_signed_data(info.dump(force=True))


def test_parse_rejects_missing_certificate(rsa_key, rsa_cert_pem):
    info = asn1_cms.ContentInfo.load(_signed_blob(rsa_key, rsa_cert_pem))
    info["content"]["certificates"] = []
    with pytest.raises(MalformedPkcs7Error, match="certificate"):
        parse_signed_data(info.dump(force=True))
