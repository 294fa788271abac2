"""Tests for sigsplice.network.messages -- signer and client JSON frames."""

from __future__ import annotations

import base64
import json

import pytest

from sigsplice.errors import FailureReason, MalformedMessageError
from sigsplice.network.messages import (
    decode_binary,
    decode_frame,
    encode_client_error,
    encode_sign_request,
    encode_signed,
    encode_verified,
    parse_sign_response,
)

# ── Framing ─────────────────────────────────────────────────────────


def test_decode_frame():
    assert decode_frame('{"a": 1}') == {"a": 1}
    assert decode_frame(b'{"a": 1}') == {"a": 1}


@pytest.mark.parametrize("raw", ["not json", "[1, 2]", "42", b"\xff\xfe"])
def test_decode_frame_rejects(raw):
    with pytest.raises(MalformedMessageError):
        decode_frame(raw)


@pytest.mark.parametrize(
    "value",
    [b"\x01\x02", bytearray(b"\x01\x02"), base64.b64encode(b"\x01\x02").decode(), [1, 2]],
    ids=["bytes", "bytearray", "base64", "int-list"],
)
def test_decode_binary_forms(value):
    assert decode_binary(value, "field") == b"\x01\x02"


@pytest.mark.parametrize("value", ["@@not base64@@", [1, 300], None, 12])
def test_decode_binary_rejects(value):
    with pytest.raises(MalformedMessageError, match="field"):
        decode_binary(value, "field")


# ── Signer side ─────────────────────────────────────────────────────


def test_encode_sign_request():
    msg = json.loads(encode_sign_request("r1", b"\xab\xcd", "deadbeef"))
    assert msg == {
        "action": "getCertAndSign",
        "digest": "abcd",
        "requestId": "r1",
        "documentDigest": "deadbeef",
    }


def test_parse_flat_response():
    sig = base64.b64encode(b"sig").decode()
    resp = parse_sign_response({"requestId": 7, "certificate": "PEM", "signature": sig})
    assert resp.request_id == "7"
    assert resp.certificate == "PEM"
    assert resp.signature == b"sig"
    assert resp.error is None


def test_parse_raw_bytes_signature():
    resp = parse_sign_response({"certificate": "PEM", "signature": b"raw"})
    assert resp.signature == b"raw"
    assert resp.request_id is None


def test_parse_nested_extension_response():
    msg = {
        "action": "certAndSignResponse",
        "data": {"cert": "PEM", "signedHash": base64.b64encode(b"s").decode(), "requestId": "x"},
    }
    resp = parse_sign_response(msg)
    assert resp.request_id == "x"
    assert resp.signature == b"s"


def test_parse_error_response():
    resp = parse_sign_response({"action": "error", "requestId": "r", "message": "user cancelled"})
    assert resp.error == "user cancelled"
    assert resp.request_id == "r"


def test_parse_error_without_message():
    assert parse_sign_response({"action": "error"}).error


@pytest.mark.parametrize(
    "msg",
    [
        {"action": "sign", "data": {}},
        {"signature": "AAAA"},
        {"certificate": "PEM"},
        {"certificate": "", "signature": "AAAA"},
        {"certificate": "PEM", "signature": ""},
    ],
    ids=["wrong-action", "no-cert", "no-signature", "empty-cert", "empty-signature"],
)
def test_parse_rejects(msg):
    with pytest.raises(MalformedMessageError):
        parse_sign_response(msg)


# ── Client side ─────────────────────────────────────────────────────


def test_encode_signed():
    msg = json.loads(encode_signed(b"%PDF-1.7"))
    assert msg["action"] == "signed"
    assert base64.b64decode(msg["data"]) == b"%PDF-1.7"


def test_encode_verified():
    result = {
        "valid": False,
        "reason": FailureReason.INVALID_CONTENT_DIGEST,
        "byte_range": None,
        "details": [],
        "signer": {"name": "Alice"},
    }
    msg = json.loads(encode_verified(result))
    assert msg == {
        "action": "verified",
        "verified": False,
        "reason": "InvalidContentDigest",
        "signer": "Alice",
    }


def test_encode_client_error():
    msg = json.loads(encode_client_error("nope", FailureReason.SIGNER_BUSY))
    assert msg == {"action": "error", "message": "nope", "reason": "SignerBusy"}
    assert json.loads(encode_client_error("plain"))["reason"] is None
