"""
JSON frames exchanged with the remote signer and with signing clients.

Signer side::

    -> {"action": "getCertAndSign", "digest": <hex>, "requestId": <id>,
        "documentDigest": <hex>}
    <- {"requestId": <id>, "certificate": <PEM>, "signature": <base64>}
    <- {"action": "error", "requestId": <id>, "message": <text>}

The nested form ``{"action": "certAndSignResponse", "data": {"cert": ...,
"signedHash": ...}}`` sent by older browser extensions is accepted too.

Client side::

    -> {"action": "sign", "data": {"pdfBuffer": <base64>, "pageIndex": <int>,
        "selectionCoords": {"startX", "startY", "endX", "endY"}}}
    -> {"action": "verify", "data": {"Buff": <base64>}}
    <- {"action": "signed", "data": <base64>}
    <- {"action": "verified", "verified": <bool>, "reason": <str|null>}
    <- {"action": "error", "message": <text>, "reason": <str|null>}
"""

from __future__ import annotations

__all__ = [
    "ACTION_ERROR",
    "ACTION_SIGN",
    "ACTION_SIGNED",
    "ACTION_VERIFIED",
    "ACTION_VERIFY",
    "SignResponse",
    "decode_binary",
    "decode_frame",
    "encode_client_error",
    "encode_sign_request",
    "encode_signed",
    "encode_verified",
    "parse_sign_response",
]

import base64
import binascii
import json
from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from ..constants import SIGNER_ACTION
from ..errors import FailureReason, MalformedMessageError

if TYPE_CHECKING:
    from ..core.pdf import VerificationResult

ACTION_SIGN = "sign"
ACTION_VERIFY = "verify"
ACTION_SIGNED = "signed"
ACTION_VERIFIED = "verified"
ACTION_ERROR = "error"
_ACTION_LEGACY_RESPONSE = "certAndSignResponse"


@dataclass(frozen=True, slots=True)
class SignResponse:
    """A decoded answer from the remote signer.

    Exactly one of ``error`` or the ``certificate``/``signature`` pair is set.
    """

    request_id: str | None
    certificate: str | bytes | None = None
    signature: bytes | None = None
    error: str | None = None


# ── Generic framing ──────────────────────────────────────────────────


def decode_frame(raw: str | bytes) -> dict[str, Any]:
    """Parse one JSON frame into a dict.

    Raises:
        MalformedMessageError: If the frame is not a JSON object.
    """
    try:
        message = json.loads(raw)
    except (ValueError, UnicodeDecodeError) as e:
        raise MalformedMessageError(f"Invalid JSON frame: {e}") from e
    if not isinstance(message, dict):
        raise MalformedMessageError(f"Expected a JSON object, got {type(message).__name__}")
    return message


def decode_binary(value: object, field: str) -> bytes:
    """Accept raw bytes, base64 text, or a list of byte values."""
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    if isinstance(value, str):
        try:
            return base64.b64decode(value, validate=True)
        except (binascii.Error, ValueError) as e:
            raise MalformedMessageError(f"{field} is not valid base64: {e}") from e
    if isinstance(value, list):
        try:
            return bytes(value)
        except (TypeError, ValueError) as e:
            raise MalformedMessageError(f"{field} is not a list of byte values: {e}") from e
    raise MalformedMessageError(f"{field} is missing or has type {type(value).__name__}")


# ── Signer side ──────────────────────────────────────────────────────


def encode_sign_request(request_id: str, digest: bytes, document_digest: str) -> str:
    """Build the ``getCertAndSign`` frame for a digest to be signed."""
    return json.dumps(
        {
            "action": SIGNER_ACTION,
            "digest": digest.hex(),
            "requestId": request_id,
            "documentDigest": document_digest,
        }
    )


def parse_sign_response(message: Mapping[str, Any]) -> SignResponse:
    """Interpret a decoded signer frame.

    Raises:
        MalformedMessageError: If neither an error nor a certificate and
            signature can be read from the frame.
    """
    request_id = message.get("requestId")
    action = message.get("action")
    if action == ACTION_ERROR:
        text = message.get("message") or "remote signer reported an error"
        return SignResponse(str(request_id) if request_id is not None else None, error=str(text))
    if action not in (None, _ACTION_LEGACY_RESPONSE):
        raise MalformedMessageError(f"Unexpected action from signer: {action!r}")

    data = message.get("data")
    body: Mapping[str, Any] = data if isinstance(data, Mapping) else message
    if request_id is None:
        request_id = body.get("requestId")

    certificate = body.get("certificate", body.get("cert"))
    if not isinstance(certificate, (str, bytes)) or not certificate:
        raise MalformedMessageError("Signer response has no certificate")
    signature = decode_binary(body.get("signature", body.get("signedHash")), "signature")
    if not signature:
        raise MalformedMessageError("Signer response has an empty signature")

    if request_id is not None:
        request_id = str(request_id)
    return SignResponse(request_id, certificate=certificate, signature=signature)


# ── Client side ──────────────────────────────────────────────────────


def encode_signed(pdf_bytes: bytes) -> str:
    return json.dumps(
        {"action": ACTION_SIGNED, "data": base64.b64encode(pdf_bytes).decode("ascii")}
    )


def encode_verified(result: VerificationResult) -> str:
    reason = result["reason"]
    signer = result["signer"] or {}
    return json.dumps(
        {
            "action": ACTION_VERIFIED,
            "verified": result["valid"],
            "reason": reason.value if reason is not None else None,
            "signer": signer.get("name"),
        }
    )


def encode_client_error(message: str, reason: FailureReason | None = None) -> str:
    return json.dumps(
        {
            "action": ACTION_ERROR,
            "message": message,
            "reason": reason.value if reason is not None else None,
        }
    )
