"""Remote signer coordination and wire messages."""

from __future__ import annotations

from .client import ClientHandler
from .coordinator import RemoteSigningCoordinator, SessionState, SignIntent, SigningSession
from .messages import SignResponse, parse_sign_response
from .protocol import MessageChannel

__all__ = [
    "ClientHandler",
    "MessageChannel",
    "RemoteSigningCoordinator",
    "SessionState",
    "SignIntent",
    "SignResponse",
    "SigningSession",
    "parse_sign_response",
]
