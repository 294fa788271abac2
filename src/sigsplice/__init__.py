"""
sigsplice -- embedded detached PKCS#7 signatures for PDF documents.

Reserves a placeholder in an incremental update, computes the
/ByteRange, and splices the signature in without touching any other
byte. The private key may live in-process or behind a remote signer
reached through :class:`~sigsplice.network.RemoteSigningCoordinator`.
"""

from __future__ import annotations

from .api import create_coordinator, sign, verify
from .constants import __version__
from .core.pdf import (
    POSITION_PRESETS,
    SelectionRect,
    resolve_position,
    verify_embedded_signature,
)
from .core.signing import (
    LocalSigner,
    Signer,
    SigningOptions,
    finish_signing,
    prepare_signing,
    sign_pdf,
)
from .errors import (
    CertificateError,
    ConfigError,
    FailureReason,
    PDFError,
    SignatureError,
    SignerError,
    SigspliceError,
)
from .network import ClientHandler, RemoteSigningCoordinator, SignIntent

__all__ = [
    "POSITION_PRESETS",
    "CertificateError",
    "ClientHandler",
    "ConfigError",
    "FailureReason",
    "LocalSigner",
    "PDFError",
    "RemoteSigningCoordinator",
    "SelectionRect",
    "SignIntent",
    "SignatureError",
    "Signer",
    "SignerError",
    "SigningOptions",
    "SigspliceError",
    "__version__",
    "create_coordinator",
    "finish_signing",
    "prepare_signing",
    "resolve_position",
    "sign",
    "sign_pdf",
    "verify",
    "verify_embedded_signature",
]
