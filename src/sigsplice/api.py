"""High-level convenience API.

:func:`sign` and :func:`create_coordinator` fill in signer name, reason,
capacity and timeout from the environment and saved config, so callers
only pass what they want to override.

For lower-level control, use :func:`~sigsplice.core.signing.sign_pdf`
or :func:`~sigsplice.core.signing.prepare_signing` and
:func:`~sigsplice.core.signing.finish_signing` directly.
"""

from __future__ import annotations

__all__ = ["create_coordinator", "sign", "verify"]

import logging
from typing import TYPE_CHECKING

from .config import get_reason, get_signature_capacity, get_signer_name, get_signer_timeout
from .core.pdf import SelectionRect, verify_embedded_signature
from .core.signing import SigningOptions, sign_pdf
from .network import RemoteSigningCoordinator

if TYPE_CHECKING:
    from .core.pdf import VerificationResult
    from .core.signing import Signer
    from .network import MessageChannel

_logger = logging.getLogger(__name__)


def sign(
    pdf_bytes: bytes,
    signer: Signer,
    *,
    page: int | str = 0,
    selection: SelectionRect | None = None,
    position: str = "bottom-right",
    name: str | None = None,
    reason: str | None = None,
    capacity: int | None = None,
) -> bytes:
    """
    Sign a PDF with an embedded signature using saved defaults.

    Args:
        pdf_bytes: Raw PDF file content.
        signer: Key holder, e.g. :class:`~sigsplice.core.signing.LocalSigner`.
        page: 0-based page index, "first", or "last".
        selection: Field rectangle, top-left origin. None uses ``position``.
        position: Preset position when no selection is given.
        name: Display name. Falls back to SIGSPLICE_NAME, config, then the
            certificate's common name.
        reason: Signature reason. Falls back to SIGSPLICE_REASON, config,
            then the built-in default.
        capacity: Bytes of DER reserved for the signature.

    Returns:
        The signed PDF.
    """
    options = SigningOptions(
        page=page,
        selection=selection,
        position=position,
        name=get_signer_name(name),
        reason=get_reason(reason),
        capacity=get_signature_capacity(capacity),
    )
    return sign_pdf(pdf_bytes, signer, options)


def verify(pdf_bytes: bytes) -> VerificationResult:
    """Verify the embedded signature. Never raises."""
    return verify_embedded_signature(pdf_bytes)


def create_coordinator(
    channel: MessageChannel | None = None,
    *,
    correlate: bool = True,
    timeout: int | None = None,
    capacity: int | None = None,
) -> RemoteSigningCoordinator:
    """Build a coordinator with timeout and capacity taken from config."""
    resolved_timeout = get_signer_timeout(timeout)
    resolved_capacity = get_signature_capacity(capacity)
    _logger.debug(
        "Coordinator: correlate=%s timeout=%ds capacity=%d",
        correlate,
        resolved_timeout,
        resolved_capacity,
    )
    return RemoteSigningCoordinator(
        channel,
        correlate=correlate,
        timeout=resolved_timeout,
        capacity=resolved_capacity,
    )
