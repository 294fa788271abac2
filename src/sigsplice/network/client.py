"""
Client-facing frame handling.

One :class:`ClientHandler` per client connection decodes ``sign`` and
``verify`` frames, forwards signing to the shared
:class:`~sigsplice.network.coordinator.RemoteSigningCoordinator`, and
replies on the same connection once the result is known.
"""

from __future__ import annotations

__all__ = ["ClientHandler"]

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from ..core.pdf import SelectionRect, verify_embedded_signature
from ..errors import MalformedMessageError, PDFError, SigspliceError
from .coordinator import SignIntent
from .messages import (
    ACTION_SIGN,
    ACTION_VERIFY,
    decode_binary,
    decode_frame,
    encode_client_error,
    encode_signed,
    encode_verified,
)

if TYPE_CHECKING:
    from concurrent.futures import Future

    from .coordinator import RemoteSigningCoordinator
    from .protocol import MessageChannel

_logger = logging.getLogger(__name__)


def _parse_sign_data(data: Mapping[str, Any]) -> SignIntent:
    pdf_bytes = decode_binary(data.get("pdfBuffer"), "pdfBuffer")
    page_index = data.get("pageIndex")
    if not isinstance(page_index, int) or isinstance(page_index, bool):
        raise MalformedMessageError(f"pageIndex must be an integer, got {page_index!r}")
    coords = data.get("selectionCoords")
    if not isinstance(coords, Mapping):
        raise MalformedMessageError("selectionCoords is missing")
    try:
        selection = SelectionRect.from_mapping(coords)
    except PDFError as e:
        raise MalformedMessageError(str(e)) from e
    signer_name = data.get("signerName")
    return SignIntent(
        pdf_bytes=pdf_bytes,
        page_index=page_index,
        selection=selection,
        signer_name=signer_name if isinstance(signer_name, str) else None,
    )


class ClientHandler:
    """Serves one client connection."""

    def __init__(self, coordinator: RemoteSigningCoordinator, channel: MessageChannel) -> None:
        self._coordinator = coordinator
        self._channel = channel

    def handle_message(self, raw: str | bytes) -> None:
        """Decode and act on one client frame; errors are replied, not raised."""
        try:
            message = decode_frame(raw)
            action = message.get("action")
            data = message.get("data")
            if not isinstance(data, Mapping):
                raise MalformedMessageError(f"Frame for {action!r} has no data object")
            if action == ACTION_SIGN:
                self._sign(_parse_sign_data(data))
            elif action == ACTION_VERIFY:
                self._verify(decode_binary(data.get("Buff"), "Buff"))
            else:
                raise MalformedMessageError(f"Unknown action: {action!r}")
        except SigspliceError as e:
            _logger.warning("Client request rejected: %s", e)
            self._reply(encode_client_error(str(e), e.reason))
        except Exception as e:
            _logger.exception("Unexpected error handling client frame")
            self._reply(encode_client_error(f"Internal error: {e}"))

    def _sign(self, intent: SignIntent) -> None:
        future = self._coordinator.submit(intent, caller=self)
        future.add_done_callback(self._deliver)

    def _deliver(self, future: Future[bytes]) -> None:
        error = future.exception()
        if error is None:
            self._reply(encode_signed(future.result()))
        elif isinstance(error, SigspliceError):
            self._reply(encode_client_error(f"Error signing PDF: {error}", error.reason))
        else:
            _logger.error("Unexpected signing failure", exc_info=error)
            self._reply(encode_client_error(f"Error signing PDF: {error}"))

    def _verify(self, pdf_bytes: bytes) -> None:
        self._reply(encode_verified(verify_embedded_signature(pdf_bytes)))

    def _reply(self, frame: str) -> None:
        try:
            self._channel.send(frame)
        except OSError as e:
            _logger.warning("Cannot reply to client: %s", e)
