"""
Channel abstraction for the remote signer and for signing clients.

The coordinator depends on this protocol, not on a concrete socket
implementation: anything that can push one text frame to the peer will do
(a WebSocket connection, a native-messaging pipe, a test double).
"""

from __future__ import annotations

from typing import Protocol


class MessageChannel(Protocol):
    """One bidirectional connection; inbound frames are pushed by the owner.

    The owner of the connection feeds received frames to
    ``RemoteSigningCoordinator.handle_message`` (signer side) or
    ``ClientHandler.handle_message`` (client side) and reports a closed
    connection with ``handle_disconnect(channel)``.
    """

    def send(self, frame: str) -> None:
        """
        Send one JSON text frame to the peer.

        Raises:
            OSError: If the connection is gone.
        """
        ...
