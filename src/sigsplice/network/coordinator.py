"""
Remote signing coordinator.

Brokers signing requests from any number of client sessions to a single
remote signer (for example a browser extension holding a hardware key).
Each request walks through::

    IDLE -> AWAITING_REMOTE_SIGNER -> COMPLETED | FAILED

and its slot is cleared once it leaves AWAITING_REMOTE_SIGNER.

Two correlation modes are supported:

- ``correlate=True`` (default): requests carry a ``requestId`` and up to
  ``max_in_flight`` may be pending at once.
- ``correlate=False``: one request at a time; responses without a
  ``requestId`` are matched to the only pending request.
"""

from __future__ import annotations

__all__ = [
    "RemoteSigningCoordinator",
    "SessionState",
    "SignIntent",
    "SigningSession",
]

import hashlib
import logging
import threading
import uuid
from collections.abc import Callable, Mapping
from concurrent.futures import Future, InvalidStateError
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ..constants import (
    DEFAULT_DIGEST_ALGORITHM,
    DEFAULT_MAX_IN_FLIGHT,
    DEFAULT_REASON,
    DEFAULT_SIGNATURE_CAPACITY,
    DEFAULT_SIGNER_TIMEOUT,
)
from ..core.pdf import SelectionRect
from ..core.signing import PendingSignature, SigningOptions, finish_signing, prepare_signing
from ..errors import (
    MalformedMessageError,
    PDFError,
    SignerBusyError,
    SignerDisconnectedError,
    SignerRejectedError,
    SignerTimeoutError,
    SignerUnavailableError,
    SigspliceError,
)
from .messages import SignResponse, decode_frame, encode_sign_request, parse_sign_response
from .protocol import MessageChannel

_logger = logging.getLogger(__name__)


def _wrap(error: SigspliceError, cause: BaseException) -> SigspliceError:
    error.__cause__ = cause
    return error


class SessionState(str, Enum):
    """Lifecycle of one signing request."""

    IDLE = "idle"
    AWAITING_REMOTE_SIGNER = "awaiting_remote_signer"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class SignIntent:
    """What a client asked to have signed.

    Attributes:
        pdf_bytes: The uploaded document.
        page_index: 0-based page for the visible signature.
        selection: Rectangle drawn on the rendered page (top-left origin).
        signer_name: Name shown in the appearance. The certificate is not
            known until the signer answers, so this is the caller's choice.
        reason: Signature reason string.
    """

    pdf_bytes: bytes
    page_index: int
    selection: SelectionRect
    signer_name: str | None = None
    reason: str = DEFAULT_REASON


@dataclass(eq=False)
class SigningSession:
    """One request in flight between a client and the remote signer."""

    request_id: str
    document_digest: str
    intent: SignIntent
    caller: object | None
    future: Future[bytes] = field(default_factory=Future)
    state: SessionState = SessionState.IDLE
    pending: PendingSignature | None = None
    timer: threading.Timer | None = None

    def complete(self, signed_pdf: bytes) -> None:
        self._stop_timer()
        self.state = SessionState.COMPLETED
        try:
            self.future.set_result(signed_pdf)
        except InvalidStateError:
            _logger.debug("Request %s: caller no longer waiting", self.request_id)

    def fail(self, error: BaseException) -> None:
        self._stop_timer()
        self.state = SessionState.FAILED
        try:
            self.future.set_exception(error)
        except InvalidStateError:
            _logger.debug("Request %s: caller no longer waiting", self.request_id)

    def _stop_timer(self) -> None:
        if self.timer is not None:
            self.timer.cancel()
            self.timer = None


class RemoteSigningCoordinator:
    """Session state machine between clients and one remote signer channel.

    Args:
        channel: Initial signer channel, or None until one attaches.
        correlate: Match responses by ``requestId``; False for single-slot mode.
        max_in_flight: Pending request limit in correlated mode.
        timeout: Seconds to wait for the signer before failing a request.
        capacity: Bytes of DER reserved for each signature.
        digest_algorithm: hashlib name used for all digests.
        id_factory: Request id generator, ``uuid4().hex`` by default.
    """

    def __init__(
        self,
        channel: MessageChannel | None = None,
        *,
        correlate: bool = True,
        max_in_flight: int = DEFAULT_MAX_IN_FLIGHT,
        timeout: float = DEFAULT_SIGNER_TIMEOUT,
        capacity: int = DEFAULT_SIGNATURE_CAPACITY,
        digest_algorithm: str = DEFAULT_DIGEST_ALGORITHM,
        id_factory: Callable[[], str] | None = None,
    ) -> None:
        if max_in_flight < 1:
            raise ValueError(f"max_in_flight must be at least 1, got {max_in_flight}")
        self._channel = channel
        self._correlate = correlate
        self._limit = max_in_flight if correlate else 1
        self._timeout = timeout
        self._capacity = capacity
        self._digest_algorithm = digest_algorithm
        self._new_id = id_factory or (lambda: uuid.uuid4().hex)
        self._sessions: dict[str, SigningSession] = {}
        self._lock = threading.Lock()

    # ── Channel management ──────────────────────────────────────────

    @property
    def connected(self) -> bool:
        return self._channel is not None

    @property
    def in_flight(self) -> int:
        with self._lock:
            return len(self._sessions)

    def attach_signer(self, channel: MessageChannel) -> None:
        """Use *channel* for all future requests.

        Requests pending on a previous channel can no longer be answered
        and fail with SignerDisconnectedError.
        """
        with self._lock:
            previous = self._channel
            self._channel = channel
            orphaned = self._drain_locked() if previous is not None else []
        for session in orphaned:
            session.fail(SignerDisconnectedError("Remote signer was replaced"))
        _logger.info("Remote signer attached")

    def detach_signer(self) -> None:
        """Forget the signer channel and fail every pending request."""
        self._release(None)

    def handle_disconnect(self, channel: MessageChannel | None = None) -> None:
        """Called by the channel owner when a signer connection closes.

        With *channel* given, a close reported for a connection that has
        already been replaced by :meth:`attach_signer` is ignored.
        """
        if not self._release(channel):
            _logger.debug("Ignoring close of a replaced signer channel")
            return
        _logger.info("Remote signer disconnected")

    def close(self) -> None:
        """Fail pending requests and stop their timers."""
        self.detach_signer()

    # ── Requests ────────────────────────────────────────────────────

    def submit(self, intent: SignIntent, caller: object | None = None) -> Future[bytes]:
        """
        Start a signing request.

        Returns:
            A Future resolved with the signed PDF, or failed with a
            SigspliceError once the request cannot complete.

        Raises:
            SignerUnavailableError: If no signer is attached.
            SignerBusyError: If the in-flight limit is reached.
        """
        document_digest = hashlib.sha256(intent.pdf_bytes).hexdigest()
        session = SigningSession(
            request_id=self._new_id(),
            document_digest=document_digest,
            intent=intent,
            caller=caller,
        )

        # Reserve the slot before the (slow) preparation so the limit holds
        with self._lock:
            if self._channel is None:
                raise SignerUnavailableError("No remote signer is connected")
            if len(self._sessions) >= self._limit:
                raise SignerBusyError(
                    f"Remote signer busy: {len(self._sessions)} request(s) in flight"
                )
            self._sessions[session.request_id] = session

        _logger.info(
            "Request %s: %d bytes, page %d, document %s",
            session.request_id,
            len(intent.pdf_bytes),
            intent.page_index,
            document_digest[:16],
        )

        try:
            session.pending = prepare_signing(
                intent.pdf_bytes,
                SigningOptions(
                    page=intent.page_index,
                    selection=intent.selection,
                    name=intent.signer_name,
                    reason=intent.reason,
                    capacity=self._capacity,
                    digest_algorithm=self._digest_algorithm,
                ),
            )
        except SigspliceError as e:
            self._abandon(session, e)
            return session.future
        except Exception as e:
            _logger.exception(
                "Request %s: unexpected error preparing document", session.request_id
            )
            self._abandon(session, _wrap(PDFError(f"Cannot prepare document: {e}"), e))
            return session.future

        frame = encode_sign_request(
            session.request_id, session.pending.attributes_digest, document_digest
        )
        with self._lock:
            channel = self._channel
            if session.request_id not in self._sessions:
                # Signer went away while the document was being prepared
                return session.future
            session.state = SessionState.AWAITING_REMOTE_SIGNER
            session.timer = threading.Timer(self._timeout, self._expire, (session.request_id,))
            session.timer.daemon = True
            session.timer.start()

        if channel is None:
            self._abandon(session, SignerUnavailableError("No remote signer is connected"))
            return session.future
        try:
            channel.send(frame)
        except OSError as e:
            self._abandon(session, SignerDisconnectedError(f"Cannot reach remote signer: {e}"))
            return session.future

        _logger.debug("Request %s: sent digest to remote signer", session.request_id)
        return session.future

    def handle_message(self, raw: str | bytes) -> None:
        """Decode a frame from the signer channel and dispatch it.

        Malformed frames are logged and dropped.
        """
        try:
            response = parse_sign_response(decode_frame(raw))
        except MalformedMessageError as e:
            _logger.warning("Dropping malformed signer frame: %s", e)
            return
        self.handle_response(response)

    def handle_response(self, response: SignResponse | Mapping[str, Any]) -> None:
        """Finish the request that *response* answers.

        Unknown, duplicate and late responses are logged and dropped.
        """
        if not isinstance(response, SignResponse):
            try:
                response = parse_sign_response(response)
            except MalformedMessageError as e:
                _logger.warning("Dropping malformed signer response: %s", e)
                return

        with self._lock:
            session = self._claim_locked(response.request_id)
        if session is None:
            _logger.warning("Dropping stray signer response (requestId=%r)", response.request_id)
            return

        if response.error is not None:
            _logger.warning("Request %s: signer refused: %s", session.request_id, response.error)
            session.fail(SignerRejectedError(f"Remote signer refused: {response.error}"))
            return

        if session.pending is None or response.certificate is None or response.signature is None:
            session.fail(MalformedMessageError("Incomplete signer response"))
            return
        try:
            signed_pdf = finish_signing(session.pending, response.certificate, response.signature)
        except SigspliceError as e:
            _logger.warning("Request %s failed: %s", session.request_id, e)
            session.fail(e)
            return
        except Exception as e:
            _logger.exception(
                "Request %s: unexpected error embedding signature", session.request_id
            )
            session.fail(_wrap(PDFError(f"Cannot embed signature: {e}"), e))
            return

        session.complete(signed_pdf)
        _logger.info(
            "Request %s: signed PDF delivered (%d bytes)", session.request_id, len(signed_pdf)
        )

    # ── Internals ───────────────────────────────────────────────────

    def _claim_locked(self, request_id: str | None) -> SigningSession | None:
        """Remove and return the awaiting session a response belongs to."""
        if request_id is None:
            if self._correlate or len(self._sessions) != 1:
                return None
            request_id = next(iter(self._sessions))
        session = self._sessions.get(request_id)
        if session is None or session.state is not SessionState.AWAITING_REMOTE_SIGNER:
            return None
        del self._sessions[request_id]
        return session

    def _drain_locked(self) -> list[SigningSession]:
        sessions = list(self._sessions.values())
        self._sessions.clear()
        return sessions

    def _release(self, channel: MessageChannel | None) -> bool:
        """Detach the signer channel if it is *channel* (any when None).

        Returns False, leaving everything in place, when *channel* is no
        longer the attached one.
        """
        with self._lock:
            if channel is not None and channel is not self._channel:
                return False
            self._channel = None
            orphaned = self._drain_locked()
        for session in orphaned:
            session.fail(SignerDisconnectedError("Remote signer disconnected"))
        if orphaned:
            _logger.warning("Remote signer detached with %d pending request(s)", len(orphaned))
        return True

    def _abandon(self, session: SigningSession, error: SigspliceError) -> None:
        with self._lock:
            self._sessions.pop(session.request_id, None)
        _logger.warning("Request %s failed: %s", session.request_id, error)
        session.fail(error)

    def _expire(self, request_id: str) -> None:
        with self._lock:
            session = self._sessions.pop(request_id, None)
        if session is None:
            return
        _logger.warning("Request %s: no answer from signer in %.0fs", request_id, self._timeout)
        session.fail(SignerTimeoutError(f"Remote signer did not answer within {self._timeout:g}s"))
