"""Session connector - owns the room stream lifecycle.

Lifecycle of one attempt::

    IDLE -> AUTHENTICATING -> CONNECTING -> OPEN -> CLOSED
                  \\               \\          \\
                   +-> FAULTED     +-> FAULTED  +-> FAULTED

A new ``connect()`` or an explicit ``close()`` ends the current attempt.
There is no automatic reconnect; callers re-invoke ``connect()``.
"""

from __future__ import annotations

import asyncio
from contextlib import suppress
from enum import Enum
from typing import Any, Awaitable, Callable, Optional

import websockets
from websockets.exceptions import ConnectionClosed, InvalidHandshake, InvalidURI

from .config import ClientConfig
from .credentials import CredentialExchange
from .dispatcher import ProtocolDispatcher
from .errors import CredentialError, SendRejected, TransportError
from .log_manager import LogManager
from .protocol import encode_chat
from .store import ConversationStore

POLICY_VIOLATION = 1008


class ConnectionState(Enum):
    IDLE = "idle"
    AUTHENTICATING = "authenticating"
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSED = "closed"
    FAULTED = "faulted"


StatusCallback = Callable[[ConnectionState, Optional[str]], None]
Connect = Callable[[str], Awaitable[Any]]


def close_error_message(code: Optional[int], reason: str = "") -> str:
    if code == POLICY_VIOLATION:
        return f"Connection rejected: {reason or 'authentication error'}"
    return f"Connection lost unexpectedly: {reason or 'unknown error'}"


class SessionConnector:
    """Connects one store to one room stream at a time."""

    def __init__(
        self,
        store: ConversationStore,
        config: Optional[ClientConfig] = None,
        credentials: Optional[CredentialExchange] = None,
        dispatcher: Optional[ProtocolDispatcher] = None,
        connect: Optional[Connect] = None,
        log_manager: Optional[LogManager] = None,
        on_status: Optional[StatusCallback] = None,
    ):
        """Initialize the connector.

        Args:
            store: Store that receives every decoded event
            config: Endpoints; defaults to ``ClientConfig()``
            credentials: Token client; defaults to one built from ``config``
            dispatcher: Event dispatcher; defaults to one bound to ``store``
            connect: Coroutine opening a transport for a URL (``websockets.connect``)
            log_manager: Optional LogManager for events/errors/traffic lines
            on_status: Optional callback(state, error) on every state change
        """
        self.store = store
        self.config = config or ClientConfig()
        self.log_manager = log_manager
        self.credentials = credentials or CredentialExchange(
            self.config.api_url, timeout=self.config.timeout
        )
        self.dispatcher = dispatcher or ProtocolDispatcher(
            store, debug_logger=self._logger("debug")
        )
        self._connect = connect or websockets.connect
        self.on_status = on_status

        self.state = ConnectionState.IDLE
        self.error: Optional[str] = None
        self.room_id: Optional[str] = None
        self.websocket: Optional[Any] = None
        self._receiver: Optional[asyncio.Task] = None
        self._attempt = 0

    # --- logging ------------------------------------------------------------

    def _logger(self, category: str) -> Callable[[str], None]:
        if self.log_manager is None:
            return lambda msg: None
        return self.log_manager.logger(category)

    def _log(self, category: str, message: str) -> None:
        if self.log_manager is not None:
            self.log_manager.add(category, message)

    def _set_state(self, state: ConnectionState) -> None:
        self.state = state
        self._log("events", f"[connector] {state.value}" + (f" room={self.room_id}" if self.room_id else ""))
        if self.on_status:
            self.on_status(state, self.error)

    def _fault(self, message: str) -> None:
        self.error = message
        self._log("errors", f"[connector] {message}")
        self.websocket = None
        self.store.set_connected(False)
        self._set_state(ConnectionState.FAULTED)

    @property
    def is_open(self) -> bool:
        return self.state is ConnectionState.OPEN

    # --- lifecycle ----------------------------------------------------------

    async def connect(self, room_id: str, display_name: str) -> bool:
        """Start a new attempt for ``room_id``; returns True once the stream is open.

        Any previous attempt is torn down first. Raises ``CredentialError``
        if the token cannot be obtained; transport failures are reported
        through ``error`` and the FAULTED state instead.
        """
        if self.state is not ConnectionState.IDLE:
            await self.close()
            self._set_state(ConnectionState.IDLE)
        if not room_id:
            self._log("events", "[connector] room id not available yet; waiting")
            return False

        self._attempt += 1
        attempt = self._attempt
        self.room_id = room_id
        self.error = None
        self.store.reset()
        self._set_state(ConnectionState.AUTHENTICATING)

        try:
            credential = await self.credentials.issue(display_name)
        except CredentialError as exc:
            if attempt != self._attempt:
                return False
            self._fault(str(exc))
            raise
        if attempt != self._attempt:
            return False

        self.store.set_identity(credential.token, credential.username)
        self._set_state(ConnectionState.CONNECTING)
        url = self.config.stream_url(room_id, credential.token)
        try:
            websocket = await self._connect(url)
        except (OSError, InvalidHandshake, InvalidURI, asyncio.TimeoutError) as exc:
            if attempt == self._attempt:
                self._fault(f"WebSocket connection error: {exc}")
            return False
        if attempt != self._attempt:
            await websocket.close()
            return False

        self.websocket = websocket
        self.error = None
        self.store.set_connected(True)
        self._set_state(ConnectionState.OPEN)
        self._receiver = asyncio.create_task(self._receive_loop(websocket, attempt))
        return True

    async def _receive_loop(self, websocket: Any, attempt: int) -> None:
        try:
            async for frame in websocket:
                if attempt != self._attempt:
                    return
                self._log("traffic", f"<- {frame}")
                try:
                    self.dispatcher.handle_frame(frame)
                except Exception as exc:
                    # A failing store subscriber must not stop the stream.
                    self._log("errors", f"[connector] failed to apply frame: {exc!r}")
        except ConnectionClosed as exc:
            if attempt != self._attempt:
                return
            rcvd = exc.rcvd
            code = rcvd.code if rcvd is not None else None
            reason = rcvd.reason if rcvd is not None else ""
            self._fault(close_error_message(code, reason))
            return
        except OSError as exc:
            if attempt == self._attempt:
                self._fault(f"WebSocket connection error: {exc}")
            return
        except Exception as exc:
            if attempt == self._attempt:
                self._fault(f"Connection lost unexpectedly: {exc}")
            return

        if attempt == self._attempt:
            self.websocket = None
            self.store.set_connected(False)
            self._set_state(ConnectionState.CLOSED)

    async def send(self, text: str) -> None:
        """Send one chat line. Rejected locally unless the stream is open."""
        if self.state is not ConnectionState.OPEN or self.websocket is None:
            self.error = "WebSocket is not connected."
            self._log("errors", f"[connector] send rejected: {self.error}")
            raise SendRejected(self.error)
        payload = encode_chat(text)
        try:
            await self.websocket.send(payload)
        except (ConnectionClosed, OSError) as exc:
            self.error = "Failed to send message."
            self._log("errors", f"[connector] send failed: {exc}")
            raise TransportError(self.error) from exc
        self._log("traffic", f"-> {payload}")

    async def wait_closed(self) -> None:
        """Wait for the current receive loop to finish."""
        if self._receiver is not None:
            with suppress(asyncio.CancelledError):
                await self._receiver

    async def close(self) -> None:
        """Tear down the current attempt. Idempotent, safe from any state."""
        self._attempt += 1
        websocket, self.websocket = self.websocket, None
        receiver, self._receiver = self._receiver, None
        try:
            if websocket is not None:
                self._log("events", "[connector] closing stream")
                try:
                    await websocket.close()
                except (ConnectionClosed, OSError) as exc:
                    self._log("errors", f"[connector] close failed: {exc}")
            if receiver is not None and receiver is not asyncio.current_task():
                receiver.cancel()
                try:
                    await receiver
                except asyncio.CancelledError:
                    pass
                except Exception as exc:
                    self._log("errors", f"[connector] receive loop failed: {exc!r}")
        finally:
            self.store.reset()
            if self.state is not ConnectionState.CLOSED:
                self._set_state(ConnectionState.CLOSED)
