"""Chat session - one store, one connector and the room controls together."""

from __future__ import annotations

from typing import Optional

from .config import ClientConfig
from .connector import ConnectionState, SessionConnector, StatusCallback
from .controls import RoomControls
from .errors import RoomControlError
from .log_manager import LogManager
from .store import ConversationState, ConversationStore


class ChatSession:
    """Manages the lifetime of a single room session.

    Control calls (facilitator toggle, AI add/remove) update the store
    optimistically from the server's response; the stream later confirms
    them and the store dedupes by AI name.
    """

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        log_manager: Optional[LogManager] = None,
        connector: Optional[SessionConnector] = None,
        controls: Optional[RoomControls] = None,
        on_status: Optional[StatusCallback] = None,
    ):
        self.config = config or ClientConfig()
        self.log_manager = log_manager or LogManager()
        self.store = connector.store if connector else ConversationStore()
        self.connector = connector or SessionConnector(
            self.store,
            config=self.config,
            log_manager=self.log_manager,
            on_status=on_status,
        )
        self.controls = controls or RoomControls(self.config.api_url, timeout=self.config.timeout)

    @property
    def state(self) -> ConversationState:
        return self.store.state

    @property
    def room_id(self) -> Optional[str]:
        return self.connector.room_id

    @property
    def error(self) -> Optional[str]:
        return self.connector.error

    def _require_room(self) -> str:
        if not self.connector.room_id or self.connector.state is ConnectionState.CLOSED:
            raise RoomControlError("Not in a room")
        return self.connector.room_id

    async def join(self, room_id: str, display_name: str = "") -> bool:
        return await self.connector.connect(room_id, display_name)

    async def send(self, text: str) -> None:
        await self.connector.send(text)

    async def toggle_facilitator(self) -> bool:
        """Flip the facilitator flag; returns the server-confirmed value."""
        room_id = self._require_room()
        enabled = await self.controls.set_facilitator(room_id, not self.store.state.facilitator_enabled)
        self.store.set_facilitator(enabled)
        self.log_manager.add("events", f"[session] facilitator {'on' if enabled else 'off'}")
        return enabled

    async def add_ai_participant(self, ai_name: str) -> Optional[str]:
        name = ai_name.strip()
        if not name:
            raise ValueError("AI participant name must not be empty")
        room_id = self._require_room()
        added = await self.controls.add_ai_participant(room_id, name)
        if added:
            self.store.add_ai_participant(added)
            self.log_manager.add("events", f"[session] AI participant added: {added}")
        return added

    async def remove_ai_participant(self, ai_name: str) -> Optional[str]:
        room_id = self._require_room()
        removed = await self.controls.remove_ai_participant(room_id, ai_name)
        if removed:
            self.store.remove_ai_participant(removed)
            self.log_manager.add("events", f"[session] AI participant removed: {removed}")
        return removed

    async def leave(self) -> None:
        await self.connector.close()

    async def __aenter__(self) -> "ChatSession":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.leave()
