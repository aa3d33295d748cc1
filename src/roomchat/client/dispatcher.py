"""Apply inbound room events to the conversation store.

Each frame becomes exactly one store transition. Decode failures are
recorded as an error notice in the log and never propagate to the
receive loop.
"""

from __future__ import annotations

from datetime import datetime
from typing import Callable, Dict, Iterable, List, Optional, Union

from dateutil import tz

from . import store as reducers
from .errors import ProtocolDecodeError
from .protocol import EventKind, InboundEvent, WireLogEntry, WireUser, classify, decode_event
from .store import ConversationState, ConversationStore, Message, MessageKind, Participant

WIRE_KINDS: Dict[str, MessageKind] = {
    "chat": MessageKind.CHAT,
    "join": MessageKind.JOIN,
    "leave": MessageKind.LEAVE,
    "system_message": MessageKind.SYSTEM_NOTICE,
    "config_update": MessageKind.CONFIG_UPDATE,
    "log": MessageKind.LOG_REPLAY,
    "error": MessageKind.ERROR,
}

# Legacy placeholder type; always treated as a thinking marker.
AI_THINKING_TYPE = "ai_thinking"

Handler = Callable[[ConversationState, InboundEvent, str], ConversationState]


def utc_now_iso() -> str:
    return datetime.now(tz=tz.UTC).isoformat()


def to_message(entry: Union[InboundEvent, WireLogEntry], received_at: str) -> Message:
    """Convert a wire event or replayed entry into a log message."""
    return Message(
        kind=WIRE_KINDS.get(entry.type, MessageKind.SYSTEM_NOTICE),
        body=entry.message,
        timestamp=entry.timestamp or received_at,
        sender_id=entry.user_id,
        sender_name=entry.username,
        is_thinking=entry.type == AI_THINKING_TYPE or entry.is_thinking is True,
        wire_type=entry.type,
    )


def to_participants(users: Iterable[WireUser]) -> List[Participant]:
    return [Participant(id=u.id, display_name=u.name) for u in users]


def refresh_common_state(state: ConversationState, event: InboundEvent) -> ConversationState:
    """Overwrite only the shared fields the event actually carries."""
    if event.facilitator_enabled is not None:
        state = reducers.set_facilitator(state, event.facilitator_enabled)
    if event.active_user is not None:
        state = reducers.replace_roster(state, to_participants(event.active_user))
    if event.active_ai_participants is not None:
        state = reducers.set_ai_participants(state, event.active_ai_participants)
    return state


def _short_id(user_id: Optional[str]) -> str:
    return (user_id or "someone")[:8]


def _joiner_name(state: ConversationState, event: InboundEvent) -> str:
    identity = state.identity
    if identity is not None and event.user_id == identity.token:
        return identity.display_name
    return event.username or _short_id(event.user_id)


def _notice(kind: MessageKind, event: InboundEvent, body: str, received_at: str) -> Message:
    return Message(
        kind=kind,
        body=body,
        timestamp=event.timestamp or received_at,
        sender_id=event.user_id,
        wire_type=event.type,
    )


def on_join(state: ConversationState, event: InboundEvent, received_at: str) -> ConversationState:
    state = reducers.replace_roster(state, to_participants(event.users or []))
    if event.chat_log is not None:
        state = reducers.replace_log(state, [to_message(e, received_at) for e in event.chat_log])
    name = _joiner_name(state, event)
    state = reducers.append_message(
        state, _notice(MessageKind.JOIN, event, f"{name} joined", received_at)
    )
    return refresh_common_state(state, event)


def on_leave(state: ConversationState, event: InboundEvent, received_at: str) -> ConversationState:
    state = reducers.replace_roster(state, to_participants(event.users or []))
    name = event.username or _short_id(event.user_id)
    state = reducers.append_message(
        state, _notice(MessageKind.LEAVE, event, f"{name} left", received_at)
    )
    return refresh_common_state(state, event)


def on_chat(state: ConversationState, event: InboundEvent, received_at: str) -> ConversationState:
    return reducers.append_message(state, to_message(event, received_at))


def on_ai_reply(state: ConversationState, event: InboundEvent, received_at: str) -> ConversationState:
    return reducers.reconcile_ai_reply(state, to_message(event, received_at))


def on_system_message(state: ConversationState, event: InboundEvent, received_at: str) -> ConversationState:
    state = refresh_common_state(state, event)
    return reducers.append_message(state, to_message(event, received_at))


def on_other(state: ConversationState, event: InboundEvent, received_at: str) -> ConversationState:
    state = reducers.append_message(state, to_message(event, received_at))
    return refresh_common_state(state, event)


HANDLERS: Dict[EventKind, Handler] = {
    EventKind.JOIN: on_join,
    EventKind.LEAVE: on_leave,
    EventKind.CHAT: on_chat,
    EventKind.AI_REPLY: on_ai_reply,
    EventKind.SYSTEM_MESSAGE: on_system_message,
    EventKind.OTHER: on_other,
}

_missing = set(EventKind) - set(HANDLERS)
if _missing:
    raise TypeError(f"No dispatch handler for {sorted(k.value for k in _missing)}")


class ProtocolDispatcher:
    """Decodes frames and applies them to a ``ConversationStore``."""

    def __init__(
        self,
        store: ConversationStore,
        clock: Optional[Callable[[], str]] = None,
        debug_logger: Optional[Callable[[str], None]] = None,
    ):
        self.store = store
        self._clock = clock or utc_now_iso
        self._debug_logger = debug_logger or (lambda msg: None)

    def handle_frame(self, raw: Union[str, bytes]) -> Optional[EventKind]:
        """Process one raw frame. Returns the event kind, or None if it was malformed."""
        received_at = self._clock()
        try:
            event = decode_event(raw)
        except ProtocolDecodeError as exc:
            self._debug_logger(f"[dispatch] dropped malformed frame: {exc}")
            self.store.append_message(
                Message(
                    kind=MessageKind.ERROR,
                    body=f"Error processing message: {exc.raw}",
                    timestamp=received_at,
                    wire_type="error",
                )
            )
            return None
        return self.dispatch(event, received_at)

    def dispatch(self, event: InboundEvent, received_at: Optional[str] = None) -> EventKind:
        kind = classify(event)
        handler = HANDLERS[kind]
        at = received_at or self._clock()
        self._debug_logger(f"[dispatch] {event.type} -> {kind.value}")
        self.store.apply(lambda state: handler(state, event, at))
        return kind
