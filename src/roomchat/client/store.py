"""Conversation state and the reducers that mutate it.

The state is an immutable snapshot. Every mutation is a pure function
``(state, ...) -> state``; ``ConversationStore`` holds the current snapshot
for one session and commits each transition in a single step so observers
never see a half-applied change.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Callable, Iterable, List, Optional, Tuple

FACILITATOR_ID = "AIAssistantFacilitator"
AI_PARTICIPANT_PREFIX = "AIAssistant_"


class MessageKind(Enum):
    CHAT = "chat"
    JOIN = "join"
    LEAVE = "leave"
    SYSTEM_NOTICE = "system_notice"
    CONFIG_UPDATE = "config_update"
    LOG_REPLAY = "log_replay"
    ERROR = "error"


class ParticipantRole(Enum):
    ME = "me"
    FACILITATOR = "facilitator"
    AI_PARTICIPANT = "ai_participant"
    OTHER = "other"


@dataclass(frozen=True)
class Participant:
    id: str
    display_name: str


@dataclass(frozen=True)
class Identity:
    token: str
    display_name: str


@dataclass(frozen=True, eq=False)
class Message:
    """One log entry.

    Entries compare by identity: two identical chat lines are still two
    entries in the log.
    """

    kind: MessageKind
    body: str
    timestamp: str
    sender_id: Optional[str] = None
    sender_name: Optional[str] = None
    is_thinking: bool = False
    wire_type: str = ""

    @property
    def is_system(self) -> bool:
        return self.sender_id is None


@dataclass(frozen=True)
class ConversationState:
    identity: Optional[Identity] = None
    log: Tuple[Message, ...] = ()
    roster: Tuple[Participant, ...] = ()
    facilitator_enabled: bool = False
    ai_participants: Tuple[str, ...] = ()
    connected: bool = False


def participant_role(participant_id: str, my_token: Optional[str] = None) -> ParticipantRole:
    if my_token is not None and participant_id == my_token:
        return ParticipantRole.ME
    if participant_id == FACILITATOR_ID:
        return ParticipantRole.FACILITATOR
    if participant_id.startswith(AI_PARTICIPANT_PREFIX):
        return ParticipantRole.AI_PARTICIPANT
    return ParticipantRole.OTHER


def ai_name_from_id(participant_id: str) -> Optional[str]:
    """Logical AI name for an ``AIAssistant_<name>`` id, else None."""
    if participant_id.startswith(AI_PARTICIPANT_PREFIX):
        return participant_id[len(AI_PARTICIPANT_PREFIX):]
    return None


def _unique(names: Iterable[str]) -> Tuple[str, ...]:
    seen: List[str] = []
    for name in names:
        if name not in seen:
            seen.append(name)
    return tuple(seen)


# --- Reducers ---------------------------------------------------------------

def set_identity(state: ConversationState, token: str, display_name: str) -> ConversationState:
    return replace(state, identity=Identity(token=token, display_name=display_name))


def set_connected(state: ConversationState, connected: bool) -> ConversationState:
    return replace(state, connected=connected)


def append_message(state: ConversationState, message: Message) -> ConversationState:
    return replace(state, log=state.log + (message,))


def replace_roster(state: ConversationState, roster: Iterable[Participant]) -> ConversationState:
    return replace(state, roster=tuple(roster))


def replace_log(state: ConversationState, messages: Iterable[Message]) -> ConversationState:
    """Bulk-load a replayed history; every entry is re-tagged as replay."""
    return replace(
        state,
        log=tuple(replace(m, kind=MessageKind.LOG_REPLAY) for m in messages),
    )


def set_facilitator(state: ConversationState, enabled: bool) -> ConversationState:
    return replace(state, facilitator_enabled=enabled)


def set_ai_participants(state: ConversationState, names: Iterable[str]) -> ConversationState:
    return replace(state, ai_participants=_unique(names))


def add_ai_participant(state: ConversationState, name: str) -> ConversationState:
    if name in state.ai_participants:
        return state
    return replace(state, ai_participants=state.ai_participants + (name,))


def remove_ai_participant(state: ConversationState, name: str) -> ConversationState:
    return replace(
        state,
        ai_participants=tuple(n for n in state.ai_participants if n != name),
    )


def reconcile_ai_reply(state: ConversationState, reply: Message) -> ConversationState:
    """Drop every thinking placeholder of the replying AI, then append the reply.

    Placeholders are matched purely by sender name; with no name nothing is
    removed.
    """
    name = reply.sender_name
    log = state.log
    if name:
        log = tuple(m for m in log if not (m.is_thinking and m.sender_name == name))
    return replace(state, log=log + (reply,))


def reset(state: ConversationState) -> ConversationState:
    return ConversationState()


# --- Store ------------------------------------------------------------------

Listener = Callable[[ConversationState], None]


@dataclass
class ConversationStore:
    """Holds the current snapshot for one session and notifies observers."""

    state: ConversationState = field(default_factory=ConversationState)
    _listeners: List[Listener] = field(default_factory=list, repr=False)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener``; returns a callable that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def apply(self, reducer: Callable[[ConversationState], ConversationState]) -> ConversationState:
        """Commit one transition computed by ``reducer``."""
        new_state = reducer(self.state)
        if new_state is self.state:
            return new_state
        self.state = new_state
        for listener in list(self._listeners):
            listener(new_state)
        return new_state

    def set_identity(self, token: str, display_name: str) -> None:
        self.apply(lambda s: set_identity(s, token, display_name))

    def set_connected(self, connected: bool) -> None:
        self.apply(lambda s: set_connected(s, connected))

    def append_message(self, message: Message) -> None:
        self.apply(lambda s: append_message(s, message))

    def replace_roster(self, roster: Iterable[Participant]) -> None:
        roster = list(roster)
        self.apply(lambda s: replace_roster(s, roster))

    def replace_log(self, messages: Iterable[Message]) -> None:
        messages = list(messages)
        self.apply(lambda s: replace_log(s, messages))

    def set_facilitator(self, enabled: bool) -> None:
        self.apply(lambda s: set_facilitator(s, enabled))

    def set_ai_participants(self, names: Iterable[str]) -> None:
        names = list(names)
        self.apply(lambda s: set_ai_participants(s, names))

    def add_ai_participant(self, name: str) -> None:
        self.apply(lambda s: add_ai_participant(s, name))

    def remove_ai_participant(self, name: str) -> None:
        self.apply(lambda s: remove_ai_participant(s, name))

    def reconcile_ai_reply(self, reply: Message) -> None:
        self.apply(lambda s: reconcile_ai_reply(s, reply))

    def reset(self) -> None:
        self.apply(reset)
