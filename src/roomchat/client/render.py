"""Plain-text formatting of log entries and roster lines for the terminal."""

from __future__ import annotations

from typing import Optional

from dateutil import parser as date_parser

from .store import (
    FACILITATOR_ID,
    ConversationState,
    Message,
    MessageKind,
    Participant,
    ParticipantRole,
    ai_name_from_id,
    participant_role,
)

THINKING_SUFFIX = "_thinking"
FACILITATOR_NAME = "AI Facilitator"

ROLE_ICONS = {
    ParticipantRole.ME: "🧑‍💻",
    ParticipantRole.FACILITATOR: "👑",
    ParticipantRole.AI_PARTICIPANT: "🤖",
    ParticipantRole.OTHER: "👤",
}

NOTICE_KINDS = {
    MessageKind.JOIN,
    MessageKind.LEAVE,
    MessageKind.ERROR,
    MessageKind.CONFIG_UPDATE,
    MessageKind.SYSTEM_NOTICE,
}


def format_time(timestamp: Optional[str]) -> str:
    if not timestamp:
        return ""
    try:
        return date_parser.isoparse(timestamp).strftime("%H:%M")
    except (ValueError, OverflowError):
        return ""


def _name_for_ai_id(sender_id: str) -> Optional[str]:
    base = sender_id[: -len(THINKING_SUFFIX)] if sender_id.endswith(THINKING_SUFFIX) else sender_id
    if base == FACILITATOR_ID:
        return FACILITATOR_NAME
    ai_name = ai_name_from_id(base)
    if ai_name:
        return f"AI ({ai_name})"
    if base != sender_id:
        return "AI"
    return None


def display_name(message: Message, state: ConversationState) -> str:
    """Resolve the name to show for a message's sender."""
    if message.sender_name:
        return message.sender_name
    sender_id = message.sender_id
    if not sender_id:
        return "System"
    identity = state.identity
    if identity is not None and sender_id == identity.token:
        return identity.display_name or "Me"
    ai_name = _name_for_ai_id(sender_id)
    if ai_name:
        return ai_name
    for participant in state.roster:
        if participant.id == sender_id:
            return participant.display_name
    return sender_id[:16] + "..."


def format_message(message: Message, state: ConversationState) -> str:
    stamp = format_time(message.timestamp)
    suffix = f"  ({stamp})" if stamp else ""
    if message.is_thinking:
        return f"  … {display_name(message, state)} is preparing a reply{suffix}"
    if message.kind in NOTICE_KINDS:
        return f"  * {message.body}{suffix}"

    role = ParticipantRole.OTHER
    if message.sender_id:
        token = state.identity.token if state.identity else None
        role = participant_role(message.sender_id, token)
    prefix = "[replay] " if message.kind is MessageKind.LOG_REPLAY else ""
    return f"{prefix}{ROLE_ICONS[role]} {display_name(message, state)}: {message.body}{suffix}"


def format_participant(participant: Participant, state: ConversationState) -> str:
    token = state.identity.token if state.identity else None
    role = participant_role(participant.id, token)
    me = " (me)" if role is ParticipantRole.ME else ""
    return f"{ROLE_ICONS[role]} {participant.display_name}{me}"
