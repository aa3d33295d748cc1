"""Wire protocol for the room stream.

Inbound frames are JSON objects tagged by ``type``. Every field other than
``type`` is optional; state-carrying fields (``users``, ``active_user``,
``facilitator_enabled``, ``active_ai_participants``, ``chat_log``) only
affect local state when present.
"""

from __future__ import annotations

import json
from enum import Enum
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, StrictBool, ValidationError

from .errors import ProtocolDecodeError


class EventKind(Enum):
    """Dispatch classes for inbound events."""

    JOIN = "join"
    LEAVE = "leave"
    CHAT = "chat"              # human chat or a thinking placeholder
    AI_REPLY = "ai_reply"      # chat explicitly marked is_thinking=false
    SYSTEM_MESSAGE = "system_message"
    OTHER = "other"


class WireUser(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    name: str = ""


class WireLogEntry(BaseModel):
    """A message as it appears inside a replayed ``chat_log``."""

    model_config = ConfigDict(extra="ignore")

    type: str = "chat"
    user_id: Optional[str] = None
    username: Optional[str] = None
    message: str = ""
    timestamp: Optional[str] = None
    is_thinking: Optional[StrictBool] = None


class InboundEvent(BaseModel):
    model_config = ConfigDict(extra="ignore")

    type: str
    user_id: Optional[str] = None
    username: Optional[str] = None
    message: str = ""
    timestamp: Optional[str] = None
    is_thinking: Optional[StrictBool] = None
    users: Optional[List[WireUser]] = None
    active_user: Optional[List[WireUser]] = None
    chat_log: Optional[List[WireLogEntry]] = None
    facilitator_enabled: Optional[StrictBool] = None
    active_ai_participants: Optional[List[str]] = None


class OutboundChat(BaseModel):
    message: str


def decode_event(raw: Union[str, bytes]) -> InboundEvent:
    """Parse one frame, raising ``ProtocolDecodeError`` on any failure."""
    text = raw.decode("utf-8", errors="replace") if isinstance(raw, bytes) else raw
    try:
        data = json.loads(text)
    except ValueError as exc:
        raise ProtocolDecodeError(f"Invalid JSON: {exc}", raw=text) from exc
    if not isinstance(data, dict):
        raise ProtocolDecodeError("Frame is not a JSON object", raw=text)
    try:
        return InboundEvent.model_validate(data)
    except ValidationError as exc:
        raise ProtocolDecodeError(f"Invalid event: {exc.error_count()} field error(s)", raw=text) from exc


def classify(event: InboundEvent) -> EventKind:
    if event.type == "join":
        return EventKind.JOIN
    if event.type == "leave":
        return EventKind.LEAVE
    if event.type == "chat":
        # Only an explicit False finalizes a reply; a missing flag is plain chat.
        if event.is_thinking is False:
            return EventKind.AI_REPLY
        return EventKind.CHAT
    if event.type == "system_message":
        return EventKind.SYSTEM_MESSAGE
    return EventKind.OTHER


def encode_chat(text: str) -> str:
    return OutboundChat(message=text).model_dump_json()
