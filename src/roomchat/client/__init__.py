"""
Room session client - connects to a chat room and mirrors its state.

Handles:
- Token exchange for a display name
- WebSocket stream lifecycle (connect, receive loop, teardown)
- Decoding room events into an ordered conversation log
- Replacing AI "thinking" placeholders with the final reply
- Facilitator and AI participant controls
"""

from .config import ClientConfig
from .connector import ConnectionState, SessionConnector
from .credentials import Credential, CredentialExchange
from .dispatcher import ProtocolDispatcher
from .errors import (
    CredentialError,
    ProtocolDecodeError,
    RoomChatError,
    RoomControlError,
    SendRejected,
    TransportError,
)
from .session import ChatSession
from .store import ConversationState, ConversationStore, Message, MessageKind, Participant

__all__ = [
    "ChatSession",
    "ClientConfig",
    "ConnectionState",
    "ConversationState",
    "ConversationStore",
    "Credential",
    "CredentialError",
    "CredentialExchange",
    "Message",
    "MessageKind",
    "Participant",
    "ProtocolDecodeError",
    "ProtocolDispatcher",
    "RoomChatError",
    "RoomControlError",
    "SendRejected",
    "SessionConnector",
    "TransportError",
]
