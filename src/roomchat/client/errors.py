"""Exception types raised by the session client."""

from __future__ import annotations

from typing import Optional


class RoomChatError(Exception):
    """Base class for all client errors."""


class CredentialError(RoomChatError):
    """Token issuance failed; the connection attempt cannot continue."""


class TransportError(RoomChatError):
    """The streaming connection failed or was lost."""

    def __init__(self, message: str, code: Optional[int] = None):
        super().__init__(message)
        self.code = code


class ProtocolDecodeError(RoomChatError):
    """An inbound frame could not be decoded into an event."""

    def __init__(self, message: str, raw: str = ""):
        super().__init__(message)
        self.raw = raw


class SendRejected(RoomChatError):
    """A chat send was refused locally because the connection is not open."""


class RoomControlError(RoomChatError):
    """A facilitator or AI participant control call failed."""
