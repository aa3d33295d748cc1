"""
Mock room backend - in-memory server for the room stream protocol.

Handles:
- Token issuance
- Room membership with join/leave broadcasts and history replay
- Facilitator toggle and AI participant add/remove
- Scripted thinking placeholder + reply per active AI
"""

from .rooms import Member, Room
from .service import RoomService, create_app

__all__ = ["Member", "Room", "RoomService", "create_app"]
