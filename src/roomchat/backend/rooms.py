"""Room and member state for the mock room backend."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from dateutil import tz

FACILITATOR_ID = "AIAssistantFacilitator"
FACILITATOR_NAME = "Facilitator"
AI_PARTICIPANT_PREFIX = "AIAssistant_"
THINKING_SUFFIX = "_thinking"


def now_iso() -> str:
    return datetime.now(tz=tz.UTC).isoformat()


@dataclass
class Member:
    """A connected human in a room."""

    token: str
    name: str
    websocket: Optional[Any] = None
    joined_at: str = field(default_factory=now_iso)


@dataclass
class Room:
    """In-memory room: members, history and AI settings."""

    id: str
    members: Dict[str, Member] = field(default_factory=dict)
    chat_log: List[Dict[str, Any]] = field(default_factory=list)
    facilitator_enabled: bool = False
    ai_participants: List[str] = field(default_factory=list)
    max_log: int = 200

    def add_member(self, member: Member) -> None:
        self.members[member.token] = member

    def remove_member(self, token: str) -> Optional[Member]:
        return self.members.pop(token, None)

    def add_ai(self, name: str) -> bool:
        if name in self.ai_participants:
            return False
        self.ai_participants.append(name)
        return True

    def remove_ai(self, name: str) -> bool:
        if name not in self.ai_participants:
            return False
        self.ai_participants.remove(name)
        return True

    def record(self, event: Dict[str, Any]) -> None:
        """Keep a chat event for replay to later joiners."""
        self.chat_log.append(event)
        if len(self.chat_log) > self.max_log:
            self.chat_log = self.chat_log[-self.max_log:]

    def roster(self) -> List[Dict[str, str]]:
        users = [{"id": m.token, "name": m.name} for m in self.members.values()]
        if self.facilitator_enabled:
            users.append({"id": FACILITATOR_ID, "name": FACILITATOR_NAME})
        users.extend({"id": f"{AI_PARTICIPANT_PREFIX}{n}", "name": n} for n in self.ai_participants)
        return users

    def common_state(self) -> Dict[str, Any]:
        return {
            "active_user": self.roster(),
            "facilitator_enabled": self.facilitator_enabled,
            "active_ai_participants": list(self.ai_participants),
        }

    def responders(self) -> List[tuple]:
        """(user_id, name) of every AI that answers a human chat line."""
        out = []
        if self.facilitator_enabled:
            out.append((FACILITATOR_ID, FACILITATOR_NAME))
        out.extend((f"{AI_PARTICIPANT_PREFIX}{n}", n) for n in self.ai_participants)
        return out
