"""Room control endpoints: facilitator toggle and AI participant add/remove."""

from __future__ import annotations

from typing import Any, Dict, Optional
from urllib.parse import quote

import httpx

from .config import DEFAULT_API_URL
from .credentials import response_error_detail
from .errors import RoomControlError


class RoomControls:
    """Thin client for the per-room control endpoints."""

    def __init__(self, base_url: str = DEFAULT_API_URL, timeout: float = 10.0):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    async def _request(
        self,
        method: str,
        path: str,
        action: str,
        params: Optional[Dict[str, str]] = None,
    ) -> Dict[str, Any]:
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.request(method, f"{self.base_url}{path}", params=params)
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPStatusError as exc:
            raise RoomControlError(
                f"Failed to {action}: {response_error_detail(exc.response)}"
            ) from exc
        except httpx.HTTPError as exc:
            raise RoomControlError(f"Failed to {action}: {exc}") from exc
        except ValueError as exc:
            raise RoomControlError(f"Failed to {action}: response is not JSON") from exc
        if not isinstance(data, dict):
            raise RoomControlError(f"Failed to {action}: unexpected response")
        return data

    async def set_facilitator(self, room_id: str, enable: bool) -> bool:
        """Enable or disable the facilitator; returns the server's resulting flag."""
        data = await self._request(
            "POST",
            f"/room/{quote(room_id, safe='')}/facilitator",
            "toggle facilitator",
            params={"enable": "true" if enable else "false"},
        )
        enabled = data.get("facilitator_enabled")
        if not isinstance(enabled, bool):
            raise RoomControlError("Failed to toggle facilitator: facilitator_enabled missing")
        return enabled

    async def add_ai_participant(self, room_id: str, ai_name: str) -> Optional[str]:
        data = await self._request(
            "POST",
            f"/room/{quote(room_id, safe='')}/ai_participant/{quote(ai_name, safe='')}",
            f"add AI participant {ai_name}",
        )
        return data.get("ai_participant_added")

    async def remove_ai_participant(self, room_id: str, ai_name: str) -> Optional[str]:
        data = await self._request(
            "DELETE",
            f"/room/{quote(room_id, safe='')}/ai_participant/{quote(ai_name, safe='')}",
            f"remove AI participant {ai_name}",
        )
        return data.get("ai_participant_removed")
