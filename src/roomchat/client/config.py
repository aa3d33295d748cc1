"""Client configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

DEFAULT_API_URL = "http://localhost:8000"


def to_ws_url(base_url: str) -> str:
    """Swap an http(s) base URL to the matching ws(s) scheme."""
    return base_url.replace("http://", "ws://").replace("https://", "wss://")


@dataclass
class ClientConfig:
    """Endpoints and timeouts used by the session client.

    ``ws_url`` defaults to ``api_url`` with its scheme swapped, so a single
    backend address is enough for local development.
    """

    api_url: str = DEFAULT_API_URL
    ws_url: Optional[str] = None
    timeout: float = 10.0

    def __post_init__(self) -> None:
        self.api_url = self.api_url.rstrip("/")
        if not self.ws_url:
            self.ws_url = to_ws_url(self.api_url)
        self.ws_url = self.ws_url.rstrip("/")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ClientConfig":
        """Build a config from ``ROOMCHAT_API_URL`` / ``ROOMCHAT_WS_URL``."""
        env = os.environ if environ is None else environ
        return cls(
            api_url=env.get("ROOMCHAT_API_URL", DEFAULT_API_URL),
            ws_url=env.get("ROOMCHAT_WS_URL") or None,
        )

    def stream_url(self, room_id: str, token: str) -> str:
        return f"{self.ws_url}/ws/{room_id}?token={token}"
