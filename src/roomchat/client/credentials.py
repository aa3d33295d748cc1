"""Credential exchange: trade a display name for a room-scoped token."""

from __future__ import annotations

from dataclasses import dataclass

import httpx

from .config import DEFAULT_API_URL
from .errors import CredentialError


@dataclass(frozen=True)
class Credential:
    token: str
    username: str


def response_error_detail(response: httpx.Response) -> str:
    """Best-effort human readable reason from a failed response."""
    try:
        data = response.json()
    except ValueError:
        data = None
    if isinstance(data, dict):
        detail = data.get("error") or data.get("detail")
        if detail:
            return str(detail)
    return response.reason_phrase or f"HTTP {response.status_code}"


class CredentialExchange:
    """Client for the token endpoint.

    No retries: any failure is raised as ``CredentialError`` so the caller
    can abandon the connection attempt.
    """

    def __init__(self, base_url: str = DEFAULT_API_URL, timeout: float = 10.0):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    async def issue(self, username: str) -> Credential:
        """Request a token for ``username`` (may be empty; the server picks one)."""
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    f"{self.base_url}/api/token",
                    json={"username": username},
                )
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPStatusError as exc:
            raise CredentialError(
                f"Failed to fetch token: {response_error_detail(exc.response)}"
            ) from exc
        except httpx.HTTPError as exc:
            raise CredentialError(f"Failed to fetch token: {exc}") from exc
        except ValueError as exc:
            raise CredentialError("Failed to fetch token: response is not JSON") from exc

        if not isinstance(data, dict) or not data.get("token") or not data.get("username"):
            raise CredentialError("Token or username not found in response")
        return Credential(token=str(data["token"]), username=str(data["username"]))
