"""Tests for the facilitator and AI participant control client."""

import httpx
import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from roomchat.client.controls import RoomControls
from roomchat.client.errors import RoomControlError


def mock_http(body=None, error=None):
    """Patch httpx.AsyncClient so ``request`` returns ``body`` or raises ``error``."""
    patcher = patch('httpx.AsyncClient')
    mock_client_class = patcher.start()
    mock_client = AsyncMock()
    mock_client_class.return_value.__aenter__.return_value = mock_client

    mock_response = MagicMock()
    mock_response.json.return_value = body
    if error is not None:
        mock_response.raise_for_status.side_effect = error
    mock_client.request.return_value = mock_response
    return patcher, mock_client


def status_error(status: int, body: dict) -> httpx.HTTPStatusError:
    request = httpx.Request("POST", "http://localhost:8000/room/demo")
    response = httpx.Response(status, json=body, request=request)
    return httpx.HTTPStatusError("error", request=request, response=response)


@pytest.mark.anyio
async def test_set_facilitator_returns_server_flag():
    patcher, mock_client = mock_http({"facilitator_enabled": True})
    try:
        enabled = await RoomControls("http://localhost:8000").set_facilitator("demo", True)
    finally:
        patcher.stop()

    assert enabled is True
    mock_client.request.assert_called_once_with(
        "POST",
        "http://localhost:8000/room/demo/facilitator",
        params={"enable": "true"},
    )


@pytest.mark.anyio
async def test_set_facilitator_requires_boolean_in_response():
    patcher, _ = mock_http({"status": "ok"})
    try:
        with pytest.raises(RoomControlError, match="facilitator_enabled"):
            await RoomControls().set_facilitator("demo", False)
    finally:
        patcher.stop()


@pytest.mark.anyio
async def test_add_ai_participant_quotes_name():
    patcher, mock_client = mock_http({"ai_participant_added": "Dr Who"})
    try:
        added = await RoomControls("http://localhost:8000").add_ai_participant("demo", "Dr Who")
    finally:
        patcher.stop()

    assert added == "Dr Who"
    mock_client.request.assert_called_once_with(
        "POST",
        "http://localhost:8000/room/demo/ai_participant/Dr%20Who",
        params=None,
    )


@pytest.mark.anyio
async def test_remove_ai_participant():
    patcher, mock_client = mock_http({"ai_participant_removed": "Kai"})
    try:
        removed = await RoomControls("http://localhost:8000").remove_ai_participant("demo", "Kai")
    finally:
        patcher.stop()

    assert removed == "Kai"
    assert mock_client.request.call_args.args[0] == "DELETE"


@pytest.mark.anyio
async def test_error_detail_is_surfaced():
    patcher, _ = mock_http(error=status_error(404, {"detail": "AI participant Kai not found"}))
    try:
        with pytest.raises(RoomControlError, match="Kai not found"):
            await RoomControls().remove_ai_participant("demo", "Kai")
    finally:
        patcher.stop()


@pytest.mark.anyio
async def test_network_error_is_wrapped():
    patcher, mock_client = mock_http()
    mock_client.request.side_effect = httpx.ConnectError("connection refused")
    try:
        with pytest.raises(RoomControlError, match="connection refused"):
            await RoomControls().add_ai_participant("demo", "Kai")
    finally:
        patcher.stop()
