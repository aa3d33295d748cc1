"""Shared fixtures for roomchat tests."""

import pytest

from roomchat.client.store import ConversationStore


@pytest.fixture
def anyio_backend():
    # Client code is asyncio-only (websockets, asyncio.create_task)
    return "asyncio"


@pytest.fixture
def store():
    return ConversationStore()


@pytest.fixture
def clock():
    return lambda: "2025-10-11T00:00:00+00:00"
