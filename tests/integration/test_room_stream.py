"""Integration test: real client session against the mock room backend."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from roomchat.backend import create_app
from roomchat.client import ChatSession, ClientConfig
from roomchat.client.connector import ConnectionState, SessionConnector
from roomchat.client.credentials import Credential
from roomchat.client.store import ConversationStore, MessageKind

PORT = 8767


@pytest.fixture
async def running_server():
    """Start the mock backend in the background."""
    import uvicorn
    from threading import Thread

    app = create_app(reply_delay=0)
    config = uvicorn.Config(app, host="127.0.0.1", port=PORT, log_level="error")
    server = uvicorn.Server(config)

    # Run server in background thread
    thread = Thread(target=server.run, daemon=True)
    thread.start()

    for _ in range(100):
        if server.started:
            break
        await asyncio.sleep(0.05)

    yield f"http://127.0.0.1:{PORT}"

    # Cleanup
    server.should_exit = True
    thread.join(timeout=5)


async def eventually(predicate, timeout: float = 5.0) -> bool:
    for _ in range(int(timeout / 0.05)):
        if predicate():
            return True
        await asyncio.sleep(0.05)
    return predicate()


@pytest.mark.anyio
async def test_chat_with_ai_participant(running_server):
    ann = ChatSession(ClientConfig(running_server))
    bob = ChatSession(ClientConfig(running_server))

    assert await ann.join("lobby", "Ann")
    assert await eventually(lambda: any(m.body == "Ann joined" for m in ann.state.log))
    assert await bob.join("lobby", "Bob")
    assert await eventually(lambda: len(ann.state.roster) == 2)

    await ann.add_ai_participant("Kai")
    assert ann.state.ai_participants == ("Kai",)

    await ann.send("hello")

    def replied(session):
        bodies = [m.body for m in session.state.log]
        return "Kai heard: hello" in bodies and not any(m.is_thinking for m in session.state.log)

    assert await eventually(lambda: replied(ann))
    assert await eventually(lambda: replied(bob))
    assert bob.state.ai_participants == ("Kai",)

    await bob.leave()
    assert await eventually(lambda: any(m.kind is MessageKind.LEAVE for m in ann.state.log))
    assert [p.display_name for p in ann.state.roster if p.display_name != "Kai"] == ["Ann"]

    await ann.leave()


@pytest.mark.anyio
async def test_late_joiner_gets_replay(running_server):
    first = ChatSession(ClientConfig(running_server))
    assert await first.join("history", "Ann")
    await first.send("for the record")
    assert await eventually(lambda: any(m.body == "for the record" for m in first.state.log))
    await first.leave()

    late = ChatSession(ClientConfig(running_server))
    assert await late.join("history", "Bob")
    assert await eventually(lambda: any(m.body == "Bob joined" for m in late.state.log))

    log = late.state.log
    assert log[0].kind is MessageKind.LOG_REPLAY
    assert log[0].body == "for the record"
    assert log[-1].body == "Bob joined"

    await late.leave()


@pytest.mark.anyio
async def test_invalid_token_is_rejected(running_server):
    credentials = MagicMock()
    credentials.issue = AsyncMock(return_value=Credential(token="bogus", username="Mallory"))
    connector = SessionConnector(
        ConversationStore(),
        config=ClientConfig(running_server),
        credentials=credentials,
    )

    await connector.connect("lobby", "Mallory")
    await connector.wait_closed()

    assert connector.state is ConnectionState.FAULTED
    assert connector.error == "Connection rejected: Invalid token"

    await connector.close()
