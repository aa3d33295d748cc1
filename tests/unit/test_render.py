"""Tests for terminal formatting of log entries."""

import pytest

from roomchat.client.render import display_name, format_message, format_participant, format_time
from roomchat.client.store import ConversationState, Identity, Message, MessageKind, Participant

STATE = ConversationState(
    identity=Identity(token="t1", display_name="Ann"),
    roster=(Participant("t1", "Ann"), Participant("b2", "Bob")),
)


def message(kind=MessageKind.CHAT, body="hi", sender_id=None, sender_name=None, is_thinking=False,
            timestamp="2025-01-01T10:05:00Z"):
    return Message(
        kind=kind,
        body=body,
        timestamp=timestamp,
        sender_id=sender_id,
        sender_name=sender_name,
        is_thinking=is_thinking,
    )


@pytest.mark.parametrize(
    "sender_id, sender_name, expected",
    [
        (None, None, "System"),
        ("x", "Explicit", "Explicit"),
        ("t1", None, "Ann"),
        ("AIAssistantFacilitator", None, "AI Facilitator"),
        ("AIAssistant_Kai", None, "AI (Kai)"),
        ("AIAssistant_Kai_thinking", None, "AI (Kai)"),
        ("b2", None, "Bob"),
        ("abcdefghijklmnopqrstuvwxyz", None, "abcdefghijklmnop..."),
    ],
)
def test_display_name(sender_id, sender_name, expected):
    assert display_name(message(sender_id=sender_id, sender_name=sender_name), STATE) == expected


def test_format_time():
    assert format_time("2025-01-01T10:05:00Z") == "10:05"
    assert format_time("yesterday") == ""
    assert format_time(None) == ""


def test_chat_line_has_icon_name_and_time():
    line = format_message(message(sender_id="b2", body="hello"), STATE)
    assert line == "👤 Bob: hello  (10:05)"


def test_replay_line_is_marked():
    line = format_message(message(kind=MessageKind.LOG_REPLAY, sender_id="t1", body="earlier"), STATE)
    assert line.startswith("[replay] ")
    assert "Ann: earlier" in line


def test_notice_line():
    line = format_message(message(kind=MessageKind.JOIN, body="Bob joined", timestamp=""), STATE)
    assert line == "  * Bob joined"


def test_thinking_line():
    line = format_message(
        message(kind=MessageKind.SYSTEM_NOTICE, sender_name="Kai", is_thinking=True, timestamp=""),
        STATE,
    )
    assert line == "  … Kai is preparing a reply"


def test_format_participant_marks_me():
    assert format_participant(Participant("t1", "Ann"), STATE).endswith("Ann (me)")
    assert format_participant(Participant("AIAssistant_Kai", "Kai"), STATE) == "🤖 Kai"
