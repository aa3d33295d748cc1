import pytest

from roomchat.client.errors import ProtocolDecodeError
from roomchat.client.protocol import EventKind, classify, decode_event, encode_chat


@pytest.mark.parametrize(
    "raw, kind",
    [
        ('{"type": "join"}', EventKind.JOIN),
        ('{"type": "leave"}', EventKind.LEAVE),
        ('{"type": "chat", "message": "hi"}', EventKind.CHAT),
        ('{"type": "chat", "is_thinking": true}', EventKind.CHAT),
        ('{"type": "chat", "is_thinking": false}', EventKind.AI_REPLY),
        ('{"type": "system_message"}', EventKind.SYSTEM_MESSAGE),
        ('{"type": "config_update"}', EventKind.OTHER),
    ],
)
def test_classify(raw, kind):
    assert classify(decode_event(raw)) is kind


def test_unknown_fields_are_ignored():
    event = decode_event('{"type": "chat", "message": "hi", "reactions": [1, 2]}')
    assert event.message == "hi"


def test_decode_error_keeps_raw_text():
    with pytest.raises(ProtocolDecodeError) as info:
        decode_event("{oops")
    assert info.value.raw == "{oops"


def test_encode_chat():
    assert encode_chat('say "hi"') == '{"message":"say \\"hi\\""}'
