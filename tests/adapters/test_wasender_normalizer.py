"""Testes da extração de mensagens do webhook da WaSenderAPI."""

from __future__ import annotations

import pytest

from wally.adapters.wasender.normalizer import extract_inbound_message, strip_jid_suffix
from wally.domain.errors import TransportError


def _payload(
    remote_jid: str = "5511988887777@s.whatsapp.net",
    text: str | None = "gastei 20 no almoço",
    from_me: bool = False,
    push_name: str | None = "Ana",
) -> dict:
    message: dict = {
        "key": {"remoteJid": remote_jid, "fromMe": from_me, "id": "3EB0ABC"},
        "pushName": push_name,
        "messageTimestamp": 1717000000,
        "broadcast": False,
    }
    if text is not None:
        message["message"] = {"conversation": text, "messageContextInfo": {}}
    return {
        "event": "messages.upsert",
        "sessionId": "sess-1",
        "timestamp": 1717000000,
        "data": {"messages": message},
    }


class TestExtractInboundMessage:
    def test_text_message(self):
        message = extract_inbound_message(_payload())

        assert message is not None
        assert message.sender_id == "5511988887777"
        assert message.text == "gastei 20 no almoço"
        assert message.display_name == "Ana"
        assert message.message_id == "3EB0ABC"
        assert message.is_from_self is False

    def test_self_message_is_flagged(self):
        message = extract_inbound_message(_payload(from_me=True))

        assert message is not None
        assert message.is_from_self is True

    def test_missing_text_is_empty(self):
        message = extract_inbound_message(_payload(text=None))

        assert message is not None
        assert message.text == ""

    def test_missing_push_name(self):
        message = extract_inbound_message(_payload(push_name=None))

        assert message is not None
        assert message.display_name == ""

    def test_event_without_sender_returns_none(self):
        assert extract_inbound_message({"event": "session.status", "data": {}}) is None

    def test_non_object_raises(self):
        with pytest.raises(TransportError):
            extract_inbound_message(["not", "an", "object"])  # type: ignore[arg-type]

    def test_wrong_field_types_raise(self):
        payload = _payload()
        payload["data"]["messages"]["key"] = "broken"

        with pytest.raises(TransportError):
            extract_inbound_message(payload)


def test_strip_jid_suffix():
    assert strip_jid_suffix("5511988887777@s.whatsapp.net") == "5511988887777"
    assert strip_jid_suffix("5511988887777") == "5511988887777"
