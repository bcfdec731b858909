"""Testes de integração do webhook (TestClient + colaboradores falsos)."""

from __future__ import annotations

import pytest

from tests.fakes import intent
from wally.api.app import create_app
from wally.application import replies
from wally.config.settings import Settings
from wally.domain.errors import ConfigurationError

USER = "5511977776666"


def _payload(text: str, from_me: bool = False) -> dict:
    return {
        "event": "messages.upsert",
        "sessionId": "sess-1",
        "timestamp": 1717000000,
        "data": {
            "messages": {
                "key": {"remoteJid": f"{USER}@s.whatsapp.net", "fromMe": from_me, "id": "ID1"},
                "pushName": "Ana",
                "message": {"conversation": text},
            }
        },
    }


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok", "service": "wally", "version": "0.1.0"}

    def test_correlation_id_is_echoed(self, client):
        response = client.get("/health", headers={"x-correlation-id": "abc-123"})

        assert response.headers["x-correlation-id"] == "abc-123"


class TestWebhook:
    def test_processes_expense(self, client, classifier, sender):
        classifier.queue(intent("add_expense", amount="100,50", category="Lazer "))

        response = client.post(
            "/webhook", json=_payload("100,50 lazer"), headers={"x-correlation-id": "corr-1"}
        )

        assert response.status_code == 200
        assert response.json() == {"ok": True, "status": "processed", "correlation_id": "corr-1"}
        assert sender.sent == [(USER, replies.build_expense_added(100.5, "Lazer"))]

    def test_self_message_is_ignored(self, client, classifier, sender):
        response = client.post("/webhook", json=_payload("oi", from_me=True))

        assert response.json() == {"ok": True, "status": "ignored"}
        assert classifier.calls == []
        assert sender.sent == []

    def test_empty_text_is_ignored(self, client, sender):
        response = client.post("/webhook", json=_payload("   "))

        assert response.json()["status"] == "ignored"
        assert sender.sent == []

    def test_invalid_json(self, client):
        response = client.post(
            "/webhook", content=b"{not json", headers={"content-type": "application/json"}
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "invalid_json"

    def test_invalid_payload(self, client):
        response = client.post("/webhook", json=["not", "an", "object"])

        assert response.status_code == 400
        assert response.json()["detail"] == "invalid_payload"

    def test_clarification_round_trip_learns(
        self, client, classifier, sender, session_store, knowledge_store
    ):
        """'oi' desconhecido e depois 'menu' grava conhecimento e limpa a sessão."""
        classifier.queue(intent("unknown_intent"), intent("show_menu"))

        client.post("/webhook", json=_payload("oi"))

        assert session_store._states[USER] == "awaiting_clarification_unknown:oi"

        client.post("/webhook", json=_payload("menu"))

        assert USER not in session_store._states
        [entry] = knowledge_store.entries
        assert (entry.original_query, entry.clarification_query) == ("oi", "menu")
        assert sender.texts == [replies.FALLBACK_CANNED_REPLY, replies.build_main_menu("Ana")]

    def test_classifier_failure_returns_apology(self, client, sender):
        # FakeClassifier sem resultados programados levanta ClassificationError
        response = client.post("/webhook", json=_payload("menu"))

        assert response.status_code == 200
        assert sender.texts == [replies.CLASSIFIER_APOLOGY]

    def test_learned_context_reaches_classifier(self, client, classifier):
        classifier.queue(intent("unknown_intent"), intent("show_menu"), intent("show_menu"))

        client.post("/webhook", json=_payload("oi"))
        client.post("/webhook", json=_payload("menu"))
        client.post("/webhook", json=_payload("olá"))

        assert classifier.calls[0][1] == ""
        assert "'oi'" in classifier.calls[2][1]


def test_create_app_requires_secrets(monkeypatch, tmp_path):
    for var in ("WASENDER_API_KEY", "API_KEY", "DATABASE_URL", "OPENAI_API_KEY"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)

    with pytest.raises(ConfigurationError):
        create_app(Settings())
