from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from tests.fakes import FakeClassifier, FakeSender
from wally.api.app import create_app
from wally.config.settings import Settings, get_settings
from wally.infra.knowledge_store_memory import InMemoryKnowledgeStore
from wally.infra.session_store_memory import InMemorySessionStore


@pytest.fixture()
def settings() -> Settings:
    return Settings(
        wasender_api_key="wasender-test-key",
        database_url="sqlite://",
        openai_api_key="openai-test-key",
        knowledge_store_backend="memory",
        session_store_backend="memory",
        log_format="text",
    )


@pytest.fixture()
def session_store() -> InMemorySessionStore:
    return InMemorySessionStore()


@pytest.fixture()
def knowledge_store() -> InMemoryKnowledgeStore:
    return InMemoryKnowledgeStore()


@pytest.fixture()
def classifier() -> FakeClassifier:
    return FakeClassifier()


@pytest.fixture()
def sender() -> FakeSender:
    return FakeSender()


@pytest.fixture()
def client(
    settings: Settings,
    session_store: InMemorySessionStore,
    knowledge_store: InMemoryKnowledgeStore,
    classifier: FakeClassifier,
    sender: FakeSender,
):
    get_settings.cache_clear()
    app = create_app(
        settings,
        session_store=session_store,
        knowledge_store=knowledge_store,
        classifier=classifier,
        sender=sender,
    )
    with TestClient(app) as test_client:
        yield test_client
