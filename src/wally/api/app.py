"""Fábrica da aplicação FastAPI.

Executar com:
    uvicorn --factory wally.api.app:create_app
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager

import anyio
from fastapi import FastAPI

from wally.adapters.wasender.outbound import create_wasender_client
from wally.ai.openai_client import create_intent_classifier
from wally.api.routes import router
from wally.application.orchestrator import (
    ConversationOrchestrator,
    IntentClassifierPort,
    MessageSender,
)
from wally.config.settings import Settings, load_settings
from wally.domain.knowledge import KnowledgeStore
from wally.infra.knowledge_store import create_knowledge_store
from wally.infra.knowledge_store_sql import SqlKnowledgeStore
from wally.infra.session_contract import SessionStore
from wally.infra.session_store import create_redis_client, create_session_store
from wally.observability.logging import configure_logging, get_logger
from wally.observability.middleware import CorrelationIdMiddleware

logger = get_logger(__name__)


def create_app(
    settings: Settings | None = None,
    *,
    session_store: SessionStore | None = None,
    knowledge_store: KnowledgeStore | None = None,
    classifier: IntentClassifierPort | None = None,
    sender: MessageSender | None = None,
) -> FastAPI:
    """Cria a aplicação FastAPI.

    Colaboradores não injetados são construídos a partir de settings.

    Raises:
        ConfigurationError: segredo obrigatório ausente ou configuração inválida
    """
    settings = load_settings(settings)
    configure_logging(settings.log_level, settings.service_name, settings.log_format)

    closers: list[Callable[[], Awaitable[None]]] = []

    if session_store is None:
        redis_client = None
        if settings.session_store_backend.lower() == "redis" and settings.redis_url:
            redis_client = create_redis_client(settings.redis_url, settings.session_timeout_seconds)
            closers.append(redis_client.aclose)
        session_store = create_session_store(settings, redis_client=redis_client)

    if knowledge_store is None:
        knowledge_store = create_knowledge_store(settings)

    if classifier is None:
        intent_classifier = create_intent_classifier(settings)
        closers.append(intent_classifier.close)
        classifier = intent_classifier

    if sender is None:
        wasender = create_wasender_client(settings)
        closers.append(wasender.close)
        sender = wasender

    orchestrator = ConversationOrchestrator(
        session_store=session_store,
        knowledge_store=knowledge_store,
        classifier=classifier,
        sender=sender,
        classifier_timeout_seconds=settings.intent_turn_timeout_seconds,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if isinstance(knowledge_store, SqlKnowledgeStore):
            await anyio.to_thread.run_sync(knowledge_store.create_schema)
        logger.info("app_started", extra={"environment": settings.environment})
        try:
            yield
        finally:
            for close in closers:
                await close()
            logger.info("app_stopped")

    app = FastAPI(title=settings.service_name, version=settings.version, lifespan=lifespan)
    app.add_middleware(CorrelationIdMiddleware)
    app.include_router(router)

    app.state.settings = settings
    app.state.session_store = session_store
    app.state.knowledge_store = knowledge_store
    app.state.orchestrator = orchestrator

    return app
