"""Factory de KnowledgeStore conforme backend configurado."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from wally.domain.knowledge import KnowledgeStore
from wally.infra.knowledge_store_memory import InMemoryKnowledgeStore
from wally.infra.knowledge_store_sql import SqlKnowledgeStore, create_sql_engine
from wally.observability.logging import get_logger

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

    from wally.config.settings import Settings

logger: logging.Logger = get_logger(__name__)


def create_knowledge_store(settings: Settings, engine: Engine | None = None) -> KnowledgeStore:
    """Cria o KnowledgeStore apropriado.

    Usa settings.knowledge_store_backend:
    - "memory": InMemoryKnowledgeStore (dev/testes)
    - "sql": SqlKnowledgeStore sobre DATABASE_URL (produção)

    Raises:
        ValueError: backend não reconhecido ou DATABASE_URL ausente
    """
    backend = settings.knowledge_store_backend.lower()

    if backend == "memory":
        logger.info("Usando InMemoryKnowledgeStore (apenas dev/testes)")
        return InMemoryKnowledgeStore(context_limit=settings.knowledge_context_limit)

    if backend == "sql":
        if engine is None:
            if not settings.database_url:
                raise ValueError("KNOWLEDGE_STORE_BACKEND=sql requer DATABASE_URL configurado")
            engine = create_sql_engine(settings.database_url)
        logger.info("Usando SqlKnowledgeStore", extra={"dialect": engine.dialect.name})
        return SqlKnowledgeStore(
            engine,
            context_limit=settings.knowledge_context_limit,
            timeout_seconds=settings.knowledge_timeout_seconds,
        )

    raise ValueError(f"Backend de knowledge store não reconhecido: {backend}")
