"""Implementação relacional do KnowledgeStore (SQLAlchemy Core).

Tabela `knowledge_entries`, append-only, chaveada por id serial.
O trabalho bloqueante de banco roda em thread de worker com timeout.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any, TypeVar

import anyio
from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    create_engine,
    func,
    insert,
    select,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from wally.domain.errors import PersistenceError
from wally.domain.knowledge import DEFAULT_CONTEXT_LIMIT, KnowledgeEntry, KnowledgeStore
from wally.observability.logging import get_logger, mask_user_id

logger: logging.Logger = get_logger(__name__)

T = TypeVar("T")

metadata = MetaData()

knowledge_entries = Table(
    "knowledge_entries",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("user_id", String(255), nullable=False, index=True),
    Column("original_query", Text),
    Column("clarification_query", Text, nullable=True),
    Column("resulting_action", String(255)),
    Column("resulting_parameters", JSON().with_variant(JSONB(), "postgresql")),
    Column("timestamp", DateTime(timezone=True), nullable=False, server_default=func.now()),
)


def normalize_database_url(database_url: str) -> str:
    """Direciona URLs Postgres genéricas para o driver psycopg (v3)."""
    for scheme in ("postgres://", "postgresql://"):
        if database_url.startswith(scheme):
            return "postgresql+psycopg://" + database_url[len(scheme):]
    return database_url


def create_sql_engine(database_url: str) -> Engine:
    """Cria engine SQLAlchemy com pool e pre-ping."""
    return create_engine(normalize_database_url(database_url), pool_pre_ping=True)


def _coerce_parameters(value: Any) -> dict[str, str]:
    """Parâmetros ilegíveis viram {}; a entrada continua útil sem eles."""
    if not isinstance(value, dict):
        if value is not None:
            logger.warning("knowledge_parameters_undecodable", extra={"type": type(value).__name__})
        return {}
    return {str(k): v if isinstance(v, str) else str(v) for k, v in value.items() if v is not None}


class SqlKnowledgeStore(KnowledgeStore):
    """KnowledgeStore sobre banco relacional (Postgres em produção, SQLite em testes)."""

    def __init__(
        self,
        engine: Engine,
        context_limit: int = DEFAULT_CONTEXT_LIMIT,
        timeout_seconds: float = 5.0,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        super().__init__(context_limit)
        self._engine = engine
        self._timeout = timeout_seconds
        self._clock = clock or (lambda: datetime.now(tz=UTC))

    def create_schema(self) -> None:
        """Cria a tabela se não existir (idempotente)."""
        try:
            metadata.create_all(self._engine)
        except SQLAlchemyError as exc:
            logger.error("knowledge_schema_failed", extra={"error": type(exc).__name__})
            raise PersistenceError(f"Falha ao criar tabela knowledge_entries: {exc}") from exc
        logger.info("knowledge_schema_ready", extra={"table": knowledge_entries.name})

    async def _run(self, operation: str, fn: Callable[..., T], *args: Any) -> T:
        """Executa `fn` em thread com timeout; erros viram PersistenceError."""
        try:
            with anyio.fail_after(self._timeout):
                return await anyio.to_thread.run_sync(fn, *args, abandon_on_cancel=True)
        except TimeoutError as exc:
            logger.error(
                "knowledge_store_timeout",
                extra={"operation": operation, "timeout_seconds": self._timeout},
            )
            raise PersistenceError(f"{operation}: timeout após {self._timeout}s") from exc
        except SQLAlchemyError as exc:
            logger.error(
                "knowledge_store_error",
                extra={"operation": operation, "error": type(exc).__name__},
            )
            raise PersistenceError(f"{operation}: {exc}") from exc

    def _insert(self, entry: KnowledgeEntry) -> KnowledgeEntry:
        timestamp = self._clock()
        with self._engine.begin() as conn:
            result = conn.execute(
                insert(knowledge_entries).values(
                    user_id=entry.user_id,
                    original_query=entry.original_query,
                    clarification_query=entry.clarification_query or None,
                    resulting_action=entry.resulting_action,
                    resulting_parameters=dict(entry.resulting_parameters),
                    timestamp=timestamp,
                )
            )
            entry_id = result.inserted_primary_key[0]
        return entry.model_copy(update={"id": entry_id, "timestamp": timestamp})

    def _select_recent(self, user_id: str, limit: int) -> list[KnowledgeEntry]:
        table = knowledge_entries
        query = (
            select(table)
            .where(table.c.user_id == user_id)
            .order_by(table.c.timestamp.desc(), table.c.id.desc())
            .limit(limit)
        )
        with self._engine.connect() as conn:
            rows = conn.execute(query).mappings().all()

        return [
            KnowledgeEntry(
                id=row["id"],
                user_id=row["user_id"],
                original_query=row["original_query"] or "",
                clarification_query=row["clarification_query"] or "",
                resulting_action=row["resulting_action"] or "",
                resulting_parameters=_coerce_parameters(row["resulting_parameters"]),
                timestamp=row["timestamp"],
            )
            for row in rows
        ]

    async def save_knowledge(self, entry: KnowledgeEntry) -> KnowledgeEntry:
        stored = await self._run("save_knowledge", self._insert, entry)
        logger.info(
            "knowledge_saved",
            extra={
                "user": mask_user_id(entry.user_id),
                "entry_id": stored.id,
                "resulting_action": entry.resulting_action,
                "backend": "sql",
            },
        )
        return stored

    async def recent_entries(self, user_id: str, limit: int) -> list[KnowledgeEntry]:
        entries = await self._run("recent_entries", self._select_recent, user_id, limit)
        if entries:
            logger.debug(
                "knowledge_retrieved",
                extra={"user": mask_user_id(user_id), "count": len(entries)},
            )
        return entries
