"""Implementação em memória do KnowledgeStore (dev/testes)."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from datetime import UTC, datetime

from wally.domain.knowledge import DEFAULT_CONTEXT_LIMIT, KnowledgeEntry, KnowledgeStore
from wally.observability.logging import get_logger, mask_user_id

logger: logging.Logger = get_logger(__name__)


class InMemoryKnowledgeStore(KnowledgeStore):
    """Log append-only em memória com ids monotônicos (não usar em produção)."""

    def __init__(
        self,
        context_limit: int = DEFAULT_CONTEXT_LIMIT,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        super().__init__(context_limit)
        self._entries: list[KnowledgeEntry] = []
        self._next_id = 1
        self._clock = clock or (lambda: datetime.now(tz=UTC))
        self._lock = threading.Lock()

    async def save_knowledge(self, entry: KnowledgeEntry) -> KnowledgeEntry:
        with self._lock:
            stored = entry.model_copy(update={"id": self._next_id, "timestamp": self._clock()})
            self._next_id += 1
            self._entries.append(stored)

        logger.info(
            "knowledge_saved",
            extra={
                "user": mask_user_id(entry.user_id),
                "entry_id": stored.id,
                "resulting_action": entry.resulting_action,
                "backend": "memory",
            },
        )
        return stored

    async def recent_entries(self, user_id: str, limit: int) -> list[KnowledgeEntry]:
        with self._lock:
            owned = [entry for entry in self._entries if entry.user_id == user_id]
        owned.sort(key=lambda entry: (entry.timestamp, entry.id), reverse=True)
        return owned[:limit]

    @property
    def entries(self) -> list[KnowledgeEntry]:
        """Cópia de todas as entradas (ordem de inserção)."""
        with self._lock:
            return list(self._entries)
