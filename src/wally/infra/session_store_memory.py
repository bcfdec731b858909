"""Implementação de SessionStore em memória (dev/testes e instância única)."""

from __future__ import annotations

import logging
import threading

from wally.infra.session_contract import SessionStore
from wally.observability.logging import get_logger, mask_user_id

logger: logging.Logger = get_logger(__name__)


class InMemorySessionStore(SessionStore):
    """Armazenamento em memória protegido por lock.

    Nenhuma seção crítica contém await: cada operação é atômica tanto entre
    tasks do event loop quanto entre threads.
    """

    def __init__(self) -> None:
        self._states: dict[str, str] = {}
        self._lock = threading.Lock()

    async def set(self, user_id: str, value: str) -> None:
        with self._lock:
            self._states[user_id] = value
        logger.debug("Session state set (in-memory)", extra={"user": mask_user_id(user_id)})

    async def get(self, user_id: str) -> str | None:
        with self._lock:
            return self._states.get(user_id)

    async def delete(self, user_id: str) -> bool:
        with self._lock:
            removed = self._states.pop(user_id, None) is not None
        if removed:
            logger.debug(
                "Session state deleted (in-memory)", extra={"user": mask_user_id(user_id)}
            )
        return removed

    async def get_and_clear_if_prefix(self, user_id: str, prefix: str) -> tuple[str, str]:
        with self._lock:
            value = self._states.get(user_id)
            if value is None or not value.startswith(prefix):
                return "", ""
            del self._states[user_id]

        logger.debug(
            "Session state taken by prefix (in-memory)", extra={"user": mask_user_id(user_id)}
        )
        return value, value[len(prefix):]
