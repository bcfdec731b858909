"""Implementação de SessionStore usando Redis (produção).

Toda chamada ao Redis roda sob `anyio.fail_after`: Redis lento vira
PersistenceError, nunca um turno pendurado.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Any

import anyio

from wally.domain.errors import PersistenceError
from wally.infra.session_contract import SessionStore
from wally.observability.logging import get_logger, mask_user_id

logger: logging.Logger = get_logger(__name__)

KEY_PREFIX = "wally:session:"
DEFAULT_TIMEOUT_SECONDS = 2.0

# GET + verificação de prefixo + DEL executados no servidor (atômico).
_TAKE_IF_PREFIX_LUA = """
local value = redis.call('GET', KEYS[1])
if value and string.sub(value, 1, string.len(ARGV[1])) == ARGV[1] then
    redis.call('DEL', KEYS[1])
    return value
end
return false
"""


def _decode(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, bytes):
        return value.decode("utf-8")
    return str(value)


class RedisSessionStore(SessionStore):
    """Armazenamento em Redis (cliente `redis.asyncio`)."""

    def __init__(
        self,
        redis_client: Any,
        key_prefix: str = KEY_PREFIX,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        self._redis = redis_client
        self._key_prefix = key_prefix
        self._timeout = timeout_seconds

    def _key(self, user_id: str) -> str:
        return f"{self._key_prefix}{user_id}"

    async def _call(
        self, operation: str, user_id: str, fn: Callable[..., Awaitable[Any]], *args: Any
    ) -> Any:
        """Executa um comando Redis com timeout; qualquer falha vira PersistenceError."""
        try:
            with anyio.fail_after(self._timeout):
                return await fn(*args)
        except TimeoutError as e:
            logger.error(
                "session_store_timeout",
                extra={
                    "user": mask_user_id(user_id),
                    "operation": operation,
                    "timeout_seconds": self._timeout,
                },
            )
            raise PersistenceError(f"Redis {operation}: timeout após {self._timeout}s") from e
        except Exception as e:
            logger.error(
                "session_store_error",
                extra={
                    "user": mask_user_id(user_id),
                    "operation": operation,
                    "error": type(e).__name__,
                },
            )
            raise PersistenceError(f"Redis {operation} failed: {e}") from e

    async def set(self, user_id: str, value: str) -> None:
        await self._call("set", user_id, self._redis.set, self._key(user_id), value)

    async def get(self, user_id: str) -> str | None:
        return _decode(await self._call("get", user_id, self._redis.get, self._key(user_id)))

    async def delete(self, user_id: str) -> bool:
        return bool(await self._call("delete", user_id, self._redis.delete, self._key(user_id)))

    async def get_and_clear_if_prefix(self, user_id: str, prefix: str) -> tuple[str, str]:
        raw = await self._call(
            "take", user_id, self._redis.eval, _TAKE_IF_PREFIX_LUA, 1, self._key(user_id), prefix
        )
        value = _decode(raw)
        if not value or not value.startswith(prefix):
            return "", ""
        return value, value[len(prefix):]
