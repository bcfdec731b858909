"""Factory de SessionStore conforme backend configurado."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from wally.infra.session_contract import SessionStore
from wally.infra.session_store_memory import InMemorySessionStore
from wally.infra.session_store_redis import RedisSessionStore
from wally.observability.logging import get_logger

if TYPE_CHECKING:
    from wally.config.settings import Settings

logger: logging.Logger = get_logger(__name__)


def create_redis_client(redis_url: str, timeout_seconds: float) -> Any:
    """Cria cliente `redis.asyncio` a partir da URL, com timeouts de socket."""
    from redis import asyncio as redis_asyncio

    return redis_asyncio.from_url(
        redis_url,
        decode_responses=True,
        socket_timeout=timeout_seconds,
        socket_connect_timeout=timeout_seconds,
    )


def create_session_store(settings: Settings, redis_client: Any | None = None) -> SessionStore:
    """Cria o SessionStore apropriado.

    Usa settings.session_store_backend:
    - "memory": InMemorySessionStore (dev/testes)
    - "redis": RedisSessionStore (produção)

    Raises:
        ValueError: backend não reconhecido ou Redis sem URL
    """
    backend = settings.session_store_backend.lower()

    if backend == "memory":
        logger.info("Usando InMemorySessionStore (apenas dev/testes)")
        return InMemorySessionStore()

    if backend == "redis":
        if redis_client is None:
            if not settings.redis_url:
                raise ValueError("SESSION_STORE_BACKEND=redis requer REDIS_URL configurado")
            redis_client = create_redis_client(
                settings.redis_url, settings.session_timeout_seconds
            )
        logger.info("Usando RedisSessionStore")
        return RedisSessionStore(redis_client, timeout_seconds=settings.session_timeout_seconds)

    raise ValueError(f"Backend de session store não reconhecido: {backend}")
