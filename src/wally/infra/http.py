"""Cliente HTTP assíncrono com retry e timeout.

Usado pelo cliente outbound da WaSenderAPI. Regras:
- Sempre usar timeout
- Retry com backoff exponencial apenas para 429/5xx e erros de rede
- Nunca logar headers de autorização nem corpo das mensagens
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import httpx

from wally.observability.logging import get_logger

if TYPE_CHECKING:
    from wally.config.settings import Settings

logger: logging.Logger = get_logger(__name__)


@dataclass
class HttpClientConfig:
    """Configuração do cliente HTTP."""

    base_url: str = ""
    timeout_seconds: float = 30.0
    max_retries: int = 2
    backoff_base_seconds: float = 1.0
    backoff_max_seconds: float = 30.0
    default_headers: dict[str, str] = field(default_factory=dict)


class HttpError(Exception):
    """Erro de requisição HTTP sem expor informações sensíveis."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        is_retryable: bool = False,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.is_retryable = is_retryable


def _is_retryable_status(status_code: int) -> bool:
    """429 ou 5xx permitem retry."""
    return status_code == 429 or 500 <= status_code < 600


def _calculate_backoff(attempt: int, base_seconds: float, max_seconds: float) -> float:
    """Backoff exponencial limitado a `max_seconds`."""
    return min((2**attempt) * base_seconds, max_seconds)


class HttpClient:
    """Cliente HTTP assíncrono.

    Uso típico:
        client = HttpClient(config)
        response = await client.post("/api/send-message", json=payload)
        await client.close()
    """

    def __init__(self, config: HttpClientConfig | None = None) -> None:
        self._config = config or HttpClientConfig()
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Retorna cliente httpx (lazy loading)."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self._config.base_url,
                timeout=httpx.Timeout(self._config.timeout_seconds),
                headers=self._config.default_headers,
            )
        return self._client

    async def close(self) -> None:
        """Fecha o cliente e libera conexões."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def _request_with_retry(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        client = await self._get_client()
        cfg = self._config
        last_error: HttpError | None = None

        for attempt in range(cfg.max_retries + 1):
            logger.debug(
                "http_request_attempt",
                extra={"method": method, "url": url, "attempt": attempt + 1},
            )
            try:
                response = await client.request(method, url, **kwargs)
            except httpx.TimeoutException as exc:
                logger.warning(
                    "http_request_timeout",
                    extra={"method": method, "url": url, "attempt": attempt + 1},
                )
                last_error = HttpError(f"Timeout: {type(exc).__name__}", is_retryable=True)
            except httpx.TransportError as exc:
                logger.warning(
                    "http_connection_error",
                    extra={"method": method, "url": url, "error": type(exc).__name__},
                )
                last_error = HttpError(f"Erro de conexão: {type(exc).__name__}", is_retryable=True)
            else:
                if response.is_success:
                    return response
                if not _is_retryable_status(response.status_code):
                    logger.warning(
                        "http_request_rejected",
                        extra={"method": method, "url": url, "status_code": response.status_code},
                    )
                    raise HttpError(
                        f"HTTP {response.status_code}",
                        status_code=response.status_code,
                        is_retryable=False,
                    )
                last_error = HttpError(
                    f"HTTP {response.status_code}",
                    status_code=response.status_code,
                    is_retryable=True,
                )

            if attempt < cfg.max_retries:
                backoff = _calculate_backoff(
                    attempt, cfg.backoff_base_seconds, cfg.backoff_max_seconds
                )
                logger.info(
                    "http_retry_backoff",
                    extra={"backoff_seconds": backoff, "next_attempt": attempt + 2},
                )
                await asyncio.sleep(backoff)

        logger.error(
            "http_retries_exhausted",
            extra={"method": method, "url": url, "total_attempts": cfg.max_retries + 1},
        )
        raise last_error or HttpError("Falha após todos os retries")

    async def request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """Executa requisição com retry; levanta HttpError ao esgotar tentativas."""
        return await self._request_with_retry(method, url, **kwargs)

    async def post(
        self, url: str, json: dict[str, Any] | None = None, **kwargs: Any
    ) -> httpx.Response:
        """Executa POST com retry."""
        return await self.request("POST", url, json=json, **kwargs)


def create_http_client(settings: Settings) -> HttpClient:
    """Cria cliente HTTP para a WaSenderAPI conforme settings."""
    config = HttpClientConfig(
        base_url=settings.wasender_api_base_url,
        timeout_seconds=float(settings.wasender_request_timeout_seconds),
        max_retries=settings.wasender_max_retries,
        backoff_base_seconds=settings.wasender_retry_backoff_seconds,
        default_headers={
            "User-Agent": f"{settings.service_name}/{settings.version}",
            "Content-Type": "application/json",
        },
    )

    logger.info(
        "http_client_created",
        extra={"timeout_seconds": config.timeout_seconds, "max_retries": config.max_retries},
    )
    return HttpClient(config)
