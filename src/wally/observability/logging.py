"""Logging estruturado (JSON) do Wally.

Nunca logar o texto das mensagens dos usuários em INFO; números de telefone
passam sempre por mask_user_id.
"""

from __future__ import annotations

import logging

from pythonjsonlogger.json import JsonFormatter

from wally.observability.middleware import get_correlation_id

_JSON_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s %(correlation_id)s %(service)s"
_TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s [%(correlation_id)s] %(message)s"

# Bibliotecas que logam cada request em INFO
_NOISY_LOGGERS = ("httpx", "httpcore", "openai")


class CorrelationIdFilter(logging.Filter):
    """Insere correlation_id e service em cada record."""

    def __init__(self, service_name: str) -> None:
        super().__init__()
        self._service_name = service_name

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: A003
        existing = getattr(record, "correlation_id", None)
        record.correlation_id = existing if existing else get_correlation_id()
        record.service = self._service_name
        return True


def _build_formatter(log_format: str) -> logging.Formatter:
    if log_format.lower() == "text":
        return logging.Formatter(_TEXT_FORMAT)
    return JsonFormatter(_JSON_FORMAT, rename_fields={"levelname": "level", "name": "logger"})


def configure_logging(level: str, service_name: str, log_format: str = "json") -> None:
    """Configura o root logger com um único handler em stdout/stderr."""

    handler = logging.StreamHandler()
    handler.setLevel(level)
    handler.setFormatter(_build_formatter(log_format))
    handler.addFilter(CorrelationIdFilter(service_name))

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers = [handler]

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def mask_user_id(user_id: str | None) -> str:
    """'5511988887777' -> '***7777'; ids curtos viram só '***'."""

    if not user_id:
        return ""
    if len(user_id) <= 4:
        return "***"
    return f"***{user_id[-4:]}"


def log_fallback(
    logger: logging.Logger,
    component: str,
    reason: str | None = None,
    elapsed_ms: float | None = None,
) -> None:
    """Registra que um caminho degradado foi usado (sem PII).

    Exemplo:
        log_fallback(logger, "knowledge_retrieval", reason="PersistenceError")
    """
    extra: dict[str, object] = {"fallback_used": True, "component": component}
    if reason:
        extra["reason"] = reason
    if elapsed_ms is not None:
        extra["elapsed_ms"] = elapsed_ms

    logger.info("fallback_applied", extra=extra)
