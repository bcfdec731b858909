"""Configurações da aplicação via variáveis de ambiente.

Todas as configurações são carregadas de env vars (ou arquivo .env).
Nunca hardcode secrets ou valores sensíveis.
"""

from __future__ import annotations

import logging
from functools import lru_cache

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from wally.domain.errors import ConfigurationError
from wally.observability.logging import get_logger

logger: logging.Logger = get_logger(__name__)

# -----------------------------------------------------------------------------
# Constantes da WaSenderAPI
# -----------------------------------------------------------------------------
WASENDER_API_BASE_URL: str = "https://www.wasenderapi.com"
WASENDER_SEND_MESSAGE_PATH: str = "/api/send-message"
WASENDER_SET_WEBHOOK_PATH: str = "/api/set-webhook"


class Settings(BaseSettings):
    """Configurações lidas do ambiente."""

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Aplicação
    service_name: str = "wally"
    version: str = "0.1.0"
    environment: str = "development"
    log_level: str = "INFO"
    log_format: str = "json"  # json | text

    # Segredos obrigatórios (startup falha se qualquer um faltar)
    wasender_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("WASENDER_API_KEY", "API_KEY", "wasender_api_key"),
    )
    database_url: str | None = None
    openai_api_key: str | None = None

    # WaSender (outbound)
    wasender_api_base_url: str = WASENDER_API_BASE_URL
    wasender_request_timeout_seconds: int = 30
    wasender_max_retries: int = 2
    wasender_retry_backoff_seconds: float = 1.0

    # OpenAI / classificador de intenção
    openai_model: str = "gpt-4o-mini"
    openai_timeout_seconds: float = 30.0
    openai_max_retries: int = 2
    intent_turn_timeout_seconds: float = 90.0  # teto da classificação por turno

    # Session store backend
    session_store_backend: str = "memory"  # memory | redis
    redis_url: str | None = None
    session_timeout_seconds: float = 2.0  # teto de cada chamada ao Redis

    # Knowledge store (RAG-lite)
    knowledge_store_backend: str = "sql"  # memory | sql
    knowledge_context_limit: int = 3
    knowledge_timeout_seconds: float = 5.0

    @property
    def is_production(self) -> bool:
        """Retorna True se ambiente é produção."""
        return self.environment.lower() in ("production", "prod")

    @property
    def is_staging(self) -> bool:
        """Retorna True se ambiente é staging."""
        return self.environment.lower() in ("staging", "stage")

    @property
    def is_development(self) -> bool:
        """Retorna True se ambiente é desenvolvimento."""
        return self.environment.lower() in ("development", "dev", "local")

    def validate_required_secrets(self) -> list[str]:
        """Lista os segredos obrigatórios ausentes (vazia = OK)."""
        missing: list[str] = []
        if not self.wasender_api_key:
            missing.append("WASENDER_API_KEY")
        if not self.database_url:
            missing.append("DATABASE_URL")
        if not self.openai_api_key:
            missing.append("OPENAI_API_KEY")
        return missing

    def validate_session_store_config(self) -> list[str]:
        """Valida backend de session store por ambiente.

        Em staging/prod, memory é proibido (estado não sobrevive a restarts
        nem é compartilhado entre instâncias).
        """
        errors: list[str] = []
        backend = self.session_store_backend.lower()

        valid_backends = {"memory", "redis"}
        if backend not in valid_backends:
            errors.append(
                f"SESSION_STORE_BACKEND '{backend}' inválido. Valores válidos: {valid_backends}"
            )

        if backend == "memory" and (self.is_staging or self.is_production):
            errors.append(
                "SESSION_STORE_BACKEND=memory é proibido em staging/production. Use 'redis'."
            )

        if backend == "redis" and not self.redis_url:
            errors.append("SESSION_STORE_BACKEND=redis requer REDIS_URL configurado")

        if self.session_timeout_seconds <= 0:
            errors.append("SESSION_TIMEOUT_SECONDS deve ser > 0")

        return errors

    def validate_knowledge_store_config(self) -> list[str]:
        """Valida backend do knowledge store."""
        errors: list[str] = []
        backend = self.knowledge_store_backend.lower()

        if backend not in {"memory", "sql"}:
            errors.append("KNOWLEDGE_STORE_BACKEND inválido: use memory | sql")

        if backend == "memory" and (self.is_staging or self.is_production):
            errors.append("KNOWLEDGE_STORE_BACKEND=memory é proibido em staging/production")

        if self.knowledge_context_limit < 1:
            errors.append("KNOWLEDGE_CONTEXT_LIMIT deve ser >= 1")

        if self.knowledge_timeout_seconds <= 0:
            errors.append("KNOWLEDGE_TIMEOUT_SECONDS deve ser > 0")

        return errors

    def validate_all(self) -> list[str]:
        """Agrega todas as validações de backend."""
        errors: list[str] = []
        errors.extend(self.validate_session_store_config())
        errors.extend(self.validate_knowledge_store_config())
        if self.openai_timeout_seconds <= 0:
            errors.append("OPENAI_TIMEOUT_SECONDS deve ser > 0")
        if self.intent_turn_timeout_seconds <= 0:
            errors.append("INTENT_TURN_TIMEOUT_SECONDS deve ser > 0")
        return errors


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Retorna uma instância cacheada de Settings.

    A cache garante que mesmo múltiplas injeções não criam novos objetos.
    """
    return Settings()


def load_settings(settings: Settings | None = None) -> Settings:
    """Carrega settings e falha (fail-closed) se faltar segredo obrigatório.

    Raises:
        ConfigurationError: um ou mais segredos ausentes
    """
    settings = settings or get_settings()

    missing = settings.validate_required_secrets()
    if missing:
        logger.error(
            "required_secrets_missing",
            extra={"missing": missing, "environment": settings.environment},
        )
        raise ConfigurationError(
            f"Variáveis obrigatórias não configuradas: {', '.join(missing)}",
            missing=missing,
        )

    errors = settings.validate_all()
    if errors:
        logger.error("settings_invalid", extra={"errors": errors})
        raise ConfigurationError("; ".join(errors))

    logger.info(
        "settings_loaded",
        extra={
            "environment": settings.environment,
            "session_store_backend": settings.session_store_backend,
            "knowledge_store_backend": settings.knowledge_store_backend,
        },
    )
    return settings
