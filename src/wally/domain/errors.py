"""Taxonomia de erros do Wally.

- TransportError: webhook indecifrável ou falha de envio outbound.
- ClassificationError: classificador indisponível ou resposta irrecuperável.
- ValidationError: slots da intenção ausentes ou malformados.
- PersistenceError: falha ao salvar/recuperar conhecimento ou sessão.
- ConfigurationError: segredos obrigatórios ausentes no startup (fatal).
"""

from __future__ import annotations


class WallyError(Exception):
    """Erro base do domínio."""


class TransportError(WallyError):
    """Falha de transporte (decodificação de webhook, envio outbound)."""


class ClassificationError(WallyError):
    """Classificador de intenção falhou (rede, timeout, resposta vazia)."""


class ValidationError(WallyError):
    """Parâmetros da intenção ausentes ou inválidos."""

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class PersistenceError(WallyError):
    """Falha no armazenamento (indisponível, timeout, escrita rejeitada)."""


class ConfigurationError(WallyError):
    """Configuração obrigatória ausente; o processo não deve iniciar."""

    def __init__(self, message: str, missing: list[str] | None = None) -> None:
        super().__init__(message)
        self.missing = missing or []
