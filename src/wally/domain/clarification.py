"""Estados de esclarecimento por usuário.

Cada usuário está em exatamente um destes estados:
- Idle: nenhum esclarecimento pendente (ausência de entrada no store)
- AwaitingExpenseClarification: despesa incompleta aguardando valor/categoria
- AwaitingUnknownClarification: mensagem não compreendida aguardando explicação

No store os estados são gravados no formato textual legado
("awaiting_clarification_expense" e "awaiting_clarification_unknown:<mensagem>").
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TypeAlias

from wally.observability.logging import get_logger

logger: logging.Logger = get_logger(__name__)

EXPENSE_CLARIFICATION_STATE = "awaiting_clarification_expense"
UNKNOWN_CLARIFICATION_PREFIX = "awaiting_clarification_unknown:"


@dataclass(frozen=True, slots=True)
class Idle:
    """Nenhum esclarecimento pendente."""


@dataclass(frozen=True, slots=True)
class AwaitingExpenseClarification:
    """Aguardando o usuário completar uma despesa."""


@dataclass(frozen=True, slots=True)
class AwaitingUnknownClarification:
    """Aguardando o usuário esclarecer `original`."""

    original: str


ClarificationState: TypeAlias = Idle | AwaitingExpenseClarification | AwaitingUnknownClarification

IDLE = Idle()
AWAITING_EXPENSE = AwaitingExpenseClarification()


def encode_state(state: ClarificationState) -> str | None:
    """Converte o estado para o valor gravado no store (None = remover)."""
    if isinstance(state, AwaitingUnknownClarification):
        return UNKNOWN_CLARIFICATION_PREFIX + state.original
    if isinstance(state, AwaitingExpenseClarification):
        return EXPENSE_CLARIFICATION_STATE
    return None


def decode_state(raw: str | None) -> ClarificationState:
    """Converte o valor do store de volta para o estado tipado."""
    if raw is None:
        return IDLE
    if raw.startswith(UNKNOWN_CLARIFICATION_PREFIX):
        return AwaitingUnknownClarification(original=raw[len(UNKNOWN_CLARIFICATION_PREFIX):])
    if raw == EXPENSE_CLARIFICATION_STATE:
        return AWAITING_EXPENSE

    logger.warning("unrecognized_session_state", extra={"raw_length": len(raw)})
    return IDLE
