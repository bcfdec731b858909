"""Contrato de persistência do estado de esclarecimento (SessionStore).

Um valor textual por usuário. Separado das implementações para manter SRP
e permitir instâncias isoladas por teste (nada de singleton global).
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from wally.domain.clarification import (
    UNKNOWN_CLARIFICATION_PREFIX,
    ClarificationState,
    decode_state,
    encode_state,
)
from wally.observability.logging import get_logger

logger: logging.Logger = get_logger(__name__)


class SessionStore(ABC):
    """Mapa concorrente user_id → estado textual.

    Operações primitivas (abstratas) trabalham com o valor textual; os
    helpers tipados convertem para ClarificationState.
    """

    @abstractmethod
    async def set(self, user_id: str, value: str) -> None:
        """Sobrescreve incondicionalmente o valor do usuário."""
        ...

    @abstractmethod
    async def get(self, user_id: str) -> str | None:
        """Leitura não destrutiva (None = não encontrado)."""
        ...

    @abstractmethod
    async def delete(self, user_id: str) -> bool:
        """Remove a entrada; True se existia."""
        ...

    @abstractmethod
    async def get_and_clear_if_prefix(self, user_id: str, prefix: str) -> tuple[str, str]:
        """Lê e remove atomicamente se o valor começar com `prefix`.

        Returns:
            (valor completo, restante após o prefixo) quando removido;
            ("", "") caso contrário, sem tocar na entrada.
        """
        ...

    async def set_state(self, user_id: str, state: ClarificationState) -> None:
        """Grava o estado tipado; Idle remove a entrada."""
        raw = encode_state(state)
        if raw is None:
            await self.delete(user_id)
        else:
            await self.set(user_id, raw)

    async def get_state(self, user_id: str) -> ClarificationState:
        """Lê o estado tipado (Idle quando ausente)."""
        return decode_state(await self.get(user_id))

    async def take_unknown_clarification(self, user_id: str) -> str:
        """Consome um esclarecimento desconhecido pendente.

        Returns:
            A mensagem original pendente, ou "" se não havia nenhuma.
        """
        _, original = await self.get_and_clear_if_prefix(user_id, UNKNOWN_CLARIFICATION_PREFIX)
        return original
