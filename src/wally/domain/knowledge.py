"""Contratos de domínio para o conhecimento aprendido (RAG-lite).

Uma KnowledgeEntry registra um episódio de esclarecimento resolvido:
mensagem original ambígua → mensagem de esclarecimento → ação aceita.
Entradas são imutáveis e só são acrescentadas (append-only).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_CONTEXT_LIMIT = 3


class KnowledgeEntry(BaseModel):
    """Episódio de esclarecimento resolvido."""

    model_config = ConfigDict(frozen=True)

    id: int | None = None
    user_id: str
    original_query: str
    clarification_query: str = ""
    resulting_action: str
    resulting_parameters: dict[str, str] = Field(default_factory=dict)
    timestamp: datetime | None = None


def format_parameters(parameters: dict[str, str]) -> str:
    """Renderiza parâmetros no formato `map[chave:valor ...]` com chaves ordenadas."""
    pairs = " ".join(f"{key}:{parameters[key]}" for key in sorted(parameters))
    return f"map[{pairs}]"


def render_knowledge_context(entries: Sequence[KnowledgeEntry]) -> str:
    """Monta o bloco de contexto para o prompt, uma frase por entrada.

    `entries` chega do mais recente para o mais antigo (ordem do store);
    o texto é montado do mais antigo para o mais recente.
    """
    pieces: list[str] = []
    for entry in reversed(entries):
        piece = f"Anteriormente, quando o usuário disse algo como '{entry.original_query}'"
        if entry.clarification_query:
            piece += f" e depois esclareceu com '{entry.clarification_query}'"
        piece += (
            f", a intenção foi '{entry.resulting_action}' "
            f"com parâmetros '{format_parameters(entry.resulting_parameters)}'.\n"
        )
        pieces.append(piece)
    return "".join(pieces)


class KnowledgeStore(ABC):
    """Porta de armazenamento do conhecimento aprendido.

    Implementações levantam PersistenceError em falhas de armazenamento.
    """

    def __init__(self, context_limit: int = DEFAULT_CONTEXT_LIMIT) -> None:
        self._context_limit = context_limit

    @abstractmethod
    async def save_knowledge(self, entry: KnowledgeEntry) -> KnowledgeEntry:
        """Acrescenta uma entrada; retorna a cópia com id e timestamp atribuídos."""
        ...

    @abstractmethod
    async def recent_entries(self, user_id: str, limit: int) -> list[KnowledgeEntry]:
        """Retorna as `limit` entradas mais recentes do usuário (mais recente primeiro)."""
        ...

    async def retrieve_relevant_knowledge(self, user_id: str, current_query_hint: str) -> str:
        """Recupera o contexto aprendido do usuário.

        A recuperação é apenas por recência; `current_query_hint` é aceito para
        filtragem futura por similaridade e não altera o resultado.
        """
        entries = await self.recent_entries(user_id, self._context_limit)
        return render_knowledge_context(entries)
