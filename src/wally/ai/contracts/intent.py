"""Contrato Pydantic para a classificação de intenção."""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field, field_validator


class IntentAction(StrEnum):
    """Ações conhecidas pelo orquestrador.

    O vocabulário é aberto: qualquer outro valor de `action` é tratado como
    ação não reconhecida.
    """

    ADD_EXPENSE = "add_expense"
    SHOW_MENU = "show_menu"
    UNKNOWN_INTENT = "unknown_intent"


class IntentOutcome(BaseModel):
    """Resultado do classificador (não persistido diretamente)."""

    action: str = ""
    """Tag da intenção detectada (ex: add_expense)."""

    parameters: dict[str, str] = Field(default_factory=dict)
    """Slots extraídos (amount, category, description...)."""

    error: str | None = None
    """Mensagem legível quando a classificação está incompleta."""

    @field_validator("action", mode="before")
    @classmethod
    def coerce_action(cls, v: Any) -> Any:
        """Aceita null como ação vazia."""
        if v is None:
            return ""
        return v

    @field_validator("parameters", mode="before")
    @classmethod
    def coerce_parameters(cls, v: Any) -> Any:
        """Converte valores escalares (ex: amount numérico) para string e descarta nulos."""
        if v is None:
            return {}
        if not isinstance(v, dict):
            return v
        return {
            str(key): value if isinstance(value, str) else str(value)
            for key, value in v.items()
            if value is not None
        }

    @property
    def is_actionable(self) -> bool:
        """True quando há uma ação não vazia."""
        return bool(self.action)
