"""Contratos Pydantic do classificador de intenção."""

from wally.ai.contracts.intent import IntentAction, IntentOutcome

__all__ = [
    "IntentAction",
    "IntentOutcome",
]
