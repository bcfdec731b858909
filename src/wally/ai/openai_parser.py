"""Parsing da resposta do classificador.

Nunca propaga falha de parsing: respostas ilegíveis degradam para
`unknown_intent` com uma mensagem explicativa.
"""

from __future__ import annotations

import json
import logging
import re

from pydantic import ValidationError as PydanticValidationError

from wally.ai.contracts.intent import IntentAction, IntentOutcome
from wally.observability.logging import get_logger

logger: logging.Logger = get_logger(__name__)

UNPARSEABLE_RESPONSE_ERROR = (
    "Não consegui processar a resposta da IA. Tente ser mais específico ou peça o menu."
)

_FENCE_RE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL | re.IGNORECASE)


def strip_code_fences(text: str) -> str:
    """Remove cercas Markdown (```json ... ```) ao redor do JSON."""
    stripped = text.strip()
    match = _FENCE_RE.match(stripped)
    if match:
        return match.group(1).strip()
    return stripped


def _fallback_intent() -> IntentOutcome:
    return IntentOutcome(
        action=IntentAction.UNKNOWN_INTENT.value,
        error=UNPARSEABLE_RESPONSE_ERROR,
    )


def parse_intent_response(response_text: str) -> IntentOutcome:
    """Converte o texto do modelo em IntentOutcome."""
    cleaned = strip_code_fences(response_text)
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        logger.warning(
            "intent_response_not_json",
            extra={"error": str(exc), "length": len(cleaned)},
        )
        return _fallback_intent()

    if not isinstance(data, dict):
        logger.warning("intent_response_not_object", extra={"type": type(data).__name__})
        return _fallback_intent()

    try:
        return IntentOutcome.model_validate(data)
    except PydanticValidationError as exc:
        logger.warning(
            "intent_response_invalid_shape",
            extra={"error_count": exc.error_count()},
        )
        return _fallback_intent()
