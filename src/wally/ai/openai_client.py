"""Classificador de intenção sobre a API OpenAI.

Falhas de rede/timeout viram ClassificationError; respostas ilegíveis
degradam para `unknown_intent` (ver openai_parser).
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from openai import APIError, APITimeoutError, AsyncOpenAI

from wally.ai import openai_parser, prompts
from wally.ai.contracts.intent import IntentOutcome
from wally.domain.errors import ClassificationError
from wally.observability.logging import get_logger

if TYPE_CHECKING:
    from wally.config.settings import Settings

logger: logging.Logger = get_logger(__name__)


class IntentClassifier:
    """Mapeia texto livre + contexto aprendido para um IntentOutcome."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str = "gpt-4o-mini",
        timeout_seconds: float = 30.0,
        max_retries: int = 2,
        client: AsyncOpenAI | None = None,
    ) -> None:
        self._client = client or AsyncOpenAI(api_key=api_key, max_retries=max_retries)
        self._model = model
        self._timeout = timeout_seconds

    async def _complete(self, prompt: str) -> str:
        try:
            response = await self._client.chat.completions.create(
                model=self._model,
                messages=[{"role": "user", "content": prompt}],
                response_format={"type": "json_object"},
                temperature=0.2,
                timeout=self._timeout,
            )
        except (APIError, APITimeoutError) as e:
            logger.warning(
                "intent_classifier_error",
                extra={"error": str(e), "error_type": type(e).__name__},
            )
            raise ClassificationError(f"Falha ao chamar o classificador: {type(e).__name__}") from e

        if not response.choices:
            logger.warning("intent_classifier_empty_choices", extra={"model": self._model})
            raise ClassificationError("Classificador retornou resposta vazia")

        return response.choices[0].message.content or ""

    async def classify(self, message: str, context_hint: str = "") -> IntentOutcome:
        """Classifica a mensagem; `context_hint` é o contexto aprendido (pode ser vazio).

        Raises:
            ClassificationError: classificador inalcançável ou sem resposta
        """
        if context_hint:
            logger.debug(
                "intent_classifier_using_context", extra={"context_length": len(context_hint)}
            )

        prompt = prompts.build_classification_prompt(message, context_hint)
        outcome = openai_parser.parse_intent_response(await self._complete(prompt))

        logger.info(
            "intent_classified",
            extra={"action": outcome.action, "has_error": outcome.error is not None},
        )
        return outcome

    async def explain_capabilities(self, message: str) -> str | None:
        """Resposta conversacional de fallback; None quando não há texto utilizável."""
        try:
            outcome = await self.classify(prompts.build_capabilities_prompt(message))
        except ClassificationError:
            return None

        if not outcome.is_actionable or not outcome.error:
            return None
        return outcome.error

    async def close(self) -> None:
        await self._client.close()


def create_intent_classifier(settings: Settings) -> IntentClassifier:
    """Cria o classificador conforme settings."""
    return IntentClassifier(
        api_key=settings.openai_api_key,
        model=settings.openai_model,
        timeout_seconds=settings.openai_timeout_seconds,
        max_retries=settings.openai_max_retries,
    )
