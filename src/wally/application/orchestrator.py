"""Orquestrador da conversa: máquina de estados de esclarecimento.

Fluxo de um turno:
1. Recupera contexto aprendido (falha → contexto vazio)
2. Classifica a intenção (falha → pedido de desculpas, sem mutação)
3. Consome esclarecimento desconhecido pendente; espia esclarecimento de despesa
4. Ramifica pela ação (add_expense, show_menu, unknown_intent, outras)
5. Exatamente uma resposta; zero ou uma mutação de sessão; zero ou uma
   KnowledgeEntry (só ao resolver uma ambiguidade rastreada)
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Protocol

import anyio

from wally.ai.contracts.intent import IntentAction, IntentOutcome
from wally.application import replies
from wally.domain.clarification import (
    AWAITING_EXPENSE,
    IDLE,
    AwaitingExpenseClarification,
    AwaitingUnknownClarification,
    ClarificationState,
)
from wally.domain.errors import ClassificationError, PersistenceError, ValidationError
from wally.domain.expense import Expense, normalize_amount, parse_amount
from wally.domain.knowledge import KnowledgeEntry, KnowledgeStore
from wally.observability.logging import get_logger, log_fallback, mask_user_id
from wally.observability.timing import timed

if TYPE_CHECKING:
    from wally.adapters.wasender.models import InboundMessage, SendResult
    from wally.infra.session_contract import SessionStore

logger: logging.Logger = get_logger(__name__)


class IntentClassifierPort(Protocol):
    async def classify(self, message: str, context_hint: str = "") -> IntentOutcome: ...

    async def explain_capabilities(self, message: str) -> str | None: ...


class MessageSender(Protocol):
    async def send_message(self, to: str, text: str) -> SendResult: ...


@dataclass(slots=True)
class TurnResult:
    """O que o turno fez (para logs e testes).

    `session_state` é None quando o turno terminou sem tocar na sessão.
    """

    reply: str
    session_state: ClarificationState | None = None
    knowledge_entry: KnowledgeEntry | None = None
    reply_sent: bool = False


@dataclass(slots=True)
class _Turn:
    message: InboundMessage
    reply_attempted: bool = False
    reply_sent: bool = False
    reply: str = ""

    @property
    def user_id(self) -> str:
        return self.message.sender_id


class ConversationOrchestrator:
    """Decide resposta, transição de sessão e aprendizado para cada mensagem."""

    def __init__(
        self,
        session_store: SessionStore,
        knowledge_store: KnowledgeStore,
        classifier: IntentClassifierPort,
        sender: MessageSender,
        clock: Callable[[], datetime] | None = None,
        classifier_timeout_seconds: float | None = None,
    ) -> None:
        self._sessions = session_store
        self._knowledge = knowledge_store
        self._classifier = classifier
        self._sender = sender
        self._clock = clock or (lambda: datetime.now(tz=UTC))
        self._classifier_timeout = classifier_timeout_seconds

    async def handle_message(self, message: InboundMessage) -> TurnResult:
        """Processa um turno; nunca levanta exceção para o chamador."""
        turn = _Turn(message=message)
        try:
            return await self._run_turn(turn)
        except Exception as exc:  # fronteira do turno
            logger.exception(
                "turn_failed",
                extra={"user": mask_user_id(turn.user_id), "error_type": type(exc).__name__},
            )
            if not turn.reply_attempted:
                await self._send_apology(turn)
            return TurnResult(reply=turn.reply, reply_sent=turn.reply_sent)

    async def _send_apology(self, turn: _Turn) -> None:
        try:
            await self._reply(turn, replies.CLASSIFIER_APOLOGY)
        except Exception as exc:
            logger.error(
                "apology_not_delivered",
                extra={"user": mask_user_id(turn.user_id), "error_type": type(exc).__name__},
            )

    async def _run_turn(self, turn: _Turn) -> TurnResult:
        user_id = turn.user_id
        text = turn.message.text

        context = await self._retrieve_context(user_id, text)

        try:
            with timed("intent_classifier"), anyio.fail_after(self._classifier_timeout):
                outcome = await self._classifier.classify(text, context)
        except (ClassificationError, TimeoutError) as exc:
            logger.warning(
                "intent_classification_failed",
                extra={"user": mask_user_id(user_id), "error_type": type(exc).__name__},
            )
            await self._reply(turn, replies.CLASSIFIER_APOLOGY)
            return TurnResult(reply=replies.CLASSIFIER_APOLOGY, reply_sent=turn.reply_sent)

        prior_unknown = await self._sessions.take_unknown_clarification(user_id)
        prior_state = await self._sessions.get_state(user_id)
        was_awaiting_expense = isinstance(prior_state, AwaitingExpenseClarification)

        logger.info(
            "turn_classified",
            extra={
                "user": mask_user_id(user_id),
                "action": outcome.action,
                "resolving_unknown": bool(prior_unknown),
                "was_awaiting_expense": was_awaiting_expense,
                "context_used": bool(context),
            },
        )

        if outcome.action == IntentAction.ADD_EXPENSE:
            return await self._handle_add_expense(
                turn, outcome, prior_unknown, was_awaiting_expense
            )
        if outcome.action == IntentAction.SHOW_MENU:
            return await self._handle_show_menu(turn, outcome, prior_unknown)
        if outcome.action == IntentAction.UNKNOWN_INTENT:
            return await self._handle_unknown_intent(turn)
        return await self._handle_unrecognized(turn, outcome, prior_unknown)

    async def _retrieve_context(self, user_id: str, text: str) -> str:
        try:
            return await self._knowledge.retrieve_relevant_knowledge(user_id, text)
        except PersistenceError as exc:
            log_fallback(logger, "knowledge_retrieval", reason=type(exc).__name__)
            return ""

    async def _handle_add_expense(
        self,
        turn: _Turn,
        outcome: IntentOutcome,
        prior_unknown: str,
        was_awaiting_expense: bool,
    ) -> TurnResult:
        raw_amount = outcome.parameters.get("amount", "")
        category = outcome.parameters.get("category", "").strip()

        if not raw_amount or not category:
            logger.info(
                "expense_slots_missing",
                extra={
                    "user": mask_user_id(turn.user_id),
                    "has_amount": bool(raw_amount),
                    "has_category": bool(category),
                },
            )
            return await self._rearm_expense(
                turn, replies.build_expense_retry(outcome.error), prior_unknown
            )

        try:
            amount = parse_amount(raw_amount)
        except ValidationError as exc:
            logger.info(
                "expense_amount_invalid",
                extra={"user": mask_user_id(turn.user_id), "field": exc.field},
            )
            return await self._rearm_expense(
                turn, replies.build_invalid_amount(normalize_amount(raw_amount)), prior_unknown
            )

        expense = Expense(
            user_id=turn.user_id,
            amount=amount,
            category=category,
            timestamp=self._clock(),
        )
        logger.info(
            "expense_recorded",
            extra={
                "user": mask_user_id(expense.user_id),
                "amount": expense.amount,
                "category": expense.category,
            },
        )

        reply = replies.build_expense_added(expense.amount, expense.category)
        await self._reply(turn, reply)

        entry: KnowledgeEntry | None = None
        if prior_unknown:
            entry = await self._learn(turn, prior_unknown, outcome)
        elif was_awaiting_expense:
            logger.info(
                "expense_clarification_not_learnable",
                extra={"user": mask_user_id(turn.user_id)},
            )

        await self._sessions.set_state(turn.user_id, IDLE)
        return TurnResult(
            reply=reply, session_state=IDLE, knowledge_entry=entry, reply_sent=turn.reply_sent
        )

    async def _rearm_expense(self, turn: _Turn, reply: str, prior_unknown: str) -> TurnResult:
        """Resposta + re-armar: desconhecido (com a mensagem atual) ou despesa."""
        await self._reply(turn, reply)
        state: ClarificationState
        if prior_unknown:
            state = AwaitingUnknownClarification(original=turn.message.text)
        else:
            state = AWAITING_EXPENSE
        await self._sessions.set_state(turn.user_id, state)
        return TurnResult(reply=reply, session_state=state, reply_sent=turn.reply_sent)

    async def _handle_show_menu(
        self, turn: _Turn, outcome: IntentOutcome, prior_unknown: str
    ) -> TurnResult:
        reply = replies.build_main_menu(turn.message.display_name)
        await self._reply(turn, reply)

        entry = await self._learn(turn, prior_unknown, outcome) if prior_unknown else None

        await self._sessions.set_state(turn.user_id, IDLE)
        return TurnResult(
            reply=reply, session_state=IDLE, knowledge_entry=entry, reply_sent=turn.reply_sent
        )

    async def _handle_unknown_intent(self, turn: _Turn) -> TurnResult:
        reply = await self._fallback_reply(turn.message.text)
        await self._reply(turn, reply)

        state = AwaitingUnknownClarification(original=turn.message.text)
        await self._sessions.set_state(turn.user_id, state)
        return TurnResult(reply=reply, session_state=state, reply_sent=turn.reply_sent)

    async def _handle_unrecognized(
        self, turn: _Turn, outcome: IntentOutcome, prior_unknown: str
    ) -> TurnResult:
        logger.warning(
            "intent_action_unhandled",
            extra={"user": mask_user_id(turn.user_id), "action": outcome.action},
        )
        reply = replies.build_unhandled(turn.message.display_name)
        await self._reply(turn, reply)

        state: ClarificationState
        if prior_unknown:
            state = AwaitingUnknownClarification(original=turn.message.text)
        else:
            state = IDLE
        await self._sessions.set_state(turn.user_id, state)
        return TurnResult(reply=reply, session_state=state, reply_sent=turn.reply_sent)

    async def _fallback_reply(self, text: str) -> str:
        """Chamada secundária "explique o que você pode fazer"; degrada ao texto fixo."""
        try:
            with timed("capabilities_fallback"), anyio.fail_after(self._classifier_timeout):
                explanation = await self._classifier.explain_capabilities(text)
        except (ClassificationError, TimeoutError) as exc:
            log_fallback(logger, "fallback_reply", reason=type(exc).__name__)
            return replies.FALLBACK_CANNED_REPLY

        if not explanation:
            log_fallback(logger, "fallback_reply", reason="no_actionable_content")
            return replies.FALLBACK_CANNED_REPLY
        return explanation

    async def _learn(
        self, turn: _Turn, original: str, outcome: IntentOutcome
    ) -> KnowledgeEntry | None:
        """Persiste o episódio resolvido; falhas são logadas e engolidas."""
        entry = KnowledgeEntry(
            user_id=turn.user_id,
            original_query=original,
            clarification_query=turn.message.text,
            resulting_action=outcome.action,
            resulting_parameters=dict(outcome.parameters),
        )
        try:
            return await self._knowledge.save_knowledge(entry)
        except PersistenceError as exc:
            logger.error(
                "knowledge_save_failed",
                extra={"user": mask_user_id(turn.user_id), "error": str(exc)},
            )
            return None

    async def _reply(self, turn: _Turn, text: str) -> None:
        turn.reply_attempted = True
        turn.reply = text
        result = await self._sender.send_message(turn.user_id, text)
        turn.reply_sent = result.success
        if not result.success:
            logger.error(
                "reply_not_delivered",
                extra={"user": mask_user_id(turn.user_id), "error": result.error},
            )
