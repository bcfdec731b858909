"""Rotas HTTP: healthcheck e webhook da WaSenderAPI."""

from __future__ import annotations

import json
import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request, status

from wally.adapters.wasender.normalizer import extract_inbound_message
from wally.api.dependencies import get_orchestrator, get_settings
from wally.application.orchestrator import ConversationOrchestrator
from wally.config.settings import Settings
from wally.domain.errors import TransportError
from wally.observability.logging import get_logger, mask_user_id
from wally.observability.middleware import get_correlation_id

logger: logging.Logger = get_logger(__name__)

router = APIRouter()


@router.get("/health")
def health(settings: Settings = Depends(get_settings)) -> dict[str, str]:
    """Healthcheck simples."""
    return {"status": "ok", "service": settings.service_name, "version": settings.version}


@router.post("/webhook")
async def wasender_webhook(
    request: Request,
    orchestrator: ConversationOrchestrator = Depends(get_orchestrator),
) -> dict[str, Any]:
    """Recebe eventos da WaSenderAPI e processa um turno de conversa."""
    raw_body = await request.body()
    try:
        payload = json.loads(raw_body or b"{}")
    except json.JSONDecodeError as exc:
        logger.warning("webhook_invalid_json", extra={"body_length": len(raw_body)})
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="invalid_json") from exc

    try:
        message = extract_inbound_message(payload)
    except TransportError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="invalid_payload"
        ) from exc

    if message is None or message.is_from_self or not message.text.strip():
        logger.info(
            "webhook_event_ignored",
            extra={
                "is_from_self": bool(message and message.is_from_self),
                "has_sender": message is not None,
            },
        )
        return {"ok": True, "status": "ignored"}

    correlation_id = get_correlation_id()
    result = await orchestrator.handle_message(message)
    logger.info(
        "webhook_turn_processed",
        extra={
            "user": mask_user_id(message.sender_id),
            "reply_sent": result.reply_sent,
            "learned": result.knowledge_entry is not None,
        },
    )
    return {"ok": True, "status": "processed", "correlation_id": correlation_id}
