"""Extração da mensagem inbound a partir do payload do webhook."""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from wally.adapters.wasender.models import InboundMessage, WaSenderWebhookPayload
from wally.domain.errors import TransportError
from wally.observability.logging import get_logger, mask_user_id

logger: logging.Logger = get_logger(__name__)

WHATSAPP_JID_SUFFIX = "@s.whatsapp.net"


def strip_jid_suffix(remote_jid: str) -> str:
    """'5511999999999@s.whatsapp.net' -> '5511999999999'."""
    return remote_jid.replace(WHATSAPP_JID_SUFFIX, "", 1)


def extract_inbound_message(payload: dict[str, Any]) -> InboundMessage | None:
    """Normaliza o payload em InboundMessage.

    Retorna None quando o evento não carrega remetente (ex: eventos de status).
    Mensagens próprias são extraídas com is_from_self=True; quem decide
    descartá-las é a rota.

    Raises:
        TransportError: payload não é um objeto ou tem formato inválido
    """
    if not isinstance(payload, dict):
        raise TransportError(f"Payload de webhook inválido: {type(payload).__name__}")

    try:
        parsed = WaSenderWebhookPayload.model_validate(payload)
    except PydanticValidationError as exc:
        logger.warning(
            "webhook_payload_invalid",
            extra={"error_count": exc.error_count(), "event": payload.get("event")},
        )
        raise TransportError("Payload de webhook em formato inválido") from exc

    msg = parsed.data.messages
    sender_id = strip_jid_suffix(msg.key.remote_jid)
    if not sender_id:
        logger.debug("webhook_without_sender", extra={"event": parsed.event})
        return None

    text = msg.message.conversation if msg.message and msg.message.conversation else ""
    inbound = InboundMessage(
        sender_id=sender_id,
        text=text,
        display_name=msg.push_name or "",
        is_from_self=msg.key.from_me,
        message_id=msg.key.id,
    )

    logger.debug(
        "inbound_message_extracted",
        extra={
            "user": mask_user_id(sender_id),
            "message_id": inbound.message_id,
            "is_from_self": inbound.is_from_self,
            "has_text": bool(text),
        },
    )
    return inbound
