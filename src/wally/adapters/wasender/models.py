"""Modelos do webhook da WaSenderAPI (evento messages.upsert).

Campos desconhecidos são ignorados; apenas o necessário para o turno é extraído.
"""

from __future__ import annotations

from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, Field


class _WaSenderModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class MessageKey(_WaSenderModel):
    remote_jid: str = Field(default="", alias="remoteJid")
    from_me: bool = Field(default=False, alias="fromMe")
    id: str = ""


class MessageContent(_WaSenderModel):
    conversation: str | None = None


class WebhookMessage(_WaSenderModel):
    key: MessageKey = Field(default_factory=MessageKey)
    push_name: str | None = Field(default=None, alias="pushName")
    message_timestamp: int | None = Field(default=None, alias="messageTimestamp")
    message: MessageContent | None = None


class WebhookData(_WaSenderModel):
    messages: WebhookMessage = Field(default_factory=WebhookMessage)


class WaSenderWebhookPayload(_WaSenderModel):
    """Envelope do webhook."""

    event: str | None = None
    session_id: str | None = Field(default=None, alias="sessionId")
    timestamp: int | None = None
    data: WebhookData = Field(default_factory=WebhookData)


@dataclass(frozen=True, slots=True)
class InboundMessage:
    """Mensagem recebida, já normalizada para o orquestrador."""

    sender_id: str
    text: str
    display_name: str = ""
    is_from_self: bool = False
    message_id: str = ""


@dataclass(frozen=True, slots=True)
class SendResult:
    """Resultado explícito de um envio outbound."""

    success: bool
    message_id: str | None = None
    error: str | None = None
    status_code: int | None = None
