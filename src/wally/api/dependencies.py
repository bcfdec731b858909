"""Dependências injetadas nas rotas."""

from __future__ import annotations

from fastapi import Request

from wally.application.orchestrator import ConversationOrchestrator
from wally.config.settings import Settings


def get_settings(request: Request) -> Settings:
    """Retorna settings da aplicação."""

    return request.app.state.settings


def get_orchestrator(request: Request) -> ConversationOrchestrator:
    """Retorna o orquestrador da conversa."""

    return request.app.state.orchestrator
