"""Configurações centralizadas do Wally.

Uso típico:
    from wally.config import get_settings, load_settings
"""

from wally.config.settings import (
    WASENDER_API_BASE_URL,
    WASENDER_SEND_MESSAGE_PATH,
    WASENDER_SET_WEBHOOK_PATH,
    Settings,
    get_settings,
    load_settings,
)

__all__ = [
    "Settings",
    "get_settings",
    "load_settings",
    "WASENDER_API_BASE_URL",
    "WASENDER_SEND_MESSAGE_PATH",
    "WASENDER_SET_WEBHOOK_PATH",
]
