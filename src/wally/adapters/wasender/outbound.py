"""Cliente outbound da WaSenderAPI.

- Envio de texto (POST /api/send-message) com autenticação Bearer
- Registro do webhook (POST /api/set-webhook)
- Nunca levanta para falhas de transporte no envio: retorna SendResult
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from wally.adapters.wasender.models import SendResult
from wally.config.settings import WASENDER_SEND_MESSAGE_PATH, WASENDER_SET_WEBHOOK_PATH
from wally.domain.errors import TransportError
from wally.infra.http import HttpClient, HttpError, create_http_client
from wally.observability.logging import get_logger, mask_user_id

if TYPE_CHECKING:
    import httpx

    from wally.config.settings import Settings

logger: logging.Logger = get_logger(__name__)


def _extract_message_id(response: httpx.Response) -> str | None:
    """Extrai o id da mensagem da resposta, quando presente."""
    try:
        body: Any = response.json()
    except ValueError:
        return None
    if not isinstance(body, dict):
        return None
    data = body.get("data")
    if isinstance(data, dict):
        for key in ("msgId", "messageId", "id"):
            if data.get(key) is not None:
                return str(data[key])
    return None


class WaSenderClient:
    """Envia mensagens de texto via WaSenderAPI."""

    def __init__(self, http_client: HttpClient, api_key: str) -> None:
        self._http = http_client
        self._api_key = api_key

    def _auth_headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self._api_key}"}

    async def send_message(self, to: str, text: str) -> SendResult:
        """Envia `text` para `to`; falhas viram SendResult(success=False)."""
        try:
            response = await self._http.post(
                WASENDER_SEND_MESSAGE_PATH,
                json={"to": to, "text": text},
                headers=self._auth_headers(),
            )
        except HttpError as exc:
            logger.error(
                "outbound_send_failed",
                extra={
                    "user": mask_user_id(to),
                    "error": str(exc),
                    "status_code": exc.status_code,
                },
            )
            return SendResult(success=False, error=str(exc), status_code=exc.status_code)

        message_id = _extract_message_id(response)
        logger.info(
            "outbound_sent",
            extra={"user": mask_user_id(to), "message_id": message_id},
        )
        return SendResult(success=True, message_id=message_id, status_code=response.status_code)

    async def register_webhook(self, public_url: str) -> None:
        """Aponta o webhook da sessão para `public_url` + '/webhook'.

        Raises:
            TransportError: provedor rejeitou ou ficou inalcançável
        """
        webhook_url = public_url.rstrip("/") + "/webhook"
        try:
            await self._http.post(
                WASENDER_SET_WEBHOOK_PATH,
                json={"url": webhook_url},
                headers=self._auth_headers(),
            )
        except HttpError as exc:
            logger.error("webhook_registration_failed", extra={"error": str(exc)})
            raise TransportError(f"Falha ao registrar webhook: {exc}") from exc
        logger.info("webhook_registered", extra={"webhook_url": webhook_url})

    async def close(self) -> None:
        await self._http.close()


def create_wasender_client(settings: Settings) -> WaSenderClient:
    """Cria o cliente outbound com o HttpClient configurado."""
    return WaSenderClient(create_http_client(settings), settings.wasender_api_key or "")
