#!/usr/bin/env python
"""Registra a URL pública do serviço como webhook na WaSenderAPI.

O túnel/URL pública deve estar ativo antes (ex: ngrok); este script só
aponta a sessão da WaSender para <url>/webhook.

Uso:
    WASENDER_API_KEY=... python scripts/register_webhook.py https://abc.ngrok.app
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Adicionar src ao path
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from wally.adapters.wasender.outbound import create_wasender_client  # noqa: E402
from wally.config.settings import Settings  # noqa: E402
from wally.domain.errors import TransportError  # noqa: E402
from wally.observability.logging import configure_logging  # noqa: E402


async def register(public_url: str) -> int:
    settings = Settings()
    if not settings.wasender_api_key:
        print("❌ WASENDER_API_KEY não configurado")
        return 1

    configure_logging(settings.log_level, settings.service_name, "text")
    client = create_wasender_client(settings)
    try:
        await client.register_webhook(public_url)
    except TransportError as exc:
        print(f"❌ Falha ao registrar webhook: {exc}")
        return 1
    finally:
        await client.close()

    print(f"✅ Webhook registrado: {public_url.rstrip('/')}/webhook")
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("public_url", help="URL pública (https) que expõe o serviço")
    args = parser.parse_args()
    return asyncio.run(register(args.public_url))


if __name__ == "__main__":
    sys.exit(main())
