"""Telegram client factory and login for the telegram event source.

The runtime connects the client itself and disconnects it on shutdown,
so the session lifetime matches the ingestion run.
"""

from __future__ import annotations

import logging
import os
from getpass import getpass

import qrcode
from dotenv import load_dotenv
from telethon import TelegramClient, errors

LOGGER = logging.getLogger(__name__)


def build_client() -> TelegramClient:
    """Create a Telethon client from API_ID/API_HASH in the environment or .env.

    SESSION_NAME (default "notifhub") names the local .session file.
    """

    load_dotenv()
    api_id = os.getenv("API_ID")
    api_hash = os.getenv("API_HASH")
    if not api_id or not api_hash:
        raise RuntimeError("Missing API_ID or API_HASH in environment")

    session_name = os.getenv("SESSION_NAME", "notifhub")
    LOGGER.info("Initializing Telegram client for session %s", session_name)
    return TelegramClient(session_name, int(api_id), api_hash)


def _show_login_qr(url: str) -> None:
    code = qrcode.QRCode(border=1)
    code.add_data(url)
    code.make(fit=True)
    print("Scan with Telegram > Settings > Devices > Link Desktop Device:")
    code.print_ascii(invert=True)


async def _login_by_qr(client: TelegramClient, timeout: float) -> None:
    login = await client.qr_login()
    _show_login_qr(login.url)
    await login.wait(timeout=timeout)


async def _login_by_code(client: TelegramClient) -> None:
    phone = os.getenv("PHONE") or input("Phone number (international format): ").strip()
    await client.send_code_request(phone)
    await client.sign_in(phone=phone, code=input("Code sent by Telegram: ").strip())


async def authorize(client: TelegramClient, qr_timeout: float = 120) -> None:
    """Log in once; later runs reuse the .session file.

    LOGIN_METHOD picks "qr" (default) or "phone". A 2FA password comes from
    the 2FA variable or is prompted for.
    """

    if await client.is_user_authorized():
        return

    method = (os.getenv("LOGIN_METHOD") or "qr").strip().lower()
    LOGGER.info("Authorizing Telegram session via %s", method)
    try:
        if method == "phone":
            await _login_by_code(client)
        else:
            await _login_by_qr(client, qr_timeout)
    except errors.SessionPasswordNeededError:
        await client.sign_in(password=os.getenv("2FA") or getpass("2FA password: "))
