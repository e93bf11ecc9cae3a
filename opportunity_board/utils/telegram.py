from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Union
from urllib.parse import quote

import httpx

from opportunity_board.config import settings

logger = logging.getLogger(__name__)

TELEGRAM_API_BASE = "https://api.telegram.org"


def is_telegram_enabled() -> bool:
    return bool(settings.TELEGRAM_ENABLED and settings.TELEGRAM_BOT_TOKEN)


def _api_url(method: str) -> str:
    return f"{TELEGRAM_API_BASE}/bot{settings.TELEGRAM_BOT_TOKEN}/{method}"


def send_telegram_message(
    chat_id: Union[str, int],
    text: str,
    *,
    parse_mode: str = "HTML",
) -> bool:
    """
    Post a message through the Bot API.

    Returns True when Telegram acknowledged the message. Never raises.
    """
    if not is_telegram_enabled():
        return False

    try:
        resp = httpx.post(
            _api_url("sendMessage"),
            json={"chat_id": chat_id, "text": text, "parse_mode": parse_mode},
            timeout=settings.TELEGRAM_TIMEOUT_SECONDS,
        )
        data: Dict[str, Any] = resp.json() if resp.content else {}
        if resp.status_code != 200 or not data.get("ok"):
            logger.warning(
                "Telegram sendMessage rejected (chat_id=%s, status=%s): %s",
                chat_id,
                resp.status_code,
                data.get("description"),
            )
            return False
        return True
    except (httpx.HTTPError, ValueError) as exc:
        logger.warning("Telegram sendMessage failed (chat_id=%s): %s", chat_id, exc)
        return False


def build_bot_link(bot_username: Optional[str], start_parameter: str) -> str:
    if not bot_username:
        raise ValueError("Bot username is required")
    if not start_parameter:
        raise ValueError("Start parameter is required")
    clean_username = bot_username.lstrip("@")
    return f"https://t.me/{clean_username}?start={quote(start_parameter)}"


def verify_webhook_secret(received: Optional[str]) -> bool:
    expected = settings.TELEGRAM_WEBHOOK_SECRET
    if not expected:
        return True
    return received == expected
