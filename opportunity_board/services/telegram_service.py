"""Binding user accounts to Telegram chats and answering bot commands."""

from __future__ import annotations

import logging
import secrets
from datetime import timedelta
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from opportunity_board.config import settings
from opportunity_board.errors import ValidationError
from opportunity_board.models import User
from opportunity_board.utils.clock import utcnow
from opportunity_board.utils.telegram import build_bot_link, send_telegram_message

logger = logging.getLogger(__name__)


def generate_bind_code(db: Session, *, user: User) -> Dict[str, Any]:
    if not settings.TELEGRAM_BOT_USERNAME:
        raise ValidationError("Telegram bot is not configured")

    code = secrets.token_hex(3)
    expires = utcnow() + timedelta(minutes=settings.TELEGRAM_BIND_CODE_TTL_MINUTES)
    user.telegram_bind_code = code
    user.telegram_bind_expiry = expires
    db.commit()

    return {
        "code": code,
        "bot_link": build_bot_link(settings.TELEGRAM_BOT_USERNAME, code),
        "expires_at": expires.isoformat(),
    }


def disconnect(db: Session, *, user: User) -> None:
    user.telegram_chat_id = None
    user.telegram_username = None
    user.telegram_bind_code = None
    user.telegram_bind_expiry = None
    db.commit()


def bind_chat(db: Session, *, code: str, chat_id: str, username: Optional[str]) -> Optional[User]:
    user = db.query(User).filter(
        User.telegram_bind_code == code,
        User.telegram_bind_expiry > utcnow(),
    ).first()
    if not user:
        return None
    user.telegram_chat_id = chat_id
    user.telegram_username = username
    user.telegram_bind_code = None
    user.telegram_bind_expiry = None
    db.commit()
    logger.info("Bound Telegram chat for user %s", user.id)
    return user


def handle_update(db: Session, update: Dict[str, Any]) -> None:
    """Process one webhook update. Replies are best-effort."""
    message = update.get("message") or {}
    text = (message.get("text") or "").strip()
    chat = message.get("chat") or {}
    if not text or "id" not in chat:
        return

    chat_id = str(chat["id"])
    app_name = settings.APP_NAME

    if text.startswith("/start "):
        code = text[len("/start "):].strip()
        user = bind_chat(db, code=code, chat_id=chat_id, username=chat.get("username"))
        if user:
            send_telegram_message(
                chat_id,
                f"✅ <b>Successfully connected!</b>\n\nYour Telegram account is now linked to {app_name}. "
                "You will receive notifications here.",
            )
        else:
            send_telegram_message(
                chat_id,
                "❌ <b>Invalid or expired code</b>\n\nPlease generate a new code from your settings page.",
            )
    elif text == "/start":
        send_telegram_message(
            chat_id,
            f"Welcome to the {app_name} bot! To connect your account, use the link from your settings page.",
        )
    elif text == "/help":
        send_telegram_message(
            chat_id,
            f"<b>{app_name} Bot Help</b>\n\n"
            "/start - Start the bot\n"
            "/help - Show this help message\n"
            "/status - Check your connection status",
        )
    elif text == "/status":
        user = db.query(User).filter(User.telegram_chat_id == chat_id).first()
        if user:
            send_telegram_message(
                chat_id,
                f"✅ <b>Connected</b>\n\nLinked to {app_name} as {user.full_name} ({user.email}).",
            )
        else:
            send_telegram_message(chat_id, "❌ <b>Not connected</b>\n\nThis chat is not linked to any account yet.")
    else:
        send_telegram_message(
            chat_id,
            "I only understand commands like /start, /help, and /status. For assistance, use /help.",
        )
