import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Header
from sqlalchemy.orm import Session

from opportunity_board.database import get_db
from opportunity_board.errors import UnauthorizedError
from opportunity_board.services import telegram_service
from opportunity_board.utils.telegram import verify_webhook_secret

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/telegram", tags=["Telegram"])


@router.post("/webhook")
def telegram_webhook(
    update: Dict[str, Any] = Body(...),
    x_telegram_bot_api_secret_token: Optional[str] = Header(None),
    db: Session = Depends(get_db),
):
    if not verify_webhook_secret(x_telegram_bot_api_secret_token):
        raise UnauthorizedError("Unauthorized")

    try:
        telegram_service.handle_update(db, update)
    except Exception:
        # Telegram redelivers any update that is not acknowledged.
        db.rollback()
        logger.exception("Telegram update %s failed", update.get("update_id"))
    return {"ok": True}
