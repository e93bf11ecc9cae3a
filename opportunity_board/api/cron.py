import logging
import secrets
from typing import Optional

from fastapi import APIRouter, Depends, Header
from sqlalchemy.orm import Session

from opportunity_board.config import settings
from opportunity_board.database import get_db
from opportunity_board.errors import UnauthorizedError
from opportunity_board.services import maintenance_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/cron", tags=["Cron"])


def require_cron_secret(authorization: Optional[str] = Header(None)) -> None:
    expected = settings.CRON_API_SECRET
    supplied = (authorization or "").encode("utf-8")
    if not expected or not secrets.compare_digest(supplied, expected.encode("utf-8")):
        logger.warning("Rejected unauthorized cron call")
        raise UnauthorizedError("Unauthorized")


@router.post("/update-opportunities", dependencies=[Depends(require_cron_secret)])
def update_opportunities(db: Session = Depends(get_db)):
    return maintenance_service.update_opportunities(db)


@router.post("/check-deadlines", dependencies=[Depends(require_cron_secret)])
def check_deadlines(db: Session = Depends(get_db)):
    return maintenance_service.check_deadlines(db)
