from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from opportunity_board.database import get_db
from opportunity_board.services import catalog_service

router = APIRouter(prefix="/categories", tags=["Categories"])


@router.get("")
def list_categories(db: Session = Depends(get_db)):
    return [catalog_service.serialize_category(c, db) for c in catalog_service.list_categories(db)]
