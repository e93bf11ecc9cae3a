from typing import Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from opportunity_board.crud import catalog as catalog_crud
from opportunity_board.crud import user as user_crud
from opportunity_board.database import get_db
from opportunity_board.models import PrivacyLevel, User
from opportunity_board.schemas import (
    ChangePasswordRequest,
    FieldPrivacySettings,
    PrivacyUpdate,
    ProfileUpdate,
    SecuritySettingsUpdate,
    TelegramBindCode,
    UserProfileOut,
)
from opportunity_board.services import (
    auth_service,
    privacy_service,
    relationship_service,
    telegram_service,
)
from opportunity_board.utils.security import get_current_user, get_optional_user

router = APIRouter(prefix="/users", tags=["Users"])


def _field_privacy(user: User) -> dict:
    return FieldPrivacySettings.model_validate(user).model_dump(mode="json")


def _me_payload(db: Session, user: User) -> dict:
    profile = user_crud.get_or_create_profile(db, user.id)
    return {
        "id": user.id,
        "first_name": user.first_name,
        "last_name": user.last_name,
        "email": user.email,
        "role": user.role,
        "bio": user.bio,
        "profile_image": user.profile_image,
        "profile": UserProfileOut.model_validate(profile).model_dump(),
        "privacy_level": PrivacyLevel(user.privacy_level).value,
        "field_privacy": _field_privacy(user),
        "two_factor_enabled": bool(user.two_factor_enabled),
        "telegram_connected": bool(user.telegram_chat_id),
        "telegram_username": user.telegram_username,
        "created_at": user.created_at.isoformat() if user.created_at else None,
    }


# ─────────────────────────────────────────
# Own account
# ─────────────────────────────────────────

@router.get("/me")
def get_me(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return _me_payload(db, current_user)


@router.put("/me/profile")
def update_my_profile(
    payload: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    user = user_crud.update_user_profile(db, current_user, payload.model_dump(exclude_unset=True))
    return _me_payload(db, user)


@router.put("/me/privacy")
def update_my_privacy(
    payload: PrivacyUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    current_user.privacy_level = payload.privacy_level
    db.commit()
    return {"message": "Privacy settings updated", "privacy_level": payload.privacy_level.value}


@router.get("/me/privacy/fields")
def get_my_field_privacy(current_user: User = Depends(get_current_user)):
    return _field_privacy(current_user)


@router.put("/me/privacy/fields")
def update_my_field_privacy(
    payload: FieldPrivacySettings,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    # Only fields present in the body change; an explicit null clears the override.
    for key, value in payload.model_dump(exclude_unset=True).items():
        setattr(current_user, key, value)
    db.commit()
    db.refresh(current_user)
    return _field_privacy(current_user)


@router.put("/me/security")
def update_my_security(
    payload: SecuritySettingsUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    user = auth_service.set_two_factor(db, user=current_user, enabled=payload.enabled)
    return {
        "message": "Security settings updated",
        "two_factor_enabled": bool(user.two_factor_enabled),
    }


@router.put("/me/password")
def change_my_password(
    payload: ChangePasswordRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    auth_service.change_password(
        db,
        user=current_user,
        current_password=payload.current_password,
        new_password=payload.new_password,
    )
    return {"message": "Password updated successfully"}


@router.post("/me/telegram/code", response_model=TelegramBindCode)
def create_telegram_code(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return telegram_service.generate_bind_code(db, user=current_user)


@router.delete("/me/telegram")
def disconnect_telegram(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    telegram_service.disconnect(db, user=current_user)
    return {"message": "Telegram disconnected"}


@router.get("/me/following")
def get_my_following(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    organizations = relationship_service.list_followed_organizations(db, user_id=current_user.id)
    return [catalog_crud.serialize_organization(o) for o in organizations]


# ─────────────────────────────────────────
# Other users (privacy filtered)
# ─────────────────────────────────────────

@router.get("/{user_id}")
def get_user_profile(
    user_id: int,
    viewer: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db),
):
    return privacy_service.build_profile_view(
        db,
        viewer_id=viewer.id if viewer else None,
        owner_id=user_id,
    )


@router.get("/{user_id}/participations", status_code=status.HTTP_200_OK)
def get_user_participations(
    user_id: int,
    viewer: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db),
):
    return privacy_service.list_user_participations(
        db,
        viewer_id=viewer.id if viewer else None,
        owner_id=user_id,
    )
