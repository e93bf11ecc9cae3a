from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from opportunity_board import models
from opportunity_board.utils.security import get_password_hash


def get_user(db: Session, user_id: int) -> Optional[models.User]:
    return db.query(models.User).filter(models.User.id == user_id).first()


def get_user_by_email(db: Session, email: str) -> Optional[models.User]:
    return db.query(models.User).filter(models.User.email == email.strip().lower()).first()


def create_user(
    db: Session,
    *,
    first_name: str,
    last_name: str,
    email: str,
    password: str,
    role: str = "user",
) -> models.User:
    """Stage a user with an empty profile; the caller commits."""
    db_user = models.User(
        first_name=first_name,
        last_name=last_name,
        email=email.strip().lower(),
        password_hash=get_password_hash(password),
        role=role,
        is_active=True,
    )
    db.add(db_user)
    db.flush()

    db.add(models.UserProfile(
        user_id=db_user.id,
        education=[],
        experience=[],
        skills=[],
        contact_urls=[],
    ))
    db.flush()
    return db_user


def get_user_profile(db: Session, user_id: int) -> Optional[models.UserProfile]:
    return db.query(models.UserProfile).filter(models.UserProfile.user_id == user_id).first()


def get_or_create_profile(db: Session, user_id: int) -> models.UserProfile:
    profile = get_user_profile(db, user_id)
    if profile is None:
        profile = models.UserProfile(user_id=user_id, education=[], experience=[], skills=[], contact_urls=[])
        db.add(profile)
        db.flush()
    return profile


def update_user_profile(db: Session, user: models.User, update_data: Dict[str, Any]) -> models.User:
    user_fields = {"first_name", "last_name", "bio", "profile_image"}
    profile = get_or_create_profile(db, user.id)
    for key, value in update_data.items():
        if key in user_fields:
            setattr(user, key, value)
        else:
            setattr(profile, key, value)
    db.commit()
    db.refresh(user)
    return user
