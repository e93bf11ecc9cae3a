"""
Account security flows: registration, login with optional two-factor
verification, password reset and password change.
"""

from __future__ import annotations

import logging
import secrets
from datetime import timedelta
from typing import Any, Dict
from urllib.parse import quote

from sqlalchemy.orm import Session

from opportunity_board.config import settings
from opportunity_board.crud import user as user_crud
from opportunity_board.errors import (
    ConflictError,
    ForbiddenError,
    UnauthorizedError,
    ValidationError,
)
from opportunity_board.models import PasswordResetToken, TwoFactorToken, User
from opportunity_board.services import engagement_service
from opportunity_board.utils.clock import utcnow
from opportunity_board.utils.email import send_password_reset_link, send_two_factor_code
from opportunity_board.utils.security import (
    create_access_token,
    get_password_hash,
    verify_password,
)

logger = logging.getLogger(__name__)

USER_REGISTER_EVENT = "user_register"
FORGOT_PASSWORD_MESSAGE = "If your email is registered, you will receive a password reset link"
INVALID_CODE_MESSAGE = "Invalid verification code"
TOO_MANY_ATTEMPTS_MESSAGE = "Too many incorrect codes. Please sign in again."


def _token_response(user: User) -> Dict[str, Any]:
    return {
        "access_token": create_access_token(data={"sub": user.email, "role": user.role}),
        "token_type": "bearer",
        "role": user.role,
    }


# ======================
# REGISTRATION / LOGIN
# ======================

def register(
    db: Session,
    *,
    first_name: str,
    last_name: str,
    email: str,
    password: str,
) -> User:
    if user_crud.get_user_by_email(db, email):
        raise ConflictError("Email already registered")

    user = user_crud.create_user(
        db,
        first_name=first_name.strip(),
        last_name=last_name.strip(),
        email=email,
        password=password,
    )
    engagement_service.track_event(db, event_type=USER_REGISTER_EVENT, user_id=user.id)
    db.commit()
    db.refresh(user)
    logger.info("Registered user %s", user.id)
    return user


def login(db: Session, *, email: str, password: str) -> Dict[str, Any]:
    user = user_crud.get_user_by_email(db, email)
    if not user or not verify_password(password, user.password_hash):
        raise UnauthorizedError("Invalid email or password")

    if not user.is_active:
        raise ForbiddenError("Account is disabled")

    if user.two_factor_enabled:
        issue_two_factor_code(db, user)
        return {
            "two_factor_required": True,
            "message": "Verification code sent to your email",
        }

    return _token_response(user)


# ======================
# TWO-FACTOR
# ======================

def issue_two_factor_code(db: Session, user: User) -> TwoFactorToken:
    """Replace any outstanding code with a fresh 4-digit one and email it."""
    code = f"{secrets.randbelow(10000):04d}"
    db.query(TwoFactorToken).filter(TwoFactorToken.user_id == user.id).delete(synchronize_session=False)
    token = TwoFactorToken(
        user_id=user.id,
        code=code,
        expires=utcnow() + timedelta(minutes=settings.TWO_FACTOR_CODE_TTL_MINUTES),
    )
    db.add(token)
    db.commit()

    send_two_factor_code(to_email=user.email, first_name=user.first_name, code=code)
    return token


def verify_two_factor(db: Session, *, email: str, code: str) -> Dict[str, Any]:
    user = user_crud.get_user_by_email(db, email)
    if not user:
        raise ValidationError(INVALID_CODE_MESSAGE)

    token = db.query(TwoFactorToken).filter(TwoFactorToken.user_id == user.id).first()
    if not token:
        raise ValidationError(INVALID_CODE_MESSAGE)

    if token.expires < utcnow():
        db.delete(token)
        db.commit()
        raise ValidationError("Verification code has expired")

    if not secrets.compare_digest(token.code.encode("utf-8"), code.strip().encode("utf-8")):
        attempts = (token.failed_attempts or 0) + 1
        if attempts >= settings.TWO_FACTOR_MAX_ATTEMPTS:
            logger.warning("Two-factor code discarded after %s failed attempts (user_id=%s)", attempts, user.id)
            db.delete(token)
            db.commit()
            raise ValidationError(TOO_MANY_ATTEMPTS_MESSAGE)
        token.failed_attempts = attempts
        db.commit()
        raise ValidationError(INVALID_CODE_MESSAGE)

    db.delete(token)
    db.commit()
    return _token_response(user)


def set_two_factor(db: Session, *, user: User, enabled: bool) -> User:
    user.two_factor_enabled = bool(enabled)
    if not enabled:
        db.query(TwoFactorToken).filter(TwoFactorToken.user_id == user.id).delete(synchronize_session=False)
    db.commit()
    db.refresh(user)
    return user


# ======================
# PASSWORD RESET
# ======================

def request_password_reset(db: Session, *, email: str) -> Dict[str, Any]:
    """Always answers the same way so callers cannot discover which accounts exist."""
    user = user_crud.get_user_by_email(db, email)
    if not user:
        return {"success": True, "message": FORGOT_PASSWORD_MESSAGE}

    token_value = secrets.token_hex(32)
    expires = utcnow() + timedelta(minutes=settings.PASSWORD_RESET_TOKEN_TTL_MINUTES)

    reset_token = db.query(PasswordResetToken).filter(PasswordResetToken.user_id == user.id).first()
    if reset_token:
        reset_token.token = token_value
        reset_token.expires = expires
    else:
        db.add(PasswordResetToken(user_id=user.id, token=token_value, expires=expires))
    db.commit()

    reset_url = (
        f"{settings.APP_URL.rstrip('/')}/reset-password"
        f"?token={token_value}&email={quote(user.email)}"
    )
    send_password_reset_link(to_email=user.email, first_name=user.first_name, reset_url=reset_url)
    return {"success": True, "message": FORGOT_PASSWORD_MESSAGE}


def reset_password(db: Session, *, email: str, token: str, new_password: str) -> Dict[str, Any]:
    user = user_crud.get_user_by_email(db, email)
    if not user:
        raise ValidationError("Invalid token")

    reset_token = db.query(PasswordResetToken).filter(
        PasswordResetToken.user_id == user.id,
        PasswordResetToken.token == token,
    ).first()
    if not reset_token:
        raise ValidationError("Invalid token")

    now = utcnow()
    if reset_token.expires < now:
        db.delete(reset_token)
        db.commit()
        raise ValidationError("Password reset link has expired. Please request a new one.")

    user.password_hash = get_password_hash(new_password)
    db.delete(reset_token)
    db.commit()

    purged = db.query(PasswordResetToken).filter(
        PasswordResetToken.expires < now
    ).delete(synchronize_session=False)
    db.commit()
    if purged:
        logger.info("Purged %s expired password reset tokens", purged)

    return {"success": True, "message": "Password reset successful"}


def change_password(db: Session, *, user: User, current_password: str, new_password: str) -> None:
    if not verify_password(current_password, user.password_hash):
        raise ValidationError("Current password is incorrect")
    user.password_hash = get_password_hash(new_password)
    db.commit()
