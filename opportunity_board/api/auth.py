from typing import Union

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from opportunity_board.database import get_db
from opportunity_board.schemas import (
    ForgotPasswordRequest,
    LoginRequest,
    RegisterRequest,
    ResetPasswordRequest,
    Token,
    TwoFactorChallenge,
    TwoFactorVerifyRequest,
)
from opportunity_board.services import auth_service

router = APIRouter(prefix="/auth", tags=["Authentication"])


# ===== REGISTER ENDPOINT =====

@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(user_data: RegisterRequest, db: Session = Depends(get_db)):
    """Register new user and create associated profile"""
    user = auth_service.register(
        db,
        first_name=user_data.first_name,
        last_name=user_data.last_name,
        email=user_data.email,
        password=user_data.password,
    )
    return {
        "message": "Registration successful",
        "user": {
            "id": user.id,
            "first_name": user.first_name,
            "last_name": user.last_name,
            "email": user.email,
        },
    }


# ===== LOGIN ENDPOINTS =====

@router.post("/login", response_model=Union[Token, TwoFactorChallenge])
def login(credentials: LoginRequest, db: Session = Depends(get_db)):
    """Verify credentials and return an access token, or start two-factor verification."""
    return auth_service.login(db, email=credentials.email, password=credentials.password)


@router.post("/two-factor/verify", response_model=Token)
def verify_two_factor(payload: TwoFactorVerifyRequest, db: Session = Depends(get_db)):
    return auth_service.verify_two_factor(db, email=payload.email, code=payload.code)


# ===== PASSWORD RESET =====

@router.post("/forgot-password")
def forgot_password(payload: ForgotPasswordRequest, db: Session = Depends(get_db)):
    return auth_service.request_password_reset(db, email=payload.email)


@router.post("/reset-password")
def reset_password(payload: ResetPasswordRequest, db: Session = Depends(get_db)):
    return auth_service.reset_password(
        db,
        email=payload.email,
        token=payload.token,
        new_password=payload.new_password,
    )
