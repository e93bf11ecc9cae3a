from typing import Optional

from pydantic import BaseModel, EmailStr, Field, model_validator

# ======================
# TOKEN SCHEMAS
# ======================

class Token(BaseModel):
    access_token: str
    token_type: str
    # "user" or "admin"
    role: str


class TwoFactorChallenge(BaseModel):
    two_factor_required: bool = True
    message: str


# ======================
# USER AUTHENTICATION SCHEMAS
# ======================

class RegisterRequest(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field("", max_length=100)
    email: EmailStr
    # Bcrypt limit is 72 bytes
    password: str = Field(..., min_length=8, max_length=72)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class TwoFactorVerifyRequest(BaseModel):
    email: EmailStr
    code: str = Field(..., min_length=4, max_length=4)


# ======================
# PASSWORD FLOWS
# ======================

class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class ResetPasswordRequest(BaseModel):
    email: EmailStr
    token: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=8, max_length=72)
    confirm_new_password: str

    @model_validator(mode="after")
    def passwords_match(self):
        if self.new_password != self.confirm_new_password:
            raise ValueError("Passwords do not match")
        return self


class ChangePasswordRequest(BaseModel):
    current_password: str
    new_password: str = Field(..., min_length=8, max_length=72)


class SecuritySettingsUpdate(BaseModel):
    enabled: bool


class MessageResponse(BaseModel):
    message: str
    success: Optional[bool] = None
