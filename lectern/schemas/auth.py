"""
Sign-up, sign-in and session schemas.
"""

import uuid
from typing import Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

USERNAME_PATTERN = r"^[A-Za-z0-9_.-]+$"

_PASSWORD_RULES = (
    (lambda p: any(c.isupper() for c in p), "Password must contain at least one uppercase letter"),
    (lambda p: any(c.islower() for c in p), "Password must contain at least one lowercase letter"),
    (lambda p: any(c.isdigit() for c in p), "Password must contain at least one digit"),
)


class UserCreate(BaseModel):
    """Registration. Username and display name are optional and editable later."""

    email: EmailStr
    password: str = Field(..., min_length=8, max_length=128)
    name: Optional[str] = Field(None, max_length=80)
    username: Optional[str] = Field(None, min_length=2, max_length=40, pattern=USERNAME_PATTERN)

    @field_validator("password")
    @classmethod
    def strong_enough(cls, v: str) -> str:
        for ok, message in _PASSWORD_RULES:
            if not ok(v):
                raise ValueError(message)
        return v

    @field_validator("name")
    @classmethod
    def blank_name_is_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        return v.strip() or None


class UserLogin(BaseModel):
    email: EmailStr
    password: str


class SessionUser(BaseModel):
    """What the client keeps about the signed-in learner."""

    id: uuid.UUID
    email: str
    name: Optional[str] = None
    username: Optional[str] = None
    image: Optional[str] = None

    class Config:
        from_attributes = True


class SessionResponse(BaseModel):
    user: Optional[SessionUser] = None


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int
    user: SessionUser


class RefreshTokenRequest(BaseModel):
    refresh_token: str


class LogoutRequest(BaseModel):
    """Revoke one refresh token, or all of them with revoke_all."""

    refresh_token: Optional[str] = None
    revoke_all: bool = False
