"""
Pydantic schemas for auth and user request / response models.
"""
import re
from datetime import datetime
from typing import Optional

from pydantic import field_validator

from insurance_analyzer.constants import SubscriptionPlan, SubscriptionStatus
from insurance_analyzer.schemas.base import CamelModel

_EMAIL_PATTERN = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'
MIN_PASSWORD_LENGTH = 8


def _normalise_email(v: str) -> str:
    v = (v or "").strip().lower()
    if not re.match(_EMAIL_PATTERN, v):
        raise ValueError("Invalid email address")
    return v


def _check_password(v: str) -> str:
    if len(v) < MIN_PASSWORD_LENGTH:
        raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    return v


class SignUpRequest(CamelModel):
    name: str
    email: str
    password: str

    @field_validator("name")
    @classmethod
    def name_not_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Name is required")
        return v.strip()

    @field_validator("email")
    @classmethod
    def email_valid(cls, v: str) -> str:
        return _normalise_email(v)

    @field_validator("password")
    @classmethod
    def password_long_enough(cls, v: str) -> str:
        return _check_password(v)


class SignInRequest(CamelModel):
    email: str
    password: str

    @field_validator("email")
    @classmethod
    def email_lower(cls, v: str) -> str:
        return v.strip().lower()


class ForgotPasswordRequest(CamelModel):
    email: str

    @field_validator("email")
    @classmethod
    def email_valid(cls, v: str) -> str:
        return _normalise_email(v)


class ResetPasswordRequest(CamelModel):
    token: str
    new_password: str

    @field_validator("new_password")
    @classmethod
    def password_long_enough(cls, v: str) -> str:
        return _check_password(v)


class UserOut(CamelModel):
    id: str
    name: str
    email: str
    email_verified: bool
    created_at: datetime


class AuthResponse(CamelModel):
    user: UserOut
    token: str


class SessionResponse(CamelModel):
    user: UserOut


class MeOut(CamelModel):
    id: str
    email: str
    name: str
    subscription_status: Optional[SubscriptionStatus] = None
    subscription_plan: Optional[SubscriptionPlan] = None
    created_at: datetime


class UpdateMeRequest(CamelModel):
    name: str

    @field_validator("name")
    @classmethod
    def name_not_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Name is required")
        return v.strip()
