"""Account DTOs for the Service Layer (Pydantic v2, immutable)."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, field_validator

from modules.accounts.constants import PASSWORD_MIN_LENGTH


def _require_password_length(value: str) -> str:
    if len(value) < PASSWORD_MIN_LENGTH:
        raise ValueError(
            f"Password must be at least {PASSWORD_MIN_LENGTH} characters long"
        )
    return value


class ForgotPasswordDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    email: str

    @field_validator("email")
    @classmethod
    def email_must_not_be_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Email is required")
        return v.lower()


class ResetPasswordDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    token: str
    password: str

    @field_validator("token")
    @classmethod
    def token_must_not_be_empty(cls, v: str) -> str:
        if not v:
            raise ValueError("Token and password are required")
        return v

    @field_validator("password")
    @classmethod
    def password_min_length(cls, v: str) -> str:
        return _require_password_length(v)


class RegisterUserDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    email: str
    password: str
    phone: str = ""

    @field_validator("name", "email")
    @classmethod
    def must_not_be_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name, email and password are required")
        return v

    @field_validator("email")
    @classmethod
    def email_must_look_valid(cls, v: str) -> str:
        local, _, domain = v.partition("@")
        if not local or "." not in domain:
            raise ValueError("Invalid email address")
        return v.lower()

    @field_validator("password")
    @classmethod
    def password_min_length(cls, v: str) -> str:
        return _require_password_length(v)


class LoginDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    email: str
    password: str

    @field_validator("email", "password")
    @classmethod
    def must_not_be_empty(cls, v: str) -> str:
        if not v:
            raise ValueError("Email and password are required")
        return v

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()
