"""Schemas for sign-up, sign-in and sign-out."""
from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator

from .session import View

# bcrypt only reads the first 72 bytes of a password.
MAX_PASSWORD_BYTES = 72


def _check_password_length(value: str | None) -> str | None:
    if value is not None and len(value.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValueError(f"password must be at most {MAX_PASSWORD_BYTES} bytes")
    return value


class SignUpRequest(BaseModel):
    email: str = Field(min_length=3)
    password: str = Field(min_length=8)
    display_name: str = Field(min_length=1)
    role: Literal["landlord", "tenant"] = "tenant"

    @field_validator("password")
    @classmethod
    def _password_fits(cls, value: str | None) -> str | None:
        return _check_password_length(value)


class SignInRequest(BaseModel):
    provider: str = Field(default="password", description="'password' or a federated provider such as 'google'")
    email: str | None = Field(default=None, min_length=3)
    password: str | None = None
    id_token: str | None = Field(default=None, description="Provider-issued ID token for federated sign-in")

    @field_validator("password")
    @classmethod
    def _password_fits(cls, value: str | None) -> str | None:
        return _check_password_length(value)

    @model_validator(mode="after")
    def _credentials_for_provider(self) -> "SignInRequest":
        if self.provider == "password":
            if not self.email or not self.password:
                raise ValueError("email and password are required")
        elif not self.id_token:
            raise ValueError("id_token is required for federated sign-in")
        return self


class TokenResponse(BaseModel):
    token: str
    account_id: str
    view: View
