"""Identity schemas."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

from app.core.enums import RoleEnum


class UserCreate(BaseModel):
    """Admin request to add a person to the directory."""

    tpin: str = Field(min_length=1, max_length=32)
    name: str = Field(min_length=1, max_length=128)
    role: RoleEnum
    password: str = Field(min_length=8, max_length=128)
    confirm_password: str

    @model_validator(mode="after")
    def passwords_match(self) -> "UserCreate":
        if self.password != self.confirm_password:
            raise ValueError("Passwords do not match")
        return self


class PasswordChange(BaseModel):
    password: str = Field(min_length=8, max_length=128)
    confirm_password: str

    @model_validator(mode="after")
    def passwords_match(self) -> "PasswordChange":
        if self.password != self.confirm_password:
            raise ValueError("Passwords do not match")
        return self


class LoginRequest(BaseModel):
    """Credentials for login."""

    tpin: str
    password: str


class RefreshRequest(BaseModel):
    refresh_token: str


class TokenPair(BaseModel):
    """Access + refresh JWT response."""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class UserRead(BaseModel):
    """User output schema."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    tpin: str
    name: str
    role: RoleEnum
    is_active: bool
    created_at: datetime
    updated_at: datetime


class PersonBrief(BaseModel):
    """Name and TPIN used to label people in listings."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    tpin: str
    name: str
