"""Request and response models for Smart File API."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class RegisterInput(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str = Field(min_length=1, max_length=255)
    email: str = Field(pattern=EMAIL_PATTERN, max_length=320)
    password: str = Field(min_length=6)


class LoginInput(BaseModel):
    model_config = ConfigDict(extra="ignore")

    email: str = Field(pattern=EMAIL_PATTERN, max_length=320)
    password: str = Field(min_length=1)


class UserOut(BaseModel):
    """Public view of a user account. Never includes the password hash."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    created_at: datetime
    updated_at: datetime


class FileOut(BaseModel):
    """File record as returned by the API."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    file_name: str
    original_name: str
    file_path: str
    file_size: int
    file_type: str
    status: str
    processed_at: datetime | None = None
    created_at: datetime
    updated_at: datetime
    deleted_at: datetime | None = None
