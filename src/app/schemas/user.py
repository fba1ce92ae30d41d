from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field


class UserRead(BaseModel):
    """Public view of a user. Never carries the password hash or refresh token."""

    id: UUID
    username: str
    email: EmailStr
    full_name: str
    is_email_verified: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class UpdateAccountRequest(BaseModel):
    full_name: str = Field(min_length=1, max_length=100)
    email: EmailStr
