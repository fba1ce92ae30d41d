from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator
from zxcvbn import zxcvbn

from src.app.schemas.user import UserRead

# Minimum zxcvbn score (0-4 scale): 3 = "safely unguessable"
MIN_PASSWORD_SCORE = 3


def check_password_strength(password: str) -> str:
    """Validate password strength using zxcvbn entropy estimation."""
    result = zxcvbn(password)
    score = result["score"]  # 0-4 scale

    if score < MIN_PASSWORD_SCORE:
        # Get helpful feedback from zxcvbn
        feedback = result.get("feedback", {})
        warning = feedback.get("warning", "")
        suggestions = feedback.get("suggestions", [])

        if warning:
            raise ValueError(f"Weak password: {warning}")
        elif suggestions:
            raise ValueError(f"Weak password: {suggestions[0]}")
        else:
            raise ValueError("Password is too weak. Use a longer password with a mix of characters.")

    return password


class RegisterRequest(BaseModel):
    username: str = Field(min_length=1, max_length=50, pattern=r"^\s*[A-Za-z0-9_.-]+\s*$")
    email: EmailStr
    full_name: str = Field(min_length=1, max_length=100)
    password: str = Field(min_length=8, max_length=100)

    @field_validator("password")
    @classmethod
    def validate_password_strength(cls, v: str) -> str:
        return check_password_strength(v)


class LoginRequest(BaseModel):
    """Login with either a username or an email address."""

    username: str | None = Field(default=None, max_length=50)
    email: EmailStr | None = None
    password: str = Field(min_length=1, max_length=100)

    @model_validator(mode="after")
    def require_identifier(self) -> "LoginRequest":
        if not self.username and not self.email:
            raise ValueError("username or email is required")
        return self


class TokenPairResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class LoginResponse(TokenPairResponse):
    user: UserRead


class RefreshRequest(BaseModel):
    """Refresh token in the body. Optional because the cookie takes precedence."""

    refresh_token: str | None = None


class ChangePasswordRequest(BaseModel):
    old_password: str = Field(min_length=1, max_length=100)
    new_password: str = Field(min_length=8, max_length=100)

    @field_validator("new_password")
    @classmethod
    def validate_password_strength(cls, v: str) -> str:
        return check_password_strength(v)


class MessageResponse(BaseModel):
    message: str


class AccessClaims(BaseModel):
    """Verified contents of an access token."""

    user_id: UUID
    email: str
    username: str
    full_name: str
    expires_at: datetime
