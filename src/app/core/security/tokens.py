"""Signed-token primitive - JWT encode/decode with embedded expiry."""

from datetime import datetime, timedelta
from enum import StrEnum
from typing import Any
from uuid import uuid4

from jose import JWTError, jwt


class TokenType(StrEnum):
    """Token type claim values. Each type is signed with its own secret."""

    ACCESS = "access"
    REFRESH = "refresh"
    EMAIL_VERIFICATION = "email_verification"


def encode_token(
    claims: dict[str, Any],
    *,
    token_type: TokenType,
    secret: str,
    algorithm: str,
    issued_at: datetime,
    expires_delta: timedelta,
) -> str:
    """Sign a JWT carrying ``claims`` plus type, iat, exp and a unique jti.

    The jti makes every token unique, even when two tokens are minted in the
    same second for the same user. Rotation depends on this.
    """
    to_encode = {
        **claims,
        "type": token_type.value,
        "iat": issued_at,
        "exp": issued_at + expires_delta,
        "jti": uuid4().hex,
    }
    return jwt.encode(  # type: ignore[no-any-return]
        to_encode,
        secret,
        algorithm=algorithm,
    )


def decode_token(
    token: str,
    *,
    token_type: TokenType,
    secret: str,
    algorithm: str,
) -> dict[str, Any] | None:
    """Decode and validate a JWT. Returns None on any error.

    Signature, expiry and the type claim are all checked; a token of another
    type is treated like a forged one.
    """
    try:
        payload: dict[str, Any] = jwt.decode(token, secret, algorithms=[algorithm])
    except JWTError:
        return None
    if payload.get("type") != token_type.value:
        return None
    return payload
