"""Security utilities - credentials, signed tokens and invitation secrets.

Re-exports all security-related helpers for convenience.
"""

from src.app.core.security.crypto import (
    ACCESS_CODE_MAX,
    ACCESS_CODE_MIN,
    generate_access_code,
    generate_invitation_token,
    hash_token,
)
from src.app.core.security.passwords import CredentialStore
from src.app.core.security.tokens import TokenType, decode_token, encode_token

__all__ = [
    # Crypto
    "ACCESS_CODE_MAX",
    "ACCESS_CODE_MIN",
    "generate_access_code",
    "generate_invitation_token",
    "hash_token",
    # Credentials
    "CredentialStore",
    # Tokens
    "TokenType",
    "decode_token",
    "encode_token",
]
