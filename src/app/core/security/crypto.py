"""Random secrets for trainer invitations and token hashing for storage."""

import secrets
from hashlib import sha256

ACCESS_CODE_MIN = 100000
ACCESS_CODE_MAX = 999999
INVITATION_TOKEN_BYTES = 32  # 256 bits, rendered as 64 hex characters


def hash_token(token: str) -> str:
    """Hash a token using SHA256 for secure storage."""
    return sha256(token.encode()).hexdigest()


def generate_access_code() -> str:
    """Generate a 6-digit numeric access code (MPIN), uniform in [100000, 999999]."""
    return str(ACCESS_CODE_MIN + secrets.randbelow(ACCESS_CODE_MAX - ACCESS_CODE_MIN + 1))


def generate_invitation_token() -> str:
    """Generate an opaque invitation token with 256 bits of entropy."""
    return secrets.token_hex(INVITATION_TOKEN_BYTES)
