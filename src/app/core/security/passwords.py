"""Credential store - salted, cost-tuned password hashing with Argon2id."""

import argon2

from src.app.core.config import Settings


class CredentialStore:
    """Hashes and verifies user passwords.

    Verification is the only supported check: two hashes of the same password
    never compare equal because every hash carries its own salt.
    """

    def __init__(self, settings: Settings):
        self._hasher = argon2.PasswordHasher(
            time_cost=settings.argon2_time_cost,
            memory_cost=settings.argon2_memory_cost,
            parallelism=settings.argon2_parallelism,
        )
        self._dummy_hash: str | None = None

    def hash(self, password: str) -> str:
        """Hash password using Argon2id."""
        return self._hasher.hash(password)

    def verify(self, password: str, hashed: str) -> bool:
        """Verify password against hash. Returns False on any mismatch or bad hash."""
        try:
            return self._hasher.verify(hashed, password)
        except argon2.exceptions.VerifyMismatchError:
            return False
        except argon2.exceptions.VerificationError:
            return False
        except argon2.exceptions.InvalidHashError:
            return False

    def needs_rehash(self, hashed: str) -> bool:
        """True when the hash was produced with parameters other than the configured ones."""
        try:
            return self._hasher.check_needs_rehash(hashed)
        except argon2.exceptions.InvalidHashError:
            return True

    @property
    def dummy_hash(self) -> str:
        """Hash verified for unknown users so login timing does not reveal them."""
        if self._dummy_hash is None:
            self._dummy_hash = self._hasher.hash("dummy-password-for-timing")
        return self._dummy_hash
