"""
Inkwell Backend — Password Hashing
====================================

What:  One-way hashing and verification of user passwords.
How:   bcrypt with a fresh random salt per hash; the salt and cost factor are
       embedded in the returned string, so verify() needs nothing else.
Who:   AuthService (register/login).

The cost factor comes from configuration and is handed to the hasher at
construction time.
"""

import logging

import bcrypt

from inkwell.exceptions import ValidationError

logger = logging.getLogger(__name__)

MAX_PASSWORD_BYTES = 72


class PasswordHasher:
    """bcrypt-based password hasher."""

    def __init__(self, rounds: int = 10):
        self.rounds = rounds

    def hash(self, plaintext: str) -> str:
        """
        Hash a plaintext password with a newly generated salt.

        Raises:
            ValidationError: empty password, or longer than bcrypt's 72-byte limit
        """
        password_bytes = plaintext.encode("utf-8")
        if not password_bytes:
            raise ValidationError(message="Password must not be empty", field="password")
        if len(password_bytes) > MAX_PASSWORD_BYTES:
            raise ValidationError(
                message=f"Password must be at most {MAX_PASSWORD_BYTES} bytes",
                field="password",
            )
        salt = bcrypt.gensalt(rounds=self.rounds)
        return bcrypt.hashpw(password_bytes, salt).decode("utf-8")

    def verify(self, plaintext: str, hashed: str) -> bool:
        """
        Check a plaintext password against a stored hash.

        Returns False for a wrong password and also for an empty or malformed
        stored hash, so callers always fall through to the "wrong
        credentials" path.
        """
        if not plaintext or not hashed:
            return False
        try:
            return bcrypt.checkpw(plaintext.encode("utf-8"), hashed.encode("utf-8"))
        except ValueError as e:
            # Raised for malformed salts and for passwords over 72 bytes
            logger.warning("Password verification rejected input: %s", e)
            return False
