"""Password hashing and QuickPe identifier generation."""

from __future__ import annotations

import secrets

import bcrypt

DEFAULT_BCRYPT_ROUNDS = 12
# bcrypt only reads the first 72 bytes and newer releases refuse anything longer.
MAX_PASSWORD_BYTES = 72


def hash_password(password: str, rounds: int = DEFAULT_BCRYPT_ROUNDS) -> str:
    """Hash plain text password using bcrypt."""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a plain text password against a stored bcrypt hash."""
    try:
        return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))
    except ValueError:
        return False


def generate_quickpe_id() -> str:
    """Public handle in the form ``QPK-XXXXXXXX`` (8 upper-case hex digits)."""
    return "QPK-" + secrets.token_hex(4).upper()


__all__ = ["DEFAULT_BCRYPT_ROUNDS", "MAX_PASSWORD_BYTES", "hash_password", "verify_password", "generate_quickpe_id"]
