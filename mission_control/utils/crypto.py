"""
Password hashing for client dashboard credentials.

Client dashboard passwords and project-client passwords are stored as bcrypt
hashes, never as plaintext.
"""

from __future__ import annotations

import bcrypt

BCRYPT_ROUNDS = 12


def hash_password(plain_password: str, rounds: int = BCRYPT_ROUNDS) -> str:
    """Hash a plain-text password with bcrypt."""
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(plain_password.encode("utf-8"), salt).decode("utf-8")


def verify_password(plain_password: str, password_hash: str | None) -> bool:
    """Verify a plain-text password against its bcrypt hash.

    Returns False for a missing hash (project with no dashboard password) and
    for values that are not bcrypt hashes.
    """
    if not password_hash or not plain_password:
        return False

    if not password_hash.startswith(("$2b$", "$2a$", "$2y$")):
        return False

    try:
        return bcrypt.checkpw(
            plain_password.encode("utf-8"),
            password_hash.encode("utf-8"),
        )
    except ValueError:
        return False
