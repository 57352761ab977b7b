"""Password hashing utilities."""
from __future__ import annotations

import logging

from passlib.context import CryptContext

# passlib probes the bcrypt module version on first use and logs a harmless traceback.
logging.getLogger("passlib").setLevel(logging.ERROR)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    """Return a salted bcrypt hash of ``password``."""
    return pwd_context.hash(password)


def verify_password(password: str, encoded: str) -> bool:
    """Check ``password`` against a stored hash.

    Returns:
        True if the password matches; False for a mismatch or an unrecognised hash.
    """
    try:
        return pwd_context.verify(password, encoded)
    except ValueError:
        return False
