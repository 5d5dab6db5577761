"""
Security utilities: bcrypt hashing for passwords and API keys.
"""

import uuid

import bcrypt

from receipt_api.config import settings

# Use bcrypt directly instead of passlib to avoid initialization issues
# passlib has problems with bcrypt 5.0.0+ during initialization

# bcrypt only looks at the first 72 bytes and newer releases reject longer input
BCRYPT_MAX_BYTES = 72


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password or API key against a stored hash.

    Malformed hashes and oversize input yield False instead of raising.
    """
    if isinstance(plain_password, str):
        plain_password = plain_password.encode("utf-8")
    if isinstance(hashed_password, str):
        hashed_password = hashed_password.encode("utf-8")
    try:
        return bcrypt.checkpw(plain_password, hashed_password)
    except Exception:
        return False


def get_password_hash(password: str) -> str:
    """Generate a salted bcrypt hash."""
    if isinstance(password, str):
        password = password.encode("utf-8")
    salt = bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)
    hashed = bcrypt.hashpw(password, salt)
    return hashed.decode("utf-8")


def generate_api_key() -> str:
    """Create a new raw API key, e.g. ``ak_live_3f2b...``."""
    return f"{settings.API_KEY_PREFIX}{uuid.uuid4().hex}"
