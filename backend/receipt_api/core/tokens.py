"""
Signed access tokens (HS256 JWT).

Tokens are self-contained: any holder can read the claims, only the signature
makes them tamper-proof. There is no refresh or revocation list, so a leaked
token stays valid until it expires.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt

from receipt_api.config import settings
from receipt_api.core.errors import AuthenticationError, ConfigurationError

logger = logging.getLogger(__name__)

# JWT configuration
ALGORITHM = "HS256"

# Only ever used when ENVIRONMENT=development
DEV_FALLBACK_SECRET = "insecure-development-secret-do-not-use-in-production"


@dataclass(frozen=True)
class TokenClaims:
    sub: uuid.UUID
    email: str
    phone_number: str
    exp: datetime


def get_signing_secret() -> str:
    """Return the signing secret, failing closed when it is not configured."""
    if settings.JWT_SECRET:
        return settings.JWT_SECRET
    if settings.is_development:
        logger.warning("JWT_SECRET is not set; using the fixed development secret")
        return DEV_FALLBACK_SECRET
    raise ConfigurationError(
        f"JWT_SECRET must be set when ENVIRONMENT={settings.ENVIRONMENT!r}"
    )


def issue_token(user, now: Optional[datetime] = None) -> str:
    """Create a signed token for ``user`` valid for ACCESS_TOKEN_EXPIRE_DAYS."""
    issued_at = now or datetime.now(timezone.utc)
    expire = issued_at + timedelta(days=settings.ACCESS_TOKEN_EXPIRE_DAYS)
    to_encode = {
        "sub": str(user.id),
        "email": user.email,
        "phone_number": user.phone_number,
        "iat": issued_at,
        "exp": expire,
    }
    return jwt.encode(to_encode, get_signing_secret(), algorithm=ALGORITHM)


def verify_token(token: str) -> TokenClaims:
    """Check signature and expiry and return the claims.

    Raises:
        AuthenticationError: for any malformed, tampered or expired token.
    """
    try:
        payload = jwt.decode(token, get_signing_secret(), algorithms=[ALGORITHM])
        return TokenClaims(
            sub=uuid.UUID(payload["sub"]),
            email=payload["email"],
            phone_number=payload["phone_number"],
            exp=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
        )
    except (JWTError, KeyError, TypeError, ValueError) as exc:
        logger.debug(f"Token rejected: {exc}")
        raise AuthenticationError() from exc
