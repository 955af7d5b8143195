"""JWT token verification (and minting, for operator tooling).

Learn: JWT (JSON Web Token) provides stateless authentication. The platform's
login service issues the token; we verify its signature and read `sub`,
which carries the caller's email address.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from authority_registry.config import settings


class TokenError(Exception):
    """Raised when token verification fails."""


def create_access_token(
    email: str,
    expires_minutes: Optional[int] = None,
) -> str:
    """Create a JWT access token for `email` (used by the CLI and tests)."""
    now = datetime.now(timezone.utc)
    expires = now + timedelta(
        minutes=expires_minutes or settings.access_token_expire_minutes
    )
    payload = {
        "sub": email,
        "type": "access",
        "exp": expires,
        "iat": now,
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def verify_token(token: str) -> dict:
    """Verify and decode a JWT token.

    Returns the payload dict on success.
    Raises TokenError on failure.
    """
    try:
        return jwt.decode(
            token, settings.jwt_secret, algorithms=[settings.jwt_algorithm]
        )
    except jwt.ExpiredSignatureError:
        raise TokenError("Token has expired")
    except jwt.InvalidTokenError as e:
        raise TokenError(f"Invalid token: {e}")
