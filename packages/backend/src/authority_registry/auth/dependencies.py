"""FastAPI identity dependency.

Learn: this is a "soft" auth dependency. Every authority endpoint works
without a token (anonymous mode), so a missing Authorization header yields
None instead of a 401. A token that is present but invalid or expired is
treated the same way, with a warning in the log: reads are served in
anonymous mode and admin-only operations refuse the caller later with
PermissionDenied.
"""

from typing import Optional

import structlog
from fastapi import Header

from authority_registry.auth.jwt import TokenError, verify_token

logger = structlog.get_logger()


class CurrentIdentity:
    """The authenticated user making the request."""

    def __init__(self, email: str, identity_type: str = "user"):
        self.email = email
        self.identity_type = identity_type

    def __repr__(self) -> str:
        return f"<CurrentIdentity {self.email}>"


async def get_current_identity(
    authorization: Optional[str] = Header(None),
) -> Optional[CurrentIdentity]:
    """Extract the caller's identity (None when no usable bearer token is sent)."""
    if not authorization or not authorization.startswith("Bearer "):
        return None

    token = authorization[7:]
    try:
        payload = verify_token(token)
    except TokenError as e:
        logger.warning("auth.token_rejected", error=str(e))
        return None

    email = payload.get("sub")
    if not email:
        logger.warning("auth.token_without_subject")
        return None
    return CurrentIdentity(email=email)
