"""Request-scoped dependencies shared by the routers.

Learn: `get_request_context` is where "who is calling" is decided, fresh
for every request. A failure to establish admin rights (no token, not in
the admin group, or the membership lookup itself failing) is not an
error here: the request simply continues in anonymous mode, and admin-only
operations refuse it later with PermissionDenied.
"""

from typing import AbstractSet, Optional

import structlog
from fastapi import Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from authority_registry.auth.admin import AdminChecker, GroupAdminChecker
from authority_registry.auth.dependencies import CurrentIdentity, get_current_identity
from authority_registry.config import settings
from authority_registry.context import RequestContext
from authority_registry.db.engine import get_db
from authority_registry.services.authority_service import AuthorityPersonService
from authority_registry.services.choices import ChoiceAuthority
from authority_registry.visibility import get_deny_list

logger = structlog.get_logger()


def get_admin_checker(db: AsyncSession = Depends(get_db)) -> AdminChecker:
    return GroupAdminChecker(db, settings.admin_group)


async def get_request_context(
    db: AsyncSession = Depends(get_db),
    identity: Optional[CurrentIdentity] = Depends(get_current_identity),
    checker: AdminChecker = Depends(get_admin_checker),
) -> RequestContext:
    is_admin = False
    try:
        is_admin = await checker.is_admin(identity)
    except SQLAlchemyError as e:
        await db.rollback()
        logger.warning(
            "authorization.admin_check_failed",
            user=identity.email if identity else None,
            error=str(e),
        )
    return RequestContext(db=db, identity=identity, is_admin=is_admin)


def get_service(
    ctx: RequestContext = Depends(get_request_context),
    deny_list: AbstractSet[str] = Depends(get_deny_list),
) -> AuthorityPersonService:
    return AuthorityPersonService(ctx, deny_list)


def get_choices(ctx: RequestContext = Depends(get_request_context)) -> ChoiceAuthority:
    return ChoiceAuthority(ctx)
