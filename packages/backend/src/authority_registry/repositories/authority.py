"""Authority repository — persistence for (authority name, key) rows.

Learn: repositories own the "who may write" rule for their entity. Every
mutating call checks `ctx.require_admin()` before touching the session, so
even code paths that bypass the service layer cannot write as anonymous.
The caller's transaction is rolled back by RequestContext.transaction()
when the PermissionDenied propagates.
"""

from typing import Optional

import structlog
from sqlalchemy import select

from authority_registry.context import RequestContext
from authority_registry.db.models import Authority
from authority_registry.repositories.cursor import EntityCursor

logger = structlog.get_logger()


class AuthorityRepository:
    def __init__(self, ctx: RequestContext):
        self.ctx = ctx
        self.db = ctx.db

    async def create(
        self, name: Optional[str] = None, key: Optional[str] = None
    ) -> Authority:
        self.ctx.require_admin("create authority")
        authority = Authority(name=name, key=key)
        self.db.add(authority)
        await self.db.flush()
        logger.info("authority.created", authority_id=authority.id, name=name)
        return authority

    async def find_by_id(self, authority_id: int) -> Optional[Authority]:
        authority = await self.db.get(Authority, authority_id)
        if authority is None:
            logger.debug("authority.not_found", authority_id=authority_id)
        return authority

    async def find_by_key(self, name: str, key: str) -> Optional[Authority]:
        """The row with exactly this (name, key) pair, if any."""
        result = await self.db.execute(
            select(Authority).where(Authority.name == name, Authority.key == key)
        )
        return result.scalars().first()

    def find_all(self) -> EntityCursor[Authority]:
        return EntityCursor(self.db, select(Authority).order_by(Authority.id))

    def for_person(self, person_id: int) -> EntityCursor[Authority]:
        return EntityCursor(
            self.db,
            select(Authority)
            .where(Authority.person_id == person_id)
            .order_by(Authority.id),
        )

    async def update(self, authority: Authority) -> None:
        self.ctx.require_admin("update authority")
        logger.info("authority.updated", authority_id=authority.id)
        await self.db.flush()

    async def delete(self, authority: Authority) -> None:
        self.ctx.require_admin("delete authority")
        logger.info("authority.deleted", authority_id=authority.id)
        await self.db.delete(authority)
        await self.db.flush()
