"""Administrator check via platform group membership."""

from typing import Optional, Protocol

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from authority_registry.auth.dependencies import CurrentIdentity
from authority_registry.db.models import EPerson, EPersonGroup, GroupMember


class AdminChecker(Protocol):
    async def is_admin(self, identity: Optional[CurrentIdentity]) -> bool: ...


class GroupAdminChecker:
    """Caller is an admin when their e-person belongs to the admin group."""

    def __init__(self, db: AsyncSession, group_name: str):
        self.db = db
        self.group_name = group_name

    async def is_admin(self, identity: Optional[CurrentIdentity]) -> bool:
        if identity is None:
            return False
        result = await self.db.execute(
            select(GroupMember.id)
            .join(EPersonGroup, EPersonGroup.id == GroupMember.group_id)
            .join(EPerson, EPerson.id == GroupMember.eperson_id)
            .where(
                EPersonGroup.name == self.group_name,
                EPerson.email == identity.email,
            )
            .limit(1)
        )
        return result.first() is not None
