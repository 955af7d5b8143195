"""Person repository — persistence, relationships and name search.

Learn: a person's authorities are loaded lazily and memoized on the
instance (`authorities_loaded` + `loaded_authorities`). Because the session
identity map hands out one AuthorityPerson object per row per request, the
memo is shared by every code path in the request that touches that person.
`add_authority` keeps the memo in sync; `delete` ignores it and re-reads
the store so nothing attached since the memo was filled survives.

Name search comes in three flavours:
- find_by_name:             exact first AND last
- find_like_name(f, l):     case-insensitive substring on each field
- find_like_full_name(s):   case-insensitive substring on "last first"
                            OR "first last"
"""

import uuid
from datetime import date
from typing import Optional

import structlog
from sqlalchemy import func, or_, select

from authority_registry.context import RequestContext
from authority_registry.db.models import Authority, AuthorityPerson
from authority_registry.repositories.authority import AuthorityRepository
from authority_registry.repositories.cursor import EntityCursor

logger = structlog.get_logger()


class PersonRepository:
    def __init__(self, ctx: RequestContext, authorities: Optional[AuthorityRepository] = None):
        self.ctx = ctx
        self.db = ctx.db
        self.authorities = authorities or AuthorityRepository(ctx)

    # ─── Create / update / delete ───────────────────────

    async def create(self) -> AuthorityPerson:
        self.ctx.require_admin("create authority person")
        person = AuthorityPerson(created=date.today())
        person.authorities_loaded = True
        self.db.add(person)
        await self.db.flush()
        logger.info("authority_person.created", person_id=person.id)
        return person

    async def update(self, person: AuthorityPerson) -> None:
        self.ctx.require_admin("update authority person")
        logger.info("authority_person.updated", person_id=person.id, uid=person.uid)
        await self.db.flush()

    async def delete(self, person: AuthorityPerson) -> None:
        """Delete the person and every authority it owns."""
        self.ctx.require_admin("delete authority person")
        async with self.authorities.for_person(person.id) as cursor:
            owned = [authority async for authority in cursor]
        for authority in owned:
            await self.authorities.delete(authority)
        logger.info(
            "authority_person.deleted",
            person_id=person.id,
            uid=person.uid,
            authorities=len(owned),
        )
        await self.db.delete(person)
        await self.db.flush()

    @staticmethod
    def generate_uid(person: AuthorityPerson) -> str:
        person.uid = str(uuid.uuid4())
        return person.uid

    # ─── Lookups ────────────────────────────────────────

    async def find_by_id(self, person_id: int) -> Optional[AuthorityPerson]:
        person = await self.db.get(AuthorityPerson, person_id)
        if person is None:
            logger.debug("authority_person.not_found", person_id=person_id)
        return person

    async def find_by_uid(self, uid: str) -> Optional[AuthorityPerson]:
        result = await self.db.execute(
            select(AuthorityPerson).where(AuthorityPerson.uid == uid)
        )
        person = result.scalars().first()
        if person is None:
            logger.debug("authority_person.not_found", uid=uid)
        return person

    async def find_by_key(
        self, authority_name: str, authority_key: str
    ) -> Optional[AuthorityPerson]:
        """The person owning the authority with exactly this (name, key)."""
        authority = await self.authorities.find_by_key(authority_name, authority_key)
        if authority is None or authority.person_id is None:
            return None
        return await self.find_by_id(authority.person_id)

    def find_by_name(self, first_name: str, last_name: str) -> EntityCursor[AuthorityPerson]:
        return self._cursor(
            AuthorityPerson.first_name == first_name,
            AuthorityPerson.last_name == last_name,
        )

    def find_like_name(self, first_name: str, last_name: str) -> EntityCursor[AuthorityPerson]:
        return self._cursor(
            _lower_contains(AuthorityPerson.last_name, last_name),
            _lower_contains(AuthorityPerson.first_name, first_name),
        )

    def find_like_full_name(self, name: str) -> EntityCursor[AuthorityPerson]:
        last_first = AuthorityPerson.last_name + " " + AuthorityPerson.first_name
        first_last = AuthorityPerson.first_name + " " + AuthorityPerson.last_name
        return self._cursor(
            or_(_lower_contains(last_first, name), _lower_contains(first_last, name))
        )

    def find_all(self) -> EntityCursor[AuthorityPerson]:
        return self._cursor()

    def _cursor(self, *criteria) -> EntityCursor[AuthorityPerson]:
        statement = select(AuthorityPerson).order_by(AuthorityPerson.id)
        if criteria:
            statement = statement.where(*criteria)
        return EntityCursor(self.db, statement)

    # ─── Owned authorities ──────────────────────────────

    async def get_authorities(self, person: AuthorityPerson) -> list[Authority]:
        """Owned authorities, loaded from the store on first call only."""
        if not person.authorities_loaded:
            async with self.authorities.for_person(person.id) as cursor:
                person.loaded_authorities = [authority async for authority in cursor]
            person.authorities_loaded = True
        return person.loaded_authorities

    async def add_authority(self, person: AuthorityPerson, authority: Authority) -> None:
        """Attach `authority` to `person`; a no-op if it is already attached."""
        logger.info(
            "authority_person.add_authority",
            person_id=person.id,
            authority_id=authority.id,
        )
        attached = await self.get_authorities(person)
        if any(existing.id == authority.id for existing in attached):
            return
        authority.person_id = person.id
        await self.authorities.update(authority)
        attached.append(authority)

    async def create_authority(
        self, person: AuthorityPerson, name: str, key: str
    ) -> Authority:
        authority = await self.authorities.create(name=name, key=key)
        await self.add_authority(person, authority)
        return authority

    async def get_authority_key(
        self, person: AuthorityPerson, authority_name: str
    ) -> Optional[str]:
        """Key of the person's authority named `authority_name` (admin only)."""
        self.ctx.require_admin("read authority key")
        authority = await self.find_authority(person, authority_name)
        return authority.key if authority else None

    async def find_authority(
        self, person: AuthorityPerson, authority_name: str
    ) -> Optional[Authority]:
        """The LAST owned authority with this name; duplicates shadow earlier rows."""
        found = None
        for authority in await self.get_authorities(person):
            if authority.name == authority_name:
                found = authority
        return found


def _lower_contains(column, term: str):
    return func.lower(column).contains(term.lower(), autoescape=True)
