"""Authority person service — business logic behind /authoritypersons.

Learn: Service layer separates business logic from HTTP routing. Routes
build a RequestContext and call one method here; each method:
1. Runs inside `ctx.transaction()` — commit on success, rollback on any
   failure (permission failures included) before the error surfaces.
2. Enforces the admin rule for writes up front (`ctx.require_admin`).
3. Renders persons through the visibility filter, so non-admin callers
   never see deny-listed authority keys in nested lists.

Absence is a NotFound raised here, never inside the repositories: a lookup
returning None is a perfectly normal repository answer.
"""

from typing import AbstractSet, Optional

import structlog

from authority_registry.context import RequestContext
from authority_registry.db.models import Authority, AuthorityPerson
from authority_registry.errors import ForbiddenAuthority, InvalidInput, NotFound
from authority_registry.repositories.authority import AuthorityRepository
from authority_registry.repositories.person import PersonRepository
from authority_registry.schemas.authority import (
    AuthorityPayload,
    AuthorityPersonCreate,
    AuthorityPersonRead,
    AuthorityPersonUpdate,
    AuthorityRead,
    ItemRead,
)
from authority_registry.services.items import ItemIndex
from authority_registry.services.pagination import Page
from authority_registry.visibility import is_visible

logger = structlog.get_logger()


def _filled(*values: Optional[str]) -> bool:
    return all(value for value in values)


def split_last_first(name: str) -> tuple[str, str]:
    """Split "Lastname, Firstname" on the first comma."""
    if "," not in name:
        raise InvalidInput('Name must be formatted as "Lastname, Firstname"')
    last, first = name.split(",", 1)
    return last.strip(), first.strip()


class AuthorityPersonService:
    def __init__(self, ctx: RequestContext, deny_list: AbstractSet[str]):
        self.ctx = ctx
        self.deny_list = deny_list
        self.authorities = AuthorityRepository(ctx)
        self.persons = PersonRepository(ctx, self.authorities)
        self.items = ItemIndex(ctx)

    # ─── Rendering ──────────────────────────────────────

    def _visible(self, authority: Authority) -> bool:
        return is_visible(authority.name, self.ctx.anonymous, self.deny_list)

    async def render(self, person: AuthorityPerson) -> AuthorityPersonRead:
        authorities = await self.persons.get_authorities(person)
        return AuthorityPersonRead(
            uid=person.uid,
            first_name=person.first_name,
            last_name=person.last_name,
            authorities=[
                AuthorityRead.model_validate(a) for a in authorities if self._visible(a)
            ],
            created=person.created,
        )

    async def _render_all(self, persons: list[AuthorityPerson]) -> list[AuthorityPersonRead]:
        return [await self.render(person) for person in persons]

    async def _person_or_404(self, uid: str) -> AuthorityPerson:
        person = await self.persons.find_by_uid(uid)
        if person is None:
            logger.warning("authority_person.not_found", uid=uid)
            raise NotFound(f"Authority person {uid} not found")
        return person

    async def _authority_or_404(self, person: AuthorityPerson, name: str) -> Authority:
        authority = await self.persons.find_authority(person, name)
        if authority is None:
            logger.warning("authority.not_found", uid=person.uid, name=name)
            raise NotFound(f"Authority {name} not found in person {person.uid}")
        return authority

    # ─── Reads ──────────────────────────────────────────

    async def list_persons(self, page: Page) -> list[AuthorityPersonRead]:
        async with self.ctx.transaction("list_persons", limit=page.limit, offset=page.offset):
            async with self.persons.find_all() as cursor:
                window = await page.take_async(cursor)
            return await self._render_all(window)

    async def get_person(self, uid: str) -> AuthorityPersonRead:
        async with self.ctx.transaction("get_person", uid=uid):
            return await self.render(await self._person_or_404(uid))

    async def list_authorities(self, uid: str, page: Page) -> list[AuthorityRead]:
        """A person's authorities; hidden entries still take a window slot."""
        async with self.ctx.transaction("list_authorities", uid=uid):
            person = await self._person_or_404(uid)
            window = page.take(await self.persons.get_authorities(person))
            return [AuthorityRead.model_validate(a) for a in window if self._visible(a)]

    async def get_authority_key(self, uid: str, name: str) -> str:
        """Key of one named authority.

        For non-admins a deny-listed name is refused before anything is
        looked up, so the answer does not reveal whether the key exists.
        """
        async with self.ctx.transaction("get_authority_key", uid=uid, name=name):
            if not is_visible(name, self.ctx.anonymous, self.deny_list):
                raise ForbiddenAuthority(f"Authority {name} is not public")
            person = await self._person_or_404(uid)
            if not self.ctx.is_admin:
                return (await self._authority_or_404(person, name)).key

            key = await self.persons.get_authority_key(person, name)
            if key is None:
                logger.warning("authority.not_found", uid=uid, name=name)
                raise NotFound(f"Authority {name} not found in person {uid}")
            return key

    async def list_items(
        self, uid: str, page: Page, expand: Optional[str] = None
    ) -> list[ItemRead]:
        async with self.ctx.transaction("list_items", uid=uid):
            return await self.items.items_for_person(uid, page, expand)

    async def search_by_authority(self, name: Optional[str], key: Optional[str]) -> AuthorityPersonRead:
        async with self.ctx.transaction("search_by_authority", name=name):
            person = None
            if _filled(name, key):
                person = await self.persons.find_by_key(name, key)
            if person is None:
                logger.debug("authority_person.search_miss", name=name)
                raise NotFound(f"No authority person with {name}={key}")
            return await self.render(person)

    async def search_by_name(self, name: str, page: Page) -> list[AuthorityPersonRead]:
        async with self.ctx.transaction("search_by_name", name=name):
            last, first = split_last_first(name)
            async with self.persons.find_by_name(first, last) as cursor:
                window = await page.take_async(cursor)
            logger.debug("authority_person.search_by_name", name=name, found=len(window))
            return await self._render_all(window)

    # ─── Writes (admin only) ────────────────────────────

    async def create_person(self, body: AuthorityPersonCreate) -> AuthorityPersonRead:
        async with self.ctx.transaction("create_person", uid=body.uid):
            self.ctx.require_admin("create authority person")
            if not _filled(body.first_name, body.last_name):
                raise InvalidInput("Authority person must have a first and last name")
            for payload in body.authorities:
                self._check_authority_payload(payload)

            person = await self.persons.create()
            if body.uid:
                person.uid = body.uid
            else:
                self.persons.generate_uid(person)
            person.first_name = body.first_name
            person.last_name = body.last_name
            await self.persons.update(person)

            for payload in body.authorities:
                await self.persons.create_authority(person, payload.name, payload.key)
            return await self.render(person)

    async def create_authority(self, uid: str, body: AuthorityPayload) -> AuthorityRead:
        async with self.ctx.transaction("create_authority", uid=uid, name=body.name):
            self.ctx.require_admin("create authority")
            person = await self._person_or_404(uid)
            self._check_authority_payload(body)
            authority = await self.persons.create_authority(person, body.name, body.key)
            return AuthorityRead.model_validate(authority)

    async def update_person(self, uid: str, body: AuthorityPersonUpdate) -> AuthorityPersonRead:
        async with self.ctx.transaction("update_person", uid=uid):
            self.ctx.require_admin("update authority person")
            person = await self._person_or_404(uid)
            if body.uid:
                person.uid = body.uid
            if body.first_name is not None:
                person.first_name = body.first_name
            if body.last_name is not None:
                person.last_name = body.last_name
            if not _filled(person.first_name, person.last_name):
                raise InvalidInput("Authority person must have a first and last name")
            await self.persons.update(person)
            return await self.render(person)

    async def update_authority(self, uid: str, name: str, body: AuthorityPayload) -> AuthorityRead:
        async with self.ctx.transaction("update_authority", uid=uid, name=name):
            self.ctx.require_admin("update authority")
            person = await self._person_or_404(uid)
            authority = await self._authority_or_404(person, name)
            self._check_authority_payload(body)
            authority.name = body.name
            authority.key = body.key
            await self.authorities.update(authority)
            return AuthorityRead.model_validate(authority)

    async def delete_person(self, uid: str) -> None:
        async with self.ctx.transaction("delete_person", uid=uid):
            self.ctx.require_admin("delete authority person")
            person = await self._person_or_404(uid)
            await self.persons.delete(person)

    async def delete_authority(self, uid: str, name: str) -> None:
        async with self.ctx.transaction("delete_authority", uid=uid, name=name):
            self.ctx.require_admin("delete authority")
            person = await self._person_or_404(uid)
            authority = await self._authority_or_404(person, name)
            await self.authorities.delete(authority)
            person.loaded_authorities.remove(authority)

    @staticmethod
    def _check_authority_payload(body: AuthorityPayload) -> None:
        if not _filled(body.name, body.key):
            raise InvalidInput("Authority must have a name and a key")
