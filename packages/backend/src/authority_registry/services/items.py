"""Item index — repository items whose metadata points at a person.

Learn: submission forms store the person's uid in the `authority` column
of a metadata value (e.g. dc.contributor.author). Listing a person's items
is therefore a scan of metadata values, windowed by limit/offset, followed
by the platform's "may this caller see this item" rule. The window is
taken over the raw matches BEFORE the visibility rule, so hidden items
make a page shorter; there is no backfill from past the window.
"""

from typing import Optional

import structlog
from sqlalchemy import select

from authority_registry.context import RequestContext
from authority_registry.db.models import ITEM_RESOURCE_TYPE, Item, MetadataValue
from authority_registry.repositories.cursor import EntityCursor
from authority_registry.schemas.authority import ItemRead, MetadataEntry
from authority_registry.services.pagination import Page

logger = structlog.get_logger()

EXPAND_METADATA = {"metadata", "all"}


def parse_expand(expand: Optional[str]) -> set[str]:
    if not expand:
        return set()
    return {part.strip().lower() for part in expand.split(",") if part.strip()}


class ItemIndex:
    def __init__(self, ctx: RequestContext):
        self.ctx = ctx
        self.db = ctx.db

    def referencing(self, uid: str) -> EntityCursor[MetadataValue]:
        return EntityCursor(
            self.db,
            select(MetadataValue)
            .where(
                MetadataValue.resource_type_id == ITEM_RESOURCE_TYPE,
                MetadataValue.authority == uid,
            )
            .order_by(MetadataValue.id),
        )

    def is_listed_for_user(self, item: Item) -> bool:
        """Admins see everything; others only archived, discoverable, live items."""
        if self.ctx.is_admin:
            return True
        return item.in_archive and item.discoverable and not item.withdrawn

    async def items_for_person(
        self, uid: str, page: Page, expand: Optional[str] = None
    ) -> list[ItemRead]:
        async with self.referencing(uid) as cursor:
            window = await page.take_async(cursor)

        expansions = parse_expand(expand)
        items = []
        for value in window:
            item = await self.db.get(Item, value.resource_id)
            if item is None:
                logger.warning(
                    "item.dangling_metadata",
                    metadata_id=value.id,
                    item_id=value.resource_id,
                )
                continue
            if self.is_listed_for_user(item):
                items.append(await self._render(item, expansions))
        return items

    async def _render(self, item: Item, expansions: set[str]) -> ItemRead:
        metadata = None
        if expansions & EXPAND_METADATA:
            result = await self.db.execute(
                select(MetadataValue)
                .where(
                    MetadataValue.resource_type_id == ITEM_RESOURCE_TYPE,
                    MetadataValue.resource_id == item.id,
                )
                .order_by(MetadataValue.id)
            )
            metadata = [
                MetadataEntry(field=mv.field, value=mv.text_value, authority=mv.authority)
                for mv in result.scalars()
            ]
        return ItemRead(
            id=item.id,
            name=item.name,
            handle=item.handle,
            archived=item.in_archive,
            withdrawn=item.withdrawn,
            metadata=metadata,
        )
