"""Limit/offset windows over forward-only sequences.

Learn: the store cursors here can't seek. A page is taken by walking the
sequence once: skip `offset` entries, collect up to `limit`, stop. Bad
parameters never fail a request; they fall back to the defaults with a
warning, the way list endpoints have always behaved for old clients.
"""

from dataclasses import dataclass
from typing import AsyncIterable, Iterable, Optional, TypeVar

import structlog

from authority_registry.config import settings

logger = structlog.get_logger()

T = TypeVar("T")

DEFAULT_OFFSET = 0


@dataclass(frozen=True)
class Page:
    limit: int
    offset: int = DEFAULT_OFFSET

    @property
    def end(self) -> int:
        return self.offset + self.limit

    @classmethod
    def from_params(
        cls,
        limit: Optional[str] = None,
        offset: Optional[str] = None,
        default_limit: Optional[int] = None,
    ) -> "Page":
        """Normalize raw query parameters; invalid values use the defaults."""
        default_limit = default_limit or settings.default_page_limit
        parsed_limit = _to_int(limit)
        if parsed_limit is None or parsed_limit < 1:
            if limit is not None:
                logger.warning(
                    "pagination.limit_invalid", value=limit, default=default_limit
                )
            parsed_limit = default_limit

        parsed_offset = _to_int(offset)
        if parsed_offset is None or parsed_offset < 0:
            if offset is not None:
                logger.warning(
                    "pagination.offset_invalid", value=offset, default=DEFAULT_OFFSET
                )
            parsed_offset = DEFAULT_OFFSET

        return cls(limit=parsed_limit, offset=parsed_offset)

    def take(self, entries: Iterable[T]) -> list[T]:
        """Window an in-memory sequence."""
        window = []
        for index, entry in enumerate(entries):
            if index >= self.end:
                break
            if index >= self.offset:
                window.append(entry)
        return window

    async def take_async(self, entries: AsyncIterable[T]) -> list[T]:
        """Window an async cursor, stopping as soon as the page is full."""
        window = []
        index = 0
        async for entry in entries:
            if index >= self.offset:
                window.append(entry)
            index += 1
            if index >= self.end:
                break
        return window


def _to_int(raw: Optional[str]) -> Optional[int]:
    if raw is None:
        return None
    try:
        return int(raw)
    except (TypeError, ValueError):
        return None
