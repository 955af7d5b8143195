"""Forward-only entity cursor over a streamed query.

Learn: `session.stream_scalars()` keeps a store cursor open while rows are
consumed. The cursor must be released on every exit path, including a
caller that stops early because its page is full, so EntityCursor is an
async context manager:

    async with persons.find_all() as cursor:
        async for person in cursor:
            ...

Each call to a finder builds a new query; the cursor itself is single-pass.
"""

from typing import Generic, Optional, TypeVar

from sqlalchemy import Select
from sqlalchemy.ext.asyncio import AsyncScalarResult, AsyncSession

T = TypeVar("T")


class EntityCursor(Generic[T]):
    def __init__(self, db: AsyncSession, statement: Select):
        self.db = db
        self.statement = statement
        self._result: Optional[AsyncScalarResult] = None

    async def __aenter__(self) -> "EntityCursor[T]":
        self._result = await self.db.stream_scalars(self.statement)
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    def __aiter__(self) -> "EntityCursor[T]":
        return self

    async def __anext__(self) -> T:
        if self._result is None:
            raise StopAsyncIteration
        return await self._result.__anext__()

    async def close(self) -> None:
        if self._result is not None:
            result, self._result = self._result, None
            await result.close()
