"""Per-request context — the session, who is calling, and the transaction.

Learn: one RequestContext is built per HTTP request and passed explicitly
down to services and repositories. It carries:
- the AsyncSession (whose identity map is the request-scoped object cache),
- the caller's identity and whether they are an administrator (computed
  fresh for every request, never cached across requests),
- `transaction()`, the single place that commits on success and rolls
  back on any failure before the failure reaches the caller.
"""

from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator, Optional

import structlog
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from authority_registry.auth.dependencies import CurrentIdentity
from authority_registry.errors import (
    AuthorityError,
    Conflict,
    PermissionDenied,
    StorageFailure,
)

logger = structlog.get_logger()


@dataclass
class RequestContext:
    db: AsyncSession
    identity: Optional[CurrentIdentity] = None
    is_admin: bool = False

    @property
    def anonymous(self) -> bool:
        """True for every caller that is not a verified administrator."""
        return not self.is_admin

    @property
    def user_email(self) -> Optional[str]:
        return self.identity.email if self.identity else None

    def require_admin(self, action: str) -> None:
        """Raise PermissionDenied unless the caller is an administrator."""
        if not self.is_admin:
            logger.info("authorization.denied", action=action, user=self.user_email)
            raise PermissionDenied(
                f"Only administrators have permission to {action}."
            )

    async def abort(self) -> None:
        await self.db.rollback()

    async def complete(self) -> None:
        await self.db.commit()

    @asynccontextmanager
    async def transaction(self, operation: str, **fields) -> AsyncIterator[None]:
        """Run one service operation as a unit of work.

        Commits when the block finishes, otherwise rolls back and re-raises.
        Store errors are logged with the operation context and surfaced as
        StorageFailure (or Conflict for constraint violations) so no
        driver details leak to the caller.
        """
        log = logger.bind(operation=operation, user=self.user_email, **fields)
        try:
            yield
            await self.complete()
        except AuthorityError as e:
            await self.abort()
            log.info("operation.failed", code=e.code, error=e.message)
            raise
        except IntegrityError as e:
            await self.abort()
            log.warning("storage.constraint_violation", error=str(e.orig))
            raise Conflict(
                f"{operation} violates a uniqueness constraint"
            ) from e
        except SQLAlchemyError as e:
            await self.abort()
            log.error("storage.failure", error=str(e))
            raise StorageFailure(
                f"Something went wrong during {operation}"
            ) from e
        except Exception:
            await self.abort()
            log.exception("operation.crashed")
            raise
