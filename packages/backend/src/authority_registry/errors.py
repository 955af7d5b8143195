"""Error taxonomy for the authority service.

Learn: every failure the service layer can surface is an AuthorityError
subclass carrying its HTTP status and a stable machine-readable code.
main.py registers one exception handler that renders them all, so routes
stay free of try/except ladders.
"""

from fastapi import status


class AuthorityError(Exception):
    """Base error with HTTP semantics."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    code: str = "authority_error"

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        if status_code is not None:
            self.status_code = status_code
        self.message = message


class NotFound(AuthorityError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"


class PermissionDenied(AuthorityError):
    """Caller is not an administrator."""

    status_code = status.HTTP_401_UNAUTHORIZED
    code = "permission_denied"


class ForbiddenAuthority(PermissionDenied):
    """A non-admin asked by name for an authority on the deny-list."""

    status_code = status.HTTP_403_FORBIDDEN
    code = "forbidden_authority"


class InvalidInput(AuthorityError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "invalid_input"


class Conflict(AuthorityError):
    """A uniqueness constraint of the store was violated."""

    status_code = status.HTTP_409_CONFLICT
    code = "conflict"


class StorageFailure(AuthorityError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "storage_failure"
