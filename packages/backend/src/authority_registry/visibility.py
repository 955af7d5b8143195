"""Which authority keys a caller may see.

Some authority systems (typically ones whose keys are personal data) are
hidden from anyone who is not a verified administrator. The set of hidden
names comes from AUTHORITY_FORBIDDEN_AUTHORITIES and is fixed for the life
of the process.
"""

from typing import AbstractSet

from authority_registry.config import settings


def is_visible(authority_name: str, anonymous: bool, deny_list: AbstractSet[str]) -> bool:
    """True unless an anonymous caller asks for a deny-listed authority."""
    return not (anonymous and authority_name in deny_list)


def get_deny_list() -> frozenset[str]:
    """FastAPI dependency — the process-wide deny-list."""
    return settings.forbidden_authority_names
