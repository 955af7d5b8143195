"""Unit tests for the deny-list filter, its config parsing, and page windows."""

import pytest

from authority_registry.config import Settings, parse_name_list
from authority_registry.services.authority_service import split_last_first
from authority_registry.errors import InvalidInput
from authority_registry.services.pagination import Page
from authority_registry.visibility import is_visible

DENY = frozenset({"orcid", "scopus"})


# ─── is_visible ─────────────────────────────────────────


def test_denied_name_hidden_from_anonymous():
    assert is_visible("orcid", anonymous=True, deny_list=DENY) is False


def test_denied_name_shown_to_admin():
    assert is_visible("orcid", anonymous=False, deny_list=DENY) is True


def test_other_names_always_visible():
    assert is_visible("viaf", anonymous=True, deny_list=DENY) is True
    assert is_visible("viaf", anonymous=False, deny_list=DENY) is True


def test_empty_deny_list_hides_nothing():
    assert is_visible("orcid", anonymous=True, deny_list=frozenset()) is True


def test_match_is_exact():
    assert is_visible("ORCID", anonymous=True, deny_list=DENY) is True
    assert is_visible("orcid-id", anonymous=True, deny_list=DENY) is True


# ─── Config parsing ─────────────────────────────────────


@pytest.mark.parametrize("raw,expected", [
    ("orcid,scopus", {"orcid", "scopus"}),
    (" orcid , scopus ", {"orcid", "scopus"}),
    ("orcid,,scopus,", {"orcid", "scopus"}),
    ("", set()),
    (None, set()),
])
def test_parse_name_list(raw, expected):
    assert parse_name_list(raw) == frozenset(expected)


def test_settings_parse_forbidden_authorities(monkeypatch):
    monkeypatch.setenv("AUTHORITY_FORBIDDEN_AUTHORITIES", "orcid, researcherid")
    assert Settings().forbidden_authority_names == {"orcid", "researcherid"}


def test_settings_reject_default_secret_outside_development(monkeypatch):
    monkeypatch.setenv("AUTHORITY_ENVIRONMENT", "production")
    monkeypatch.delenv("AUTHORITY_JWT_SECRET", raising=False)
    with pytest.raises(ValueError):
        Settings()


# ─── Page ───────────────────────────────────────────────


def test_page_defaults():
    page = Page.from_params(None, None, default_limit=20)
    assert (page.limit, page.offset) == (20, 0)


@pytest.mark.parametrize("limit,offset", [
    ("0", "0"),
    ("-5", "-1"),
    ("ten", "x"),
    ("", ""),
])
def test_page_invalid_values_fall_back(limit, offset):
    page = Page.from_params(limit, offset, default_limit=20)
    assert (page.limit, page.offset) == (20, 0)


def test_page_take_windows_in_order():
    page = Page.from_params("10", "20")
    assert page.take(range(25)) == list(range(20, 25))
    assert Page(limit=3, offset=1).take("abcdef") == ["b", "c", "d"]
    assert Page(limit=5, offset=10).take([1, 2]) == []


@pytest.mark.asyncio
async def test_page_take_async_stops_when_full():
    consumed = []

    async def source():
        for n in range(100):
            consumed.append(n)
            yield n

    assert await Page(limit=2, offset=3).take_async(source()) == [3, 4]
    assert consumed == [0, 1, 2, 3, 4]


# ─── Name splitting ─────────────────────────────────────


def test_split_last_first_on_first_comma():
    assert split_last_first("Doe, Jane") == ("Doe", "Jane")
    assert split_last_first(" Doe ,Jane, Jr. ") == ("Doe", "Jane, Jr.")


def test_split_last_first_requires_comma():
    with pytest.raises(InvalidInput):
        split_last_first("Jane Doe")
