"""authority CLI — curate authority persons from the terminal.

Usage:
    authority persons                              # List persons
    authority show 5b6c...                         # One person with keys
    authority create Jane Doe                      # Create a person
    authority add-authority 5b6c... orcid 0000-... # Attach a key
    authority search "Doe, Jane"                   # Exact name search
    authority lookup orcid 0000-...                # Who owns this key?
    authority delete 5b6c...                       # Delete (cascades)
    authority token admin@example.org              # Mint a dev token
    authority init-db                              # Create missing tables
    authority serve                                # Run the API server

Writes need an admin token in AUTHORITY_API_TOKEN.
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import json
import os
import sys
from typing import Optional

import click
import httpx

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------

DEFAULT_API_URL = "http://localhost:8000"


def _api_url() -> str:
    return os.environ.get("AUTHORITY_API_URL", DEFAULT_API_URL).rstrip("/")


def _client() -> httpx.AsyncClient:
    """Build an async HTTP client pointed at the authority service."""
    headers = {}
    token = os.environ.get("AUTHORITY_API_TOKEN")
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return httpx.AsyncClient(base_url=_api_url(), headers=headers, timeout=30.0)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _run(coro):
    """Run an async coroutine from a synchronous Click handler.

    Offloads to a thread when a loop is already running (e.g. under tests).
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)
    else:
        with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
            return pool.submit(asyncio.run, coro).result()


def _pretty_json(data: dict | list) -> str:
    return json.dumps(data, indent=2, default=str)


def _check(resp: httpx.Response) -> None:
    """Exit with the service's error message on a non-2xx response."""
    if resp.is_success:
        return
    try:
        detail = resp.json().get("detail", resp.text)
    except ValueError:
        detail = resp.text
    click.secho(f"Error {resp.status_code}: {detail}", fg="red", err=True)
    sys.exit(1)


def _print_persons(persons: list[dict]) -> None:
    header = f"{'UID':<38}{'NAME':<32}{'CREATED':<12}KEYS"
    click.secho(header, bold=True)
    click.echo("-" * len(header))
    for p in persons:
        name = f"{p['lastName']}, {p['firstName']}"
        keys = ", ".join(a["name"] for a in p.get("authorities", []))
        click.echo(f"{p['uid']:<38}{name[:30]:<32}{p['created']:<12}{keys or '-'}")


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(version="0.1.0", prog_name="authority")
def main():
    """authority — manage person authority records."""


@main.command()
@click.option("--limit", default=20, show_default=True)
@click.option("--offset", default=0, show_default=True)
def persons(limit: int, offset: int):
    """List authority persons."""
    async def _impl():
        async with _client() as c:
            r = await c.get("/authoritypersons", params={"limit": limit, "offset": offset})
            _check(r)
            _print_persons(r.json())
    _run(_impl())


@main.command()
@click.argument("uid")
def show(uid: str):
    """Show one person as JSON."""
    async def _impl():
        async with _client() as c:
            r = await c.get(f"/authoritypersons/{uid}")
            _check(r)
            click.echo(_pretty_json(r.json()))
    _run(_impl())


@main.command()
@click.argument("first_name")
@click.argument("last_name")
@click.option("--uid", help="Use this uid instead of a generated one")
def create(first_name: str, last_name: str, uid: Optional[str]):
    """Create a person (admin token required)."""
    async def _impl():
        body = {"firstName": first_name, "lastName": last_name}
        if uid:
            body["uid"] = uid
        async with _client() as c:
            r = await c.post("/authoritypersons", json=body)
            _check(r)
            click.secho(f"Created {r.json()['uid']}", fg="green")
    _run(_impl())


@main.command("add-authority")
@click.argument("uid")
@click.argument("name")
@click.argument("key")
def add_authority(uid: str, name: str, key: str):
    """Attach an authority key to a person (admin token required)."""
    async def _impl():
        async with _client() as c:
            r = await c.post(
                f"/authoritypersons/{uid}/authorities",
                json={"name": name, "key": key},
            )
            _check(r)
            click.secho(f"Added {name}={key} to {uid}", fg="green")
    _run(_impl())


@main.command()
@click.argument("name")
def search(name: str):
    """Find persons by "Lastname, Firstname"."""
    async def _impl():
        async with _client() as c:
            r = await c.post("/authoritypersons/search-by-name", json=name)
            _check(r)
            _print_persons(r.json())
    _run(_impl())


@main.command()
@click.argument("name")
@click.argument("key")
def lookup(name: str, key: str):
    """Find the person owning an authority key."""
    async def _impl():
        async with _client() as c:
            r = await c.post(
                "/authoritypersons/search-by-authority",
                json={"name": name, "key": key},
            )
            _check(r)
            click.echo(_pretty_json(r.json()))
    _run(_impl())


@main.command()
@click.argument("uid")
@click.confirmation_option(prompt="Delete this person and all of its authority keys?")
def delete(uid: str):
    """Delete a person and its keys (admin token required)."""
    async def _impl():
        async with _client() as c:
            r = await c.delete(f"/authoritypersons/{uid}")
            _check(r)
            click.secho(f"Deleted {uid}", fg="green")
    _run(_impl())


# ---------------------------------------------------------------------------
# Local operator helpers
# ---------------------------------------------------------------------------


@main.command()
@click.argument("email")
@click.option("--minutes", default=60, show_default=True)
def token(email: str, minutes: int):
    """Mint an access token signed with AUTHORITY_JWT_SECRET."""
    from authority_registry.auth.jwt import create_access_token

    click.echo(create_access_token(email, expires_minutes=minutes))


@main.command()
@click.option("--reload", is_flag=True, help="Restart on code changes")
def serve(reload: bool):
    """Run the API server on AUTHORITY_HOST:AUTHORITY_PORT."""
    import uvicorn

    from authority_registry.config import settings

    uvicorn.run(
        "authority_registry.main:app",
        host=settings.host,
        port=settings.port,
        reload=reload,
    )


@main.command("init-db")
def init_db():
    """Create any missing tables in AUTHORITY_DATABASE_URL."""
    from authority_registry.db.engine import engine, init_models

    async def _impl():
        await init_models()
        await engine.dispose()

    _run(_impl())
    click.secho("Tables ready", fg="green")


if __name__ == "__main__":
    main()
