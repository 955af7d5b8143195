"""Authority person API routes.

Learn: FastAPI routers define HTTP endpoints. Each route receives the
service via Depends() and delegates to it. Routes only translate HTTP to
service calls; status codes for failures come from the AuthorityError
subclasses, rendered by the exception handler registered in main.py.

`limit`/`offset` are taken as raw strings: an unparseable or out-of-range
value falls back to the default instead of failing with 422.

Route order matters: the fixed paths (/choices, /search-by-*) are declared
before /{uid} so they are never captured as a uid.
"""

from typing import Optional

from fastapi import APIRouter, Body, Depends, Query

from authority_registry.api.dependencies import get_choices, get_service
from authority_registry.schemas.authority import (
    AuthorityPayload,
    AuthorityPersonCreate,
    AuthorityPersonRead,
    AuthorityPersonUpdate,
    AuthorityRead,
    ChoicesRead,
    ItemRead,
    LabelRead,
)
from authority_registry.services.authority_service import AuthorityPersonService
from authority_registry.services.choices import ChoiceAuthority
from authority_registry.services.pagination import Page

router = APIRouter(prefix="/authoritypersons")


# ─── Collection ─────────────────────────────────────────

@router.get("", response_model=list[AuthorityPersonRead])
async def list_persons(
    limit: Optional[str] = Query(None),
    offset: Optional[str] = Query(None),
    svc: AuthorityPersonService = Depends(get_service),
):
    return await svc.list_persons(Page.from_params(limit, offset))


@router.post("", response_model=AuthorityPersonRead, status_code=201)
async def create_person(
    body: AuthorityPersonCreate,
    svc: AuthorityPersonService = Depends(get_service),
):
    """Create a person (admin only). A uid is generated when none is given."""
    return await svc.create_person(body)


# ─── Search & choices ───────────────────────────────────

@router.post("/search-by-authority", response_model=AuthorityPersonRead)
async def search_by_authority(
    body: AuthorityPayload,
    svc: AuthorityPersonService = Depends(get_service),
):
    """Find the person owning an exact (authority name, key) pair."""
    return await svc.search_by_authority(body.name, body.key)


@router.post("/search-by-name", response_model=list[AuthorityPersonRead])
async def search_by_name(
    name: str = Body(...),
    limit: Optional[str] = Query(None),
    offset: Optional[str] = Query(None),
    svc: AuthorityPersonService = Depends(get_service),
):
    """Find persons by a JSON string body formatted "Lastname, Firstname"."""
    return await svc.search_by_name(name, Page.from_params(limit, offset))


@router.get("/choices", response_model=ChoicesRead)
async def choices(
    text: str = Query(..., min_length=1),
    start: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    lookup: ChoiceAuthority = Depends(get_choices),
):
    return await lookup.get_matches(text, start, limit)


@router.get("/choices/best", response_model=ChoicesRead)
async def best_choice(
    text: str = Query(..., min_length=1),
    lookup: ChoiceAuthority = Depends(get_choices),
):
    return await lookup.get_best_match(text)


# ─── Single person ──────────────────────────────────────

@router.get("/{uid}", response_model=AuthorityPersonRead)
async def get_person(uid: str, svc: AuthorityPersonService = Depends(get_service)):
    return await svc.get_person(uid)


@router.put("/{uid}", response_model=AuthorityPersonRead)
async def update_person(
    uid: str,
    body: AuthorityPersonUpdate,
    svc: AuthorityPersonService = Depends(get_service),
):
    return await svc.update_person(uid, body)


@router.delete("/{uid}")
async def delete_person(uid: str, svc: AuthorityPersonService = Depends(get_service)):
    """Delete a person and every authority it owns."""
    await svc.delete_person(uid)
    return {"deleted": True}


@router.get("/{uid}/label", response_model=LabelRead)
async def get_label(uid: str, lookup: ChoiceAuthority = Depends(get_choices)):
    return await lookup.get_label(uid)


@router.get("/{uid}/items", response_model=list[ItemRead], response_model_exclude_none=True)
async def list_items(
    uid: str,
    expand: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    offset: Optional[str] = Query(None),
    svc: AuthorityPersonService = Depends(get_service),
):
    """Items whose metadata references this person's uid."""
    return await svc.list_items(uid, Page.from_params(limit, offset), expand)


# ─── Nested authorities ─────────────────────────────────

@router.get("/{uid}/authorities", response_model=list[AuthorityRead])
async def list_authorities(
    uid: str,
    limit: Optional[str] = Query(None),
    offset: Optional[str] = Query(None),
    svc: AuthorityPersonService = Depends(get_service),
):
    return await svc.list_authorities(uid, Page.from_params(limit, offset))


@router.post("/{uid}/authorities", response_model=AuthorityRead)
async def create_authority(
    uid: str,
    body: AuthorityPayload,
    svc: AuthorityPersonService = Depends(get_service),
):
    return await svc.create_authority(uid, body)


@router.get("/{uid}/authorities/{name}", response_model=str)
async def get_authority_key(
    uid: str,
    name: str,
    svc: AuthorityPersonService = Depends(get_service),
):
    """The person's key in authority system `name`."""
    return await svc.get_authority_key(uid, name)


@router.put("/{uid}/authorities/{name}", response_model=AuthorityRead)
async def update_authority(
    uid: str,
    name: str,
    body: AuthorityPayload,
    svc: AuthorityPersonService = Depends(get_service),
):
    return await svc.update_authority(uid, name, body)


@router.delete("/{uid}/authorities/{name}")
async def delete_authority(
    uid: str,
    name: str,
    svc: AuthorityPersonService = Depends(get_service),
):
    await svc.delete_authority(uid, name)
    return {"deleted": True}
