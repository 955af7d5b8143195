"""Pydantic schemas for authority persons, authorities, items and choices.

Learn: Pydantic v2 models validate request/response data. The wire format
is camelCase (`firstName`), Python code uses snake_case; `alias_generator`
bridges the two and `populate_by_name` lets services build models with
either spelling. Request schemas leave required-looking fields Optional on
purpose: a missing name is a 400 decided by the service, not a 422.
"""

from datetime import date
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# ─── Authorities ────────────────────────────────────────

class AuthorityPayload(WireModel):
    name: Optional[str] = None
    key: Optional[str] = None


class AuthorityRead(WireModel):
    name: str
    key: str


# ─── Persons ────────────────────────────────────────────

class AuthorityPersonCreate(WireModel):
    uid: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    authorities: list[AuthorityPayload] = Field(default_factory=list)


class AuthorityPersonUpdate(WireModel):
    uid: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None


class AuthorityPersonRead(WireModel):
    uid: str
    first_name: str
    last_name: str
    authorities: list[AuthorityRead] = []
    created: date


# ─── Items referencing a person ─────────────────────────

class MetadataEntry(WireModel):
    field: str
    value: Optional[str] = None
    authority: Optional[str] = None


class ItemRead(WireModel):
    id: int
    name: Optional[str] = None
    handle: Optional[str] = None
    archived: bool
    withdrawn: bool
    metadata: Optional[list[MetadataEntry]] = None


# ─── Choice lookup ──────────────────────────────────────

class Choice(WireModel):
    authority: str
    label: str
    value: str


class ChoicesRead(WireModel):
    values: list[Choice]
    start: int
    total: int
    confidence: str
    more: bool


class LabelRead(WireModel):
    uid: str
    label: str
