"""SQLAlchemy ORM models — single source of truth for the database schema.

Learn: Declarative ORM mapping with SQLAlchemy 2.0 style (Mapped[] + mapped_column).
Each class = one table. Constraints live here so every store backend that
SQLAlchemy can talk to enforces the same uniqueness rules.

Two groups of tables:
- The authority module itself: authority_person and authority.
- Platform tables this module only reads: epersons and groups (admin checks),
  items and their metadata values (items referencing a person).
"""

from datetime import date
from typing import Optional

from sqlalchemy import (
    Boolean,
    Date,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, reconstructor


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


# ══════════════════════════════════════════════════════════════
# Authority module
# ══════════════════════════════════════════════════════════════


class AuthorityPerson(Base):
    """A person known to one or more external authority systems.

    Learn: `uid` is the only identifier callers ever see; `id` stays internal.
    The owned authorities are not an ORM relationship: async
    sessions cannot lazy-load, so the person repository loads them once and
    memoizes them on the instance (see `authorities_loaded`).
    """

    __tablename__ = "authority_person"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    uid: Mapped[Optional[str]] = mapped_column(String(100), unique=True)
    first_name: Mapped[Optional[str]] = mapped_column("firstname", String(255))
    last_name: Mapped[Optional[str]] = mapped_column("lastname", String(255))
    created: Mapped[date] = mapped_column(Date, default=date.today)

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self._reset_authorities()

    @reconstructor
    def _reset_authorities(self) -> None:
        self.authorities_loaded = False
        self.loaded_authorities: list["Authority"] = []

    @property
    def name(self) -> str:
        """Display name in "Last, First" form."""
        return f"{self.last_name}, {self.first_name}"

    def __repr__(self) -> str:
        return f"<AuthorityPerson id={self.id} uid={self.uid!r}>"


class Authority(Base):
    """One key of a person inside one external authority system.

    The columns keep the platform's historical naming: `key` holds the
    authority system's name and `value` the person's key within it.
    """

    __tablename__ = "authority"
    __table_args__ = (
        UniqueConstraint("key", "value", name="uc_authority_key_value"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[Optional[str]] = mapped_column("key", String(255))
    person_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("authority_person.id"), index=True
    )
    key: Mapped[Optional[str]] = mapped_column("value", String(255))

    def __repr__(self) -> str:
        return f"<Authority id={self.id} {self.name}={self.key!r}>"


# ══════════════════════════════════════════════════════════════
# Platform tables (read-only collaborators)
# ══════════════════════════════════════════════════════════════


class EPerson(Base):
    """A platform user account."""

    __tablename__ = "eperson"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)


class EPersonGroup(Base):
    __tablename__ = "epersongroup"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)


class GroupMember(Base):
    __tablename__ = "group_member"
    __table_args__ = (
        UniqueConstraint("group_id", "eperson_id", name="uq_group_member"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    group_id: Mapped[int] = mapped_column(ForeignKey("epersongroup.id"), nullable=False)
    eperson_id: Mapped[int] = mapped_column(ForeignKey("eperson.id"), nullable=False)


# Resource type of items in metadatavalue.resource_type_id
ITEM_RESOURCE_TYPE = 2


class Item(Base):
    """An archived repository item (publication, dataset, ...)."""

    __tablename__ = "item"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[Optional[str]] = mapped_column(String(1024))
    handle: Mapped[Optional[str]] = mapped_column(String(255))
    in_archive: Mapped[bool] = mapped_column(Boolean, default=True)
    withdrawn: Mapped[bool] = mapped_column(Boolean, default=False)
    discoverable: Mapped[bool] = mapped_column(Boolean, default=True)


class MetadataValue(Base):
    """A metadata field value, optionally controlled by an authority uid."""

    __tablename__ = "metadatavalue"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    resource_type_id: Mapped[int] = mapped_column(Integer, nullable=False)
    resource_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    field: Mapped[str] = mapped_column(String(255), nullable=False)
    text_value: Mapped[Optional[str]] = mapped_column(Text)
    authority: Mapped[Optional[str]] = mapped_column(String(100), index=True)
