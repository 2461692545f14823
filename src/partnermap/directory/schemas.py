"""Pydantic schemas for the partner directory document.

Defines all structured types held in the single persisted document:
- Enums: PartnerStatus, ProjectStatus, LoadSource
- Entities: Contact, Project, Partner, Region, Document
- Admin payloads: PartnerCreate/Update, ContactCreate/Update, ProjectCreate/Update
- Views: RegionSummary, ProjectHit, AccountHit, ImportReport, LoadResult

Entities serialize with camelCase aliases (firstName, namedAccounts, icName)
so documents written by earlier clients load unchanged. Stored values are
coerced leniently (None -> "", unknown status -> default); admin payloads are
validated strictly.
"""

from __future__ import annotations

import re
import uuid
from collections.abc import Iterable
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


# ── Field Helpers ───────────────────────────────────────────────────────────

_LIST_SEPARATOR = re.compile(r"[;,]")


def new_id() -> str:
    """Generate a stable entity identifier."""
    return uuid.uuid4().hex


def coerce_text(value: Any) -> str:
    """Coerce a stored scalar to a string, mapping None and containers to ""."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return ""


def split_list(value: Any) -> list[str]:
    """Split a comma/semicolon separated string (or list of strings) into trimmed items.

    Empty items are dropped. Non-string list entries are ignored.
    """
    if value is None:
        return []
    if isinstance(value, str):
        parts: Iterable[Any] = _LIST_SEPARATOR.split(value)
    elif isinstance(value, (list, tuple)):
        parts = value
    else:
        return []
    return [p.strip() for p in parts if isinstance(p, str) and p.strip()]


def unique_casefold(values: Iterable[str]) -> list[str]:
    """De-duplicate case-insensitively, keeping first-seen casing and order."""
    seen: set[str] = set()
    result: list[str] = []
    for value in values:
        key = value.casefold()
        if key in seen:
            continue
        seen.add(key)
        result.append(value)
    return result


# ── Enums ───────────────────────────────────────────────────────────────────


class PartnerStatus(str, Enum):
    """Partnership tier."""

    BRONZE = "bronze"
    SILVER = "silver"
    GOLD = "gold"


class ProjectStatus(str, Enum):
    """Project pipeline state (labels are shown to users as-is)."""

    EN_COURS = "En cours"
    GAGNE = "Gagné"
    PERDU = "Perdu"
    PAUSE = "Pause"


class LoadSource(str, Enum):
    """Where the in-memory document came from at startup."""

    STORE = "store"
    CACHE = "cache"
    SEED = "seed"


def parse_partner_status(value: Any) -> PartnerStatus | None:
    """Return the PartnerStatus matching value (case-insensitive), or None."""
    if isinstance(value, PartnerStatus):
        return value
    text = coerce_text(value).strip().lower()
    for status in PartnerStatus:
        if status.value == text:
            return status
    return None


def parse_project_status(value: Any) -> ProjectStatus | None:
    """Return the ProjectStatus matching value (case-insensitive), or None."""
    if isinstance(value, ProjectStatus):
        return value
    text = coerce_text(value).strip().casefold()
    for status in ProjectStatus:
        if status.value.casefold() == text:
            return status
    return None


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ── Entities ────────────────────────────────────────────────────────────────


class _Entity(_CamelModel):
    id: str = Field(default_factory=new_id)

    @field_validator("id", mode="before")
    @classmethod
    def _ensure_id(cls, value: Any) -> str:
        text = coerce_text(value).strip()
        return text or new_id()


class Contact(_Entity):
    """A person attached to a partner."""

    photo: str = ""
    first_name: str = ""
    last_name: str = ""
    title: str = ""
    email: str = ""
    phone: str = ""
    verticals: list[str] = Field(default_factory=list)
    named_accounts: list[str] = Field(default_factory=list)
    territory: str = ""

    @field_validator(
        "photo", "first_name", "last_name", "title", "email", "phone", "territory",
        mode="before",
    )
    @classmethod
    def _text(cls, value: Any) -> str:
        return coerce_text(value)

    @field_validator("verticals", mode="before")
    @classmethod
    def _verticals(cls, value: Any) -> list[str]:
        return split_list(value)

    @field_validator("named_accounts", mode="before")
    @classmethod
    def _named_accounts(cls, value: Any) -> list[str]:
        return unique_casefold(split_list(value))


class Project(_Entity):
    """A project run with a partner."""

    name: str = ""
    description: str = ""
    status: ProjectStatus = ProjectStatus.EN_COURS
    ic_name: str = ""

    @field_validator("name", "description", "ic_name", mode="before")
    @classmethod
    def _text(cls, value: Any) -> str:
        return coerce_text(value)

    @field_validator("status", mode="before")
    @classmethod
    def _status(cls, value: Any) -> ProjectStatus:
        return parse_project_status(value) or ProjectStatus.EN_COURS


class Partner(_Entity):
    """An organization located in a region."""

    name: str = ""
    city: str = ""
    address: str = ""
    status: PartnerStatus = PartnerStatus.SILVER
    logo: str = ""
    contacts: list[Contact] = Field(default_factory=list)
    projects: list[Project] = Field(default_factory=list)

    @field_validator("name", "city", "address", "logo", mode="before")
    @classmethod
    def _text(cls, value: Any) -> str:
        return coerce_text(value)

    @field_validator("status", mode="before")
    @classmethod
    def _status(cls, value: Any) -> PartnerStatus:
        return parse_partner_status(value) or PartnerStatus.SILVER

    @field_validator("contacts", "projects", mode="before")
    @classmethod
    def _children(cls, value: Any) -> list[Any]:
        if not isinstance(value, list):
            return []
        return [item for item in value if isinstance(item, (dict, BaseModel))]


class Region(_CamelModel):
    """A catalog region and the partners located in it."""

    id: str
    name: str
    partners: list[Partner] = Field(default_factory=list)


class Document(_CamelModel):
    """The whole persisted directory."""

    regions: list[Region] = Field(default_factory=list)

    def to_storage(self) -> dict[str, Any]:
        """Serialize to the JSON shape written to stores."""
        return self.model_dump(mode="json", by_alias=True)


# ── Admin Payloads ──────────────────────────────────────────────────────────


def _require_text(value: str) -> str:
    if not value.strip():
        raise ValueError("must not be blank")
    return value.strip()


class PartnerCreate(_CamelModel):
    """Payload for adding a partner to a region."""

    name: str
    city: str = ""
    address: str = ""
    status: PartnerStatus = PartnerStatus.SILVER
    logo: str = ""

    @field_validator("name")
    @classmethod
    def _name(cls, value: str) -> str:
        return _require_text(value)


class PartnerUpdate(_CamelModel):
    """Partial partner update (only supplied fields change)."""

    name: str | None = None
    city: str | None = None
    address: str | None = None
    status: PartnerStatus | None = None
    logo: str | None = None

    @field_validator("name")
    @classmethod
    def _name(cls, value: str | None) -> str | None:
        return None if value is None else _require_text(value)


class ContactCreate(_CamelModel):
    """Payload for adding a contact. Lists accept a comma/semicolon string."""

    photo: str = ""
    first_name: str = ""
    last_name: str = ""
    title: str = ""
    email: str = ""
    phone: str = ""
    verticals: list[str] = Field(default_factory=list)
    named_accounts: list[str] = Field(default_factory=list)
    territory: str = ""

    @field_validator("verticals", mode="before")
    @classmethod
    def _verticals(cls, value: Any) -> list[str]:
        return split_list(value)

    @field_validator("named_accounts", mode="before")
    @classmethod
    def _named_accounts(cls, value: Any) -> list[str]:
        return unique_casefold(split_list(value))

    @field_validator("territory")
    @classmethod
    def _territory(cls, value: str) -> str:
        return value.strip()

    @model_validator(mode="after")
    def _identifiable(self) -> ContactCreate:
        if not any(
            field.strip() for field in (self.first_name, self.last_name, self.email, self.phone)
        ):
            raise ValueError("a contact needs a first name, last name, email or phone")
        return self


class ContactUpdate(_CamelModel):
    """Partial contact update (only supplied fields change)."""

    photo: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    title: str | None = None
    email: str | None = None
    phone: str | None = None
    verticals: list[str] | None = None
    named_accounts: list[str] | None = None
    territory: str | None = None

    @field_validator("verticals", mode="before")
    @classmethod
    def _verticals(cls, value: Any) -> list[str] | None:
        return None if value is None else split_list(value)

    @field_validator("named_accounts", mode="before")
    @classmethod
    def _named_accounts(cls, value: Any) -> list[str] | None:
        return None if value is None else unique_casefold(split_list(value))


class ProjectCreate(_CamelModel):
    """Payload for adding a project to a partner."""

    name: str
    description: str = ""
    status: ProjectStatus = ProjectStatus.EN_COURS
    ic_name: str = ""

    @field_validator("name")
    @classmethod
    def _name(cls, value: str) -> str:
        return _require_text(value)


class ProjectUpdate(_CamelModel):
    """Partial project update (only supplied fields change)."""

    name: str | None = None
    description: str | None = None
    status: ProjectStatus | None = None
    ic_name: str | None = None

    @field_validator("name")
    @classmethod
    def _name(cls, value: str | None) -> str | None:
        return None if value is None else _require_text(value)


# ── Views ───────────────────────────────────────────────────────────────────


class RegionSummary(_CamelModel):
    id: str
    name: str
    partner_count: int = 0


class ProjectHit(_CamelModel):
    """A project found by the global project search."""

    region_id: str
    region_name: str
    partner_id: str
    partner_name: str
    project: Project


class AccountHit(_CamelModel):
    """A named account found by the global account search."""

    account_name: str
    region_id: str
    region_name: str
    partner_id: str
    partner_name: str
    contact: Contact


class ImportReport(_CamelModel):
    """Outcome counters for one delimited-text import."""

    rows_read: int = 0
    rows_applied: int = 0
    rows_skipped: int = 0
    partners_created: int = 0
    contacts_created: int = 0
    contacts_updated: int = 0


class LoadResult(_CamelModel):
    source: LoadSource
    notice: str | None = None
