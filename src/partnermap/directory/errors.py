"""Directory domain errors, mapped to HTTP status codes by the API layer."""

from __future__ import annotations


class DirectoryNotFoundError(LookupError):
    """A region, partner, contact or project id does not exist."""

    def __init__(self, kind: str, entity_id: str) -> None:
        super().__init__(f"{kind} not found: {entity_id}")
        self.kind = kind
        self.entity_id = entity_id


class ImportFormatError(ValueError):
    """An import file yielded no usable rows."""


class InvalidContactError(ValueError):
    """An edit would leave a contact without any identifying field."""
