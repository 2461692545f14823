"""Delimited-text import of partners and contacts.

Parses a header + rows text file (';' when the header has one, else ',') and
merges each row into the partner/contact hierarchy of a document:

- region: trimmed, case-sensitive match on the region name; unknown -> row dropped
- partner: trimmed, case-sensitive match on the partner name; missing -> created
- contact: matched by email (case-insensitive), then by first+last name;
  matched contacts only gain non-empty fields and merged named accounts

Rows that cannot be applied are skipped silently and only show up in the
ImportReport counters. Import never raises on row content.
"""

from __future__ import annotations

import re

import structlog

from src.partnermap.directory.schemas import (
    Contact,
    Document,
    ImportReport,
    Partner,
    PartnerStatus,
    Region,
    parse_partner_status,
    split_list,
    unique_casefold,
)

logger = structlog.get_logger(__name__)

_LINE_BREAK = re.compile(r"\r?\n")

# Contact fields a matching row may overwrite (only with non-empty values)
MERGEABLE_CONTACT_FIELDS = ("first_name", "last_name", "title", "email", "phone")

ACCOUNT_COLUMNS = ("account", "accounts", "namedAccounts")


# ── Parsing ─────────────────────────────────────────────────────────────────


def parse_delimited(text: str) -> list[dict[str, str]]:
    """Parse delimited text into header-keyed rows.

    Blank lines are ignored; short rows are padded with "" and every cell
    is trimmed. Returns [] for empty or header-only input.
    """
    trimmed = text.lstrip("\ufeff").strip()
    if not trimmed:
        return []

    lines = _LINE_BREAK.split(trimmed)
    if len(lines) < 2:
        return []

    delimiter = ";" if ";" in lines[0] else ","
    headers = [h.strip() for h in lines[0].split(delimiter)]

    rows: list[dict[str, str]] = []
    for line in lines[1:]:
        line = line.strip()
        if not line:
            continue
        cells = line.split(delimiter)
        row: dict[str, str] = {}
        for idx, header in enumerate(headers):
            value = cells[idx].strip() if idx < len(cells) else ""
            # First occurrence wins when a header repeats
            row.setdefault(header, value)
        rows.append(row)
    return rows


def _field(row: dict[str, str], *names: str) -> str:
    """Case-variant tolerant column lookup ('firstName' == 'firstname' == 'FIRSTNAME')."""
    folded: dict[str, str] = {}
    for key, value in row.items():
        if value:
            folded.setdefault(key.casefold(), value)
    for name in names:
        value = folded.get(name.casefold())
        if value:
            return value.strip()
    return ""


# ── Matching ────────────────────────────────────────────────────────────────


def _same(a: str, b: str) -> bool:
    return a.strip().casefold() == b.strip().casefold()


def find_matching_contact(contacts: list[Contact], candidate: Contact) -> Contact | None:
    """Find the existing contact a candidate row refers to.

    Email match takes priority over name match across the whole list: the
    email pass runs first, and the name pass only considers contacts whose
    email cannot contradict the candidate's (one side has no email).
    """
    if candidate.email.strip():
        for contact in contacts:
            if contact.email.strip() and _same(contact.email, candidate.email):
                return contact

    if candidate.first_name.strip() and candidate.last_name.strip():
        for contact in contacts:
            if not (contact.first_name.strip() and contact.last_name.strip()):
                continue
            if contact.email.strip() and candidate.email.strip():
                continue
            if _same(contact.first_name, candidate.first_name) and _same(
                contact.last_name, candidate.last_name
            ):
                return contact

    return None


def merge_contact(existing: Contact, candidate: Contact) -> None:
    """Merge candidate into existing in place; empty candidate values never erase."""
    for field_name in MERGEABLE_CONTACT_FIELDS:
        value = getattr(candidate, field_name)
        if value:
            setattr(existing, field_name, value)
    existing.named_accounts = unique_casefold(
        split_list(existing.named_accounts + candidate.named_accounts)
    )


# ── Import ──────────────────────────────────────────────────────────────────


def _resolve_partner(
    region: Region, row: dict[str, str], partner_name: str, report: ImportReport
) -> Partner:
    target = partner_name.strip()
    for partner in region.partners:
        if partner.name.strip() == target:
            return partner

    partner = Partner(
        name=partner_name,
        city=_field(row, "city"),
        address=_field(row, "address"),
        status=parse_partner_status(_field(row, "status")) or PartnerStatus.SILVER,
    )
    region.partners.append(partner)
    report.partners_created += 1
    return partner


def _candidate(row: dict[str, str]) -> Contact:
    return Contact(
        first_name=_field(row, "firstName"),
        last_name=_field(row, "lastName"),
        title=_field(row, "title"),
        email=_field(row, "email"),
        phone=_field(row, "phone"),
        named_accounts=_field(row, *ACCOUNT_COLUMNS),
    )


def _is_empty(candidate: Contact) -> bool:
    return not (
        candidate.first_name
        or candidate.last_name
        or candidate.email
        or candidate.phone
        or candidate.named_accounts
    )


def import_rows(
    document: Document, rows: list[dict[str, str]]
) -> tuple[Document, ImportReport]:
    """Merge parsed rows into a copy of document.

    Returns:
        The updated document (document itself is left untouched) and the
        import counters.
    """
    report = ImportReport(rows_read=len(rows))
    updated = document.model_copy(deep=True)
    if not rows:
        return updated, report

    regions_by_name: dict[str, Region] = {}
    for region in updated.regions:
        regions_by_name.setdefault(region.name.strip(), region)

    for row in rows:
        region = regions_by_name.get(_field(row, "region"))
        partner_name = _field(row, "partner")
        if region is None or not partner_name:
            report.rows_skipped += 1
            continue

        partners_before = report.partners_created
        partner = _resolve_partner(region, row, partner_name, report)

        candidate = _candidate(row)
        if _is_empty(candidate):
            if report.partners_created > partners_before:
                report.rows_applied += 1
            else:
                report.rows_skipped += 1
            continue

        existing = find_matching_contact(partner.contacts, candidate)
        if existing is None:
            partner.contacts.append(candidate)
            report.contacts_created += 1
        else:
            merge_contact(existing, candidate)
            report.contacts_updated += 1
        report.rows_applied += 1

    logger.info("import.rows_merged", **report.model_dump())
    return updated, report


def import_text(document: Document, text: str) -> tuple[Document, ImportReport]:
    """Parse text and merge it into a copy of document."""
    return import_rows(document, parse_delimited(text))

