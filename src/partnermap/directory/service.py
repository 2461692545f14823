"""Directory service -- owns the in-memory document and keeps stores in sync.

Lifecycle:
1. load(): primary store -> (on failure) local cache -> seed document,
   always normalized against the region catalog.
2. Reader operations work on the in-memory document only.
3. Every successful mutation writes the local cache, then schedules a
   whole-document write to the primary store without awaiting it. Store
   write failures are logged and counted, never raised: the edit stays in
   memory and the next mutation writes everything again.

Entities are addressed by their stable ids, never by list position.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from typing import Any, TypeVar

import structlog

from src.partnermap.core.monitoring import document_persists_total, import_rows_total
from src.partnermap.directory.catalog import CatalogRegion
from src.partnermap.directory.errors import (
    DirectoryNotFoundError,
    ImportFormatError,
    InvalidContactError,
)
from src.partnermap.directory.importer import import_rows, parse_delimited
from src.partnermap.directory.normalizer import normalize_document, seed_document
from src.partnermap.directory.schemas import (
    AccountHit,
    Contact,
    ContactCreate,
    ContactUpdate,
    Document,
    ImportReport,
    LoadResult,
    LoadSource,
    Partner,
    PartnerCreate,
    PartnerUpdate,
    Project,
    ProjectCreate,
    ProjectHit,
    ProjectUpdate,
    Region,
    RegionSummary,
)
from src.partnermap.store.adapter import DocumentStore, StoreError

logger = structlog.get_logger(__name__)

STORE_UNAVAILABLE_NOTICE = (
    "The document store could not be reached; showing locally saved data. "
    "Changes may not be saved durably."
)
NO_VALID_ROWS_MESSAGE = "No valid rows detected in the file."
UNIDENTIFIABLE_CONTACT_MESSAGE = "a contact needs a first name, last name, email or phone"

_E = TypeVar("_E", Partner, Contact, Project)


def _find(items: list[_E], entity_id: str, kind: str) -> _E:
    for item in items:
        if item.id == entity_id:
            return item
    raise DirectoryNotFoundError(kind, entity_id)


def _apply(entity: Any, changes: dict[str, Any]) -> None:
    for field_name, value in changes.items():
        setattr(entity, field_name, value)


class DirectoryService:
    """In-memory partner directory backed by a primary store and a local cache.

    Args:
        store: Primary document store (Supabase, PostgreSQL, memory).
        cache: Local fallback cache, or None to run without one.
        catalog: Region catalog every document is aligned to.
        document_id: Fixed id of the single document.
    """

    def __init__(
        self,
        store: DocumentStore,
        cache: DocumentStore | None,
        catalog: Sequence[CatalogRegion],
        document_id: str,
    ) -> None:
        self._store = store
        self._cache = cache
        self._catalog = tuple(catalog)
        self._document_id = document_id
        self._document = normalize_document(None, self._catalog)
        self._load_result: LoadResult | None = None
        self._pending: set[asyncio.Task[None]] = set()

    @property
    def document(self) -> Document:
        return self._document

    @property
    def store(self) -> DocumentStore:
        return self._store

    @property
    def load_result(self) -> LoadResult | None:
        return self._load_result

    # ── Loading ─────────────────────────────────────────────────────────────

    async def load(self) -> LoadResult:
        """Load the document: store, then cache on store failure, then seed."""
        try:
            raw = await self._store.read(self._document_id)
        except StoreError as exc:
            logger.error("directory.store_read_failed", store=self._store.name, error=str(exc))
            cached = await self._read_cache()
            if cached is not None:
                self._document = normalize_document(cached, self._catalog)
                result = LoadResult(source=LoadSource.CACHE, notice=STORE_UNAVAILABLE_NOTICE)
            else:
                self._document = seed_document(self._catalog)
                result = LoadResult(source=LoadSource.SEED, notice=STORE_UNAVAILABLE_NOTICE)
        else:
            if raw is None:
                self._document = seed_document(self._catalog)
                result = LoadResult(source=LoadSource.SEED)
                await self._persist()
            else:
                self._document = normalize_document(raw, self._catalog)
                result = LoadResult(source=LoadSource.STORE)
                await self._write_cache(self._document.to_storage())

        self._load_result = result
        logger.info(
            "directory.loaded",
            source=result.source.value,
            regions=len(self._document.regions),
            partners=sum(len(r.partners) for r in self._document.regions),
        )
        return result

    async def _read_cache(self) -> dict[str, Any] | None:
        if self._cache is None:
            return None
        try:
            return await self._cache.read(self._document_id)
        except StoreError as exc:
            logger.error("directory.cache_read_failed", error=str(exc))
            return None

    # ── Persistence ─────────────────────────────────────────────────────────

    async def _write_cache(self, snapshot: dict[str, Any]) -> None:
        if self._cache is None:
            return
        try:
            await self._cache.write(self._document_id, snapshot)
            document_persists_total.labels(store=self._cache.name, outcome="ok").inc()
        except StoreError as exc:
            document_persists_total.labels(store=self._cache.name, outcome="error").inc()
            logger.error("directory.cache_write_failed", error=str(exc))

    async def _write_store(self, snapshot: dict[str, Any]) -> None:
        try:
            await self._store.write(self._document_id, snapshot)
        except StoreError as exc:
            document_persists_total.labels(store=self._store.name, outcome="error").inc()
            logger.error("directory.store_write_failed", store=self._store.name, error=str(exc))
            return
        document_persists_total.labels(store=self._store.name, outcome="ok").inc()
        logger.debug("directory.store_write_ok", store=self._store.name)

    def _on_write_done(self, task: asyncio.Task[None]) -> None:
        self._pending.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error("directory.store_write_crashed", exc_info=task.exception())

    async def _persist(self) -> None:
        snapshot = self._document.to_storage()
        await self._write_cache(snapshot)
        task = asyncio.create_task(self._write_store(snapshot))
        self._pending.add(task)
        task.add_done_callback(self._on_write_done)

    async def flush(self) -> None:
        """Wait for every scheduled store write to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    # ── Reader Operations ───────────────────────────────────────────────────

    def list_regions(self) -> list[RegionSummary]:
        return [
            RegionSummary(id=r.id, name=r.name, partner_count=len(r.partners))
            for r in self._document.regions
        ]

    def get_region(self, region_id: str) -> Region:
        """Find a region by id, falling back to the catalog name for that id."""
        for region in self._document.regions:
            if region.id == region_id:
                return region
        for entry in self._catalog:
            if entry.id == region_id:
                for region in self._document.regions:
                    if region.name.strip() == entry.name.strip():
                        return region
        raise DirectoryNotFoundError("region", region_id)

    def get_partner(self, region_id: str, partner_id: str) -> Partner:
        return _find(self.get_region(region_id).partners, partner_id, "partner")

    def search_projects(self, query: str) -> list[ProjectHit]:
        """Projects whose name contains query (case-insensitive), map-wide."""
        needle = query.strip().casefold()
        if not needle:
            return []
        return [
            ProjectHit(
                region_id=region.id,
                region_name=region.name,
                partner_id=partner.id,
                partner_name=partner.name,
                project=project,
            )
            for region in self._document.regions
            for partner in region.partners
            for project in partner.projects
            if needle in project.name.casefold()
        ]

    def search_accounts(self, query: str) -> list[AccountHit]:
        """Named accounts containing query (case-insensitive), one hit per account."""
        needle = query.strip().casefold()
        if not needle:
            return []
        return [
            AccountHit(
                account_name=account,
                region_id=region.id,
                region_name=region.name,
                partner_id=partner.id,
                partner_name=partner.name,
                contact=contact,
            )
            for region in self._document.regions
            for partner in region.partners
            for contact in partner.contacts
            for account in contact.named_accounts
            if needle in account.casefold()
        ]

    # ── Partners ────────────────────────────────────────────────────────────

    async def add_partner(self, region_id: str, data: PartnerCreate) -> Partner:
        region = self.get_region(region_id)
        partner = Partner(**data.model_dump())
        region.partners.append(partner)
        logger.info("directory.partner_added", region_id=region.id, partner_id=partner.id)
        await self._persist()
        return partner

    async def update_partner(
        self, region_id: str, partner_id: str, data: PartnerUpdate
    ) -> Partner:
        partner = self.get_partner(region_id, partner_id)
        _apply(partner, data.model_dump(exclude_unset=True, exclude_none=True))
        logger.info("directory.partner_updated", region_id=region_id, partner_id=partner_id)
        await self._persist()
        return partner

    async def delete_partner(self, region_id: str, partner_id: str) -> None:
        region = self.get_region(region_id)
        partner = _find(region.partners, partner_id, "partner")
        region.partners.remove(partner)
        logger.info("directory.partner_deleted", region_id=region.id, partner_id=partner_id)
        await self._persist()

    # ── Contacts ────────────────────────────────────────────────────────────

    async def add_contact(
        self, region_id: str, partner_id: str, data: ContactCreate
    ) -> Contact:
        partner = self.get_partner(region_id, partner_id)
        contact = Contact(**data.model_dump())
        partner.contacts.append(contact)
        logger.info("directory.contact_added", partner_id=partner_id, contact_id=contact.id)
        await self._persist()
        return contact

    async def update_contact(
        self, region_id: str, partner_id: str, contact_id: str, data: ContactUpdate
    ) -> Contact:
        partner = self.get_partner(region_id, partner_id)
        contact = _find(partner.contacts, contact_id, "contact")
        changes = data.model_dump(exclude_unset=True, exclude_none=True)
        candidate = contact.model_copy(update=changes)
        if not any(
            value.strip()
            for value in (candidate.first_name, candidate.last_name, candidate.email, candidate.phone)
        ):
            raise InvalidContactError(UNIDENTIFIABLE_CONTACT_MESSAGE)
        _apply(contact, changes)
        logger.info("directory.contact_updated", partner_id=partner_id, contact_id=contact_id)
        await self._persist()
        return contact

    async def delete_contact(self, region_id: str, partner_id: str, contact_id: str) -> None:
        partner = self.get_partner(region_id, partner_id)
        contact = _find(partner.contacts, contact_id, "contact")
        partner.contacts.remove(contact)
        logger.info("directory.contact_deleted", partner_id=partner_id, contact_id=contact_id)
        await self._persist()

    # ── Projects ────────────────────────────────────────────────────────────

    async def add_project(
        self, region_id: str, partner_id: str, data: ProjectCreate
    ) -> Project:
        partner = self.get_partner(region_id, partner_id)
        project = Project(**data.model_dump())
        partner.projects.append(project)
        logger.info("directory.project_added", partner_id=partner_id, project_id=project.id)
        await self._persist()
        return project

    async def update_project(
        self, region_id: str, partner_id: str, project_id: str, data: ProjectUpdate
    ) -> Project:
        partner = self.get_partner(region_id, partner_id)
        project = _find(partner.projects, project_id, "project")
        _apply(project, data.model_dump(exclude_unset=True, exclude_none=True))
        logger.info("directory.project_updated", partner_id=partner_id, project_id=project_id)
        await self._persist()
        return project

    async def delete_project(self, region_id: str, partner_id: str, project_id: str) -> None:
        partner = self.get_partner(region_id, partner_id)
        project = _find(partner.projects, project_id, "project")
        partner.projects.remove(project)
        logger.info("directory.project_deleted", partner_id=partner_id, project_id=project_id)
        await self._persist()

    # ── Import ──────────────────────────────────────────────────────────────

    async def import_text(self, text: str) -> ImportReport:
        """Merge a delimited-text file into the document.

        Raises:
            ImportFormatError: If the text holds no data rows at all.
        """
        rows = parse_delimited(text)
        if not rows:
            raise ImportFormatError(NO_VALID_ROWS_MESSAGE)

        document, report = import_rows(self._document, rows)
        import_rows_total.labels(outcome="applied").inc(report.rows_applied)
        import_rows_total.labels(outcome="skipped").inc(report.rows_skipped)

        if report.rows_applied:
            self._document = document
            await self._persist()
        return report
