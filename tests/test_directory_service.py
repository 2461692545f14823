"""Tests for DirectoryService: load fallbacks, persistence and entity operations."""

from __future__ import annotations

import pytest

from src.partnermap.directory.errors import (
    DirectoryNotFoundError,
    ImportFormatError,
    InvalidContactError,
)
from src.partnermap.directory.schemas import (
    ContactCreate,
    ContactUpdate,
    LoadSource,
    PartnerCreate,
    PartnerStatus,
    PartnerUpdate,
    ProjectCreate,
    ProjectStatus,
    ProjectUpdate,
)
from src.partnermap.directory.service import (
    NO_VALID_ROWS_MESSAGE,
    STORE_UNAVAILABLE_NOTICE,
    DirectoryService,
)
from src.partnermap.store.memory import MemoryDocumentStore

DOCUMENT_ID = "france"


def _service(store, cache, catalog) -> DirectoryService:
    return DirectoryService(store=store, cache=cache, catalog=catalog, document_id=DOCUMENT_ID)


# ── Loading ──────────────────────────────────────────────────────────────────


class TestLoad:
    @pytest.mark.asyncio
    async def test_loads_from_store_and_refreshes_cache(self, memory_store, cache_store, catalog):
        service = _service(memory_store, cache_store, catalog)

        result = await service.load()

        assert result.source is LoadSource.STORE
        assert result.notice is None
        assert service.get_partner("idf", "p-acme").name == "Acme"
        cached = await cache_store.read(DOCUMENT_ID)
        assert cached == service.document.to_storage()

    @pytest.mark.asyncio
    async def test_missing_document_is_seeded_and_saved(self, cache_store, catalog):
        store = MemoryDocumentStore()
        service = _service(store, cache_store, catalog)

        result = await service.load()
        await service.flush()

        assert result.source is LoadSource.SEED
        assert result.notice is None
        assert all(len(r.partners) == 1 for r in service.document.regions)
        assert await store.read(DOCUMENT_ID) == service.document.to_storage()

    @pytest.mark.asyncio
    async def test_store_failure_falls_back_to_cache(
        self, failing_store, cache_store, catalog, raw_document
    ):
        await cache_store.write(DOCUMENT_ID, raw_document)
        service = _service(failing_store, cache_store, catalog)

        result = await service.load()
        await service.flush()

        assert result.source is LoadSource.CACHE
        assert result.notice == STORE_UNAVAILABLE_NOTICE
        assert service.get_partner("idf", "p-acme").name == "Acme"
        assert failing_store.write_attempts == 0

    @pytest.mark.asyncio
    async def test_store_and_cache_failure_falls_back_to_seed(self, failing_store, cache_store, catalog):
        service = _service(failing_store, cache_store, catalog)

        result = await service.load()

        assert result.source is LoadSource.SEED
        assert result.notice == STORE_UNAVAILABLE_NOTICE
        assert [r.id for r in service.document.regions] == [c.id for c in catalog]

    @pytest.mark.asyncio
    async def test_unreadable_cache_falls_back_to_seed(self, failing_store, tmp_path, catalog):
        from src.partnermap.store.local import LocalCacheStore

        path = tmp_path / "broken.json"
        path.write_text("{not json")
        service = _service(failing_store, LocalCacheStore(path, "k"), catalog)

        result = await service.load()

        assert result.source is LoadSource.SEED

    @pytest.mark.asyncio
    async def test_loaded_document_is_normalized(self, cache_store, catalog):
        store = MemoryDocumentStore(
            {DOCUMENT_ID: {"regions": [{"id": "old", "name": "Bretagne", "partners": [{"name": "B"}]}]}}
        )
        service = _service(store, cache_store, catalog)

        await service.load()

        assert [r.id for r in service.document.regions] == ["idf", "bre", "occ"]
        assert service.get_region("bre").partners[0].name == "B"


# ── Persistence ──────────────────────────────────────────────────────────────


class TestPersistence:
    @pytest.mark.asyncio
    async def test_mutation_writes_store_and_cache(self, directory, memory_store, cache_store):
        partner = await directory.add_partner("bre", PartnerCreate(name="Breizh"))
        await directory.flush()

        stored = await memory_store.read(DOCUMENT_ID)
        cached = await cache_store.read(DOCUMENT_ID)
        assert stored == cached == directory.document.to_storage()
        assert stored["regions"][1]["partners"][0]["id"] == partner.id

    @pytest.mark.asyncio
    async def test_store_write_failure_does_not_fail_mutation(
        self, failing_store, cache_store, catalog, raw_document
    ):
        await cache_store.write(DOCUMENT_ID, raw_document)
        service = _service(failing_store, cache_store, catalog)
        await service.load()

        partner = await service.add_partner("occ", PartnerCreate(name="Sud"))
        await service.flush()

        assert failing_store.write_attempts == 1
        assert service.get_partner("occ", partner.id).name == "Sud"
        cached = await cache_store.read(DOCUMENT_ID)
        assert cached["regions"][2]["partners"][0]["name"] == "Sud"

    @pytest.mark.asyncio
    async def test_flush_with_nothing_pending(self, directory):
        await directory.flush()


# ── Readers ──────────────────────────────────────────────────────────────────


class TestReaders:
    def test_list_regions_counts_partners(self, directory):
        summaries = directory.list_regions()

        assert [(s.id, s.partner_count) for s in summaries] == [("idf", 1), ("bre", 0), ("occ", 0)]

    def test_unknown_ids_raise_not_found(self, directory):
        with pytest.raises(DirectoryNotFoundError):
            directory.get_region("zzz")
        with pytest.raises(DirectoryNotFoundError) as exc_info:
            directory.get_partner("idf", "nope")
        assert exc_info.value.kind == "partner"

    def test_search_projects_is_case_insensitive(self, directory):
        hits = directory.search_projects("MIGRA")

        assert len(hits) == 1
        assert hits[0].partner_id == "p-acme"
        assert hits[0].region_name == "Paris"
        assert hits[0].project.status is ProjectStatus.GAGNE

    def test_search_accounts_returns_one_hit_per_account(self, directory):
        hits = directory.search_accounts("a")

        assert sorted(h.account_name for h in hits) == ["Carrefour", "Decathlon"]
        assert all(h.contact.id == "c-joe" for h in hits)

    def test_blank_search_returns_nothing(self, directory):
        assert directory.search_projects("  ") == []
        assert directory.search_accounts("") == []


# ── Mutations ────────────────────────────────────────────────────────────────


class TestMutations:
    @pytest.mark.asyncio
    async def test_partial_partner_update(self, directory):
        partner = await directory.update_partner("idf", "p-acme", PartnerUpdate(city="Lyon"))

        assert partner.city == "Lyon"
        assert partner.name == "Acme"
        assert partner.status is PartnerStatus.GOLD

    @pytest.mark.asyncio
    async def test_ids_survive_sibling_changes(self, directory):
        first = await directory.add_contact("idf", "p-acme", ContactCreate(first_name="Ana"))
        second = await directory.add_contact("idf", "p-acme", ContactCreate(email="bo@x.fr"))

        await directory.delete_contact("idf", "p-acme", "c-joe")
        await directory.update_contact("idf", "p-acme", second.id, ContactUpdate(title="CEO"))

        contacts = directory.get_partner("idf", "p-acme").contacts
        assert [c.id for c in contacts] == [first.id, second.id]
        assert contacts[1].title == "CEO"
        assert contacts[1].email == "bo@x.fr"

    @pytest.mark.asyncio
    async def test_deleting_only_contact_leaves_empty_list(self, directory):
        await directory.delete_contact("idf", "p-acme", "c-joe")

        partner = directory.get_partner("idf", "p-acme")
        assert partner.contacts == []
        assert directory.document.to_storage()["regions"][0]["partners"][0]["contacts"] == []

    @pytest.mark.asyncio
    async def test_contact_lists_accept_separated_strings(self, directory):
        contact = await directory.add_contact(
            "idf",
            "p-acme",
            ContactCreate(last_name="Roy", verticals="Retail; Banking", named_accounts="Foo, foo, Bar"),
        )

        assert contact.verticals == ["Retail", "Banking"]
        assert contact.named_accounts == ["Foo", "Bar"]

    @pytest.mark.asyncio
    async def test_project_lifecycle(self, directory):
        project = await directory.add_project(
            "idf", "p-acme", ProjectCreate(name="Data lake", ic_name="Bob")
        )
        assert project.status is ProjectStatus.EN_COURS

        updated = await directory.update_project(
            "idf", "p-acme", project.id, ProjectUpdate(status=ProjectStatus.PAUSE)
        )
        assert updated.status is ProjectStatus.PAUSE
        assert updated.ic_name == "Bob"

        await directory.delete_project("idf", "p-acme", project.id)
        assert [p.id for p in directory.get_partner("idf", "p-acme").projects] == ["prj-migration"]

    @pytest.mark.asyncio
    async def test_delete_partner(self, directory):
        await directory.delete_partner("idf", "p-acme")

        assert directory.get_region("idf").partners == []
        with pytest.raises(DirectoryNotFoundError):
            await directory.delete_partner("idf", "p-acme")

    @pytest.mark.asyncio
    async def test_mutation_on_unknown_contact_raises(self, directory):
        with pytest.raises(DirectoryNotFoundError):
            await directory.update_contact("idf", "p-acme", "ghost", ContactUpdate(title="x"))

    @pytest.mark.asyncio
    async def test_update_cannot_blank_every_identifying_field(self, directory, memory_store):
        blank = ContactUpdate(first_name="", last_name=" ", email="", phone="")

        with pytest.raises(InvalidContactError):
            await directory.update_contact("idf", "p-acme", "c-joe", blank)
        await directory.flush()

        joe = directory.get_partner("idf", "p-acme").contacts[0]
        assert (joe.first_name, joe.email) == ("Joe", "joe@acme.fr")
        stored = await memory_store.read(DOCUMENT_ID)
        assert stored["regions"][0]["partners"][0]["contacts"][0]["firstName"] == "Joe"

    @pytest.mark.asyncio
    async def test_update_may_clear_some_identifying_fields(self, directory):
        contact = await directory.update_contact(
            "idf", "p-acme", "c-joe", ContactUpdate(first_name="", last_name="")
        )

        assert contact.first_name == ""
        assert contact.email == "joe@acme.fr"


# ── Import ───────────────────────────────────────────────────────────────────


class TestImport:
    @pytest.mark.asyncio
    async def test_import_merges_and_persists(self, directory, memory_store):
        report = await directory.import_text(
            "region;partner;email;account\nParis;Acme;JOE@ACME.FR;decathlon, Fnac\nBretagne;Breizh;a@b.fr;"
        )
        await directory.flush()

        assert report.rows_applied == 2
        assert report.contacts_updated == 1
        assert report.partners_created == 1
        joe = directory.get_partner("idf", "p-acme").contacts[0]
        assert joe.named_accounts == ["Carrefour", "Decathlon", "Fnac"]
        stored = await memory_store.read(DOCUMENT_ID)
        assert stored == directory.document.to_storage()

    @pytest.mark.asyncio
    async def test_import_without_rows_raises(self, directory):
        before = directory.document.model_copy(deep=True)

        with pytest.raises(ImportFormatError, match=NO_VALID_ROWS_MESSAGE):
            await directory.import_text("region,partner,email\n")

        assert directory.document == before

    @pytest.mark.asyncio
    async def test_import_with_only_skipped_rows_keeps_document(self, directory):
        before = directory.document.model_copy(deep=True)

        report = await directory.import_text("region,partner\nAtlantis,Acme")

        assert report.rows_skipped == 1
        assert directory.document == before
