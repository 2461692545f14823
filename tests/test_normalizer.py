"""Tests for catalog alignment of stored documents and the seed document."""

from __future__ import annotations

import random

from src.partnermap.directory.normalizer import normalize_document, seed_document
from src.partnermap.directory.schemas import (
    Document,
    PartnerStatus,
    ProjectStatus,
)


def test_output_matches_catalog_ids_and_order(catalog, raw_document):
    raw_document["regions"].reverse()
    raw_document["regions"].append({"id": "xyz", "name": "Atlantis", "partners": []})

    doc = normalize_document(raw_document, catalog)

    assert [r.id for r in doc.regions] == [c.id for c in catalog]
    assert [r.name for r in doc.regions] == [c.name for c in catalog]


def test_normalize_is_a_fixed_point(catalog, raw_document):
    once = normalize_document(raw_document, catalog)
    twice = normalize_document(once.to_storage(), catalog)

    assert twice == once


def test_region_matched_by_name_takes_catalog_id(catalog):
    raw = {"regions": [{"id": "legacy-7", "name": "  Bretagne ", "partners": [{"name": "Breizh"}]}]}

    doc = normalize_document(raw, catalog)

    bretagne = next(r for r in doc.regions if r.id == "bre")
    assert bretagne.name == "Bretagne"
    assert [p.name for p in bretagne.partners] == ["Breizh"]


def test_id_match_wins_over_name_match(catalog):
    raw = {
        "regions": [
            {"id": "other", "name": "Paris", "partners": [{"name": "By name"}]},
            {"id": "idf", "name": "Renamed", "partners": [{"name": "By id"}]},
        ]
    }

    doc = normalize_document(raw, catalog)

    assert [p.name for p in doc.regions[0].partners] == ["By id"]


def test_garbage_input_yields_empty_catalog_regions(catalog):
    for raw in (None, [], "text", {"regions": "nope"}, {"regions": [1, None]}):
        doc = normalize_document(raw, catalog)
        assert len(doc.regions) == len(catalog)
        assert all(r.partners == [] for r in doc.regions)


def test_entities_are_coerced(catalog):
    raw = {
        "regions": [
            {
                "id": "idf",
                "name": "Paris",
                "partners": [
                    {
                        "name": None,
                        "status": "platinum",
                        "contacts": [
                            {"firstName": None, "namedAccounts": "Foo, foo; Bar", "verticals": None},
                            "not a contact",
                        ],
                        "projects": None,
                    },
                    {"name": "Legacy", "status": "GOLD", "projects": [{"name": 42, "status": "weird"}]},
                ],
            }
        ]
    }

    doc = normalize_document(raw, catalog)
    first, legacy = doc.regions[0].partners

    assert first.name == ""
    assert first.status is PartnerStatus.SILVER
    assert first.projects == []
    assert len(first.contacts) == 1
    assert first.contacts[0].first_name == ""
    assert first.contacts[0].named_accounts == ["Foo", "Bar"]
    assert first.contacts[0].verticals == []

    assert legacy.status is PartnerStatus.GOLD
    assert legacy.projects[0].name == "42"
    assert legacy.projects[0].status is ProjectStatus.EN_COURS


def test_legacy_entities_get_ids_and_existing_ids_are_kept(catalog, raw_document):
    raw_document["regions"][1]["partners"] = [{"name": "No id", "contacts": [{"email": "a@b.c"}]}]

    doc = normalize_document(raw_document, catalog)

    acme = doc.regions[0].partners[0]
    assert acme.id == "p-acme"
    assert acme.contacts[0].id == "c-joe"
    assert acme.projects[0].id == "prj-migration"

    no_id = doc.regions[1].partners[0]
    assert no_id.id
    assert no_id.contacts[0].id


def test_storage_shape_uses_camel_case(catalog, raw_document):
    stored = normalize_document(raw_document, catalog).to_storage()

    contact = stored["regions"][0]["partners"][0]["contacts"][0]
    project = stored["regions"][0]["partners"][0]["projects"][0]
    assert contact["firstName"] == "Joe"
    assert contact["namedAccounts"] == ["Carrefour", "Decathlon"]
    assert project["icName"] == "Alice"
    assert project["status"] == "Gagné"


def test_accepts_document_instance(catalog, raw_document):
    doc = normalize_document(raw_document, catalog)

    assert normalize_document(doc, catalog) == doc


def test_seed_document_has_one_test_partner_per_region(catalog):
    doc = seed_document(catalog, rng=random.Random(7))

    assert isinstance(doc, Document)
    assert [r.id for r in doc.regions] == [c.id for c in catalog]
    for region in doc.regions:
        assert len(region.partners) == 1
        partner = region.partners[0]
        assert partner.name == "Test"
        assert partner.city == region.name
        assert partner.address == "1 rue Exemple"
        assert partner.status in set(PartnerStatus)
        assert partner.contacts == []
        assert partner.projects == []
