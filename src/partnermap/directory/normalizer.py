"""Document normalization against the region catalog.

normalize_document() is total and idempotent: whatever comes back from a
store (stale region ids, missing lists, nulls, legacy entities without ids)
is turned into a Document whose regions are exactly the catalog regions, in
catalog order. Running it on its own output returns an equal document.
"""

from __future__ import annotations

import random
from collections.abc import Sequence
from typing import Any

import structlog
from pydantic import ValidationError

from src.partnermap.directory.catalog import CatalogRegion
from src.partnermap.directory.schemas import Document, Partner, PartnerStatus, Region

logger = structlog.get_logger(__name__)


def _raw_regions(raw: Any) -> list[dict[str, Any]]:
    if isinstance(raw, Document):
        raw = raw.to_storage()
    if not isinstance(raw, dict):
        return []
    regions = raw.get("regions")
    if not isinstance(regions, list):
        return []
    return [r for r in regions if isinstance(r, dict)]


def _find_region(
    existing: list[dict[str, Any]], catalog_region: CatalogRegion
) -> dict[str, Any] | None:
    for region in existing:
        if region.get("id") == catalog_region.id:
            return region
    target = catalog_region.name.strip()
    for region in existing:
        name = region.get("name")
        if isinstance(name, str) and name.strip() == target:
            return region
    return None


def _partners(region: dict[str, Any] | None, region_id: str) -> list[Partner]:
    if region is None:
        return []
    raw_partners = region.get("partners")
    if not isinstance(raw_partners, list):
        return []

    partners: list[Partner] = []
    for raw_partner in raw_partners:
        if not isinstance(raw_partner, dict):
            continue
        try:
            partners.append(Partner.model_validate(raw_partner))
        except ValidationError:
            logger.warning("normalizer.partner_dropped", region_id=region_id, exc_info=True)
    return partners


def normalize_document(raw: Any, catalog: Sequence[CatalogRegion]) -> Document:
    """Align a stored document with the catalog.

    Each catalog region is matched by id, then by trimmed name; unmatched
    catalog regions come out empty and regions absent from the catalog are
    dropped. The output region always carries the catalog id and name.
    """
    existing = _raw_regions(raw)
    regions = [
        Region(
            id=catalog_region.id,
            name=catalog_region.name,
            partners=_partners(_find_region(existing, catalog_region), catalog_region.id),
        )
        for catalog_region in catalog
    ]
    return Document(regions=regions)


def seed_document(
    catalog: Sequence[CatalogRegion], rng: random.Random | None = None
) -> Document:
    """Build the demonstration document: one "Test" partner per region."""
    rng = rng or random.Random()
    statuses = list(PartnerStatus)
    return Document(
        regions=[
            Region(
                id=catalog_region.id,
                name=catalog_region.name,
                partners=[
                    Partner(
                        name="Test",
                        city=catalog_region.name,
                        address="1 rue Exemple",
                        status=rng.choice(statuses),
                    )
                ],
            )
            for catalog_region in catalog
        ]
    )
