"""Region catalog -- the fixed list of map regions every document is aligned to.

The bundled catalog mirrors the region layer of the France map (13 metropolitan
regions, ids as used by the map shapes). A deployment can point
REGION_CATALOG_PATH at a JSON file holding either a list of {"id", "name"}
objects or a map export of the form {"locations": [{"id", "name", ...}]}.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, NamedTuple

import structlog

logger = structlog.get_logger(__name__)


class CatalogRegion(NamedTuple):
    id: str
    name: str


DEFAULT_REGIONS: tuple[CatalogRegion, ...] = (
    CatalogRegion("ara", "Auvergne-Rhône-Alpes"),
    CatalogRegion("bfc", "Bourgogne-Franche-Comté"),
    CatalogRegion("bre", "Bretagne"),
    CatalogRegion("cvl", "Centre-Val de Loire"),
    CatalogRegion("cor", "Corse"),
    CatalogRegion("ges", "Grand Est"),
    CatalogRegion("hdf", "Hauts-de-France"),
    CatalogRegion("idf", "Île-de-France"),
    CatalogRegion("nor", "Normandie"),
    CatalogRegion("naq", "Nouvelle-Aquitaine"),
    CatalogRegion("occ", "Occitanie"),
    CatalogRegion("pdl", "Pays de la Loire"),
    CatalogRegion("pac", "Provence-Alpes-Côte d'Azur"),
)


class CatalogError(ValueError):
    """Raised when a catalog file cannot be used."""


def _parse_entries(raw: Any) -> list[CatalogRegion]:
    entries = raw.get("locations") if isinstance(raw, dict) else raw
    if not isinstance(entries, list):
        raise CatalogError("catalog must be a list of regions or an object with 'locations'")

    regions: list[CatalogRegion] = []
    seen: set[str] = set()
    for entry in entries:
        if not isinstance(entry, dict):
            raise CatalogError(f"catalog entry is not an object: {entry!r}")
        region_id = str(entry.get("id") or "").strip()
        name = str(entry.get("name") or "").strip()
        if not region_id or not name:
            raise CatalogError(f"catalog entry needs both id and name: {entry!r}")
        if region_id in seen:
            raise CatalogError(f"duplicate region id in catalog: {region_id}")
        seen.add(region_id)
        regions.append(CatalogRegion(region_id, name))

    if not regions:
        raise CatalogError("catalog is empty")
    return regions


def load_region_catalog(path: str | Path | None = None) -> tuple[CatalogRegion, ...]:
    """Load the region catalog from path, or return the bundled one.

    Raises:
        CatalogError: If the file is unreadable, not JSON, or malformed.
    """
    if not path:
        return DEFAULT_REGIONS

    file_path = Path(path)
    try:
        raw = json.loads(file_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise CatalogError(f"cannot read region catalog {file_path}: {exc}") from exc

    regions = tuple(_parse_entries(raw))
    logger.info("catalog.loaded", path=str(file_path), regions=len(regions))
    return regions
