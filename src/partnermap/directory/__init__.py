"""Partner directory module -- document schemas, catalog alignment, import and service.

Provides Pydantic schemas for the single directory document (regions,
partners, contacts, projects), the region catalog, the normalizer that
aligns stored documents to it, the delimited-text importer, and
DirectoryService which owns the in-memory document.
"""

from src.partnermap.directory.catalog import CatalogRegion, load_region_catalog
from src.partnermap.directory.errors import (
    DirectoryNotFoundError,
    ImportFormatError,
    InvalidContactError,
)
from src.partnermap.directory.importer import import_rows, import_text, parse_delimited
from src.partnermap.directory.normalizer import normalize_document, seed_document
from src.partnermap.directory.service import DirectoryService

__all__ = [
    "CatalogRegion",
    "DirectoryNotFoundError",
    "DirectoryService",
    "ImportFormatError",
    "InvalidContactError",
    "import_rows",
    "import_text",
    "load_region_catalog",
    "normalize_document",
    "parse_delimited",
    "seed_document",
]
