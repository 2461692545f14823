#!/usr/bin/env python3
"""Import a partner CSV file into the configured document store.

Usage:
    uv run python scripts/import_csv.py --file partners.csv
    uv run python scripts/import_csv.py --file partners.csv --dry-run

Columns (case-insensitive): region, partner, city, address, status, firstName,
lastName, title, email, phone, and account (or accounts, namedAccounts). Comma
or semicolon separated, header row first.

Reads STORE_BACKEND and the store credentials from environment or .env file.
"""

from __future__ import annotations

import argparse
import asyncio
import os
import sys

# Ensure project root is on sys.path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from dotenv import load_dotenv  # noqa: E402

load_dotenv(os.path.join(os.path.dirname(__file__), "..", ".env"))

import structlog  # noqa: E402

from src.partnermap.config import StoreBackend, get_settings  # noqa: E402
from src.partnermap.core.database import close_db, init_db  # noqa: E402
from src.partnermap.directory.catalog import load_region_catalog  # noqa: E402
from src.partnermap.directory.errors import ImportFormatError  # noqa: E402
from src.partnermap.directory.importer import import_text  # noqa: E402
from src.partnermap.directory.service import DirectoryService  # noqa: E402
from src.partnermap.store import create_document_store, create_local_cache  # noqa: E402

logger = structlog.get_logger(__name__)


async def main_async(args: argparse.Namespace) -> None:
    try:
        with open(args.file, encoding="utf-8") as f:
            text = f.read()
    except (OSError, UnicodeDecodeError) as e:
        print(f"Error: cannot read {args.file}: {e}")
        sys.exit(1)

    settings = get_settings()
    if settings.STORE_BACKEND == StoreBackend.postgres:
        await init_db()

    store = create_document_store(settings)
    directory = DirectoryService(
        store=store,
        cache=create_local_cache(settings),
        catalog=load_region_catalog(settings.REGION_CATALOG_PATH),
        document_id=settings.DOCUMENT_ID,
    )

    try:
        result = await directory.load()
        if result.notice is not None:
            print(f"Error: {store.name} store is unreachable, nothing imported.")
            sys.exit(1)

        if args.dry_run:
            _, report = import_text(directory.document, text)
        else:
            try:
                report = await directory.import_text(text)
            except ImportFormatError as e:
                print(f"Error: {e}")
                sys.exit(1)
            await directory.flush()

        logger.info("Import finished", store=store.name, dry_run=args.dry_run)
        print(f"\nImport {'preview' if args.dry_run else 'complete'} ({store.name}):")
        print(f"  rows read        {report.rows_read}")
        print(f"  rows applied     {report.rows_applied}")
        print(f"  rows skipped     {report.rows_skipped}")
        print(f"  partners created {report.partners_created}")
        print(f"  contacts created {report.contacts_created}")
        print(f"  contacts updated {report.contacts_updated}")
    finally:
        await store.close()
        if settings.STORE_BACKEND == StoreBackend.postgres:
            await close_db()


def main() -> None:
    parser = argparse.ArgumentParser(description="Import a partner CSV into the document store")
    parser.add_argument("--file", required=True, help="Path to the CSV file")
    parser.add_argument("--dry-run", action="store_true", help="Report what would change without saving")
    args = parser.parse_args()

    asyncio.run(main_async(args))


if __name__ == "__main__":
    main()
