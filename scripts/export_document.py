#!/usr/bin/env python3
"""Export the stored partner map document as JSON.

Usage:
    uv run python scripts/export_document.py --output ./backups/
    uv run python scripts/export_document.py --output ./backups/ --raw

By default the document is normalized against the region catalog before it
is written; --raw dumps the stored JSON untouched.

Reads STORE_BACKEND and the store credentials from environment or .env file.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import os
import sys
from datetime import datetime, timezone

# Ensure project root is on sys.path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from dotenv import load_dotenv  # noqa: E402

load_dotenv(os.path.join(os.path.dirname(__file__), "..", ".env"))

import structlog  # noqa: E402

from src.partnermap.config import StoreBackend, get_settings  # noqa: E402
from src.partnermap.core.database import close_db, init_db  # noqa: E402
from src.partnermap.directory.catalog import load_region_catalog  # noqa: E402
from src.partnermap.directory.normalizer import normalize_document  # noqa: E402
from src.partnermap.store import StoreError, create_document_store  # noqa: E402

logger = structlog.get_logger(__name__)


async def main_async(args: argparse.Namespace) -> None:
    settings = get_settings()
    if settings.STORE_BACKEND == StoreBackend.postgres:
        await init_db()

    store = create_document_store(settings)
    try:
        try:
            data = await store.read(settings.DOCUMENT_ID)
        except StoreError as e:
            print(f"Error: cannot read from {store.name} store: {e}")
            sys.exit(1)
    finally:
        await store.close()
        if settings.STORE_BACKEND == StoreBackend.postgres:
            await close_db()

    if data is None:
        print(f"No document '{settings.DOCUMENT_ID}' in {store.name} store.")
        sys.exit(1)

    if not args.raw:
        catalog = load_region_catalog(settings.REGION_CATALOG_PATH)
        data = normalize_document(data, catalog).to_storage()

    os.makedirs(args.output, exist_ok=True)
    timestamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
    output_file = os.path.join(args.output, f"partner_map_{settings.DOCUMENT_ID}_{timestamp}.json")
    with open(output_file, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)

    logger.info("Export written", file=output_file, store=store.name)
    print(f"\nExport complete: {output_file} ({os.path.getsize(output_file):,} bytes)")


def main() -> None:
    parser = argparse.ArgumentParser(description="Export the partner map document")
    parser.add_argument("--output", required=True, help="Output directory for the JSON file")
    parser.add_argument("--raw", action="store_true", help="Skip catalog normalization")
    args = parser.parse_args()

    asyncio.run(main_async(args))


if __name__ == "__main__":
    main()
