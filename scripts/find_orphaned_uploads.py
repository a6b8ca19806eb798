#!/usr/bin/env python3
"""
List (and optionally delete) storage objects no pengajuan record points to.

Required environment variables:
- SUPABASE_URL
- SUPABASE_SERVICE_KEY
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Any

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from app.config import get_settings
from app.database import get_supabase_client

PAGE_SIZE = 100


def _list_bucket_objects(client: Any, bucket: str) -> list[str]:
    names: list[str] = []
    offset = 0
    while True:
        page = client.storage.from_(bucket).list(
            None,
            {"limit": PAGE_SIZE, "offset": offset, "sortBy": {"column": "name", "order": "asc"}},
        )
        if not page:
            break
        for item in page:
            name = item.get("name") if isinstance(item, dict) else None
            # folders come back without an id
            if name and item.get("id"):
                names.append(name)
        if len(page) < PAGE_SIZE:
            break
        offset += PAGE_SIZE
    return names


def _referenced_keys(client: Any, table: str) -> set[str]:
    keys: set[str] = set()
    offset = 0
    while True:
        # PostgREST caps every response at db-max-rows, so page by id
        result = (
            client.table(table)
            .select("id, file_surat_url")
            .order("id")
            .range(offset, offset + PAGE_SIZE - 1)
            .execute()
        )
        rows = result.data or []
        for row in rows:
            if row.get("file_surat_url"):
                keys.add(str(row["file_surat_url"]).strip())
        if len(rows) < PAGE_SIZE:
            break
        offset += PAGE_SIZE
    return keys


def find_orphaned_uploads(client: Any, *, bucket: str, table: str) -> list[str]:
    referenced = _referenced_keys(client, table)
    return [name for name in _list_bucket_objects(client, bucket) if name not in referenced]


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--delete", action="store_true", help="remove the orphaned objects")
    args = parser.parse_args(argv)

    settings = get_settings()
    client = get_supabase_client()
    orphaned = find_orphaned_uploads(
        client,
        bucket=settings.storage_bucket,
        table=settings.pengajuan_table,
    )

    print(f"Found {len(orphaned)} orphaned objects in bucket={settings.storage_bucket}")
    for name in orphaned:
        print(f"[ORPHAN] {name}")

    if args.delete and orphaned:
        client.storage.from_(settings.storage_bucket).remove(orphaned)
        print(f"[DELETE] removed {len(orphaned)} objects")

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
