from __future__ import annotations

from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from typing import Any

import pytest

from app.config import get_settings
from app.services import pengajuan_form, pengajuan_listing

_BASE_TIME = datetime(2025, 1, 6, 8, 0, tzinfo=timezone.utc)


class _Query:
    def __init__(self, table: "_TableStub", op: str, payload: dict | None = None):
        self.table = table
        self.op = op
        self.payload = payload
        self.filters: list[tuple[str, object]] = []
        self.order_by: tuple[str, bool] | None = None
        self.bounds: tuple[int, int] | None = None

    def eq(self, key: str, value: object):
        self.filters.append((key, value))
        return self

    def order(self, column: str, desc: bool = False):
        self.order_by = (column, desc)
        return self

    def range(self, start: int, end: int):
        self.bounds = (start, end)
        return self

    def _matches(self, row: dict) -> bool:
        return all(row.get(key) == value for key, value in self.filters)

    def execute(self):
        self.table.calls.append(self)
        if self.op in self.table.fail_on:
            raise self.table.error
        if self.op == "select":
            rows = [dict(row) for row in self.table.rows if self._matches(row)]
            if self.order_by:
                column, desc = self.order_by
                rows.sort(key=lambda row: row[column], reverse=desc)
            if self.bounds:
                start, end = self.bounds
                rows = rows[start : end + 1]
            if self.table.max_rows is not None:
                rows = rows[: self.table.max_rows]
            return SimpleNamespace(data=rows)
        if self.op == "insert":
            row = self.table.add_row(dict(self.payload or {}))
            return SimpleNamespace(data=[dict(row)])
        if self.op == "update":
            updated = []
            for row in self.table.rows:
                if self._matches(row):
                    row.update(self.payload or {})
                    updated.append(dict(row))
            return SimpleNamespace(data=updated)
        raise AssertionError(f"Unexpected op: {self.op}")


class _TableStub:
    def __init__(self):
        self.rows: list[dict[str, Any]] = []
        self.calls: list[_Query] = []
        self.fail_on: set[str] = set()
        # mirrors PostgREST db-max-rows
        self.max_rows: int | None = None
        self.error: Exception = RuntimeError("database unavailable")

    def add_row(self, row: dict[str, Any]) -> dict[str, Any]:
        next_id = max((existing["id"] for existing in self.rows), default=0) + 1
        row.setdefault("id", next_id)
        row.setdefault("created_at", (_BASE_TIME + timedelta(minutes=row["id"])).isoformat())
        self.rows.append(row)
        return row

    def select(self, columns: str = "*"):
        return _Query(self, "select")

    def insert(self, payload: dict):
        return _Query(self, "insert", payload)

    def update(self, payload: dict):
        return _Query(self, "update", payload)


class _BucketStub:
    def __init__(self, name: str):
        self.name = name
        self.objects: dict[str, bytes] = {}
        self.uploads: list[tuple[str, bytes, dict | None]] = []
        self.removed: list[str] = []
        self.fail_upload = False

    def upload(self, path: str, file: bytes, file_options: dict | None = None):
        self.uploads.append((path, file, file_options))
        if self.fail_upload:
            raise RuntimeError("storage unavailable")
        self.objects[path] = file
        return SimpleNamespace(path=path, full_path=f"{self.name}/{path}")

    def get_public_url(self, path: str) -> str:
        return f"https://example.supabase.co/storage/v1/object/public/{self.name}/{path}"

    def list(self, path: str | None = None, options: dict | None = None):
        options = options or {}
        offset = options.get("offset", 0)
        limit = options.get("limit", 100)
        names = sorted(self.objects)[offset : offset + limit]
        return [{"name": name, "id": f"obj-{name}"} for name in names]

    def remove(self, paths: list[str]):
        self.removed.extend(paths)
        for path in paths:
            self.objects.pop(path, None)
        return [{"name": path} for path in paths]


class _StorageStub:
    def __init__(self):
        self.buckets: dict[str, _BucketStub] = {}

    def from_(self, bucket: str) -> _BucketStub:
        return self.buckets.setdefault(bucket, _BucketStub(bucket))


class FakeSupabase:
    def __init__(self):
        self.pengajuan_tera = _TableStub()
        self.storage = _StorageStub()

    @property
    def uploads_bucket(self) -> _BucketStub:
        return self.storage.from_("uploads")

    def table(self, table_name: str):
        if table_name != "pengajuan_tera":
            raise AssertionError(f"Unexpected table: {table_name}")
        return self.pengajuan_tera

    def calls(self, op: str) -> list[_Query]:
        return [query for query in self.pengajuan_tera.calls if query.op == op]


def make_row(**overrides: Any) -> dict[str, Any]:
    row: dict[str, Any] = {
        "nama_perusahaan": "PT Sumber Makmur",
        "alamat_perusahaan": "Jl. Cimanuk No 1",
        "alamat_uttp": "Jl. Raya Leles No 12",
        "kecamatan": "Leles",
        "no_contact": "081234567890",
        "jenis_uttp": "Pompa Ukur BBM",
        "nomor_spbu": "SPBU 34.44101",
        "jumlah_pompa": 2,
        "jumlah_nozzle": 4,
        "nomor_surat": "001/SPBU/I/2025",
        "tanggal_surat": "2025-01-03",
        "file_surat_url": "1736150400000_surat.pdf",
        "status": "Pending",
    }
    row.update(overrides)
    return row


@pytest.fixture(autouse=True)
def _settings_env(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("SUPABASE_URL", "https://example.supabase.co")
    monkeypatch.setenv("SUPABASE_SERVICE_KEY", "test-service-key")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def row_factory():
    return make_row


@pytest.fixture
def fake_supabase(monkeypatch: pytest.MonkeyPatch) -> FakeSupabase:
    client = FakeSupabase()
    monkeypatch.setattr(pengajuan_form, "get_supabase_client", lambda: client)
    monkeypatch.setattr(pengajuan_listing, "get_supabase_client", lambda: client)
    return client
