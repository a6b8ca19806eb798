# app/services/pengajuan_listing.py — Admin listing: snapshot, search, counts, status updates, file access

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import httpx
from pydantic import ValidationError

from app.config import get_settings
from app.database import get_supabase_client
from app.models.pengajuan import Pengajuan, StatusPengajuan
from app.models.ui_mode import MODE_DETAIL, MODE_STATUS, Closed, Detail, UiMode, UpdateStatus

logger = logging.getLogger(__name__)

SEARCH_FIELDS = ("nama_perusahaan", "jenis_uttp", "kecamatan")


class PengajuanLoadError(Exception):
    pass


class StatusUpdateError(Exception):
    pass


class FileSuratUnavailableError(Exception):
    pass


def matches_search(pengajuan: Pengajuan, term: str) -> bool:
    needle = term.lower()
    for field in SEARCH_FIELDS:
        value = getattr(pengajuan, field)
        if value and needle in value.lower():
            return True
    return False


def filter_pengajuan(records: tuple[Pengajuan, ...], term: str) -> tuple[Pengajuan, ...]:
    if not term:
        return records
    return tuple(record for record in records if matches_search(record, term))


def count_by_status(records: tuple[Pengajuan, ...]) -> dict[StatusPengajuan, int]:
    counts = {status: 0 for status in StatusPengajuan}
    for record in records:
        counts[record.status] += 1
    return counts


@dataclass(frozen=True)
class PengajuanSnapshot:
    """All records as fetched, newest first. Derived views never mutate it."""

    records: tuple[Pengajuan, ...]

    @property
    def total(self) -> int:
        return len(self.records)

    def search(self, term: str) -> tuple[Pengajuan, ...]:
        return filter_pengajuan(self.records, term)

    def status_counts(self) -> dict[StatusPengajuan, int]:
        return count_by_status(self.records)

    def find(self, pengajuan_id: int) -> Pengajuan | None:
        return next((record for record in self.records if record.id == pengajuan_id), None)


def _parse_rows(rows: list[dict[str, Any]]) -> tuple[Pengajuan, ...]:
    parsed: list[Pengajuan] = []
    for row in rows:
        try:
            parsed.append(Pengajuan.model_validate(row))
        except ValidationError as exc:
            logger.warning(
                "Skipping pengajuan row that failed validation",
                extra={"pengajuan_id": row.get("id"), "status": row.get("status"), "error": str(exc)},
            )
    return tuple(parsed)


def load_snapshot() -> PengajuanSnapshot:
    settings = get_settings()
    try:
        result = (
            get_supabase_client()
            .table(settings.pengajuan_table)
            .select("*")
            .order("created_at", desc=True)
            .execute()
        )
    except Exception as exc:  # noqa: BLE001
        logger.exception(
            "Failed to load pengajuan list",
            extra={"table": settings.pengajuan_table, "error": str(exc)},
        )
        raise PengajuanLoadError(str(exc)) from exc
    return PengajuanSnapshot(records=_parse_rows(result.data or []))


def update_status(pengajuan_id: int, status: StatusPengajuan) -> None:
    """Write only the status column for one id. Last write wins."""
    settings = get_settings()
    try:
        result = (
            get_supabase_client()
            .table(settings.pengajuan_table)
            .update({"status": status.value})
            .eq("id", pengajuan_id)
            .execute()
        )
    except Exception as exc:  # noqa: BLE001
        logger.exception(
            "Failed to update pengajuan status",
            extra={"pengajuan_id": pengajuan_id, "status": status.value, "error": str(exc)},
        )
        raise StatusUpdateError(str(exc)) from exc

    if not result.data:
        logger.warning(
            "Status update matched no pengajuan row",
            extra={"pengajuan_id": pengajuan_id, "status": status.value},
        )
        raise StatusUpdateError(f"pengajuan {pengajuan_id} not updated")

    logger.info(
        "Pengajuan status updated",
        extra={"pengajuan_id": pengajuan_id, "status": status.value},
    )


def resolve_ui_mode(
    snapshot: PengajuanSnapshot,
    mode: str | None,
    pengajuan_id: int | None,
    pending_status: str | None = None,
) -> UiMode:
    if not mode or pengajuan_id is None:
        return Closed()
    pengajuan = snapshot.find(pengajuan_id)
    if pengajuan is None:
        return Closed()
    if mode == MODE_DETAIL:
        return Detail(pengajuan=pengajuan)
    if mode == MODE_STATUS:
        try:
            selected = StatusPengajuan(pending_status) if pending_status else pengajuan.status
        except ValueError:
            selected = pengajuan.status
        return UpdateStatus(pengajuan=pengajuan, pending_status=selected)
    return Closed()


def get_file_public_url(file_key: str | None) -> str:
    """Derive the public URL per call. Raises FileSuratUnavailableError when no key is stored."""
    if not file_key or not file_key.strip():
        raise FileSuratUnavailableError("pengajuan has no file surat")
    settings = get_settings()
    try:
        url = get_supabase_client().storage.from_(settings.storage_bucket).get_public_url(file_key)
    except Exception as exc:  # noqa: BLE001
        logger.exception(
            "Failed to derive file surat public URL",
            extra={"bucket": settings.storage_bucket, "file_key": file_key, "error": str(exc)},
        )
        raise FileSuratUnavailableError(str(exc)) from exc
    if not url:
        raise FileSuratUnavailableError(f"no public URL for {file_key}")
    return url.rstrip("?")


def download_filename(nama_perusahaan: str) -> str:
    safe_name = "".join(ch for ch in nama_perusahaan if ch not in '"\\/\r\n')
    return f"surat_{safe_name}.pdf"


async def fetch_file_surat(url: str) -> tuple[bytes, str]:
    """Fetch the stored object through its public URL; returns (content, content_type)."""
    timeout = get_settings().file_download_timeout_seconds
    try:
        async with httpx.AsyncClient(timeout=timeout, follow_redirects=True) as client:
            response = await client.get(url)
            response.raise_for_status()
    except httpx.HTTPError as exc:
        logger.exception(
            "Failed to download file surat",
            extra={"url": url, "error": str(exc)},
        )
        raise FileSuratUnavailableError(str(exc)) from exc
    content_type = response.headers.get("content-type") or "application/octet-stream"
    return response.content, content_type
