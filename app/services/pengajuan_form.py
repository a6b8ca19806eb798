# app/services/pengajuan_form.py — Submission form: file validation, upload, insert

from __future__ import annotations

import logging
import re
import time
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError
from starlette.datastructures import UploadFile

from app.config import get_settings
from app.database import get_supabase_client
from app.models.pengajuan import Pengajuan, PengajuanCreate
from app.services.notifications import (
    MSG_FILE_REQUIRED,
    MSG_FILE_TOO_LARGE,
    MSG_FILE_TYPE_NOT_ALLOWED,
)

logger = logging.getLogger(__name__)

ALLOWED_FILE_SURAT_EXTENSIONS = frozenset({".pdf", ".doc", ".docx"})

_UNSAFE_OBJECT_NAME_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


class FileSuratError(ValueError):
    """Rejected before any storage or store call is made."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class FileSuratMissingError(FileSuratError):
    pass


class FileSuratTooLargeError(FileSuratError):
    pass


class FileSuratTypeError(FileSuratError):
    pass


class PengajuanSubmitError(Exception):
    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class PengajuanFormError(ValueError):
    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


# HTML/multipart field name -> column name
FORM_FIELDS: dict[str, str] = {
    "namaPerusahaan": "nama_perusahaan",
    "alamatPerusahaan": "alamat_perusahaan",
    "alamatUttp": "alamat_uttp",
    "kecamatan": "kecamatan",
    "noContact": "no_contact",
    "jenisUttp": "jenis_uttp",
    "nomorSpbu": "nomor_spbu",
    "jumlahPompa": "jumlah_pompa",
    "jumlahNozzle": "jumlah_nozzle",
    "nomorSurat": "nomor_surat",
    "tanggalSurat": "tanggal_surat",
}

FIELD_LABELS: dict[str, str] = {
    "nama_perusahaan": "Nama Perusahaan",
    "alamat_perusahaan": "Alamat Perusahaan",
    "alamat_uttp": "Alamat Lokasi UTTP",
    "kecamatan": "Kecamatan",
    "no_contact": "No. Contact Person",
    "jenis_uttp": "Jenis UTTP",
    "nomor_spbu": "Nomor SPBU",
    "jumlah_pompa": "Jml Pompa / Dispenser",
    "jumlah_nozzle": "Jml Nozzle Total",
    "nomor_surat": "Nomor Surat Permohonan",
    "tanggal_surat": "Tanggal Surat",
}

_REQUIRED_FIELDS = ("nama_perusahaan", "alamat_uttp", "jenis_uttp")


def parse_pengajuan_form(form: Mapping[str, Any]) -> PengajuanCreate:
    """Build PengajuanCreate from camelCase form values, with Indonesian error text."""
    values = {column: form.get(name) for name, column in FORM_FIELDS.items() if form.get(name) is not None}
    for column in _REQUIRED_FIELDS:
        value = values.get(column)
        if value is None or (isinstance(value, str) and not value.strip()):
            raise PengajuanFormError(f"{FIELD_LABELS[column]} wajib diisi")
    try:
        return PengajuanCreate.model_validate(values)
    except ValidationError as exc:
        first = exc.errors()[0]
        column = str(first["loc"][0]) if first.get("loc") else ""
        label = FIELD_LABELS.get(column, column)
        raise PengajuanFormError(f"{label} tidak valid") from exc


@dataclass(frozen=True)
class FileSurat:
    filename: str
    content: bytes
    content_type: str | None = None

    @property
    def size(self) -> int:
        return len(self.content)


def _extension(filename: str) -> str:
    name = _base_name(filename)
    if "." not in name:
        return ""
    return "." + name.rsplit(".", 1)[1].lower()


def _base_name(filename: str) -> str:
    return filename.replace("\\", "/").rsplit("/", 1)[-1]


def validate_file_surat(
    filename: str | None,
    content: bytes,
    content_type: str | None = None,
    *,
    max_bytes: int,
) -> FileSurat:
    if not filename:
        raise FileSuratMissingError(MSG_FILE_REQUIRED)
    if len(content) > max_bytes:
        raise FileSuratTooLargeError(MSG_FILE_TOO_LARGE)
    if _extension(filename) not in ALLOWED_FILE_SURAT_EXTENSIONS:
        raise FileSuratTypeError(MSG_FILE_TYPE_NOT_ALLOWED)
    return FileSurat(filename=filename, content=content, content_type=content_type)


async def read_file_surat(upload: Any, *, max_bytes: int) -> FileSurat:
    """Read at most max_bytes + 1 so oversized uploads are never fully buffered."""
    if not isinstance(upload, UploadFile) or not upload.filename:
        raise FileSuratMissingError(MSG_FILE_REQUIRED)
    content = await upload.read(max_bytes + 1)
    return validate_file_surat(
        upload.filename,
        content,
        upload.content_type,
        max_bytes=max_bytes,
    )


def build_object_name(filename: str, *, now_ms: int | None = None) -> str:
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    safe_name = _UNSAFE_OBJECT_NAME_CHARS.sub("_", _base_name(filename)).strip("_") or "surat"
    return f"{now_ms}_{safe_name}"


def _error_detail(exc: Exception) -> str:
    message = getattr(exc, "message", None)
    if isinstance(message, str) and message.strip():
        return message.strip()
    return str(exc) or exc.__class__.__name__


def _upload_file_surat(client: Any, bucket: str, file_surat: FileSurat) -> str:
    object_name = build_object_name(file_surat.filename)
    file_options = {"content-type": file_surat.content_type} if file_surat.content_type else None
    result = client.storage.from_(bucket).upload(
        object_name,
        file_surat.content,
        file_options=file_options,
    )
    return getattr(result, "path", None) or object_name


def _remove_orphaned_upload(client: Any, bucket: str, file_key: str) -> None:
    """
    Best-effort cleanup after a failed insert. Never raises to callers.
    """
    try:
        client.storage.from_(bucket).remove([file_key])
    except Exception as exc:  # noqa: BLE001
        logger.exception(
            "Failed to remove orphaned file surat upload",
            extra={"bucket": bucket, "file_key": file_key, "error": str(exc)},
        )
        return
    logger.warning(
        "Removed file surat upload after failed insert",
        extra={"bucket": bucket, "file_key": file_key},
    )


def submit_pengajuan(payload: PengajuanCreate, file_surat: FileSurat | None) -> Pengajuan:
    """
    Upload the supporting document (when attached), then insert the record with
    status Pending. Raises PengajuanSubmitError carrying the backend message.
    """
    settings = get_settings()
    client = get_supabase_client()

    file_key: str | None = None
    if file_surat is not None:
        try:
            file_key = _upload_file_surat(client, settings.storage_bucket, file_surat)
        except Exception as exc:  # noqa: BLE001
            logger.exception(
                "Failed to upload file surat",
                extra={
                    "bucket": settings.storage_bucket,
                    "file_name": file_surat.filename,
                    "size": file_surat.size,
                    "error": str(exc),
                },
            )
            raise PengajuanSubmitError(_error_detail(exc)) from exc

    try:
        result = (
            client.table(settings.pengajuan_table)
            .insert(payload.to_insert_payload(file_key))
            .execute()
        )
    except Exception as exc:  # noqa: BLE001
        logger.exception(
            "Failed to insert pengajuan",
            extra={
                "table": settings.pengajuan_table,
                "nama_perusahaan": payload.nama_perusahaan,
                "file_key": file_key,
                "error": str(exc),
            },
        )
        if file_key:
            _remove_orphaned_upload(client, settings.storage_bucket, file_key)
        raise PengajuanSubmitError(_error_detail(exc)) from exc

    if not result.data:
        logger.error(
            "Insert returned no pengajuan row",
            extra={"table": settings.pengajuan_table, "file_key": file_key},
        )
        if file_key:
            _remove_orphaned_upload(client, settings.storage_bucket, file_key)
        raise PengajuanSubmitError("data tidak tersimpan")

    created = Pengajuan.model_validate(result.data[0])
    logger.info(
        "Pengajuan created",
        extra={"pengajuan_id": created.id, "jenis_uttp": created.jenis_uttp, "file_key": file_key},
    )
    return created
