# app/services/notifications.py — Toast messages shown to applicants and admins

from __future__ import annotations

from enum import Enum
from typing import Literal

from pydantic import BaseModel

from app.models.pengajuan import StatusPengajuan

MSG_FILE_TOO_LARGE = "Ukuran file maksimal 10 MB"
MSG_FILE_TYPE_NOT_ALLOWED = "Format file harus PDF, DOC, atau DOCX"
MSG_FILE_REQUIRED = "File surat permohonan wajib diunggah"
MSG_SUBMIT_SUCCESS = "Data tera ulang berhasil disimpan!"
MSG_SUBMIT_FAILED_PREFIX = "Gagal mengirim pengajuan: "
MSG_LOAD_FAILED = "Gagal memuat data permohonan"
MSG_STATUS_UPDATED = "Status berhasil diubah ke {status}"
MSG_STATUS_UPDATE_FAILED = "Gagal mengubah status"
MSG_FILE_NOT_ACCESSIBLE = "File tidak dapat diakses"
MSG_FILE_NOT_DOWNLOADABLE = "File tidak dapat didownload"
MSG_NOT_FOUND = "Data permohonan tidak ditemukan"


class Toast(BaseModel):
    kind: Literal["success", "error"]
    message: str

    @classmethod
    def success(cls, message: str) -> Toast:
        return cls(kind="success", message=message)

    @classmethod
    def error(cls, message: str) -> Toast:
        return cls(kind="error", message=message)


class NoticeCode(str, Enum):
    """Toasts that have to survive a redirect, carried in the query string."""

    SUBMITTED = "submitted"
    STATUS_UPDATED = "status-updated"
    STATUS_UPDATE_FAILED = "status-failed"
    FILE_NOT_ACCESSIBLE = "file-view-failed"
    FILE_NOT_DOWNLOADABLE = "file-download-failed"


def submit_failed(detail: str) -> Toast:
    return Toast.error(MSG_SUBMIT_FAILED_PREFIX + detail)


def status_updated(status: StatusPengajuan) -> Toast:
    return Toast.success(MSG_STATUS_UPDATED.format(status=status.value))


def toast_for_notice(notice: str | None, status: str | None = None) -> Toast | None:
    """Map a notice code back to its literal message; unknown codes show nothing."""
    if not notice:
        return None
    try:
        code = NoticeCode(notice)
    except ValueError:
        return None

    if code is NoticeCode.SUBMITTED:
        return Toast.success(MSG_SUBMIT_SUCCESS)
    if code is NoticeCode.STATUS_UPDATED:
        try:
            return status_updated(StatusPengajuan(status))
        except ValueError:
            return None
    if code is NoticeCode.STATUS_UPDATE_FAILED:
        return Toast.error(MSG_STATUS_UPDATE_FAILED)
    if code is NoticeCode.FILE_NOT_ACCESSIBLE:
        return Toast.error(MSG_FILE_NOT_ACCESSIBLE)
    return Toast.error(MSG_FILE_NOT_DOWNLOADABLE)
