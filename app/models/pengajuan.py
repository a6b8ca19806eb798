# app/models/pengajuan.py — Pengajuan tera ulang schemas and option lists

from datetime import date, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class StatusPengajuan(str, Enum):
    PENDING = "Pending"
    PROCESSING = "Processing"
    APPROVED = "Approved"
    REJECTED = "Rejected"

    @property
    def label(self) -> str:
        return STATUS_LABELS[self]

    @property
    def badge(self) -> str:
        return STATUS_BADGES[self]


STATUS_LABELS: dict[StatusPengajuan, str] = {
    StatusPengajuan.PENDING: "Menunggu",
    StatusPengajuan.PROCESSING: "Diproses",
    StatusPengajuan.APPROVED: "Disetujui",
    StatusPengajuan.REJECTED: "Ditolak",
}

# CSS modifier per badge, mirrors the secondary/outline/default/destructive variants.
STATUS_BADGES: dict[StatusPengajuan, str] = {
    StatusPengajuan.PENDING: "secondary",
    StatusPengajuan.PROCESSING: "outline",
    StatusPengajuan.APPROVED: "default",
    StatusPengajuan.REJECTED: "destructive",
}


class JenisUttp(str, Enum):
    POMPA_UKUR_BBM = "Pompa Ukur BBM"
    TIMBANGAN_JEMBATAN = "Timbangan Jembatan/AMP/Batching Plant"
    LAINNYA = "Lainnya"


KECAMATAN_LIST: tuple[str, ...] = (
    "Garut Kota",
    "Tarogong Kaler",
    "Tarogong Kidul",
    "Samarang",
    "Leles",
    "Kadungora",
    "Limbangan",
    "Kersamanah",
    "Malangbong",
    "Selaawi",
    "Cibiuk",
    "Leuwigoong",
    "Banyuresmi",
    "Cibatu",
    "Pakenjeng",
    "Karangtengah",
    "Sukawening",
    "Wanaraja",
    "Sucinaraja",
    "Karangpawitan",
    "Talegong",
    "Cisewu",
    "Caringin",
    "Mekarmukti",
    "Bungbulang",
    "Pamulihan",
    "Cilawu",
    "Cikelet",
    "Pameungpeuk",
    "Cibalong",
    "Cisompet",
    "Cisurupan",
    "Garut Selatan",
    "Bayongbong",
    "Singajaya",
)

SPBU_LIST: tuple[str, ...] = tuple(f"SPBU 34.44{101 + i}" for i in range(24))


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


class PengajuanBase(BaseModel):
    nama_perusahaan: str
    alamat_perusahaan: str | None = None
    alamat_uttp: str
    kecamatan: str | None = None
    no_contact: str | None = None
    jenis_uttp: str
    nomor_spbu: str | None = None
    jumlah_pompa: int | None = 0
    jumlah_nozzle: int | None = 0
    nomor_surat: str | None = None
    tanggal_surat: date | None = None


class PengajuanCreate(PengajuanBase):
    """Form input. The storage key and status are added at insert time."""

    jenis_uttp: JenisUttp
    jumlah_pompa: int = Field(default=0, ge=0)
    jumlah_nozzle: int = Field(default=0, ge=0)

    @field_validator("nama_perusahaan", "alamat_uttp")
    @classmethod
    def _require_text(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("must not be empty")
        return cleaned

    @field_validator(
        "alamat_perusahaan",
        "kecamatan",
        "no_contact",
        "nomor_spbu",
        "nomor_surat",
        "tanggal_surat",
        mode="before",
    )
    @classmethod
    def _optional_text(cls, value: Any) -> Any:
        value = _blank_to_none(value)
        return value.strip() if isinstance(value, str) else value

    @field_validator("jumlah_pompa", "jumlah_nozzle", mode="before")
    @classmethod
    def _blank_count_is_zero(cls, value: Any) -> Any:
        return 0 if _blank_to_none(value) is None else value

    @field_validator("kecamatan")
    @classmethod
    def _validate_kecamatan(cls, value: str | None) -> str | None:
        if value is not None and value not in KECAMATAN_LIST:
            raise ValueError(f"unknown kecamatan: {value}")
        return value

    @field_validator("nomor_spbu")
    @classmethod
    def _validate_nomor_spbu(cls, value: str | None) -> str | None:
        if value is not None and value not in SPBU_LIST:
            raise ValueError(f"unknown nomor SPBU: {value}")
        return value

    def to_insert_payload(self, file_surat_url: str | None) -> dict[str, Any]:
        payload = self.model_dump(mode="json")
        payload["file_surat_url"] = file_surat_url
        payload["status"] = StatusPengajuan.PENDING.value
        return payload


class Pengajuan(PengajuanBase):
    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: int
    file_surat_url: str | None = None
    status: StatusPengajuan
    created_at: datetime
