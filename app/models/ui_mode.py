# app/models/ui_mode.py — Admin listing panel state

from dataclasses import dataclass
from typing import Union

from app.models.pengajuan import Pengajuan, StatusPengajuan


@dataclass(frozen=True)
class Closed:
    pass


@dataclass(frozen=True)
class Detail:
    pengajuan: Pengajuan


@dataclass(frozen=True)
class UpdateStatus:
    pengajuan: Pengajuan
    pending_status: StatusPengajuan


UiMode = Union[Closed, Detail, UpdateStatus]

MODE_DETAIL = "detail"
MODE_STATUS = "status"
