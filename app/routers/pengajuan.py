# app/routers/pengajuan.py — JSON endpoints for submissions and admin review

from fastapi import APIRouter, Request
from pydantic import BaseModel

from app.config import get_settings
from app.models.pengajuan import KECAMATAN_LIST, SPBU_LIST, JenisUttp, StatusPengajuan
from app.routers._responses import DataEnvelope, ErrorEnvelope, error_response
from app.services import notifications
from app.services.notifications import Toast
from app.services.pengajuan_form import (
    FileSuratError,
    PengajuanFormError,
    PengajuanSubmitError,
    parse_pengajuan_form,
    read_file_surat,
    submit_pengajuan,
)
from app.services.pengajuan_listing import (
    FileSuratUnavailableError,
    PengajuanLoadError,
    StatusUpdateError,
    get_file_public_url,
    load_snapshot,
    update_status,
)

router = APIRouter()


class PengajuanListRequest(BaseModel):
    search: str = ""


class PengajuanGetRequest(BaseModel):
    id: int


class PengajuanUpdateStatusRequest(BaseModel):
    id: int
    status: StatusPengajuan


class PengajuanOptionsRequest(BaseModel):
    pass


@router.post(
    "/create",
    response_model=DataEnvelope,
    responses={400: {"model": ErrorEnvelope}, 413: {"model": ErrorEnvelope}, 502: {"model": ErrorEnvelope}},
)
async def create_pengajuan(request: Request):
    """
    Multipart submission: camelCase form fields plus `fileSurat`.
    The file is validated before anything is sent to storage.
    """
    settings = get_settings()
    form = await request.form()
    try:
        payload = parse_pengajuan_form(form)
        file_surat = await read_file_surat(
            form.get("fileSurat"),
            max_bytes=settings.max_file_surat_bytes,
        )
    except PengajuanFormError as exc:
        return error_response(exc.message, 400)
    except FileSuratError as exc:
        status_code = 413 if exc.message == notifications.MSG_FILE_TOO_LARGE else 400
        return error_response(exc.message, status_code)

    try:
        created = submit_pengajuan(payload, file_surat)
    except PengajuanSubmitError as exc:
        return error_response(notifications.submit_failed(exc.detail).message, 502)

    return DataEnvelope(
        data=created.model_dump(mode="json"),
        toast=Toast.success(notifications.MSG_SUBMIT_SUCCESS),
    )


@router.post("/list", response_model=DataEnvelope, responses={502: {"model": ErrorEnvelope}})
async def list_pengajuan(payload: PengajuanListRequest):
    try:
        snapshot = load_snapshot()
    except PengajuanLoadError:
        return error_response(notifications.MSG_LOAD_FAILED, 502)

    items = snapshot.search(payload.search)
    counts = snapshot.status_counts()
    return DataEnvelope(
        data={
            "items": [item.model_dump(mode="json") for item in items],
            "counts": {status.value: count for status, count in counts.items()},
            "total": snapshot.total,
        }
    )


@router.post(
    "/get",
    response_model=DataEnvelope,
    responses={404: {"model": ErrorEnvelope}, 502: {"model": ErrorEnvelope}},
)
async def get_pengajuan(payload: PengajuanGetRequest):
    try:
        snapshot = load_snapshot()
    except PengajuanLoadError:
        return error_response(notifications.MSG_LOAD_FAILED, 502)

    pengajuan = snapshot.find(payload.id)
    if pengajuan is None:
        return error_response(notifications.MSG_NOT_FOUND, 404)
    return DataEnvelope(data=pengajuan.model_dump(mode="json"))


@router.post("/update-status", response_model=DataEnvelope, responses={502: {"model": ErrorEnvelope}})
async def update_pengajuan_status(payload: PengajuanUpdateStatusRequest):
    try:
        update_status(payload.id, payload.status)
    except StatusUpdateError:
        return error_response(notifications.MSG_STATUS_UPDATE_FAILED, 502)
    return DataEnvelope(
        data={"id": payload.id, "status": payload.status.value},
        toast=notifications.status_updated(payload.status),
    )


@router.post(
    "/file-url",
    response_model=DataEnvelope,
    responses={404: {"model": ErrorEnvelope}, 502: {"model": ErrorEnvelope}},
)
async def get_pengajuan_file_url(payload: PengajuanGetRequest):
    try:
        snapshot = load_snapshot()
    except PengajuanLoadError:
        return error_response(notifications.MSG_LOAD_FAILED, 502)

    pengajuan = snapshot.find(payload.id)
    if pengajuan is None:
        return error_response(notifications.MSG_NOT_FOUND, 404)
    try:
        url = get_file_public_url(pengajuan.file_surat_url)
    except FileSuratUnavailableError:
        return error_response(notifications.MSG_FILE_NOT_ACCESSIBLE, 404)
    return DataEnvelope(data={"id": pengajuan.id, "url": url})


@router.post("/options", response_model=DataEnvelope)
async def get_pengajuan_options(_: PengajuanOptionsRequest):
    return DataEnvelope(
        data={
            "kecamatan": list(KECAMATAN_LIST),
            "nomor_spbu": list(SPBU_LIST),
            "jenis_uttp": [jenis.value for jenis in JenisUttp],
            "status": [{"value": status.value, "label": status.label} for status in StatusPengajuan],
        }
    )
