# app/routers/pages.py — Server-rendered submission form and admin listing

from datetime import date, datetime
from pathlib import Path
from typing import Any
from urllib.parse import quote, urlencode
from zoneinfo import ZoneInfo

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse, RedirectResponse, Response
from fastapi.templating import Jinja2Templates

from app.config import get_settings
from app.models.pengajuan import KECAMATAN_LIST, SPBU_LIST, JenisUttp, StatusPengajuan
from app.models.ui_mode import MODE_DETAIL, MODE_STATUS, Closed, Detail, UiMode, UpdateStatus
from app.services import notifications
from app.services.notifications import NoticeCode, Toast, toast_for_notice
from app.services.pengajuan_form import (
    FORM_FIELDS,
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
    PengajuanSnapshot,
    StatusUpdateError,
    download_filename,
    fetch_file_surat,
    get_file_public_url,
    load_snapshot,
    resolve_ui_mode,
    update_status,
)

FORM_PATH = "/pengajuan-tera"
ADMIN_PATH = "/admin/perpanjang"

router = APIRouter()

templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent.parent / "templates"))


def format_tanggal(value: Any) -> str:
    """d/m/yyyy, the id-ID short date format, in the display timezone."""
    if value in (None, ""):
        return "N/A"
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value)
        except ValueError:
            return value
    if isinstance(value, datetime) and value.tzinfo is not None:
        value = value.astimezone(ZoneInfo(get_settings().display_timezone))
    if isinstance(value, (date, datetime)):
        return f"{value.day}/{value.month}/{value.year}"
    return str(value)


def or_na(value: Any) -> Any:
    return "N/A" if value in (None, "") else value


templates.env.filters["tanggal"] = format_tanggal
templates.env.filters["na"] = or_na


def _admin_url(**params: Any) -> str:
    query = urlencode({key: value for key, value in params.items() if value not in (None, "")})
    return f"{ADMIN_PATH}?{query}" if query else ADMIN_PATH


def _render_form(request: Request, values: dict[str, str], toast: Toast | None, status_code: int = 200):
    return templates.TemplateResponse(
        request,
        "form.html",
        {
            "values": values,
            "toasts": [toast] if toast else [],
            "kecamatan_list": KECAMATAN_LIST,
            "spbu_list": SPBU_LIST,
            "jenis_uttp_list": [jenis.value for jenis in JenisUttp],
            "max_bytes": get_settings().max_file_surat_bytes,
            "form_path": FORM_PATH,
        },
        status_code=status_code,
    )


def _panel_context(ui_mode: UiMode) -> dict[str, Any]:
    if isinstance(ui_mode, Detail):
        return {"panel": MODE_DETAIL, "selected": ui_mode.pengajuan, "pending_status": None}
    if isinstance(ui_mode, UpdateStatus):
        return {"panel": MODE_STATUS, "selected": ui_mode.pengajuan, "pending_status": ui_mode.pending_status}
    if isinstance(ui_mode, Closed):
        return {"panel": None, "selected": None, "pending_status": None}
    raise TypeError(f"Unhandled UI mode: {ui_mode!r}")


@router.get("/")
async def index():
    return RedirectResponse(FORM_PATH, status_code=303)


@router.get(FORM_PATH, response_class=HTMLResponse)
async def form_page(request: Request):
    return _render_form(request, values={}, toast=None)


@router.post(FORM_PATH, response_class=HTMLResponse)
async def submit_form(request: Request):
    settings = get_settings()
    form = await request.form()
    values: dict[str, str] = {}
    for name in FORM_FIELDS:
        value = form.get(name)
        if isinstance(value, str):
            values[name] = value

    try:
        payload = parse_pengajuan_form(form)
        file_surat = await read_file_surat(form.get("fileSurat"), max_bytes=settings.max_file_surat_bytes)
    except (PengajuanFormError, FileSuratError) as exc:
        return _render_form(request, values, Toast.error(exc.message), status_code=400)

    try:
        submit_pengajuan(payload, file_surat)
    except PengajuanSubmitError as exc:
        return _render_form(request, values, notifications.submit_failed(exc.detail), status_code=502)

    redirect_to = f"{settings.admin_redirect_path}?{urlencode({'notice': NoticeCode.SUBMITTED.value})}"
    return RedirectResponse(redirect_to, status_code=303)


@router.get(ADMIN_PATH, response_class=HTMLResponse)
async def admin_page(
    request: Request,
    q: str = "",
    mode: str | None = None,
    id: int | None = None,
    new_status: str | None = None,
    notice: str | None = None,
    status: str | None = None,
):
    toasts: list[Toast] = []
    notice_toast = toast_for_notice(notice, status)
    if notice_toast:
        toasts.append(notice_toast)

    try:
        snapshot = load_snapshot()
    except PengajuanLoadError:
        snapshot = PengajuanSnapshot(records=())
        toasts.append(Toast.error(notifications.MSG_LOAD_FAILED))

    context = {
        "q": q,
        # every record is rendered so the in-page filter can widen back past q
        "items": snapshot.records,
        "visible_ids": {item.id for item in snapshot.search(q)},
        "counts": snapshot.status_counts(),
        "total": snapshot.total,
        "statuses": list(StatusPengajuan),
        "toasts": toasts,
        "admin_path": ADMIN_PATH,
        "form_path": FORM_PATH,
    }
    context.update(_panel_context(resolve_ui_mode(snapshot, mode, id, new_status)))
    return templates.TemplateResponse(request, "admin.html", context)


@router.post(ADMIN_PATH + "/{pengajuan_id}/status")
async def submit_status(request: Request, pengajuan_id: int):
    form = await request.form()
    q = form.get("q") if isinstance(form.get("q"), str) else ""
    try:
        status = StatusPengajuan(form.get("status"))
    except ValueError:
        return RedirectResponse(
            _admin_url(q=q, mode=MODE_STATUS, id=pengajuan_id, notice=NoticeCode.STATUS_UPDATE_FAILED.value),
            status_code=303,
        )

    try:
        update_status(pengajuan_id, status)
    except StatusUpdateError:
        return RedirectResponse(
            _admin_url(q=q, mode=MODE_STATUS, id=pengajuan_id, notice=NoticeCode.STATUS_UPDATE_FAILED.value),
            status_code=303,
        )
    return RedirectResponse(
        _admin_url(q=q, notice=NoticeCode.STATUS_UPDATED.value, status=status.value),
        status_code=303,
    )


def _load_file_key(pengajuan_id: int) -> tuple[str, str]:
    try:
        pengajuan = load_snapshot().find(pengajuan_id)
    except PengajuanLoadError as exc:
        raise FileSuratUnavailableError(str(exc)) from exc
    if pengajuan is None:
        raise FileSuratUnavailableError(f"pengajuan {pengajuan_id} not found")
    return get_file_public_url(pengajuan.file_surat_url), pengajuan.nama_perusahaan


@router.get(ADMIN_PATH + "/{pengajuan_id}/file")
async def open_file(pengajuan_id: int):
    try:
        url, _ = _load_file_key(pengajuan_id)
    except FileSuratUnavailableError:
        return RedirectResponse(
            _admin_url(mode=MODE_DETAIL, id=pengajuan_id, notice=NoticeCode.FILE_NOT_ACCESSIBLE.value),
            status_code=303,
        )
    return RedirectResponse(url, status_code=303)


@router.get(ADMIN_PATH + "/{pengajuan_id}/file/download")
async def download_file(pengajuan_id: int):
    try:
        url, nama_perusahaan = _load_file_key(pengajuan_id)
        content, content_type = await fetch_file_surat(url)
    except FileSuratUnavailableError:
        return RedirectResponse(
            _admin_url(mode=MODE_DETAIL, id=pengajuan_id, notice=NoticeCode.FILE_NOT_DOWNLOADABLE.value),
            status_code=303,
        )

    filename = download_filename(nama_perusahaan)
    ascii_name = filename.encode("ascii", "ignore").decode("ascii") or "surat.pdf"
    disposition = f"attachment; filename=\"{ascii_name}\"; filename*=UTF-8''{quote(filename)}"
    return Response(content=content, media_type=content_type, headers={"Content-Disposition": disposition})
