from __future__ import annotations

import json

import pytest
from fastapi.testclient import TestClient

from app.main import app
from app.models.pengajuan import StatusPengajuan
from app.routers import pengajuan


@pytest.mark.asyncio
async def test_list_returns_items_counts_and_total(fake_supabase, row_factory):
    table = fake_supabase.pengajuan_tera
    table.add_row(row_factory(nama_perusahaan="PT Garut Energi", status="Approved"))
    table.add_row(row_factory(nama_perusahaan="CV Timbang", jenis_uttp="Lainnya", kecamatan="Cibatu"))

    response = await pengajuan.list_pengajuan(pengajuan.PengajuanListRequest(search="garut"))

    assert [item["nama_perusahaan"] for item in response.data["items"]] == ["PT Garut Energi"]
    assert response.data["total"] == 2
    assert response.data["counts"] == {"Pending": 1, "Processing": 0, "Approved": 1, "Rejected": 0}


@pytest.mark.asyncio
async def test_list_failure_returns_error_envelope(fake_supabase):
    fake_supabase.pengajuan_tera.fail_on = {"select"}

    response = await pengajuan.list_pengajuan(pengajuan.PengajuanListRequest())

    assert response.status_code == 502
    assert response.body == b'{"error":"Gagal memuat data permohonan"}'


@pytest.mark.asyncio
async def test_get_unknown_id_is_not_found(fake_supabase):
    response = await pengajuan.get_pengajuan(pengajuan.PengajuanGetRequest(id=42))

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_update_status_returns_toast(fake_supabase, row_factory):
    row = fake_supabase.pengajuan_tera.add_row(row_factory())

    response = await pengajuan.update_pengajuan_status(
        pengajuan.PengajuanUpdateStatusRequest(id=row["id"], status=StatusPengajuan.APPROVED)
    )

    assert response.data == {"id": row["id"], "status": "Approved"}
    assert response.toast.message == "Status berhasil diubah ke Approved"
    assert row["status"] == "Approved"


@pytest.mark.asyncio
async def test_update_status_failure_returns_fixed_message(fake_supabase):
    response = await pengajuan.update_pengajuan_status(
        pengajuan.PengajuanUpdateStatusRequest(id=7, status=StatusPengajuan.REJECTED)
    )

    assert response.status_code == 502
    assert json.loads(response.body) == {"error": "Gagal mengubah status"}


@pytest.mark.asyncio
async def test_file_url_without_key_is_not_accessible(fake_supabase, row_factory):
    row = fake_supabase.pengajuan_tera.add_row(row_factory(file_surat_url=None))

    response = await pengajuan.get_pengajuan_file_url(pengajuan.PengajuanGetRequest(id=row["id"]))

    assert response.status_code == 404
    assert json.loads(response.body) == {"error": "File tidak dapat diakses"}


@pytest.mark.asyncio
async def test_file_url_is_public_url(fake_supabase, row_factory):
    row = fake_supabase.pengajuan_tera.add_row(row_factory(file_surat_url="1_surat.pdf"))

    response = await pengajuan.get_pengajuan_file_url(pengajuan.PengajuanGetRequest(id=row["id"]))

    assert response.data["url"].endswith("/object/public/uploads/1_surat.pdf")


@pytest.mark.asyncio
async def test_options_lists_every_choice():
    response = await pengajuan.get_pengajuan_options(pengajuan.PengajuanOptionsRequest())

    assert len(response.data["kecamatan"]) == 35
    assert len(response.data["nomor_spbu"]) == 24
    assert response.data["status"][0] == {"value": "Pending", "label": "Menunggu"}


def test_create_via_multipart_is_pending(fake_supabase):
    client = TestClient(app)

    response = client.post(
        "/api/pengajuan/create",
        data={"namaPerusahaan": "PT Contoh", "jenisUttp": "Pompa Ukur BBM", "alamatUttp": "Jl. A"},
        files={"fileSurat": ("surat.pdf", b"%PDF-1.7", "application/pdf")},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["data"]["status"] == "Pending"
    assert body["data"]["file_surat_url"].endswith("_surat.pdf")
    assert body["toast"] == {"kind": "success", "message": "Data tera ulang berhasil disimpan!"}


def test_create_oversized_file_makes_no_backend_call(fake_supabase, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("MAX_FILE_SURAT_BYTES", "8")
    client = TestClient(app)

    response = client.post(
        "/api/pengajuan/create",
        data={"namaPerusahaan": "PT Contoh", "jenisUttp": "Pompa Ukur BBM", "alamatUttp": "Jl. A"},
        files={"fileSurat": ("surat.pdf", b"123456789", "application/pdf")},
    )

    assert response.status_code == 413
    assert response.json() == {"error": "Ukuran file maksimal 10 MB"}
    assert fake_supabase.uploads_bucket.uploads == []
    assert fake_supabase.pengajuan_tera.calls == []


def test_create_without_file_is_rejected(fake_supabase):
    client = TestClient(app)

    response = client.post(
        "/api/pengajuan/create",
        data={"namaPerusahaan": "PT Contoh", "jenisUttp": "Pompa Ukur BBM", "alamatUttp": "Jl. A"},
    )

    assert response.status_code == 400
    assert response.json() == {"error": "File surat permohonan wajib diunggah"}
    assert fake_supabase.pengajuan_tera.calls == []
