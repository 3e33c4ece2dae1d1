import pytest

from fastapi import HTTPException
from creditos.services.expediente_service import (
    ExpedienteService,
    format_file_size,
    storage_key_from_url,
)


@pytest.mark.parametrize(
    "size,expected",
    [(512, "512 B"), (1536, "1.50 KB"), (2 * 1024 * 1024, "2.00 MB")],
)
def test_format_file_size(size, expected):
    assert format_file_size(size) == expected


def test_storage_key_from_url():
    url = "https://demo.supabase.co/storage/v1/object/public/expedientes/c1/1718400000000.pdf?download=1"
    assert storage_key_from_url(url) == "c1/1718400000000.pdf"


def test_upload_archivo(client, gateway, storage):
    resp = client.post(
        "/expedientes/c1",
        files={"file": ("dpi_frente.pdf", b"%PDF-1.4 contenido", "application/pdf")},
    )

    assert resp.status_code == 201
    data = resp.json()
    assert data["nombre_archivo"] == "dpi_frente.pdf"
    assert data["size_legible"] == "18 B"

    (key,) = storage.objects
    assert key.startswith("c1/") and key.endswith(".pdf")
    row = gateway.inserted("expediente_archivos")[0][0]
    assert row["url"].endswith(key)
    assert row["tipo_archivo"] == "application/pdf"


@pytest.mark.asyncio
async def test_upload_rejects_oversized_file(gateway, storage):
    service = ExpedienteService(gateway, storage, max_size=1024 * 1024)

    with pytest.raises(HTTPException) as exc_info:
        await service.upload_archivo("c1", "foto.jpg", "image/jpeg", b"x" * (1024 * 1024 + 1))

    assert exc_info.value.status_code == 400
    assert exc_info.value.detail == "El archivo no puede superar los 1MB"
    assert storage.objects == {}
    assert gateway.inserts == []


def test_upload_rejects_empty_file(client, storage):
    resp = client.post("/expedientes/c1", files={"file": ("vacio.txt", b"", "text/plain")})
    assert resp.status_code == 400
    assert storage.objects == {}


def test_upload_storage_failure(client, gateway, storage):
    storage.fail_upload = True
    resp = client.post("/expedientes/c1", files={"file": ("dpi.pdf", b"data", "application/pdf")})
    assert resp.status_code == 502
    assert gateway.inserts == []


def test_list_archivos(client, gateway):
    gateway.seed("expediente_archivos", [
        {"id": "a1", "cliente_id": "c1", "nombre_archivo": "dpi.pdf", "tipo_archivo": "application/pdf",
         "url": "https://demo.supabase.co/storage/v1/object/public/expedientes/c1/1.pdf", "size": 2048},
        {"id": "a2", "cliente_id": "c2", "nombre_archivo": "otro.pdf", "tipo_archivo": "application/pdf",
         "url": "https://demo.supabase.co/storage/v1/object/public/expedientes/c2/2.pdf", "size": 10},
    ])
    data = client.get("/expedientes/c1").json()
    assert [(a["id"], a["size_legible"]) for a in data] == [("a1", "2.00 KB")]


def test_delete_archivo_removes_row_and_blob(client, gateway, storage):
    storage.objects["c1/1.pdf"] = (b"data", "application/pdf")
    gateway.seed("expediente_archivos", [{
        "id": "a1", "cliente_id": "c1",
        "url": "https://demo.supabase.co/storage/v1/object/public/expedientes/c1/1.pdf",
    }])

    assert client.delete("/expedientes/archivos/a1").status_code == 204
    assert gateway.deletes == [("expediente_archivos", "a1")]
    assert storage.removed == ["c1/1.pdf"]


def test_delete_archivo_tolerates_storage_failure(client, gateway, storage):
    storage.fail_remove = True
    gateway.seed("expediente_archivos", [{
        "id": "a1", "cliente_id": "c1",
        "url": "https://demo.supabase.co/storage/v1/object/public/expedientes/c1/1.pdf",
    }])

    assert client.delete("/expedientes/archivos/a1").status_code == 204
    assert gateway.tables["expediente_archivos"] == []


def test_delete_missing_archivo(client):
    assert client.delete("/expedientes/archivos/a9").status_code == 404


@pytest.mark.asyncio
async def test_storage_error_is_not_raised_on_delete(gateway, storage):
    storage.fail_remove = True
    gateway.seed("expediente_archivos", [{"id": "a1", "url": "https://x/expedientes/c1/1.pdf"}])
    service = ExpedienteService(gateway, storage)

    await service.delete_archivo("a1")

    assert gateway.tables["expediente_archivos"] == []
    assert storage.removed == []
