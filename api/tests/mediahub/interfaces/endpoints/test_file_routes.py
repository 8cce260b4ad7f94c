from fastapi.testclient import TestClient


def _upload(client: TestClient, name: str, data: bytes, mime_type: str, folder_id=None) -> dict:
    form = {"folder_id": folder_id} if folder_id else {}
    response = client.post("/api/files", files={"file": (name, data, mime_type)}, data=form)
    assert response.status_code == 200, response.text
    return response.json()["data"]


def test_upload_records_file_and_dimensions(client: TestClient, file_storage, make_image) -> None:
    folder = client.post("/api/folders", json={"name": "photos"}).json()["data"]

    file = _upload(client, "Cover.PNG", make_image(120, 80), "image/png", folder["id"])

    assert file["folder_id"] == folder["id"]
    assert file["uploader_id"] == "user-1"
    assert file["dimensions"] == {"width": 120, "height": 80}
    assert file["processing_status"] == "pending"
    assert file["key"].endswith(".png")
    assert file["key"] in file_storage.objects


def test_upload_rejects_unsupported_type(client: TestClient) -> None:
    response = client.post(
        "/api/files", files={"file": ("run.sh", b"#!/bin/sh", "application/x-sh")}
    )

    assert response.status_code == 422


def test_list_files_paginates(client: TestClient) -> None:
    for index in range(3):
        _upload(client, f"doc{index}.pdf", f"pdf-{index}".encode(), "application/pdf")

    response = client.get(
        "/api/files", params={"limit": 2, "sort_field": "name", "sort_order": "asc"}
    )
    body = response.json()

    assert response.status_code == 200
    assert body["success"] is True
    assert [file["original_name"] for file in body["data"]] == ["doc0.pdf", "doc1.pdf"]
    assert body["pagination"]["total"] == 3
    assert body["pagination"]["has_next"] is True


def test_list_files_failure_is_structured(client: TestClient) -> None:
    response = client.get("/api/files", params={"page": 0})
    body = response.json()

    assert response.status_code == 422
    assert body["success"] is False
    assert body["error"] == "validation_error"
    assert body["data"] == []


def test_list_files_unknown_folder(client: TestClient) -> None:
    response = client.get("/api/files", params={"folder_id": "missing"})

    assert response.status_code == 404
    assert response.json()["error"] == "not_found"


def test_update_reassign_and_status(client: TestClient) -> None:
    file = _upload(client, "a.pdf", b"pdf", "application/pdf")
    folder = client.post("/api/folders", json={"name": "docs"}).json()["data"]

    updated = client.patch(
        f"/api/files/{file['id']}", json={"alt": "contract", "tags": ["legal", "legal"]}
    ).json()["data"]
    moved = client.post(
        f"/api/files/{file['id']}/folder", json={"folder_id": folder["id"]}
    ).json()["data"]
    status = client.post(f"/api/files/{file['id']}/status", json={"status": "ready"}).json()["data"]

    assert updated["alt"] == "contract"
    assert updated["tags"] == ["legal"]
    assert moved["folder_id"] == folder["id"]
    assert status["processing_status"] == "ready"


def test_download_and_delete(client: TestClient, file_storage) -> None:
    file = _upload(client, "报告.pdf", b"report-bytes", "application/pdf")

    download = client.get(f"/api/files/{file['id']}/download")
    deleted = client.delete(f"/api/files/{file['id']}")
    missing = client.get(f"/api/files/{file['id']}")

    assert download.content == b"report-bytes"
    assert "filename*=utf-8''" in download.headers["content-disposition"]
    assert deleted.status_code == 200
    assert file["key"] in file_storage.deleted
    assert missing.status_code == 404


def test_stats(client: TestClient, make_image) -> None:
    _upload(client, "a.pdf", b"x" * 1024, "application/pdf")
    _upload(client, "b.png", make_image(), "image/png")

    data = client.get("/api/files/stats").json()["data"]

    assert data["total_files"] == 2
    assert data["file_types"] == {"application": 1, "image": 1}
    assert data["total_size_display"].endswith("KB")


def test_thumbnail_and_variants(client: TestClient, file_storage, make_image) -> None:
    file = _upload(client, "hero.png", make_image(1200, 800), "image/png")

    thumbnail = client.post(f"/api/files/{file['id']}/thumbnail").json()["data"]
    variants = client.post(
        f"/api/files/{file['id']}/variants",
        json={"sizes": [{"width": 320, "height": 240}, {"width": 640}]},
    ).json()["data"]

    assert thumbnail["key"] == "300x200"
    assert (thumbnail["width"], thumbnail["height"]) == (300, 200)
    assert client.get(f"/api/files/{file['id']}").json()["data"]["processing_status"] == "ready"
    assert [item["key"] for item in variants["variants"]] == ["320x240", "640w"]
    assert variants["failed"] == []
    assert any(name.startswith(f"variants/{file['id']}/") for name in file_storage.objects)


def test_thumbnail_rejects_non_image(client: TestClient) -> None:
    file = _upload(client, "a.pdf", b"pdf", "application/pdf")

    response = client.post(f"/api/files/{file['id']}/thumbnail")

    assert response.status_code == 422
