from __future__ import annotations

from fastapi.testclient import TestClient

from tests.pdf_factory import make_empty_pdf_bytes, make_pages_pdf_bytes


def test_document_upload_and_download(client: TestClient) -> None:
    pdf_bytes = make_pages_pdf_bytes(2)
    files = {"file": ("plan.pdf", pdf_bytes, "application/pdf")}
    response = client.post("/v1/documents/upload", files=files)
    assert response.status_code == 200
    payload = response.json()
    assert "document" in payload
    doc_id = payload["document"]["doc_id"]
    assert payload["document"]["page_count"] == 2

    meta_response = client.get(f"/v1/documents/{doc_id}")
    assert meta_response.status_code == 200
    meta = meta_response.json()
    assert meta["doc_id"] == doc_id
    assert meta["filename"] == "plan.pdf"
    assert meta["size_bytes"] == len(pdf_bytes)

    download_response = client.get(f"/v1/documents/{doc_id}/download")
    assert download_response.status_code == 200
    assert download_response.content == pdf_bytes
    assert download_response.headers["content-type"].startswith("application/pdf")
    assert "inline" in download_response.headers.get("content-disposition", "")


def test_upload_rejects_non_pdf(client: TestClient) -> None:
    files = {"file": ("notes.txt", b"hello", "text/plain")}
    response = client.post("/v1/documents/upload", files=files)
    assert response.status_code == 400
    assert response.json()["error"] == "unsupported_media_type"


def test_unreadable_pdf_reports_load_failure(client: TestClient) -> None:
    for content in (b"not a pdf at all", b"", make_empty_pdf_bytes()):
        files = {"file": ("broken.pdf", content, "application/pdf")}
        response = client.post("/v1/documents/upload", files=files)
        assert response.status_code == 422
        body = response.json()
        assert body["error"] == "document_load_failed"
        assert body["request_id"]


def test_unknown_document(client: TestClient) -> None:
    response = client.get("/v1/documents/missing")
    assert response.status_code == 404
    assert response.json()["error"] == "document_not_found"
    assert client.get("/v1/documents/missing/annotations").status_code == 404


def test_render_reports_surface_size(client: TestClient, doc_id: str) -> None:
    response = client.get(f"/v1/documents/{doc_id}/pages/1/render")
    assert response.status_code == 200
    assert response.headers["content-type"] == "image/png"
    assert response.content.startswith(b"\x89PNG")
    assert response.headers["x-surface-width"] == "612"
    assert response.headers["x-surface-height"] == "792"
    assert response.headers["x-surface-current"] == "true"

    view = client.get(f"/v1/documents/{doc_id}/view").json()
    assert view["surface"] == {"left": 0.0, "top": 0.0, "width": 612.0, "height": 792.0}

    zoomed = client.get(f"/v1/documents/{doc_id}/pages/1/render", params={"zoom": 2})
    assert zoomed.headers["x-surface-width"] == "1224"
    assert zoomed.headers["x-surface-current"] == "false"


def test_render_missing_page(client: TestClient, doc_id: str) -> None:
    response = client.get(f"/v1/documents/{doc_id}/pages/3/render")
    assert response.status_code == 404
    assert response.json()["error"] == "page_not_found"


def test_reopen_starts_with_empty_annotation_set(client: TestClient, doc_id: str) -> None:
    created = client.post(
        f"/v1/documents/{doc_id}/annotations",
        json={"type": "text", "page": 1, "x": 10, "y": 10},
    )
    assert created.status_code == 201

    reopened = client.post(f"/v1/documents/{doc_id}/reopen")
    assert reopened.status_code == 200
    listing = client.get(f"/v1/documents/{doc_id}/annotations").json()
    assert listing["annotations"] == []
    assert listing["selected_id"] is None
