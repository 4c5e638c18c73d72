from __future__ import annotations

import os
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from annotate_api.main import app
from annotate_api.services.sessions import reset_sessions
from annotate_api.settings import get_settings
from tests.pdf_factory import make_pages_pdf_bytes


@pytest.fixture()
def client(tmp_path: Path) -> TestClient:
    os.environ["ANNOTATE_STORAGE_LOCAL_DIR"] = str(tmp_path / ".data")
    get_settings.cache_clear()
    reset_sessions()
    return TestClient(app)


@pytest.fixture()
def upload_pdf(client: TestClient):
    def _upload(page_count: int = 2, filename: str = "plan.pdf"):
        return client.post(
            "/v1/documents/upload",
            files={"file": (filename, make_pages_pdf_bytes(page_count), "application/pdf")},
        )

    return _upload


@pytest.fixture()
def doc_id(upload_pdf) -> str:
    response = upload_pdf()
    assert response.status_code == 200
    return response.json()["document"]["doc_id"]
