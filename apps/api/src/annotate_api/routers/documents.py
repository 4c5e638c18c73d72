from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from io import BytesIO
from uuid import uuid4

from fastapi import APIRouter, File, Query, UploadFile
from fastapi.responses import Response, StreamingResponse

from annotate_api.core.errors import APIError
from annotate_api.core.interaction.view import MAX_ZOOM, MIN_ZOOM
from annotate_api.schemas.api import DocumentMeta, UploadResponse
from annotate_api.services.sessions import get_session, open_session
from annotate_api.services.storage import document_key, get_storage, meta_key
from annotate_api.settings import get_settings

router = APIRouter(prefix="/v1/documents", tags=["documents"])
logger = logging.getLogger("annotate_api.documents")

_PDF_CONTENT_TYPES = {"application/pdf", "application/x-pdf"}


def _document_not_found(doc_id: str) -> APIError:
    return APIError(
        status_code=404,
        code="document_not_found",
        message="Document not found",
        details={"doc_id": doc_id},
    )


def load_meta(doc_id: str) -> DocumentMeta:
    storage = get_storage()
    key = meta_key(doc_id)
    if not storage.exists(key):
        raise _document_not_found(doc_id)
    payload = json.loads(storage.get_bytes(key).decode("utf-8"))
    return DocumentMeta(**payload)


def load_pdf_bytes(doc_id: str) -> bytes:
    storage = get_storage()
    key = document_key(doc_id)
    if not storage.exists(key):
        raise _document_not_found(doc_id)
    return storage.get_bytes(key)


@router.post("/upload", response_model=UploadResponse)
async def upload_document(file: UploadFile = File(...)) -> UploadResponse:
    if file.content_type not in _PDF_CONTENT_TYPES:
        raise APIError(
            status_code=400,
            code="unsupported_media_type",
            message="Only PDF files are supported",
            details={"content_type": file.content_type},
        )
    content = await file.read()
    settings = get_settings()
    max_bytes = settings.ANNOTATE_MAX_UPLOAD_MB * 1024 * 1024
    if len(content) > max_bytes:
        raise APIError(
            status_code=413,
            code="upload_too_large",
            message="File exceeds upload limit",
            details={"max_mb": settings.ANNOTATE_MAX_UPLOAD_MB},
        )

    doc_id = str(uuid4())
    # Loading first keeps a broken upload from touching storage.
    session = open_session(doc_id, content)
    storage = get_storage()
    storage.put_bytes(document_key(doc_id), content, content_type=file.content_type)
    meta = DocumentMeta(
        doc_id=doc_id,
        filename=file.filename or "uploaded.pdf",
        size_bytes=len(content),
        page_count=session.page_count,
        created_at_iso=datetime.now(timezone.utc),
    )
    storage.put_bytes(meta_key(doc_id), meta.model_dump_json().encode("utf-8"))
    logger.info("document uploaded doc_id=%s pages=%s size=%s", doc_id, session.page_count, len(content))
    return UploadResponse(document=meta)


@router.get("/{doc_id}", response_model=DocumentMeta)
def get_document(doc_id: str) -> DocumentMeta:
    return load_meta(doc_id)


@router.post("/{doc_id}/reopen", response_model=DocumentMeta)
async def reopen_document(doc_id: str) -> DocumentMeta:
    meta = load_meta(doc_id)
    open_session(doc_id, load_pdf_bytes(doc_id))
    return meta


@router.get("/{doc_id}/download")
def download_document(doc_id: str) -> Response:
    meta = load_meta(doc_id)
    pdf_bytes = load_pdf_bytes(doc_id)
    return StreamingResponse(
        BytesIO(pdf_bytes),
        media_type="application/pdf",
        headers={"Content-Disposition": f'inline; filename="{meta.filename}"'},
    )


@router.get("/{doc_id}/pages/{page}/render")
async def render_document_page(
    doc_id: str,
    page: int,
    zoom: float | None = Query(default=None, ge=MIN_ZOOM, le=MAX_ZOOM),
    left: float = Query(default=0.0),
    top: float = Query(default=0.0),
) -> Response:
    session = get_session(doc_id)
    pdf_bytes = load_pdf_bytes(doc_id)
    effective_zoom = session.view.zoom if zoom is None else zoom
    rendered = session.render(pdf_bytes, page, effective_zoom, origin=(left, top))
    current = session.view.surface is not None and page == session.view.page and effective_zoom == session.view.zoom
    return Response(
        content=rendered.png,
        media_type="image/png",
        headers={
            "X-Surface-Width": str(rendered.width_px),
            "X-Surface-Height": str(rendered.height_px),
            "X-Surface-Current": "true" if current else "false",
        },
    )
