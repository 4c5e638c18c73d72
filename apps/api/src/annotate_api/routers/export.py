from __future__ import annotations

import json
import logging
from io import BytesIO
from pathlib import PurePath

from fastapi import APIRouter, Request
from fastapi.responses import Response, StreamingResponse

from annotate_api.core.request_context import get_request_id
from annotate_api.routers.documents import load_meta, load_pdf_bytes
from annotate_api.services.export_pdf import ExportIssue, ExportResult, export_annotated_pdf
from annotate_api.services.sessions import get_session

router = APIRouter(prefix="/v1", tags=["export"])
logger = logging.getLogger("annotate_api.export")


def annotated_filename(filename: str) -> str:
    stem = PurePath(filename).stem or "document"
    return f"{stem}_annotated.pdf"


def _issues_header(issues: list[ExportIssue]) -> str:
    return json.dumps(
        [{"annotation_id": issue.annotation_id, "page": issue.page, "code": issue.code} for issue in issues],
        separators=(",", ":"),
    )


def _build_response(result: ExportResult, disposition: str) -> Response:
    headers = {
        "Content-Disposition": disposition,
        "X-Annotate-Drawn": str(result.drawn),
    }
    if result.skipped:
        headers["X-Annotate-Skipped"] = _issues_header(result.skipped)
    if result.warnings:
        headers["X-Annotate-Warnings"] = _issues_header(result.warnings)
    return StreamingResponse(BytesIO(result.payload), media_type="application/pdf", headers=headers)


async def _export(doc_id: str, request: Request) -> tuple[ExportResult, str]:
    meta = load_meta(doc_id)
    session = get_session(doc_id)
    logger.info(
        "export requested request_id=%s doc_id=%s annotations=%s",
        get_request_id(request),
        doc_id,
        len(session.store),
    )
    result = await export_annotated_pdf(load_pdf_bytes(doc_id), session.store.all())
    return result, annotated_filename(meta.filename)


@router.post("/export/{doc_id}")
async def export_pdf(doc_id: str, request: Request) -> Response:
    result, filename = await _export(doc_id, request)
    return _build_response(result, f'inline; filename="{filename}"')


@router.get("/export/{doc_id}")
async def export_pdf_download(doc_id: str, request: Request) -> Response:
    result, filename = await _export(doc_id, request)
    return _build_response(result, f'attachment; filename="{filename}"')
