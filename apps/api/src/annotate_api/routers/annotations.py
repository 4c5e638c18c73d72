from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Query, Request, Response
from pydantic import ValidationError

from annotate_api.core.annotations.edits import coerce_field_edits
from annotate_api.core.annotations.model import Annotation
from annotate_api.core.errors import APIError
from annotate_api.core.request_context import get_request_id
from annotate_api.schemas.annotations import (
    AnnotationListResponse,
    MoveToPageRequest,
    RotateRequest,
    SelectionRequest,
    SelectionResponse,
)
from annotate_api.services.sessions import EditingSession, get_session

router = APIRouter(prefix="/v1/documents/{doc_id}", tags=["annotations"])
logger = logging.getLogger("annotate_api.annotations")


def _invalid_payload(exc: ValidationError) -> APIError:
    return APIError(
        status_code=400,
        code="invalid_annotation_payload",
        message="Invalid annotation payload",
        details={"errors": exc.errors(include_url=False, include_context=False)},
    )


def _check_page(session: EditingSession, page: Any) -> None:
    if isinstance(page, int) and page > session.page_count:
        raise APIError(
            status_code=400,
            code="page_out_of_range",
            message="Page does not exist",
            details={"page": page, "page_count": session.page_count},
        )


def _update(session: EditingSession, annotation_id: str, changes: dict[str, Any]):
    try:
        return session.store.update(annotation_id, changes)
    except ValidationError as exc:
        raise _invalid_payload(exc) from exc
    except ValueError as exc:
        raise APIError(
            status_code=400,
            code="immutable_field",
            message=str(exc),
            details={"annotation_id": annotation_id},
        ) from exc


@router.get("/annotations", response_model=AnnotationListResponse)
def list_annotations(doc_id: str, page: int | None = Query(default=None, ge=1)) -> AnnotationListResponse:
    session = get_session(doc_id)
    records = session.store.all() if page is None else session.store.query_by_page(page)
    return AnnotationListResponse(
        doc_id=doc_id,
        page=page,
        annotations=records,
        selected_id=session.store.selected_id,
    )


@router.post("/annotations", response_model=Annotation, status_code=201)
async def create_annotation(doc_id: str, payload: dict, request: Request):
    session = get_session(doc_id)
    _check_page(session, payload.get("page"))
    try:
        record = session.store.add(payload)
    except ValidationError as exc:
        raise _invalid_payload(exc) from exc
    logger.info(
        "annotation created request_id=%s doc_id=%s annotation_id=%s type=%s page=%s",
        get_request_id(request),
        doc_id,
        record.id,
        record.type,
        record.page,
    )
    return record


@router.get("/annotations/{annotation_id}", response_model=Annotation)
def get_annotation(doc_id: str, annotation_id: str):
    return get_session(doc_id).store.get(annotation_id)


@router.patch("/annotations/{annotation_id}", response_model=Annotation)
async def edit_annotation(doc_id: str, annotation_id: str, payload: dict):
    session = get_session(doc_id)
    record = session.store.get(annotation_id)
    _check_page(session, payload.get("page"))
    changes = coerce_field_edits(record.type, payload)
    return _update(session, annotation_id, changes)


@router.delete("/annotations/{annotation_id}", status_code=204)
async def delete_annotation(doc_id: str, annotation_id: str) -> Response:
    session = get_session(doc_id)
    session.store.remove(annotation_id)
    logger.info("annotation deleted doc_id=%s annotation_id=%s", doc_id, annotation_id)
    return Response(status_code=204)


@router.post("/annotations/{annotation_id}/move", response_model=Annotation)
async def move_annotation(doc_id: str, annotation_id: str, body: MoveToPageRequest):
    session = get_session(doc_id)
    _check_page(session, body.page)
    session.store.get(annotation_id)
    return _update(session, annotation_id, {"page": body.page})


@router.get("/selection", response_model=SelectionResponse)
def get_selection(doc_id: str) -> SelectionResponse:
    store = get_session(doc_id).store
    return SelectionResponse(annotation_id=store.selected_id, annotation=store.selected())


@router.put("/selection", response_model=SelectionResponse)
async def set_selection(doc_id: str, body: SelectionRequest) -> SelectionResponse:
    store = get_session(doc_id).store
    store.select(body.annotation_id)
    return SelectionResponse(annotation_id=store.selected_id, annotation=store.selected())


@router.post("/selection/rotate", response_model=SelectionResponse)
async def rotate_selection(doc_id: str, body: RotateRequest) -> SelectionResponse:
    session = get_session(doc_id)
    if session.machine.rotate_selected(body.direction) is None:
        raise APIError(
            status_code=409,
            code="nothing_selected",
            message="No annotation is selected",
            details={"doc_id": doc_id},
        )
    store = session.store
    return SelectionResponse(annotation_id=store.selected_id, annotation=store.selected())
