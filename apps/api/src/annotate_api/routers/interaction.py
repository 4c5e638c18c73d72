from __future__ import annotations

import logging

from fastapi import APIRouter

from annotate_api.core.errors import APIError
from annotate_api.core.interaction.hittest import PointerTarget, TargetKind
from annotate_api.core.interaction.listeners import PointerEvent
from annotate_api.core.interaction.machine import PlacementTool
from annotate_api.core.geometry.coords import SurfaceBox
from annotate_api.schemas.annotations import (
    PointerDownRequest,
    PointerRequest,
    PointerResponse,
    PointerTargetInput,
    SurfaceInput,
    ViewResponse,
    ViewUpdateRequest,
)
from annotate_api.services.sessions import EditingSession, get_session

router = APIRouter(prefix="/v1/documents/{doc_id}", tags=["interaction"])
logger = logging.getLogger("annotate_api.interaction")


def _view_response(session: EditingSession) -> ViewResponse:
    view = session.view
    surface = None
    if view.surface is not None:
        surface = SurfaceInput(
            left=view.surface.left,
            top=view.surface.top,
            width=view.surface.width,
            height=view.surface.height,
        )
    tool = session.machine.tool
    return ViewResponse(
        page=view.page,
        zoom=view.zoom,
        page_count=session.page_count,
        tool=tool.value if tool is not None else None,
        surface=surface,
        interaction_state=session.machine.state,
    )


def _explicit_target(body: PointerTargetInput) -> PointerTarget:
    box_size = None
    if body.box_width is not None and body.box_height is not None:
        box_size = (body.box_width, body.box_height)
    return PointerTarget(
        kind=body.kind,
        annotation_id=body.annotation_id,
        handle=body.handle,
        box_size=box_size,
    )


def _pointer_response(session: EditingSession, annotation_id: str | None, **extra) -> PointerResponse:
    return PointerResponse(
        state=session.machine.state,
        selected_id=session.store.selected_id,
        annotation=session.store.find(annotation_id),
        **extra,
    )


@router.get("/view", response_model=ViewResponse)
def get_view(doc_id: str) -> ViewResponse:
    return _view_response(get_session(doc_id))


@router.put("/view", response_model=ViewResponse)
async def update_view(doc_id: str, body: ViewUpdateRequest) -> ViewResponse:
    session = get_session(doc_id)
    if body.page is not None:
        session.view.go_to(body.page)
    if body.zoom is not None:
        session.view.set_zoom(body.zoom)
    if body.tool is not None:
        session.machine.set_tool(None if body.tool == "none" else PlacementTool(body.tool))
    # Page and zoom changes clear the surface, so a reported surface goes last.
    if body.surface is not None:
        session.view.set_surface(
            SurfaceBox(
                left=body.surface.left,
                top=body.surface.top,
                width=body.surface.width,
                height=body.surface.height,
            )
        )
    return _view_response(session)


@router.post("/pointer/down", response_model=PointerResponse)
async def pointer_down(doc_id: str, body: PointerDownRequest) -> PointerResponse:
    session = get_session(doc_id)
    if body.target is not None:
        target = _explicit_target(body.target)
    else:
        target = session.hit_test(body.client_x, body.client_y)
    if target.kind is not TargetKind.BACKGROUND and target.annotation_id is None:
        raise APIError(
            status_code=400,
            code="invalid_pointer_target",
            message="Pointer target needs an annotation id",
        )
    event = PointerEvent(client_x=body.client_x, client_y=body.client_y)
    placed = session.machine.pointer_down(
        event,
        target,
        image_src=body.image_src,
        image_alt=body.image_alt,
    )
    return _pointer_response(
        session,
        session.machine.active_annotation_id or session.store.selected_id,
        target=target.kind,
        placed=placed,
    )


@router.post("/pointer/move", response_model=PointerResponse)
async def pointer_move(doc_id: str, body: PointerRequest) -> PointerResponse:
    session = get_session(doc_id)
    active_id = session.machine.active_annotation_id
    dispatched = session.machine.pointer_move(PointerEvent(client_x=body.client_x, client_y=body.client_y))
    return _pointer_response(session, active_id, dispatched=dispatched)


@router.post("/pointer/up", response_model=PointerResponse)
async def pointer_up(doc_id: str, body: PointerRequest) -> PointerResponse:
    session = get_session(doc_id)
    active_id = session.machine.active_annotation_id
    dispatched = session.machine.pointer_up(PointerEvent(client_x=body.client_x, client_y=body.client_y))
    if active_id is not None:
        logger.debug("pointer released doc_id=%s annotation_id=%s", doc_id, active_id)
    return _pointer_response(session, active_id, dispatched=dispatched)
