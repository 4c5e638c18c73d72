from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from annotate_api.core.annotations.model import Annotation
from annotate_api.core.interaction.hittest import ResizeHandle, TargetKind
from annotate_api.core.interaction.machine import InteractionState, RotationDirection


class AnnotationListResponse(BaseModel):
    doc_id: str
    page: int | None = None
    annotations: list[Annotation]
    selected_id: str | None = None


class MoveToPageRequest(BaseModel):
    page: int = Field(..., ge=1)


class SelectionRequest(BaseModel):
    annotation_id: str | None = None


class SelectionResponse(BaseModel):
    annotation_id: str | None = None
    annotation: Annotation | None = None


class RotateRequest(BaseModel):
    direction: RotationDirection


class SurfaceInput(BaseModel):
    model_config = ConfigDict(extra="forbid")

    left: float = 0.0
    top: float = 0.0
    width: float = Field(..., gt=0)
    height: float = Field(..., gt=0)


class ViewUpdateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    page: int | None = None
    zoom: float | None = Field(default=None, gt=0)
    # "none" clears the placement tool; omitted leaves it unchanged.
    tool: Literal["text", "image", "none"] | None = None
    surface: SurfaceInput | None = None


class ViewResponse(BaseModel):
    page: int
    zoom: float
    page_count: int
    tool: Literal["text", "image"] | None = None
    surface: SurfaceInput | None = None
    interaction_state: InteractionState


class PointerTargetInput(BaseModel):
    model_config = ConfigDict(extra="forbid")

    kind: TargetKind
    annotation_id: str | None = None
    handle: ResizeHandle | None = None
    box_width: float | None = Field(default=None, gt=0)
    box_height: float | None = Field(default=None, gt=0)


class PointerRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    client_x: float
    client_y: float


class PointerDownRequest(PointerRequest):
    # Omit to let the server hit-test the pointer against the current page.
    target: PointerTargetInput | None = None
    image_src: str | None = None
    image_alt: str | None = None


class PointerResponse(BaseModel):
    state: InteractionState
    target: TargetKind | None = None
    selected_id: str | None = None
    placed: Annotation | None = None
    annotation: Annotation | None = None
    dispatched: int = 0
