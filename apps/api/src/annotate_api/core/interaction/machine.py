from __future__ import annotations

import logging
from contextlib import ExitStack
from dataclasses import dataclass
from enum import Enum

from annotate_api.core.annotations.model import ImageAnnotation, TextAnnotation
from annotate_api.core.annotations.store import AnnotationStore
from annotate_api.core.errors import AnnotationNotFoundError
from annotate_api.core.geometry.coords import (
    DEFAULT_IMAGE_ALT,
    MAX_CORNER_PERCENT,
    MIN_RESIZE_PX,
    PercentPoint,
    SurfaceBox,
    clamp,
    layout_box,
    pointer_to_percent,
    to_percent,
    to_pixels,
)
from annotate_api.core.interaction.hittest import PointerTarget, ResizeHandle, TargetKind
from annotate_api.core.interaction.listeners import PointerEvent, PointerListeners
from annotate_api.core.interaction.view import ViewState


ROTATION_STEP_DEGREES = 15

logger = logging.getLogger("annotate_api.interaction")


class InteractionState(str, Enum):
    IDLE = "idle"
    DRAGGING = "dragging"
    RESIZING = "resizing"


class PlacementTool(str, Enum):
    TEXT = "text"
    IMAGE = "image"


class RotationDirection(str, Enum):
    CLOCKWISE = "cw"
    COUNTER_CLOCKWISE = "ccw"


@dataclass(frozen=True)
class DragContext:
    annotation_id: str
    grab_offset: PercentPoint


@dataclass(frozen=True)
class ResizeSnapshot:
    annotation_id: str
    handle: ResizeHandle
    start_client_x: float
    start_client_y: float
    width_px: float
    height_px: float
    surface_width: float
    surface_height: float
    start_x: float
    start_y: float


def resize_geometry(snapshot: ResizeSnapshot, delta_x: float, delta_y: float) -> dict[str, object]:
    """New x/y/width/height for a handle moved by a pixel delta.

    A moving left/top edge keeps the opposite corner pinned and shifts the
    origin by the effective size change. A moving right/bottom edge never
    shifts the origin; the size is capped so the far edge stays on the page.
    """
    x, width_px = _resize_axis(
        snapshot.start_x,
        snapshot.width_px,
        delta_x,
        snapshot.surface_width,
        snapshot.handle.moves_left_edge,
    )
    y, height_px = _resize_axis(
        snapshot.start_y,
        snapshot.height_px,
        delta_y,
        snapshot.surface_height,
        snapshot.handle.moves_top_edge,
    )
    return {
        "x": x,
        "y": y,
        "width": f"{to_percent(width_px, snapshot.surface_width):.2f}%",
        "height": f"{to_percent(height_px, snapshot.surface_height):.2f}%",
    }


def _resize_axis(
    start: float,
    size_px: float,
    delta: float,
    extent_px: float,
    moves_near_edge: bool,
) -> tuple[float, float]:
    if moves_near_edge:
        far_edge = start + to_percent(size_px, extent_px)
        new_size = min(size_px - delta, to_pixels(far_edge, extent_px))
        new_size = max(MIN_RESIZE_PX, new_size)
        return clamp(far_edge - to_percent(new_size, extent_px)), new_size
    origin = clamp(start)
    new_size = min(size_px + delta, to_pixels(MAX_CORNER_PERCENT - origin, extent_px))
    if new_size < MIN_RESIZE_PX:
        # The floor would push the far edge off the page; pull the origin back.
        new_size = MIN_RESIZE_PX
        origin = clamp(min(origin, MAX_CORNER_PERCENT - to_percent(new_size, extent_px)))
    return origin, new_size


def rotate_step(rotation: float, direction: RotationDirection) -> float:
    step = ROTATION_STEP_DEGREES if direction is RotationDirection.CLOCKWISE else -ROTATION_STEP_DEGREES
    return (rotation + step) % 360


class InteractionMachine:
    """Pointer-driven placement, drag and resize against the rendered surface.

    Move and up handlers are registered on `listeners` only while a drag or
    resize is in progress; returning to idle releases them.
    """

    def __init__(
        self,
        store: AnnotationStore,
        view: ViewState,
        listeners: PointerListeners | None = None,
    ) -> None:
        self.store = store
        self.view = view
        self.listeners = listeners or PointerListeners()
        self.tool: PlacementTool | None = None
        self._state = InteractionState.IDLE
        self._drag: DragContext | None = None
        self._resize: ResizeSnapshot | None = None
        self._capture: ExitStack | None = None

    @property
    def state(self) -> InteractionState:
        return self._state

    @property
    def drag(self) -> DragContext | None:
        return self._drag

    @property
    def resize(self) -> ResizeSnapshot | None:
        return self._resize

    @property
    def active_annotation_id(self) -> str | None:
        if self._drag is not None:
            return self._drag.annotation_id
        if self._resize is not None:
            return self._resize.annotation_id
        return None

    def set_tool(self, tool: PlacementTool | None) -> None:
        self.tool = tool

    def reset(self) -> None:
        self._to_idle()
        self.tool = None

    # ------------------------------------------------------------------
    # Pointer entry points
    # ------------------------------------------------------------------
    def pointer_down(
        self,
        event: PointerEvent,
        target: PointerTarget,
        image_src: str | None = None,
        image_alt: str | None = None,
    ) -> TextAnnotation | ImageAnnotation | None:
        """Handle a pointer-down; returns the annotation placed, if any."""
        if target.kind is TargetKind.BACKGROUND:
            if self.tool is not None:
                return self.place(event, image_src=image_src, image_alt=image_alt)
            self.store.select(None)
            return None

        annotation_id = target.annotation_id
        if annotation_id is None:
            raise ValueError("Pointer target has no annotation id")
        record = self.store.get(annotation_id)
        self.store.select(record.id)

        if self._state is not InteractionState.IDLE:
            logger.debug(
                "pointer down ignored state=%s annotation_id=%s", self._state.value, annotation_id
            )
            return None
        surface = self._surface()
        if surface is None:
            return None

        if target.kind is TargetKind.HANDLE:
            self._start_resize(record, target, event, surface)
        else:
            self._start_drag(record, event, surface)
        return None

    def pointer_move(self, event: PointerEvent) -> int:
        return self.listeners.dispatch("move", event)

    def pointer_up(self, event: PointerEvent) -> int:
        return self.listeners.dispatch("up", event)

    # ------------------------------------------------------------------
    # Placement and rotation
    # ------------------------------------------------------------------
    def place(
        self,
        event: PointerEvent,
        image_src: str | None = None,
        image_alt: str | None = None,
    ) -> TextAnnotation | ImageAnnotation | None:
        if self.tool is None:
            return None
        surface = self._surface()
        if surface is None:
            logger.info("placement rejected reason=no_surface page=%s", self.view.page)
            return None
        point = pointer_to_percent(surface, event.client_x, event.client_y)
        if not point.on_surface:
            logger.debug("placement rejected reason=outside_surface x=%.2f y=%.2f", point.x, point.y)
            return None

        payload: dict[str, object] = {"page": self.view.page, "x": point.x, "y": point.y, "rotation": 0}
        if self.tool is PlacementTool.TEXT:
            payload["type"] = "text"
        elif self.tool is PlacementTool.IMAGE:
            if not image_src:
                logger.info("placement rejected reason=missing_image_payload page=%s", self.view.page)
                return None
            payload.update({"type": "image", "src": image_src, "alt": image_alt or DEFAULT_IMAGE_ALT})
        else:
            raise ValueError(f"Unknown placement tool: {self.tool}")

        record = self.store.add(payload)
        self.tool = None
        self.store.select(record.id)
        logger.info(
            "annotation placed annotation_id=%s type=%s page=%s x=%.2f y=%.2f",
            record.id,
            record.type,
            record.page,
            record.x,
            record.y,
        )
        return record

    def rotate_selected(self, direction: RotationDirection) -> TextAnnotation | ImageAnnotation | None:
        record = self.store.selected()
        if record is None:
            return None
        return self.store.update(record.id, {"rotation": rotate_step(record.rotation, direction)})

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------
    def _surface(self) -> SurfaceBox | None:
        surface = self.view.surface
        if surface is None or surface.is_empty:
            return None
        return surface

    def _start_drag(self, record, event: PointerEvent, surface: SurfaceBox) -> None:
        pointer = pointer_to_percent(surface, event.client_x, event.client_y)
        self._drag = DragContext(
            annotation_id=record.id,
            grab_offset=pointer - PercentPoint(record.x, record.y),
        )
        self._enter(InteractionState.DRAGGING)

    def _start_resize(self, record, target: PointerTarget, event: PointerEvent, surface: SurfaceBox) -> None:
        if record.type != "image":
            return
        if target.handle is None:
            raise ValueError("Handle target has no handle")
        if target.box_size is not None:
            width_px, height_px = target.box_size
        else:
            box = layout_box(record, surface, self.view.zoom)
            width_px, height_px = box.width, box.height
        self._resize = ResizeSnapshot(
            annotation_id=record.id,
            handle=target.handle,
            start_client_x=event.client_x,
            start_client_y=event.client_y,
            width_px=width_px,
            height_px=height_px,
            surface_width=surface.width,
            surface_height=surface.height,
            start_x=record.x,
            start_y=record.y,
        )
        self._enter(InteractionState.RESIZING)

    def _enter(self, state: InteractionState) -> None:
        stack = ExitStack()
        handler = self._on_drag_move if state is InteractionState.DRAGGING else self._on_resize_move
        stack.enter_context(self.listeners.capture(handler, self._on_up))
        self._capture = stack
        self._state = state
        logger.debug("interaction started state=%s annotation_id=%s", state.value, self.active_annotation_id)

    def _to_idle(self) -> None:
        if self._capture is not None:
            self._capture.close()
            self._capture = None
        self._drag = None
        self._resize = None
        self._state = InteractionState.IDLE

    # ------------------------------------------------------------------
    # Captured handlers
    # ------------------------------------------------------------------
    def _on_drag_move(self, event: PointerEvent) -> None:
        drag = self._drag
        surface = self._surface()
        if drag is None or surface is None:
            return
        pointer = pointer_to_percent(surface, event.client_x, event.client_y)
        changes = {
            "x": clamp(pointer.x - drag.grab_offset.x),
            "y": clamp(pointer.y - drag.grab_offset.y),
        }
        self._apply(drag.annotation_id, changes)

    def _on_resize_move(self, event: PointerEvent) -> None:
        snapshot = self._resize
        if snapshot is None:
            return
        changes = resize_geometry(
            snapshot,
            event.client_x - snapshot.start_client_x,
            event.client_y - snapshot.start_client_y,
        )
        self._apply(snapshot.annotation_id, changes)

    def _on_up(self, event: PointerEvent) -> None:
        logger.debug("interaction finished state=%s annotation_id=%s", self._state.value, self.active_annotation_id)
        self._to_idle()

    def _apply(self, annotation_id: str, changes: dict[str, object]) -> None:
        try:
            self.store.update(annotation_id, changes)
        except AnnotationNotFoundError:
            logger.info("interaction target removed annotation_id=%s", annotation_id)
            self._to_idle()
