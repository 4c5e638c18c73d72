from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable

from annotate_api.core.annotations.model import ImageAnnotation, TextAnnotation
from annotate_api.core.geometry.coords import LayoutBox, SurfaceBox, layout_box, rotate_about


HANDLE_RADIUS_PX = 6.0


class TargetKind(str, Enum):
    BODY = "body"
    HANDLE = "handle"
    BACKGROUND = "background"


class ResizeHandle(str, Enum):
    TOP_LEFT = "topLeft"
    TOP_RIGHT = "topRight"
    BOTTOM_LEFT = "bottomLeft"
    BOTTOM_RIGHT = "bottomRight"

    @property
    def moves_left_edge(self) -> bool:
        return self in (ResizeHandle.TOP_LEFT, ResizeHandle.BOTTOM_LEFT)

    @property
    def moves_top_edge(self) -> bool:
        return self in (ResizeHandle.TOP_LEFT, ResizeHandle.TOP_RIGHT)


@dataclass(frozen=True)
class PointerTarget:
    kind: TargetKind
    annotation_id: str | None = None
    handle: ResizeHandle | None = None
    # Live rendered box size in pixels, when the caller measured it.
    box_size: tuple[float, float] | None = None

    @classmethod
    def background(cls) -> "PointerTarget":
        return cls(kind=TargetKind.BACKGROUND)


def _handle_points(box: LayoutBox) -> dict[ResizeHandle, tuple[float, float]]:
    return {
        ResizeHandle.TOP_LEFT: (box.left, box.top),
        ResizeHandle.TOP_RIGHT: (box.left + box.width, box.top),
        ResizeHandle.BOTTOM_LEFT: (box.left, box.top + box.height),
        ResizeHandle.BOTTOM_RIGHT: (box.left + box.width, box.top + box.height),
    }


def _local_point(box: LayoutBox, x: float, y: float) -> tuple[float, float]:
    # Undo the box rotation about its top-left pivot.
    return rotate_about(x, y, box.left, box.top, -box.rotation)


def hit_test_point(
    annotations: Iterable[TextAnnotation | ImageAnnotation],
    surface: SurfaceBox,
    client_x: float,
    client_y: float,
    selected_id: str | None = None,
    scale: float = 1.0,
    handle_radius: float = HANDLE_RADIUS_PX,
) -> PointerTarget:
    """Resolve what a pointer position lands on.

    Later annotations are drawn above earlier ones. Resize handles exist only
    on the selected image annotation and take priority over bodies.
    """
    x = client_x - surface.left
    y = client_y - surface.top
    ordered = list(annotations)
    boxes = {annotation.id: layout_box(annotation, surface, scale) for annotation in ordered}

    selected = next((item for item in ordered if item.id == selected_id), None)
    if selected is not None and selected.type == "image":
        box = boxes[selected.id]
        local_x, local_y = _local_point(box, x, y)
        for handle, (hx, hy) in _handle_points(box).items():
            if (local_x - hx) ** 2 + (local_y - hy) ** 2 <= handle_radius**2:
                return PointerTarget(
                    kind=TargetKind.HANDLE,
                    annotation_id=selected.id,
                    handle=handle,
                    box_size=(box.width, box.height),
                )

    for annotation in reversed(ordered):
        box = boxes[annotation.id]
        local_x, local_y = _local_point(box, x, y)
        if box.left <= local_x <= box.left + box.width and box.top <= local_y <= box.top + box.height:
            return PointerTarget(
                kind=TargetKind.BODY,
                annotation_id=annotation.id,
                box_size=(box.width, box.height),
            )
    return PointerTarget.background()
