from __future__ import annotations

import pytest

from annotate_api.core.annotations.store import AnnotationStore
from annotate_api.core.geometry.coords import SurfaceBox
from annotate_api.core.interaction.hittest import PointerTarget, ResizeHandle, TargetKind
from annotate_api.core.interaction.listeners import PointerEvent
from annotate_api.core.interaction.machine import (
    InteractionMachine,
    InteractionState,
    ResizeSnapshot,
    resize_geometry,
)
from annotate_api.core.interaction.view import ViewState


def _snapshot(handle: ResizeHandle) -> ResizeSnapshot:
    return ResizeSnapshot(
        annotation_id="img",
        handle=handle,
        start_client_x=0.0,
        start_client_y=0.0,
        width_px=100.0,
        height_px=50.0,
        surface_width=400.0,
        surface_height=200.0,
        start_x=10.0,
        start_y=20.0,
    )


def test_bottom_right_handle_keeps_origin() -> None:
    changes = resize_geometry(_snapshot(ResizeHandle.BOTTOM_RIGHT), 40.0, 10.0)
    assert changes["x"] == pytest.approx(10.0)
    assert changes["y"] == pytest.approx(20.0)
    assert changes["width"] == "35.00%"
    assert changes["height"] == "30.00%"


def test_top_left_handle_pins_opposite_corner() -> None:
    changes = resize_geometry(_snapshot(ResizeHandle.TOP_LEFT), 40.0, 10.0)
    assert changes["x"] == pytest.approx(20.0)
    assert changes["y"] == pytest.approx(25.0)
    assert changes["width"] == "15.00%"
    assert changes["height"] == "20.00%"
    # Far edges did not move: 20 + 15 == 10 + 25 and 25 + 20 == 20 + 25.


def test_mixed_handles_move_one_axis() -> None:
    top_right = resize_geometry(_snapshot(ResizeHandle.TOP_RIGHT), 40.0, 10.0)
    assert top_right["x"] == pytest.approx(10.0)
    assert top_right["y"] == pytest.approx(25.0)
    bottom_left = resize_geometry(_snapshot(ResizeHandle.BOTTOM_LEFT), 40.0, 10.0)
    assert bottom_left["x"] == pytest.approx(20.0)
    assert bottom_left["y"] == pytest.approx(20.0)


def test_resize_floor_is_twenty_pixels() -> None:
    shrunk = resize_geometry(_snapshot(ResizeHandle.BOTTOM_RIGHT), -500.0, -500.0)
    assert shrunk["width"] == "5.00%"
    assert shrunk["height"] == "10.00%"

    collapsed = resize_geometry(_snapshot(ResizeHandle.TOP_LEFT), 500.0, 500.0)
    assert collapsed["width"] == "5.00%"
    assert collapsed["x"] == pytest.approx(30.0)
    assert collapsed["y"] == pytest.approx(35.0)


def test_resize_keeps_box_on_surface() -> None:
    grown = resize_geometry(_snapshot(ResizeHandle.BOTTOM_RIGHT), 1000.0, 1000.0)
    assert grown["x"] == pytest.approx(10.0)
    assert grown["width"] == "89.90%"

    pulled = resize_geometry(_snapshot(ResizeHandle.TOP_LEFT), -1000.0, -1000.0)
    assert pulled["x"] == pytest.approx(0.0)
    assert pulled["y"] == pytest.approx(0.0)
    assert pulled["width"] == "35.00%"
    assert pulled["height"] == "45.00%"

    # A near-edge box shrunk to the floor is pulled back so its far edge stays at 99.9.
    edge = ResizeSnapshot(
        annotation_id="img",
        handle=ResizeHandle.BOTTOM_RIGHT,
        start_client_x=0.0,
        start_client_y=0.0,
        width_px=40.0,
        height_px=50.0,
        surface_width=400.0,
        surface_height=200.0,
        start_x=96.0,
        start_y=20.0,
    )
    floored = resize_geometry(edge, -100.0, 0.0)
    assert floored["width"] == "5.00%"
    assert floored["x"] == pytest.approx(94.9)
    assert floored["x"] + 5.0 <= 99.9 + 1e-9
    assert floored["y"] == pytest.approx(20.0)


def test_machine_resizes_selected_image() -> None:
    view = ViewState(page_count=1)
    view.set_surface(SurfaceBox(left=0.0, top=0.0, width=400.0, height=200.0))
    machine = InteractionMachine(AnnotationStore(), view)
    image = machine.store.add(
        {"type": "image", "page": 1, "x": 10.0, "y": 20.0, "src": "a.png", "width": "100px", "height": "50px"}
    )
    target = PointerTarget(kind=TargetKind.HANDLE, annotation_id=image.id, handle=ResizeHandle.BOTTOM_RIGHT)

    machine.pointer_down(PointerEvent(140.0, 90.0), target)
    assert machine.state is InteractionState.RESIZING
    machine.pointer_move(PointerEvent(180.0, 100.0))
    resized = machine.store.get(image.id)
    assert resized.width.raw == "35.00%"
    assert resized.height.raw == "30.00%"
    assert (resized.x, resized.y) == (10.0, 20.0)

    machine.pointer_up(PointerEvent(180.0, 100.0))
    assert machine.state is InteractionState.IDLE
    assert machine.resize is None


def test_text_annotations_have_no_resize() -> None:
    view = ViewState(page_count=1)
    view.set_surface(SurfaceBox(left=0.0, top=0.0, width=400.0, height=200.0))
    machine = InteractionMachine(AnnotationStore(), view)
    text = machine.store.add({"type": "text", "page": 1, "x": 10.0, "y": 20.0})
    target = PointerTarget(kind=TargetKind.HANDLE, annotation_id=text.id, handle=ResizeHandle.TOP_LEFT)
    machine.pointer_down(PointerEvent(40.0, 40.0), target)
    assert machine.state is InteractionState.IDLE
    assert machine.store.selected_id == text.id
