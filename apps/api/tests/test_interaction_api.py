from __future__ import annotations

import pytest
from fastapi.testclient import TestClient


def _pointer(client: TestClient, doc_id: str, kind: str, x: float, y: float, **extra):
    response = client.post(
        f"/v1/documents/{doc_id}/pointer/{kind}",
        json={"client_x": x, "client_y": y, **extra},
    )
    assert response.status_code == 200, response.text
    return response.json()


def test_view_updates_are_clamped(client: TestClient, doc_id: str) -> None:
    view = client.put(f"/v1/documents/{doc_id}/view", json={"page": 7, "zoom": 9}).json()
    assert view["page"] == 2
    assert view["zoom"] == 3.0
    assert view["page_count"] == 2
    assert view["surface"] is None

    view = client.put(f"/v1/documents/{doc_id}/view", json={"page": 1, "zoom": 1.5, "tool": "image"}).json()
    assert (view["page"], view["zoom"], view["tool"]) == (1, 1.5, "image")
    view = client.put(f"/v1/documents/{doc_id}/view", json={"tool": "none"}).json()
    assert view["tool"] is None


def test_place_then_drag_through_rendered_surface(client: TestClient, doc_id: str) -> None:
    assert client.get(f"/v1/documents/{doc_id}/pages/1/render").status_code == 200
    client.put(f"/v1/documents/{doc_id}/view", json={"tool": "text"})

    placed = _pointer(client, doc_id, "down", 306.0, 396.0)
    assert placed["target"] == "background"
    assert placed["state"] == "idle"
    annotation = placed["placed"]
    assert (annotation["x"], annotation["y"], annotation["page"]) == (50.0, 50.0, 1)
    assert placed["selected_id"] == annotation["id"]
    assert client.get(f"/v1/documents/{doc_id}/view").json()["tool"] is None

    grabbed = _pointer(client, doc_id, "down", 311.0, 401.0)
    assert grabbed["target"] == "body"
    assert grabbed["state"] == "dragging"

    moved = _pointer(client, doc_id, "move", 311.0 + 61.2, 401.0 + 79.2)
    assert moved["dispatched"] == 1
    assert moved["annotation"]["x"] == pytest.approx(60.0)
    assert moved["annotation"]["y"] == pytest.approx(60.0)

    released = _pointer(client, doc_id, "up", 372.2, 480.2)
    assert released["state"] == "idle"
    assert _pointer(client, doc_id, "move", 10.0, 10.0)["dispatched"] == 0


def test_resize_through_explicit_handle(client: TestClient, doc_id: str) -> None:
    client.put(f"/v1/documents/{doc_id}/view", json={"surface": {"width": 400, "height": 200}})
    image = client.post(
        f"/v1/documents/{doc_id}/annotations",
        json={"type": "image", "page": 1, "x": 10, "y": 20, "src": "a.png", "width": "100px", "height": "50px"},
    ).json()

    target = {"kind": "handle", "annotation_id": image["id"], "handle": "bottomRight"}
    down = _pointer(client, doc_id, "down", 140.0, 90.0, target=target)
    assert down["state"] == "resizing"

    moved = _pointer(client, doc_id, "move", 180.0, 100.0)
    assert moved["annotation"]["width"] == "35.00%"
    assert moved["annotation"]["height"] == "30.00%"
    assert (moved["annotation"]["x"], moved["annotation"]["y"]) == (10.0, 20.0)
    assert _pointer(client, doc_id, "up", 180.0, 100.0)["state"] == "idle"


def test_image_tool_needs_payload(client: TestClient, doc_id: str) -> None:
    client.put(
        f"/v1/documents/{doc_id}/view",
        json={"tool": "image", "surface": {"width": 400, "height": 200}},
    )
    rejected = _pointer(client, doc_id, "down", 100.0, 100.0)
    assert rejected["placed"] is None
    assert client.get(f"/v1/documents/{doc_id}/view").json()["tool"] == "image"

    placed = _pointer(client, doc_id, "down", 100.0, 100.0, image_src="https://cdn.example.com/logo.png")
    assert placed["placed"]["type"] == "image"
    assert placed["placed"]["alt"] == "User image"


def test_target_without_annotation_is_rejected(client: TestClient, doc_id: str) -> None:
    response = client.post(
        f"/v1/documents/{doc_id}/pointer/down",
        json={"client_x": 1, "client_y": 1, "target": {"kind": "body"}},
    )
    assert response.status_code == 400
    assert response.json()["error"] == "invalid_pointer_target"
