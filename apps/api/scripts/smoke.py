from __future__ import annotations

import base64
import json
import os

import fitz
import httpx


def _make_smoke_pdf() -> bytes:
    doc = fitz.open()
    page = doc.new_page(width=400, height=400)
    page.draw_rect(fitz.Rect(50, 50, 350, 200), color=(0.1, 0.3, 0.6), fill=(0.1, 0.3, 0.6))
    page.insert_text((70, 110), "Annotate Smoke Test", fontsize=14, color=(1, 1, 1))
    payload = doc.tobytes()
    doc.close()
    return payload


def _make_stamp_png() -> str:
    pix = fitz.Pixmap(fitz.csRGB, fitz.IRect(0, 0, 16, 16), False)
    pix.set_rect(pix.irect, (220, 30, 30))
    return "data:image/png;base64," + base64.b64encode(pix.tobytes("png")).decode("ascii")


def main() -> int:
    base_url = os.getenv("ANNOTATE_SMOKE_API_BASE_URL", "http://localhost:8000").rstrip("/")
    client = httpx.Client(base_url=base_url, timeout=30)

    upload = client.post(
        "/v1/documents/upload",
        files={"file": ("smoke.pdf", _make_smoke_pdf(), "application/pdf")},
    )
    upload.raise_for_status()
    doc_id = upload.json()["document"]["doc_id"]

    render = client.get(f"/v1/documents/{doc_id}/pages/1/render")
    render.raise_for_status()
    width = float(render.headers["X-Surface-Width"])
    height = float(render.headers["X-Surface-Height"])

    client.put(f"/v1/documents/{doc_id}/view", json={"tool": "text"}).raise_for_status()
    placed = client.post(
        f"/v1/documents/{doc_id}/pointer/down",
        json={"client_x": width * 0.2, "client_y": height * 0.7},
    )
    placed.raise_for_status()
    text_id = placed.json()["placed"]["id"]

    edit = client.patch(
        f"/v1/documents/{doc_id}/annotations/{text_id}",
        json={"text": "Smoke OK", "fontSize": "16", "color": "#aa0000"},
    )
    edit.raise_for_status()

    stamp = client.post(
        f"/v1/documents/{doc_id}/annotations",
        json={"type": "image", "page": 1, "x": 60, "y": 10, "src": _make_stamp_png(), "width": "20%", "height": "20%"},
    )
    stamp.raise_for_status()
    client.put(f"/v1/documents/{doc_id}/selection", json={"annotation_id": stamp.json()["id"]}).raise_for_status()
    client.post(f"/v1/documents/{doc_id}/selection/rotate", json={"direction": "cw"}).raise_for_status()

    export = client.post(f"/v1/export/{doc_id}")
    export.raise_for_status()
    if not export.content.startswith(b"%PDF"):
        raise RuntimeError("Export did not return PDF bytes")

    print(
        json.dumps(
            {
                "status": "ok",
                "doc_id": doc_id,
                "drawn": export.headers.get("X-Annotate-Drawn"),
                "warnings": export.headers.get("X-Annotate-Warnings"),
            }
        )
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
