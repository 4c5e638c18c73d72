from __future__ import annotations

import asyncio

import httpx
import pytest

from annotate_api.core.errors import PayloadError
from annotate_api.services.payloads import ImageFormat, decode_data_url, resolve_payload, sniff_format
from tests.pdf_factory import data_url, make_png_bytes


@pytest.mark.parametrize(
    ("src", "expected"),
    [
        ("https://cdn.example.com/logo.PNG", ImageFormat.PNG),
        ("https://cdn.example.com/photo.jpg", ImageFormat.JPEG),
        ("data:image/jpeg;base64,AAAA", ImageFormat.JPEG),
        ("data:image/gif;base64,cG5n", None),
        ("https://cdn.example.com/anim.gif", None),
    ],
)
def test_sniff_format(src: str, expected: ImageFormat | None) -> None:
    assert sniff_format(src) is expected


def test_decode_data_url() -> None:
    png = make_png_bytes()
    assert decode_data_url(data_url(png, "image/png")) == png
    assert decode_data_url("data:image/png,%89PNG") == b"\x89PNG"
    with pytest.raises(PayloadError) as excinfo:
        decode_data_url("data:image/png;base64,@@@")
    assert excinfo.value.code == "payload_decode_failed"


def _client() -> httpx.AsyncClient:
    png = make_png_bytes()

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("logo.png"):
            return httpx.Response(200, content=png)
        return httpx.Response(404)

    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def test_resolve_payload_fetches_remote_images() -> None:
    async def _run():
        async with _client() as client:
            return await resolve_payload("https://cdn.example.com/logo.png", client)

    payload = asyncio.run(_run())
    assert payload.format is ImageFormat.PNG
    assert payload.data.startswith(b"\x89PNG")


def test_resolve_payload_errors() -> None:
    async def _run(src: str):
        async with _client() as client:
            return await resolve_payload(src, client)

    with pytest.raises(PayloadError) as missing:
        asyncio.run(_run("https://cdn.example.com/missing.png"))
    assert missing.value.code == "payload_fetch_failed"

    with pytest.raises(PayloadError) as unsupported:
        asyncio.run(_run("https://cdn.example.com/anim.gif"))
    assert unsupported.value.code == "unsupported_image_format"
    assert unsupported.value.status_code == 415
