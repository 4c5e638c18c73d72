from __future__ import annotations

import base64
import binascii
import logging
from dataclasses import dataclass
from enum import Enum
from urllib.parse import unquote_to_bytes

import httpx

from annotate_api.core.errors import PayloadError


logger = logging.getLogger("annotate_api.payloads")


class ImageFormat(str, Enum):
    PNG = "png"
    JPEG = "jpeg"


@dataclass(frozen=True)
class ImagePayload:
    format: ImageFormat
    data: bytes


def is_data_url(src: str) -> bool:
    return src.startswith("data:")


def sniff_format(src: str) -> ImageFormat | None:
    """Guess the codec from the locator; for data URLs only the media type is read."""
    locator = src.partition(",")[0] if is_data_url(src) else src
    locator = locator.lower()
    if "png" in locator:
        return ImageFormat.PNG
    if "jpeg" in locator or "jpg" in locator:
        return ImageFormat.JPEG
    return None


def decode_data_url(src: str) -> bytes:
    header, separator, data = src.partition(",")
    if not separator:
        raise PayloadError(status_code=422, code="payload_decode_failed", message="Malformed data URL")
    try:
        if header.endswith(";base64"):
            return base64.b64decode(data, validate=True)
        return unquote_to_bytes(data)
    except (binascii.Error, ValueError) as exc:
        raise PayloadError(
            status_code=422,
            code="payload_decode_failed",
            message="Image data could not be decoded",
        ) from exc


async def fetch_bytes(src: str, client: httpx.AsyncClient) -> bytes:
    try:
        response = await client.get(src)
        response.raise_for_status()
    except httpx.HTTPError as exc:
        logger.warning("image fetch failed url=%s error=%s", src, exc.__class__.__name__)
        raise PayloadError(
            status_code=502,
            code="payload_fetch_failed",
            message="Image could not be fetched",
            details={"error": exc.__class__.__name__},
        ) from exc
    return response.content


async def resolve_payload(src: str, client: httpx.AsyncClient) -> ImagePayload:
    image_format = sniff_format(src)
    if image_format is None:
        raise PayloadError(
            status_code=415,
            code="unsupported_image_format",
            message="Only PNG and JPEG images can be embedded",
        )
    if is_data_url(src):
        data = decode_data_url(src)
    else:
        data = await fetch_bytes(src, client)
    if not data:
        raise PayloadError(status_code=422, code="payload_empty", message="Image payload is empty")
    return ImagePayload(format=image_format, data=data)
