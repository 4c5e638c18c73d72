from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass
class APIError(Exception):
    status_code: int
    code: str
    message: str
    details: dict[str, Any] | None = None


class DocumentLoadError(APIError):
    pass


class RenderError(APIError):
    pass


class ExportError(APIError):
    pass


class AnnotationNotFoundError(APIError):
    pass


class SessionNotFoundError(APIError):
    pass


class PayloadError(APIError):
    """Raised while resolving a single image payload; recovered by the exporter."""


def annotation_not_found(annotation_id: str) -> AnnotationNotFoundError:
    return AnnotationNotFoundError(
        status_code=404,
        code="annotation_not_found",
        message="Annotation not found",
        details={"annotation_id": annotation_id},
    )
