from __future__ import annotations

from fastapi import APIRouter

from annotate_api.settings import get_settings

router = APIRouter()


@router.get("/health")
def health() -> dict[str, str]:
    settings = get_settings()
    return {
        "status": "ok",
        "build_version": settings.ANNOTATE_BUILD_VERSION or "dev",
        "storage_driver": settings.ANNOTATE_STORAGE_DRIVER,
    }
