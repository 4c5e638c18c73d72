from __future__ import annotations

import logging
import traceback

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from annotate_api.core.errors import APIError
from annotate_api.core.request_context import describe_request, get_request_id
from annotate_api.routers.annotations import router as annotations_router
from annotate_api.routers.documents import router as documents_router
from annotate_api.routers.export import router as export_router
from annotate_api.routers.health import router as health_router
from annotate_api.routers.interaction import router as interaction_router
from annotate_api.settings import get_settings


# -----------------------------------------------------------------------------
# Logging
# -----------------------------------------------------------------------------
logging.basicConfig(level=getattr(logging, get_settings().LOG_LEVEL.upper(), logging.INFO))
logger = logging.getLogger("annotate_api")


# -----------------------------------------------------------------------------
# CORS
# -----------------------------------------------------------------------------
def _cors_origins() -> list[str]:
    settings = get_settings()
    if settings.WEB_ORIGIN:
        return [origin.strip() for origin in settings.WEB_ORIGIN.split(",") if origin.strip()]
    if settings.ANNOTATE_ENV.lower() == "production":
        return []
    return [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ]


# -----------------------------------------------------------------------------
# App
# -----------------------------------------------------------------------------
app = FastAPI(title="Annotate API", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=[
        "Content-Disposition",
        "X-Surface-Width",
        "X-Surface-Height",
        "X-Surface-Current",
        "X-Annotate-Drawn",
        "X-Annotate-Skipped",
        "X-Annotate-Warnings",
    ],
)


def jsonable_errors(exc: RequestValidationError) -> list[dict]:
    return [
        {"loc": list(error.get("loc", ())), "msg": error.get("msg", ""), "type": error.get("type", "")}
        for error in exc.errors()
    ]


# -----------------------------------------------------------------------------
# Exception handlers
# -----------------------------------------------------------------------------
@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    request_id = get_request_id(request)
    logger.error(
        "Unhandled exception on %s request_id=%s\n%s",
        describe_request(request),
        request_id,
        traceback.format_exc(),
    )
    return JSONResponse(
        status_code=500,
        content={
            "error": "internal_error",
            "path": request.url.path,
            "request_id": request_id,
        },
    )


@app.exception_handler(APIError)
async def api_error_handler(request: Request, exc: APIError):
    request_id = get_request_id(request)
    logger.warning(
        "Handled API error on %s request_id=%s code=%s",
        describe_request(request),
        request_id,
        exc.code,
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": exc.code,
            "message": exc.message,
            "details": exc.details,
            "request_id": request_id,
        },
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    request_id = get_request_id(request)
    logger.info("Validation error on %s request_id=%s", describe_request(request), request_id)
    return JSONResponse(
        status_code=422,
        content={
            "error": "validation_error",
            "message": "Invalid request payload",
            "details": jsonable_errors(exc),
            "request_id": request_id,
        },
    )


# -----------------------------------------------------------------------------
# Startup logging
# -----------------------------------------------------------------------------
@app.on_event("startup")
async def startup_event():
    settings = get_settings()
    logger.info("Annotate API starting")
    logger.info("ANNOTATE_ENV=%s", settings.ANNOTATE_ENV)
    logger.info("STORAGE_DRIVER=%s", settings.ANNOTATE_STORAGE_DRIVER)
    logger.info("S3_BUCKET=%s", settings.ANNOTATE_S3_BUCKET)


# -----------------------------------------------------------------------------
# Routers
# -----------------------------------------------------------------------------
app.include_router(health_router)
app.include_router(documents_router)
app.include_router(annotations_router)
app.include_router(interaction_router)
app.include_router(export_router)
