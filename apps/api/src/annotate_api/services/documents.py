from __future__ import annotations

import logging
from dataclasses import dataclass

import fitz

from annotate_api.core.errors import DocumentLoadError, RenderError


logger = logging.getLogger("annotate_api.documents")


@dataclass(frozen=True)
class LoadedDocument:
    page_count: int
    # (width, height) in points, one entry per page.
    page_sizes: list[tuple[float, float]]


@dataclass(frozen=True)
class RenderedPage:
    page: int
    zoom: float
    width_px: int
    height_px: int
    png: bytes


def open_pdf(pdf_bytes: bytes) -> fitz.Document:
    if not pdf_bytes:
        raise DocumentLoadError(
            status_code=422,
            code="document_load_failed",
            message="Document is empty",
        )
    try:
        return fitz.open(stream=pdf_bytes, filetype="pdf")
    except (RuntimeError, ValueError) as exc:
        raise DocumentLoadError(
            status_code=422,
            code="document_load_failed",
            message="Document could not be read",
            details={"error": exc.__class__.__name__},
        ) from exc


def load_document(pdf_bytes: bytes) -> LoadedDocument:
    doc = open_pdf(pdf_bytes)
    try:
        if doc.page_count == 0:
            raise DocumentLoadError(
                status_code=422,
                code="document_load_failed",
                message="Document has no pages",
            )
        sizes = [(page.rect.width, page.rect.height) for page in doc]
        return LoadedDocument(page_count=doc.page_count, page_sizes=sizes)
    finally:
        doc.close()


def render_page(pdf_bytes: bytes, page: int, zoom: float) -> RenderedPage:
    """Rasterize a 1-based page at `zoom`; the pixmap size is the surface extent."""
    doc = open_pdf(pdf_bytes)
    try:
        if page < 1 or page > doc.page_count:
            raise RenderError(
                status_code=404,
                code="page_not_found",
                message="Page not found",
                details={"page": page, "page_count": doc.page_count},
            )
        try:
            pix = doc[page - 1].get_pixmap(matrix=fitz.Matrix(zoom, zoom), alpha=False)
            png = pix.tobytes("png")
        except (RuntimeError, ValueError) as exc:
            logger.warning("page render failed page=%s zoom=%s error=%s", page, zoom, exc.__class__.__name__)
            raise RenderError(
                status_code=422,
                code="page_render_failed",
                message="Page could not be rendered",
                details={"page": page},
            ) from exc
        return RenderedPage(page=page, zoom=zoom, width_px=pix.width, height_px=pix.height, png=png)
    finally:
        doc.close()
