from __future__ import annotations

import logging
from dataclasses import dataclass, field
from io import BytesIO
from typing import Iterable

import fitz
import httpx

from annotate_api.core.annotations.model import ImageAnnotation, TextAnnotation
from annotate_api.core.errors import DocumentLoadError, ExportError, PayloadError
from annotate_api.core.export.fonts import DEFAULT_FONT
from annotate_api.core.export.transform import (
    PageSize,
    PlacementRect,
    TextPlacement,
    place_image,
    place_text,
)
from annotate_api.core.geometry.coords import rotate_about
from annotate_api.services.documents import open_pdf
from annotate_api.services.payloads import resolve_payload
from annotate_api.settings import get_settings


logger = logging.getLogger("annotate_api.export")


@dataclass(frozen=True)
class ExportIssue:
    annotation_id: str
    page: int
    code: str
    message: str


@dataclass
class ExportResult:
    payload: bytes
    drawn: int = 0
    skipped: list[ExportIssue] = field(default_factory=list)
    warnings: list[ExportIssue] = field(default_factory=list)


def _page_rect(rect: PlacementRect, page_height: float) -> fitz.Rect:
    """Output-space box (bottom-left origin) to a PyMuPDF rect (top-left origin)."""
    return fitz.Rect(rect.x, page_height - rect.top, rect.x + rect.width, page_height - rect.y)


def _quarter_turns(rotation: float) -> int:
    return int(round(rotation / 90)) % 4


def _rotated_footprint(rect: fitz.Rect, rotation: float) -> fitz.Rect:
    # Rotate the box about its top-left corner and take the bounding rect.
    corners = [rect.tl, rect.tr, rect.bl, rect.br]
    rotated = [rotate_about(point.x, point.y, rect.x0, rect.y0, rotation) for point in corners]
    xs = [point[0] for point in rotated]
    ys = [point[1] for point in rotated]
    return fitz.Rect(min(xs), min(ys), max(xs), max(ys))


def _morph(pivot: fitz.Point, rotation: float) -> tuple[fitz.Point, fitz.Matrix] | None:
    if not rotation:
        return None
    # The morph matrix acts in PDF space (Y up); negate to turn clockwise on the page.
    return (pivot, fitz.Matrix(1, 0, 0, 1, 0, 0).prerotate(-rotation))


class _PageWriter:
    def __init__(self, page: fitz.Page, page_number: int, result: ExportResult) -> None:
        self.page = page
        self.page_number = page_number
        self.size = PageSize(width=page.rect.width, height=page.rect.height)
        self.result = result

    def skip(self, annotation_id: str, code: str, message: str) -> None:
        logger.warning(
            "annotation skipped page=%s annotation_id=%s code=%s", self.page_number, annotation_id, code
        )
        self.result.skipped.append(ExportIssue(annotation_id, self.page_number, code, message))

    def warn(self, annotation_id: str, code: str, message: str) -> None:
        logger.warning(
            "annotation export warning page=%s annotation_id=%s code=%s", self.page_number, annotation_id, code
        )
        self.result.warnings.append(ExportIssue(annotation_id, self.page_number, code, message))

    def draw_text(self, annotation: TextAnnotation, height_factor: float, line_height: float) -> None:
        try:
            placement = place_text(annotation, self.size, height_factor=height_factor, line_height=line_height)
        except ValueError:
            self.skip(annotation.id, "invalid_color", f"Unsupported color {annotation.color!r}")
            return
        if placement.wrap_width <= 0:
            self.skip(annotation.id, "empty_text_box", "Text box has no width")
            return

        box = _page_rect(placement.rect, self.size.height)
        flow_box = fitz.Rect(box.x0, box.y0, box.x1, max(box.y1, self.size.height))
        morph = _morph(box.tl, placement.rect.rotation)
        try:
            remaining = self._insert_textbox(flow_box, placement, placement.font_name, morph)
            if remaining < 0:
                baseline = fitz.Point(box.x0, self.size.height - placement.baseline_y)
                self._insert_line(baseline, placement, morph)
        except (RuntimeError, ValueError) as exc:
            self.skip(annotation.id, "text_draw_failed", f"Text could not be drawn: {exc.__class__.__name__}")
            return
        if remaining < 0:
            self.warn(annotation.id, "text_overflow", "Text did not fit the page and was drawn as one line")
        self.result.drawn += 1

    def _insert_textbox(self, rect: fitz.Rect, placement: TextPlacement, font_name: str, morph) -> float:
        try:
            return self.page.insert_textbox(
                rect,
                placement.text,
                fontname=font_name,
                fontsize=placement.font_size,
                color=placement.color,
                lineheight=placement.line_height,
                align=fitz.TEXT_ALIGN_LEFT,
                morph=morph,
            )
        except (RuntimeError, ValueError) as exc:
            if font_name == DEFAULT_FONT:
                raise
            logger.warning(
                "Unsupported font fallback page=%s annotation_id=%s font=%s error=%s",
                self.page_number,
                placement.annotation_id,
                font_name,
                exc.__class__.__name__,
            )
            return self._insert_textbox(rect, placement, DEFAULT_FONT, morph)

    def _insert_line(self, point: fitz.Point, placement: TextPlacement, morph) -> None:
        self.page.insert_text(
            point,
            placement.text.replace("\n", " "),
            fontname=DEFAULT_FONT,
            fontsize=placement.font_size,
            color=placement.color,
            morph=morph,
        )

    async def draw_image(self, annotation: ImageAnnotation, client: httpx.AsyncClient) -> None:
        placement = place_image(annotation, self.size)
        for name in placement.fallbacks:
            value = getattr(annotation, name).raw
            self.warn(annotation.id, f"invalid_{name}", f"Unsupported {name} {value!r}; default size used")
        try:
            payload = await resolve_payload(annotation.src, client)
        except PayloadError as exc:
            self.skip(annotation.id, exc.code, f"{exc.message}: {annotation.alt}")
            return

        rotation = placement.rect.rotation
        turns = _quarter_turns(rotation)
        if rotation % 90:
            self.warn(annotation.id, "rotation_snapped", f"Image rotation {rotation:g} drawn as {turns * 90}")
        box = _page_rect(placement.rect, self.size.height)
        footprint = _rotated_footprint(box, turns * 90)
        try:
            # insert_image turns counter-clockwise for positive values.
            self.page.insert_image(
                footprint,
                stream=payload.data,
                rotate=(-turns * 90) % 360,
                keep_proportion=False,
                overlay=True,
            )
        except (RuntimeError, ValueError) as exc:
            self.skip(annotation.id, "payload_decode_failed", f"Image could not be embedded: {annotation.alt}")
            logger.debug("image embed error annotation_id=%s error=%s", annotation.id, exc)
            return
        self.result.drawn += 1


async def export_annotated_pdf(
    pdf_bytes: bytes,
    annotations: Iterable[TextAnnotation | ImageAnnotation],
    client: httpx.AsyncClient | None = None,
) -> ExportResult:
    """Bake annotations into a copy of the document.

    Annotations are drawn page by page in store order. A failing annotation is
    skipped and reported; only an unreadable source or an unserializable
    output aborts the export.
    """
    settings = get_settings()
    records = list(annotations)
    try:
        doc = open_pdf(pdf_bytes)
    except DocumentLoadError as exc:
        raise ExportError(
            status_code=422,
            code="export_source_unreadable",
            message="Source document could not be reopened for export",
            details=exc.details,
        ) from exc

    owns_client = client is None
    if client is None:
        client = httpx.AsyncClient(timeout=settings.ANNOTATE_FETCH_TIMEOUT_S, follow_redirects=True)
    result = ExportResult(payload=b"")
    try:
        for page_number in range(1, doc.page_count + 1):
            writer = _PageWriter(doc[page_number - 1], page_number, result)
            for annotation in records:
                if annotation.page != page_number:
                    continue
                if annotation.type == "text":
                    writer.draw_text(
                        annotation,
                        settings.ANNOTATE_TEXT_HEIGHT_FACTOR,
                        settings.ANNOTATE_TEXT_LINE_HEIGHT,
                    )
                elif annotation.type == "image":
                    await writer.draw_image(annotation, client)
                else:
                    raise ValueError(f"Unknown annotation type: {annotation.type}")

        for annotation in records:
            if annotation.page > doc.page_count:
                result.skipped.append(
                    ExportIssue(annotation.id, annotation.page, "page_out_of_range", "Page does not exist")
                )

        buffer = BytesIO()
        try:
            doc.save(buffer)
        except (RuntimeError, ValueError) as exc:
            raise ExportError(
                status_code=500,
                code="export_serialize_failed",
                message="Annotated document could not be written",
            ) from exc
        result.payload = buffer.getvalue()
        logger.info(
            "export finished pages=%s drawn=%s skipped=%s warnings=%s",
            doc.page_count,
            result.drawn,
            len(result.skipped),
            len(result.warnings),
        )
        return result
    finally:
        doc.close()
        if owns_client:
            await client.aclose()
