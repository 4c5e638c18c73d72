from __future__ import annotations

import logging

from annotate_api.core.annotations.store import AnnotationStore
from annotate_api.core.errors import RenderError, SessionNotFoundError
from annotate_api.core.geometry.coords import SurfaceBox
from annotate_api.core.interaction.hittest import PointerTarget, hit_test_point
from annotate_api.core.interaction.listeners import PointerListeners
from annotate_api.core.interaction.machine import InteractionMachine
from annotate_api.core.interaction.view import ViewState
from annotate_api.services.documents import LoadedDocument, RenderedPage, load_document, render_page
from annotate_api.services.storage import document_key, get_storage


logger = logging.getLogger("annotate_api.sessions")


class EditingSession:
    """Annotation state of one open document.

    The store is the single source of truth; the view, the interaction machine
    and the editing panel all work against it.
    """

    def __init__(self, doc_id: str, document: LoadedDocument) -> None:
        self.doc_id = doc_id
        self.document = document
        self.store = AnnotationStore()
        self.view = ViewState(page_count=document.page_count)
        self.listeners = PointerListeners()
        self.machine = InteractionMachine(self.store, self.view, self.listeners)

    @property
    def page_count(self) -> int:
        return self.document.page_count

    def visible_annotations(self) -> list:
        if self.view.page > self.page_count:
            return []
        return self.store.query_by_page(self.view.page)

    def hit_test(self, client_x: float, client_y: float) -> PointerTarget:
        surface = self.view.surface
        if surface is None or surface.is_empty:
            return PointerTarget.background()
        return hit_test_point(
            self.visible_annotations(),
            surface,
            client_x,
            client_y,
            selected_id=self.store.selected_id,
            scale=self.view.zoom,
        )

    def render(self, pdf_bytes: bytes, page: int, zoom: float, origin: tuple[float, float] = (0.0, 0.0)) -> RenderedPage:
        generation = self.view.begin_render()
        current = page == self.view.page and zoom == self.view.zoom
        try:
            rendered = render_page(pdf_bytes, page, zoom)
        except RenderError:
            if current:
                self.view.set_surface(None)
            raise
        if current:
            self.view.complete_render(
                generation,
                SurfaceBox(left=origin[0], top=origin[1], width=rendered.width_px, height=rendered.height_px),
            )
        return rendered


_sessions: dict[str, EditingSession] = {}


def open_session(doc_id: str, pdf_bytes: bytes) -> EditingSession:
    """Load the document and start a fresh session, dropping any earlier annotations."""
    document = load_document(pdf_bytes)
    previous = _sessions.get(doc_id)
    if previous is not None:
        previous.machine.reset()
        previous.store.clear()
    session = EditingSession(doc_id, document)
    _sessions[doc_id] = session
    logger.info("session opened doc_id=%s pages=%s", doc_id, document.page_count)
    return session


def get_session(doc_id: str) -> EditingSession:
    session = _sessions.get(doc_id)
    if session is not None:
        return session
    storage = get_storage()
    key = document_key(doc_id)
    if not storage.exists(key):
        raise SessionNotFoundError(
            status_code=404,
            code="document_not_found",
            message="Document not found",
            details={"doc_id": doc_id},
        )
    return open_session(doc_id, storage.get_bytes(key))


def close_session(doc_id: str) -> None:
    session = _sessions.pop(doc_id, None)
    if session is not None:
        session.machine.reset()


def reset_sessions() -> None:
    for doc_id in list(_sessions):
        close_session(doc_id)
