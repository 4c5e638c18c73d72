from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from annotate_api.core.geometry.coords import SurfaceBox


MIN_ZOOM = 0.25
MAX_ZOOM = 3.0
ZOOM_STEP = 0.25

logger = logging.getLogger("annotate_api.view")


@dataclass(frozen=True)
class ViewChange:
    page: int
    zoom: float
    previous_page: int
    previous_zoom: float


ViewListener = Callable[[ViewChange], None]


class ViewState:
    """Current page, zoom factor and rendered surface of one open document.

    Listeners hear about every page or zoom change. Any change makes the
    surface stale until the next render reports a fresh one.
    """

    def __init__(self, page_count: int = 0) -> None:
        self.page_count = page_count
        self.page = 1
        self.zoom = 1.0
        self.surface: SurfaceBox | None = None
        self._render_generation = 0
        self._listeners: list[ViewListener] = []

    def subscribe(self, listener: ViewListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def reset(self, page_count: int) -> None:
        self.page_count = page_count
        self._apply(page=1, zoom=1.0)
        self.surface = None

    def go_to(self, page: int) -> int:
        upper = max(1, self.page_count)
        self._apply(page=max(1, min(upper, int(page))), zoom=self.zoom)
        return self.page

    def next_page(self) -> int:
        return self.go_to(self.page + 1)

    def previous_page(self) -> int:
        return self.go_to(self.page - 1)

    def set_zoom(self, zoom: float) -> float:
        self._apply(page=self.page, zoom=max(MIN_ZOOM, min(MAX_ZOOM, float(zoom))))
        return self.zoom

    def zoom_in(self) -> float:
        return self.set_zoom(self.zoom + ZOOM_STEP)

    def zoom_out(self) -> float:
        return self.set_zoom(self.zoom - ZOOM_STEP)

    def begin_render(self) -> int:
        self._render_generation += 1
        return self._render_generation

    def complete_render(self, generation: int, surface: SurfaceBox) -> bool:
        """Accept a render result unless a newer render has been issued since."""
        if generation != self._render_generation:
            logger.debug(
                "stale render dropped generation=%s latest=%s", generation, self._render_generation
            )
            return False
        self.surface = surface
        return True

    def set_surface(self, surface: SurfaceBox | None) -> None:
        self.surface = surface

    def _apply(self, page: int, zoom: float) -> None:
        if page == self.page and zoom == self.zoom:
            return
        change = ViewChange(page=page, zoom=zoom, previous_page=self.page, previous_zoom=self.zoom)
        self.page = page
        self.zoom = zoom
        self.surface = None
        for listener in list(self._listeners):
            listener(change)
