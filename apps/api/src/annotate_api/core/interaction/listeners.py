from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Callable, Iterator, Literal


@dataclass(frozen=True)
class PointerEvent:
    client_x: float
    client_y: float


PointerHandler = Callable[[PointerEvent], None]
PointerKind = Literal["move", "up"]


class PointerListeners:
    """Document-level pointer-move / pointer-up subscriptions."""

    def __init__(self) -> None:
        self._handlers: dict[str, list[PointerHandler]] = {"move": [], "up": []}

    @property
    def active(self) -> bool:
        return any(self._handlers.values())

    def count(self, kind: PointerKind) -> int:
        return len(self._handlers[kind])

    def subscribe(self, kind: PointerKind, handler: PointerHandler) -> Callable[[], None]:
        self._handlers[kind].append(handler)

        def _unsubscribe() -> None:
            if handler in self._handlers[kind]:
                self._handlers[kind].remove(handler)

        return _unsubscribe

    @contextmanager
    def capture(self, on_move: PointerHandler, on_up: PointerHandler) -> Iterator[None]:
        release_move = self.subscribe("move", on_move)
        release_up = self.subscribe("up", on_up)
        try:
            yield
        finally:
            release_move()
            release_up()

    def dispatch(self, kind: PointerKind, event: PointerEvent) -> int:
        handlers = list(self._handlers[kind])
        for handler in handlers:
            handler(event)
        return len(handlers)
