from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING

from annotate_api.core.geometry.units import resolve_dimension

if TYPE_CHECKING:
    from annotate_api.core.annotations.model import Annotation


# Top-left corners are kept inside [0, MAX_CORNER_PERCENT] on both axes.
MAX_CORNER_PERCENT = 99.9
MIN_RESIZE_PX = 20.0

DEFAULT_TEXT_WIDTH_PERCENT = 20.0
DEFAULT_TEXT_HEIGHT_PERCENT = 5.0
DEFAULT_FONT_SIZE = 12
DEFAULT_TEXT_CONTENT = "New Text"
DEFAULT_FONT_FAMILY = "PT Sans"
DEFAULT_TEXT_COLOR = "#000000"

DEFAULT_IMAGE_WIDTH_PERCENT = 25.0
DEFAULT_IMAGE_HEIGHT_PERCENT = 15.0
DEFAULT_IMAGE_ALT = "User image"


@dataclass(frozen=True)
class SurfaceBox:
    """Bounding box of the rendered page surface in pointer (client) pixels."""

    left: float
    top: float
    width: float
    height: float

    @property
    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0


@dataclass(frozen=True)
class PercentPoint:
    x: float
    y: float

    def __sub__(self, other: "PercentPoint") -> "PercentPoint":
        return PercentPoint(self.x - other.x, self.y - other.y)

    @property
    def on_surface(self) -> bool:
        return 0.0 <= self.x <= 100.0 and 0.0 <= self.y <= 100.0


@dataclass(frozen=True)
class LayoutBox:
    """Absolute placement of an annotation relative to the surface's top-left corner."""

    left: float
    top: float
    width: float
    height: float
    rotation: float

    @property
    def transform(self) -> str:
        return f"rotate({self.rotation:g}deg)"

    @property
    def transform_origin(self) -> str:
        return "top left"


def clamp(value: float, low: float = 0.0, high: float = MAX_CORNER_PERCENT) -> float:
    if high < low:
        high = low
    return max(low, min(high, value))


def to_percent(length_px: float, extent_px: float) -> float:
    if extent_px <= 0:
        return 0.0
    return length_px / extent_px * 100


def to_pixels(percent: float, extent_px: float) -> float:
    return percent / 100 * extent_px


def pointer_to_percent(surface: SurfaceBox, client_x: float, client_y: float) -> PercentPoint:
    if surface.is_empty:
        raise ValueError("Surface has no extent")
    return PercentPoint(
        x=to_percent(client_x - surface.left, surface.width),
        y=to_percent(client_y - surface.top, surface.height),
    )


def percent_to_pixels(surface: SurfaceBox, x: float, y: float) -> tuple[float, float]:
    return to_pixels(x, surface.width), to_pixels(y, surface.height)


def rotate_about(x: float, y: float, pivot_x: float, pivot_y: float, degrees: float) -> tuple[float, float]:
    # Y grows downward, so a positive angle turns clockwise on screen.
    radians = math.radians(degrees)
    cos_a = math.cos(radians)
    sin_a = math.sin(radians)
    dx = x - pivot_x
    dy = y - pivot_y
    return pivot_x + dx * cos_a - dy * sin_a, pivot_y + dx * sin_a + dy * cos_a


def layout_box(annotation: "Annotation", surface: SurfaceBox, scale: float = 1.0) -> LayoutBox:
    """Pixel layout of an annotation on the current surface.

    `scale` converts absolute units (image px/pt/em, font size) to surface
    pixels; it is the zoom factor the surface was rendered at.
    """
    if scale <= 0:
        scale = 1.0
    left, top = percent_to_pixels(surface, annotation.x, annotation.y)
    if annotation.type == "text":
        width = to_pixels(annotation.width, surface.width)
        advisory = to_pixels(annotation.height, surface.height)
        height = max(advisory, annotation.font_size * scale)
    elif annotation.type == "image":
        width = resolve_dimension(annotation.width, surface.width / scale, DEFAULT_IMAGE_WIDTH_PERCENT).value * scale
        height = resolve_dimension(annotation.height, surface.height / scale, DEFAULT_IMAGE_HEIGHT_PERCENT).value * scale
    else:
        raise ValueError(f"Unknown annotation type: {annotation.type}")
    return LayoutBox(left=left, top=top, width=width, height=height, rotation=annotation.rotation)
