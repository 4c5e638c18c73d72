"""Projection of surface-relative annotation geometry into output page space.

The output space has its origin at the bottom-left corner of the page with Y
growing upward, measured in points. Annotations are stored as percentages of
the rendered surface with the origin at the top-left corner and Y growing
downward, so every vertical coordinate is flipped against the page height.
"""

from __future__ import annotations

from dataclasses import dataclass

from annotate_api.core.annotations.model import ImageAnnotation, TextAnnotation
from annotate_api.core.export.fonts import resolve_font_name
from annotate_api.core.geometry.coords import DEFAULT_IMAGE_HEIGHT_PERCENT, DEFAULT_IMAGE_WIDTH_PERCENT
from annotate_api.core.geometry.units import resolve_dimension


DEFAULT_TEXT_HEIGHT_FACTOR = 1.5
DEFAULT_TEXT_LINE_HEIGHT = 1.2


@dataclass(frozen=True)
class PageSize:
    width: float
    height: float


@dataclass(frozen=True)
class PlacementRect:
    """Box in output space: (x, y) is the bottom-left corner."""

    x: float
    y: float
    width: float
    height: float
    rotation: float

    @property
    def top(self) -> float:
        return self.y + self.height


@dataclass(frozen=True)
class TextPlacement:
    annotation_id: str
    rect: PlacementRect
    baseline_y: float
    text: str
    font_name: str
    font_size: float
    color: tuple[float, float, float]
    line_height: float

    @property
    def wrap_width(self) -> float:
        return self.rect.width


@dataclass(frozen=True)
class ImagePlacement:
    annotation_id: str
    rect: PlacementRect
    # Dimensions ("width"/"height") that could not be parsed and used the default.
    fallbacks: tuple[str, ...] = ()


def parse_hex_color(value: str) -> tuple[float, float, float]:
    """`#RRGGBB` (hash optional) to a 0-1 RGB triple; raises ValueError on bad digits."""
    digits = value[1:] if value.startswith("#") else value
    channels = [digits[0:2], digits[2:4], digits[4:6]]
    if any(len(channel) != 2 for channel in channels):
        raise ValueError(f"Invalid color: {value!r}")
    r, g, b = (int(channel, 16) / 255 for channel in channels)
    return (r, g, b)


def flip_y(y_percent: float, page_height: float, box_height: float) -> float:
    top_offset = y_percent / 100 * page_height
    return page_height - top_offset - box_height


def place_text(
    annotation: TextAnnotation,
    page: PageSize,
    height_factor: float = DEFAULT_TEXT_HEIGHT_FACTOR,
    line_height: float = DEFAULT_TEXT_LINE_HEIGHT,
) -> TextPlacement:
    # The stored height is advisory; text flows, so the box height is estimated.
    resolved_height = annotation.font_size * height_factor
    rect = PlacementRect(
        x=annotation.x / 100 * page.width,
        y=flip_y(annotation.y, page.height, resolved_height),
        width=annotation.width / 100 * page.width,
        height=resolved_height,
        rotation=annotation.rotation,
    )
    return TextPlacement(
        annotation_id=annotation.id,
        rect=rect,
        baseline_y=rect.y + resolved_height - annotation.font_size,
        text=annotation.text,
        font_name=resolve_font_name(annotation.font_family),
        font_size=annotation.font_size,
        color=parse_hex_color(annotation.color),
        line_height=line_height,
    )


def place_image(annotation: ImageAnnotation, page: PageSize) -> ImagePlacement:
    width = resolve_dimension(annotation.width, page.width, DEFAULT_IMAGE_WIDTH_PERCENT)
    height = resolve_dimension(annotation.height, page.height, DEFAULT_IMAGE_HEIGHT_PERCENT)
    fallbacks = tuple(
        name for name, resolved in (("width", width), ("height", height)) if resolved.fell_back
    )
    rect = PlacementRect(
        x=annotation.x / 100 * page.width,
        y=flip_y(annotation.y, page.height, height.value),
        width=width.value,
        height=height.value,
        rotation=annotation.rotation,
    )
    return ImagePlacement(annotation_id=annotation.id, rect=rect, fallbacks=fallbacks)
