from __future__ import annotations

import pytest

from annotate_api.core.annotations.model import ImageAnnotation, TextAnnotation
from annotate_api.core.geometry.coords import (
    SurfaceBox,
    clamp,
    layout_box,
    pointer_to_percent,
    rotate_about,
    to_percent,
)


def test_clamp_keeps_corner_inside_surface() -> None:
    assert clamp(-5.0) == 0.0
    assert clamp(150.0) == 99.9
    assert clamp(42.0) == 42.0


def test_to_percent_with_empty_extent() -> None:
    assert to_percent(10.0, 0.0) == 0.0


def test_pointer_to_percent_is_surface_relative() -> None:
    surface = SurfaceBox(left=10.0, top=20.0, width=200.0, height=100.0)
    point = pointer_to_percent(surface, 110.0, 70.0)
    assert point.x == pytest.approx(50.0)
    assert point.y == pytest.approx(50.0)
    assert point.on_surface is True
    assert pointer_to_percent(surface, 5.0, 70.0).on_surface is False


def test_pointer_to_percent_requires_surface() -> None:
    with pytest.raises(ValueError):
        pointer_to_percent(SurfaceBox(left=0.0, top=0.0, width=0.0, height=100.0), 1.0, 1.0)


def test_rotate_about_turns_clockwise_on_screen() -> None:
    x, y = rotate_about(1.0, 0.0, 0.0, 0.0, 90.0)
    assert x == pytest.approx(0.0, abs=1e-9)
    assert y == pytest.approx(1.0)


def test_text_layout_height_never_below_font_size() -> None:
    surface = SurfaceBox(left=0.0, top=0.0, width=400.0, height=200.0)
    text = TextAnnotation(id="t", page=1, x=10.0, y=20.0, width=50.0, height=5.0, font_size=12)
    box = layout_box(text, surface)
    assert (box.left, box.top) == pytest.approx((40.0, 40.0))
    assert box.width == pytest.approx(200.0)
    assert box.height == pytest.approx(12.0)
    assert box.transform == "rotate(0deg)"
    assert box.transform_origin == "top left"


def test_image_layout_scales_absolute_units_with_zoom() -> None:
    surface = SurfaceBox(left=0.0, top=0.0, width=400.0, height=200.0)
    image = ImageAnnotation(id="i", page=1, x=0.0, y=0.0, src="a.png", width="25%", height="50px")
    box = layout_box(image, surface, scale=2.0)
    assert box.width == pytest.approx(100.0)
    assert box.height == pytest.approx(100.0)
