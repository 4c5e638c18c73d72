from __future__ import annotations

import pytest

from annotate_api.core.annotations.model import ImageAnnotation, TextAnnotation
from annotate_api.core.export.fonts import resolve_font_name
from annotate_api.core.export.transform import PageSize, parse_hex_color, place_image, place_text


PAGE = PageSize(width=612.0, height=792.0)


def test_text_box_is_flipped_against_page_height() -> None:
    text = TextAnnotation(id="t", page=1, x=10.0, y=10.0, width=50.0, font_size=12)
    placement = place_text(text, PAGE)
    rect = placement.rect
    assert rect.height == pytest.approx(18.0)
    assert rect.x == pytest.approx(61.2)
    assert rect.width == pytest.approx(306.0)
    # Top edge sits 10% below the top of the page.
    assert rect.y + rect.height + PAGE.height * 0.1 == pytest.approx(PAGE.height)
    assert placement.baseline_y == pytest.approx(rect.y + 18.0 - 12.0)
    assert placement.font_name == "helv"
    assert placement.color == (0.0, 0.0, 0.0)
    assert placement.line_height == 1.2


def test_text_height_factor_is_configurable() -> None:
    text = TextAnnotation(id="t", page=1, x=0.0, y=0.0, font_size=10)
    placement = place_text(text, PAGE, height_factor=2.0)
    assert placement.rect.height == pytest.approx(20.0)
    assert placement.rect.top == pytest.approx(PAGE.height)


def test_image_box_resolves_units() -> None:
    image = ImageAnnotation(id="i", page=1, x=0.0, y=50.0, src="a.png", width="25%", height="100px")
    placement = place_image(image, PAGE)
    assert placement.rect.width == pytest.approx(153.0)
    assert placement.rect.height == pytest.approx(100.0)
    assert placement.rect.y == pytest.approx(792.0 - 396.0 - 100.0)
    assert placement.fallbacks == ()


def test_unparseable_image_dimension_uses_default() -> None:
    image = ImageAnnotation(id="i", page=1, x=0.0, y=0.0, src="a.png", width="wide", height="2em")
    placement = place_image(image, PAGE)
    assert placement.fallbacks == ("width",)
    assert placement.rect.width == pytest.approx(153.0)
    assert placement.rect.height == pytest.approx(24.0)


def test_hex_colors() -> None:
    assert parse_hex_color("#ff0000") == (1.0, 0.0, 0.0)
    assert parse_hex_color("00ff00") == (0.0, 1.0, 0.0)
    with pytest.raises(ValueError):
        parse_hex_color("#fff")
    with pytest.raises(ValueError):
        parse_hex_color("#zzzzzz")


@pytest.mark.parametrize(
    ("family", "expected"),
    [
        ("PT Sans", "helv"),
        ("Times New Roman", "tiro"),
        ("Courier Bold", "cobo"),
        ("Helvetica, Arial, sans-serif", "helv"),
        ("Comic Sans", "helv"),
        ("", "helv"),
    ],
)
def test_font_families_map_to_base_fonts(family: str, expected: str) -> None:
    assert resolve_font_name(family) == expected
