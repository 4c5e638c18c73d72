from __future__ import annotations

import pytest

from annotate_api.core.annotations.edits import coerce_field_edits


@pytest.mark.parametrize(
    ("value", "expected"),
    [("18.7", 18.0), ("14px", 14.0), ("", 12), ("abc", 12), ("0", 12), (16, 16.0)],
)
def test_font_size_edit(value, expected) -> None:
    assert coerce_field_edits("text", {"fontSize": value})["fontSize"] == expected


@pytest.mark.parametrize(("value", "expected"), [("33.5%", 33.5), ("", 20.0), ("wide", 20.0)])
def test_text_width_edit(value, expected) -> None:
    assert coerce_field_edits("text", {"width": value})["width"] == expected


def test_emptied_image_dimensions_restore_defaults() -> None:
    changes = coerce_field_edits("image", {"width": "", "height": None, "alt": "logo"})
    assert changes == {"width": "25%", "height": "15%", "alt": "logo"}
    assert coerce_field_edits("image", {"width": "40px"}) == {"width": "40px"}


def test_unknown_type_rejected() -> None:
    with pytest.raises(ValueError):
        coerce_field_edits("arrow", {"width": 3})
