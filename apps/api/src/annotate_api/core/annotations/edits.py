from __future__ import annotations

import re
from typing import Any

from annotate_api.core.geometry.coords import (
    DEFAULT_FONT_SIZE,
    DEFAULT_IMAGE_HEIGHT_PERCENT,
    DEFAULT_IMAGE_WIDTH_PERCENT,
    DEFAULT_TEXT_WIDTH_PERCENT,
)


_LEADING_NUMBER_RE = re.compile(r"^\s*([+-]?(?:\d+(?:\.\d*)?|\.\d+))")


def _leading_number(value: Any, integer: bool = False) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        match = _LEADING_NUMBER_RE.match(str(value or ""))
        if not match:
            return None
        number = float(match.group(1))
    if integer:
        number = float(int(number))
    return number


def coerce_field_edits(annotation_type: str, changes: dict[str, Any]) -> dict[str, Any]:
    """Apply the editing panel's input rules before a store update.

    Font size keeps its integer part and falls back to the default when empty
    or zero; text width falls back to its default the same way; an emptied
    image dimension goes back to its default percentage.
    """
    coerced = dict(changes)
    if annotation_type == "text":
        for key in ("fontSize", "font_size"):
            if key in coerced:
                number = _leading_number(coerced[key], integer=True)
                coerced[key] = number if number else DEFAULT_FONT_SIZE
        if "width" in coerced:
            number = _leading_number(coerced["width"])
            coerced["width"] = number if number else DEFAULT_TEXT_WIDTH_PERCENT
    elif annotation_type == "image":
        if "width" in coerced and not coerced["width"]:
            coerced["width"] = f"{DEFAULT_IMAGE_WIDTH_PERCENT:g}%"
        if "height" in coerced and not coerced["height"]:
            coerced["height"] = f"{DEFAULT_IMAGE_HEIGHT_PERCENT:g}%"
    else:
        raise ValueError(f"Unknown annotation type: {annotation_type}")
    return coerced
