from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Annotated, Any

from pydantic import PlainSerializer, PlainValidator, WithJsonSchema


EM_SIZE_PT = 12.0

_DIMENSION_RE = re.compile(r"^\s*(\d+(?:\.\d*)?|\.\d+)\s*(%|px|pt|em)?\s*$", re.IGNORECASE)


class DimensionUnit(str, Enum):
    PERCENT = "%"
    PX = "px"
    PT = "pt"
    EM = "em"


@dataclass(frozen=True)
class Dimension:
    """A magnitude tagged with its unit.

    `raw` keeps the text the dimension was parsed from so an unparseable value
    survives until export, where it is resolved to a fallback and reported.
    """

    magnitude: float | None
    unit: DimensionUnit | None
    raw: str

    @property
    def is_valid(self) -> bool:
        return self.magnitude is not None and self.unit is not None

    def __str__(self) -> str:
        return self.raw


@dataclass(frozen=True)
class ResolvedLength:
    value: float
    fell_back: bool = False


def parse_dimension(text: str) -> Dimension:
    """Classify a dimension string by its trailing unit.

    A bare number is read as points. Anything else comes back as an invalid
    dimension instead of raising.
    """
    raw = "" if text is None else str(text)
    match = _DIMENSION_RE.match(raw)
    if not match:
        return Dimension(magnitude=None, unit=None, raw=raw)
    magnitude = float(match.group(1))
    suffix = (match.group(2) or "pt").lower()
    return Dimension(magnitude=magnitude, unit=DimensionUnit(suffix), raw=raw.strip())


def resolve_dimension(
    dimension: Dimension | str,
    reference_extent: float,
    fallback_percent: float,
) -> ResolvedLength:
    if isinstance(dimension, str):
        dimension = parse_dimension(dimension)
    if not dimension.is_valid:
        return ResolvedLength(value=fallback_percent / 100 * reference_extent, fell_back=True)
    magnitude = float(dimension.magnitude)
    if dimension.unit is DimensionUnit.PERCENT:
        return ResolvedLength(value=magnitude / 100 * reference_extent)
    if dimension.unit is DimensionUnit.EM:
        return ResolvedLength(value=magnitude * EM_SIZE_PT)
    # px and pt map 1:1 onto output units.
    return ResolvedLength(value=magnitude)


def coerce_dimension(value: Any) -> Dimension:
    if isinstance(value, Dimension):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return parse_dimension(str(value))
    if isinstance(value, str):
        return parse_dimension(value)
    raise ValueError("dimension must be a string such as '25%', '120px', '90pt' or '2em'")


DimensionField = Annotated[
    Dimension,
    PlainValidator(coerce_dimension),
    PlainSerializer(lambda value: value.raw, return_type=str),
    WithJsonSchema({"type": "string", "examples": ["25%", "120px", "90pt", "2em"]}),
]
