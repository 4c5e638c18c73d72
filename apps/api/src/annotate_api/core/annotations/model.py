from __future__ import annotations

from typing import Annotated, Literal, Union
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator

from annotate_api.core.geometry.coords import (
    DEFAULT_FONT_FAMILY,
    DEFAULT_FONT_SIZE,
    DEFAULT_IMAGE_ALT,
    DEFAULT_IMAGE_HEIGHT_PERCENT,
    DEFAULT_IMAGE_WIDTH_PERCENT,
    DEFAULT_TEXT_COLOR,
    DEFAULT_TEXT_CONTENT,
    DEFAULT_TEXT_HEIGHT_PERCENT,
    DEFAULT_TEXT_WIDTH_PERCENT,
)
from annotate_api.core.geometry.units import DimensionField, parse_dimension


AnnotationType = Literal["text", "image"]


def new_annotation_id() -> str:
    return uuid4().hex


def normalize_rotation(value: float) -> float:
    return float(value) % 360


class AnnotationBase(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True, allow_inf_nan=False)

    id: str
    page: int = Field(..., ge=1)
    x: float
    y: float
    rotation: float = 0.0

    @field_validator("rotation")
    @classmethod
    def _normalize_rotation(cls, value: float) -> float:
        return normalize_rotation(value)


class TextAnnotation(AnnotationBase):
    type: Literal["text"] = "text"
    text: str = DEFAULT_TEXT_CONTENT
    font_size: float = Field(DEFAULT_FONT_SIZE, alias="fontSize", gt=0)
    font_family: str = Field(DEFAULT_FONT_FAMILY, alias="fontFamily")
    color: str = DEFAULT_TEXT_COLOR
    width: float = DEFAULT_TEXT_WIDTH_PERCENT
    # Advisory only: sizes the initial box, never used at export.
    height: float = DEFAULT_TEXT_HEIGHT_PERCENT


class ImageAnnotation(AnnotationBase):
    type: Literal["image"] = "image"
    src: str
    alt: str = DEFAULT_IMAGE_ALT
    width: DimensionField = parse_dimension(f"{DEFAULT_IMAGE_WIDTH_PERCENT:g}%")
    height: DimensionField = parse_dimension(f"{DEFAULT_IMAGE_HEIGHT_PERCENT:g}%")


Annotation = Annotated[Union[TextAnnotation, ImageAnnotation], Field(discriminator="type")]

annotation_adapter: TypeAdapter[Annotation] = TypeAdapter(Annotation)


def parse_annotation(payload: dict) -> TextAnnotation | ImageAnnotation:
    return annotation_adapter.validate_python(payload)
