from __future__ import annotations

import logging
from typing import Any, Iterator

from annotate_api.core.annotations.model import (
    ImageAnnotation,
    TextAnnotation,
    new_annotation_id,
    parse_annotation,
)
from annotate_api.core.errors import annotation_not_found


logger = logging.getLogger("annotate_api.store")

AnnotationRecord = TextAnnotation | ImageAnnotation

_IMMUTABLE_FIELDS = {"id", "type"}


def _field_names(record: AnnotationRecord, changes: dict[str, Any]) -> dict[str, Any]:
    """Map alias keys (``fontSize``) onto field names (``font_size``)."""
    by_alias = {
        (field.alias or name): name for name, field in type(record).model_fields.items()
    }
    normalized: dict[str, Any] = {}
    for key, value in changes.items():
        normalized[by_alias.get(key, key)] = value
    return normalized


class AnnotationStore:
    """Ordered annotations keyed by id, plus the single current selection."""

    def __init__(self) -> None:
        self._records: dict[str, AnnotationRecord] = {}
        self._selected_id: str | None = None

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[AnnotationRecord]:
        return iter(list(self._records.values()))

    def __contains__(self, annotation_id: object) -> bool:
        return annotation_id in self._records

    @property
    def selected_id(self) -> str | None:
        return self._selected_id

    def all(self) -> list[AnnotationRecord]:
        return list(self._records.values())

    def get(self, annotation_id: str) -> AnnotationRecord:
        record = self._records.get(annotation_id)
        if record is None:
            raise annotation_not_found(annotation_id)
        return record

    def find(self, annotation_id: str | None) -> AnnotationRecord | None:
        if annotation_id is None:
            return None
        return self._records.get(annotation_id)

    def add(self, payload: dict[str, Any]) -> AnnotationRecord:
        data = dict(payload)
        data["id"] = new_annotation_id()
        while data["id"] in self._records:
            data["id"] = new_annotation_id()
        record = parse_annotation(data)
        self._records[record.id] = record
        logger.debug("annotation added annotation_id=%s type=%s page=%s", record.id, record.type, record.page)
        return record

    def update(self, annotation_id: str, changes: dict[str, Any]) -> AnnotationRecord:
        current = self.get(annotation_id)
        normalized = _field_names(current, changes)
        blocked = _IMMUTABLE_FIELDS.intersection(normalized)
        for name in blocked:
            if normalized[name] != getattr(current, name):
                raise ValueError(f"Field '{name}' cannot be changed")
            normalized.pop(name)
        merged = {**current.model_dump(), **normalized}
        updated = type(current).model_validate(merged)
        self._records[annotation_id] = updated
        return updated

    def move_to_page(self, annotation_id: str, page: int) -> AnnotationRecord:
        return self.update(annotation_id, {"page": page})

    def remove(self, annotation_id: str) -> AnnotationRecord:
        record = self._records.pop(annotation_id, None)
        if record is None:
            raise annotation_not_found(annotation_id)
        if self._selected_id == annotation_id:
            self._selected_id = None
        logger.debug("annotation removed annotation_id=%s", annotation_id)
        return record

    def query_by_page(self, page: int) -> list[AnnotationRecord]:
        return [record for record in self._records.values() if record.page == page]

    def select(self, annotation_id: str | None) -> None:
        if annotation_id is not None and annotation_id not in self._records:
            raise annotation_not_found(annotation_id)
        self._selected_id = annotation_id

    def selected(self) -> AnnotationRecord | None:
        return self.find(self._selected_id)

    def clear(self) -> None:
        self._records.clear()
        self._selected_id = None
