from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class DocumentMeta(BaseModel):
    doc_id: str
    filename: str
    size_bytes: int = Field(..., ge=0)
    page_count: int = Field(..., ge=1)
    created_at_iso: datetime


class UploadResponse(BaseModel):
    document: DocumentMeta
