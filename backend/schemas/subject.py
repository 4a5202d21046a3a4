from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, Field


class SubjectCreate(BaseModel):
    name: str = Field(min_length=1)
    subject_code: str | None = None
    is_compulsory: bool = False


class SubjectOut(BaseModel):
    id: uuid.UUID
    name: str
    subject_code: str | None
    is_compulsory: bool
    created_at: datetime

    class Config:
        from_attributes = True
