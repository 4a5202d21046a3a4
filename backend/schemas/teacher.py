from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, Field


class TeacherCreate(BaseModel):
    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    email: str | None = None
    subject_ids: list[uuid.UUID] = Field(default_factory=list)


class TeacherSubjectsPut(BaseModel):
    subject_ids: list[uuid.UUID]


class TeacherOut(BaseModel):
    id: uuid.UUID
    first_name: str
    last_name: str
    email: str | None
    subject_ids: list[uuid.UUID] = Field(default_factory=list)
    created_at: datetime
