from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, Field


class SchoolClassCreate(BaseModel):
    name: str = Field(min_length=1)
    grade_name: str = Field(min_length=1)
    academic_year: int = Field(ge=2000, le=2100)


class SchoolClassOut(BaseModel):
    id: uuid.UUID
    name: str
    grade_name: str
    academic_year: int
    display_name: str
    created_at: datetime

    class Config:
        from_attributes = True
