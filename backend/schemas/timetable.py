from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field


Weekday = Literal["Monday", "Tuesday", "Wednesday", "Thursday", "Friday"]

# weekday -> "period" -> {"subject_id": ..., "teacher_id": ...}
Schedule = dict[str, Any]


class TimetableKey(BaseModel):
    class_id: uuid.UUID
    academic_year: int = Field(ge=2000, le=2100)
    term: int = Field(ge=1, le=4)


class TimetableSummaryOut(BaseModel):
    id: uuid.UUID
    class_id: uuid.UUID
    class_name: str
    academic_year: int
    term: int
    created_at: datetime
    updated_at: datetime


class TermOut(BaseModel):
    academic_year: int
    term: int
    label: str


class EligibleTeacherOut(BaseModel):
    teacher_id: str
    name: str


class GridOut(BaseModel):
    class_id: uuid.UUID
    academic_year: int
    term: int
    exists: bool
    schedule: Schedule


class CellEditIn(BaseModel):
    op: Literal["set_subject", "set_teacher", "clear_teacher"]
    weekday: Weekday
    period: int = Field(ge=1, le=8)
    value: str | None = None


class GridEditsIn(BaseModel):
    schedule: Schedule | None = None
    edits: list[CellEditIn] = Field(default_factory=list)


class RejectedEditOut(BaseModel):
    code: str
    weekday: str
    period: int
    message: str


class GridEditsOut(BaseModel):
    schedule: Schedule
    rejected: list[RejectedEditOut]


class GridSaveIn(TimetableKey):
    schedule: Schedule


class GridSaveOut(BaseModel):
    id: uuid.UUID
    created: bool
    updated_at: datetime


class CellViewOut(BaseModel):
    period: int
    subject_id: str | None
    subject_label: str
    teacher_id: str | None
    teacher_label: str


class TimetableViewOut(BaseModel):
    id: uuid.UUID
    class_id: uuid.UUID
    class_name: str
    academic_year: int
    term: int
    days: dict[str, list[CellViewOut]]
