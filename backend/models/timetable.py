from __future__ import annotations

import uuid

from sqlalchemy import JSON, CheckConstraint, Column, DateTime, ForeignKey, Index, Integer, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.sql import func

from models.base import Base


class Timetable(Base):
    """One weekly grid per (class, academic_year, term).

    The key triple is indexed but deliberately not unique: saving is an upsert
    by key, and readers tolerate duplicates left behind by concurrent writers.
    """

    __tablename__ = "timetables"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    class_id = Column(Uuid(as_uuid=True), ForeignKey("classes.id", ondelete="CASCADE"), nullable=False)
    academic_year = Column(Integer, nullable=False)
    term = Column(Integer, nullable=False)
    schedule = Column(JSON().with_variant(JSONB, "postgresql"), nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        CheckConstraint("term >= 1 and term <= 4", name="ck_timetables_term"),
        Index("ix_timetables_class_year_term", "class_id", "academic_year", "term"),
    )
