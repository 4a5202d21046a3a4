from __future__ import annotations

import uuid

from sqlalchemy import Column, DateTime, ForeignKey, Uuid
from sqlalchemy.sql import func

from models.base import Base


class TeacherSubject(Base):
    """Qualification: the teacher may be assigned to periods of the subject.

    No unique constraint on (teacher_id, subject_id); legacy data holds duplicates.
    """

    __tablename__ = "teacher_subjects"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    teacher_id = Column(Uuid(as_uuid=True), ForeignKey("teachers.id", ondelete="CASCADE"), nullable=False, index=True)
    subject_id = Column(Uuid(as_uuid=True), ForeignKey("subjects.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
