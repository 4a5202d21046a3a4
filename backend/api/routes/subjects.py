from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from api.deps import ROSTER_WRITE, require_capability
from core.database import get_db
from models.subject import Subject
from models.teacher_subject import TeacherSubject
from schemas.subject import SubjectCreate, SubjectOut


router = APIRouter()


@router.get("/", response_model=list[SubjectOut])
def list_subjects(db: Session = Depends(get_db)) -> list[SubjectOut]:
    q = select(Subject).order_by(Subject.name.asc())
    return db.execute(q).scalars().all()


@router.post("/", response_model=SubjectOut)
def create_subject(
    payload: SubjectCreate,
    _writer=Depends(require_capability(ROSTER_WRITE)),
    db: Session = Depends(get_db),
) -> SubjectOut:
    data = payload.model_dump()
    data["name"] = data["name"].strip()
    code = (data.get("subject_code") or "").strip()
    data["subject_code"] = code or None

    subject = Subject(**data)
    db.add(subject)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="CONFLICT")
    db.refresh(subject)
    return subject


@router.delete("/{subject_id}")
def delete_subject(
    subject_id: uuid.UUID,
    _writer=Depends(require_capability(ROSTER_WRITE)),
    db: Session = Depends(get_db),
) -> dict:
    subject = db.get(Subject, subject_id)
    if subject is None:
        raise HTTPException(status_code=404, detail="SUBJECT_NOT_FOUND")
    db.execute(delete(TeacherSubject).where(TeacherSubject.subject_id == subject.id))
    db.delete(subject)
    db.commit()
    return {"ok": True}
