from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from api.deps import ROSTER_WRITE, require_capability
from core.database import get_db
from models.subject import Subject
from models.teacher import Teacher
from models.teacher_subject import TeacherSubject
from schemas.teacher import TeacherCreate, TeacherOut, TeacherSubjectsPut


router = APIRouter()


def _subject_ids_by_teacher(db: Session, teacher_ids: list[uuid.UUID]) -> dict[uuid.UUID, list[uuid.UUID]]:
    if not teacher_ids:
        return {}
    rows = db.execute(
        select(TeacherSubject.teacher_id, TeacherSubject.subject_id)
        .where(TeacherSubject.teacher_id.in_(teacher_ids))
        .order_by(TeacherSubject.created_at.asc())
    ).all()
    out: dict[uuid.UUID, list[uuid.UUID]] = {}
    for teacher_id, subject_id in rows:
        out.setdefault(teacher_id, []).append(subject_id)
    return out


def _to_out(teacher: Teacher, subject_ids: list[uuid.UUID]) -> TeacherOut:
    return TeacherOut(
        id=teacher.id,
        first_name=teacher.first_name,
        last_name=teacher.last_name,
        email=teacher.email,
        subject_ids=subject_ids,
        created_at=teacher.created_at,
    )


def _require_subjects(db: Session, subject_ids: list[uuid.UUID]) -> list[uuid.UUID]:
    # Keep first occurrence order; a qualification is recorded once per subject.
    unique = list(dict.fromkeys(subject_ids))
    if not unique:
        return []
    found = set(db.execute(select(Subject.id).where(Subject.id.in_(unique))).scalars().all())
    missing = [str(s) for s in unique if s not in found]
    if missing:
        raise HTTPException(status_code=404, detail={"code": "SUBJECT_NOT_FOUND", "subject_ids": missing})
    return unique


@router.get("/", response_model=list[TeacherOut])
def list_teachers(db: Session = Depends(get_db)) -> list[TeacherOut]:
    q = select(Teacher).order_by(Teacher.last_name.asc(), Teacher.first_name.asc())
    teachers = db.execute(q).scalars().all()
    links = _subject_ids_by_teacher(db, [t.id for t in teachers])
    return [_to_out(t, links.get(t.id, [])) for t in teachers]


@router.post("/", response_model=TeacherOut)
def create_teacher(
    payload: TeacherCreate,
    _writer=Depends(require_capability(ROSTER_WRITE)),
    db: Session = Depends(get_db),
) -> TeacherOut:
    subject_ids = _require_subjects(db, payload.subject_ids)

    teacher = Teacher(
        first_name=payload.first_name.strip(),
        last_name=payload.last_name.strip(),
        email=(payload.email or "").strip() or None,
    )
    db.add(teacher)
    try:
        db.flush()
        for subject_id in subject_ids:
            db.add(TeacherSubject(teacher_id=teacher.id, subject_id=subject_id))
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="CONFLICT")
    db.refresh(teacher)
    return _to_out(teacher, subject_ids)


@router.put("/{teacher_id}/subjects", response_model=TeacherOut)
def put_teacher_subjects(
    teacher_id: uuid.UUID,
    payload: TeacherSubjectsPut,
    _writer=Depends(require_capability(ROSTER_WRITE)),
    db: Session = Depends(get_db),
) -> TeacherOut:
    teacher = db.get(Teacher, teacher_id)
    if teacher is None:
        raise HTTPException(status_code=404, detail="TEACHER_NOT_FOUND")

    subject_ids = _require_subjects(db, payload.subject_ids)

    db.execute(delete(TeacherSubject).where(TeacherSubject.teacher_id == teacher.id))
    for subject_id in subject_ids:
        db.add(TeacherSubject(teacher_id=teacher.id, subject_id=subject_id))
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="CONFLICT")
    db.refresh(teacher)
    return _to_out(teacher, subject_ids)


@router.delete("/{teacher_id}")
def delete_teacher(
    teacher_id: uuid.UUID,
    _writer=Depends(require_capability(ROSTER_WRITE)),
    db: Session = Depends(get_db),
) -> dict:
    teacher = db.get(Teacher, teacher_id)
    if teacher is None:
        raise HTTPException(status_code=404, detail="TEACHER_NOT_FOUND")
    db.execute(delete(TeacherSubject).where(TeacherSubject.teacher_id == teacher.id))
    db.delete(teacher)
    db.commit()
    return {"ok": True}
