from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from api.deps import ROSTER_WRITE, require_capability
from core.database import get_db
from models.school_class import SchoolClass
from schemas.school_class import SchoolClassCreate, SchoolClassOut


router = APIRouter()


@router.get("/", response_model=list[SchoolClassOut])
def list_classes(
    academic_year: int | None = Query(default=None, ge=2000, le=2100),
    db: Session = Depends(get_db),
) -> list[SchoolClassOut]:
    q = select(SchoolClass).order_by(SchoolClass.grade_name.asc(), SchoolClass.name.asc())
    if academic_year is not None:
        q = q.where(SchoolClass.academic_year == int(academic_year))
    return db.execute(q).scalars().all()


@router.post("/", response_model=SchoolClassOut)
def create_class(
    payload: SchoolClassCreate,
    _writer=Depends(require_capability(ROSTER_WRITE)),
    db: Session = Depends(get_db),
) -> SchoolClassOut:
    school_class = SchoolClass(
        name=payload.name.strip(),
        grade_name=payload.grade_name.strip(),
        academic_year=int(payload.academic_year),
    )
    db.add(school_class)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="CONFLICT")
    db.refresh(school_class)
    return school_class
