from __future__ import annotations

import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException, Query

from api.deps import TIMETABLE_WRITE, get_row_store, require_capability
from schemas.timetable import (
    EligibleTeacherOut,
    GridEditsIn,
    GridEditsOut,
    GridOut,
    GridSaveIn,
    GridSaveOut,
    TermOut,
    TimetableSummaryOut,
    TimetableViewOut,
)
from services.eligibility import load_eligibility_index
from services.row_store import SqlAlchemyRowStore, StorageFailure, first_or_none
from services.timetable_grid import CellEdit, Grid, apply_edits, from_plain_grid, to_plain_grid, validate_grid
from services.timetable_store import GridStore
from services.timetable_view import (
    by_id,
    class_label,
    distinct_terms,
    filter_timetables,
    render_days,
    term_label,
)


router = APIRouter()

logger = logging.getLogger(__name__)


def _get_class(store: SqlAlchemyRowStore, class_id: uuid.UUID) -> dict:
    row = first_or_none(store.query("classes", {"id": class_id}))
    if row is None:
        raise HTTPException(status_code=404, detail="CLASS_NOT_FOUND")
    return row


def _get_timetable(store: SqlAlchemyRowStore, timetable_id: uuid.UUID) -> dict:
    row = first_or_none(store.query("timetables", {"id": timetable_id}))
    if row is None:
        raise HTTPException(status_code=404, detail="TIMETABLE_NOT_FOUND")
    return row


@router.get("/", response_model=list[TimetableSummaryOut])
def list_timetables(
    academic_year: int | None = Query(default=None),
    term: int | None = Query(default=None, ge=1, le=4),
    q: str | None = Query(default=None, max_length=100),
    store: SqlAlchemyRowStore = Depends(get_row_store),
) -> list[TimetableSummaryOut]:
    rows = store.query("timetables", ordering=[("academic_year", False), ("term", True)])
    classes = by_id(store.query("classes"))
    rows = filter_timetables(rows, classes, academic_year=academic_year, term=term, search=q)
    return [
        TimetableSummaryOut(
            id=r["id"],
            class_id=r["class_id"],
            class_name=class_label(r["class_id"], classes),
            academic_year=r["academic_year"],
            term=r["term"],
            created_at=r["created_at"],
            updated_at=r["updated_at"],
        )
        for r in rows
    ]


@router.get("/terms", response_model=list[TermOut])
def list_terms(store: SqlAlchemyRowStore = Depends(get_row_store)) -> list[TermOut]:
    rows = store.query("timetables", ordering=[("academic_year", False), ("term", True)])
    return [TermOut(academic_year=y, term=t, label=term_label(y, t)) for y, t in distinct_terms(rows)]


@router.get("/eligibility", response_model=dict[str, list[EligibleTeacherOut]])
def get_eligibility(store: SqlAlchemyRowStore = Depends(get_row_store)) -> dict[str, list[EligibleTeacherOut]]:
    index = load_eligibility_index(store)
    return {
        subject_id: [EligibleTeacherOut(**t) for t in teachers]
        for subject_id, teachers in index.as_dict().items()
    }


@router.get("/grid", response_model=GridOut)
def get_grid(
    class_id: uuid.UUID = Query(...),
    academic_year: int = Query(..., ge=2000, le=2100),
    term: int = Query(..., ge=1, le=4),
    store: SqlAlchemyRowStore = Depends(get_row_store),
) -> GridOut:
    grid, exists = GridStore(store).load_or_empty(str(class_id), academic_year, term)
    return GridOut(
        class_id=class_id,
        academic_year=academic_year,
        term=term,
        exists=exists,
        schedule=to_plain_grid(grid),
    )


@router.post("/grid/edits", response_model=GridEditsOut)
def edit_grid(
    payload: GridEditsIn,
    _writer=Depends(require_capability(TIMETABLE_WRITE)),
    store: SqlAlchemyRowStore = Depends(get_row_store),
) -> GridEditsOut:
    grid = from_plain_grid(payload.schedule) if payload.schedule is not None else Grid.empty()
    index = load_eligibility_index(store)
    edits = [CellEdit(op=e.op, weekday=e.weekday, period=e.period, value=e.value) for e in payload.edits]
    rejected = apply_edits(grid, edits, index)
    return GridEditsOut(schedule=to_plain_grid(grid), rejected=[r.as_dict() for r in rejected])


@router.put("/grid", response_model=GridSaveOut)
def save_grid(
    payload: GridSaveIn,
    _writer=Depends(require_capability(TIMETABLE_WRITE)),
    store: SqlAlchemyRowStore = Depends(get_row_store),
) -> GridSaveOut:
    school_class = _get_class(store, payload.class_id)

    grid = from_plain_grid(payload.schedule)
    problems = validate_grid(grid, load_eligibility_index(store))
    if problems:
        raise HTTPException(
            status_code=422,
            detail={
                "code": "INVALID_ASSIGNMENT",
                "errors": [p.as_dict() for p in problems],
            },
        )

    row = GridStore(store).save(str(payload.class_id), payload.academic_year, payload.term, grid)
    created = row["created_at"] == row["updated_at"]

    class_name = f"{school_class['grade_name']} {school_class['name']}"
    try:
        store.insert(
            "notifications",
            {
                "title": "New Timetable Created",
                "message": (
                    f"A new timetable has been created for {class_name} "
                    f"for Term {payload.term}, {payload.academic_year}."
                ),
                "notification_type": "timetable",
                "is_read": False,
            },
        )
    except StorageFailure:
        # Timetable is already committed at this point.
        logger.warning("Could not record timetable notification for timetable id=%s", row["id"], exc_info=True)

    return GridSaveOut(id=row["id"], created=created, updated_at=row["updated_at"])


@router.get("/{timetable_id}", response_model=TimetableViewOut)
def view_timetable(
    timetable_id: uuid.UUID,
    store: SqlAlchemyRowStore = Depends(get_row_store),
) -> TimetableViewOut:
    row = _get_timetable(store, timetable_id)
    grid = from_plain_grid(row.get("schedule"))
    subjects = by_id(store.query("subjects"))
    teachers = by_id(store.query("teachers"))
    classes = by_id(store.query("classes", {"id": row["class_id"]}))

    return TimetableViewOut(
        id=row["id"],
        class_id=row["class_id"],
        class_name=class_label(row["class_id"], classes),
        academic_year=row["academic_year"],
        term=row["term"],
        days=render_days(grid, subjects, teachers),
    )


@router.delete("/{timetable_id}")
def delete_timetable(
    timetable_id: uuid.UUID,
    _writer=Depends(require_capability(TIMETABLE_WRITE)),
    store: SqlAlchemyRowStore = Depends(get_row_store),
) -> dict:
    deleted = store.delete("timetables", {"id": timetable_id})
    if not deleted:
        raise HTTPException(status_code=404, detail="TIMETABLE_NOT_FOUND")
    return {"ok": True}

