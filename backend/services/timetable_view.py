from __future__ import annotations

from typing import Any, Iterable, Mapping

from services.row_store import Row
from services.timetable_grid import PERIODS, WEEKDAYS, Grid


FREE_PERIOD_LABEL = "Break/Free Period"
UNKNOWN_SUBJECT_LABEL = "Unknown Subject"
NO_TEACHER_LABEL = "-"
UNKNOWN_TEACHER_LABEL = "Unknown Teacher"
UNKNOWN_CLASS_LABEL = "Unknown Class"


def subject_label(subject_id: str | None, subjects: Mapping[str, Row]) -> str:
    if subject_id is None:
        return FREE_PERIOD_LABEL
    subject = subjects.get(subject_id)
    if subject is None:
        return UNKNOWN_SUBJECT_LABEL
    code = subject.get("subject_code")
    return f"{subject['name']} ({code})" if code else str(subject["name"])


def teacher_label(teacher_id: str | None, teachers: Mapping[str, Row]) -> str:
    if teacher_id is None:
        return NO_TEACHER_LABEL
    teacher = teachers.get(teacher_id)
    if teacher is None:
        return UNKNOWN_TEACHER_LABEL
    return f"{teacher['first_name']} {teacher['last_name']}"


def class_label(class_id: Any, classes: Mapping[str, Row]) -> str:
    row = classes.get(str(class_id))
    if row is None:
        return UNKNOWN_CLASS_LABEL
    return f"{row['grade_name']} {row['name']}"


def by_id(rows: Iterable[Row]) -> dict[str, Row]:
    return {str(r["id"]): r for r in rows}


def render_days(grid: Grid, subjects: Mapping[str, Row], teachers: Mapping[str, Row]) -> dict[str, list[dict[str, Any]]]:
    days: dict[str, list[dict[str, Any]]] = {}
    for weekday in WEEKDAYS:
        days[weekday] = []
        for period in PERIODS:
            cell = grid.cell(weekday, period)
            days[weekday].append(
                {
                    "period": period,
                    "subject_id": cell.subject_id,
                    "subject_label": subject_label(cell.subject_id, subjects),
                    "teacher_id": cell.teacher_id,
                    "teacher_label": teacher_label(cell.teacher_id, teachers),
                }
            )
    return days


def term_label(academic_year: int, term: int) -> str:
    return f"Term {term}, {academic_year}"


def distinct_terms(rows: Iterable[Row]) -> list[tuple[int, int]]:
    """Unique (year, term) pairs, keeping the order of the input rows."""
    seen: dict[tuple[int, int], None] = {}
    for r in rows:
        seen.setdefault((int(r["academic_year"]), int(r["term"])), None)
    return list(seen)


def filter_timetables(
    rows: Iterable[Row],
    classes: Mapping[str, Row],
    *,
    academic_year: int | None = None,
    term: int | None = None,
    search: str | None = None,
) -> list[Row]:
    needle = (search or "").strip().lower()
    out: list[Row] = []
    for r in rows:
        if academic_year is not None and int(r["academic_year"]) != int(academic_year):
            continue
        if term is not None and int(r["term"]) != int(term):
            continue
        if needle:
            if str(r["class_id"]) not in classes:
                continue
            if needle not in class_label(r["class_id"], classes).lower():
                continue
        out.append(r)
    return out
