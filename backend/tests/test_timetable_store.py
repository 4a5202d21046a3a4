from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.exc import OperationalError

from models import Timetable
from services.eligibility import EligibilityIndex
from services.row_store import NotFoundError, SqlAlchemyRowStore, StorageFailure
from services.timetable_grid import Cell, Grid, set_subject, set_teacher, to_plain_grid
from services.timetable_store import GridStore


class _Clock:
    def __init__(self) -> None:
        self.now = datetime(2026, 1, 12, 8, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        self.now += timedelta(minutes=5)
        return self.now


def _sample_grid(school) -> Grid:
    index = EligibilityIndex.build([(school.t1, school.math, "Ada Adams")])
    grid = Grid.empty()
    set_subject(grid, "Monday", 1, school.math)
    set_teacher(grid, "Monday", 1, school.t1, index)
    set_subject(grid, "Thursday", 6, school.english)
    return grid


def test_load_missing_grid_raises_not_found(db, school):
    store = GridStore(SqlAlchemyRowStore(db))

    with pytest.raises(NotFoundError):
        store.load(school.class_id, 2026, 1)

    grid, exists = store.load_or_empty(school.class_id, 2026, 1)
    assert not exists
    assert grid == Grid.empty()


def test_save_then_load(db, school):
    store = GridStore(SqlAlchemyRowStore(db))
    grid = _sample_grid(school)

    store.save(school.class_id, 2026, 1, grid)
    loaded = store.load(school.class_id, 2026, 1)

    assert loaded == grid
    assert loaded.cell("Monday", 1) == Cell(subject_id=school.math, teacher_id=school.t1)
    # Other terms are separate keys.
    with pytest.raises(NotFoundError):
        store.load(school.class_id, 2026, 2)


def test_saving_twice_keeps_one_row_and_bumps_updated_at(db, school):
    clock = _Clock()
    store = GridStore(SqlAlchemyRowStore(db), clock=clock)
    grid = _sample_grid(school)

    first = store.save(school.class_id, 2026, 1, grid)
    second = store.save(school.class_id, 2026, 1, grid)

    rows = db.query(Timetable).all()
    assert len(rows) == 1
    assert first["id"] == second["id"]
    assert second["schedule"] == first["schedule"] == to_plain_grid(grid)
    assert second["created_at"] == first["created_at"]
    assert second["updated_at"] > first["updated_at"]


def test_save_overwrites_the_whole_grid(db, school):
    store = GridStore(SqlAlchemyRowStore(db))
    store.save(school.class_id, 2026, 1, _sample_grid(school))

    replacement = Grid.empty()
    set_subject(replacement, "Friday", 8, school.science)
    store.save(school.class_id, 2026, 1, replacement)

    loaded = store.load(school.class_id, 2026, 1)
    assert loaded == replacement
    assert loaded.cell("Monday", 1).is_empty


def test_duplicate_rows_read_the_most_recently_updated(db, school):
    older = Grid.empty()
    set_subject(older, "Monday", 1, school.english)
    newer = Grid.empty()
    set_subject(newer, "Monday", 1, school.math)

    base = datetime(2026, 1, 1, tzinfo=timezone.utc)
    db.add_all(
        [
            Timetable(
                class_id=uuid.UUID(school.class_id),
                academic_year=2026,
                term=1,
                schedule=to_plain_grid(older),
                created_at=base,
                updated_at=base,
            ),
            Timetable(
                class_id=uuid.UUID(school.class_id),
                academic_year=2026,
                term=1,
                schedule=to_plain_grid(newer),
                created_at=base,
                updated_at=base + timedelta(days=1),
            ),
        ]
    )
    db.commit()

    loaded = GridStore(SqlAlchemyRowStore(db)).load(school.class_id, 2026, 1)
    assert loaded == newer


def test_storage_errors_surface_unretried(db, school, monkeypatch):
    row_store = SqlAlchemyRowStore(db)
    calls = []

    def _boom(*args, **kwargs):
        calls.append(args)
        raise OperationalError("SELECT", {}, Exception("connection refused"))

    monkeypatch.setattr(db, "execute", _boom)
    grid = _sample_grid(school)

    with pytest.raises(StorageFailure) as exc_info:
        GridStore(row_store).save(school.class_id, 2026, 1, grid)

    assert isinstance(exc_info.value.__cause__, OperationalError)
    assert len(calls) == 1
    # The caller still holds its unsaved edits.
    assert grid.cell("Monday", 1).teacher_id == school.t1


def test_unknown_class_id_reads_as_not_found(db):
    store = GridStore(SqlAlchemyRowStore(db))
    with pytest.raises(NotFoundError):
        store.load("not-a-uuid", 2026, 1)
