from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable

from services.row_store import NotFoundError, Row, RowStore
from services.timetable_grid import Grid, from_plain_grid, to_plain_grid


logger = logging.getLogger(__name__)

TABLE = "timetables"


@dataclass(frozen=True)
class GridKey:
    class_id: str
    academic_year: int
    term: int

    def as_filters(self) -> dict[str, Any]:
        return {"class_id": self.class_id, "academic_year": int(self.academic_year), "term": int(self.term)}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class GridStore:
    """Load and save whole timetable grids, one row per (class, year, term).

    Saving overwrites the whole schedule of the matching row (last writer
    wins, no version check). Storage errors propagate as StorageFailure and
    are never retried here.
    """

    def __init__(self, store: RowStore, *, clock: Callable[[], datetime] = _utcnow) -> None:
        self.store = store
        self.clock = clock

    def load_row(self, class_id: str, academic_year: int, term: int) -> Row:
        key = GridKey(str(class_id), int(academic_year), int(term))
        rows = self.store.query(TABLE, key.as_filters(), ordering=[("updated_at", False)])
        if not rows:
            raise NotFoundError(f"no timetable for class={key.class_id} year={key.academic_year} term={key.term}")
        if len(rows) > 1:
            logger.warning(
                "Found %d timetables for class=%s year=%s term=%s; using the most recently updated",
                len(rows),
                key.class_id,
                key.academic_year,
                key.term,
            )
        return rows[0]

    def load(self, class_id: str, academic_year: int, term: int) -> Grid:
        row = self.load_row(class_id, academic_year, term)
        return from_plain_grid(row.get("schedule"))

    def load_or_empty(self, class_id: str, academic_year: int, term: int) -> tuple[Grid, bool]:
        try:
            return self.load(class_id, academic_year, term), True
        except NotFoundError:
            return Grid.empty(), False

    def save(self, class_id: str, academic_year: int, term: int, grid: Grid) -> Row:
        key = GridKey(str(class_id), int(academic_year), int(term))
        now = self.clock()
        row = self.store.upsert(
            TABLE,
            key.as_filters(),
            {"schedule": to_plain_grid(grid), "updated_at": now},
            on_insert={"created_at": now},
        )
        logger.info(
            "Saved timetable id=%s class=%s year=%s term=%s assigned=%d",
            row.get("id"),
            key.class_id,
            key.academic_year,
            key.term,
            grid.assigned_count(),
        )
        return row
