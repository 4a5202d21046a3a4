"""Weekly timetable grid for one (class, academic year, term).

The grid is a fixed 5 x 8 table (Monday-Friday, periods 1-8). Every cell
always exists; an unassigned cell has neither subject nor teacher. Edits go
through `set_subject` / `set_teacher`, which keep two invariants:

- a cell without a subject has no teacher;
- a cell's teacher is qualified for the cell's subject.

Storage shape (`to_plain_grid` / `from_plain_grid`):

    {"Monday": {"1": {"subject_id": "<id|none>", "teacher_id": "<id|''>"}, ...}, ...}
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterator, Literal, Mapping, Sequence

from services.eligibility import NO_SUBJECT, EligibilityIndex, canonical_id


logger = logging.getLogger(__name__)

WEEKDAYS: tuple[str, ...] = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday")
PERIODS: tuple[int, ...] = (1, 2, 3, 4, 5, 6, 7, 8)
CELL_COUNT = len(WEEKDAYS) * len(PERIODS)


class PreconditionViolation(ValueError):
    """Out-of-domain weekday or period. A programming error, not a user one."""


class InvalidAssignment(ValueError):
    def __init__(self, code: str, weekday: str, period: int, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.weekday = weekday
        self.period = period

    def as_dict(self) -> dict[str, Any]:
        return {"code": self.code, "weekday": self.weekday, "period": self.period, "message": str(self)}


class GridFormatError(ValueError):
    """Stored or posted schedule does not have the weekday -> period -> cell shape."""


@dataclass(frozen=True)
class Cell:
    subject_id: str | None = None
    teacher_id: str | None = None

    @property
    def is_empty(self) -> bool:
        return self.subject_id is None and self.teacher_id is None


EMPTY_CELL = Cell()


def _slot(weekday: str, period: int) -> int:
    if weekday not in WEEKDAYS:
        raise PreconditionViolation(f"weekday must be one of {WEEKDAYS}, got {weekday!r}")
    if isinstance(period, bool) or not isinstance(period, int) or period not in PERIODS:
        raise PreconditionViolation(f"period must be an int in 1..{PERIODS[-1]}, got {period!r}")
    return WEEKDAYS.index(weekday) * len(PERIODS) + (period - 1)


class Grid:
    __slots__ = ("_cells",)

    def __init__(self, cells: Sequence[Cell] | None = None) -> None:
        if cells is None:
            cells = [EMPTY_CELL] * CELL_COUNT
        if len(cells) != CELL_COUNT:
            raise PreconditionViolation(f"grid needs exactly {CELL_COUNT} cells, got {len(cells)}")
        self._cells: list[Cell] = list(cells)

    @classmethod
    def empty(cls) -> "Grid":
        return cls()

    def cell(self, weekday: str, period: int) -> Cell:
        return self._cells[_slot(weekday, period)]

    def _put(self, weekday: str, period: int, cell: Cell) -> None:
        self._cells[_slot(weekday, period)] = cell

    def cells(self) -> Iterator[tuple[str, int, Cell]]:
        for weekday in WEEKDAYS:
            for period in PERIODS:
                yield weekday, period, self.cell(weekday, period)

    def copy(self) -> "Grid":
        return Grid(self._cells)

    def assigned_count(self) -> int:
        return sum(1 for c in self._cells if c.subject_id is not None)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Grid):
            return NotImplemented
        return self._cells == other._cells

    def __repr__(self) -> str:
        return f"Grid(assigned={self.assigned_count()}/{CELL_COUNT})"


def set_subject(grid: Grid, weekday: str, period: int, subject_id: object) -> Cell:
    """Set the cell's subject and always clear its teacher.

    The previous teacher is dropped even when the subject is unchanged, so the
    caller must pick a teacher again.
    """

    cell = Cell(subject_id=canonical_id(subject_id), teacher_id=None)
    grid._put(weekday, period, cell)
    return cell


def set_teacher(grid: Grid, weekday: str, period: int, teacher_id: object, index: EligibilityIndex) -> Cell:
    """Assign a teacher qualified for the cell's subject.

    Raises InvalidAssignment and leaves the grid untouched when the cell has no
    subject or the teacher is not eligible. A blank teacher id is never eligible;
    use `clear_teacher` to empty the teacher slot.
    """

    current = grid.cell(weekday, period)
    tid = canonical_id(teacher_id)

    if current.subject_id is None:
        raise InvalidAssignment(
            "NO_SUBJECT",
            weekday,
            period,
            f"{weekday} period {period} has no subject; choose a subject before a teacher",
        )
    if not index.is_eligible(current.subject_id, tid):
        raise InvalidAssignment(
            "TEACHER_NOT_QUALIFIED",
            weekday,
            period,
            f"teacher {teacher_id!r} is not qualified for subject {current.subject_id}",
        )

    cell = Cell(subject_id=current.subject_id, teacher_id=tid)
    grid._put(weekday, period, cell)
    return cell


def clear_teacher(grid: Grid, weekday: str, period: int) -> Cell:
    current = grid.cell(weekday, period)
    cell = Cell(subject_id=current.subject_id, teacher_id=None)
    grid._put(weekday, period, cell)
    return cell


@dataclass(frozen=True)
class CellEdit:
    op: Literal["set_subject", "set_teacher", "clear_teacher"]
    weekday: str
    period: int
    value: str | None


def apply_edits(grid: Grid, edits: Sequence[CellEdit], index: EligibilityIndex) -> list[InvalidAssignment]:
    """Apply edits in order. Rejected edits are returned; the others still apply."""

    rejected: list[InvalidAssignment] = []
    for edit in edits:
        if edit.op == "set_subject":
            set_subject(grid, edit.weekday, edit.period, edit.value)
        elif edit.op == "clear_teacher":
            clear_teacher(grid, edit.weekday, edit.period)
        elif edit.op == "set_teacher":
            try:
                set_teacher(grid, edit.weekday, edit.period, edit.value, index)
            except InvalidAssignment as exc:
                logger.info("Rejected edit %s %s/%s: %s", edit.op, edit.weekday, edit.period, exc)
                rejected.append(exc)
        else:
            raise PreconditionViolation(f"unknown edit op {edit.op!r}")
    return rejected


def validate_grid(grid: Grid, index: EligibilityIndex) -> list[InvalidAssignment]:
    """Every cell breaking an invariant, in weekday/period order."""

    problems: list[InvalidAssignment] = []
    for weekday, period, cell in grid.cells():
        if cell.teacher_id is None:
            continue
        if cell.subject_id is None:
            problems.append(
                InvalidAssignment("NO_SUBJECT", weekday, period, f"{weekday} period {period} has a teacher but no subject")
            )
        elif not index.is_eligible(cell.subject_id, cell.teacher_id):
            problems.append(
                InvalidAssignment(
                    "TEACHER_NOT_QUALIFIED",
                    weekday,
                    period,
                    f"teacher {cell.teacher_id} is not qualified for subject {cell.subject_id}",
                )
            )
    return problems


def to_plain_grid(grid: Grid) -> dict[str, dict[str, dict[str, str]]]:
    out: dict[str, dict[str, dict[str, str]]] = {}
    for weekday in WEEKDAYS:
        day: dict[str, dict[str, str]] = {}
        for period in PERIODS:
            cell = grid.cell(weekday, period)
            day[str(period)] = {
                "subject_id": cell.subject_id if cell.subject_id is not None else NO_SUBJECT,
                "teacher_id": cell.teacher_id if cell.teacher_id is not None else "",
            }
        out[weekday] = day
    return out


def _parse_period(raw: object) -> int:
    try:
        period = int(str(raw).strip())
    except ValueError:
        raise GridFormatError(f"period key {raw!r} is not a number") from None
    if period not in PERIODS:
        raise GridFormatError(f"period {period} outside 1..{PERIODS[-1]}")
    return period


def from_plain_grid(data: Mapping[str, Any] | None) -> Grid:
    """Rebuild a Grid from the storage shape.

    Missing weekdays, periods and fields read as unassigned (older rows were
    written sparsely). Unknown weekdays, out-of-range periods and non-mapping
    values raise GridFormatError. Stored cells are taken verbatim: a teacher
    without a subject survives loading and is reported by `validate_grid`.
    """

    if data is None:
        return Grid.empty()
    if not isinstance(data, Mapping):
        raise GridFormatError("schedule must be an object keyed by weekday")

    grid = Grid.empty()
    for weekday, periods in data.items():
        if weekday not in WEEKDAYS:
            raise GridFormatError(f"unknown weekday {weekday!r}")
        if not isinstance(periods, Mapping):
            raise GridFormatError(f"{weekday} must be an object keyed by period")
        for raw_period, raw_cell in periods.items():
            period = _parse_period(raw_period)
            if raw_cell is None:
                continue
            if not isinstance(raw_cell, Mapping):
                raise GridFormatError(f"{weekday} period {period} must be an object")
            grid._put(
                weekday,
                period,
                Cell(
                    subject_id=canonical_id(raw_cell.get("subject_id")),
                    teacher_id=canonical_id(raw_cell.get("teacher_id")),
                ),
            )
    return grid
