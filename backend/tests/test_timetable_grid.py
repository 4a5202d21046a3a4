from __future__ import annotations

import pytest

from services.eligibility import EligibilityIndex
from services.timetable_grid import (
    CELL_COUNT,
    PERIODS,
    WEEKDAYS,
    Cell,
    CellEdit,
    Grid,
    GridFormatError,
    InvalidAssignment,
    PreconditionViolation,
    apply_edits,
    clear_teacher,
    from_plain_grid,
    set_subject,
    set_teacher,
    to_plain_grid,
    validate_grid,
)


@pytest.fixture
def index() -> EligibilityIndex:
    return EligibilityIndex.build(
        [
            ("T1", "Math", "Teacher One"),
            ("T2", "Math", "Teacher Two"),
            ("T1", "English", "Teacher One"),
        ]
    )


def test_empty_grid_has_forty_unassigned_cells():
    grid = Grid.empty()
    cells = list(grid.cells())

    assert CELL_COUNT == 40
    assert len(cells) == 40
    assert all(cell == Cell() for _, _, cell in cells)
    assert {(d, p) for d, p, _ in cells} == {(d, p) for d in WEEKDAYS for p in PERIODS}


def test_valid_assignment(index):
    grid = Grid.empty()
    set_subject(grid, "Monday", 1, "Math")
    set_teacher(grid, "Monday", 1, "T1", index)

    assert grid.cell("Monday", 1) == Cell(subject_id="Math", teacher_id="T1")


def test_unqualified_teacher_is_rejected_and_grid_unchanged(index):
    grid = Grid.empty()
    set_subject(grid, "Monday", 1, "Math")
    before = grid.copy()

    with pytest.raises(InvalidAssignment) as exc_info:
        set_teacher(grid, "Monday", 1, "T3", index)

    assert exc_info.value.code == "TEACHER_NOT_QUALIFIED"
    assert grid == before
    assert grid.cell("Monday", 1) == Cell(subject_id="Math", teacher_id=None)


def test_teacher_without_subject_is_rejected(index):
    grid = Grid.empty()

    with pytest.raises(InvalidAssignment) as exc_info:
        set_teacher(grid, "Tuesday", 3, "T1", index)

    assert exc_info.value.code == "NO_SUBJECT"
    assert grid == Grid.empty()


def test_changing_subject_resets_teacher_even_if_still_qualified(index):
    grid = Grid.empty()
    set_subject(grid, "Monday", 1, "Math")
    set_teacher(grid, "Monday", 1, "T1", index)

    set_subject(grid, "Monday", 1, "English")

    assert grid.cell("Monday", 1) == Cell(subject_id="English", teacher_id=None)


def test_setting_same_subject_also_resets_teacher(index):
    grid = Grid.empty()
    set_subject(grid, "Friday", 8, "Math")
    set_teacher(grid, "Friday", 8, "T2", index)

    set_subject(grid, "Friday", 8, "Math")

    assert grid.cell("Friday", 8).teacher_id is None


def test_clearing_subject_with_none_marker(index):
    grid = Grid.empty()
    set_subject(grid, "Monday", 2, "Math")
    set_teacher(grid, "Monday", 2, "T1", index)

    set_subject(grid, "Monday", 2, "none")

    assert grid.cell("Monday", 2).is_empty


def test_clear_teacher_keeps_subject(index):
    grid = Grid.empty()
    set_subject(grid, "Monday", 1, "Math")
    set_teacher(grid, "Monday", 1, "T1", index)

    clear_teacher(grid, "Monday", 1)

    assert grid.cell("Monday", 1) == Cell(subject_id="Math")


@pytest.mark.parametrize("blank", ["", "  ", None])
def test_blank_teacher_is_not_eligible(index, blank):
    grid = Grid.empty()
    set_subject(grid, "Monday", 1, "Math")
    set_teacher(grid, "Monday", 1, "T1", index)
    before = grid.copy()

    with pytest.raises(InvalidAssignment) as exc_info:
        set_teacher(grid, "Monday", 1, blank, index)

    assert exc_info.value.code == "TEACHER_NOT_QUALIFIED"
    assert grid == before


def test_uuid_ids_are_matched_case_insensitively():
    subject = "5f0c1e9a-3b7d-4c2e-9a41-0d6b8e2f7c10"
    teacher = "c7e2a9b4-1d3f-4e5a-8b6c-2f9d0a1e3b57"
    index = EligibilityIndex.build([(teacher, subject, "Teacher One")])
    grid = from_plain_grid({"Monday": {"1": {"subject_id": subject.upper(), "teacher_id": teacher.upper()}}})

    assert grid.cell("Monday", 1) == Cell(subject_id=subject, teacher_id=teacher)
    assert validate_grid(grid, index) == []

    set_subject(grid, "Monday", 2, subject.upper())
    set_teacher(grid, "Monday", 2, teacher.upper(), index)
    assert grid.cell("Monday", 2) == Cell(subject_id=subject, teacher_id=teacher)


@pytest.mark.parametrize(
    "weekday, period",
    [("Saturday", 1), ("monday", 1), ("Monday", 0), ("Monday", 9), ("Monday", "1"), ("Monday", True)],
)
def test_out_of_domain_cells_fail_loudly(index, weekday, period):
    grid = Grid.empty()

    with pytest.raises(PreconditionViolation):
        set_subject(grid, weekday, period, "Math")
    with pytest.raises(PreconditionViolation):
        set_teacher(grid, weekday, period, "T1", index)


def test_plain_grid_enumerates_every_cell_with_string_keys():
    plain = to_plain_grid(Grid.empty())

    assert list(plain) == list(WEEKDAYS)
    for weekday in WEEKDAYS:
        assert list(plain[weekday]) == [str(p) for p in PERIODS]
        for cell in plain[weekday].values():
            assert cell == {"subject_id": "none", "teacher_id": ""}


def test_round_trip_preserves_every_cell(index):
    grid = Grid.empty()
    set_subject(grid, "Monday", 1, "Math")
    set_teacher(grid, "Monday", 1, "T1", index)
    set_subject(grid, "Wednesday", 4, "English")
    set_subject(grid, "Friday", 8, "Math")
    set_teacher(grid, "Friday", 8, "T2", index)

    restored = from_plain_grid(to_plain_grid(grid))

    assert restored == grid
    for weekday, period, cell in grid.cells():
        assert restored.cell(weekday, period) == cell


def test_from_plain_grid_reads_legacy_sparse_rows():
    grid = from_plain_grid(
        {
            "Monday": {1: {"subject_id": "Math", "teacher_id": "T1"}, "2": {"subject_id": "", "teacher_id": ""}},
            "Tuesday": {},
        }
    )

    assert grid.cell("Monday", 1) == Cell(subject_id="Math", teacher_id="T1")
    assert grid.cell("Monday", 2).is_empty
    assert grid.cell("Thursday", 5).is_empty
    assert grid.assigned_count() == 1


@pytest.mark.parametrize(
    "data",
    [
        ["Monday"],
        {"Sunday": {}},
        {"Monday": {"9": {"subject_id": "Math"}}},
        {"Monday": {"first": {"subject_id": "Math"}}},
        {"Monday": ["Math"]},
        {"Monday": {"1": "Math"}},
    ],
)
def test_from_plain_grid_rejects_malformed_shapes(data):
    with pytest.raises(GridFormatError):
        from_plain_grid(data)


def test_apply_edits_keeps_going_after_a_rejected_edit(index):
    grid = Grid.empty()
    rejected = apply_edits(
        grid,
        [
            CellEdit("set_subject", "Monday", 1, "Math"),
            CellEdit("set_teacher", "Monday", 1, "T3"),
            CellEdit("set_teacher", "Monday", 2, "T1"),
            CellEdit("set_teacher", "Monday", 1, "T2"),
        ],
        index,
    )

    assert [r.code for r in rejected] == ["TEACHER_NOT_QUALIFIED", "NO_SUBJECT"]
    assert grid.cell("Monday", 1) == Cell(subject_id="Math", teacher_id="T2")
    assert grid.cell("Monday", 2).is_empty


def test_validate_grid_reports_broken_cells(index):
    grid = from_plain_grid(
        {
            "Monday": {"1": {"subject_id": "Math", "teacher_id": "T1"}},
            "Tuesday": {"1": {"subject_id": "English", "teacher_id": "T2"}},
            "Wednesday": {"1": {"subject_id": "none", "teacher_id": "T1"}},
        }
    )

    problems = validate_grid(grid, index)

    assert [(p.weekday, p.period, p.code) for p in problems] == [
        ("Tuesday", 1, "TEACHER_NOT_QUALIFIED"),
        ("Wednesday", 1, "NO_SUBJECT"),
    ]
