from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import Iterable

from services.row_store import RowStore


logger = logging.getLogger(__name__)

NO_SUBJECT = "none"


@dataclass(frozen=True)
class EligibleTeacher:
    teacher_id: str
    name: str


@dataclass(frozen=True)
class Qualification:
    teacher_id: str
    subject_id: str
    teacher_name: str


def is_blank_id(value: object) -> bool:
    """True for the "nothing selected" markers used by the schedule format."""
    if value is None:
        return True
    text = str(value).strip()
    return text == "" or text == NO_SUBJECT


def canonical_id(value: object) -> str | None:
    """Stored form of an id: None when blank, lowercase hyphenated when it is a UUID."""
    if is_blank_id(value):
        return None
    text = str(value).strip()
    try:
        return str(uuid.UUID(text))
    except ValueError:
        return text


class EligibilityIndex:
    """Answers "which teachers may be assigned to subject X".

    Built once from the teacher/subject qualification relation. Teachers are
    grouped per subject in input order. Duplicate (teacher, subject) rows are
    collapsed to their first occurrence.
    """

    def __init__(self, by_subject: dict[str, list[EligibleTeacher]] | None = None) -> None:
        self._by_subject: dict[str, list[EligibleTeacher]] = by_subject or {}

    @classmethod
    def build(cls, qualifications: Iterable[Qualification | tuple[str, str, str]]) -> "EligibilityIndex":
        by_subject: dict[str, list[EligibleTeacher]] = {}
        seen: set[tuple[str, str]] = set()
        duplicates = 0

        for q in qualifications:
            if not isinstance(q, Qualification):
                q = Qualification(*q)
            teacher_id = canonical_id(q.teacher_id)
            subject_id = canonical_id(q.subject_id)
            if teacher_id is None or subject_id is None:
                continue

            if (teacher_id, subject_id) in seen:
                duplicates += 1
                continue
            seen.add((teacher_id, subject_id))

            by_subject.setdefault(subject_id, []).append(EligibleTeacher(teacher_id=teacher_id, name=q.teacher_name))

        if duplicates:
            logger.warning("Ignored %d duplicate teacher/subject qualification rows", duplicates)
        return cls(by_subject)

    def lookup_teachers(self, subject_id: object) -> list[EligibleTeacher]:
        key = canonical_id(subject_id)
        if key is None:
            return []
        return list(self._by_subject.get(key, []))

    def is_eligible(self, subject_id: object, teacher_id: object) -> bool:
        wanted = canonical_id(teacher_id)
        if wanted is None:
            return False
        return any(t.teacher_id == wanted for t in self.lookup_teachers(subject_id))

    def subject_ids(self) -> list[str]:
        return list(self._by_subject.keys())

    def as_dict(self) -> dict[str, list[dict[str, str]]]:
        return {
            subject_id: [{"teacher_id": t.teacher_id, "name": t.name} for t in teachers]
            for subject_id, teachers in self._by_subject.items()
        }


def load_eligibility_index(store: RowStore) -> EligibilityIndex:
    """Build the index from the `teachers` and `teacher_subjects` tables."""

    teachers = store.query("teachers", ordering=[("last_name", True), ("first_name", True)])
    links = store.query("teacher_subjects", ordering=[("created_at", True)])

    links_by_teacher: dict[str, list[str]] = {}
    for link in links:
        links_by_teacher.setdefault(str(link["teacher_id"]), []).append(str(link["subject_id"]))

    # Teachers drive the order (by surname), then each teacher's qualifications.
    qualifications: list[Qualification] = []
    for t in teachers:
        teacher_id = str(t["id"])
        name = f"{t['first_name']} {t['last_name']}"
        for subject_id in links_by_teacher.get(teacher_id, []):
            qualifications.append(Qualification(teacher_id=teacher_id, subject_id=subject_id, teacher_name=name))

    return EligibilityIndex.build(qualifications)
