from __future__ import annotations

"""Seed a small demo school: subjects, qualified teachers and two classes.

Dev-only. Skips seeding when subjects already exist.
"""

import argparse
import sys
from datetime import date
from pathlib import Path

BACKEND_DIR = Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from sqlalchemy import func, select

from core.config import settings
from core.database import SessionLocal
from models import SchoolClass, Subject, Teacher, TeacherSubject


SUBJECTS: list[tuple[str, str, bool]] = [
    ("Home Language", "HL", True),
    ("First Additional Language", "FAL", True),
    ("Life Orientation", "LO", True),
    ("Mathematics", "MATH", True),
    ("Mathematical Literacy", "MLIT", False),
    ("Physical Sciences", "PHSC", False),
    ("Life Sciences", "LFSC", False),
    ("Accounting", "ACC", False),
    ("Geography", "GEO", False),
    ("History", "HIST", False),
]

# (first, last, subject codes)
TEACHERS: list[tuple[str, str, list[str]]] = [
    ("Thandi", "Mokoena", ["MATH", "MLIT"]),
    ("Pieter", "van Wyk", ["PHSC", "LFSC"]),
    ("Naledi", "Dlamini", ["HL", "FAL", "LO"]),
    ("Sipho", "Ndlovu", ["ACC", "MATH"]),
    ("Anele", "Khumalo", ["GEO", "HIST", "LO"]),
]


def main() -> int:
    parser = argparse.ArgumentParser(description="Seed demo subjects, teachers and classes")
    parser.add_argument("--year", type=int, default=date.today().year)
    args = parser.parse_args()

    if settings.is_production:
        raise SystemExit("Refusing to seed demo data in production")

    with SessionLocal() as db:
        if db.execute(select(func.count()).select_from(Subject)).scalar_one():
            print("Subjects already present; nothing to do.")
            return 0

        by_code: dict[str, Subject] = {}
        for name, code, compulsory in SUBJECTS:
            subject = Subject(name=name, subject_code=code, is_compulsory=compulsory)
            db.add(subject)
            by_code[code] = subject
        db.flush()

        for first, last, codes in TEACHERS:
            teacher = Teacher(first_name=first, last_name=last)
            db.add(teacher)
            db.flush()
            for code in codes:
                db.add(TeacherSubject(teacher_id=teacher.id, subject_id=by_code[code].id))

        for grade, name in [("Grade 10", "A"), ("Grade 10", "B")]:
            db.add(SchoolClass(name=name, grade_name=grade, academic_year=int(args.year)))

        db.commit()

    print(f"OK: seeded {len(SUBJECTS)} subjects, {len(TEACHERS)} teachers, 2 classes for {args.year}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
