from __future__ import annotations

import os

# Settings are read at import time; point them at an in-memory database first.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET_KEY"] = "test-secret-key"
os.environ["ENVIRONMENT"] = "test"

from dataclasses import dataclass

import pytest
from fastapi.testclient import TestClient

from core.database import ENGINE, SessionLocal
from core.security import create_access_token
from models import Base, SchoolClass, Subject, Teacher, TeacherSubject


@dataclass(frozen=True)
class SeededSchool:
    math: str
    english: str
    science: str
    t1: str
    t2: str
    t3: str
    class_id: str


@pytest.fixture(autouse=True)
def _schema():
    Base.metadata.create_all(ENGINE)
    yield
    Base.metadata.drop_all(ENGINE)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def school() -> SeededSchool:
    """Math taught by T1 and T2, English by T1, Science by T3."""

    with SessionLocal() as session:
        math = Subject(name="Mathematics", subject_code="MATH", is_compulsory=True)
        english = Subject(name="English", subject_code=None, is_compulsory=True)
        science = Subject(name="Physical Sciences", subject_code="PHSC")
        session.add_all([math, english, science])

        t1 = Teacher(first_name="Ada", last_name="Adams")
        t2 = Teacher(first_name="Ben", last_name="Brown")
        t3 = Teacher(first_name="Cleo", last_name="Carter")
        session.add_all([t1, t2, t3])

        grade_10a = SchoolClass(name="A", grade_name="Grade 10", academic_year=2026)
        session.add(grade_10a)
        session.flush()

        session.add_all(
            [
                TeacherSubject(teacher_id=t1.id, subject_id=math.id),
                TeacherSubject(teacher_id=t2.id, subject_id=math.id),
                TeacherSubject(teacher_id=t1.id, subject_id=english.id),
                TeacherSubject(teacher_id=t3.id, subject_id=science.id),
            ]
        )
        session.commit()

        return SeededSchool(
            math=str(math.id),
            english=str(english.id),
            science=str(science.id),
            t1=str(t1.id),
            t2=str(t2.id),
            t3=str(t3.id),
            class_id=str(grade_10a.id),
        )


@pytest.fixture
def client():
    from main import app

    with TestClient(app) as c:
        yield c


def _headers(role: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(subject=f'{role}-1', role=role)}"}


@pytest.fixture
def admin_headers() -> dict[str, str]:
    return _headers("admin")


@pytest.fixture
def student_headers() -> dict[str, str]:
    return _headers("student")
