import os
import tempfile
from datetime import date

# must be in place before portal.config builds its Settings
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["LOG_DIR"] = tempfile.mkdtemp(prefix="portal-logs-")

import pytest
from fastapi.testclient import TestClient

from portal.database import Base, SessionLocal, engine
from portal.main import app
from portal.models.course import Course
from portal.models.course_prerequisite import CoursePrerequisite
from portal.models.semester import Semester
from portal.models.user import User
from portal.utils.auth import create_access_token


@pytest.fixture(autouse=True)
def _fresh_schema():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    app.dependency_overrides.clear()


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    return TestClient(app)


def auth(user) -> dict:
    token = create_access_token({"sub": user.username, "role": user.role})
    return {"Authorization": f"Bearer {token}"}


def make_user(db, username, role="student"):
    u = User(username=username, password_hash="not-a-real-hash", role=role, name=username.title())
    db.add(u)
    db.commit()
    db.refresh(u)
    return u


def make_semester(db, number=1, name=None, year=2026, is_current=False):
    s = Semester(
        name=name or f"Semester {number}",
        number=number,
        year=year,
        start_date=date(year, 9, 1),
        end_date=date(year + 1, 1, 31),
        status="active",
        is_current=is_current,
    )
    db.add(s)
    db.commit()
    db.refresh(s)
    return s


def make_course(db, semester, code, credits=4, capacity=30, status="active", instructor=None, prerequisites=()):
    c = Course(
        code=code,
        name=f"Course {code}",
        department="CSE",
        semester_id=semester.id,
        instructor_id=instructor.id if instructor else None,
        credits=credits,
        capacity=capacity,
        enrolled_count=0,
        status=status,
    )
    c.prerequisites = [CoursePrerequisite(course_code=p, course_name=f"Course {p}") for p in prerequisites]
    db.add(c)
    db.commit()
    db.refresh(c)
    return c


@pytest.fixture
def student(db):
    return make_user(db, "alice")


@pytest.fixture
def other_student(db):
    return make_user(db, "bob")


@pytest.fixture
def instructor(db):
    return make_user(db, "prof", role="instructor")


@pytest.fixture
def admin(db):
    return make_user(db, "root", role="admin")


@pytest.fixture
def semester(db):
    return make_semester(db, number=1, is_current=True)
