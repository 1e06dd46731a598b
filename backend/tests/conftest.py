import os

# The app builds its engine at import time; point it at an in-memory database first.
os.environ["DATABASE_URL"] = "sqlite+pysqlite://"

from datetime import date, time  # noqa: E402
from types import SimpleNamespace  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from app.api.deps import get_db  # noqa: E402
from app.db.base import Base  # noqa: E402
from app.db.session import SessionLocal, engine  # noqa: E402
from app.main import app  # noqa: E402
from app.models.academic import Grade, Homeroom, HomeroomGrade, Section, Semester  # noqa: E402
from app.models.block import Block  # noqa: E402
from app.models.class_session import ClassSession, ClassSessionTeacher  # noqa: E402
from app.models.duty import Duty, DutyType  # noqa: E402
from app.models.room import Room, RoomType  # noqa: E402
from app.models.school_class import SchoolClass  # noqa: E402
from app.models.teacher import Teacher  # noqa: E402


class ScheduleFactory:
    """Small builders for schedule rows. Every call flushes so ids are available."""

    def __init__(self, db):
        self.db = db
        self._room_type = None
        self._duty_types: dict[str, DutyType] = {}

    def _add(self, record):
        self.db.add(record)
        self.db.flush()
        return record

    def semester(self, name="S1", start=date(2026, 1, 5), end=date(2026, 6, 10)):
        return self._add(Semester(name=name, start_date=start, end_date=end))

    def section(self, name="Upper School"):
        return self._add(Section(name=name))

    def grade(self, section, name):
        return self._add(Grade(section_id=section.id, name=name))

    def teacher(self, name):
        return self._add(Teacher(name=name))

    def homeroom(self, section, name, grades=(), teacher=None):
        homeroom = self._add(
            Homeroom(name=name, section_id=section.id, teacher_id=teacher.id if teacher else None)
        )
        for grade in grades:
            self._add(HomeroomGrade(homeroom_id=homeroom.id, grade_id=grade.id))
        return homeroom

    def room(self, name):
        if self._room_type is None:
            self._room_type = self._add(RoomType(type_name="Classroom"))
        return self._add(Room(name=name, type_id=self._room_type.id, location="First Floor", building="Main"))

    def block(self, semester, name, start, end):
        return self._add(Block(name=name, semester_id=semester.id, start_time=start, end_time=end))

    def school_class(self, semester, section, code, name, grade=None):
        return self._add(
            SchoolClass(
                code=code,
                name=name,
                section_id=section.id,
                grade_id=grade.id if grade else None,
                semester_id=semester.id,
            )
        )

    def session(self, school_class, block, day, room, homeroom=None, teachers=()):
        record = self._add(
            ClassSession(
                class_id=school_class.id,
                block_id=block.id,
                day_of_week=day,
                room_id=room.id,
                semester_id=school_class.semester_id,
                homeroom_id=homeroom.id if homeroom else None,
            )
        )
        for teacher in teachers:
            self._add(ClassSessionTeacher(class_session_id=record.id, teacher_id=teacher.id, role="Primary"))
        return record

    def duty(self, teacher, block, day, room, type_name="Lunch"):
        duty_type = self._duty_types.get(type_name)
        if duty_type is None:
            duty_type = self._duty_types[type_name] = self._add(DutyType(type_name=type_name))
        return self._add(
            Duty(
                teacher_id=teacher.id,
                block_id=block.id,
                day_of_week=day,
                duty_type_id=duty_type.id,
                room_id=room.id,
                semester_id=block.semester_id,
            )
        )


@pytest.fixture()
def db_session():
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def factory(db_session):
    return ScheduleFactory(db_session)


def build_school_world(db, factory):
    """Upper School, semester S1, grades 10/11, and the Math10/Math11/Bio10/Spanish classes."""
    semester = factory.semester("S1")
    other_semester = factory.semester("S0", start=date(2025, 9, 1), end=date(2025, 12, 20))
    section = factory.section("Upper School")
    grade10 = factory.grade(section, "10th Grade")
    grade11 = factory.grade(section, "11th Grade")
    t1 = factory.teacher("T1")
    t2 = factory.teacher("T2")
    homeroom10 = factory.homeroom(section, "10A", grades=[grade10], teacher=t2)
    homeroom11 = factory.homeroom(section, "11A", grades=[grade11])
    world = SimpleNamespace(
        semester=semester,
        other_semester=other_semester,
        section=section,
        grade10=grade10,
        grade11=grade11,
        t1=t1,
        t2=t2,
        homeroom10=homeroom10,
        homeroom11=homeroom11,
        r1=factory.room("R1"),
        r2=factory.room("R2"),
        r3=factory.room("R3"),
        b1=factory.block(semester, "B1", time(8, 0), time(9, 15)),
        b2=factory.block(semester, "B2", time(9, 20), time(10, 35)),
        b3=factory.block(semester, "B3", time(10, 40), time(11, 55)),
        old_block=factory.block(other_semester, "B1", time(8, 0), time(9, 15)),
        math10=factory.school_class(semester, section, "MATH10", "Math10", grade10),
        math11=factory.school_class(semester, section, "MATH11", "Math11", grade11),
        bio10=factory.school_class(semester, section, "BIO10", "Bio10", grade10),
        spanish=factory.school_class(semester, section, "SPAN", "Spanish"),
        french=factory.school_class(semester, section, "FREN", "French"),
    )
    db.commit()
    return world


@pytest.fixture()
def school(db_session, factory):
    return build_school_world(db_session, factory)


@pytest.fixture()
def build_school():
    """Seed the school world through any session, e.g. one bound to a file database."""
    return lambda db: build_school_world(db, ScheduleFactory(db))


@pytest.fixture()
def client(db_session):
    def override_get_db():
        db = SessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
