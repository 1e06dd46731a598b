"""Seed a small demo school for BlockPlan.

Run:
  PYTHONPATH=backend python scripts/seed_demo_schedule.py

Safe to re-run: every record is looked up by its natural key first.
"""

from __future__ import annotations

import os
from datetime import date, time

from sqlalchemy import func, select

from app.core.config import get_settings
from app.db.bootstrap import ensure_runtime_schema_compatibility
from app.db.session import SessionLocal
from app.models.academic import Grade, Homeroom, HomeroomGrade, Section, Semester
from app.models.block import Block
from app.models.class_session import ClassSession, ClassSessionTeacher
from app.models.duty import Duty, DutyType
from app.models.room import Room, RoomType
from app.models.school_class import SchoolClass
from app.models.teacher import Teacher

SEMESTER_NAME = os.getenv("SEED_SEMESTER_NAME", "Spring 2026").strip() or "Spring 2026"
SEMESTER_START = date(2026, 1, 5)
SEMESTER_END = date(2026, 6, 10)

SECTIONS = {
    "Upper School": ["9th Grade", "10th Grade", "11th Grade", "12th Grade"],
    "Middle School": ["6th Grade", "7th Grade", "8th Grade"],
}
TEACHERS = ["John Smith", "Sarah Johnson", "Michael Williams", "Emily Brown", "David Davis", "Jennifer Miller"]
# homeroom name -> (section, grade names, homeroom teacher)
HOMEROOMS = {
    "9A": ("Upper School", ["9th Grade"], "John Smith"),
    "9B": ("Upper School", ["9th Grade"], "Sarah Johnson"),
    "10A": ("Upper School", ["10th Grade"], "Michael Williams"),
    "11A": ("Upper School", ["11th Grade"], "Emily Brown"),
    "12A": ("Upper School", ["12th Grade"], "David Davis"),
}
ROOMS = [
    ("Room 101", "Classroom", "First Floor", "Main Building"),
    ("Room 102", "Classroom", "First Floor", "Main Building"),
    ("Room 103", "Classroom", "First Floor", "Main Building"),
    ("Science Lab", "Lab", "Second Floor", "Science Wing"),
    ("Gymnasium", "Gym", "Ground Floor", "Athletic Center"),
]
BLOCKS = [
    ("A Block", time(8, 0), time(9, 15)),
    ("B Block", time(9, 20), time(10, 35)),
    ("C Block", time(10, 40), time(11, 55)),
    ("D Block", time(13, 0), time(14, 15)),
    ("E Block", time(14, 20), time(15, 35)),
]
# code -> (name, grade name or None for shared)
CLASSES = {
    "ENG9": ("English 9", "9th Grade"),
    "MATH10": ("Math 10", "10th Grade"),
    "MATH11": ("Math 11", "11th Grade"),
    "BIO10": ("Biology 10", "10th Grade"),
    "SPAN": ("Spanish", None),
    "PE": ("Physical Education", None),
}
# (class code, block, day, room, homeroom, teacher)
SESSIONS = [
    ("ENG9", "A Block", 1, "Room 101", "9A", "Sarah Johnson"),
    ("MATH10", "A Block", 1, "Room 102", "10A", "Michael Williams"),
    ("BIO10", "B Block", 2, "Science Lab", "10A", "Emily Brown"),
    ("MATH11", "C Block", 3, "Room 103", "11A", "Michael Williams"),
    ("SPAN", "D Block", 4, "Room 101", "12A", "Jennifer Miller"),
    ("PE", "E Block", 5, "Gymnasium", "9B", "David Davis"),
]
DUTIES = [
    ("John Smith", "Lunch", "D Block", 2, "Gymnasium"),
]


def get_one(session, model, **filters):
    return session.execute(select(model).filter_by(**filters)).scalar_one_or_none()


def upsert_semester(session) -> Semester:
    semester = get_one(session, Semester, name=SEMESTER_NAME)
    if semester is None:
        semester = Semester(name=SEMESTER_NAME, start_date=SEMESTER_START, end_date=SEMESTER_END)
        session.add(semester)
    else:
        semester.start_date = SEMESTER_START
        semester.end_date = SEMESTER_END
    session.flush()
    return semester


def upsert_sections_and_grades(session) -> tuple[dict[str, Section], dict[str, Grade]]:
    sections: dict[str, Section] = {}
    grades: dict[str, Grade] = {}
    for section_name, grade_names in SECTIONS.items():
        section = get_one(session, Section, name=section_name)
        if section is None:
            section = Section(name=section_name)
            session.add(section)
            session.flush()
        sections[section_name] = section
        for grade_name in grade_names:
            grade = get_one(session, Grade, section_id=section.id, name=grade_name)
            if grade is None:
                grade = Grade(section_id=section.id, name=grade_name)
                session.add(grade)
                session.flush()
            grades[grade_name] = grade
    return sections, grades


def upsert_teachers(session) -> dict[str, Teacher]:
    teachers: dict[str, Teacher] = {}
    for name in TEACHERS:
        teacher = get_one(session, Teacher, name=name)
        if teacher is None:
            teacher = Teacher(name=name)
            session.add(teacher)
            session.flush()
        teachers[name] = teacher
    return teachers


def upsert_homerooms(session, sections, grades, teachers) -> dict[str, Homeroom]:
    homerooms: dict[str, Homeroom] = {}
    for name, (section_name, grade_names, teacher_name) in HOMEROOMS.items():
        homeroom = get_one(session, Homeroom, name=name)
        if homeroom is None:
            homeroom = Homeroom(name=name, section_id=sections[section_name].id)
            session.add(homeroom)
        homeroom.section_id = sections[section_name].id
        homeroom.teacher_id = teachers[teacher_name].id
        session.flush()
        for grade_name in grade_names:
            grade_id = grades[grade_name].id
            if get_one(session, HomeroomGrade, homeroom_id=homeroom.id, grade_id=grade_id) is None:
                session.add(HomeroomGrade(homeroom_id=homeroom.id, grade_id=grade_id))
        homerooms[name] = homeroom
    session.flush()
    return homerooms


def upsert_rooms(session) -> dict[str, Room]:
    rooms: dict[str, Room] = {}
    for name, type_name, location, building in ROOMS:
        room_type = get_one(session, RoomType, type_name=type_name)
        if room_type is None:
            room_type = RoomType(type_name=type_name)
            session.add(room_type)
            session.flush()
        room = get_one(session, Room, name=name)
        if room is None:
            room = Room(name=name, type_id=room_type.id, location=location, building=building)
            session.add(room)
        else:
            room.type_id = room_type.id
            room.location = location
            room.building = building
        rooms[name] = room
    session.flush()
    return rooms


def upsert_blocks(session, semester: Semester) -> dict[str, Block]:
    blocks: dict[str, Block] = {}
    for name, start_time, end_time in BLOCKS:
        block = get_one(session, Block, name=name, semester_id=semester.id)
        if block is None:
            block = Block(name=name, semester_id=semester.id, start_time=start_time, end_time=end_time)
            session.add(block)
        else:
            block.start_time = start_time
            block.end_time = end_time
        block.is_early = start_time < time(8, 30)
        block.is_late = end_time > time(15, 0)
        blocks[name] = block
    session.flush()
    return blocks


def upsert_classes(session, semester, sections, grades) -> dict[str, SchoolClass]:
    upper_school = sections["Upper School"]
    classes: dict[str, SchoolClass] = {}
    for code, (name, grade_name) in CLASSES.items():
        grade_id = grades[grade_name].id if grade_name else None
        school_class = get_one(session, SchoolClass, code=code, grade_id=grade_id, semester_id=semester.id)
        if school_class is None:
            school_class = SchoolClass(
                code=code,
                name=name,
                section_id=upper_school.id,
                grade_id=grade_id,
                semester_id=semester.id,
            )
            session.add(school_class)
        else:
            school_class.name = name
        classes[code] = school_class
    session.flush()
    return classes


def upsert_sessions(session, semester, classes, blocks, rooms, homerooms, teachers) -> None:
    primary_role = get_settings().primary_teacher_role
    for code, block_name, day, room_name, homeroom_name, teacher_name in SESSIONS:
        block_id = blocks[block_name].id
        room_id = rooms[room_name].id
        class_session = get_one(
            session,
            ClassSession,
            block_id=block_id,
            day_of_week=day,
            room_id=room_id,
            semester_id=semester.id,
        )
        if class_session is None:
            class_session = ClassSession(
                block_id=block_id,
                day_of_week=day,
                room_id=room_id,
                semester_id=semester.id,
                class_id=classes[code].id,
            )
            session.add(class_session)
        class_session.class_id = classes[code].id
        class_session.homeroom_id = homerooms[homeroom_name].id
        session.flush()

        teacher_id = teachers[teacher_name].id
        if get_one(session, ClassSessionTeacher, class_session_id=class_session.id, teacher_id=teacher_id) is None:
            session.add(ClassSessionTeacher(class_session_id=class_session.id, teacher_id=teacher_id, role=primary_role))
    session.flush()


def upsert_duties(session, semester, blocks, rooms, teachers) -> None:
    for teacher_name, type_name, block_name, day, room_name in DUTIES:
        duty_type = get_one(session, DutyType, type_name=type_name)
        if duty_type is None:
            duty_type = DutyType(type_name=type_name)
            session.add(duty_type)
            session.flush()
        filters = dict(
            teacher_id=teachers[teacher_name].id,
            block_id=blocks[block_name].id,
            day_of_week=day,
            semester_id=semester.id,
        )
        duty = get_one(session, Duty, **filters)
        if duty is None:
            duty = Duty(**filters, duty_type_id=duty_type.id, room_id=rooms[room_name].id)
            session.add(duty)
        else:
            duty.duty_type_id = duty_type.id
            duty.room_id = rooms[room_name].id
    session.flush()


def main() -> None:
    ensure_runtime_schema_compatibility()
    with SessionLocal() as session:
        semester = upsert_semester(session)
        sections, grades = upsert_sections_and_grades(session)
        teachers = upsert_teachers(session)
        homerooms = upsert_homerooms(session, sections, grades, teachers)
        rooms = upsert_rooms(session)
        blocks = upsert_blocks(session, semester)
        classes = upsert_classes(session, semester, sections, grades)
        upsert_sessions(session, semester, classes, blocks, rooms, homerooms, teachers)
        upsert_duties(session, semester, blocks, rooms, teachers)

        session.commit()

        session_count = session.execute(
            select(func.count(ClassSession.id)).where(ClassSession.semester_id == semester.id)
        ).scalar_one()
        semester_id = semester.id

    print("Demo schedule seeded successfully.")
    print("")
    print(f"Semester: {SEMESTER_NAME} ({semester_id})")
    print(f"Homerooms: {', '.join(HOMEROOMS)}")
    print(f"Rooms: {len(ROOMS)}")
    print(f"Blocks: {len(BLOCKS)}")
    print(f"Class sessions: {session_count}")


if __name__ == "__main__":
    main()
