"""Read-only accessors over the schedule store.

Nothing in this module writes. The conflict evaluator and the batch commit
engine get their snapshots from ``load_placement_snapshot``; the HTTP layer
uses the rest to build grid and lookup payloads.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Sequence

from sqlalchemy import and_, or_, select
from sqlalchemy.orm import Session
from sqlalchemy.sql.elements import ColumnElement

from app.core.exceptions import ResourceNotFoundError
from app.models.academic import Grade, Homeroom, HomeroomGrade, Section, Semester
from app.models.block import Block
from app.models.class_session import ClassSession, ClassSessionTeacher
from app.models.duty import Duty, DutyType
from app.models.room import Room, RoomType
from app.models.school_class import SchoolClass
from app.models.teacher import Teacher
from app.schemas.scheduler import (
    DAYS_OF_WEEK,
    BlockOut,
    ClassBankEntry,
    DayOut,
    DutyOut,
    GradeNode,
    GradeOut,
    HomeroomHeader,
    HomeroomNode,
    HomeroomScheduleOut,
    ResourceScheduleOut,
    ResourceType,
    RoomOut,
    SectionNode,
    SemesterOut,
    SessionOut,
    TeacherAssignmentOut,
    TeacherOut,
    day_name,
)
from app.services.snapshot import BlockInfo, ClassInfo, DutyInfo, RoomInfo, ScheduleSnapshot, SessionInfo


def get_or_404(db: Session, model, record_id: str, label: str):
    record = db.get(model, record_id)
    if record is None:
        raise ResourceNotFoundError(label, record_id)
    return record


def load_placement_snapshot(
    db: Session,
    *,
    semester_id: str,
    day_of_week: int,
    block_id: str,
    room_id: str,
    class_ids: Iterable[str] = (),
    session_ids: Iterable[str] = (),
    teacher_ids: Iterable[str] = (),
) -> ScheduleSnapshot:
    """Read every session and duty of one semester day, plus whatever they reference.

    ``session_ids`` pulls in sessions from other days (a session being moved),
    ``class_ids`` and ``teacher_ids`` make sure a proposal's own references are
    resolvable. Missing rows are simply absent from the snapshot.
    """
    get_or_404(db, Semester, semester_id, "Semester")

    extra_session_ids = [item for item in session_ids if item]
    session_filter = and_(ClassSession.semester_id == semester_id, ClassSession.day_of_week == day_of_week)
    if extra_session_ids:
        session_filter = or_(session_filter, ClassSession.id.in_(extra_session_ids))
    session_rows = list(
        db.execute(
            select(ClassSession).where(session_filter).order_by(ClassSession.created_at, ClassSession.id)
        ).scalars()
    )

    teachers_by_session: dict[str, set[str]] = defaultdict(set)
    if session_rows:
        link_rows = db.execute(
            select(ClassSessionTeacher.class_session_id, ClassSessionTeacher.teacher_id).where(
                ClassSessionTeacher.class_session_id.in_([row.id for row in session_rows])
            )
        ).all()
        for session_id, teacher_id in link_rows:
            teachers_by_session[session_id].add(teacher_id)

    duty_rows = db.execute(
        select(Duty, DutyType.type_name)
        .join(DutyType, DutyType.id == Duty.duty_type_id)
        .where(Duty.semester_id == semester_id, Duty.day_of_week == day_of_week)
        .order_by(Duty.id)
    ).all()

    sessions = tuple(
        SessionInfo(
            id=row.id,
            class_id=row.class_id,
            block_id=row.block_id,
            day_of_week=row.day_of_week,
            room_id=row.room_id,
            semester_id=row.semester_id,
            homeroom_id=row.homeroom_id,
            teacher_ids=frozenset(teachers_by_session.get(row.id, ())),
        )
        for row in session_rows
    )
    duties = tuple(
        DutyInfo(
            id=duty.id,
            teacher_id=duty.teacher_id,
            room_id=duty.room_id,
            block_id=duty.block_id,
            day_of_week=duty.day_of_week,
            semester_id=duty.semester_id,
            duty_type_name=type_name,
        )
        for duty, type_name in duty_rows
    )

    wanted_class_ids = {item.class_id for item in sessions} | {item for item in class_ids if item}
    wanted_block_ids = {block_id} | {item.block_id for item in sessions}
    wanted_room_ids = {room_id} | {item.room_id for item in sessions} | {item.room_id for item in duties}
    wanted_teacher_ids = {item for item in teacher_ids if item} | {item.teacher_id for item in duties}
    for item in sessions:
        wanted_teacher_ids |= item.teacher_ids

    classes: dict[str, ClassInfo] = {}
    if wanted_class_ids:
        for school_class, grade_name in db.execute(
            select(SchoolClass, Grade.name)
            .outerjoin(Grade, Grade.id == SchoolClass.grade_id)
            .where(SchoolClass.id.in_(wanted_class_ids))
        ).all():
            classes[school_class.id] = ClassInfo(
                id=school_class.id,
                code=school_class.code,
                name=school_class.name,
                section_id=school_class.section_id,
                semester_id=school_class.semester_id,
                grade_id=school_class.grade_id,
                grade_name=grade_name,
            )

    blocks = {
        block.id: BlockInfo(id=block.id, name=block.name, semester_id=block.semester_id)
        for block in db.execute(select(Block).where(Block.id.in_(wanted_block_ids))).scalars()
    }
    rooms = {
        room.id: RoomInfo(id=room.id, name=room.name)
        for room in db.execute(select(Room).where(Room.id.in_(wanted_room_ids))).scalars()
    }
    teachers: dict[str, str] = {}
    if wanted_teacher_ids:
        teachers = {
            teacher.id: teacher.name
            for teacher in db.execute(select(Teacher).where(Teacher.id.in_(wanted_teacher_ids))).scalars()
        }

    return ScheduleSnapshot(
        semester_id=semester_id,
        classes=classes,
        blocks=blocks,
        rooms=rooms,
        teachers=teachers,
        sessions=sessions,
        duties=duties,
    )


def list_days() -> list[DayOut]:
    return [DayOut(day_of_week=day, name=day_name(day)) for day in DAYS_OF_WEEK]


def list_blocks(db: Session, semester_id: str) -> list[BlockOut]:
    blocks = db.execute(
        select(Block).where(Block.semester_id == semester_id).order_by(Block.start_time, Block.name)
    ).scalars()
    return [BlockOut.model_validate(block) for block in blocks]


def list_semesters(db: Session) -> list[SemesterOut]:
    semesters = db.execute(select(Semester).order_by(Semester.start_date.desc())).scalars()
    return [SemesterOut.model_validate(item) for item in semesters]


def list_rooms(db: Session) -> list[RoomOut]:
    rows = db.execute(select(Room, RoomType.type_name).join(RoomType, RoomType.id == Room.type_id).order_by(Room.name))
    return [
        RoomOut(id=room.id, name=room.name, type_name=type_name, location=room.location, building=room.building)
        for room, type_name in rows.all()
    ]


def list_teachers(db: Session) -> list[TeacherOut]:
    teachers = db.execute(select(Teacher).order_by(Teacher.name)).scalars()
    return [TeacherOut.model_validate(item) for item in teachers]


def serialize_sessions(db: Session, sessions: Sequence[ClassSession]) -> list[SessionOut]:
    if not sessions:
        return []

    class_ids = {item.class_id for item in sessions}
    block_ids = {item.block_id for item in sessions}
    room_ids = {item.room_id for item in sessions}
    classes = {item.id: item for item in db.execute(select(SchoolClass).where(SchoolClass.id.in_(class_ids))).scalars()}
    blocks = {item.id: item for item in db.execute(select(Block).where(Block.id.in_(block_ids))).scalars()}
    rooms = {item.id: item for item in db.execute(select(Room).where(Room.id.in_(room_ids))).scalars()}

    teachers_by_session: dict[str, list[TeacherAssignmentOut]] = defaultdict(list)
    link_rows = db.execute(
        select(ClassSessionTeacher.class_session_id, ClassSessionTeacher.role, Teacher.id, Teacher.name)
        .join(Teacher, Teacher.id == ClassSessionTeacher.teacher_id)
        .where(ClassSessionTeacher.class_session_id.in_([item.id for item in sessions]))
        .order_by(Teacher.name)
    ).all()
    for session_id, role, teacher_id, teacher_name in link_rows:
        teachers_by_session[session_id].append(TeacherAssignmentOut(id=teacher_id, name=teacher_name, role=role))

    ordered = sorted(
        sessions,
        key=lambda item: (item.day_of_week, blocks[item.block_id].start_time, rooms[item.room_id].name),
    )
    return [
        SessionOut(
            id=item.id,
            class_id=item.class_id,
            class_code=classes[item.class_id].code,
            class_name=classes[item.class_id].name,
            class_grade_id=classes[item.class_id].grade_id,
            block_id=item.block_id,
            block_name=blocks[item.block_id].name,
            day_of_week=item.day_of_week,
            room_id=item.room_id,
            room_name=rooms[item.room_id].name,
            semester_id=item.semester_id,
            homeroom_id=item.homeroom_id,
            teachers=teachers_by_session.get(item.id, []),
        )
        for item in ordered
    ]


def serialize_duties(db: Session, duties: Sequence[Duty]) -> list[DutyOut]:
    if not duties:
        return []

    rows = db.execute(
        select(Duty, DutyType.type_name, Teacher.name, Block.name, Block.start_time, Room.name)
        .join(DutyType, DutyType.id == Duty.duty_type_id)
        .join(Teacher, Teacher.id == Duty.teacher_id)
        .join(Block, Block.id == Duty.block_id)
        .join(Room, Room.id == Duty.room_id)
        .where(Duty.id.in_([item.id for item in duties]))
    ).all()
    rows.sort(key=lambda row: (row[0].day_of_week, row[4]))
    return [
        DutyOut(
            id=duty.id,
            duty_type_name=type_name,
            teacher_id=duty.teacher_id,
            teacher_name=teacher_name,
            block_id=duty.block_id,
            block_name=block_name,
            day_of_week=duty.day_of_week,
            room_id=duty.room_id,
            room_name=room_name,
            semester_id=duty.semester_id,
        )
        for duty, type_name, teacher_name, block_name, _start, room_name in rows
    ]


def homeroom_grade_ids(db: Session, homeroom_id: str) -> list[str]:
    return list(
        db.execute(select(HomeroomGrade.grade_id).where(HomeroomGrade.homeroom_id == homeroom_id)).scalars()
    )


def legacy_homeroom_condition(homeroom: Homeroom, grade_ids: Sequence[str]) -> ColumnElement[bool]:
    """Match sessions stored before ``class_sessions.homeroom_id`` existed.

    Migration compatibility only: such rows are attributed to a homeroom by
    the class's grade, or by section for shared classes. Rows written by the
    commit engine always carry a homeroom. Requires ``classes`` in the FROM
    clause.
    """
    return and_(
        ClassSession.homeroom_id.is_(None),
        or_(
            SchoolClass.grade_id.in_(grade_ids),
            and_(SchoolClass.grade_id.is_(None), SchoolClass.section_id == homeroom.section_id),
        ),
    )


def homeroom_schedule(
    db: Session,
    homeroom_id: str,
    semester_id: str,
    *,
    legacy_fallback: bool = True,
) -> HomeroomScheduleOut:
    homeroom = get_or_404(db, Homeroom, homeroom_id, "Homeroom")
    get_or_404(db, Semester, semester_id, "Semester")
    section = db.get(Section, homeroom.section_id)
    teacher = db.get(Teacher, homeroom.teacher_id) if homeroom.teacher_id else None

    grades = list(
        db.execute(
            select(Grade)
            .join(HomeroomGrade, HomeroomGrade.grade_id == Grade.id)
            .where(HomeroomGrade.homeroom_id == homeroom.id)
            .order_by(Grade.name)
        ).scalars()
    )

    membership = ClassSession.homeroom_id == homeroom.id
    if legacy_fallback:
        membership = or_(membership, legacy_homeroom_condition(homeroom, [grade.id for grade in grades]))
    sessions = list(
        db.execute(
            select(ClassSession)
            .join(SchoolClass, SchoolClass.id == ClassSession.class_id)
            .where(ClassSession.semester_id == semester_id, membership)
        ).scalars()
    )

    return HomeroomScheduleOut(
        homeroom=HomeroomHeader(
            id=homeroom.id,
            name=homeroom.name,
            section_id=homeroom.section_id,
            section_name=section.name if section is not None else "",
            teacher_name=teacher.name if teacher is not None else "No Teacher",
            grades=[GradeOut(id=grade.id, name=grade.name) for grade in grades],
        ),
        blocks=list_blocks(db, semester_id),
        days=list_days(),
        rooms=list_rooms(db),
        sessions=serialize_sessions(db, sessions),
    )


def resource_schedule(
    db: Session,
    resource_type: ResourceType,
    resource_id: str,
    semester_id: str,
) -> ResourceScheduleOut:
    get_or_404(db, Semester, semester_id, "Semester")

    if resource_type == "room":
        resource = get_or_404(db, Room, resource_id, "Room")
        session_query = select(ClassSession).where(
            ClassSession.semester_id == semester_id, ClassSession.room_id == resource_id
        )
        duty_query = select(Duty).where(Duty.semester_id == semester_id, Duty.room_id == resource_id)
    else:
        resource = get_or_404(db, Teacher, resource_id, "Teacher")
        session_query = (
            select(ClassSession)
            .join(ClassSessionTeacher, ClassSessionTeacher.class_session_id == ClassSession.id)
            .where(ClassSession.semester_id == semester_id, ClassSessionTeacher.teacher_id == resource_id)
        )
        duty_query = select(Duty).where(Duty.semester_id == semester_id, Duty.teacher_id == resource_id)

    sessions = list(db.execute(session_query).scalars().unique())
    duties = list(db.execute(duty_query).scalars())

    return ResourceScheduleOut(
        resource_type=resource_type,
        resource_id=resource_id,
        resource_name=resource.name,
        blocks=list_blocks(db, semester_id),
        days=list_days(),
        sessions=serialize_sessions(db, sessions),
        duties=serialize_duties(db, duties),
    )


def section_tree(db: Session) -> list[SectionNode]:
    sections = list(db.execute(select(Section).order_by(Section.name)).scalars())
    grades = list(db.execute(select(Grade).order_by(Grade.name)).scalars())
    link_rows = db.execute(
        select(HomeroomGrade.grade_id, Homeroom.id, Homeroom.name, Teacher.name)
        .join(Homeroom, Homeroom.id == HomeroomGrade.homeroom_id)
        .outerjoin(Teacher, Teacher.id == Homeroom.teacher_id)
        .order_by(Homeroom.name)
    ).all()

    homerooms_by_grade: dict[str, list[HomeroomNode]] = defaultdict(list)
    for grade_id, homeroom_id, homeroom_name, teacher_name in link_rows:
        homerooms_by_grade[grade_id].append(HomeroomNode(id=homeroom_id, name=homeroom_name, teacher_name=teacher_name))

    grades_by_section: dict[str, list[GradeNode]] = defaultdict(list)
    for grade in grades:
        grades_by_section[grade.section_id].append(
            GradeNode(id=grade.id, name=grade.name, homerooms=homerooms_by_grade.get(grade.id, []))
        )

    return [
        SectionNode(id=section.id, name=section.name, grades=grades_by_section.get(section.id, []))
        for section in sections
    ]


def class_bank(db: Session, homeroom_id: str, semester_id: str) -> list[ClassBankEntry]:
    homeroom = get_or_404(db, Homeroom, homeroom_id, "Homeroom")
    grade_ids = homeroom_grade_ids(db, homeroom.id)

    rows = db.execute(
        select(SchoolClass, Grade.name)
        .outerjoin(Grade, Grade.id == SchoolClass.grade_id)
        .where(
            SchoolClass.semester_id == semester_id,
            or_(
                SchoolClass.grade_id.in_(grade_ids),
                and_(SchoolClass.grade_id.is_(None), SchoolClass.section_id == homeroom.section_id),
            ),
        )
        .order_by(SchoolClass.name, SchoolClass.code)
    ).all()
    return [
        ClassBankEntry(
            id=school_class.id,
            code=school_class.code,
            name=school_class.name,
            grade_id=school_class.grade_id,
            grade_name=grade_name,
        )
        for school_class, grade_name in rows
    ]
