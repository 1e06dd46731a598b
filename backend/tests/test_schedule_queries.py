import pytest

from app.core.exceptions import BadRequestError, ResourceNotFoundError
from app.schemas.scheduler import ValidateCreateRequest, ValidateMoveRequest
from app.services import schedule_queries
from app.services.placement_validation import validate_create, validate_move

MONDAY = 1
TUESDAY = 2
WEDNESDAY = 3


def test_snapshot_holds_the_day_plus_the_moving_session(db_session, factory, school):
    monday = factory.session(school.math10, school.b1, MONDAY, school.r1, school.homeroom10, teachers=[school.t1])
    tuesday = factory.session(school.math11, school.b2, TUESDAY, school.r2, school.homeroom11)
    factory.session(school.bio10, school.b3, WEDNESDAY, school.r3, school.homeroom10)
    factory.duty(school.t2, school.b2, MONDAY, school.r3, type_name="Recess")
    db_session.commit()

    snapshot = schedule_queries.load_placement_snapshot(
        db_session,
        semester_id=school.semester.id,
        day_of_week=MONDAY,
        block_id=school.b2.id,
        room_id=school.r2.id,
        session_ids=[tuesday.id],
    )

    assert {item.id for item in snapshot.sessions} == {monday.id, tuesday.id}
    assert snapshot.session(monday.id).teacher_ids == frozenset({school.t1.id})
    assert [duty.duty_type_name for duty in snapshot.duties] == ["Recess"]
    assert snapshot.teacher_name(school.t2.id) == "T2"
    assert set(snapshot.classes) == {school.math10.id, school.math11.id}


def test_snapshot_for_unknown_semester_raises(db_session, school):
    with pytest.raises(ResourceNotFoundError):
        schedule_queries.load_placement_snapshot(
            db_session, semester_id="missing", day_of_week=MONDAY, block_id=school.b1.id, room_id=school.r1.id
        )


def test_validate_move_scenario_against_store(db_session, factory, school):
    math10 = factory.session(school.math10, school.b1, MONDAY, school.r1, school.homeroom10, teachers=[school.t1])
    math11 = factory.session(school.math11, school.b2, TUESDAY, school.r2, school.homeroom11, teachers=[school.t1])
    db_session.commit()

    result = validate_move(
        db_session,
        ValidateMoveRequest(
            session_id=math11.id,
            target_block_id=school.b1.id,
            target_day_of_week=MONDAY,
            target_room_id=school.r3.id,
            semester_id=school.semester.id,
        ),
    )

    assert result.valid is False
    assert [(item.type, item.related_session_id) for item in result.conflicts] == [("teacher", math10.id)]


def test_validate_create_shared_class_scenario_against_store(db_session, factory, school):
    bio = factory.session(school.bio10, school.b2, TUESDAY, school.r3, school.homeroom10)
    db_session.commit()

    result = validate_create(
        db_session,
        ValidateCreateRequest(
            class_id=school.spanish.id,
            target_block_id=school.b2.id,
            target_day_of_week=TUESDAY,
            target_room_id=school.r2.id,
            semester_id=school.semester.id,
        ),
    )

    assert result.valid is False
    assert [(item.type, item.related_session_id) for item in result.conflicts] == [("homeroom", bio.id)]


def test_validate_create_rejects_block_of_other_semester(db_session, school):
    with pytest.raises(BadRequestError):
        validate_create(
            db_session,
            ValidateCreateRequest(
                class_id=school.math10.id,
                target_block_id=school.old_block.id,
                target_day_of_week=MONDAY,
                target_room_id=school.r1.id,
                semester_id=school.semester.id,
            ),
        )


def test_homeroom_schedule_lists_linked_and_legacy_sessions(db_session, factory, school):
    linked = factory.session(school.math10, school.b1, MONDAY, school.r1, school.homeroom10, teachers=[school.t1])
    legacy_grade = factory.session(school.bio10, school.b2, MONDAY, school.r2)
    legacy_shared = factory.session(school.spanish, school.b3, TUESDAY, school.r3)
    factory.session(school.math11, school.b2, TUESDAY, school.r1, school.homeroom11)
    db_session.commit()

    schedule = schedule_queries.homeroom_schedule(db_session, school.homeroom10.id, school.semester.id)

    assert [item.id for item in schedule.sessions] == [linked.id, legacy_grade.id, legacy_shared.id]
    assert schedule.homeroom.name == "10A"
    assert schedule.homeroom.teacher_name == "T2"
    assert [grade.name for grade in schedule.homeroom.grades] == ["10th Grade"]
    assert [block.name for block in schedule.blocks] == ["B1", "B2", "B3"]
    assert [day.name for day in schedule.days][0] == "Monday"
    assert schedule.sessions[0].teachers[0].name == "T1"


def test_homeroom_schedule_without_legacy_fallback(db_session, factory, school):
    linked = factory.session(school.math10, school.b1, MONDAY, school.r1, school.homeroom10)
    factory.session(school.bio10, school.b2, MONDAY, school.r2)
    db_session.commit()

    schedule = schedule_queries.homeroom_schedule(
        db_session, school.homeroom10.id, school.semester.id, legacy_fallback=False
    )

    assert [item.id for item in schedule.sessions] == [linked.id]


def test_homeroom_schedule_for_unknown_homeroom(db_session, school):
    with pytest.raises(ResourceNotFoundError):
        schedule_queries.homeroom_schedule(db_session, "missing", school.semester.id)


def test_teacher_schedule_includes_sessions_and_duties(db_session, factory, school):
    taught = factory.session(school.math10, school.b1, MONDAY, school.r1, school.homeroom10, teachers=[school.t1])
    factory.session(school.math11, school.b2, MONDAY, school.r2, school.homeroom11, teachers=[school.t2])
    factory.duty(school.t1, school.b3, TUESDAY, school.r3, type_name="Lunch")
    db_session.commit()

    schedule = schedule_queries.resource_schedule(db_session, "teacher", school.t1.id, school.semester.id)

    assert schedule.resource_name == "T1"
    assert [item.id for item in schedule.sessions] == [taught.id]
    assert [(duty.duty_type_name, duty.room_name) for duty in schedule.duties] == [("Lunch", "R3")]


def test_room_schedule(db_session, factory, school):
    booked = factory.session(school.math10, school.b1, MONDAY, school.r1, school.homeroom10)
    db_session.commit()

    schedule = schedule_queries.resource_schedule(db_session, "room", school.r1.id, school.semester.id)

    assert schedule.resource_name == "R1"
    assert [item.id for item in schedule.sessions] == [booked.id]
    assert schedule.duties == []


def test_section_tree(db_session, school):
    tree = schedule_queries.section_tree(db_session)

    assert [section.name for section in tree] == ["Upper School"]
    grades = {grade.name: grade for grade in tree[0].grades}
    assert [homeroom.name for homeroom in grades["10th Grade"].homerooms] == ["10A"]
    assert grades["10th Grade"].homerooms[0].teacher_name == "T2"
    assert grades["11th Grade"].homerooms[0].teacher_name is None


def test_class_bank_has_grade_and_shared_classes(db_session, school):
    bank = schedule_queries.class_bank(db_session, school.homeroom10.id, school.semester.id)

    assert [entry.name for entry in bank] == ["Bio10", "French", "Math10", "Spanish"]
    assert {entry.name: entry.grade_name for entry in bank}["Spanish"] is None


def test_lookup_lists(db_session, school):
    assert [item.name for item in schedule_queries.list_semesters(db_session)] == ["S1", "S0"]
    assert [item.name for item in schedule_queries.list_rooms(db_session)] == ["R1", "R2", "R3"]
    assert schedule_queries.list_rooms(db_session)[0].type_name == "Classroom"
    assert [item.name for item in schedule_queries.list_teachers(db_session)] == ["T1", "T2"]


def test_validate_create_rejects_unknown_teacher(db_session, school):
    with pytest.raises(ResourceNotFoundError) as exc_info:
        validate_create(
            db_session,
            ValidateCreateRequest(
                class_id=school.math10.id,
                target_block_id=school.b1.id,
                target_day_of_week=MONDAY,
                target_room_id=school.r1.id,
                semester_id=school.semester.id,
                teacher_ids=[school.t1.id, "missing-teacher"],
            ),
        )

    assert exc_info.value.details == {"resource_type": "Teacher", "resource_id": "missing-teacher"}
