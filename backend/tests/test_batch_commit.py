import pytest
from sqlalchemy import func, select

from app.core.config import Settings
from app.core.exceptions import BadRequestError, ResourceNotFoundError, ScheduleConflictError, StoreFailureError
from app.models.activity_log import ActivityLog
from app.models.class_session import ClassSession, ClassSessionTeacher
from app.schemas.scheduler import ScheduleChange
from app.services.batch_commit import check_batch_shape, commit_changes

MONDAY = 1
TUESDAY = 2


def _create(world, school_class, block, day, room, homeroom):
    return ScheduleChange(
        type="create",
        class_id=school_class.id,
        block_id=block.id,
        day_of_week=day,
        room_id=room.id,
        semester_id=world.semester.id,
        homeroom_id=homeroom.id,
    )


def _session_count(db_session) -> int:
    return db_session.execute(select(func.count(ClassSession.id))).scalar_one()


def test_create_batch_applies_in_order_and_returns_ids(db_session, school):
    changes = [
        _create(school, school.math10, school.b1, MONDAY, school.r1, school.homeroom10),
        _create(school, school.math11, school.b1, MONDAY, school.r2, school.homeroom11),
    ]

    results = commit_changes(db_session, changes, actor_id="admin-1")

    assert [item.type for item in results] == ["create", "create"]
    stored = {row.id: row for row in db_session.execute(select(ClassSession)).scalars()}
    assert set(stored) == {item.id for item in results}
    assert stored[results[0].id].class_id == school.math10.id
    assert stored[results[0].id].homeroom_id == school.homeroom10.id


def test_later_operation_sees_earlier_effect(db_session, factory, school):
    existing = factory.session(school.math10, school.b1, MONDAY, school.r1, school.homeroom10)
    db_session.commit()

    # Freeing R1 first lets the create take the slot it used.
    results = commit_changes(
        db_session,
        [
            ScheduleChange(type="move", session_id=existing.id, block_id=school.b2.id, day_of_week=MONDAY, room_id=school.r1.id),
            _create(school, school.bio10, school.b1, MONDAY, school.r1, school.homeroom10),
        ],
    )

    assert [item.type for item in results] == ["move", "create"]
    db_session.expire_all()
    assert db_session.get(ClassSession, existing.id).block_id == school.b2.id


def test_failed_batch_leaves_store_unchanged(db_session, factory, school):
    existing = factory.session(school.math10, school.b1, MONDAY, school.r1, school.homeroom10)
    db_session.commit()

    changes = [
        _create(school, school.math11, school.b2, TUESDAY, school.r1, school.homeroom11),
        ScheduleChange(type="update_room", session_id=existing.id, room_id=school.r3.id),
        # Same grade as Math10 in the same slot.
        _create(school, school.bio10, school.b1, MONDAY, school.r2, school.homeroom10),
    ]

    with pytest.raises(ScheduleConflictError) as exc_info:
        commit_changes(db_session, changes)

    assert exc_info.value.status_code == 409
    assert exc_info.value.conflicts[0].type == "homeroom"
    assert exc_info.value.conflicts[0].related_session_id == existing.id
    db_session.expire_all()
    assert _session_count(db_session) == 1
    assert db_session.get(ClassSession, existing.id).room_id == school.r1.id
    assert db_session.execute(select(func.count(ActivityLog.id))).scalar_one() == 0


def test_slot_uniqueness_backstop_rejects_double_booking(db_session, factory, school):
    factory.session(school.math10, school.b1, MONDAY, school.r1, school.homeroom10)
    db_session.commit()

    # Different grade, so only the store's unique slot constraint stops it.
    with pytest.raises(StoreFailureError) as exc_info:
        commit_changes(
            db_session,
            [
                _create(school, school.math11, school.b2, MONDAY, school.r2, school.homeroom11),
                _create(school, school.math11, school.b1, MONDAY, school.r1, school.homeroom11),
            ],
        )

    assert exc_info.value.status_code == 409
    assert exc_info.value.details == {"failed_index": 1}
    assert _session_count(db_session) == 1


def test_move_to_own_slot_is_accepted(db_session, factory, school):
    existing = factory.session(school.math10, school.b1, MONDAY, school.r1, school.homeroom10)
    db_session.commit()

    results = commit_changes(
        db_session,
        [ScheduleChange(type="move", session_id=existing.id, block_id=school.b1.id, day_of_week=MONDAY, room_id=school.r1.id)],
    )

    assert results[0].id == existing.id


def test_update_teacher_replaces_whole_teacher_set(db_session, factory, school):
    existing = factory.session(
        school.math10, school.b1, MONDAY, school.r1, school.homeroom10, teachers=[school.t1, school.t2]
    )
    db_session.commit()

    commit_changes(
        db_session,
        [ScheduleChange(type="update_teacher", session_id=existing.id, teacher_id=school.t2.id)],
        settings=Settings(primary_teacher_role="Lead"),
    )

    links = db_session.execute(
        select(ClassSessionTeacher).where(ClassSessionTeacher.class_session_id == existing.id)
    ).scalars().all()
    assert [(link.teacher_id, link.role) for link in links] == [(school.t2.id, "Lead")]


def test_delete_removes_session_and_teacher_links(db_session, factory, school):
    existing = factory.session(school.math10, school.b1, MONDAY, school.r1, school.homeroom10, teachers=[school.t1])
    db_session.commit()
    existing_id = existing.id

    results = commit_changes(db_session, [ScheduleChange(type="delete", session_id=existing_id)])

    assert results[0].model_dump() == {"type": "delete", "id": existing_id}
    assert _session_count(db_session) == 0
    assert db_session.execute(select(func.count(ClassSessionTeacher.id))).scalar_one() == 0


def test_unknown_session_raises_not_found_and_rolls_back(db_session, school):
    changes = [
        _create(school, school.math10, school.b1, MONDAY, school.r1, school.homeroom10),
        ScheduleChange(type="update_room", session_id="missing", room_id=school.r2.id),
    ]

    with pytest.raises(ResourceNotFoundError):
        commit_changes(db_session, changes)

    assert _session_count(db_session) == 0


def test_block_from_another_semester_is_rejected(db_session, school):
    with pytest.raises(BadRequestError):
        commit_changes(
            db_session,
            [_create(school, school.math10, school.old_block, MONDAY, school.r1, school.homeroom10)],
        )

    assert _session_count(db_session) == 0


def test_successful_commit_writes_audit_entry(db_session, school):
    results = commit_changes(
        db_session,
        [_create(school, school.math10, school.b1, MONDAY, school.r1, school.homeroom10)],
        actor_id="admin-7",
    )

    entry = db_session.execute(select(ActivityLog)).scalar_one()
    assert entry.actor_id == "admin-7"
    assert entry.action == "schedule.batch_commit"
    assert entry.details == {"operations": [{"type": "create", "id": results[0].id}]}


def test_batch_shape_rejects_empty_batch():
    with pytest.raises(BadRequestError, match="No changes"):
        check_batch_shape([], max_operations=10)


def test_batch_shape_rejects_oversized_batch():
    changes = [ScheduleChange(type="delete", session_id=f"s{index}") for index in range(3)]

    with pytest.raises(BadRequestError) as exc_info:
        check_batch_shape(changes, max_operations=2)

    assert exc_info.value.details == {"operations": 3, "max_operations": 2}


def test_create_without_homeroom_is_malformed():
    change = ScheduleChange(
        type="create", class_id="c", block_id="b", day_of_week=MONDAY, room_id="r", semester_id="s"
    )

    with pytest.raises(BadRequestError) as exc_info:
        check_batch_shape([change], max_operations=10)

    assert exc_info.value.details["missing_fields"] == ["homeroom_id"]
    assert exc_info.value.details["index"] == 0


def test_move_into_same_grade_slot_is_rechecked_and_rolled_back(db_session, factory, school):
    math10 = factory.session(school.math10, school.b1, MONDAY, school.r1, school.homeroom10)
    bio10 = factory.session(school.bio10, school.b2, TUESDAY, school.r2, school.homeroom10)
    db_session.commit()
    math10_id, bio10_id = math10.id, bio10.id

    with pytest.raises(ScheduleConflictError) as exc_info:
        commit_changes(
            db_session,
            [ScheduleChange(type="move", session_id=bio10_id, block_id=school.b1.id, day_of_week=MONDAY, room_id=school.r3.id)],
        )

    assert [(item.type, item.related_session_id) for item in exc_info.value.conflicts] == [("homeroom", math10_id)]
    db_session.expire_all()
    moved = db_session.get(ClassSession, bio10_id)
    assert (moved.block_id, moved.day_of_week, moved.room_id) == (school.b2.id, TUESDAY, school.r2.id)
    assert db_session.execute(select(func.count(ActivityLog.id))).scalar_one() == 0


def test_commit_inside_open_transaction_warns_isolation_not_applied(db_session, school, caplog):
    # Reading a seeded row opens the session's transaction before the commit starts.
    change = _create(school, school.math10, school.b1, MONDAY, school.r1, school.homeroom10)
    assert db_session.in_transaction()

    with caplog.at_level("WARNING", logger="app.services.batch_commit"):
        commit_changes(db_session, [change], settings=Settings(commit_isolation_level="SERIALIZABLE"))

    assert "SCHEDULE COMMIT ISOLATION NOT APPLIED" in caplog.text
