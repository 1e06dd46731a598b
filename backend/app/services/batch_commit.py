"""Atomic application of a batch of schedule edits.

Operations run in the order given, inside one transaction, each flushed so
the next one sees its effect. Create and move re-check the same-grade rule
against the in-transaction state; the store's unique slot constraint backs
everything else. Any failure rolls back the whole batch.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence

from sqlalchemy import delete
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import Settings, get_settings
from app.core.exceptions import AppError, BadRequestError, ScheduleConflictError, StoreFailureError
from app.models.academic import Homeroom, Semester
from app.models.block import Block
from app.models.class_session import ClassSession, ClassSessionTeacher
from app.models.room import Room
from app.models.school_class import SchoolClass
from app.models.teacher import Teacher
from app.schemas.scheduler import ChangeResult, ScheduleChange
from app.services.audit import log_activity
from app.services.conflict_service import (
    CreateProposal,
    MoveProposal,
    Proposal,
    grade_overlap_conflicts,
    resolve_placement,
)
from app.services.schedule_queries import get_or_404, load_placement_snapshot

logger = logging.getLogger(__name__)

# serialization failure, deadlock
CONCURRENCY_SQLSTATES = frozenset({"40001", "40P01"})


def check_batch_shape(changes: Sequence[ScheduleChange], *, max_operations: int) -> None:
    """Reject malformed batches before the store is touched."""
    if not changes:
        raise BadRequestError("No changes to commit")
    if len(changes) > max_operations:
        raise BadRequestError(
            f"Too many changes in one batch ({len(changes)}). Maximum allowed is {max_operations}.",
            details={"operations": len(changes), "max_operations": max_operations},
        )
    for index, change in enumerate(changes):
        missing = change.missing_fields()
        if missing:
            raise BadRequestError(
                f"Missing required fields for {change.type}: {', '.join(missing)}",
                details={"index": index, "type": change.type, "missing_fields": missing},
            )


def _begin(db: Session, isolation_level: str | None) -> None:
    if not isolation_level:
        return
    # Isolation can only be chosen before the transaction has started.
    if db.in_transaction():
        logger.warning(
            "SCHEDULE COMMIT ISOLATION NOT APPLIED | requested=%s | reason=transaction already open",
            isolation_level,
        )
        return
    db.connection(execution_options={"isolation_level": isolation_level})


def _is_concurrency_failure(exc: SQLAlchemyError) -> bool:
    orig = getattr(exc, "orig", None)
    if getattr(orig, "sqlstate", None) in CONCURRENCY_SQLSTATES:
        return True
    # sqlite reports a competing writer as a locked database.
    return isinstance(exc, OperationalError) and "database is locked" in str(orig)


def _require_grade_free(
    db: Session,
    proposal: Proposal,
    *,
    semester_id: str,
    class_id: str,
    session_id: str | None = None,
) -> None:
    snapshot = load_placement_snapshot(
        db,
        semester_id=semester_id,
        day_of_week=proposal.day_of_week,
        block_id=proposal.block_id,
        room_id=proposal.room_id,
        class_ids=[class_id],
        session_ids=[session_id] if session_id else (),
    )
    conflicts = grade_overlap_conflicts(snapshot, resolve_placement(snapshot, proposal))
    if conflicts:
        raise ScheduleConflictError(conflicts)


def _require_block_in_semester(block: Block, semester_id: str) -> None:
    if block.semester_id != semester_id:
        raise BadRequestError(
            f"Block {block.name} does not belong to semester {semester_id}",
            details={"block_id": block.id, "semester_id": semester_id},
        )


def _apply_create(db: Session, change: ScheduleChange, settings: Settings) -> str:
    school_class = get_or_404(db, SchoolClass, change.class_id, "Class")
    get_or_404(db, Semester, change.semester_id, "Semester")
    block = get_or_404(db, Block, change.block_id, "Block")
    get_or_404(db, Room, change.room_id, "Room")
    get_or_404(db, Homeroom, change.homeroom_id, "Homeroom")
    _require_block_in_semester(block, change.semester_id)
    if school_class.semester_id != change.semester_id:
        raise BadRequestError(
            f"Class {school_class.name} does not belong to semester {change.semester_id}",
            details={"class_id": school_class.id, "semester_id": change.semester_id},
        )

    _require_grade_free(
        db,
        CreateProposal(
            class_id=school_class.id,
            block_id=block.id,
            day_of_week=change.day_of_week,
            room_id=change.room_id,
        ),
        semester_id=change.semester_id,
        class_id=school_class.id,
    )

    session = ClassSession(
        class_id=school_class.id,
        block_id=block.id,
        day_of_week=change.day_of_week,
        room_id=change.room_id,
        semester_id=change.semester_id,
        homeroom_id=change.homeroom_id,
    )
    db.add(session)
    db.flush()
    return session.id


def _apply_move(db: Session, change: ScheduleChange, settings: Settings) -> str:
    session = get_or_404(db, ClassSession, change.session_id, "Class session")
    block = get_or_404(db, Block, change.block_id, "Block")
    get_or_404(db, Room, change.room_id, "Room")
    _require_block_in_semester(block, session.semester_id)

    _require_grade_free(
        db,
        MoveProposal(
            session_id=session.id,
            block_id=block.id,
            day_of_week=change.day_of_week,
            room_id=change.room_id,
        ),
        semester_id=session.semester_id,
        class_id=session.class_id,
        session_id=session.id,
    )

    session.block_id = block.id
    session.day_of_week = change.day_of_week
    session.room_id = change.room_id
    db.flush()
    return session.id


def _apply_update_room(db: Session, change: ScheduleChange, settings: Settings) -> str:
    session = get_or_404(db, ClassSession, change.session_id, "Class session")
    get_or_404(db, Room, change.room_id, "Room")
    session.room_id = change.room_id
    db.flush()
    return session.id


def _apply_update_teacher(db: Session, change: ScheduleChange, settings: Settings) -> str:
    session = get_or_404(db, ClassSession, change.session_id, "Class session")
    get_or_404(db, Teacher, change.teacher_id, "Teacher")
    # Co-teaching edits are not supported: the new teacher replaces the whole set.
    db.execute(delete(ClassSessionTeacher).where(ClassSessionTeacher.class_session_id == session.id))
    db.add(
        ClassSessionTeacher(
            class_session_id=session.id,
            teacher_id=change.teacher_id,
            role=settings.primary_teacher_role,
        )
    )
    db.flush()
    return session.id


def _apply_delete(db: Session, change: ScheduleChange, settings: Settings) -> str:
    session = get_or_404(db, ClassSession, change.session_id, "Class session")
    session_id = session.id
    db.execute(delete(ClassSessionTeacher).where(ClassSessionTeacher.class_session_id == session_id))
    db.delete(session)
    db.flush()
    return session_id


APPLIERS: dict[str, Callable[[Session, ScheduleChange, Settings], str]] = {
    "create": _apply_create,
    "move": _apply_move,
    "update_room": _apply_update_room,
    "update_teacher": _apply_update_teacher,
    "delete": _apply_delete,
}


def commit_changes(
    db: Session,
    changes: Sequence[ScheduleChange],
    *,
    actor_id: str | None = None,
    settings: Settings | None = None,
) -> list[ChangeResult]:
    settings = settings or get_settings()
    check_batch_shape(changes, max_operations=settings.max_batch_operations)

    results: list[ChangeResult] = []
    position = 0
    try:
        _begin(db, settings.commit_isolation_level)
        for position, change in enumerate(changes):
            session_id = APPLIERS[change.type](db, change, settings)
            results.append(ChangeResult(type=change.type, id=session_id))
        position = len(changes)
        log_activity(
            db,
            actor_id=actor_id,
            action="schedule.batch_commit",
            entity_type="class_session",
            details={"operations": [item.model_dump() for item in results]},
        )
        db.commit()
    except AppError as exc:
        db.rollback()
        logger.warning(
            "SCHEDULE COMMIT REJECTED | operations=%s | failed_index=%s | reason=%s",
            len(changes),
            position,
            exc.message,
        )
        raise
    except IntegrityError as exc:
        db.rollback()
        logger.warning(
            "SCHEDULE COMMIT REJECTED BY STORE | operations=%s | failed_index=%s | error=%s",
            len(changes),
            position,
            exc.orig,
        )
        raise StoreFailureError(
            "Schedule commit failed: the store rejected a change because the slot or assignment is already taken.",
            details={"failed_index": position},
        ) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        if _is_concurrency_failure(exc):
            logger.warning(
                "SCHEDULE COMMIT CONCURRENCY FAILURE | operations=%s | failed_index=%s",
                len(changes),
                position,
            )
            raise StoreFailureError(
                "Schedule commit failed: a concurrent change touched the same slots. Refresh and try again.",
                details={"failed_index": position},
            ) from exc
        logger.exception(
            "SCHEDULE COMMIT STORE FAILURE | operations=%s | failed_index=%s",
            len(changes),
            position,
        )
        raise StoreFailureError(
            "Schedule commit failed: the store aborted the transaction.",
            status_code=503,
            details={"failed_index": position},
        ) from exc

    logger.info(
        "SCHEDULE COMMITTED | operations=%s | actor_id=%s | session_ids=%s",
        len(results),
        actor_id,
        ",".join(item.id for item in results),
    )
    return results
