from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from app.core.exceptions import BadRequestError, ResourceNotFoundError
from app.schemas.scheduler import ValidateCreateRequest, ValidateMoveRequest, ValidationResult
from app.services.conflict_service import CreateProposal, MoveProposal, evaluate_placement
from app.services.schedule_queries import load_placement_snapshot
from app.services.snapshot import ScheduleSnapshot

logger = logging.getLogger(__name__)


def _ensure_same_semester(label: str, record_id: str, record_semester_id: str, semester_id: str) -> None:
    if record_semester_id != semester_id:
        raise BadRequestError(
            f"{label} {record_id} belongs to semester {record_semester_id}, not {semester_id}",
            details={"record_id": record_id, "record_semester_id": record_semester_id, "semester_id": semester_id},
        )


def _check_block_semester(snapshot: ScheduleSnapshot, block_id: str) -> None:
    block = snapshot.blocks.get(block_id)
    if block is not None:
        _ensure_same_semester("Block", block.id, block.semester_id, snapshot.semester_id)


def validate_move(db: Session, request: ValidateMoveRequest) -> ValidationResult:
    snapshot = load_placement_snapshot(
        db,
        semester_id=request.semester_id,
        day_of_week=request.target_day_of_week,
        block_id=request.target_block_id,
        room_id=request.target_room_id,
        session_ids=[request.session_id],
    )
    session = snapshot.session(request.session_id)
    if session is not None:
        _ensure_same_semester("Class session", session.id, session.semester_id, request.semester_id)
    _check_block_semester(snapshot, request.target_block_id)

    result = evaluate_placement(
        snapshot,
        MoveProposal(
            session_id=request.session_id,
            block_id=request.target_block_id,
            day_of_week=request.target_day_of_week,
            room_id=request.target_room_id,
        ),
    )
    logger.debug(
        "MOVE VALIDATED | session_id=%s | block_id=%s | day=%s | room_id=%s | conflicts=%s | warnings=%s",
        request.session_id,
        request.target_block_id,
        request.target_day_of_week,
        request.target_room_id,
        len(result.conflicts),
        len(result.warnings),
    )
    return result


def validate_create(db: Session, request: ValidateCreateRequest) -> ValidationResult:
    snapshot = load_placement_snapshot(
        db,
        semester_id=request.semester_id,
        day_of_week=request.target_day_of_week,
        block_id=request.target_block_id,
        room_id=request.target_room_id,
        class_ids=[request.class_id],
        teacher_ids=request.teacher_ids,
    )
    class_info = snapshot.classes.get(request.class_id)
    if class_info is not None:
        _ensure_same_semester("Class", class_info.id, class_info.semester_id, request.semester_id)
    _check_block_semester(snapshot, request.target_block_id)
    for teacher_id in request.teacher_ids:
        if teacher_id not in snapshot.teachers:
            raise ResourceNotFoundError("Teacher", teacher_id)

    result = evaluate_placement(
        snapshot,
        CreateProposal(
            class_id=request.class_id,
            block_id=request.target_block_id,
            day_of_week=request.target_day_of_week,
            room_id=request.target_room_id,
            teacher_ids=tuple(request.teacher_ids),
        ),
    )
    logger.debug(
        "CREATE VALIDATED | class_id=%s | block_id=%s | day=%s | room_id=%s | conflicts=%s | warnings=%s",
        request.class_id,
        request.target_block_id,
        request.target_day_of_week,
        request.target_room_id,
        len(result.conflicts),
        len(result.warnings),
    )
    return result
