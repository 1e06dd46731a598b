"""Placement conflict evaluation.

Every function here is pure: it reads a ``ScheduleSnapshot`` and a proposal
and returns data. Conflicts block a placement, warnings do not, and all rules
are evaluated so the operator sees every reason at once.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from app.core.exceptions import ResourceNotFoundError
from app.schemas.scheduler import ScheduleConflict, ScheduleWarning, ValidationResult, day_name
from app.services.snapshot import BlockInfo, ClassInfo, ScheduleSnapshot


@dataclass(frozen=True)
class MoveProposal:
    session_id: str
    block_id: str
    day_of_week: int
    room_id: str


@dataclass(frozen=True)
class CreateProposal:
    class_id: str
    block_id: str
    day_of_week: int
    room_id: str
    teacher_ids: tuple[str, ...] = ()


Proposal = Union[MoveProposal, CreateProposal]


@dataclass(frozen=True)
class Placement:
    """A proposal with its references resolved against a snapshot."""

    class_info: ClassInfo
    block: BlockInfo
    day_of_week: int
    room_id: str
    teacher_ids: tuple[str, ...]
    exclude_session_id: str | None = None

    @property
    def where(self) -> str:
        return f"{self.block.name} ({day_name(self.day_of_week)})"


def resolve_placement(snapshot: ScheduleSnapshot, proposal: Proposal) -> Placement:
    if isinstance(proposal, MoveProposal):
        session = snapshot.session(proposal.session_id)
        if session is None:
            raise ResourceNotFoundError("Class session", proposal.session_id)
        class_id = session.class_id
        teacher_ids = tuple(sorted(session.teacher_ids))
        exclude_session_id = session.id
    else:
        class_id = proposal.class_id
        teacher_ids = tuple(dict.fromkeys(proposal.teacher_ids))
        exclude_session_id = None

    class_info = snapshot.classes.get(class_id)
    if class_info is None:
        raise ResourceNotFoundError("Class", class_id)
    block = snapshot.blocks.get(proposal.block_id)
    if block is None:
        raise ResourceNotFoundError("Block", proposal.block_id)
    if proposal.room_id not in snapshot.rooms:
        raise ResourceNotFoundError("Room", proposal.room_id)

    return Placement(
        class_info=class_info,
        block=block,
        day_of_week=proposal.day_of_week,
        room_id=proposal.room_id,
        teacher_ids=teacher_ids,
        exclude_session_id=exclude_session_id,
    )


def teacher_conflicts(snapshot: ScheduleSnapshot, placement: Placement) -> list[ScheduleConflict]:
    conflicts: list[ScheduleConflict] = []
    slot_sessions = snapshot.sessions_in_slot(
        placement.block.id, placement.day_of_week, exclude_session_id=placement.exclude_session_id
    )
    slot_duties = snapshot.duties_in_slot(placement.block.id, placement.day_of_week)

    for teacher_id in placement.teacher_ids:
        teacher_name = snapshot.teacher_name(teacher_id)
        for other in slot_sessions:
            if teacher_id not in other.teacher_ids:
                continue
            conflicts.append(
                ScheduleConflict(
                    type="teacher",
                    message=(
                        f"{teacher_name} is already teaching {snapshot.class_name(other.class_id)} "
                        f"in {placement.where}."
                    ),
                    related_session_id=other.id,
                )
            )
        for duty in slot_duties:
            if duty.teacher_id != teacher_id:
                continue
            conflicts.append(
                ScheduleConflict(
                    type="teacher",
                    message=f"{teacher_name} has {duty.duty_type_name} duty in {placement.where}.",
                )
            )
    return conflicts


def room_conflicts(snapshot: ScheduleSnapshot, placement: Placement) -> list[ScheduleConflict]:
    conflicts: list[ScheduleConflict] = []
    room_name = snapshot.room_name(placement.room_id)

    for other in snapshot.sessions_in_slot(
        placement.block.id, placement.day_of_week, exclude_session_id=placement.exclude_session_id
    ):
        if other.room_id != placement.room_id:
            continue
        conflicts.append(
            ScheduleConflict(
                type="room",
                message=(
                    f"{room_name} is already booked for {snapshot.class_name(other.class_id)} "
                    f"in {placement.where}."
                ),
                related_session_id=other.id,
            )
        )

    for duty in snapshot.duties_in_slot(placement.block.id, placement.day_of_week):
        if duty.room_id != placement.room_id:
            continue
        conflicts.append(
            ScheduleConflict(
                type="room",
                message=(
                    f"{room_name} is in use for {duty.duty_type_name} duty by "
                    f"{snapshot.teacher_name(duty.teacher_id)} in {placement.where}."
                ),
            )
        )
    return conflicts


def grade_overlap_conflicts(snapshot: ScheduleSnapshot, placement: Placement) -> list[ScheduleConflict]:
    grade_id = placement.class_info.grade_id
    if grade_id is None:
        return []

    conflicts: list[ScheduleConflict] = []
    for other in snapshot.sessions_in_slot(
        placement.block.id, placement.day_of_week, exclude_session_id=placement.exclude_session_id
    ):
        other_class = snapshot.classes.get(other.class_id)
        if other_class is None or other_class.grade_id != grade_id:
            continue
        conflicts.append(
            ScheduleConflict(
                type="homeroom",
                message=(
                    f"Students would have a conflict: {other_class.name} is scheduled at the same time "
                    f"in {placement.where}."
                ),
                related_session_id=other.id,
            )
        )
    return conflicts


def shared_class_conflicts(snapshot: ScheduleSnapshot, placement: Placement) -> list[ScheduleConflict]:
    placing_shared = placement.class_info.is_shared
    conflicts: list[ScheduleConflict] = []

    for other in snapshot.sessions_in_slot(
        placement.block.id, placement.day_of_week, exclude_session_id=placement.exclude_session_id
    ):
        other_class = snapshot.classes.get(other.class_id)
        if other_class is None or other_class.is_shared == placing_shared:
            continue
        if placing_shared:
            message = (
                f"Cannot schedule shared class. {other_class.name} (grade-specific) is already scheduled "
                f"in {placement.where}."
            )
        else:
            message = (
                f"Cannot schedule grade-specific class. {other_class.name} (shared) is already scheduled "
                f"in {placement.where}."
            )
        conflicts.append(ScheduleConflict(type="homeroom", message=message, related_session_id=other.id))
    return conflicts


def duplicate_day_warnings(snapshot: ScheduleSnapshot, placement: Placement) -> list[ScheduleWarning]:
    same_day = [
        item
        for item in snapshot.sessions
        if item.class_id == placement.class_info.id
        and item.day_of_week == placement.day_of_week
        and item.semester_id == snapshot.semester_id
        and item.id != placement.exclude_session_id
    ]
    if not same_day:
        return []
    return [
        ScheduleWarning(
            type="duplicate_class",
            message=(
                f"{placement.class_info.name} is already scheduled {len(same_day)} time(s) "
                f"on {day_name(placement.day_of_week)}."
            ),
            related_session_id=same_day[0].id,
        )
    ]


def evaluate_placement(snapshot: ScheduleSnapshot, proposal: Proposal) -> ValidationResult:
    placement = resolve_placement(snapshot, proposal)

    conflicts = [
        *teacher_conflicts(snapshot, placement),
        *room_conflicts(snapshot, placement),
        *grade_overlap_conflicts(snapshot, placement),
        *shared_class_conflicts(snapshot, placement),
    ]
    warnings = duplicate_day_warnings(snapshot, placement)
    return ValidationResult(valid=not conflicts, conflicts=conflicts, warnings=warnings)
