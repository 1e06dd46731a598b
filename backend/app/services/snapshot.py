"""Immutable views of the schedule store consumed by the conflict evaluator.

A snapshot holds only the slice of the store a placement decision needs:
every session and duty on one day of one semester, plus the classes, blocks,
rooms and teachers those rows reference. It is built by
``app.services.schedule_queries.load_placement_snapshot`` and never written
back.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping


@dataclass(frozen=True)
class ClassInfo:
    id: str
    code: str
    name: str
    section_id: str
    semester_id: str
    grade_id: str | None = None
    grade_name: str | None = None

    @property
    def is_shared(self) -> bool:
        return self.grade_id is None


@dataclass(frozen=True)
class BlockInfo:
    id: str
    name: str
    semester_id: str


@dataclass(frozen=True)
class RoomInfo:
    id: str
    name: str


@dataclass(frozen=True)
class SessionInfo:
    id: str
    class_id: str
    block_id: str
    day_of_week: int
    room_id: str
    semester_id: str
    homeroom_id: str | None = None
    teacher_ids: frozenset[str] = frozenset()


@dataclass(frozen=True)
class DutyInfo:
    id: str
    teacher_id: str
    room_id: str
    block_id: str
    day_of_week: int
    semester_id: str
    duty_type_name: str


def _freeze(mapping: Mapping | None) -> Mapping:
    return MappingProxyType(dict(mapping or {}))


@dataclass(frozen=True)
class ScheduleSnapshot:
    semester_id: str
    classes: Mapping[str, ClassInfo] = field(default_factory=dict)
    blocks: Mapping[str, BlockInfo] = field(default_factory=dict)
    rooms: Mapping[str, RoomInfo] = field(default_factory=dict)
    teachers: Mapping[str, str] = field(default_factory=dict)
    sessions: tuple[SessionInfo, ...] = ()
    duties: tuple[DutyInfo, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "classes", _freeze(self.classes))
        object.__setattr__(self, "blocks", _freeze(self.blocks))
        object.__setattr__(self, "rooms", _freeze(self.rooms))
        object.__setattr__(self, "teachers", _freeze(self.teachers))
        object.__setattr__(self, "sessions", tuple(self.sessions))
        object.__setattr__(self, "duties", tuple(self.duties))

    def session(self, session_id: str) -> SessionInfo | None:
        for item in self.sessions:
            if item.id == session_id:
                return item
        return None

    def sessions_in_slot(
        self,
        block_id: str,
        day_of_week: int,
        *,
        exclude_session_id: str | None = None,
    ) -> list[SessionInfo]:
        return [
            item
            for item in self.sessions
            if item.block_id == block_id
            and item.day_of_week == day_of_week
            and item.semester_id == self.semester_id
            and item.id != exclude_session_id
        ]

    def duties_in_slot(self, block_id: str, day_of_week: int) -> list[DutyInfo]:
        return [
            item
            for item in self.duties
            if item.block_id == block_id
            and item.day_of_week == day_of_week
            and item.semester_id == self.semester_id
        ]

    def class_name(self, class_id: str) -> str:
        info = self.classes.get(class_id)
        return info.name if info is not None else class_id

    def teacher_name(self, teacher_id: str) -> str:
        return self.teachers.get(teacher_id, teacher_id)

    def room_name(self, room_id: str) -> str:
        info = self.rooms.get(room_id)
        return info.name if info is not None else room_id
