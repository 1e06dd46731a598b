from __future__ import annotations

from datetime import date, time
from typing import ClassVar, Literal

from pydantic import BaseModel, Field

DAYS_OF_WEEK = (1, 2, 3, 4, 5)
DAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday")


def day_name(day_of_week: int) -> str:
    if day_of_week in DAYS_OF_WEEK:
        return DAY_NAMES[day_of_week - 1]
    return "Unknown Day"


ConflictType = Literal["teacher", "room", "homeroom"]
WarningType = Literal["duplicate_class"]
ChangeType = Literal["create", "move", "update_room", "update_teacher", "delete"]
ResourceType = Literal["room", "teacher"]


class ScheduleConflict(BaseModel):
    type: ConflictType
    message: str
    related_session_id: str | None = None


class ScheduleWarning(BaseModel):
    type: WarningType
    message: str
    related_session_id: str | None = None


class ValidationResult(BaseModel):
    valid: bool
    conflicts: list[ScheduleConflict] = Field(default_factory=list)
    warnings: list[ScheduleWarning] = Field(default_factory=list)


class ValidateMoveRequest(BaseModel):
    session_id: str = Field(min_length=1, max_length=36)
    target_block_id: str = Field(min_length=1, max_length=36)
    target_day_of_week: int = Field(ge=1, le=5)
    target_room_id: str = Field(min_length=1, max_length=36)
    semester_id: str = Field(min_length=1, max_length=36)


class ValidateCreateRequest(BaseModel):
    class_id: str = Field(min_length=1, max_length=36)
    target_block_id: str = Field(min_length=1, max_length=36)
    target_day_of_week: int = Field(ge=1, le=5)
    target_room_id: str = Field(min_length=1, max_length=36)
    semester_id: str = Field(min_length=1, max_length=36)
    # Teachers the caller intends to assign once the session exists.
    teacher_ids: list[str] = Field(default_factory=list, max_length=20)


class ScheduleChange(BaseModel):
    """One pending edit from the scheduler grid. Which fields are needed depends on ``type``."""

    REQUIRED_FIELDS: ClassVar[dict[str, tuple[str, ...]]] = {
        "create": ("class_id", "block_id", "day_of_week", "room_id", "semester_id", "homeroom_id"),
        "move": ("session_id", "block_id", "day_of_week", "room_id"),
        "update_room": ("session_id", "room_id"),
        "update_teacher": ("session_id", "teacher_id"),
        "delete": ("session_id",),
    }

    type: ChangeType
    session_id: str | None = Field(default=None, max_length=36)
    block_id: str | None = Field(default=None, max_length=36)
    day_of_week: int | None = Field(default=None, ge=1, le=5)
    room_id: str | None = Field(default=None, max_length=36)
    class_id: str | None = Field(default=None, max_length=36)
    semester_id: str | None = Field(default=None, max_length=36)
    homeroom_id: str | None = Field(default=None, max_length=36)
    teacher_id: str | None = Field(default=None, max_length=36)

    def missing_fields(self) -> list[str]:
        return [name for name in self.REQUIRED_FIELDS[self.type] if not getattr(self, name)]


class BatchCommitRequest(BaseModel):
    changes: list[ScheduleChange]


class ChangeResult(BaseModel):
    type: ChangeType
    id: str


class CommitResult(BaseModel):
    results: list[ChangeResult]


class TeacherAssignmentOut(BaseModel):
    id: str
    name: str
    role: str


class SessionOut(BaseModel):
    id: str
    class_id: str
    class_code: str
    class_name: str
    class_grade_id: str | None
    block_id: str
    block_name: str
    day_of_week: int
    room_id: str
    room_name: str
    semester_id: str
    homeroom_id: str | None
    teachers: list[TeacherAssignmentOut] = Field(default_factory=list)


class DutyOut(BaseModel):
    id: str
    duty_type_name: str
    teacher_id: str
    teacher_name: str
    block_id: str
    block_name: str
    day_of_week: int
    room_id: str
    room_name: str
    semester_id: str


class BlockOut(BaseModel):
    id: str
    name: str
    start_time: time
    end_time: time
    is_early: bool
    is_late: bool

    model_config = {"from_attributes": True}


class DayOut(BaseModel):
    day_of_week: int
    name: str


class RoomOut(BaseModel):
    id: str
    name: str
    type_name: str
    location: str
    building: str


class TeacherOut(BaseModel):
    id: str
    name: str

    model_config = {"from_attributes": True}


class SemesterOut(BaseModel):
    id: str
    name: str
    start_date: date
    end_date: date

    model_config = {"from_attributes": True}


class GradeOut(BaseModel):
    id: str
    name: str


class HomeroomHeader(BaseModel):
    id: str
    name: str
    section_id: str
    section_name: str
    teacher_name: str
    grades: list[GradeOut]


class HomeroomScheduleOut(BaseModel):
    homeroom: HomeroomHeader
    blocks: list[BlockOut]
    days: list[DayOut]
    rooms: list[RoomOut]
    sessions: list[SessionOut]


class ResourceScheduleOut(BaseModel):
    resource_type: ResourceType
    resource_id: str
    resource_name: str
    blocks: list[BlockOut]
    days: list[DayOut]
    sessions: list[SessionOut]
    duties: list[DutyOut]


class HomeroomNode(BaseModel):
    id: str
    name: str
    teacher_name: str | None


class GradeNode(BaseModel):
    id: str
    name: str
    homerooms: list[HomeroomNode]


class SectionNode(BaseModel):
    id: str
    name: str
    grades: list[GradeNode]


class ClassBankEntry(BaseModel):
    id: str
    code: str
    name: str
    grade_id: str | None
    grade_name: str | None
