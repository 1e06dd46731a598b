from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.deps import get_db, get_operator_id
from app.core.config import Settings, get_settings
from app.schemas.scheduler import (
    BatchCommitRequest,
    ClassBankEntry,
    CommitResult,
    HomeroomScheduleOut,
    ResourceScheduleOut,
    ResourceType,
    RoomOut,
    SectionNode,
    SemesterOut,
    TeacherOut,
    ValidateCreateRequest,
    ValidateMoveRequest,
    ValidationResult,
)
from app.services import schedule_queries
from app.services.batch_commit import commit_changes
from app.services.placement_validation import validate_create, validate_move

router = APIRouter()


@router.get("/semesters", response_model=list[SemesterOut])
def list_semesters(db: Session = Depends(get_db)) -> list[SemesterOut]:
    return schedule_queries.list_semesters(db)


@router.get("/rooms", response_model=list[RoomOut])
def list_rooms(db: Session = Depends(get_db)) -> list[RoomOut]:
    return schedule_queries.list_rooms(db)


@router.get("/teachers", response_model=list[TeacherOut])
def list_teachers(db: Session = Depends(get_db)) -> list[TeacherOut]:
    return schedule_queries.list_teachers(db)


@router.get("/sections/tree", response_model=list[SectionNode])
def get_section_tree(db: Session = Depends(get_db)) -> list[SectionNode]:
    return schedule_queries.section_tree(db)


@router.get("/homerooms/{homeroom_id}/schedule", response_model=HomeroomScheduleOut)
def get_homeroom_schedule(
    homeroom_id: str,
    semester_id: str = Query(min_length=1, max_length=36),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> HomeroomScheduleOut:
    return schedule_queries.homeroom_schedule(
        db,
        homeroom_id,
        semester_id,
        legacy_fallback=settings.legacy_homeroom_fallback,
    )


@router.get("/homerooms/{homeroom_id}/classes", response_model=list[ClassBankEntry])
def get_class_bank(
    homeroom_id: str,
    semester_id: str = Query(min_length=1, max_length=36),
    db: Session = Depends(get_db),
) -> list[ClassBankEntry]:
    return schedule_queries.class_bank(db, homeroom_id, semester_id)


@router.get("/resources/{resource_type}/{resource_id}/schedule", response_model=ResourceScheduleOut)
def get_resource_schedule(
    resource_type: ResourceType,
    resource_id: str,
    semester_id: str = Query(min_length=1, max_length=36),
    db: Session = Depends(get_db),
) -> ResourceScheduleOut:
    return schedule_queries.resource_schedule(db, resource_type, resource_id, semester_id)


@router.post("/validate/move", response_model=ValidationResult)
def validate_session_move(payload: ValidateMoveRequest, db: Session = Depends(get_db)) -> ValidationResult:
    return validate_move(db, payload)


@router.post("/validate/create", response_model=ValidationResult)
def validate_session_create(payload: ValidateCreateRequest, db: Session = Depends(get_db)) -> ValidationResult:
    return validate_create(db, payload)


@router.post("/commit", response_model=CommitResult)
def commit_batch(
    payload: BatchCommitRequest,
    db: Session = Depends(get_db),
    operator_id: str | None = Depends(get_operator_id),
    settings: Settings = Depends(get_settings),
) -> CommitResult:
    results = commit_changes(db, payload.changes, actor_id=operator_id, settings=settings)
    return CommitResult(results=results)
