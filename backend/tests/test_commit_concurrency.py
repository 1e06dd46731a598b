from types import SimpleNamespace

import pytest
from sqlalchemy import func, select, text
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker

from app.core.config import Settings
from app.core.exceptions import ScheduleConflictError, StoreFailureError
from app.db.base import Base
from app.db.session import create_db_engine
from app.models.class_session import ClassSession
from app.schemas.scheduler import ScheduleChange
from app.services import batch_commit

MONDAY = 1


@pytest.fixture()
def file_engine(tmp_path):
    # A short busy timeout keeps the losing writer from waiting the driver's default 5s.
    engine = create_db_engine(f"sqlite:///{tmp_path / 'schedule.db'}?timeout=0.2")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


def test_file_database_transaction_locks_from_its_first_read(file_engine):
    with file_engine.connect() as first, file_engine.connect() as second:
        first.execute(text("SELECT 1"))

        with pytest.raises(OperationalError, match="database is locked"):
            second.execute(text("SELECT 1"))


def test_concurrent_same_grade_commits_let_exactly_one_through(file_engine, build_school, monkeypatch):
    FileSession = sessionmaker(bind=file_engine, autocommit=False, autoflush=False)
    with FileSession() as seed:
        world = build_school(seed)
        ids = SimpleNamespace(
            semester=world.semester.id,
            homeroom10=world.homeroom10.id,
            math10=world.math10.id,
            bio10=world.bio10.id,
            b1=world.b1.id,
            r1=world.r1.id,
            r2=world.r2.id,
        )

    settings = Settings(commit_isolation_level="SERIALIZABLE")

    def create(class_id, room_id):
        return ScheduleChange(
            type="create",
            class_id=class_id,
            block_id=ids.b1,
            day_of_week=MONDAY,
            room_id=room_id,
            semester_id=ids.semester,
            homeroom_id=ids.homeroom10,
        )

    outcomes = {}
    check_grade = batch_commit._require_grade_free

    def check_then_let_rival_commit(db, proposal, **kwargs):
        check_grade(db, proposal, **kwargs)
        if "rival" in outcomes:
            return
        # The rival books Bio10 (same grade) into the slot after Math10 has passed its check.
        outcomes["rival"] = None
        with FileSession() as rival:
            try:
                batch_commit.commit_changes(rival, [create(ids.bio10, ids.r2)], settings=settings)
                outcomes["rival"] = "committed"
            except (ScheduleConflictError, StoreFailureError) as exc:
                outcomes["rival"] = exc

    monkeypatch.setattr(batch_commit, "_require_grade_free", check_then_let_rival_commit)

    with FileSession() as first:
        try:
            batch_commit.commit_changes(first, [create(ids.math10, ids.r1)], settings=settings)
            outcomes["first"] = "committed"
        except (ScheduleConflictError, StoreFailureError) as exc:
            outcomes["first"] = exc

    committed = [name for name, outcome in outcomes.items() if outcome == "committed"]
    assert len(committed) == 1
    loser = outcomes["rival"] if committed == ["first"] else outcomes["first"]
    assert isinstance(loser, (ScheduleConflictError, StoreFailureError))
    assert loser.status_code == 409

    with FileSession() as check:
        stored = check.execute(
            select(func.count(ClassSession.id)).where(ClassSession.block_id == ids.b1)
        ).scalar_one()
    assert stored == 1
