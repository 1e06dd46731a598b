import pytest
from sqlalchemy import select

from app.db import bootstrap
from app.db.session import engine
from app.models.class_session import ClassSession


def _raise_error(message: str):
    raise RuntimeError(message)


def test_runtime_schema_bootstrap_raises_on_validation_failure(monkeypatch):
    monkeypatch.setattr(bootstrap.Base.metadata, "create_all", lambda bind: None)
    monkeypatch.setattr(bootstrap, "_ensure_class_sessions_homeroom_column", lambda: None)
    monkeypatch.setattr(
        bootstrap,
        "_assert_required_columns",
        lambda: _raise_error("missing required schema"),
    )

    with pytest.raises(RuntimeError, match="Runtime schema compatibility bootstrap failed"):
        bootstrap.ensure_runtime_schema_compatibility()


def test_bootstrap_on_current_schema_passes(db_session):
    bootstrap.ensure_runtime_schema_compatibility(run_homeroom_backfill=False)


def test_backfill_assigns_only_unambiguous_homerooms(db_session, factory, school):
    # A second homeroom for grade 11 makes Math11 ambiguous.
    factory.homeroom(school.section, "11B", grades=[school.grade11])
    math10 = factory.session(school.math10, school.b1, 1, school.r1)
    math11 = factory.session(school.math11, school.b1, 1, school.r2)
    spanish = factory.session(school.spanish, school.b2, 1, school.r1)
    db_session.commit()
    ids = (math10.id, math11.id, spanish.id)

    with engine.begin() as connection:
        updated = bootstrap.backfill_legacy_homerooms(connection)
        remaining = bootstrap.count_sessions_without_homeroom(connection)

    assert updated == 1
    assert remaining == 2
    db_session.expire_all()
    homerooms = dict(
        db_session.execute(select(ClassSession.id, ClassSession.homeroom_id).where(ClassSession.id.in_(ids))).all()
    )
    assert homerooms == {math10.id: school.homeroom10.id, math11.id: None, spanish.id: None}
