from __future__ import annotations

import logging

from sqlalchemy import inspect, text
from sqlalchemy.engine import Connection

import app.models  # noqa: F401
from app.db.base import Base
from app.db.session import engine

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS: dict[str, set[str]] = {
    "class_sessions": {"id", "class_id", "block_id", "day_of_week", "room_id", "semester_id", "homeroom_id"},
    "class_session_teachers": {"id", "class_session_id", "teacher_id", "role"},
    "classes": {"id", "code", "name", "section_id", "grade_id", "semester_id"},
    "blocks": {"id", "name", "start_time", "end_time", "semester_id"},
    "rooms": {"id", "name", "type_id"},
    "teachers": {"id", "name"},
    "homerooms": {"id", "name", "section_id"},
    "homeroom_grades": {"homeroom_id", "grade_id"},
    "duties": {"id", "teacher_id", "block_id", "day_of_week", "room_id", "semester_id"},
}

# A legacy session gets a homeroom only when its class's grade maps to exactly one.
_BACKFILL_SQL = text(
    "UPDATE class_sessions "
    "SET homeroom_id = ("
    "  SELECT hg.homeroom_id FROM homeroom_grades hg "
    "  JOIN classes c ON c.grade_id = hg.grade_id "
    "  WHERE c.id = class_sessions.class_id"
    ") "
    "WHERE homeroom_id IS NULL AND class_id IN ("
    "  SELECT c.id FROM classes c "
    "  JOIN homeroom_grades hg ON hg.grade_id = c.grade_id "
    "  GROUP BY c.id HAVING COUNT(hg.homeroom_id) = 1"
    ")"
)


def _ensure_class_sessions_homeroom_column() -> None:
    with engine.begin() as connection:
        inspector = inspect(connection)
        if "class_sessions" not in set(inspector.get_table_names()):
            return
        column_names = {item["name"] for item in inspector.get_columns("class_sessions")}
        if "homeroom_id" in column_names:
            return
        connection.execute(
            text("ALTER TABLE class_sessions ADD COLUMN homeroom_id VARCHAR(36) REFERENCES homerooms(id)")
        )
        connection.execute(
            text("CREATE INDEX IF NOT EXISTS ix_class_sessions_homeroom_id ON class_sessions (homeroom_id)")
        )


def count_sessions_without_homeroom(connection: Connection) -> int:
    return connection.execute(
        text("SELECT COUNT(*) FROM class_sessions WHERE homeroom_id IS NULL")
    ).scalar_one()


def backfill_legacy_homerooms(connection: Connection) -> int:
    """Attach homerooms to legacy sessions where the mapping is unambiguous.

    Returns the number of sessions updated. Shared-class sessions and sessions
    whose grade belongs to several homerooms are left alone; they keep being
    served by the legacy read path.
    """
    updated = connection.execute(_BACKFILL_SQL).rowcount or 0
    remaining = count_sessions_without_homeroom(connection)
    if updated or remaining:
        logger.info("HOMEROOM BACKFILL | updated=%s | remaining_without_homeroom=%s", updated, remaining)
    return updated


def _assert_required_columns() -> None:
    with engine.begin() as connection:
        inspector = inspect(connection)
        table_names = set(inspector.get_table_names())
        missing_tables = [name for name in REQUIRED_COLUMNS if name not in table_names]
        if missing_tables:
            raise RuntimeError(f"Missing required tables: {', '.join(sorted(missing_tables))}")

        missing_columns: list[str] = []
        for table_name, required in REQUIRED_COLUMNS.items():
            existing = {item["name"] for item in inspector.get_columns(table_name)}
            for column_name in sorted(required - existing):
                missing_columns.append(f"{table_name}.{column_name}")
        if missing_columns:
            raise RuntimeError(f"Missing required columns: {', '.join(missing_columns)}")


def ensure_runtime_schema_compatibility(*, run_homeroom_backfill: bool = True) -> None:
    try:
        # Ensure missing tables are present before additive compatibility patches.
        Base.metadata.create_all(bind=engine)
        _ensure_class_sessions_homeroom_column()
        _assert_required_columns()
        if run_homeroom_backfill:
            with engine.begin() as connection:
                backfill_legacy_homerooms(connection)
    except Exception as exc:  # pragma: no cover - runtime environment dependent
        logger.exception("Runtime schema compatibility bootstrap failed")
        raise RuntimeError("Runtime schema compatibility bootstrap failed") from exc
