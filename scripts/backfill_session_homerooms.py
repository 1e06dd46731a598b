"""Attach homerooms to class sessions created before they were tracked.

Run:
  PYTHONPATH=backend python scripts/backfill_session_homerooms.py

Only sessions whose grade maps to exactly one homeroom are updated.
"""

from __future__ import annotations

from app.db.bootstrap import backfill_legacy_homerooms, count_sessions_without_homeroom
from app.db.session import engine


def main() -> None:
    with engine.begin() as connection:
        before = count_sessions_without_homeroom(connection)
        updated = backfill_legacy_homerooms(connection)
        after = count_sessions_without_homeroom(connection)

    print(f"Sessions without homeroom before backfill: {before}")
    print(f"Sessions updated: {updated}")
    print(f"Sessions still without homeroom: {after}")
    if after:
        print("Remaining sessions are shared classes or ambiguous grades; they use the legacy read path.")


if __name__ == "__main__":
    main()
