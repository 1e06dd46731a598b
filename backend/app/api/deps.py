from collections.abc import Generator

from fastapi import Header
from sqlalchemy.orm import Session

from app.db.session import SessionLocal


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_operator_id(x_operator_id: str | None = Header(default=None, max_length=100)) -> str | None:
    # Identity is established upstream; the header only labels the audit trail.
    return x_operator_id.strip() if x_operator_id and x_operator_id.strip() else None
