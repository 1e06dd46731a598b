import uuid
from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from app.db.base import Base


class ClassSession(Base):
    __tablename__ = "class_sessions"
    __table_args__ = (
        # Backstop: one session per room per slot, whatever the application checks decide.
        UniqueConstraint(
            "block_id",
            "day_of_week",
            "room_id",
            "semester_id",
            name="uq_class_sessions_block_day_room_semester",
        ),
        CheckConstraint("day_of_week BETWEEN 1 AND 5", name="ck_class_sessions_day_of_week"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    class_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("classes.id", ondelete="CASCADE"), nullable=False, index=True
    )
    block_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("blocks.id", ondelete="CASCADE"), nullable=False
    )
    day_of_week: Mapped[int] = mapped_column(Integer, nullable=False)
    room_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("rooms.id", ondelete="CASCADE"), nullable=False, index=True
    )
    semester_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("semesters.id", ondelete="CASCADE"), nullable=False, index=True
    )
    # Null only on rows created before homerooms were tracked; see db.bootstrap.
    homeroom_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("homerooms.id", ondelete="CASCADE"), nullable=True, index=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now())


class ClassSessionTeacher(Base):
    __tablename__ = "class_session_teachers"
    __table_args__ = (
        UniqueConstraint("teacher_id", "class_session_id", name="uq_class_session_teachers_teacher_session"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    class_session_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("class_sessions.id", ondelete="CASCADE"), nullable=False, index=True
    )
    teacher_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("teachers.id", ondelete="CASCADE"), nullable=False, index=True
    )
    role: Mapped[str] = mapped_column(String(50), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
