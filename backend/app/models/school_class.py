import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from app.db.base import Base


class SchoolClass(Base):
    """A course offering. ``grade_id`` is null for classes shared by every grade of the section."""

    __tablename__ = "classes"
    __table_args__ = (
        UniqueConstraint("code", "grade_id", "semester_id", name="uq_classes_code_grade_semester"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    code: Mapped[str] = mapped_column(String(50), nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    section_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("sections.id", ondelete="CASCADE"), nullable=False, index=True
    )
    grade_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("grades.id", ondelete="SET NULL"), nullable=True, index=True
    )
    semester_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("semesters.id", ondelete="CASCADE"), nullable=False, index=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    @property
    def is_shared(self) -> bool:
        return self.grade_id is None
