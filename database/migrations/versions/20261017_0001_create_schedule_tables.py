"""create schedule tables

Revision ID: 20261017_0001
Revises:
Create Date: 2026-10-17 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

revision = "20261017_0001"
down_revision = None
branch_labels = None
depends_on = None


def _id_column() -> sa.Column:
    return sa.Column("id", sa.String(length=36), primary_key=True, nullable=False)


def _created_at() -> sa.Column:
    return sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now())


def upgrade() -> None:
    op.create_table(
        "semesters",
        _id_column(),
        sa.Column("name", sa.String(length=50), nullable=False, unique=True),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        _created_at(),
        sa.CheckConstraint("start_date < end_date", name="ck_semesters_date_order"),
    )

    op.create_table(
        "sections",
        _id_column(),
        sa.Column("name", sa.String(length=50), nullable=False, unique=True),
        _created_at(),
    )

    op.create_table(
        "teachers",
        _id_column(),
        sa.Column("name", sa.String(length=100), nullable=False),
        _created_at(),
    )

    op.create_table(
        "grades",
        _id_column(),
        sa.Column("section_id", sa.String(length=36), sa.ForeignKey("sections.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(length=50), nullable=False),
        _created_at(),
        sa.UniqueConstraint("section_id", "name", name="uq_grades_section_name"),
    )
    op.create_index("ix_grades_section_id", "grades", ["section_id"])

    op.create_table(
        "homerooms",
        _id_column(),
        sa.Column("name", sa.String(length=50), nullable=False, unique=True),
        sa.Column("section_id", sa.String(length=36), sa.ForeignKey("sections.id", ondelete="CASCADE"), nullable=False),
        sa.Column("teacher_id", sa.String(length=36), sa.ForeignKey("teachers.id", ondelete="SET NULL"), nullable=True),
        _created_at(),
    )
    op.create_index("ix_homerooms_section_id", "homerooms", ["section_id"])

    op.create_table(
        "homeroom_grades",
        sa.Column(
            "homeroom_id",
            sa.String(length=36),
            sa.ForeignKey("homerooms.id", ondelete="CASCADE"),
            primary_key=True,
            nullable=False,
        ),
        sa.Column(
            "grade_id",
            sa.String(length=36),
            sa.ForeignKey("grades.id", ondelete="CASCADE"),
            primary_key=True,
            nullable=False,
        ),
        _created_at(),
    )

    op.create_table(
        "blocks",
        _id_column(),
        sa.Column("name", sa.String(length=50), nullable=False),
        sa.Column("start_time", sa.Time(), nullable=False),
        sa.Column("end_time", sa.Time(), nullable=False),
        sa.Column("is_early", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("is_late", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("semester_id", sa.String(length=36), sa.ForeignKey("semesters.id", ondelete="CASCADE"), nullable=False),
        _created_at(),
        sa.UniqueConstraint("name", "semester_id", name="uq_blocks_name_semester"),
        sa.CheckConstraint("start_time < end_time", name="ck_blocks_time_order"),
    )
    op.create_index("ix_blocks_semester_id", "blocks", ["semester_id"])

    op.create_table(
        "room_types",
        _id_column(),
        sa.Column("type_name", sa.String(length=50), nullable=False, unique=True),
        _created_at(),
    )

    op.create_table(
        "rooms",
        _id_column(),
        sa.Column("name", sa.String(length=50), nullable=False),
        sa.Column("type_id", sa.String(length=36), sa.ForeignKey("room_types.id"), nullable=False),
        sa.Column("location", sa.String(length=100), nullable=False, server_default=""),
        sa.Column("building", sa.String(length=100), nullable=False, server_default=""),
        _created_at(),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_rooms_name", "rooms", ["name"], unique=True)

    op.create_table(
        "classes",
        _id_column(),
        sa.Column("code", sa.String(length=50), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("section_id", sa.String(length=36), sa.ForeignKey("sections.id", ondelete="CASCADE"), nullable=False),
        sa.Column("grade_id", sa.String(length=36), sa.ForeignKey("grades.id", ondelete="SET NULL"), nullable=True),
        sa.Column("semester_id", sa.String(length=36), sa.ForeignKey("semesters.id", ondelete="CASCADE"), nullable=False),
        _created_at(),
        sa.UniqueConstraint("code", "grade_id", "semester_id", name="uq_classes_code_grade_semester"),
    )
    op.create_index("ix_classes_section_id", "classes", ["section_id"])
    op.create_index("ix_classes_grade_id", "classes", ["grade_id"])
    op.create_index("ix_classes_semester_id", "classes", ["semester_id"])

    op.create_table(
        "class_sessions",
        _id_column(),
        sa.Column("class_id", sa.String(length=36), sa.ForeignKey("classes.id", ondelete="CASCADE"), nullable=False),
        sa.Column("block_id", sa.String(length=36), sa.ForeignKey("blocks.id", ondelete="CASCADE"), nullable=False),
        sa.Column("day_of_week", sa.Integer(), nullable=False),
        sa.Column("room_id", sa.String(length=36), sa.ForeignKey("rooms.id", ondelete="CASCADE"), nullable=False),
        sa.Column("semester_id", sa.String(length=36), sa.ForeignKey("semesters.id", ondelete="CASCADE"), nullable=False),
        _created_at(),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint(
            "block_id",
            "day_of_week",
            "room_id",
            "semester_id",
            name="uq_class_sessions_block_day_room_semester",
        ),
        sa.CheckConstraint("day_of_week BETWEEN 1 AND 5", name="ck_class_sessions_day_of_week"),
    )
    op.create_index("ix_class_sessions_class_id", "class_sessions", ["class_id"])
    op.create_index("ix_class_sessions_room_id", "class_sessions", ["room_id"])
    op.create_index("ix_class_sessions_semester_id", "class_sessions", ["semester_id"])

    op.create_table(
        "class_session_teachers",
        _id_column(),
        sa.Column(
            "class_session_id",
            sa.String(length=36),
            sa.ForeignKey("class_sessions.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("teacher_id", sa.String(length=36), sa.ForeignKey("teachers.id", ondelete="CASCADE"), nullable=False),
        sa.Column("role", sa.String(length=50), nullable=False),
        _created_at(),
        sa.UniqueConstraint("teacher_id", "class_session_id", name="uq_class_session_teachers_teacher_session"),
    )
    op.create_index("ix_class_session_teachers_class_session_id", "class_session_teachers", ["class_session_id"])
    op.create_index("ix_class_session_teachers_teacher_id", "class_session_teachers", ["teacher_id"])

    op.create_table(
        "duty_types",
        _id_column(),
        sa.Column("type_name", sa.String(length=50), nullable=False, unique=True),
        _created_at(),
    )

    op.create_table(
        "duties",
        _id_column(),
        sa.Column("teacher_id", sa.String(length=36), sa.ForeignKey("teachers.id", ondelete="CASCADE"), nullable=False),
        sa.Column("block_id", sa.String(length=36), sa.ForeignKey("blocks.id", ondelete="CASCADE"), nullable=False),
        sa.Column("day_of_week", sa.Integer(), nullable=False),
        sa.Column("duty_type_id", sa.String(length=36), sa.ForeignKey("duty_types.id"), nullable=False),
        sa.Column("room_id", sa.String(length=36), sa.ForeignKey("rooms.id", ondelete="CASCADE"), nullable=False),
        sa.Column("semester_id", sa.String(length=36), sa.ForeignKey("semesters.id", ondelete="CASCADE"), nullable=False),
        _created_at(),
        sa.CheckConstraint("day_of_week BETWEEN 1 AND 5", name="ck_duties_day_of_week"),
    )
    op.create_index("ix_duties_teacher_id", "duties", ["teacher_id"])
    op.create_index("ix_duties_room_id", "duties", ["room_id"])
    op.create_index("ix_duties_semester_id", "duties", ["semester_id"])

    op.create_table(
        "activity_logs",
        _id_column(),
        sa.Column("actor_id", sa.String(length=100), nullable=True),
        sa.Column("action", sa.String(length=100), nullable=False),
        sa.Column("entity_type", sa.String(length=100), nullable=True),
        sa.Column("entity_id", sa.String(length=100), nullable=True),
        sa.Column("details", sa.JSON(), nullable=False),
        _created_at(),
    )
    op.create_index("ix_activity_logs_action", "activity_logs", ["action"])


def downgrade() -> None:
    op.drop_index("ix_activity_logs_action", table_name="activity_logs")
    op.drop_table("activity_logs")
    op.drop_index("ix_duties_semester_id", table_name="duties")
    op.drop_index("ix_duties_room_id", table_name="duties")
    op.drop_index("ix_duties_teacher_id", table_name="duties")
    op.drop_table("duties")
    op.drop_table("duty_types")
    op.drop_index("ix_class_session_teachers_teacher_id", table_name="class_session_teachers")
    op.drop_index("ix_class_session_teachers_class_session_id", table_name="class_session_teachers")
    op.drop_table("class_session_teachers")
    op.drop_index("ix_class_sessions_semester_id", table_name="class_sessions")
    op.drop_index("ix_class_sessions_room_id", table_name="class_sessions")
    op.drop_index("ix_class_sessions_class_id", table_name="class_sessions")
    op.drop_table("class_sessions")
    op.drop_index("ix_classes_semester_id", table_name="classes")
    op.drop_index("ix_classes_grade_id", table_name="classes")
    op.drop_index("ix_classes_section_id", table_name="classes")
    op.drop_table("classes")
    op.drop_index("ix_rooms_name", table_name="rooms")
    op.drop_table("rooms")
    op.drop_table("room_types")
    op.drop_index("ix_blocks_semester_id", table_name="blocks")
    op.drop_table("blocks")
    op.drop_table("homeroom_grades")
    op.drop_index("ix_homerooms_section_id", table_name="homerooms")
    op.drop_table("homerooms")
    op.drop_index("ix_grades_section_id", table_name="grades")
    op.drop_table("grades")
    op.drop_table("teachers")
    op.drop_table("sections")
    op.drop_table("semesters")
