"""add homeroom to class sessions

Revision ID: 20261017_0002
Revises: 20261017_0001
Create Date: 2026-10-17 00:00:01.000000

Existing sessions are attached to a homeroom only when their class's grade
belongs to exactly one homeroom. The rest stay null and are served by the
legacy grade/section read path.
"""
from alembic import op
import sqlalchemy as sa

revision = "20261017_0002"
down_revision = "20261017_0001"
branch_labels = None
depends_on = None


def upgrade() -> None:
    with op.batch_alter_table("class_sessions") as batch_op:
        batch_op.add_column(sa.Column("homeroom_id", sa.String(length=36), nullable=True))
        batch_op.create_foreign_key(
            "fk_class_sessions_homeroom_id",
            "homerooms",
            ["homeroom_id"],
            ["id"],
            ondelete="CASCADE",
        )
        batch_op.create_index("ix_class_sessions_homeroom_id", ["homeroom_id"])

    op.execute(
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


def downgrade() -> None:
    with op.batch_alter_table("class_sessions") as batch_op:
        batch_op.drop_index("ix_class_sessions_homeroom_id")
        batch_op.drop_constraint("fk_class_sessions_homeroom_id", type_="foreignkey")
        batch_op.drop_column("homeroom_id")
