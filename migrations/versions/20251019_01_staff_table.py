"""Staff table for the training portal."""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa


revision = "20251019_01"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "staff",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("staff_id", sa.String(length=64), nullable=False),
        sa.Column("email", sa.Text(), nullable=True),
        sa.Column("password", sa.Text(), nullable=False),
        sa.Column("progress", sa.Text(), nullable=False, server_default="{}"),
        sa.Column("quiz_score", sa.Text(), nullable=False, server_default="Not taken"),
        sa.Column("created_by", sa.Text(), nullable=False, server_default="Unknown"),
    )
    op.create_index(
        "ix_staff_staff_id",
        "staff",
        ["staff_id"],
        unique=True,
    )


def downgrade() -> None:
    op.drop_index("ix_staff_staff_id", table_name="staff")
    op.drop_table("staff")
