"""Freeze branch and batch year on placement records

Revision ID: 0002_placement_branch_year
Revises: 0001_initial_schema
Create Date: 2026-10-19

"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "0002_placement_branch_year"
down_revision = "0001_initial_schema"
branch_labels = None
depends_on = None


def _has_column(insp: sa.Inspector, table: str, column: str) -> bool:
    if table not in insp.get_table_names():
        return False
    return column in {c["name"] for c in insp.get_columns(table)}


def upgrade() -> None:
    insp = sa.inspect(op.get_bind())

    with op.batch_alter_table("placement_records", schema=None) as batch_op:
        if not _has_column(insp, "placement_records", "batch_year"):
            batch_op.add_column(sa.Column("batch_year", sa.Integer(), nullable=False, server_default="0"))
        if not _has_column(insp, "placement_records", "branch"):
            batch_op.add_column(sa.Column("branch", sa.String(length=120), nullable=False, server_default=""))
        batch_op.create_index("ix_placement_records_batch_year", ["batch_year"], unique=False)

    op.execute(
        """
        UPDATE placement_records
        SET batch_year = (
            SELECT students.batch_year FROM students WHERE students.id = placement_records.student_id
        ),
        branch = COALESCE((
            SELECT departments.name FROM students
            JOIN departments ON departments.id = students.department_id
            WHERE students.id = placement_records.student_id
        ), '')
        """
    )


def downgrade() -> None:
    with op.batch_alter_table("placement_records", schema=None) as batch_op:
        batch_op.drop_index("ix_placement_records_batch_year")
        batch_op.drop_column("branch")
        batch_op.drop_column("batch_year")
