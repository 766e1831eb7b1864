"""Initial schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-19

"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "0001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "departments",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=120), nullable=False, unique=True),
        *_timestamps(),
    )
    op.create_table(
        "students",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("roll_number", sa.String(length=60), nullable=False, unique=True),
        sa.Column("batch_year", sa.Integer(), nullable=False),
        sa.Column(
            "department_id",
            sa.Integer(),
            sa.ForeignKey("departments.id", ondelete="RESTRICT"),
            nullable=True,
        ),
        sa.Column("cgpa", sa.Float(), nullable=False),
        sa.Column("phone_number", sa.String(length=40), nullable=False),
        sa.Column("resume_url", sa.String(length=500), nullable=False),
        sa.Column("current_status", sa.String(length=20), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_students_batch_year", "students", ["batch_year"])
    op.create_index("ix_students_department_id", "students", ["department_id"])

    op.create_table(
        "companies",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("website", sa.String(length=500), nullable=False),
        sa.Column("contact_email", sa.String(length=255), nullable=False),
        sa.Column("contact_phone", sa.String(length=40), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_companies_name", "companies", ["name"])

    op.create_table(
        "company_visits",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "company_id",
            sa.Integer(),
            sa.ForeignKey("companies.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column("visit_date", sa.Date(), nullable=True),
        sa.Column("application_deadline", sa.DateTime(timezone=True), nullable=False),
        sa.Column("job_positions", sa.Text(), nullable=False),
        sa.Column("salary_package", sa.String(length=120), nullable=False),
        sa.Column("eligibility_criteria", sa.Float(), nullable=False),
        sa.Column("batch_year", sa.Integer(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_company_visits_company_id", "company_visits", ["company_id"])
    op.create_index("ix_company_visits_batch_year", "company_visits", ["batch_year"])

    op.create_table(
        "applications",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "student_id",
            sa.Integer(),
            sa.ForeignKey("students.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column(
            "visit_id",
            sa.Integer(),
            sa.ForeignKey("company_visits.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column("application_status", sa.String(length=20), nullable=False),
        sa.Column("application_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("feedback", sa.Text(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("student_id", "visit_id", name="uq_application_student_visit"),
    )
    op.create_index("ix_applications_student_id", "applications", ["student_id"])
    op.create_index("ix_applications_visit_id", "applications", ["visit_id"])
    op.create_index("ix_applications_application_status", "applications", ["application_status"])

    op.create_table(
        "placement_records",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "application_id",
            sa.Integer(),
            sa.ForeignKey("applications.id", ondelete="RESTRICT"),
            nullable=False,
            unique=True,
        ),
        sa.Column(
            "student_id",
            sa.Integer(),
            sa.ForeignKey("students.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column(
            "company_id",
            sa.Integer(),
            sa.ForeignKey("companies.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column("position", sa.Text(), nullable=False),
        sa.Column("salary_package", sa.String(length=120), nullable=False),
        sa.Column("placement_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("internship", sa.Boolean(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_placement_records_student_id", "placement_records", ["student_id"])
    op.create_index("ix_placement_records_company_id", "placement_records", ["company_id"])


def downgrade() -> None:
    op.drop_table("placement_records")
    op.drop_table("applications")
    op.drop_table("company_visits")
    op.drop_table("companies")
    op.drop_table("students")
    op.drop_table("departments")
