from __future__ import annotations

from datetime import date, datetime

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from campusplace.db.base import Base, TimestampMixin


class Department(TimestampMixin, Base):
    __tablename__ = "departments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(120), unique=True, nullable=False)


class Student(TimestampMixin, Base):
    __tablename__ = "students"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    roll_number: Mapped[str] = mapped_column(String(60), unique=True, nullable=False)
    batch_year: Mapped[int] = mapped_column(Integer, index=True, nullable=False)
    department_id: Mapped[int | None] = mapped_column(
        ForeignKey("departments.id", ondelete="RESTRICT"), index=True, nullable=True
    )
    cgpa: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    phone_number: Mapped[str] = mapped_column(String(40), default="", nullable=False)
    resume_url: Mapped[str] = mapped_column(String(500), default="", nullable=False)
    current_status: Mapped[str] = mapped_column(String(20), default="NOT_PLACED", nullable=False)

    department: Mapped[Department | None] = relationship()

    @property
    def branch(self) -> str:
        return self.department.name if self.department else ""


class Company(TimestampMixin, Base):
    __tablename__ = "companies"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    description: Mapped[str] = mapped_column(Text, default="", nullable=False)
    website: Mapped[str] = mapped_column(String(500), default="", nullable=False)
    contact_email: Mapped[str] = mapped_column(String(255), default="", nullable=False)
    contact_phone: Mapped[str] = mapped_column(String(40), default="", nullable=False)


class CompanyVisit(TimestampMixin, Base):
    __tablename__ = "company_visits"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    company_id: Mapped[int] = mapped_column(ForeignKey("companies.id", ondelete="RESTRICT"), index=True)
    visit_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    application_deadline: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    job_positions: Mapped[str] = mapped_column(Text, default="", nullable=False)
    salary_package: Mapped[str] = mapped_column(String(120), default="", nullable=False)
    eligibility_criteria: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    batch_year: Mapped[int] = mapped_column(Integer, index=True, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    company: Mapped[Company] = relationship()

    @property
    def company_name(self) -> str:
        return self.company.name if self.company else ""


class Application(TimestampMixin, Base):
    __tablename__ = "applications"
    __table_args__ = (UniqueConstraint("student_id", "visit_id", name="uq_application_student_visit"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    student_id: Mapped[int] = mapped_column(ForeignKey("students.id", ondelete="RESTRICT"), index=True)
    visit_id: Mapped[int] = mapped_column(ForeignKey("company_visits.id", ondelete="RESTRICT"), index=True)
    application_status: Mapped[str] = mapped_column(String(20), default="PENDING", nullable=False, index=True)
    application_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    feedback: Mapped[str | None] = mapped_column(Text, nullable=True)

    student: Mapped[Student] = relationship()
    visit: Mapped[CompanyVisit] = relationship()


class PlacementRecord(TimestampMixin, Base):
    __tablename__ = "placement_records"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    application_id: Mapped[int] = mapped_column(
        ForeignKey("applications.id", ondelete="RESTRICT"), unique=True, nullable=False
    )
    student_id: Mapped[int] = mapped_column(ForeignKey("students.id", ondelete="RESTRICT"), index=True)
    company_id: Mapped[int] = mapped_column(ForeignKey("companies.id", ondelete="RESTRICT"), index=True)
    position: Mapped[str] = mapped_column(Text, default="", nullable=False)
    salary_package: Mapped[str] = mapped_column(String(120), default="", nullable=False)
    placement_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    internship: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    batch_year: Mapped[int] = mapped_column(Integer, index=True, nullable=False)
    branch: Mapped[str] = mapped_column(String(120), default="", nullable=False)

    student: Mapped[Student] = relationship()
    company: Mapped[Company] = relationship()

    @property
    def student_name(self) -> str:
        return self.student.name if self.student else ""

    @property
    def roll_number(self) -> str:
        return self.student.roll_number if self.student else ""

    @property
    def company_name(self) -> str:
        return self.company.name if self.company else ""
