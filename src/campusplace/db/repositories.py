from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import and_, func, select, update
from sqlalchemy.orm import Session, joinedload

from campusplace.core.clock import as_utc
from campusplace.core.errors import NotFound, ReferentialIntegrityError
from campusplace.db.models import (
    Application,
    Company,
    CompanyVisit,
    Department,
    PlacementRecord,
    Student,
)
from campusplace.types import (
    ApplicationData,
    ApplicationView,
    CompanyData,
    OpportunityView,
    PlacementData,
    StudentData,
    VisitData,
)

STUDENT_FIELDS = {
    "name",
    "roll_number",
    "batch_year",
    "department_id",
    "cgpa",
    "phone_number",
    "resume_url",
}
COMPANY_FIELDS = {"name", "description", "website", "contact_email", "contact_phone"}
VISIT_FIELDS = {
    "company_id",
    "visit_date",
    "application_deadline",
    "job_positions",
    "salary_package",
    "eligibility_criteria",
    "batch_year",
    "is_active",
}


def _apply_values(obj: Any, values: dict, allowed: set[str]) -> None:
    unknown = set(values) - allowed
    if unknown:
        raise ValueError(f"unsupported fields {sorted(unknown)}")
    for key, value in values.items():
        setattr(obj, key, value)


def _visit_values(values: dict) -> dict:
    # SQLite drops the offset, so deadlines are stored as UTC wall time.
    deadline = values.get("application_deadline")
    if deadline is None:
        return values
    return {**values, "application_deadline": as_utc(deadline)}


class Repository:
    def __init__(self, session: Session):
        self.session = session

    # Departments

    def create_department(self, name: str) -> Department:
        department = Department(name=name)
        self.session.add(department)
        self.session.commit()
        self.session.refresh(department)
        return department

    def get_department(self, department_id: int) -> Department | None:
        return self.session.get(Department, department_id)

    def get_department_by_name(self, name: str) -> Department | None:
        return self.session.scalar(select(Department).where(Department.name == name))

    def list_departments(self) -> list[Department]:
        return list(self.session.scalars(select(Department).order_by(Department.name.asc())).all())

    def update_department(self, department_id: int, name: str) -> Department:
        department = self.session.get(Department, department_id)
        if not department:
            raise NotFound(f"department {department_id} not found")
        department.name = name
        self.session.commit()
        self.session.refresh(department)
        return department

    # Students

    def _require_department(self, department_id: int | None) -> None:
        if department_id is not None and not self.session.get(Department, department_id):
            raise NotFound(f"department {department_id} not found")

    def create_student(self, values: dict) -> Student:
        self._require_department(values.get("department_id"))
        student = Student()
        _apply_values(student, values, STUDENT_FIELDS)
        self.session.add(student)
        self.session.commit()
        self.session.refresh(student)
        return student

    def get_student(self, student_id: int) -> Student | None:
        return self.session.get(Student, student_id)

    def list_students(
        self,
        *,
        batch_year: int | None = None,
        department_id: int | None = None,
    ) -> list[Student]:
        statement = select(Student).order_by(Student.id.asc())
        if batch_year is not None:
            statement = statement.where(Student.batch_year == batch_year)
        if department_id is not None:
            statement = statement.where(Student.department_id == department_id)
        return list(self.session.scalars(statement).all())

    def update_student(self, student_id: int, values: dict) -> Student:
        student = self.session.get(Student, student_id)
        if not student:
            raise NotFound(f"student {student_id} not found")
        self._require_department(values.get("department_id"))
        _apply_values(student, values, STUDENT_FIELDS)
        self.session.commit()
        self.session.refresh(student)
        return student

    # Companies

    def create_company(self, values: dict) -> Company:
        company = Company()
        _apply_values(company, values, COMPANY_FIELDS)
        self.session.add(company)
        self.session.commit()
        self.session.refresh(company)
        return company

    def get_company(self, company_id: int) -> Company | None:
        return self.session.get(Company, company_id)

    def list_companies(self) -> list[Company]:
        return list(self.session.scalars(select(Company).order_by(Company.id.asc())).all())

    def update_company(self, company_id: int, values: dict) -> Company:
        company = self.session.get(Company, company_id)
        if not company:
            raise NotFound(f"company {company_id} not found")
        _apply_values(company, values, COMPANY_FIELDS)
        self.session.commit()
        self.session.refresh(company)
        return company

    def delete_company(self, company_id: int) -> None:
        company = self.session.get(Company, company_id)
        if not company:
            raise NotFound(f"company {company_id} not found")

        visit_count = self.session.scalar(
            select(func.count(CompanyVisit.id)).where(CompanyVisit.company_id == company_id)
        )
        record_count = self.session.scalar(
            select(func.count(PlacementRecord.id)).where(PlacementRecord.company_id == company_id)
        )
        if visit_count or record_count:
            raise ReferentialIntegrityError(
                f"company {company_id} is referenced by {visit_count} visit(s) "
                f"and {record_count} placement record(s)"
            )

        self.session.delete(company)
        self.session.commit()

    # Visits

    def create_visit(self, values: dict) -> CompanyVisit:
        company_id = values.get("company_id")
        if company_id is None or not self.session.get(Company, company_id):
            raise NotFound(f"company {company_id} not found")
        visit = CompanyVisit()
        _apply_values(visit, _visit_values(values), VISIT_FIELDS)
        self.session.add(visit)
        self.session.commit()
        self.session.refresh(visit)
        return visit

    def get_visit(self, visit_id: int) -> CompanyVisit | None:
        return self.session.get(CompanyVisit, visit_id)

    def list_visits(self, *, active_only: bool = False) -> list[CompanyVisit]:
        statement = (
            select(CompanyVisit)
            .options(joinedload(CompanyVisit.company))
            .order_by(CompanyVisit.application_deadline.asc(), CompanyVisit.id.asc())
        )
        if active_only:
            statement = statement.where(CompanyVisit.is_active.is_(True))
        return list(self.session.scalars(statement).all())

    def update_visit(self, visit_id: int, values: dict) -> CompanyVisit:
        visit = self.session.get(CompanyVisit, visit_id)
        if not visit:
            raise NotFound(f"visit {visit_id} not found")
        company_id = values.get("company_id")
        if company_id is not None and not self.session.get(Company, company_id):
            raise NotFound(f"company {company_id} not found")
        _apply_values(visit, _visit_values(values), VISIT_FIELDS)
        self.session.commit()
        self.session.refresh(visit)
        return visit

    def set_visit_active(self, visit_id: int, is_active: bool) -> CompanyVisit:
        return self.update_visit(visit_id, {"is_active": is_active})

    # Applications. The insert/mark helpers flush without committing so the
    # lifecycle manager can group them into one transaction.

    def get_application(self, application_id: int) -> Application | None:
        return self.session.get(Application, application_id)

    def find_application(self, student_id: int, visit_id: int) -> Application | None:
        statement = select(Application).where(
            and_(Application.student_id == student_id, Application.visit_id == visit_id)
        )
        return self.session.scalar(statement)

    def list_applications(
        self,
        *,
        status: str | None = None,
        student_id: int | None = None,
    ) -> list[Application]:
        statement = (
            select(Application)
            .options(
                joinedload(Application.student),
                joinedload(Application.visit).joinedload(CompanyVisit.company),
            )
            .order_by(Application.application_date.desc(), Application.id.desc())
        )
        if status:
            statement = statement.where(Application.application_status == status)
        if student_id is not None:
            statement = statement.where(Application.student_id == student_id)
        return list(self.session.scalars(statement).all())

    def insert_application(self, *, student_id: int, visit_id: int, application_date: datetime) -> Application:
        application = Application(
            student_id=student_id,
            visit_id=visit_id,
            application_status="PENDING",
            application_date=application_date,
        )
        self.session.add(application)
        self.session.flush()
        return application

    def mark_application(self, application_id: int, *, status: str, feedback: str | None) -> bool:
        """Move a PENDING application to ``status``; False when it was no longer PENDING."""
        result = self.session.execute(
            update(Application)
            .where(
                and_(
                    Application.id == application_id,
                    Application.application_status == "PENDING",
                )
            )
            .values(application_status=status, feedback=feedback)
            .execution_options(synchronize_session="fetch")
        )
        return result.rowcount == 1

    def insert_placement_record(
        self,
        *,
        application: Application,
        placement_date: datetime,
        internship: bool,
    ) -> PlacementRecord:
        student = application.student
        visit = application.visit
        record = PlacementRecord(
            application_id=application.id,
            student_id=student.id,
            company_id=visit.company_id,
            position=visit.job_positions,
            salary_package=visit.salary_package,
            placement_date=placement_date,
            internship=internship,
            batch_year=student.batch_year,
            branch=student.branch,
        )
        self.session.add(record)
        self.session.flush()
        return record

    # Placement records

    def get_placement_for_application(self, application_id: int) -> PlacementRecord | None:
        return self.session.scalar(
            select(PlacementRecord).where(PlacementRecord.application_id == application_id)
        )

    def list_placement_records(
        self,
        *,
        batch_year: int | None = None,
        company_name: str | None = None,
    ) -> list[PlacementRecord]:
        statement = (
            select(PlacementRecord)
            .options(joinedload(PlacementRecord.student), joinedload(PlacementRecord.company))
            .order_by(PlacementRecord.placement_date.desc(), PlacementRecord.id.desc())
        )
        if batch_year is not None:
            statement = statement.where(PlacementRecord.batch_year == batch_year)
        if company_name:
            statement = statement.join(Company, PlacementRecord.company_id == Company.id).where(
                Company.name == company_name
            )
        return list(self.session.scalars(statement).unique().all())

    # Snapshots for the pure evaluator and aggregator

    def student_snapshots(self) -> list[StudentData]:
        return [StudentData.model_validate(row) for row in self.list_students()]

    def company_snapshots(self) -> list[CompanyData]:
        return [CompanyData.model_validate(row) for row in self.list_companies()]

    def visit_snapshots(self) -> list[VisitData]:
        return [VisitData.model_validate(row) for row in self.list_visits()]

    def opportunity_views(self, *, active_only: bool = True) -> list[OpportunityView]:
        return [OpportunityView.model_validate(row) for row in self.list_visits(active_only=active_only)]

    def application_snapshots(self) -> list[ApplicationData]:
        return [ApplicationData.model_validate(row) for row in self.list_applications()]

    def application_views(
        self,
        *,
        status: str | None = None,
        student_id: int | None = None,
    ) -> list[ApplicationView]:
        return [
            ApplicationView(
                id=row.id,
                student_id=row.student_id,
                visit_id=row.visit_id,
                application_status=row.application_status,
                application_date=row.application_date,
                feedback=row.feedback,
                student_name=row.student.name,
                roll_number=row.student.roll_number,
                company_name=row.visit.company_name,
                job_positions=row.visit.job_positions,
            )
            for row in self.list_applications(status=status, student_id=student_id)
        ]

    def placement_snapshots(
        self,
        *,
        batch_year: int | None = None,
        company_name: str | None = None,
    ) -> list[PlacementData]:
        return [
            PlacementData.model_validate(row)
            for row in self.list_placement_records(batch_year=batch_year, company_name=company_name)
        ]
