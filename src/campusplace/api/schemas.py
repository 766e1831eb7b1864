from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, Field

from campusplace.types import (
    Decision,
    OpportunityState,
    OpportunityView,
    YearTotal,
)


class DepartmentRequest(BaseModel):
    name: str = Field(min_length=1)


class StudentRequest(BaseModel):
    name: str = Field(min_length=1)
    roll_number: str = Field(min_length=1)
    batch_year: int
    department_id: int | None = None
    cgpa: float = Field(ge=0, le=10)
    phone_number: str = ""
    resume_url: str = ""


class StudentUpdateRequest(BaseModel):
    name: str | None = None
    batch_year: int | None = None
    department_id: int | None = None
    cgpa: float | None = Field(default=None, ge=0, le=10)
    phone_number: str | None = None
    resume_url: str | None = None


class CompanyRequest(BaseModel):
    name: str = Field(min_length=1)
    description: str = ""
    website: str = ""
    contact_email: str = ""
    contact_phone: str = ""


class VisitRequest(BaseModel):
    company_id: int
    visit_date: date | None = None
    application_deadline: datetime
    job_positions: str = ""
    salary_package: str = ""
    eligibility_criteria: float = Field(default=0.0, ge=0, le=10)
    batch_year: int
    is_active: bool = True


class VisitStatusRequest(BaseModel):
    is_active: bool


class VisitResponse(OpportunityView):
    state: OpportunityState
    days_until_deadline: int


class ApplyRequest(BaseModel):
    student_id: int
    visit_id: int


class DecisionRequest(BaseModel):
    decision: Decision
    feedback: str | None = None
    internship: bool = False


class YearCountsResponse(BaseModel):
    counts: list[YearTotal] = Field(default_factory=list)
    trend_percentage: float | None = None


class ErrorResponse(BaseModel):
    error: str
    message: str
    reasons: list[str] = Field(default_factory=list)
