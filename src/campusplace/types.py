from __future__ import annotations

from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

StudentStatus = Literal["NOT_PLACED", "PLACED", "INTERN"]
ApplicationStatus = Literal["PENDING", "SELECTED", "REJECTED"]
Decision = Literal["SELECTED", "REJECTED"]
OpportunityState = Literal["open", "closed", "inactive"]
CompanySortKey = Literal["name", "visits", "applications", "placements"]
PlacementSortKey = Literal["student_name", "company_name", "salary_package", "placement_date"]

TERMINAL_STATUSES: frozenset[str] = frozenset({"SELECTED", "REJECTED"})


class _Snapshot(BaseModel):
    model_config = ConfigDict(from_attributes=True, frozen=True)


class DepartmentData(_Snapshot):
    id: int
    name: str


class StudentData(_Snapshot):
    id: int
    name: str
    roll_number: str
    batch_year: int
    department_id: int | None = None
    cgpa: float
    phone_number: str = ""
    resume_url: str = ""
    current_status: StudentStatus = "NOT_PLACED"

    @field_validator("cgpa")
    @classmethod
    def validate_cgpa(cls, value: float) -> float:
        if value < 0 or value > 10:
            raise ValueError("cgpa must be between 0 and 10")
        return value


class CompanyData(_Snapshot):
    id: int
    name: str
    description: str = ""
    website: str = ""
    contact_email: str = ""
    contact_phone: str = ""


class VisitData(_Snapshot):
    id: int
    company_id: int
    visit_date: date | None = None
    application_deadline: datetime
    job_positions: str = ""
    salary_package: str = ""
    eligibility_criteria: float = 0.0
    batch_year: int
    is_active: bool = True


class ApplicationData(_Snapshot):
    id: int
    student_id: int
    visit_id: int
    application_status: ApplicationStatus = "PENDING"
    application_date: datetime
    feedback: str | None = None


class PlacementData(_Snapshot):
    id: int
    application_id: int | None = None
    student_id: int
    company_id: int
    position: str = ""
    salary_package: str = ""
    placement_date: datetime
    internship: bool = False
    batch_year: int
    branch: str = ""
    student_name: str = ""
    roll_number: str = ""
    company_name: str = ""


class OpportunityView(VisitData):
    company_name: str = ""


class ApplicationView(ApplicationData):
    student_name: str = ""
    roll_number: str = ""
    company_name: str = ""
    job_positions: str = ""


class EligibilityVerdict(BaseModel):
    is_eligible: bool
    reasons: list[str] = Field(default_factory=list)


class BatchStat(BaseModel):
    batch_year: int
    total_students: int = 0
    placed_students: int = 0
    placement_percentage: float = 0.0


class PlacementSummary(BaseModel):
    total_students: int = 0
    placed_students: int = 0
    placement_percentage: float = 0.0
    batch_wise_stats: list[BatchStat] = Field(default_factory=list)


class CompanyStat(BaseModel):
    company_id: int
    company_name: str
    total_visits: int = 0
    total_applications: int = 0
    total_placements: int = 0
    conversion_rate: float | None = None

    @computed_field
    @property
    def conversion_rate_display(self) -> str:
        if self.conversion_rate is None:
            return "N/A"
        return f"{self.conversion_rate:.2f}%"


class BranchTotal(BaseModel):
    branch: str
    placements: int = 0


class YearTotal(BaseModel):
    year: int
    placements: int = 0


class BranchYearRow(BaseModel):
    branch: str
    counts: dict[int, int] = Field(default_factory=dict)
    total: int = 0


class ConsistencyReport(BaseModel):
    selected_without_record: list[int] = Field(default_factory=list)
    records_without_selection: list[int] = Field(default_factory=list)

    @property
    def is_consistent(self) -> bool:
        return not self.selected_without_record and not self.records_without_selection
