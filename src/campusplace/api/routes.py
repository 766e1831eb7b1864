from __future__ import annotations

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from campusplace.api.deps import get_db
from campusplace.api.schemas import (
    ApplyRequest,
    CompanyRequest,
    DecisionRequest,
    DepartmentRequest,
    ErrorResponse,
    StudentRequest,
    StudentUpdateRequest,
    VisitRequest,
    VisitResponse,
    VisitStatusRequest,
    YearCountsResponse,
)
from campusplace.core import reporting
from campusplace.core.clock import utcnow
from campusplace.core.errors import NotFound
from campusplace.core.lifecycle import ApplicationLifecycle
from campusplace.core.opportunities import days_until_deadline, filter_opportunities, opportunity_state
from campusplace.db.repositories import Repository
from campusplace.types import (
    ApplicationData,
    ApplicationStatus,
    ApplicationView,
    BranchYearRow,
    CompanyData,
    CompanySortKey,
    CompanyStat,
    DepartmentData,
    EligibilityVerdict,
    OpportunityView,
    PlacementData,
    PlacementSortKey,
    PlacementSummary,
    StudentData,
)

router = APIRouter(
    prefix="/api",
    tags=["api"],
    responses={code: {"model": ErrorResponse} for code in (400, 403, 404, 409)},
)


def _visit_response(view: OpportunityView) -> VisitResponse:
    now = utcnow()
    return VisitResponse(
        **view.model_dump(),
        state=opportunity_state(view, now),
        days_until_deadline=days_until_deadline(view, now),
    )


@router.get("/departments", response_model=list[DepartmentData])
def list_departments(db: Session = Depends(get_db)) -> list[DepartmentData]:
    return [DepartmentData.model_validate(row) for row in Repository(db).list_departments()]


@router.post("/departments", response_model=DepartmentData)
def create_department(payload: DepartmentRequest, db: Session = Depends(get_db)) -> DepartmentData:
    department = Repository(db).create_department(payload.name)
    return DepartmentData.model_validate(department)


@router.put("/departments/{department_id}", response_model=DepartmentData)
def update_department(
    department_id: int,
    payload: DepartmentRequest,
    db: Session = Depends(get_db),
) -> DepartmentData:
    department = Repository(db).update_department(department_id, payload.name)
    return DepartmentData.model_validate(department)


@router.post("/students", response_model=StudentData)
def create_student(payload: StudentRequest, db: Session = Depends(get_db)) -> StudentData:
    return StudentData.model_validate(Repository(db).create_student(payload.model_dump()))


@router.get("/students", response_model=list[StudentData])
def list_students(
    batch_year: int | None = None,
    department_id: int | None = None,
    db: Session = Depends(get_db),
) -> list[StudentData]:
    rows = Repository(db).list_students(batch_year=batch_year, department_id=department_id)
    return [StudentData.model_validate(row) for row in rows]


@router.get("/students/{student_id}", response_model=StudentData)
def get_student(student_id: int, db: Session = Depends(get_db)) -> StudentData:
    student = Repository(db).get_student(student_id)
    if not student:
        raise NotFound(f"student {student_id} not found")
    return StudentData.model_validate(student)


@router.put("/students/{student_id}", response_model=StudentData)
def update_student(
    student_id: int,
    payload: StudentUpdateRequest,
    db: Session = Depends(get_db),
) -> StudentData:
    student = Repository(db).update_student(student_id, payload.model_dump(exclude_unset=True))
    return StudentData.model_validate(student)


@router.post("/companies", response_model=CompanyData)
def create_company(payload: CompanyRequest, db: Session = Depends(get_db)) -> CompanyData:
    return CompanyData.model_validate(Repository(db).create_company(payload.model_dump()))


@router.get("/companies", response_model=list[CompanyData])
def list_companies(db: Session = Depends(get_db)) -> list[CompanyData]:
    return Repository(db).company_snapshots()


@router.get("/companies/{company_id}", response_model=CompanyData)
def get_company(company_id: int, db: Session = Depends(get_db)) -> CompanyData:
    company = Repository(db).get_company(company_id)
    if not company:
        raise NotFound(f"company {company_id} not found")
    return CompanyData.model_validate(company)


@router.put("/companies/{company_id}", response_model=CompanyData)
def update_company(company_id: int, payload: CompanyRequest, db: Session = Depends(get_db)) -> CompanyData:
    return CompanyData.model_validate(Repository(db).update_company(company_id, payload.model_dump()))


@router.delete("/companies/{company_id}", status_code=204)
def delete_company(company_id: int, db: Session = Depends(get_db)) -> Response:
    Repository(db).delete_company(company_id)
    return Response(status_code=204)


@router.post("/visits", response_model=VisitResponse)
def create_visit(payload: VisitRequest, db: Session = Depends(get_db)) -> VisitResponse:
    repo = Repository(db)
    visit = repo.create_visit(payload.model_dump())
    return _visit_response(OpportunityView.model_validate(visit))


@router.get("/visits", response_model=list[VisitResponse])
def list_visits(
    active_only: bool = True,
    search: str | None = None,
    batch_year: int | None = None,
    db: Session = Depends(get_db),
) -> list[VisitResponse]:
    views = Repository(db).opportunity_views(active_only=active_only)
    return [_visit_response(view) for view in filter_opportunities(views, search=search, batch_year=batch_year)]


@router.get("/visits/{visit_id}", response_model=VisitResponse)
def get_visit(visit_id: int, db: Session = Depends(get_db)) -> VisitResponse:
    visit = Repository(db).get_visit(visit_id)
    if not visit:
        raise NotFound(f"visit {visit_id} not found")
    return _visit_response(OpportunityView.model_validate(visit))


@router.put("/visits/{visit_id}", response_model=VisitResponse)
def update_visit(visit_id: int, payload: VisitRequest, db: Session = Depends(get_db)) -> VisitResponse:
    visit = Repository(db).update_visit(visit_id, payload.model_dump())
    return _visit_response(OpportunityView.model_validate(visit))


@router.put("/visits/{visit_id}/status", response_model=VisitResponse)
def update_visit_status(
    visit_id: int,
    payload: VisitStatusRequest,
    db: Session = Depends(get_db),
) -> VisitResponse:
    visit = Repository(db).set_visit_active(visit_id, payload.is_active)
    return _visit_response(OpportunityView.model_validate(visit))


@router.get("/eligibility", response_model=EligibilityVerdict)
def get_eligibility(student_id: int, visit_id: int, db: Session = Depends(get_db)) -> EligibilityVerdict:
    return ApplicationLifecycle(db).check_eligibility(student_id, visit_id)


@router.post("/applications", response_model=ApplicationData)
def apply(payload: ApplyRequest, db: Session = Depends(get_db)) -> ApplicationData:
    return ApplicationLifecycle(db).apply(payload.student_id, payload.visit_id)


@router.get("/applications", response_model=list[ApplicationView])
def list_applications(
    status: ApplicationStatus | None = None,
    search: str | None = None,
    student_id: int | None = None,
    company_name: str | None = None,
    db: Session = Depends(get_db),
) -> list[ApplicationView]:
    rows = Repository(db).application_views(status=status, student_id=student_id)
    return reporting.filter_applications(rows, search=search, company_name=company_name)


@router.post("/applications/{application_id}/decision", response_model=ApplicationData)
def decide(
    application_id: int,
    payload: DecisionRequest,
    db: Session = Depends(get_db),
) -> ApplicationData:
    return ApplicationLifecycle(db).decide(
        application_id,
        payload.decision,
        payload.feedback,
        internship=payload.internship,
    )


@router.get("/reports/placement-summary", response_model=PlacementSummary)
def placement_summary(db: Session = Depends(get_db)) -> PlacementSummary:
    return reporting.placement_summary(Repository(db).student_snapshots())


@router.get("/reports/company-stats", response_model=list[CompanyStat])
def company_stats(
    sort_by: CompanySortKey = "name",
    descending: bool = False,
    db: Session = Depends(get_db),
) -> list[CompanyStat]:
    repo = Repository(db)
    return reporting.company_stats(
        repo.company_snapshots(),
        repo.visit_snapshots(),
        repo.application_snapshots(),
        repo.placement_snapshots(),
        sort_by=sort_by,
        descending=descending,
    )


@router.get("/reports/branch-year", response_model=dict[str, dict[int, list[PlacementData]]])
def branch_year_stats(db: Session = Depends(get_db)) -> dict[str, dict[int, list[PlacementData]]]:
    return reporting.branch_year_stats(Repository(db).placement_snapshots())


@router.get("/reports/branch-year/table", response_model=list[BranchYearRow])
def branch_year_table(db: Session = Depends(get_db)) -> list[BranchYearRow]:
    stats = reporting.branch_year_stats(Repository(db).placement_snapshots())
    return reporting.branch_year_table(stats)


@router.get("/reports/year-counts", response_model=YearCountsResponse)
def year_counts(db: Session = Depends(get_db)) -> YearCountsResponse:
    stats = reporting.branch_year_stats(Repository(db).placement_snapshots())
    totals = reporting.year_totals(stats)
    return YearCountsResponse(counts=totals, trend_percentage=reporting.placement_trend(totals))


@router.get("/records", response_model=list[PlacementData])
def placement_records(
    batch_year: int | None = None,
    company_name: str | None = None,
    search: str | None = None,
    sort_by: PlacementSortKey = "placement_date",
    descending: bool = True,
    db: Session = Depends(get_db),
) -> list[PlacementData]:
    records = Repository(db).placement_snapshots()
    filtered = reporting.filter_placements(
        records,
        search=search,
        batch_year=batch_year,
        company_name=company_name,
    )
    return reporting.sort_placements(filtered, by=sort_by, descending=descending)
