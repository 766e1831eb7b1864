"""Placement report aggregation.

Every function here is read-only over collections the caller has already
fetched: inputs are never mutated, and calling a function twice on the same
input gives the same output. Empty input yields zeroed or empty structures.
"""

from __future__ import annotations

import re
from collections import Counter
from collections.abc import Iterable, Mapping, Sequence

from campusplace.core.clock import as_utc
from campusplace.types import (
    ApplicationData,
    ApplicationView,
    BatchStat,
    BranchTotal,
    BranchYearRow,
    CompanyData,
    CompanySortKey,
    CompanyStat,
    PlacementData,
    PlacementSortKey,
    PlacementSummary,
    StudentData,
    VisitData,
    YearTotal,
)

UNASSIGNED_BRANCH = "Unassigned"

BranchYearStats = dict[str, dict[int, list[PlacementData]]]

_NUMBER = re.compile(r"\d+(?:\.\d+)?")

_COMPANY_SORT_KEYS = {
    "name": lambda stat: stat.company_name.lower(),
    "visits": lambda stat: stat.total_visits,
    "applications": lambda stat: stat.total_applications,
    "placements": lambda stat: stat.total_placements,
}


def matches_search(query: str | None, *fields: str | None) -> bool:
    """Case-insensitive substring match against any field; blank query matches all."""
    if not query or not query.strip():
        return True
    needle = query.strip().lower()
    return any(needle in (field or "").lower() for field in fields)


def _percentage(part: int, whole: int) -> float:
    if whole == 0:
        return 0.0
    return part / whole * 100


def batch_wise_stats(students: Iterable[StudentData]) -> list[BatchStat]:
    totals: Counter[int] = Counter()
    placed: Counter[int] = Counter()
    for student in students:
        totals[student.batch_year] += 1
        if student.current_status == "PLACED":
            placed[student.batch_year] += 1

    return [
        BatchStat(
            batch_year=year,
            total_students=totals[year],
            placed_students=placed[year],
            placement_percentage=_percentage(placed[year], totals[year]),
        )
        for year in sorted(totals)
    ]


def placement_summary(students: Iterable[StudentData]) -> PlacementSummary:
    rows = list(students)
    placed = sum(1 for student in rows if student.current_status == "PLACED")
    return PlacementSummary(
        total_students=len(rows),
        placed_students=placed,
        placement_percentage=_percentage(placed, len(rows)),
        batch_wise_stats=batch_wise_stats(rows),
    )


def company_stats(
    companies: Iterable[CompanyData],
    visits: Iterable[VisitData],
    applications: Iterable[ApplicationData],
    placements: Iterable[PlacementData],
    *,
    sort_by: CompanySortKey = "name",
    descending: bool = False,
) -> list[CompanyStat]:
    visit_company: dict[int, int] = {}
    visit_counts: Counter[int] = Counter()
    for visit in visits:
        visit_company[visit.id] = visit.company_id
        visit_counts[visit.company_id] += 1

    application_counts: Counter[int] = Counter(
        visit_company[application.visit_id]
        for application in applications
        if application.visit_id in visit_company
    )
    placement_counts: Counter[int] = Counter(record.company_id for record in placements)

    stats = []
    for company in companies:
        total_applications = application_counts[company.id]
        total_placements = placement_counts[company.id]
        conversion_rate = None
        if total_applications > 0:
            conversion_rate = total_placements / total_applications * 100
        stats.append(
            CompanyStat(
                company_id=company.id,
                company_name=company.name,
                total_visits=visit_counts[company.id],
                total_applications=total_applications,
                total_placements=total_placements,
                conversion_rate=conversion_rate,
            )
        )
    return sort_company_stats(stats, sort_by=sort_by, descending=descending)


def sort_company_stats(
    stats: Iterable[CompanyStat],
    *,
    sort_by: CompanySortKey = "name",
    descending: bool = False,
) -> list[CompanyStat]:
    key = _COMPANY_SORT_KEYS.get(sort_by)
    if key is None:
        raise ValueError(f"unsupported company sort key '{sort_by}'")
    # sorted() stays stable with reverse=True, so ties keep insertion order.
    return sorted(stats, key=key, reverse=descending)


def branch_year_stats(placements: Iterable[PlacementData]) -> BranchYearStats:
    grouped: dict[str, dict[int, list[PlacementData]]] = {}
    for record in placements:
        branch = record.branch or UNASSIGNED_BRANCH
        grouped.setdefault(branch, {}).setdefault(record.batch_year, []).append(record)

    return {
        branch: {year: list(years[year]) for year in sorted(years)}
        for branch, years in grouped.items()
    }


def branch_totals(stats: Mapping[str, Mapping[int, Sequence[PlacementData]]]) -> list[BranchTotal]:
    return [
        BranchTotal(branch=branch, placements=sum(len(records) for records in years.values()))
        for branch, years in stats.items()
    ]


def year_totals(stats: Mapping[str, Mapping[int, Sequence[PlacementData]]]) -> list[YearTotal]:
    counts: Counter[int] = Counter()
    for years in stats.values():
        for year, records in years.items():
            counts[year] += len(records)
    return [YearTotal(year=year, placements=counts[year]) for year in sorted(counts)]


def branch_year_table(stats: Mapping[str, Mapping[int, Sequence[PlacementData]]]) -> list[BranchYearRow]:
    """One row per branch with a count for every year seen in any branch."""
    all_years = sorted({year for years in stats.values() for year in years})
    rows = []
    for branch, years in stats.items():
        counts = {year: len(years.get(year, ())) for year in all_years}
        rows.append(BranchYearRow(branch=branch, counts=counts, total=sum(counts.values())))
    return rows


def year_wise_placement_count(placements: Iterable[PlacementData]) -> dict[int, int]:
    counts = Counter(record.batch_year for record in placements)
    return {year: counts[year] for year in sorted(counts)}


def placement_trend(totals: Sequence[YearTotal]) -> float | None:
    """Percentage change of the latest year over the one before it."""
    if len(totals) < 2:
        return None
    ordered = sorted(totals, key=lambda item: item.year)
    previous, current = ordered[-2].placements, ordered[-1].placements
    if previous == 0:
        return None
    return (current - previous) / previous * 100


def filter_placements(
    records: Iterable[PlacementData],
    *,
    search: str | None = None,
    batch_year: int | None = None,
    company_name: str | None = None,
    company_id: int | None = None,
) -> list[PlacementData]:
    result = []
    for record in records:
        if batch_year is not None and record.batch_year != batch_year:
            continue
        if company_name and record.company_name != company_name:
            continue
        if company_id is not None and record.company_id != company_id:
            continue
        if not matches_search(search, record.student_name, record.company_name, record.position):
            continue
        result.append(record)
    return result


def filter_applications(
    rows: Iterable[ApplicationView],
    *,
    status: str | None = None,
    search: str | None = None,
    company_name: str | None = None,
) -> list[ApplicationView]:
    result = []
    for row in rows:
        if status and row.application_status != status:
            continue
        if company_name and row.company_name != company_name:
            continue
        if not matches_search(search, row.student_name, row.company_name, row.roll_number):
            continue
        result.append(row)
    return result


def salary_value(salary_package: str) -> float:
    """Leading number of a free-form package such as "10 LPA"; 0 when absent."""
    match = _NUMBER.search(salary_package or "")
    return float(match.group()) if match else 0.0


def sort_placements(
    records: Iterable[PlacementData],
    *,
    by: PlacementSortKey = "placement_date",
    descending: bool = False,
) -> list[PlacementData]:
    if by == "student_name":
        key = lambda record: record.student_name.lower()  # noqa: E731
    elif by == "company_name":
        key = lambda record: record.company_name.lower()  # noqa: E731
    elif by == "salary_package":
        key = lambda record: salary_value(record.salary_package)  # noqa: E731
    elif by == "placement_date":
        key = lambda record: as_utc(record.placement_date)  # noqa: E731
    else:
        raise ValueError(f"unsupported placement sort key '{by}'")
    return sorted(records, key=key, reverse=descending)
