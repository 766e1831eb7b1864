from __future__ import annotations

import math
from collections.abc import Iterable
from datetime import datetime

from campusplace.core.clock import as_utc
from campusplace.core.reporting import matches_search
from campusplace.types import OpportunityState, OpportunityView, VisitData


def is_deadline_passed(visit: VisitData, now: datetime) -> bool:
    return as_utc(now) > as_utc(visit.application_deadline)


def days_until_deadline(visit: VisitData, now: datetime) -> int:
    """Whole days left before the deadline, rounded up; negative once expired."""
    remaining = as_utc(visit.application_deadline) - as_utc(now)
    return math.ceil(remaining.total_seconds() / 86400)


def opportunity_state(visit: VisitData, now: datetime) -> OpportunityState:
    if not visit.is_active:
        return "inactive"
    if is_deadline_passed(visit, now):
        return "closed"
    return "open"


def filter_opportunities(
    rows: Iterable[OpportunityView],
    *,
    search: str | None = None,
    batch_year: int | None = None,
) -> list[OpportunityView]:
    result: list[OpportunityView] = []
    for row in rows:
        if batch_year is not None and row.batch_year != batch_year:
            continue
        if not matches_search(search, row.company_name, row.job_positions):
            continue
        result.append(row)
    return result
