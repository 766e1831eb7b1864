from __future__ import annotations

from campusplace.types import EligibilityVerdict, StudentData, VisitData


def _format_cgpa(value: float) -> str:
    return f"{value:g}"


def evaluate(student: StudentData, visit: VisitData) -> EligibilityVerdict:
    """Check a student against a visit's batch and CGPA requirements.

    Every rule runs even after one fails so the caller can show all problems
    at once. Accepts value objects or ORM rows; only ``batch_year`` and
    ``cgpa``/``eligibility_criteria`` are read.
    """
    reasons: list[str] = []

    if student.batch_year != visit.batch_year:
        reasons.append(
            f"batch year {student.batch_year} does not match required batch year {visit.batch_year}"
        )

    if student.cgpa < visit.eligibility_criteria:
        reasons.append(
            f"CGPA {_format_cgpa(student.cgpa)} is below the minimum of "
            f"{_format_cgpa(visit.eligibility_criteria)}"
        )

    return EligibilityVerdict(is_eligible=not reasons, reasons=reasons)
