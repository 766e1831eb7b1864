from __future__ import annotations

import os
import tempfile
from datetime import UTC, datetime, timedelta
from pathlib import Path

_TEST_DIR = Path(tempfile.mkdtemp(prefix="campusplace-tests-"))
os.environ.setdefault("DATABASE_URL", f"sqlite:///{_TEST_DIR / 'campusplace-test.db'}")
os.environ.setdefault("DATA_DIR", str(_TEST_DIR))
os.environ.setdefault("APP_ENV", "test")

import pytest  # noqa: E402

from campusplace.db.base import Base  # noqa: E402
from campusplace.db.repositories import Repository  # noqa: E402
from campusplace.db.seed import seed_departments  # noqa: E402
from campusplace.db.session import SessionLocal, engine  # noqa: E402
from campusplace.db import models  # noqa: E402,F401

NOW = datetime(2026, 3, 1, 9, 30, tzinfo=UTC)


@pytest.fixture(autouse=True)
def reset_db() -> None:
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    with SessionLocal() as session:
        seed_departments(session, ["Computer Science", "Electronics"])
    yield


@pytest.fixture()
def db():
    with SessionLocal() as session:
        yield session


class Factory:
    def __init__(self, session) -> None:
        self.repo = Repository(session)
        self._roll = 0

    def department(self, name: str = "Computer Science"):
        return self.repo.get_department_by_name(name) or self.repo.create_department(name)

    def student(self, *, batch_year: int = 2024, cgpa: float = 8.2, branch: str = "Computer Science", **values):
        self._roll += 1
        payload = {
            "name": f"Student {self._roll}",
            "roll_number": f"R{batch_year}{self._roll:03d}",
            "batch_year": batch_year,
            "department_id": self.department(branch).id,
            "cgpa": cgpa,
        }
        payload.update(values)
        return self.repo.create_student(payload)

    def company(self, name: str = "Acme Systems", **values):
        return self.repo.create_company({"name": name, **values})

    def visit(
        self,
        company,
        *,
        batch_year: int = 2024,
        eligibility_criteria: float = 7.5,
        deadline: datetime | None = None,
        **values,
    ):
        payload = {
            "company_id": company.id,
            "application_deadline": deadline or NOW + timedelta(days=10),
            "job_positions": "Software Engineer, Data Analyst",
            "salary_package": "10 LPA",
            "eligibility_criteria": eligibility_criteria,
            "batch_year": batch_year,
            "is_active": True,
        }
        payload.update(values)
        return self.repo.create_visit(payload)


@pytest.fixture()
def factory(db) -> Factory:
    return Factory(db)
