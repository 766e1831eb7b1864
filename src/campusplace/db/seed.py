from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from campusplace.config import get_settings
from campusplace.db.models import Department


def seed_departments(session: Session, names: list[str] | None = None) -> int:
    names = names if names is not None else get_settings().default_department_list
    existing = set(session.scalars(select(Department.name)).all())
    inserted = 0
    for name in names:
        if name in existing:
            continue
        session.add(Department(name=name))
        existing.add(name)
        inserted += 1
    session.commit()
    return inserted
