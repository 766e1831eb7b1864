from __future__ import annotations

from campusplace.config import get_settings
from campusplace.db.base import Base
from campusplace.db.session import SessionLocal, engine
from campusplace.db import models  # noqa: F401
from campusplace.db.seed import seed_departments


def ensure_data_directories() -> None:
    settings = get_settings()
    settings.data_dir.mkdir(parents=True, exist_ok=True)


def init_database() -> dict[str, int]:
    ensure_data_directories()
    Base.metadata.create_all(bind=engine)

    with SessionLocal() as session:
        inserted = seed_departments(session)
    return {"seeded_departments": inserted}
