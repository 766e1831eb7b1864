from __future__ import annotations

import logging
import threading
from collections.abc import Hashable, Iterator
from contextlib import contextmanager
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from campusplace.config import Settings, get_settings
from campusplace.core.clock import as_utc, utcnow
from campusplace.core.eligibility import evaluate
from campusplace.core.errors import (
    AlreadyApplied,
    DeadlinePassed,
    InvalidTransition,
    MissingFeedback,
    NotEligible,
    NotFound,
    VisitInactive,
)
from campusplace.db.models import Application, PlacementRecord
from campusplace.db.repositories import Repository
from campusplace.types import (
    TERMINAL_STATUSES,
    ApplicationData,
    ConsistencyReport,
    EligibilityVerdict,
    PlacementData,
)

logger = logging.getLogger(__name__)


class KeyedLock:
    """One mutex per key, dropped again once nobody holds or waits on it."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._entries: dict[Hashable, list] = {}

    @contextmanager
    def hold(self, key: Hashable) -> Iterator[None]:
        with self._guard:
            entry = self._entries.setdefault(key, [threading.Lock(), 0])
            entry[1] += 1
        lock: threading.Lock = entry[0]
        lock.acquire()
        try:
            yield
        finally:
            lock.release()
            with self._guard:
                entry[1] -= 1
                if entry[1] == 0:
                    self._entries.pop(key, None)


_APPLY_LOCKS = KeyedLock()


class ApplicationLifecycle:
    """Gatekeeper for applying to visits and deciding on applications.

    ``apply`` serializes the duplicate check and insert per (student, visit)
    inside this process; the ``uq_application_student_visit`` constraint
    covers writers in other processes. ``decide`` writes the status change,
    the placement record and the student status in a single commit.
    """

    def __init__(self, session: Session, *, settings: Settings | None = None):
        self.session = session
        self.settings = settings or get_settings()
        self.repo = Repository(session)

    def check_eligibility(self, student_id: int, visit_id: int) -> EligibilityVerdict:
        student = self.repo.get_student(student_id)
        if student is None:
            raise NotFound(f"student {student_id} not found")
        visit = self.repo.get_visit(visit_id)
        if visit is None:
            raise NotFound(f"visit {visit_id} not found")
        return evaluate(student, visit)

    def apply(self, student_id: int, visit_id: int, now: datetime | None = None) -> ApplicationData:
        now = as_utc(now or utcnow())

        with _APPLY_LOCKS.hold((student_id, visit_id)):
            student = self.repo.get_student(student_id)
            if student is None:
                raise NotFound(f"student {student_id} not found")
            visit = self.repo.get_visit(visit_id)
            if visit is None:
                raise NotFound(f"visit {visit_id} not found")

            if self.repo.find_application(student_id, visit_id):
                logger.info("Apply refused kind=AlreadyApplied student_id=%s visit_id=%s", student_id, visit_id)
                raise AlreadyApplied(f"student {student_id} has already applied to visit {visit_id}")

            if now > as_utc(visit.application_deadline):
                logger.info("Apply refused kind=DeadlinePassed student_id=%s visit_id=%s", student_id, visit_id)
                raise DeadlinePassed(
                    f"application deadline {as_utc(visit.application_deadline).isoformat()} has passed"
                )

            if not visit.is_active:
                logger.info("Apply refused kind=VisitInactive student_id=%s visit_id=%s", student_id, visit_id)
                raise VisitInactive(f"visit {visit_id} is not accepting applications")

            verdict = evaluate(student, visit)
            if not verdict.is_eligible:
                logger.info(
                    "Apply refused kind=NotEligible student_id=%s visit_id=%s reasons=%s",
                    student_id,
                    visit_id,
                    verdict.reasons,
                )
                raise NotEligible(verdict.reasons)

            try:
                application = self.repo.insert_application(
                    student_id=student_id,
                    visit_id=visit_id,
                    application_date=now,
                )
                self.session.commit()
            except IntegrityError as exc:
                self.session.rollback()
                raise AlreadyApplied(
                    f"student {student_id} has already applied to visit {visit_id}"
                ) from exc

        self.session.refresh(application)
        logger.info(
            "Application created application_id=%s student_id=%s visit_id=%s",
            application.id,
            student_id,
            visit_id,
        )
        return ApplicationData.model_validate(application)

    def decide(
        self,
        application_id: int,
        decision: str,
        feedback: str | None = None,
        *,
        now: datetime | None = None,
        internship: bool = False,
    ) -> ApplicationData:
        if decision not in TERMINAL_STATUSES:
            raise InvalidTransition(f"unsupported decision '{decision}'")
        now = as_utc(now or utcnow())

        application = self.repo.get_application(application_id)
        if application is None:
            raise NotFound(f"application {application_id} not found")
        if application.application_status != "PENDING":
            raise InvalidTransition(
                f"application {application_id} is {application.application_status}, not PENDING"
            )

        feedback = (feedback or "").strip() or None
        if decision == "REJECTED" and feedback is None and self.settings.require_rejection_feedback:
            raise MissingFeedback("feedback is required when rejecting an application")

        try:
            if not self.repo.mark_application(
                application_id,
                status=decision,
                feedback=feedback if decision == "REJECTED" else None,
            ):
                raise InvalidTransition(f"application {application_id} is no longer PENDING")

            if decision == "SELECTED":
                self.repo.insert_placement_record(
                    application=application,
                    placement_date=now,
                    internship=internship,
                )
                student = application.student
                if not internship:
                    student.current_status = "PLACED"
                elif student.current_status == "NOT_PLACED":
                    # An internship never downgrades a placed student.
                    student.current_status = "INTERN"

            self.session.commit()
        except InvalidTransition:
            self.session.rollback()
            raise
        except IntegrityError as exc:
            self.session.rollback()
            raise InvalidTransition(
                f"application {application_id} already has a placement record"
            ) from exc
        except Exception:
            self.session.rollback()
            logger.exception("Decision rolled back application_id=%s decision=%s", application_id, decision)
            raise

        self.session.refresh(application)
        logger.info("Application decided application_id=%s decision=%s", application_id, decision)
        return ApplicationData.model_validate(application)

    def placement_for(self, application_id: int) -> PlacementData | None:
        record = self.repo.get_placement_for_application(application_id)
        return PlacementData.model_validate(record) if record else None

    def check_consistency(self) -> ConsistencyReport:
        """Find SELECTED applications and placement records that lack their counterpart."""
        selected = set(
            self.session.scalars(
                select(Application.id).where(Application.application_status == "SELECTED")
            ).all()
        )
        recorded = set(self.session.scalars(select(PlacementRecord.application_id)).all())
        return ConsistencyReport(
            selected_without_record=sorted(selected - recorded),
            records_without_selection=sorted(recorded - selected),
        )
