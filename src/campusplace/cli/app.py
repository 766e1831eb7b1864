from __future__ import annotations

import json
from typing import NoReturn

import typer
import uvicorn

from campusplace.api.app import create_app
from campusplace.config import get_settings
from campusplace.core import reporting
from campusplace.core.errors import PlacementError
from campusplace.core.lifecycle import ApplicationLifecycle
from campusplace.db.init import init_database
from campusplace.db.repositories import Repository
from campusplace.db.session import SessionLocal
from campusplace.logging_config import configure_logging

app = typer.Typer(help="Campus placement CLI")
report_app = typer.Typer(help="Placement reports")

app.add_typer(report_app, name="report")

_INITIALIZED = False


def ensure_initialized() -> None:
    global _INITIALIZED
    if _INITIALIZED:
        return
    init_database()
    _INITIALIZED = True


def _echo(payload) -> None:
    typer.echo(json.dumps(payload, indent=2, default=str))


def _fail(exc: PlacementError) -> NoReturn:
    _echo(exc.to_dict())
    raise typer.Exit(code=1)


@app.command("init")
def init_cmd() -> None:
    """Initialize database, directories, and seed departments."""
    configure_logging()
    result = init_database()
    _echo({"ok": True, **result})


@app.command("eligibility")
def eligibility_cmd(
    student: int = typer.Option(..., "--student"),
    visit: int = typer.Option(..., "--visit"),
) -> None:
    configure_logging()
    ensure_initialized()
    with SessionLocal() as db:
        try:
            verdict = ApplicationLifecycle(db).check_eligibility(student, visit)
        except PlacementError as exc:
            _fail(exc)
        _echo(verdict.model_dump())


@app.command("apply")
def apply_cmd(
    student: int = typer.Option(..., "--student"),
    visit: int = typer.Option(..., "--visit"),
) -> None:
    configure_logging()
    ensure_initialized()
    with SessionLocal() as db:
        try:
            application = ApplicationLifecycle(db).apply(student, visit)
        except PlacementError as exc:
            _fail(exc)
        _echo(application.model_dump(mode="json"))


@app.command("decide")
def decide_cmd(
    application: int = typer.Option(..., "--application"),
    decision: str = typer.Option(..., "--decision", help="SELECTED or REJECTED"),
    feedback: str | None = typer.Option(None, "--feedback"),
    internship: bool = typer.Option(False, "--internship"),
) -> None:
    configure_logging()
    ensure_initialized()
    with SessionLocal() as db:
        try:
            result = ApplicationLifecycle(db).decide(
                application,
                decision.upper(),
                feedback,
                internship=internship,
            )
        except PlacementError as exc:
            _fail(exc)
        _echo(result.model_dump(mode="json"))


@app.command("check")
def check_cmd() -> None:
    """Report SELECTED applications and placement records missing their counterpart."""
    configure_logging()
    ensure_initialized()
    with SessionLocal() as db:
        report = ApplicationLifecycle(db).check_consistency()
    _echo({"consistent": report.is_consistent, **report.model_dump()})
    if not report.is_consistent:
        raise typer.Exit(code=1)


@report_app.command("summary")
def report_summary() -> None:
    configure_logging()
    ensure_initialized()
    with SessionLocal() as db:
        summary = reporting.placement_summary(Repository(db).student_snapshots())
    _echo(summary.model_dump())


@report_app.command("companies")
def report_companies(
    sort_by: str = typer.Option("name", "--sort-by"),
    descending: bool = typer.Option(False, "--descending"),
) -> None:
    configure_logging()
    ensure_initialized()
    with SessionLocal() as db:
        repo = Repository(db)
        try:
            stats = reporting.company_stats(
                repo.company_snapshots(),
                repo.visit_snapshots(),
                repo.application_snapshots(),
                repo.placement_snapshots(),
                sort_by=sort_by,
                descending=descending,
            )
        except ValueError as exc:
            raise typer.BadParameter(str(exc)) from exc
    _echo([stat.model_dump() for stat in stats])


@report_app.command("branch-year")
def report_branch_year() -> None:
    configure_logging()
    ensure_initialized()
    with SessionLocal() as db:
        placements = Repository(db).placement_snapshots()
    stats = reporting.branch_year_stats(placements)
    totals = reporting.year_totals(stats)
    _echo(
        {
            "table": [row.model_dump() for row in reporting.branch_year_table(stats)],
            "branch_totals": [row.model_dump() for row in reporting.branch_totals(stats)],
            "year_totals": [row.model_dump() for row in totals],
            "year_counts": reporting.year_wise_placement_count(placements),
            "trend_percentage": reporting.placement_trend(totals),
        }
    )


@app.command("serve")
def serve(
    host: str | None = typer.Option(None, "--host"),
    port: int | None = typer.Option(None, "--port"),
) -> None:
    configure_logging()
    ensure_initialized()
    settings = get_settings()
    app_instance = create_app()
    uvicorn.run(app_instance, host=host or settings.app_host, port=port or settings.app_port)
