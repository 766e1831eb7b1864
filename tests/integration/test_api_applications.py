from datetime import UTC, datetime, timedelta, timezone

from fastapi.testclient import TestClient

from campusplace.api.app import create_app


def _deadline(days: int) -> str:
    return (datetime.now(UTC) + timedelta(days=days)).isoformat()


def _setup(client: TestClient, *, batch_year: int = 2024, cgpa: float = 8.2, deadline_days: int = 10) -> tuple[int, int]:
    departments = client.get("/api/departments").json()
    student = client.post(
        "/api/students",
        json={
            "name": "Asha Rao",
            "roll_number": f"CS{batch_year}{int(cgpa * 10)}{deadline_days}",
            "batch_year": batch_year,
            "department_id": departments[0]["id"],
            "cgpa": cgpa,
        },
    )
    assert student.status_code == 200
    company = client.post("/api/companies", json={"name": "Acme Systems"})
    assert company.status_code == 200
    visit = client.post(
        "/api/visits",
        json={
            "company_id": company.json()["id"],
            "application_deadline": _deadline(deadline_days),
            "job_positions": "Software Engineer",
            "salary_package": "10 LPA",
            "eligibility_criteria": 7.5,
            "batch_year": 2024,
        },
    )
    assert visit.status_code == 200
    return student.json()["id"], visit.json()["id"]


def test_apply_and_select_over_http() -> None:
    client = TestClient(create_app())
    student_id, visit_id = _setup(client)

    eligibility = client.get("/api/eligibility", params={"student_id": student_id, "visit_id": visit_id})
    assert eligibility.status_code == 200
    assert eligibility.json() == {"is_eligible": True, "reasons": []}

    applied = client.post("/api/applications", json={"student_id": student_id, "visit_id": visit_id})
    assert applied.status_code == 200
    assert applied.json()["application_status"] == "PENDING"
    application_id = applied.json()["id"]

    duplicate = client.post("/api/applications", json={"student_id": student_id, "visit_id": visit_id})
    assert duplicate.status_code == 409
    assert duplicate.json()["error"] == "AlreadyApplied"

    decided = client.post(f"/api/applications/{application_id}/decision", json={"decision": "SELECTED"})
    assert decided.status_code == 200
    assert decided.json()["application_status"] == "SELECTED"

    again = client.post(f"/api/applications/{application_id}/decision", json={"decision": "REJECTED"})
    assert again.status_code == 409
    assert again.json()["error"] == "InvalidTransition"

    student = client.get(f"/api/students/{student_id}")
    assert student.json()["current_status"] == "PLACED"


def test_not_eligible_returns_reasons() -> None:
    client = TestClient(create_app())
    student_id, visit_id = _setup(client, batch_year=2023, cgpa=6.0)

    response = client.post("/api/applications", json={"student_id": student_id, "visit_id": visit_id})
    assert response.status_code == 403
    body = response.json()
    assert body["error"] == "NotEligible"
    assert len(body["reasons"]) == 2


def test_expired_visit_is_listed_as_closed_and_refuses_apply() -> None:
    client = TestClient(create_app())
    student_id, visit_id = _setup(client, deadline_days=-1)

    visits = client.get("/api/visits").json()
    assert [(item["id"], item["state"]) for item in visits] == [(visit_id, "closed")]

    response = client.post("/api/applications", json={"student_id": student_id, "visit_id": visit_id})
    assert response.status_code == 400
    assert response.json()["error"] == "DeadlinePassed"


def test_deactivated_visit_disappears_from_active_listing() -> None:
    client = TestClient(create_app())
    student_id, visit_id = _setup(client)

    toggled = client.put(f"/api/visits/{visit_id}/status", json={"is_active": False})
    assert toggled.status_code == 200
    assert toggled.json()["state"] == "inactive"
    assert client.get("/api/visits").json() == []
    assert len(client.get("/api/visits", params={"active_only": False}).json()) == 1

    response = client.post("/api/applications", json={"student_id": student_id, "visit_id": visit_id})
    assert response.json()["error"] == "VisitInactive"


def test_reject_with_feedback_and_list_filters() -> None:
    client = TestClient(create_app())
    student_id, visit_id = _setup(client)
    application_id = client.post(
        "/api/applications", json={"student_id": student_id, "visit_id": visit_id}
    ).json()["id"]

    rejected = client.post(
        f"/api/applications/{application_id}/decision",
        json={"decision": "REJECTED", "feedback": "Work on system design"},
    )
    assert rejected.json()["feedback"] == "Work on system design"

    assert client.get("/api/applications", params={"status": "PENDING"}).json() == []
    listed = client.get("/api/applications", params={"status": "REJECTED", "search": "asha"}).json()
    assert [item["id"] for item in listed] == [application_id]


def test_company_delete_is_blocked_while_visits_exist() -> None:
    client = TestClient(create_app())
    _student_id, visit_id = _setup(client)
    company_id = client.get(f"/api/visits/{visit_id}").json()["company_id"]

    response = client.delete(f"/api/companies/{company_id}")
    assert response.status_code == 409
    assert response.json()["error"] == "ReferentialIntegrity"

    spare = client.post("/api/companies", json={"name": "Spare Co"}).json()
    assert client.delete(f"/api/companies/{spare['id']}").status_code == 204
    assert client.get(f"/api/companies/{spare['id']}").status_code == 404


def test_duplicate_roll_number_is_a_conflict() -> None:
    client = TestClient(create_app())
    payload = {"name": "A", "roll_number": "CS001", "batch_year": 2024, "cgpa": 8.0}
    assert client.post("/api/students", json=payload).status_code == 200
    assert client.post("/api/students", json=payload).status_code == 409


def test_offset_deadline_is_compared_in_utc() -> None:
    client = TestClient(create_app())
    student_id, visit_id = _setup(client)
    ist = timezone(timedelta(hours=5, minutes=30))
    an_hour_ago = (datetime.now(ist) - timedelta(hours=1)).replace(microsecond=0)
    company_id = client.get(f"/api/visits/{visit_id}").json()["company_id"]

    created = client.post(
        "/api/visits",
        json={
            "company_id": company_id,
            "application_deadline": an_hour_ago.isoformat(),
            "eligibility_criteria": 7.5,
            "batch_year": 2024,
        },
    )
    assert created.status_code == 200
    assert created.json()["state"] == "closed"
    stored = datetime.fromisoformat(created.json()["application_deadline"])
    assert stored.replace(tzinfo=stored.tzinfo or UTC) == an_hour_ago

    response = client.post("/api/applications", json={"student_id": student_id, "visit_id": created.json()["id"]})
    assert response.status_code == 400
    assert response.json()["error"] == "DeadlinePassed"


def test_visit_can_be_edited_in_full() -> None:
    client = TestClient(create_app())
    _student_id, visit_id = _setup(client)
    globex = client.post("/api/companies", json={"name": "Globex"}).json()
    ist = timezone(timedelta(hours=5, minutes=30))
    deadline = (datetime.now(ist) + timedelta(days=3)).replace(microsecond=0)

    edited = client.put(
        f"/api/visits/{visit_id}",
        json={
            "company_id": globex["id"],
            "application_deadline": deadline.isoformat(),
            "job_positions": "Data Analyst",
            "salary_package": "9 LPA",
            "eligibility_criteria": 8.0,
            "batch_year": 2025,
        },
    )
    assert edited.status_code == 200
    body = edited.json()
    assert body["company_name"] == "Globex"
    assert body["job_positions"] == "Data Analyst"
    assert body["eligibility_criteria"] == 8.0
    assert body["batch_year"] == 2025
    assert body["state"] == "open"
    stored = datetime.fromisoformat(body["application_deadline"])
    assert stored.replace(tzinfo=stored.tzinfo or UTC) == deadline

    payload = {"company_id": 9999, "application_deadline": _deadline(3), "batch_year": 2025}
    missing_company = client.put(f"/api/visits/{visit_id}", json=payload)
    assert missing_company.status_code == 404
    payload["company_id"] = globex["id"]
    assert client.put("/api/visits/9999", json=payload).status_code == 404


def test_applications_can_be_filtered_by_exact_company_name(factory) -> None:
    client = TestClient(create_app())
    student = factory.student(name="Asha Rao")
    acme = factory.visit(factory.company("Acme Systems"), deadline=datetime.now(UTC) + timedelta(days=3))
    acme_labs = factory.visit(factory.company("Acme Systems Labs"), deadline=datetime.now(UTC) + timedelta(days=3))
    first = client.post("/api/applications", json={"student_id": student.id, "visit_id": acme.id}).json()
    client.post("/api/applications", json={"student_id": student.id, "visit_id": acme_labs.id})

    listed = client.get("/api/applications", params={"company_name": "Acme Systems"}).json()
    assert [item["id"] for item in listed] == [first["id"]]
    assert client.get("/api/applications", params={"company_name": "acme systems"}).json() == []
    assert len(client.get("/api/applications", params={"search": "acme"}).json()) == 2


def test_student_department_must_exist_on_create_and_update() -> None:
    client = TestClient(create_app())
    payload = {"name": "A", "roll_number": "CS002", "batch_year": 2024, "cgpa": 8.0}

    created = client.post("/api/students", json={**payload, "department_id": 9999})
    assert created.status_code == 404
    assert created.json()["error"] == "NotFound"

    student = client.post("/api/students", json=payload).json()
    updated = client.put(f"/api/students/{student['id']}", json={"department_id": 9999})
    assert updated.status_code == 404
    assert updated.json()["error"] == "NotFound"


def test_student_update_cannot_change_placement_status() -> None:
    client = TestClient(create_app())
    payload = {"name": "A", "roll_number": "CS003", "batch_year": 2024, "cgpa": 8.0}
    student = client.post("/api/students", json=payload).json()

    updated = client.put(f"/api/students/{student['id']}", json={"cgpa": 8.5, "current_status": "PLACED"})
    assert updated.status_code == 200
    assert updated.json()["cgpa"] == 8.5
    assert updated.json()["current_status"] == "NOT_PLACED"
    assert client.get("/api/reports/placement-summary").json()["placed_students"] == 0


def test_departments_and_error_bodies_share_one_shape() -> None:
    client = TestClient(create_app())
    created = client.post("/api/departments", json={"name": "Mechanical"})
    assert created.status_code == 200
    assert set(created.json()) == {"id", "name"}

    missing = client.get("/api/students/9999")
    assert missing.status_code == 404
    assert missing.json() == {"error": "NotFound", "message": "student 9999 not found", "reasons": []}
