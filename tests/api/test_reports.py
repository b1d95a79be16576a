"""Anomaly reports filed by teachers and SG session reports."""

from __future__ import annotations

from fastapi.testclient import TestClient

from edutrack.repos.store import store
from tests.conftest import School, auth


def _anomaly(client: TestClient, school: School, **overrides):
    body = {
        "type": "schedule",
        "title": "Salle occupée",
        "description": "La salle 12 était occupée par une autre classe.",
        "recipients": ["fondateur", "sg"],
        "classId": school.class_6a.id,
        **overrides,
    }
    return client.post("/api/anomaly-reports", json=body, headers=auth(school.teacher))


def test_file_anomaly_notifies_recipient_roles(client: TestClient, school: School) -> None:
    resp = _anomaly(client, school, priority="high")
    assert resp.status_code == 201
    report = resp.json()
    assert report["status"] == "open"
    assert report["priority"] == "high"
    assert report["teacherName"] == "Alice Martin"
    assert report["recipients"] == ["fondateur", "sg"]

    for user in (school.founder, school.sg_college, school.sg_primaire):
        notes = store.notifications.list_for_user(user.id)
        assert [n.type for n in notes] == ["anomaly_report"]
        assert notes[0].entity_id == report["id"]
    assert store.notifications.list_for_user(school.inspector.id) == []


def test_file_anomaly_validates_body(client: TestClient, school: School) -> None:
    assert _anomaly(client, school, title="abc").status_code == 400
    assert _anomaly(client, school, recipients=[]).status_code == 400
    assert _anomaly(client, school, type="weather").status_code == 400
    assert store.reports.list_anomalies() == []


def test_file_anomaly_unknown_class_is_404(client: TestClient, school: School) -> None:
    assert _anomaly(client, school, classId=999).status_code == 404


def test_only_teachers_file_anomalies(client: TestClient, school: School) -> None:
    resp = client.post(
        "/api/anomaly-reports",
        json={
            "type": "content",
            "title": "Programme incomplet",
            "description": "Il manque un chapitre entier.",
            "recipients": ["inspecteur"],
        },
        headers=auth(school.founder),
    )
    assert resp.status_code == 403


def test_teacher_lists_only_own_anomalies(client: TestClient, school: School) -> None:
    _anomaly(client, school)
    mine = client.get("/api/anomaly-reports", headers=auth(school.teacher)).json()
    assert len(mine) == 1
    theirs = client.get("/api/anomaly-reports", headers=auth(school.other_teacher)).json()
    assert theirs == []
    reviewer = client.get("/api/anomaly-reports", headers=auth(school.inspector)).json()
    assert len(reviewer) == 1


def test_review_resolves_and_notifies_teacher(client: TestClient, school: School) -> None:
    report_id = _anomaly(client, school).json()["id"]
    resp = client.put(
        f"/api/anomaly-reports/{report_id}",
        json={"status": "resolved", "reviewNotes": "Salle libérée"},
        headers=auth(school.inspector),
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "resolved"
    assert body["resolvedAt"] is not None
    assert body["reviewedBy"] == school.inspector.id
    assert body["reviewNotes"] == "Salle libérée"

    notes = store.notifications.list_for_user(school.teacher.id)
    assert [n.type for n in notes] == ["anomaly_report_updated"]


def test_teacher_cannot_review(client: TestClient, school: School) -> None:
    report_id = _anomaly(client, school).json()["id"]
    resp = client.put(
        f"/api/anomaly-reports/{report_id}",
        json={"status": "resolved"},
        headers=auth(school.teacher),
    )
    assert resp.status_code == 403


def test_review_unknown_report_is_404(client: TestClient, school: School) -> None:
    resp = client.put(
        "/api/anomaly-reports/999", json={"status": "in_review"}, headers=auth(school.founder)
    )
    assert resp.status_code == 404


# ---- SG reports ----


def _sg_report(client: TestClient, school: School, sg=None, **overrides):
    body = {
        "teacherId": school.teacher.id,
        "classId": school.class_6a.id,
        "actualStartTime": "08:05",
        "actualEndTime": "09:00",
        "teacherLateMinutes": 5,
        "teacherRating": 4,
        "studentsPresent": 27,
        "studentsTotal": 28,
        **overrides,
    }
    return client.post("/api/sg-reports", json=body, headers=auth(sg or school.sg_college))


def test_file_sg_report_notifies_founders(client: TestClient, school: School) -> None:
    resp = _sg_report(client, school)
    assert resp.status_code == 201
    body = resp.json()
    assert body["sgId"] == school.sg_college.id
    assert body["className"] == "6A"
    assert body["sessionValidated"] is False
    notes = store.notifications.list_for_user(school.founder.id)
    assert [n.type for n in notes] == ["sg_report_submitted"]


def test_sg_report_outside_cycle_is_403(client: TestClient, school: School) -> None:
    resp = _sg_report(
        client, school, teacherId=school.other_teacher.id, classId=school.class_cp.id
    )
    assert resp.status_code == 403
    assert store.reports.list_sg_reports() == []


def test_sg_report_rejects_bad_time_and_rating(client: TestClient, school: School) -> None:
    assert _sg_report(client, school, actualStartTime="8h05").status_code == 400
    assert _sg_report(client, school, teacherRating=6).status_code == 400


def test_only_sg_files_session_reports(client: TestClient, school: School) -> None:
    assert _sg_report(client, school, sg=school.teacher).status_code == 403


def test_update_ignores_explicit_nulls(client: TestClient, school: School) -> None:
    report_id = _sg_report(client, school).json()["id"]
    resp = client.put(
        f"/api/sg-reports/{report_id}",
        json={"teacherRating": None, "observations": "Classe calme"},
        headers=auth(school.sg_college),
    )
    assert resp.status_code == 200
    assert resp.json()["teacherRating"] == 4
    assert resp.json()["observations"] == "Classe calme"


def test_update_by_another_sg_is_403(client: TestClient, school: School) -> None:
    report_id = _sg_report(client, school).json()["id"]
    resp = client.put(
        f"/api/sg-reports/{report_id}",
        json={"observations": "x"},
        headers=auth(school.sg_primaire),
    )
    assert resp.status_code == 403


def test_sg_lists_only_own_reports(client: TestClient, school: School) -> None:
    _sg_report(client, school)
    assert len(client.get("/api/sg-reports", headers=auth(school.sg_college)).json()) == 1
    assert client.get("/api/sg-reports", headers=auth(school.sg_primaire)).json() == []
    assert len(client.get("/api/sg-reports", headers=auth(school.founder)).json()) == 1


def test_founder_validates_and_sg_is_notified(client: TestClient, school: School) -> None:
    report_id = _sg_report(client, school).json()["id"]
    resp = client.put(
        f"/api/sg-reports/{report_id}/validate",
        json={"sessionValidated": False, "validationNotes": "Horaires incohérents"},
        headers=auth(school.founder),
    )
    assert resp.status_code == 200
    assert resp.json()["sessionValidated"] is False
    assert resp.json()["validationNotes"] == "Horaires incohérents"

    notes = store.notifications.list_for_user(school.sg_college.id)
    assert notes[0].title == "Report rejected"
    assert "Horaires incohérents" in notes[0].message


def test_sg_cannot_validate(client: TestClient, school: School) -> None:
    report_id = _sg_report(client, school).json()["id"]
    resp = client.put(
        f"/api/sg-reports/{report_id}/validate",
        json={"sessionValidated": True},
        headers=auth(school.sg_college),
    )
    assert resp.status_code == 403
