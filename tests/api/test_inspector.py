"""Inspector views are limited to their subjects; they validate and reopen."""

from __future__ import annotations

from fastapi.testclient import TestClient

from edutrack.repos.store import store
from tests.conftest import NEXT_YEAR, School, auth, complete


def test_teachers_limited_to_subject(client: TestClient, school: School) -> None:
    resp = client.get("/api/inspector/teachers", headers=auth(school.inspector))
    assert resp.status_code == 200
    rows = resp.json()
    assert [t["id"] for t in rows] == [school.teacher.id]
    assert [a["subject"]["code"] for a in rows[0]["assignments"]] == ["MATH"]


def test_progressions_limited_to_subject(client: TestClient, school: School) -> None:
    row = complete(client, school)
    mine = client.get("/api/inspector/progressions", headers=auth(school.inspector)).json()
    assert [p["id"] for p in mine] == [row["id"]]
    theirs = client.get(
        "/api/inspector/progressions", headers=auth(school.french_inspector)
    ).json()
    assert theirs == []


def test_teacher_progressions_outside_subject_is_403(
    client: TestClient, school: School
) -> None:
    resp = client.get(
        f"/api/inspector/teacher/{school.teacher.id}/progressions",
        headers=auth(school.french_inspector),
    )
    assert resp.status_code == 403


def test_teacher_class_progressions_filter_by_class(client: TestClient, school: School) -> None:
    row = complete(client, school)
    base = f"/api/inspector/teacher/{school.teacher.id}"
    in_class = client.get(
        f"{base}/class/{school.class_6a.id}/progressions", headers=auth(school.inspector)
    ).json()
    assert [p["id"] for p in in_class] == [row["id"]]
    other_class = client.get(
        f"{base}/class/{school.class_6b.id}/progressions", headers=auth(school.inspector)
    ).json()
    assert other_class == []


def test_validate_sets_validator_and_notifies_teacher(client: TestClient, school: School) -> None:
    row = complete(client, school)
    resp = client.post(
        f"/api/inspector/progressions/{row['id']}/validate", headers=auth(school.inspector)
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "validated"
    assert body["validatedBy"] == school.inspector.id
    assert body["validatedAt"] is not None

    notes = client.get("/api/notifications", headers=auth(school.teacher)).json()
    assert [n["type"] for n in notes] == ["validation"]


def test_validate_twice_is_409(client: TestClient, school: School) -> None:
    row = complete(client, school)
    url = f"/api/inspector/progressions/{row['id']}/validate"
    assert client.post(url, headers=auth(school.inspector)).status_code == 200
    assert client.post(url, headers=auth(school.inspector)).status_code == 409


def test_validate_planned_row_is_409(client: TestClient, school: School) -> None:
    planned = client.post(
        "/api/teacher/lessons/plan",
        json={"lessonId": school.soon_lesson.id, "classId": school.class_6a.id},
        headers=auth(school.teacher),
    ).json()
    resp = client.post(
        f"/api/inspector/progressions/{planned['id']}/validate", headers=auth(school.inspector)
    )
    assert resp.status_code == 409
    assert store.progressions.get(planned["id"]).status == "planned"


def test_validate_outside_subject_is_403(client: TestClient, school: School) -> None:
    row = complete(client, school)
    resp = client.post(
        f"/api/inspector/progressions/{row['id']}/validate",
        headers=auth(school.french_inspector),
    )
    assert resp.status_code == 403
    assert store.progressions.get(row["id"]).status == "completed"


def test_validate_unknown_progression_is_404(client: TestClient, school: School) -> None:
    resp = client.post("/api/inspector/progressions/999/validate", headers=auth(school.inspector))
    assert resp.status_code == 404


def test_reopen_returns_row_to_completed(client: TestClient, school: School) -> None:
    row = complete(client, school)
    client.post(f"/api/inspector/progressions/{row['id']}/validate", headers=auth(school.inspector))

    resp = client.post(
        f"/api/inspector/progressions/{row['id']}/reopen", headers=auth(school.inspector)
    )
    assert resp.status_code == 200
    assert resp.json()["status"] == "completed"
    assert resp.json()["validatedBy"] is None

    # The teacher may amend it again.
    amended = complete(client, school, actualDurationMinutes=45)
    assert amended["id"] == row["id"]
    assert amended["reliquat"] == "+0h10"


def test_reopen_completed_row_is_409(client: TestClient, school: School) -> None:
    row = complete(client, school)
    resp = client.post(
        f"/api/inspector/progressions/{row['id']}/reopen", headers=auth(school.inspector)
    )
    assert resp.status_code == 409


def test_stats_for_subject(client: TestClient, school: School) -> None:
    row = complete(client, school)
    client.post(f"/api/inspector/progressions/{row['id']}/validate", headers=auth(school.inspector))
    stats = client.get("/api/inspector/stats", headers=auth(school.inspector)).json()
    assert stats["totalLessons"] == 1
    assert stats["completedLessons"] == 1
    assert stats["validatedLessons"] == 1


def test_other_year_shows_nothing(client: TestClient, school: School) -> None:
    complete(client, school)
    resp = client.get(
        "/api/inspector/progressions",
        params={"academicYear": NEXT_YEAR},
        headers=auth(school.inspector),
    )
    assert resp.status_code == 200
    assert resp.json() == []
    teachers = client.get(
        "/api/inspector/teachers",
        params={"academicYear": NEXT_YEAR},
        headers=auth(school.inspector),
    ).json()
    assert teachers == []


def test_validate_from_another_year_is_400(client: TestClient, school: School) -> None:
    row = complete(client, school)
    # Same subject next year: the row is still not theirs to act on from there.
    store.assignments.add_inspector(school.inspector.id, school.math.id, NEXT_YEAR)
    headers = auth(school.inspector)
    params = {"academicYear": NEXT_YEAR}

    listed = client.get("/api/inspector/progressions", params=params, headers=headers)
    assert listed.json() == []

    resp = client.post(
        f"/api/inspector/progressions/{row['id']}/validate", params=params, headers=headers
    )
    assert resp.status_code == 400
    assert store.progressions.get(row["id"]).status == "completed"


def test_reopen_from_another_year_is_400(client: TestClient, school: School) -> None:
    row = complete(client, school)
    client.post(f"/api/inspector/progressions/{row['id']}/validate", headers=auth(school.inspector))
    store.assignments.add_inspector(school.inspector.id, school.math.id, NEXT_YEAR)

    resp = client.post(
        f"/api/inspector/progressions/{row['id']}/reopen",
        params={"academicYear": NEXT_YEAR},
        headers=auth(school.inspector),
    )
    assert resp.status_code == 400
    assert store.progressions.get(row["id"]).status == "validated"
