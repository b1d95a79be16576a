"""Teacher flow: assignments, lesson listing, planning and completion."""

from __future__ import annotations

from fastapi.testclient import TestClient

from edutrack.repos.store import store
from tests.conftest import NEXT_YEAR, YEAR, School, auth, complete, today


def test_assignments_list_class_and_subject(client: TestClient, school: School) -> None:
    resp = client.get("/api/teacher/assignments", headers=auth(school.teacher))
    assert resp.status_code == 200
    rows = resp.json()
    assert len(rows) == 1
    assert rows[0]["classId"] == school.class_6a.id
    assert rows[0]["className"] == "6A"
    assert rows[0]["subject"]["code"] == "MATH"
    assert rows[0]["level"]["category"] == "college"
    assert rows[0]["academicYear"] == YEAR


def test_assignments_are_year_scoped(client: TestClient, school: School) -> None:
    resp = client.get(
        "/api/teacher/assignments",
        params={"academicYear": NEXT_YEAR},
        headers=auth(school.teacher),
    )
    assert resp.status_code == 200
    assert resp.json() == []


def test_invalid_academic_year_is_400(client: TestClient, school: School) -> None:
    resp = client.get(
        "/api/teacher/assignments",
        params={"academicYear": "2024-2026"},
        headers=auth(school.teacher),
    )
    assert resp.status_code == 400


def test_lessons_ordered_with_derived_status(client: TestClient, school: School) -> None:
    resp = client.get(
        "/api/teacher/lessons",
        params={"classId": school.class_6a.id, "subjectId": school.math.id},
        headers=auth(school.teacher),
    )
    assert resp.status_code == 200
    rows = resp.json()
    assert [r["title"] for r in rows] == ["Les nombres", "Les fractions", "Les décimaux"]
    # Past planned date and no progression row: delayed.
    assert rows[0]["effectiveStatus"] == "delayed"
    assert rows[0]["progression"] is None
    assert rows[1]["effectiveStatus"] == "planned"
    assert rows[0]["trimester"] == 1
    assert rows[0]["plannedDuration"] == "0h55"


def test_lessons_for_unassigned_pair_is_403(client: TestClient, school: School) -> None:
    resp = client.get(
        "/api/teacher/lessons",
        params={"classId": school.class_6b.id, "subjectId": school.math.id},
        headers=auth(school.teacher),
    )
    assert resp.status_code == 403


def test_lessons_unknown_class_is_404(client: TestClient, school: School) -> None:
    resp = client.get(
        "/api/teacher/lessons",
        params={"classId": 999, "subjectId": school.math.id},
        headers=auth(school.teacher),
    )
    assert resp.status_code == 404


def test_plan_is_idempotent(client: TestClient, school: School) -> None:
    body = {"lessonId": school.soon_lesson.id, "classId": school.class_6a.id}
    first = client.post("/api/teacher/lessons/plan", json=body, headers=auth(school.teacher))
    second = client.post("/api/teacher/lessons/plan", json=body, headers=auth(school.teacher))
    assert first.status_code == 200
    assert second.status_code == 200
    assert first.json()["id"] == second.json()["id"]
    assert first.json()["status"] == "planned"
    assert len(store.progressions.list_all()) == 1


def test_plan_for_unassigned_class_is_403(client: TestClient, school: School) -> None:
    resp = client.post(
        "/api/teacher/lessons/plan",
        json={"lessonId": school.soon_lesson.id, "classId": school.class_6b.id},
        headers=auth(school.teacher),
    )
    assert resp.status_code == 403
    assert store.progressions.list_all() == []


def test_complete_creates_row_with_reliquat(client: TestClient, school: School) -> None:
    body = complete(client, school, chapterElementIds=[school.element.id], notes="ok")
    assert body["status"] == "completed"
    assert body["effectiveStatus"] == "completed"
    assert body["actualDurationMinutes"] == 50
    assert body["actualDuration"] == "0h50"
    assert body["plannedDuration"] == "0h55"
    assert body["reliquat"] == "+0h05"
    assert body["chapterElementIds"] == [school.element.id]
    assert body["lessonTitle"] == "Les nombres"
    assert body["className"] == "6A"
    assert body["teacherName"] == "Alice Martin"


def test_complete_upserts_planned_row(client: TestClient, school: School) -> None:
    planned = client.post(
        "/api/teacher/lessons/plan",
        json={"lessonId": school.past_lesson.id, "classId": school.class_6a.id},
        headers=auth(school.teacher),
    ).json()
    completed = complete(client, school, actualDurationMinutes=70)
    assert completed["id"] == planned["id"]
    assert completed["reliquat"] == "-0h15"
    assert len(store.progressions.list_all()) == 1


def test_complete_notifies_subject_inspector(client: TestClient, school: School) -> None:
    complete(client, school)
    resp = client.get("/api/notifications", headers=auth(school.inspector))
    kinds = [n["type"] for n in resp.json()]
    assert kinds == ["progression_completed"]
    other = client.get("/api/notifications", headers=auth(school.french_inspector))
    assert other.json() == []


def test_complete_rejects_foreign_chapter_element(client: TestClient, school: School) -> None:
    foreign = store.curriculum.add_element(chapter_id=school.french_chapter.id, title="Voyelles")
    resp = client.post(
        "/api/teacher/lessons/complete",
        json={
            "lessonId": school.past_lesson.id,
            "classId": school.class_6a.id,
            "actualDate": today().isoformat(),
            "actualDurationMinutes": 50,
            "chapterElementIds": [foreign.id],
        },
        headers=auth(school.teacher),
    )
    assert resp.status_code == 400
    assert store.progressions.list_all() == []


def test_complete_rejects_non_positive_duration(client: TestClient, school: School) -> None:
    resp = client.post(
        "/api/teacher/lessons/complete",
        json={
            "lessonId": school.past_lesson.id,
            "classId": school.class_6a.id,
            "actualDate": today().isoformat(),
            "actualDurationMinutes": 0,
        },
        headers=auth(school.teacher),
    )
    assert resp.status_code == 400
    assert any("actualDurationMinutes" in d for d in resp.json()["details"])


def test_complete_after_validation_is_409(client: TestClient, school: School) -> None:
    row = complete(client, school)
    resp = client.post(
        f"/api/inspector/progressions/{row['id']}/validate", headers=auth(school.inspector)
    )
    assert resp.status_code == 200

    resp = client.post(
        "/api/teacher/lessons/complete",
        json={
            "lessonId": school.past_lesson.id,
            "classId": school.class_6a.id,
            "actualDate": today().isoformat(),
            "actualDurationMinutes": 40,
        },
        headers=auth(school.teacher),
    )
    assert resp.status_code == 409
    assert store.progressions.get(row["id"]).status == "validated"


def test_stats_count_own_rows(client: TestClient, school: School) -> None:
    complete(client, school)
    client.post(
        "/api/teacher/lessons/plan",
        json={"lessonId": school.soon_lesson.id, "classId": school.class_6a.id},
        headers=auth(school.teacher),
    )
    stats = client.get("/api/teacher/stats", headers=auth(school.teacher)).json()
    assert stats["totalLessons"] == 2
    assert stats["completedLessons"] == 1
    assert stats["validatedLessons"] == 0
    assert stats["delayedLessons"] == 0
    assert stats["completedLessons"] <= stats["totalLessons"]


def test_chapter_elements_listing(client: TestClient, school: School) -> None:
    resp = client.get(
        f"/api/teacher/chapter-elements/{school.chapter.id}", headers=auth(school.teacher)
    )
    assert resp.status_code == 200
    assert [e["title"] for e in resp.json()] == ["Addition"]
