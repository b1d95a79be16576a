"""Admin CRUD, reference guards and the audit log."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from edutrack.repos.store import store
from tests.conftest import NEXT_YEAR, YEAR, School, auth, complete, now


def _actions() -> list[str]:
    return [a.action for a in store.notifications.list_audit()]


# ---- users ----


def test_create_teacher_with_assignments(client: TestClient, school: School) -> None:
    resp = client.post(
        "/api/admin/users",
        json={
            "username": "claire",
            "password": "long-enough",
            "role": "teacher",
            "firstName": "Claire",
            "lastName": "Dubois",
            "hourlyRate": 25,
            "subjectId": school.math.id,
            "classIds": [school.class_6b.id, school.class_6b.id],
        },
        headers=auth(school.admin),
    )
    assert resp.status_code == 201
    user_id = resp.json()["id"]
    rows = store.assignments.teacher_assignments(teacher_id=user_id, academic_year=YEAR)
    assert [(a.class_id, a.subject_id) for a in rows] == [(school.class_6b.id, school.math.id)]
    assert _actions()[0] == "create_user"


def test_create_teacher_without_class_is_400(client: TestClient, school: School) -> None:
    resp = client.post(
        "/api/admin/users",
        json={
            "username": "claire",
            "password": "long-enough",
            "role": "teacher",
            "firstName": "Claire",
            "lastName": "Dubois",
            "subjectId": school.math.id,
        },
        headers=auth(school.admin),
    )
    assert resp.status_code == 400
    assert store.users.get_by_username("claire") is None


def test_create_user_with_unknown_class_rolls_back(client: TestClient, school: School) -> None:
    resp = client.post(
        "/api/admin/users",
        json={
            "username": "claire",
            "password": "long-enough",
            "role": "teacher",
            "firstName": "Claire",
            "lastName": "Dubois",
            "subjectId": school.math.id,
            "classIds": [school.class_6b.id, 999],
        },
        headers=auth(school.admin),
    )
    assert resp.status_code == 404
    assert store.users.get_by_username("claire") is None
    assert store.assignments.teacher_assignments(class_id=school.class_6b.id) == []


def test_create_sg_needs_cycle(client: TestClient, school: School) -> None:
    body = {
        "username": "surv",
        "password": "long-enough",
        "role": "sg",
        "firstName": "S",
        "lastName": "G",
    }
    assert client.post("/api/admin/users", json=body, headers=auth(school.admin)).status_code == 400
    body["cycle"] = "lycee"
    resp = client.post("/api/admin/users", json=body, headers=auth(school.admin))
    assert resp.status_code == 201
    rows = store.assignments.sg_assignments(sg_id=resp.json()["id"])
    assert [a.cycle for a in rows] == ["lycee"]


def test_create_duplicate_username_is_409(client: TestClient, school: School) -> None:
    resp = client.post(
        "/api/admin/users",
        json={
            "username": "founder",
            "password": "long-enough",
            "role": "founder",
            "firstName": "F",
            "lastName": "Two",
        },
        headers=auth(school.admin),
    )
    assert resp.status_code == 409


def test_update_user_role_is_rejected(client: TestClient, school: School) -> None:
    resp = client.put(
        f"/api/admin/users/{school.teacher.id}",
        json={"role": "admin"},
        headers=auth(school.admin),
    )
    assert resp.status_code == 400
    assert store.users.get_by_id(school.teacher.id).role == "teacher"


def test_update_user_profile(client: TestClient, school: School) -> None:
    resp = client.put(
        f"/api/admin/users/{school.teacher.id}",
        json={"firstName": "Alicia", "isActive": False},
        headers=auth(school.admin),
    )
    assert resp.status_code == 200
    assert resp.json()["firstName"] == "Alicia"
    assert resp.json()["isActive"] is False
    # Deactivated users lose access immediately.
    assert client.get("/api/auth/me", headers=auth(school.teacher)).status_code == 401


def test_delete_user_cascades(client: TestClient, school: School) -> None:
    complete(client, school)
    resp = client.delete(f"/api/admin/users/{school.teacher.id}", headers=auth(school.admin))
    assert resp.status_code == 200
    assert store.users.get_by_id(school.teacher.id) is None
    assert store.assignments.teacher_assignments(teacher_id=school.teacher.id) == []
    assert store.progressions.list_all() == []
    assert store.notifications.list_audit()[0].details["progressions"] == 1


def test_admin_cannot_delete_self(client: TestClient, school: School) -> None:
    resp = client.delete(f"/api/admin/users/{school.admin.id}", headers=auth(school.admin))
    assert resp.status_code == 400


def test_delete_unknown_user_is_404(client: TestClient, school: School) -> None:
    assert client.delete("/api/admin/users/999", headers=auth(school.admin)).status_code == 404


# ---- reference data ----


def test_subject_crud_and_duplicate_code(client: TestClient, school: School) -> None:
    headers = auth(school.admin)
    resp = client.post("/api/admin/subjects", json={"name": "SVT", "code": "SVT"}, headers=headers)
    assert resp.status_code == 201
    subject_id = resp.json()["id"]
    dup = client.post("/api/admin/subjects", json={"name": "Bio", "code": "SVT"}, headers=headers)
    assert dup.status_code == 409

    resp = client.put(
        f"/api/admin/subjects/{subject_id}", json={"name": "Sciences"}, headers=headers
    )
    assert resp.json()["name"] == "Sciences"
    assert resp.json()["code"] == "SVT"

    resp = client.delete(f"/api/admin/subjects/{subject_id}", headers=headers)
    assert resp.status_code == 200
    assert resp.json() == {"message": "subject Sciences deleted"}


@pytest.mark.parametrize("kind", ["subjects", "levels", "classes", "lessons", "users"])
def test_update_unknown_row_is_404(client: TestClient, school: School, kind: str) -> None:
    resp = client.put(f"/api/admin/{kind}/999", json={"name": "x"}, headers=auth(school.admin))
    assert resp.status_code == 404, resp.text
    assert store.notifications.list_audit() == []


def test_delete_level_in_use_is_400(client: TestClient, school: School) -> None:
    resp = client.delete(f"/api/admin/levels/{school.sixth.id}", headers=auth(school.admin))
    assert resp.status_code == 400
    assert "still used by" in resp.json()["message"]
    assert store.curriculum.get_level(school.sixth.id) is not None


def test_delete_subject_in_use_is_400(client: TestClient, school: School) -> None:
    resp = client.delete(f"/api/admin/subjects/{school.math.id}", headers=auth(school.admin))
    assert resp.status_code == 400


def test_level_category_must_be_a_cycle(client: TestClient, school: School) -> None:
    resp = client.post(
        "/api/admin/levels",
        json={"name": "Master", "code": "M1", "category": "universite"},
        headers=auth(school.admin),
    )
    assert resp.status_code == 400


def test_create_class_defaults_to_selected_year(client: TestClient, school: School) -> None:
    headers = auth(school.admin)
    resp = client.post(
        "/api/admin/classes",
        json={"name": "6C", "levelId": school.sixth.id, "capacity": 30, "projector": True},
        headers=headers,
    )
    assert resp.status_code == 201
    assert resp.json()["academicYear"] == YEAR
    assert resp.json()["projector"] is True

    resp = client.post(
        "/api/admin/classes",
        json={"name": "6C", "levelId": school.sixth.id},
        params={"academicYear": NEXT_YEAR},
        headers=headers,
    )
    assert resp.status_code == 201
    assert resp.json()["academicYear"] == NEXT_YEAR

    listed = client.get(
        "/api/admin/classes", params={"academicYear": NEXT_YEAR}, headers=headers
    ).json()
    assert [c["name"] for c in listed] == ["6C"]


def test_duplicate_class_in_year_is_409(client: TestClient, school: School) -> None:
    resp = client.post(
        "/api/admin/classes",
        json={"name": "6A", "levelId": school.sixth.id},
        headers=auth(school.admin),
    )
    assert resp.status_code == 409


def test_class_capacity_bounds(client: TestClient, school: School) -> None:
    resp = client.post(
        "/api/admin/classes",
        json={"name": "6Z", "levelId": school.sixth.id, "capacity": 101},
        headers=auth(school.admin),
    )
    assert resp.status_code == 400


def test_delete_class_with_assignments_is_400(client: TestClient, school: School) -> None:
    resp = client.delete(f"/api/admin/classes/{school.class_6a.id}", headers=auth(school.admin))
    assert resp.status_code == 400
    resp = client.delete(f"/api/admin/classes/{school.class_6b.id}", headers=auth(school.admin))
    assert resp.status_code == 200


# ---- lessons and chapters ----


def test_create_lesson_creates_chapter_by_name(client: TestClient, school: School) -> None:
    resp = client.post(
        "/api/admin/lessons",
        json={
            "title": "Les angles",
            "chapterName": "Géométrie",
            "subjectId": school.math.id,
            "levelId": school.sixth.id,
        },
        headers=auth(school.admin),
    )
    assert resp.status_code == 201
    body = resp.json()
    assert body["chapterName"] == "Géométrie"
    assert body["plannedDurationMinutes"] == 55
    assert body["academicYear"] == YEAR
    assert _actions()[:2] == ["create_lesson", "create_chapter"]

    chapters = client.get("/api/admin/chapters", headers=auth(school.admin)).json()
    assert "Géométrie" in {c["name"] for c in chapters}


def test_create_lesson_without_chapter_is_400(client: TestClient, school: School) -> None:
    resp = client.post(
        "/api/admin/lessons", json={"title": "Orpheline"}, headers=auth(school.admin)
    )
    assert resp.status_code == 400


def test_delete_lesson_with_progression_is_400(client: TestClient, school: School) -> None:
    complete(client, school)
    headers = auth(school.admin)
    assert client.delete(f"/api/admin/lessons/{school.past_lesson.id}", headers=headers).status_code == 400
    assert client.delete(f"/api/admin/lessons/{school.later_lesson.id}", headers=headers).status_code == 200


def test_update_lesson(client: TestClient, school: School) -> None:
    resp = client.put(
        f"/api/admin/lessons/{school.later_lesson.id}",
        json={"plannedDurationMinutes": 110},
        headers=auth(school.admin),
    )
    assert resp.status_code == 200
    assert resp.json()["plannedDuration"] == "1h50"


def test_list_lessons_filters_by_year(client: TestClient, school: School) -> None:
    headers = auth(school.admin)
    assert len(client.get("/api/admin/lessons", headers=headers).json()) == 4
    other = client.get("/api/admin/lessons", params={"academicYear": NEXT_YEAR}, headers=headers)
    assert other.json() == []


def test_create_chapter_element(client: TestClient, school: School) -> None:
    resp = client.post(
        "/api/admin/chapter-elements",
        json={"chapterId": school.chapter.id, "title": "Soustraction", "orderIndex": 2},
        headers=auth(school.admin),
    )
    assert resp.status_code == 201
    assert resp.json()["estimatedDurationMinutes"] == 55
    missing = client.post(
        "/api/admin/chapter-elements",
        json={"chapterId": 999, "title": "x"},
        headers=auth(school.admin),
    )
    assert missing.status_code == 404


# ---- audit log ----


def test_logs_newest_first_with_paging(client: TestClient, school: School) -> None:
    headers = auth(school.admin)
    client.post("/api/admin/subjects", json={"name": "A", "code": "A"}, headers=headers)
    client.post("/api/admin/subjects", json={"name": "B", "code": "B"}, headers=headers)
    logs = client.get("/api/admin/logs", headers=headers).json()
    assert [entry["details"]["code"] for entry in logs] == ["B", "A"]
    assert logs[0]["userId"] == school.admin.id

    page = client.get("/api/admin/logs", params={"limit": 1, "offset": 1}, headers=headers).json()
    assert [entry["details"]["code"] for entry in page] == ["A"]


# ---- rows still referenced by reports ----


def _file_anomaly(client: TestClient, school: School, **refs) -> int:
    resp = client.post(
        "/api/anomaly-reports",
        json={
            "type": "content",
            "title": "Chapitre incomplet",
            "description": "Il manque des exercices pour cette leçon.",
            "recipients": ["inspecteur"],
            **refs,
        },
        headers=auth(school.teacher),
    )
    assert resp.status_code == 201, resp.text
    return resp.json()["id"]


def test_delete_lesson_named_in_anomaly_is_400(client: TestClient, school: School) -> None:
    report_id = _file_anomaly(client, school, lessonId=school.later_lesson.id)
    resp = client.delete(
        f"/api/admin/lessons/{school.later_lesson.id}", headers=auth(school.admin)
    )
    assert resp.status_code == 400
    assert "anomaly report" in resp.json()["message"]
    assert store.curriculum.get_lesson(store.reports.get_anomaly(report_id).lesson_id)


def test_delete_class_named_in_report_is_400(client: TestClient, school: School) -> None:
    headers = auth(school.admin)
    _file_anomaly(client, school, classId=school.class_6b.id)
    resp = client.delete(f"/api/admin/classes/{school.class_6b.id}", headers=headers)
    assert resp.status_code == 400
    assert "anomaly report" in resp.json()["message"]

    store.reports.add_sg_report(
        sg_id=school.sg_primaire.id,
        teacher_id=school.other_teacher.id,
        class_id=school.class_cp.id,
        created_at=now(),
        updated_at=now(),
    )
    store.assignments.delete_for_user(school.other_teacher.id)
    resp = client.delete(f"/api/admin/classes/{school.class_cp.id}", headers=headers)
    assert resp.status_code == 400
    assert "sg report" in resp.json()["message"]


def test_delete_subject_named_in_anomaly_is_400(client: TestClient, school: School) -> None:
    headers = auth(school.admin)
    subject_id = client.post(
        "/api/admin/subjects", json={"name": "Musique", "code": "MUS"}, headers=headers
    ).json()["id"]
    _file_anomaly(client, school, subjectId=subject_id)
    resp = client.delete(f"/api/admin/subjects/{subject_id}", headers=headers)
    assert resp.status_code == 400
    assert store.curriculum.get_subject(subject_id) is not None


def test_delete_teacher_detaches_surviving_sg_reports(client: TestClient, school: School) -> None:
    row = complete(client, school)
    report = store.reports.add_sg_report(
        sg_id=school.sg_primaire.id,
        teacher_id=school.other_teacher.id,
        class_id=school.class_cp.id,
        lesson_progression_id=row["id"],
        created_at=now(),
        updated_at=now(),
    )
    resp = client.delete(f"/api/admin/users/{school.teacher.id}", headers=auth(school.admin))
    assert resp.status_code == 200
    assert store.reports.get_sg_report(report.id).lesson_progression_id is None
    assert store.notifications.list_audit()[0].details["reportsDetached"] == 1
