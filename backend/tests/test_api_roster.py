from __future__ import annotations


def test_subjects_crud(client, admin_headers):
    created = client.post(
        "/api/subjects/",
        json={"name": " Geography ", "subject_code": "  ", "is_compulsory": False},
        headers=admin_headers,
    )
    assert created.status_code == 200
    body = created.json()
    assert body["name"] == "Geography"
    assert body["subject_code"] is None

    listed = client.get("/api/subjects/", headers=admin_headers).json()
    assert [s["name"] for s in listed] == ["Geography"]

    assert client.delete(f"/api/subjects/{body['id']}", headers=admin_headers).status_code == 200
    assert client.delete(f"/api/subjects/{body['id']}", headers=admin_headers).status_code == 404


def test_create_teacher_with_qualifications(client, school, admin_headers):
    resp = client.post(
        "/api/teachers/",
        json={
            "first_name": "Dan",
            "last_name": "Abbott",
            "subject_ids": [school.science, school.math, school.science],
        },
        headers=admin_headers,
    )
    assert resp.status_code == 200, resp.text
    teacher = resp.json()
    assert teacher["subject_ids"] == [school.science, school.math]

    eligibility = client.get("/api/timetables/eligibility", headers=admin_headers).json()
    # Abbott sorts before Adams.
    assert [t["teacher_id"] for t in eligibility[school.math]] == [teacher["id"], school.t1, school.t2]


def test_create_teacher_with_unknown_subject(client, admin_headers):
    resp = client.post(
        "/api/teachers/",
        json={"first_name": "Eve", "last_name": "Evans", "subject_ids": ["00000000-0000-0000-0000-000000000001"]},
        headers=admin_headers,
    )
    assert resp.status_code == 404
    assert resp.json()["detail"]["code"] == "SUBJECT_NOT_FOUND"


def test_replace_teacher_subjects(client, school, admin_headers):
    resp = client.put(
        f"/api/teachers/{school.t3}/subjects",
        json={"subject_ids": [school.english]},
        headers=admin_headers,
    )
    assert resp.status_code == 200
    assert resp.json()["subject_ids"] == [school.english]

    eligibility = client.get("/api/timetables/eligibility", headers=admin_headers).json()
    assert school.science not in eligibility
    assert [t["teacher_id"] for t in eligibility[school.english]] == [school.t1, school.t3]


def test_list_teachers_sorted_by_surname(client, school, student_headers):
    teachers = client.get("/api/teachers/", headers=student_headers).json()
    assert [t["last_name"] for t in teachers] == ["Adams", "Brown", "Carter"]
    assert sorted(teachers[0]["subject_ids"]) == sorted([school.math, school.english])


def test_students_cannot_edit_roster(client, student_headers):
    resp = client.post("/api/subjects/", json={"name": "Art"}, headers=student_headers)
    assert resp.status_code == 403


def test_classes(client, admin_headers):
    resp = client.post(
        "/api/classes/",
        json={"name": "B", "grade_name": "Grade 11", "academic_year": 2026},
        headers=admin_headers,
    )
    assert resp.status_code == 200
    assert resp.json()["display_name"] == "Grade 11 B"

    assert len(client.get("/api/classes/", params={"academic_year": 2026}, headers=admin_headers).json()) == 1
    assert client.get("/api/classes/", params={"academic_year": 2025}, headers=admin_headers).json() == []


def test_delete_teacher(client, school, admin_headers):
    assert client.delete(f"/api/teachers/{school.t2}", headers=admin_headers).status_code == 200
    eligibility = client.get("/api/timetables/eligibility", headers=admin_headers).json()
    assert [t["teacher_id"] for t in eligibility[school.math]] == [school.t1]


def test_health_and_dev_token(client):
    assert client.get("/health").json() == {"app": "ok", "database": "ok"}

    token = client.post("/api/dev/token", params={"role": "teacher"}).json()["access_token"]
    headers = {"Authorization": f"Bearer {token}"}
    assert client.get("/api/subjects/", headers=headers).status_code == 200
    assert client.post("/api/subjects/", json={"name": "Art"}, headers=headers).status_code == 403
    assert client.post("/api/dev/token", params={"role": "janitor"}).status_code == 422
