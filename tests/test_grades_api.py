import pytest

from conftest import auth, make_course, make_user

from portal.models.notification import Notification
from portal.routers import grades

FULL = [
    {"name": "midterm", "weight": 30, "score": 80},
    {"name": "final", "weight": 50, "score": 90},
    {"name": "assignment", "weight": 20, "score": 18, "max_score": 20},
]


@pytest.fixture
def course(db, semester, instructor):
    return make_course(db, semester, "CS101", credits=4, instructor=instructor)


def grade_body(student, course, semester, components=FULL, **extra):
    return {
        "student_id": student.id,
        "course_id": course.id,
        "semester_id": semester.id,
        "components": components,
        **extra,
    }


def test_create_grade(client, student, instructor, course, semester):
    r = client.post("/grades", json=grade_body(student, course, semester), headers=auth(instructor))
    assert r.status_code == 201, r.text
    g = r.json()
    assert g["total_score"] == 87.0
    assert (g["grade"], g["grade_point"]) == ("A", 9)
    assert g["status"] == "graded"
    assert g["graded_by"] == instructor.id
    assert [c["name"] for c in g["components"]] == ["midterm", "final", "assignment"]


def test_duplicate_grade(client, student, instructor, course, semester):
    client.post("/grades", json=grade_body(student, course, semester), headers=auth(instructor))
    r = client.post("/grades", json=grade_body(student, course, semester), headers=auth(instructor))
    assert r.status_code == 409
    assert r.json()["detail"]["kind"] == "conflict"


def test_component_validation(client, student, instructor, course, semester):
    bad = [{"name": "midterm", "weight": 30, "score": 120}]
    r = client.post("/grades", json=grade_body(student, course, semester, bad), headers=auth(instructor))
    assert r.status_code == 422

    twice = [{"name": "quiz", "weight": 10, "score": 5}, {"name": "quiz", "weight": 10, "score": 6}]
    r = client.post("/grades", json=grade_body(student, course, semester, twice), headers=auth(instructor))
    assert r.status_code == 422


def test_grading_needs_a_real_student(client, instructor, course, semester):
    r = client.post("/grades", json=grade_body(instructor, course, semester), headers=auth(instructor))
    assert r.status_code == 404
    assert r.json()["detail"]["message"] == "Student not found"


def test_instructor_grades_own_course_only(client, db, student, course, semester):
    stranger = make_user(db, "visiting", role="instructor")
    r = client.post("/grades", json=grade_body(student, course, semester), headers=auth(stranger))
    assert r.status_code == 403


def test_students_cannot_grade(client, student, course, semester):
    r = client.post("/grades", json=grade_body(student, course, semester), headers=auth(student))
    assert r.status_code == 403


def test_record_components_one_by_one(client, student, instructor, course, semester):
    def record(component):
        return client.put(
            "/grades/record",
            json={"student_id": student.id, "course_id": course.id, "semester_id": semester.id, "component": component},
            headers=auth(instructor),
        )

    r = record({"name": "midterm", "weight": 30, "score": 80})
    assert r.status_code == 200, r.text
    assert r.json()["total_score"] == 24.0
    assert r.json()["status"] == "graded"

    r = record({"name": "final", "weight": 70, "score": None})
    assert r.json()["status"] == "incomplete"
    assert r.json()["total_score"] == 24.0

    r = record({"name": "final", "weight": 70, "score": 100})
    g = r.json()
    assert g["total_score"] == 94.0
    assert g["grade"] == "A+"
    assert g["status"] == "graded"
    assert len(g["components"]) == 2


def test_update_merges_components(client, student, instructor, course, semester):
    g = client.post("/grades", json=grade_body(student, course, semester), headers=auth(instructor)).json()

    r = client.put(
        f"/grades/{g['id']}",
        json={"components": [{"name": "final", "weight": 50, "score": 50}], "remarks": "re-marked"},
        headers=auth(instructor),
    )
    assert r.status_code == 200
    # 24 + 25 + 18
    assert r.json()["total_score"] == 67.0
    assert r.json()["grade"] == "B-"
    assert r.json()["remarks"] == "re-marked"
    assert len(r.json()["components"]) == 3


def test_publish(client, db, student, instructor, course, semester):
    partial = [{"name": "midterm", "weight": 30, "score": 80}, {"name": "final", "weight": 70}]
    g = client.post("/grades", json=grade_body(student, course, semester, partial), headers=auth(instructor)).json()
    assert g["status"] == "incomplete"

    r = client.post(f"/grades/{g['id']}/publish", headers=auth(instructor))
    assert r.status_code == 400
    assert r.json()["detail"]["kind"] == "state"

    client.put(
        f"/grades/{g['id']}",
        json={"components": [{"name": "final", "weight": 70, "score": 60}]},
        headers=auth(instructor),
    )
    r = client.post(f"/grades/{g['id']}/publish", headers=auth(instructor))
    assert r.status_code == 200
    assert r.json()["status"] == "published"

    note = db.query(Notification).filter(Notification.user_id == student.id).one()
    assert note.category == "grade"

    # stays published after a correction
    r = client.put(
        f"/grades/{g['id']}",
        json={"components": [{"name": "final", "weight": 70, "score": 70}]},
        headers=auth(instructor),
    )
    assert r.json()["status"] == "published"


def test_gpa_uses_finished_grades_only(client, db, student, instructor, admin, semester):
    a = make_course(db, semester, "CS101", credits=4)
    b = make_course(db, semester, "CS102", credits=3)
    c = make_course(db, semester, "CS103", credits=3)

    client.post("/grades", json=grade_body(student, a, semester, [{"name": "final", "weight": 100, "score": 95}]), headers=auth(admin))
    client.post("/grades", json=grade_body(student, b, semester, [{"name": "final", "weight": 100, "score": 75}]), headers=auth(admin))
    client.post(
        "/grades",
        json=grade_body(student, c, semester, [{"name": "midterm", "weight": 40, "score": 10}, {"name": "final", "weight": 60}]),
        headers=auth(admin),
    )

    r = client.get("/grades/me", params={"semester_id": semester.id}, headers=auth(student))
    assert r.status_code == 200
    body = r.json()
    assert body["total_grades"] == 3
    # (10 * 4 + 7 * 3) / 7
    assert body["sgpa"] == 8.71
    assert body["cgpa"] == 8.71
    assert body["semesters"] == {str(semester.id): {"sgpa": 8.71, "credits": 7.0}}


def test_students_see_only_their_own_grades(client, student, other_student, instructor, course, semester):
    g = client.post("/grades", json=grade_body(student, course, semester), headers=auth(instructor)).json()

    assert client.get(f"/grades/student/{student.id}", headers=auth(other_student)).status_code == 403
    assert client.get(f"/grades/{g['id']}", headers=auth(other_student)).status_code == 404
    assert client.get(f"/grades/{g['id']}", headers=auth(student)).status_code == 200
    assert client.get(f"/grades/student/{student.id}", headers=auth(instructor)).status_code == 200


def test_bulk_upsert(client, student, other_student, instructor, course, semester):
    r = client.post(
        "/grades/bulk",
        json={"grades": [
            grade_body(student, course, semester),
            grade_body(other_student, course, semester, [{"name": "final", "weight": 100, "score": 120}]),
        ]},
        headers=auth(instructor),
    )
    assert r.status_code == 200
    body = r.json()
    assert (body["created"], body["updated"], body["failed"]) == (1, 0, 1)

    r = client.post(
        "/grades/bulk",
        json={"grades": [grade_body(student, course, semester, [{"name": "final", "weight": 100, "score": 100}])]},
        headers=auth(instructor),
    )
    body = r.json()
    assert body["updated"] == 1
    g = body["results"][0]["grade"]
    assert [c["name"] for c in g["components"]] == ["final"]
    assert g["total_score"] == 100.0


def test_course_stats(client, student, other_student, instructor, course, semester):
    client.post("/grades", json=grade_body(student, course, semester), headers=auth(instructor))
    client.post(
        "/grades",
        json=grade_body(other_student, course, semester, [{"name": "final", "weight": 100, "score": 60}]),
        headers=auth(instructor),
    )

    r = client.get(f"/grades/course/{course.id}", headers=auth(instructor))
    assert r.status_code == 200
    stats = r.json()["stats"]
    assert stats["total_students"] == 2
    assert stats["average_score"] == 73.5
    assert (stats["highest_score"], stats["lowest_score"]) == (87.0, 60.0)
    assert stats["grade_distribution"] == {"A": 1, "C+": 1}


def test_delete_grade_is_admin_only(client, student, instructor, admin, course, semester):
    g = client.post("/grades", json=grade_body(student, course, semester), headers=auth(instructor)).json()
    assert client.delete(f"/grades/{g['id']}", headers=auth(instructor)).status_code == 403
    assert client.delete(f"/grades/{g['id']}", headers=auth(admin)).status_code == 200
    assert client.get(f"/grades/{g['id']}", headers=auth(admin)).status_code == 404


def test_record_losing_a_first_insert_race(client, student, instructor, course, semester, monkeypatch):
    client.post("/grades", json=grade_body(student, course, semester), headers=auth(instructor))
    # the existing row is invisible to this request, as it would be to a parallel one
    monkeypatch.setattr(grades, "_find", lambda *args: None)

    r = client.put(
        "/grades/record",
        json={
            "student_id": student.id,
            "course_id": course.id,
            "semester_id": semester.id,
            "component": {"name": "quiz", "weight": 10, "score": 8},
        },
        headers=auth(instructor),
    )
    assert r.status_code == 409
    assert r.json()["detail"]["kind"] == "conflict"
