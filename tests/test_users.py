from pymongo.errors import OperationFailure

from brizzle.users import user_service
from tests.conftest import PASSWORD, auth

# ==================== ACCOUNTS ====================

def test_first_teacher_created_without_session(client, seed):
    resp = client.post(
        "/users", json={"name": "Founder", "email": "Founder@School.io", "password": "longenough", "role": "TEACHER"}
    )

    assert resp.status_code == 200
    body = resp.json()
    assert body["email"] == "founder@school.io"
    assert body["role"] == "TEACHER"
    assert "password" not in body


def test_anonymous_create_refused_once_users_exist(client, teacher):
    resp = client.post("/users", json={"name": "Eve", "email": "eve@example.com", "password": "longenough"})
    assert resp.status_code == 401


def test_teacher_creates_student(client, seed, teacher):
    resp = client.post(
        "/users", json={"name": "Sam", "email": "sam@example.com", "password": "longenough"}, headers=auth(teacher)
    )

    assert resp.status_code == 200
    assert resp.json()["role"] == "STUDENT"
    assert resp.json()["user_id"].startswith("USR_")


def test_student_cannot_create_users(client, student):
    resp = client.post(
        "/users", json={"name": "Sam", "email": "sam2@example.com", "password": "longenough"}, headers=auth(student)
    )
    assert resp.status_code == 403


def test_duplicate_email(client, teacher, student):
    resp = client.post(
        "/users",
        json={"name": "Copy", "email": student["email"].upper(), "password": "longenough"},
        headers=auth(teacher),
    )
    assert resp.status_code == 400
    assert resp.json() == {"error": "Email already exists"}


def test_short_password(client, teacher):
    resp = client.post(
        "/users", json={"name": "Sam", "email": "s@example.com", "password": "123"}, headers=auth(teacher)
    )
    assert resp.status_code == 400


def test_list_users_by_role(client, teacher, student):
    resp = client.get("/users", params={"role": "STUDENT"}, headers=auth(teacher))

    assert resp.status_code == 200
    assert [u["user_id"] for u in resp.json()] == [student["user_id"]]


def test_update_email(client, seed, teacher, student):
    resp = client.patch(
        f"/users/{student['user_id']}/email", json={"email": " New@Example.com "}, headers=auth(teacher)
    )

    assert resp.status_code == 200
    assert resp.json()["email"] == "new@example.com"


def test_update_email_taken(client, seed, teacher, student):
    other = seed.student()
    resp = client.patch(
        f"/users/{student['user_id']}/email", json={"email": other["email"]}, headers=auth(teacher)
    )
    assert resp.status_code == 400

# ==================== STUDENT REMOVAL ====================

def populate(client, seed, teacher, student, enrollment):
    """Give the student one of every dependent row"""
    resource = seed.resource(teacher)
    assignment = client.post(
        "/assignments",
        json={"enrollmentId": enrollment["enrollment_id"], "resourceIds": [resource["resource_id"]]},
        headers=auth(teacher),
    ).json()[0]
    client.post(f"/progress/{assignment['assignment_id']}", json={"status": "COMPLETED"}, headers=auth(student))
    client.put(f"/course-notes/{enrollment['enrollment_id']}", json={"content": "Focus on listening"},
               headers=auth(teacher))
    client.post("/vocabulary-progress", json={"level": "a1", "topic": "Animals", "bronze": True,
                                              "silver": False, "gold": False}, headers=auth(student))
    client.post("/documents", json={"studentId": student["user_id"], "title": "Placement test",
                                    "fileUrl": "/uploads/placement.pdf", "mimeType": "application/pdf"},
                headers=auth(teacher))
    return resource


DEPENDENTS = ["enrollments", "assignments", "progress", "course_notes", "vocabulary_progress", "student_documents"]


def test_delete_student_removes_everything(client, seed, teacher, student, enrollment):
    resource = populate(client, seed, teacher, student, enrollment)
    assert all(seed.count(c) == 1 for c in DEPENDENTS)

    resp = client.delete(f"/users/{student['user_id']}", headers=auth(teacher))

    assert resp.status_code == 200
    assert resp.json() == {"success": True}
    for collection in DEPENDENTS:
        assert seed.count(collection) == 0, collection
    assert seed.count("users", {"user_id": student["user_id"]}) == 0
    assert seed.count("deletion_checkpoints") == 0
    # Shared data stays
    assert seed.count("resources", {"resource_id": resource["resource_id"]}) == 1
    assert seed.count("courses") == 1


def test_delete_leaves_other_students_alone(client, seed, teacher, student, course, enrollment):
    other = seed.student()
    client.post("/enrollments", json={"studentId": other["user_id"], "courseId": course["course_id"]},
                headers=auth(teacher))

    client.delete(f"/users/{student['user_id']}", headers=auth(teacher))

    assert seed.count("enrollments", {"student_id": other["user_id"]}) == 1
    assert seed.count("users", {"user_id": other["user_id"]}) == 1


def test_failed_stage_is_reported_and_retryable(client, seed, teacher, student, enrollment, monkeypatch):
    populate(client, seed, teacher, student, enrollment)
    calls = []

    async def broken(db, student_id):
        calls.append(student_id)
        raise OperationFailure("disk full")

    stages = [(name, broken if name == "course_notes" else run) for name, run in user_service.CASCADE_STAGES]
    monkeypatch.setattr(user_service, "CASCADE_STAGES", stages)

    resp = client.delete(f"/users/{student['user_id']}", headers=auth(teacher))

    assert resp.status_code == 500
    assert resp.json() == {"error": "Failed to delete student at stage 'course_notes'"}
    # Earlier stages ran, later ones did not
    assert seed.count("progress") == 0
    assert seed.count("assignments") == 0
    assert seed.count("course_notes") == 1
    assert seed.count("enrollments") == 1
    assert seed.count("users", {"user_id": student["user_id"]}) == 1
    checkpoint = seed.find("deletion_checkpoints", {"user_id": student["user_id"]})[0]
    assert checkpoint["completed_stages"] == ["progress_by_assignment", "progress_by_student", "assignments"]

    monkeypatch.undo()
    resp = client.delete(f"/users/{student['user_id']}", headers=auth(teacher))

    assert resp.status_code == 200
    for collection in DEPENDENTS:
        assert seed.count(collection) == 0, collection
    assert seed.count("users", {"user_id": student["user_id"]}) == 0
    assert seed.count("deletion_checkpoints") == 0


def test_retry_removes_rows_written_after_failed_attempt(client, seed, teacher, student, enrollment, monkeypatch):
    populate(client, seed, teacher, student, enrollment)

    async def broken(db, student_id):
        raise OperationFailure("disk full")

    stages = [(name, broken if name == "documents" else run) for name, run in user_service.CASCADE_STAGES]
    monkeypatch.setattr(user_service, "CASCADE_STAGES", stages)
    resp = client.delete(f"/users/{student['user_id']}", headers=auth(teacher))
    assert resp.status_code == 500
    assert seed.count("vocabulary_progress") == 0
    assert seed.count("assignments") == 0

    # The student and enrollment are still there, so new rows can land before the retry
    late = seed.resource(teacher, title="Late worksheet")
    assignment = client.post(
        "/assignments",
        json={"enrollmentId": enrollment["enrollment_id"], "resourceIds": [late["resource_id"]]},
        headers=auth(teacher),
    ).json()[0]
    client.post(f"/progress/{assignment['assignment_id']}", json={"status": "IN_PROGRESS"}, headers=auth(student))
    client.post("/vocabulary-progress", json={"level": "a1", "topic": "Food", "bronze": True,
                                              "silver": False, "gold": False}, headers=auth(student))
    assert seed.count("vocabulary_progress") == 1
    assert seed.count("assignments") == 1

    monkeypatch.undo()
    resp = client.delete(f"/users/{student['user_id']}", headers=auth(teacher))

    assert resp.status_code == 200
    for collection in DEPENDENTS:
        assert seed.count(collection) == 0, collection
    assert seed.count("users", {"user_id": student["user_id"]}) == 0


def test_delete_unknown_student(client, teacher):
    assert client.delete("/users/USR_MISSING", headers=auth(teacher)).status_code == 404


def test_teacher_accounts_are_not_deleted(client, seed, teacher):
    other = seed.teacher()
    assert client.delete(f"/users/{other['user_id']}", headers=auth(teacher)).status_code == 404


def test_student_cannot_delete(client, seed, student):
    assert client.delete(f"/users/{seed.student()['user_id']}", headers=auth(student)).status_code == 403


def test_audit_trail_records_deletion(client, teacher, student):
    client.delete(f"/users/{student['user_id']}", headers=auth(teacher))

    resp = client.get("/audit-logs", params={"targetType": "user"}, headers=auth(teacher))

    assert resp.status_code == 200
    entries = resp.json()
    assert entries[0]["action"] == "delete_student"
    assert entries[0]["target_id"] == student["user_id"]
    assert entries[0]["actor_user_id"] == teacher["user_id"]


def test_deleted_student_session_is_rejected(client, teacher, student):
    client.delete(f"/users/{student['user_id']}", headers=auth(teacher))

    assert client.get("/auth/me", headers=auth(student)).status_code == 401


def test_login_after_create(client, teacher):
    client.post("/users", json={"name": "Sam", "email": "sam@example.com", "password": PASSWORD},
                headers=auth(teacher))

    resp = client.post("/auth/login", json={"email": "sam@example.com", "password": PASSWORD})

    assert resp.status_code == 200


def test_get_student(client, teacher, student):
    resp = client.get(f"/users/{student['user_id']}", headers=auth(teacher))

    assert resp.status_code == 200
    assert resp.json()["name"] == student["name"]
    assert client.get(f"/users/{teacher['user_id']}", headers=auth(teacher)).status_code == 404
