from datetime import datetime

import pytest

from tests.conftest import auth, race_writes


@pytest.fixture
def assignment(client, seed, teacher, enrollment):
    resource = seed.resource(teacher)
    resp = client.post(
        "/assignments",
        json={"enrollmentId": enrollment["enrollment_id"], "resourceIds": [resource["resource_id"]]},
        headers=auth(teacher),
    )
    return resp.json()[0]


def record(client, student, assignment, **body):
    return client.post(f"/progress/{assignment['assignment_id']}", json=body, headers=auth(student))

# ==================== RECORD ====================

def test_completed_sets_completed_at(client, student, assignment):
    resp = record(client, student, assignment, status="COMPLETED", notes="done")

    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "COMPLETED"
    assert body["notes"] == "done"
    assert body["completed_at"] is not None
    assert body["progress_id"].startswith("PRG_")


def test_leaving_completed_clears_completed_at(client, student, assignment):
    record(client, student, assignment, status="COMPLETED")

    body = record(client, student, assignment, status="IN_PROGRESS").json()

    assert body["status"] == "IN_PROGRESS"
    assert body["completed_at"] is None


def test_repeated_calls_keep_one_row(client, seed, student, assignment):
    first = record(client, student, assignment, status="IN_PROGRESS", notes="a").json()
    second = record(client, student, assignment, status="IN_PROGRESS", notes="a").json()

    assert seed.count("progress") == 1
    assert first["progress_id"] == second["progress_id"]


def test_notes_kept_when_omitted(client, student, assignment):
    record(client, student, assignment, status="IN_PROGRESS", notes="page 3")

    body = record(client, student, assignment, status="COMPLETED").json()

    assert body["notes"] == "page 3"


def test_invalid_status(client, seed, student, assignment):
    resp = record(client, student, assignment, status="FINISHED")
    assert resp.status_code == 400
    assert seed.count("progress") == 0


def test_other_student_is_forbidden(client, seed, assignment):
    resp = record(client, seed.student(), assignment, status="COMPLETED")
    assert resp.status_code == 403
    assert seed.count("progress") == 0


def test_teacher_cannot_record(client, teacher, assignment):
    resp = record(client, teacher, assignment, status="COMPLETED")
    assert resp.status_code == 403


def test_unknown_assignment(client, student):
    resp = record(client, student, {"assignment_id": "ASG_MISSING"}, status="COMPLETED")
    assert resp.status_code == 404

# ==================== VIEWED ====================

def test_viewed_creates_not_started_row(client, student, assignment):
    resp = client.post(f"/progress/{assignment['assignment_id']}/viewed", headers=auth(student))

    assert resp.status_code == 200
    assert resp.json()["status"] == "NOT_STARTED"


def test_viewed_never_overwrites(client, seed, student, assignment):
    record(client, student, assignment, status="COMPLETED", notes="kept")

    body = client.post(f"/progress/{assignment['assignment_id']}/viewed", headers=auth(student)).json()

    assert body["status"] == "COMPLETED"
    assert body["notes"] == "kept"
    assert seed.count("progress") == 1


def test_get_progress(client, student, assignment):
    url = f"/progress/{assignment['assignment_id']}"
    assert client.get(url, headers=auth(student)).json() is None

    record(client, student, assignment, status="IN_PROGRESS")

    assert client.get(url, headers=auth(student)).json()["status"] == "IN_PROGRESS"

# ==================== CONCURRENT FIRST WRITE ====================

def competing_progress(assignment, student, status):
    now = datetime.utcnow()
    return {
        "progress_id": "PRG_COMPETITOR", "assignment_id": assignment["assignment_id"],
        "student_id": student["user_id"], "status": status, "notes": None,
        "completed_at": None, "created_at": now, "updated_at": now,
    }


def test_record_after_losing_insert_race_updates_winner(client, seed, db, student, assignment):
    raced = race_writes(db, "progress", competing_progress(assignment, student, "IN_PROGRESS"))

    resp = record(client, student, assignment, status="COMPLETED", notes="finished")

    assert raced.raced
    assert resp.status_code == 200
    body = resp.json()
    assert body["progress_id"] == "PRG_COMPETITOR"
    assert body["status"] == "COMPLETED"
    assert body["notes"] == "finished"
    assert body["completed_at"] is not None
    assert seed.count("progress") == 1


def test_viewed_after_losing_insert_race_returns_winner(client, seed, db, student, assignment):
    race_writes(db, "progress", competing_progress(assignment, student, "IN_PROGRESS"))

    resp = client.post(f"/progress/{assignment['assignment_id']}/viewed", headers=auth(student))

    assert resp.status_code == 200
    assert resp.json()["status"] == "IN_PROGRESS"
    assert seed.count("progress") == 1
