from datetime import datetime

import pytest

from brizzle.progress.models import normalize_topic, topic_key
from brizzle.progress.vocabulary_service import check_medal_order, is_complete
from brizzle.errors import ValidationFailed
from tests.conftest import auth, race_writes


def save(client, student, topic="Animals", level="a1", bronze=False, silver=False, gold=False):
    return client.post(
        "/vocabulary-progress",
        json={"level": level, "topic": topic, "bronze": bronze, "silver": silver, "gold": gold},
        headers=auth(student),
    )

# ==================== HELPERS ====================

def test_topic_normalization():
    assert normalize_topic("  Animals \t and  pets ") == "Animals and pets"
    assert topic_key("Animals  ") == topic_key("animals") == "animals"


def test_medal_order():
    check_medal_order({"bronze": True, "silver": True, "gold": False})
    with pytest.raises(ValidationFailed):
        check_medal_order({"bronze": True, "silver": False, "gold": True})
    with pytest.raises(ValidationFailed):
        check_medal_order({"bronze": False, "silver": True, "gold": False})


def test_is_complete():
    assert is_complete({"bronze": True, "silver": True, "gold": True})
    assert not is_complete({"bronze": True, "silver": True})

# ==================== CHALLENGE PROGRESS ====================

def test_first_medal_creates_row(client, student):
    resp = save(client, student, bronze=True)

    assert resp.status_code == 200
    body = resp.json()
    assert body["error"] is None
    row = body["data"]
    assert row["bronze"] is True
    assert row["silver"] is False
    assert row["completed_at"] is None


def test_topic_variants_share_a_row(client, seed, student):
    save(client, student, topic="Animals  ", bronze=True)
    row = save(client, student, topic="animals", bronze=True, silver=True).json()["data"]

    assert seed.count("vocabulary_progress") == 1
    assert row["topic"] == "Animals"
    assert row["silver"] is True


def test_completed_at_set_once_all_medals_held(client, student):
    save(client, student, bronze=True)
    save(client, student, bronze=True, silver=True)
    row = save(client, student, bronze=True, silver=True, gold=True).json()["data"]

    assert row["completed_at"] is not None

    again = save(client, student, bronze=True, silver=True, gold=True).json()["data"]
    assert again["completed_at"] == row["completed_at"]


def test_medals_never_go_backwards(client, student):
    save(client, student, bronze=True)
    save(client, student, bronze=True, silver=True)

    row = save(client, student, bronze=False, silver=False).json()["data"]

    assert row["bronze"] is True
    assert row["silver"] is True


def test_gold_without_silver_is_rejected(client, seed, student):
    resp = save(client, student, bronze=True, gold=True)

    assert resp.status_code == 400
    assert seed.count("vocabulary_progress") == 0


def test_non_boolean_flag_is_rejected(client, student):
    resp = client.post(
        "/vocabulary-progress",
        json={"level": "a1", "topic": "Animals", "bronze": "true", "silver": False, "gold": False},
        headers=auth(student),
    )
    assert resp.status_code == 400


def test_blank_topic_is_rejected(client, student):
    assert save(client, student, topic="   ", bronze=True).status_code == 400


def test_teacher_cannot_save(client, teacher):
    assert save(client, teacher, bronze=True).status_code == 403


def test_student_reads_own_progress(client, student):
    save(client, student, topic="Animals", bronze=True)
    save(client, student, topic="Food", bronze=True)
    save(client, student, topic="Verbs", level="a2", bronze=True)

    all_rows = client.get("/vocabulary-progress", headers=auth(student)).json()["data"]
    a1_rows = client.get("/vocabulary-progress", params={"level": "A1"}, headers=auth(student)).json()["data"]
    one = client.get(
        "/vocabulary-progress", params={"level": "a1", "topic": " food"}, headers=auth(student)
    ).json()["data"]

    assert len(all_rows) == 3
    assert {r["topic"] for r in a1_rows} == {"Animals", "Food"}
    assert [r["topic"] for r in one] == ["Food"]


def test_teacher_reads_student_progress(client, teacher, student):
    save(client, student, bronze=True)

    resp = client.get("/vocabulary-progress", params={"studentId": student["user_id"]}, headers=auth(teacher))

    assert resp.status_code == 200
    assert len(resp.json()["data"]) == 1


def test_student_cannot_read_other_student(client, seed, student):
    resp = client.get(
        "/vocabulary-progress", params={"studentId": seed.student()["user_id"]}, headers=auth(student)
    )
    assert resp.status_code == 403

# ==================== WORD LISTS ====================

WORDS = [
    {"topic": "Animals", "wordEnglish": "cat", "translationFrench": "chat", "icon": "\U0001F43E"},
    {"topic": "animals ", "wordEnglish": "dog", "translationFrench": "chien"},
    {"topic": "Colours", "wordEnglish": "red", "translationFrench": "rouge"},
]


def test_import_and_list_words(client, teacher, student):
    resp = client.post("/vocabulary/a1/words", json={"words": WORDS}, headers=auth(teacher))
    assert resp.status_code == 201
    assert resp.json() == {"inserted": 3}

    topics = client.get("/vocabulary/a1", headers=auth(student)).json()["data"]
    assert [(t["name"].casefold(), t["count"]) for t in topics] == [("animals", 2), ("colours", 1)]

    words = client.get("/vocabulary/a1/ANIMALS", headers=auth(student)).json()["data"]
    assert sorted(w["word_english"] for w in words) == ["cat", "dog"]


def test_unpublished_level_is_empty(client, teacher, student):
    client.post("/vocabulary/b2/words", json={"words": WORDS}, headers=auth(teacher))

    assert client.get("/vocabulary/b2", headers=auth(student)).json()["data"] == []


def test_student_cannot_import_words(client, student):
    resp = client.post("/vocabulary/a1/words", json={"words": WORDS}, headers=auth(student))
    assert resp.status_code == 403


def test_topic_icons(client, teacher, student):
    client.post("/vocabulary/a1/words", json={"words": WORDS}, headers=auth(teacher))

    resp = client.get("/vocabulary/a1/icons", headers=auth(student))

    assert resp.status_code == 200
    assert resp.json() == {"data": {"Animals": "\U0001F43E"}, "error": None}


def test_topic_icons_for_unpublished_level(client, teacher, student):
    client.post("/vocabulary/b2/words", json={"words": WORDS}, headers=auth(teacher))

    assert client.get("/vocabulary/b2/icons", headers=auth(student)).json()["data"] == {}

# ==================== CONCURRENT FIRST WRITE ====================

def test_save_after_losing_insert_race_merges_into_winner(client, seed, db, student):
    now = datetime.utcnow()
    raced = race_writes(db, "vocabulary_progress", {
        "vocabulary_progress_id": "VOC_COMPETITOR", "student_id": student["user_id"],
        "level": "a1", "topic": "Animals", "topic_key": "animals",
        "bronze": True, "silver": False, "gold": False,
        "completed_at": None, "created_at": now, "updated_at": now,
    })

    resp = save(client, student, topic="animals", bronze=True, silver=True)

    assert raced.raced
    assert resp.status_code == 200
    row = resp.json()["data"]
    assert row["vocabulary_progress_id"] == "VOC_COMPETITOR"
    assert row["bronze"] is True
    assert row["silver"] is True
    assert row["completed_at"] is None
    assert seed.count("vocabulary_progress") == 1
