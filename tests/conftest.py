import asyncio
from datetime import datetime

import pytest
from fastapi.testclient import TestClient
from mongomock_motor import AsyncMongoMockClient
from pymongo.errors import DuplicateKeyError

from brizzle.auth.auth_utils import create_access_token, hash_password
from brizzle.database import create_indexes, generate_id, get_db
from brizzle.main import app

PASSWORD = "secret123"
_PASSWORD_HASH = hash_password(PASSWORD)


def run(coro):
    return asyncio.run(coro)


class Seed:
    """Direct-to-database helpers for arranging test state"""

    def __init__(self, db):
        self.db = db

    def user(self, role="STUDENT", name=None, email=None):
        user_id = generate_id("USR")
        doc = {
            "user_id": user_id,
            "name": name or f"{role.title()} {user_id[-4:]}",
            "email": email or f"{user_id.lower()}@example.com",
            "password": _PASSWORD_HASH,
            "role": role,
            "avatar": None,
            "reset_token": None,
            "reset_token_expiry": None,
            "created_at": datetime.utcnow(),
            "updated_at": datetime.utcnow(),
        }
        run(self.db.users.insert_one(doc))
        doc.pop("_id", None)
        return doc

    def teacher(self, **kwargs):
        return self.user("TEACHER", **kwargs)

    def student(self, **kwargs):
        return self.user("STUDENT", **kwargs)

    def course(self, teacher, name="TOEIC-30h"):
        doc = {
            "course_id": generate_id("CRS"),
            "name": name,
            "duration": "30h",
            "creator_id": teacher["user_id"],
            "created_at": datetime.utcnow(),
        }
        run(self.db.courses.insert_one(doc))
        doc.pop("_id", None)
        return doc

    def resource(self, teacher, title="Modal verbs", content="<h1>Modal verbs</h1>"):
        now = datetime.utcnow()
        doc = {
            "resource_id": generate_id("RES"),
            "title": title,
            "description": None,
            "type": "WORKSHEET",
            "content": content,
            "level": "A2",
            "skill": "Grammar",
            "estimated_hours": 1.0,
            "tags": None,
            "creator_id": teacher["user_id"],
            "created_at": now,
            "updated_at": now,
        }
        run(self.db.resources.insert_one(doc))
        doc.pop("_id", None)
        return doc

    def count(self, collection, query=None):
        return run(self.db[collection].count_documents(query or {}))

    def find(self, collection, query):
        return run(self.db[collection].find(query, {"_id": 0}).to_list(length=None))


def auth(user):
    return {"Authorization": f"Bearer {create_access_token(user['user_id'], user['role'])}"}


@pytest.fixture
def db():
    database = AsyncMongoMockClient()["brizzle_test"]
    run(create_indexes(database))

    async def _get_test_db():
        return database

    app.dependency_overrides[get_db] = _get_test_db
    yield database
    app.dependency_overrides.clear()


@pytest.fixture
def client(db):
    return TestClient(app)


@pytest.fixture
def seed(db):
    return Seed(db)


@pytest.fixture
def teacher(seed):
    return seed.teacher(name="Ms Brizzle")


@pytest.fixture
def student(seed):
    return seed.student(name="Sam Student")


@pytest.fixture
def course(seed, teacher):
    return seed.course(teacher)


@pytest.fixture
def enrollment(client, teacher, student, course):
    resp = client.post(
        "/enrollments",
        json={"studentId": student["user_id"], "courseId": course["course_id"]},
        headers=auth(teacher),
    )
    assert resp.status_code == 200, resp.text
    return resp.json()

# ==================== CONCURRENT WRITERS ====================

class RacedCollection:
    """
    Collection proxy where a concurrent request commits `competing_row`
    just before our first write to it.
    """

    def __init__(self, collection, competing_row):
        self._collection = collection
        self._competing_row = competing_row
        self.raced = False

    async def _let_competitor_win(self) -> bool:
        if self.raced:
            return False
        self.raced = True
        await self._collection.insert_one(dict(self._competing_row))
        return True

    async def insert_one(self, document, *args, **kwargs):
        await self._let_competitor_win()
        return await self._collection.insert_one(document, *args, **kwargs)

    async def find_one_and_update(self, filter, update, *args, **kwargs):
        # Both upserts took the insert path; ours loses on the unique index
        if kwargs.get("upsert") and await self._let_competitor_win():
            raise DuplicateKeyError("E11000 duplicate key error")
        return await self._collection.find_one_and_update(filter, update, *args, **kwargs)

    def __getattr__(self, name):
        return getattr(self._collection, name)


class RacedDatabase:
    def __init__(self, db, collection_name, competing_row):
        self._db = db
        self._name = collection_name
        self.collection = RacedCollection(getattr(db, collection_name), competing_row)

    def __getattr__(self, name):
        return self.collection if name == self._name else getattr(self._db, name)


def race_writes(db, collection_name, competing_row) -> RacedCollection:
    """Serve requests from a database where a competitor writes first"""
    raced = RacedDatabase(db, collection_name, competing_row)

    async def _get_raced_db():
        return raced

    app.dependency_overrides[get_db] = _get_raced_db
    return raced.collection
