import logging
import secrets
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from brizzle.config import MONGO_URL, MONGO_DB_NAME

logger = logging.getLogger("brizzle.database")

client = AsyncIOMotorClient(MONGO_URL)
db = client[MONGO_DB_NAME]


async def get_db() -> AsyncIOMotorDatabase:
    """Database dependency"""
    return db


def generate_id(prefix: str) -> str:
    """Generate unique ID with prefix"""
    return f"{prefix}_{secrets.token_hex(8).upper()}"


def strip_mongo_id(doc: Optional[dict]) -> Optional[dict]:
    if doc is not None:
        doc.pop("_id", None)
    return doc


# ==================== INDEXES ====================

async def create_indexes(database: AsyncIOMotorDatabase):
    """
    Create the uniqueness constraints every write path relies on.
    Called during application startup (and by the test fixtures).
    """

    # Users
    await database.users.create_index("user_id", unique=True)
    await database.users.create_index("email", unique=True)
    await database.users.create_index("role")
    await database.users.create_index("reset_token", sparse=True)

    # Courses
    await database.courses.create_index("course_id", unique=True)
    await database.courses.create_index("creator_id")

    # Enrollments
    await database.enrollments.create_index("enrollment_id", unique=True)
    await database.enrollments.create_index([("student_id", 1), ("course_id", 1)], unique=True)
    await database.enrollments.create_index("course_id")

    # Resources
    await database.resources.create_index("resource_id", unique=True)
    await database.resources.create_index([("creator_id", 1), ("created_at", -1)])

    # Assignments
    await database.assignments.create_index("assignment_id", unique=True)
    await database.assignments.create_index([("enrollment_id", 1), ("resource_id", 1)], unique=True)
    await database.assignments.create_index([("enrollment_id", 1), ("order", 1)], unique=True)
    await database.assignments.create_index("resource_id")

    # Progress
    await database.progress.create_index("progress_id", unique=True)
    await database.progress.create_index([("assignment_id", 1), ("student_id", 1)], unique=True)
    await database.progress.create_index("student_id")

    # Vocabulary
    await database.vocabulary_progress.create_index("vocabulary_progress_id", unique=True)
    await database.vocabulary_progress.create_index(
        [("student_id", 1), ("level", 1), ("topic_key", 1)], unique=True
    )
    await database.vocabulary_progress.create_index([("student_id", 1), ("updated_at", -1)])
    await database.vocabulary_words.create_index([("level", 1), ("topic_key", 1)])

    # Course notes
    await database.course_notes.create_index("note_id", unique=True)
    await database.course_notes.create_index("enrollment_id", unique=True)

    # Student documents
    await database.student_documents.create_index("document_id", unique=True)
    await database.student_documents.create_index([("student_id", 1), ("created_at", -1)])

    # Cascade checkpoints
    await database.deletion_checkpoints.create_index("user_id", unique=True)

    # Audit logs
    await database.audit_logs.create_index("actor_user_id")
    await database.audit_logs.create_index([("target_type", 1), ("target_id", 1)])
    await database.audit_logs.create_index("timestamp")

    logger.info("Brizzle indexes created successfully")


# ==================== UPSERT ====================

async def upsert_one(collection, key: dict, update: dict) -> dict:
    """
    Insert-or-update the single row matching `key` (backed by a unique index)
    and return it after the write.

    Two concurrent first writes can both take the insert path; the loser gets
    DuplicateKeyError and is retried once as a plain update of the winning row.
    """
    try:
        return await collection.find_one_and_update(
            key,
            update,
            projection={"_id": 0},
            upsert=True,
            return_document=ReturnDocument.AFTER
        )
    except DuplicateKeyError:
        logger.info("Concurrent insert on %s %s, retrying as update", collection.name, key)
        retry = {op: fields for op, fields in update.items() if op != "$setOnInsert"}
        return await collection.find_one_and_update(
            key,
            retry,
            projection={"_id": 0},
            return_document=ReturnDocument.AFTER
        )
