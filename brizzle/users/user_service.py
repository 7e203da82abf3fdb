import logging
from datetime import datetime
from typing import List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError, PyMongoError

from brizzle.audit import log_audit
from brizzle.auth.auth_context import AuthContext
from brizzle.auth.auth_service import check_password_length, normalize_email
from brizzle.auth.auth_utils import hash_password
from brizzle.database import generate_id
from brizzle.errors import (
    Conflict, Forbidden, NotFound, StorageError, Unauthenticated, ValidationFailed
)
from brizzle.users.user_models import PRIVATE_USER_FIELDS, Role, User

logger = logging.getLogger("brizzle.users")

EMAIL_EXISTS = "Email already exists"

# ==================== ACCOUNTS ====================

async def create_user(
    db: AsyncIOMotorDatabase,
    actor: Optional[AuthContext],
    name: Optional[str],
    email: Optional[str],
    password: Optional[str],
    role: Role = Role.STUDENT
) -> dict:
    """
    Create an account.
    Teachers create students (or other teachers); without a session this is
    only allowed while the database holds no user yet (first teacher setup).

    Raises:
        400: Missing fields, short password, email taken
        401: No session and users already exist
        403: Signed in but not a teacher
    """
    if actor is None:
        if await db.users.find_one({}, {"_id": 1}):
            raise Unauthenticated()
    elif not actor.is_teacher:
        raise Forbidden("Access denied. Teacher privileges required.")

    if not name or not name.strip() or not email or not email.strip() or not password:
        raise ValidationFailed("Name, email, and password are required")
    check_password_length(password)

    normalized = normalize_email(email)
    if await db.users.find_one({"email": normalized}, {"_id": 1}):
        raise Conflict(EMAIL_EXISTS)

    user = User(
        user_id=generate_id("USR"),
        name=name.strip(),
        email=normalized,
        password=hash_password(password),
        role=role
    )
    doc = user.model_dump()
    doc["role"] = user.role.value

    try:
        await db.users.insert_one(doc)
    except DuplicateKeyError:
        raise Conflict(EMAIL_EXISTS)

    logger.info("User %s (%s) created by %s", user.user_id, user.role.value, actor.user_id if actor else "setup")
    return {k: v for k, v in doc.items() if k not in PRIVATE_USER_FIELDS}


async def list_users(db: AsyncIOMotorDatabase, role: Optional[Role] = None) -> List[dict]:
    query = {"role": role.value} if role else {}
    cursor = db.users.find(query, PRIVATE_USER_FIELDS).sort("name", 1)
    return await cursor.to_list(length=None)


async def get_student(db: AsyncIOMotorDatabase, student_id: str) -> dict:
    student = await db.users.find_one({"user_id": student_id, "role": Role.STUDENT.value}, PRIVATE_USER_FIELDS)
    if not student:
        raise NotFound("Student not found")
    return student


async def update_email(db: AsyncIOMotorDatabase, teacher: AuthContext, user_id: str, email: str) -> dict:
    normalized = normalize_email(email)
    if "@" not in normalized:
        raise ValidationFailed("Invalid email address")

    user = await db.users.find_one({"user_id": user_id}, {"_id": 1})
    if not user:
        raise NotFound("User not found")

    taken = await db.users.find_one({"email": normalized, "user_id": {"$ne": user_id}}, {"_id": 1})
    if taken:
        raise Conflict(EMAIL_EXISTS)

    try:
        await db.users.update_one(
            {"user_id": user_id},
            {"$set": {"email": normalized, "updated_at": datetime.utcnow()}}
        )
    except DuplicateKeyError:
        raise Conflict(EMAIL_EXISTS)

    await log_audit(db, teacher, "update_email", "user", user_id)
    return await db.users.find_one({"user_id": user_id}, PRIVATE_USER_FIELDS)

# ==================== STUDENT REMOVAL ====================
# Stages run in foreign-key order. Every stage recomputes what it deletes,
# so the whole cascade is re-run on retry; rows written between a failed
# attempt and the retry are caught by the same stages.

async def _enrollment_ids(db: AsyncIOMotorDatabase, student_id: str) -> List[str]:
    rows = await db.enrollments.find({"student_id": student_id}, {"enrollment_id": 1}).to_list(length=None)
    return [r["enrollment_id"] for r in rows]


async def _assignment_ids(db: AsyncIOMotorDatabase, student_id: str) -> List[str]:
    enrollment_ids = await _enrollment_ids(db, student_id)
    if not enrollment_ids:
        return []
    rows = await db.assignments.find(
        {"enrollment_id": {"$in": enrollment_ids}}, {"assignment_id": 1}
    ).to_list(length=None)
    return [r["assignment_id"] for r in rows]


async def _delete_assignment_progress(db, student_id):
    assignment_ids = await _assignment_ids(db, student_id)
    if assignment_ids:
        await db.progress.delete_many({"assignment_id": {"$in": assignment_ids}})


async def _delete_student_progress(db, student_id):
    await db.progress.delete_many({"student_id": student_id})


async def _delete_assignments(db, student_id):
    enrollment_ids = await _enrollment_ids(db, student_id)
    if enrollment_ids:
        await db.assignments.delete_many({"enrollment_id": {"$in": enrollment_ids}})


async def _delete_course_notes(db, student_id):
    enrollment_ids = await _enrollment_ids(db, student_id)
    if enrollment_ids:
        await db.course_notes.delete_many({"enrollment_id": {"$in": enrollment_ids}})


async def _delete_vocabulary_progress(db, student_id):
    await db.vocabulary_progress.delete_many({"student_id": student_id})


async def _delete_documents(db, student_id):
    await db.student_documents.delete_many({"student_id": student_id})


async def _delete_enrollments(db, student_id):
    await db.enrollments.delete_many({"student_id": student_id})


async def _delete_user(db, student_id):
    await db.users.delete_one({"user_id": student_id})


CASCADE_STAGES = [
    ("progress_by_assignment", _delete_assignment_progress),
    ("progress_by_student", _delete_student_progress),
    ("assignments", _delete_assignments),
    ("course_notes", _delete_course_notes),
    ("vocabulary_progress", _delete_vocabulary_progress),
    ("documents", _delete_documents),
    ("enrollments", _delete_enrollments),
    ("user", _delete_user),
]


async def delete_student(db: AsyncIOMotorDatabase, teacher: AuthContext, student_id: str) -> dict:
    """
    Remove a student and everything that references them.

    Completed stages are recorded in `deletion_checkpoints`; a failed stage
    aborts the cascade and names the stage. Calling again re-runs every
    stage, since the student could still write rows in between. The user
    row goes last, so the student stays addressable until the end.

    Raises:
        404: No student with this id
        500: A stage failed (message names the stage)
    """
    await get_student(db, student_id)

    checkpoint = await db.deletion_checkpoints.find_one({"user_id": student_id}) or {}
    done = set(checkpoint.get("completed_stages", []))
    if checkpoint:
        logger.info("Retrying deletion of %s (stages done last time: %s)", student_id, sorted(done))
    else:
        await db.deletion_checkpoints.update_one(
            {"user_id": student_id},
            {"$setOnInsert": {"completed_stages": [], "started_at": datetime.utcnow()}},
            upsert=True
        )

    for stage, run in CASCADE_STAGES:
        try:
            await run(db, student_id)
            await db.deletion_checkpoints.update_one(
                {"user_id": student_id},
                {"$addToSet": {"completed_stages": stage}, "$set": {"updated_at": datetime.utcnow()}}
            )
        except PyMongoError:
            logger.exception("Deleting student %s failed at stage %s", student_id, stage)
            raise StorageError(f"Failed to delete student at stage '{stage}'")

    await db.deletion_checkpoints.delete_one({"user_id": student_id})
    await log_audit(db, teacher, "delete_student", "user", student_id)
    logger.info("Student %s deleted by %s", student_id, teacher.user_id)
    return {"success": True}
