import logging
from datetime import datetime
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from brizzle.auth.auth_context import AuthContext
from brizzle.auth.auth_permissions import enforce, can_record_progress
from brizzle.database import generate_id, upsert_one
from brizzle.progress.models import ProgressStatus

logger = logging.getLogger("brizzle.progress")


async def _authorize(db: AsyncIOMotorDatabase, student: AuthContext, assignment_id: str):
    assignment = await db.assignments.find_one({"assignment_id": assignment_id}, {"_id": 0})
    enrollment = None
    if assignment:
        enrollment = await db.enrollments.find_one({"enrollment_id": assignment["enrollment_id"]}, {"_id": 0})
    enforce(can_record_progress(student, assignment, enrollment))
    return assignment


async def record_progress(
    db: AsyncIOMotorDatabase,
    student: AuthContext,
    assignment_id: str,
    notes: Optional[str],
    status: ProgressStatus
) -> dict:
    """
    Upsert the student's progress row for an assignment.

    completed_at is stamped when the status is COMPLETED and cleared for any
    other status. Notes are left untouched when not supplied.

    Raises:
        403: Not a student, or assignment belongs to another student
        404: Assignment missing
    """
    await _authorize(db, student, assignment_id)

    now = datetime.utcnow()
    status = ProgressStatus(status)
    fields = {
        "status": status.value,
        "completed_at": now if status == ProgressStatus.COMPLETED else None,
        "updated_at": now,
    }
    if notes is not None:
        fields["notes"] = notes

    on_insert = {"progress_id": generate_id("PRG"), "created_at": now}
    if notes is None:
        on_insert["notes"] = None

    progress = await upsert_one(
        db.progress,
        {"assignment_id": assignment_id, "student_id": student.user_id},
        {"$set": fields, "$setOnInsert": on_insert}
    )
    logger.info("Progress %s -> %s for %s", assignment_id, status.value, student.user_id)
    return progress


async def mark_viewed(db: AsyncIOMotorDatabase, student: AuthContext, assignment_id: str) -> dict:
    """
    Record that the student opened the assignment.
    Creates a NOT_STARTED row only when none exists; an existing row is returned unchanged.
    """
    await _authorize(db, student, assignment_id)

    key = {"assignment_id": assignment_id, "student_id": student.user_id}
    now = datetime.utcnow()
    try:
        return await db.progress.find_one_and_update(
            key,
            {"$setOnInsert": {
                "progress_id": generate_id("PRG"),
                "status": ProgressStatus.NOT_STARTED.value,
                "notes": None,
                "completed_at": None,
                "created_at": now,
                "updated_at": now
            }},
            projection={"_id": 0},
            upsert=True,
            return_document=ReturnDocument.AFTER
        )
    except DuplicateKeyError:
        # Another request created the row first
        return await db.progress.find_one(key, {"_id": 0})


async def get_progress(db: AsyncIOMotorDatabase, student: AuthContext, assignment_id: str) -> Optional[dict]:
    await _authorize(db, student, assignment_id)
    return await db.progress.find_one(
        {"assignment_id": assignment_id, "student_id": student.user_id}, {"_id": 0}
    )
