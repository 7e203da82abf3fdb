import logging
from datetime import datetime
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pydantic import BaseModel, Field
from pymongo.errors import PyMongoError

logger = logging.getLogger("brizzle.audit")


class AuditLog(BaseModel):
    actor_user_id: str
    role: str  # TEACHER, STUDENT
    action: str  # enroll_student, assign_resources, delete_student, etc.
    target_type: str  # enrollment, assignment, user, course_note, document
    target_id: str
    metadata: dict = {}
    timestamp: datetime = Field(default_factory=datetime.utcnow)


async def log_audit(
    db: AsyncIOMotorDatabase,
    actor,
    action: str,
    target_type: str,
    target_id: str,
    metadata: Optional[dict] = None
):
    """
    Log teacher actions that change student data.

    Args:
        actor: AuthContext of the acting user
        action: Action performed (e.g. 'enroll_student', 'delete_student')
        target_type: Entity type (e.g. 'enrollment', 'assignment', 'user')
        target_id: ID of the entity
        metadata: Additional context (optional)

    A failed audit write is logged and never aborts the action itself.
    """
    entry = AuditLog(
        actor_user_id=actor.user_id,
        role=actor.role,
        action=action,
        target_type=target_type,
        target_id=target_id,
        metadata=metadata or {},
    )
    try:
        await db.audit_logs.insert_one(entry.model_dump())
    except PyMongoError:
        logger.exception("Audit write failed for %s %s/%s", action, target_type, target_id)


async def get_audit_trail(
    db: AsyncIOMotorDatabase,
    target_type: Optional[str] = None,
    target_id: Optional[str] = None,
    limit: int = 100
) -> list:
    """Retrieve audit logs, newest first, with optional filters"""
    query = {}
    if target_type:
        query["target_type"] = target_type
    if target_id:
        query["target_id"] = target_id

    cursor = db.audit_logs.find(query, {"_id": 0}).sort("timestamp", -1).limit(limit)
    return await cursor.to_list(length=limit)
