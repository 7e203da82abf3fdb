import logging
from datetime import datetime
from typing import List

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument

from brizzle.auth.auth_context import AuthContext
from brizzle.auth.auth_permissions import enforce, can_manage_resource, can_view_resource
from brizzle.database import generate_id, strip_mongo_id
from brizzle.errors import Conflict
from brizzle.resources.models import Resource, parse_content, serialize_content

logger = logging.getLogger("brizzle.resources")


def _content_string(content) -> str:
    if isinstance(content, str):
        return content
    return serialize_content(content)


def present(resource: dict) -> dict:
    """Attach the decoded content variant to a stored resource"""
    parsed = parse_content(resource.get("content"))
    resource["content_kind"] = parsed.kind
    resource["parsed_content"] = parsed.model_dump()
    return resource


async def _get(db: AsyncIOMotorDatabase, resource_id: str):
    return await db.resources.find_one({"resource_id": resource_id}, {"_id": 0})

# ==================== CRUD ====================

async def create_resource(db: AsyncIOMotorDatabase, teacher: AuthContext, data: dict) -> dict:
    data["content"] = _content_string(data["content"])
    resource = Resource(resource_id=generate_id("RES"), creator_id=teacher.user_id, **data)
    doc = resource.model_dump(mode="json")
    # keep datetimes native for sorting
    doc["created_at"] = resource.created_at
    doc["updated_at"] = resource.updated_at

    await db.resources.insert_one(doc)
    logger.info("Resource %s created by %s", resource.resource_id, teacher.user_id)
    return present(strip_mongo_id(doc))


async def list_resources(db: AsyncIOMotorDatabase, teacher: AuthContext) -> List[dict]:
    cursor = db.resources.find({"creator_id": teacher.user_id}, {"_id": 0}).sort("created_at", -1)
    return [present(r) for r in await cursor.to_list(length=None)]


async def get_resource(db: AsyncIOMotorDatabase, teacher: AuthContext, resource_id: str) -> dict:
    resource = await _get(db, resource_id)
    enforce(can_manage_resource(teacher, resource))
    return present(resource)


async def update_resource(db: AsyncIOMotorDatabase, teacher: AuthContext, resource_id: str, data: dict) -> dict:
    resource = await _get(db, resource_id)
    enforce(can_manage_resource(teacher, resource))

    updates = {k: v for k, v in data.items() if v is not None}
    if "content" in updates:
        updates["content"] = _content_string(updates["content"])
    for key in ("type", "level"):
        if key in updates and hasattr(updates[key], "value"):
            updates[key] = updates[key].value
    updates["updated_at"] = datetime.utcnow()

    updated = await db.resources.find_one_and_update(
        {"resource_id": resource_id},
        {"$set": updates},
        projection={"_id": 0},
        return_document=ReturnDocument.AFTER
    )
    return present(updated)


async def delete_resource(db: AsyncIOMotorDatabase, teacher: AuthContext, resource_id: str):
    """
    Raises:
        400: Resource is still assigned to a student
    """
    resource = await _get(db, resource_id)
    enforce(can_manage_resource(teacher, resource))

    in_use = await db.assignments.count_documents({"resource_id": resource_id})
    if in_use:
        raise Conflict(f"Resource is assigned to {in_use} enrollment(s); unassign it first")

    await db.resources.delete_one({"resource_id": resource_id})
    logger.info("Resource %s deleted by %s", resource_id, teacher.user_id)

# ==================== STUDENT VIEW ====================

async def view_resource(db: AsyncIOMotorDatabase, principal: AuthContext, resource_id: str) -> dict:
    """Owner teacher, or a student who has this resource assigned"""
    resource = await _get(db, resource_id)

    assigned = False
    if resource and principal.is_student:
        enrollments = await db.enrollments.find(
            {"student_id": principal.user_id}, {"enrollment_id": 1}
        ).to_list(length=None)
        assigned = await db.assignments.count_documents({
            "resource_id": resource_id,
            "enrollment_id": {"$in": [e["enrollment_id"] for e in enrollments]}
        }) > 0

    enforce(can_view_resource(principal, resource, assigned))
    return present(resource)
