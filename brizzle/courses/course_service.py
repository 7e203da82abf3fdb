import logging
from datetime import datetime
from typing import List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import BulkWriteError, DuplicateKeyError

from brizzle.audit import log_audit
from brizzle.auth.auth_context import AuthContext
from brizzle.auth.auth_permissions import (
    enforce, can_enroll, can_assign, can_unassign, can_read_enrollment
)
from brizzle.courses.models import Course, Enrollment, Assignment
from brizzle.database import generate_id, strip_mongo_id, upsert_one
from brizzle.errors import Conflict, NotFound, ValidationFailed
from brizzle.users.user_models import Role

logger = logging.getLogger("brizzle.courses")

ALREADY_ENROLLED = "Student is already enrolled in this course"
ALREADY_ASSIGNED = "One or more resources are already assigned"


async def _load_enrollment(db: AsyncIOMotorDatabase, enrollment_id: str):
    """Return (enrollment, course); either may be None"""
    enrollment = await db.enrollments.find_one({"enrollment_id": enrollment_id}, {"_id": 0})
    course = None
    if enrollment:
        course = await db.courses.find_one({"course_id": enrollment["course_id"]}, {"_id": 0})
    return enrollment, course

# ==================== COURSES ====================

async def create_course(db: AsyncIOMotorDatabase, teacher: AuthContext, name: str, duration: Optional[str]) -> dict:
    course = Course(
        course_id=generate_id("CRS"),
        name=name.strip(),
        duration=duration,
        creator_id=teacher.user_id
    )
    doc = course.model_dump()
    await db.courses.insert_one(doc)
    logger.info("Course %s created by %s", course.course_id, teacher.user_id)
    return strip_mongo_id(doc)


async def list_courses(db: AsyncIOMotorDatabase, principal: AuthContext) -> List[dict]:
    """Teachers see the courses they created; students the courses they are enrolled in"""
    if principal.is_teacher:
        query = {"creator_id": principal.user_id}
    else:
        enrollments = await db.enrollments.find(
            {"student_id": principal.user_id}, {"course_id": 1}
        ).to_list(length=None)
        query = {"course_id": {"$in": [e["course_id"] for e in enrollments]}}

    cursor = db.courses.find(query, {"_id": 0}).sort("created_at", -1)
    return await cursor.to_list(length=None)

# ==================== ENROLLMENTS ====================

async def enroll_student(db: AsyncIOMotorDatabase, teacher: AuthContext, student_id: str, course_id: str) -> dict:
    """
    Enroll a student in a course the teacher owns.

    Raises:
        403: Not a teacher, or course owned by someone else
        404: Course or student missing
        400: Student already enrolled (also when a concurrent request won)
    """
    course = await db.courses.find_one({"course_id": course_id}, {"_id": 0})
    enforce(can_enroll(teacher, course))

    student = await db.users.find_one({"user_id": student_id, "role": Role.STUDENT.value}, {"user_id": 1})
    if not student:
        raise NotFound("Student not found")

    existing = await db.enrollments.find_one({"student_id": student_id, "course_id": course_id})
    if existing:
        raise Conflict(ALREADY_ENROLLED)

    enrollment = Enrollment(
        enrollment_id=generate_id("ENR"),
        student_id=student_id,
        course_id=course_id
    )
    doc = enrollment.model_dump()
    try:
        await db.enrollments.insert_one(doc)
    except DuplicateKeyError:
        raise Conflict(ALREADY_ENROLLED)

    await log_audit(db, teacher, "enroll_student", "enrollment", enrollment.enrollment_id,
                    {"student_id": student_id, "course_id": course_id})
    return strip_mongo_id(doc)


async def list_enrollments(db: AsyncIOMotorDatabase, teacher: AuthContext, student_id: Optional[str] = None) -> List[dict]:
    """Enrollments in the teacher's courses with course name and assignment count"""
    courses = await db.courses.find({"creator_id": teacher.user_id}, {"_id": 0}).to_list(length=None)
    by_id = {c["course_id"]: c for c in courses}

    query = {"course_id": {"$in": list(by_id)}}
    if student_id:
        query["student_id"] = student_id

    enrollments = await db.enrollments.find(query, {"_id": 0}).sort("enrolled_at", -1).to_list(length=None)
    for enr in enrollments:
        enr["course_name"] = by_id[enr["course_id"]]["name"]
        enr["assignment_count"] = await db.assignments.count_documents({"enrollment_id": enr["enrollment_id"]})
    return enrollments


async def list_student_enrollments(db: AsyncIOMotorDatabase, student: AuthContext) -> List[dict]:
    enrollments = await db.enrollments.find(
        {"student_id": student.user_id}, {"_id": 0}
    ).sort("enrolled_at", -1).to_list(length=None)
    for enr in enrollments:
        course = await db.courses.find_one({"course_id": enr["course_id"]}, {"_id": 0, "name": 1, "duration": 1})
        enr["course_name"] = course.get("name") if course else None
        enr["course_duration"] = course.get("duration") if course else None
    return enrollments

# ==================== ASSIGNMENTS ====================

async def assign_resources(
    db: AsyncIOMotorDatabase,
    teacher: AuthContext,
    enrollment_id: str,
    resource_ids: List[str]
) -> List[dict]:
    """
    Attach resources to an enrollment, all or nothing.

    Orders continue from the enrollment's current max (0 when empty) in the
    order given. Two concurrent batches can compute the same base order; the
    (enrollment_id, order) unique index rejects the loser, whose already
    written rows are removed before reporting the conflict.

    Raises:
        400: Empty list, duplicate in batch, or resource already assigned
        403: Enrollment's course not owned by the teacher
        404: Enrollment or a resource missing
    """
    if not resource_ids:
        raise ValidationFailed("resourceIds must be a non-empty list")

    enrollment, course = await _load_enrollment(db, enrollment_id)
    enforce(can_assign(teacher, enrollment, course))

    if len(set(resource_ids)) != len(resource_ids):
        raise Conflict(ALREADY_ASSIGNED)

    found = await db.resources.count_documents({"resource_id": {"$in": resource_ids}})
    if found != len(resource_ids):
        raise NotFound("One or more resources not found")

    already = await db.assignments.find_one({
        "enrollment_id": enrollment_id,
        "resource_id": {"$in": resource_ids}
    })
    if already:
        raise Conflict(ALREADY_ASSIGNED)

    last = await db.assignments.find_one({"enrollment_id": enrollment_id}, sort=[("order", -1)])
    next_order = (last.get("order") or 0) + 1 if last else 1

    docs = [
        Assignment(
            assignment_id=generate_id("ASG"),
            enrollment_id=enrollment_id,
            resource_id=resource_id,
            order=next_order + i
        ).model_dump()
        for i, resource_id in enumerate(resource_ids)
    ]

    try:
        await db.assignments.insert_many(docs, ordered=True)
    except (DuplicateKeyError, BulkWriteError):
        await db.assignments.delete_many({"assignment_id": {"$in": [d["assignment_id"] for d in docs]}})
        raise Conflict(ALREADY_ASSIGNED)

    await log_audit(db, teacher, "assign_resources", "enrollment", enrollment_id,
                    {"resource_ids": resource_ids, "first_order": next_order})
    return [strip_mongo_id(d) for d in docs]


async def unassign(db: AsyncIOMotorDatabase, teacher: AuthContext, assignment_id: str):
    """Remove an assignment and the progress recorded against it"""
    assignment = await db.assignments.find_one({"assignment_id": assignment_id}, {"_id": 0})
    course = None
    if assignment:
        _, course = await _load_enrollment(db, assignment["enrollment_id"])
    enforce(can_unassign(teacher, assignment, course))

    await db.progress.delete_many({"assignment_id": assignment_id})
    await db.assignments.delete_one({"assignment_id": assignment_id})

    await log_audit(db, teacher, "unassign_resource", "assignment", assignment_id,
                    {"resource_id": assignment["resource_id"]})


async def list_enrollment_assignments(db: AsyncIOMotorDatabase, principal: AuthContext, enrollment_id: str) -> List[dict]:
    """
    Assignments of one enrollment in order, each with a resource summary and
    the enrolled student's progress (or None)
    """
    enrollment, course = await _load_enrollment(db, enrollment_id)
    enforce(can_read_enrollment(principal, enrollment, course))

    assignments = await db.assignments.find(
        {"enrollment_id": enrollment_id}, {"_id": 0}
    ).sort("order", 1).to_list(length=None)

    for asg in assignments:
        asg["resource"] = await db.resources.find_one(
            {"resource_id": asg["resource_id"]},
            {"_id": 0, "resource_id": 1, "title": 1, "type": 1, "level": 1, "skill": 1, "estimated_hours": 1}
        )
        asg["progress"] = await db.progress.find_one(
            {"assignment_id": asg["assignment_id"], "student_id": enrollment["student_id"]},
            {"_id": 0}
        )
    return assignments

# ==================== COURSE NOTES ====================

async def get_course_note(db: AsyncIOMotorDatabase, principal: AuthContext, enrollment_id: str) -> Optional[dict]:
    enrollment, course = await _load_enrollment(db, enrollment_id)
    enforce(can_read_enrollment(principal, enrollment, course))
    return await db.course_notes.find_one({"enrollment_id": enrollment_id}, {"_id": 0})


async def save_course_note(db: AsyncIOMotorDatabase, teacher: AuthContext, enrollment_id: str, content) -> dict:
    """Create or replace the single note of an enrollment"""
    if not isinstance(content, str):
        raise ValidationFailed("Invalid content")

    enrollment, course = await _load_enrollment(db, enrollment_id)
    enforce(can_assign(teacher, enrollment, course))

    now = datetime.utcnow()
    note = await upsert_one(
        db.course_notes,
        {"enrollment_id": enrollment_id},
        {
            "$set": {"content": content, "updated_at": now},
            "$setOnInsert": {"note_id": generate_id("NOTE"), "created_at": now}
        }
    )
    await log_audit(db, teacher, "save_course_note", "course_note", note["note_id"],
                    {"enrollment_id": enrollment_id})
    return note
