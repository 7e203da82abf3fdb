from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from motor.motor_asyncio import AsyncIOMotorDatabase

from brizzle.auth.auth_context import AuthContext, get_principal, require_teacher
from brizzle.courses import course_service as service
from brizzle.courses.schemas import (
    EnrollmentCreate, EnrollmentResponse, AssignmentCreate, AssignmentResponse
)
from brizzle.database import get_db

router = APIRouter(tags=["Enrollments"])

# ==================== ENROLLMENTS ====================

@router.post("/enrollments", response_model=EnrollmentResponse)
async def enroll_student(
    data: EnrollmentCreate,
    teacher: AuthContext = Depends(require_teacher),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    """
    Enroll a student in one of the teacher's courses
    """
    return await service.enroll_student(db, teacher, data.student_id, data.course_id)


@router.get("/enrollments")
async def list_enrollments(
    student_id: Optional[str] = Query(None, alias="studentId"),
    principal: AuthContext = Depends(get_principal),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    """
    Teachers: enrollments across their courses (optionally one student).
    Students: their own enrollments.
    """
    if principal.is_teacher:
        return await service.list_enrollments(db, principal, student_id)
    return await service.list_student_enrollments(db, principal)


@router.get("/enrollments/{enrollment_id}/assignments")
async def list_enrollment_assignments(
    enrollment_id: str,
    principal: AuthContext = Depends(get_principal),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    return await service.list_enrollment_assignments(db, principal, enrollment_id)

# ==================== ASSIGNMENTS ====================

@router.post("/assignments", response_model=List[AssignmentResponse])
async def assign_resources(
    data: AssignmentCreate,
    teacher: AuthContext = Depends(require_teacher),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    """
    Assign resources to an enrollment; the whole batch fails if any is already assigned
    """
    return await service.assign_resources(db, teacher, data.enrollment_id, data.resource_ids)


@router.delete("/assignments/{assignment_id}")
async def unassign(
    assignment_id: str,
    teacher: AuthContext = Depends(require_teacher),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    await service.unassign(db, teacher, assignment_id)
    return {"success": True}
