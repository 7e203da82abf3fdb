from typing import List

from fastapi import APIRouter, Depends
from motor.motor_asyncio import AsyncIOMotorDatabase

from brizzle.auth.auth_context import AuthContext, get_principal, require_teacher
from brizzle.courses import course_service as service
from brizzle.courses.schemas import CourseCreate, CourseResponse, CourseNoteUpdate, CourseNoteResponse
from brizzle.database import get_db

router = APIRouter(tags=["Courses"])

# ==================== COURSES ====================

@router.post("/courses", response_model=CourseResponse, status_code=201)
async def create_course(
    data: CourseCreate,
    teacher: AuthContext = Depends(require_teacher),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    return await service.create_course(db, teacher, data.name, data.duration)


@router.get("/courses", response_model=List[CourseResponse])
async def list_courses(
    principal: AuthContext = Depends(get_principal),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    """
    Teachers get their own courses, students the courses they are enrolled in
    """
    return await service.list_courses(db, principal)

# ==================== COURSE NOTES ====================

@router.get("/course-notes/{enrollment_id}", response_model=CourseNoteResponse)
async def get_course_note(
    enrollment_id: str,
    principal: AuthContext = Depends(get_principal),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    note = await service.get_course_note(db, principal, enrollment_id)
    return {"note": note}


@router.put("/course-notes/{enrollment_id}", response_model=CourseNoteResponse)
async def save_course_note(
    enrollment_id: str,
    data: CourseNoteUpdate,
    teacher: AuthContext = Depends(require_teacher),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    note = await service.save_course_note(db, teacher, enrollment_id, data.content)
    return {"note": note}
