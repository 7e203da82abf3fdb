from typing import Optional

from fastapi import APIRouter, Depends
from motor.motor_asyncio import AsyncIOMotorDatabase

from brizzle.auth.auth_context import AuthContext, require_student
from brizzle.database import get_db
from brizzle.progress import progress_service as service
from brizzle.progress.models import Progress
from brizzle.progress.schemas import ProgressUpdate

router = APIRouter(prefix="/progress", tags=["Progress"])


@router.post("/{assignment_id}", response_model=Progress)
async def record_progress(
    assignment_id: str,
    data: ProgressUpdate,
    student: AuthContext = Depends(require_student),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    """
    Save status and notes for one of the student's assignments
    """
    return await service.record_progress(db, student, assignment_id, data.notes, data.status)


@router.post("/{assignment_id}/viewed", response_model=Progress)
async def mark_viewed(
    assignment_id: str,
    student: AuthContext = Depends(require_student),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    """
    Signal that the assignment was opened; never overwrites existing progress
    """
    return await service.mark_viewed(db, student, assignment_id)


@router.get("/{assignment_id}", response_model=Optional[Progress])
async def get_progress(
    assignment_id: str,
    student: AuthContext = Depends(require_student),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    return await service.get_progress(db, student, assignment_id)
