from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from motor.motor_asyncio import AsyncIOMotorDatabase

from brizzle.audit import get_audit_trail
from brizzle.auth.auth_context import AuthContext, get_optional_principal, require_teacher
from brizzle.database import get_db
from brizzle.users import user_service as service
from brizzle.users.user_models import Role
from brizzle.users.user_schemas import UserCreate, EmailUpdate, UserResponse

router = APIRouter(tags=["Users"])

# ==================== ACCOUNTS ====================

@router.post("/users", response_model=UserResponse)
async def create_user(
    data: UserCreate,
    actor: Optional[AuthContext] = Depends(get_optional_principal),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    """
    Teachers create accounts; the very first account can be created without a session
    """
    return await service.create_user(db, actor, data.name, data.email, data.password, data.role)


@router.get("/users", response_model=List[UserResponse])
async def list_users(
    role: Optional[Role] = Query(None),
    teacher: AuthContext = Depends(require_teacher),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    return await service.list_users(db, role)


@router.get("/users/{user_id}", response_model=UserResponse)
async def get_student(
    user_id: str,
    teacher: AuthContext = Depends(require_teacher),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    return await service.get_student(db, user_id)


@router.patch("/users/{user_id}/email", response_model=UserResponse)
async def update_email(
    user_id: str,
    data: EmailUpdate,
    teacher: AuthContext = Depends(require_teacher),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    return await service.update_email(db, teacher, user_id, data.email)


@router.delete("/users/{user_id}")
async def delete_student(
    user_id: str,
    teacher: AuthContext = Depends(require_teacher),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    """
    Delete a student with their enrollments, assignments, progress, notes and documents.
    A failed run reports the stage and can simply be retried.
    """
    return await service.delete_student(db, teacher, user_id)

# ==================== AUDIT ====================

@router.get("/audit-logs")
async def list_audit_logs(
    target_type: Optional[str] = Query(None, alias="targetType"),
    target_id: Optional[str] = Query(None, alias="targetId"),
    limit: int = Query(100, ge=1, le=500),
    teacher: AuthContext = Depends(require_teacher),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    return await get_audit_trail(db, target_type, target_id, limit)
