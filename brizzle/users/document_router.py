from typing import Optional

from fastapi import APIRouter, Depends, Query
from motor.motor_asyncio import AsyncIOMotorDatabase

from brizzle.auth.auth_context import AuthContext, get_principal, require_teacher
from brizzle.database import get_db
from brizzle.users import document_service as service
from brizzle.users.user_schemas import DocumentCreate

router = APIRouter(prefix="/documents", tags=["Student Documents"])


@router.post("")
async def add_document(
    data: DocumentCreate,
    teacher: AuthContext = Depends(require_teacher),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    document = await service.add_document(
        db, teacher, data.student_id, data.title, data.file_url,
        data.file_name, data.file_size, data.mime_type
    )
    return {"success": True, "document": document}


@router.get("")
async def list_documents(
    student_id: Optional[str] = Query(None, alias="studentId"),
    principal: AuthContext = Depends(get_principal),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    """
    Teachers read any student's documents, students only their own
    """
    return await service.list_documents(db, principal, student_id)


@router.delete("/{document_id}")
async def delete_document(
    document_id: str,
    teacher: AuthContext = Depends(require_teacher),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    await service.delete_document(db, teacher, document_id)
    return {"success": True}
