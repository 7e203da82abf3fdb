import logging
from typing import List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from brizzle.audit import log_audit
from brizzle.auth.auth_context import AuthContext
from brizzle.auth.auth_permissions import enforce, can_manage_document, can_read_documents
from brizzle.config import DOCUMENT_MAX_BYTES, DOCUMENT_MIME_TYPES
from brizzle.database import generate_id, strip_mongo_id
from brizzle.errors import ValidationFailed
from brizzle.users.user_models import StudentDocument
from brizzle.users.user_service import get_student

logger = logging.getLogger("brizzle.documents")


async def add_document(
    db: AsyncIOMotorDatabase,
    teacher: AuthContext,
    student_id: str,
    title: Optional[str],
    file_url: str,
    file_name: Optional[str] = None,
    file_size: Optional[int] = None,
    mime_type: Optional[str] = None
) -> dict:
    """
    Attach an already-uploaded file to a student's document list

    Raises:
        400: Missing title, unsupported type, file over 10MB
        404: Student missing
    """
    if not title or not title.strip():
        raise ValidationFailed("Document title is required")
    if mime_type and mime_type not in DOCUMENT_MIME_TYPES:
        raise ValidationFailed("Invalid file type. Only PDF, PNG, and JPEG files are allowed.")
    if file_size is not None and file_size > DOCUMENT_MAX_BYTES:
        raise ValidationFailed("File size exceeds limit (10MB)")

    await get_student(db, student_id)

    document = StudentDocument(
        document_id=generate_id("DOC"),
        student_id=student_id,
        title=title.strip(),
        file_url=file_url,
        file_name=file_name,
        file_size=file_size,
        mime_type=mime_type,
        uploaded_by=teacher.user_id
    )
    doc = document.model_dump()
    await db.student_documents.insert_one(doc)

    await log_audit(db, teacher, "add_document", "document", document.document_id, {"student_id": student_id})
    return strip_mongo_id(doc)


async def list_documents(db: AsyncIOMotorDatabase, principal: AuthContext, student_id: Optional[str]) -> List[dict]:
    target = student_id or principal.user_id
    enforce(can_read_documents(principal, target))

    cursor = db.student_documents.find({"student_id": target}, {"_id": 0}).sort("created_at", -1)
    return await cursor.to_list(length=None)


async def delete_document(db: AsyncIOMotorDatabase, teacher: AuthContext, document_id: str):
    """Only the teacher who added a document can remove it"""
    document = await db.student_documents.find_one({"document_id": document_id}, {"_id": 0})
    enforce(can_manage_document(teacher, document))

    await db.student_documents.delete_one({"document_id": document_id})
    await log_audit(db, teacher, "delete_document", "document", document_id,
                    {"student_id": document["student_id"]})
