from typing import Optional

from fastapi import APIRouter, Depends, Query
from motor.motor_asyncio import AsyncIOMotorDatabase

from brizzle.auth.auth_context import AuthContext, get_principal, require_student, require_teacher
from brizzle.database import get_db
from brizzle.progress import vocabulary_service as service
from brizzle.progress.schemas import (
    VocabularyProgressUpdate, VocabularyImport, VocabularyProgressResult, VocabularyProgressList
)

router = APIRouter(tags=["Vocabulary"])

# ==================== CHALLENGE PROGRESS ====================

@router.get("/vocabulary-progress", response_model=VocabularyProgressList)
async def get_vocabulary_progress(
    level: Optional[str] = Query(None),
    topic: Optional[str] = Query(None),
    student_id: Optional[str] = Query(None, alias="studentId"),
    principal: AuthContext = Depends(get_principal),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    """
    Students read their own progress; teachers may pass studentId
    """
    rows = await service.list_challenge_progress(db, principal, level, topic, student_id)
    return {"data": rows, "error": None}


@router.post("/vocabulary-progress", response_model=VocabularyProgressResult)
async def save_vocabulary_progress(
    data: VocabularyProgressUpdate,
    student: AuthContext = Depends(require_student),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    row = await service.record_challenge(
        db, student, data.level, data.topic, data.bronze, data.silver, data.gold
    )
    return {"data": row, "error": None}

# ==================== WORD LISTS ====================

@router.get("/vocabulary/{level}")
async def list_topics(
    level: str,
    principal: AuthContext = Depends(get_principal),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    return {"data": await service.list_topics(db, level), "error": None}


# Registered before /{topic} so "icons" is not read as a topic name
@router.get("/vocabulary/{level}/icons")
async def list_topic_icons(
    level: str,
    principal: AuthContext = Depends(get_principal),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    """
    Topic name -> icon map for the topic cards of a level
    """
    return {"data": await service.list_topic_icons(db, level), "error": None}


@router.get("/vocabulary/{level}/{topic}")
async def list_words(
    level: str,
    topic: str,
    principal: AuthContext = Depends(get_principal),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    return {"data": await service.list_words(db, level, topic), "error": None}


@router.post("/vocabulary/{level}/words", status_code=201)
async def import_words(
    level: str,
    data: VocabularyImport,
    teacher: AuthContext = Depends(require_teacher),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    """
    Append words to a level's list (teacher only)
    """
    count = await service.import_words(db, level, [w.model_dump() for w in data.words])
    return {"inserted": count}
