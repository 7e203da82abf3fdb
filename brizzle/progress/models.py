import re
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

# ==================== ENUMS ====================

class ProgressStatus(str, Enum):
    NOT_STARTED = "NOT_STARTED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"

class Medal(str, Enum):
    """Vocabulary challenge tiers, unlocked in this order"""
    BRONZE = "bronze"
    SILVER = "silver"
    GOLD = "gold"

MEDAL_ORDER = [Medal.BRONZE.value, Medal.SILVER.value, Medal.GOLD.value]

# ==================== DATABASE MODELS ====================

class Progress(BaseModel):
    """
    One row per (assignment_id, student_id).
    completed_at is set iff status == COMPLETED.
    """
    progress_id: str  # PRG_XXXXXX
    assignment_id: str
    student_id: str
    status: ProgressStatus = ProgressStatus.NOT_STARTED
    notes: Optional[str] = None
    completed_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

class VocabularyProgress(BaseModel):
    """
    One row per (student_id, level, topic_key).
    completed_at is set iff bronze, silver and gold are all earned.
    """
    vocabulary_progress_id: str  # VOC_XXXXXX
    student_id: str
    level: str  # lower-case, e.g. "a1"
    topic: str  # display name, whitespace-normalized
    topic_key: str  # case-folded lookup key
    bronze: bool = False
    silver: bool = False
    gold: bool = False
    completed_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

# ==================== NORMALIZATION ====================

_WHITESPACE = re.compile(r"\s+")


def normalize_topic(topic: str) -> str:
    """Trim and collapse whitespace runs to a single space"""
    return _WHITESPACE.sub(" ", topic.strip())


def topic_key(topic: str) -> str:
    """Lookup key shared by read and write paths"""
    return normalize_topic(topic).casefold()


def normalize_level(level: str) -> str:
    return level.strip().lower()
