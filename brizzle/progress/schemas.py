from typing import List, Optional

from pydantic import BaseModel, StrictBool

from brizzle.progress.models import ProgressStatus, VocabularyProgress
from brizzle.schemas import CamelModel

# ==================== REQUEST SCHEMAS ====================

class ProgressUpdate(CamelModel):
    notes: Optional[str] = None
    status: ProgressStatus

class VocabularyProgressUpdate(CamelModel):
    level: str
    topic: str
    # Booleans only; "true" or 1 are rejected
    bronze: StrictBool
    silver: StrictBool
    gold: StrictBool

class VocabularyWordIn(CamelModel):
    topic: str
    word_english: str
    pron_english: Optional[str] = None
    translation_french: Optional[str] = None
    icon: Optional[str] = None  # emoji shown on the topic card

class VocabularyImport(CamelModel):
    words: List[VocabularyWordIn]

# ==================== RESPONSE SCHEMAS ====================

class VocabularyProgressResult(BaseModel):
    data: VocabularyProgress
    error: Optional[str] = None

class VocabularyProgressList(BaseModel):
    data: List[VocabularyProgress]
    error: Optional[str] = None
