from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

# ==================== ENUMS ====================

class Role(str, Enum):
    TEACHER = "TEACHER"
    STUDENT = "STUDENT"

# ==================== DATABASE MODELS ====================

class User(BaseModel):
    user_id: str  # USR_XXXXXX
    name: str
    email: str  # lower-cased, trimmed
    password: str  # bcrypt hash
    role: Role = Role.STUDENT
    avatar: Optional[str] = None  # emoji or image URL
    reset_token: Optional[str] = None
    reset_token_expiry: Optional[datetime] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

class StudentDocument(BaseModel):
    """
    File shared by a teacher with one student.
    Bytes live in object storage; only the URL is kept here.
    """
    document_id: str  # DOC_XXXXXX
    student_id: str
    title: str
    file_url: str
    file_name: Optional[str] = None
    file_size: Optional[int] = None
    mime_type: Optional[str] = None
    uploaded_by: str
    created_at: datetime = Field(default_factory=datetime.utcnow)

# Never leaves the server
PRIVATE_USER_FIELDS = {"_id": 0, "password": 0, "reset_token": 0, "reset_token_expiry": 0}
