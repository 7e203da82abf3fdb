from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from brizzle.schemas import CamelModel
from brizzle.users.user_models import Role

# ==================== REQUEST SCHEMAS ====================

class UserCreate(CamelModel):
    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
    role: Role = Role.STUDENT

class EmailUpdate(CamelModel):
    email: str = Field(..., min_length=3)

class DocumentCreate(CamelModel):
    student_id: str = Field(..., min_length=1)
    title: Optional[str] = None
    file_url: str = Field(..., min_length=1)
    file_name: Optional[str] = None
    file_size: Optional[int] = Field(None, ge=0)
    mime_type: Optional[str] = None

# ==================== RESPONSE SCHEMAS ====================

class UserResponse(BaseModel):
    user_id: str
    name: str
    email: str
    role: Role
    avatar: Optional[str] = None
    created_at: datetime
