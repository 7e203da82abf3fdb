from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from brizzle.courses.models import CourseNote
from brizzle.schemas import CamelModel

# ==================== REQUEST SCHEMAS ====================

class CourseCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=200)
    duration: Optional[str] = None

class EnrollmentCreate(CamelModel):
    student_id: str = Field(..., min_length=1)
    course_id: str = Field(..., min_length=1)

class AssignmentCreate(CamelModel):
    enrollment_id: str = Field(..., min_length=1)
    resource_ids: List[str]

class CourseNoteUpdate(CamelModel):
    content: Optional[str] = None

# ==================== RESPONSE SCHEMAS ====================

class CourseResponse(BaseModel):
    course_id: str
    name: str
    duration: Optional[str] = None
    creator_id: str
    created_at: datetime

class EnrollmentResponse(BaseModel):
    enrollment_id: str
    student_id: str
    course_id: str
    enrolled_at: datetime

class AssignmentResponse(BaseModel):
    assignment_id: str
    enrollment_id: str
    resource_id: str
    order: int
    assigned_at: datetime

class CourseNoteResponse(BaseModel):
    note: Optional[CourseNote] = None
