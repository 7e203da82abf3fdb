from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

# ==================== DATABASE MODELS ====================

class Course(BaseModel):
    course_id: str  # CRS_XXXXXX
    name: str  # e.g. "TOEIC-30h"
    duration: Optional[str] = None
    creator_id: str  # teacher USR_XXXXXX
    created_at: datetime = Field(default_factory=datetime.utcnow)

class Enrollment(BaseModel):
    """
    Link between a student and a course.
    Unique per (student_id, course_id); never updated.
    """
    enrollment_id: str  # ENR_XXXXXX
    student_id: str
    course_id: str
    enrolled_at: datetime = Field(default_factory=datetime.utcnow)

class Assignment(BaseModel):
    """
    A resource attached to an enrollment.
    `order` is 1-based and increases with each assignment batch.
    """
    assignment_id: str  # ASG_XXXXXX
    enrollment_id: str
    resource_id: str
    order: int
    assigned_at: datetime = Field(default_factory=datetime.utcnow)

class CourseNote(BaseModel):
    note_id: str  # NOTE_XXXXXX
    enrollment_id: str  # one note per enrollment
    content: str  # rich text (HTML)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
