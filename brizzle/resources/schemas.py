from typing import List, Optional, Union

from pydantic import Field

from brizzle.resources.models import (
    ResourceType, Level, HtmlContent, FileContent, PdfWithAudioContent
)
from brizzle.schemas import CamelModel

# ==================== REQUEST SCHEMAS ====================

class ResourceCreate(CamelModel):
    title: str = Field(..., min_length=1, max_length=300)
    description: Optional[str] = None
    type: ResourceType = ResourceType.WORKSHEET
    # Raw string, or a structured variant that is serialized before storage
    content: Union[str, PdfWithAudioContent, FileContent, HtmlContent]
    level: Optional[Level] = None
    skill: Optional[str] = None
    estimated_hours: Optional[float] = Field(None, ge=0)
    tags: Optional[List[str]] = None

class ResourceUpdate(CamelModel):
    title: Optional[str] = Field(None, min_length=1, max_length=300)
    description: Optional[str] = None
    type: Optional[ResourceType] = None
    content: Optional[Union[str, PdfWithAudioContent, FileContent, HtmlContent]] = None
    level: Optional[Level] = None
    skill: Optional[str] = None
    estimated_hours: Optional[float] = Field(None, ge=0)
    tags: Optional[List[str]] = None
