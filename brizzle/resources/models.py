"""
Resource bank models.

`content` is stored as a single string for compatibility with the existing
data: raw worksheet HTML, an uploaded file path, or a JSON object
``{"type": "pdf-with-audio", "pdf": ..., "audio": [...]}``. It is decoded
once into one of the content variants below by ``parse_content``.
"""

import json
from datetime import datetime
from enum import Enum
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, Field

# ==================== ENUMS ====================

class ResourceType(str, Enum):
    WORKSHEET = "WORKSHEET"
    DOCUMENT = "DOCUMENT"

class Level(str, Enum):
    ALL = "All"
    A1 = "A1"
    A2 = "A2"
    B1 = "B1"
    B2 = "B2"
    C1 = "C1"
    C2 = "C2"

# ==================== CONTENT VARIANTS ====================

class HtmlContent(BaseModel):
    kind: Literal["html"] = "html"
    html: str

class FileContent(BaseModel):
    kind: Literal["file"] = "file"
    path: str
    is_pdf: bool = False

class PdfWithAudioContent(BaseModel):
    kind: Literal["pdf-with-audio"] = "pdf-with-audio"
    pdf: str
    audio: List[str] = []

ResourceContent = Union[HtmlContent, FileContent, PdfWithAudioContent]

FILE_PREFIXES = ("/uploads/", "uploads/", "http://", "https://")


def parse_content(raw: Optional[str]) -> ResourceContent:
    """Decide the content variant of a stored content string"""
    raw = raw or ""
    stripped = raw.strip()

    if stripped.startswith("{"):
        try:
            data = json.loads(stripped)
        except ValueError:
            data = None
        if isinstance(data, dict) and data.get("type") == "pdf-with-audio":
            audio = data.get("audio") or []
            if isinstance(audio, str):
                audio = [audio]
            return PdfWithAudioContent(pdf=data.get("pdf") or "", audio=list(audio))

    if stripped.startswith(FILE_PREFIXES) and "\n" not in stripped:
        return FileContent(path=stripped, is_pdf=stripped.lower().split("?")[0].endswith(".pdf"))

    return HtmlContent(html=raw)


def serialize_content(content: ResourceContent) -> str:
    """Inverse of parse_content, used when a client sends a structured variant"""
    if isinstance(content, PdfWithAudioContent):
        return json.dumps({"type": "pdf-with-audio", "pdf": content.pdf, "audio": content.audio})
    if isinstance(content, FileContent):
        return content.path
    return content.html

# ==================== DATABASE MODELS ====================

class Resource(BaseModel):
    resource_id: str  # RES_XXXXXX
    title: str
    description: Optional[str] = None
    type: ResourceType = ResourceType.WORKSHEET
    content: str
    level: Optional[Level] = None
    skill: Optional[str] = None
    estimated_hours: Optional[float] = None
    tags: Optional[List[str]] = None
    creator_id: str
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
