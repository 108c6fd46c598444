"""
Pydantic schemas for request/response validation.

The three AI endpoints keep the camelCase wire format used by the web
client (``documentType``, ``projectId``, ``sectionId``, ``currentContent``);
the CRUD endpoints use snake_case.
"""
from pydantic import BaseModel, Field, ConfigDict, field_validator
from typing import Optional, List
from datetime import datetime
from enum import Enum


# Enums (matching database enums)
class DocumentTypeSchema(str, Enum):
    """Document kinds for API requests/responses."""

    DOCX = "docx"
    PPTX = "pptx"


class ProjectStatusSchema(str, Enum):
    """Project lifecycle states for API responses."""

    DRAFT = "draft"
    GENERATING = "generating"
    COMPLETED = "completed"


def _require_text(value: str, field_name: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError(f"{field_name} must not be blank")
    return value


# ---------------------------------------------------------------------------
# Project / section schemas
# ---------------------------------------------------------------------------

class ProjectCreateRequest(BaseModel):
    """Schema for creating a project together with its section titles."""

    topic: str = Field(..., min_length=1)
    document_type: DocumentTypeSchema = DocumentTypeSchema.DOCX
    sections: List[str] = Field(..., min_length=1)

    @field_validator("topic")
    @classmethod
    def _topic_not_blank(cls, value: str) -> str:
        return _require_text(value, "topic")

    @field_validator("sections")
    @classmethod
    def _titles_not_blank(cls, value: List[str]) -> List[str]:
        return [_require_text(title, "section title") for title in value]


class SectionResponse(BaseModel):
    """Schema for section details."""

    id: int
    project_id: int
    order_index: int
    title: str
    content: Optional[str] = None
    is_generated: bool = False
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ProjectResponse(BaseModel):
    """Schema for project list entries."""

    id: int
    topic: str
    document_type: DocumentTypeSchema
    status: ProjectStatusSchema
    section_count: int = 0
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ProjectDetailResponse(ProjectResponse):
    """Project with its sections in order_index order."""

    sections: List[SectionResponse] = []


# ---------------------------------------------------------------------------
# Refinement history / feedback schemas
# ---------------------------------------------------------------------------

class RefinementHistoryResponse(BaseModel):
    """One audit row written by a refinement."""

    id: int
    section_id: int
    prompt: str
    previous_content: Optional[str] = None
    new_content: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class FeedbackLikeRequest(BaseModel):
    """Like (true) or dislike (false) a section."""

    is_liked: bool


class FeedbackCommentRequest(BaseModel):
    """Free-text comment on a section."""

    comment: str

    @field_validator("comment")
    @classmethod
    def _comment_not_blank(cls, value: str) -> str:
        return _require_text(value, "comment")


class FeedbackResponse(BaseModel):
    """Current feedback for a section (fields are null when nothing recorded)."""

    section_id: int
    is_liked: Optional[bool] = None
    comment: Optional[str] = None
    updated_at: Optional[datetime] = None


# ---------------------------------------------------------------------------
# AI endpoint schemas (camelCase wire format)
# ---------------------------------------------------------------------------

class OutlineRequest(BaseModel):
    """Request body for POST /api/ai/generate-outline."""

    topic: str
    document_type: DocumentTypeSchema = Field(DocumentTypeSchema.DOCX, alias="documentType")

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("topic")
    @classmethod
    def _topic_not_blank(cls, value: str) -> str:
        return _require_text(value, "topic")


class OutlineResponse(BaseModel):
    """Ordered section/slide titles proposed for a topic."""

    outline: List[str]


class SectionRef(BaseModel):
    """A (section id, title) pair sent to the content generator."""

    id: int
    title: str


class GenerateContentRequest(BaseModel):
    """Request body for POST /api/ai/generate-content."""

    project_id: int = Field(..., alias="projectId")
    topic: str
    document_type: DocumentTypeSchema = Field(..., alias="documentType")
    sections: List[SectionRef]

    model_config = ConfigDict(populate_by_name=True)


class GenerateContentResponse(BaseModel):
    """Response body for POST /api/ai/generate-content."""

    success: bool


class RefineContentRequest(BaseModel):
    """Request body for POST /api/ai/refine-content."""

    section_id: int = Field(..., alias="sectionId")
    prompt: str
    current_content: Optional[str] = Field(None, alias="currentContent")
    title: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("prompt")
    @classmethod
    def _prompt_not_blank(cls, value: str) -> str:
        return _require_text(value, "prompt")


class RefineContentResponse(BaseModel):
    """Response body for POST /api/ai/refine-content."""

    success: bool
    content: str


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------

class HealthCheckResponse(BaseModel):
    """Schema for health check endpoint."""

    status: str
    database: str
    ai_gateway: str
    timestamp: datetime
    version: str = "0.1.0"
