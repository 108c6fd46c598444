"""Database and schema models for Quill."""
from app.models.database_models import (
    User,
    Project,
    Section,
    RefinementHistory,
    Feedback,
    DocumentType,
    ProjectStatus,
)
from app.models.schemas import (
    ProjectCreateRequest,
    ProjectResponse,
    ProjectDetailResponse,
    SectionResponse,
    RefinementHistoryResponse,
    FeedbackResponse,
    OutlineRequest,
    OutlineResponse,
    GenerateContentRequest,
    GenerateContentResponse,
    RefineContentRequest,
    RefineContentResponse,
    HealthCheckResponse,
)

__all__ = [
    # Database models
    "User",
    "Project",
    "Section",
    "RefinementHistory",
    "Feedback",
    "DocumentType",
    "ProjectStatus",
    # Pydantic schemas
    "ProjectCreateRequest",
    "ProjectResponse",
    "ProjectDetailResponse",
    "SectionResponse",
    "RefinementHistoryResponse",
    "FeedbackResponse",
    "OutlineRequest",
    "OutlineResponse",
    "GenerateContentRequest",
    "GenerateContentResponse",
    "RefineContentRequest",
    "RefineContentResponse",
    "HealthCheckResponse",
]
