"""
Section-scoped endpoints: refinement history and feedback.

Routes
------
GET  /api/sections/{section_id}/history   — refinement audit trail, oldest first
GET  /api/sections/{section_id}/feedback  — current like/dislike + comment
POST /api/sections/{section_id}/feedback  — record like/dislike
POST /api/sections/{section_id}/comment   — record comment
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.dependencies.auth import get_authorized_section
from app.models.database_models import Feedback, RefinementHistory, Section
from app.models.schemas import (
    FeedbackCommentRequest,
    FeedbackLikeRequest,
    FeedbackResponse,
    RefinementHistoryResponse,
)
from app.services.feedback_service import FeedbackService

logger = logging.getLogger(__name__)

router = APIRouter()


def _feedback_response(section: Section, feedback: Optional[Feedback]) -> FeedbackResponse:
    if feedback is None:
        return FeedbackResponse(section_id=section.id)
    return FeedbackResponse(
        section_id=section.id,
        is_liked=feedback.is_liked,
        comment=feedback.comment,
        updated_at=feedback.updated_at,
    )


@router.get("/{section_id}/history", response_model=List[RefinementHistoryResponse])
async def get_refinement_history(
    section: Section = Depends(get_authorized_section),
    db: AsyncSession = Depends(get_db),
) -> List[RefinementHistoryResponse]:
    """Return every refinement of the section in call order."""
    result = await db.execute(
        select(RefinementHistory)
        .where(RefinementHistory.section_id == section.id)
        .order_by(RefinementHistory.id)
    )
    return [RefinementHistoryResponse.model_validate(row) for row in result.scalars().all()]


@router.get("/{section_id}/feedback", response_model=FeedbackResponse)
async def get_feedback(
    section: Section = Depends(get_authorized_section),
    db: AsyncSession = Depends(get_db),
) -> FeedbackResponse:
    feedback = await FeedbackService().get_feedback(section, db)
    return _feedback_response(section, feedback)


@router.post("/{section_id}/feedback", response_model=FeedbackResponse)
async def record_feedback(
    body: FeedbackLikeRequest,
    section: Section = Depends(get_authorized_section),
    db: AsyncSession = Depends(get_db),
) -> FeedbackResponse:
    """Record a like (true) or dislike (false) for the section."""
    feedback = await FeedbackService().record_like(section, body.is_liked, db)
    return _feedback_response(section, feedback)


@router.post("/{section_id}/comment", response_model=FeedbackResponse)
async def record_comment(
    body: FeedbackCommentRequest,
    section: Section = Depends(get_authorized_section),
    db: AsyncSession = Depends(get_db),
) -> FeedbackResponse:
    """Save a free-text comment on the section."""
    feedback = await FeedbackService().record_comment(section, body.comment, db)
    return _feedback_response(section, feedback)
