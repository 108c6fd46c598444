"""
Feedback service: like/dislike and comments on sections.

Both write paths upsert the section's most recent feedback row and touch
only their own column, so a comment never clears an earlier like/dislike and
vice versa.
"""
from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.database_models import Feedback, Section

logger = logging.getLogger(__name__)


class FeedbackService:
    """Upsert-by-section feedback recorder."""

    async def get_feedback(self, section: Section, db: AsyncSession) -> Optional[Feedback]:
        """Return the section's current feedback row, or None."""
        result = await db.execute(
            select(Feedback)
            .where(Feedback.section_id == section.id)
            .order_by(Feedback.id.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def record_like(self, section: Section, is_liked: bool, db: AsyncSession) -> Feedback:
        """Set like (True) or dislike (False), keeping any existing comment."""
        feedback = await self._upsert(section, db)
        feedback.is_liked = is_liked
        await db.flush()
        logger.info("Section id=%d feedback is_liked=%s", section.id, is_liked)
        return feedback

    async def record_comment(self, section: Section, comment: str, db: AsyncSession) -> Feedback:
        """Set the comment, keeping any existing like/dislike."""
        feedback = await self._upsert(section, db)
        feedback.comment = comment.strip()
        await db.flush()
        logger.info("Section id=%d comment saved (%d chars)", section.id, len(feedback.comment))
        return feedback

    async def _upsert(self, section: Section, db: AsyncSession) -> Feedback:
        feedback = await self.get_feedback(section, db)
        if feedback is None:
            feedback = Feedback(section_id=section.id)
            db.add(feedback)
        return feedback
