"""
Content lifecycle service: outline proposal, bulk section generation and
per-section refinement.

Public API
----------
ContentService.generate_outline(topic, document_type)                  -> List[str]
ContentService.generate_content(project, sections, db, *, topic, ...)  -> ContentGenerationResult
ContentService.refine_section(section, instruction, db, *, ...)        -> RefinementResult

Status handling for bulk generation
-----------------------------------
The project is committed as ``generating`` before the gateway is called.  On
success every listed section is written and the project becomes
``completed``.  On any failure the session is rolled back and the project is
committed back to ``draft`` so the action can be retried; no section is
written partially.
"""
from __future__ import annotations

import dataclasses
import logging
from typing import List, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.database_models import (
    Project,
    ProjectStatus,
    RefinementHistory,
    Section,
)
from app.services.ai_gateway import AIGatewayClient

logger = logging.getLogger(__name__)


class SectionsNotInProjectError(LookupError):
    """Raised when a generation request names sections outside the project."""

    def __init__(self, project_id: int, section_ids: Sequence[int]) -> None:
        self.project_id = project_id
        self.section_ids = list(section_ids)
        super().__init__(
            f"Sections {self.section_ids} do not belong to project {project_id}"
        )


# ---------------------------------------------------------------------------
# Result dataclasses
# ---------------------------------------------------------------------------

@dataclasses.dataclass
class ContentGenerationResult:
    """Returned by ContentService.generate_content."""

    project_id: int
    sections_generated: int
    status: ProjectStatus


@dataclasses.dataclass
class RefinementResult:
    """Returned by ContentService.refine_section."""

    section_id: int
    history_id: int
    content: str


@dataclasses.dataclass
class SectionRequest:
    """A (section id, title) pair as sent by the client."""

    id: int
    title: str


class ContentService:
    """Drives the gateway calls and persists their results."""

    def __init__(self, ai_client: AIGatewayClient) -> None:
        self.ai = ai_client

    # ------------------------------------------------------------------
    # Outline
    # ------------------------------------------------------------------

    async def generate_outline(self, topic: str, document_type) -> List[str]:
        """Propose titles; nothing is persisted."""
        return await self.ai.generate_outline(topic, document_type)

    # ------------------------------------------------------------------
    # Bulk content generation
    # ------------------------------------------------------------------

    async def generate_content(
        self,
        project: Project,
        sections: Sequence[SectionRequest],
        db: AsyncSession,
        *,
        topic: Optional[str] = None,
        document_type=None,
    ) -> ContentGenerationResult:
        """
        Fill every listed section with generated content.

        Raises SectionsNotInProjectError before any state change when a listed
        id is not a section of *project*.  Gateway or database errors are
        re-raised after the project has been reverted to ``draft``.
        """
        project_id = project.id
        topic = topic or project.topic
        document_type = document_type or project.document_type

        by_id = await self._load_sections(db, project_id, [ref.id for ref in sections])
        missing = [ref.id for ref in sections if ref.id not in by_id]
        if missing:
            raise SectionsNotInProjectError(project_id, missing)

        project.status = ProjectStatus.GENERATING
        await db.commit()
        logger.info(
            "Generating content for project id=%d (%d sections)", project_id, len(sections)
        )

        try:
            contents = await self.ai.generate_sections(
                topic, document_type, [ref.title for ref in sections]
            )

            for ref, content in zip(sections, contents):
                section = by_id[ref.id]
                section.content = content
                section.is_generated = True

            project.status = ProjectStatus.COMPLETED
            await db.commit()
        except Exception as exc:
            logger.error(
                "Content generation failed for project id=%d: %s; reverting to draft",
                project_id,
                exc,
            )
            await self._revert_to_draft(db, project)
            raise

        logger.info("Project id=%d completed", project_id)
        return ContentGenerationResult(
            project_id=project_id,
            sections_generated=len(sections),
            status=ProjectStatus.COMPLETED,
        )

    # ------------------------------------------------------------------
    # Refinement
    # ------------------------------------------------------------------

    async def refine_section(
        self,
        section: Section,
        instruction: str,
        db: AsyncSession,
        *,
        current_content: Optional[str] = None,
        title: Optional[str] = None,
    ) -> RefinementResult:
        """
        Rewrite one section and append an audit row.

        The stored content is overwritten unconditionally (last write wins).
        *current_content* and *title* default to the stored values.
        """
        previous = current_content if current_content is not None else section.content
        title = title or section.title

        refined = await self.ai.refine_content(title, previous or "", instruction)

        entry = RefinementHistory(
            section_id=section.id,
            prompt=instruction,
            previous_content=previous,
            new_content=refined,
        )
        db.add(entry)
        section.content = refined
        await db.flush()

        logger.info("Refined section id=%d (history id=%d)", section.id, entry.id)
        return RefinementResult(section_id=section.id, history_id=entry.id, content=refined)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    async def _load_sections(db: AsyncSession, project_id: int, section_ids: List[int]) -> dict:
        if not section_ids:
            return {}
        result = await db.execute(
            select(Section).where(
                Section.project_id == project_id,
                Section.id.in_(section_ids),
            )
        )
        return {section.id: section for section in result.scalars().all()}

    @staticmethod
    async def _revert_to_draft(db: AsyncSession, project: Project) -> None:
        # Set on the loaded object: later reads in this session reuse it
        await db.rollback()
        project.status = ProjectStatus.DRAFT
        await db.commit()
