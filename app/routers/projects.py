"""
Project management endpoints.

A project is a topic plus an ordered list of sections (Word sections or
slides), owned by one user.

Route summary
-------------
POST   /api/projects                                — create project + sections
GET    /api/projects                                — list user's projects
GET    /api/projects/{project_id}                   — project detail with sections
DELETE /api/projects/{project_id}                   — delete project (cascades)
DELETE /api/projects/{project_id}/sections/{id}     — delete one section
GET    /api/projects/{project_id}/export            — download .docx / .pptx
"""
import logging
import re
from typing import Dict, List
from urllib.parse import quote

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.dependencies.auth import (
    get_authorized_project,
    get_current_user_id,
    get_or_create_user,
)
from app.models.database_models import (
    DocumentType,
    Project,
    ProjectStatus,
    Section,
    User,
)
from app.models.schemas import (
    ProjectCreateRequest,
    ProjectDetailResponse,
    ProjectResponse,
    SectionResponse,
)
from app.services.exporter import export_project

logger = logging.getLogger(__name__)

router = APIRouter()

_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")


# ─── Helpers ──────────────────────────────────────────────────────────────────

async def _ordered_sections(db: AsyncSession, project_id: int) -> List[Section]:
    result = await db.execute(
        select(Section)
        .where(Section.project_id == project_id)
        .order_by(Section.order_index)
    )
    return list(result.scalars().all())


def _project_response(project: Project, section_count: int) -> ProjectResponse:
    return ProjectResponse(
        id=project.id,
        topic=project.topic,
        document_type=project.document_type.value,
        status=project.status.value,
        section_count=section_count,
        created_at=project.created_at,
        updated_at=project.updated_at,
    )


def _detail_response(project: Project, sections: List[Section]) -> ProjectDetailResponse:
    return ProjectDetailResponse(
        **_project_response(project, len(sections)).model_dump(),
        sections=[SectionResponse.model_validate(s) for s in sections],
    )


def _content_disposition(filename: str) -> str:
    # Header values must not carry CR, LF or other control characters
    ascii_name = _CONTROL_CHARS.sub(" ", filename)
    ascii_name = ascii_name.encode("ascii", "ignore").decode().replace('"', "").strip() or "export"
    return f"attachment; filename=\"{ascii_name}\"; filename*=UTF-8''{quote(filename)}"


# ═══════════════════════════════════════════════════════════════════════════════
# PROJECT CRUD
# ═══════════════════════════════════════════════════════════════════════════════

@router.post("", response_model=ProjectDetailResponse, status_code=status.HTTP_201_CREATED)
async def create_project(
    body: ProjectCreateRequest,
    user: User = Depends(get_or_create_user),
    db: AsyncSession = Depends(get_db),
) -> ProjectDetailResponse:
    """
    Create a project in ``draft`` status with one section per title.

    Section positions are the list indices (0..n-1).
    """
    project = Project(
        user_id=user.id,
        document_type=DocumentType(body.document_type.value),
        topic=body.topic,
        status=ProjectStatus.DRAFT,
    )
    db.add(project)
    await db.flush()

    sections = [
        Section(project_id=project.id, title=title, order_index=index)
        for index, title in enumerate(body.sections)
    ]
    db.add_all(sections)
    await db.flush()

    logger.info(
        "Created project id=%d (%s, %d sections) for user=%s",
        project.id,
        project.document_type.value,
        len(sections),
        user.id,
    )
    return _detail_response(project, sections)


@router.get("", response_model=List[ProjectResponse])
async def list_projects(
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> List[ProjectResponse]:
    """List all projects belonging to the authenticated user, newest first."""
    result = await db.execute(
        select(Project)
        .where(Project.user_id == user_id)
        .order_by(Project.created_at.desc(), Project.id.desc())
    )
    projects = result.scalars().all()

    # Batch-fetch section counts
    project_ids = [p.id for p in projects]
    section_counts: Dict[int, int] = {}
    if project_ids:
        sc_result = await db.execute(
            select(Section.project_id, func.count(Section.id).label("cnt"))
            .where(Section.project_id.in_(project_ids))
            .group_by(Section.project_id)
        )
        section_counts = {row.project_id: row.cnt for row in sc_result}

    return [_project_response(p, section_counts.get(p.id, 0)) for p in projects]


@router.get("/{project_id}", response_model=ProjectDetailResponse)
async def get_project(
    project: Project = Depends(get_authorized_project),
    db: AsyncSession = Depends(get_db),
) -> ProjectDetailResponse:
    """Get project details with sections in order."""
    sections = await _ordered_sections(db, project.id)
    return _detail_response(project, sections)


@router.delete(
    "/{project_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_model=None,
)
async def delete_project(
    project: Project = Depends(get_authorized_project),
    db: AsyncSession = Depends(get_db),
) -> None:
    """Delete a project and all its sections, refinement history and feedback."""
    await db.delete(project)
    await db.flush()
    logger.info("Deleted project id=%d", project.id)


@router.delete(
    "/{project_id}/sections/{section_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_model=None,
)
async def delete_section(
    section_id: int,
    project: Project = Depends(get_authorized_project),
    db: AsyncSession = Depends(get_db),
) -> None:
    """
    Delete one section.  Remaining sections keep their order_index, so gaps
    in the sequence are expected afterwards.
    """
    result = await db.execute(
        select(Section).where(
            Section.id == section_id,
            Section.project_id == project.id,
        )
    )
    section = result.scalar_one_or_none()
    if section is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Section {section_id} not found.",
        )

    await db.delete(section)
    await db.flush()
    logger.info("Deleted section id=%d from project id=%d", section_id, project.id)


# ═══════════════════════════════════════════════════════════════════════════════
# EXPORT
# ═══════════════════════════════════════════════════════════════════════════════

@router.get("/{project_id}/export")
async def export_project_file(
    project: Project = Depends(get_authorized_project),
    db: AsyncSession = Depends(get_db),
) -> Response:
    """Render the project's current sections as a .docx or .pptx download."""
    sections = await _ordered_sections(db, project.id)
    exported = export_project(project.topic, project.document_type, sections)

    return Response(
        content=exported.data,
        media_type=exported.media_type,
        headers={"Content-Disposition": _content_disposition(exported.filename)},
    )
