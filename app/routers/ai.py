"""
AI generation endpoints.

All three keep the web client's camelCase JSON contract.  Gateway failures
raise AIServiceError, which the app-level handler turns into
``500 {"error": "..."}``.

Routes
------
POST /api/ai/generate-outline  — {topic, documentType}                     → {outline}
POST /api/ai/generate-content  — {projectId, topic, documentType, sections} → {success}
POST /api/ai/refine-content    — {sectionId, prompt, currentContent, title} → {success, content}
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.dependencies.auth import (
    fetch_owned_project,
    fetch_owned_section,
    get_current_user_id,
)
from app.models.schemas import (
    GenerateContentRequest,
    GenerateContentResponse,
    OutlineRequest,
    OutlineResponse,
    RefineContentRequest,
    RefineContentResponse,
)
from app.services.ai_gateway import AIGatewayClient, get_ai_client
from app.services.content_service import (
    ContentService,
    SectionRequest,
    SectionsNotInProjectError,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/generate-outline", response_model=OutlineResponse)
async def generate_outline(
    body: OutlineRequest,
    user_id: str = Depends(get_current_user_id),
    ai_client: AIGatewayClient = Depends(get_ai_client),
) -> OutlineResponse:
    """Propose section/slide titles for a topic. Nothing is stored."""
    outline = await ContentService(ai_client).generate_outline(body.topic, body.document_type)
    return OutlineResponse(outline=outline)


@router.post("/generate-content", response_model=GenerateContentResponse)
async def generate_content(
    body: GenerateContentRequest,
    user_id: str = Depends(get_current_user_id),
    ai_client: AIGatewayClient = Depends(get_ai_client),
    db: AsyncSession = Depends(get_db),
) -> GenerateContentResponse:
    """
    Generate content for every listed section of the project.

    The project moves draft → generating → completed; on failure it is put
    back to draft before the error is returned.
    """
    project = await fetch_owned_project(db, body.project_id, user_id)

    try:
        await ContentService(ai_client).generate_content(
            project,
            [SectionRequest(id=s.id, title=s.title) for s in body.sections],
            db,
            topic=body.topic,
            document_type=body.document_type,
        )
    except SectionsNotInProjectError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        )

    return GenerateContentResponse(success=True)


@router.post("/refine-content", response_model=RefineContentResponse)
async def refine_content(
    body: RefineContentRequest,
    user_id: str = Depends(get_current_user_id),
    ai_client: AIGatewayClient = Depends(get_ai_client),
    db: AsyncSession = Depends(get_db),
) -> RefineContentResponse:
    """Rewrite one section according to the prompt and log the change."""
    section = await fetch_owned_section(db, body.section_id, user_id)

    result = await ContentService(ai_client).refine_section(
        section,
        body.prompt,
        db,
        current_content=body.current_content,
        title=body.title,
    )
    return RefineContentResponse(success=True, content=result.content)
