"""
Health check endpoint.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import text
from datetime import datetime, timezone
import logging

from app.database import get_db
from app.models.schemas import HealthCheckResponse
from app.services.ai_gateway import AIGatewayClient, get_ai_client

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/", response_model=HealthCheckResponse)
async def health_check(
    db: AsyncSession = Depends(get_db),
    ai_client: AIGatewayClient = Depends(get_ai_client),
):
    """
    Health check endpoint to verify system status.

    Returns:
        HealthCheckResponse with status of database and AI gateway
    """
    # Check database connection
    db_status = "ok"
    try:
        await db.execute(text("SELECT 1"))
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        db_status = "error"

    # Check AI gateway
    gateway_status = "ok" if await ai_client.check_health() else "error"

    # Overall status
    overall_status = "healthy" if db_status == "ok" and gateway_status == "ok" else "degraded"

    return HealthCheckResponse(
        status=overall_status,
        database=db_status,
        ai_gateway=gateway_status,
        timestamp=datetime.now(timezone.utc),
    )
