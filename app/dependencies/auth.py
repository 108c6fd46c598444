"""
Authentication dependencies for FastAPI routes.

Extracts user identity from the X-User-Id header (set by the fronting auth
layer) and enforces the ownership chain user → project → section.  Rows
outside the caller's chain are reported as 404 so their existence is not
leaked.
"""
from __future__ import annotations

import logging
from typing import Optional

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.models.database_models import Project, Section, User

logger = logging.getLogger(__name__)


async def get_current_user_id(
    x_user_id: str = Header(..., alias="X-User-Id"),
) -> str:
    """Extract the authenticated user ID from the request header. Raises 401 if missing."""
    if not x_user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing X-User-Id header.",
        )
    return x_user_id


async def get_or_create_user(
    user_id: str = Depends(get_current_user_id),
    x_user_email: Optional[str] = Header(None, alias="X-User-Email"),
    x_user_name: Optional[str] = Header(None, alias="X-User-Name"),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Ensure the user exists in the local users table. Creates if needed."""
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()

    if user is None:
        user = User(
            id=user_id,
            email=x_user_email or f"{user_id}@quill.local",
            name=x_user_name,
        )
        db.add(user)
        await db.flush()
        logger.info("Created new user: id=%s email=%s", user_id, user.email)

    return user


# ---------------------------------------------------------------------------
# Ownership lookups (shared by path dependencies and body-addressed routes)
# ---------------------------------------------------------------------------

async def fetch_owned_project(db: AsyncSession, project_id: int, user_id: str) -> Project:
    """Return the project if *user_id* owns it, else raise 404."""
    result = await db.execute(
        select(Project).where(
            Project.id == project_id,
            Project.user_id == user_id,
        )
    )
    project = result.scalar_one_or_none()

    if project is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Project {project_id} not found.",
        )

    return project


async def fetch_owned_section(db: AsyncSession, section_id: int, user_id: str) -> Section:
    """Return the section if its project is owned by *user_id*, else raise 404."""
    result = await db.execute(
        select(Section)
        .join(Project, Project.id == Section.project_id)
        .where(
            Section.id == section_id,
            Project.user_id == user_id,
        )
    )
    section = result.scalar_one_or_none()

    if section is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Section {section_id} not found.",
        )

    return section


async def get_authorized_project(
    project_id: int,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> Project:
    """
    Verify that the given project belongs to the current user.
    Returns the Project ORM object or raises 404.
    """
    return await fetch_owned_project(db, project_id, user_id)


async def get_authorized_section(
    section_id: int,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> Section:
    """Verify that the given section belongs to one of the current user's projects."""
    return await fetch_owned_section(db, section_id, user_id)
