"""
SQLAlchemy ORM models for Quill database.

Ownership chain: users → projects → sections → (refinement_history, feedback).
Every row is reachable from exactly one user through that chain.
"""
from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    DateTime,
    ForeignKey,
    Boolean,
    Enum as SQLEnum,
    Index,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from datetime import datetime, timezone
import enum

from app.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# Enums
class DocumentType(str, enum.Enum):
    """Output format a project is drafted for."""

    DOCX = "docx"
    PPTX = "pptx"


class ProjectStatus(str, enum.Enum):
    """
    Project lifecycle.

    draft → generating → completed on the happy path; generating → draft
    when content generation fails.
    """

    DRAFT = "draft"
    GENERATING = "generating"
    COMPLETED = "completed"


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


# Models
class User(Base):
    """User account (identity supplied by the fronting auth layer)."""

    __tablename__ = "users"

    id = Column(String(255), primary_key=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    name = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    # Relationships
    projects = relationship("Project", back_populates="user", cascade="all, delete-orphan")


class Project(Base):
    """A document topic plus its ordered sections, owned by one user."""

    __tablename__ = "projects"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(255), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    document_type = Column(
        SQLEnum(DocumentType, name="documenttype", values_callable=_enum_values),
        nullable=False,
    )
    topic = Column(Text, nullable=False)
    status = Column(
        SQLEnum(ProjectStatus, name="projectstatus", values_callable=_enum_values),
        default=ProjectStatus.DRAFT,
        nullable=False,
    )
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)

    # Relationships
    user = relationship("User", back_populates="projects")
    sections = relationship(
        "Section",
        back_populates="project",
        cascade="all, delete-orphan",
        order_by="Section.order_index",
    )


class Section(Base):
    """One ordered content unit of a project (a Word section or a slide)."""

    __tablename__ = "sections"
    __table_args__ = (
        # Positions come from list index at creation and are never renumbered
        UniqueConstraint("project_id", "order_index", name="uq_sections_project_order"),
        Index("idx_sections_order", "project_id", "order_index"),
    )

    id = Column(Integer, primary_key=True, index=True)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    order_index = Column(Integer, nullable=False)
    title = Column(Text, nullable=False)
    content = Column(Text, nullable=True)  # null until generation runs
    is_generated = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)

    # Relationships
    project = relationship("Project", back_populates="sections")
    refinements = relationship(
        "RefinementHistory",
        back_populates="section",
        cascade="all, delete-orphan",
        order_by="RefinementHistory.id",
    )
    feedback = relationship("Feedback", back_populates="section", cascade="all, delete-orphan")


class RefinementHistory(Base):
    """Append-only audit entry written on every refinement of a section."""

    __tablename__ = "refinement_history"

    id = Column(Integer, primary_key=True, index=True)
    section_id = Column(Integer, ForeignKey("sections.id", ondelete="CASCADE"), nullable=False, index=True)
    prompt = Column(Text, nullable=False)
    previous_content = Column(Text, nullable=True)
    new_content = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    # Relationships
    section = relationship("Section", back_populates="refinements")


class Feedback(Base):
    """Like/dislike and free-text comment on a section."""

    __tablename__ = "feedback"

    id = Column(Integer, primary_key=True, index=True)
    section_id = Column(Integer, ForeignKey("sections.id", ondelete="CASCADE"), nullable=False, index=True)
    is_liked = Column(Boolean, nullable=True)
    comment = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)

    # Relationships
    section = relationship("Section", back_populates="feedback")
