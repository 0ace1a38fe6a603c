"""Task SQLAlchemy model"""

from sqlalchemy import Column, DateTime, ForeignKey, Index, String, Text

from .base import Base, PortableJSONB, generate_id, utcnow


class Task(Base):
    """Task inside a project. Carries its own company_id for direct scoping."""
    __tablename__ = "tasks"
    __table_args__ = (
        Index("ix_tasks_company_id", "company_id"),
        Index("ix_tasks_company_id_project_id", "company_id", "project_id"),
    )

    id = Column(String(36), primary_key=True, default=generate_id)
    company_id = Column(String(64), nullable=False)
    project_id = Column(String(36), ForeignKey("projects.id", ondelete="RESTRICT"), nullable=True)
    title = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    status = Column(String(32), nullable=False, default="todo")
    priority = Column(String(32), nullable=False, default="medium")
    assignee_id = Column(String(64), nullable=True)
    assignee_name = Column(Text, nullable=True)
    due_date = Column(String(32), nullable=True)
    dependencies = Column(PortableJSONB, nullable=True)  # list of task ids
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)
