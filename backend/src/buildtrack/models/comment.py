"""Comment SQLAlchemy model.

Comments predate the company_id convention and keep their legacy tenant
column name ``tenant_id``; their record store is configured accordingly.
"""

from sqlalchemy import Column, DateTime, ForeignKey, Index, String, Text

from .base import Base, generate_id, utcnow


class Comment(Base):
    __tablename__ = "comments"
    __table_args__ = (
        Index("ix_comments_tenant_id", "tenant_id"),
    )

    id = Column(String(36), primary_key=True, default=generate_id)
    tenant_id = Column(String(64), nullable=False)
    task_id = Column(String(36), ForeignKey("tasks.id", ondelete="CASCADE"), nullable=True)
    author_id = Column(String(64), nullable=True)
    author_name = Column(Text, nullable=True)
    body = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)
