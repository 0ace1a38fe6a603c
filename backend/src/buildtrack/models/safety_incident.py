"""Safety incident SQLAlchemy model"""

from sqlalchemy import Column, DateTime, ForeignKey, Index, String, Text

from .base import Base, generate_id, utcnow


class SafetyIncident(Base):
    __tablename__ = "safety_incidents"
    __table_args__ = (
        Index("ix_safety_incidents_company_id", "company_id"),
    )

    id = Column(String(36), primary_key=True, default=generate_id)
    company_id = Column(String(64), nullable=False)
    project_id = Column(String(36), ForeignKey("projects.id", ondelete="RESTRICT"), nullable=True)
    title = Column(Text, nullable=False)
    severity = Column(String(16), nullable=False, default="low")
    status = Column(String(32), nullable=False, default="open")
    description = Column(Text, nullable=True)
    reported_by = Column(String(64), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)
