"""Project SQLAlchemy model"""

from sqlalchemy import Column, DateTime, Float, Index, Integer, String, Text

from .base import Base, PortableJSONB, generate_id, utcnow


class Project(Base):
    """Construction project owned by exactly one company (tenant)."""
    __tablename__ = "projects"
    __table_args__ = (
        Index("ix_projects_company_id", "company_id"),
        Index("ix_projects_company_id_created_at", "company_id", "created_at"),
    )

    id = Column(String(36), primary_key=True, default=generate_id)
    company_id = Column(String(64), nullable=False)
    name = Column(Text, nullable=False)
    code = Column(String(64), nullable=True)
    description = Column(Text, nullable=True)
    location = Column(Text, nullable=True)
    status = Column(String(32), nullable=False, default="planning")
    progress = Column(Integer, nullable=False, default=0)
    budget = Column(Float, nullable=True)
    spent = Column(Float, nullable=True)
    start_date = Column(String(32), nullable=True)
    end_date = Column(String(32), nullable=True)
    manager = Column(Text, nullable=True)
    zones = Column(PortableJSONB, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)
