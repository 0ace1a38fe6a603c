"""RFI (request for information) SQLAlchemy model"""

from sqlalchemy import Column, DateTime, ForeignKey, Index, String, Text

from .base import Base, generate_id, utcnow


class Rfi(Base):
    __tablename__ = "rfis"
    __table_args__ = (
        Index("ix_rfis_company_id", "company_id"),
    )

    id = Column(String(36), primary_key=True, default=generate_id)
    company_id = Column(String(64), nullable=False)
    project_id = Column(String(36), ForeignKey("projects.id", ondelete="RESTRICT"), nullable=False)
    number = Column(String(32), nullable=True)
    subject = Column(Text, nullable=False)
    question = Column(Text, nullable=True)
    answer = Column(Text, nullable=True)
    status = Column(String(32), nullable=False, default="open")
    assigned_to = Column(String(64), nullable=True)
    due_date = Column(String(32), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)
