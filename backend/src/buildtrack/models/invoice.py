"""Invoice SQLAlchemy model"""

from sqlalchemy import Column, DateTime, Float, ForeignKey, Index, String, Text

from .base import Base, PortableJSONB, generate_id, utcnow


class Invoice(Base):
    __tablename__ = "invoices"
    __table_args__ = (
        Index("ix_invoices_company_id", "company_id"),
    )

    id = Column(String(36), primary_key=True, default=generate_id)
    company_id = Column(String(64), nullable=False)
    project_id = Column(String(36), ForeignKey("projects.id", ondelete="RESTRICT"), nullable=True)
    number = Column(String(64), nullable=False)
    client_name = Column(Text, nullable=True)
    amount = Column(Float, nullable=False, default=0.0)
    status = Column(String(32), nullable=False, default="draft")
    due_date = Column(String(32), nullable=True)
    line_items = Column(PortableJSONB, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)
