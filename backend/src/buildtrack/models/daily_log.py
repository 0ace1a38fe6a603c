"""Daily site log SQLAlchemy model"""

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String, Text

from .base import Base, generate_id, utcnow


class DailyLog(Base):
    __tablename__ = "daily_logs"
    __table_args__ = (
        Index("ix_daily_logs_company_id", "company_id"),
    )

    id = Column(String(36), primary_key=True, default=generate_id)
    company_id = Column(String(64), nullable=False)
    project_id = Column(String(36), ForeignKey("projects.id", ondelete="RESTRICT"), nullable=False)
    log_date = Column(String(32), nullable=False)
    weather = Column(Text, nullable=True)
    workers_on_site = Column(Integer, nullable=True)
    notes = Column(Text, nullable=True)
    author_id = Column(String(64), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)
