"""Membership SQLAlchemy model"""

from sqlalchemy import CheckConstraint, Column, DateTime, Index, String, UniqueConstraint

from .base import Base, PortableJSONB, generate_id, utcnow


class Membership(Base):
    """Grants a user a role within one company.

    Memberships change status (active/suspended/invited) rather than being
    deleted; the only hard delete is an explicit member removal.
    """
    __tablename__ = "memberships"
    __table_args__ = (
        UniqueConstraint("user_id", "company_id", name="uq_memberships_user_company"),
        Index("ix_memberships_company_id", "company_id"),
        CheckConstraint(
            "status IN ('active', 'suspended', 'invited')",
            name="ck_memberships_status",
        ),
    )

    id = Column(String(36), primary_key=True, default=generate_id)
    user_id = Column(String(64), nullable=False)
    company_id = Column(String(64), nullable=False)
    role = Column(String(32), nullable=False)
    permissions = Column(PortableJSONB, nullable=True)  # explicit grants on top of the role
    status = Column(String(16), nullable=False, default="invited")
    invited_by = Column(String(64), nullable=True)
    joined_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)
