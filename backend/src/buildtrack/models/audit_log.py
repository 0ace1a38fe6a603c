"""AuditLog SQLAlchemy model"""

from sqlalchemy import Column, DateTime, Index, String, Text

from .base import Base, PortableJSONB, generate_id, utcnow


class AuditLog(Base):
    """AuditLog model for append-only action logging.

    Records every mutating action of the tenant isolation layer for
    compliance and forensics. Entries are never updated; the only erasure
    path is the retention cleanup in AuditRecorder.delete_old_logs.
    """
    __tablename__ = "audit_log"
    __table_args__ = (
        Index("ix_audit_log_company_id", "company_id"),
        Index("ix_audit_log_company_id_created_at", "company_id", "created_at"),
        Index("ix_audit_log_actor_id", "actor_id"),
        Index("ix_audit_log_resource", "resource_type", "resource_id"),
    )

    id = Column(String(36), primary_key=True, default=generate_id)
    company_id = Column(String(64), nullable=False)
    actor_id = Column(String(64), nullable=True)
    action = Column(Text, nullable=False)
    resource_type = Column(Text, nullable=True)
    resource_id = Column(Text, nullable=True)
    metadata_json = Column(PortableJSONB, nullable=True)
    ip_address = Column(String(64), nullable=True)
    user_agent = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    def to_dict(self):
        """Convert audit log entry to dictionary representation"""
        return {
            "id": self.id,
            "company_id": self.company_id,
            "actor_id": self.actor_id,
            "action": self.action,
            "resource_type": self.resource_type,
            "resource_id": self.resource_id,
            "metadata": self.metadata_json,
            "ip_address": self.ip_address,
            "user_agent": self.user_agent,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
