"""SQLAlchemy Models for BuildTrack"""

from .base import Base, DEFAULT_TENANT_COLUMN, PortableJSONB, generate_id, utcnow
from .project import Project
from .task import Task
from .rfi import Rfi
from .daily_log import DailyLog
from .safety_incident import SafetyIncident
from .invoice import Invoice
from .comment import Comment
from .membership import Membership
from .audit_log import AuditLog

__all__ = [
    "Base",
    "DEFAULT_TENANT_COLUMN",
    "PortableJSONB",
    "generate_id",
    "utcnow",
    "Project",
    "Task",
    "Rfi",
    "DailyLog",
    "SafetyIncident",
    "Invoice",
    "Comment",
    "Membership",
    "AuditLog",
]
