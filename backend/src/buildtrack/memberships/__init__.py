"""Team (membership) management"""

from .service import MembershipService

__all__ = ["MembershipService"]
