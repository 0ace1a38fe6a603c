"""Project management"""

from .service import ProjectService

__all__ = ["ProjectService"]
