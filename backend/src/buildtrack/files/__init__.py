"""Project files"""

from .service import ProjectFileService

__all__ = ["ProjectFileService"]
