"""Project operations with strict tenant isolation."""

import logging
from typing import Any, Dict, List, Optional

from ..tenancy.base_service import TenantScopedService
from ..tenancy.errors import ConflictError
from ..tenancy.record_store import QueryOptions, Record
from ..tenancy.roles import Permission

logger = logging.getLogger(__name__)


class ProjectService(TenantScopedService):
    """CRUD over the tenant's projects.

    Writes go through the ``projects`` record store with the caller as the
    audit actor.
    """

    service_name = "projects"

    def list_projects(
        self,
        user_id: str,
        tenant_id: str,
        status: Optional[str] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> List[Record]:
        """Projects of the tenant, newest first."""
        self.require_permission(user_id, tenant_id, Permission.PROJECTS_READ)
        return self.store("projects").query(
            self.db,
            tenant_id,
            {"status": status},
            QueryOptions(order_by="created_at", order_direction="DESC", limit=limit, offset=offset),
        )

    def get_project(self, user_id: str, tenant_id: str, project_id: str) -> Record:
        self.require_permission(user_id, tenant_id, Permission.PROJECTS_READ)
        self.validate_resource_tenant("projects", project_id, tenant_id)
        return self.store("projects").get_or_404(self.db, tenant_id, project_id)

    def create_project(self, user_id: str, tenant_id: str, data: Dict[str, Any]) -> Record:
        self.require_permission(user_id, tenant_id, Permission.PROJECTS_WRITE)
        project = self.store("projects").create(self.db, tenant_id, data, actor_id=user_id)
        logger.info(f"Project created: {project['id']}", extra={"company_id": tenant_id, "user_id": user_id})
        return project

    def update_project(self, user_id: str, tenant_id: str, project_id: str, updates: Dict[str, Any]) -> Record:
        self.require_permission(user_id, tenant_id, Permission.PROJECTS_WRITE)
        self.validate_resource_tenant("projects", project_id, tenant_id)
        return self.store("projects").update(self.db, tenant_id, project_id, updates, actor_id=user_id)

    def delete_project(self, user_id: str, tenant_id: str, project_id: str) -> Record:
        """Delete a project that no task references any more.

        Raises:
            ConflictError: Tasks still belong to the project
        """
        self.require_permission(user_id, tenant_id, Permission.PROJECTS_DELETE)
        self.validate_resource_tenant("projects", project_id, tenant_id)

        remaining = self.store("tasks").count(self.db, tenant_id, {"project_id": project_id})
        if remaining:
            raise ConflictError(f"Project still has {remaining} task(s); delete or move them first")

        deleted = self.store("projects").delete(self.db, tenant_id, project_id, actor_id=user_id)
        logger.info(f"Project deleted: {project_id}", extra={"company_id": tenant_id, "user_id": user_id})
        return deleted
