"""Task operations with strict tenant isolation.

Tasks may list other tasks of the same company as dependencies. A task can
only move to ``in_progress`` or ``completed`` once every dependency is
``completed``.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional

from ..tenancy.base_service import TenantScopedService
from ..tenancy.errors import TenantValidationError
from ..tenancy.record_store import QueryOptions, Record
from ..tenancy.roles import Permission

logger = logging.getLogger(__name__)

# Statuses that require all dependencies to be completed
GATED_STATUSES = {"in_progress", "completed"}


class TaskService(TenantScopedService):
    """CRUD over the tenant's tasks."""

    service_name = "tasks"

    def list_tasks(
        self,
        user_id: str,
        tenant_id: str,
        project_id: Optional[str] = None,
        status: Optional[str] = None,
    ) -> List[Record]:
        """Tasks of the tenant (optionally of one project), ordered by due date."""
        self.require_permission(user_id, tenant_id, Permission.TASKS_READ)
        if project_id:
            self.validate_resource_tenant("projects", project_id, tenant_id)

        return self.store("tasks").query(
            self.db,
            tenant_id,
            {"project_id": project_id, "status": status},
            QueryOptions(order_by="due_date", order_direction="ASC"),
        )

    def get_task(self, user_id: str, tenant_id: str, task_id: str) -> Record:
        self.require_permission(user_id, tenant_id, Permission.TASKS_READ)
        self.validate_resource_tenant("tasks", task_id, tenant_id)
        return self.store("tasks").get_or_404(self.db, tenant_id, task_id)

    def get_project_task(self, user_id: str, tenant_id: str, project_id: str, task_id: str) -> Record:
        """Fetch a task through its project (task -> project -> tenant)."""
        self.require_permission(user_id, tenant_id, Permission.TASKS_READ)
        self.validate_resource_access("tasks", task_id, "projects", project_id, tenant_id)
        return self.store("tasks").get_or_404(self.db, tenant_id, task_id)

    def create_task(self, user_id: str, tenant_id: str, data: Dict[str, Any]) -> Record:
        """Create a task.

        Raises:
            ForbiddenError: Project belongs to another company
            NotFoundError: Project doesn't exist
            TenantValidationError: Payload declares another company, or
                dependencies are unknown/unfinished for a gated status
        """
        self.require_permission(user_id, tenant_id, Permission.TASKS_WRITE)

        if "company_id" in data:
            self.validate_record_tenant(data, tenant_id, "task")

        project_id = data.get("project_id")
        if project_id:
            self.validate_resource_tenant("projects", project_id, tenant_id)

        self._check_dependencies(tenant_id, data.get("status"), data.get("dependencies"), supplied=True)

        task = self.store("tasks").create(self.db, tenant_id, data, actor_id=user_id)
        logger.info(f"Task created: {task['id']}", extra={"company_id": tenant_id, "user_id": user_id})
        return task

    def update_task(self, user_id: str, tenant_id: str, task_id: str, updates: Dict[str, Any]) -> Record:
        self.require_permission(user_id, tenant_id, Permission.TASKS_WRITE)
        self.validate_resource_tenant("tasks", task_id, tenant_id)

        if updates.get("project_id"):
            self.validate_resource_tenant("projects", updates["project_id"], tenant_id)

        dependencies = updates.get("dependencies")
        supplied = dependencies is not None
        if updates.get("status") in GATED_STATUSES and not supplied:
            current = self.store("tasks").get_or_404(self.db, tenant_id, task_id)
            dependencies = current.get("dependencies")
        self._check_dependencies(tenant_id, updates.get("status"), dependencies, task_id=task_id, supplied=supplied)

        return self.store("tasks").update(self.db, tenant_id, task_id, updates, actor_id=user_id)

    def delete_task(self, user_id: str, tenant_id: str, task_id: str) -> Record:
        self.require_permission(user_id, tenant_id, Permission.TASKS_DELETE)
        self.validate_resource_tenant("tasks", task_id, tenant_id)
        deleted = self.store("tasks").delete(self.db, tenant_id, task_id, actor_id=user_id)
        logger.info(f"Task deleted: {task_id}", extra={"company_id": tenant_id, "user_id": user_id})
        return deleted

    def dependencies_completed(self, tenant_id: str, task_ids: Optional[Iterable[str]]) -> bool:
        """True if none of the given tasks of the tenant is still open.

        Ids that do not exist in the tenant are ignored.
        """
        tasks = self.store("tasks")
        for dependency_id in task_ids or []:
            dependency = tasks.get_by_id(self.db, tenant_id, dependency_id)
            if dependency is not None and dependency["status"] != "completed":
                return False
        return True

    def _check_dependencies(
        self,
        tenant_id: str,
        status: Optional[str],
        dependencies: Optional[List[str]],
        task_id: Optional[str] = None,
        supplied: bool = False,
    ) -> None:
        """Validate dependency ids and the status gate.

        Only ids sent by the caller (``supplied``) must exist in the tenant;
        stored ids of since-deleted tasks only go through the status gate.
        """
        if not dependencies:
            return

        if supplied:
            self._check_supplied_dependencies(tenant_id, dependencies, task_id)

        if status in GATED_STATUSES and not self.dependencies_completed(tenant_id, dependencies):
            raise TenantValidationError("Cannot start task: Waiting for unresolved dependencies")

    def _check_supplied_dependencies(self, tenant_id: str, dependencies: List[str], task_id: Optional[str]) -> None:
        if task_id is not None and task_id in dependencies:
            raise TenantValidationError("A task cannot depend on itself")

        tasks = self.store("tasks")
        for dependency_id in dependencies:
            if not tasks.validate_ownership(self.db, tenant_id, dependency_id):
                raise TenantValidationError(f"Unknown dependency task '{dependency_id}'")
