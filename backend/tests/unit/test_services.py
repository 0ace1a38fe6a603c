"""Unit tests for tenant-scoped domain services

Tests cover:
- Permission checks run before any store access
- Cross-tenant resources are refused before any write
- Task dependency gating
- Membership lifecycle (invite, accept, update, remove)
- Audit log queries and export
- Project file operations
- Service-level audit failures never propagate
"""

import pytest

from buildtrack.audit.query_service import AuditLogService
from buildtrack.audit.schemas import AuditLogFilters
from buildtrack.files.service import ProjectFileService
from buildtrack.memberships.service import MembershipService
from buildtrack.projects.service import ProjectService
from buildtrack.tasks.service import TaskService
from buildtrack.tenancy.base_service import TenantScopedService
from buildtrack.tenancy.errors import (
    ConflictError,
    FileNotFoundOrDeniedError,
    ForbiddenError,
    NotFoundError,
    TenantValidationError,
)


@pytest.fixture
def make_service(db_session, record_stores, validator, audit_recorder):
    def _make(service_cls, **kwargs):
        return service_cls(db_session, record_stores, validator, audit_recorder, **kwargs)

    return _make


@pytest.fixture
def projects(make_service) -> ProjectService:
    return make_service(ProjectService)


@pytest.fixture
def tasks(make_service) -> TaskService:
    return make_service(TaskService)


@pytest.fixture
def team(make_service) -> MembershipService:
    return make_service(MembershipService)


@pytest.fixture
def acme_admin(add_member):
    add_member("admin-a", "acme", role="ADMIN")
    return "admin-a"


@pytest.fixture
def globex_admin(add_member):
    add_member("admin-g", "globex", role="ADMIN")
    return "admin-g"


class TestProjectService:

    def test_crud(self, projects, acme_admin):
        created = projects.create_project(acme_admin, "acme", {"name": "Tower"})
        assert created["company_id"] == "acme"

        updated = projects.update_project(acme_admin, "acme", created["id"], {"status": "active"})
        assert updated["status"] == "active"

        assert projects.get_project(acme_admin, "acme", created["id"])["name"] == "Tower"
        assert [p["id"] for p in projects.list_projects(acme_admin, "acme", status="active")] == [created["id"]]

        projects.delete_project(acme_admin, "acme", created["id"])
        assert projects.list_projects(acme_admin, "acme") == []

    def test_viewer_cannot_create(self, projects, add_member):
        add_member("viewer", "acme", role="VIEWER")

        with pytest.raises(ForbiddenError):
            projects.create_project("viewer", "acme", {"name": "Nope"})

    def test_foreign_project_is_forbidden(self, projects, acme_admin, globex_admin):
        theirs = projects.create_project(globex_admin, "globex", {"name": "Depot"})

        with pytest.raises(ForbiddenError):
            projects.get_project(acme_admin, "acme", theirs["id"])
        with pytest.raises(ForbiddenError):
            projects.update_project(acme_admin, "acme", theirs["id"], {"name": "Mine"})
        with pytest.raises(ForbiddenError):
            projects.delete_project(acme_admin, "acme", theirs["id"])

        assert projects.get_project(globex_admin, "globex", theirs["id"])["name"] == "Depot"

    def test_missing_project_is_not_found(self, projects, acme_admin):
        with pytest.raises(NotFoundError):
            projects.get_project(acme_admin, "acme", "missing")

    def test_delete_with_tasks_conflicts(self, projects, tasks, acme_admin):
        project = projects.create_project(acme_admin, "acme", {"name": "Tower"})
        tasks.create_task(acme_admin, "acme", {"title": "Pour slab", "project_id": project["id"]})

        with pytest.raises(ConflictError):
            projects.delete_project(acme_admin, "acme", project["id"])

    def test_list_pagination(self, projects, acme_admin):
        for name in ("A", "B", "C"):
            projects.create_project(acme_admin, "acme", {"name": name})

        assert len(projects.list_projects(acme_admin, "acme", limit=2)) == 2
        assert len(projects.list_projects(acme_admin, "acme", limit=2, offset=2)) == 1


class TestTaskService:

    @pytest.fixture
    def project(self, projects, acme_admin):
        return projects.create_project(acme_admin, "acme", {"name": "Tower"})

    def test_create_in_foreign_project_is_forbidden(self, tasks, projects, acme_admin, globex_admin, audit_entries):
        theirs = projects.create_project(globex_admin, "globex", {"name": "Depot"})

        with pytest.raises(ForbiddenError):
            tasks.create_task(acme_admin, "acme", {"title": "Sneaky", "project_id": theirs["id"]})

        assert tasks.store("tasks").count(tasks.db, "acme") == 0
        assert [e.action for e in audit_entries("acme")] == []

    def test_payload_declaring_other_company_is_rejected(self, tasks, project, acme_admin):
        with pytest.raises(TenantValidationError):
            tasks.create_task(
                acme_admin, "acme", {"title": "T", "project_id": project["id"], "company_id": "globex"}
            )

    def test_get_project_task_checks_hierarchy(self, tasks, projects, project, acme_admin):
        other_project = projects.create_project(acme_admin, "acme", {"name": "Other"})
        task = tasks.create_task(acme_admin, "acme", {"title": "T", "project_id": project["id"]})

        assert tasks.get_project_task(acme_admin, "acme", project["id"], task["id"])["id"] == task["id"]
        with pytest.raises(ForbiddenError):
            tasks.get_project_task(acme_admin, "acme", other_project["id"], task["id"])

    def test_list_tasks_ordered_by_due_date(self, tasks, project, acme_admin):
        for due in ("2026-05-03", "2026-05-01", "2026-05-02"):
            tasks.create_task(acme_admin, "acme", {"title": due, "due_date": due, "project_id": project["id"]})

        listed = tasks.list_tasks(acme_admin, "acme", project_id=project["id"])
        assert [t["due_date"] for t in listed] == ["2026-05-01", "2026-05-02", "2026-05-03"]

    def test_field_worker_can_write_but_not_delete(self, tasks, project, add_member):
        add_member("worker", "acme", role="FIELD_WORKER")
        task = tasks.create_task("worker", "acme", {"title": "Rebar", "project_id": project["id"]})

        tasks.update_task("worker", "acme", task["id"], {"status": "blocked"})
        with pytest.raises(ForbiddenError):
            tasks.delete_task("worker", "acme", task["id"])

    def test_cannot_start_with_open_dependencies(self, tasks, project, acme_admin):
        first = tasks.create_task(acme_admin, "acme", {"title": "Excavate", "project_id": project["id"]})
        second = tasks.create_task(
            acme_admin, "acme", {"title": "Pour", "project_id": project["id"], "dependencies": [first["id"]]}
        )

        with pytest.raises(TenantValidationError, match="unresolved dependencies"):
            tasks.update_task(acme_admin, "acme", second["id"], {"status": "in_progress"})

        tasks.update_task(acme_admin, "acme", first["id"], {"status": "completed"})
        started = tasks.update_task(acme_admin, "acme", second["id"], {"status": "in_progress"})
        assert started["status"] == "in_progress"

    def test_dependency_in_other_tenant_is_rejected(self, tasks, acme_admin, globex_admin):
        theirs = tasks.create_task(globex_admin, "globex", {"title": "Theirs"})

        with pytest.raises(TenantValidationError, match="Unknown dependency"):
            tasks.create_task(acme_admin, "acme", {"title": "Mine", "dependencies": [theirs["id"]]})

    def test_self_dependency_is_rejected(self, tasks, acme_admin):
        task = tasks.create_task(acme_admin, "acme", {"title": "Loop"})

        with pytest.raises(TenantValidationError, match="itself"):
            tasks.update_task(acme_admin, "acme", task["id"], {"dependencies": [task["id"]]})

    def test_dependencies_completed_ignores_unknown_ids(self, tasks, acme_admin):
        done = tasks.create_task(acme_admin, "acme", {"title": "Done", "status": "completed"})

        assert tasks.dependencies_completed("acme", [done["id"], "ghost"]) is True
        assert tasks.dependencies_completed("acme", None) is True

    def test_deleted_dependency_does_not_block_start(self, tasks, acme_admin):
        dependency = tasks.create_task(acme_admin, "acme", {"title": "Survey"})
        task = tasks.create_task(acme_admin, "acme", {"title": "Excavate", "dependencies": [dependency["id"]]})
        tasks.delete_task(acme_admin, "acme", dependency["id"])

        started = tasks.update_task(acme_admin, "acme", task["id"], {"status": "in_progress"})

        assert started["status"] == "in_progress"
        assert started["dependencies"] == [dependency["id"]]

    def test_resending_deleted_dependency_is_rejected(self, tasks, acme_admin):
        dependency = tasks.create_task(acme_admin, "acme", {"title": "Survey"})
        task = tasks.create_task(acme_admin, "acme", {"title": "Excavate"})
        tasks.delete_task(acme_admin, "acme", dependency["id"])

        with pytest.raises(TenantValidationError, match="Unknown dependency"):
            tasks.update_task(acme_admin, "acme", task["id"], {"dependencies": [dependency["id"]]})

    def test_task_mutations_are_audited_with_actor(self, tasks, acme_admin, audit_entries):
        task = tasks.create_task(acme_admin, "acme", {"title": "Audit me"})
        tasks.delete_task(acme_admin, "acme", task["id"])

        entries = audit_entries("acme")
        assert [(e.action, e.actor_id, e.resource_type) for e in entries] == [
            ("create", acme_admin, "tasks"),
            ("delete", acme_admin, "tasks"),
        ]


class TestMembershipService:

    def test_invite_accept_flow(self, team, acme_admin):
        invited = team.invite_member(acme_admin, "acme", "newbie", "FIELD_WORKER")
        assert invited["status"] == "invited"
        assert invited["invited_by"] == acme_admin

        # Invited members are not yet allowed in
        with pytest.raises(ForbiddenError):
            team.list_members("newbie", "acme")

        accepted = team.accept_invitation("newbie", "acme")
        assert accepted["status"] == "active"
        assert accepted["joined_at"] is not None
        assert len(team.list_members("newbie", "acme")) == 2

    def test_duplicate_invite_conflicts(self, team, acme_admin):
        team.invite_member(acme_admin, "acme", "newbie", "VIEWER")

        with pytest.raises(ConflictError):
            team.invite_member(acme_admin, "acme", "newbie", "ADMIN")

    def test_invalid_role_and_permission(self, team, acme_admin):
        with pytest.raises(TenantValidationError, match="role"):
            team.invite_member(acme_admin, "acme", "x", "OWNER")
        with pytest.raises(TenantValidationError, match="permissions"):
            team.invite_member(acme_admin, "acme", "x", "VIEWER", permissions=["root"])

    def test_accept_invitation_edge_cases(self, team, add_member):
        add_member("suspended", "acme", status="suspended")
        add_member("active", "acme", status="active")

        with pytest.raises(NotFoundError):
            team.accept_invitation("stranger", "acme")
        with pytest.raises(ForbiddenError):
            team.accept_invitation("suspended", "acme")
        with pytest.raises(ConflictError):
            team.accept_invitation("active", "acme")

    def test_update_membership(self, team, acme_admin):
        member = team.invite_member(acme_admin, "acme", "newbie", "VIEWER")

        updated = team.update_membership(
            acme_admin, "acme", member["id"], {"role": "PROJECT_MANAGER", "status": "active"}
        )

        assert updated["role"] == "PROJECT_MANAGER"
        assert updated["joined_at"] is not None

        with pytest.raises(TenantValidationError, match="Cannot update"):
            team.update_membership(acme_admin, "acme", member["id"], {"company_id": "globex"})
        with pytest.raises(TenantValidationError, match="No fields"):
            team.update_membership(acme_admin, "acme", member["id"], {})

    def test_cannot_manage_other_company_members(self, team, acme_admin, globex_admin, add_member):
        theirs = add_member("g-worker", "globex", role="FIELD_WORKER")

        with pytest.raises(NotFoundError):
            team.update_membership(acme_admin, "acme", theirs["id"], {"role": "ADMIN"})
        with pytest.raises(NotFoundError):
            team.remove_member(acme_admin, "acme", theirs["id"])

    def test_non_admin_cannot_invite(self, team, add_member):
        add_member("pm", "acme", role="PROJECT_MANAGER")

        with pytest.raises(ForbiddenError):
            team.invite_member("pm", "acme", "friend", "ADMIN")

    def test_get_user_memberships_lists_only_active_own(self, team, add_member):
        add_member("multi", "acme", role="VIEWER")
        add_member("multi", "globex", role="ADMIN")
        add_member("multi", "initech", status="invited")
        add_member("someone-else", "acme")

        companies = sorted(m["company_id"] for m in team.get_user_memberships("multi"))
        assert companies == ["acme", "globex"]


class TestAuditLogService:

    def test_list_is_forced_to_own_company(self, make_service, projects, acme_admin, globex_admin):
        projects.create_project(acme_admin, "acme", {"name": "A"})
        projects.create_project(globex_admin, "globex", {"name": "G"})
        audit = make_service(AuditLogService)

        entries, total = audit.list_logs(acme_admin, "acme", AuditLogFilters(company_id="globex"))

        assert total == 1
        assert entries[0]["company_id"] == "acme"

    def test_requires_audit_read(self, make_service, add_member):
        add_member("pm", "acme", role="PROJECT_MANAGER")

        with pytest.raises(ForbiddenError):
            make_service(AuditLogService).list_logs("pm", "acme", AuditLogFilters())

    def test_export_is_audited(self, make_service, acme_admin, audit_entries):
        audit = make_service(AuditLogService, ip_address="10.1.1.1", user_agent="pytest")

        content = audit.export_logs(acme_admin, "acme", AuditLogFilters(action="create"))

        assert content.splitlines()[0].startswith('"Timestamp"')
        (entry,) = audit_entries("acme")
        assert entry.action == "audit.export"
        assert entry.ip_address == "10.1.1.1"
        assert entry.metadata_json["filters"]["action"] == "create"
        assert entry.metadata_json["filters"]["company_id"] == "acme"


class TestProjectFileService:

    @pytest.fixture
    def files(self, make_service, file_store) -> ProjectFileService:
        return make_service(ProjectFileService, file_store=file_store)

    @pytest.mark.asyncio
    async def test_upload_list_download(self, files, projects, acme_admin):
        project = projects.create_project(acme_admin, "acme", {"name": "Tower"})

        uploaded = await files.upload_file(acme_admin, "acme", project["id"], "plan.pdf", b"%PDF", category="drawings")

        assert uploaded.path == f"tenants/acme/projects/{project['id']}/drawings/plan.pdf"
        assert await files.list_files(acme_admin, "acme", project["id"], category="drawings") == ["plan.pdf"]
        assert await files.download_file(acme_admin, "acme", project["id"], "plan.pdf", category="drawings") == b"%PDF"

    @pytest.mark.asyncio
    async def test_foreign_project_is_forbidden(self, files, projects, acme_admin, globex_admin):
        theirs = projects.create_project(globex_admin, "globex", {"name": "Depot"})

        with pytest.raises(ForbiddenError):
            await files.upload_file(acme_admin, "acme", theirs["id"], "plan.pdf", b"%PDF")

    @pytest.mark.asyncio
    async def test_viewer_cannot_upload(self, files, projects, acme_admin, add_member):
        project = projects.create_project(acme_admin, "acme", {"name": "Tower"})
        add_member("viewer", "acme", role="VIEWER")

        with pytest.raises(ForbiddenError):
            await files.upload_file("viewer", "acme", project["id"], "plan.pdf", b"%PDF")
        assert await files.list_files("viewer", "acme", project["id"]) == []

    @pytest.mark.asyncio
    async def test_download_url_is_audited(self, files, projects, acme_admin, audit_entries):
        project = projects.create_project(acme_admin, "acme", {"name": "Tower"})
        await files.upload_file(acme_admin, "acme", project["id"], "plan.pdf", b"%PDF")

        url = await files.get_download_url(acme_admin, "acme", project["id"], "plan.pdf", expires_in=120)

        assert "plan.pdf" in url
        assert audit_entries("acme")[-1].action == "files.url_issued"

    @pytest.mark.asyncio
    async def test_delete_then_metadata_is_none(self, files, projects, acme_admin):
        project = projects.create_project(acme_admin, "acme", {"name": "Tower"})
        await files.upload_file(acme_admin, "acme", project["id"], "plan.pdf", b"%PDF")

        await files.delete_file(acme_admin, "acme", project["id"], "plan.pdf")

        assert await files.get_file_metadata(acme_admin, "acme", project["id"], "plan.pdf") is None
        with pytest.raises(FileNotFoundOrDeniedError):
            await files.delete_file(acme_admin, "acme", project["id"], "plan.pdf")


class TestServiceAuditFailures:

    def test_audit_action_swallows_recorder_errors(self, db_session, record_stores, validator, metric_value):
        class ExplodingRecorder:
            def log(self, **kwargs):
                raise RuntimeError("boom")

        service = TenantScopedService(db_session, record_stores, validator, ExplodingRecorder())
        before = metric_value("buildtrack_audit_write_failures_total")

        service.audit_action("export", "u-1", "acme")

        assert metric_value("buildtrack_audit_write_failures_total") == before + 1
