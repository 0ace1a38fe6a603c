"""Unit tests for TenantFileStore

Tests cover:
- Key layout under tenants/{tenant}[/projects/{id}][/{category}]
- Filename sanitization on upload
- Path validation with whole-segment containment
- Missing files and rejected paths are indistinguishable
- Upload/delete auditing (never file content)
- Presigned URLs
"""

import pytest

from buildtrack.storage.file_store import FileOptions, TenantFileStore, sanitize_filename
from buildtrack.storage.local_adapter import LocalFileStorageAdapter
from buildtrack.storage.ports import StorageError
from buildtrack.tenancy.errors import FileNotFoundOrDeniedError, TenantValidationError

PDF = b"%PDF-1.4 test drawing"


class TestSanitizeFilename:

    @pytest.mark.parametrize("raw, expected", [
        ("plan.pdf", "plan.pdf"),
        ("site plan (v2).pdf", "site_plan__v2_.pdf"),
        ("../../etc/passwd", ".._.._etc_passwd"),
        ("résumé.docx", "r_sum_.docx"),
        ("a\\b.txt", "a_b.txt"),
    ])
    def test_replaces_unsafe_characters(self, raw, expected):
        assert sanitize_filename(raw) == expected


class TestValidatePath:

    @pytest.fixture
    def store(self, file_backend):
        return TenantFileStore(file_backend)

    @pytest.mark.parametrize("candidate", [
        "tenants/acme",
        "tenants/acme/plan.pdf",
        "tenants/acme/projects/p1/drawings/plan.pdf",
        "tenants/acme/projects/../plan.pdf",
    ])
    def test_paths_inside_namespace(self, store, candidate):
        assert store.validate_path("acme", candidate) is True

    @pytest.mark.parametrize("candidate", [
        "tenants/acme2/plan.pdf",
        "tenants/acme/../acme2/plan.pdf",
        "tenants/acme/../../etc/passwd",
        "tenants/globex/plan.pdf",
        "tenants",
        "tenants/acme\\..\\globex\\plan.pdf",
        "tenants/acme/plan.pdf\x00.png",
        "",
    ])
    def test_paths_outside_namespace(self, store, candidate):
        assert store.validate_path("acme", candidate) is False

    @pytest.mark.parametrize("tenant", ["", ".", "..", "acme/../globex", "a b"])
    def test_unsafe_tenant_ids(self, store, tenant):
        assert store.validate_path(tenant, f"tenants/{tenant}/plan.pdf") is False

    def test_store_root_prefixes_namespace(self, file_backend):
        store = TenantFileStore(file_backend, root="/company-files/")
        assert store.tenant_root("acme") == "company-files/tenants/acme"
        assert store.validate_path("acme", "company-files/tenants/acme/x.pdf")
        assert not store.validate_path("acme", "tenants/acme/x.pdf")


class TestUploadAndDownload:

    @pytest.mark.asyncio
    async def test_upload_layout_and_roundtrip(self, file_store, tmp_path):
        uploaded = await file_store.upload(
            "acme", "plan.pdf", PDF, "u-1", FileOptions(project_id="p1", category="drawings")
        )

        assert uploaded.path == "tenants/acme/projects/p1/drawings/plan.pdf"
        assert uploaded.url == "/uploads/tenants/acme/projects/p1/drawings/plan.pdf"
        assert uploaded.size_bytes == len(PDF)
        assert uploaded.mime_type == "application/pdf"
        assert (tmp_path / "files" / uploaded.path).read_bytes() == PDF

        content = await file_store.download("acme", "plan.pdf", FileOptions(project_id="p1", category="drawings"))
        assert content == PDF

    @pytest.mark.asyncio
    async def test_upload_without_options_goes_to_tenant_root(self, file_store):
        uploaded = await file_store.upload("acme", "notes.txt", b"hello", "u-1")
        assert uploaded.path == "tenants/acme/notes.txt"
        assert uploaded.mime_type == "text/plain"

    @pytest.mark.asyncio
    async def test_upload_sanitizes_traversal_name(self, file_store, tmp_path):
        uploaded = await file_store.upload("acme", "../../../evil.sh", b"#!/bin/sh", "u-1")

        assert uploaded.filename == ".._.._.._evil.sh"
        assert uploaded.path == "tenants/acme/.._.._.._evil.sh"
        assert not (tmp_path / "evil.sh").exists()

    @pytest.mark.asyncio
    async def test_upload_explicit_mime_type_wins(self, file_store):
        uploaded = await file_store.upload(
            "acme", "scan.bin", b"\x00\x01", "u-1", FileOptions(mime_type="image/tiff")
        )
        assert uploaded.mime_type == "image/tiff"

    @pytest.mark.asyncio
    async def test_unknown_extension_is_octet_stream(self, file_store):
        uploaded = await file_store.upload("acme", "blob.zzzz", b"x", "u-1")
        assert uploaded.mime_type == "application/octet-stream"

    @pytest.mark.asyncio
    async def test_empty_filename_is_rejected(self, file_store):
        with pytest.raises(TenantValidationError):
            await file_store.upload("acme", "", b"x", "u-1")

    @pytest.mark.asyncio
    async def test_dot_dot_filename_is_denied(self, file_store):
        with pytest.raises(FileNotFoundOrDeniedError):
            await file_store.upload("acme", "..", b"x", "u-1")

    @pytest.mark.asyncio
    async def test_project_id_traversal_is_denied(self, file_store, metric_value):
        before = metric_value("buildtrack_tenant_access_denied_total", reason="path")

        with pytest.raises(FileNotFoundOrDeniedError):
            await file_store.upload("acme", "x.pdf", PDF, "u-1", FileOptions(project_id="../../acme2"))

        assert metric_value("buildtrack_tenant_access_denied_total", reason="path") == before + 1

    @pytest.mark.asyncio
    async def test_download_missing_and_escape_look_the_same(self, file_store):
        with pytest.raises(FileNotFoundOrDeniedError) as missing:
            await file_store.download("acme", "nothing.pdf")
        with pytest.raises(FileNotFoundOrDeniedError) as escape:
            await file_store.download("acme", "../globex/plan.pdf")

        assert missing.value.status_code == escape.value.status_code == 404
        assert missing.value.message == escape.value.message

    @pytest.mark.asyncio
    async def test_other_tenant_cannot_download(self, file_store):
        await file_store.upload("globex", "secret.pdf", PDF, "g-1")

        with pytest.raises(FileNotFoundOrDeniedError):
            await file_store.download("acme", "secret.pdf")

    @pytest.mark.asyncio
    async def test_backend_error_propagates(self, audit_recorder):
        class BrokenBackend(LocalFileStorageAdapter):
            async def put(self, key, content, mime_type):
                raise StorageError("disk full")

        store = TenantFileStore(BrokenBackend("unused"), audit_recorder)

        with pytest.raises(StorageError):
            await store.upload("acme", "plan.pdf", PDF, "u-1")


class TestDeleteListMetadata:

    @pytest.mark.asyncio
    async def test_delete(self, file_store):
        await file_store.upload("acme", "old.pdf", PDF, "u-1")

        await file_store.delete("acme", "old.pdf", "u-1")

        with pytest.raises(FileNotFoundOrDeniedError):
            await file_store.download("acme", "old.pdf")

    @pytest.mark.asyncio
    async def test_delete_missing_is_denied(self, file_store):
        with pytest.raises(FileNotFoundOrDeniedError):
            await file_store.delete("acme", "never.pdf", "u-1")

    @pytest.mark.asyncio
    async def test_delete_other_tenant_file_is_denied_and_kept(self, file_store):
        await file_store.upload("globex", "keep.pdf", PDF, "g-1")

        with pytest.raises(FileNotFoundOrDeniedError):
            await file_store.delete("acme", "keep.pdf", "u-1")

        assert await file_store.download("globex", "keep.pdf") == PDF

    @pytest.mark.asyncio
    async def test_list(self, file_store):
        options = FileOptions(project_id="p1")
        await file_store.upload("acme", "b.pdf", PDF, "u-1", options)
        await file_store.upload("acme", "a.pdf", PDF, "u-1", options)
        await file_store.upload("globex", "c.pdf", PDF, "g-1", options)

        assert await file_store.list("acme", options) == ["a.pdf", "b.pdf"]
        assert await file_store.list("acme", FileOptions(project_id="p2")) == []

    @pytest.mark.asyncio
    async def test_metadata(self, file_store):
        await file_store.upload("acme", "photo.png", b"\x89PNG", "u-1")

        metadata = await file_store.get_metadata("acme", "photo.png")

        assert metadata.filename == "photo.png"
        assert metadata.size_bytes == 4
        assert metadata.mime_type == "image/png"
        assert metadata.modified_at is not None
        assert await file_store.get_metadata("acme", "missing.png") is None


class TestPresignedUrl:

    @pytest.mark.asyncio
    async def test_url_for_existing_file(self, file_store):
        await file_store.upload("acme", "plan.pdf", PDF, "u-1")

        url = await file_store.generate_presigned_url("acme", "plan.pdf", 60)

        assert url.startswith("/uploads/tenants/acme/plan.pdf?expires=")

    @pytest.mark.asyncio
    async def test_missing_file_is_denied(self, file_store):
        with pytest.raises(FileNotFoundOrDeniedError):
            await file_store.generate_presigned_url("acme", "nothing.pdf", 60)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("expires_in", [0, -5])
    async def test_non_positive_lifetime_is_rejected(self, file_store, expires_in):
        await file_store.upload("acme", "plan.pdf", PDF, "u-1")

        with pytest.raises(TenantValidationError):
            await file_store.generate_presigned_url("acme", "plan.pdf", expires_in)


class TestAuditing:

    @pytest.mark.asyncio
    async def test_upload_and_delete_are_audited_without_content(self, file_store, audit_entries):
        await file_store.upload("acme", "plan.pdf", PDF, "u-1", FileOptions(project_id="p1"))
        await file_store.delete("acme", "plan.pdf", "u-1", FileOptions(project_id="p1"))

        upload, delete = audit_entries("acme")
        assert (upload.action, delete.action) == ("upload", "delete")
        assert upload.resource_type == "files"
        assert upload.resource_id == "plan.pdf"
        assert upload.metadata_json == {
            "path": "tenants/acme/projects/p1/plan.pdf",
            "project_id": "p1",
            "category": None,
            "size_bytes": len(PDF),
        }
        assert "content" not in delete.metadata_json

    @pytest.mark.asyncio
    async def test_denied_operations_are_not_audited(self, file_store, audit_entries):
        with pytest.raises(FileNotFoundOrDeniedError):
            await file_store.delete("acme", "../globex/plan.pdf", "u-1")

        assert audit_entries() == []
