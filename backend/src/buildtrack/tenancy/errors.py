"""Error taxonomy of the tenant isolation layer.

Each error carries the HTTP status the outer layer should answer with; the
isolation layer itself never builds HTTP responses.

NotFound vs Forbidden:
- Public record-store lookups report a record owned by another tenant as
  NotFoundError, so callers cannot enumerate ids in other tenants.
- Internal service checks (OwnershipValidator.validate_resource_tenant)
  distinguish the two, because the caller is already a verified member.
"""


class TenancyError(Exception):
    """Base class for isolation-layer errors."""

    status_code = 500
    error_code = "internal_error"

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message


class NotFoundError(TenancyError):
    """Resource absent, or owned by another tenant at the public boundary."""

    status_code = 404
    error_code = "not_found"


class FileNotFoundOrDeniedError(NotFoundError):
    """Missing file or rejected path; deliberately indistinguishable."""

    error_code = "file_not_found_or_denied"

    def __init__(self, message: str = "File not found or access denied"):
        super().__init__(message)


class ForbiddenError(TenancyError):
    """Caller lacks an active membership/permission, or the resource is foreign."""

    status_code = 403
    error_code = "forbidden"


class TenantValidationError(TenancyError):
    """Malformed payload or a record whose tenant conflicts with the context."""

    status_code = 400
    error_code = "validation_error"


class ConflictError(TenancyError):
    status_code = 409
    error_code = "conflict"


class InternalError(TenancyError):
    status_code = 500
    error_code = "internal_error"
