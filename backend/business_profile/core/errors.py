"""Error Hierarchy — typed, categorized exceptions for every editor failure mode.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Domain errors (400-level) are recoverable; infrastructure errors (500-level) are critical
    - to_response() produces the REST envelope; to_event() produces the notification envelope
    - Resolution absence is NOT an error (see TenantResolution) and has no class here
    - No internal details leaked in user-facing messages

Design Decisions:
    - Single hierarchy with ProfileEditorError base: the API handler and every component
      boundary catch one type (ADR: uniform error shape)
    - ErrorContext as dataclass: rich observability without coupling to logging framework
    - GenerationError carries its own category so the UI can tell it apart from save failures
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from datetime import datetime, timezone


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    RESOURCE_NOT_FOUND = "resource_not_found"
    CONFLICT = "conflict"
    STORE = "store"
    EXTERNAL_API = "external_api"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    tenant_id: str | None = None
    session_id: str | None = None
    resource: str | None = None
    field: str | None = None
    entity_id: str | None = None
    user_message: str | None = None
    debug_info: dict[str, Any] | None = None
    retry_after_ms: int | None = None


class ProfileEditorError(Exception):
    """Base exception for all editor errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.http_status = http_status

    @property
    def recoverable(self) -> bool:
        return self.severity in (ErrorSeverity.INFO, ErrorSeverity.WARNING, ErrorSeverity.ERROR)

    def to_response(self) -> dict:
        """Convert to standardized REST error response."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "tenant_id": self.context.tenant_id,
                    "session_id": self.context.session_id,
                    "resource": self.context.resource,
                    "field": self.context.field,
                    "entity_id": self.context.entity_id,
                    "retry_after_ms": self.context.retry_after_ms,
                },
            }
        }

    def to_event(self) -> dict:
        """Convert to the compact envelope attached to failure notifications."""
        return {
            "code": self.code,
            "message": self.context.user_message or self.message,
            "category": self.category.value,
            "severity": self.severity.value,
            "recoverable": self.recoverable,
        }


# ─── Domain Errors (400-level) ──────────────────────────────────

class RecordValidationError(ProfileEditorError):
    """Payload does not fit the record variant of its resource."""
    def __init__(self, message: str, resource: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.resource = ctx.resource or resource
        super().__init__(
            message, "RECORD_VALIDATION_ERROR", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, ctx, 400,
        )


class ResourceNotFoundError(ProfileEditorError):
    """Requested resource does not exist."""
    def __init__(
        self, resource_type: str, resource_id: str, context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.resource = ctx.resource or resource_type
        super().__init__(
            f"{resource_type} '{resource_id}' not found",
            "RESOURCE_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, ctx, 404,
        )
        self.resource_type = resource_type
        self.resource_id = resource_id


class EditorSessionNotFoundError(ResourceNotFoundError):
    """Editing session was closed or never opened."""
    def __init__(self, session_id: str):
        super().__init__(
            "EditorSession", session_id, ErrorContext(session_id=session_id),
        )
        self.code = "EDITOR_SESSION_NOT_FOUND"


class ConflictError(ProfileEditorError):
    """Unique constraint violated — e.g. two sessions lazily creating the same singleton."""
    def __init__(self, message: str, resource: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.resource = ctx.resource or resource
        super().__init__(
            message, "UNIQUE_CONFLICT", ErrorCategory.CONFLICT,
            ErrorSeverity.WARNING, ctx, 409,
        )


# ─── Infrastructure Errors (500-level) ──────────────────────────

class StoreUnavailableError(ProfileEditorError):
    """Remote store could not be reached or failed mid-operation."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Store {operation} failed: {message}",
            "STORE_UNAVAILABLE", ErrorCategory.STORE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation


class GenerationError(ProfileEditorError):
    """Generation collaborator failed; never mixed up with save failures."""
    def __init__(
        self,
        message: str,
        api_error_type: str,
        retry_after_ms: int | None = None,
        context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.retry_after_ms = retry_after_ms
        super().__init__(
            f"Generation failed ({api_error_type}): {message}",
            "GENERATION_FAILED", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.ERROR, ctx, 502,
        )
        self.api_error_type = api_error_type


class TemporaryIdError(ProfileEditorError):
    """A placeholder id reached the store boundary — programming error."""
    def __init__(self, resource: str, entity_id: str):
        super().__init__(
            f"Refusing to send temporary id '{entity_id}' for {resource}",
            "TEMPORARY_ID_LEAK", ErrorCategory.INTERNAL,
            ErrorSeverity.CRITICAL,
            ErrorContext(resource=resource, entity_id=entity_id), 500,
        )
