"""Editing Context — explicit, session-scoped replacement for a global "current tenant".

Invariants:
    - One context per (user, tenant) editing session; switching tenant means a new context
    - close() is one-way; components check is_active before applying a remote result
    - Notifications always carry the session and tenant they belong to

Design Decisions:
    - Passed explicitly to every component instead of living in module state: two open
      sessions can never bleed edits into each other
    - SyncEvent is a plain dataclass; rendering (toasts, badges) is the caller's job
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Protocol
from uuid import uuid4

from business_profile.core.domain_types import EditorSessionId, TenantId, UserId
from business_profile.core.errors import ProfileEditorError


class SyncEventKind(str, Enum):
    SAVED = "saved"
    SAVE_FAILED = "save_failed"
    CREATED = "created"
    CREATE_FAILED = "create_failed"
    DELETED = "deleted"
    DELETE_FAILED = "delete_failed"
    LOAD_FAILED = "load_failed"
    GENERATED = "generated"
    GENERATION_FAILED = "generation_failed"


@dataclass(frozen=True)
class SyncEvent:
    """Success/failure notification for the UI to render."""
    kind: SyncEventKind
    session_id: EditorSessionId
    tenant_id: TenantId
    resource: str | None = None
    field_name: str | None = None
    entity_id: str | None = None
    error: dict[str, Any] | None = None
    at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "session_id": str(self.session_id),
            "tenant_id": str(self.tenant_id),
            "resource": self.resource,
            "field": self.field_name,
            "entity_id": self.entity_id,
            "error": self.error,
            "at": self.at.isoformat(),
        }


class Notifier(Protocol):
    """Receives SyncEvents — implemented by services/notifications.py or the caller."""
    def notify(self, event: SyncEvent) -> None: ...


@dataclass
class EditingContext:
    """Who is editing which tenant, and whether that session is still open."""

    user_id: UserId
    tenant_id: TenantId
    notifier: Notifier
    session_id: EditorSessionId = field(
        default_factory=lambda: EditorSessionId(uuid4()),
    )
    opened_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    active: bool = True

    @property
    def is_active(self) -> bool:
        return self.active

    def close(self) -> None:
        self.active = False

    def emit(
        self,
        kind: SyncEventKind,
        *,
        resource: str | None = None,
        field: str | None = None,
        entity_id: object = None,
        error: ProfileEditorError | None = None,
    ) -> None:
        self.notifier.notify(SyncEvent(
            kind=kind,
            session_id=self.session_id,
            tenant_id=self.tenant_id,
            resource=resource,
            field_name=field,
            entity_id=str(entity_id) if entity_id is not None else None,
            error=error.to_event() if error else None,
        ))

    def log_extra(self, **extra: Any) -> dict[str, Any]:
        """Logging `extra` dict with the session identity filled in."""
        return {
            "tenant_id": str(self.tenant_id),
            "session_id": str(self.session_id),
            **extra,
        }
