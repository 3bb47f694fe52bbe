"""API Schemas — request and response bodies for the editor HTTP surface.

Invariants:
    - Bodies carry only transport shape; field-level rules live in schemas/records.py and
      are enforced by the components (validate_patch), so HTTP and in-process callers
      see the same errors
    - Collection drafts never carry an id or company_id; the store assigns both

Design Decisions:
    - Literal for OpenSessionResponse.status over str enum: Pydantic handles validation natively
"""

from typing import Any, Literal
from uuid import UUID

from pydantic import BaseModel, Field, field_validator


class OpenSessionRequest(BaseModel):
    """Open an editing session for the acting user."""
    user_id: UUID


class OpenSessionResponse(BaseModel):
    status: Literal["ready", "needs_onboarding"]
    session_id: UUID | None = None
    tenant_id: UUID | None = None
    source: str | None = None
    snapshot: dict[str, Any] | None = None


class FieldWrite(BaseModel):
    """New local value for one field; committed immediately (the blur/save boundary)."""
    value: Any = None


class CollectionDraft(BaseModel):
    fields: dict[str, Any] = Field(default_factory=dict)

    @field_validator("fields")
    @classmethod
    def reject_identity(cls, v: dict[str, Any]) -> dict[str, Any]:
        for key in ("id", "company_id", "created_at", "updated_at"):
            if key in v:
                raise ValueError(f"'{key}' is assigned by the store")
        return v


class ChannelChanges(BaseModel):
    changes: dict[str, Any] = Field(min_length=1)
