"""Aggregate Snapshot — the loaded state of one tenant, slice by slice.

Invariants:
    - Each slice is either a value or an error marker, never both
    - A failed singleton slice is None + error; a failed collection slice is [] + error
    - One slice's failure never changes another slice's value

Design Decisions:
    - SliceResult per slice instead of one exception for the whole load: partial failure is
      an expected outcome the UI renders, not an exceptional path
"""

from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from business_profile.core.domain_types import (
    CollectionName, ResourceType, TenantId,
)
from business_profile.core.errors import ProfileEditorError
from business_profile.schemas.records import (
    CompanyRecord, PlatformSettingRecord, Record,
)

T = TypeVar("T")


@dataclass
class SliceResult(Generic[T]):
    """Value of one aggregate slice, or the error that left it absent."""
    value: T
    error: ProfileEditorError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict[str, Any]:
        value = self.value
        if isinstance(value, Record):
            value = value.model_dump(mode="json")
        elif isinstance(value, list):
            value = [v.model_dump(mode="json") for v in value]
        return {
            "value": value,
            "error": self.error.to_event() if self.error else None,
        }


@dataclass
class AggregateSnapshot:
    """Tenant row, singleton sub-records and collections as loaded."""

    tenant_id: TenantId
    company: SliceResult[CompanyRecord | None]
    singletons: dict[ResourceType, SliceResult[Record | None]] = field(default_factory=dict)
    collections: dict[CollectionName, SliceResult[list[Record]]] = field(default_factory=dict)
    platform_settings: SliceResult[list[PlatformSettingRecord]] = field(
        default_factory=lambda: SliceResult([]),
    )

    @property
    def failed_slices(self) -> list[str]:
        failed = []
        if not self.company.ok:
            failed.append(ResourceType.COMPANY.value)
        failed += [r.value for r, s in self.singletons.items() if not s.ok]
        failed += [c.value for c, s in self.collections.items() if not s.ok]
        if not self.platform_settings.ok:
            failed.append(ResourceType.PLATFORM_SETTING.value)
        return failed

    @property
    def complete(self) -> bool:
        return not self.failed_slices

    def singleton(self, resource: ResourceType) -> Record | None:
        result = self.singletons.get(resource)
        return result.value if result else None

    def to_dict(self) -> dict[str, Any]:
        return {
            "tenant_id": str(self.tenant_id),
            "company": self.company.to_dict(),
            "singletons": {r.value: s.to_dict() for r, s in self.singletons.items()},
            "collections": {c.value: s.to_dict() for c, s in self.collections.items()},
            "platform_settings": self.platform_settings.to_dict(),
            "failed_slices": self.failed_slices,
        }
