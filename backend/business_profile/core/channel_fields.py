"""Channel Fields — which backing resource owns each field of a per-platform channel row.

Invariants:
    - Every channel field has exactly one owner (platform_setting, schedule or communication)
    - A missing owner contributes defaults only; it never hides fields of other owners
    - plan_writes() groups changes by owner and drops values equal to what the row
      shows, stored value or default (write-on-change, per owner slice)
    - Keyed fields are written as the owner's whole map with only this platform's key changed

Design Decisions:
    - Static ownership table over per-call inspection: "which resource gets this field" is
      a lookup, so routing mistakes are impossible rather than unlikely
    - Owners never learn about each other; the join on platform exists only here
"""

from dataclasses import dataclass
from typing import Any

from business_profile.core.domain_types import Platform, ResourceType
from business_profile.core.errors import RecordValidationError
from business_profile.schemas.records import Record, validate_patch


@dataclass(frozen=True)
class ChannelField:
    """One user-visible channel field and where it physically lives."""
    name: str
    owner: ResourceType
    column: str
    default: Any
    keyed: bool = False  # stored under the platform key of a map on a singleton


CHANNEL_FIELDS: dict[str, ChannelField] = {f.name: f for f in (
    ChannelField("tone", ResourceType.COMMUNICATION, "tone_by_platform", "professional", keyed=True),
    ChannelField("frequency", ResourceType.SCHEDULE, "content_frequency", 0, keyed=True),
    ChannelField("posting_times", ResourceType.SCHEDULE, "preferred_posting_times", [], keyed=True),
    ChannelField("is_active", ResourceType.PLATFORM_SETTING, "is_active", False),
    ChannelField("max_posts_per_day", ResourceType.PLATFORM_SETTING, "max_posts_per_day", 3),
    ChannelField("hashtag_limit", ResourceType.PLATFORM_SETTING, "hashtag_limit", 10),
    ChannelField("auto_publish", ResourceType.PLATFORM_SETTING, "auto_publish", False),
    ChannelField("require_approval", ResourceType.PLATFORM_SETTING, "require_approval", True),
    ChannelField("analytics_tracking", ResourceType.PLATFORM_SETTING, "analytics_tracking", True),
)}

CHANNEL_OWNERS: tuple[ResourceType, ...] = (
    ResourceType.PLATFORM_SETTING,
    ResourceType.SCHEDULE,
    ResourceType.COMMUNICATION,
)


def owner_of(field_name: str) -> ResourceType:
    field_def = CHANNEL_FIELDS.get(field_name)
    if field_def is None:
        raise RecordValidationError(
            f"Unknown channel field: {field_name}", "channel",
        )
    return field_def.owner


def read_field(field_def: ChannelField, platform: Platform, source: Record | None) -> Any:
    if source is None:
        return field_def.default
    stored = getattr(source, field_def.column)
    if field_def.keyed:
        return stored.get(platform.value, field_def.default)
    return stored


def merge_row(
    platform: Platform, sources: dict[ResourceType, Record | None],
) -> dict[str, Any]:
    """Build one channel row, one field at a time from its owner."""
    row: dict[str, Any] = {"platform": platform.value}
    for field_def in CHANNEL_FIELDS.values():
        row[field_def.name] = read_field(field_def, platform, sources.get(field_def.owner))
    row["sources"] = {
        owner.value: sources.get(owner) is not None for owner in CHANNEL_OWNERS
    }
    return row


def plan_writes(
    platform: Platform,
    changes: dict[str, Any],
    sources: dict[ResourceType, Record | None],
) -> dict[ResourceType, dict[str, Any]]:
    """Turn a row edit into at most one validated patch per owner, unchanged values dropped."""
    plans: dict[ResourceType, dict[str, Any]] = {}
    for name, value in changes.items():
        field_def = CHANNEL_FIELDS.get(name)
        if field_def is None:
            raise RecordValidationError(f"Unknown channel field: {name}", "channel")
        source = sources.get(field_def.owner)
        patch = plans.setdefault(field_def.owner, {})
        if field_def.keyed:
            current = dict(patch.get(field_def.column) or (
                getattr(source, field_def.column) if source is not None else {}
            ))
            if current.get(platform.value, field_def.default) == value:
                continue
            current[platform.value] = value
            patch[field_def.column] = current
        else:
            if read_field(field_def, platform, source) == value:
                continue
            patch[field_def.column] = value
    return {
        owner: validate_patch(owner, patch)
        for owner, patch in plans.items() if patch
    }
