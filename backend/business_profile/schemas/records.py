"""Record Variants — one validated pydantic model per resource kind.

Invariants:
    - Every row crossing the store boundary is validated into its ResourceType's model
    - Unknown fields in a write payload are rejected by validate_patch
    - Keyed maps (tone_by_platform, content_frequency, preferred_posting_times) only
      accept Platform keys
    - Defaults mirror what the editor shows for an absent value

Design Decisions:
    - Tagged variants over free-form JSON dicts: the UI never trusts a payload shape
      the store did not validate (ADR: loosely-typed sub-resources were the main source
      of owner confusion)
    - from_attributes=True: the SQL store validates ORM instances directly
    - Writes validated field-by-field against the same annotations (validate_patch) so the
      field rules live in one place
"""

from datetime import date, datetime
from functools import lru_cache
from typing import Any, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from business_profile.core.domain_types import Platform, ResourceType, Tone
from business_profile.core.errors import RecordValidationError

# ADR: Literal over the str Enums for stored values and map keys. Enum members hash
# by name, so {Platform.X: ...} != {"x": ...}; plain strings keep dict equality
# (and therefore write-on-change comparisons) exact.
PlatformName = Literal[tuple(p.value for p in Platform)]
ToneName = Literal[tuple(t.value for t in Tone)]


class Record(BaseModel):
    """Base record — identity plus timestamps."""
    model_config = ConfigDict(from_attributes=True, extra="ignore")

    id: UUID
    created_at: datetime | None = None
    updated_at: datetime | None = None


class TenantOwnedRecord(Record):
    company_id: UUID


# ─── Aggregate root and identity ─────────────────────────────────

class CompanyRecord(Record):
    name: str
    description: str | None = None
    industry_sector: str | None = None
    company_size: str | None = None
    country: str | None = None
    website_url: str | None = None
    logo_url: str | None = None
    instagram_url: str | None = None
    facebook_url: str | None = None
    linkedin_url: str | None = None
    tiktok_url: str | None = None
    twitter_url: str | None = None
    youtube_url: str | None = None
    primary_color: str | None = None
    secondary_color: str | None = None


class ProfileRecord(Record):
    user_id: UUID
    primary_company_id: UUID | None = None


class MembershipRecord(TenantOwnedRecord):
    user_id: UUID
    role: str = "member"
    is_primary: bool = False
    joined_at: datetime | None = None


# ─── Singleton sub-records ───────────────────────────────────────

class StrategyRecord(TenantOwnedRecord):
    mision: str | None = None
    vision: str | None = None
    propuesta_valor: str | None = None
    generated_with_ai: bool = False


class BrandingRecord(TenantOwnedRecord):
    primary_color: str | None = None
    secondary_color: str | None = None
    complementary_color_1: str | None = None
    complementary_color_2: str | None = None
    visual_identity: str | None = None
    brand_voice: str | None = None
    logo_url: str | None = None
    brand_manual_url: str | None = None


class ScheduleRecord(TenantOwnedRecord):
    timezone: str = "America/Mexico_City"
    business_hours_start: str = "09:00"
    business_hours_end: str = "18:00"
    working_days: list[int] = Field(default_factory=lambda: [1, 2, 3, 4, 5])
    preferred_posting_times: dict[PlatformName, list[str]] = Field(default_factory=dict)
    content_frequency: dict[PlatformName, int] = Field(default_factory=dict)


class CommunicationRecord(TenantOwnedRecord):
    brand_voice: str | None = None
    emoji_usage: str = "moderate"
    language_formality: str = "formal"
    brand_hashtags: list[str] = Field(default_factory=list)
    forbidden_words: list[str] = Field(default_factory=list)
    content_pillars: list[str] = Field(default_factory=list)
    tone_by_platform: dict[PlatformName, ToneName] = Field(default_factory=dict)


class EmailConfigRecord(TenantOwnedRecord):
    smtp_host: str | None = None
    smtp_port: int = 587
    smtp_user: str | None = None
    smtp_password: str | None = None
    smtp_secure: bool = True
    billing_email: str | None = None
    notifications_email: str | None = None
    support_email: str | None = None
    marketing_email: str | None = None
    general_email: str | None = None
    from_name: str | None = None
    from_email: str | None = None
    is_active: bool = False


# ─── Collection sub-entities ─────────────────────────────────────

class ObjectiveRecord(TenantOwnedRecord):
    title: str = ""
    description: str | None = None
    objective_type: str = "short_term"
    priority: int = 1
    status: str = "active"
    target_date: date | None = None


class ProductRecord(TenantOwnedRecord):
    name: str = ""
    description: str | None = None
    category: str | None = None
    price: float | None = None
    currency: str = "USD"
    landing_url: str | None = None
    featured: bool = False
    active: bool = True
    position: int = 0


class CompetitorRecord(TenantOwnedRecord):
    competitor_name: str = ""
    website_url: str | None = None
    instagram_url: str | None = None
    facebook_url: str | None = None
    linkedin_url: str | None = None
    twitter_url: str | None = None
    tiktok_url: str | None = None
    is_direct_competitor: bool = True
    priority_level: str = "medium"
    notes: str | None = None
    monitor_pricing: bool = False
    monitor_content: bool = True
    monitor_campaigns: bool = False
    ai_analysis: dict[str, Any] | None = None
    last_analyzed_at: datetime | None = None


class PlatformSettingRecord(TenantOwnedRecord):
    platform: PlatformName
    is_active: bool = False
    max_posts_per_day: int = 3
    hashtag_limit: int = 10
    auto_publish: bool = False
    require_approval: bool = True
    analytics_tracking: bool = True


RECORD_MODELS: dict[ResourceType, type[Record]] = {
    ResourceType.COMPANY: CompanyRecord,
    ResourceType.PROFILE: ProfileRecord,
    ResourceType.COMPANY_MEMBER: MembershipRecord,
    ResourceType.STRATEGY: StrategyRecord,
    ResourceType.BRANDING: BrandingRecord,
    ResourceType.SCHEDULE: ScheduleRecord,
    ResourceType.COMMUNICATION: CommunicationRecord,
    ResourceType.EMAIL_CONFIG: EmailConfigRecord,
    ResourceType.OBJECTIVE: ObjectiveRecord,
    ResourceType.PRODUCT: ProductRecord,
    ResourceType.COMPETITOR: CompetitorRecord,
    ResourceType.PLATFORM_SETTING: PlatformSettingRecord,
}

# Identity and bookkeeping columns the editor never writes directly
_READ_ONLY_FIELDS = frozenset({"id", "created_at", "updated_at"})


def writable_fields(resource: ResourceType) -> frozenset[str]:
    return frozenset(RECORD_MODELS[resource].model_fields) - _READ_ONLY_FIELDS


def validate_record(resource: ResourceType, row: object) -> Record:
    """Validate a dict or ORM row into the resource's record variant."""
    model = RECORD_MODELS[resource]
    try:
        return model.model_validate(row)
    except ValidationError as e:
        raise RecordValidationError(
            f"Invalid {resource.value} row: {e.errors()[0]['msg']}", resource.value,
        )


@lru_cache(maxsize=None)
def _field_adapter(resource: ResourceType, name: str) -> TypeAdapter:
    return TypeAdapter(RECORD_MODELS[resource].model_fields[name].annotation)


def validate_patch(resource: ResourceType, patch: dict[str, Any]) -> dict[str, Any]:
    """Validate a partial write; returns coerced values for the given keys only."""
    unknown = set(patch) - writable_fields(resource)
    if unknown:
        raise RecordValidationError(
            f"Unknown {resource.value} field(s): {', '.join(sorted(unknown))}",
            resource.value,
        )
    coerced = {}
    for name, value in patch.items():
        try:
            coerced[name] = _field_adapter(resource, name).validate_python(value)
        except ValidationError as e:
            raise RecordValidationError(
                f"Invalid value for {resource.value}.{name}: {e.errors()[0]['msg']}",
                resource.value,
            )
    return coerced
