"""Domain Types — identifiers, resource kinds and enums shared across the editor core.

Invariants:
    - TenantId, UserId wrap UUIDs — never use bare UUID in domain logic
    - Server-assigned entity ids are UUIDs; TemporaryId is a str subclass, so the
      two can never compare equal
    - Every backing table is named by exactly one ResourceType
    - All valid states encoded as Enums — no raw string matching

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - TemporaryId as a str subclass (not NewType): must be detectable at runtime so the
      store boundary can refuse it (ADR: "never target a temporary id" is checked, not assumed)
    - str Enums: serialize to JSON without custom encoders
"""

from enum import Enum
from typing import NewType, Union
from uuid import UUID, uuid4


# ─── Identity Types ──────────────────────────────────────────────

TenantId = NewType("TenantId", UUID)
UserId = NewType("UserId", UUID)
EditorSessionId = NewType("EditorSessionId", UUID)


class TemporaryId(str):
    """Client-only placeholder id for an entity the store has not acknowledged."""

    PREFIX = "tmp_"

    @classmethod
    def new(cls) -> "TemporaryId":
        return cls(f"{cls.PREFIX}{uuid4().hex}")


# Either a server id or a placeholder: what the UI holds for a collection item
EntityId = Union[UUID, TemporaryId]


def is_temporary(entity_id: object) -> bool:
    """True for placeholder ids, including ones that round-tripped through JSON."""
    if isinstance(entity_id, TemporaryId):
        return True
    return isinstance(entity_id, str) and entity_id.startswith(TemporaryId.PREFIX)


def parse_entity_id(raw: str) -> EntityId:
    """Parse an id received from the UI boundary."""
    if raw.startswith(TemporaryId.PREFIX):
        return TemporaryId(raw)
    return UUID(raw)


# ─── Enums ───────────────────────────────────────────────────────

class ResourceType(str, Enum):
    """Every record kind the editor reads or writes."""
    COMPANY = "company"
    PROFILE = "profile"
    COMPANY_MEMBER = "company_member"
    STRATEGY = "strategy"
    BRANDING = "branding"
    SCHEDULE = "schedule"
    COMMUNICATION = "communication"
    EMAIL_CONFIG = "email_config"
    OBJECTIVE = "objective"
    PRODUCT = "product"
    COMPETITOR = "competitor"
    PLATFORM_SETTING = "platform_setting"


# One row per tenant, created lazily by the aggregate loader
SINGLETON_RESOURCES: tuple[ResourceType, ...] = (
    ResourceType.STRATEGY,
    ResourceType.BRANDING,
    ResourceType.SCHEDULE,
    ResourceType.COMMUNICATION,
    ResourceType.EMAIL_CONFIG,
)


class CollectionName(str, Enum):
    """User-managed collections and the ordering the store returns them in."""
    OBJECTIVES = "objectives"
    PRODUCTS = "products"
    COMPETITORS = "competitors"

    @property
    def resource(self) -> ResourceType:
        return _COLLECTION_RESOURCES[self]

    @property
    def order_by(self) -> tuple[str, ...]:
        return _COLLECTION_ORDER[self]


_COLLECTION_RESOURCES = {
    CollectionName.OBJECTIVES: ResourceType.OBJECTIVE,
    CollectionName.PRODUCTS: ResourceType.PRODUCT,
    CollectionName.COMPETITORS: ResourceType.COMPETITOR,
}

_COLLECTION_ORDER = {
    CollectionName.OBJECTIVES: ("priority", "created_at"),
    CollectionName.PRODUCTS: ("position", "created_at"),
    CollectionName.COMPETITORS: ("created_at",),
}


class Platform(str, Enum):
    """Social platforms a channel row can be configured for."""
    INSTAGRAM = "instagram"
    FACEBOOK = "facebook"
    LINKEDIN = "linkedin"
    TIKTOK = "tiktok"
    TWITTER = "twitter"
    YOUTUBE = "youtube"


class Tone(str, Enum):
    CASUAL = "casual"
    FRIENDLY = "friendly"
    PROFESSIONAL = "professional"
    FUN = "fun"
    CONVERSATIONAL = "conversational"
    FORMAL = "formal"


class BufferState(str, Enum):
    """FieldEditBuffer lifecycle: clean -> dirty -> saving -> clean | dirty."""
    CLEAN = "clean"
    DIRTY = "dirty"
    SAVING = "saving"


class CommitStatus(str, Enum):
    """Typed result of a single write attempt."""
    SAVED = "saved"
    UNCHANGED = "unchanged"
    FAILED = "failed"
    STALE = "stale"


class ResolutionSource(str, Enum):
    """Which signal identified the tenant — strongest first."""
    PROFILE = "profile"
    PRIMARY_MEMBERSHIP = "primary_membership"
    FIRST_MEMBERSHIP = "first_membership"


class GenerationKind(str, Enum):
    """Opaque generation operations and the resource each result lands in."""
    STRATEGY = "strategy"
    BRANDING = "branding"
    COMMUNICATION = "communication"
    OBJECTIVES = "objectives"  # new items for the objectives collection
    COMPETITOR_ANALYSIS = "competitor_analysis"  # merged into one existing competitor

    @property
    def target(self) -> ResourceType:
        return _GENERATION_TARGETS[self]

    @property
    def collection(self) -> CollectionName | None:
        """The collection a result lands in, or None for singleton kinds."""
        return _GENERATION_COLLECTIONS.get(self)


_GENERATION_TARGETS = {
    GenerationKind.STRATEGY: ResourceType.STRATEGY,
    GenerationKind.BRANDING: ResourceType.BRANDING,
    GenerationKind.COMMUNICATION: ResourceType.COMMUNICATION,
    GenerationKind.OBJECTIVES: ResourceType.OBJECTIVE,
    GenerationKind.COMPETITOR_ANALYSIS: ResourceType.COMPETITOR,
}

_GENERATION_COLLECTIONS = {
    GenerationKind.OBJECTIVES: CollectionName.OBJECTIVES,
    GenerationKind.COMPETITOR_ANALYSIS: CollectionName.COMPETITORS,
}
