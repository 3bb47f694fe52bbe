"""Generation Merge — routes an opaque generated result through the normal save paths.

Invariants:
    - Generated singleton values land only through FieldSyncBuffer (set_local + commit),
      so write-on-change applies to them like to typed input
    - Generated objectives land only through CollectionSyncManager.add(); a draft whose
      title the collection already holds is skipped
    - A competitor analysis lands only through CollectionSyncManager stage + commit_item,
      so only fields that differ from the entity are sent
    - A generation failure touches nothing and emits GENERATION_FAILED, a kind the UI
      never confuses with SAVE_FAILED
    - GENERATED is emitted only when every field save succeeded
    - Fields the target record does not have are ignored and reported, never written
    - Strategy results mark the row generated_with_ai

Design Decisions:
    - Buffers and collections obtained through callbacks from the session: the merge never
      creates a second buffer or manager for something the user is already editing
    - Collection writes are background work; their results arrive as CREATED / SAVED
      events like any other collection edit, so the outcome lists what was queued
    - A competitor that already has an analysis is returned as cached unless forced
      (ADR: analyses are slow and billed per call)
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable

from business_profile.core.domain_types import (
    CollectionName, CommitStatus, GenerationKind, ResourceType,
)
from business_profile.core.editing_context import EditingContext, SyncEventKind
from business_profile.core.errors import (
    GenerationError, ProfileEditorError, RecordValidationError, ResourceNotFoundError,
)
from business_profile.core.repository_protocols import GenerationClient
from business_profile.schemas.records import writable_fields
from business_profile.services.collection_sync import CollectionSyncManager
from business_profile.services.field_sync import CommitOutcome, FieldSyncBuffer

logger = logging.getLogger(__name__)

BufferLookup = Callable[[ResourceType, str], Awaitable[FieldSyncBuffer]]
CollectionLookup = Callable[[CollectionName], CollectionSyncManager]

_OWNER_FIELD = "company_id"

# Social profiles an analysis may report, and the competitor column each one fills
_SOCIAL_COLUMNS = {
    "instagram": "instagram_url",
    "facebook": "facebook_url",
    "linkedin": "linkedin_url",
    "twitter": "twitter_url",
    "tiktok": "tiktok_url",
}


@dataclass
class GenerationOutcome:
    kind: GenerationKind
    outcomes: dict[str, CommitOutcome] = field(default_factory=dict)
    ignored: list[str] = field(default_factory=list)
    added: list[str] = field(default_factory=list)
    changed: list[str] = field(default_factory=list)
    entity_id: str | None = None
    analysis: dict[str, Any] | None = None
    cached: bool = False
    error: ProfileEditorError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and all(
            o.status != CommitStatus.FAILED for o in self.outcomes.values()
        )

    @property
    def failed_fields(self) -> list[str]:
        return [n for n, o in self.outcomes.items() if o.status == CommitStatus.FAILED]

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "ok": self.ok,
            "fields": {name: o.to_dict() for name, o in self.outcomes.items()},
            "ignored": self.ignored,
            "added": self.added,
            "changed": self.changed,
            "entity_id": self.entity_id,
            "analysis": self.analysis,
            "cached": self.cached,
            "error": self.error.to_event() if self.error else None,
        }


def _title_key(title: Any) -> str:
    return str(title).strip().casefold()


class GenerationMerger:
    """Asks the generation collaborator for content and saves it like user edits."""

    def __init__(
        self,
        context: EditingContext,
        client: GenerationClient,
        buffer_for: BufferLookup,
        collection_for: CollectionLookup | None = None,
    ):
        self._context = context
        self._client = client
        self._buffer_for = buffer_for
        self._collection_for = collection_for

    async def merge(self, kind: GenerationKind) -> GenerationOutcome:
        if kind == GenerationKind.COMPETITOR_ANALYSIS:
            raise RecordValidationError(
                "competitor analysis needs a competitor id", ResourceType.COMPETITOR.value,
            )
        try:
            produced = await self._produce(kind)
        except GenerationError as e:
            return GenerationOutcome(kind, error=e)

        if kind == GenerationKind.OBJECTIVES:
            outcome = self._add_objectives(produced)
        else:
            outcome = await self._merge_singleton(kind, produced)
        return self._finish(outcome)

    async def analyze_competitor(
        self, entity_id: object, force: bool = False,
    ) -> GenerationOutcome:
        """Analyze one competitor and merge the result into it."""
        kind = GenerationKind.COMPETITOR_ANALYSIS
        manager = self._collection(CollectionName.COMPETITORS)
        competitor = manager.get(entity_id)
        if competitor.get("ai_analysis") and not force:
            return GenerationOutcome(
                kind, entity_id=competitor["id"],
                analysis=competitor["ai_analysis"], cached=True,
            )
        if not competitor.get("website_url"):
            raise RecordValidationError(
                "competitor has no website_url to analyze", ResourceType.COMPETITOR.value,
            )

        subject = {
            "competitor_name": competitor.get("competitor_name"),
            "website_url": competitor["website_url"],
        }
        try:
            analysis = await self._produce(kind, subject)
        except GenerationError as e:
            return GenerationOutcome(kind, entity_id=competitor["id"], error=e)

        outcome = GenerationOutcome(kind, entity_id=competitor["id"], analysis=analysis)
        if not self._context.is_active:
            return outcome

        patch: dict[str, Any] = {
            "ai_analysis": analysis,
            "last_analyzed_at": datetime.now(timezone.utc),
        }
        social = analysis.get("social_networks")
        if isinstance(social, dict):
            for platform, column in _SOCIAL_COLUMNS.items():
                url = social.get(platform)
                if isinstance(url, str) and url.strip():
                    patch[column] = url.strip()

        try:
            current = manager.get(entity_id)
            manager.stage(entity_id, patch)
        except ResourceNotFoundError as e:
            # Removed while the analysis was running
            outcome.error = e
            return outcome
        outcome.changed = sorted(k for k, v in patch.items() if current.get(k) != v)
        manager.commit_item(entity_id)
        return self._finish(outcome)

    # ── per target ────────────────────────────────────────────

    async def _merge_singleton(
        self, kind: GenerationKind, produced: dict[str, Any],
    ) -> GenerationOutcome:
        target = kind.target
        allowed = writable_fields(target) - {_OWNER_FIELD}
        values = {k: v for k, v in produced.items() if k in allowed}
        ignored = sorted(set(produced) - allowed)
        if values and kind == GenerationKind.STRATEGY:
            values["generated_with_ai"] = True

        names = list(values)
        results = await asyncio.gather(*(
            self._save(target, name, values[name]) for name in names
        ))
        outcome = GenerationOutcome(kind, dict(zip(names, results)), ignored)
        logger.info(
            f"Merged generated {kind.value}: {len(names)} field(s), {len(ignored)} ignored",
            extra=self._context.log_extra(resource=target.value),
        )
        return outcome

    def _add_objectives(self, produced: dict[str, Any]) -> GenerationOutcome:
        kind = GenerationKind.OBJECTIVES
        outcome = GenerationOutcome(kind)
        if not self._context.is_active:
            return outcome
        manager = self._collection(CollectionName.OBJECTIVES)
        allowed = writable_fields(kind.target) - {_OWNER_FIELD}
        known = {_title_key(item.get("title", "")) for item in manager.items}

        drafts = produced.get("objectives")
        for index, draft in enumerate(drafts if isinstance(drafts, list) else []):
            label = f"objectives[{index}]"
            if not isinstance(draft, dict) or not draft.get("title"):
                outcome.ignored.append(label)
                continue
            key = _title_key(draft["title"])
            if key in known:
                outcome.ignored.append(label)
                continue
            try:
                temp_id = manager.add({k: v for k, v in draft.items() if k in allowed})
            except RecordValidationError:
                outcome.ignored.append(label)
                continue
            known.add(key)
            outcome.added.append(str(temp_id))

        logger.info(
            f"Added {len(outcome.added)} generated objective(s), "
            f"{len(outcome.ignored)} skipped",
            extra=self._context.log_extra(resource=kind.target.value),
        )
        return outcome

    # ── helpers ───────────────────────────────────────────────

    async def _produce(
        self, kind: GenerationKind, subject: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        try:
            return await self._client.generate(self._context.tenant_id, kind, subject)
        except GenerationError as e:
            logger.warning(
                f"Generation of {kind.value} failed: {e.message}",
                extra=self._context.log_extra(
                    resource=kind.target.value, error_code=e.code,
                ),
            )
            if self._context.is_active:
                self._context.emit(
                    SyncEventKind.GENERATION_FAILED, resource=kind.target.value, error=e,
                )
            raise

    def _finish(self, outcome: GenerationOutcome) -> GenerationOutcome:
        if not self._context.is_active:
            return outcome
        resource = outcome.kind.target.value
        if outcome.ok:
            self._context.emit(
                SyncEventKind.GENERATED, resource=resource, entity_id=outcome.entity_id,
            )
        else:
            logger.warning(
                f"Generated {outcome.kind.value} not saved: "
                f"{', '.join(outcome.failed_fields)} failed",
                extra=self._context.log_extra(resource=resource),
            )
        return outcome

    def _collection(self, name: CollectionName) -> CollectionSyncManager:
        if self._collection_for is None:
            raise GenerationError(f"no {name.value} collection available", "configuration")
        return self._collection_for(name)

    async def _save(
        self, resource: ResourceType, name: str, value: Any,
    ) -> CommitOutcome:
        try:
            buffer = await self._buffer_for(resource, name)
            buffer.set_local(value)
        except ProfileEditorError as e:
            return CommitOutcome(CommitStatus.FAILED, value, e)
        return await buffer.commit()
