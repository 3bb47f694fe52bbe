"""Editor Routes — HTTP surface over EditorSession: fields, collections, channels, generation.

Invariants:
    - _editor_sessions dict is the single source for open sessions
    - A closed session is removed and its context deactivated before the response returns
    - Field writes commit immediately: the request is the blur/save boundary
    - Collection writes return at once with the optimistic state; /flush waits for the
      background work and drains the notifications it produced

Design Decisions:
    - _editor_sessions as module-level dict: deliberate exception to no-global-state rule
      (ADR: single-process uvicorn, editing state lost on restart)
    - Store and generation client injected with Depends so tests swap in fakes
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Response, status

from business_profile.config import get_settings
from business_profile.core.domain_types import (
    CollectionName, GenerationKind, Platform, ResourceType, UserId, parse_entity_id,
)
from business_profile.core.errors import EditorSessionNotFoundError, ResourceNotFoundError
from business_profile.core.repository_protocols import GenerationClient, RemoteStore
from business_profile.infrastructure.database import get_db_manager
from business_profile.infrastructure.generation_client import AnthropicGenerationClient
from business_profile.infrastructure.sql_store import SqlAlchemyRemoteStore
from business_profile.schemas.api import (
    ChannelChanges, CollectionDraft, FieldWrite, OpenSessionRequest, OpenSessionResponse,
)
from business_profile.services.editor_session import EditorSession
from business_profile.services.notifications import EventLog

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/editor/sessions", tags=["editor"])

# ADR: editing sessions are in-memory (not DB/Redis)
# Trade-off: open sessions lost on restart; the UI re-opens and reloads
_editor_sessions: dict[UUID, EditorSession] = {}


def get_store() -> RemoteStore:
    return SqlAlchemyRemoteStore(get_db_manager())


def get_generation_client(
    store: RemoteStore = Depends(get_store),
) -> GenerationClient | None:
    settings = get_settings()
    if not settings.generation_enabled:
        return None
    return AnthropicGenerationClient(
        api_key=settings.anthropic_api_key,
        store=store,
        model=settings.generation_model,
        max_tokens=settings.generation_max_tokens,
        max_retries=settings.anthropic_max_retries,
        base_delay_ms=settings.anthropic_base_delay_ms,
        max_delay_ms=settings.anthropic_max_delay_ms,
        timeout_seconds=settings.anthropic_timeout_seconds,
    )


def get_editor_session(session_id: UUID) -> EditorSession:
    session = _editor_sessions.get(session_id)
    if session is None or not session.context.is_active:
        raise EditorSessionNotFoundError(str(session_id))
    return session


def _entity_id(collection: CollectionName, raw: str):
    try:
        return parse_entity_id(raw)
    except ValueError:
        raise ResourceNotFoundError(collection.resource.value, raw)


def open_session_count() -> int:
    return sum(1 for s in _editor_sessions.values() if s.context.is_active)


# ─── Lifecycle ──────────────────────────────────────────────────

@router.post(
    "", response_model=OpenSessionResponse,
    status_code=status.HTTP_201_CREATED,
)
async def open_session(
    body: OpenSessionRequest,
    response: Response,
    store: RemoteStore = Depends(get_store),
    generation_client: GenerationClient | None = Depends(get_generation_client),
):
    """Resolve the user's company and load it for editing."""
    result = await EditorSession.open(
        UserId(body.user_id), store, generation_client,
        notifier=EventLog(get_settings().event_buffer_size),
    )
    if not result.ready:
        response.status_code = status.HTTP_200_OK
        return OpenSessionResponse(status="needs_onboarding")

    session = result.session
    _editor_sessions[session.session_id] = session
    return OpenSessionResponse(
        status="ready",
        session_id=session.session_id,
        tenant_id=session.tenant_id,
        source=result.resolution.source.value,
        snapshot=session.to_dict(),
    )


@router.get("/{session_id}")
async def get_session(session: EditorSession = Depends(get_editor_session)):
    return session.to_dict()


@router.delete("/{session_id}")
async def close_session(session: EditorSession = Depends(get_editor_session)):
    """Close the session. Background results still in flight are discarded."""
    _editor_sessions.pop(session.session_id, None)
    session.close()
    return {"session_id": str(session.session_id), "closed": True}


@router.post("/{session_id}/flush")
async def flush_session(session: EditorSession = Depends(get_editor_session)):
    """Wait for background writes, then hand out the notifications they produced."""
    await session.settle()
    return {
        "events": [e.to_dict() for e in session.events()],
        "snapshot": session.to_dict(),
    }


@router.post("/{session_id}/reload")
async def reload_session(session: EditorSession = Depends(get_editor_session)):
    await session.reload()
    return session.to_dict()


@router.get("/{session_id}/events")
async def drain_events(session: EditorSession = Depends(get_editor_session)):
    return {"events": [e.to_dict() for e in session.events()]}


# ─── Scalar fields ──────────────────────────────────────────────

@router.put("/{session_id}/fields/{resource}/{field}")
async def write_field(
    resource: ResourceType,
    field: str,
    body: FieldWrite,
    session: EditorSession = Depends(get_editor_session),
):
    outcome = await session.commit_field(resource, field, body.value)
    return {"resource": resource.value, "field": field, **outcome.to_dict()}


# ─── Collections ────────────────────────────────────────────────

@router.get("/{session_id}/collections/{name}")
async def list_collection(
    name: CollectionName, session: EditorSession = Depends(get_editor_session),
):
    return {"items": session.collection(name).items}


@router.post(
    "/{session_id}/collections/{name}", status_code=status.HTTP_202_ACCEPTED,
)
async def add_item(
    name: CollectionName,
    body: CollectionDraft,
    session: EditorSession = Depends(get_editor_session),
):
    """Optimistic add: the item is visible under a temporary id until the create lands."""
    manager = session.collection(name)
    temp_id = manager.add(body.fields)
    return {"id": str(temp_id), "items": manager.items}


@router.patch(
    "/{session_id}/collections/{name}/{entity_id}",
    status_code=status.HTTP_202_ACCEPTED,
)
async def update_item(
    name: CollectionName,
    entity_id: str,
    body: CollectionDraft,
    session: EditorSession = Depends(get_editor_session),
):
    manager = session.collection(name)
    item_id = _entity_id(name, entity_id)
    manager.update(item_id, body.fields)
    return {"item": manager.get(item_id)}


@router.delete(
    "/{session_id}/collections/{name}/{entity_id}",
    status_code=status.HTTP_202_ACCEPTED,
)
async def remove_item(
    name: CollectionName,
    entity_id: str,
    session: EditorSession = Depends(get_editor_session),
):
    manager = session.collection(name)
    manager.remove(_entity_id(name, entity_id))
    return {"items": manager.items}


# ─── Channels ───────────────────────────────────────────────────

@router.get("/{session_id}/channels")
async def read_channels(session: EditorSession = Depends(get_editor_session)):
    return {"channels": session.channels.read_all()}


@router.patch("/{session_id}/channels/{platform}")
async def write_channel(
    platform: Platform,
    body: ChannelChanges,
    session: EditorSession = Depends(get_editor_session),
):
    outcome = await session.channels.write(platform, body.changes)
    return outcome.to_dict()


# ─── Generation ─────────────────────────────────────────────────

@router.post("/{session_id}/generate/{kind}")
async def generate(
    kind: GenerationKind, session: EditorSession = Depends(get_editor_session),
):
    outcome = await session.generate(kind)
    return outcome.to_dict()


@router.post("/{session_id}/collections/competitors/{entity_id}/analyze")
async def analyze_competitor(
    entity_id: str,
    force: bool = False,
    session: EditorSession = Depends(get_editor_session),
):
    """Analyze one competitor; a stored analysis is returned as is unless forced."""
    outcome = await session.analyze_competitor(
        _entity_id(CollectionName.COMPETITORS, entity_id), force=force,
    )
    return outcome.to_dict()
