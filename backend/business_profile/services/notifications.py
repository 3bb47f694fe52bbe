"""Event Log — Notifier that buffers SyncEvents for the UI and logs failures.

Invariants:
    - Events are delivered in emission order
    - drain() hands each event out exactly once
    - Buffer is bounded; the oldest events are dropped first

Design Decisions:
    - deque(maxlen) over an unbounded list: an editor left open with no poller must not grow
      without limit
"""

import logging
from collections import deque

from business_profile.core.editing_context import SyncEvent

logger = logging.getLogger(__name__)

_FAILURE_SUFFIX = "_failed"


class EventLog:
    """In-memory Notifier — one per editing session."""

    def __init__(self, max_events: int = 500):
        self._events: deque[SyncEvent] = deque(maxlen=max_events)

    def notify(self, event: SyncEvent) -> None:
        self._events.append(event)
        if event.kind.value.endswith(_FAILURE_SUFFIX):
            logger.warning(
                f"Sync failure: {event.kind.value}",
                extra={
                    "tenant_id": str(event.tenant_id),
                    "session_id": str(event.session_id),
                    "resource": event.resource,
                    "field": event.field_name,
                    "entity_id": event.entity_id,
                    "error_code": (event.error or {}).get("code"),
                },
            )

    def drain(self) -> list[SyncEvent]:
        events = list(self._events)
        self._events.clear()
        return events

    def __len__(self) -> int:
        return len(self._events)
