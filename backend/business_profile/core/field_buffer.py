"""Field Edit Buffer — pure state machine behind write-on-change-only autosave.

Invariants:
    - begin_commit() returns None unless the local value differs from the committed one
      (an unchanged value is never sent)
    - clean -> dirty on a differing set_local; dirty -> saving on begin_commit;
      saving -> clean when the value round-trips; saving -> dirty on failure
    - A failed commit never reverts the local value
    - rebind() bumps the epoch; tickets from an older epoch are stale and ignored
    - The committed reference is whatever the store last returned, never the local guess

Design Decisions:
    - Pure dataclass with explicit tickets: the async service owns IO and ordering, this
      class only decides what may be sent and what a result means (ADR: functional core)
    - Epoch counter over object identity: a buffer survives re-mounts, so staleness has to
      be a value that can be compared after an await
"""

from dataclasses import dataclass
from typing import Any

from business_profile.core.domain_types import BufferState


@dataclass(frozen=True)
class CommitTicket:
    """Proof that a commit was started for a given value in a given epoch."""
    epoch: int
    value: Any


@dataclass
class FieldEditBuffer:
    """Local value, last committed value and lifecycle state for one scalar field."""

    committed: Any = None
    value: Any = None
    state: BufferState = BufferState.CLEAN
    epoch: int = 0

    @classmethod
    def mount(cls, value: Any) -> "FieldEditBuffer":
        return cls(committed=value, value=value)

    @property
    def dirty(self) -> bool:
        return self.value != self.committed

    def set_local(self, value: Any) -> None:
        """Record a local edit. Never talks to the store."""
        self.value = value
        if self.state is not BufferState.SAVING:
            self.state = BufferState.DIRTY if self.dirty else BufferState.CLEAN

    def begin_commit(self) -> CommitTicket | None:
        """Start a commit if there is something to send. Pure state mutation."""
        if self.state is BufferState.SAVING:
            return None
        if not self.dirty:
            self.state = BufferState.CLEAN
            return None
        self.state = BufferState.SAVING
        return CommitTicket(self.epoch, self.value)

    def commit_succeeded(self, ticket: CommitTicket, server_value: Any) -> bool:
        """Adopt the stored value. Returns False if the ticket is stale."""
        if ticket.epoch != self.epoch:
            return False
        self.committed = server_value
        if self.value == ticket.value:
            self.value = server_value
        self.state = BufferState.DIRTY if self.dirty else BufferState.CLEAN
        return True

    def commit_failed(self, ticket: CommitTicket) -> bool:
        """Keep the local edit and fall back to dirty. Returns False if stale."""
        if ticket.epoch != self.epoch:
            return False
        self.state = BufferState.DIRTY if self.dirty else BufferState.CLEAN
        return True

    def rebind(self, value: Any) -> None:
        """Point the buffer at a new external value, discarding stale edits."""
        self.epoch += 1
        self.committed = value
        self.value = value
        self.state = BufferState.CLEAN
