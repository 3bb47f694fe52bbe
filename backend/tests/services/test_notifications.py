"""Event Log — tests for ordered, drain-once, bounded notification buffering."""

import logging
from uuid import uuid4

from business_profile.core.editing_context import EditingContext, SyncEventKind
from business_profile.core.errors import ConflictError
from business_profile.services.notifications import EventLog


def _context(log):
    return EditingContext(user_id=uuid4(), tenant_id=uuid4(), notifier=log)


def test_events_drained_in_order_once():
    log = EventLog()
    ctx = _context(log)
    ctx.emit(SyncEventKind.CREATED, resource="product", entity_id="p1")
    ctx.emit(SyncEventKind.SAVED, resource="strategy", field="mision")

    drained = log.drain()

    assert [e.kind for e in drained] == [SyncEventKind.CREATED, SyncEventKind.SAVED]
    assert drained[0].session_id == ctx.session_id
    assert drained[1].to_dict()["field"] == "mision"
    assert log.drain() == []


def test_buffer_drops_oldest_when_full():
    log = EventLog(max_events=2)
    ctx = _context(log)
    for entity in ("a", "b", "c"):
        ctx.emit(SyncEventKind.DELETED, resource="competitor", entity_id=entity)

    assert len(log) == 2
    assert [e.entity_id for e in log.drain()] == ["b", "c"]


def test_failures_are_logged(caplog):
    log = EventLog()
    ctx = _context(log)
    with caplog.at_level(logging.WARNING, logger="business_profile.services.notifications"):
        ctx.emit(
            SyncEventKind.CREATE_FAILED, resource="platform_setting",
            error=ConflictError("duplicate", "platform_setting"),
        )
        ctx.emit(SyncEventKind.SAVED, resource="strategy")

    assert len(caplog.records) == 1
    assert caplog.records[0].error_code == "UNIQUE_CONFLICT"
    event = log.drain()[0]
    assert event.error["recoverable"] is True
