"""Tests for event bus."""

import asyncio
import warnings

import pytest

from quicklaunch.daemon.bus import EventBus, Event


@pytest.mark.asyncio
async def test_event_emit_and_subscribe():
    """Test basic pub/sub functionality."""
    bus = EventBus()
    await bus.start()

    received_events = []

    async def handler(event: Event):
        received_events.append(event)

    bus.subscribe("results.*", handler)

    await bus.emit(Event(
        type="results.committed",
        data={"source": "folders", "count": 2}
    ))
    await bus.drain()

    assert len(received_events) == 1
    assert received_events[0].type == "results.committed"
    assert received_events[0].data["count"] == 2

    await bus.stop()


@pytest.mark.asyncio
async def test_wildcard_subscription():
    """Test wildcard pattern matching."""
    bus = EventBus()
    await bus.start()

    all_events = []
    result_events = []

    async def all_handler(event: Event):
        all_events.append(event)

    async def result_handler(event: Event):
        result_events.append(event)

    bus.subscribe("*", all_handler)
    bus.subscribe("results.*", result_handler)

    await bus.emit(Event(type="results.committed", data={}))
    await bus.emit(Event(type="query.changed", data={}))
    await bus.emit(Event(type="results.discarded", data={}))
    await bus.drain()

    assert len(all_events) == 3
    assert len(result_events) == 2

    await bus.stop()


@pytest.mark.asyncio
async def test_bound_method_handler_stays_subscribed():
    """Bound methods are held weakly but survive while their owner lives."""

    class View:
        def __init__(self):
            self.seen = []

        async def on_query(self, event: Event):
            self.seen.append(event.data["text"])

    bus = EventBus()
    view = View()
    bus.subscribe("query.changed", view.on_query)
    await bus.start()

    bus.emit_nowait(Event(type="query.changed", data={"text": "fire"}))
    await bus.drain()

    assert view.seen == ["fire"]
    await bus.stop()


@pytest.mark.asyncio
async def test_sync_handler_runs():
    bus = EventBus()
    seen = []

    def handler(event: Event):
        seen.append(event.type)

    bus.subscribe("cache.*", handler)
    await bus.start()

    await bus.emit(Event(type="cache.loaded", data={"source": "applications"}))
    await bus.drain()

    assert seen == ["cache.loaded"]
    await bus.stop()


@pytest.mark.asyncio
async def test_unsubscribe():
    bus = EventBus()
    seen = []

    async def handler(event: Event):
        seen.append(event)

    bus.subscribe("query.*", handler)
    bus.unsubscribe("query.*", handler)
    await bus.start()

    await bus.emit(Event(type="query.changed", data={}))
    await bus.drain()

    assert seen == []
    await bus.stop()


@pytest.mark.asyncio
async def test_handler_errors_are_counted():
    bus = EventBus()

    async def broken(event: Event):
        raise RuntimeError("render failed")

    bus.subscribe("*", broken)
    await bus.start()

    await bus.emit(Event(type="results.committed", data={}))
    await bus.drain()

    assert bus.get_stats()['handler_errors'] == 1
    await bus.stop()


@pytest.mark.asyncio
async def test_event_queue_full():
    """Test behavior when event queue is full."""
    bus = EventBus()
    bus._event_queue = asyncio.Queue(maxsize=2)
    await bus.start()

    await bus.emit(Event(type="test.1", data={}))
    await bus.emit(Event(type="test.2", data={}))

    # This should be dropped
    await bus.emit(Event(type="test.3", data={}))

    stats = bus.get_stats()
    assert stats['dropped'] == 1

    await bus.stop()


@pytest.mark.asyncio
async def test_drain_without_running_returns():
    bus = EventBus()
    bus.emit_nowait(Event(type="query.changed", data={}))

    await bus.drain()

    assert bus.get_stats()['emitted'] == 1


def test_pattern_matching():
    """Test pattern matching logic."""
    bus = EventBus()

    # Exact match
    assert bus._matches_pattern("results.committed", "results.committed")
    assert not bus._matches_pattern("results.committed", "results.discarded")

    # Wildcard
    assert bus._matches_pattern("results.committed", "results.*")
    assert bus._matches_pattern("cache.loaded", "cache.*")
    assert not bus._matches_pattern("results.committed", "cache.*")
    assert not bus._matches_pattern("resultsx.committed", "results.*")

    # Global wildcard
    assert bus._matches_pattern("anything", "*")
    assert bus._matches_pattern("query.changed", "*")


@pytest.mark.asyncio
async def test_dispatch_raises_no_deprecation_warnings():
    """Handler kind detection stays clean under -W error."""
    bus = EventBus()
    seen = []

    async def on_async(event: Event):
        seen.append("async")

    def on_sync(event: Event):
        seen.append("sync")

    bus.subscribe("query.changed", on_async)
    bus.subscribe("query.changed", on_sync)

    with warnings.catch_warnings():
        warnings.simplefilter("error", DeprecationWarning)
        await bus._dispatch(Event(type="query.changed", data={"text": "fire"}))

    assert sorted(seen) == ["async", "sync"]
    assert bus.get_stats().get('handler_errors', 0) == 0
