"""
Tests for the ledger Event Bus

These tests verify the bus guarantees the ledger relies on:

1. Events are immutable after creation
2. Emit is synchronous (event committed before return)
3. Event ordering is deterministic (sequence numbers)
4. Handlers are called in registration order
5. Async handlers are scheduled, not awaited inline
6. Each bus is independent of every other bus
"""

import asyncio
import logging
import threading
import time

import pytest

from hiring_ledger.core.bus import EventBus, EventMetadata, LedgerEvent
from hiring_ledger.core.events import Events, get_all_event_types, is_valid_event_type

# =============================================================================
# FIXTURES
# =============================================================================


@pytest.fixture
def test_bus():
    """Provide a fresh bus instance for testing."""
    return EventBus()


# =============================================================================
# EVENT TESTS
# =============================================================================


class TestLedgerEvent:
    """Tests for EventMetadata and LedgerEvent."""

    @pytest.mark.unit
    def test_create_metadata(self):
        """EventMetadata.create() should populate all fields."""
        meta = EventMetadata.create(source="test", sequence=42)

        assert meta.source == "test"
        assert meta.sequence == 42
        assert meta.timestamp > 0

    @pytest.mark.unit
    def test_event_is_immutable(self):
        """LedgerEvent and its metadata are frozen."""
        event = LedgerEvent(type="test:event", _meta=EventMetadata.create("test", 1))

        with pytest.raises(AttributeError):
            event.type = "modified"  # type: ignore
        with pytest.raises(AttributeError):
            event.meta.sequence = 999  # type: ignore

    @pytest.mark.unit
    def test_event_str_representation(self):
        """LedgerEvent __str__ names type, source and sequence."""
        event = LedgerEvent(type="response:added", _meta=EventMetadata.create("ledger", 42))

        assert str(event) == "LedgerEvent(type='response:added', source='ledger', seq=42)"
        assert str(LedgerEvent(type="x")) == "LedgerEvent(type='x')"

    @pytest.mark.unit
    def test_event_default_detail(self):
        """LedgerEvent should default to empty dict for detail."""
        assert LedgerEvent(type="test:event").detail == {}


# =============================================================================
# EMIT TESTS
# =============================================================================


class TestEmit:
    """Tests for the emit() method."""

    @pytest.mark.unit
    def test_emit_returns_committed_event(self, test_bus):
        """emit() returns the event it logged."""
        event = test_bus.emit("test:event", {"key": "value"})

        assert isinstance(event, LedgerEvent)
        assert event.detail == {"key": "value"}
        assert test_bus.get_event_log() == [event]

    @pytest.mark.unit
    def test_emit_assigns_sequence_number(self, test_bus):
        """emit() should assign monotonically increasing sequence numbers."""
        sequences = [test_bus.emit(f"test:{n}").meta.sequence for n in range(3)]

        assert sequences == [1, 2, 3]
        assert test_bus.get_sequence() == 3

    @pytest.mark.unit
    def test_emit_default_source(self, test_bus):
        """emit() should default source to 'ledger'."""
        assert test_bus.emit("test:event").meta.source == "ledger"
        assert test_bus.emit("test:event", source="cli").meta.source == "cli"

    @pytest.mark.unit
    def test_emit_with_none_detail(self, test_bus):
        """emit() should handle None detail gracefully."""
        assert test_bus.emit("test:event", None).detail == {}

    @pytest.mark.unit
    def test_buses_are_independent(self):
        """Two buses never share history or sequence numbers."""
        first = EventBus()
        second = EventBus()

        first.emit("test:event")
        first.emit("test:event")

        assert second.get_event_log() == []
        assert second.emit("test:event").meta.sequence == 1

    @pytest.mark.unit
    def test_concurrent_emits_get_distinct_sequences(self, test_bus):
        """Sequence numbers stay unique when many threads emit at once."""

        def worker():
            for _ in range(50):
                test_bus.emit("test:event")

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        sequences = [event.meta.sequence for event in test_bus.get_event_log()]
        assert sorted(sequences) == list(range(1, 201))


# =============================================================================
# SUBSCRIBE TESTS
# =============================================================================


class TestSubscribe:
    """Tests for on() and once()."""

    @pytest.mark.unit
    def test_on_only_receives_matching_events(self, test_bus):
        """Handlers should only receive events of the subscribed type."""
        received = []
        test_bus.on("test:target", received.append)

        test_bus.emit("test:other")
        test_bus.emit("test:target")

        assert [event.type for event in received] == ["test:target"]

    @pytest.mark.unit
    def test_on_returns_unsubscribe_function(self, test_bus):
        """on() should return a function that unsubscribes the handler."""
        received = []
        unsub = test_bus.on("test:event", received.append)

        test_bus.emit("test:event")
        unsub()
        unsub()
        test_bus.emit("test:event")

        assert len(received) == 1
        assert test_bus.get_handler_count("test:event") == 0

    @pytest.mark.unit
    def test_handlers_called_in_registration_order(self, test_bus):
        """Handlers should be called in the order they were registered."""
        order = []
        for i in range(5):
            test_bus.on("test:event", lambda event, n=i: order.append(n))

        test_bus.emit("test:event")

        assert order == [0, 1, 2, 3, 4]

    @pytest.mark.unit
    def test_handler_error_does_not_affect_other_handlers(self, test_bus):
        """If one handler raises, other handlers should still be called."""
        results = []

        def bad_handler(event):
            raise ValueError("Intentional error")

        test_bus.on("test:event", lambda event: results.append("handler1"))
        test_bus.on("test:event", bad_handler)
        test_bus.on("test:event", lambda event: results.append("handler2"))

        test_bus.emit("test:event")

        assert results == ["handler1", "handler2"]
        assert len(test_bus.get_event_log()) == 1

    @pytest.mark.unit
    def test_once_fires_only_for_first_event(self, test_bus):
        """once() handler should receive exactly one event."""
        received = []
        test_bus.once("test:event", received.append)

        test_bus.emit("test:event", {"n": 1})
        test_bus.emit("test:event", {"n": 2})

        assert [event.detail for event in received] == [{"n": 1}]


# =============================================================================
# ASYNC HANDLER TESTS
# =============================================================================


class TestAsyncHandlers:
    """Tests for async handler scheduling."""

    @pytest.mark.unit
    def test_async_handler_without_running_loop(self, test_bus):
        """Outside an event loop, async handlers run on the background loop."""
        received = []
        done = threading.Event()

        async def handler(event):
            received.append(event.type)
            done.set()

        test_bus.on("test:event", handler)
        test_bus.emit("test:event")

        assert done.wait(timeout=5)
        assert received == ["test:event"]

    @pytest.mark.unit
    def test_slow_async_handler_does_not_block_emit(self, test_bus):
        """emit() returns before a slow async handler finishes."""
        release = threading.Event()
        finished = threading.Event()

        async def slow_handler(event):
            while not release.is_set():
                await asyncio.sleep(0.01)
            finished.set()

        test_bus.on("test:event", slow_handler)

        started = time.monotonic()
        test_bus.emit("test:event")
        elapsed = time.monotonic() - started

        assert elapsed < 0.5
        assert not finished.is_set()
        release.set()
        assert finished.wait(timeout=5)

    @pytest.mark.unit
    def test_failing_async_handler_is_logged(self, test_bus):
        """Background handler failures are logged, not raised."""
        logged = threading.Event()

        async def bad_handler(event):
            raise ValueError("Intentional async error")

        class _Signal(logging.Handler):
            def emit(self, record):
                if "Async handler error" in record.getMessage():
                    logged.set()

        bus_logger = logging.getLogger("hiring_ledger.core.bus")
        signal = _Signal()
        bus_logger.addHandler(signal)
        try:
            test_bus.on("test:event", bad_handler)
            test_bus.emit("test:event")

            assert logged.wait(timeout=5)
        finally:
            bus_logger.removeHandler(signal)

    @pytest.mark.unit
    def test_async_handler_is_scheduled_inside_loop(self, test_bus):
        """Inside a running loop, async handlers are scheduled as tasks."""
        received = []

        async def handler(event):
            received.append(event.type)

        test_bus.on("test:event", handler)

        async def scenario():
            test_bus.emit("test:event")
            assert received == []
            await asyncio.sleep(0)
            assert received == ["test:event"]

        asyncio.run(scenario())


# =============================================================================
# EVENT LOG TESTS
# =============================================================================


class TestEventLog:
    """Tests for the bounded in-memory event log."""

    @pytest.mark.unit
    def test_get_event_log_with_limit(self, test_bus):
        """limit returns the newest events only."""
        for n in range(5):
            test_bus.emit(f"test:{n}")

        assert [event.type for event in test_bus.get_event_log(limit=2)] == ["test:3", "test:4"]
        assert test_bus.get_event_log(limit=0) == []

    @pytest.mark.unit
    def test_log_is_bounded(self):
        """Old events fall off once log_size is reached."""
        small_bus = EventBus(log_size=3)
        for n in range(5):
            small_bus.emit(f"test:{n}")

        assert [event.meta.sequence for event in small_bus.get_event_log()] == [3, 4, 5]

    @pytest.mark.unit
    def test_clear_keeps_sequence(self, test_bus):
        """Clearing the log does not reset sequence numbers."""
        test_bus.emit("test:event")
        test_bus.clear_event_log()

        assert test_bus.get_event_log() == []
        assert test_bus.emit("test:event").meta.sequence == 2


# =============================================================================
# EVENT TYPE TESTS
# =============================================================================


@pytest.mark.unit
def test_all_event_types_are_listed():
    """Every constant on Events is reported and valid."""
    assert get_all_event_types() == [
        "application:submitted",
        "ownership:transferred",
        "responder:updated",
        "response:added",
    ]
    assert is_valid_event_type(Events.RESPONSE_ADDED)
    assert not is_valid_event_type("response:edited")
