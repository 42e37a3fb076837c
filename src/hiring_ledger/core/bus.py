"""
Ledger Event Bus

Outbound notification channel for the ledger. The ledger store emits a fact
after each committed mutation; external indexers and UIs subscribe to those
facts. Nothing inside the ledger consumes them.

=============================================================================
PRINCIPLES
=============================================================================

1. THE BUS RECORDS FACTS
   - Events describe committed ledger changes (past tense)
   - Emitting never changes ledger state

2. EVENTS ARE IMMUTABLE
   - LedgerEvent and its metadata are frozen dataclasses

3. EMIT IS SYNCHRONOUS
   - Sequence assignment and log commit happen before emit() returns
   - Sync handlers run inline, in registration order
   - Async handlers are scheduled, never awaited inline

4. SUBSCRIBERS CANNOT BREAK THE LEDGER
   - Handler exceptions are logged and swallowed at the bus boundary
   - A ledger operation succeeds whether or not anyone is listening

=============================================================================
USAGE
=============================================================================

    from hiring_ledger.core.bus import EventBus
    from hiring_ledger.core.events import Events

    bus = EventBus()

    def on_submitted(event):
        print(f"application {event.detail['id']} submitted")

    unsubscribe = bus.on(Events.APPLICATION_SUBMITTED, on_submitted)
    ...
    unsubscribe()

=============================================================================
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import inspect
import logging
import threading
from collections import deque
from collections.abc import Callable, Coroutine
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

logger = logging.getLogger(__name__)

SyncHandler = Callable[["LedgerEvent"], None]
AsyncHandler = Callable[["LedgerEvent"], Coroutine[Any, Any, None]]
EventHandler = SyncHandler | AsyncHandler
Unsubscribe = Callable[[], None]

DEFAULT_LOG_SIZE = 10_000


@dataclass(frozen=True)
class EventMetadata:
    """
    Metadata attached to every event.

    Attributes:
        timestamp: Unix epoch milliseconds (UTC). For display, not ordering.
        source: Component that emitted the event (e.g. ``"ledger"``).
        sequence: Monotonically increasing per bus. The only reliable order.
    """

    timestamp: int
    source: str
    sequence: int

    @staticmethod
    def create(source: str, sequence: int) -> EventMetadata:
        """Create metadata stamped with the current UTC time."""
        now_ms = int(datetime.now(UTC).timestamp() * 1000)
        return EventMetadata(timestamp=now_ms, source=source, sequence=sequence)


@dataclass(frozen=True)
class LedgerEvent:
    """
    A single committed notification.

    Attributes:
        type: Event type string, see :class:`hiring_ledger.core.events.Events`.
        detail: Event payload. Treat as read-only.
        _meta: Sequence, source and timestamp assigned by the bus.
    """

    type: str
    detail: dict = field(default_factory=dict)
    _meta: EventMetadata | None = field(default=None)

    def __str__(self) -> str:
        if self._meta:
            return (
                f"LedgerEvent(type='{self.type}', "
                f"source='{self._meta.source}', "
                f"seq={self._meta.sequence})"
            )
        return f"LedgerEvent(type='{self.type}')"

    @property
    def meta(self) -> EventMetadata | None:
        """Public accessor for event metadata."""
        return self._meta


class EventBus:
    """
    Notification bus owned by one ledger store.

    Unlike a process-wide singleton, each store gets its own bus so two
    ledgers in one process (tests, multi-tenant hosts) never share history.

    Thread Safety:
        ``emit`` assigns the sequence and appends to the log under a lock, so
        concurrent emitters get distinct, ordered sequence numbers. Handlers
        run outside the lock.

    Args:
        log_size: Maximum number of events kept in the in-memory log.
    """

    def __init__(self, log_size: int = DEFAULT_LOG_SIZE) -> None:
        # Registration order is execution order.
        self._handlers: dict[str, list[EventHandler]] = {}
        self._event_log: deque[LedgerEvent] = deque(maxlen=log_size)
        self._sequence = 0
        self._lock = threading.Lock()
        # Loop for async handlers emitted outside a running loop; started lazily.
        self._background_loop: asyncio.AbstractEventLoop | None = None
        self.debug = False

    def emit(
        self, event_type: str, detail: dict[str, Any] | None = None, source: str = "ledger"
    ) -> LedgerEvent:
        """
        Commit an event to the log and notify subscribers.

        When this returns the event has a sequence number, is in the log, all
        sync handlers have run and all async handlers have been scheduled.

        Args:
            event_type: The type of event, e.g. ``Events.RESPONSE_ADDED``.
            detail: Event payload. Defaults to an empty dict.
            source: Emitting component, used for debugging.

        Returns:
            The committed, immutable event.
        """
        with self._lock:
            self._sequence += 1
            event = LedgerEvent(
                type=event_type,
                detail=detail if detail is not None else {},
                _meta=EventMetadata.create(source, self._sequence),
            )
            self._event_log.append(event)
            handlers = list(self._handlers.get(event_type, ()))

        if self.debug:
            logger.debug("EMIT [%d]: %s from %s", event.meta.sequence, event.type, source)

        for handler in handlers:
            try:
                if inspect.iscoroutinefunction(handler):
                    self._schedule_async_handler(handler, event)
                else:
                    handler(event)
            except Exception as e:
                # The event is committed regardless of handler errors.
                logger.error("Handler error for '%s': %s", event.type, e, exc_info=True)

        return event

    def _schedule_async_handler(self, handler: AsyncHandler, event: LedgerEvent) -> None:
        """
        Run an async handler without blocking the emitter's event loop.

        Inside a running loop the handler becomes a task. Without one (for
        example a sync FastAPI route running in a worker thread) it is
        submitted to the bus's background loop thread. Either way ``emit``
        returns without waiting for the handler.
        """

        def _log_failure(done: asyncio.Future | concurrent.futures.Future) -> None:
            if not done.cancelled() and done.exception() is not None:
                logger.error(
                    "Async handler error for '%s': %s",
                    event.type,
                    done.exception(),
                    exc_info=done.exception(),
                )

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            future = asyncio.run_coroutine_threadsafe(handler(event), self._get_background_loop())
            future.add_done_callback(_log_failure)
            return

        task = loop.create_task(handler(event))
        task.add_done_callback(_log_failure)

    def _get_background_loop(self) -> asyncio.AbstractEventLoop:
        """Return the background handler loop, starting its daemon thread once."""
        with self._lock:
            if self._background_loop is None:
                loop = asyncio.new_event_loop()
                threading.Thread(
                    target=loop.run_forever, name="ledger-event-bus", daemon=True
                ).start()
                self._background_loop = loop
            return self._background_loop

    def on(self, event_type: str, handler: EventHandler) -> Unsubscribe:
        """
        Subscribe ``handler`` to ``event_type``.

        Returns:
            A function that removes this subscription. Calling it twice is
            harmless.
        """
        with self._lock:
            self._handlers.setdefault(event_type, []).append(handler)
            count = len(self._handlers[event_type])

        if self.debug:
            logger.debug("SUBSCRIBE: '%s' (total handlers: %d)", event_type, count)

        def unsubscribe() -> None:
            with self._lock:
                handlers = self._handlers.get(event_type)
                if handlers and handler in handlers:
                    handlers.remove(handler)
                    if self.debug:
                        logger.debug("UNSUBSCRIBE: '%s'", event_type)

        return unsubscribe

    def once(self, event_type: str, handler: SyncHandler) -> Unsubscribe:
        """Subscribe a sync handler that fires for the next event only."""
        fired = False

        def one_time_wrapper(event: LedgerEvent) -> None:
            nonlocal fired
            if fired:
                return
            fired = True
            unsubscribe()
            handler(event)

        unsubscribe = self.on(event_type, one_time_wrapper)
        return unsubscribe

    def get_event_log(self, limit: int | None = None) -> list[LedgerEvent]:
        """Return logged events oldest first, optionally only the last ``limit``."""
        with self._lock:
            events = list(self._event_log)
        if limit is not None:
            return events[-limit:] if limit > 0 else []
        return events

    def get_sequence(self) -> int:
        """Return the last assigned sequence number."""
        return self._sequence

    def get_handler_count(self, event_type: str) -> int:
        """Return the number of handlers subscribed to ``event_type``."""
        return len(self._handlers.get(event_type, ()))

    def clear_event_log(self) -> None:
        """Erase the in-memory event history. Sequence numbers keep counting."""
        with self._lock:
            self._event_log.clear()
        if self.debug:
            logger.debug("Event log cleared")
