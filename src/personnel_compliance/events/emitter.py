"""Event emitter for the notification channel.

The emitter provides:
- Handler registration with type and category filtering
- Error isolation (handler failures don't break other handlers
  and never propagate into the workflow that published the event)
- Event batching for transactional boundaries
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Protocol, TypeVar, runtime_checkable

from personnel_compliance.events.types import DomainEvent, EventCategory

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=DomainEvent)


@runtime_checkable
class EventHandler(Protocol):
    """Protocol for synchronous event handlers."""

    def __call__(self, event: DomainEvent) -> None:
        """Handle a domain event."""
        ...


@runtime_checkable
class AsyncEventHandler(Protocol):
    """Protocol for asynchronous event handlers."""

    async def __call__(self, event: DomainEvent) -> None:
        """Handle a domain event asynchronously."""
        ...


@dataclass
class HandlerRegistration:
    """Registration of an event handler."""

    handler: EventHandler | AsyncEventHandler
    event_types: set[str] | None  # None = all events
    categories: set[EventCategory] | None  # None = all categories
    is_async: bool


class AsyncEventEmitter:
    """Asynchronous event emitter.

    Usage:
        emitter = AsyncEventEmitter()

        async def notify_employee(event: RequirementRejected) -> None:
            await mailer.send(...)

        emitter.on(RequirementRejected, notify_employee)
        await emitter.emit(event)

        # Hold events until the surrounding transaction is done
        async with emitter.batch():
            await emitter.emit(event1)
            await emitter.emit(event2)
    """

    def __init__(self) -> None:
        self._handlers: list[HandlerRegistration] = []
        self._batching = False
        self._batch: list[DomainEvent] = []

    def on(
        self,
        event_type: type[T] | list[type[T]],
        handler: AsyncEventHandler,
    ) -> None:
        """Register async handler for specific event type(s)."""
        self._handlers.append(
            HandlerRegistration(
                handler=handler,
                event_types=_type_names(event_type),
                categories=None,
                is_async=True,
            )
        )

    def on_sync(
        self,
        event_type: type[T] | list[type[T]],
        handler: EventHandler,
    ) -> None:
        """Register sync handler for specific event type(s)."""
        self._handlers.append(
            HandlerRegistration(
                handler=handler,
                event_types=_type_names(event_type),
                categories=None,
                is_async=False,
            )
        )

    def on_category(
        self,
        category: EventCategory | list[EventCategory],
        handler: AsyncEventHandler,
    ) -> None:
        """Register async handler for event category(ies)."""
        cats = set(category) if isinstance(category, list) else {category}
        self._handlers.append(
            HandlerRegistration(
                handler=handler,
                event_types=None,
                categories=cats,
                is_async=True,
            )
        )

    def on_all(self, handler: AsyncEventHandler) -> None:
        """Register async handler for all events."""
        self._handlers.append(
            HandlerRegistration(
                handler=handler,
                event_types=None,
                categories=None,
                is_async=True,
            )
        )

    def off(self, handler: AsyncEventHandler | EventHandler) -> None:
        """Unregister a handler."""
        self._handlers = [
            reg for reg in self._handlers if reg.handler is not handler
        ]

    def scoped(self) -> AsyncEventEmitter:
        """Emitter sharing these registrations but with its own batch state.

        Use one per request or unit of work so batching in one scope never
        captures another scope's events.
        """
        child = AsyncEventEmitter()
        child._handlers = self._handlers
        return child

    async def emit(self, event: DomainEvent) -> list[Exception]:
        """Emit an event to all matching handlers.

        Returns list of any exceptions raised by handlers; they are
        logged, never raised.
        """
        if self._batching:
            self._batch.append(event)
            return []

        return await self._dispatch(event)

    async def _dispatch(self, event: DomainEvent) -> list[Exception]:
        """Dispatch event to matching handlers."""
        errors: list[Exception] = []
        event_type = event.event_type
        event_category = event.category

        tasks: list[asyncio.Task[None]] = []

        for reg in self._handlers:
            if reg.event_types and event_type not in reg.event_types:
                continue
            if reg.categories and event_category not in reg.categories:
                continue

            if reg.is_async:
                task = asyncio.create_task(
                    self._call_async_handler(reg.handler, event)  # type: ignore[arg-type]
                )
                tasks.append(task)
            else:
                try:
                    reg.handler(event)  # type: ignore[unused-coroutine]
                except Exception as e:
                    logger.exception(
                        "Handler %s failed for event %s",
                        reg.handler,
                        event_type,
                    )
                    errors.append(e)

        if tasks:
            results = await asyncio.gather(*tasks, return_exceptions=True)
            for result in results:
                if isinstance(result, Exception):
                    errors.append(result)

        return errors

    async def _call_async_handler(
        self,
        handler: AsyncEventHandler,
        event: DomainEvent,
    ) -> None:
        """Call async handler with error logging."""
        try:
            await handler(event)
        except Exception:
            logger.exception(
                "Async handler %s failed for event %s",
                handler,
                event.event_type,
            )
            raise

    def batch(self) -> AsyncEventBatch:
        """Create a batch context for collecting events."""
        return AsyncEventBatch(self)

    def _start_batch(self) -> None:
        self._batching = True
        self._batch = []

    async def _end_batch(self) -> list[Exception]:
        """End batching and emit all collected events."""
        self._batching = False
        events = self._batch
        self._batch = []

        errors: list[Exception] = []
        for event in events:
            errors.extend(await self._dispatch(event))
        return errors


class AsyncEventBatch:
    """Async context manager for batching events.

    Events are delivered when the block exits cleanly and discarded if it
    raises, so a rolled-back transition never notifies anyone.
    """

    def __init__(self, emitter: AsyncEventEmitter) -> None:
        self._emitter = emitter
        self._errors: list[Exception] = []

    async def __aenter__(self) -> AsyncEventBatch:
        self._emitter._start_batch()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if exc_type is None:
            self._errors = await self._emitter._end_batch()
        else:
            self._emitter._batching = False
            self._emitter._batch = []

    @property
    def errors(self) -> list[Exception]:
        """Errors from handler execution."""
        return self._errors


class RecordingHandler:
    """Handler that keeps every event it receives, in order."""

    def __init__(self) -> None:
        self.events: list[DomainEvent] = []

    async def __call__(self, event: DomainEvent) -> None:
        self.events.append(event)

    def of_type(self, event_type: type[T]) -> list[T]:
        """Received events of one type."""
        return [e for e in self.events if isinstance(e, event_type)]


class LoggingHandler:
    """Default notification sink: writes each event to the log."""

    def __init__(self, logger_name: str = "personnel_compliance.notifications") -> None:
        self._logger = logging.getLogger(logger_name)

    async def __call__(self, event: DomainEvent) -> None:
        self._logger.info("%s %s", event.event_type, event.to_json())


def _type_names(event_type: type[DomainEvent] | list[type[DomainEvent]]) -> set[str]:
    if isinstance(event_type, list):
        return {t.__name__ for t in event_type}
    return {event_type.__name__}
