"""Event emitter for publishing state changes to the rendering layer."""

import asyncio
from dataclasses import dataclass
from typing import Any, Callable

from sql_notebook.events.models import Event
from sql_notebook.utils.logging import get_logger

logger = get_logger(__name__)

EventHandler = Callable[[Event], Any]


@dataclass(frozen=True)
class Subscription:
    """One handler bound to an event type pattern."""

    id: str
    pattern: str
    handler: EventHandler

    def matches(self, event_type: str) -> bool:
        if self.pattern in ("*", event_type):
            return True
        if self.pattern.endswith(".*"):
            return event_type.startswith(self.pattern[:-1])
        return False


class EventEmitter:
    """
    Publish notebook events to subscribers.

    Handlers run synchronously in subscription order, so the rendering
    layer sees every entry update before the next read is processed.
    A handler may return a coroutine; it is scheduled on the running loop
    and kept until it finishes. ``drain`` waits for those.

    Patterns: ``"*"``, an exact type (``"entry.updated"``) or a dotted
    prefix (``"entry.*"``).
    """

    def __init__(self):
        self._subscriptions: list[Subscription] = []
        self._next_id = 0
        self._pending: set[asyncio.Task] = set()

    def subscribe(self, pattern: str, handler: EventHandler) -> str:
        """
        Register ``handler`` for events matching ``pattern``.

        Returns:
            Subscription ID for ``unsubscribe``
        """
        self._next_id += 1
        subscription = Subscription(id=f"sub_{self._next_id}", pattern=pattern, handler=handler)
        self._subscriptions.append(subscription)
        return subscription.id

    def unsubscribe(self, subscription_id: str) -> bool:
        before = len(self._subscriptions)
        self._subscriptions = [s for s in self._subscriptions if s.id != subscription_id]
        return len(self._subscriptions) != before

    def emit(self, event: Event) -> None:
        """Deliver ``event`` to every matching handler; handler errors are logged."""
        event_type = event.event_type.value
        for subscription in [s for s in self._subscriptions if s.matches(event_type)]:
            try:
                result = subscription.handler(event)
            except Exception as e:
                logger.error(
                    "Event handler error",
                    event_type=event_type,
                    subscription_id=subscription.id,
                    error=str(e),
                    exc_info=True,
                )
                continue

            if asyncio.iscoroutine(result):
                self._schedule(result, event_type, subscription.id)

    def _schedule(self, coro, event_type: str, subscription_id: str) -> None:
        task = asyncio.get_running_loop().create_task(coro)
        self._pending.add(task)

        def _done(finished: asyncio.Task) -> None:
            self._pending.discard(finished)
            if not finished.cancelled() and finished.exception() is not None:
                logger.error(
                    "Async event handler error",
                    event_type=event_type,
                    subscription_id=subscription_id,
                    error=str(finished.exception()),
                )

        task.add_done_callback(_done)

    @property
    def pending(self) -> int:
        """Async handler tasks still running."""
        return len(self._pending)

    async def drain(self) -> None:
        """Wait for every scheduled async handler to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
