"""Tests for event system."""

import asyncio
import json

import pytest

from sql_notebook.events.emitter import EventEmitter
from sql_notebook.events.models import (
    Event,
    EntryCreatedEvent,
    NotificationEvent,
    NotebookTitledEvent,
)
from sql_notebook.events.types import EventType
from sql_notebook.models.notebook import NotebookEntry


class TestEventModels:
    """Tests for event models."""

    def test_event_to_json(self):
        """Test JSON serialization."""
        event = NotebookTitledEvent.create("nb-1", "Revenue")
        data = json.loads(event.to_json())
        assert data["type"] == "notebook.titled"
        assert data["data"] == {"notebook_id": "nb-1", "title": "Revenue"}

    def test_entry_event_carries_record(self):
        entry = NotebookEntry(notebook_id="nb-1", user_prompt="q")
        event = EntryCreatedEvent.create(entry, submission_id="sub-1")
        assert event.event_type == EventType.ENTRY_CREATED
        assert event.data["entry"]["id"] == entry.id
        assert event.submission_id == "sub-1"

    def test_notification_event(self):
        event = NotificationEvent.create("Failed to send message")
        assert event.data == {
            "title": "Error",
            "message": "Failed to send message",
            "level": "error",
        }


class TestEventEmitter:
    """Tests for event emitter."""

    def test_pattern_matching(self):
        """Test pattern-based subscription."""
        emitter = EventEmitter()
        entry_events: list[Event] = []
        all_events: list[Event] = []
        emitter.subscribe("entry.*", entry_events.append)
        emitter.subscribe("*", all_events.append)

        entry = NotebookEntry(notebook_id="nb-1", user_prompt="q")
        emitter.emit(EntryCreatedEvent.create(entry))
        emitter.emit(NotificationEvent.create("oops"))

        assert len(entry_events) == 1
        assert len(all_events) == 2

    def test_handler_errors_are_isolated(self):
        """A failing handler does not stop the others."""
        emitter = EventEmitter()
        received: list[Event] = []

        def broken(event: Event) -> None:
            raise RuntimeError("boom")

        emitter.subscribe("notification", broken)
        emitter.subscribe("notification", received.append)
        emitter.emit(NotificationEvent.create("oops"))

        assert len(received) == 1

    def test_unsubscribe(self):
        """Test unsubscribing handlers."""
        emitter = EventEmitter()
        sub_id = emitter.subscribe("*", lambda event: None)
        assert emitter.unsubscribe(sub_id)
        assert not emitter.unsubscribe(sub_id)  # Already removed

    def test_handlers_run_in_subscription_order(self):
        """Delivery follows subscription order across patterns."""
        emitter = EventEmitter()
        order: list[str] = []
        emitter.subscribe("*", lambda event: order.append("any"))
        emitter.subscribe("notification", lambda event: order.append("exact"))
        emitter.subscribe("entry.*", lambda event: order.append("entry"))

        emitter.emit(NotificationEvent.create("oops"))

        assert order == ["any", "exact"]

    def test_prefix_does_not_match_partial_word(self):
        emitter = EventEmitter()
        received: list[Event] = []
        emitter.subscribe("notebook.*", received.append)

        emitter.emit(NotificationEvent.create("oops"))

        assert received == []

    @pytest.mark.asyncio
    async def test_async_handler_is_tracked_until_done(self):
        """Coroutine handlers are kept alive and can be drained."""
        emitter = EventEmitter()
        received: list[Event] = []
        release = asyncio.Event()

        async def slow(event: Event) -> None:
            await release.wait()
            received.append(event)

        emitter.subscribe("notification", slow)
        emitter.emit(NotificationEvent.create("oops"))

        assert emitter.pending == 1
        release.set()
        await emitter.drain()

        assert emitter.pending == 0
        assert len(received) == 1

    @pytest.mark.asyncio
    async def test_async_handler_failure_is_collected(self):
        emitter = EventEmitter()

        async def broken(event: Event) -> None:
            raise RuntimeError("boom")

        emitter.subscribe("*", broken)
        emitter.emit(NotificationEvent.create("oops"))
        await emitter.drain()

        assert emitter.pending == 0
