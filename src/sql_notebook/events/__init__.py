"""Event system for publishing notebook state changes."""

from sql_notebook.events.types import EventType
from sql_notebook.events.models import (
    Event,
    # Submission events
    SubmissionStartedEvent,
    SubmissionFinishedEvent,
    # Entry events
    EntryCreatedEvent,
    EntryUpdatedEvent,
    EntryCompletedEvent,
    EntryRolledBackEvent,
    EntriesLoadedEvent,
    # Notebook events
    NotebookCreatedEvent,
    NotebookSelectedEvent,
    NotebookTitledEvent,
    NotebookDeletedEvent,
    # Notifications
    NotificationEvent,
)
from sql_notebook.events.emitter import EventEmitter, EventHandler

__all__ = [
    "EventType",
    "Event",
    "EventEmitter",
    "EventHandler",
    # Submission events
    "SubmissionStartedEvent",
    "SubmissionFinishedEvent",
    # Entry events
    "EntryCreatedEvent",
    "EntryUpdatedEvent",
    "EntryCompletedEvent",
    "EntryRolledBackEvent",
    "EntriesLoadedEvent",
    # Notebook events
    "NotebookCreatedEvent",
    "NotebookSelectedEvent",
    "NotebookTitledEvent",
    "NotebookDeletedEvent",
    # Notifications
    "NotificationEvent",
]
