"""Event data models."""

import json
from datetime import datetime, timezone
from typing import Any, Literal
from uuid import uuid4

from pydantic import BaseModel, Field

from sql_notebook.events.types import EventType
from sql_notebook.models.notebook import Notebook, NotebookEntry


class Event(BaseModel):
    """Base event model."""

    id: str = Field(default_factory=lambda: str(uuid4()))
    event_type: EventType
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    submission_id: str | None = None
    data: dict[str, Any] = Field(default_factory=dict)

    def to_json(self) -> str:
        """Serialize event to JSON string."""
        return json.dumps({
            "id": self.id,
            "type": self.event_type.value,
            "timestamp": self.timestamp.isoformat(),
            "submission_id": self.submission_id,
            "data": self.data,
        })


# =============================================================================
# Submission events
# =============================================================================


class SubmissionStartedEvent(Event):
    event_type: EventType = EventType.SUBMISSION_STARTED

    @classmethod
    def create(cls, user_prompt: str, submission_id: str | None = None) -> "SubmissionStartedEvent":
        return cls(submission_id=submission_id, data={"user_prompt": user_prompt})


class SubmissionFinishedEvent(Event):
    event_type: EventType = EventType.SUBMISSION_FINISHED

    @classmethod
    def create(
        cls,
        state: str,
        entry_id: str | None = None,
        submission_id: str | None = None,
    ) -> "SubmissionFinishedEvent":
        return cls(
            submission_id=submission_id,
            data={"state": state, "entry_id": entry_id},
        )


# =============================================================================
# Entry events
# =============================================================================


class EntryCreatedEvent(Event):
    event_type: EventType = EventType.ENTRY_CREATED

    @classmethod
    def create(cls, entry: NotebookEntry, submission_id: str | None = None) -> "EntryCreatedEvent":
        return cls(submission_id=submission_id, data={"entry": entry.to_record()})


class EntryUpdatedEvent(Event):
    """Published synchronously after each segment is applied to an entry."""

    event_type: EventType = EventType.ENTRY_UPDATED

    @classmethod
    def create(
        cls,
        entry: NotebookEntry,
        segment_type: str,
        submission_id: str | None = None,
    ) -> "EntryUpdatedEvent":
        return cls(
            submission_id=submission_id,
            data={"entry": entry.to_record(), "segment_type": segment_type},
        )


class EntryCompletedEvent(Event):
    event_type: EventType = EventType.ENTRY_COMPLETED

    @classmethod
    def create(cls, entry: NotebookEntry, submission_id: str | None = None) -> "EntryCompletedEvent":
        return cls(submission_id=submission_id, data={"entry": entry.to_record()})


class EntryRolledBackEvent(Event):
    event_type: EventType = EventType.ENTRY_ROLLED_BACK

    @classmethod
    def create(
        cls,
        entry_id: str,
        reason: str,
        submission_id: str | None = None,
    ) -> "EntryRolledBackEvent":
        return cls(
            submission_id=submission_id,
            data={"entry_id": entry_id, "reason": reason},
        )


class EntriesLoadedEvent(Event):
    event_type: EventType = EventType.ENTRIES_LOADED

    @classmethod
    def create(cls, notebook_id: str, entries: list[NotebookEntry]) -> "EntriesLoadedEvent":
        return cls(
            data={
                "notebook_id": notebook_id,
                "entries": [entry.to_record() for entry in entries],
            }
        )


# =============================================================================
# Notebook events
# =============================================================================


class NotebookCreatedEvent(Event):
    event_type: EventType = EventType.NOTEBOOK_CREATED

    @classmethod
    def create(cls, notebook: Notebook, submission_id: str | None = None) -> "NotebookCreatedEvent":
        return cls(submission_id=submission_id, data={"notebook": notebook.to_record()})


class NotebookSelectedEvent(Event):
    event_type: EventType = EventType.NOTEBOOK_SELECTED

    @classmethod
    def create(cls, notebook_id: str | None) -> "NotebookSelectedEvent":
        return cls(data={"notebook_id": notebook_id})


class NotebookTitledEvent(Event):
    event_type: EventType = EventType.NOTEBOOK_TITLED

    @classmethod
    def create(cls, notebook_id: str, title: str) -> "NotebookTitledEvent":
        return cls(data={"notebook_id": notebook_id, "title": title})


class NotebookDeletedEvent(Event):
    event_type: EventType = EventType.NOTEBOOK_DELETED

    @classmethod
    def create(cls, notebook_id: str) -> "NotebookDeletedEvent":
        return cls(data={"notebook_id": notebook_id})


# =============================================================================
# Notifications
# =============================================================================


class NotificationEvent(Event):
    """A discrete, user-visible notice. Never fatal."""

    event_type: EventType = EventType.NOTIFICATION

    @classmethod
    def create(
        cls,
        message: str,
        title: str = "Error",
        level: Literal["error", "warning", "info"] = "error",
        submission_id: str | None = None,
    ) -> "NotificationEvent":
        return cls(
            submission_id=submission_id,
            data={"title": title, "message": message, "level": level},
        )
