"""Event type enumerations."""

from enum import Enum


class EventType(str, Enum):
    """Observable state changes published to the rendering layer."""

    # Submission events
    SUBMISSION_STARTED = "submission.started"
    SUBMISSION_FINISHED = "submission.finished"

    # Entry events
    ENTRY_CREATED = "entry.created"
    ENTRY_UPDATED = "entry.updated"  # After every routed segment
    ENTRY_COMPLETED = "entry.completed"
    ENTRY_ROLLED_BACK = "entry.rolled_back"
    ENTRIES_LOADED = "entry.loaded"

    # Notebook events
    NOTEBOOK_CREATED = "notebook.created"
    NOTEBOOK_SELECTED = "notebook.selected"
    NOTEBOOK_TITLED = "notebook.titled"
    NOTEBOOK_DELETED = "notebook.deleted"

    # User-facing notices
    NOTIFICATION = "notification"
