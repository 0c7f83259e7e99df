"""Core domain modules.

The coordinator is imported from ``sql_notebook.core.coordinator``; it
depends on the protocol, storage and client layers, which import the
exceptions defined here.
"""

from sql_notebook.core.exceptions import (
    DecoderClosedError,
    InvalidTransition,
    NotebookError,
    NotebookNotFound,
    PersistenceError,
    TransportError,
)
from sql_notebook.core.lifecycle import EntryLifecycle, LifecycleState

__all__ = [
    # Exceptions
    "NotebookError",
    "TransportError",
    "PersistenceError",
    "NotebookNotFound",
    "InvalidTransition",
    "DecoderClosedError",
    # Lifecycle
    "EntryLifecycle",
    "LifecycleState",
]
