"""Streaming SQL notebook client.

Decodes a multiplexed segment stream (SQL, text, table, chart ...) into
notebook entries as the bytes arrive.
"""

__version__ = "0.1.0"

from sql_notebook.protocol import OutputType, Segment, SegmentGrammar, StreamReassembler
from sql_notebook.models import Chunk, Notebook, NotebookEntry, Output
from sql_notebook.events import EventEmitter, EventType
from sql_notebook.protocol.router import SegmentRouter
from sql_notebook.core.coordinator import EntryLifecycleCoordinator, SubmissionResult
from sql_notebook.core.workspace import NotebookWorkspace

__all__ = [
    "__version__",
    "OutputType",
    "Segment",
    "SegmentGrammar",
    "StreamReassembler",
    "SegmentRouter",
    "Chunk",
    "Output",
    "Notebook",
    "NotebookEntry",
    "EventEmitter",
    "EventType",
    "EntryLifecycleCoordinator",
    "NotebookWorkspace",
    "SubmissionResult",
]
