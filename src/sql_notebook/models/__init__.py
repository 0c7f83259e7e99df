"""Notebook data models."""

from sql_notebook.models.notebook import (
    Chunk,
    Notebook,
    NotebookEntry,
    Output,
    SearchRequest,
    TitleRequest,
)
from sql_notebook.models.payloads import TablePayload, format_header, format_value

__all__ = [
    "Chunk",
    "Notebook",
    "NotebookEntry",
    "Output",
    "SearchRequest",
    "TitleRequest",
    "TablePayload",
    "format_header",
    "format_value",
]
