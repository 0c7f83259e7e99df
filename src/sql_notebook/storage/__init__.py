"""Notebook storage abstraction layer."""

from sql_notebook.config.settings import Settings
from sql_notebook.storage.base import NotebookStore
from sql_notebook.storage.local import LocalNotebookStore
from sql_notebook.storage.rest import RestNotebookStore


def create_store(settings: Settings) -> NotebookStore:
    """Build the storage backend selected by ``settings.storage_backend``."""
    if settings.storage_backend == "rest":
        return RestNotebookStore(
            base_url=settings.storage_url,
            api_key=settings.storage_api_key,
            timeout=settings.request_timeout_seconds,
        )
    return LocalNotebookStore(base_path=settings.storage_path)


__all__ = [
    "NotebookStore",
    "LocalNotebookStore",
    "RestNotebookStore",
    "create_store",
]
