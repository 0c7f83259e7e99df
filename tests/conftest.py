"""Pytest fixtures for testing."""

import asyncio
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

import pytest
import pytest_asyncio

from sql_notebook.config.settings import Settings
from sql_notebook.core.coordinator import EntryLifecycleCoordinator
from sql_notebook.core.exceptions import TransportError
from sql_notebook.core.workspace import NotebookWorkspace
from sql_notebook.events.emitter import EventEmitter
from sql_notebook.events.models import Event
from sql_notebook.models.notebook import Notebook, SearchRequest, TitleRequest
from sql_notebook.storage.local import LocalNotebookStore


PROJECT_ID = "proj-1"


class FakeVisualiserClient:
    """In-memory stand-in for ``VisualiserClient``.

    ``log`` records each read just before it is handed to the caller so
    tests can check what the rendering layer saw in between.
    """

    def __init__(
        self,
        reads: list[bytes | str] | None = None,
        open_error: Exception | None = None,
        fail_at: int | None = None,
        block: bool = False,
        title: str | None = None,
        title_error: Exception | None = None,
        log: list[str] | None = None,
    ):
        self.reads = [r.encode("utf-8") if isinstance(r, str) else r for r in (reads or [])]
        self.open_error = open_error
        self.fail_at = fail_at
        self.block = block
        self.title = title
        self.title_error = title_error
        self.log = log if log is not None else []
        self.requests: list[SearchRequest] = []
        self.title_requests: list[TitleRequest] = []
        self.opened = False
        self.released = False
        self.closed = False

    @asynccontextmanager
    async def stream_search(self, request: SearchRequest) -> AsyncIterator[AsyncIterator[bytes]]:
        self.requests.append(request)
        if self.open_error is not None:
            raise self.open_error
        self.opened = True
        try:
            yield self._reads()
        finally:
            self.released = True

    async def _reads(self) -> AsyncIterator[bytes]:
        for i, raw in enumerate(self.reads):
            if self.fail_at == i:
                raise TransportError("connection reset")
            self.log.append(f"read:{i}")
            yield raw
        if self.block:
            await asyncio.Event().wait()

    async def generate_title(self, request: TitleRequest) -> str | None:
        self.title_requests.append(request)
        if self.title_error is not None:
            raise self.title_error
        return self.title

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Create test settings."""
    return Settings(
        storage_path=str(tmp_path / "store"),
        generate_titles=False,
        log_level="DEBUG",
    )


@pytest.fixture
def emitter() -> EventEmitter:
    return EventEmitter()


@pytest.fixture
def events(emitter: EventEmitter) -> list[Event]:
    """Every event published on ``emitter``."""
    received: list[Event] = []
    emitter.subscribe("*", received.append)
    return received


@pytest.fixture
def store(settings: Settings) -> LocalNotebookStore:
    return LocalNotebookStore(base_path=settings.storage_path)


@pytest_asyncio.fixture
async def notebook(store: LocalNotebookStore) -> Notebook:
    """A persisted notebook in the test project."""
    return await store.create_notebook(Notebook(title="Sales", project_id=PROJECT_ID))


@pytest.fixture
def workspace() -> NotebookWorkspace:
    return NotebookWorkspace(project_id=PROJECT_ID)


@pytest.fixture
def make_coordinator(
    workspace: NotebookWorkspace,
    store: LocalNotebookStore,
    emitter: EventEmitter,
    settings: Settings,
):
    """Factory building a coordinator around a fake client."""

    def _make(client: FakeVisualiserClient, **overrides: Any) -> EntryLifecycleCoordinator:
        return EntryLifecycleCoordinator(
            workspace=overrides.get("workspace", workspace),
            store=overrides.get("store", store),
            client=client,  # type: ignore[arg-type]
            emitter=emitter,
            settings=overrides.get("settings", settings),
        )

    return _make


@pytest.fixture
def fake_client():
    """Factory for ``FakeVisualiserClient`` instances."""
    return FakeVisualiserClient
