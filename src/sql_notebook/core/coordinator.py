"""Entry lifecycle coordinator.

Drives one submission end to end:

    Idle -> Creating -> Streaming -> Finalizing -> Done

with Failed reachable from every state but Done.

1. Creating: make sure a notebook is selected (creating one if needed),
   then build the empty entry and persist it.
2. Streaming: open the search stream and push every read through the
   reassembler and router; the router publishes each update.
3. Finalizing: persist the finished entry and fire off title generation
   as an independent task.

Failures become notifications. An entry that never received a segment is
rolled back out of the visible list; a partially built one stays.
"""

import asyncio
from dataclasses import dataclass
from uuid import uuid4

import httpx

from sql_notebook.client.visualiser import VisualiserClient
from sql_notebook.config.settings import Settings, get_settings
from sql_notebook.core.exceptions import NotebookError, PersistenceError, TransportError
from sql_notebook.core.lifecycle import EntryLifecycle, LifecycleState
from sql_notebook.core.resilience import (
    ClientRequestError,
    MaxTimeoutExceeded,
    TransientError,
)
from sql_notebook.core.workspace import NotebookWorkspace
from sql_notebook.events.emitter import EventEmitter
from sql_notebook.events.models import (
    EntriesLoadedEvent,
    EntryCompletedEvent,
    EntryCreatedEvent,
    EntryRolledBackEvent,
    Event,
    NotebookCreatedEvent,
    NotebookDeletedEvent,
    NotebookSelectedEvent,
    NotebookTitledEvent,
    NotificationEvent,
    SubmissionFinishedEvent,
    SubmissionStartedEvent,
)
from sql_notebook.models.notebook import Notebook, NotebookEntry, SearchRequest, TitleRequest
from sql_notebook.protocol.grammar import SegmentGrammar
from sql_notebook.protocol.reassembler import StreamReassembler
from sql_notebook.protocol.router import SegmentRouter
from sql_notebook.storage import create_store
from sql_notebook.storage.base import NotebookStore
from sql_notebook.utils.logging import get_logger, setup_logging


logger = get_logger(__name__)


@dataclass
class SubmissionResult:
    """Outcome of one ``submit`` call."""

    state: LifecycleState
    entry: NotebookEntry | None = None
    segments_applied: int = 0
    error: NotebookError | None = None
    rolled_back: bool = False

    @property
    def succeeded(self) -> bool:
        return self.state == LifecycleState.DONE


class EntryLifecycleCoordinator:
    """
    Owns the in-progress entry and the notebook workspace around it.

    Only one submission runs at a time; ``submit`` returns None while
    another is in flight.
    """

    def __init__(
        self,
        workspace: NotebookWorkspace,
        store: NotebookStore,
        client: VisualiserClient,
        emitter: EventEmitter | None = None,
        settings: Settings | None = None,
        grammar: SegmentGrammar | None = None,
    ):
        """
        Initialize the coordinator.

        Args:
            workspace: Notebook state shared with the rendering layer
            store: Persistence collaborator
            client: Search/naming transport
            emitter: Where state changes are published
            settings: Behaviour switches (history window, titles, scan policy)
            grammar: Segment grammar; built from ``settings.output_types`` if omitted
        """
        self._workspace = workspace
        self._store = store
        self._client = client
        self._emitter = emitter or EventEmitter()
        self._settings = settings or get_settings()
        self._grammar = grammar or SegmentGrammar(self._settings.output_types)
        self._background: set[asyncio.Task] = set()

    @classmethod
    def from_settings(
        cls,
        project_id: str,
        settings: Settings | None = None,
        emitter: EventEmitter | None = None,
    ) -> "EntryLifecycleCoordinator":
        """Build a coordinator with the store and client named by settings."""
        settings = settings or get_settings()
        setup_logging(settings.log_level)
        client = VisualiserClient(
            base_url=settings.api_base_url,
            timeout=settings.request_timeout_seconds,
            read_timeout=settings.stream_read_timeout_seconds,
        )
        return cls(
            workspace=NotebookWorkspace(project_id=project_id),
            store=create_store(settings),
            client=client,
            emitter=emitter,
            settings=settings,
        )

    @property
    def workspace(self) -> NotebookWorkspace:
        return self._workspace

    @property
    def emitter(self) -> EventEmitter:
        return self._emitter

    def _publish(self, event: Event) -> None:
        self._emitter.emit(event)

    def _notify(self, message: str, submission_id: str | None = None, **kwargs) -> None:
        self._publish(NotificationEvent.create(message, submission_id=submission_id, **kwargs))

    # =========================================================================
    # Submission
    # =========================================================================

    async def submit(self, user_prompt: str) -> SubmissionResult | None:
        """
        Run one query from prompt to finished entry.

        Returns:
            The outcome, or None if another submission is in flight
        """
        if self._workspace.busy:
            logger.warning("Submission rejected: another submission is in flight")
            return None

        self._workspace.busy = True
        submission_id = str(uuid4())
        lifecycle = EntryLifecycle()
        result = SubmissionResult(state=lifecycle.state)
        self._publish(SubmissionStartedEvent.create(user_prompt, submission_id=submission_id))

        try:
            await self._run(user_prompt, submission_id, lifecycle, result)
        except asyncio.CancelledError:
            # The stream context has already released the response.
            lifecycle.fail()
            logger.info("Submission cancelled", submission_id=submission_id)
            raise
        finally:
            self._workspace.busy = False
            result.state = lifecycle.state
            self._publish(
                SubmissionFinishedEvent.create(
                    lifecycle.state.value,
                    entry_id=result.entry.id if result.entry else None,
                    submission_id=submission_id,
                )
            )

        return result

    async def _run(
        self,
        user_prompt: str,
        submission_id: str,
        lifecycle: EntryLifecycle,
        result: SubmissionResult,
    ) -> None:
        lifecycle.transition(LifecycleState.CREATING)

        try:
            notebook_id = await self._ensure_notebook(submission_id)
        except PersistenceError as e:
            logger.error("Error creating new notebook", error=str(e))
            self._notify("Failed to create new notebook", submission_id)
            result.error = e
            lifecycle.fail()
            return

        entry = NotebookEntry(notebook_id=notebook_id, user_prompt=user_prompt)
        result.entry = entry
        self._workspace.entries.append(entry)
        self._publish(EntryCreatedEvent.create(entry, submission_id=submission_id))

        try:
            await self._store.create_entry(entry)
        except PersistenceError as e:
            logger.error("Error creating new notebook entry", entry_id=entry.id, error=str(e))
            self._rollback(entry, "persistence", submission_id)
            self._notify("Failed to create new notebook entry", submission_id)
            result.error = e
            result.rolled_back = True
            lifecycle.fail()
            return

        lifecycle.transition(LifecycleState.STREAMING)
        logger.info("Streaming entry", entry_id=entry.id, notebook_id=notebook_id)

        router = SegmentRouter(self._emitter, submission_id=submission_id)
        try:
            await self._stream(entry, router)
        except TransportError as e:
            result.segments_applied = router.applied
            result.error = e
            logger.error(
                "Error streaming entry",
                entry_id=entry.id,
                segments_applied=router.applied,
                error=str(e),
            )
            if router.applied == 0:
                self._rollback(entry, "transport", submission_id)
                result.rolled_back = True
            self._notify("Failed to send message", submission_id)
            lifecycle.fail()
            return

        result.segments_applied = router.applied
        lifecycle.transition(LifecycleState.FINALIZING)
        await self._finalize(entry, user_prompt, submission_id)
        lifecycle.transition(LifecycleState.DONE)

        logger.info(
            "Entry complete",
            entry_id=entry.id,
            sql_queries=len(entry.sql_queries),
            segments_applied=router.applied,
        )

    async def _ensure_notebook(self, submission_id: str) -> str:
        if self._workspace.selected_notebook_id:
            return self._workspace.selected_notebook_id

        notebook = Notebook(
            title=self._settings.default_notebook_title,
            project_id=self._workspace.project_id,
        )
        notebook = await self._store.create_notebook(notebook)

        self._workspace.notebooks.append(notebook)
        self._workspace.selected_notebook_id = notebook.id
        self._publish(NotebookCreatedEvent.create(notebook, submission_id=submission_id))
        logger.info("Created notebook", notebook_id=notebook.id)
        return notebook.id

    async def _stream(self, entry: NotebookEntry, router: SegmentRouter) -> None:
        request = SearchRequest(
            project_id=self._workspace.project_id,
            chat_history=self._workspace.recent_entries(self._settings.chat_history_window),
            notebook_id=entry.notebook_id,
            notebook_entry_id=entry.id,
            version=1,
        )
        reassembler = StreamReassembler(
            grammar=self._grammar,
            scan_policy=self._settings.scan_policy,
        )

        async with self._client.stream_search(request) as reads:
            async for raw in reads:
                router.route_all(entry, reassembler.consume(raw))

        while (segment := reassembler.flush()) is not None:
            router.route(entry, segment)

        logger.debug(
            "Stream ended",
            entry_id=entry.id,
            bytes_received=reassembler.bytes_received,
        )

    def _rollback(self, entry: NotebookEntry, reason: str, submission_id: str) -> None:
        self._workspace.remove_entry(entry.id)
        self._publish(EntryRolledBackEvent.create(entry.id, reason, submission_id=submission_id))

    async def _finalize(self, entry: NotebookEntry, user_prompt: str, submission_id: str) -> None:
        if self._settings.persist_completed_entries:
            try:
                await self._store.update_entry(entry)
            except PersistenceError as e:
                logger.error("Error saving notebook entry", entry_id=entry.id, error=str(e))
                self._notify("Failed to save notebook entry", submission_id)

        self._publish(EntryCompletedEvent.create(entry, submission_id=submission_id))

        if self._settings.generate_titles:
            self._spawn(self._generate_title(entry.notebook_id, user_prompt))

    # =========================================================================
    # Title generation (fire-and-forget)
    # =========================================================================

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self._background.add(task)
        task.add_done_callback(self._background.discard)
        return task

    async def _generate_title(self, notebook_id: str, user_prompt: str) -> None:
        request = TitleRequest(
            project_id=self._workspace.project_id,
            notebook_id=notebook_id,
            user_prompt=user_prompt,
        )
        try:
            title = await self._client.generate_title(request)
        except (
            TransientError,
            ClientRequestError,
            MaxTimeoutExceeded,
            httpx.HTTPError,
            ValueError,
        ) as e:
            logger.error("Error generating title", notebook_id=notebook_id, error=str(e))
            self._notify("Failed to generate title")
            return

        if not title:
            return

        notebook = self._workspace.find_notebook(notebook_id)
        if notebook is not None:
            notebook.title = title
            self._publish(NotebookTitledEvent.create(notebook_id, title))

    async def wait_background(self) -> None:
        """Wait for outstanding title requests and async event handlers."""
        if self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)
        await self._emitter.drain()

    # =========================================================================
    # Notebook management
    # =========================================================================

    async def load_notebooks(self) -> bool:
        """Fetch the project's notebooks into the workspace."""
        try:
            notebooks = await self._store.list_notebooks(self._workspace.project_id)
        except PersistenceError as e:
            logger.error("Error fetching notebooks", error=str(e))
            self._notify("Failed to fetch notebooks")
            return False

        self._workspace.notebooks = notebooks
        return True

    async def select_notebook(self, notebook_id: str) -> bool:
        """Select a notebook and load its entries, oldest first."""
        if self._workspace.busy:
            logger.warning("Cannot switch notebooks during a submission")
            return False

        if self._workspace.find_notebook(notebook_id) is None:
            self._notify("Notebook not found")
            return False

        self._workspace.selected_notebook_id = notebook_id
        self._publish(NotebookSelectedEvent.create(notebook_id))

        try:
            entries = await self._store.list_entries(notebook_id)
        except PersistenceError as e:
            logger.error("Error fetching notebook entries", notebook_id=notebook_id, error=str(e))
            self._notify("Failed to fetch notebook entries")
            return False

        self._workspace.entries = entries
        self._publish(EntriesLoadedEvent.create(notebook_id, entries))
        return True

    def start_new_notebook(self) -> None:
        """Clear the selection; the next submission creates a notebook."""
        self._workspace.selected_notebook_id = None
        self._workspace.entries = []
        self._publish(NotebookSelectedEvent.create(None))

    async def rename_notebook(self, title: str) -> bool:
        """Rename the selected notebook, reverting the local title on failure."""
        notebook = self._workspace.selected_notebook
        if notebook is None:
            return False

        previous = notebook.title
        notebook.title = title
        self._publish(NotebookTitledEvent.create(notebook.id, title))

        try:
            await self._store.update_notebook_title(notebook.id, title)
        except PersistenceError as e:
            logger.error("Error updating notebook", notebook_id=notebook.id, error=str(e))
            notebook.title = previous
            self._publish(NotebookTitledEvent.create(notebook.id, previous))
            self._notify("Failed to update notebook")
            return False

        return True

    async def delete_notebook(self) -> bool:
        """Delete the selected notebook and clear the view."""
        notebook_id = self._workspace.selected_notebook_id
        if not notebook_id:
            return False

        try:
            await self._store.delete_notebook(notebook_id)
        except PersistenceError as e:
            logger.error("Error deleting notebook", notebook_id=notebook_id, error=str(e))
            self._notify("Failed to delete notebook")
            return False

        self._workspace.notebooks = [n for n in self._workspace.notebooks if n.id != notebook_id]
        self._workspace.selected_notebook_id = None
        self._workspace.entries = []
        self._publish(NotebookDeletedEvent.create(notebook_id))
        return True

    async def delete_entry(self, entry_id: str) -> bool:
        """Delete one entry of the selected notebook."""
        notebook_id = self._workspace.selected_notebook_id
        if not notebook_id:
            return False

        try:
            await self._store.delete_entry(notebook_id, entry_id)
        except PersistenceError as e:
            logger.error("Error deleting notebook entry", entry_id=entry_id, error=str(e))
            self._notify("Failed to delete notebook entry")
            return False

        return self._workspace.remove_entry(entry_id)

    async def aclose(self) -> None:
        """Wait for background work and release clients."""
        await self.wait_background()
        await self._client.close()
        await self._store.close()
