"""PostgREST-style HTTP notebook storage.

Talks to a table API such as Supabase's ``/rest/v1``:

    POST   /notebooks                       insert, returns representation
    GET    /notebooks?projectId=eq.{id}     filtered select
    PATCH  /notebooks?id=eq.{id}            update
    DELETE /notebooks?id=eq.{id}            delete

and the same for ``/notebook_entries``. Reads are retried on transient
failures; writes are sent once.
"""

from typing import Any, TypeVar

import httpx

from sql_notebook.core.exceptions import NotebookNotFound, PersistenceError
from sql_notebook.core.resilience import (
    ClientRequestError,
    MaxAttemptsExceeded,
    TransientError,
    store_read_retry,
    wrap_httpx_errors,
)
from sql_notebook.models.notebook import CamelModel, Notebook, NotebookEntry
from sql_notebook.storage.base import NotebookStore
from sql_notebook.utils.logging import get_logger


logger = get_logger(__name__)

NOTEBOOKS_TABLE = "notebooks"
ENTRIES_TABLE = "notebook_entries"

ModelT = TypeVar("ModelT", bound=CamelModel)


def _as_rows(body: Any) -> list[dict[str, Any]]:
    if not isinstance(body, list) or not all(isinstance(row, dict) for row in body):
        raise ValueError(f"expected a JSON array of rows, got {type(body).__name__}")
    return body


def _parse(model: type[ModelT], rows: list[dict[str, Any]], operation: str) -> list[ModelT]:
    """Validate rows into models, reporting bad records as ``PersistenceError``."""
    try:
        return [model.from_record(row) for row in rows]
    except ValueError as e:
        raise PersistenceError(
            f"{operation} returned an invalid record: {e}", operation=operation
        ) from e


class RestNotebookStore(NotebookStore):
    """
    Notebook storage backed by a PostgREST-style API.

    Features:
    - Retry with exponential backoff for list operations
    - Single-attempt writes, failures raised as ``PersistenceError``
    - Connection lifecycle management
    """

    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Initialize REST storage.

        Args:
            base_url: Base URL of the table API (e.g. ``.../rest/v1``)
            api_key: API key sent as ``apikey`` and bearer token
            timeout: Request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            headers = {"Content-Type": "application/json"}
            if self._api_key:
                headers["apikey"] = self._api_key
                headers["Authorization"] = f"Bearer {self._api_key}"
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                headers=headers,
                timeout=httpx.Timeout(self._timeout),
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    # -------------------------------------------------------------------------
    # Low-level requests
    # -------------------------------------------------------------------------

    @store_read_retry
    @wrap_httpx_errors
    async def _select(self, table: str, params: dict[str, str]) -> list[dict[str, Any]]:
        response = await self._get_client().get(f"/{table}", params=params)
        response.raise_for_status()
        return response.json()

    async def _write(
        self,
        method: str,
        table: str,
        operation: str,
        params: dict[str, str] | None = None,
        json: dict[str, Any] | None = None,
    ) -> list[dict[str, Any]]:
        headers = {"Prefer": "return=representation"}
        try:
            response = await self._get_client().request(
                method, f"/{table}", params=params, json=json, headers=headers
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise PersistenceError(
                f"{operation} rejected (HTTP {e.response.status_code}): {e.response.text}",
                operation=operation,
            ) from e
        except httpx.HTTPError as e:
            raise PersistenceError(f"{operation} failed: {e}", operation=operation) from e

        if not response.content:
            return []
        try:
            return _as_rows(response.json())
        except ValueError as e:
            raise PersistenceError(
                f"{operation} returned an unreadable body: {e}", operation=operation
            ) from e

    async def _read(self, table: str, params: dict[str, str], operation: str) -> list[dict[str, Any]]:
        try:
            return _as_rows(await self._select(table, params))
        except MaxAttemptsExceeded as e:
            raise PersistenceError(
                f"{operation} failed after retrying: {e}",
                operation=operation,
            ) from e
        except (TransientError, ClientRequestError, httpx.HTTPError, ValueError) as e:
            raise PersistenceError(f"{operation} failed: {e}", operation=operation) from e

    # -------------------------------------------------------------------------
    # Notebooks
    # -------------------------------------------------------------------------

    async def create_notebook(self, notebook: Notebook) -> Notebook:
        rows = await self._write(
            "POST", NOTEBOOKS_TABLE, "create_notebook", json=notebook.to_record()
        )
        return _parse(Notebook, rows[:1], "create_notebook")[0] if rows else notebook

    async def update_notebook_title(self, notebook_id: str, title: str) -> None:
        rows = await self._write(
            "PATCH",
            NOTEBOOKS_TABLE,
            "update_notebook_title",
            params={"id": f"eq.{notebook_id}"},
            json={"title": title},
        )
        if not rows:
            raise NotebookNotFound(
                f"Notebook not found: {notebook_id}", operation="update_notebook_title"
            )

    async def delete_notebook(self, notebook_id: str) -> None:
        await self._write(
            "DELETE",
            NOTEBOOKS_TABLE,
            "delete_notebook",
            params={"id": f"eq.{notebook_id}"},
        )

    async def list_notebooks(self, project_id: str) -> list[Notebook]:
        rows = await self._read(
            NOTEBOOKS_TABLE,
            {"projectId": f"eq.{project_id}", "order": "createdAt.asc"},
            "list_notebooks",
        )
        return _parse(Notebook, rows, "list_notebooks")

    # -------------------------------------------------------------------------
    # Entries
    # -------------------------------------------------------------------------

    async def create_entry(self, entry: NotebookEntry) -> NotebookEntry:
        rows = await self._write(
            "POST", ENTRIES_TABLE, "create_entry", json=entry.to_record()
        )
        return _parse(NotebookEntry, rows[:1], "create_entry")[0] if rows else entry

    async def update_entry(self, entry: NotebookEntry) -> None:
        record = entry.to_record()
        rows = await self._write(
            "PATCH",
            ENTRIES_TABLE,
            "update_entry",
            params={"id": f"eq.{entry.id}"},
            json={"sqlQueries": record["sqlQueries"], "outputs": record["outputs"]},
        )
        if not rows:
            raise NotebookNotFound(f"Entry not found: {entry.id}", operation="update_entry")

    async def list_entries(self, notebook_id: str) -> list[NotebookEntry]:
        rows = await self._read(
            ENTRIES_TABLE,
            {"notebookId": f"eq.{notebook_id}", "order": "createdAt.asc"},
            "list_entries",
        )
        return _parse(NotebookEntry, rows, "list_entries")

    async def delete_entry(self, notebook_id: str, entry_id: str) -> None:
        await self._write(
            "DELETE",
            ENTRIES_TABLE,
            "delete_entry",
            params={"id": f"eq.{entry_id}", "notebookId": f"eq.{notebook_id}"},
        )
