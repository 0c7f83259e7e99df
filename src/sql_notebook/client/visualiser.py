"""HTTP client for the search stream and notebook naming endpoints."""

from contextlib import asynccontextmanager
from typing import AsyncIterator

import httpx

from sql_notebook.core.exceptions import TransportError
from sql_notebook.core.resilience import title_timeout, wrap_httpx_errors
from sql_notebook.models.notebook import SearchRequest, TitleRequest
from sql_notebook.utils.logging import get_logger


logger = get_logger(__name__)


class VisualiserClient:
    """
    Async HTTP client for a project's visualiser endpoints.

    Endpoints:
    - ``POST /app/{projectId}/visualiser-search``: streamed segment response
    - ``POST /app/{projectId}/notebook-naming``: ``{"title": ...}``
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        read_timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Initialize visualiser client.

        Args:
            base_url: Base URL of the application server
            timeout: Connect/write timeout in seconds
            read_timeout: Max wait between stream reads (None = unbounded)
            transport: Optional httpx transport (used by tests)
        """
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._read_timeout = read_timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                timeout=httpx.Timeout(self._timeout, read=self._read_timeout),
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    @asynccontextmanager
    async def stream_search(
        self, request: SearchRequest
    ) -> AsyncIterator[AsyncIterator[bytes]]:
        """
        Open the search stream.

        The response carries no envelope: its body is the raw segment text,
        delivered in arbitrarily sized reads. The response is closed on every
        exit from the context, including cancellation.

        Raises:
            TransportError: If the stream cannot be opened or a read fails
        """
        client = self._get_client()
        url = f"/app/{request.project_id}/visualiser-search"

        try:
            async with client.stream("POST", url, json=request.to_record()) as response:
                if response.is_error:
                    raise TransportError(
                        f"Search request failed: HTTP {response.status_code}"
                        f" {response.reason_phrase}",
                        status_code=response.status_code,
                    )

                logger.debug(
                    "Search stream opened",
                    entry_id=request.notebook_entry_id,
                    status=response.status_code,
                )
                yield self._reads(response)
        except httpx.HTTPError as e:
            raise TransportError(f"Search stream failed: {e}") from e

    async def _reads(self, response: httpx.Response) -> AsyncIterator[bytes]:
        try:
            async for raw in response.aiter_bytes():
                if raw:
                    yield raw
        except httpx.HTTPError as e:
            raise TransportError(f"Search stream read failed: {e}") from e

    @title_timeout
    @wrap_httpx_errors
    async def generate_title(self, request: TitleRequest) -> str | None:
        """
        Ask the server for a short notebook title.

        Returns:
            The title, or None if the server produced none

        Raises:
            ValueError: If the body is not a JSON object with a string title
        """
        response = await self._get_client().post(
            f"/app/{request.project_id}/notebook-naming",
            json=request.to_record(),
        )
        response.raise_for_status()
        body = response.json()
        if not isinstance(body, dict):
            raise ValueError(f"Naming response is not an object: {type(body).__name__}")
        title = body.get("title")
        if title is not None and not isinstance(title, str):
            raise ValueError(f"Naming response title is not a string: {title!r}")
        return title or None
