"""Tests for the visualiser HTTP client."""

import json

import httpx
import pytest

from sql_notebook.client.visualiser import VisualiserClient
from sql_notebook.core.exceptions import TransportError
from sql_notebook.core.resilience import ClientRequestError, TransientError
from sql_notebook.models.notebook import NotebookEntry, SearchRequest, TitleRequest


class ChunkedStream(httpx.AsyncByteStream):
    """Response body delivered as separate reads, optionally failing partway."""

    def __init__(self, chunks: list[bytes], fail_after: int | None = None):
        self.chunks = chunks
        self.fail_after = fail_after
        self.closed = False

    async def __aiter__(self):
        for i, chunk in enumerate(self.chunks):
            if self.fail_after == i:
                raise httpx.ReadError("connection reset")
            yield chunk

    async def aclose(self) -> None:
        self.closed = True


def make_client(handler) -> VisualiserClient:
    return VisualiserClient(
        base_url="https://app.example.com/",
        transport=httpx.MockTransport(handler),
    )


def search_request() -> SearchRequest:
    entry = NotebookEntry(notebook_id="nb-1", user_prompt="revenue?")
    return SearchRequest(
        project_id="proj-1",
        chat_history=[entry],
        notebook_id="nb-1",
        notebook_entry_id=entry.id,
    )


class TestStreamSearch:
    """Tests for the streamed search request."""

    @pytest.mark.asyncio
    async def test_reads_arrive_in_order(self):
        seen: list[httpx.Request] = []
        body = ChunkedStream([b"=====TEXT=====Res", b"", b"ult=====END TEXT====="])

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, stream=body)

        client = make_client(handler)
        request = search_request()

        async with client.stream_search(request) as reads:
            received = [raw async for raw in reads]

        assert received == [b"=====TEXT=====Res", b"ult=====END TEXT====="]
        assert body.closed
        assert seen[0].method == "POST"
        assert seen[0].url.path == "/app/proj-1/visualiser-search"
        payload = json.loads(seen[0].content)
        assert payload["projectId"] == "proj-1"
        assert payload["notebookEntryId"] == request.notebook_entry_id
        assert payload["version"] == 1
        assert payload["chatHistory"][0]["userPrompt"] == "revenue?"
        await client.close()

    @pytest.mark.asyncio
    async def test_error_status(self):
        client = make_client(lambda request: httpx.Response(500))

        with pytest.raises(TransportError) as exc_info:
            async with client.stream_search(search_request()):
                pass

        assert exc_info.value.status_code == 500
        await client.close()

    @pytest.mark.asyncio
    async def test_connection_failure(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        client = make_client(handler)

        with pytest.raises(TransportError):
            async with client.stream_search(search_request()):
                pass
        await client.close()

    @pytest.mark.asyncio
    async def test_read_failure_releases_response(self):
        """A failed read surfaces as TransportError and still closes the body."""
        body = ChunkedStream([b"=====TEXT=====a=====END TEXT=====", b"more"], fail_after=1)
        client = make_client(lambda request: httpx.Response(200, stream=body))
        received: list[bytes] = []

        with pytest.raises(TransportError):
            async with client.stream_search(search_request()) as reads:
                async for raw in reads:
                    received.append(raw)

        assert received == [b"=====TEXT=====a=====END TEXT====="]
        assert body.closed
        await client.close()


class TestGenerateTitle:
    """Tests for the notebook naming request."""

    @pytest.mark.asyncio
    async def test_returns_title(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"title": "Revenue Overview"})

        client = make_client(handler)
        request = TitleRequest(project_id="proj-1", notebook_id="nb-1", user_prompt="revenue?")

        assert await client.generate_title(request) == "Revenue Overview"
        assert seen[0].url.path == "/app/proj-1/notebook-naming"
        assert json.loads(seen[0].content) == {
            "projectId": "proj-1",
            "notebookId": "nb-1",
            "userPrompt": "revenue?",
        }
        await client.close()

    @pytest.mark.asyncio
    async def test_empty_title(self):
        client = make_client(lambda request: httpx.Response(200, json={"title": ""}))
        request = TitleRequest(project_id="proj-1", notebook_id="nb-1", user_prompt="q")

        assert await client.generate_title(request) is None
        await client.close()

    @pytest.mark.asyncio
    async def test_server_error(self):
        client = make_client(lambda request: httpx.Response(503))
        request = TitleRequest(project_id="proj-1", notebook_id="nb-1", user_prompt="q")

        with pytest.raises(TransientError):
            await client.generate_title(request)
        await client.close()

    @pytest.mark.asyncio
    async def test_client_error(self):
        client = make_client(lambda request: httpx.Response(400))
        request = TitleRequest(project_id="proj-1", notebook_id="nb-1", user_prompt="q")

        with pytest.raises(ClientRequestError):
            await client.generate_title(request)
        await client.close()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "body",
        [["Revenue"], "Revenue", {"title": 42}],
        ids=["list", "string", "non-string-title"],
    )
    async def test_unexpected_body_shape(self, body):
        client = make_client(lambda request: httpx.Response(200, json=body))
        request = TitleRequest(project_id="proj-1", notebook_id="nb-1", user_prompt="q")

        with pytest.raises(ValueError):
            await client.generate_title(request)
        await client.close()
