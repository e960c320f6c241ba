"""Tests for the n8n API client."""

import json

import httpx
import pytest
from unittest.mock import MagicMock, patch

from mcp_tools.n8n.client import (
    N8nApiClient,
    N8nApiError,
    N8nConfigError,
    close_api_client,
    get_api_client,
)
from mcp_tools.n8n.schemas import WorkflowRecord, parse_workflow
from tests.fixtures.n8n_responses import valid_workflow, workflow_response


def make_client(handler, **kwargs) -> N8nApiClient:
    """Client whose requests are answered by ``handler``."""
    return N8nApiClient(transport=httpx.MockTransport(handler), **kwargs)


class TestN8nApiClientInit:
    """Tests for client initialization."""

    def test_default_initialization(self):
        """Test client initializes with defaults from config."""
        with patch("mcp_tools.n8n.client.get_settings") as mock_settings:
            mock_settings.return_value = MagicMock(
                n8n_api_url="http://n8n.local:5678/api/v1/",
                n8n_api_key="secret",
                n8n_verify_ssl=False,
                n8n_timeout=10,
            )

            client = N8nApiClient()

            assert client.base_url == "http://n8n.local:5678/api/v1"
            assert client.api_key == "secret"
            assert client.verify_ssl is False
            assert client.timeout == 10

    def test_custom_initialization(self):
        """Test explicit arguments override config."""
        client = N8nApiClient(base_url="https://other/api/v1", api_key="k2", timeout=5)

        assert client.base_url == "https://other/api/v1"
        assert client.api_key == "k2"
        assert client.timeout == 5

    @pytest.mark.asyncio
    async def test_missing_url(self, monkeypatch):
        """Test requests fail clearly without an API URL."""
        from config import reload_settings

        monkeypatch.setenv("N8N_API_URL", "")
        reload_settings()

        client = N8nApiClient()
        with pytest.raises(N8nConfigError, match="not configured"):
            await client.get_workflow("wf-1")


class TestN8nApiClientRequests:
    """Tests for workflow requests."""

    @pytest.mark.asyncio
    async def test_sends_api_key_header(self):
        """Test the API key is sent with every request."""
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["key"] = request.headers.get("X-N8N-API-KEY")
            seen["path"] = request.url.path
            return httpx.Response(200, json=workflow_response())

        async with make_client(handler) as client:
            record = await client.get_workflow("wf-1")

        assert seen == {"key": "test-api-key", "path": "/api/v1/workflows/wf-1"}
        assert isinstance(record, WorkflowRecord)
        assert record.name == "Daily Report"

    @pytest.mark.asyncio
    async def test_list_follows_pagination(self):
        """Test list_workflows follows nextCursor."""
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(dict(request.url.params))
            if "cursor" not in request.url.params:
                return httpx.Response(200, json={
                    "data": [workflow_response(id="1")],
                    "nextCursor": "page-2",
                })
            return httpx.Response(200, json={
                "data": [workflow_response(id="2")],
                "nextCursor": None,
            })

        async with make_client(handler) as client:
            workflows = await client.list_workflows({"active": True, "verbosity": "full"})

        assert [wf.id for wf in workflows] == ["1", "2"]
        assert requests == [{"active": "true"}, {"active": "true", "cursor": "page-2"}]

    @pytest.mark.asyncio
    async def test_list_stops_on_repeated_cursor(self):
        """Test pagination ends when n8n repeats a cursor."""
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request.url.params.get("cursor"))
            return httpx.Response(200, json={
                "data": [workflow_response(id=str(len(calls)))],
                "nextCursor": "same",
            })

        async with make_client(handler) as client:
            workflows = await client.list_workflows()

        assert calls == [None, "same"]
        assert [wf.id for wf in workflows] == ["1", "2"]

    @pytest.mark.asyncio
    async def test_list_joins_tag_lists(self):
        """Test a list of tags is sent as one comma-separated parameter."""
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request.url.params.get_list("tags"))
            return httpx.Response(200, json={"data": [], "nextCursor": None})

        async with make_client(handler) as client:
            await client.list_workflows({"tags": ["reports", "daily"]})

        assert seen == [["reports,daily"]]

    @pytest.mark.asyncio
    async def test_list_with_limit_fetches_one_page(self):
        """Test an explicit limit disables pagination."""
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request.url.params.get("limit"))
            return httpx.Response(200, json={"data": [workflow_response()], "nextCursor": "more"})

        async with make_client(handler) as client:
            workflows = await client.list_workflows({"limit": 1})

        assert len(workflows) == 1
        assert calls == ["1"]

    @pytest.mark.asyncio
    async def test_create_sends_payload(self):
        """Test create posts the API payload without read-only fields."""
        bodies = []

        def handler(request: httpx.Request) -> httpx.Response:
            bodies.append((request.method, request.url.path, json.loads(request.content)))
            return httpx.Response(200, json=workflow_response(id="new"))

        workflow = valid_workflow()
        workflow["tags"] = [{"name": "x"}]

        async with make_client(handler) as client:
            record = await client.create_workflow(parse_workflow(workflow))

        method, path, body = bodies[0]
        assert (method, path) == ("POST", "/api/v1/workflows")
        assert "tags" not in body
        assert body["settings"] == {}
        assert record.id == "new"
        assert len(bodies) == 1

    @pytest.mark.asyncio
    async def test_create_and_activate(self):
        """Test create with activate calls the activate endpoint."""
        paths = []

        def handler(request: httpx.Request) -> httpx.Response:
            paths.append((request.method, request.url.path))
            if request.url.path.endswith("/activate"):
                return httpx.Response(200, json=workflow_response(id="new", active=True))
            return httpx.Response(200, json=workflow_response(id="new"))

        async with make_client(handler) as client:
            record = await client.create_workflow(valid_workflow(), activate=True)

        assert paths == [
            ("POST", "/api/v1/workflows"),
            ("POST", "/api/v1/workflows/new/activate"),
        ]
        assert record.active is True

    @pytest.mark.asyncio
    @pytest.mark.parametrize("method_name,http_method,path", [
        ("activate_workflow", "POST", "/api/v1/workflows/wf-1/activate"),
        ("deactivate_workflow", "POST", "/api/v1/workflows/wf-1/deactivate"),
        ("delete_workflow", "DELETE", "/api/v1/workflows/wf-1"),
    ])
    async def test_single_workflow_endpoints(self, method_name, http_method, path):
        """Test per-workflow endpoints."""
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append((request.method, request.url.path))
            return httpx.Response(200, json=workflow_response())

        async with make_client(handler) as client:
            await getattr(client, method_name)("wf-1")

        assert seen == [(http_method, path)]

    @pytest.mark.asyncio
    async def test_update_uses_put(self):
        """Test update replaces the workflow with PUT."""
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append((request.method, request.url.path))
            return httpx.Response(200, json=workflow_response(active=True))

        async with make_client(handler) as client:
            record = await client.update_workflow("wf-1", parse_workflow(valid_workflow()))

        assert seen == [("PUT", "/api/v1/workflows/wf-1")]
        assert record.active is True

    @pytest.mark.asyncio
    async def test_empty_delete_body(self):
        """Test an empty response body is returned as None."""
        async with make_client(lambda request: httpx.Response(204)) as client:
            assert await client.delete_workflow("wf-1") is None


class TestN8nApiClientErrors:
    """Tests for error handling."""

    @pytest.mark.asyncio
    async def test_error_message_from_json(self):
        """Test n8n's JSON error message is surfaced."""
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(400, json={"message": "Workflow has no trigger node"})

        async with make_client(handler) as client:
            with pytest.raises(N8nApiError) as exc_info:
                await client.activate_workflow("wf-1")

        assert exc_info.value.message == "HTTP 400: Workflow has no trigger node"
        assert exc_info.value.status_code == 400

    @pytest.mark.asyncio
    async def test_error_message_from_text(self):
        """Test plain-text error bodies are surfaced."""
        async with make_client(lambda request: httpx.Response(502, text="Bad gateway")) as client:
            with pytest.raises(N8nApiError, match="HTTP 502: Bad gateway"):
                await client.get_workflow("wf-1")

    @pytest.mark.asyncio
    async def test_timeout(self):
        """Test timeouts become N8nApiError."""
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        async with make_client(handler) as client:
            with pytest.raises(N8nApiError, match="timed out"):
                await client.list_workflows()

    @pytest.mark.asyncio
    async def test_connection_error(self):
        """Test transport errors become N8nApiError."""
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("Connection refused", request=request)

        async with make_client(handler) as client:
            with pytest.raises(N8nApiError, match="Request to n8n failed"):
                await client.get_workflow("wf-1")


class TestGlobalClient:
    """Tests for the process-wide client."""

    @pytest.mark.asyncio
    async def test_get_and_close(self):
        """Test the global client is cached until closed."""
        client = get_api_client()

        assert get_api_client() is client

        await close_api_client()
        assert get_api_client() is not client
        await close_api_client()
