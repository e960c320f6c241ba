"""n8n REST API client.

Async client for the n8n public API (``/api/v1``). Authenticates with an
API key sent in the ``X-N8N-API-KEY`` header.
"""

from typing import Any, Dict, List, Optional

import httpx

from config import get_settings
from logging_config import get_logger

from .schemas import WorkflowRecord

logger = get_logger(__name__)

# Query parameters GET /workflows understands
LIST_FILTER_PARAMS = ("active", "tags", "name", "projectId", "limit")


class N8nConfigError(Exception):
    """The n8n connection is not configured."""
    pass


class N8nApiError(Exception):
    """API request to n8n failed."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class N8nApiClient:
    """Async client for the n8n workflow API.

    Usage:
        async with N8nApiClient() as client:
            workflows = await client.list_workflows({"active": True})
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        verify_ssl: Optional[bool] = None,
        timeout: Optional[int] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the n8n client.

        Args:
            base_url: API base URL including /api/v1 (defaults to config)
            api_key: n8n API key (defaults to config)
            verify_ssl: Verify SSL certs (defaults to config)
            timeout: Request timeout in seconds (defaults to config)
            transport: Optional httpx transport, used by tests
        """
        settings = get_settings()

        self.base_url = (base_url or settings.n8n_api_url or "").rstrip("/")
        self.api_key = api_key or settings.n8n_api_key
        self.verify_ssl = verify_ssl if verify_ssl is not None else settings.n8n_verify_ssl
        self.timeout = timeout or settings.n8n_timeout
        self._transport = transport

        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self) -> "N8nApiClient":
        await self._ensure_client()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def _ensure_client(self) -> httpx.AsyncClient:
        """Create HTTP client if not exists."""
        if not self.base_url:
            raise N8nConfigError("n8n API URL not configured (set N8N_API_URL)")

        if self._client is None:
            headers = {
                "Accept": "application/json",
                "Content-Type": "application/json",
            }
            if self.api_key:
                headers["X-N8N-API-KEY"] = self.api_key

            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers=headers,
                verify=self.verify_ssl,
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _request(
        self,
        method: str,
        endpoint: str,
        json_data: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """Make an API request.

        Args:
            method: HTTP method (GET, POST, PUT, DELETE)
            endpoint: Path relative to the API base URL
            json_data: Optional JSON body
            params: Optional query parameters

        Returns:
            Decoded JSON body, or None for an empty body

        Raises:
            N8nApiError: If the request fails or n8n returns an error status
        """
        client = await self._ensure_client()
        logger.debug(f"n8n API {method} {endpoint}")

        try:
            response = await client.request(
                method=method,
                url=endpoint,
                json=json_data,
                params=params,
            )
        except httpx.TimeoutException as e:
            raise N8nApiError(f"Request to n8n timed out: {e}")
        except httpx.RequestError as e:
            raise N8nApiError(f"Request to n8n failed: {e}")

        if response.status_code >= 400:
            raise N8nApiError(
                self._error_message(response),
                status_code=response.status_code,
            )

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            raise N8nApiError(
                f"n8n returned a non-JSON response (HTTP {response.status_code})",
                status_code=response.status_code,
            )

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        """Extract n8n's error message from an error response."""
        detail = ""
        try:
            body = response.json()
            if isinstance(body, dict):
                detail = body.get("message") or ""
        except ValueError:
            pass
        if not detail:
            detail = response.text.strip() or response.reason_phrase
        return f"HTTP {response.status_code}: {detail}"

    # -------------------------------------------------------------------------
    # Workflow Methods
    # -------------------------------------------------------------------------

    async def list_workflows(self, filters: Optional[Dict[str, Any]] = None) -> List[WorkflowRecord]:
        """List workflows, following pagination.

        Args:
            filters: Optional active/tags/name/projectId/limit filters.
                Other keys are ignored. With ``limit`` only one page is fetched.

        Returns:
            Workflow records
        """
        filters = filters or {}
        params: Dict[str, Any] = {}
        for key in LIST_FILTER_PARAMS:
            value = filters.get(key)
            if value is None:
                continue
            if isinstance(value, bool):
                value = str(value).lower()
            elif isinstance(value, (list, tuple)):
                # n8n takes tags as one comma-separated value
                value = ",".join(str(item) for item in value)
            params[key] = value

        workflows: List[WorkflowRecord] = []
        seen_cursors = set()
        while True:
            body = await self._request("GET", "/workflows", params=params) or {}
            if isinstance(body, list):
                data, next_cursor = body, None
            else:
                data, next_cursor = body.get("data", []), body.get("nextCursor")
            workflows.extend(WorkflowRecord.model_validate(wf) for wf in data)

            if not next_cursor or "limit" in params:
                break
            if next_cursor in seen_cursors:
                logger.warning(f"n8n returned cursor {next_cursor} twice, stopping pagination")
                break
            seen_cursors.add(next_cursor)
            params["cursor"] = next_cursor

        return workflows

    async def create_workflow(self, workflow: Any, activate: bool = False) -> WorkflowRecord:
        """Create a workflow, optionally activating it.

        Args:
            workflow: ``WorkflowSchema`` or a raw workflow mapping
            activate: Activate the new workflow

        Returns:
            The created (and possibly activated) workflow
        """
        created = WorkflowRecord.model_validate(
            await self._request("POST", "/workflows", json_data=self._payload(workflow))
        )
        logger.info(f"Created n8n workflow {created.id}")

        if activate:
            return await self.activate_workflow(created.id)
        return created

    async def get_workflow(self, workflow_id: str) -> WorkflowRecord:
        """Get a workflow by ID."""
        return WorkflowRecord.model_validate(
            await self._request("GET", f"/workflows/{workflow_id}")
        )

    async def update_workflow(self, workflow_id: str, workflow: Any) -> WorkflowRecord:
        """Replace a workflow's definition."""
        return WorkflowRecord.model_validate(
            await self._request("PUT", f"/workflows/{workflow_id}", json_data=self._payload(workflow))
        )

    async def delete_workflow(self, workflow_id: str) -> Any:
        """Delete a workflow.

        Returns:
            The response body (the deleted workflow on current n8n versions)
        """
        result = await self._request("DELETE", f"/workflows/{workflow_id}")
        logger.info(f"Deleted n8n workflow {workflow_id}")
        return result

    async def activate_workflow(self, workflow_id: str) -> WorkflowRecord:
        """Activate a workflow."""
        return WorkflowRecord.model_validate(
            await self._request("POST", f"/workflows/{workflow_id}/activate")
        )

    async def deactivate_workflow(self, workflow_id: str) -> WorkflowRecord:
        """Deactivate a workflow."""
        return WorkflowRecord.model_validate(
            await self._request("POST", f"/workflows/{workflow_id}/deactivate")
        )

    @staticmethod
    def _payload(workflow: Any) -> Dict[str, Any]:
        if hasattr(workflow, "to_api_payload"):
            return workflow.to_api_payload()
        return dict(workflow)


# Global client instance
_api_client: Optional[N8nApiClient] = None


def get_api_client() -> N8nApiClient:
    """Get the global n8n API client.

    Creates the instance on first call.
    """
    global _api_client
    if _api_client is None:
        _api_client = N8nApiClient()
    return _api_client


async def close_api_client() -> None:
    """Close and drop the global n8n API client."""
    global _api_client
    if _api_client is not None:
        await _api_client.close()
        _api_client = None
