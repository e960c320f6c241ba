"""Pytest fixtures for n8n workflow MCP server tests."""

import pytest
from unittest.mock import AsyncMock

from mcp_tools.n8n.client import N8nApiClient
from mcp_tools.n8n.schemas import WorkflowRecord
from tests.fixtures.n8n_responses import workflow_response


@pytest.fixture(autouse=True)
def reset_settings(monkeypatch):
    """Reset settings and the node validator before each test."""
    from config import reload_settings
    from mcp_tools.n8n.node_validator import reset_node_validator

    monkeypatch.setenv("N8N_API_URL", "http://n8n.test/api/v1")
    monkeypatch.setenv("N8N_API_KEY", "test-api-key")
    monkeypatch.setenv("MCP_LOG_LEVEL", "DEBUG")
    monkeypatch.delenv("OUTPUT_VERBOSITY", raising=False)
    monkeypatch.delenv("N8N_EXTRA_NODE_TYPES", raising=False)
    reload_settings()
    reset_node_validator()
    yield
    reset_node_validator()


@pytest.fixture
def api_client():
    """Mock n8n API client with async methods."""
    return AsyncMock(spec=N8nApiClient)


@pytest.fixture
def make_record():
    """Factory for WorkflowRecord objects."""
    def _make(**overrides) -> WorkflowRecord:
        return WorkflowRecord.model_validate(workflow_response(**overrides))
    return _make
