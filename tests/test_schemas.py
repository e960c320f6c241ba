"""Tests for workflow schemas and the tool response envelope."""

import pytest

from mcp_tools.n8n.schemas import (
    ToolResponse,
    WorkflowRecord,
    WorkflowValidationError,
    is_trigger_node_type,
    parse_create_workflow_input,
    parse_workflow,
)
from tests.fixtures.n8n_responses import valid_workflow, workflow_response


class TestParseWorkflow:
    """Tests for workflow validation."""

    def test_valid_workflow(self):
        """Test a valid workflow parses with defaults filled in."""
        workflow = parse_workflow(valid_workflow())

        assert workflow.name == "Daily Report"
        assert [node.name for node in workflow.nodes] == ["Schedule Trigger", "Set"]
        assert workflow.settings == {}

    def test_node_defaults(self):
        """Test optional node fields get defaults."""
        data = valid_workflow()
        data["nodes"][0] = {"name": "Start", "type": "n8n-nodes-base.manualTrigger"}
        data["connections"] = {}

        node = parse_workflow(data).nodes[0]

        assert node.typeVersion == 1
        assert node.position == [0, 0]
        assert node.parameters == {}

    def test_empty_nodes(self):
        """Test at least one node is required."""
        data = valid_workflow()
        data["nodes"] = []

        with pytest.raises(WorkflowValidationError) as exc_info:
            parse_workflow(data)

        assert exc_info.value.message.startswith("nodes: ")
        assert exc_info.value.errors

    def test_duplicate_node_names(self):
        """Test node names must be unique."""
        data = valid_workflow()
        data["nodes"][1]["name"] = "Schedule Trigger"

        with pytest.raises(WorkflowValidationError, match="Duplicate node name 'Schedule Trigger' in nodes"):
            parse_workflow(data)

    def test_unknown_connection_source(self):
        """Test connection sources must be node names."""
        data = valid_workflow()
        data["connections"]["Ghost"] = {"main": [[]]}

        with pytest.raises(WorkflowValidationError, match="unknown source node 'Ghost'"):
            parse_workflow(data)

    def test_requires_trigger(self):
        """Test a trigger node is required."""
        data = valid_workflow()
        data["nodes"] = [data["nodes"][1]]
        data["connections"] = {}

        with pytest.raises(WorkflowValidationError, match="at least one trigger node"):
            parse_workflow(data)

    def test_webhook_counts_as_trigger(self):
        """Test webhook nodes start a workflow."""
        data = valid_workflow()
        data["nodes"][0] = {"name": "Schedule Trigger", "type": "n8n-nodes-base.webhook"}

        assert parse_workflow(data).nodes[0].type == "n8n-nodes-base.webhook"

    def test_imap_reader_counts_as_trigger(self):
        """Test an IMAP email reader can be the only start node."""
        data = valid_workflow()
        data["nodes"][0] = {"name": "IMAP", "type": "n8n-nodes-base.emailReadImap"}
        data["connections"] = {"IMAP": {"main": [[{"node": "Set", "type": "main", "index": 0}]]}}

        assert parse_workflow(data).nodes[0].name == "IMAP"

    def test_not_a_mapping(self):
        """Test non-mapping input is a validation error."""
        with pytest.raises(WorkflowValidationError):
            parse_workflow("not a workflow")

    def test_api_payload_excludes_read_only_fields(self):
        """Test tags and active are not sent to n8n."""
        data = valid_workflow()
        data["tags"] = [{"name": "x"}]
        data["active"] = True

        payload = parse_workflow(data).to_api_payload()

        assert set(payload) == {"name", "nodes", "connections", "settings"}
        assert payload["nodes"][0]["parameters"] == {"rule": {"interval": [{"field": "hours"}]}}
        assert "id" not in payload["nodes"][0]

    def test_extra_node_fields_preserved(self):
        """Test unknown node fields pass through to n8n."""
        data = valid_workflow()
        data["nodes"][1]["alwaysOutputData"] = True

        payload = parse_workflow(data).to_api_payload()

        assert payload["nodes"][1]["alwaysOutputData"] is True


class TestCreateWorkflowInput:
    """Tests for the create_workflow argument envelope."""

    def test_activate_defaults_false(self):
        """Test activate defaults to False."""
        parsed = parse_create_workflow_input({"workflow": valid_workflow()})
        assert parsed.activate is False

    def test_nested_errors_are_prefixed(self):
        """Test nested error locations include the workflow field."""
        data = valid_workflow()
        del data["name"]

        with pytest.raises(WorkflowValidationError) as exc_info:
            parse_create_workflow_input({"workflow": data})

        assert exc_info.value.message == "workflow.name: Field required"


class TestWorkflowRecord:
    """Tests for API record normalization."""

    def test_aliases_and_tags(self):
        """Test camelCase timestamps and tags are parsed."""
        record = WorkflowRecord.model_validate(workflow_response())

        assert record.created_at == "2024-01-15T10:30:00.000Z"
        assert record.updated_at == "2024-01-16T08:00:00.000Z"
        assert [tag.name for tag in record.tags] == ["reports", "daily"]
        assert record.model_extra["settings"] == {}

    def test_numeric_id_and_null_lists(self):
        """Test numeric IDs and null tags/nodes from older n8n versions."""
        record = WorkflowRecord.model_validate({"id": 12, "name": "Old", "tags": None, "nodes": None})

        assert record.id == "12"
        assert record.tags == []
        assert record.nodes == []
        assert record.active is False

    def test_api_data_keeps_source_mapping(self):
        """Test the mapping n8n sent is kept without added defaults."""
        source = {"updatedAt": "2024-01-02T00:00:00Z", "id": 5, "name": "X", "tags": [{"name": "a"}]}

        record = WorkflowRecord.model_validate(source)

        assert list(record.api_data()) == ["updatedAt", "id", "name", "tags"]
        assert record.api_data()["tags"] == [{"name": "a"}]


class TestToolResponse:
    """Tests for the tool response envelope."""

    def test_success_has_no_is_error(self):
        """Test success responses leave isError unset."""
        response = ToolResponse.text("ok")

        assert response.model_dump(exclude_none=True) == {"content": [{"type": "text", "text": "ok"}]}

    def test_error_sets_is_error(self):
        """Test error responses set isError."""
        response = ToolResponse.text("bad", is_error=True)

        assert response.isError is True
        assert response.to_call_tool_result().isError is True

    def test_call_tool_result(self):
        """Test conversion to the SDK result type."""
        result = ToolResponse.text("ok").to_call_tool_result()

        assert result.isError is False
        assert result.content[0].text == "ok"


def test_is_trigger_node_type():
    """Test trigger classification for schema checks."""
    assert is_trigger_node_type("n8n-nodes-base.manualTrigger")
    assert is_trigger_node_type("n8n-nodes-base.webhook")
    assert is_trigger_node_type("n8n-nodes-base.emailReadImap")
    assert not is_trigger_node_type("n8n-nodes-base.set")
