"""n8n workflow management tools.

Provides the MCP tools:
- list_workflows: List workflows with status and tags
- create_workflow: Validate and create a workflow
- get_workflow: Show a workflow summary
- update_workflow: Validate and replace a workflow definition
- delete_workflow: Delete a workflow
- activate_workflow / deactivate_workflow: Toggle automatic execution

Every handler takes ``(api_client, args)`` and returns a ``ToolResponse``.
Missing required IDs raise an INVALID_PARAMS ``McpError`` before any API
call; every other failure is returned as an error response.
"""

from typing import Any, Dict, List, Literal, Optional

from mcp.shared.exceptions import McpError
from mcp.types import INVALID_PARAMS, ErrorData
from pydantic import BaseModel, Field

from logging_config import ToolInvocationLogger, get_logger
from tool_registry import tool

from .composition_guide import WORKFLOW_COMPOSITION_GUIDE
from .formatting import (
    error_message,
    format_output,
    format_tags,
    format_timestamp,
    handle_validation_error,
)
from .node_validator import InvalidNodeReport, get_node_validator
from .schemas import (
    CreateWorkflowInput,
    ToolResponse,
    WorkflowSchema,
    WorkflowValidationError,
    parse_create_workflow_input,
    parse_workflow,
)

logger = get_logger(__name__)

TAGS = ["n8n", "workflow"]

ACTIVATION_TRIGGER_NOTE = (
    "Note: Only workflows with automatic trigger nodes (Schedule, Webhook, etc.) can be activated. "
    "Workflows with only manual triggers cannot be automatically activated."
)

Verbosity = Optional[Literal["concise", "full"]]


# =============================================================================
# Argument schemas (published as MCP input schemas)
# =============================================================================

class ListWorkflowsArgs(BaseModel):
    """Arguments of list_workflows."""

    active: Optional[bool] = Field(default=None, description="Only active (true) or inactive (false) workflows")
    tags: Optional[str] = Field(default=None, description="Comma-separated tag names to filter by")
    name: Optional[str] = Field(default=None, description="Filter by workflow name")
    projectId: Optional[str] = Field(default=None, description="Filter by project ID")
    limit: Optional[int] = Field(default=None, ge=1, description="Maximum number of workflows to return")
    verbosity: Verbosity = Field(default=None, description="Output verbosity: concise or full")


class WorkflowIdArgs(BaseModel):
    """Arguments of tools that act on one workflow."""

    id: str = Field(description="Workflow ID")


class GetWorkflowArgs(WorkflowIdArgs):
    """Arguments of get_workflow."""

    verbosity: Verbosity = Field(default=None, description="Output verbosity: concise or full")


class UpdateWorkflowArgs(WorkflowIdArgs):
    """Arguments of update_workflow."""

    workflow: WorkflowSchema = Field(description="Complete updated workflow definition")


# =============================================================================
# Helpers
# =============================================================================

def _require(args: Dict[str, Any], fields: List[str], message: str) -> None:
    """Raise INVALID_PARAMS if any required argument is missing or empty."""
    if any(not args.get(name) for name in fields):
        raise McpError(ErrorData(code=INVALID_PARAMS, message=message))


def _failure(prefix: str, error: Exception, invocation_logger: ToolInvocationLogger) -> ToolResponse:
    message = error_message(error)
    invocation_logger.failure(message, error_type=type(error).__name__)
    return ToolResponse.text(f"{prefix}: {message}", is_error=True)


def _invalid_nodes_response(invalid_nodes: List[InvalidNodeReport], action: str) -> ToolResponse:
    """Itemize unknown node types with suggestions and the node catalogue."""
    error_lines = []
    for node in invalid_nodes:
        suggestion = (
            f"Did you mean '{node.suggestion}'?" if node.suggestion else "No similar nodes found."
        )
        error_lines.append(f"- '{node.node_type}': Not a valid n8n node. {suggestion}")

    text = (
        "Workflow contains invalid node types:\n"
        + "\n".join(error_lines)
        + f"\n\nPlease correct these node types before {action} the workflow.\n\n"
        + "Here are the available node categories for reference:\n"
        + WORKFLOW_COMPOSITION_GUIDE["node_categories"]
    )
    return ToolResponse.text(text, is_error=True)


def count_trigger_nodes(nodes: List[Dict[str, Any]]) -> int:
    """Count nodes whose type mentions "trigger" (case-insensitive)."""
    return sum(1 for node in nodes if "trigger" in str(node.get("type") or "").lower())


# =============================================================================
# Tools
# =============================================================================

@tool(
    name="list_workflows",
    description="List n8n workflows with their status, creation time and tags",
    input_schema=ListWorkflowsArgs,
    tags=TAGS,
)
async def handle_list_workflows(api_client, args: Dict[str, Any]) -> ToolResponse:
    """List workflows."""
    invocation_logger = ToolInvocationLogger(logger).start(
        "list_workflows",
        active=args.get("active"),
        tags=args.get("tags"),
    )

    try:
        workflows = await api_client.list_workflows(args)

        if not workflows:
            invocation_logger.success(workflow_count=0)
            return ToolResponse.text("No workflows found.")

        active_count = sum(1 for wf in workflows if wf.active)
        inactive_count = len(workflows) - active_count
        plural = "s" if len(workflows) != 1 else ""

        summary = (
            f"Found {len(workflows)} workflow{plural} "
            f"({active_count} active, {inactive_count} inactive):\n\n"
        )

        blocks = []
        for index, wf in enumerate(workflows, start=1):
            status = "Active" if wf.active else "Inactive"
            blocks.append(
                f'{index}. "{wf.name}" (ID: {wf.id})\n'
                f"   Status: {status}\n"
                f"   Created: {format_timestamp(wf.created_at)}\n"
                f"   Tags: {format_tags(wf.tags)}"
            )

        invocation_logger.success(workflow_count=len(workflows))
        return ToolResponse.text(
            format_output(summary + "\n\n".join(blocks), workflows, args.get("verbosity"))
        )
    except Exception as e:
        return _failure("Error listing workflows", e, invocation_logger)


@tool(
    name="create_workflow",
    description=(
        "Create a new n8n workflow from a definition with nodes and connections. "
        "Node types are checked against the known n8n node catalogue."
    ),
    input_schema=CreateWorkflowInput,
    tags=TAGS,
)
async def handle_create_workflow(api_client, args: Dict[str, Any]) -> ToolResponse:
    """Validate and create a workflow."""
    invocation_logger = ToolInvocationLogger(logger).start(
        "create_workflow",
        activate=bool(args.get("activate")),
    )

    try:
        parsed_input = parse_create_workflow_input(args)

        invalid_nodes = await get_node_validator().validate_workflow_nodes(
            parsed_input.workflow.nodes
        )
        if invalid_nodes:
            invocation_logger.failure(
                "Workflow contains invalid node types",
                invalid_node_types=[node.node_type for node in invalid_nodes],
            )
            return _invalid_nodes_response(invalid_nodes, "creating")

        workflow = await api_client.create_workflow(
            parsed_input.workflow,
            parsed_input.activate,
        )

        activation_status = "activated" if workflow.active else "created (not activated)"
        invocation_logger.success(workflow_id=workflow.id, active=workflow.active)
        return ToolResponse.text(
            f'Successfully {activation_status} workflow "{workflow.name}" (ID: {workflow.id})'
        )
    except WorkflowValidationError as e:
        invocation_logger.failure(e.message, error_type="validation")
        return handle_validation_error(e)
    except Exception as e:
        return _failure("Error creating workflow", e, invocation_logger)


@tool(
    name="get_workflow",
    description="Get a summary of an n8n workflow by ID (full JSON with verbosity=full)",
    input_schema=GetWorkflowArgs,
    tags=TAGS,
)
async def handle_get_workflow(api_client, args: Dict[str, Any]) -> ToolResponse:
    """Show one workflow."""
    _require(args, ["id"], "Workflow ID is required")
    workflow_id = args["id"]
    invocation_logger = ToolInvocationLogger(logger).start("get_workflow", workflow_id=workflow_id)

    try:
        workflow = await api_client.get_workflow(workflow_id)

        activation_status = "Active" if workflow.active else "Inactive"
        summary = (
            f'Workflow: "{workflow.name}" (ID: {workflow_id})\n'
            f"Status: {activation_status}\n"
            f"Created: {format_timestamp(workflow.created_at)}\n"
            f"Updated: {format_timestamp(workflow.updated_at)}\n"
            f"Nodes: {len(workflow.nodes)} (including {count_trigger_nodes(workflow.nodes)} trigger nodes)\n"
            f"Tags: {format_tags(workflow.tags)}"
        )

        invocation_logger.success()
        return ToolResponse.text(format_output(summary, workflow, args.get("verbosity")))
    except Exception as e:
        return _failure("Error retrieving workflow", e, invocation_logger)


@tool(
    name="update_workflow",
    description="Replace an existing n8n workflow's definition",
    input_schema=UpdateWorkflowArgs,
    tags=TAGS,
)
async def handle_update_workflow(api_client, args: Dict[str, Any]) -> ToolResponse:
    """Validate and update a workflow."""
    _require(args, ["id", "workflow"], "Workflow ID and updated workflow data are required")
    workflow_id = args["id"]
    invocation_logger = ToolInvocationLogger(logger).start("update_workflow", workflow_id=workflow_id)

    try:
        parsed_workflow = parse_workflow(args["workflow"])

        invalid_nodes = await get_node_validator().validate_workflow_nodes(parsed_workflow.nodes)
        if invalid_nodes:
            invocation_logger.failure(
                "Workflow contains invalid node types",
                invalid_node_types=[node.node_type for node in invalid_nodes],
            )
            return _invalid_nodes_response(invalid_nodes, "updating")

        workflow = await api_client.update_workflow(workflow_id, parsed_workflow)

        activation_status = "active" if workflow.active else "inactive"
        invocation_logger.success(active=workflow.active)
        return ToolResponse.text(
            f'Successfully updated workflow "{workflow.name}" (ID: {workflow_id}, Status: {activation_status})'
        )
    except WorkflowValidationError as e:
        invocation_logger.failure(e.message, error_type="validation")
        return handle_validation_error(e)
    except Exception as e:
        return _failure("Error updating workflow", e, invocation_logger)


@tool(
    name="delete_workflow",
    description="Delete an n8n workflow by ID",
    input_schema=WorkflowIdArgs,
    tags=TAGS,
)
async def handle_delete_workflow(api_client, args: Dict[str, Any]) -> ToolResponse:
    """Delete a workflow, fetching it first for its name."""
    _require(args, ["id"], "Workflow ID is required")
    workflow_id = args["id"]
    invocation_logger = ToolInvocationLogger(logger).start("delete_workflow", workflow_id=workflow_id)

    try:
        workflow = await api_client.get_workflow(workflow_id)
        await api_client.delete_workflow(workflow_id)

        invocation_logger.success()
        return ToolResponse.text(f'Successfully deleted workflow "{workflow.name}" (ID: {workflow_id})')
    except Exception as e:
        return _failure("Error deleting workflow", e, invocation_logger)


@tool(
    name="activate_workflow",
    description="Activate an n8n workflow so its automatic triggers run",
    input_schema=WorkflowIdArgs,
    tags=TAGS,
)
async def handle_activate_workflow(api_client, args: Dict[str, Any]) -> ToolResponse:
    """Activate a workflow."""
    _require(args, ["id"], "Workflow ID is required")
    workflow_id = args["id"]
    invocation_logger = ToolInvocationLogger(logger).start("activate_workflow", workflow_id=workflow_id)

    try:
        result = await api_client.activate_workflow(workflow_id)

        invocation_logger.success()
        return ToolResponse.text(f'Successfully activated workflow "{result.name}" (ID: {workflow_id})')
    except Exception as e:
        message = getattr(e, "message", None)
        # Keyword match only; unrelated errors mentioning "trigger" get the note too
        if message and "trigger" in message:
            invocation_logger.failure(message, error_type="missing_trigger")
            return ToolResponse.text(
                f"Error activating workflow: {message}\n\n"
                f"{ACTIVATION_TRIGGER_NOTE}\n\n"
                "Here are some core principles for workflow composition:\n"
                f"{WORKFLOW_COMPOSITION_GUIDE['core_principles']}",
                is_error=True,
            )
        return _failure("Error activating workflow", e, invocation_logger)


@tool(
    name="deactivate_workflow",
    description="Deactivate an n8n workflow",
    input_schema=WorkflowIdArgs,
    tags=TAGS,
)
async def handle_deactivate_workflow(api_client, args: Dict[str, Any]) -> ToolResponse:
    """Deactivate a workflow."""
    _require(args, ["id"], "Workflow ID is required")
    workflow_id = args["id"]
    invocation_logger = ToolInvocationLogger(logger).start("deactivate_workflow", workflow_id=workflow_id)

    try:
        result = await api_client.deactivate_workflow(workflow_id)

        invocation_logger.success()
        return ToolResponse.text(f'Successfully deactivated workflow "{result.name}" (ID: {workflow_id})')
    except Exception as e:
        return _failure("Error deactivating workflow", e, invocation_logger)
