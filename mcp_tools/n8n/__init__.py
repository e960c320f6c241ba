"""n8n workflow management tools package.

Contains MCP tools for managing workflows on an n8n server:
- list_workflows: List workflows with status and tags
- create_workflow: Create a workflow after schema and node type checks
- get_workflow: Show a workflow summary
- update_workflow: Replace a workflow definition
- delete_workflow: Delete a workflow
- activate_workflow / deactivate_workflow: Toggle automatic execution
"""

# Import tools to trigger registration
from . import workflows

# Import client and validation helpers for external use
from .client import (
    N8nApiClient,
    N8nApiError,
    N8nConfigError,
    get_api_client,
    close_api_client,
)
from .node_validator import InvalidNodeReport, NodeValidator, get_node_validator
from .schemas import (
    ToolResponse,
    WorkflowRecord,
    WorkflowSchema,
    WorkflowValidationError,
)

__all__ = [
    # Tools modules
    "workflows",
    # Client classes
    "N8nApiClient",
    "N8nApiError",
    "N8nConfigError",
    "get_api_client",
    "close_api_client",
    # Validation
    "InvalidNodeReport",
    "NodeValidator",
    "get_node_validator",
    # Schemas
    "ToolResponse",
    "WorkflowRecord",
    "WorkflowSchema",
    "WorkflowValidationError",
]
