"""Workflow schemas and the tool response envelope.

Two families of models live here:

- Input schemas (``WorkflowSchema``, ``CreateWorkflowInput``) validate
  workflow definitions sent by the agent before anything reaches n8n.
  ``parse_workflow`` / ``parse_create_workflow_input`` raise
  ``WorkflowValidationError`` with a flat, human-readable message.
- ``WorkflowRecord`` normalizes workflows returned by the n8n API.

``ToolResponse`` is the envelope every workflow tool returns.
"""

from typing import Any, Dict, List, Optional, Union

from mcp.types import CallToolResult, TextContent
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PrivateAttr,
    ValidationError,
    field_validator,
    model_validator,
)


# Node types that start a workflow without "trigger" in their name
START_NODE_TYPES = frozenset({
    "n8n-nodes-base.webhook",
    "n8n-nodes-base.cron",
    "n8n-nodes-base.interval",
    "n8n-nodes-base.start",
    "n8n-nodes-base.emailReadImap",
})


def is_trigger_node_type(node_type: str) -> bool:
    """Return True if a node type can start a workflow."""
    return "trigger" in node_type.lower() or node_type in START_NODE_TYPES


class WorkflowValidationError(Exception):
    """A workflow definition failed structural validation.

    Attributes:
        message: Flattened "<field>: <reason>" list joined with "; "
        errors: Raw pydantic error dictionaries
    """

    def __init__(self, message: str, errors: Optional[List[Dict[str, Any]]] = None):
        super().__init__(message)
        self.message = message
        self.errors = errors or []

    @classmethod
    def from_pydantic(cls, exc: ValidationError) -> "WorkflowValidationError":
        errors = exc.errors(include_url=False)
        parts = []
        for err in errors:
            location = ".".join(str(part) for part in err.get("loc", ()))
            reason = err.get("msg", "invalid value")
            if reason.startswith("Value error, "):
                reason = reason[len("Value error, "):]
            parts.append(f"{location}: {reason}" if location else reason)
        return cls("; ".join(parts) or "Validation error", errors)


# =============================================================================
# Input schemas
# =============================================================================

class ConnectionTarget(BaseModel):
    """One edge endpoint inside a workflow's connections map."""

    model_config = ConfigDict(extra="allow")

    node: str = Field(description="Name of the target node")
    type: str = Field(default="main", description="Connection type")
    index: int = Field(default=0, ge=0, description="Input index on the target node")


class NodeSchema(BaseModel):
    """A single node in a workflow definition."""

    model_config = ConfigDict(extra="allow")

    id: Optional[str] = Field(default=None, description="Node ID (generated by n8n if omitted)")
    name: str = Field(min_length=1, description="Unique node name within the workflow")
    type: str = Field(min_length=1, description="Node type, e.g. n8n-nodes-base.httpRequest")
    typeVersion: Union[int, float] = Field(default=1, description="Node type version")
    position: List[Union[int, float]] = Field(
        default_factory=lambda: [0, 0],
        min_length=2,
        max_length=2,
        description="Canvas position [x, y]"
    )
    parameters: Dict[str, Any] = Field(default_factory=dict, description="Node parameters")
    credentials: Optional[Dict[str, Any]] = Field(default=None, description="Credential references")
    disabled: Optional[bool] = None
    notes: Optional[str] = None


class WorkflowSchema(BaseModel):
    """A workflow definition as accepted by the create/update tools."""

    model_config = ConfigDict(extra="allow")

    name: str = Field(min_length=1, description="Workflow name")
    nodes: List[NodeSchema] = Field(min_length=1, description="Workflow nodes")
    connections: Dict[str, Dict[str, List[List[ConnectionTarget]]]] = Field(
        default_factory=dict,
        description="Map of source node name to output type to target lists"
    )
    settings: Dict[str, Any] = Field(default_factory=dict, description="Workflow settings")
    staticData: Optional[Dict[str, Any]] = None
    tags: Optional[List[Any]] = None

    @model_validator(mode="after")
    def _check_structure(self) -> "WorkflowSchema":
        names = set()
        for node in self.nodes:
            if node.name in names:
                raise ValueError(f"Duplicate node name '{node.name}' in nodes")
            names.add(node.name)

        for source, outputs in self.connections.items():
            if source not in names:
                raise ValueError(f"connections reference unknown source node '{source}'")
            for branches in outputs.values():
                for branch in branches:
                    for target in branch:
                        if target.node not in names:
                            raise ValueError(
                                f"connections from '{source}' reference unknown target node '{target.node}'"
                            )

        if not any(is_trigger_node_type(node.type) for node in self.nodes):
            raise ValueError(
                "Workflow must contain at least one trigger node "
                "(e.g. Schedule Trigger, Webhook or Manual Trigger)"
            )
        return self

    def to_api_payload(self) -> Dict[str, Any]:
        """Body accepted by POST/PUT /workflows.

        Read-only fields (tags, active) are left out; n8n rejects them.
        """
        return self.model_dump(
            include={"name", "nodes", "connections", "settings", "staticData"},
            exclude_none=True,
        )


class CreateWorkflowInput(BaseModel):
    """Arguments of the create_workflow tool."""

    workflow: WorkflowSchema = Field(description="Workflow definition")
    activate: bool = Field(default=False, description="Activate the workflow after creating it")


def parse_workflow(data: Any) -> WorkflowSchema:
    """Validate a workflow definition.

    Raises:
        WorkflowValidationError: If the definition is malformed
    """
    try:
        return WorkflowSchema.model_validate(data)
    except ValidationError as e:
        raise WorkflowValidationError.from_pydantic(e) from e


def parse_create_workflow_input(data: Any) -> CreateWorkflowInput:
    """Validate the full create_workflow argument envelope.

    Raises:
        WorkflowValidationError: If the envelope or workflow is malformed
    """
    try:
        return CreateWorkflowInput.model_validate(data)
    except ValidationError as e:
        raise WorkflowValidationError.from_pydantic(e) from e


# =============================================================================
# API records
# =============================================================================

class TagRecord(BaseModel):
    """Workflow tag."""

    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    name: str = ""


class WorkflowRecord(BaseModel):
    """Workflow as returned by the n8n API.

    The mapping n8n sent is kept alongside the parsed fields so full
    output can reproduce it unchanged (see ``api_data``).
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    _source: Optional[Dict[str, Any]] = PrivateAttr(default=None)

    id: str
    name: str = ""
    active: bool = False
    created_at: Optional[str] = Field(default=None, alias="createdAt")
    updated_at: Optional[str] = Field(default=None, alias="updatedAt")
    nodes: List[Dict[str, Any]] = Field(default_factory=list)
    connections: Dict[str, Any] = Field(default_factory=dict)
    tags: List[TagRecord] = Field(default_factory=list)

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value):
        # Older n8n versions use numeric IDs
        return str(value) if value is not None else value

    @field_validator("tags", "nodes", mode="before")
    @classmethod
    def _none_as_empty(cls, value):
        return [] if value is None else value

    @model_validator(mode="wrap")
    @classmethod
    def _keep_source(cls, data, handler):
        record = handler(data)
        if isinstance(data, dict):
            record._source = data
        return record

    def api_data(self) -> Dict[str, Any]:
        """The workflow as n8n returned it, in its original key order.

        Records validated from another model instance have no source
        mapping; they fall back to the fields that were explicitly set.
        """
        if self._source is not None:
            return self._source
        return self.model_dump(mode="json", by_alias=True, exclude_unset=True)


# =============================================================================
# Tool response
# =============================================================================

class ToolResponse(BaseModel):
    """Envelope returned by every workflow tool.

    ``isError`` is left unset on success so the serialized form carries
    only ``content``.
    """

    content: List[TextContent]
    isError: Optional[bool] = None

    @classmethod
    def text(cls, text: str, is_error: bool = False) -> "ToolResponse":
        """Build a single-text-block response."""
        return cls(
            content=[TextContent(type="text", text=text)],
            isError=True if is_error else None,
        )

    def to_call_tool_result(self) -> CallToolResult:
        """Convert to the MCP SDK result type."""
        return CallToolResult(content=list(self.content), isError=bool(self.isError))
