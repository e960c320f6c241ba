"""Text formatting for workflow tool responses."""

import json
from datetime import datetime
from typing import Any, Iterable, List, Optional, Tuple

from pydantic import BaseModel

from config import get_settings

from .composition_guide import WORKFLOW_COMPOSITION_GUIDE
from .schemas import ToolResponse, WorkflowRecord

# Checked in order; the first keyword found in the error message picks the guide section
VALIDATION_GUIDANCE_RULES: List[Tuple[str, str]] = [
    ("nodes", "node_categories"),
    ("connections", "common_patterns"),
    ("trigger", "core_principles"),
]
DEFAULT_GUIDANCE_KEY = "workflow_creation_process"


def error_message(error: Any) -> str:
    """Message of an error, falling back to its string form."""
    message = getattr(error, "message", None)
    if message:
        return str(message)
    return str(error)


def _to_jsonable(value: Any) -> Any:
    if isinstance(value, WorkflowRecord):
        return value.api_data()
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True, exclude_unset=True)
    if isinstance(value, (list, tuple)):
        return [_to_jsonable(item) for item in value]
    return value


def format_output(summary: str, details: Any, verbosity: Optional[str] = None) -> str:
    """Format tool output according to the verbosity setting.

    Args:
        summary: Human-readable summary
        details: Full details, rendered as JSON in full mode
        verbosity: "concise" or "full"; falls back to ``output_verbosity``

    Returns:
        The summary, followed by the JSON details when verbosity is "full"
    """
    output_verbosity = verbosity or get_settings().output_verbosity

    if output_verbosity == "full":
        rendered = json.dumps(_to_jsonable(details), indent=2, default=str, ensure_ascii=False)
        return summary + "\n\nFull details:\n" + rendered
    return summary


def format_timestamp(value: Any) -> str:
    """Render an ISO timestamp in local time using the locale's format."""
    if not value:
        return "Unknown"
    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return "Unknown"
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone()
    return parsed.strftime("%c")


def format_tags(tags: Optional[Iterable[Any]]) -> str:
    """Comma-joined tag names, or "None"."""
    names = []
    for tag in tags or []:
        name = tag.get("name") if isinstance(tag, dict) else getattr(tag, "name", None)
        if name:
            names.append(name)
    return ", ".join(names) or "None"


def select_guidance(message: str) -> str:
    """Pick the guide section matching an error message."""
    for keyword, guide_key in VALIDATION_GUIDANCE_RULES:
        if keyword in message:
            return WORKFLOW_COMPOSITION_GUIDE[guide_key]
    return WORKFLOW_COMPOSITION_GUIDE[DEFAULT_GUIDANCE_KEY]


def handle_validation_error(error: Any) -> ToolResponse:
    """Turn a workflow validation error into an error response with guidance."""
    message = getattr(error, "message", None) or "Validation error"
    guidance = select_guidance(message)
    return ToolResponse.text(
        f"Validation error: {message}\n\nHere's some guidance that might help:\n\n{guidance}",
        is_error=True,
    )
