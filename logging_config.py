"""Structured JSON logging configuration for the n8n workflow MCP server.

All log output goes to stderr by default: the MCP stdio transport uses
stdout for JSON-RPC messages. Secrets and workflow payloads are never
included in log output.
"""

import logging
import sys
import time
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pythonjsonlogger import jsonlogger


class MCPJsonFormatter(jsonlogger.JsonFormatter):
    """JSON formatter adding timestamp, level, logger and source fields."""

    def add_fields(
        self,
        log_record: Dict[str, Any],
        record: logging.LogRecord,
        message_dict: Dict[str, Any]
    ) -> None:
        """Add custom fields to log record."""
        super().add_fields(log_record, record, message_dict)

        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["logger"] = record.name
        log_record["source"] = {
            "file": record.filename,
            "line": record.lineno,
            "function": record.funcName,
        }


def setup_logging(level: str = "INFO", use_stderr: bool = True) -> None:
    """Configure structured JSON logging for the server.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        use_stderr: Log to stderr (default). Only pass False outside
            the stdio transport, e.g. in scripts.
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    stream = sys.stderr if use_stderr else sys.stdout
    handler = logging.StreamHandler(stream)
    handler.setFormatter(MCPJsonFormatter(
        fmt="%(timestamp)s %(level)s %(name)s %(message)s"
    ))

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    root_logger.handlers = [handler]

    # Quiet down noisy libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Module logger; handlers come from ``setup_logging``."""
    return logging.getLogger(name)


class ToolInvocationLogger:
    """Emits tool_start / tool_success / tool_failure events for one call.

    Completion events repeat the start context and add ``duration_ms``.
    Keys naming credentials or raw workflow content (``api_key``,
    ``workflow``, ``nodes``, ...) never reach the log record.

    Usage:
        invocation_logger = ToolInvocationLogger(logger).start("get_workflow", workflow_id="42")
        ...
        invocation_logger.success(active=True)
    """

    SENSITIVE_PATTERNS = (
        "secret", "password", "token", "key", "credential",
        "payload", "response_body",
    )
    # Node parameters can embed credentials
    SENSITIVE_KEYS = frozenset({"workflow", "nodes", "parameters"})

    def __init__(self, logger: logging.Logger):
        self.logger = logger
        self.tool_name: Optional[str] = None
        self.context: Dict[str, Any] = {}
        self._started: Optional[float] = None

    def start(self, tool_name: str, **context) -> "ToolInvocationLogger":
        self.tool_name = tool_name
        self.context = self.redact(context)
        self._started = time.monotonic()
        self._emit(logging.INFO, "Tool invocation started", "tool_start")
        return self

    def success(self, **result_info) -> None:
        self._emit(
            logging.INFO, "Tool invocation succeeded", "tool_success",
            duration_ms=self.duration_ms(), **self.redact(result_info),
        )

    def failure(self, error: str, **result_info) -> None:
        """Log a failed call at WARNING.

        Args:
            error: The error text returned to the agent
            **result_info: Extra fields such as ``error_type``
        """
        self._emit(
            logging.WARNING, "Tool invocation failed", "tool_failure",
            duration_ms=self.duration_ms(), error=error, **self.redact(result_info),
        )

    def duration_ms(self) -> int:
        if self._started is None:
            return 0
        return int((time.monotonic() - self._started) * 1000)

    def _emit(self, level: int, message: str, event: str, **fields) -> None:
        extra = {"tool_name": self.tool_name, "event": event, **self.context, **fields}
        self.logger.log(level, message, extra=extra)

    @classmethod
    def redact(cls, values: Dict[str, Any]) -> Dict[str, Any]:
        """Drop keys that may carry secrets or workflow content."""
        return {k: v for k, v in values.items() if not cls.is_sensitive(k)}

    @classmethod
    def is_sensitive(cls, key: str) -> bool:
        lowered = key.lower()
        return lowered in cls.SENSITIVE_KEYS or any(p in lowered for p in cls.SENSITIVE_PATTERNS)
