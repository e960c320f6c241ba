"""Node type validation for workflow definitions.

Checks every node's ``type`` against a catalogue of known n8n node types
and suggests the closest known type for the ones it does not recognize.
"""

import difflib
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

from config import get_settings
from logging_config import get_logger

logger = get_logger(__name__)


BASE_PREFIX = "n8n-nodes-base."
LANGCHAIN_PREFIX = "@n8n/n8n-nodes-langchain."

BASE_NODE_TYPES = (
    # Triggers
    "manualTrigger", "scheduleTrigger", "cron", "interval", "start",
    "webhook", "formTrigger", "errorTrigger", "executeWorkflowTrigger",
    "emailReadImap", "localFileTrigger", "n8nTrigger", "rssFeedReadTrigger",
    "githubTrigger", "gitlabTrigger", "slackTrigger", "telegramTrigger",
    "gmailTrigger", "googleSheetsTrigger", "googleDriveTrigger",
    "googleCalendarTrigger", "airtableTrigger", "notionTrigger",
    "stripeTrigger", "jiraTrigger", "trelloTrigger", "postgresTrigger",
    "microsoftOutlookTrigger", "hubspotTrigger",
    # Data transformation
    "set", "code", "function", "functionItem", "itemLists", "splitOut",
    "aggregate", "summarize", "merge", "removeDuplicates", "sort", "limit",
    "renameKeys", "dateTime", "crypto", "html", "xml", "markdown",
    "compareDatasets", "convertToFile", "extractFromFile", "editImage",
    "spreadsheetFile", "moveBinaryData", "readBinaryFile", "writeBinaryFile",
    "readWriteFile", "compression",
    # Flow control
    "if", "switch", "filter", "splitInBatches", "wait", "noOp",
    "executeWorkflow", "stopAndError", "executeCommand", "n8n",
    # HTTP
    "httpRequest", "respondToWebhook", "graphql", "ftp", "ssh", "rssFeedRead",
    # Databases and storage
    "postgres", "mySql", "microsoftSql", "mongoDb", "redis", "elasticsearch",
    "supabase", "googleSheets", "googleDrive", "airtable", "notion",
    "baserow", "nocoDb", "awsS3", "s3", "snowflake",
    # Communication
    "slack", "gmail", "emailSend", "telegram", "discord", "microsoftTeams",
    "mattermost", "twilio", "sendGrid", "mailchimp", "whatsApp",
    "microsoftOutlook", "googleCalendar", "matrix",
    # Productivity and dev tools
    "github", "gitlab", "git", "jira", "trello", "asana", "clickUp",
    "todoist", "hubspot", "salesforce", "pipedrive", "stripe", "shopify",
    "wooCommerce", "zendesk", "openAi",
)

LANGCHAIN_NODE_TYPES = (
    "agent", "chainLlm", "chainRetrievalQa", "chainSummarization",
    "lmChatOpenAi", "lmChatAnthropic", "lmChatOllama", "lmChatGoogleGemini",
    "lmOpenAi", "embeddingsOpenAi", "memoryBufferWindow", "outputParserStructured",
    "toolCode", "toolHttpRequest", "toolWorkflow", "vectorStoreInMemory",
    "vectorStorePinecone", "vectorStoreQdrant", "documentDefaultDataLoader",
    "textSplitterRecursiveCharacterTextSplitter", "chatTrigger", "openAi",
)


@dataclass
class InvalidNodeReport:
    """A node whose type is not a known n8n node type."""
    node_type: str
    suggestion: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {"node_type": self.node_type, "suggestion": self.suggestion}


class NodeValidator:
    """Validates workflow node types against the known node catalogue.

    Usage:
        invalid = await get_node_validator().validate_workflow_nodes(nodes)
    """

    def __init__(self, known_types: Optional[Iterable[str]] = None):
        """Initialize the validator.

        Args:
            known_types: Full node type identifiers to accept. Defaults to
                the built-in catalogue plus ``n8n_extra_node_types``.
        """
        if known_types is None:
            known_types = self.default_node_types()
        self.known_types = frozenset(known_types)

        # Lower-cased full and short names, both mapping to the full type
        self._lookup: Dict[str, str] = {}
        for node_type in sorted(self.known_types):
            self._lookup.setdefault(node_type.lower(), node_type)
            self._lookup.setdefault(self._short_name(node_type).lower(), node_type)

    @staticmethod
    def default_node_types() -> List[str]:
        """Built-in catalogue plus configured extra types."""
        types = [BASE_PREFIX + name for name in BASE_NODE_TYPES]
        types.extend(LANGCHAIN_PREFIX + name for name in LANGCHAIN_NODE_TYPES)
        types.extend(get_settings().extra_node_types)
        return types

    @staticmethod
    def _short_name(node_type: str) -> str:
        return node_type.rsplit(".", 1)[-1]

    def is_known(self, node_type: str) -> bool:
        """Check if a node type is in the catalogue."""
        return node_type in self.known_types

    def suggest(self, node_type: str) -> Optional[str]:
        """Find the known node type closest to ``node_type``.

        Returns:
            A full node type identifier, or None if nothing is similar enough
        """
        if not node_type:
            return None

        candidate = node_type.lower()
        if candidate in self._lookup:
            return self._lookup[candidate]

        short = self._short_name(candidate)
        if short in self._lookup:
            return self._lookup[short]

        matches = difflib.get_close_matches(candidate, list(self._lookup), n=1, cutoff=0.6)
        if not matches and short != candidate:
            matches = difflib.get_close_matches(short, list(self._lookup), n=1, cutoff=0.6)
        return self._lookup[matches[0]] if matches else None

    async def validate_workflow_nodes(self, nodes: Iterable[Any]) -> List[InvalidNodeReport]:
        """Report every node whose type is unknown, in input order.

        Args:
            nodes: Node models (with a ``type`` attribute) or mappings

        Returns:
            One report per invalid node; empty if all node types are known
        """
        invalid = []
        for node in nodes:
            node_type = node.get("type") if isinstance(node, dict) else getattr(node, "type", None)
            node_type = node_type or ""
            if self.is_known(node_type):
                continue
            invalid.append(InvalidNodeReport(
                node_type=node_type,
                suggestion=self.suggest(node_type),
            ))

        if invalid:
            logger.info(
                "Workflow contains unknown node types",
                extra={"invalid_node_types": [report.node_type for report in invalid]}
            )
        return invalid


# Global validator instance
_node_validator: Optional[NodeValidator] = None


def get_node_validator() -> NodeValidator:
    """Get the global node validator.

    Creates the instance on first call.
    """
    global _node_validator
    if _node_validator is None:
        _node_validator = NodeValidator()
    return _node_validator


def reset_node_validator() -> None:
    """Drop the cached validator so the next call picks up new settings."""
    global _node_validator
    _node_validator = None
