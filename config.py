"""Configuration management for the n8n workflow MCP server.

Loads configuration from environment variables (or a .env file) with
sensible defaults. Secrets are never logged or exposed in responses.
"""

from typing import List, Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """MCP server configuration settings.

    All settings can be overridden via environment variables.
    Prefix: None (uses exact variable names).
    """

    # Server settings
    mcp_log_level: str = Field(default="INFO", description="Logging level")

    # n8n API settings
    n8n_api_url: str = Field(
        default="http://localhost:5678/api/v1",
        description="Base URL of the n8n public REST API"
    )
    n8n_api_key: Optional[str] = Field(
        default=None,
        description="n8n API key sent as X-N8N-API-KEY (never logged)"
    )
    n8n_timeout: int = Field(
        default=30,
        description="Timeout for n8n API requests in seconds"
    )
    n8n_verify_ssl: bool = Field(
        default=True,
        description="Verify SSL certificates of the n8n server"
    )
    n8n_extra_node_types: str = Field(
        default="",
        description="Comma-separated node types to accept in addition to the built-in catalogue"
    )

    # Output settings
    output_verbosity: Literal["concise", "full"] = Field(
        default="concise",
        description="Default tool output verbosity: concise or full"
    )

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",  # Ignore unknown environment variables
    }

    @field_validator("output_verbosity", mode="before")
    @classmethod
    def _normalize_verbosity(cls, value):
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @property
    def extra_node_types(self) -> List[str]:
        """Extra node types as a list, blanks removed."""
        return [t.strip() for t in self.n8n_extra_node_types.split(",") if t.strip()]

    def get_safe_dict(self) -> dict:
        """Return config as dict with secrets masked.

        Use this for logging or debugging - never exposes secrets.
        """
        data = self.model_dump()
        if data.get("n8n_api_key"):
            data["n8n_api_key"] = "***MASKED***"
        return data


# Global settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance.

    Creates the instance on first call, then returns cached version.
    """
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reload_settings() -> Settings:
    """Force reload settings from the environment.

    Useful for testing or after environment changes.
    """
    global _settings
    _settings = None
    return get_settings()
