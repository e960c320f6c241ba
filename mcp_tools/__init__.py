"""MCP Tools package.

Contains all tool implementations organized by category.
"""

# Import tool packages to trigger registration
from . import n8n

__all__ = ["n8n"]
