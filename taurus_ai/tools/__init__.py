"""Hedera tool catalog, validation and execution."""

from .catalog import ENTITY_ID_PATTERN, TOOL_CATALOG, ToolDefinition, get_tool, list_tools
from .executor import HederaToolExecutor, ToolResult, UnknownToolError
from .validators import ToolValidationError, is_valid_entity_id, validate_arguments

__all__ = [
    "ENTITY_ID_PATTERN",
    "TOOL_CATALOG",
    "ToolDefinition",
    "get_tool",
    "list_tools",
    "HederaToolExecutor",
    "ToolResult",
    "UnknownToolError",
    "ToolValidationError",
    "is_valid_entity_id",
    "validate_arguments",
]
