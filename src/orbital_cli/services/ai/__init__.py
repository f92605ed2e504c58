"""AI provider integration."""

from orbital_cli.services.ai.base import (
    AIResponse,
    ChatMessage,
    ChatModel,
    ToolCall,
    ToolResult,
    Usage,
)
from orbital_cli.services.ai.gemini import GeminiService
from orbital_cli.services.ai.tools import (
    AVAILABLE_TOOLS,
    ToolConfig,
    ToolDefinition,
    default_tool_config,
    enable_tools,
    get_enabled_tool_names,
    get_enabled_tools,
    reset_tools,
)


__all__ = [
    "AIResponse",
    "AVAILABLE_TOOLS",
    "ChatMessage",
    "ChatModel",
    "GeminiService",
    "ToolCall",
    "ToolConfig",
    "ToolDefinition",
    "ToolResult",
    "Usage",
    "default_tool_config",
    "enable_tools",
    "get_enabled_tool_names",
    "get_enabled_tools",
    "reset_tools",
]
