"""Provider built-in tools and the explicit enabled-tool configuration.

A ToolConfig is immutable; enabling or resetting tools returns a new one.
"""

import copy
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class ToolDefinition:
    """A provider tool the operator can switch on."""

    id: str
    name: str
    description: str
    payload: dict[str, Any] = field(default_factory=dict)


AVAILABLE_TOOLS: tuple[ToolDefinition, ...] = (
    ToolDefinition(
        id="google_search",
        name="Google Search",
        description="Search the web for current information",
        payload={"google_search": {}},
    ),
    ToolDefinition(
        id="code_execution",
        name="Code Execution",
        description="Generate and run Python code for calculations and data work",
        payload={"code_execution": {}},
    ),
    ToolDefinition(
        id="url_context",
        name="URL Context",
        description="Read and analyse the content of URLs in the prompt",
        payload={"url_context": {}},
    ),
)


@dataclass(frozen=True)
class ToolConfig:
    """Available tools and the ids currently enabled."""

    available: tuple[ToolDefinition, ...] = AVAILABLE_TOOLS
    enabled: frozenset[str] = frozenset()

    def get(self, tool_id: str) -> ToolDefinition | None:
        for tool in self.available:
            if tool.id == tool_id:
                return tool
        return None


def default_tool_config() -> ToolConfig:
    """Configuration with every known tool available and none enabled."""
    return ToolConfig()


def enable_tools(config: ToolConfig, tool_ids: list[str] | tuple[str, ...]) -> ToolConfig:
    """Return a config with exactly the given known tools enabled.

    Unknown ids are ignored.
    """
    known = {tool.id for tool in config.available}
    return ToolConfig(
        available=config.available,
        enabled=frozenset(tool_id for tool_id in tool_ids if tool_id in known),
    )


def reset_tools(config: ToolConfig) -> ToolConfig:
    """Return a config with nothing enabled."""
    return ToolConfig(available=config.available, enabled=frozenset())


def _enabled(config: ToolConfig) -> list[ToolDefinition]:
    return [tool for tool in config.available if tool.id in config.enabled]


def get_enabled_tools(config: ToolConfig) -> list[dict[str, Any]]:
    """Provider payloads of the enabled tools, in availability order."""
    return [copy.deepcopy(tool.payload) for tool in _enabled(config)]


def get_enabled_tool_names(config: ToolConfig) -> list[str]:
    """Display names of the enabled tools, in availability order."""
    return [tool.name for tool in _enabled(config)]
