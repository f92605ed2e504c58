"""AI service protocol and data types."""

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Protocol, TypeVar

from pydantic import BaseModel


T = TypeVar("T", bound=BaseModel)

ChunkCallback = Callable[[str], None]


@dataclass
class ChatMessage:
    """A message in the conversation."""

    role: str  # "system", "user", "assistant", "tool"
    content: str


@dataclass
class Usage:
    """Token accounting reported by the provider."""

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


@dataclass
class ToolCall:
    """A built-in tool invocation reported by the provider."""

    name: str
    arguments: dict[str, Any] = field(default_factory=dict)


@dataclass
class ToolResult:
    """Output of a built-in tool invocation."""

    name: str
    output: str
    outcome: str | None = None


@dataclass
class AIResponse:
    """Assembled response of one model call."""

    content: str
    finish_reason: str | None = None
    usage: Usage = field(default_factory=Usage)
    tool_calls: list[ToolCall] = field(default_factory=list)
    tool_results: list[ToolResult] = field(default_factory=list)


class ChatModel(Protocol):
    """Protocol for AI service implementations."""

    async def send_message(
        self,
        messages: list[ChatMessage],
        on_chunk: ChunkCallback | None = None,
        tools: list[dict[str, Any]] | None = None,
    ) -> AIResponse:
        """Stream a response, passing each text chunk to ``on_chunk``.

        Args:
            messages: Conversation history, oldest first
            on_chunk: Called with each text fragment as it arrives
            tools: Provider tool payloads to enable for this call

        Returns:
            AIResponse with the assembled content
        """
        ...

    async def get_message(
        self,
        messages: list[ChatMessage],
        tools: list[dict[str, Any]] | None = None,
    ) -> str:
        """Return only the assembled text of a response."""
        ...

    async def generate_object(self, prompt: str, schema: type[T]) -> T:
        """Generate a structured object validated against ``schema``."""
        ...
