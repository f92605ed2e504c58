"""Chat session loop: one turn at a time, both sides persisted."""

from dataclasses import dataclass
from pathlib import Path

from structlog import get_logger

from orbital_cli.db.models import ConversationRead, MessageRead, MessageRole
from orbital_cli.exceptions import AgentError, AIServiceError
from orbital_cli.services.agent import (
    GeneratedApplication,
    describe_application,
    generate_application,
)
from orbital_cli.services.ai.base import AIResponse, ChatModel, ChunkCallback
from orbital_cli.services.ai.tools import (
    ToolConfig,
    default_tool_config,
    get_enabled_tools,
)
from orbital_cli.services.chat_service import (
    ChatService,
    default_title,
    derive_title,
    serialize_content,
)


logger = get_logger(__name__)

EXIT_COMMAND = "exit"


def is_exit_command(text: str) -> bool:
    """``exit`` in any case ends the session."""
    return text.strip().lower() == EXIT_COMMAND


@dataclass
class AgentTurnResult:
    """Outcome of an agent-mode turn; ``error`` is set when generation failed."""

    message: str
    application: GeneratedApplication | None = None
    error: str | None = None


class ChatSession:
    """Runs turns against one conversation."""

    def __init__(
        self,
        chat_service: ChatService,
        ai: ChatModel,
        tool_config: ToolConfig | None = None,
    ) -> None:
        self.chat_service = chat_service
        self.ai = ai
        self.tool_config = tool_config or default_tool_config()

    async def run_turn(
        self,
        conversation: ConversationRead,
        user_input: str,
        on_chunk: ChunkCallback | None = None,
    ) -> AIResponse:
        """Store the input, ask the model, store the reply.

        If the model call fails the user message stays stored, no assistant
        message is written and the AIServiceError propagates.
        """
        await self.chat_service.add_message(conversation.id, MessageRole.USER, user_input)

        history = await self.chat_service.list_messages(conversation.id)
        messages = self.chat_service.format_for_ai(history)
        tools = get_enabled_tools(self.tool_config) or None

        try:
            response = await self.ai.send_message(messages, on_chunk=on_chunk, tools=tools)
        except AIServiceError:
            logger.warning("chat_turn_failed", conversation_id=conversation.id)
            raise

        await self.chat_service.add_message(
            conversation.id, MessageRole.ASSISTANT, response.content
        )
        await self._maybe_set_title(conversation, history)
        return response

    async def run_agent_turn(
        self,
        conversation: ConversationRead,
        description: str,
        cwd: Path | None = None,
    ) -> AgentTurnResult:
        """Generate an application; failures are recorded as the reply."""
        await self.chat_service.add_message(conversation.id, MessageRole.USER, description)
        await self._maybe_set_title(
            conversation, await self.chat_service.list_messages(conversation.id)
        )

        try:
            app = await generate_application(description, self.ai, cwd)
        except (AgentError, AIServiceError) as e:
            logger.warning("agent_turn_failed", conversation_id=conversation.id, error=e.message)
            reply = f"Error: {e.message}"
            await self.chat_service.add_message(
                conversation.id, MessageRole.ASSISTANT, reply
            )
            return AgentTurnResult(message=reply, error=e.message)

        reply = describe_application(app)
        await self.chat_service.add_message(conversation.id, MessageRole.ASSISTANT, reply)
        return AgentTurnResult(message=reply, application=app)

    async def _maybe_set_title(
        self, conversation: ConversationRead, history: list[MessageRead]
    ) -> None:
        """Title a conversation from its first user message, exactly once."""
        if conversation.title != default_title(conversation.mode):
            return
        first = next((m for m in history if m.role == MessageRole.USER), None)
        if first is None:
            return
        title = derive_title(serialize_content(first.content))
        await self.chat_service.update_title(conversation.id, title)
        conversation.title = title
        logger.debug("conversation_titled", conversation_id=conversation.id)
