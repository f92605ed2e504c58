"""Google Gemini client using httpx.

Implements the ChatModel protocol against the Gemini REST API. Responses are
streamed over server-sent events and assembled here; only the finished text
is handed back to the caller for persistence.
"""

import contextlib
from types import TracebackType
from typing import Any

import httpx
import orjson
from httpx_sse import EventSource
from pydantic import ValidationError
from structlog import get_logger

from orbital_cli.config.ai import AISettings
from orbital_cli.exceptions import AIServiceError, ConfigValidationError
from orbital_cli.services.ai.base import (
    AIResponse,
    ChatMessage,
    ChunkCallback,
    T,
    ToolCall,
    ToolResult,
    Usage,
)


logger = get_logger(__name__)

# Provider role names; tool output goes back as a user turn
_ROLE_MAP = {
    "user": "user",
    "assistant": "model",
    "model": "model",
    "tool": "user",
}


class GeminiService:
    """AI service for the Gemini generateContent API."""

    def __init__(
        self,
        config: AISettings | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the Gemini client.

        Args:
            config: Provider settings, uses default if not provided
            http_client: Optional shared httpx client

        Raises:
            ConfigValidationError: If no API key is configured
        """
        self.config = config or AISettings()
        if not self.config.api_key:
            raise ConfigValidationError(
                "Google API key is not set. "
                "Set GOOGLE_GENERATIVE_AI_API_KEY or ORBITAL_AI__API_KEY."
            )
        self.model = self.config.model
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            timeout=httpx.Timeout(self.config.request_timeout)
        )

    async def __aenter__(self) -> "GeminiService":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._owns_client:
            await self._client.aclose()

    def _url(self, method: str) -> str:
        return f"{self.config.base_url.rstrip('/')}/models/{self.model}:{method}"

    def _headers(self) -> dict[str, str]:
        return {
            "x-goog-api-key": self.config.api_key or "",
            "Content-Type": "application/json",
        }

    def _convert_messages(
        self, messages: list[ChatMessage]
    ) -> tuple[dict[str, Any] | None, list[dict[str, Any]]]:
        """Convert chat messages to Gemini contents.

        System messages are pulled out into a single system instruction.

        Returns:
            Tuple of (system_instruction, contents)
        """
        system_parts: list[dict[str, str]] = []
        contents: list[dict[str, Any]] = []

        for msg in messages:
            role = msg.role.lower()
            if role == "system":
                system_parts.append({"text": msg.content})
                continue
            contents.append(
                {
                    "role": _ROLE_MAP.get(role, "user"),
                    "parts": [{"text": msg.content}],
                }
            )

        system_instruction = {"parts": system_parts} if system_parts else None
        return system_instruction, contents

    def _build_payload(
        self,
        messages: list[ChatMessage],
        tools: list[dict[str, Any]] | None = None,
    ) -> dict[str, Any]:
        system_instruction, contents = self._convert_messages(messages)
        payload: dict[str, Any] = {"contents": contents}
        if system_instruction:
            payload["systemInstruction"] = system_instruction
        if tools:
            payload["tools"] = tools
        if self.config.temperature is not None:
            payload["generationConfig"] = {"temperature": self.config.temperature}
        return payload

    @staticmethod
    def _raise_for_status(response: httpx.Response) -> None:
        if response.is_success:
            return
        text = response.text
        message = f"HTTP {response.status_code}"
        with contextlib.suppress(orjson.JSONDecodeError):
            body = orjson.loads(text)
            error = body.get("error") if isinstance(body, dict) else None
            if isinstance(error, dict) and error.get("message"):
                message = str(error["message"])
        logger.warning(
            "ai_request_failed",
            status_code=response.status_code,
            error=message,
        )
        raise AIServiceError(
            f"AI request failed: {message}",
            status_code=response.status_code,
            response_text=text,
        )

    async def send_message(
        self,
        messages: list[ChatMessage],
        on_chunk: ChunkCallback | None = None,
        tools: list[dict[str, Any]] | None = None,
    ) -> AIResponse:
        """Stream a completion, calling ``on_chunk`` for each text fragment.

        Raises:
            AIServiceError: On transport failure, an error status, or a blocked prompt
        """
        payload = self._build_payload(messages, tools)
        if tools:
            logger.debug("ai_tools_enabled", tools=[next(iter(t)) for t in tools])

        accumulator = _StreamAccumulator()
        try:
            async with self._client.stream(
                "POST",
                self._url("streamGenerateContent"),
                params={"alt": "sse"},
                json=payload,
                headers=self._headers(),
            ) as response:
                if not response.is_success:
                    await response.aread()
                    self._raise_for_status(response)

                async for sse in EventSource(response).aiter_sse():
                    if not sse.data:
                        continue
                    try:
                        event = orjson.loads(sse.data)
                    except orjson.JSONDecodeError as e:
                        raise AIServiceError(
                            "AI stream returned malformed data"
                        ) from e
                    text = accumulator.feed(event)
                    if text and on_chunk:
                        on_chunk(text)
        except httpx.HTTPError as e:
            logger.warning("ai_request_transport_error", error=str(e))
            raise AIServiceError(f"AI request failed: {e}") from e

        result = accumulator.result()
        logger.debug(
            "ai_response_complete",
            model=self.model,
            finish_reason=result.finish_reason,
            total_tokens=result.usage.total_tokens,
        )
        return result

    async def get_message(
        self,
        messages: list[ChatMessage],
        tools: list[dict[str, Any]] | None = None,
    ) -> str:
        """Return only the assembled text of a response."""
        result = await self.send_message(messages, tools=tools)
        return result.content

    async def generate_object(self, prompt: str, schema: type[T]) -> T:
        """Generate JSON constrained to ``schema`` and validate it.

        Raises:
            AIServiceError: If the call fails or the output does not validate
        """
        payload = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {
                "responseMimeType": "application/json",
                "responseJsonSchema": schema.model_json_schema(),
            },
        }
        if self.config.temperature is not None:
            payload["generationConfig"]["temperature"] = self.config.temperature

        try:
            response = await self._client.post(
                self._url("generateContent"),
                json=payload,
                headers=self._headers(),
            )
        except httpx.HTTPError as e:
            logger.warning("ai_request_transport_error", error=str(e))
            raise AIServiceError(f"AI request failed: {e}") from e

        self._raise_for_status(response)

        accumulator = _StreamAccumulator()
        try:
            accumulator.feed(orjson.loads(response.content))
        except orjson.JSONDecodeError as e:
            raise AIServiceError("AI response was not valid JSON") from e

        text = accumulator.result().content
        try:
            return schema.model_validate_json(text)
        except ValidationError as e:
            logger.warning(
                "ai_object_invalid",
                schema=schema.__name__,
                error_count=e.error_count(),
            )
            raise AIServiceError(
                f"AI response did not match {schema.__name__}: {e.error_count()} error(s)"
            ) from e


class _StreamAccumulator:
    """Folds generateContent response chunks into one AIResponse."""

    def __init__(self) -> None:
        self._text: list[str] = []
        self._finish_reason: str | None = None
        self._usage = Usage()
        self._tool_calls: list[ToolCall] = []
        self._tool_results: list[ToolResult] = []

    def feed(self, event: dict[str, Any]) -> str:
        """Absorb one chunk and return the new text it carried."""
        feedback = event.get("promptFeedback") or {}
        if feedback.get("blockReason"):
            raise AIServiceError(f"Prompt was blocked: {feedback['blockReason']}")

        usage = event.get("usageMetadata")
        if usage:
            self._usage = Usage(
                prompt_tokens=usage.get("promptTokenCount", 0),
                completion_tokens=usage.get("candidatesTokenCount", 0),
                total_tokens=usage.get("totalTokenCount", 0),
            )

        candidates = event.get("candidates") or []
        if not candidates:
            return ""
        candidate = candidates[0]
        if candidate.get("finishReason"):
            self._finish_reason = candidate["finishReason"]

        grounding = candidate.get("groundingMetadata") or {}
        queries = grounding.get("webSearchQueries")
        if queries:
            call = ToolCall(name="google_search", arguments={"queries": list(queries)})
            # Grounding metadata may repeat on every chunk
            if call not in self._tool_calls:
                self._tool_calls.append(call)

        new_text: list[str] = []
        for part in (candidate.get("content") or {}).get("parts") or []:
            if "text" in part and not part.get("thought"):
                new_text.append(part["text"])
            elif "executableCode" in part:
                code = part["executableCode"]
                self._tool_calls.append(
                    ToolCall(
                        name="code_execution",
                        arguments={
                            "language": code.get("language", "PYTHON"),
                            "code": code.get("code", ""),
                        },
                    )
                )
            elif "codeExecutionResult" in part:
                outcome = part["codeExecutionResult"]
                self._tool_results.append(
                    ToolResult(
                        name="code_execution",
                        output=outcome.get("output", ""),
                        outcome=outcome.get("outcome"),
                    )
                )

        chunk = "".join(new_text)
        if chunk:
            self._text.append(chunk)
        return chunk

    def result(self) -> AIResponse:
        return AIResponse(
            content="".join(self._text),
            finish_reason=self._finish_reason,
            usage=self._usage,
            tool_calls=list(self._tool_calls),
            tool_results=list(self._tool_results),
        )
