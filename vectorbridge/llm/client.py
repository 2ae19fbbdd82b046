"""Streaming chat client interface and implementations."""

import json
import time
from abc import ABC, abstractmethod
from typing import Any

import httpx

from vectorbridge.config import LLMSettings, get_settings
from vectorbridge.exceptions import ErrorCode, LLMError
from vectorbridge.llm.models import (
    AiMessage,
    ChatResponse,
    FinishReason,
    Message,
    TokenUsage,
    ToolExecutionRequest,
)
from vectorbridge.llm.streaming import StreamingChatResponseHandler
from vectorbridge.logging_config import get_logger
from vectorbridge.observability.metrics import track_llm_request

logger = get_logger(__name__)

SSE_DATA_PREFIX = "data:"
SSE_DONE = "[DONE]"


class StreamingChatClient(ABC):
    """Abstract base class for streaming chat clients.

    Implementations deliver every outcome through the handler and never
    raise from ``chat``.
    """

    @abstractmethod
    async def chat(
        self,
        messages: list[Message],
        handler: StreamingChatResponseHandler,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> None:
        """Stream a chat completion into the handler.

        Args:
            messages: Conversation messages.
            handler: Receives partial responses, then the complete response or the error.
            temperature: Sampling temperature override.
            max_tokens: Maximum tokens override.
        """
        ...

    @property
    @abstractmethod
    def model_name(self) -> str:
        """Get the model name."""
        ...


class _ResponseAccumulator:
    """Aggregates the chunks of one stream into a ChatResponse."""

    def __init__(self, model: str) -> None:
        self.model = model
        self.text_parts: list[str] = []
        self.tool_calls: dict[int, dict[str, Any]] = {}
        self.finish_reason: FinishReason | None = None
        self.token_usage: TokenUsage | None = None

    def add_tool_call_delta(self, delta: dict[str, Any]) -> None:
        call = self.tool_calls.setdefault(
            delta.get("index", 0),
            {"id": None, "name": "", "arguments": []},
        )
        if delta.get("id"):
            call["id"] = delta["id"]
        function = delta.get("function") or {}
        if function.get("name"):
            call["name"] += function["name"]
        if function.get("arguments"):
            call["arguments"].append(function["arguments"])

    def build(self) -> ChatResponse:
        requests = [
            ToolExecutionRequest(
                id=call["id"],
                name=call["name"],
                arguments="".join(call["arguments"]),
            )
            for _, call in sorted(self.tool_calls.items())
        ]
        return ChatResponse(
            ai_message=AiMessage(
                text="".join(self.text_parts) if self.text_parts else None,
                tool_execution_requests=requests,
            ),
            model=self.model,
            token_usage=self.token_usage,
            finish_reason=self.finish_reason,
        )


class OpenAICompatibleStreamingClient(StreamingChatClient):
    """Streaming chat client for OpenAI-compatible APIs.

    Works with:
    - Ollama (localhost:11434/v1)
    - vLLM
    - OpenAI API
    - Any OpenAI-compatible endpoint serving server-sent events
    """

    def __init__(
        self,
        settings: LLMSettings | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the streaming client.

        Args:
            settings: LLM configuration.
            client: HTTP client (for testing).
        """
        self._settings = settings or get_settings().llm
        self._client = client
        self._owns_client = client is None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self._settings.timeout,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    @property
    def model_name(self) -> str:
        """Get the model name."""
        return self._settings.model

    async def chat(
        self,
        messages: list[Message],
        handler: StreamingChatResponseHandler,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> None:
        """Stream a chat completion into the handler."""
        start_time = time.perf_counter()
        accumulator = _ResponseAccumulator(model=self._settings.model)

        try:
            await self._stream(messages, handler, accumulator, temperature, max_tokens)
        except LLMError as e:
            track_llm_request(
                model=self._settings.model,
                duration=time.perf_counter() - start_time,
                prompt_tokens=0,
                completion_tokens=0,
                partial_responses=len(accumulator.text_parts),
                success=False,
            )
            handler.on_error(e)
            return

        response = accumulator.build()
        usage = response.token_usage or TokenUsage()
        track_llm_request(
            model=self._settings.model,
            duration=time.perf_counter() - start_time,
            prompt_tokens=usage.input_token_count,
            completion_tokens=usage.output_token_count,
            partial_responses=len(accumulator.text_parts),
            success=True,
        )
        handler.on_complete_response(response)

    async def _stream(
        self,
        messages: list[Message],
        handler: StreamingChatResponseHandler,
        accumulator: _ResponseAccumulator,
        temperature: float | None,
        max_tokens: int | None,
    ) -> None:
        client = await self._get_client()
        url = f"{self._settings.base_url}/chat/completions"

        payload = {
            "model": self._settings.model,
            "messages": [
                {"role": msg.role.value, "content": msg.content} for msg in messages
            ],
            "temperature": (
                temperature if temperature is not None else self._settings.temperature
            ),
            "max_tokens": max_tokens if max_tokens is not None else self._settings.max_tokens,
            "stream": True,
            "stream_options": {"include_usage": True},
        }

        headers = {"Accept": "text/event-stream"}
        if self._settings.api_key:
            api_key = self._settings.api_key.get_secret_value()
            if api_key != "not-required":
                headers["Authorization"] = f"Bearer {api_key}"

        try:
            async with client.stream("POST", url, json=payload, headers=headers) as response:
                response.raise_for_status()
                async for line in response.aiter_lines():
                    data = self._parse_event_data(line)
                    if data is None:
                        continue
                    if data == SSE_DONE:
                        break
                    self._consume_chunk(self._decode_chunk(data), handler, accumulator)

        except httpx.TimeoutException as e:
            logger.error(f"LLM stream timed out: {e}", extra={"model": self._settings.model})
            raise LLMError(
                "LLM request timed out",
                code=ErrorCode.LLM_TIMEOUT,
                details={"timeout": self._settings.timeout},
            ) from e

        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.error(
                f"LLM stream request failed: {status}",
                extra={"model": self._settings.model, "status": status},
            )

            if status == 429:
                raise LLMError(
                    "Rate limit exceeded",
                    code=ErrorCode.LLM_RATE_LIMIT,
                    details={"status_code": status},
                ) from e

            raise LLMError(
                f"LLM service returned {status}",
                code=ErrorCode.LLM_SERVICE_ERROR,
                details={"status_code": status},
            ) from e

        except httpx.RequestError as e:
            logger.error(f"LLM connection error: {e}")
            raise LLMError(
                f"Failed to connect to LLM service: {e}",
                code=ErrorCode.LLM_SERVICE_ERROR,
                details={"url": url},
            ) from e

        except (KeyError, IndexError, TypeError, AttributeError, ValueError) as e:
            raise LLMError(
                f"Invalid stream chunk from LLM: {e}",
                code=ErrorCode.LLM_STREAM_ERROR,
                details={"error": str(e)},
            ) from e

    @staticmethod
    def _parse_event_data(line: str) -> str | None:
        """Extract the payload of an SSE ``data:`` line, ignoring other lines."""
        if not line.startswith(SSE_DATA_PREFIX):
            return None
        data = line[len(SSE_DATA_PREFIX):].strip()
        return data or None

    @staticmethod
    def _decode_chunk(data: str) -> dict[str, Any]:
        try:
            chunk = json.loads(data)
        except json.JSONDecodeError as e:
            raise LLMError(
                f"Invalid stream chunk from LLM: {e}",
                code=ErrorCode.LLM_STREAM_ERROR,
                details={"chunk": data[:200]},
            ) from e
        if not isinstance(chunk, dict):
            raise LLMError(
                "Invalid stream chunk from LLM: expected an object",
                code=ErrorCode.LLM_STREAM_ERROR,
                details={"chunk": data[:200]},
            )
        if "error" in chunk:
            raise LLMError(
                f"LLM stream reported an error: {chunk['error']}",
                code=ErrorCode.LLM_STREAM_ERROR,
                details={"error": chunk["error"]},
            )
        return chunk

    @staticmethod
    def _consume_chunk(
        chunk: dict[str, Any],
        handler: StreamingChatResponseHandler,
        accumulator: _ResponseAccumulator,
    ) -> None:
        if chunk.get("model"):
            accumulator.model = chunk["model"]

        usage = chunk.get("usage")
        if usage:
            accumulator.token_usage = TokenUsage(
                input_token_count=usage.get("prompt_tokens") or 0,
                output_token_count=usage.get("completion_tokens") or 0,
                total_token_count=usage.get("total_tokens") or 0,
            )

        choices = chunk.get("choices") or []
        if not choices:
            return

        choice = choices[0]
        delta = choice.get("delta") or {}

        for tool_call in delta.get("tool_calls") or []:
            accumulator.add_tool_call_delta(tool_call)

        content = delta.get("content")
        if content:
            accumulator.text_parts.append(content)
            try:
                handler.on_partial_response(content)
            except Exception as e:
                raise LLMError(
                    f"Streaming handler failed on partial response: {e}",
                    code=ErrorCode.LLM_STREAM_ERROR,
                ) from e

        if choice.get("finish_reason"):
            accumulator.finish_reason = FinishReason.from_provider(choice["finish_reason"])
