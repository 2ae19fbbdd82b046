"""LLM data models."""

from enum import Enum

from pydantic import BaseModel, Field


class Role(str, Enum):
    """Message role in a conversation."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class Message(BaseModel):
    """A message in a conversation.

    Attributes:
        role: The role of the message sender.
        content: The message content.
    """

    role: Role = Field(description="Message role")
    content: str = Field(description="Message content")


class ToolExecutionRequest(BaseModel):
    """A tool call requested by the model.

    Attributes:
        id: Provider-assigned call identifier.
        name: Name of the tool to execute.
        arguments: Tool arguments as a JSON string.
    """

    id: str | None = Field(default=None, description="Tool call identifier")
    name: str = Field(description="Tool name")
    arguments: str = Field(default="", description="JSON-encoded arguments")


class AiMessage(BaseModel):
    """The model's answer: text, tool execution requests, or both."""

    text: str | None = Field(default=None, description="Answer text")
    tool_execution_requests: list[ToolExecutionRequest] = Field(
        default_factory=list,
        description="Requested tool calls",
    )

    def has_tool_execution_requests(self) -> bool:
        return bool(self.tool_execution_requests)


class TokenUsage(BaseModel):
    """Token counts reported by the provider."""

    input_token_count: int = Field(default=0, description="Prompt token count")
    output_token_count: int = Field(default=0, description="Completion token count")
    total_token_count: int = Field(default=0, description="Total token count")


class FinishReason(str, Enum):
    """Why the model stopped generating."""

    STOP = "stop"
    LENGTH = "length"
    TOOL_EXECUTION = "tool_execution"
    CONTENT_FILTER = "content_filter"
    OTHER = "other"

    @classmethod
    def from_provider(cls, value: str | None) -> "FinishReason | None":
        """Map an OpenAI-style ``finish_reason`` string."""
        if value is None:
            return None
        mapping = {
            "stop": cls.STOP,
            "length": cls.LENGTH,
            "tool_calls": cls.TOOL_EXECUTION,
            "function_call": cls.TOOL_EXECUTION,
            "content_filter": cls.CONTENT_FILTER,
        }
        return mapping.get(value, cls.OTHER)


class ChatResponse(BaseModel):
    """A complete chat response.

    Attributes:
        ai_message: The aggregated answer.
        model: Model that produced the answer.
        token_usage: Token counts, when reported.
        finish_reason: Why generation stopped, when reported.
    """

    ai_message: AiMessage = Field(description="Aggregated answer")
    model: str | None = Field(default=None, description="Model used")
    token_usage: TokenUsage | None = Field(default=None, description="Token usage")
    finish_reason: FinishReason | None = Field(default=None, description="Finish reason")
