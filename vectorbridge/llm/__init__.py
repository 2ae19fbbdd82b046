"""Streaming chat module."""

from vectorbridge.llm.client import OpenAICompatibleStreamingClient, StreamingChatClient
from vectorbridge.llm.models import (
    AiMessage,
    ChatResponse,
    FinishReason,
    Message,
    Role,
    TokenUsage,
    ToolExecutionRequest,
)
from vectorbridge.llm.streaming import LambdaStreamingHandler, StreamingChatResponseHandler

__all__ = [
    "AiMessage",
    "ChatResponse",
    "FinishReason",
    "LambdaStreamingHandler",
    "Message",
    "OpenAICompatibleStreamingClient",
    "Role",
    "StreamingChatClient",
    "StreamingChatResponseHandler",
    "TokenUsage",
    "ToolExecutionRequest",
]
