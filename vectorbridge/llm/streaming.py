"""Streaming chat response handler contract.

A streaming client calls ``on_partial_response`` zero or more times, then
exactly one of ``on_complete_response`` or ``on_error``. Nothing is called
after the terminal callback. Responses that end in tool execution requests
produce no partial responses.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable

from vectorbridge.llm.models import ChatResponse
from vectorbridge.logging_config import get_logger

logger = get_logger(__name__)


class StreamingChatResponseHandler(ABC):
    """Receives the events of one streaming chat session."""

    @abstractmethod
    def on_partial_response(self, partial_response: str) -> None:
        """Called for each text fragment (usually a single token) of a textual answer.

        Not called at all when the model requests tool execution instead.

        Args:
            partial_response: The next fragment of the answer.
        """
        ...

    @abstractmethod
    def on_complete_response(self, complete_response: ChatResponse) -> None:
        """Called once when the model has finished streaming.

        For textual answers the message text is the concatenation of every
        partial response. Tool calls are available through
        ``complete_response.ai_message.tool_execution_requests``.

        Args:
            complete_response: The complete response.
        """
        ...

    @abstractmethod
    def on_error(self, error: Exception) -> None:
        """Called once, instead of ``on_complete_response``, when streaming fails.

        Args:
            error: The error that occurred.
        """
        ...


def _log_error(error: Exception) -> None:
    logger.error(f"Streaming chat failed: {error}")


class LambdaStreamingHandler(StreamingChatResponseHandler):
    """Handler built from plain callables."""

    def __init__(
        self,
        on_partial_response: Callable[[str], None],
        on_complete_response: Callable[[ChatResponse], None] | None = None,
        on_error: Callable[[Exception], None] | None = None,
    ) -> None:
        """Initialize the handler.

        Args:
            on_partial_response: Receives each text fragment.
            on_complete_response: Receives the complete response; ignored when None.
            on_error: Receives the error; logged when None.
        """
        self._on_partial_response = on_partial_response
        self._on_complete_response = on_complete_response
        self._on_error = on_error or _log_error

    def on_partial_response(self, partial_response: str) -> None:
        self._on_partial_response(partial_response)

    def on_complete_response(self, complete_response: ChatResponse) -> None:
        if self._on_complete_response is not None:
            self._on_complete_response(complete_response)

    def on_error(self, error: Exception) -> None:
        self._on_error(error)
