"""Application exception hierarchy.

All custom exceptions inherit from VectorBridgeError.
Each exception has an error code for structured error handling.
"""

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Error codes for structured error handling."""

    # General errors (1xxx)
    INTERNAL_ERROR = "VBR-1000"
    CONFIGURATION_ERROR = "VBR-1001"

    # Validation errors (2xxx)
    VALIDATION_ERROR = "VBR-2000"
    MISSING_REQUIRED_ARGUMENT = "VBR-2001"

    # Embedding errors (3xxx)
    EMBEDDING_ERROR = "VBR-3000"
    EMBEDDING_DIMENSION_MISMATCH = "VBR-3001"

    # Vector store errors (4xxx)
    VECTOR_STORE_ERROR = "VBR-4000"
    PROVIDER_REQUEST_FAILED = "VBR-4001"
    INVALID_FILTER = "VBR-4002"

    # LLM errors (5xxx)
    LLM_SERVICE_ERROR = "VBR-5000"
    LLM_TIMEOUT = "VBR-5001"
    LLM_RATE_LIMIT = "VBR-5002"
    LLM_STREAM_ERROR = "VBR-5003"


class VectorBridgeError(Exception):
    """Base exception for all vectorbridge errors.

    Attributes:
        message: Human-readable error message.
        code: Structured error code.
        details: Additional error context.
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to a serialisable dictionary."""
        return {
            "error": {
                "code": self.code.value,
                "message": self.message,
                "details": self.details,
            }
        }


class ConfigurationError(VectorBridgeError):
    """Configuration or environment error."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, ErrorCode.CONFIGURATION_ERROR, details)


class ValidationError(VectorBridgeError):
    """Input validation error."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.VALIDATION_ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code, details)


class MissingRequiredArgumentError(ValidationError):
    """A required argument was not supplied.

    Attributes:
        argument: Name of the missing argument.
    """

    def __init__(self, argument: str) -> None:
        self.argument = argument
        super().__init__(
            f"{argument} cannot be null",
            code=ErrorCode.MISSING_REQUIRED_ARGUMENT,
            details={"argument": argument},
        )


class EmbeddingError(VectorBridgeError):
    """Embedding shape or content error."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.EMBEDDING_ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code, details)


class VectorStoreError(VectorBridgeError):
    """Vector store operation error."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.VECTOR_STORE_ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code, details)


class ProviderRequestError(VectorStoreError):
    """A request to the vector database failed.

    Raised when the provider returned no response or a non-success status.
    The provider's own exception, when available, is chained as ``__cause__``.

    Attributes:
        status: Provider status code, or None when no response was received.
    """

    def __init__(
        self,
        message: str,
        status: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.status = status
        super().__init__(
            message,
            code=ErrorCode.PROVIDER_REQUEST_FAILED,
            details={"status": status, **(details or {})},
        )


class LLMError(VectorBridgeError):
    """LLM service error."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.LLM_SERVICE_ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code, details)
