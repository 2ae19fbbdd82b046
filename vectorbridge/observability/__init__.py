"""Observability module for metrics and monitoring."""

from vectorbridge.observability.metrics import (
    get_metrics,
    get_metrics_content_type,
    track_llm_request,
    track_search_matches,
    track_vectorstore_operation,
)

__all__ = [
    "get_metrics",
    "get_metrics_content_type",
    "track_llm_request",
    "track_search_matches",
    "track_vectorstore_operation",
]
