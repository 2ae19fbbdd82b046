"""Prometheus metrics for vectorbridge.

Provides metrics instrumentation for:
- Vector store provider requests (latency, counts by status)
- Search match counts
- Streaming LLM requests (latency, tokens, partial responses)
"""

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    Counter,
    Histogram,
    generate_latest,
)

# Vector Store Metrics
VECTORSTORE_OPERATION_DURATION = Histogram(
    "vectorstore_operation_duration_seconds",
    "Vector store operation duration",
    ["operation", "status"],
    buckets=[0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0],
)

VECTORSTORE_OPERATION_TOTAL = Counter(
    "vectorstore_operations_total",
    "Total vector store operations",
    ["operation", "status"],
)

VECTORSTORE_SEARCH_MATCHES = Histogram(
    "vectorstore_search_matches_returned",
    "Number of matches returned per search after score filtering",
    buckets=[0, 1, 2, 3, 5, 10, 20, 50, 100],
)

# LLM Metrics
LLM_REQUEST_DURATION = Histogram(
    "llm_request_duration_seconds",
    "LLM request duration in seconds",
    ["model", "status"],
    buckets=[0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0, 120.0],
)

LLM_TOKENS_TOTAL = Counter(
    "llm_tokens_total",
    "Total LLM tokens used",
    ["model", "type"],  # "type" label values: prompt, completion
)

LLM_REQUEST_TOTAL = Counter(
    "llm_requests_total",
    "Total LLM requests",
    ["model", "status"],
)

LLM_STREAM_PARTIALS_TOTAL = Counter(
    "llm_stream_partials_total",
    "Total partial responses delivered to streaming handlers",
    ["model"],
)


def get_metrics() -> bytes:
    """Generate Prometheus metrics output."""
    return generate_latest()


def get_metrics_content_type() -> str:
    """Get the content type for metrics exposition."""
    return CONTENT_TYPE_LATEST


def track_vectorstore_operation(
    operation: str,
    duration: float,
    success: bool = True,
) -> None:
    """Track a vector store provider request.

    Args:
        operation: Provider operation name, e.g. ``search``.
        duration: Request duration in seconds.
        success: Whether the request succeeded.
    """
    status = "success" if success else "error"

    VECTORSTORE_OPERATION_DURATION.labels(operation=operation, status=status).observe(duration)
    VECTORSTORE_OPERATION_TOTAL.labels(operation=operation, status=status).inc()


def track_search_matches(matches_returned: int) -> None:
    """Track the number of matches a search returned."""
    VECTORSTORE_SEARCH_MATCHES.observe(matches_returned)


def track_llm_request(
    model: str,
    duration: float,
    prompt_tokens: int,
    completion_tokens: int,
    partial_responses: int = 0,
    success: bool = True,
) -> None:
    """Track streaming LLM request metrics.

    Args:
        model: LLM model name.
        duration: Request duration in seconds.
        prompt_tokens: Number of prompt tokens.
        completion_tokens: Number of completion tokens.
        partial_responses: Partial responses delivered to the handler.
        success: Whether the request succeeded.
    """
    status = "success" if success else "error"

    LLM_REQUEST_DURATION.labels(model=model, status=status).observe(duration)
    LLM_REQUEST_TOTAL.labels(model=model, status=status).inc()
    LLM_STREAM_PARTIALS_TOTAL.labels(model=model).inc(partial_responses)

    if success:
        LLM_TOKENS_TOTAL.labels(model=model, type="prompt").inc(prompt_tokens)
        LLM_TOKENS_TOTAL.labels(model=model, type="completion").inc(completion_tokens)
