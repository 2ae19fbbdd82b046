"""Tests for observability module."""

from vectorbridge.observability.metrics import (
    get_metrics,
    get_metrics_content_type,
    track_llm_request,
    track_search_matches,
    track_vectorstore_operation,
)


class TestMetricsFunctions:
    """Tests for metrics tracking functions."""

    def test_get_metrics_returns_bytes(self) -> None:
        """get_metrics returns bytes."""
        metrics = get_metrics()
        assert isinstance(metrics, bytes)

    def test_content_type_is_prometheus_text(self) -> None:
        """Exposition content type is Prometheus text format."""
        assert "text/plain" in get_metrics_content_type()

    def test_track_vectorstore_operation_success(self) -> None:
        """track_vectorstore_operation records a labelled operation."""
        track_vectorstore_operation("insert", duration=0.02, success=True)

        metrics = get_metrics().decode()
        assert "vectorstore_operation_duration_seconds" in metrics
        assert 'operation="insert",status="success"' in metrics

    def test_track_vectorstore_operation_failure(self) -> None:
        """Failed operations are labelled as errors."""
        track_vectorstore_operation("search", duration=0.5, success=False)

        metrics = get_metrics().decode()
        assert 'vectorstore_operations_total{operation="search",status="error"}' in metrics

    def test_track_search_matches(self) -> None:
        """track_search_matches records the match count."""
        track_search_matches(2)

        metrics = get_metrics().decode()
        assert "vectorstore_search_matches_returned" in metrics

    def test_track_llm_request_success(self) -> None:
        """track_llm_request records successful request."""
        track_llm_request(
            model="test-model",
            duration=1.5,
            prompt_tokens=100,
            completion_tokens=50,
            partial_responses=12,
            success=True,
        )

        metrics = get_metrics().decode()
        assert "llm_request_duration_seconds" in metrics
        assert "llm_tokens_total" in metrics
        assert "llm_stream_partials_total" in metrics

    def test_track_llm_request_failure(self) -> None:
        """track_llm_request records failed request."""
        track_llm_request(
            model="test-model",
            duration=0.5,
            prompt_tokens=0,
            completion_tokens=0,
            success=False,
        )

        metrics = get_metrics().decode()
        assert 'llm_requests_total{model="test-model",status="error"}' in metrics
