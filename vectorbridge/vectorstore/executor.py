"""Collection operations executor.

Sends each built request through the provider client and turns any
missing or non-success response into a ``ProviderRequestError``.
Failures are surfaced immediately; there is no retry or backoff here.
"""

import time
from collections.abc import Callable, Sequence
from typing import Any, TypeVar

from vectorbridge.constants import ConsistencyLevel, IndexType, MetricType
from vectorbridge.exceptions import ProviderRequestError
from vectorbridge.logging_config import get_logger
from vectorbridge.observability.metrics import track_vectorstore_operation
from vectorbridge.vectorstore import builder
from vectorbridge.vectorstore.client import ProviderClient, ProviderResponse
from vectorbridge.vectorstore.models import LoadState
from vectorbridge.vectorstore.requests import ProviderRequest, SearchRequest

logger = get_logger(__name__)

RequestT = TypeVar("RequestT", bound=ProviderRequest)


def check_response(operation: str, response: ProviderResponse | None) -> ProviderResponse:
    """Ensure a provider response is present and successful.

    Args:
        operation: Operation name, for error context.
        response: Response returned by the provider client.

    Returns:
        The successful response.

    Raises:
        ProviderRequestError: If the response is missing or failed.
    """
    if response is None:
        logger.error(
            f"Request to Milvus failed: no response for {operation}",
            extra={"operation": operation},
        )
        raise ProviderRequestError(
            "Request to Milvus failed. Response is null",
            details={"operation": operation},
        )

    if not response.succeeded:
        logger.error(
            f"Request to Milvus failed: {operation} returned status {response.status}",
            extra={"operation": operation, "status": response.status},
        )
        error = ProviderRequestError(
            f"Request to Milvus failed. Response status: '{response.status}'",
            status=response.status,
            details={"operation": operation},
        )
        if response.exception is not None:
            raise error from response.exception
        raise error

    return response


class OperationsExecutor:
    """Executes one provider RPC per method against a provider client."""

    def __init__(self, client: ProviderClient) -> None:
        """Initialize the executor.

        Args:
            client: Provider client shared by all operations.
        """
        self._client = client

    @property
    def client(self) -> ProviderClient:
        return self._client

    def _execute(
        self,
        operation: str,
        send: Callable[[RequestT], ProviderResponse | None],
        request: RequestT,
    ) -> Any:
        start_time = time.perf_counter()
        response = send(request)
        duration = time.perf_counter() - start_time

        succeeded = response is not None and response.succeeded
        track_vectorstore_operation(operation, duration, success=succeeded)

        return check_response(operation, response).data

    def flush(self, collection_name: str) -> None:
        self._execute(
            "flush",
            self._client.flush,
            builder.build_flush_request(collection_name),
        )

    def has_collection(self, collection_name: str) -> bool:
        return bool(
            self._execute(
                "has_collection",
                self._client.has_collection,
                builder.build_has_collection_request(collection_name),
            )
        )

    def has_partition(self, collection_name: str, partition_name: str) -> bool:
        return bool(
            self._execute(
                "has_partition",
                self._client.has_partition,
                builder.build_has_partition_request(collection_name, partition_name),
            )
        )

    def create_collection(self, collection_name: str, dimension: int) -> None:
        self._execute(
            "create_collection",
            self._client.create_collection,
            builder.build_create_collection_request(collection_name, dimension),
        )

    def drop_collection(self, collection_name: str) -> None:
        self._execute(
            "drop_collection",
            self._client.drop_collection,
            builder.build_drop_collection_request(collection_name),
        )

    def create_partition(self, collection_name: str, partition_name: str) -> None:
        self._execute(
            "create_partition",
            self._client.create_partition,
            builder.build_create_partition_request(collection_name, partition_name),
        )

    def drop_partition(self, collection_name: str, partition_name: str) -> None:
        self._execute(
            "drop_partition",
            self._client.drop_partition,
            builder.build_drop_partition_request(collection_name, partition_name),
        )

    def create_index(
        self,
        collection_name: str,
        index_type: IndexType,
        metric_type: MetricType,
    ) -> None:
        self._execute(
            "create_index",
            self._client.create_index,
            builder.build_create_index_request(collection_name, index_type, metric_type),
        )

    def drop_index(self, collection_name: str, index_name: str | None = None) -> None:
        self._execute(
            "drop_index",
            self._client.drop_index,
            builder.build_drop_index_request(collection_name, index_name),
        )

    def insert(
        self,
        collection_name: str,
        rows: Sequence[dict[str, Any]],
        partition_name: str | None = None,
    ) -> None:
        self._execute(
            "insert",
            self._client.insert,
            builder.build_insert_request(collection_name, rows, partition_name),
        )

    def delete_by_ids(
        self,
        collection_name: str,
        partition_name: str | None,
        ids: Sequence[str],
    ) -> None:
        self._execute(
            "delete",
            self._client.delete,
            builder.build_delete_by_ids_request(collection_name, partition_name, ids),
        )

    def delete_by_expression(self, collection_name: str, expression: str) -> None:
        self._execute(
            "delete",
            self._client.delete,
            builder.build_delete_by_expression_request(collection_name, expression),
        )

    def load_collection(self, collection_name: str) -> None:
        self._execute(
            "load_collection",
            self._client.load_collection,
            builder.build_load_collection_request(collection_name),
        )

    def get_load_state(
        self,
        collection_name: str,
        partition_names: Sequence[str] | None = None,
    ) -> LoadState:
        state = self._execute(
            "get_load_state",
            self._client.get_load_state,
            builder.build_get_load_state_request(collection_name, partition_names),
        )
        return LoadState(state)

    def release_collection(self, collection_name: str) -> None:
        self._execute(
            "release_collection",
            self._client.release_collection,
            builder.build_release_collection_request(collection_name),
        )

    def release_partitions(self, collection_name: str, partition_names: Sequence[str]) -> None:
        self._execute(
            "release_partitions",
            self._client.release_partitions,
            builder.build_release_partitions_request(collection_name, partition_names),
        )

    def search(self, request: SearchRequest) -> list[dict[str, Any]]:
        """Run a search and return its ranked hits."""
        return list(self._execute("search", self._client.search, request) or [])

    def query_for_vectors(
        self,
        collection_name: str,
        ids: Sequence[str],
        consistency_level: ConsistencyLevel,
    ) -> list[dict[str, Any]]:
        """Fetch the stored vectors of the given rows."""
        return list(
            self._execute(
                "query",
                self._client.query,
                builder.build_query_request(collection_name, ids, consistency_level),
            )
            or []
        )
