"""Pytest configuration and shared fixtures."""

import math
import re
from collections.abc import Callable
from typing import Any

import pytest

from vectorbridge.config import MilvusSettings
from vectorbridge.constants import ID_FIELD_NAME, MATCH_ALL_EXPRESSION, VECTOR_FIELD_NAME
from vectorbridge.vectorstore.client import ProviderClient, ProviderResponse
from vectorbridge.vectorstore.requests import (
    CreateCollectionRequest,
    CreateIndexRequest,
    CreatePartitionRequest,
    DeleteRequest,
    DropCollectionRequest,
    DropIndexRequest,
    DropPartitionRequest,
    FlushRequest,
    GetLoadStateRequest,
    HasCollectionRequest,
    HasPartitionRequest,
    InsertRequest,
    LoadCollectionRequest,
    QueryRequest,
    ReleaseCollectionRequest,
    ReleasePartitionsRequest,
    SearchRequest,
)

DEFAULT_PARTITION = "_default"

_ID_CLAUSE = re.compile(r"id == '((?:[^'\\]|\\.)*)'")


def _cosine(a: list[float], b: list[float]) -> float:
    dot = sum(x * y for x, y in zip(a, b, strict=True))
    norm = math.sqrt(sum(x * x for x in a)) * math.sqrt(sum(y * y for y in b))
    return dot / norm if norm else 0.0


class FakeProviderClient(ProviderClient):
    """In-memory Milvus stand-in.

    Rows are kept per collection with the partition they were inserted
    into. Search ranks by cosine similarity. Every call is recorded in
    ``calls``; ``fail`` and ``drop_responses`` inject failures.
    """

    def __init__(self) -> None:
        self.collections: dict[str, dict[str, Any]] = {}
        self.calls: list[tuple[str, Any]] = []
        self.failures: dict[str, int] = {}
        self.missing_responses: set[str] = set()
        self.closed = False

    @staticmethod
    def _new_collection(dimension: int | None) -> dict[str, Any]:
        return {
            "dimension": dimension,
            "rows": {},
            "partitions": {DEFAULT_PARTITION},
            "released_partitions": set(),
            "loaded": False,
            "index": None,
        }

    def add_existing_collection(self, name: str, dimension: int | None = None) -> None:
        """Register a collection as if created by an earlier deployment."""
        self.collections[name] = self._new_collection(dimension)
        self.collections[name]["index"] = "existing"

    def fail(self, operation: str, status: int = 65535) -> None:
        """Make every following call of ``operation`` fail with ``status``."""
        self.failures[operation] = status

    def drop_responses(self, operation: str) -> None:
        """Make every following call of ``operation`` return no response."""
        self.missing_responses.add(operation)

    def operations(self) -> list[str]:
        return [operation for operation, _ in self.calls]

    def requests_for(self, operation: str) -> list[Any]:
        return [request for op, request in self.calls if op == operation]

    def _respond(
        self,
        operation: str,
        request: Any,
        handler: Callable[[], Any],
    ) -> ProviderResponse | None:
        self.calls.append((operation, request))
        if operation in self.missing_responses:
            return None
        if operation in self.failures:
            return ProviderResponse(status=self.failures[operation])
        return ProviderResponse(data=handler())

    def flush(self, request: FlushRequest) -> ProviderResponse | None:
        return self._respond("flush", request, lambda: None)

    def has_collection(self, request: HasCollectionRequest) -> ProviderResponse | None:
        return self._respond(
            "has_collection", request, lambda: request.collection_name in self.collections
        )

    def has_partition(self, request: HasPartitionRequest) -> ProviderResponse | None:
        def handler() -> bool:
            collection = self.collections.get(request.collection_name)
            return collection is not None and request.partition_name in collection["partitions"]

        return self._respond("has_partition", request, handler)

    def create_collection(self, request: CreateCollectionRequest) -> ProviderResponse | None:
        def handler() -> None:
            dimension = next(f.dimension for f in request.fields if f.dimension is not None)
            self.collections[request.collection_name] = self._new_collection(dimension)

        return self._respond("create_collection", request, handler)

    def drop_collection(self, request: DropCollectionRequest) -> ProviderResponse | None:
        def handler() -> None:
            self.collections.pop(request.collection_name, None)

        return self._respond("drop_collection", request, handler)

    def create_partition(self, request: CreatePartitionRequest) -> ProviderResponse | None:
        return self._respond(
            "create_partition",
            request,
            lambda: self.collections[request.collection_name]["partitions"].add(
                request.partition_name
            ),
        )

    def drop_partition(self, request: DropPartitionRequest) -> ProviderResponse | None:
        def handler() -> None:
            collection = self.collections[request.collection_name]
            collection["partitions"].discard(request.partition_name)
            collection["rows"] = {
                row_id: (partition, row)
                for row_id, (partition, row) in collection["rows"].items()
                if partition != request.partition_name
            }

        return self._respond("drop_partition", request, handler)

    def create_index(self, request: CreateIndexRequest) -> ProviderResponse | None:
        def handler() -> None:
            self.collections[request.collection_name]["index"] = request

        return self._respond("create_index", request, handler)

    def drop_index(self, request: DropIndexRequest) -> ProviderResponse | None:
        def handler() -> None:
            self.collections[request.collection_name]["index"] = None

        return self._respond("drop_index", request, handler)

    def insert(self, request: InsertRequest) -> ProviderResponse | None:
        def handler() -> dict[str, int]:
            collection = self.collections[request.collection_name]
            partition = request.partition_name or DEFAULT_PARTITION
            for row in request.rows:
                collection["rows"][row[ID_FIELD_NAME]] = (partition, dict(row))
            return {"insert_count": len(request.rows)}

        return self._respond("insert", request, handler)

    def delete(self, request: DeleteRequest) -> ProviderResponse | None:
        def handler() -> dict[str, int]:
            rows = self.collections[request.collection_name]["rows"]
            if request.ids is not None:
                doomed = [
                    row_id
                    for row_id in request.ids
                    if row_id in rows
                    and (request.partition_name is None or rows[row_id][0] == request.partition_name)
                ]
            elif request.expression == MATCH_ALL_EXPRESSION:
                doomed = list(rows)
            else:
                doomed = []
            for row_id in doomed:
                del rows[row_id]
            return {"delete_count": len(doomed)}

        return self._respond("delete", request, handler)

    def load_collection(self, request: LoadCollectionRequest) -> ProviderResponse | None:
        def handler() -> None:
            collection = self.collections[request.collection_name]
            collection["loaded"] = True
            collection["released_partitions"].clear()

        return self._respond("load_collection", request, handler)

    def get_load_state(self, request: GetLoadStateRequest) -> ProviderResponse | None:
        def handler() -> str:
            collection = self.collections.get(request.collection_name)
            if collection is None:
                return "NotExist"
            for partition in request.partition_names or ():
                if partition not in collection["partitions"]:
                    return "NotExist"
                if partition in collection["released_partitions"]:
                    return "NotLoad"
            return "Loaded" if collection["loaded"] else "NotLoad"

        return self._respond("get_load_state", request, handler)

    def release_collection(self, request: ReleaseCollectionRequest) -> ProviderResponse | None:
        def handler() -> None:
            self.collections[request.collection_name]["loaded"] = False

        return self._respond("release_collection", request, handler)

    def release_partitions(self, request: ReleasePartitionsRequest) -> ProviderResponse | None:
        def handler() -> None:
            collection = self.collections[request.collection_name]
            collection["released_partitions"].update(request.partition_names)

        return self._respond("release_partitions", request, handler)

    def search(self, request: SearchRequest) -> ProviderResponse | None:
        def handler() -> list[dict[str, Any]]:
            collection = self.collections[request.collection_name]
            query = list(request.vector)
            hits = []
            for row_id, (partition, row) in collection["rows"].items():
                if request.partition_names is not None and partition not in request.partition_names:
                    continue
                hits.append(
                    {
                        "id": row_id,
                        "distance": _cosine(query, row[VECTOR_FIELD_NAME]),
                        "entity": {f: row[f] for f in request.output_fields},
                    }
                )
            hits.sort(key=lambda hit: hit["distance"], reverse=True)
            return hits[: request.top_k]

        return self._respond("search", request, handler)

    def query(self, request: QueryRequest) -> ProviderResponse | None:
        def handler() -> list[dict[str, Any]]:
            rows = self.collections[request.collection_name]["rows"]
            wanted = [
                re.sub(r"\\(.)", r"\1", raw) for raw in _ID_CLAUSE.findall(request.expression)
            ]
            return [
                {f: rows[row_id][1][f] for f in request.output_fields}
                for row_id in wanted
                if row_id in rows
            ]

        return self._respond("query", request, handler)

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def fake_client() -> FakeProviderClient:
    """Create an empty in-memory provider client."""
    return FakeProviderClient()


@pytest.fixture
def milvus_settings() -> MilvusSettings:
    """Create settings for a small test collection."""
    return MilvusSettings(collection_name="test_collection", dimension=4)
