"""Provider client boundary.

``ProviderClient`` is the narrow interface the executor talks to: one method
per Milvus RPC, each taking a request descriptor and returning a
``ProviderResponse`` carrying a status code instead of raising.
``PymilvusProviderClient`` binds it to ``pymilvus.MilvusClient``.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pymilvus import DataType, MilvusClient, MilvusException

from vectorbridge.config import MilvusSettings
from vectorbridge.constants import VECTOR_FIELD_NAME
from vectorbridge.logging_config import get_logger
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

logger = get_logger(__name__)

# Status codes, as reported by the Milvus server
SUCCESS = 0
UNEXPECTED_ERROR = 1


class ProviderResponse(BaseModel):
    """Outcome of one provider RPC.

    Attributes:
        status: Provider status code, 0 on success.
        data: Unwrapped payload on success.
        exception: Provider exception on failure, when one was raised.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    status: int = Field(default=SUCCESS, description="Provider status code")
    data: Any = Field(default=None, description="Response payload")
    exception: BaseException | None = Field(default=None, description="Provider exception")

    @property
    def succeeded(self) -> bool:
        return self.status == SUCCESS


class ProviderClient(ABC):
    """Interface over the Milvus RPCs used by the embedding store.

    Implementations return ``None`` when no response was received at all
    (transport failure); the executor treats that as a failed request.
    """

    @abstractmethod
    def flush(self, request: FlushRequest) -> ProviderResponse | None: ...

    @abstractmethod
    def has_collection(self, request: HasCollectionRequest) -> ProviderResponse | None:
        """Response data is a bool."""
        ...

    @abstractmethod
    def has_partition(self, request: HasPartitionRequest) -> ProviderResponse | None:
        """Response data is a bool."""
        ...

    @abstractmethod
    def create_collection(self, request: CreateCollectionRequest) -> ProviderResponse | None: ...

    @abstractmethod
    def drop_collection(self, request: DropCollectionRequest) -> ProviderResponse | None: ...

    @abstractmethod
    def create_partition(self, request: CreatePartitionRequest) -> ProviderResponse | None: ...

    @abstractmethod
    def drop_partition(self, request: DropPartitionRequest) -> ProviderResponse | None: ...

    @abstractmethod
    def create_index(self, request: CreateIndexRequest) -> ProviderResponse | None: ...

    @abstractmethod
    def drop_index(self, request: DropIndexRequest) -> ProviderResponse | None: ...

    @abstractmethod
    def insert(self, request: InsertRequest) -> ProviderResponse | None:
        """Response data is a dict with ``insert_count``."""
        ...

    @abstractmethod
    def delete(self, request: DeleteRequest) -> ProviderResponse | None:
        """Response data is a dict with ``delete_count``."""
        ...

    @abstractmethod
    def load_collection(self, request: LoadCollectionRequest) -> ProviderResponse | None: ...

    @abstractmethod
    def get_load_state(self, request: GetLoadStateRequest) -> ProviderResponse | None:
        """Response data is a load state name such as ``Loaded``."""
        ...

    @abstractmethod
    def release_collection(self, request: ReleaseCollectionRequest) -> ProviderResponse | None: ...

    @abstractmethod
    def release_partitions(self, request: ReleasePartitionsRequest) -> ProviderResponse | None: ...

    @abstractmethod
    def search(self, request: SearchRequest) -> ProviderResponse | None:
        """Response data is a ranked list of ``{"id", "distance", "entity"}`` dicts."""
        ...

    @abstractmethod
    def query(self, request: QueryRequest) -> ProviderResponse | None:
        """Response data is a list of row dicts."""
        ...

    def close(self) -> None:
        """Release client resources."""


class PymilvusProviderClient(ProviderClient):
    """Provider client backed by ``pymilvus.MilvusClient``."""

    def __init__(self, client: MilvusClient) -> None:
        """Initialize with an existing pymilvus client.

        Args:
            client: Connected pymilvus client.
        """
        self._client = client

    @classmethod
    def connect(cls, settings: MilvusSettings) -> "PymilvusProviderClient":
        """Open a connection described by the settings.

        Args:
            settings: Milvus configuration.

        Returns:
            Connected provider client.
        """
        connect_params: dict[str, Any] = {"uri": settings.connection_uri()}
        if settings.token is not None:
            connect_params["token"] = settings.token.get_secret_value()
        if settings.username and settings.password is not None:
            connect_params["user"] = settings.username
            connect_params["password"] = settings.password.get_secret_value()
        if settings.database_name:
            connect_params["db_name"] = settings.database_name
        if settings.timeout is not None:
            connect_params["timeout"] = settings.timeout

        logger.info(f"Connecting to Milvus at {connect_params['uri']}")
        return cls(MilvusClient(**connect_params))

    def _call(self, operation: str, fn: Callable[..., Any], **kwargs: Any) -> ProviderResponse:
        """Invoke a pymilvus method, converting raised errors into statuses."""
        try:
            data = fn(**kwargs)
        except MilvusException as e:
            # Legacy servers report failures through compatible_code with code 0
            status = e.code or e.compatible_code or UNEXPECTED_ERROR
            logger.debug(f"Milvus {operation} returned status {status}: {e.message}")
            return ProviderResponse(status=status, exception=e)
        except Exception as e:
            logger.debug(f"Milvus {operation} raised {type(e).__name__}: {e}")
            return ProviderResponse(status=UNEXPECTED_ERROR, exception=e)
        return ProviderResponse(data=data)

    def flush(self, request: FlushRequest) -> ProviderResponse:
        return self._call("flush", self._client.flush, collection_name=request.collection_name)

    def has_collection(self, request: HasCollectionRequest) -> ProviderResponse:
        return self._call(
            "has_collection",
            self._client.has_collection,
            collection_name=request.collection_name,
        )

    def has_partition(self, request: HasPartitionRequest) -> ProviderResponse:
        return self._call(
            "has_partition",
            self._client.has_partition,
            collection_name=request.collection_name,
            partition_name=request.partition_name,
        )

    def create_collection(self, request: CreateCollectionRequest) -> ProviderResponse:
        schema = MilvusClient.create_schema(auto_id=False, enable_dynamic_field=False)
        for field in request.fields:
            field_params: dict[str, Any] = {}
            if field.is_primary:
                field_params["is_primary"] = True
                field_params["auto_id"] = field.auto_id
            if field.max_length is not None:
                field_params["max_length"] = field.max_length
            if field.dimension is not None:
                field_params["dim"] = field.dimension
            schema.add_field(
                field_name=field.name,
                datatype=DataType[field.data_type],
                **field_params,
            )

        return self._call(
            "create_collection",
            self._client.create_collection,
            collection_name=request.collection_name,
            schema=schema,
        )

    def drop_collection(self, request: DropCollectionRequest) -> ProviderResponse:
        return self._call(
            "drop_collection",
            self._client.drop_collection,
            collection_name=request.collection_name,
        )

    def create_partition(self, request: CreatePartitionRequest) -> ProviderResponse:
        return self._call(
            "create_partition",
            self._client.create_partition,
            collection_name=request.collection_name,
            partition_name=request.partition_name,
        )

    def drop_partition(self, request: DropPartitionRequest) -> ProviderResponse:
        return self._call(
            "drop_partition",
            self._client.drop_partition,
            collection_name=request.collection_name,
            partition_name=request.partition_name,
        )

    def create_index(self, request: CreateIndexRequest) -> ProviderResponse:
        index_params = self._client.prepare_index_params()
        index_params.add_index(
            field_name=request.field_name,
            index_type=request.index_type.value,
            metric_type=request.metric_type.value,
        )
        return self._call(
            "create_index",
            self._client.create_index,
            collection_name=request.collection_name,
            index_params=index_params,
        )

    def drop_index(self, request: DropIndexRequest) -> ProviderResponse:
        # Unnamed indexes are named after the field they were built on.
        return self._call(
            "drop_index",
            self._client.drop_index,
            collection_name=request.collection_name,
            index_name=request.index_name or VECTOR_FIELD_NAME,
        )

    def insert(self, request: InsertRequest) -> ProviderResponse:
        kwargs: dict[str, Any] = {
            "collection_name": request.collection_name,
            "data": list(request.rows),
        }
        if request.partition_name is not None:
            kwargs["partition_name"] = request.partition_name
        return self._call("insert", self._client.insert, **kwargs)

    def delete(self, request: DeleteRequest) -> ProviderResponse:
        kwargs: dict[str, Any] = {"collection_name": request.collection_name}
        if request.ids is not None:
            kwargs["ids"] = list(request.ids)
        if request.expression is not None:
            kwargs["filter"] = request.expression
        if request.partition_name is not None:
            kwargs["partition_name"] = request.partition_name
        return self._call("delete", self._client.delete, **kwargs)

    def load_collection(self, request: LoadCollectionRequest) -> ProviderResponse:
        return self._call(
            "load_collection",
            self._client.load_collection,
            collection_name=request.collection_name,
        )

    def get_load_state(self, request: GetLoadStateRequest) -> ProviderResponse:
        if not request.partition_names:
            response = self._call(
                "get_load_state",
                self._client.get_load_state,
                collection_name=request.collection_name,
            )
            return self._unwrap_load_state(response)

        # pymilvus reports one partition at a time; the first partition
        # that is not fully loaded decides the overall state.
        response = ProviderResponse()
        for partition_name in request.partition_names:
            response = self._unwrap_load_state(
                self._call(
                    "get_load_state",
                    self._client.get_load_state,
                    collection_name=request.collection_name,
                    partition_name=partition_name,
                )
            )
            if not response.succeeded or response.data != "Loaded":
                return response
        return response

    @staticmethod
    def _unwrap_load_state(response: ProviderResponse) -> ProviderResponse:
        if response.succeeded and isinstance(response.data, dict):
            state = response.data.get("state")
            response.data = getattr(state, "name", str(state))
        return response

    def release_collection(self, request: ReleaseCollectionRequest) -> ProviderResponse:
        return self._call(
            "release_collection",
            self._client.release_collection,
            collection_name=request.collection_name,
        )

    def release_partitions(self, request: ReleasePartitionsRequest) -> ProviderResponse:
        return self._call(
            "release_partitions",
            self._client.release_partitions,
            collection_name=request.collection_name,
            partition_names=list(request.partition_names),
        )

    def search(self, request: SearchRequest) -> ProviderResponse:
        kwargs: dict[str, Any] = {
            "collection_name": request.collection_name,
            "data": [list(request.vector)],
            "anns_field": request.vector_field,
            "limit": request.top_k,
            "output_fields": list(request.output_fields),
            "search_params": {"metric_type": request.metric_type.value},
            "consistency_level": request.consistency_level.value,
        }
        if request.expression is not None:
            kwargs["filter"] = request.expression
        if request.partition_names is not None:
            kwargs["partition_names"] = list(request.partition_names)

        response = self._call("search", self._client.search, **kwargs)
        if response.succeeded:
            response.data = self._normalize_hits(response.data)
        return response

    @staticmethod
    def _normalize_hits(results: Any) -> list[dict[str, Any]]:
        """Flatten the hits of the single query vector into plain dicts."""
        if not results:
            return []
        return [
            {
                "id": hit["id"],
                "distance": hit["distance"],
                "entity": dict(hit.get("entity") or {}),
            }
            for hit in results[0]
        ]

    def query(self, request: QueryRequest) -> ProviderResponse:
        return self._call(
            "query",
            self._client.query,
            collection_name=request.collection_name,
            filter=request.expression,
            output_fields=list(request.output_fields),
            consistency_level=request.consistency_level.value,
        )

    def close(self) -> None:
        self._client.close()
