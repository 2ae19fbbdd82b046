"""Request descriptors sent through the provider client.

Each model describes exactly one Milvus RPC. Optional scoping fields
(partition names, index names) are ``None`` when not requested; they are
never empty strings or empty lists.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from vectorbridge.constants import ConsistencyLevel, IndexType, MetricType


class ProviderRequest(BaseModel):
    """Base class for all request descriptors."""

    model_config = ConfigDict(frozen=True)

    collection_name: str = Field(min_length=1)


class FlushRequest(ProviderRequest):
    pass


class HasCollectionRequest(ProviderRequest):
    pass


class HasPartitionRequest(ProviderRequest):
    partition_name: str


class FieldSpec(BaseModel):
    """One field of a collection schema."""

    model_config = ConfigDict(frozen=True)

    name: str
    data_type: str = Field(description="Milvus data type name, e.g. VARCHAR")
    is_primary: bool = False
    auto_id: bool = False
    max_length: int | None = None
    dimension: int | None = None


class CreateCollectionRequest(ProviderRequest):
    fields: tuple[FieldSpec, ...]


class DropCollectionRequest(ProviderRequest):
    pass


class CreatePartitionRequest(ProviderRequest):
    partition_name: str


class DropPartitionRequest(ProviderRequest):
    partition_name: str


class CreateIndexRequest(ProviderRequest):
    field_name: str
    index_type: IndexType
    metric_type: MetricType


class DropIndexRequest(ProviderRequest):
    index_name: str | None = None


class InsertRequest(ProviderRequest):
    rows: tuple[dict[str, Any], ...]
    partition_name: str | None = None


class DeleteRequest(ProviderRequest):
    """Delete by primary keys or by a boolean expression, never both."""

    ids: tuple[str, ...] | None = None
    expression: str | None = None
    partition_name: str | None = None


class LoadCollectionRequest(ProviderRequest):
    pass


class GetLoadStateRequest(ProviderRequest):
    partition_names: tuple[str, ...] | None = None


class ReleaseCollectionRequest(ProviderRequest):
    pass


class ReleasePartitionsRequest(ProviderRequest):
    partition_names: tuple[str, ...]


class SearchRequest(ProviderRequest):
    """Top-K similarity search for a single query vector."""

    vector: tuple[float, ...]
    vector_field: str
    top_k: int = Field(gt=0)
    metric_type: MetricType
    consistency_level: ConsistencyLevel
    output_fields: tuple[str, ...]
    expression: str | None = None
    partition_names: tuple[str, ...] | None = None


class QueryRequest(ProviderRequest):
    expression: str
    output_fields: tuple[str, ...]
    consistency_level: ConsistencyLevel
