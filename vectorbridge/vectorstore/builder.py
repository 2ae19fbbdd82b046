"""Request builders.

Pure functions turning plain parameters into request descriptors.
No I/O happens here.
"""

from collections.abc import Sequence
from typing import Any

from vectorbridge.constants import (
    ID_FIELD_NAME,
    ID_MAX_LENGTH,
    METADATA_FIELD_NAME,
    SCALAR_OUTPUT_FIELDS,
    TEXT_FIELD_NAME,
    TEXT_MAX_LENGTH,
    VECTOR_FIELD_NAME,
    ConsistencyLevel,
    IndexType,
    MetricType,
)
from vectorbridge.exceptions import ValidationError
from vectorbridge.vectorstore.filters import Filter, to_milvus_expression
from vectorbridge.vectorstore.requests import (
    CreateCollectionRequest,
    CreateIndexRequest,
    CreatePartitionRequest,
    DeleteRequest,
    DropCollectionRequest,
    DropIndexRequest,
    DropPartitionRequest,
    FieldSpec,
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


def _non_blank(value: str | None) -> str | None:
    """Return the value, or None when it is None or blank."""
    if value is None or not value.strip():
        return None
    return value


def _non_empty(values: Sequence[str] | None) -> tuple[str, ...] | None:
    if not values:
        return None
    return tuple(values)


def build_flush_request(collection_name: str) -> FlushRequest:
    return FlushRequest(collection_name=collection_name)


def build_has_collection_request(collection_name: str) -> HasCollectionRequest:
    return HasCollectionRequest(collection_name=collection_name)


def build_has_partition_request(
    collection_name: str,
    partition_name: str,
) -> HasPartitionRequest:
    return HasPartitionRequest(
        collection_name=collection_name,
        partition_name=partition_name,
    )


def build_create_collection_request(
    collection_name: str,
    dimension: int,
) -> CreateCollectionRequest:
    """Build the request creating the four-field embedding collection.

    Args:
        collection_name: Collection to create.
        dimension: Vector dimension of the collection.

    Returns:
        Create collection request with id, text, metadata and vector fields.
    """
    fields = (
        FieldSpec(
            name=ID_FIELD_NAME,
            data_type="VARCHAR",
            is_primary=True,
            auto_id=False,
            max_length=ID_MAX_LENGTH,
        ),
        FieldSpec(
            name=TEXT_FIELD_NAME,
            data_type="VARCHAR",
            max_length=TEXT_MAX_LENGTH,
        ),
        FieldSpec(name=METADATA_FIELD_NAME, data_type="JSON"),
        FieldSpec(
            name=VECTOR_FIELD_NAME,
            data_type="FLOAT_VECTOR",
            dimension=dimension,
        ),
    )
    return CreateCollectionRequest(collection_name=collection_name, fields=fields)


def build_drop_collection_request(collection_name: str) -> DropCollectionRequest:
    return DropCollectionRequest(collection_name=collection_name)


def build_create_partition_request(
    collection_name: str,
    partition_name: str,
) -> CreatePartitionRequest:
    return CreatePartitionRequest(
        collection_name=collection_name,
        partition_name=partition_name,
    )


def build_drop_partition_request(
    collection_name: str,
    partition_name: str,
) -> DropPartitionRequest:
    return DropPartitionRequest(
        collection_name=collection_name,
        partition_name=partition_name,
    )


def build_create_index_request(
    collection_name: str,
    index_type: IndexType,
    metric_type: MetricType,
) -> CreateIndexRequest:
    return CreateIndexRequest(
        collection_name=collection_name,
        field_name=VECTOR_FIELD_NAME,
        index_type=index_type,
        metric_type=metric_type,
    )


def build_drop_index_request(
    collection_name: str,
    index_name: str | None = None,
) -> DropIndexRequest:
    return DropIndexRequest(
        collection_name=collection_name,
        index_name=_non_blank(index_name),
    )


def build_insert_request(
    collection_name: str,
    rows: Sequence[dict[str, Any]],
    partition_name: str | None = None,
) -> InsertRequest:
    return InsertRequest(
        collection_name=collection_name,
        rows=tuple(rows),
        partition_name=_non_blank(partition_name),
    )


def build_delete_by_ids_request(
    collection_name: str,
    partition_name: str | None,
    ids: Sequence[str],
) -> DeleteRequest:
    return DeleteRequest(
        collection_name=collection_name,
        ids=tuple(ids),
        partition_name=_non_blank(partition_name),
    )


def build_delete_by_expression_request(
    collection_name: str,
    expression: str,
) -> DeleteRequest:
    if not expression.strip():
        raise ValidationError("Delete expression cannot be blank")
    return DeleteRequest(collection_name=collection_name, expression=expression)


def build_load_collection_request(collection_name: str) -> LoadCollectionRequest:
    return LoadCollectionRequest(collection_name=collection_name)


def build_get_load_state_request(
    collection_name: str,
    partition_names: Sequence[str] | None = None,
) -> GetLoadStateRequest:
    return GetLoadStateRequest(
        collection_name=collection_name,
        partition_names=_non_empty(partition_names),
    )


def build_release_collection_request(collection_name: str) -> ReleaseCollectionRequest:
    return ReleaseCollectionRequest(collection_name=collection_name)


def build_release_partitions_request(
    collection_name: str,
    partition_names: Sequence[str],
) -> ReleasePartitionsRequest:
    return ReleasePartitionsRequest(
        collection_name=collection_name,
        partition_names=tuple(partition_names),
    )


def build_search_request(
    collection_name: str,
    vector: Sequence[float],
    max_results: int,
    metric_type: MetricType,
    consistency_level: ConsistencyLevel,
    filter: Filter | None = None,
    partition_names: Sequence[str] | None = None,
    retrieve_embeddings: bool = False,
) -> SearchRequest:
    """Build a top-K search request for one query vector.

    Args:
        collection_name: Collection to search.
        vector: Query vector.
        max_results: Provider top-K.
        metric_type: Metric the collection index was built with.
        consistency_level: Read consistency for the search.
        filter: Optional metadata filter, compiled to a Milvus expression.
        partition_names: Partitions to search; all partitions when empty.
        retrieve_embeddings: Also return the stored vector of each hit.

    Returns:
        Search request descriptor.
    """
    output_fields = list(SCALAR_OUTPUT_FIELDS)
    if retrieve_embeddings:
        output_fields.append(VECTOR_FIELD_NAME)

    return SearchRequest(
        collection_name=collection_name,
        vector=tuple(vector),
        vector_field=VECTOR_FIELD_NAME,
        top_k=max_results,
        metric_type=metric_type,
        consistency_level=consistency_level,
        output_fields=tuple(output_fields),
        expression=to_milvus_expression(filter) if filter is not None else None,
        partition_names=_non_empty(partition_names),
    )


def _quote_id(row_id: str) -> str:
    escaped = row_id.replace("\\", "\\\\").replace("'", "\\'")
    return f"'{escaped}'"


def build_query_by_ids_expression(ids: Sequence[str]) -> str:
    """Build ``id == 'a' || id == 'b'`` for the given ids.

    Raises:
        ValidationError: If no ids are given.
    """
    if not ids:
        raise ValidationError("At least one id is required")
    return " || ".join(f"{ID_FIELD_NAME} == {_quote_id(i)}" for i in ids)


def build_query_request(
    collection_name: str,
    ids: Sequence[str],
    consistency_level: ConsistencyLevel,
) -> QueryRequest:
    """Build a query fetching the stored vectors of the given rows."""
    return QueryRequest(
        collection_name=collection_name,
        expression=build_query_by_ids_expression(ids),
        output_fields=(ID_FIELD_NAME, VECTOR_FIELD_NAME),
        consistency_level=consistency_level,
    )
