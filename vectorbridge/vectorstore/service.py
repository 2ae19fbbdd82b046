"""Embedding store interface and Milvus implementation."""

from abc import ABC, abstractmethod
from collections.abc import Sequence

from vectorbridge.config import MilvusSettings, get_settings
from vectorbridge.constants import ID_FIELD_NAME, MATCH_ALL_EXPRESSION, VECTOR_FIELD_NAME
from vectorbridge.exceptions import (
    EmbeddingError,
    ErrorCode,
    MissingRequiredArgumentError,
    ValidationError,
)
from vectorbridge.logging_config import get_logger
from vectorbridge.observability.metrics import track_search_matches
from vectorbridge.vectorstore import builder, mapper
from vectorbridge.vectorstore.client import ProviderClient, PymilvusProviderClient
from vectorbridge.vectorstore.executor import OperationsExecutor
from vectorbridge.vectorstore.filters import Filter, to_milvus_expression
from vectorbridge.vectorstore.models import (
    Embedding,
    EmbeddingMatch,
    EmbeddingSearchRequest,
    EmbeddingSearchResult,
    LoadState,
    TextSegment,
)

logger = get_logger(__name__)


class EmbeddingStore(ABC):
    """Abstract base class for embedding stores.

    Defines the interface for storing, searching and removing embeddings.
    """

    @abstractmethod
    def add(
        self,
        embedding: Embedding,
        text_segment: TextSegment | None = None,
        *,
        embedding_id: str | None = None,
    ) -> str:
        """Add a single embedding.

        Args:
            embedding: Embedding to store.
            text_segment: Optional text and metadata stored with it.
            embedding_id: Identifier to use; a random UUID when omitted.

        Returns:
            Identifier of the stored embedding.

        Raises:
            VectorStoreError: If the store rejects the write.
        """
        ...

    @abstractmethod
    def add_all(
        self,
        embeddings: Sequence[Embedding],
        text_segments: Sequence[TextSegment] | None = None,
        *,
        ids: Sequence[str] | None = None,
    ) -> list[str]:
        """Add several embeddings in one write.

        Args:
            embeddings: Embeddings to store.
            text_segments: Optional segments, one per embedding.
            ids: Identifiers to use, one per embedding; random UUIDs when omitted.

        Returns:
            Identifiers, in the same order as ``embeddings``.

        Raises:
            ValidationError: If the argument lengths differ.
            VectorStoreError: If the store rejects the write.
        """
        ...

    @abstractmethod
    def search(self, request: EmbeddingSearchRequest) -> EmbeddingSearchResult:
        """Find the embeddings most similar to the request's query embedding.

        Args:
            request: Query embedding, result bound, score threshold and filter.

        Returns:
            Matches ordered by decreasing relevance, none below ``min_score``.

        Raises:
            VectorStoreError: If the search fails.
        """
        ...

    @abstractmethod
    def remove(self, embedding_id: str) -> None:
        """Remove one embedding by identifier."""
        ...

    @abstractmethod
    def remove_all(self, ids: Sequence[str] | None = None) -> None:
        """Remove the given embeddings, or every embedding when ids is None."""
        ...

    def find_relevant(
        self,
        reference_embedding: Embedding,
        max_results: int = 3,
        min_score: float = 0.0,
    ) -> list[EmbeddingMatch]:
        """Shortcut for ``search`` returning only the matches."""
        request = EmbeddingSearchRequest(
            query_embedding=reference_embedding,
            max_results=max_results,
            min_score=min_score,
        )
        return self.search(request).matches


class MilvusEmbeddingStore(EmbeddingStore):
    """Milvus collection exposed as an embedding store.

    On construction the collection is created (with its index) when it does
    not exist yet, then loaded into memory. Every write is flushed before
    returning. Calls block until Milvus answers; failures raise
    ``ProviderRequestError`` without retrying.
    """

    def __init__(
        self,
        settings: MilvusSettings | None = None,
        client: ProviderClient | None = None,
    ) -> None:
        """Initialize the store and make sure its collection is ready.

        Args:
            settings: Milvus configuration.
            client: Existing provider client (for testing).

        Raises:
            MissingRequiredArgumentError: If the collection must be created
                and no dimension is configured.
            ProviderRequestError: If any setup request fails.
        """
        self._settings = settings or get_settings().milvus
        self._owns_client = client is None
        self._client = client or PymilvusProviderClient.connect(self._settings)
        self._executor = OperationsExecutor(self._client)

        self._collection_name = self._settings.collection_name
        self._dimension = self._settings.dimension
        self._metric_type = self._settings.metric_type
        self._consistency_level = self._settings.consistency_level
        self._retrieve_embeddings = self._settings.retrieve_embeddings_on_search

        self._ensure_collection()

    @property
    def collection_name(self) -> str:
        return self._collection_name

    def _ensure_collection(self) -> None:
        """Create the collection and its index if missing, then load it."""
        if self._executor.has_collection(self._collection_name):
            logger.info(f"Using existing Milvus collection '{self._collection_name}'")
        else:
            if self._dimension is None:
                raise MissingRequiredArgumentError("dimension")

            logger.info(
                f"Creating Milvus collection '{self._collection_name}'",
                extra={"dimension": self._dimension},
            )
            self._executor.create_collection(self._collection_name, self._dimension)
            self._executor.create_index(
                self._collection_name,
                self._settings.index_type,
                self._metric_type,
            )
            logger.info(
                f"Created {self._settings.index_type.value} index on '{VECTOR_FIELD_NAME}'",
                extra={"metric_type": self._metric_type.value},
            )

        self._executor.load_collection(self._collection_name)

    def _check_dimension(self, embedding: Embedding) -> None:
        if self._dimension is not None and embedding.dimension() != self._dimension:
            raise EmbeddingError(
                f"Embedding has {embedding.dimension()} dimensions, "
                f"collection '{self._collection_name}' expects {self._dimension}",
                code=ErrorCode.EMBEDDING_DIMENSION_MISMATCH,
                details={
                    "expected": self._dimension,
                    "actual": embedding.dimension(),
                },
            )

    def add(
        self,
        embedding: Embedding,
        text_segment: TextSegment | None = None,
        *,
        embedding_id: str | None = None,
        partition_name: str | None = None,
    ) -> str:
        """Add a single embedding, optionally into a partition."""
        row_id = embedding_id or mapper.generate_ids(1)[0]
        self._add_all_internal(
            [row_id],
            [embedding],
            [text_segment] if text_segment is not None else None,
            partition_name,
        )
        return row_id

    def add_all(
        self,
        embeddings: Sequence[Embedding],
        text_segments: Sequence[TextSegment] | None = None,
        *,
        ids: Sequence[str] | None = None,
        partition_name: str | None = None,
    ) -> list[str]:
        """Add several embeddings in one insert, optionally into a partition."""
        if not embeddings:
            return []

        if ids is None:
            row_ids = mapper.generate_ids(len(embeddings))
        else:
            row_ids = list(ids)

        if len(row_ids) != len(embeddings):
            raise ValidationError(
                "ids and embeddings must have the same length",
                details={"ids": len(row_ids), "embeddings": len(embeddings)},
            )
        if text_segments is not None and len(text_segments) != len(embeddings):
            raise ValidationError(
                "text_segments and embeddings must have the same length",
                details={"text_segments": len(text_segments), "embeddings": len(embeddings)},
            )

        self._add_all_internal(row_ids, embeddings, text_segments, partition_name)
        return row_ids

    def _add_all_internal(
        self,
        ids: Sequence[str],
        embeddings: Sequence[Embedding],
        text_segments: Sequence[TextSegment] | None,
        partition_name: str | None,
    ) -> None:
        for embedding in embeddings:
            self._check_dimension(embedding)

        rows = mapper.to_insert_rows(ids, embeddings, text_segments)
        self._executor.insert(self._collection_name, rows, partition_name)
        self._executor.flush(self._collection_name)

        logger.debug(
            f"Inserted {len(rows)} embeddings",
            extra={"collection": self._collection_name, "partition": partition_name},
        )

    def search(
        self,
        request: EmbeddingSearchRequest,
        partition_names: Sequence[str] | None = None,
    ) -> EmbeddingSearchResult:
        """Search the collection, or only the given partitions.

        The provider applies ``max_results`` first; matches below
        ``min_score`` are then dropped locally, so fewer than
        ``max_results`` matches may be returned.
        """
        self._check_dimension(request.query_embedding)

        search_request = builder.build_search_request(
            collection_name=self._collection_name,
            vector=request.query_embedding.vector,
            max_results=request.max_results,
            metric_type=self._metric_type,
            consistency_level=self._consistency_level,
            filter=request.filter,
            partition_names=partition_names,
            retrieve_embeddings=self._retrieve_embeddings,
        )
        hits = self._executor.search(search_request)

        id_to_vector = None
        if self._retrieve_embeddings:
            id_to_vector = self._collect_vectors(hits)

        matches = [
            match
            for match in mapper.to_embedding_matches(hits, self._metric_type, id_to_vector)
            if match.score >= request.min_score
        ]

        track_search_matches(len(matches))
        logger.debug(
            f"Search returned {len(matches)} of {len(hits)} hits",
            extra={"collection": self._collection_name, "min_score": request.min_score},
        )
        return EmbeddingSearchResult(matches=matches)

    def _collect_vectors(self, hits: Sequence[dict]) -> dict[str, list[float]]:
        """Get stored vectors for the hits.

        Vectors returned with the search are used as-is; rows whose vector
        was not returned are fetched with one extra query.
        """
        id_to_vector = mapper.to_id_vector_map(
            [
                {
                    ID_FIELD_NAME: hit["id"],
                    VECTOR_FIELD_NAME: (hit.get("entity") or {}).get(VECTOR_FIELD_NAME),
                }
                for hit in hits
            ]
        )

        missing = [str(hit["id"]) for hit in hits if str(hit["id"]) not in id_to_vector]
        if missing:
            rows = self._executor.query_for_vectors(
                self._collection_name,
                missing,
                self._consistency_level,
            )
            id_to_vector.update(mapper.to_id_vector_map(rows))

        return id_to_vector

    def create_partition(self, partition_name: str) -> None:
        """Create a partition unless the name is blank or it already exists."""
        if not partition_name or not partition_name.strip():
            return
        if self._executor.has_partition(self._collection_name, partition_name):
            return

        self._executor.create_partition(self._collection_name, partition_name)
        logger.info(f"Created partition '{partition_name}' in '{self._collection_name}'")

    def drop_partition(self, partition_name: str) -> None:
        self._executor.drop_partition(self._collection_name, partition_name)
        logger.info(f"Dropped partition '{partition_name}' from '{self._collection_name}'")

    def drop_collection(self, collection_name: str | None = None) -> None:
        """Drop this store's collection, or another collection by name."""
        name = collection_name or self._collection_name
        self._executor.drop_collection(name)
        logger.info(f"Dropped Milvus collection '{name}'")

    def drop_index(self, index_name: str | None = None) -> None:
        self._executor.drop_index(self._collection_name, index_name)

    def load_collection(self) -> None:
        self._executor.load_collection(self._collection_name)
        logger.info(f"Loaded Milvus collection '{self._collection_name}'")

    def release_collection(self) -> None:
        self._executor.release_collection(self._collection_name)
        logger.info(f"Released Milvus collection '{self._collection_name}'")

    def release_partitions(self, partition_names: Sequence[str]) -> None:
        self._executor.release_partitions(self._collection_name, partition_names)
        logger.info(
            f"Released partitions of '{self._collection_name}'",
            extra={"partitions": list(partition_names)},
        )

    def get_load_state(self, partition_names: Sequence[str] | None = None) -> LoadState:
        """Get the load state of the collection, or of the given partitions."""
        return self._executor.get_load_state(self._collection_name, partition_names)

    def delete_by_ids(self, partition_name: str | None, ids: Sequence[str]) -> None:
        """Delete rows by id, within one partition or the whole collection.

        Deletes may take a while to be reflected by searches running at a
        weaker consistency level than ``Strong``.
        """
        if not ids:
            return
        self._executor.delete_by_ids(self._collection_name, partition_name, ids)
        logger.debug(
            f"Deleted {len(ids)} embeddings",
            extra={"collection": self._collection_name, "partition": partition_name},
        )

    def delete_by_filter(self, expression: str) -> None:
        """Delete every row matching a raw Milvus boolean expression."""
        self._executor.delete_by_expression(self._collection_name, expression)

    def remove(self, embedding_id: str) -> None:
        if not embedding_id or not embedding_id.strip():
            raise ValidationError("embedding_id cannot be blank")
        self._executor.delete_by_ids(self._collection_name, None, [embedding_id])

    def remove_all(self, ids: Sequence[str] | None = None) -> None:
        if ids is None:
            self._executor.delete_by_expression(self._collection_name, MATCH_ALL_EXPRESSION)
            logger.info(f"Removed all embeddings from '{self._collection_name}'")
            return
        if not ids:
            raise ValidationError("ids cannot be empty")
        self._executor.delete_by_ids(self._collection_name, None, ids)

    def remove_all_matching(self, filter: Filter) -> None:
        """Remove every embedding whose metadata matches the filter."""
        self._executor.delete_by_expression(self._collection_name, to_milvus_expression(filter))

    def close(self) -> None:
        """Close the provider client if this store created it."""
        if self._owns_client:
            self._client.close()
