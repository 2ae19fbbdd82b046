"""Mapping between store models and Milvus rows and hits."""

import json
from collections.abc import Sequence
from typing import Any
from uuid import uuid4

from vectorbridge.constants import (
    ID_FIELD_NAME,
    METADATA_FIELD_NAME,
    TEXT_FIELD_NAME,
    VECTOR_FIELD_NAME,
    MetricType,
)
from vectorbridge.exceptions import VectorStoreError
from vectorbridge.vectorstore.models import Embedding, EmbeddingMatch, TextSegment


def generate_ids(count: int) -> list[str]:
    """Generate ``count`` random UUID4 identifiers."""
    return [str(uuid4()) for _ in range(count)]


def to_insert_rows(
    ids: Sequence[str],
    embeddings: Sequence[Embedding],
    text_segments: Sequence[TextSegment] | None = None,
) -> list[dict[str, Any]]:
    """Build one insert row per embedding.

    Rows without a text segment are stored with empty text and metadata.
    """
    rows: list[dict[str, Any]] = []
    for i, (row_id, embedding) in enumerate(zip(ids, embeddings, strict=True)):
        segment = text_segments[i] if text_segments is not None else None
        rows.append(
            {
                ID_FIELD_NAME: row_id,
                TEXT_FIELD_NAME: segment.text if segment is not None else "",
                METADATA_FIELD_NAME: dict(segment.metadata) if segment is not None else {},
                VECTOR_FIELD_NAME: list(embedding.vector),
            }
        )
    return rows


def relevance_score(distance: float, metric_type: MetricType) -> float:
    """Convert a Milvus distance into a relevance score in [0, 1].

    COSINE and IP similarities in [-1, 1] are shifted into [0, 1];
    L2 distances map to ``1 / (1 + d)``.
    """
    if metric_type in (MetricType.COSINE, MetricType.IP):
        return min(1.0, max(0.0, (distance + 1.0) / 2.0))
    return 1.0 / (1.0 + max(0.0, distance))


def _decode_metadata(raw: Any, row_id: str) -> dict[str, Any]:
    if raw is None or raw == "":
        return {}
    try:
        decoded = json.loads(raw) if isinstance(raw, str) else raw
        return dict(decoded)
    except (TypeError, ValueError) as e:
        raise VectorStoreError(
            f"Stored metadata of {row_id} is not a JSON object",
            details={"id": row_id, "error": str(e)},
        ) from e


def to_embedding_matches(
    hits: Sequence[dict[str, Any]],
    metric_type: MetricType,
    id_to_vector: dict[str, list[float]] | None = None,
) -> list[EmbeddingMatch]:
    """Convert ranked search hits into matches, preserving rank order.

    Args:
        hits: Hits as returned by the provider client.
        metric_type: Metric the distances were computed with.
        id_to_vector: Stored vectors by row id, when embeddings are retrieved.

    Returns:
        Matches in provider rank order.
    """
    matches: list[EmbeddingMatch] = []
    for hit in hits:
        entity = hit.get("entity") or {}
        row_id = str(entity.get(ID_FIELD_NAME, hit["id"]))

        text = entity.get(TEXT_FIELD_NAME)
        embedded = None
        if text:
            embedded = TextSegment(
                text=text,
                metadata=_decode_metadata(entity.get(METADATA_FIELD_NAME), row_id),
            )

        embedding = None
        if id_to_vector is not None and row_id in id_to_vector:
            embedding = Embedding.from_list(id_to_vector[row_id])

        matches.append(
            EmbeddingMatch(
                embedding_id=row_id,
                score=relevance_score(float(hit["distance"]), metric_type),
                embedding=embedding,
                embedded=embedded,
            )
        )
    return matches


def to_id_vector_map(rows: Sequence[dict[str, Any]]) -> dict[str, list[float]]:
    """Index query rows by id, keeping only their vectors."""
    return {
        str(row[ID_FIELD_NAME]): [float(v) for v in row[VECTOR_FIELD_NAME]]
        for row in rows
        if row.get(VECTOR_FIELD_NAME) is not None
    }
