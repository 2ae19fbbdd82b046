"""Tests for row and hit mapping."""

import pytest

from vectorbridge.constants import MetricType
from vectorbridge.exceptions import ErrorCode, VectorStoreError
from vectorbridge.vectorstore import mapper
from vectorbridge.vectorstore.models import Embedding, TextSegment


class TestGenerateIds:
    """Tests for identifier generation."""

    def test_distinct_uuids(self) -> None:
        """Generated ids are distinct and fit the primary key."""
        ids = mapper.generate_ids(50)
        assert len(set(ids)) == 50
        assert all(len(i) == 36 for i in ids)


class TestToInsertRows:
    """Tests for insert row building."""

    def test_rows_with_segments(self) -> None:
        """Rows carry text and metadata from segments."""
        rows = mapper.to_insert_rows(
            ["a"],
            [Embedding.from_list([1, 2])],
            [TextSegment.from_text("hello", {"lang": "en"})],
        )
        assert rows == [
            {"id": "a", "text": "hello", "metadata": {"lang": "en"}, "vector": [1.0, 2.0]}
        ]

    def test_rows_without_segments(self) -> None:
        """Rows without segments store empty text and metadata."""
        rows = mapper.to_insert_rows(["a", "b"], [Embedding.from_list([1]), Embedding.from_list([2])])
        assert [r["text"] for r in rows] == ["", ""]
        assert [r["metadata"] for r in rows] == [{}, {}]

    def test_length_mismatch(self) -> None:
        """Ids and embeddings must line up."""
        with pytest.raises(ValueError):
            mapper.to_insert_rows(["a"], [Embedding.from_list([1]), Embedding.from_list([2])])


class TestRelevanceScore:
    """Tests for distance to score conversion."""

    @pytest.mark.parametrize(
        ("distance", "expected"),
        [(1.0, 1.0), (0.0, 0.5), (-1.0, 0.0), (0.5, 0.75)],
    )
    def test_cosine(self, distance: float, expected: float) -> None:
        """Cosine similarity maps linearly into [0, 1]."""
        assert mapper.relevance_score(distance, MetricType.COSINE) == pytest.approx(expected)

    def test_cosine_clamped(self) -> None:
        """Float noise above 1 is clamped."""
        assert mapper.relevance_score(1.0000001, MetricType.COSINE) == 1.0

    def test_l2(self) -> None:
        """L2 distance of zero is a perfect match."""
        assert mapper.relevance_score(0.0, MetricType.L2) == 1.0
        assert mapper.relevance_score(1.0, MetricType.L2) == pytest.approx(0.5)


class TestToEmbeddingMatches:
    """Tests for hit conversion."""

    def test_match_with_text(self) -> None:
        """Hits with text carry a text segment."""
        hits = [
            {
                "id": "a",
                "distance": 0.8,
                "entity": {"id": "a", "text": "hello", "metadata": {"k": 1}},
            }
        ]
        [match] = mapper.to_embedding_matches(hits, MetricType.COSINE)

        assert match.embedding_id == "a"
        assert match.score == pytest.approx(0.9)
        assert match.embedded == TextSegment(text="hello", metadata={"k": 1})
        assert match.embedding is None

    def test_empty_text_has_no_segment(self) -> None:
        """Rows stored without text have no segment."""
        hits = [{"id": "a", "distance": 0.1, "entity": {"id": "a", "text": "", "metadata": {}}}]
        [match] = mapper.to_embedding_matches(hits, MetricType.COSINE)
        assert match.embedded is None

    def test_json_string_metadata(self) -> None:
        """Metadata returned as a JSON string is decoded."""
        hits = [
            {"id": "a", "distance": 0.1, "entity": {"text": "t", "metadata": '{"k": "v"}'}}
        ]
        [match] = mapper.to_embedding_matches(hits, MetricType.COSINE)
        assert match.embedded is not None
        assert match.embedded.metadata == {"k": "v"}

    @pytest.mark.parametrize("raw", ["{not json", "[1, 2]", "42"])
    def test_corrupt_metadata(self, raw: str) -> None:
        """Stored metadata that is not a JSON object raises a store error."""
        hits = [{"id": "a", "distance": 0.1, "entity": {"text": "t", "metadata": raw}}]

        with pytest.raises(VectorStoreError) as exc_info:
            mapper.to_embedding_matches(hits, MetricType.COSINE)

        assert exc_info.value.code == ErrorCode.VECTOR_STORE_ERROR
        assert exc_info.value.details["id"] == "a"

    def test_embeddings_attached(self) -> None:
        """Vectors are attached by id when provided."""
        hits = [
            {"id": "a", "distance": 0.9, "entity": {}},
            {"id": "b", "distance": 0.5, "entity": {}},
        ]
        matches = mapper.to_embedding_matches(hits, MetricType.COSINE, {"a": [1.0, 0.0]})

        assert [m.embedding_id for m in matches] == ["a", "b"]
        assert matches[0].embedding == Embedding(vector=[1.0, 0.0])
        assert matches[1].embedding is None


class TestToIdVectorMap:
    """Tests for query row indexing."""

    def test_rows_without_vectors_skipped(self) -> None:
        """Rows missing a vector are left out."""
        rows = [{"id": "a", "vector": [1, 2]}, {"id": "b", "vector": None}]
        assert mapper.to_id_vector_map(rows) == {"a": [1.0, 2.0]}
