"""Embedding store data models."""

from collections.abc import Sequence
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from vectorbridge.vectorstore.filters import Filter


class Embedding(BaseModel):
    """A dense embedding vector.

    Attributes:
        vector: Vector components, in order.
    """

    vector: list[float] = Field(description="Embedding vector")

    @classmethod
    def from_list(cls, values: Sequence[float]) -> "Embedding":
        """Create an embedding from any sequence of numbers."""
        return cls(vector=[float(v) for v in values])

    def dimension(self) -> int:
        """Get the number of components."""
        return len(self.vector)


class TextSegment(BaseModel):
    """Text stored alongside an embedding.

    Attributes:
        text: The text that was embedded.
        metadata: JSON-serialisable key-value metadata.
    """

    text: str = Field(description="Segment text")
    metadata: dict[str, Any] = Field(
        default_factory=dict,
        description="Segment metadata",
    )

    @classmethod
    def from_text(cls, text: str, metadata: dict[str, Any] | None = None) -> "TextSegment":
        """Create a segment from text and optional metadata."""
        return cls(text=text, metadata=metadata or {})


class EmbeddingMatch(BaseModel):
    """A single ranked search match.

    Attributes:
        embedding_id: Identifier of the stored row.
        score: Relevance score in [0, 1] (higher is more relevant).
        embedding: Stored vector, only when retrieval on search is enabled.
        embedded: Stored text segment, when the row has text.
    """

    embedding_id: str = Field(description="Stored row identifier")
    score: float = Field(description="Relevance score")
    embedding: Embedding | None = Field(default=None, description="Stored vector")
    embedded: TextSegment | None = Field(default=None, description="Stored text segment")


class EmbeddingSearchRequest(BaseModel):
    """Parameters of a similarity search.

    Attributes:
        query_embedding: Vector to search with.
        max_results: Upper bound on returned matches (provider top-K).
        min_score: Matches scoring below this are dropped.
        filter: Optional metadata filter.
    """

    query_embedding: Embedding = Field(description="Query vector")
    max_results: int = Field(default=3, gt=0, description="Maximum matches")
    min_score: float = Field(default=0.0, ge=0.0, le=1.0, description="Minimum score")
    filter: Filter | None = Field(default=None, description="Metadata filter")


class EmbeddingSearchResult(BaseModel):
    """Matches of a similarity search, most relevant first."""

    matches: list[EmbeddingMatch] = Field(default_factory=list)


class LoadState(str, Enum):
    """Whether a collection or partition is loaded into serving memory."""

    NOT_EXIST = "NotExist"
    NOT_LOAD = "NotLoad"
    LOADING = "Loading"
    LOADED = "Loaded"
