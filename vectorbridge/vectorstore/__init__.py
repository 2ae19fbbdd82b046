"""Milvus embedding store module."""

from vectorbridge.vectorstore.client import ProviderClient, ProviderResponse, PymilvusProviderClient
from vectorbridge.vectorstore.executor import OperationsExecutor
from vectorbridge.vectorstore.filters import Filter, metadata_key, to_milvus_expression
from vectorbridge.vectorstore.models import (
    Embedding,
    EmbeddingMatch,
    EmbeddingSearchRequest,
    EmbeddingSearchResult,
    LoadState,
    TextSegment,
)
from vectorbridge.vectorstore.service import EmbeddingStore, MilvusEmbeddingStore

__all__ = [
    "Embedding",
    "EmbeddingMatch",
    "EmbeddingSearchRequest",
    "EmbeddingSearchResult",
    "EmbeddingStore",
    "Filter",
    "LoadState",
    "MilvusEmbeddingStore",
    "OperationsExecutor",
    "ProviderClient",
    "ProviderResponse",
    "PymilvusProviderClient",
    "TextSegment",
    "metadata_key",
    "to_milvus_expression",
]
