"""
Milvus wire-level constants shared by the store, its requests and settings.
"""

from enum import Enum
from typing import Final

# Collection schema field names. These must stay stable for
# interoperability with collections created by earlier deployments.
ID_FIELD_NAME: Final[str] = "id"
TEXT_FIELD_NAME: Final[str] = "text"
METADATA_FIELD_NAME: Final[str] = "metadata"
VECTOR_FIELD_NAME: Final[str] = "vector"

ID_MAX_LENGTH: Final[int] = 36
TEXT_MAX_LENGTH: Final[int] = 65535

SCALAR_OUTPUT_FIELDS: Final[list[str]] = [
    ID_FIELD_NAME,
    TEXT_FIELD_NAME,
    METADATA_FIELD_NAME,
]

# Matches every row; Milvus rejects an empty delete expression.
MATCH_ALL_EXPRESSION: Final[str] = f'{ID_FIELD_NAME} != ""'


class IndexType(str, Enum):
    """Vector index types understood by Milvus."""

    FLAT = "FLAT"
    IVF_FLAT = "IVF_FLAT"
    IVF_SQ8 = "IVF_SQ8"
    IVF_PQ = "IVF_PQ"
    HNSW = "HNSW"
    DISKANN = "DISKANN"
    SCANN = "SCANN"
    AUTOINDEX = "AUTOINDEX"


class MetricType(str, Enum):
    """Similarity metrics for float vectors."""

    COSINE = "COSINE"
    IP = "IP"
    L2 = "L2"


class ConsistencyLevel(str, Enum):
    """Read consistency levels, weakest last."""

    STRONG = "Strong"
    SESSION = "Session"
    BOUNDED = "Bounded"
    EVENTUALLY = "Eventually"
