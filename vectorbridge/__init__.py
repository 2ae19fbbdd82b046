"""vectorbridge: Milvus embedding store adapter and streaming chat contracts."""

__version__ = "0.1.0"
