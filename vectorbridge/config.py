"""Application configuration using Pydantic Settings.

All configuration is loaded from environment variables.
No secrets are hardcoded.
"""

from enum import Enum
from functools import lru_cache

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from vectorbridge.constants import ConsistencyLevel, IndexType, MetricType


class Environment(str, Enum):
    """Application environment."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class LLMSettings(BaseSettings):
    """Streaming LLM client configuration.

    Targets any OpenAI-compatible chat completions endpoint.
    """

    model_config = SettingsConfigDict(env_prefix="LLM_")

    base_url: str = Field(
        default="http://localhost:11434/v1",
        description="LLM API base URL (Ollama default)",
    )
    model: str = Field(
        default="llama3:8b",
        description="Model name to use for generation",
    )
    api_key: SecretStr = Field(
        default=SecretStr("not-required"),
        description="API key (not required for Ollama)",
    )
    timeout: float = Field(
        default=120.0,
        description="Request timeout in seconds",
    )
    max_tokens: int = Field(
        default=2048,
        description="Maximum tokens in response",
    )
    temperature: float = Field(
        default=0.1,
        description="Sampling temperature (lower = more deterministic)",
    )


class MilvusSettings(BaseSettings):
    """Milvus vector database configuration.

    Covers both self-managed instances (host/port, username/password)
    and managed ones (uri/token).
    """

    model_config = SettingsConfigDict(env_prefix="MILVUS_")

    host: str = Field(
        default="localhost",
        description="Host of a self-managed Milvus instance",
    )
    port: int = Field(
        default=19530,
        description="Port of a self-managed Milvus instance",
    )
    uri: str | None = Field(
        default=None,
        description="URI of a managed Milvus instance (overrides host/port)",
    )
    token: SecretStr | None = Field(
        default=None,
        description="API token of a managed Milvus instance",
    )
    username: str | None = Field(
        default=None,
        description="Username for authentication",
    )
    password: SecretStr | None = Field(
        default=None,
        description="Password for authentication",
    )
    database_name: str | None = Field(
        default=None,
        description="Database name (Milvus default database when unset)",
    )
    collection_name: str = Field(
        default="default",
        description="Collection name, created automatically when missing",
    )
    dimension: int | None = Field(
        default=None,
        gt=0,
        description="Embedding dimension, mandatory when the collection must be created",
    )
    index_type: IndexType = Field(
        default=IndexType.FLAT,
        description="Index type built on the vector field",
    )
    metric_type: MetricType = Field(
        default=MetricType.COSINE,
        description="Similarity metric used for search",
    )
    consistency_level: ConsistencyLevel = Field(
        default=ConsistencyLevel.EVENTUALLY,
        description="Consistency level for search and query",
    )
    retrieve_embeddings_on_search: bool = Field(
        default=False,
        description="Return stored vectors with search matches",
    )
    timeout: float | None = Field(
        default=None,
        description="Client RPC timeout in seconds (client default when unset)",
    )

    def connection_uri(self) -> str:
        """Get the URI used to connect to Milvus."""
        if self.uri:
            return self.uri
        return f"http://{self.host}:{self.port}"


class Settings(BaseSettings):
    """Main application settings.

    Aggregates all configuration sections.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    environment: Environment = Field(
        default=Environment.DEVELOPMENT,
        description="Application environment",
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )

    # Nested settings
    milvus: MilvusSettings = Field(default_factory=MilvusSettings)
    llm: LLMSettings = Field(default_factory=LLMSettings)


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Returns:
        Settings instance loaded from environment.
    """
    return Settings()
