# Configuration loader with environment variable support
# YAML file holds behaviour; environment holds connection details and secrets.

import logging
import os
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from cascadesync.providers.settings import EmbeddingSettings as ProviderEmbeddingSettings

from .models import CascadeBaseModel

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 50
VALID_SIMILARITIES = {"cosine", "dot", "euclidean"}


class AppConfig(BaseModel):
    name: str = "cascadesync"
    version: str = "0.1.0"
    log_level: str = "INFO"
    environment: str = "development"


class EmbeddingConfig(CascadeBaseModel):
    """
    Embedding configuration.
    This is the single source of truth for all embedding parameters.
    """

    provider: str = Field(default="http")
    embedding_model: str = Field(default="BAAI/bge-m3", alias="model_name")
    dims: int = Field(default=1024)
    similarity: str = Field(default="cosine")
    version: Optional[str] = Field(default=None)
    task: str = Field(default="retrieval.passage")
    timeout_seconds: float = Field(default=60.0, gt=0)

    model_config = ConfigDict(protected_namespaces=(), populate_by_name=True)

    @field_validator("similarity")
    @classmethod
    def validate_similarity(cls, v):
        """Validate similarity metric is supported"""
        if v not in VALID_SIMILARITIES:
            raise ValueError(f"similarity must be one of {VALID_SIMILARITIES}, got {v}")
        return v

    @field_validator("dims")
    @classmethod
    def validate_dims(cls, v):
        """Validate dimensions are reasonable"""
        if v <= 0:
            raise ValueError(f"dims must be positive, got {v}")
        if v > 4096:  # Sanity check
            logger.warning(f"dims={v} is unusually large, typical range is 128-1536")
        return v


class QdrantConfig(BaseModel):
    collection_name: str = "unified_records"
    timeout: int = 30
    distance: str = "cosine"
    create_collection: bool = True


class GraphConfig(BaseModel):
    enabled: bool = True
    relationship_type: str = "FK_RELATION"

    @field_validator("relationship_type")
    @classmethod
    def _relationship_type_identifier(cls, v: str):
        if not v or not v.replace("_", "").isalnum():
            raise ValueError(
                f"relationship_type must be an alphanumeric identifier, got {v!r}"
            )
        return v.upper()


class SyncConfig(BaseModel):
    batch_size: int = Field(default=DEFAULT_BATCH_SIZE, gt=0)
    data_dir: str = "samples"
    file_prefix: str = "SAMPLE_"
    extensions: List[str] = Field(default_factory=lambda: [".xlsx", ".csv"])
    default_extension: str = ".xlsx"

    @field_validator("extensions", mode="before")
    @classmethod
    def _normalize_extensions(cls, value):
        if isinstance(value, str):
            value = [value]
        return [ext if ext.startswith(".") else f".{ext}" for ext in value]

    @field_validator("default_extension")
    @classmethod
    def _normalize_default_extension(cls, value: str):
        return value if value.startswith(".") else f".{value}"


class Config(CascadeBaseModel):
    """Main configuration model"""

    app: AppConfig = Field(default_factory=AppConfig)
    embedding: EmbeddingConfig = Field(default_factory=EmbeddingConfig)
    qdrant: QdrantConfig = Field(default_factory=QdrantConfig)
    graph: GraphConfig = Field(default_factory=GraphConfig)
    sync: SyncConfig = Field(default_factory=SyncConfig)


class Settings(BaseSettings):
    """Environment-based settings"""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",  # Ignore extra environment variables
        populate_by_name=True,
    )

    # Environment
    env: str = Field(default="development", alias="ENV")
    config_path: Optional[str] = Field(default=None, alias="CONFIG_PATH")

    # Neo4j
    neo4j_uri: str = Field(default="bolt://localhost:7687", alias="NEO4J_URI")
    neo4j_user: str = Field(default="neo4j", alias="NEO4J_USER")
    neo4j_password: str = Field(default="", alias="NEO4J_PASSWORD")

    # Qdrant
    qdrant_host: str = Field(default="localhost", alias="QDRANT_HOST")
    qdrant_port: int = Field(default=6333, alias="QDRANT_PORT")
    qdrant_api_key: Optional[str] = Field(default=None, alias="QDRANT_API_KEY")

    # Embedding service
    embedding_base_url: Optional[str] = Field(default=None, alias="EMBEDDING_BASE_URL")
    embedding_api_key: Optional[str] = Field(default=None, alias="EMBEDDING_API_KEY")

    # Source data
    data_dir: Optional[str] = Field(default=None, alias="DATA_DIR")

    # Logging
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")


def _default_config_path(env: str) -> Path:
    return Path(__file__).parent.parent.parent / "config" / f"{env}.yaml"


def load_config() -> tuple[Config, Settings]:
    """
    Load configuration from YAML file and environment variables.

    Returns:
        tuple: (Config, Settings) - YAML config and environment settings

    Raises:
        FileNotFoundError: If config file not found
        ValueError: If configuration validation fails
    """
    settings = Settings()

    if settings.config_path:
        config_path = Path(settings.config_path)
    else:
        config_path = _default_config_path(settings.env)

    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    logger.info(f"Loading configuration from: {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        config_dict = yaml.safe_load(f) or {}

    try:
        config = Config(**config_dict)
    except ValidationError as exc:
        raise ValueError(f"Invalid configuration in {config_path}: {exc}") from exc

    if settings.data_dir:
        config.sync.data_dir = settings.data_dir

    validate_config_at_startup(config, settings)

    return config, settings


def validate_config_at_startup(config: Config, settings: Settings) -> None:
    """
    Validate critical configuration at startup.

    Raises:
        ValueError: If critical validation fails
    """
    logger.info(
        "Embedding configuration loaded: provider=%s model=%s dims=%s",
        config.embedding.provider,
        config.embedding.embedding_model,
        config.embedding.dims,
    )

    if not config.embedding.provider:
        raise ValueError("embedding.provider must be defined")

    if not config.qdrant.collection_name.strip():
        raise ValueError("qdrant.collection_name cannot be empty")

    if config.qdrant.distance != config.embedding.similarity:
        logger.warning(
            f"Qdrant distance ({config.qdrant.distance}) != embedding similarity "
            f"({config.embedding.similarity}). This may cause issues."
        )

    logger.info("Configuration validation successful")


def get_embedding_settings(
    config_override: Optional[Config] = None,
    settings_override: Optional[Settings] = None,
) -> ProviderEmbeddingSettings:
    """Build EmbeddingSettings from resolved config + environment."""
    config = config_override or get_config()
    settings = settings_override or get_settings()
    embedding = config.embedding

    return ProviderEmbeddingSettings(
        provider=embedding.provider,
        model_id=embedding.embedding_model,
        version=embedding.version or embedding.embedding_model,
        dims=embedding.dims,
        similarity=embedding.similarity,
        task=embedding.task,
        service_url=settings.embedding_base_url or os.getenv("OLLAMA_BASE_URL"),
        api_key=settings.embedding_api_key,
        timeout_seconds=embedding.timeout_seconds,
    )


# Global config instances (loaded once at startup)
_config: Optional[Config] = None
_settings: Optional[Settings] = None


def get_config() -> Config:
    """Get the global Config instance"""
    global _config, _settings
    if _config is None:
        _config, _settings = load_config()
    return _config


def get_settings() -> Settings:
    """Get the global Settings instance"""
    global _config, _settings
    if _settings is None:
        _config, _settings = load_config()
    return _settings


def reload_config() -> tuple[Config, Settings]:
    """Force reload of config/settings from disk and environment."""
    global _config, _settings
    _config, _settings = load_config()
    return _config, _settings
