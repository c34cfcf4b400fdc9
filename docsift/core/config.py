"""
Docsift Configuration
---------------------
Centralized configuration for all Docsift components.
Loads from environment variables and YAML config files.
"""

from __future__ import annotations

import os
import logging
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from docsift.errors import ConfigError
from docsift.ingestion.models import CompiledPathSpec
from docsift.ingestion.pathspec import compile_path_spec

logger = logging.getLogger("Docsift.Config")

DEFAULT_STRATEGY = "whole-document"
_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def _env_flag(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    lowered = raw.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    logger.warning("Invalid %s value '%s'; expected a boolean. Using %s.", name, raw, default)
    return default


def _env_int(name: str, default: int, *, minimum: int = 1) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
        if value < minimum:
            raise ValueError
        return value
    except ValueError:
        logger.warning(
            "Invalid %s value '%s'; expected integer >= %d. Using %d.",
            name,
            raw,
            minimum,
            default,
        )
        return default


class EmbeddingConfig(BaseModel):
    """Embedding model configuration."""
    provider: str = "fastembed"  # fastembed | ollama
    model: str = "BAAI/bge-small-en-v1.5"
    dimensions: int = 384
    ollama_url: str = "http://localhost:11434"
    ollama_model: str = "all-minilm"
    timeout_seconds: float = 30.0


class VectorConfig(BaseModel):
    """Qdrant vector store configuration."""
    location: str = ":memory:"
    path: Optional[str] = None
    collection: str = "docsift_segments"


class WatchConfig(BaseModel):
    """Filesystem watch defaults."""
    enabled: bool = False
    debounce_ms: int = Field(default=500, ge=1)


class IngestionConfig(BaseModel):
    """Ingestion bookkeeping limits."""
    max_failures: int = Field(default=20, ge=1)
    max_sources: int = Field(default=100, ge=1)
    encoding: str = "utf-8"


class SourceConfig(BaseModel):
    """
    One configured source. Keys beyond ``path``, ``ingest`` and ``watch`` are
    strategy options when the strategy claims them, otherwise metadata.
    """

    model_config = ConfigDict(extra="allow")

    path: str
    ingest: str = DEFAULT_STRATEGY
    watch: Optional[bool] = None

    def extras(self) -> Dict[str, Any]:
        return dict(self.model_extra or {})


class DocsiftConfig(BaseModel):
    """Root configuration object."""
    description: str = "Search indexed documents by semantic similarity."
    embedding: EmbeddingConfig = Field(default_factory=EmbeddingConfig)
    vector: VectorConfig = Field(default_factory=VectorConfig)
    watch: WatchConfig = Field(default_factory=WatchConfig)
    ingestion: IngestionConfig = Field(default_factory=IngestionConfig)
    sources: List[SourceConfig] = Field(default_factory=list)

    def compile_sources(self, registry) -> List[CompiledPathSpec]:
        """
        Compile every source against the strategy registry.

        Raises PathSpecSyntaxError, ConfigError or UnknownStrategyError for the
        first invalid source.
        """
        return [compile_source(source, registry, watch_default=self.watch.enabled) for source in self.sources]

    @classmethod
    def from_env(cls) -> "DocsiftConfig":
        """
        Load configuration from environment variables.

        Environment variables override defaults:
        - DOCSIFT_EMBEDDING_PROVIDER: fastembed or ollama
        - DOCSIFT_EMBEDDING_MODEL / DOCSIFT_EMBEDDING_DIMS
        - DOCSIFT_OLLAMA_URL / DOCSIFT_OLLAMA_MODEL
        - DOCSIFT_VECTOR_PATH: persist qdrant data here instead of in memory
        - DOCSIFT_WATCH: default watch flag for sources
        - DOCSIFT_DEBOUNCE_MS: re-index debounce window
        - DOCSIFT_MAX_FAILURES / DOCSIFT_MAX_SOURCES
        """
        embedding = EmbeddingConfig(
            provider=os.environ.get("DOCSIFT_EMBEDDING_PROVIDER", "fastembed"),
            model=os.environ.get("DOCSIFT_EMBEDDING_MODEL", EmbeddingConfig().model),
            dimensions=_env_int("DOCSIFT_EMBEDDING_DIMS", 384),
            ollama_url=os.environ.get("DOCSIFT_OLLAMA_URL", "http://localhost:11434"),
            ollama_model=os.environ.get("DOCSIFT_OLLAMA_MODEL", "all-minilm"),
        )
        vector = VectorConfig(path=os.environ.get("DOCSIFT_VECTOR_PATH") or None)
        watch = WatchConfig(
            enabled=_env_flag("DOCSIFT_WATCH", False),
            debounce_ms=_env_int("DOCSIFT_DEBOUNCE_MS", 500),
        )
        ingestion = IngestionConfig(
            max_failures=_env_int("DOCSIFT_MAX_FAILURES", 20),
            max_sources=_env_int("DOCSIFT_MAX_SOURCES", 100),
        )
        return cls(embedding=embedding, vector=vector, watch=watch, ingestion=ingestion)

    @classmethod
    def from_yaml(cls, path: str) -> "DocsiftConfig":
        """Load configuration from a YAML file."""
        import yaml

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except FileNotFoundError:
            logger.warning("Config file not found: %s; using environment defaults", path)
            return cls.from_env()
        if not isinstance(data, dict):
            raise ConfigError(f"Config file {path} must contain a mapping at the top level")
        return cls(**data)


def compile_source(source: SourceConfig, registry, *, watch_default: bool = False) -> CompiledPathSpec:
    strategy = registry.get(source.ingest)
    extras = source.extras()
    options = {key: value for key, value in extras.items() if key in strategy.option_keys}
    metadata = {key: value for key, value in extras.items() if key not in strategy.option_keys}
    return compile_path_spec(
        source.path,
        strategy=source.ingest,
        strategy_options=options,
        base_metadata=metadata,
        watch=watch_default if source.watch is None else source.watch,
        registry=registry,
    )
