"""
Docsift Embeddings
------------------
Text embedding backends. The same embedder is used for segment text at
ingestion time and for queries at search time.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Protocol

import httpx

from docsift.core.config import EmbeddingConfig
from docsift.errors import EmbeddingError

logger = logging.getLogger("Docsift.Embed")


class Embedder(Protocol):
    dimensions: int

    def embed(self, text: str) -> List[float]:
        ...


class FastEmbedEmbedder:
    """Local ONNX embeddings via fastembed."""

    def __init__(self, model: str, dimensions: int):
        from fastembed import TextEmbedding

        self.model = model
        self.dimensions = dimensions
        self._model = TextEmbedding(model_name=model)
        logger.info("Embedding model loaded: fastembed/%s", model)

    def embed(self, text: str) -> List[float]:
        try:
            embeddings = list(self._model.embed([text]))
            return embeddings[0].tolist()
        except Exception as exc:
            raise EmbeddingError(f"fastembed failed: {exc}") from exc


class OllamaEmbedder:
    """Embeddings from an Ollama server's ``/api/embeddings`` endpoint."""

    def __init__(
        self,
        model: str,
        dimensions: int,
        *,
        base_url: str = "http://localhost:11434",
        timeout: float = 30.0,
        client: Optional[httpx.Client] = None,
    ):
        self.model = model
        self.dimensions = dimensions
        self.base_url = base_url.rstrip("/")
        self._client = client or httpx.Client(timeout=timeout)

    def embed(self, text: str) -> List[float]:
        try:
            response = self._client.post(
                f"{self.base_url}/api/embeddings",
                json={"model": self.model, "prompt": text},
            )
            response.raise_for_status()
            embedding = response.json()["embedding"]
        except (httpx.HTTPError, KeyError, ValueError) as exc:
            raise EmbeddingError(f"Ollama embedding failed: {exc}") from exc
        if len(embedding) != self.dimensions:
            raise EmbeddingError(
                f"Ollama returned {len(embedding)} dims, expected {self.dimensions}"
            )
        return embedding

    def close(self) -> None:
        self._client.close()


def create_embedder(config: EmbeddingConfig) -> Embedder:
    """Build the configured embedder, falling back to Ollama when fastembed is unusable."""
    if config.provider == "fastembed":
        try:
            return FastEmbedEmbedder(config.model, config.dimensions)
        except ImportError:
            logger.info("fastembed not available; falling back to Ollama embeddings")
        except Exception as exc:
            logger.warning("FastEmbed init failed: %s; falling back to Ollama", exc)
    return OllamaEmbedder(
        config.ollama_model or config.model,
        config.dimensions,
        base_url=config.ollama_url,
        timeout=config.timeout_seconds,
    )
