"""Tests for the embedding backends."""

import sys

import httpx
import pytest

from docsift.core.config import EmbeddingConfig
from docsift.embedding import OllamaEmbedder, create_embedder
from docsift.errors import EmbeddingError


def _client(handler):
    return httpx.Client(transport=httpx.MockTransport(handler))


def test_ollama_embedder_posts_prompt():
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        seen["body"] = request.read().decode("utf-8")
        return httpx.Response(200, json={"embedding": [0.1, 0.2, 0.3]})

    embedder = OllamaEmbedder("all-minilm", 3, base_url="http://ollama:11434/", client=_client(handler))

    assert embedder.embed("hello") == [0.1, 0.2, 0.3]
    assert seen["url"] == "http://ollama:11434/api/embeddings"
    assert '"prompt":"hello"' in seen["body"].replace(" ", "")


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(500, text="down"),
        httpx.Response(200, json={"unexpected": []}),
        httpx.Response(200, json={"embedding": [0.1]}),
    ],
)
def test_ollama_embedder_failures_raise_embedding_error(response):
    embedder = OllamaEmbedder("all-minilm", 3, client=_client(lambda request: response))
    with pytest.raises(EmbeddingError):
        embedder.embed("hello")


def test_create_embedder_ollama_provider():
    embedder = create_embedder(EmbeddingConfig(provider="ollama", dimensions=384))
    assert isinstance(embedder, OllamaEmbedder)
    assert embedder.model == "all-minilm"
    assert embedder.dimensions == 384


def test_create_embedder_falls_back_when_fastembed_missing(monkeypatch):
    monkeypatch.setitem(sys.modules, "fastembed", None)
    embedder = create_embedder(EmbeddingConfig(provider="fastembed"))
    assert isinstance(embedder, OllamaEmbedder)
