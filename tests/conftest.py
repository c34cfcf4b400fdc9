"""Shared fixtures: deterministic embedder, dict-backed store, context builders."""

import hashlib
import math
import re
from typing import Any, Dict, List, Optional

import pytest

from docsift.ingestion.pipeline import IngestionPipeline
from docsift.ingestion.processor import DocumentProcessor
from docsift.ingestion.state import IngestionState
from docsift.store.vector_store import SearchHit

_WORD_RE = re.compile(r"[a-z0-9]+")


class HashingEmbedder:
    """Bag-of-words vectors: texts sharing words land close together."""

    def __init__(self, dimensions: int = 32):
        self.dimensions = dimensions
        self.calls: List[str] = []

    def embed(self, text: str) -> List[float]:
        self.calls.append(text)
        vector = [0.0] * self.dimensions
        for word in _WORD_RE.findall(text.lower()):
            bucket = int(hashlib.md5(word.encode("utf-8")).hexdigest(), 16) % self.dimensions
            vector[bucket] += 1.0
        norm = math.sqrt(sum(v * v for v in vector))
        if norm == 0:
            vector[0] = 1.0
            return vector
        return [v / norm for v in vector]


class FailingEmbedder:
    dimensions = 32

    def embed(self, text: str) -> List[float]:
        raise RuntimeError("embedding backend offline")


class MemoryStore:
    """Dict-backed stand-in for the qdrant store."""

    def __init__(self):
        self.points: Dict[str, Dict[str, Any]] = {}

    def upsert(self, segment_id: str, vector: List[float], payload: Dict[str, Any]) -> str:
        self.points[segment_id] = {"vector": vector, "payload": dict(payload)}
        return segment_id

    def remove_all(self, segment_ids: List[str]) -> int:
        for segment_id in segment_ids:
            self.points.pop(segment_id, None)
        return len(segment_ids)

    def ids_for_file(self, file_id: str) -> List[str]:
        return sorted(
            segment_id
            for segment_id, point in self.points.items()
            if point["payload"].get("file_id") == file_id
        )

    def remove_file(self, file_id: str) -> int:
        return self.remove_all(self.ids_for_file(file_id))

    def search(self, vector: List[float], limit: int = 10, filters: Optional[Dict[str, Any]] = None) -> List[SearchHit]:
        hits = []
        for segment_id, point in self.points.items():
            payload = point["payload"]
            if filters and any(payload.get(key) != value for key, value in filters.items()):
                continue
            score = sum(a * b for a, b in zip(vector, point["vector"]))
            metadata = {k: v for k, v in payload.items() if k != "content"}
            hits.append(SearchHit(segment_id=segment_id, score=score, content=payload["content"], metadata=metadata))
        hits.sort(key=lambda hit: hit.score, reverse=True)
        return hits[:limit]


@pytest.fixture
def embedder():
    return HashingEmbedder()


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def state():
    return IngestionState()


@pytest.fixture
def pipeline(embedder, store, state):
    return IngestionPipeline(
        processor=DocumentProcessor(),
        embedder=embedder,
        store=store,
        state=state,
    )
