"""
Docsift Vector Store
--------------------
Qdrant-backed segment storage. Runs in-memory by default; a filesystem path
switches qdrant-client to local persistent mode.
"""

from __future__ import annotations

import logging
import threading
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from qdrant_client import QdrantClient
from qdrant_client.models import (
    Distance,
    FieldCondition,
    Filter,
    MatchValue,
    PointIdsList,
    PointStruct,
    VectorParams,
)

from docsift.core.config import VectorConfig

logger = logging.getLogger("Docsift.Vector")

SCROLL_PAGE_SIZE = 256


@dataclass
class SearchHit:
    segment_id: str
    score: float
    content: str
    metadata: Dict[str, Any] = field(default_factory=dict)


def point_id(segment_id: str) -> str:
    return str(uuid.uuid5(uuid.NAMESPACE_DNS, segment_id))


def build_filter(filters: Optional[Dict[str, Any]]) -> Optional[Filter]:
    if not filters:
        return None
    return Filter(
        must=[FieldCondition(key=key, match=MatchValue(value=value)) for key, value in filters.items()]
    )


class VectorStore:
    """Stores one point per segment, keyed by a uuid5 of the segment id."""

    def __init__(self, config: Optional[VectorConfig] = None, *, dimensions: int = 384):
        self.config = config or VectorConfig()
        self.collection_name = self.config.collection
        self.dimensions = dimensions
        self._client: Optional[QdrantClient] = None
        self._lock = threading.Lock()
        self._initialize()

    def _get_client(self) -> QdrantClient:
        if self._client is None:
            if self.config.path:
                self._client = QdrantClient(path=self.config.path)
            else:
                self._client = QdrantClient(location=self.config.location)
        return self._client

    def _initialize(self) -> None:
        client = self._get_client()
        collections = [c.name for c in client.get_collections().collections]
        if self.collection_name not in collections:
            client.create_collection(
                collection_name=self.collection_name,
                vectors_config=VectorParams(size=self.dimensions, distance=Distance.COSINE),
            )
            logger.info("Created vector collection '%s' (%d dims)", self.collection_name, self.dimensions)

    def upsert(self, segment_id: str, vector: List[float], payload: Dict[str, Any]) -> str:
        record = dict(payload)
        record["segment_id"] = segment_id
        pid = point_id(segment_id)
        with self._lock:
            self._get_client().upsert(
                collection_name=self.collection_name,
                points=[PointStruct(id=pid, vector=vector, payload=record)],
            )
        return pid

    def remove_all(self, segment_ids: List[str]) -> int:
        if not segment_ids:
            return 0
        with self._lock:
            self._get_client().delete(
                collection_name=self.collection_name,
                points_selector=PointIdsList(points=[point_id(sid) for sid in segment_ids]),
            )
        return len(segment_ids)

    def find_ids(self, filters: Dict[str, Any]) -> List[str]:
        """Segment ids of every point whose payload matches all filters."""
        client = self._get_client()
        found: List[str] = []
        offset = None
        with self._lock:
            while True:
                points, offset = client.scroll(
                    collection_name=self.collection_name,
                    scroll_filter=build_filter(filters),
                    limit=SCROLL_PAGE_SIZE,
                    offset=offset,
                    with_payload=True,
                    with_vectors=False,
                )
                found.extend(
                    point.payload["segment_id"]
                    for point in points
                    if point.payload and "segment_id" in point.payload
                )
                if offset is None:
                    break
        return found

    def ids_for_file(self, file_id: str) -> List[str]:
        return self.find_ids({"file_id": file_id})

    def remove_file(self, file_id: str) -> int:
        removed = self.remove_all(self.ids_for_file(file_id))
        if removed:
            logger.debug("Removed %d segment(s) for %s", removed, file_id)
        return removed

    def search(
        self,
        query_vector: List[float],
        limit: int = 10,
        filters: Optional[Dict[str, Any]] = None,
    ) -> List[SearchHit]:
        with self._lock:
            results = self._get_client().query_points(
                collection_name=self.collection_name,
                query=query_vector,
                limit=limit,
                query_filter=build_filter(filters),
                with_payload=True,
            ).points
        hits: List[SearchHit] = []
        for hit in results:
            payload = dict(hit.payload or {})
            segment_id = payload.pop("segment_id", "")
            content = payload.pop("content", "")
            hits.append(SearchHit(segment_id=segment_id, score=hit.score, content=content, metadata=payload))
        return hits

    def count(self) -> int:
        info = self._get_client().get_collection(self.collection_name)
        return info.points_count or 0

    def close(self) -> None:
        if self._client:
            self._client.close()
            self._client = None
