"""
Semantic search over indexed segments, with a filter schema built from the
metadata values seen during ingestion.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from docsift.ingestion.state import IngestionState

logger = logging.getLogger("Docsift.Search")

DEFAULT_LIMIT = 10
MAX_LIMIT = 100


def build_metadata_schema(metadata_values: Dict[str, List[Any]]) -> Dict[str, Any]:
    properties = {
        field: {
            "type": "string",
            "enum": sorted({str(value) for value in values}),
        }
        for field, values in sorted(metadata_values.items())
    }
    return {
        "type": "object",
        "description": "Optional metadata filters; every given field must match exactly.",
        "properties": properties,
        "additionalProperties": False,
    }


class SearchService:
    def __init__(
        self,
        *,
        embedder,
        store,
        state: IngestionState,
        description: str = "Search indexed documents by semantic similarity.",
    ):
        self.embedder = embedder
        self.store = store
        self.state = state
        self.description = description

    def metadata_schema(self) -> Dict[str, Any]:
        return build_metadata_schema(self.state.metadata_values())

    def tool_definition(self) -> Dict[str, Any]:
        return {
            "name": "search",
            "description": self.description,
            "inputSchema": {
                "type": "object",
                "properties": {
                    "query": {"type": "string", "description": "Text to search for"},
                    "limit": {
                        "type": "integer",
                        "minimum": 1,
                        "maximum": MAX_LIMIT,
                        "default": DEFAULT_LIMIT,
                    },
                    "metadata": self.metadata_schema(),
                },
                "required": ["query"],
            },
        }

    def search(
        self,
        query: str,
        limit: int = DEFAULT_LIMIT,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> List[Dict[str, Any]]:
        if not query or not query.strip():
            raise ValueError("query must be a non-empty string")
        if limit <= 0 or limit > MAX_LIMIT:
            raise ValueError(f"limit must be between 1 and {MAX_LIMIT}")
        if metadata is not None and not isinstance(metadata, dict):
            raise ValueError("metadata filters must be a mapping of field to value")

        vector = self.embedder.embed(query)
        hits = self.store.search(vector, limit, metadata or None)
        logger.debug("Search %r returned %d hit(s)", query, len(hits))
        return [{"content": hit.content, "score": hit.score} for hit in hits]
