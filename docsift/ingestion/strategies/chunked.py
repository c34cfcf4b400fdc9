from __future__ import annotations

from typing import Any, Dict, List

from docsift.errors import ConfigError
from docsift.ingestion.models import SegmentDescriptor
from docsift.ingestion.parser import chunk_text
from docsift.ingestion.strategies.base import (
    IngestStrategy,
    create_segment_descriptor,
    generate_segment_id,
)

DEFAULT_CHUNK_SIZE = 512
DEFAULT_CHUNK_OVERLAP = 100


def _positive_int(options: Dict[str, Any], key: str, default: int) -> int:
    value = options.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ConfigError(f"Invalid {key} {value!r}: must be a positive integer")
    return value


class ChunkedStrategy(IngestStrategy):
    """Overlapping character windows, one segment per chunk."""

    name = "chunked"
    option_keys = frozenset({"chunk_size", "chunk_overlap"})

    def validate_options(self, options: Dict[str, Any]) -> Dict[str, Any]:
        chunk_size = _positive_int(options, "chunk_size", DEFAULT_CHUNK_SIZE)
        chunk_overlap = _positive_int(options, "chunk_overlap", DEFAULT_CHUNK_OVERLAP)
        if chunk_overlap >= chunk_size:
            raise ConfigError(
                f"Invalid chunk configuration: chunk_overlap ({chunk_overlap}) "
                f"must be less than chunk_size ({chunk_size})"
            )
        return {"chunk_size": chunk_size, "chunk_overlap": chunk_overlap}

    def process(
        self,
        path: str,
        content: str,
        metadata: Dict[str, Any],
        options: Dict[str, Any],
    ) -> List[SegmentDescriptor]:
        resolved = self.validate_options(options)
        chunks = chunk_text(
            content,
            chunk_size=resolved["chunk_size"],
            chunk_overlap=resolved["chunk_overlap"],
        )
        descriptors: List[SegmentDescriptor] = []
        for index, (offset, text) in enumerate(chunks):
            chunk_metadata = dict(metadata)
            chunk_metadata.update(
                {
                    "chunk_index": index,
                    "chunk_count": len(chunks),
                    "chunk_offset": offset,
                }
            )
            descriptors.append(
                create_segment_descriptor(
                    path,
                    generate_segment_id(path, index),
                    text,
                    text,
                    chunk_metadata,
                )
            )
        return descriptors
