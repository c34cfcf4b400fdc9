"""
Single-segment strategies: one descriptor per file, built from an embed-text
sub-strategy and an independent store-content sub-strategy.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

from docsift.errors import ConfigError
from docsift.ingestion.models import SegmentDescriptor
from docsift.ingestion.parser import parse_namespace_header
from docsift.ingestion.strategies.base import (
    IngestStrategy,
    create_segment_descriptor,
    generate_segment_id,
)

# (text_to_embed, extra_metadata)
EmbedResult = Tuple[str, Dict[str, Any]]


def _embed_whole_document(path: str, content: str) -> EmbedResult:
    return content, {}


def _embed_namespace_doc(path: str, content: str) -> EmbedResult:
    header = parse_namespace_header(Path(path), content)
    return header.doc, {"namespace": header.name}


def _store_whole_document(path: str, content: str) -> str:
    return content


def _store_file_path(path: str, content: str) -> str:
    return path


EMBED_STRATEGIES: Dict[str, Callable[[str, str], EmbedResult]] = {
    "whole-document": _embed_whole_document,
    "namespace-doc": _embed_namespace_doc,
}

CONTENT_STRATEGIES: Dict[str, Callable[[str, str], str]] = {
    "whole-document": _store_whole_document,
    "file-path": _store_file_path,
}


class SingleSegmentStrategy(IngestStrategy):
    """
    Composable single-segment strategy.

    With no fixed parameters the sub-strategies come from the ``embedding``
    and ``content_strategy`` options; the built-in whole-document,
    namespace-doc and file-path strategies are fixed instances.
    """

    option_keys = frozenset({"embedding", "content_strategy"})

    def __init__(
        self,
        name: str = "single-segment",
        *,
        embedding: Optional[str] = None,
        content_strategy: Optional[str] = None,
    ):
        self.name = name
        self._fixed_embedding = embedding
        self._fixed_content = content_strategy
        self.validate_options({})

    def validate_options(self, options: Dict[str, Any]) -> Dict[str, Any]:
        embedding = self._fixed_embedding or options.get("embedding", "whole-document")
        content_strategy = self._fixed_content or options.get("content_strategy", "whole-document")
        if embedding not in EMBED_STRATEGIES:
            raise ConfigError(
                f"Unknown embedding strategy {embedding!r}; "
                f"expected one of {sorted(EMBED_STRATEGIES)}"
            )
        if content_strategy not in CONTENT_STRATEGIES:
            raise ConfigError(
                f"Unknown content strategy {content_strategy!r}; "
                f"expected one of {sorted(CONTENT_STRATEGIES)}"
            )
        return {"embedding": embedding, "content_strategy": content_strategy}

    def process(
        self,
        path: str,
        content: str,
        metadata: Dict[str, Any],
        options: Dict[str, Any],
    ) -> List[SegmentDescriptor]:
        resolved = self.validate_options(options)
        text_to_embed, extra = EMBED_STRATEGIES[resolved["embedding"]](path, content)
        content_to_store = CONTENT_STRATEGIES[resolved["content_strategy"]](path, content)
        segment_metadata = dict(metadata)
        segment_metadata.update(extra)
        return [
            create_segment_descriptor(
                path,
                generate_segment_id(path),
                text_to_embed,
                content_to_store,
                segment_metadata,
            )
        ]


def builtin_single_segment_strategies() -> List[SingleSegmentStrategy]:
    return [
        SingleSegmentStrategy(),
        SingleSegmentStrategy("whole-document", embedding="whole-document", content_strategy="whole-document"),
        SingleSegmentStrategy("namespace-doc", embedding="namespace-doc", content_strategy="whole-document"),
        SingleSegmentStrategy("file-path", embedding="whole-document", content_strategy="file-path"),
    ]
