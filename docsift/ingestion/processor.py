"""
Strategy dispatch for document processing.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from docsift.ingestion.models import SegmentDescriptor
from docsift.ingestion.strategies.base import validate_segments
from docsift.ingestion.strategies.registry import StrategyRegistry, default_registry


class DocumentProcessor:
    """Turns raw file content into validated segment descriptors."""

    def __init__(self, registry: Optional[StrategyRegistry] = None):
        self.registry = registry or default_registry()

    def process(
        self,
        strategy: str,
        path: str,
        content: str,
        metadata: Optional[Dict[str, Any]] = None,
        options: Optional[Dict[str, Any]] = None,
    ) -> List[SegmentDescriptor]:
        # Resolve before touching content so unknown tags fail with no I/O.
        implementation = self.registry.get(strategy)
        # Metadata is never read as options: a capture named like an option stays metadata.
        descriptors = implementation.process(path, content, dict(metadata or {}), dict(options or {}))
        return validate_segments(descriptors, path=path)
