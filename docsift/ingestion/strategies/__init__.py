"""
Pluggable ingestion strategies.
"""

from docsift.ingestion.strategies.base import (
    IngestStrategy,
    create_segment_descriptor,
    generate_segment_id,
    validate_segment,
    validate_segments,
)
from docsift.ingestion.strategies.chunked import ChunkedStrategy
from docsift.ingestion.strategies.code_analysis import CodeAnalysisStrategy
from docsift.ingestion.strategies.registry import StrategyRegistry, default_registry
from docsift.ingestion.strategies.single_segment import SingleSegmentStrategy

__all__ = [
    "IngestStrategy",
    "StrategyRegistry",
    "default_registry",
    "SingleSegmentStrategy",
    "ChunkedStrategy",
    "CodeAnalysisStrategy",
    "create_segment_descriptor",
    "generate_segment_id",
    "validate_segment",
    "validate_segments",
]
