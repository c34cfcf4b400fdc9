"""
Docsift: path-spec driven semantic indexing of files
"""

from docsift.errors import (
    AnalysisError,
    ConfigError,
    DocsiftError,
    IngestError,
    ParseError,
    PathSpecSyntaxError,
    ReadError,
    SegmentValidationError,
    UnknownStrategyError,
)
from docsift.version import __version__

__all__ = [
    "__version__",
    "DocsiftError",
    "PathSpecSyntaxError",
    "ConfigError",
    "UnknownStrategyError",
    "IngestError",
    "ReadError",
    "ParseError",
    "SegmentValidationError",
    "AnalysisError",
    "IndexContext",
    "DocsiftConfig",
]


def __getattr__(name):
    # Lazy: the context pulls in qdrant, watchdog and the embedding backends.
    if name == "IndexContext":
        from docsift.core.context import IndexContext
        return IndexContext
    if name == "DocsiftConfig":
        from docsift.core.config import DocsiftConfig
        return DocsiftConfig
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
