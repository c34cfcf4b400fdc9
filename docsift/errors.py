"""
Docsift exceptions.

Compile-time errors (bad path specs, bad strategy options, unknown
strategies) abort configuration of a source. Per-file errors subclass
``IngestError`` and carry an ``error_kind`` tag that is recorded in the
failure history instead of being raised out of an ingestion pass.
"""

from __future__ import annotations

from typing import Optional


class DocsiftError(RuntimeError):
    """Base class for Docsift errors."""


class PathSpecSyntaxError(DocsiftError):
    """Raised when a path spec cannot be compiled."""

    def __init__(self, detail: str, *, path: Optional[str] = None, position: Optional[int] = None) -> None:
        self.path = path
        self.position = position
        where = f" at position {position}" if position is not None else ""
        spec_hint = f" in path spec {path!r}" if path is not None else ""
        super().__init__(f"{detail}{where}{spec_hint}")


class ConfigError(DocsiftError):
    """Raised for invalid strategy options or source configuration."""


class UnknownStrategyError(DocsiftError):
    """Raised when a strategy tag has no registered implementation."""

    def __init__(self, strategy: str, *, available: Optional[list] = None) -> None:
        self.strategy = strategy
        self.available = sorted(available or [])
        hint = f" (available: {', '.join(self.available)})" if self.available else ""
        super().__init__(f"Unknown ingest strategy: {strategy!r}{hint}")


class IngestError(DocsiftError):
    """Per-file failure raised while reading, processing or persisting a file."""

    error_kind = "ingest-error"

    def __init__(self, detail: str, *, path: Optional[str] = None) -> None:
        self.path = path
        self.detail = detail
        super().__init__(detail)


class ReadError(IngestError):
    error_kind = "read-error"


class ParseError(IngestError):
    error_kind = "parse-error"


class SegmentValidationError(IngestError):
    error_kind = "validation-error"


class AnalysisError(IngestError):
    error_kind = "analysis-error"


class EmbeddingError(IngestError):
    error_kind = "embedding-error"


class StoreError(IngestError):
    error_kind = "store-error"


def classify_error(exc: BaseException) -> str:
    """Map an exception raised during single-file ingestion to its error kind."""
    if isinstance(exc, IngestError):
        return exc.error_kind
    if isinstance(exc, OSError):
        return ReadError.error_kind
    return IngestError.error_kind
