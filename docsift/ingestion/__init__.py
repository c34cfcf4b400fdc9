"""
Path-spec matching and document ingestion package.
"""

from docsift.ingestion.matcher import match_files, match_path
from docsift.ingestion.models import (
    CompiledPathSpec,
    FailureRecord,
    FileIngestResult,
    IngestionReport,
    MatchedFile,
    SegmentDescriptor,
)
from docsift.ingestion.pathspec import base_path, compile_path, compile_path_spec
from docsift.ingestion.processor import DocumentProcessor
from docsift.ingestion.state import IngestionState

__all__ = [
    "CompiledPathSpec",
    "MatchedFile",
    "SegmentDescriptor",
    "FailureRecord",
    "FileIngestResult",
    "IngestionReport",
    "compile_path",
    "compile_path_spec",
    "base_path",
    "match_files",
    "match_path",
    "DocumentProcessor",
    "IngestionState",
    "IngestionPipeline",
    "ReindexDebouncer",
    "WatchManager",
]


def __getattr__(name):
    # Lazy: the pipeline and watcher pull in embedding and watchdog imports.
    if name == "IngestionPipeline":
        from docsift.ingestion.pipeline import IngestionPipeline
        return IngestionPipeline
    if name in ("ReindexDebouncer", "WatchManager"):
        from docsift.ingestion import watch
        return getattr(watch, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
