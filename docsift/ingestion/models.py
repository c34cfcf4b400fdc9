from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union


@dataclass(frozen=True)
class LiteralToken:
    value: str


@dataclass(frozen=True)
class GlobToken:
    recursive: bool = False


@dataclass(frozen=True)
class CaptureToken:
    name: str
    pattern: str


PathToken = Union[LiteralToken, GlobToken, CaptureToken]


@dataclass(frozen=True)
class CompiledPathSpec:
    """A source path spec compiled once per configuration load."""

    path: str
    segments: Tuple[PathToken, ...]
    base_path: str
    strategy: str = "whole-document"
    strategy_options: Dict[str, Any] = field(default_factory=dict)
    base_metadata: Dict[str, Any] = field(default_factory=dict)
    watch: bool = False

    @property
    def capture_names(self) -> List[str]:
        return [token.name for token in self.segments if isinstance(token, CaptureToken)]


@dataclass
class MatchedFile:
    path: str
    captures: Dict[str, str]
    metadata: Dict[str, Any]
    spec: Optional[CompiledPathSpec] = None

    @property
    def source_path(self) -> Optional[str]:
        return self.spec.path if self.spec is not None else None


@dataclass
class SegmentDescriptor:
    file_id: str
    segment_id: str
    text_to_embed: str
    content_to_store: str
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class FailureRecord:
    file_path: str
    error_kind: str
    message: str
    source_path: Optional[str]
    timestamp: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "file_path": self.file_path,
            "error_kind": self.error_kind,
            "message": self.message,
            "source_path": self.source_path,
            "timestamp": self.timestamp,
        }


@dataclass
class FileIngestResult:
    path: str
    source_path: Optional[str]
    status: str
    segments: int = 0
    error_kind: Optional[str] = None
    message: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == "ingested"


@dataclass
class SourceStats:
    files_matched: int = 0
    files_processed: int = 0
    segments_created: int = 0
    errors: int = 0
    last_ingestion_at: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "files_matched": self.files_matched,
            "files_processed": self.files_processed,
            "segments_created": self.segments_created,
            "errors": self.errors,
            "last_ingestion_at": self.last_ingestion_at,
        }


@dataclass
class IngestionReport:
    ingested: int = 0
    failed: int = 0
    segments: int = 0
    results: List[FileIngestResult] = field(default_factory=list)

    @property
    def failures(self) -> List[FileIngestResult]:
        return [result for result in self.results if not result.ok]

    def add(self, result: FileIngestResult) -> None:
        self.results.append(result)
        if result.ok:
            self.ingested += 1
            self.segments += result.segments
        else:
            self.failed += 1
