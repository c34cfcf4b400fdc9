"""
Process-lifetime ingestion state: per-source and global statistics, the
bounded failure history, the metadata-value index and watch counters.

Every mutator and snapshot takes the same lock, so event delivery, bulk
ingestion and readers may run concurrently. Snapshots are plain copies.
"""

from __future__ import annotations

import logging
import threading
from collections import OrderedDict, deque
from datetime import datetime, timezone
from typing import Any, Deque, Dict, Iterable, List, Optional, Set

from docsift.ingestion.models import FailureRecord, SegmentDescriptor, SourceStats

logger = logging.getLogger("Docsift.Ingest")

DEFAULT_MAX_FAILURES = 20
DEFAULT_MAX_SOURCES = 100
WATCH_EVENT_KEYS = {"create": "created", "modify": "modified", "delete": "deleted"}


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _index_value(value: Any) -> Any:
    try:
        hash(value)
    except TypeError:
        return str(value)
    return value


def _sort_key(value: Any) -> tuple:
    return (type(value).__name__, str(value))


class IngestionState:
    def __init__(
        self,
        *,
        max_failures: int = DEFAULT_MAX_FAILURES,
        max_sources: int = DEFAULT_MAX_SOURCES,
    ):
        if max_failures <= 0:
            raise ValueError("max_failures must be > 0")
        if max_sources <= 0:
            raise ValueError("max_sources must be > 0")
        self.max_failures = max_failures
        self.max_sources = max_sources
        self._lock = threading.Lock()
        self._sources: "OrderedDict[str, SourceStats]" = OrderedDict()
        self._failures: Deque[FailureRecord] = deque(maxlen=max_failures)
        self._metadata_values: Dict[str, Set[Any]] = {}
        self._path_captures: Dict[str, Dict[str, Set[str]]] = {}
        self._total_documents = 0
        self._total_segments = 0
        self._total_errors = 0
        self._last_ingestion_at: Optional[str] = None
        self._watch: Dict[str, Any] = {
            "enabled": False,
            "watched_sources": [],
            "events": {"created": 0, "modified": 0, "deleted": 0, "last_event_at": None},
            "debounce": {"queued": 0, "processed": 0},
        }

    # -- writers -----------------------------------------------------------

    def register_sources(self, source_paths: Iterable[str]) -> List[str]:
        """
        Start tracking per-source counters for new sources, up to the cap.

        Sources past the cap are still ingested by callers but get no
        per-source counters. One warning is emitted per call that overflows.
        Returns the sources that were dropped.
        """
        dropped: List[str] = []
        with self._lock:
            for source_path in source_paths:
                if source_path in self._sources:
                    continue
                if len(self._sources) >= self.max_sources:
                    dropped.append(source_path)
                    continue
                self._sources[source_path] = SourceStats()
        if dropped:
            logger.warning(
                "Source tracking limit (%d) reached; %d source(s) ingested without per-source stats",
                self.max_sources,
                len(dropped),
            )
        return dropped

    def record_path_captures(self, source_path: str, captures: Dict[str, str]) -> None:
        with self._lock:
            by_name = self._path_captures.setdefault(source_path, {})
            for name, value in captures.items():
                by_name.setdefault(name, set()).add(value)

    def record_success(
        self,
        source_path: Optional[str],
        descriptors: List[SegmentDescriptor],
        *,
        count: bool = True,
    ) -> None:
        """
        Apply one fully persisted file to counters and the metadata index.

        Re-indexed files pass ``count=False`` and report their net change
        through ``adjust_indexed`` so repeated events do not inflate totals.
        """
        now = utc_now_iso()
        with self._lock:
            for descriptor in descriptors:
                for key, value in descriptor.metadata.items():
                    self._metadata_values.setdefault(key, set()).add(_index_value(value))
            self._last_ingestion_at = now
            stats = self._sources.get(source_path) if source_path is not None else None
            if stats is not None:
                stats.last_ingestion_at = now
            if count:
                self._apply_counts_locked(source_path, 1, len(descriptors))

    def adjust_indexed(self, source_path: Optional[str], *, documents: int, segments: int) -> None:
        """Apply a net change in indexed documents and segments for one source."""
        with self._lock:
            self._apply_counts_locked(source_path, documents, segments)

    def _apply_counts_locked(self, source_path: Optional[str], documents: int, segments: int) -> None:
        self._total_documents = max(0, self._total_documents + documents)
        self._total_segments = max(0, self._total_segments + segments)
        stats = self._sources.get(source_path) if source_path is not None else None
        if stats is not None:
            stats.files_matched = max(0, stats.files_matched + documents)
            stats.files_processed = max(0, stats.files_processed + documents)
            stats.segments_created = max(0, stats.segments_created + segments)

    def record_failure(
        self,
        *,
        file_path: str,
        error_kind: str,
        message: str,
        source_path: Optional[str],
        count: bool = True,
    ) -> FailureRecord:
        record = FailureRecord(
            file_path=file_path,
            error_kind=error_kind,
            message=message,
            source_path=source_path,
            timestamp=utc_now_iso(),
        )
        with self._lock:
            self._failures.append(record)
            self._total_errors += 1
            stats = self._sources.get(source_path) if source_path is not None else None
            if stats is not None:
                if count:
                    stats.files_matched += 1
                stats.errors += 1
        return record

    def set_watching(self, enabled: bool, watched_sources: Iterable[str] = ()) -> None:
        with self._lock:
            self._watch["enabled"] = enabled
            self._watch["watched_sources"] = list(watched_sources)

    def record_watch_event(self, kind: str) -> None:
        key = WATCH_EVENT_KEYS.get(kind)
        with self._lock:
            if key is not None:
                self._watch["events"][key] += 1
            self._watch["events"]["last_event_at"] = utc_now_iso()

    def record_debounce(self, *, queued: int = 0, processed: int = 0) -> None:
        with self._lock:
            self._watch["debounce"]["queued"] += queued
            self._watch["debounce"]["processed"] += processed

    # -- snapshots ---------------------------------------------------------

    def status(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "total_documents": self._total_documents,
                "total_segments": self._total_segments,
                "total_errors": self._total_errors,
                "last_ingestion_at": self._last_ingestion_at,
                "total_failures": len(self._failures),
                "sources_tracked": len(self._sources),
            }

    def source_stats(self) -> Dict[str, Dict[str, Any]]:
        with self._lock:
            return {path: stats.to_dict() for path, stats in self._sources.items()}

    def failures(self) -> List[Dict[str, Any]]:
        """Recent failures, oldest first."""
        with self._lock:
            return [record.to_dict() for record in self._failures]

    def metadata_values(self) -> Dict[str, List[Any]]:
        with self._lock:
            return {
                key: sorted(values, key=_sort_key)
                for key, values in sorted(self._metadata_values.items())
            }

    def path_metadata(self) -> Dict[str, Dict[str, List[str]]]:
        with self._lock:
            return {
                source: {name: sorted(values) for name, values in sorted(captures.items())}
                for source, captures in self._path_captures.items()
            }

    def watch_stats(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "enabled": self._watch["enabled"],
                "watched_sources": list(self._watch["watched_sources"]),
                "events": dict(self._watch["events"]),
                "debounce": dict(self._watch["debounce"]),
            }
