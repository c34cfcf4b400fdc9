"""
Docsift Watch
-------------
Keeps the index consistent with filesystem changes.

Raw events from an ``EventSource`` (watchdog by default) are filtered against
the watched path specs and queued in a ``ReindexDebouncer``. The debouncer
holds at most one pending entry per path (last write wins) and a single
timer that is replaced on every new event; when it fires, the pending map is
drained in one step and each entry is handed to the re-index handler.
"""

from __future__ import annotations

import logging
import os
import threading
from dataclasses import dataclass
from functools import partial
from typing import Any, Callable, Dict, List, Optional, Protocol, Sequence, Tuple

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from docsift.ingestion.matcher import match_path, normalize_segments
from docsift.ingestion.models import CaptureToken, CompiledPathSpec, GlobToken, LiteralToken, PathToken
from docsift.ingestion.pathspec import base_path
from docsift.ingestion.state import IngestionState

logger = logging.getLogger("Docsift.Watch")

DEFAULT_DEBOUNCE_SECONDS = 0.5

ReindexHandler = Callable[[str, str, CompiledPathSpec], Any]


@dataclass(frozen=True)
class FileEvent:
    kind: str  # create | modify | delete
    path: str


@dataclass(frozen=True)
class PendingReindex:
    kind: str
    path: str
    spec: CompiledPathSpec


class EventSource(Protocol):
    def subscribe(self, root: str, recursive: bool, callback: Callable[[FileEvent], None]) -> Any:
        ...

    def unsubscribe(self, handle: Any) -> None:
        ...

    def close(self) -> None:
        ...


class ReindexDebouncer:
    """Coalesces bursts of file events into one re-index per path."""

    def __init__(
        self,
        handler: ReindexHandler,
        *,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
        state: Optional[IngestionState] = None,
    ):
        if debounce_seconds <= 0:
            raise ValueError("debounce_seconds must be > 0")
        self.handler = handler
        self.debounce_seconds = debounce_seconds
        self.state = state
        self._lock = threading.Lock()
        self._pending: Dict[str, PendingReindex] = {}
        self._timer: Optional[threading.Timer] = None
        self._generation = 0
        self._flushing = False
        self._stopped = False

    @property
    def pending_count(self) -> int:
        with self._lock:
            return len(self._pending)

    def submit(self, kind: str, path: str, spec: CompiledPathSpec) -> None:
        with self._lock:
            if self._stopped:
                logger.debug("Debouncer stopped; dropping %s event for %s", kind, path)
                return
            self._pending[path] = PendingReindex(kind=kind, path=path, spec=spec)
            # A flush in progress reschedules on exit if anything is pending.
            if not self._flushing:
                self._schedule_locked()
        if self.state is not None:
            self.state.record_debounce(queued=1)

    def _schedule_locked(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
        self._generation += 1
        self._timer = threading.Timer(self.debounce_seconds, self._fire, args=(self._generation,))
        self._timer.daemon = True
        self._timer.start()

    def _fire(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation:
                return
            self._timer = None
        self.flush()

    def flush(self) -> int:
        """Drain and process every pending entry now. Returns the number processed."""
        with self._lock:
            if self._flushing:
                return 0
            self._flushing = True
            batch = list(self._pending.values())
            self._pending = {}

        try:
            for entry in batch:
                try:
                    self.handler(entry.kind, entry.path, entry.spec)
                except Exception:
                    logger.exception("Re-index of %s (%s) failed", entry.path, entry.kind)
        finally:
            with self._lock:
                self._flushing = False
                if self._pending and not self._stopped:
                    self._schedule_locked()

        if batch:
            logger.debug("Flushed %d pending re-index event(s)", len(batch))
            if self.state is not None:
                self.state.record_debounce(processed=len(batch))
        return len(batch)

    def stop(self, *, drain: bool = False) -> None:
        with self._lock:
            self._stopped = True
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            self._generation += 1
        if drain:
            self.flush()
        else:
            with self._lock:
                dropped = len(self._pending)
                self._pending = {}
            if dropped:
                logger.info("Discarded %d pending re-index event(s) on stop", dropped)


class _ForwardingHandler(FileSystemEventHandler):
    def __init__(self, callback: Callable[[FileEvent], None]):
        super().__init__()
        self._callback = callback

    def _emit(self, kind: str, event: FileSystemEvent, path: Any) -> None:
        if event.is_directory:
            return
        self._callback(FileEvent(kind=kind, path=os.fsdecode(path)))

    def on_created(self, event: FileSystemEvent) -> None:
        self._emit("create", event, event.src_path)

    def on_modified(self, event: FileSystemEvent) -> None:
        self._emit("modify", event, event.src_path)

    def on_deleted(self, event: FileSystemEvent) -> None:
        self._emit("delete", event, event.src_path)

    def on_moved(self, event: FileSystemEvent) -> None:
        self._emit("delete", event, event.src_path)
        self._emit("modify", event, event.dest_path)


class WatchdogEventSource:
    """Filesystem events from a shared watchdog observer."""

    def __init__(self, observer_factory: Callable[[], Any] = Observer):
        self._observer_factory = observer_factory
        self._observer = None
        self._lock = threading.Lock()

    def subscribe(self, root: str, recursive: bool, callback: Callable[[FileEvent], None]) -> Any:
        with self._lock:
            if self._observer is None:
                self._observer = self._observer_factory()
                self._observer.daemon = True
                self._observer.start()
            return self._observer.schedule(_ForwardingHandler(callback), root, recursive=recursive)

    def unsubscribe(self, handle: Any) -> None:
        with self._lock:
            if self._observer is not None:
                self._observer.unschedule(handle)

    def close(self) -> None:
        with self._lock:
            observer, self._observer = self._observer, None
        if observer is not None:
            observer.stop()
            observer.join(timeout=5.0)


def needs_recursive_watch(segments: Sequence[PathToken]) -> bool:
    """True when anything after the literal base can cross a directory boundary."""
    leading = True
    for token in segments:
        if leading and isinstance(token, LiteralToken):
            continue
        leading = False
        if isinstance(token, GlobToken) and token.recursive:
            return True
        if isinstance(token, CaptureToken):
            return True
        if isinstance(token, LiteralToken) and "/" in token.value:
            return True
    return False


def watch_target(spec: CompiledPathSpec) -> Tuple[str, bool]:
    """Directory to subscribe to and whether the subscription must be recursive."""
    segments = normalize_segments(spec.segments)
    base = base_path(segments)
    if base and os.path.isdir(base):
        root = base
    else:
        # A file or a partial name like "/docs/v" from "/docs/v*.md".
        root = os.path.dirname(base) or "."
    return root, needs_recursive_watch(segments)


class WatchManager:
    """Subscribes watched specs to an event source and feeds the debouncer."""

    def __init__(
        self,
        debouncer: ReindexDebouncer,
        state: IngestionState,
        *,
        event_source: Optional[EventSource] = None,
    ):
        self.debouncer = debouncer
        self.state = state
        self.event_source = event_source or WatchdogEventSource()
        self._handles: List[Any] = []
        self._watched: List[str] = []

    def start(self, specs: Sequence[CompiledPathSpec]) -> List[str]:
        for spec in specs:
            if not spec.watch:
                continue
            root, recursive = watch_target(spec)
            try:
                handle = self.event_source.subscribe(root, recursive, partial(self.on_event, spec))
            except OSError as exc:
                logger.warning("Cannot watch %s for %s: %s", root, spec.path, exc)
                continue
            self._handles.append(handle)
            self._watched.append(spec.path)
            logger.info("Watching %s (%s) for %s", root, "recursive" if recursive else "flat", spec.path)
        self.state.set_watching(bool(self._watched), self._watched)
        return list(self._watched)

    def on_event(self, spec: CompiledPathSpec, event: FileEvent) -> None:
        if match_path(event.path, spec) is None:
            return
        self.state.record_watch_event(event.kind)
        self.debouncer.submit(event.kind, event.path, spec)

    def stop(self) -> None:
        for handle in self._handles:
            try:
                self.event_source.unsubscribe(handle)
            except (KeyError, OSError) as exc:
                logger.debug("Unsubscribe failed: %s", exc)
        self._handles = []
        self._watched = []
        self.event_source.close()
        self.state.set_watching(False)
