"""
Docsift Index Context
---------------------
Owns every component of one indexing service: strategy registry, document
processor, embedder, vector store, ingestion state, pipeline, debouncer,
watch manager and search. Constructed at service start and torn down by
``stop()``; components receive their collaborators from here instead of
reaching for module-level state.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from docsift.core.config import DocsiftConfig
from docsift.embedding import Embedder, create_embedder
from docsift.ingestion.analysis import Analyzer
from docsift.ingestion.models import CompiledPathSpec, IngestionReport
from docsift.ingestion.pipeline import IngestionPipeline
from docsift.ingestion.processor import DocumentProcessor
from docsift.ingestion.state import IngestionState
from docsift.ingestion.strategies.registry import StrategyRegistry, default_registry
from docsift.ingestion.watch import EventSource, ReindexDebouncer, WatchManager
from docsift.search import SearchService
from docsift.store.vector_store import VectorStore

logger = logging.getLogger("Docsift.Context")


class IndexContext:
    def __init__(
        self,
        config: Optional[DocsiftConfig] = None,
        *,
        embedder: Optional[Embedder] = None,
        store=None,
        registry: Optional[StrategyRegistry] = None,
        analyzer: Optional[Analyzer] = None,
        event_source: Optional[EventSource] = None,
    ):
        self.config = config or DocsiftConfig.from_env()
        self.registry = registry or default_registry(analyzer)
        self.embedder = embedder or create_embedder(self.config.embedding)
        self.store = store or VectorStore(self.config.vector, dimensions=self.embedder.dimensions)
        self.state = IngestionState(
            max_failures=self.config.ingestion.max_failures,
            max_sources=self.config.ingestion.max_sources,
        )
        self.processor = DocumentProcessor(self.registry)
        self.pipeline = IngestionPipeline(
            processor=self.processor,
            embedder=self.embedder,
            store=self.store,
            state=self.state,
            encoding=self.config.ingestion.encoding,
        )
        self.debouncer = ReindexDebouncer(
            self.pipeline.reindex,
            debounce_seconds=self.config.watch.debounce_ms / 1000.0,
            state=self.state,
        )
        self.watcher = WatchManager(self.debouncer, self.state, event_source=event_source)
        self.search = SearchService(
            embedder=self.embedder,
            store=self.store,
            state=self.state,
            description=self.config.description,
        )
        self.specs: List[CompiledPathSpec] = []
        self._started = False

    @property
    def started(self) -> bool:
        return self._started

    def start(self) -> IngestionReport:
        """Compile sources, run the initial ingestion and begin watching."""
        if self._started:
            raise RuntimeError("IndexContext already started")
        self.specs = self.config.compile_sources(self.registry)
        report = self.pipeline.ingest(self.specs)
        self.watcher.start(self.specs)
        self._started = True
        logger.info(
            "Index started: %d source(s), %d file(s) ingested, %d failed",
            len(self.specs),
            report.ingested,
            report.failed,
        )
        return report

    def stop(self, *, drain: bool = False) -> None:
        if self._started:
            self.watcher.stop()
        self.debouncer.stop(drain=drain)
        close = getattr(self.store, "close", None)
        if callable(close):
            close()
        self._started = False
        logger.info("Index stopped")

    def __enter__(self) -> "IndexContext":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()
