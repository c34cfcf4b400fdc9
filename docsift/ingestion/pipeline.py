"""
Fail-open ingestion across compiled path specs.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence

from docsift.errors import EmbeddingError, StoreError, classify_error
from docsift.ingestion.matcher import match_files, match_path, normalize_file_path
from docsift.ingestion.models import (
    CompiledPathSpec,
    FileIngestResult,
    IngestionReport,
    MatchedFile,
    SegmentDescriptor,
)
from docsift.ingestion.parser import read_text_file
from docsift.ingestion.processor import DocumentProcessor
from docsift.ingestion.state import IngestionState

logger = logging.getLogger("Docsift.Ingest")

EVENT_KINDS = ("create", "modify", "delete")


class IngestionPipeline:
    """
    Matches files for each spec, runs them through the document processor,
    embeds and stores the resulting segments and records statistics.

    A failing file is recorded and skipped; it never aborts the batch.
    """

    def __init__(
        self,
        *,
        processor: DocumentProcessor,
        embedder,
        store,
        state: IngestionState,
        encoding: str = "utf-8",
    ):
        self.processor = processor
        self.embedder = embedder
        self.store = store
        self.state = state
        self.encoding = encoding

    def validate_specs(self, specs: Sequence[CompiledPathSpec]) -> None:
        """Resolve every spec's strategy and options; errors abort the whole run."""
        for spec in specs:
            self.processor.registry.get(spec.strategy).validate_options(dict(spec.strategy_options))

    def ingest(self, specs: Sequence[CompiledPathSpec]) -> IngestionReport:
        self.validate_specs(specs)
        report = IngestionReport()
        self.state.register_sources(spec.path for spec in specs)
        for spec in specs:
            matches = match_files(spec)
            logger.info("Ingesting %d file(s) for %s [%s]", len(matches), spec.path, spec.strategy)
            for matched in matches:
                if matched.captures:
                    self.state.record_path_captures(spec.path, matched.captures)
                report.add(self.ingest_file(matched))
        logger.info(
            "Ingestion complete: ingested=%d failed=%d segments=%d",
            report.ingested,
            report.failed,
            report.segments,
        )
        return report

    def ingest_file(self, matched: MatchedFile, *, count: bool = True) -> FileIngestResult:
        """
        Read, process and persist one matched file.

        With ``count=False`` the document and segment counters are left to the
        caller, which re-indexing uses to apply the net change instead.
        """
        spec = matched.spec
        if spec is None:
            raise ValueError(f"Matched file {matched.path} carries no path spec")
        source_path = matched.source_path
        try:
            content = read_text_file(Path(matched.path), self.encoding)
            descriptors = self.processor.process(
                spec.strategy,
                matched.path,
                content,
                matched.metadata,
                spec.strategy_options,
            )
            self._persist(descriptors)
        except Exception as exc:
            error_kind = classify_error(exc)
            self.state.record_failure(
                file_path=matched.path,
                error_kind=error_kind,
                message=str(exc),
                source_path=source_path,
                count=count,
            )
            logger.warning("Failed to ingest %s (%s): %s", matched.path, error_kind, exc)
            return FileIngestResult(
                path=matched.path,
                source_path=source_path,
                status="failed",
                error_kind=error_kind,
                message=str(exc),
            )

        self.state.record_success(source_path, descriptors, count=count)
        return FileIngestResult(
            path=matched.path,
            source_path=source_path,
            status="ingested",
            segments=len(descriptors),
        )

    def _embed(self, text: str) -> List[float]:
        try:
            return self.embedder.embed(text)
        except EmbeddingError:
            raise
        except Exception as exc:
            raise EmbeddingError(f"Embedding failed: {exc}") from exc

    def _persist(self, descriptors: Iterable[SegmentDescriptor]) -> None:
        # Embed everything first so an embedding failure leaves the store untouched.
        batch = [(descriptor, self._embed(descriptor.text_to_embed)) for descriptor in descriptors]
        for descriptor, vector in batch:
            payload: Dict[str, Any] = dict(descriptor.metadata)
            payload["content"] = descriptor.content_to_store
            try:
                self.store.upsert(descriptor.segment_id, vector, payload)
            except Exception as exc:
                raise StoreError(
                    f"Failed to store segment {descriptor.segment_id}: {exc}",
                    path=descriptor.file_id,
                ) from exc

    def remove_file(self, file_id: str) -> int:
        return self.store.remove_file(file_id)

    def reindex(self, kind: str, path: str, spec: CompiledPathSpec) -> Optional[FileIngestResult]:
        """Bring the store in line with one filesystem event."""
        if kind not in EVENT_KINDS:
            raise ValueError(f"Unsupported event kind: {kind!r}")
        if kind == "delete":
            removed = self.remove_file(normalize_file_path(path))
            if removed:
                self.state.adjust_indexed(spec.path, documents=-1, segments=-removed)
            logger.info("Removed %d segment(s) for deleted file %s", removed, path)
            return None

        matched = match_path(path, spec)
        if matched is None:
            logger.debug("Skipping %s: no longer matches %s", path, spec.path)
            return None
        if matched.captures:
            self.state.record_path_captures(spec.path, matched.captures)
        before = len(self.store.ids_for_file(matched.path))
        if kind == "modify":
            self.remove_file(matched.path)
        result = self.ingest_file(matched, count=False)
        after = len(self.store.ids_for_file(matched.path))
        self.state.adjust_indexed(
            spec.path,
            documents=int(after > 0) - int(before > 0),
            segments=after - before,
        )
        return result
