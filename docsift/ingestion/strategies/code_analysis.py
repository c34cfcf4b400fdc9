from __future__ import annotations

import json
import logging
from typing import Any, Dict, Iterable, List, Optional

from docsift.errors import AnalysisError, ConfigError
from docsift.ingestion.analysis import ELEMENT_KINDS, Analyzer, CodeElement, PythonAstAnalyzer
from docsift.ingestion.models import SegmentDescriptor
from docsift.ingestion.strategies.base import (
    IngestStrategy,
    create_segment_descriptor,
    generate_segment_id,
)

logger = logging.getLogger("Docsift.Ingest")

VISIBILITY_MODES = ("all", "public-only")
MEMBER_KINDS = {"method", "constructor", "field"}


def qualified_name(element: CodeElement) -> str:
    if element.kind == "namespace" or not element.namespace:
        return element.name
    owner = element.extra.get("owner") if element.kind in MEMBER_KINDS else None
    if owner:
        return f"{element.namespace}.{owner}.{element.name}"
    return f"{element.namespace}.{element.name}"


class CodeAnalysisStrategy(IngestStrategy):
    """One segment per declared element reported by the analyzer."""

    name = "code-analysis"
    option_keys = frozenset({"visibility", "element_types"})

    def __init__(self, analyzer: Optional[Analyzer] = None):
        self.analyzer = analyzer or PythonAstAnalyzer()

    def validate_options(self, options: Dict[str, Any]) -> Dict[str, Any]:
        visibility = options.get("visibility", "all")
        if visibility not in VISIBILITY_MODES:
            raise ConfigError(
                f"Invalid visibility {visibility!r}: expected one of {', '.join(VISIBILITY_MODES)}"
            )
        element_types = options.get("element_types")
        if element_types is not None:
            if isinstance(element_types, str) or not isinstance(element_types, Iterable):
                raise ConfigError("element_types must be a list of element kinds")
            element_types = frozenset(element_types)
            unknown = sorted(element_types - set(ELEMENT_KINDS))
            if unknown:
                raise ConfigError(
                    f"Unknown element_types {unknown}: expected any of {', '.join(ELEMENT_KINDS)}"
                )
        return {"visibility": visibility, "element_types": element_types}

    def _selected(self, element: CodeElement, resolved: Dict[str, Any]) -> bool:
        if resolved["visibility"] == "public-only" and element.visibility != "public":
            return False
        element_types = resolved["element_types"]
        return element_types is None or element.kind in element_types

    def process(
        self,
        path: str,
        content: str,
        metadata: Dict[str, Any],
        options: Dict[str, Any],
    ) -> List[SegmentDescriptor]:
        resolved = self.validate_options(options)
        try:
            elements = self.analyzer.analyze(path)
        except AnalysisError:
            raise
        except Exception as exc:
            raise AnalysisError(f"Analysis failed for {path}: {exc}", path=path) from exc

        descriptors: List[SegmentDescriptor] = []
        for element in elements:
            if not self._selected(element, resolved):
                continue
            name = qualified_name(element)
            doc = element.doc or ""
            element_metadata = dict(metadata)
            element_metadata.update(
                {
                    "element_type": element.kind,
                    "element_name": name,
                    "language": element.language,
                    "visibility": element.visibility,
                }
            )
            if element.namespace:
                element_metadata["namespace"] = element.namespace
            descriptors.append(
                create_segment_descriptor(
                    path,
                    generate_segment_id(path, len(descriptors)),
                    doc if doc.strip() else name,
                    json.dumps(element.to_dict(), sort_keys=True, default=str),
                    element_metadata,
                )
            )
        logger.debug("Code analysis of %s produced %d segment(s)", path, len(descriptors))
        return descriptors
