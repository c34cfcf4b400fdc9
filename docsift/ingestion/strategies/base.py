"""
Strategy interface and segment descriptor helpers shared by every strategy.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, FrozenSet, Iterable, List, Optional

from docsift.errors import SegmentValidationError
from docsift.ingestion.models import SegmentDescriptor

REQUIRED_FIELDS = ("file_id", "segment_id", "text_to_embed", "content_to_store", "metadata")


class IngestStrategy(ABC):
    """
    Converts one file's content into segment descriptors.

    ``option_keys`` names the source-config keys consumed as strategy options;
    any other source key is treated as metadata.
    """

    name: str = ""
    option_keys: FrozenSet[str] = frozenset()

    def validate_options(self, options: Dict[str, Any]) -> Dict[str, Any]:
        """Check options and return them with defaults applied."""
        return dict(options)

    @abstractmethod
    def process(
        self,
        path: str,
        content: str,
        metadata: Dict[str, Any],
        options: Dict[str, Any],
    ) -> List[SegmentDescriptor]:
        raise NotImplementedError


def generate_segment_id(file_id: str, index: Optional[int] = None) -> str:
    if index is None:
        return file_id
    return f"{file_id}#{index}"


def create_segment_descriptor(
    file_id: str,
    segment_id: str,
    text_to_embed: str,
    content_to_store: str,
    metadata: Dict[str, Any],
) -> SegmentDescriptor:
    enriched = dict(metadata)
    enriched.update({"file_id": file_id, "segment_id": segment_id, "doc_id": file_id})
    return SegmentDescriptor(
        file_id=file_id,
        segment_id=segment_id,
        text_to_embed=text_to_embed,
        content_to_store=content_to_store,
        metadata=enriched,
    )


def validate_segment(descriptor: Any, *, path: Optional[str] = None) -> SegmentDescriptor:
    """Reject descriptors that are missing fields or carry empty text."""
    if not isinstance(descriptor, SegmentDescriptor):
        raise SegmentValidationError(
            f"Expected a SegmentDescriptor, got {type(descriptor).__name__}",
            path=path,
        )
    missing = [name for name in REQUIRED_FIELDS if getattr(descriptor, name, None) is None]
    if missing:
        raise SegmentValidationError(
            f"Segment descriptor missing required fields: {', '.join(missing)}",
            path=path,
        )
    for name in ("text_to_embed", "content_to_store"):
        value = getattr(descriptor, name)
        if not isinstance(value, str) or not value:
            raise SegmentValidationError(
                f"Segment {descriptor.segment_id!r} has empty or non-string {name}",
                path=path,
            )
    if not isinstance(descriptor.metadata, dict):
        raise SegmentValidationError(
            f"Segment {descriptor.segment_id!r} metadata must be a mapping",
            path=path,
        )
    return descriptor


def validate_segments(descriptors: Iterable[Any], *, path: Optional[str] = None) -> List[SegmentDescriptor]:
    return [validate_segment(descriptor, path=path) for descriptor in descriptors]
