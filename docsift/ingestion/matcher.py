"""
Filesystem matching for compiled path specs.
"""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Pattern, Sequence

from docsift.ingestion.models import (
    CaptureToken,
    CompiledPathSpec,
    GlobToken,
    LiteralToken,
    MatchedFile,
    PathToken,
)
from docsift.ingestion.pathspec import base_path

logger = logging.getLogger("Docsift.Ingest")


def build_pattern(segments: Sequence[PathToken]) -> Pattern[str]:
    parts: List[str] = []
    for token in segments:
        if isinstance(token, LiteralToken):
            parts.append(re.escape(token.value))
        elif isinstance(token, GlobToken):
            parts.append(".*?" if token.recursive else "[^/]*")
        elif isinstance(token, CaptureToken):
            parts.append(f"(?P<{token.name}>{token.pattern})")
        else:
            raise TypeError(f"Unsupported path token: {token!r}")
    return re.compile("".join(parts))


def normalize_file_path(path: str) -> str:
    """
    Canonicalize absolute paths so OS aliases (``/var`` vs ``/private/var``)
    collapse to one root. Relative paths are returned as written.
    """
    if not path or not os.path.isabs(path):
        return path
    normalized = os.path.realpath(path)
    if path.endswith("/") and not normalized.endswith("/"):
        normalized += "/"
    return normalized


def normalize_segments(segments: Sequence[PathToken]) -> List[PathToken]:
    """Rebuild the segments with the literal base replaced by its canonical form."""
    base = base_path(segments)
    normalized_base = normalize_file_path(base)
    if normalized_base == base:
        return list(segments)
    rest = list(segments[_leading_literal_count(segments):])
    return [LiteralToken(normalized_base)] + rest


def _leading_literal_count(segments: Sequence[PathToken]) -> int:
    count = 0
    for token in segments:
        if not isinstance(token, LiteralToken):
            break
        count += 1
    return count


def _walk_files(root: str) -> Iterator[str]:
    # os.walk keeps the root exactly as written, so relative prefixes like
    # "./docs" survive into the candidate paths.
    for directory, dirnames, filenames in os.walk(root):
        dirnames.sort()
        for filename in sorted(filenames):
            yield os.path.join(directory, filename)


def _candidates(base: str) -> List[str]:
    if not base:
        return []
    root = Path(base)
    if root.is_file():
        return [base]
    if root.is_dir():
        return list(_walk_files(base))
    # A base like "/docs/v" (from "/docs/v*.md") names a prefix, not a directory.
    parent = root.parent
    if str(parent) and parent.is_dir() and not base.endswith("/"):
        return list(_walk_files(str(parent)))
    return []


def _match_one(
    pattern: Pattern[str],
    candidate: str,
    spec: CompiledPathSpec,
) -> Optional[MatchedFile]:
    found = pattern.fullmatch(candidate)
    if found is None:
        return None
    captures: Dict[str, str] = {
        name: value for name, value in found.groupdict().items() if value is not None
    }
    metadata = dict(spec.base_metadata)
    metadata.update(captures)
    return MatchedFile(path=candidate, captures=captures, metadata=metadata, spec=spec)


def match_files(spec: CompiledPathSpec) -> List[MatchedFile]:
    """
    Walk the spec's base path and return every file whose path fully matches.

    Non-existent roots yield an empty list.
    """
    segments = normalize_segments(spec.segments)
    pattern = build_pattern(segments)
    matches: List[MatchedFile] = []
    for candidate in _candidates(base_path(segments)):
        matched = _match_one(pattern, normalize_file_path(candidate), spec)
        if matched is not None:
            matches.append(matched)
    logger.debug("Path spec %s matched %d file(s)", spec.path, len(matches))
    return matches


def match_path(path: str, spec: CompiledPathSpec) -> Optional[MatchedFile]:
    """Match one concrete path against a spec without walking the filesystem."""
    pattern = build_pattern(normalize_segments(spec.segments))
    return _match_one(pattern, normalize_file_path(path), spec)
