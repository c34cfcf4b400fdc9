"""
Docsift Path Specs
------------------
Compiles path-spec strings such as ``/docs/(?<version>v[0-9]+)/**/*.md`` into
an ordered token sequence. Tokens are, in scan priority order: named captures
``(?<name>regex)``, recursive globs ``**``, single-level globs ``*`` and
literal runs.
"""

from __future__ import annotations

import re
from typing import Any, Dict, List, Optional, Sequence, Tuple

from docsift.errors import PathSpecSyntaxError
from docsift.ingestion.models import (
    CaptureToken,
    CompiledPathSpec,
    GlobToken,
    LiteralToken,
    PathToken,
)

CAPTURE_OPEN = "(?<"
_NAME_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*\Z")


def _find_capture_close(path: str, start: int) -> int:
    """Return the index of the ``)`` closing a capture whose regex starts at ``start``."""
    depth = 1
    index = start
    in_class = False
    while index < len(path):
        char = path[index]
        if char == "\\":
            index += 2
            continue
        if in_class:
            if char == "]":
                in_class = False
        elif char == "[":
            in_class = True
            # A leading "]" (or "^]") is a literal member of the class.
            lookahead = index + 1
            if lookahead < len(path) and path[lookahead] == "^":
                lookahead += 1
            if lookahead < len(path) and path[lookahead] == "]":
                index = lookahead
        elif char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
            if depth == 0:
                return index
        index += 1
    return -1


def _scan_capture(path: str, position: int) -> Tuple[CaptureToken, int]:
    name_start = position + len(CAPTURE_OPEN)
    name_end = path.find(">", name_start)
    if name_end == -1:
        raise PathSpecSyntaxError("Capture is missing '>' after its name", path=path, position=position)
    name = path[name_start:name_end]
    if not name:
        raise PathSpecSyntaxError("Capture name must not be empty", path=path, position=position)
    if not _NAME_RE.match(name):
        raise PathSpecSyntaxError(f"Invalid capture name {name!r}", path=path, position=position)

    close = _find_capture_close(path, name_end + 1)
    if close == -1:
        raise PathSpecSyntaxError(f"Capture {name!r} has no matching ')'", path=path, position=position)
    pattern = path[name_end + 1:close]
    try:
        re.compile(pattern)
    except re.error as exc:
        raise PathSpecSyntaxError(
            f"Invalid regex {pattern!r} in capture {name!r}: {exc}",
            path=path,
            position=position,
        ) from exc
    return CaptureToken(name=name, pattern=pattern), close + 1


def _next_special(path: str, start: int) -> int:
    candidates = [idx for idx in (path.find("*", start), path.find(CAPTURE_OPEN, start)) if idx != -1]
    return min(candidates) if candidates else len(path)


def compile_path(path: str) -> Tuple[PathToken, ...]:
    """Parse a path spec into its token sequence."""
    if not isinstance(path, str):
        raise PathSpecSyntaxError(f"Path spec must be a string, got {type(path).__name__}")

    tokens: List[PathToken] = []
    seen_names = set()
    position = 0
    while position < len(path):
        if path.startswith(CAPTURE_OPEN, position):
            token, position_next = _scan_capture(path, position)
            if token.name in seen_names:
                raise PathSpecSyntaxError(
                    f"Duplicate capture name {token.name!r}",
                    path=path,
                    position=position,
                )
            seen_names.add(token.name)
            tokens.append(token)
            position = position_next
        elif path.startswith("**", position):
            tokens.append(GlobToken(recursive=True))
            position += 2
        elif path.startswith("*", position):
            tokens.append(GlobToken(recursive=False))
            position += 1
        else:
            end = _next_special(path, position)
            tokens.append(LiteralToken(path[position:end]))
            position = end
    return tuple(tokens)


def base_path(segments: Sequence[PathToken]) -> str:
    """Concatenate the leading literal run of a compiled path."""
    parts: List[str] = []
    for token in segments:
        if not isinstance(token, LiteralToken):
            break
        parts.append(token.value)
    return "".join(parts)


def compile_path_spec(
    path: str,
    *,
    strategy: str = "whole-document",
    strategy_options: Optional[Dict[str, Any]] = None,
    base_metadata: Optional[Dict[str, Any]] = None,
    watch: bool = False,
    registry=None,
) -> CompiledPathSpec:
    """
    Compile a path and bind it to a strategy.

    When a registry is given the strategy tag is resolved and its options are
    validated now, so a bad source fails at configuration time rather than on
    its first file.
    """
    segments = compile_path(path)
    options = dict(strategy_options or {})
    if registry is not None:
        registry.get(strategy).validate_options(options)
    return CompiledPathSpec(
        path=path,
        segments=segments,
        base_path=base_path(segments),
        strategy=strategy,
        strategy_options=options,
        base_metadata=dict(base_metadata or {}),
        watch=watch,
    )
