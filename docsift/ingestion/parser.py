"""
Content readers and parsers shared by the ingestion strategies.
"""

from __future__ import annotations

import ast
import re
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple

from docsift.errors import ParseError, ReadError

PYTHON_EXTENSIONS = {".py", ".pyi"}

_BOUNDARIES = ("\n\n", "\n", " ")
_NS_FORM_RE = re.compile(r"^\s*\(\s*ns(?=[\s)])", re.MULTILINE)
_SYMBOL_RE = re.compile(r"[^\s()\[\]{}\"',;^]+")
_DOC_KEY_RE = re.compile(r":doc\s+(?=\")")


def read_text_file(path: Path, encoding: str = "utf-8") -> str:
    # Prefer the configured encoding, but fail open to latin-1 on decoding errors.
    try:
        return path.read_text(encoding=encoding)
    except UnicodeDecodeError:
        return path.read_text(encoding="latin-1", errors="replace")
    except OSError as exc:
        raise ReadError(f"Unable to read {path}: {exc}", path=str(path)) from exc


def _soft_boundary(text: str, lower: int, end: int) -> int:
    if lower >= end:
        return end
    for separator in _BOUNDARIES:
        index = text.rfind(separator, lower, end)
        if index != -1:
            return index + len(separator)
    return end


def chunk_text(text: str, *, chunk_size: int, chunk_overlap: int) -> List[Tuple[int, str]]:
    """
    Split text into overlapping windows and return ``(offset, chunk)`` pairs.

    Each chunk is exactly ``text[offset:offset + len(chunk)]`` and the next
    window starts ``chunk_overlap`` characters before the previous one ended.
    Windows that stop short of the end of the text back off to the last
    paragraph, line or word boundary in their second half.
    """
    if chunk_size <= 0:
        raise ValueError("chunk_size must be > 0")
    if chunk_overlap <= 0:
        raise ValueError("chunk_overlap must be > 0")
    if chunk_overlap >= chunk_size:
        raise ValueError("chunk_overlap must be < chunk_size")

    chunks: List[Tuple[int, str]] = []
    length = len(text)
    start = 0
    while start < length:
        end = min(length, start + chunk_size)
        if end < length:
            end = _soft_boundary(text, start + max(chunk_overlap + 1, chunk_size // 2), end)
        chunks.append((start, text[start:end]))
        if start + chunk_size > length:
            break
        start = end - chunk_overlap
    return chunks


@dataclass(frozen=True)
class NamespaceHeader:
    name: str
    doc: str


def python_module_name(path: Path) -> Optional[str]:
    parts: List[str] = []
    if path.stem != "__init__":
        parts.append(path.stem)
    parent = path.parent
    while (parent / "__init__.py").is_file() and parent.name:
        parts.append(parent.name)
        parent = parent.parent
    if not parts:
        return None
    return ".".join(reversed(parts))


def _parse_python_header(path: Path, content: str) -> NamespaceHeader:
    try:
        tree = ast.parse(content, filename=str(path))
    except SyntaxError as exc:
        raise ParseError(f"No ns form found: {exc.msg} (line {exc.lineno})", path=str(path)) from exc
    doc = ast.get_docstring(tree)
    if not doc or not doc.strip():
        raise ParseError("No namespace docstring found", path=str(path))
    name = python_module_name(path)
    if not name:
        raise ParseError("Could not extract namespace", path=str(path))
    return NamespaceHeader(name=name, doc=doc)


def _skip_blank(content: str, position: int) -> int:
    while position < len(content):
        char = content[position]
        if char.isspace() or char == ",":
            position += 1
        elif char == ";":
            newline = content.find("\n", position)
            position = len(content) if newline == -1 else newline + 1
        else:
            break
    return position


def _read_string(content: str, position: int) -> Tuple[Optional[str], int]:
    """Read a double-quoted literal starting at ``position``."""
    chars: List[str] = []
    index = position + 1
    escapes = {"n": "\n", "t": "\t", "r": "\r", '"': '"', "\\": "\\"}
    while index < len(content):
        char = content[index]
        if char == "\\" and index + 1 < len(content):
            chars.append(escapes.get(content[index + 1], content[index + 1]))
            index += 2
            continue
        if char == '"':
            return "".join(chars), index + 1
        chars.append(char)
        index += 1
    return None, index


def _read_balanced(content: str, position: int, opening: str, closing: str) -> int:
    """Return the index just past the form opened at ``position``."""
    depth = 0
    index = position
    while index < len(content):
        char = content[index]
        if char == '"':
            _, index = _read_string(content, index)
            continue
        if char == opening:
            depth += 1
        elif char == closing:
            depth -= 1
            if depth == 0:
                return index + 1
        index += 1
    return len(content)


def _parse_lisp_header(path: Path, content: str) -> NamespaceHeader:
    found = _NS_FORM_RE.search(content)
    if found is None:
        raise ParseError("No ns form found", path=str(path))
    position = _skip_blank(content, found.end())

    doc: Optional[str] = None
    while position < len(content) and content[position] == "^":
        position += 1
        if content.startswith("{", position):
            end = _read_balanced(content, position, "{", "}")
            meta = content[position:end]
            doc_key = _DOC_KEY_RE.search(meta)
            if doc_key is not None:
                doc, _ = _read_string(meta, doc_key.end())
            position = end
        else:
            symbol = _SYMBOL_RE.match(content, position)
            position = symbol.end() if symbol else position
        position = _skip_blank(content, position)

    symbol = _SYMBOL_RE.match(content, position)
    if symbol is None:
        raise ParseError("Could not extract namespace", path=str(path))
    name = symbol.group(0)
    position = _skip_blank(content, symbol.end())

    if doc is None and content.startswith('"', position):
        doc, _ = _read_string(content, position)
    if not doc or not doc.strip():
        raise ParseError("No namespace docstring found", path=str(path))
    return NamespaceHeader(name=name, doc=doc)


def parse_namespace_header(path: Path, content: str) -> NamespaceHeader:
    """Extract the declared unit name and its description from a source header."""
    suffix = path.suffix.lower()
    if suffix in PYTHON_EXTENSIONS:
        return _parse_python_header(path, content)
    return _parse_lisp_header(path, content)
