"""
Static analysis of source files into declared code elements.

The default analyzer walks Python modules with ``ast``. Other engines can be
plugged into the code-analysis strategy by implementing ``Analyzer``.
"""

from __future__ import annotations

import ast
import logging
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, Union

from docsift.errors import AnalysisError
from docsift.ingestion.parser import python_module_name

logger = logging.getLogger("Docsift.Analysis")

ELEMENT_KINDS = ("namespace", "function", "class", "method", "constructor", "field")
_FunctionNode = Union[ast.FunctionDef, ast.AsyncFunctionDef]


@dataclass
class CodeElement:
    name: str
    kind: str
    visibility: str = "public"
    doc: Optional[str] = None
    namespace: Optional[str] = None
    language: str = "python"
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class Analyzer(Protocol):
    def analyze(self, path: str) -> List[CodeElement]:
        ...


def visibility_of(name: str) -> str:
    if name.startswith("__") and name.endswith("__"):
        return "public"
    if name.startswith("__"):
        return "private"
    if name.startswith("_"):
        return "protected"
    return "public"


def _signature(node: _FunctionNode) -> str:
    return f"{node.name}({ast.unparse(node.args)})"


class PythonAstAnalyzer:
    """Extracts modules, functions, classes and class members from Python source."""

    language = "python"
    suffixes = (".py", ".pyi")

    def analyze(self, path: str) -> List[CodeElement]:
        source_path = Path(path)
        if source_path.suffix.lower() not in self.suffixes:
            raise AnalysisError(f"No analyzer for {source_path.suffix or 'extensionless'} files", path=path)
        try:
            source = source_path.read_text(encoding="utf-8")
            tree = ast.parse(source, filename=path)
        except (OSError, UnicodeDecodeError, SyntaxError, ValueError) as exc:
            raise AnalysisError(f"Analysis failed for {path}: {exc}", path=path) from exc

        namespace = python_module_name(source_path) or source_path.stem
        elements: List[CodeElement] = [
            CodeElement(
                name=namespace,
                kind="namespace",
                doc=ast.get_docstring(tree),
                extra={"line": 1},
            )
        ]
        for node in tree.body:
            if isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)):
                elements.append(self._function(node, namespace))
            elif isinstance(node, ast.ClassDef):
                elements.extend(self._class(node, namespace))
        logger.debug("Analyzed %s: %d element(s)", path, len(elements))
        return elements

    def _function(self, node: _FunctionNode, namespace: str) -> CodeElement:
        return CodeElement(
            name=node.name,
            kind="function",
            visibility=visibility_of(node.name),
            doc=ast.get_docstring(node),
            namespace=namespace,
            extra={
                "line": node.lineno,
                "signature": _signature(node),
                "async": isinstance(node, ast.AsyncFunctionDef),
            },
        )

    def _class(self, node: ast.ClassDef, namespace: str) -> List[CodeElement]:
        elements = [
            CodeElement(
                name=node.name,
                kind="class",
                visibility=visibility_of(node.name),
                doc=ast.get_docstring(node),
                namespace=namespace,
                extra={
                    "line": node.lineno,
                    "bases": [ast.unparse(base) for base in node.bases],
                },
            )
        ]
        for member in node.body:
            if isinstance(member, (ast.FunctionDef, ast.AsyncFunctionDef)):
                kind = "constructor" if member.name == "__init__" else "method"
                elements.append(
                    CodeElement(
                        name=member.name,
                        kind=kind,
                        visibility=visibility_of(member.name),
                        doc=ast.get_docstring(member),
                        namespace=namespace,
                        extra={
                            "line": member.lineno,
                            "owner": node.name,
                            "signature": _signature(member),
                        },
                    )
                )
            elif isinstance(member, ast.AnnAssign) and isinstance(member.target, ast.Name):
                elements.append(
                    CodeElement(
                        name=member.target.id,
                        kind="field",
                        visibility=visibility_of(member.target.id),
                        namespace=namespace,
                        extra={
                            "line": member.lineno,
                            "owner": node.name,
                            "annotation": ast.unparse(member.annotation),
                        },
                    )
                )
        return elements
