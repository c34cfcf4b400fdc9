# Lazy imports so importing config does not pull in the whole service stack
from docsift.core.config import DocsiftConfig, SourceConfig

__all__ = ["DocsiftConfig", "SourceConfig", "IndexContext"]


def __getattr__(name):
    if name == "IndexContext":
        from docsift.core.context import IndexContext
        return IndexContext
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
