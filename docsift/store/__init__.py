# Lazy import: VectorStore needs qdrant_client
__all__ = ["VectorStore", "SearchHit"]


def __getattr__(name):
    if name == "VectorStore":
        from docsift.store.vector_store import VectorStore
        return VectorStore
    if name == "SearchHit":
        from docsift.store.vector_store import SearchHit
        return SearchHit
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
