"""Tests for search, the metadata filter schema and the qdrant-backed store."""

import os

import pytest
from conftest import HashingEmbedder

from docsift.core.config import VectorConfig
from docsift.ingestion.pathspec import compile_path_spec
from docsift.ingestion.pipeline import IngestionPipeline
from docsift.ingestion.processor import DocumentProcessor
from docsift.ingestion.state import IngestionState
from docsift.search import SearchService, build_metadata_schema
from docsift.store.vector_store import VectorStore, point_id


def test_metadata_schema_enumerates_sorted_values():
    schema = build_metadata_schema({"version": ["v2", "v1"], "chunk_index": [1, 0]})
    assert schema["additionalProperties"] is False
    assert schema["properties"]["version"] == {"type": "string", "enum": ["v1", "v2"]}
    assert schema["properties"]["chunk_index"]["enum"] == ["0", "1"]
    assert list(schema["properties"]) == ["chunk_index", "version"]


def test_search_validates_arguments(embedder, store, state):
    service = SearchService(embedder=embedder, store=store, state=state)
    with pytest.raises(ValueError, match="query"):
        service.search("   ")
    with pytest.raises(ValueError, match="limit"):
        service.search("docs", limit=0)
    with pytest.raises(ValueError, match="mapping"):
        service.search("docs", metadata=["version"])


def test_search_returns_content_and_score(tmp_path, pipeline, embedder, store, state):
    for version, text in (("v1", "install the widget quickly"), ("v2", "configure the gadget carefully")):
        folder = tmp_path / version
        folder.mkdir()
        (folder / "guide.md").write_text(text, encoding="utf-8")
    pipeline.ingest([compile_path_spec(f"{tmp_path}/(?<version>v[0-9]+)/guide.md")])
    service = SearchService(embedder=embedder, store=store, state=state, description="Guides")

    results = service.search("gadget configure", limit=2)
    assert results[0]["content"] == "configure the gadget carefully"
    assert set(results[0]) == {"content", "score"}

    filtered = service.search("gadget configure", metadata={"version": "v1"})
    assert [r["content"] for r in filtered] == ["install the widget quickly"]

    tool = service.tool_definition()
    assert tool["name"] == "search"
    assert tool["description"] == "Guides"
    assert tool["inputSchema"]["properties"]["metadata"]["properties"]["version"]["enum"] == ["v1", "v2"]


class TestVectorStore:
    @pytest.fixture
    def vector_store(self):
        store = VectorStore(VectorConfig(collection="test_segments"), dimensions=4)
        yield store
        store.close()

    def test_upsert_search_and_filters(self, vector_store):
        vector_store.upsert("/a.md", [1.0, 0.0, 0.0, 0.0], {"file_id": "/a.md", "content": "A", "version": "v1"})
        vector_store.upsert("/b.md", [0.0, 1.0, 0.0, 0.0], {"file_id": "/b.md", "content": "B", "version": "v2"})

        hits = vector_store.search([1.0, 0.1, 0.0, 0.0], limit=2)
        assert [h.segment_id for h in hits] == ["/a.md", "/b.md"]
        assert hits[0].content == "A"
        assert hits[0].metadata["version"] == "v1"

        filtered = vector_store.search([1.0, 0.1, 0.0, 0.0], limit=2, filters={"version": "v2"})
        assert [h.segment_id for h in filtered] == ["/b.md"]

    def test_upsert_is_idempotent_per_segment(self, vector_store):
        vector_store.upsert("/a.md", [1.0, 0.0, 0.0, 0.0], {"file_id": "/a.md", "content": "old"})
        vector_store.upsert("/a.md", [1.0, 0.0, 0.0, 0.0], {"file_id": "/a.md", "content": "new"})
        assert vector_store.count() == 1
        assert vector_store.search([1.0, 0.0, 0.0, 0.0], limit=1)[0].content == "new"

    def test_remove_file_removes_every_segment(self, vector_store):
        for index in range(3):
            vector_store.upsert(f"/a.md#{index}", [1.0, float(index), 0.0, 0.0], {"file_id": "/a.md", "content": "a"})
        vector_store.upsert("/b.md", [0.0, 1.0, 0.0, 0.0], {"file_id": "/b.md", "content": "b"})

        assert sorted(vector_store.ids_for_file("/a.md")) == ["/a.md#0", "/a.md#1", "/a.md#2"]
        assert vector_store.remove_file("/a.md") == 3
        assert vector_store.ids_for_file("/a.md") == []
        assert vector_store.count() == 1

    def test_point_ids_are_stable(self):
        assert point_id("/a.md#0") == point_id("/a.md#0")
        assert point_id("/a.md#0") != point_id("/a.md#1")


def test_pipeline_against_qdrant(tmp_path):
    (tmp_path / "a.md").write_text("qdrant backed segment", encoding="utf-8")
    embedder = HashingEmbedder(dimensions=16)
    store = VectorStore(VectorConfig(collection="pipeline_segments"), dimensions=16)
    pipeline = IngestionPipeline(
        processor=DocumentProcessor(),
        embedder=embedder,
        store=store,
        state=IngestionState(),
    )
    spec = compile_path_spec(f"{tmp_path}/*.md")

    try:
        report = pipeline.ingest([spec])
        assert report.ingested == 1
        file_id = os.path.realpath(tmp_path / "a.md")
        assert store.ids_for_file(file_id) == [file_id]

        pipeline.reindex("delete", str(tmp_path / "a.md"), spec)
        assert store.count() == 0
    finally:
        store.close()
