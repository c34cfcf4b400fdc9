"""Tests for filesystem matching of compiled path specs."""

import os

from docsift.ingestion.matcher import match_files, match_path, normalize_file_path
from docsift.ingestion.pathspec import compile_path_spec


def _real(path) -> str:
    return os.path.realpath(str(path))


def _spec(path: str, **kwargs):
    return compile_path_spec(path, **kwargs)


def test_single_glob_matches_only_direct_children(tmp_path):
    docs = tmp_path / "docs"
    (docs / "sub").mkdir(parents=True)
    for name in ("a.md", "b.md", "c.txt"):
        (docs / name).write_text(name, encoding="utf-8")
    (docs / "sub" / "d.md").write_text("d", encoding="utf-8")

    matches = match_files(_spec(f"{docs}/*.md"))

    assert sorted(os.path.basename(m.path) for m in matches) == ["a.md", "b.md"]
    assert all(m.captures == {} for m in matches)


def test_recursive_glob_crosses_directories(tmp_path):
    docs = tmp_path / "docs"
    (docs / "sub" / "deep").mkdir(parents=True)
    (docs / "top.md").write_text("t", encoding="utf-8")
    (docs / "sub" / "one.md").write_text("1", encoding="utf-8")
    (docs / "sub" / "deep" / "two.md").write_text("2", encoding="utf-8")

    matches = match_files(_spec(f"{docs}/**/*.md"))

    assert sorted(os.path.basename(m.path) for m in matches) == ["one.md", "two.md"]


def test_named_capture_values_become_metadata(tmp_path):
    for version in ("v1", "v2"):
        folder = tmp_path / "docs" / version
        folder.mkdir(parents=True)
        (folder / "guide.md").write_text(f"guide {version}", encoding="utf-8")
    (tmp_path / "docs" / "draft").mkdir()
    (tmp_path / "docs" / "draft" / "guide.md").write_text("draft", encoding="utf-8")

    spec = _spec(
        f"{tmp_path}/docs/(?<version>v[0-9]+)/guide.md",
        base_metadata={"name": "guides"},
    )
    matches = match_files(spec)

    assert [m.captures for m in matches] == [{"version": "v1"}, {"version": "v2"}]
    assert matches[0].metadata == {"name": "guides", "version": "v1"}
    assert matches[0].spec is spec
    assert matches[0].source_path == spec.path


def test_base_path_that_is_a_file(tmp_path):
    target = tmp_path / "single.md"
    target.write_text("only", encoding="utf-8")

    matches = match_files(_spec(str(target)))

    assert [m.path for m in matches] == [_real(target)]
    assert matches[0].captures == {}


def test_partial_name_base_walks_parent_directory(tmp_path):
    for name in ("v1.md", "v2.md", "x.md"):
        (tmp_path / name).write_text(name, encoding="utf-8")

    matches = match_files(_spec(f"{tmp_path}/v*.md"))

    assert sorted(os.path.basename(m.path) for m in matches) == ["v1.md", "v2.md"]


def test_missing_root_yields_empty_list(tmp_path):
    assert match_files(_spec(f"{tmp_path}/nope/*.md")) == []


def test_matching_twice_is_deterministic(tmp_path):
    for name in ("b.md", "a.md", "c.md"):
        (tmp_path / name).write_text(name, encoding="utf-8")
    spec = _spec(f"{tmp_path}/*.md")

    first = [(m.path, m.captures) for m in match_files(spec)]
    second = [(m.path, m.captures) for m in match_files(spec)]

    assert first == second
    assert [os.path.basename(path) for path, _ in first] == ["a.md", "b.md", "c.md"]


def test_symlinked_root_collapses_to_canonical_paths(tmp_path):
    real_root = tmp_path / "real"
    real_root.mkdir()
    (real_root / "a.md").write_text("a", encoding="utf-8")
    alias = tmp_path / "alias"
    alias.symlink_to(real_root, target_is_directory=True)

    via_alias = match_files(_spec(f"{alias}/*.md"))
    via_real = match_files(_spec(f"{real_root}/*.md"))

    assert [m.path for m in via_alias] == [m.path for m in via_real] == [_real(real_root / "a.md")]


def test_relative_specs_keep_relative_paths(tmp_path, monkeypatch):
    (tmp_path / "docs").mkdir()
    (tmp_path / "docs" / "a.md").write_text("a", encoding="utf-8")
    monkeypatch.chdir(tmp_path)

    matches = match_files(_spec("docs/*.md"))

    assert [m.path for m in matches] == [os.path.join("docs", "a.md")]


def test_match_path_single_file(tmp_path):
    spec = _spec(f"{tmp_path}/docs/(?<version>v[0-9]+)/guide.md")
    hit = match_path(f"{tmp_path}/docs/v3/guide.md", spec)
    miss = match_path(f"{tmp_path}/docs/latest/guide.md", spec)

    assert hit is not None and hit.captures == {"version": "v3"}
    assert miss is None


def test_normalize_file_path_keeps_relative_and_trailing_slash(tmp_path):
    assert normalize_file_path("docs/") == "docs/"
    assert normalize_file_path(f"{tmp_path}/").endswith("/")
    assert normalize_file_path("") == ""
