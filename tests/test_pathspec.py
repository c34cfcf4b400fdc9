"""Tests for path-spec compilation."""

import pytest

from docsift.errors import ConfigError, PathSpecSyntaxError, UnknownStrategyError
from docsift.ingestion.models import CaptureToken, GlobToken, LiteralToken
from docsift.ingestion.pathspec import base_path, compile_path, compile_path_spec
from docsift.ingestion.strategies import default_registry


def test_literal_only_path():
    segments = compile_path("/docs/readme.md")
    assert segments == (LiteralToken("/docs/readme.md"),)
    assert base_path(segments) == "/docs/readme.md"


def test_single_glob_splits_literals():
    segments = compile_path("/docs/*.md")
    assert segments == (LiteralToken("/docs/"), GlobToken(recursive=False), LiteralToken(".md"))
    assert base_path(segments) == "/docs/"


def test_recursive_glob_takes_priority_over_single():
    segments = compile_path("/src/**/*.py")
    assert segments == (
        LiteralToken("/src/"),
        GlobToken(recursive=True),
        LiteralToken("/"),
        GlobToken(recursive=False),
        LiteralToken(".py"),
    )


def test_named_capture():
    segments = compile_path("/docs/(?<version>v[0-9]+)/guide.md")
    assert segments == (
        LiteralToken("/docs/"),
        CaptureToken(name="version", pattern="v[0-9]+"),
        LiteralToken("/guide.md"),
    )
    assert base_path(segments) == "/docs/"


def test_capture_with_nested_groups():
    segments = compile_path("/x/(?<kind>(api|guide)s?)/index.md")
    assert segments[1] == CaptureToken(name="kind", pattern="(api|guide)s?")
    assert segments[2] == LiteralToken("/index.md")


def test_capture_ignores_parens_in_character_class_and_escapes():
    segments = compile_path(r"/x/(?<name>[)(]+\))/y")
    assert segments[1] == CaptureToken(name="name", pattern=r"[)(]+\)")
    assert segments[2] == LiteralToken("/y")


@pytest.mark.parametrize(
    "path, expected_base",
    [
        ("/a/b/c.txt", "/a/b/c.txt"),
        ("/a/b/*.txt", "/a/b/"),
        ("/a/**/b/*.txt", "/a/"),
        ("relative/dir/*.md", "relative/dir/"),
        ("*.md", ""),
        ("/a/(?<x>[a-z]+)/*.md", "/a/"),
    ],
)
def test_base_path_is_leading_literal_run(path, expected_base):
    assert base_path(compile_path(path)) == expected_base


@pytest.mark.parametrize(
    "path, message",
    [
        ("/docs/(?<>x)/a.md", "must not be empty"),
        ("/docs/(?<name x)", "missing '>'"),
        ("/docs/(?<name>abc", "no matching"),
        ("/docs/(?<name>[a-)", "no matching"),
        ("/docs/(?<name>a{2,1})", "Invalid regex"),
        ("/docs/(?<name>*)", "Invalid regex"),
        ("/docs/(?<1bad>x)", "Invalid capture name"),
        ("/docs/(?<a>x)/(?<a>y)", "Duplicate capture name"),
    ],
)
def test_malformed_specs_fail_at_compile_time(path, message):
    with pytest.raises(PathSpecSyntaxError, match=message):
        compile_path(path)


def test_compile_path_spec_resolves_strategy_and_options():
    spec = compile_path_spec(
        "/docs/*.md",
        strategy="chunked",
        strategy_options={"chunk_size": 200, "chunk_overlap": 20},
        base_metadata={"name": "docs"},
        watch=True,
        registry=default_registry(),
    )
    assert spec.base_path == "/docs/"
    assert spec.strategy_options == {"chunk_size": 200, "chunk_overlap": 20}
    assert spec.base_metadata == {"name": "docs"}
    assert spec.watch is True


def test_compile_path_spec_rejects_unknown_strategy():
    with pytest.raises(UnknownStrategyError, match="bogus"):
        compile_path_spec("/docs/*.md", strategy="bogus", registry=default_registry())


def test_compile_path_spec_rejects_bad_options():
    with pytest.raises(ConfigError, match="chunk_overlap"):
        compile_path_spec(
            "/docs/*.md",
            strategy="chunked",
            strategy_options={"chunk_size": 50, "chunk_overlap": 50},
            registry=default_registry(),
        )
