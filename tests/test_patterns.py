"""Tests for anchored glob matching."""

from __future__ import annotations

from module_analyzer.patterns import compile_glob, matches_any, matches_glob, relative_path


def test_star_matches_any_run_of_characters() -> None:
    pattern = compile_glob("src/*.js")

    assert matches_glob("src/a.js", pattern)
    assert matches_glob("src/nested/dir/a.js", pattern)
    assert not matches_glob("src/a.ts", pattern)


def test_question_mark_matches_single_character() -> None:
    pattern = compile_glob("v?.js")

    assert matches_glob("v1.js", pattern)
    assert not matches_glob("v10.js", pattern)


def test_match_is_anchored_not_substring() -> None:
    pattern = compile_glob("legacy")

    assert matches_glob("legacy", pattern)
    assert not matches_glob("src/legacy/a.js", pattern)
    assert not matches_glob("legacy-old", pattern)


def test_regex_metacharacters_are_literal() -> None:
    pattern = compile_glob("a.b+(c)")

    assert matches_glob("a.b+(c)", pattern)
    assert not matches_glob("aXb+(c)", pattern)


def test_matches_any_and_relative_path() -> None:
    patterns = [compile_glob("*.test.js"), compile_glob("scripts/*")]

    assert matches_any("src/a.test.js", patterns)
    assert matches_any("scripts/build.js", patterns)
    assert not matches_any("src/a.js", patterns)
    assert relative_path("/project/src/a.js", "/project") == "src/a.js"
    assert relative_path("/project/src/a.js", None) == "/project/src/a.js"
