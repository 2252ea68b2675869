"""Tests for module_analyzer.resolver."""

from __future__ import annotations

from module_analyzer.resolver import ModuleResolver, common_root, is_relative_specifier

MODULES = [
    "/project/src/app.js",
    "/project/src/util.ts",
    "/project/src/util.json",
    "/project/src/config.json",
    "/project/src/widget.tsx",
    "/project/src/lib/index.js",
    "/project/src/data/index.json",
    "/project/src/styles/main.css",
]


def _resolver() -> ModuleResolver:
    return ModuleResolver(MODULES, project_root="/project")


def test_only_relative_specifiers_are_eligible() -> None:
    resolver = _resolver()

    assert is_relative_specifier("./a")
    assert is_relative_specifier("../a")
    assert not is_relative_specifier("react")
    assert not is_relative_specifier("/project/src/app.js")
    assert resolver.resolve("lib", "/project/src/app.js") is None
    assert resolver.resolve("/project/src/util.ts", "/project/src/app.js") is None


def test_exact_path_wins() -> None:
    resolver = _resolver()

    assert resolver.resolve("./config.json", "/project/src/app.js") == "/project/src/config.json"
    assert resolver.resolve("./styles/main.css", "/project/src/app.js") == "/project/src/styles/main.css"


def test_source_extension_may_name_a_sibling_source_file() -> None:
    resolver = _resolver()

    assert resolver.resolve("./util.js", "/project/src/app.js") == "/project/src/util.ts"
    assert resolver.resolve("./widget.js", "/project/src/app.js") == "/project/src/widget.tsx"


def test_code_extensions_are_tried_before_data_extensions() -> None:
    resolver = _resolver()

    assert resolver.resolve("./util", "/project/src/app.js") == "/project/src/util.ts"
    assert resolver.resolve("./config", "/project/src/app.js") == "/project/src/config.json"


def test_directory_index_files() -> None:
    resolver = _resolver()

    assert resolver.resolve("./lib", "/project/src/app.js") == "/project/src/lib/index.js"
    assert resolver.resolve("../lib/", "/project/src/lib/index.js") == "/project/src/lib/index.js"
    assert resolver.resolve("./data", "/project/src/app.js") == "/project/src/data/index.json"


def test_parent_directory_traversal() -> None:
    resolver = _resolver()

    assert resolver.resolve("../app", "/project/src/lib/index.js") == "/project/src/app.js"


def test_unknown_target_returns_none() -> None:
    resolver = _resolver()

    assert resolver.resolve("./missing", "/project/src/app.js") is None
    assert resolver.resolve("./util.mjs", "/project/src/app.js") is None


def test_resolution_is_deterministic() -> None:
    first = _resolver()
    second = ModuleResolver(list(reversed(MODULES)), project_root="/project")

    for specifier in ["./util", "./util.js", "./lib", "./config", "./missing"]:
        assert first.resolve(specifier, "/project/src/app.js") == second.resolve(specifier, "/project/src/app.js")


def test_basename_lookup_is_only_a_hint() -> None:
    resolver = _resolver()

    # The basename key exists but never resolves an import from another directory
    assert resolver.lookup_hint("app.js") == "/project/src/app.js"
    assert resolver.lookup_hint("src/util.ts") == "/project/src/util.ts"
    assert resolver.lookup_hint("/project/src/app") == "/project/src/app.js"
    assert resolver.resolve("./app.js", "/project/src/lib/index.js") is None


def test_configured_extension_order() -> None:
    resolver = ModuleResolver(
        ["/p/a.js", "/p/b.ts", "/p/b.js"], project_root="/p", extensions=[".ts", ".js"], data_extensions=[]
    )

    assert resolver.resolve("./b", "/p/a.js") == "/p/b.ts"


def test_common_root() -> None:
    assert common_root(["/project/src/a.js", "/project/lib/b.js"]) == "/project"
    assert common_root([]) is None
    assert ModuleResolver(["/project/src/a.js", "/project/src/b.js"]).project_root == "/project/src"


def test_trailing_slash_names_the_directory_index() -> None:
    resolver = ModuleResolver(["/p/app.js", "/p/lib.js", "/p/lib/index.js"], project_root="/p")

    assert resolver.resolve("./lib/", "/p/app.js") == "/p/lib/index.js"
    assert resolver.resolve("./lib", "/p/app.js") == "/p/lib.js"
    assert resolver.candidates("./lib/", "/p/app.js")[0] == "/p/lib/index.js"
