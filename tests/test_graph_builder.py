"""Tests for module_analyzer.graph_builder."""

from __future__ import annotations

from module_analyzer.engine import load_module_records
from module_analyzer.graph_builder import DependencyGraphBuilder, external_kind
from module_analyzer.models import (
    EDGE_EXTERNAL_BUILTIN,
    EDGE_EXTERNAL_PACKAGE,
    EDGE_INTERNAL,
    EDGE_UNRESOLVED,
)
from module_analyzer.resolver import ModuleResolver


def _build(module_facts):
    records, errors = load_module_records(module_facts)
    assert errors == []
    builder = DependencyGraphBuilder(records, ModuleResolver(records, project_root="/project"))
    return builder, builder.build()


def test_edges_are_classified(facts) -> None:
    a = facts.add(
        "src/a.js",
        imports=[
            facts.imp("./b", facts.named("foo"), line=1),
            facts.imp("./missing", line=2),
            facts.imp("fs", line=3),
            facts.imp("node:path", line=4),
            facts.imp("fs/promises", line=5),
            facts.imp("react", line=6),
            facts.imp("@scope/pkg/sub", line=7),
        ],
    )
    b = facts.add("src/b.js", exports=facts.exports("foo"))

    _, nodes = _build(facts.build())

    node = nodes[a]
    assert [edge.target_module for edge in node.imports] == [b]
    assert node.imports[0].edge_kind == EDGE_INTERNAL
    assert [edge.specifier for edge in node.unresolved_internals] == ["./missing"]
    assert node.unresolved_internals[0].edge_kind == EDGE_UNRESOLVED
    kinds = {edge.specifier: edge.edge_kind for edge in node.external_dependencies}
    assert kinds == {
        "fs": EDGE_EXTERNAL_BUILTIN,
        "node:path": EDGE_EXTERNAL_BUILTIN,
        "fs/promises": EDGE_EXTERNAL_BUILTIN,
        "react": EDGE_EXTERNAL_PACKAGE,
        "@scope/pkg/sub": EDGE_EXTERNAL_PACKAGE,
    }


def test_external_targets_never_become_nodes(facts) -> None:
    facts.add("src/a.js", imports=[facts.imp("lodash"), facts.imp("os")])

    builder, nodes = _build(facts.build())

    assert set(nodes) == {facts.path("src/a.js")}
    assert set(builder.graph.nodes) == {facts.path("src/a.js")}
    assert builder.graph.number_of_edges() == 0


def test_reverse_edges_do_not_depend_on_processing_order(facts) -> None:
    # The importer is listed before its target, and the other way around
    a = facts.add("src/a.js", imports=[facts.imp("./c", line=4)])
    c = facts.add("src/c.js", imports=[facts.imp("./b", line=9)])
    b = facts.add("src/b.js")

    _, nodes = _build(facts.build())

    assert [(entry.source_module, entry.line) for entry in nodes[c].imported_by] == [(a, 4)]
    assert [(entry.source_module, entry.line) for entry in nodes[b].imported_by] == [(c, 9)]
    assert nodes[a].imported_by == []


def test_every_internal_edge_has_a_reverse_entry(facts) -> None:
    facts.add("src/a.js", imports=[facts.imp("./b"), facts.imp("./c"), facts.imp("./b", line=2)])
    facts.add("src/b.js", imports=[facts.imp("./c")])
    facts.add("src/c.js", imports=[facts.imp("./a")])

    _, nodes = _build(facts.build())

    for path, node in nodes.items():
        for edge in node.imports:
            sources = [entry.source_module for entry in nodes[edge.target_module].imported_by]
            assert path in sources
    assert len(nodes[facts.path("src/b.js")].imported_by) == 2


def test_repeated_imports_are_counted_on_the_networkx_edge(facts) -> None:
    a = facts.add("src/a.js", imports=[facts.imp("./b", line=1), facts.imp("./b.js", line=5)])
    b = facts.add("src/b.js")

    builder, nodes = _build(facts.build())

    assert nodes[a].import_count == 2
    assert builder.graph[a][b]["count"] == 2
    assert builder.graph[a][b]["line"] == 1
    assert builder.get_module_dependencies(a) == [b]
    assert builder.get_module_dependents(b) == [a]
    assert builder.get_module_dependencies("/nowhere.js") == []


def test_graph_stats_and_export(facts) -> None:
    a = facts.add("src/a.js", imports=[facts.imp("./b"), facts.imp("react"), facts.imp("./gone")])
    facts.add("src/b.js")

    builder, _ = _build(facts.build())
    stats = builder.get_graph_stats()

    assert stats["total_modules"] == 2
    assert stats["total_internal_edges"] == 1
    assert stats["total_external_edges"] == 1
    assert stats["external_packages"] == 1
    assert stats["unresolved_internals"] == 1
    assert stats["is_connected"] is True

    exported = builder.export_graph_data()
    assert [node["id"] for node in exported["nodes"]] == [a, facts.path("src/b.js")]
    assert exported["edges"][0]["source"] == a

    serialized = builder.to_dict()
    assert serialized[a]["imports"][0]["resolved"] == facts.path("src/b.js")
    assert serialized[a]["unresolvedInternals"][0]["message"] == "Could not resolve internal import: ./gone"


def test_external_kind() -> None:
    assert external_kind("crypto") == EDGE_EXTERNAL_BUILTIN
    assert external_kind("node:test") == EDGE_EXTERNAL_BUILTIN
    assert external_kind("express") == EDGE_EXTERNAL_PACKAGE


def test_failing_module_is_isolated(facts, monkeypatch) -> None:
    a = facts.add("src/a.js", imports=[facts.imp("./b")], exports=facts.exports("x"))
    b = facts.add("src/b.js", imports=[facts.imp("./a")])
    records, _ = load_module_records(facts.build())
    builder = DependencyGraphBuilder(records, ModuleResolver(records, project_root="/project"))
    original = builder._classify_import

    def flaky(path, fact):
        if path == a:
            raise RuntimeError("boom")
        return original(path, fact)

    monkeypatch.setattr(builder, "_classify_import", flaky)
    nodes = builder.build()

    assert [error.module for error in builder.errors] == [a]
    assert "boom" in builder.errors[0].message
    assert nodes[a].imports == []
    assert [export.name for export in nodes[a].exports] == ["x"]
    assert [entry.source_module for entry in nodes[a].imported_by] == [b]
