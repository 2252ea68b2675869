"""End-to-end tests for module_analyzer.engine."""

from __future__ import annotations

import json

from module_analyzer import AnalyzerConfig, ModuleGraphEngine, analyze_modules
from module_analyzer.models import LIKELY_PROBLEMATIC


def _run(module_facts, config=None, **kwargs):
    return analyze_modules(module_facts, config=config, project_root="/project", **kwargs)


def test_mutual_imports_form_one_cycle(facts) -> None:
    a = facts.add("src/a.js", imports=[facts.imp("./b")])
    b = facts.add("src/b.js", imports=[facts.imp("./a")])

    result = _run(facts.build())

    assert result.circular_dependencies == [[a, b, a]]
    assert result.strongly_connected_components == [[a, b]]
    assert result.cycle_details[0]["severity"] == "high"
    assert result.stats.circular_dependencies == 1


def test_unused_and_missing_exports(facts) -> None:
    a = facts.add("src/a.js", imports=[facts.imp("./b", facts.named("bar"), line=4)])
    b = facts.add("src/b.js", exports=facts.exports("foo"))

    result = _run(facts.build())

    assert [(f.finding.module, f.finding.export_name) for f in result.unused_exports] == [(b, "foo")]
    missing = result.missing_exports[0].finding
    assert (missing.source, missing.target_module, missing.missing_export) == (a, b, "bar")
    assert result.stats.unused_exports == 1
    assert result.stats.missing_exports == 1


def test_high_coupling(facts) -> None:
    targets = [facts.add(f"src/dep{i}.js") for i in range(12)]
    hub = facts.add("src/hub.js", imports=[facts.imp(f"./dep{i}", line=i + 1) for i in range(12)])

    result = _run(facts.build())

    assert len(targets) == 12
    assert [f.to_dict() for f in result.high_coupling_modules] == [
        {"module": hub, "importCount": 12, "threshold": 10}
    ]
    assert result.coupling_profile.max == 12
    assert result.coupling_profile.entry_candidates == [hub]


def test_private_unused_export_is_problematic(facts) -> None:
    helpers = facts.add("src/utils/helpers.js", exports=facts.exports("_privateHelper"))

    result = _run(facts.build())

    classified = result.unused_exports[0]
    assert classified.finding.module == helpers
    assert classified.result.classification == LIKELY_PROBLEMATIC
    assert "private-naming" in classified.result.reasons
    assert result.stats.likely_problematic_unused_exports == 1


def test_unresolved_imports_are_classified(facts) -> None:
    a = facts.add("src/a.js", imports=[facts.imp("./missing", line=7), facts.imp("react")])

    result = _run(facts.build())

    unresolved = result.unresolved_imports[0]
    assert (unresolved.finding.from_module, unresolved.finding.source, unresolved.finding.line) == (
        a, "./missing", 7)
    assert unresolved.result.reasons == ("missing-extension",)
    assert result.stats.unresolved_internals == 1
    assert result.stats.external_packages == 1


def test_malformed_record_does_not_abort_the_run(facts) -> None:
    facts.add("src/a.js", exports=facts.exports("foo"))
    module_facts = facts.build()
    module_facts["relative/b.js"] = {"imports": []}
    module_facts["/project/src/c.js"] = {"fileType": "binary"}

    result = _run(module_facts)

    assert sorted(error.module for error in result.module_errors) == ["/project/src/c.js", "relative/b.js"]
    assert list(result.graph) == [facts.path("src/a.js")]
    assert result.stats.total_modules == 3
    assert result.stats.analyzed_modules == 1
    assert result.stats.malformed_modules == 2


def test_disabled_checks_are_skipped(facts) -> None:
    facts.add("src/a.js", imports=[facts.imp("./b", facts.named("nope"))], exports=facts.exports("x"))
    facts.add("src/b.js", imports=[facts.imp("./a")], exports=facts.exports("y"))
    config = AnalyzerConfig.from_dict({
        "analysis": {
            "detectCircularDependencies": False,
            "detectUnusedExports": False,
            "detectMissingExports": False,
            "coupling": {"enabled": False, "threshold": 0},
        }
    })

    result = _run(facts.build(), config=config)

    assert result.circular_dependencies == []
    assert result.unused_exports == []
    assert result.missing_exports == []
    assert result.high_coupling_modules == []
    assert result.coupling_profile.max == 1


def test_runs_are_independent_and_repeatable(facts) -> None:
    facts.add("src/a.js", imports=[facts.imp("./b", facts.named("foo")), facts.imp("./gone")])
    facts.add("src/b.js", imports=[facts.imp("./a")], exports=facts.exports("foo", "bar"))
    module_facts = facts.build()
    engine = ModuleGraphEngine(project_root="/project")

    first = engine.run(module_facts)
    second = engine.run(module_facts)

    assert first.to_dict() == second.to_dict()
    assert first.graph is not second.graph


def test_result_is_json_serializable(facts) -> None:
    facts.add("src/a.js", imports=[facts.imp("./b", facts.named("foo")), facts.imp("fs")])
    facts.add("src/b.js", imports=[facts.imp("./a", facts.default())], exports=facts.exports("foo", "_old"))

    report = _run(facts.build(), package_manifest={"main": "src/a.js"}).to_dict()
    decoded = json.loads(json.dumps(report))

    assert decoded["moduleCount"] == 2
    assert decoded["summary"]["internalEdges"] == 2
    assert decoded["summary"]["externalBuiltins"] == 1
    assert decoded["unusedExports"][0]["exportName"] == "_old"
    assert decoded["root"] == "/project"


def test_project_root_defaults_to_common_directory(facts) -> None:
    facts.add("src/a.js")
    facts.add("src/lib/b.js")

    result = analyze_modules(facts.build())

    assert result.project_root == "/project/src"


def test_empty_input() -> None:
    result = analyze_modules({})

    assert result.graph == {}
    assert result.circular_dependencies == []
    assert result.stats.total_modules == 0


def test_isolated_module_has_no_cycle_or_coupling_finding(facts) -> None:
    lonely = facts.add("src/lonely.js")
    facts.add("src/a.js", imports=[facts.imp("./b")])
    facts.add("src/b.js", imports=[facts.imp("./a")])
    config = AnalyzerConfig.from_dict({"analysis": {"coupling": {"threshold": 0}}})

    result = _run(facts.build(), config=config)

    assert all(lonely not in cycle for cycle in result.circular_dependencies)
    assert lonely not in [finding.module for finding in result.high_coupling_modules]
    assert len(result.high_coupling_modules) == 2
