"""
Analysis Engine
Runs one complete, sequential analysis over a module-fact snapshot:
build graph, detect cycles, analyze export usage, classify, measure coupling
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .config import AnalyzerConfig
from .coupling import CouplingAnalyzer, CouplingProfile
from .cycle_detector import CycleDetector
from .export_classifier import ExportClassifier
from .export_usage import ExportUsageAnalyzer
from .graph_builder import DependencyGraphBuilder
from .import_classifier import ImportClassifier
from .models import (
    EDGE_EXTERNAL_BUILTIN,
    EDGE_EXTERNAL_PACKAGE,
    ClassifiedFinding,
    CouplingFinding,
    MalformedModuleError,
    ModuleError,
    ModuleNode,
    ModuleRecord,
)
from .resolver import ModuleResolver, common_root

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AnalysisStats:
    """Counters for one run"""
    total_modules: int = 0
    analyzed_modules: int = 0
    malformed_modules: int = 0
    internal_edges: int = 0
    external_edges: int = 0
    external_packages: int = 0
    external_builtins: int = 0
    unresolved_internals: int = 0
    circular_dependencies: int = 0
    unused_exports: int = 0
    missing_exports: int = 0
    high_coupling_modules: int = 0
    likely_problematic_unused_exports: int = 0
    likely_problematic_missing_exports: int = 0
    likely_problematic_unresolved_imports: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            'totalModules': self.total_modules,
            'analyzedModules': self.analyzed_modules,
            'malformedModules': self.malformed_modules,
            'internalEdges': self.internal_edges,
            'externalEdges': self.external_edges,
            'externalPackages': self.external_packages,
            'externalBuiltins': self.external_builtins,
            'unresolvedInternals': self.unresolved_internals,
            'circularDependencies': self.circular_dependencies,
            'unusedExports': self.unused_exports,
            'missingExports': self.missing_exports,
            'highCouplingModules': self.high_coupling_modules,
            'likelyProblematicUnusedExports': self.likely_problematic_unused_exports,
            'likelyProblematicMissingExports': self.likely_problematic_missing_exports,
            'likelyProblematicUnresolvedImports': self.likely_problematic_unresolved_imports,
        }


@dataclass
class AnalysisResult:
    """Everything one run produces; rebuilt from scratch on every run"""
    project_root: Optional[str]
    graph: Dict[str, ModuleNode]
    circular_dependencies: List[List[str]] = field(default_factory=list)
    cycle_details: List[Dict] = field(default_factory=list)
    strongly_connected_components: List[List[str]] = field(default_factory=list)
    unused_exports: List[ClassifiedFinding] = field(default_factory=list)
    missing_exports: List[ClassifiedFinding] = field(default_factory=list)
    unresolved_imports: List[ClassifiedFinding] = field(default_factory=list)
    high_coupling_modules: List[CouplingFinding] = field(default_factory=list)
    coupling_profile: CouplingProfile = field(default_factory=CouplingProfile)
    module_errors: List[ModuleError] = field(default_factory=list)
    stats: AnalysisStats = field(default_factory=AnalysisStats)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'root': self.project_root,
            'moduleCount': len(self.graph),
            'dependencyGraph': {path: node.to_dict() for path, node in self.graph.items()},
            'circularDependencies': self.circular_dependencies,
            'cycleDetails': self.cycle_details,
            'stronglyConnectedComponents': self.strongly_connected_components,
            'unusedExports': [finding.to_dict() for finding in self.unused_exports],
            'missingExports': [finding.to_dict() for finding in self.missing_exports],
            'unresolvedImports': [finding.to_dict() for finding in self.unresolved_imports],
            'highCouplingModules': [finding.to_dict() for finding in self.high_coupling_modules],
            'couplingProfile': self.coupling_profile.to_dict(),
            'moduleErrors': [error.to_dict() for error in self.module_errors],
            'summary': self.stats.to_dict(),
        }


def load_module_records(module_facts: Mapping[Any, Any]) -> Tuple[Dict[str, ModuleRecord], List[ModuleError]]:
    """Validate the module-fact map; malformed entries are reported, not raised"""
    records = {}
    errors = []
    for path, facts in module_facts.items():
        try:
            record = ModuleRecord.from_dict(path, facts)
        except MalformedModuleError as e:
            logger.warning(f"Skipping malformed module record: {e}")
            errors.append(ModuleError(module=str(path), message=str(e)))
            continue
        records[record.path] = record
    return records, errors


class ModuleGraphEngine:
    """Holds the static inputs of a run: configuration and project metadata"""

    def __init__(self, config: Optional[AnalyzerConfig] = None, project_root: Optional[str] = None,
                 package_manifest: Optional[Mapping[str, Any]] = None):
        self.config = config or AnalyzerConfig()
        self.project_root = project_root
        self.package_manifest = package_manifest

    def run(self, module_facts: Mapping[Any, Any]) -> AnalysisResult:
        records, module_errors = load_module_records(module_facts)
        project_root = self.project_root or common_root(records)
        logger.info(f"Analyzing {len(records)} modules under {project_root}")

        scan = self.config.scan
        resolver = ModuleResolver(records, project_root=project_root,
                                  extensions=scan.extensions, data_extensions=scan.data_extensions)

        builder = DependencyGraphBuilder(records, resolver)
        nodes = builder.build()
        module_errors.extend(builder.errors)

        result = AnalysisResult(project_root=project_root, graph=nodes, module_errors=module_errors)
        analysis = self.config.analysis

        if analysis.detect_circular_dependencies:
            detector = CycleDetector(builder.graph)
            result.circular_dependencies = detector.detect_all_cycles()
            result.cycle_details = detector.cycle_analysis.get('cycle_details', [])
            result.strongly_connected_components = detector.find_strongly_connected_components()

        import_classifier = ImportClassifier(
            resolver=resolver,
            nodes=nodes,
            rules=self.config.rules,
            weights=self.config.weights.imports,
            extensions=scan.extensions,
        )

        if analysis.detect_unused_exports or analysis.detect_missing_exports:
            usage = ExportUsageAnalyzer(nodes).analyze()
            if analysis.detect_unused_exports:
                export_classifier = ExportClassifier(
                    project_root=project_root,
                    package_manifest=self.package_manifest,
                    rules=self.config.rules,
                    weights=self.config.weights.exports,
                )
                result.unused_exports = export_classifier.classify_all(usage.unused_exports)
            if analysis.detect_missing_exports:
                result.missing_exports = [import_classifier.classify_missing(finding)
                                          for finding in usage.missing_exports]

        unresolved = [edge for node in nodes.values() for edge in node.unresolved_internals]
        result.unresolved_imports = import_classifier.classify_edges(unresolved)

        coupling = analysis.coupling
        coupling_analyzer = CouplingAnalyzer(nodes, threshold=coupling.threshold,
                                             exclude_patterns=coupling.exclude_patterns,
                                             project_root=project_root)
        if coupling.enabled:
            result.high_coupling_modules = coupling_analyzer.analyze()
        result.coupling_profile = coupling_analyzer.get_coupling_profile()

        result.stats = self._collect_stats(result, total_modules=len(module_facts))
        logger.info(f"Analysis complete: {result.stats.circular_dependencies} cycles, "
                    f"{result.stats.unused_exports} unused exports, "
                    f"{result.stats.missing_exports} missing exports, "
                    f"{result.stats.unresolved_internals} unresolved imports")
        return result

    def _collect_stats(self, result: AnalysisResult, total_modules: int) -> AnalysisStats:
        nodes = result.graph.values()
        externals = [edge for node in nodes for edge in node.external_dependencies]
        return AnalysisStats(
            total_modules=total_modules,
            analyzed_modules=len(result.graph),
            malformed_modules=total_modules - len(result.graph),
            internal_edges=sum(node.import_count for node in nodes),
            external_edges=len(externals),
            external_packages=sum(1 for edge in externals if edge.edge_kind == EDGE_EXTERNAL_PACKAGE),
            external_builtins=sum(1 for edge in externals if edge.edge_kind == EDGE_EXTERNAL_BUILTIN),
            unresolved_internals=sum(len(node.unresolved_internals) for node in nodes),
            circular_dependencies=len(result.circular_dependencies),
            unused_exports=len(result.unused_exports),
            missing_exports=len(result.missing_exports),
            high_coupling_modules=len(result.high_coupling_modules),
            likely_problematic_unused_exports=_count_problematic(result.unused_exports),
            likely_problematic_missing_exports=_count_problematic(result.missing_exports),
            likely_problematic_unresolved_imports=_count_problematic(result.unresolved_imports),
        )


def _count_problematic(findings: List[ClassifiedFinding]) -> int:
    return sum(1 for finding in findings if finding.result.is_problematic)


def analyze_modules(module_facts: Mapping[Any, Any], config: Optional[AnalyzerConfig] = None,
                    project_root: Optional[str] = None,
                    package_manifest: Optional[Mapping[str, Any]] = None) -> AnalysisResult:
    """Run the full analysis once over a module-fact map"""
    return ModuleGraphEngine(config, project_root, package_manifest).run(module_facts)
