"""
Import Classifier
Scores unresolved internal imports and missing exports: build-time and
platform-specific imports are usually intentional, near-miss names and
imports of build output usually are not
"""

import os
import re
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Sequence

from rapidfuzz.distance import Levenshtein

from .config import DEFAULT_EXTENSIONS, DEFAULT_IMPORT_WEIGHTS, RulesConfig
from .models import ClassificationResult, ClassifiedFinding, DependencyEdge, MissingExport, ModuleNode, UnresolvedImport
from .patterns import compile_globs, matches_any
from .resolver import ModuleResolver, strip_extension
from .signals import SignalHit, build_signals, evaluate_signals, first_matching, to_result

MAX_TYPO_DISTANCE = 2

BUILD_TIME_PATTERNS = [
    re.compile(r'^__[A-Z_]+__$'),  # __BUILD_CONFIG__
    re.compile(r'^process\.env'),
    re.compile(r'^BUILD_'),
    re.compile(r'^WEBPACK_'),
]

PLATFORM_EXTENSIONS = ['.ios', '.android', '.web', '.native', '.electron']
OPTIONAL_PACKAGES = {'redis', 'mongodb', 'pg', 'mysql', 'canvas'}

INTEGRATION_TEST_MARKERS = [
    'integration', 'e2e', 'end-to-end', 'export-test', 'build-test',
    'dist-test', 'package-test', 'publish-test',
]
INTEGRATION_BUILD_DIRS = ['dist', 'build', 'lib', 'es', 'cjs']
BUILD_OUTPUT_DIRS = ['dist', 'build', 'lib', 'es', 'cjs', 'out', '.next']

POSITIVE_SUGGESTIONS = [
    ('ignored-by-config', 'Expected - ignored by configuration'),
    ('build-time-constant', 'Expected - resolved at build time'),
    ('platform-specific', 'Expected - platform-specific import'),
    ('integration-test-pattern', 'Expected - integration test importing built package'),
    ('optional-dependency', 'Expected - optional dependency'),
    ('star-re-export-target', 'Expected - target forwards names with export *'),
]


@dataclass(frozen=True)
class ImportSubject:
    """What the import signals look at, for either kind of finding"""
    from_module: str
    specifier: str
    requested_name: Optional[str] = None
    target_module: Optional[str] = None


def build_directory(specifier: str, directories: Sequence[str]) -> Optional[str]:
    """Build output directory the specifier walks through, if any"""
    for directory in directories:
        if f'/{directory}/' in specifier:
            return directory
    return None


class ImportClassifier:
    """Labels unresolved imports and missing exports"""

    def __init__(self, resolver: Optional[ModuleResolver] = None,
                 nodes: Optional[Mapping[str, ModuleNode]] = None,
                 rules: Optional[RulesConfig] = None,
                 weights: Optional[Dict[str, int]] = None,
                 extensions: Sequence[str] = DEFAULT_EXTENSIONS):
        self.resolver = resolver
        self.nodes = nodes or {}
        self.extensions = tuple(extensions)
        self.ignored_imports = compile_globs((rules or RulesConfig()).ignored_imports)
        self.signals = build_signals([
            ('ignored-by-config', self._detect_ignored_by_config),
            ('integration-test-pattern', self._detect_integration_test),
            ('build-time-constant', self._detect_build_time_constant),
            ('platform-specific', self._detect_platform_specific),
            ('optional-dependency', self._detect_optional_dependency),
            ('star-re-export-target', self._detect_star_re_export),
            ('possible-typo', self._detect_typo),
            ('improper-build-import', self._detect_build_import),
            ('missing-extension', self._detect_missing_extension),
        ], weights or DEFAULT_IMPORT_WEIGHTS)

    def classify_unresolved(self, finding: UnresolvedImport) -> ClassifiedFinding:
        subject = ImportSubject(from_module=finding.from_module, specifier=finding.source)
        return ClassifiedFinding(finding=finding, result=self._classify(subject))

    def classify_missing(self, finding: MissingExport) -> ClassifiedFinding:
        subject = ImportSubject(
            from_module=finding.source,
            specifier=finding.specifier,
            requested_name=finding.missing_export,
            target_module=finding.target_module,
        )
        return ClassifiedFinding(finding=finding, result=self._classify(subject))

    def classify_edges(self, edges: List[DependencyEdge]) -> List[ClassifiedFinding]:
        return [self.classify_unresolved(UnresolvedImport.from_edge(edge)) for edge in edges]

    def _classify(self, subject: ImportSubject) -> ClassificationResult:
        evaluation = evaluate_signals(self.signals, subject)
        return to_result(evaluation, self.get_suggestion(evaluation.score, evaluation.reasons,
                                                         evaluation.corrections, subject))

    def _detect_ignored_by_config(self, subject: ImportSubject) -> Optional[SignalHit]:
        if matches_any(subject.specifier, self.ignored_imports):
            return SignalHit()
        return None

    def _is_integration_test(self, subject: ImportSubject) -> bool:
        file_name = os.path.basename(subject.from_module).lower()
        return (any(marker in file_name for marker in INTEGRATION_TEST_MARKERS)
                and build_directory(subject.specifier, INTEGRATION_BUILD_DIRS) is not None)

    def _detect_integration_test(self, subject: ImportSubject) -> Optional[SignalHit]:
        if self._is_integration_test(subject):
            return SignalHit(suggestion='Expected - integration test importing built package')
        return None

    def _detect_build_time_constant(self, subject: ImportSubject) -> Optional[SignalHit]:
        name = subject.requested_name or subject.specifier.rstrip('/').rsplit('/', 1)[-1]
        if any(pattern.search(name) for pattern in BUILD_TIME_PATTERNS):
            return SignalHit()
        return None

    def _detect_platform_specific(self, subject: ImportSubject) -> Optional[SignalHit]:
        if any(ext in subject.specifier for ext in PLATFORM_EXTENSIONS):
            return SignalHit()
        return None

    def _detect_optional_dependency(self, subject: ImportSubject) -> Optional[SignalHit]:
        segments = {strip_extension(segment) for segment in subject.specifier.split('/')}
        if segments & OPTIONAL_PACKAGES:
            return SignalHit()
        return None

    def _detect_star_re_export(self, subject: ImportSubject) -> Optional[SignalHit]:
        if not subject.requested_name:
            return None
        node = self.nodes.get(subject.target_module)
        if node is not None and any(export.is_star for export in node.exports):
            return SignalHit()
        return None

    def _detect_typo(self, subject: ImportSubject) -> Optional[SignalHit]:
        if subject.requested_name:
            candidate = self._similar_export(subject)
            if candidate:
                return SignalHit(suggestion=f"Did you mean '{candidate}'?")
            return None

        candidate = self._similar_module(subject)
        if candidate:
            return SignalHit(suggestion=f"Did you mean '{candidate}'?")
        return None

    def _similar_export(self, subject: ImportSubject) -> Optional[str]:
        node = self.nodes.get(subject.target_module)
        if node is None:
            return None
        names = sorted({export.name for export in node.exports if export.name != subject.requested_name})
        matches = [name for name in names
                   if Levenshtein.distance(name, subject.requested_name) <= MAX_TYPO_DISTANCE]
        return matches[0] if len(matches) == 1 else None

    def _similar_module(self, subject: ImportSubject) -> Optional[str]:
        if self.resolver is None:
            return None
        wanted = strip_extension(os.path.basename(subject.specifier.rstrip('/')))
        if wanted in ('', '.', '..'):
            return None
        matches = [
            path
            for stem, paths in self.resolver.basename_index.items()
            if Levenshtein.distance(stem, wanted) <= MAX_TYPO_DISTANCE
            for path in paths
            if path != subject.from_module
        ]
        if len(matches) != 1:
            return None
        suggestion = os.path.relpath(matches[0], os.path.dirname(subject.from_module)).replace(os.sep, '/')
        return suggestion if suggestion.startswith('../') else f'./{suggestion}'

    def _detect_build_import(self, subject: ImportSubject) -> Optional[SignalHit]:
        if self._is_integration_test(subject):
            return None
        directory = build_directory(subject.specifier, BUILD_OUTPUT_DIRS)
        if directory:
            return SignalHit(suggestion=f"Import from source files instead of {directory}/")
        return None

    def _detect_missing_extension(self, subject: ImportSubject) -> Optional[SignalHit]:
        # Only meaningful when the path itself failed to resolve
        if subject.requested_name or not self.extensions:
            return None
        _, ext = os.path.splitext(os.path.basename(subject.specifier))
        if ext:
            return None
        return SignalHit(suggestion=f"Try '{subject.specifier}{self.extensions[0]}'")

    def get_suggestion(self, score: int, reasons, corrections, subject: ImportSubject) -> str:
        if score > 0:
            return first_matching(reasons, POSITIVE_SUGGESTIONS) or 'Likely intentional'
        if corrections:
            return corrections[0]
        if subject.requested_name:
            return f"Review needed - '{subject.requested_name}' is not exported by the target module"
        return 'Review needed - check import path'
