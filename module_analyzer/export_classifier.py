"""
Export Classifier
Scores unused exports so that entry points, framework conventions and
configured public API are told apart from likely dead code
"""

import os
import re
from typing import Any, Dict, List, Mapping, Optional, Set

from .config import DEFAULT_EXPORT_WEIGHTS, RulesConfig
from .models import ClassifiedFinding, UnusedExport
from .patterns import compile_glob, compile_globs, matches_any, matches_glob, relative_path
from .signals import SignalHit, build_signals, evaluate_signals, first_matching, to_result

INDEX_FILES = {'index.js', 'index.jsx', 'index.ts', 'index.tsx', 'index.mjs', 'index.cjs'}

# Matched against '/' + the project-relative path, first framework wins
FRAMEWORK_PATTERNS = [
    ('next', ['/pages/api/', '/pages/', '/app/']),
    ('storybook', ['.stories.']),
    ('jest', ['.test.', '.spec.', '/__tests__/']),
    ('vue', ['.vue']),
    ('react', ['/components/', '.jsx', '.tsx']),
]

CONFIG_FILE_PATTERNS = [
    'eslint.config.', '.eslintrc.', 'jest.config.', 'jest.setup.', 'webpack.config.',
    'rollup.config.', 'vite.config.', 'tsconfig.', 'babel.config.', '.babelrc.',
    'prettier.config.', '.prettierrc.', 'postcss.config.', 'tailwind.config.',
    'next.config.', 'nuxt.config.', 'vue.config.', 'svelte.config.',
    'playwright.config.', 'vitest.config.', 'cypress.config.',
    '.config.js', '.config.ts', '.config.mjs', 'config.js', 'config.ts', 'config.json',
]

LIFECYCLE_METHODS = {
    'onMount', 'onUnmount', 'onDestroy', 'beforeCreate', 'afterCreate',
    'willUpdate', 'didUpdate', 'shouldUpdate', 'componentDidMount',
    'componentWillUnmount', 'render', 'constructor', 'getDerivedStateFromProps',
    'getSnapshotBeforeUpdate', 'componentDidCatch', 'setup', 'cleanup',
    'useEffect', 'useLayoutEffect', 'useMemo', 'useCallback',
}

TEST_FILE_MARKERS = ['.test.', '.spec.', '/__tests__/', '/__mocks__/']
TEST_NAME_MARKERS = ['mock', 'stub', 'fake', 'test', 'spec']

DEMO_PATTERNS = [
    '/demo/', '/demos/', '/example/', '/examples/', '/sample/', '/samples/',
    '.demo.', '.example.', '.sample.', '/playground/', '/snippets/',
    '/scratch/', '/tmp/', '/temp/',
]

DEPRECATED_WORDS = {'deprecated', 'old', 'legacy'}

_WORD = re.compile(r'[A-Z]+(?![a-z])|[A-Z]?[a-z]+|\d+')

POSITIVE_REASONS = [
    ('ignored-by-config', 'ignored by configuration'),
    ('public-api-path', 'configured public API'),
    ('entry-point-file', 'part of public API'),
    ('framework-pattern-next', 'Next.js convention'),
    ('framework-pattern-react', 'React component'),
    ('framework-pattern-vue', 'Vue component'),
    ('framework-pattern-storybook', 'Storybook story'),
    ('framework-pattern-jest', 'test file'),
    ('lifecycle-method', 'lifecycle hook'),
    ('test-utility', 'test helper function'),
    ('index-file', 'barrel export file'),
]

NEGATIVE_REASONS = [
    ('deprecated-pattern', 'appears to be deprecated'),
    ('private-naming', 'uses private naming convention'),
    ('demo-or-example-file', 'appears to be a demo/example file'),
]


def name_words(name: str) -> List[str]:
    """Split camelCase, PascalCase and snake_case identifiers into lowercase words"""
    return [word.lower() for word in _WORD.findall(name)]


def collect_entry_points(package_manifest: Optional[Mapping[str, Any]]) -> Set[str]:
    """Project-relative files named by package.json main/module/browser/bin/exports"""
    if not package_manifest:
        return set()

    entries = set()

    def _collect(value: Any):
        if isinstance(value, str):
            entries.add(_strip_dot_slash(value))
        elif isinstance(value, Mapping):
            for item in value.values():
                _collect(item)
        elif isinstance(value, list):
            for item in value:
                _collect(item)

    for key in ('main', 'module', 'browser', 'bin', 'exports'):
        _collect(package_manifest.get(key))
    return entries


def _strip_dot_slash(path: str) -> str:
    return path[2:] if path.startswith('./') else path


class ExportClassifier:
    """Labels unused exports as likely-valid or likely-problematic"""

    def __init__(self, project_root: Optional[str] = None,
                 package_manifest: Optional[Mapping[str, Any]] = None,
                 rules: Optional[RulesConfig] = None,
                 weights: Optional[Dict[str, int]] = None):
        self.project_root = project_root
        self.entry_points = collect_entry_points(package_manifest)
        rules = rules or RulesConfig()
        self.ignored_exports = [
            (compile_glob(path_pattern), compile_globs(name_patterns), '*' in name_patterns)
            for path_pattern, name_patterns in rules.ignored_exports.items()
        ]
        self.public_api_paths = compile_globs(rules.public_api_paths)
        self.signals = build_signals([
            ('ignored-by-config', self._detect_ignored_by_config),
            ('public-api-path', self._detect_public_api_path),
            ('entry-point-file', self._detect_entry_point),
            ('index-file', self._detect_index_file),
            ('config-file', self._detect_config_file),
            ('framework-pattern', self._detect_framework),
            ('lifecycle-method', self._detect_lifecycle_method),
            ('test-utility', self._detect_test_utility),
            ('demo-or-example-file', self._detect_demo_or_example),
            ('deprecated-pattern', self._detect_deprecated),
            ('private-naming', self._detect_private_naming),
        ], weights or DEFAULT_EXPORT_WEIGHTS)

    def classify(self, finding: UnusedExport) -> ClassifiedFinding:
        evaluation = evaluate_signals(self.signals, finding)
        result = to_result(evaluation, self.get_suggestion(evaluation.score, evaluation.reasons))
        return ClassifiedFinding(finding=finding, result=result)

    def classify_all(self, findings: List[UnusedExport]) -> List[ClassifiedFinding]:
        return [self.classify(finding) for finding in findings]

    def _relative(self, module: str) -> str:
        return relative_path(module, self.project_root)

    def _detect_ignored_by_config(self, finding: UnusedExport) -> Optional[SignalHit]:
        relative = self._relative(finding.module)
        for path_pattern, name_patterns, ignore_all in self.ignored_exports:
            if not (matches_glob(finding.module, path_pattern) or matches_glob(relative, path_pattern)):
                continue
            if ignore_all or matches_any(finding.export_name, name_patterns):
                return SignalHit()
        return None

    def _detect_public_api_path(self, finding: UnusedExport) -> Optional[SignalHit]:
        if matches_any(self._relative(finding.module), self.public_api_paths):
            return SignalHit()
        return None

    def _detect_entry_point(self, finding: UnusedExport) -> Optional[SignalHit]:
        if self._relative(finding.module) in self.entry_points:
            return SignalHit()
        return None

    def _detect_index_file(self, finding: UnusedExport) -> Optional[SignalHit]:
        if os.path.basename(finding.module) in INDEX_FILES:
            return SignalHit()
        return None

    def _detect_config_file(self, finding: UnusedExport) -> Optional[SignalHit]:
        file_name = os.path.basename(finding.module).lower()
        if any(pattern in file_name for pattern in CONFIG_FILE_PATTERNS):
            return SignalHit()
        return None

    def _detect_framework(self, finding: UnusedExport) -> Optional[SignalHit]:
        framework = self.get_framework_type(finding.module)
        if framework:
            return SignalHit(reason=f'framework-pattern-{framework}')
        return None

    def get_framework_type(self, module: str) -> Optional[str]:
        anchored = '/' + self._relative(module)
        for framework, patterns in FRAMEWORK_PATTERNS:
            if any(pattern in anchored for pattern in patterns):
                return framework
        return None

    def _detect_lifecycle_method(self, finding: UnusedExport) -> Optional[SignalHit]:
        if finding.export_name in LIFECYCLE_METHODS:
            return SignalHit()
        return None

    def _detect_test_utility(self, finding: UnusedExport) -> Optional[SignalHit]:
        anchored = '/' + self._relative(finding.module)
        if not any(marker in anchored for marker in TEST_FILE_MARKERS):
            return None
        lowered = finding.export_name.lower()
        if any(marker in lowered for marker in TEST_NAME_MARKERS):
            return SignalHit()
        return None

    def _detect_demo_or_example(self, finding: UnusedExport) -> Optional[SignalHit]:
        anchored = '/' + self._relative(finding.module).lower()
        if any(pattern in anchored for pattern in DEMO_PATTERNS):
            return SignalHit()
        return None

    def _detect_deprecated(self, finding: UnusedExport) -> Optional[SignalHit]:
        if DEPRECATED_WORDS.intersection(name_words(finding.export_name)):
            return SignalHit()
        return None

    def _detect_private_naming(self, finding: UnusedExport) -> Optional[SignalHit]:
        name = finding.export_name
        if (name.startswith('_') or 'Private' in name or 'Internal' in name
                or name.endswith('Impl')):
            return SignalHit()
        return None

    def get_suggestion(self, score: int, reasons) -> str:
        if 'config-file' in reasons:
            return 'Keep - configuration file for build tools'
        if 'entry-point-file' in reasons:
            return 'Keep - part of public API'
        if score > 5:
            return 'Keep - ' + (first_matching(reasons, POSITIVE_REASONS) or 'likely intentional')
        if score < -5:
            return 'Consider removing - ' + (first_matching(reasons, NEGATIVE_REASONS) or 'possibly dead code')
        return 'Review needed - unclear if this export is necessary'

