"""
Analyzer Configuration
Validated settings handed to the engine. Malformed sections fall back to
their defaults unless strict parsing is requested.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional

logger = logging.getLogger(__name__)

DEFAULT_EXTENSIONS = ['.js', '.jsx', '.ts', '.tsx']
DEFAULT_DATA_EXTENSIONS = ['.json', '.yaml', '.yml']
DEFAULT_EXCLUDE = ['node_modules', 'dist', 'coverage', '.git', 'build', 'out']
DEFAULT_TEST_PATTERNS = [
    '*.test.js', '*.test.jsx', '*.test.ts', '*.test.tsx',
    '*.spec.js', '*.spec.jsx', '*.spec.ts', '*.spec.tsx',
    '**/test/**', '**/tests/**', '**/__tests__/**',
]
DEFAULT_COUPLING_THRESHOLD = 10

# Hand-tuned starting points; every weight can be overridden from configuration
DEFAULT_EXPORT_WEIGHTS = {
    'ignored-by-config': 20,
    'public-api-path': 15,
    'entry-point-file': 10,
    'index-file': 8,
    'config-file': 7,
    'framework-pattern': 7,
    'test-utility': 6,
    'lifecycle-method': 5,
    'demo-or-example-file': -8,
    'deprecated-pattern': -10,
    'private-naming': -8,
}

DEFAULT_IMPORT_WEIGHTS = {
    'ignored-by-config': 20,
    'integration-test-pattern': 10,
    'build-time-constant': 10,
    'platform-specific': 8,
    'optional-dependency': 7,
    'star-re-export-target': 5,
    'possible-typo': -10,
    'improper-build-import': -8,
    'missing-extension': -8,
}


class ConfigError(ValueError):
    """Raised when a configuration section cannot be validated"""


@dataclass
class ScanConfig:
    """File discovery settings; the engine itself only reads the extension lists"""
    extensions: List[str] = field(default_factory=lambda: list(DEFAULT_EXTENSIONS))
    data_extensions: List[str] = field(default_factory=lambda: list(DEFAULT_DATA_EXTENSIONS))
    exclude: List[str] = field(default_factory=lambda: list(DEFAULT_EXCLUDE))
    respect_gitignore: bool = True
    ignore_test_files: bool = False
    test_patterns: List[str] = field(default_factory=lambda: list(DEFAULT_TEST_PATTERNS))


@dataclass
class CouplingConfig:
    enabled: bool = True
    threshold: int = DEFAULT_COUPLING_THRESHOLD
    exclude_patterns: List[str] = field(default_factory=list)


@dataclass
class AnalysisConfig:
    """Per-check enable flags"""
    detect_circular_dependencies: bool = True
    detect_unused_exports: bool = True
    detect_missing_exports: bool = True
    coupling: CouplingConfig = field(default_factory=CouplingConfig)


@dataclass
class RulesConfig:
    """Project rules consulted by the classifiers"""
    ignored_exports: Dict[str, List[str]] = field(default_factory=dict)
    ignored_imports: List[str] = field(default_factory=list)
    public_api_paths: List[str] = field(default_factory=list)


@dataclass
class WeightsConfig:
    """Signal weights keyed by reason tag"""
    exports: Dict[str, int] = field(default_factory=lambda: dict(DEFAULT_EXPORT_WEIGHTS))
    imports: Dict[str, int] = field(default_factory=lambda: dict(DEFAULT_IMPORT_WEIGHTS))


@dataclass
class AnalyzerConfig:
    scan: ScanConfig = field(default_factory=ScanConfig)
    analysis: AnalysisConfig = field(default_factory=AnalysisConfig)
    rules: RulesConfig = field(default_factory=RulesConfig)
    weights: WeightsConfig = field(default_factory=WeightsConfig)

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]], strict: bool = False) -> 'AnalyzerConfig':
        """Merge a user configuration mapping over the defaults, section by section"""
        config = cls()
        if data is None:
            return config
        if not isinstance(data, Mapping):
            if strict:
                raise ConfigError("configuration must be a mapping")
            logger.warning(f"Ignoring configuration of type {type(data).__name__}, using defaults")
            return config

        for section, parser in _SECTION_PARSERS.items():
            if section not in data:
                continue
            try:
                setattr(config, section, parser(data[section]))
            except ConfigError as e:
                if strict:
                    raise
                logger.warning(f"Invalid '{section}' configuration, using defaults: {e}")
        return config


_CAMEL_BOUNDARY = re.compile(r'(?<=[a-z0-9])(?=[A-Z])')


def _snake_case(key: str) -> str:
    return _CAMEL_BOUNDARY.sub('_', key).lower()


def _expect_mapping(value: Any, where: str) -> Dict[str, Any]:
    if not isinstance(value, Mapping):
        raise ConfigError(f"'{where}' must be a mapping")
    return {_snake_case(str(key)): item for key, item in value.items()}


def _expect_str_list(value: Any, where: str) -> List[str]:
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ConfigError(f"'{where}' must be a list of strings")
    return list(value)


def _expect_bool(value: Any, where: str) -> bool:
    if not isinstance(value, bool):
        raise ConfigError(f"'{where}' must be true or false")
    return value


def _expect_int(value: Any, where: str, minimum: int = 0) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < minimum:
        raise ConfigError(f"'{where}' must be an integer >= {minimum}")
    return value


def _normalize_extensions(extensions: List[str]) -> List[str]:
    return [ext if ext.startswith('.') else f'.{ext}' for ext in extensions]


def _parse_scan(raw: Any) -> ScanConfig:
    values = _expect_mapping(raw, 'scan')
    config = ScanConfig()
    for key, value in values.items():
        where = f'scan.{key}'
        if key in ('extensions', 'data_extensions'):
            setattr(config, key, _normalize_extensions(_expect_str_list(value, where)))
        elif key in ('exclude', 'test_patterns'):
            setattr(config, key, _expect_str_list(value, where))
        elif key in ('respect_gitignore', 'ignore_test_files'):
            setattr(config, key, _expect_bool(value, where))
        else:
            logger.debug(f"Ignoring unknown configuration key {where}")
    return config


def _parse_coupling(raw: Any) -> CouplingConfig:
    if isinstance(raw, bool):
        return CouplingConfig(enabled=raw)
    values = _expect_mapping(raw, 'analysis.coupling')
    config = CouplingConfig()
    if 'enabled' in values:
        config.enabled = _expect_bool(values['enabled'], 'analysis.coupling.enabled')
    if 'threshold' in values:
        config.threshold = _expect_int(values['threshold'], 'analysis.coupling.threshold')
    if 'exclude_patterns' in values:
        config.exclude_patterns = _expect_str_list(
            values['exclude_patterns'], 'analysis.coupling.exclude_patterns')
    return config


def _parse_analysis(raw: Any) -> AnalysisConfig:
    values = _expect_mapping(raw, 'analysis')
    config = AnalysisConfig()
    for key, value in values.items():
        where = f'analysis.{key}'
        if key in ('detect_circular_dependencies', 'detect_unused_exports', 'detect_missing_exports'):
            setattr(config, key, _expect_bool(value, where))
        elif key in ('coupling', 'detect_high_coupling'):
            config.coupling = _parse_coupling(value)
        else:
            logger.debug(f"Ignoring unknown configuration key {where}")
    return config


def _parse_rules(raw: Any) -> RulesConfig:
    values = _expect_mapping(raw, 'rules')
    config = RulesConfig()
    if 'ignored_exports' in values:
        ignored = values['ignored_exports']
        if not isinstance(ignored, Mapping):
            raise ConfigError("'rules.ignored_exports' must map path patterns to export patterns")
        # Keys are path globs, so they are kept verbatim
        config.ignored_exports = {
            str(path_pattern): _expect_str_list(names, f'rules.ignored_exports.{path_pattern}')
            for path_pattern, names in ignored.items()
        }
    if 'ignored_imports' in values:
        config.ignored_imports = _expect_str_list(values['ignored_imports'], 'rules.ignored_imports')
    if 'public_api_paths' in values:
        config.public_api_paths = _expect_str_list(values['public_api_paths'], 'rules.public_api_paths')
    return config


def _parse_weight_table(raw: Any, defaults: Dict[str, int], where: str) -> Dict[str, int]:
    if not isinstance(raw, Mapping):
        raise ConfigError(f"'{where}' must map reason tags to integer weights")
    weights = dict(defaults)
    for tag, weight in raw.items():
        if isinstance(weight, bool) or not isinstance(weight, int):
            raise ConfigError(f"'{where}.{tag}' must be an integer")
        weights[str(tag)] = weight
    return weights


def _parse_weights(raw: Any) -> WeightsConfig:
    if not isinstance(raw, Mapping):
        raise ConfigError("'weights' must be a mapping")
    config = WeightsConfig()
    if 'exports' in raw:
        config.exports = _parse_weight_table(raw['exports'], DEFAULT_EXPORT_WEIGHTS, 'weights.exports')
    if 'imports' in raw:
        config.imports = _parse_weight_table(raw['imports'], DEFAULT_IMPORT_WEIGHTS, 'weights.imports')
    return config


_SECTION_PARSERS: Dict[str, Callable[[Any], Any]] = {
    'scan': _parse_scan,
    'analysis': _parse_analysis,
    'rules': _parse_rules,
    'weights': _parse_weights,
}
