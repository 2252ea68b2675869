"""
Module Graph Data Model
Per-module import/export facts consumed by the engine, and the graph nodes,
edges and findings it produces
"""

import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

FILE_TYPE_CODE = 'code'
FILE_TYPE_DATA = 'data'
FILE_TYPE_CSS = 'css'
FILE_TYPES = (FILE_TYPE_CODE, FILE_TYPE_DATA, FILE_TYPE_CSS)

SPECIFIER_NAMED = 'named'
SPECIFIER_DEFAULT = 'default'
SPECIFIER_NAMESPACE = 'namespace'
SPECIFIER_KINDS = (SPECIFIER_NAMED, SPECIFIER_DEFAULT, SPECIFIER_NAMESPACE)

EXPORT_NAMED = 'named'
EXPORT_DEFAULT = 'default'
EXPORT_RE_EXPORT = 're-export'
EXPORT_KINDS = (EXPORT_NAMED, EXPORT_DEFAULT, EXPORT_RE_EXPORT)
STAR_EXPORT = '*'

EDGE_INTERNAL = 'internal'
EDGE_EXTERNAL_PACKAGE = 'external-package'
EDGE_EXTERNAL_BUILTIN = 'external-builtin'
EDGE_UNRESOLVED = 'unresolved-internal'

LIKELY_VALID = 'likely-valid'
LIKELY_PROBLEMATIC = 'likely-problematic'


class MalformedModuleError(ValueError):
    """Raised when a module-fact record is missing required fields"""


def _optional_line(value: Any, where: str) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise MalformedModuleError(f"{where}: line must be an integer, got {value!r}")
    return value


@dataclass(frozen=True)
class Specifier:
    """One imported binding of an import statement"""
    kind: str
    local_name: str
    imported_name: Optional[str] = None

    @property
    def requested_name(self) -> str:
        """Name looked up in the target's export table"""
        return self.imported_name or self.local_name

    @classmethod
    def from_dict(cls, data: Any, where: str) -> 'Specifier':
        if not isinstance(data, dict):
            raise MalformedModuleError(f"{where}: specifier must be a mapping")
        # The parser emits 'type'/'imported'/'local'; the documented keys win when both exist
        kind = data.get('kind', data.get('type'))
        if kind not in SPECIFIER_KINDS:
            raise MalformedModuleError(f"{where}: unknown specifier kind {kind!r}")
        imported = data.get('importedName', data.get('imported'))
        local = data.get('localName', data.get('local'))
        if imported is not None and not isinstance(imported, str):
            raise MalformedModuleError(f"{where}: importedName must be a string")
        if local is not None and not isinstance(local, str):
            raise MalformedModuleError(f"{where}: localName must be a string")
        if kind == SPECIFIER_NAMED and not (imported or local):
            raise MalformedModuleError(f"{where}: named specifier without a name")
        return cls(kind=kind, local_name=local or imported or STAR_EXPORT, imported_name=imported)

    def to_dict(self) -> Dict[str, Any]:
        data = {'kind': self.kind, 'localName': self.local_name}
        if self.imported_name is not None:
            data['importedName'] = self.imported_name
        return data


@dataclass(frozen=True)
class ImportFact:
    """A single import statement as extracted by the parser"""
    source: str
    line: Optional[int] = None
    specifiers: Tuple[Specifier, ...] = ()
    import_type: str = 'import'

    @classmethod
    def from_dict(cls, data: Any, where: str) -> 'ImportFact':
        if not isinstance(data, dict):
            raise MalformedModuleError(f"{where}: import must be a mapping")
        source = data.get('source')
        if not isinstance(source, str) or not source:
            raise MalformedModuleError(f"{where}: import without a source specifier")
        location = f"{where} ({source})"
        raw_specifiers = data.get('specifiers') or []
        if not isinstance(raw_specifiers, list):
            raise MalformedModuleError(f"{location}: specifiers must be a list")
        return cls(
            source=source,
            line=_optional_line(data.get('line'), location),
            specifiers=tuple(Specifier.from_dict(item, location) for item in raw_specifiers),
            import_type=str(data.get('type') or 'import'),
        )


@dataclass(frozen=True)
class ExportFact:
    """A declared export of a module"""
    name: str
    kind: str = EXPORT_NAMED
    line: Optional[int] = None
    source: Optional[str] = None

    @property
    def is_star(self) -> bool:
        """True for `export * from '...'`, which forwards an unknown set of names"""
        return self.kind == EXPORT_RE_EXPORT and self.name == STAR_EXPORT

    @classmethod
    def from_dict(cls, data: Any, where: str) -> 'ExportFact':
        if not isinstance(data, dict):
            raise MalformedModuleError(f"{where}: export must be a mapping")
        name = data.get('name')
        if not isinstance(name, str) or not name:
            raise MalformedModuleError(f"{where}: export without a name")
        kind = data.get('kind')
        if kind is None:
            kind = EXPORT_DEFAULT if name == 'default' else EXPORT_NAMED
        if kind not in EXPORT_KINDS:
            raise MalformedModuleError(f"{where}: unknown export kind {kind!r} for '{name}'")
        source = data.get('source')
        return cls(
            name=name,
            kind=kind,
            line=_optional_line(data.get('line'), f"{where} ({name})"),
            source=source if isinstance(source, str) else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        data = {'name': self.name, 'kind': self.kind, 'line': self.line}
        if self.source is not None:
            data['source'] = self.source
        return data


@dataclass(frozen=True)
class ModuleRecord:
    """Immutable facts for one module, keyed by its absolute path"""
    path: str
    file_type: str = FILE_TYPE_CODE
    imports: Tuple[ImportFact, ...] = ()
    exports: Tuple[ExportFact, ...] = ()

    @classmethod
    def from_dict(cls, path: Any, data: Any) -> 'ModuleRecord':
        """Validate one entry of the module-fact map"""
        if not isinstance(path, str) or not path or not os.path.isabs(path):
            raise MalformedModuleError(f"module identity must be an absolute path, got {path!r}")
        if not isinstance(data, dict):
            raise MalformedModuleError(f"{path}: module facts must be a mapping")

        file_type = data.get('fileType', data.get('file_type', FILE_TYPE_CODE))
        if file_type not in FILE_TYPES:
            raise MalformedModuleError(f"{path}: unknown fileType {file_type!r}")

        raw_imports = data.get('imports') or []
        raw_exports = data.get('exports') or []
        if not isinstance(raw_imports, list):
            raise MalformedModuleError(f"{path}: imports must be a list")
        if not isinstance(raw_exports, list):
            raise MalformedModuleError(f"{path}: exports must be a list")

        return cls(
            path=path,
            file_type=file_type,
            imports=tuple(ImportFact.from_dict(item, path) for item in raw_imports),
            exports=tuple(ExportFact.from_dict(item, path) for item in raw_exports),
        )


@dataclass(frozen=True)
class DependencyEdge:
    """Outgoing import of a module with its resolution outcome"""
    source_module: str
    specifier: str
    edge_kind: str
    target_module: Optional[str] = None
    line: Optional[int] = None
    specifiers: Tuple[Specifier, ...] = ()
    import_type: str = 'import'

    @property
    def is_internal(self) -> bool:
        return self.edge_kind == EDGE_INTERNAL

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'source': self.specifier,
            'type': self.import_type,
            'line': self.line,
            'dependencyType': self.edge_kind,
        }
        if self.edge_kind == EDGE_INTERNAL:
            data['resolved'] = self.target_module
            data['specifiers'] = [spec.to_dict() for spec in self.specifiers]
        elif self.edge_kind == EDGE_UNRESOLVED:
            data['message'] = f"Could not resolve internal import: {self.specifier}"
        return data


@dataclass(frozen=True)
class ImportedBy:
    """Incoming internal edge, stored on the target module"""
    source_module: str
    line: Optional[int] = None
    import_type: str = 'import'

    def to_dict(self) -> Dict[str, Any]:
        return {'source': self.source_module, 'line': self.line, 'type': self.import_type}


@dataclass
class ModuleNode:
    """Adjacency of one module in the dependency graph"""
    path: str
    file_type: str = FILE_TYPE_CODE
    imports: List[DependencyEdge] = field(default_factory=list)
    imported_by: List[ImportedBy] = field(default_factory=list)
    exports: List[ExportFact] = field(default_factory=list)
    external_dependencies: List[DependencyEdge] = field(default_factory=list)
    unresolved_internals: List[DependencyEdge] = field(default_factory=list)

    @property
    def import_count(self) -> int:
        """Internal fan-out"""
        return len(self.imports)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'fileType': self.file_type,
            'imports': [edge.to_dict() for edge in self.imports],
            'importedBy': [entry.to_dict() for entry in self.imported_by],
            'exports': [export.to_dict() for export in self.exports],
            'externalDependencies': [edge.to_dict() for edge in self.external_dependencies],
            'unresolvedInternals': [edge.to_dict() for edge in self.unresolved_internals],
        }


@dataclass(frozen=True)
class ModuleError:
    """A module that could not take part in the analysis"""
    module: str
    message: str

    def to_dict(self) -> Dict[str, Any]:
        return {'module': self.module, 'message': self.message}


@dataclass(frozen=True)
class UnusedExport:
    module: str
    export_name: str
    line: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {'module': self.module, 'exportName': self.export_name, 'line': self.line}


@dataclass(frozen=True)
class MissingExport:
    source: str
    target_module: str
    missing_export: str
    line: Optional[int] = None
    specifier: str = ''

    def to_dict(self) -> Dict[str, Any]:
        return {
            'source': self.source,
            'targetModule': self.target_module,
            'missingExport': self.missing_export,
            'line': self.line,
            'importSource': self.specifier,
        }


@dataclass(frozen=True)
class UnresolvedImport:
    """Relative import whose target is not in the module set"""
    from_module: str
    source: str
    line: Optional[int] = None

    @classmethod
    def from_edge(cls, edge: DependencyEdge) -> 'UnresolvedImport':
        return cls(from_module=edge.source_module, source=edge.specifier, line=edge.line)

    def to_dict(self) -> Dict[str, Any]:
        return {'fromModule': self.from_module, 'source': self.source, 'line': self.line}


@dataclass(frozen=True)
class ClassificationResult:
    """Outcome of a heuristic classifier"""
    classification: str
    score: int
    confidence: float
    reasons: Tuple[str, ...] = ()
    suggestion: str = ''
    suggestions: Tuple[str, ...] = ()

    @property
    def is_problematic(self) -> bool:
        return self.classification == LIKELY_PROBLEMATIC

    def to_dict(self) -> Dict[str, Any]:
        return {
            'classification': self.classification,
            'score': self.score,
            'confidence': self.confidence,
            'reasons': list(self.reasons),
            'suggestion': self.suggestion,
            'suggestions': list(self.suggestions),
        }


@dataclass(frozen=True)
class ClassifiedFinding:
    """A raw finding together with its classification"""
    finding: Any
    result: ClassificationResult

    def to_dict(self) -> Dict[str, Any]:
        data = self.finding.to_dict()
        data.update(self.result.to_dict())
        return data


@dataclass(frozen=True)
class CouplingFinding:
    module: str
    import_count: int
    threshold: int

    def to_dict(self) -> Dict[str, Any]:
        return {'module': self.module, 'importCount': self.import_count, 'threshold': self.threshold}
