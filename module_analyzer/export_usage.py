"""
Export Usage Analyzer
Cross-references resolved imports against target export tables to find
exports nobody consumes and imports of names that do not exist
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional

from .models import (
    FILE_TYPE_DATA,
    SPECIFIER_DEFAULT,
    SPECIFIER_NAMED,
    SPECIFIER_NAMESPACE,
    DependencyEdge,
    ExportFact,
    MissingExport,
    ModuleNode,
    UnusedExport,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExportConsumer:
    source_module: str
    line: Optional[int] = None
    kind: str = SPECIFIER_NAMED

    def to_dict(self) -> Dict:
        return {'source': self.source_module, 'line': self.line, 'type': self.kind}


@dataclass
class LedgerEntry:
    """One export of one module and everything that consumes it"""
    export: ExportFact
    consumers: List[ExportConsumer] = field(default_factory=list)

    @property
    def is_used(self) -> bool:
        return bool(self.consumers)


@dataclass
class ExportUsageReport:
    ledgers: Dict[str, Dict[str, LedgerEntry]]
    unused_exports: List[UnusedExport]
    missing_exports: List[MissingExport]

    def usage_counts(self) -> Dict[str, Dict[str, int]]:
        return {
            module: {name: len(entry.consumers) for name, entry in ledger.items()}
            for module, ledger in self.ledgers.items()
        }


class ExportUsageAnalyzer:
    """Tracks which exports are consumed across the whole graph"""

    def __init__(self, nodes: Mapping[str, ModuleNode]):
        self.nodes = nodes

    def analyze(self) -> ExportUsageReport:
        ledgers = self._build_ledgers()
        missing_exports = []

        for path, node in self.nodes.items():
            for edge in node.imports:
                ledger = ledgers.get(edge.target_module)
                if ledger is None:
                    continue
                missing_exports.extend(self._consume(path, edge, ledger))

        unused_exports = [
            UnusedExport(module=path, export_name=name, line=entry.export.line)
            for path, ledger in ledgers.items()
            for name, entry in ledger.items()
            if not entry.is_used
        ]

        logger.info(f"Export usage: {len(unused_exports)} unused, {len(missing_exports)} missing "
                    f"across {len(ledgers)} modules with exports")
        return ExportUsageReport(ledgers=ledgers, unused_exports=unused_exports,
                                 missing_exports=missing_exports)

    def _build_ledgers(self) -> Dict[str, Dict[str, LedgerEntry]]:
        """One zeroed ledger per module that declares exports"""
        ledgers = {}
        for path, node in self.nodes.items():
            # Data modules expose structural keys, not an API
            if not node.exports or node.file_type == FILE_TYPE_DATA:
                continue
            ledger: Dict[str, LedgerEntry] = {}
            for export in node.exports:
                # `export * from` declares no name of its own
                if export.is_star:
                    continue
                ledger.setdefault(export.name, LedgerEntry(export=export))
            ledgers[path] = ledger
        return ledgers

    def _consume(self, path: str, edge: DependencyEdge,
                 ledger: Dict[str, LedgerEntry]) -> List[MissingExport]:
        """Record the consumers of one edge; return the names it asks for in vain"""
        missing = []
        for spec in edge.specifiers:
            if spec.kind == SPECIFIER_NAMED:
                name = spec.requested_name
                entry = ledger.get(name)
                if entry is not None:
                    entry.consumers.append(ExportConsumer(path, edge.line, spec.kind))
                else:
                    missing.append(MissingExport(
                        source=path,
                        target_module=edge.target_module,
                        missing_export=name,
                        line=edge.line,
                        specifier=edge.specifier,
                    ))
            elif spec.kind == SPECIFIER_NAMESPACE:
                for entry in ledger.values():
                    entry.consumers.append(ExportConsumer(path, edge.line, spec.kind))
            elif spec.kind == SPECIFIER_DEFAULT:
                entry = ledger.get('default')
                if entry is not None:
                    entry.consumers.append(ExportConsumer(path, edge.line, spec.kind))
        return missing
