"""
Coupling Analyzer
Flags modules whose internal fan-out exceeds a threshold and summarizes the
fan-in/fan-out distribution of the graph
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence

from .config import DEFAULT_COUPLING_THRESHOLD
from .models import CouplingFinding, ModuleNode
from .patterns import compile_globs, matches_any, relative_path

logger = logging.getLogger(__name__)

CORE_MODULE_LIMIT = 5


@dataclass(frozen=True)
class CouplingProfile:
    """Distribution of internal fan-out plus the most depended-on modules"""
    median: int = 0
    p90: int = 0
    max: int = 0
    threshold: int = DEFAULT_COUPLING_THRESHOLD
    core_modules: List[Dict] = field(default_factory=list)
    entry_candidates: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict:
        return {
            'median': self.median,
            'p90': self.p90,
            'max': self.max,
            'highCouplingThreshold': self.threshold,
            'coreModules': self.core_modules,
            'entryCandidates': self.entry_candidates,
        }


class CouplingAnalyzer:
    """Measures internal import fan-out per module"""

    def __init__(self, nodes: Mapping[str, ModuleNode], threshold: int = DEFAULT_COUPLING_THRESHOLD,
                 exclude_patterns: Sequence[str] = (), project_root: Optional[str] = None):
        self.nodes = nodes
        self.threshold = threshold
        self.exclude_patterns = compile_globs(exclude_patterns)
        self.project_root = project_root

    def is_excluded(self, module: str) -> bool:
        """Anchored match against the absolute or the project-relative path"""
        return (matches_any(module, self.exclude_patterns)
                or matches_any(relative_path(module, self.project_root), self.exclude_patterns))

    def analyze(self) -> List[CouplingFinding]:
        findings = []
        for path, node in self.nodes.items():
            if node.import_count <= self.threshold or self.is_excluded(path):
                continue
            findings.append(CouplingFinding(module=path, import_count=node.import_count,
                                            threshold=self.threshold))

        logger.info(f"Found {len(findings)} modules above the coupling threshold of {self.threshold}")
        return findings

    def get_coupling_profile(self) -> CouplingProfile:
        counts = sorted(node.import_count for node in self.nodes.values())
        if not counts:
            return CouplingProfile(threshold=self.threshold)

        core = sorted(
            ((path, len(node.imported_by)) for path, node in self.nodes.items() if node.imported_by),
            key=lambda item: (-item[1], item[0]),
        )[:CORE_MODULE_LIMIT]

        return CouplingProfile(
            median=counts[len(counts) // 2],
            p90=counts[int(len(counts) * 0.9)],
            max=counts[-1],
            threshold=self.threshold,
            core_modules=[{'path': path, 'importedByCount': count} for path, count in core],
            entry_candidates=[
                path for path, node in self.nodes.items()
                if not node.imported_by and node.imports
            ],
        )
