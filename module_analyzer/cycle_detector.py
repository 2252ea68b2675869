"""
Cycle Detector
Finds circular imports in the internal-edge graph, deduplicates them by
rotation, and reports strongly connected components
"""

import logging
from typing import Dict, List, Optional, Sequence

import networkx as nx

logger = logging.getLogger(__name__)


def normalize_cycle(cycle: Sequence[str]) -> List[str]:
    """Drop the closing element and rotate so the smallest member comes first"""
    members = list(cycle[:-1]) if len(cycle) > 1 and cycle[0] == cycle[-1] else list(cycle)
    if not members:
        return []
    start = members.index(min(members))
    return members[start:] + members[:start]


def deduplicate_cycles(cycles: Sequence[Sequence[str]]) -> List[List[str]]:
    """Keep one closed, canonical copy of every cycle, in discovery order"""
    seen = set()
    unique = []
    for cycle in cycles:
        normalized = normalize_cycle(cycle)
        key = tuple(normalized)
        if not normalized or key in seen:
            continue
        seen.add(key)
        unique.append(normalized + [normalized[0]])
    return unique


def find_back_edge_cycles(adjacency: Sequence[Sequence[int]]) -> List[List[int]]:
    """Depth-first search over an integer-indexed adjacency list.

    Uses an explicit stack of (node, edge cursor) pairs instead of recursion so
    that deep import chains cannot exhaust the interpreter stack. Every edge
    that reaches a node still on the current path yields one closed cycle.
    """
    node_count = len(adjacency)
    visited = [False] * node_count
    position: Dict[int, int] = {}
    path: List[int] = []
    cycles = []

    for start in range(node_count):
        if visited[start]:
            continue
        visited[start] = True
        position[start] = 0
        path.append(start)
        stack = [[start, 0]]

        while stack:
            frame = stack[-1]
            node, cursor = frame
            neighbors = adjacency[node]
            if cursor < len(neighbors):
                frame[1] = cursor + 1
                target = neighbors[cursor]
                if not visited[target]:
                    visited[target] = True
                    position[target] = len(path)
                    path.append(target)
                    stack.append([target, 0])
                elif target in position:
                    cycle = path[position[target]:]
                    cycles.append(cycle + [target])
            else:
                stack.pop()
                path.pop()
                del position[node]

    return cycles


class CycleDetector:
    """Detects cycles and strongly connected components in the module graph"""

    def __init__(self, graph: nx.DiGraph):
        self.graph = graph
        self.cycles: List[List[str]] = []
        self.strongly_connected_components: List[List[str]] = []
        self.cycle_analysis: Dict = {}

    def detect_all_cycles(self) -> List[List[str]]:
        """Detect circular imports, one closed canonical path per distinct cycle"""
        order = list(self.graph.nodes)
        index = {node: i for i, node in enumerate(order)}
        adjacency = [[index[target] for target in self.graph.successors(node)] for node in order]

        raw_cycles = [[order[i] for i in cycle] for cycle in find_back_edge_cycles(adjacency)]
        cycles = deduplicate_cycles(raw_cycles)
        self.cycles = cycles
        self.cycle_analysis = self._analyze_cycles(cycles)

        logger.info(f"Found {len(cycles)} cycles in dependency graph "
                    f"({len(raw_cycles)} before deduplication)")
        return cycles

    def find_strongly_connected_components(self) -> List[List[str]]:
        """Find strongly connected components using Tarjan's algorithm"""
        significant_sccs = []
        for scc in nx.strongly_connected_components(self.graph):
            if len(scc) > 1:
                significant_sccs.append(sorted(scc))
            else:
                # A single module is only significant when it imports itself
                node = next(iter(scc))
                if self.graph.has_edge(node, node):
                    significant_sccs.append([node])

        significant_sccs.sort()
        self.strongly_connected_components = significant_sccs
        logger.info(f"Found {len(significant_sccs)} significant strongly connected components")
        return significant_sccs

    def _analyze_cycles(self, cycles: List[List[str]]) -> Dict:
        """Analyze detected cycles for severity"""
        analysis = {
            'total_cycles': len(cycles),
            'cycle_details': [],
            'severity_distribution': {'low': 0, 'medium': 0, 'high': 0, 'critical': 0},
            'affected_modules': set()
        }

        for i, cycle in enumerate(cycles):
            cycle_info = self._analyze_single_cycle(cycle, i)
            analysis['cycle_details'].append(cycle_info)
            analysis['severity_distribution'][cycle_info['severity']] += 1
            analysis['affected_modules'].update(cycle)

        analysis['affected_modules'] = sorted(analysis['affected_modules'])
        return analysis

    def _analyze_single_cycle(self, cycle: List[str], cycle_id: int) -> Dict:
        """Analyze a single closed cycle"""
        length = len(cycle) - 1
        severity = self._determine_cycle_severity(length)
        return {
            'id': cycle_id,
            'cycle': cycle,
            'length': length,
            'severity': severity,
            'description': self._generate_cycle_description(cycle, severity),
            'breaking_points': self._find_cycle_breaking_points(cycle),
        }

    def _determine_cycle_severity(self, length: int) -> str:
        if length == 1:
            return 'critical'  # module imports itself
        elif length == 2:
            return 'high'
        elif length <= 5:
            return 'medium'
        return 'low'

    def _generate_cycle_description(self, cycle: List[str], severity: str) -> str:
        """Generate a human-readable description of the cycle"""
        cycle_str = " -> ".join(cycle)

        severity_descriptions = {
            'critical': 'Module imports itself',
            'high': 'Two modules import each other',
            'medium': 'Short import cycle that should be refactored',
            'low': 'Long import cycle spanning many modules'
        }

        return f"{severity_descriptions.get(severity, 'Circular dependency')}: {cycle_str}"

    def _find_cycle_breaking_points(self, cycle: List[str]) -> List[Dict]:
        """List the import edges that close the cycle, cheapest first"""
        breaking_points = []

        for current, next_module in zip(cycle, cycle[1:]):
            if not self.graph.has_edge(current, next_module):
                continue
            edge_data = self.graph[current][next_module]
            dependents = self.graph.in_degree(next_module)
            breaking_points.append({
                'from': current,
                'to': next_module,
                'specifier': edge_data.get('specifier'),
                'line': edge_data.get('line'),
                'impact': 'low' if dependents <= 1 else 'medium' if dependents <= 3 else 'high',
            })

        order = {'low': 0, 'medium': 1, 'high': 2}
        breaking_points.sort(key=lambda point: order[point['impact']])
        return breaking_points

    def get_cycle_breaking_suggestions(self) -> List[Dict]:
        """Suggest ways to break detected cycles"""
        suggestions = []

        for cycle_info in self.cycle_analysis.get('cycle_details', []):
            suggestions.append({
                'cycle_id': cycle_info['id'],
                'cycle': cycle_info['cycle'],
                'severity': cycle_info['severity'],
                'breaking_points': cycle_info['breaking_points'],
                'recommended_action': self._get_recommended_action(cycle_info['severity'])
            })

        return suggestions

    def _get_recommended_action(self, severity: str) -> str:
        actions = {
            'critical': 'Remove the self-import',
            'high': 'Extract the shared code of both modules into a new module',
            'medium': 'Invert one dependency or move shared code into a lower layer',
            'low': 'Review the module layering along this chain'
        }
        return actions.get(severity, 'Review and assess impact')

    def get_analysis_summary(self) -> Dict:
        """Get a comprehensive summary of cycle analysis"""
        sccs = self.find_strongly_connected_components()
        cycles = self.detect_all_cycles()

        return {
            'graph_stats': {
                'total_nodes': self.graph.number_of_nodes(),
                'total_edges': self.graph.number_of_edges(),
                'is_dag': not cycles
            },
            'cycle_analysis': self.cycle_analysis,
            'strongly_connected_components': {
                'count': len(sccs),
                'components': sccs,
                'largest_component_size': max([len(scc) for scc in sccs]) if sccs else 0
            },
            'recommendations': self.get_cycle_breaking_suggestions()
        }

    def is_dag(self) -> bool:
        """Check if the graph is a Directed Acyclic Graph (DAG)"""
        return nx.is_directed_acyclic_graph(self.graph)

    def get_topological_order(self) -> Optional[List[str]]:
        """Import-first ordering of modules, or None when cycles exist"""
        if not self.is_dag():
            return None
        # Edges point from importer to imported, so reverse for dependency order
        return list(reversed(list(nx.topological_sort(self.graph))))
