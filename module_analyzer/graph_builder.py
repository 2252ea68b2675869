"""
Dependency Graph Builder
Classifies every import of every module and builds forward and reverse
adjacency, plus a networkx view of the internal edges
"""

import logging
from typing import Dict, List, Mapping

import networkx as nx

from .models import (
    EDGE_EXTERNAL_BUILTIN,
    EDGE_EXTERNAL_PACKAGE,
    EDGE_INTERNAL,
    EDGE_UNRESOLVED,
    DependencyEdge,
    ImportedBy,
    ImportFact,
    ModuleError,
    ModuleNode,
    ModuleRecord,
)
from .resolver import ModuleResolver, is_relative_specifier

logger = logging.getLogger(__name__)

NODE_BUILTINS = frozenset([
    'assert', 'async_hooks', 'buffer', 'child_process', 'cluster', 'console',
    'constants', 'crypto', 'dgram', 'diagnostics_channel', 'dns', 'domain',
    'events', 'fs', 'http', 'http2', 'https', 'inspector', 'module', 'net',
    'os', 'path', 'perf_hooks', 'process', 'punycode', 'querystring',
    'readline', 'repl', 'stream', 'string_decoder', 'sys', 'timers', 'tls',
    'trace_events', 'tty', 'url', 'util', 'v8', 'vm', 'wasi',
    'worker_threads', 'zlib',
])


def external_kind(specifier: str) -> str:
    """Edge kind for a non-relative specifier"""
    if specifier.startswith('node:'):
        return EDGE_EXTERNAL_BUILTIN
    # 'fs/promises' is the fs builtin
    if specifier.split('/', 1)[0] in NODE_BUILTINS:
        return EDGE_EXTERNAL_BUILTIN
    return EDGE_EXTERNAL_PACKAGE


class DependencyGraphBuilder:
    """Builds the module dependency graph from per-module import facts"""

    def __init__(self, modules: Mapping[str, ModuleRecord], resolver: ModuleResolver):
        self.modules = modules
        self.resolver = resolver
        self.graph = nx.DiGraph()
        self.nodes: Dict[str, ModuleNode] = {}
        self.errors: List[ModuleError] = []

    def build(self) -> Dict[str, ModuleNode]:
        """Forward pass over every module, then the reverse pass"""
        for path, record in self.modules.items():
            self.graph.add_node(path, file_type=record.file_type)
            try:
                self.nodes[path] = self._process_module(record)
            except Exception as e:
                logger.error(f"Failed to process imports of {path}: {e}")
                self.errors.append(ModuleError(module=path, message=f"import processing failed: {e}"))
                self.nodes[path] = ModuleNode(path=path, file_type=record.file_type,
                                              exports=list(record.exports))

        # A target may be visited after its importer, so importedBy is only
        # filled once every forward edge exists
        self._build_reverse_dependencies()

        logger.info(f"Built dependency graph with {len(self.nodes)} modules and "
                    f"{self.graph.number_of_edges()} internal edges")
        return self.nodes

    def _process_module(self, record: ModuleRecord) -> ModuleNode:
        node = ModuleNode(path=record.path, file_type=record.file_type, exports=list(record.exports))

        for fact in record.imports:
            edge = self._classify_import(record.path, fact)
            if edge.edge_kind == EDGE_INTERNAL:
                node.imports.append(edge)
            elif edge.edge_kind == EDGE_UNRESOLVED:
                node.unresolved_internals.append(edge)
            else:
                node.external_dependencies.append(edge)

        return node

    def _classify_import(self, path: str, fact: ImportFact) -> DependencyEdge:
        if is_relative_specifier(fact.source):
            target = self.resolver.resolve(fact.source, path)
            kind = EDGE_INTERNAL if target else EDGE_UNRESOLVED
        else:
            target = None
            kind = external_kind(fact.source)

        return DependencyEdge(
            source_module=path,
            specifier=fact.source,
            edge_kind=kind,
            target_module=target,
            line=fact.line,
            specifiers=fact.specifiers,
            import_type=fact.import_type,
        )

    def _build_reverse_dependencies(self):
        """Attach an importedBy entry to the target of every internal edge"""
        for path, node in self.nodes.items():
            for edge in node.imports:
                target = self.nodes.get(edge.target_module)
                if target is None:
                    continue
                target.imported_by.append(ImportedBy(
                    source_module=path,
                    line=edge.line,
                    import_type=edge.import_type,
                ))
                self._add_dependency(path, edge)

    def _add_dependency(self, from_module: str, edge: DependencyEdge):
        """Add an internal edge to the networkx view, counting repeats"""
        if self.graph.has_edge(from_module, edge.target_module):
            self.graph[from_module][edge.target_module]['count'] += 1
            return
        self.graph.add_edge(from_module, edge.target_module,
                            specifier=edge.specifier,
                            line=edge.line,
                            count=1)

    def get_graph_stats(self) -> Dict:
        """Get statistics about the dependency graph"""
        node_count = self.graph.number_of_nodes()
        externals = [edge for node in self.nodes.values() for edge in node.external_dependencies]
        return {
            'total_modules': node_count,
            'total_internal_edges': sum(len(node.imports) for node in self.nodes.values()),
            'total_external_edges': len(externals),
            'external_packages': sum(1 for edge in externals if edge.edge_kind == EDGE_EXTERNAL_PACKAGE),
            'external_builtins': sum(1 for edge in externals if edge.edge_kind == EDGE_EXTERNAL_BUILTIN),
            'unresolved_internals': sum(len(node.unresolved_internals) for node in self.nodes.values()),
            'is_connected': nx.is_weakly_connected(self.graph) if node_count > 0 else False,
            'density': nx.density(self.graph) if node_count > 0 else 0.0,
            'average_degree': sum(dict(self.graph.degree()).values()) / node_count if node_count > 0 else 0,
        }

    def get_module_dependencies(self, module_path: str) -> List[str]:
        """Get modules imported directly by a module"""
        if module_path in self.graph:
            return list(self.graph.successors(module_path))
        return []

    def get_module_dependents(self, module_path: str) -> List[str]:
        """Get modules that import this module"""
        if module_path in self.graph:
            return list(self.graph.predecessors(module_path))
        return []

    def to_dict(self) -> Dict:
        """JSON-serializable adjacency keyed by module path"""
        return {path: node.to_dict() for path, node in self.nodes.items()}

    def export_graph_data(self) -> Dict:
        """Export graph data for visualization"""
        nodes = []
        edges = []

        for path, data in self.graph.nodes(data=True):
            node = self.nodes[path]
            nodes.append({
                'id': path,
                'label': path.rsplit('/', 1)[-1],
                'file_type': data.get('file_type'),
                'imports': node.import_count,
                'imported_by': len(node.imported_by),
            })

        for source, target, data in self.graph.edges(data=True):
            edges.append({
                'source': source,
                'target': target,
                'specifier': data.get('specifier'),
                'line': data.get('line'),
                'count': data.get('count', 1),
            })

        return {
            'nodes': nodes,
            'edges': edges,
            'stats': self.get_graph_stats()
        }
