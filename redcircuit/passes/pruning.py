"""Passes that remove links and nodes which cannot affect the result."""

from __future__ import annotations

from redcircuit.graph import CompileGraph
from redcircuit.options import CompilerOptions
from redcircuit.passes.base import Pass

_MAX_SS = 15


class ClampWeights(Pass):
    """Remove links too long for any signal to cross. Always runs."""

    status_message = "Clamping weights"

    def run_pass(self, graph: CompileGraph, options: CompilerOptions) -> None:
        graph.retain_edges(lambda edge: graph.link(edge).ss < _MAX_SS)

    def should_run(self, options: CompilerOptions) -> bool:
        return True


class DedupLinks(Pass):
    """Remove parallel links that duplicate, or are longer than, another link.

    Of two links of the same type between the same nodes, the longer is
    removed; of exact duplicates, one remains.
    """

    status_message = "Deduplicating links"

    def run_pass(self, graph: CompileGraph, options: CompilerOptions) -> None:
        for idx in range(graph.node_bound()):
            if not graph.contains_node(idx):
                continue
            for edge in graph.incoming(idx):
                link = graph.link(edge)
                source, _ = graph.edge_endpoints(edge)
                if any(
                    other != edge
                    and graph.edge_endpoints(other)[0] == source
                    and graph.link(other).ty is link.ty
                    and graph.link(other).ss <= link.ss
                    for other in graph.incoming(idx)
                ):
                    graph.remove_edge(edge)


class PruneOrphans(Pass):
    """Remove nodes from which no input or output can be reached backwards."""

    status_message = "Pruning orphans"

    def run_pass(self, graph: CompileGraph, options: CompilerOptions) -> None:
        to_visit = [idx for idx in graph.node_indices() if not graph[idx].is_removable()]
        visited: set[int] = set()
        while to_visit:
            idx = to_visit.pop()
            if idx in visited:
                continue
            visited.add(idx)
            to_visit.extend(graph.edge_endpoints(edge)[0] for edge in graph.incoming(idx))
        graph.retain_nodes(lambda idx: idx in visited)

    def should_run(self, options: CompilerOptions) -> bool:
        return options.io_only and options.optimize