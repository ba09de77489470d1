"""Passes that merge equivalent nodes into fewer ones."""

from __future__ import annotations

import dataclasses

from redcircuit.graph import (
    CompileGraph,
    CompileLink,
    CompileNode,
    ComparatorMode,
    LinkType,
    NodeKind,
    NodeType,
)
from redcircuit.options import CompilerOptions
from redcircuit.passes.base import Pass

_ANALOG_REPEATER = NodeType.repeater(1, False)
_ANALOG_WIDTH = 15


def _coalesce(graph: CompileGraph, node: int, into: int) -> None:
    """Move every outgoing link of ``node`` onto ``into`` and drop ``node``."""
    for edge in graph.outgoing(node):
        _, dest = graph.edge_endpoints(edge)
        link = graph.remove_edge(edge)
        graph.add_edge(into, dest, link)
    graph.remove_node(node)


def _coalesce_outgoing(graph: CompileGraph, source: int, into: int) -> None:
    for edge in graph.outgoing(source):
        _, dest = graph.edge_endpoints(edge)
        if dest == into:
            continue
        dest_node = graph[dest]
        if (
            dest_node.ty == graph[into].ty
            and dest_node.is_removable()
            and len(graph.incoming(dest)) == 1
        ):
            _coalesce(graph, dest, into)


class Coalesce(Pass):
    """Merge identical nodes that are driven by the same single source."""

    status_message = "Combining duplicate logic"

    def run_pass(self, graph: CompileGraph, options: CompilerOptions) -> None:
        for idx in range(graph.node_bound()):
            if not graph.contains_node(idx):
                continue
            node = graph[idx]
            # Comparators depend on link weights as well as type.
            if node.ty.kind is NodeKind.COMPARATOR or not node.is_removable():
                continue

            incoming = graph.incoming(idx)
            if len(incoming) != 1:
                continue
            edge = incoming[0]
            if graph.link(edge).ty is not LinkType.DEFAULT:
                continue

            source, _ = graph.edge_endpoints(edge)
            # Comparators might output less than full strength.
            if graph[source].ty.kind is NodeKind.COMPARATOR:
                continue
            _coalesce_outgoing(graph, source, idx)


class AnalogRepeaters(Pass):
    """Replace an analog repeater bank with a single comparator.

    The bank is a comparator feeding exactly 15 plain repeaters, reached over
    link lengths 0 to 14, which all merge into one comparator over the
    complementary lengths 14 to 0.
    """

    status_message = "Combining analog repeaters"

    @staticmethod
    def _lengths_complete(graph: CompileGraph, repeaters: list[int], end: int) -> bool:
        incoming_seen: set[int] = set()
        outgoing_seen: set[int] = set()
        for repeater in repeaters:
            incoming = graph.incoming(repeater)
            outgoing = graph.outgoing(repeater)
            if len(incoming) != 1 or len(outgoing) != 1:
                return False
            if graph.edge_endpoints(outgoing[0])[1] != end:
                return False
            inc = graph.link(incoming[0])
            out = graph.link(outgoing[0])
            if inc.ty is not LinkType.DEFAULT:
                return False
            if inc.ss + out.ss != _ANALOG_WIDTH - 1:
                return False
            incoming_seen.add(inc.ss)
            outgoing_seen.add(out.ss)
        expected = set(range(_ANALOG_WIDTH))
        return incoming_seen == expected and outgoing_seen == expected

    def run_pass(self, graph: CompileGraph, options: CompilerOptions) -> None:
        for start in range(graph.node_bound()):
            if not graph.contains_node(start):
                continue
            if graph[start].ty.kind is not NodeKind.COMPARATOR:
                continue

            repeaters = [graph.edge_endpoints(edge)[1] for edge in graph.outgoing(start)]
            if len(repeaters) != _ANALOG_WIDTH:
                continue
            if not all(
                graph[r].is_removable() and graph[r].ty == _ANALOG_REPEATER for r in repeaters
            ):
                continue

            first_outgoing = graph.outgoing(repeaters[0])
            if len(first_outgoing) != 1:
                continue
            _, end = graph.edge_endpoints(first_outgoing[0])
            if graph[end].ty.kind is not NodeKind.COMPARATOR:
                continue
            if not self._lengths_complete(graph, repeaters, end):
                continue

            for repeater in repeaters:
                graph.remove_node(repeater)

            state = dataclasses.replace(graph[start].state)
            replacement = graph.add_node(
                CompileNode(
                    NodeType.comparator(ComparatorMode.COMPARE, None, False),
                    state=state,
                )
            )
            graph.add_edge(start, replacement, CompileLink.default(0))
            graph.add_edge(replacement, end, CompileLink.default(0))