"""Passes that evaluate and merge constant parts of the graph."""

from __future__ import annotations

import logging

from redcircuit.graph import (
    CompileGraph,
    CompileNode,
    ComparatorMode,
    LinkType,
    NodeKind,
    NodeState,
    NodeType,
)
from redcircuit.options import CompilerOptions
from redcircuit.passes.base import Pass

logger = logging.getLogger(__name__)

_CONSTANT = NodeType.simple(NodeKind.CONSTANT)
_MAX_SS = 15


def _is_removable_constant(node: CompileNode) -> bool:
    return node.ty.kind is NodeKind.CONSTANT and node.is_removable()


class ConstantFold(Pass):
    """Replace nodes whose inputs are all constant with constants."""

    status_message = "Constant folding"

    def run_pass(self, graph: CompileGraph, options: CompilerOptions) -> None:
        while True:
            folded = self._fold(graph)
            if folded == 0:
                break
            logger.debug("Fold iteration: %d nodes", folded)

    @staticmethod
    def _input_powers(graph: CompileGraph, idx: int) -> tuple[int, int] | None:
        default_power = 0
        side_power = 0
        for edge in graph.incoming(idx):
            source, _ = graph.edge_endpoints(edge)
            constant = graph[source]
            if constant.ty.kind is not NodeKind.CONSTANT:
                return None
            link = graph.link(edge)
            power = max(0, constant.state.output_strength - link.ss)
            if link.ty is LinkType.DEFAULT:
                default_power = max(default_power, power)
            else:
                side_power = max(side_power, power)
        return default_power, side_power

    def _fold(self, graph: CompileGraph) -> int:
        folded = 0
        for idx in range(graph.node_bound()):
            if not graph.contains_node(idx):
                continue
            powers = self._input_powers(graph, idx)
            if powers is None:
                continue
            default_power, side_power = powers

            node = graph[idx]
            kind = node.ty.kind
            if kind is NodeKind.COMPARATOR:
                if node.ty.far_input is not None and default_power < _MAX_SS:
                    default_power = node.ty.far_input
                if node.ty.mode is ComparatorMode.COMPARE:
                    new_power = default_power if default_power >= side_power else 0
                else:
                    new_power = max(0, default_power - side_power)
            elif kind is NodeKind.REPEATER:
                if node.state.repeater_locked:
                    new_power = node.state.output_strength
                else:
                    new_power = _MAX_SS if default_power > 0 else 0
            elif kind is NodeKind.TORCH:
                new_power = 0 if default_power > 0 else _MAX_SS
            else:
                continue

            node.ty = _CONSTANT
            node.state.output_strength = new_power
            for edge in graph.incoming(idx):
                graph.remove_edge(edge)
            folded += 1
        return folded


class _DisjointSets:
    def __init__(self, size: int) -> None:
        self._parent = list(range(size))

    def find(self, item: int) -> int:
        root = item
        while self._parent[root] != root:
            root = self._parent[root]
        while self._parent[item] != root:
            self._parent[item], item = root, self._parent[item]
        return root

    def union(self, a: int, b: int) -> None:
        root_a, root_b = self.find(a), self.find(b)
        if root_a != root_b:
            self._parent[root_b] = root_a


class ConstantCoalesce(Pass):
    """Share one constant node per strength within each connected component."""

    status_message = "Coalescing constants"

    def run_pass(self, graph: CompileGraph, options: CompilerOptions) -> None:
        bound = graph.node_bound()
        components = _DisjointSets(bound)
        for src in graph.node_indices():
            if _is_removable_constant(graph[src]):
                continue
            for edge in graph.outgoing(src):
                _, dest = graph.edge_endpoints(edge)
                components.union(src, dest)

        constants: dict[tuple[int, int], int] = {}
        for idx in range(bound):
            if not graph.contains_node(idx):
                continue
            node = graph[idx]
            if not _is_removable_constant(node):
                continue
            ss = node.state.output_strength

            for edge in graph.outgoing(idx):
                _, dest = graph.edge_endpoints(edge)
                link = graph.link(edge)
                graph.remove_edge(edge)
                key = (components.find(dest), ss)
                constant_idx = constants.get(key)
                if constant_idx is None:
                    constant_idx = graph.add_node(
                        CompileNode(_CONSTANT, state=NodeState.ss(ss))
                    )
                    constants[key] = constant_idx
                graph.add_edge(constant_idx, dest, link)
            graph.remove_node(idx)


class UnreachableOutput(Pass):
    """Drop links from subtract comparators that can never carry a signal.

    With a single constant side input, a subtract comparator's output is at
    most 15 minus that constant; links at least that long always read zero.
    """

    status_message = "Pruning unreachable comparator outputs"

    def run_pass(self, graph: CompileGraph, options: CompilerOptions) -> None:
        for idx in range(graph.node_bound()):
            if not graph.contains_node(idx):
                continue
            ty = graph[idx].ty
            if ty.kind is not NodeKind.COMPARATOR or ty.mode is not ComparatorMode.SUBTRACT:
                continue

            # Always assume the strongest possible default input.
            max_input = _MAX_SS

            side_inputs = [
                edge for edge in graph.incoming(idx) if graph.link(edge).ty is LinkType.SIDE
            ]
            if len(side_inputs) != 1:
                continue
            constant_idx, _ = graph.edge_endpoints(side_inputs[0])
            if graph[constant_idx].ty.kind is not NodeKind.CONSTANT:
                continue

            constant = graph[constant_idx].state.output_strength
            max_output = max(0, max_input - constant)

            for edge in graph.outgoing(idx):
                if graph.link(edge).ss >= max_output:
                    graph.remove_edge(edge)