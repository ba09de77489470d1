"""Lowering of a compile graph into the flat node array the direct backend runs."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from redcircuit.backend.node import ForwardLink, Node, NodeInput
from redcircuit.graph import BlockPos, CompileGraph, LinkType, NodeKind

MAX_INPUTS = 255
"""The most default, and separately side, inputs a single node may have."""


@dataclass
class GraphStats:
    """Counts gathered while lowering, for diagnostics."""

    node_count: int = 0
    update_link_count: int = 0
    side_link_count: int = 0
    default_link_count: int = 0


@dataclass
class LoweredGraph:
    """Backend nodes with the block each one stands for.

    ``nodes[i]`` and ``blocks[i]`` describe the same component; ``pos_map``
    maps a block position to its node index.
    """

    nodes: list[Node] = field(default_factory=list)
    blocks: list[Optional[tuple[BlockPos, int]]] = field(default_factory=list)
    pos_map: dict[BlockPos, int] = field(default_factory=dict)
    stats: GraphStats = field(default_factory=GraphStats)


def _lower_node(
    graph: CompileGraph, idx: int, nodes_map: dict[int, int], stats: GraphStats
) -> Node:
    node = graph[idx]

    default_inputs = NodeInput()
    side_inputs = NodeInput()
    default_count = 0
    side_count = 0
    for edge in graph.incoming(idx):
        link = graph.link(edge)
        source, _ = graph.edge_endpoints(edge)
        ss = max(0, graph[source].state.output_strength - link.ss)
        if link.ty is LinkType.DEFAULT:
            if default_count >= MAX_INPUTS:
                raise ValueError(f"Exceeded the maximum number of default inputs {MAX_INPUTS}")
            default_count += 1
            default_inputs.ss_counts[ss] += 1
        else:
            if side_count >= MAX_INPUTS:
                raise ValueError(f"Exceeded the maximum number of side inputs {MAX_INPUTS}")
            side_count += 1
            side_inputs.ss_counts[ss] += 1
    stats.default_link_count += default_count
    stats.side_link_count += side_count

    updates: list[ForwardLink] = []
    if node.ty.kind is not NodeKind.CONSTANT:
        outgoing = sorted(
            graph.outgoing(idx), key=lambda e: nodes_map[graph.edge_endpoints(e)[1]]
        )
        # Group updates by the kind of node they reach, keeping index order within.
        groups: dict[NodeKind, list[ForwardLink]] = {}
        for edge in outgoing:
            _, target = graph.edge_endpoints(edge)
            link = graph.link(edge)
            groups.setdefault(graph[target].ty.kind, []).append(
                ForwardLink(nodes_map[target], link.ty is LinkType.SIDE, link.ss)
            )
        updates = [link for group in groups.values() for link in group]
    stats.update_link_count += len(updates)

    return Node(
        ty=node.ty,
        default_inputs=default_inputs,
        side_inputs=side_inputs,
        updates=updates,
        is_io=node.is_input or node.is_output,
        powered=node.state.powered,
        locked=node.state.repeater_locked,
        output_power=node.state.output_strength,
    )


def lower_graph(graph: CompileGraph) -> LoweredGraph:
    """Number the graph's nodes densely and build backend nodes for them."""
    indices = graph.node_indices()
    nodes_map = {idx: position for position, idx in enumerate(indices)}

    stats = GraphStats(node_count=len(indices))
    nodes = [_lower_node(graph, idx, nodes_map, stats) for idx in indices]
    blocks = [graph[idx].block for idx in indices]
    pos_map = {block[0]: i for i, block in enumerate(blocks) if block is not None}
    return LoweredGraph(nodes=nodes, blocks=blocks, pos_map=pos_map, stats=stats)