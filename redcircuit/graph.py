"""The intermediate graph that circuit compilation passes operate on."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional


@dataclass(frozen=True)
class BlockPos:
    """A block position in the world."""

    x: int
    y: int
    z: int

    def __str__(self) -> str:
        return f"{self.x}, {self.y}, {self.z}"


class ComparatorMode(Enum):
    COMPARE = "compare"
    SUBTRACT = "subtract"


class NodeKind(Enum):
    REPEATER = "repeater"
    TORCH = "torch"
    COMPARATOR = "comparator"
    LAMP = "lamp"
    BUTTON = "button"
    LEVER = "lever"
    PRESSURE_PLATE = "pressure_plate"
    TRAPDOOR = "trapdoor"
    WIRE = "wire"
    CONSTANT = "constant"


_PARAMETERISED = frozenset({NodeKind.REPEATER, NodeKind.COMPARATOR})


@dataclass(frozen=True)
class NodeType:
    """The kind of a node plus the parameters that repeaters and comparators carry."""

    kind: NodeKind
    delay: Optional[int] = None
    facing_diode: bool = False
    mode: Optional[ComparatorMode] = None
    far_input: Optional[int] = None

    @classmethod
    def repeater(cls, delay: int, facing_diode: bool) -> NodeType:
        return cls(NodeKind.REPEATER, delay=delay, facing_diode=facing_diode)

    @classmethod
    def comparator(
        cls, mode: ComparatorMode, far_input: Optional[int], facing_diode: bool
    ) -> NodeType:
        return cls(
            NodeKind.COMPARATOR,
            mode=mode,
            far_input=far_input,
            facing_diode=facing_diode,
        )

    @classmethod
    def simple(cls, kind: NodeKind) -> NodeType:
        """A node type without parameters."""
        if kind in _PARAMETERISED:
            raise ValueError(f"{kind.value} nodes need parameters")
        return cls(kind)


@dataclass
class NodeState:
    powered: bool = False
    repeater_locked: bool = False
    output_strength: int = 0

    @classmethod
    def simple(cls, powered: bool) -> NodeState:
        return cls(powered=powered, output_strength=15 if powered else 0)

    @classmethod
    def repeater(cls, powered: bool, locked: bool) -> NodeState:
        return cls(
            powered=powered,
            repeater_locked=locked,
            output_strength=15 if powered else 0,
        )

    @classmethod
    def ss(cls, ss: int) -> NodeState:
        return cls(output_strength=ss)

    @classmethod
    def comparator(cls, powered: bool, ss: int) -> NodeState:
        return cls(powered=powered, output_strength=ss)


@dataclass
class CompileNode:
    ty: NodeType
    block: Optional[tuple[BlockPos, int]] = None
    state: NodeState = field(default_factory=NodeState)
    is_input: bool = False
    is_output: bool = False

    def is_removable(self) -> bool:
        """Nodes that are neither inputs nor outputs may be optimised away."""
        return not self.is_input and not self.is_output


class LinkType(Enum):
    DEFAULT = "default"
    SIDE = "side"


@dataclass
class CompileLink:
    ty: LinkType
    ss: int

    @classmethod
    def default(cls, ss: int) -> CompileLink:
        return cls(LinkType.DEFAULT, ss)

    @classmethod
    def side(cls, ss: int) -> CompileLink:
        return cls(LinkType.SIDE, ss)


@dataclass
class _Edge:
    source: int
    target: int
    link: CompileLink


class CompileGraph:
    """A directed multigraph whose indices stay valid across removals.

    Freed node and edge slots are reused, most recently freed first.
    Edge lists per node are returned newest first, as snapshots that stay
    valid while the graph is being modified.
    """

    def __init__(self) -> None:
        self._nodes: list[Optional[CompileNode]] = []
        self._free_nodes: list[int] = []
        self._edges: list[Optional[_Edge]] = []
        self._free_edges: list[int] = []
        self._incoming: list[list[int]] = []
        self._outgoing: list[list[int]] = []
        self._node_count = 0
        self._edge_count = 0

    def _node(self, idx: int) -> CompileNode:
        if 0 <= idx < len(self._nodes):
            node = self._nodes[idx]
            if node is not None:
                return node
        raise KeyError(f"no node at index {idx}")

    def _edge(self, edge: int) -> _Edge:
        if 0 <= edge < len(self._edges):
            entry = self._edges[edge]
            if entry is not None:
                return entry
        raise KeyError(f"no edge at index {edge}")

    def add_node(self, node: CompileNode) -> int:
        if self._free_nodes:
            idx = self._free_nodes.pop()
            self._nodes[idx] = node
            self._incoming[idx] = []
            self._outgoing[idx] = []
        else:
            idx = len(self._nodes)
            self._nodes.append(node)
            self._incoming.append([])
            self._outgoing.append([])
        self._node_count += 1
        return idx

    def add_edge(self, source: int, target: int, link: CompileLink) -> int:
        self._node(source)
        self._node(target)
        entry = _Edge(source, target, link)
        if self._free_edges:
            edge = self._free_edges.pop()
            self._edges[edge] = entry
        else:
            edge = len(self._edges)
            self._edges.append(entry)
        self._outgoing[source].append(edge)
        self._incoming[target].append(edge)
        self._edge_count += 1
        return edge

    def remove_edge(self, edge: int) -> CompileLink:
        entry = self._edge(edge)
        self._outgoing[entry.source].remove(edge)
        self._incoming[entry.target].remove(edge)
        self._edges[edge] = None
        self._free_edges.append(edge)
        self._edge_count -= 1
        return entry.link

    def remove_node(self, idx: int) -> CompileNode:
        node = self._node(idx)
        for edge in dict.fromkeys(self._incoming[idx] + self._outgoing[idx]):
            self.remove_edge(edge)
        self._nodes[idx] = None
        self._free_nodes.append(idx)
        self._node_count -= 1
        return node

    def contains_node(self, idx: int) -> bool:
        return 0 <= idx < len(self._nodes) and self._nodes[idx] is not None

    def node_bound(self) -> int:
        """One past the highest occupied node index."""
        for idx in range(len(self._nodes) - 1, -1, -1):
            if self._nodes[idx] is not None:
                return idx + 1
        return 0

    def node_indices(self) -> list[int]:
        return [idx for idx, node in enumerate(self._nodes) if node is not None]

    def node_count(self) -> int:
        return self._node_count

    def edge_count(self) -> int:
        return self._edge_count

    def edge_endpoints(self, edge: int) -> tuple[int, int]:
        entry = self._edge(edge)
        return entry.source, entry.target

    def link(self, edge: int) -> CompileLink:
        return self._edge(edge).link

    def incoming(self, idx: int) -> list[int]:
        """Edges ending at ``idx``, newest first."""
        self._node(idx)
        return self._incoming[idx][::-1]

    def outgoing(self, idx: int) -> list[int]:
        """Edges starting at ``idx``, newest first."""
        self._node(idx)
        return self._outgoing[idx][::-1]

    def retain_edges(self, predicate: Callable[[int], bool]) -> None:
        """Remove every edge for which ``predicate(edge)`` is false."""
        for edge, entry in enumerate(self._edges):
            if entry is not None and not predicate(edge):
                self.remove_edge(edge)

    def retain_nodes(self, predicate: Callable[[int], bool]) -> None:
        """Remove every node for which ``predicate(idx)`` is false."""
        for idx in self.node_indices():
            if not predicate(idx):
                self.remove_node(idx)

    def __getitem__(self, idx: int) -> CompileNode:
        return self._node(idx)