"""Nodes of the direct backend: compact runtime state for each circuit component."""

from __future__ import annotations

from dataclasses import dataclass, field

from redcircuit.graph import ComparatorMode, NodeType

MAX_SS = 15
"""The strongest signal a component can carry."""

_MAX_NODE_INDEX = 1 << 27


@dataclass(frozen=True)
class ForwardLink:
    """A link to a node that must be updated when this node's output changes."""

    node: int
    side: bool
    ss: int

    def __post_init__(self) -> None:
        if not 0 <= self.node < _MAX_NODE_INDEX:
            raise ValueError(f"node index out of range: {self.node}")
        # Links of length 15 or more are removed by weight clamping.
        if not 0 <= self.ss < MAX_SS:
            raise ValueError(f"link length out of range: {self.ss}")


def _empty_counts() -> list[int]:
    return [0] * (MAX_SS + 1)


@dataclass
class NodeInput:
    """How many inputs currently arrive at each signal strength from 0 to 15."""

    ss_counts: list[int] = field(default_factory=_empty_counts)

    def __post_init__(self) -> None:
        if len(self.ss_counts) != MAX_SS + 1:
            raise ValueError(f"expected {MAX_SS + 1} counts, got {len(self.ss_counts)}")

    def any_powered(self) -> bool:
        """Whether any input carries a signal stronger than zero."""
        return any(self.ss_counts[1:])

    def strongest(self) -> int:
        """The highest signal strength among the inputs, or 0 if there are none."""
        for ss in range(MAX_SS, 0, -1):
            if self.ss_counts[ss]:
                return ss
        return 0


@dataclass
class Node:
    """Runtime state of one component in a compiled circuit."""

    ty: NodeType
    default_inputs: NodeInput = field(default_factory=NodeInput)
    side_inputs: NodeInput = field(default_factory=NodeInput)
    updates: list[ForwardLink] = field(default_factory=list)
    is_io: bool = False
    powered: bool = False
    """Powered or lit."""
    locked: bool = False
    """Only meaningful for repeaters."""
    output_power: int = 0
    changed: bool = False
    pending_tick: bool = False


def calculate_comparator_output(
    mode: ComparatorMode, input_strength: int, power_on_sides: int
) -> int:
    """The output of a comparator given its rear and side input strengths."""
    difference = input_strength - power_on_sides
    if 0 <= difference <= MAX_SS:
        return input_strength if mode is ComparatorMode.COMPARE else difference
    return 0