"""The direct backend: simulates the lowered node graph without code generation."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional, Protocol

from redcircuit.backend.lowering import lower_graph
from redcircuit.backend.node import MAX_SS, Node, calculate_comparator_output
from redcircuit.backend.scheduler import TickEntry, TickPriority, TickScheduler
from redcircuit.graph import BlockPos, CompileGraph, ComparatorMode, NodeKind
from redcircuit.options import CompilerOptions
from redcircuit.task_monitor import TaskMonitor

logger = logging.getLogger(__name__)

DOT_FILE = "backend_graph.dot"
"""Where the dot graph is written when ``export_dot_graph`` is set."""

_BUTTON_TICKS = 10
_LAMP_OFF_DELAY = 2


@dataclass(frozen=True)
class BlockChange:
    """The state a block in the world should take to match its node."""

    pos: BlockPos
    block_id: int
    kind: NodeKind
    powered: bool
    output_power: int
    locked: bool


class _World(Protocol):
    def schedule_tick(self, pos: BlockPos, delay: int, priority: TickPriority) -> None: ...

    def set_comparator_output(self, pos: BlockPos, output_strength: int) -> None: ...

    def set_block(self, change: BlockChange) -> None: ...


def _bool_to_ss(powered: bool) -> int:
    return MAX_SS if powered else 0


def _comparator_output(node: Node) -> int:
    input_power = node.default_inputs.strongest()
    side_power = node.side_inputs.strongest()
    far_input = node.ty.far_input
    if far_input is not None and input_power < MAX_SS:
        input_power = far_input
    mode = node.ty.mode if node.ty.mode is not None else ComparatorMode.COMPARE
    return calculate_comparator_output(mode, input_power, side_power)


def _label(node: Node) -> str:
    kind = node.ty.kind
    if kind is NodeKind.REPEATER:
        return f"Repeater({node.ty.delay})"
    if kind is NodeKind.COMPARATOR:
        return "Comparator({})".format(
            "Cmp" if node.ty.mode is ComparatorMode.COMPARE else "Sub"
        )
    if kind is NodeKind.CONSTANT:
        return f"Constant({node.output_power})"
    return {
        NodeKind.TORCH: "Torch",
        NodeKind.LAMP: "Lamp",
        NodeKind.BUTTON: "Button",
        NodeKind.LEVER: "Lever",
        NodeKind.PRESSURE_PLATE: "PressurePlate",
        NodeKind.TRAPDOOR: "Trapdoor",
        NodeKind.WIRE: "Wire",
    }[kind]


class DirectBackend:
    """Runs a compiled circuit by propagating signal changes node by node."""

    def __init__(self) -> None:
        self._nodes: list[Node] = []
        self._blocks: list[Optional[tuple[BlockPos, int]]] = []
        self._pos_map: dict[BlockPos, int] = {}
        self._scheduler = TickScheduler()

    def compile(
        self,
        graph: CompileGraph,
        ticks: Iterable[TickEntry] = (),
        options: Optional[CompilerOptions] = None,
        monitor: Optional[TaskMonitor] = None,
    ) -> None:
        """Load ``graph`` and schedule the pending ``ticks`` that fall on its blocks."""
        if options is None:
            options = CompilerOptions()
        lowered = lower_graph(graph)
        logger.debug("%s", lowered.stats)
        self._nodes = lowered.nodes
        self._blocks = lowered.blocks
        self._pos_map = lowered.pos_map

        for entry in ticks:
            node_id = self._pos_map.get(entry.pos)
            if node_id is not None:
                self._scheduler.schedule_tick(node_id, entry.ticks_left, entry.priority)
                self._nodes[node_id].pending_tick = True

        if options.export_dot_graph:
            Path(DOT_FILE).write_text(self.to_dot())

    def tick(self) -> None:
        """Advance one game tick, ticking every node that is due."""
        for node_id in self._scheduler.next_tick():
            self._tick_node(node_id)

    def on_use_block(self, pos: BlockPos) -> None:
        """Press the button or flip the lever at ``pos``."""
        node_id = self._pos_map[pos]
        node = self._nodes[node_id]
        kind = node.ty.kind
        if kind is NodeKind.BUTTON:
            if node.powered:
                return
            self._schedule(node_id, _BUTTON_TICKS, TickPriority.NORMAL)
            self._set_node(node_id, True, MAX_SS)
        elif kind is NodeKind.LEVER:
            powered = not node.powered
            self._set_node(node_id, powered, _bool_to_ss(powered))
        else:
            logger.warning("Tried to use a %s node", kind.value)

    def set_pressure_plate(self, pos: BlockPos, powered: bool) -> None:
        node_id = self._pos_map[pos]
        node = self._nodes[node_id]
        if node.ty.kind is NodeKind.PRESSURE_PLATE:
            self._set_node(node_id, powered, _bool_to_ss(powered))
        else:
            logger.warning("Tried to set pressure plate state for a %s", node.ty.kind.value)

    def flush(self, io_only: bool = False) -> list[BlockChange]:
        """Return the blocks changed since the last flush and clear the change marks.

        With ``io_only`` only input and output blocks are reported.
        """
        changes = []
        for idx, node in enumerate(self._nodes):
            if self._blocks[idx] is None:
                continue
            if node.changed and (not io_only or node.is_io):
                changes.append(self._block_change(idx))
            node.changed = False
        return changes

    def reset(self, world: _World, io_only: bool = False) -> None:
        """Hand pending ticks and final block states back to ``world`` and unload."""
        for node_id, delay, priority in self._scheduler.drain():
            block = self._blocks[node_id]
            if block is None:
                logger.warning(
                    "Cannot schedule tick for node %d because block information is missing",
                    node_id,
                )
                continue
            world.schedule_tick(block[0], delay, priority)

        for idx, node in enumerate(self._nodes):
            block = self._blocks[idx]
            if block is None:
                continue
            if node.ty.kind is NodeKind.COMPARATOR:
                world.set_comparator_output(block[0], node.output_power)
            if io_only and not node.is_io:
                world.set_block(self._block_change(idx))

        self._nodes = []
        self._blocks = []
        self._pos_map = {}

    def inspect(self, pos: BlockPos) -> Optional[Node]:
        """Return, and log, the node at ``pos``, or None if there is none."""
        node_id = self._pos_map.get(pos)
        if node_id is None:
            logger.debug("could not find node at pos %s", pos)
            return None
        node = self._nodes[node_id]
        logger.debug("Node %d: %r", node_id, node)
        return node

    def to_dot(self) -> str:
        """The node graph in Graphviz dot syntax; wire nodes are left out."""
        lines = ["digraph {"]
        for idx, node in enumerate(self._nodes):
            if node.ty.kind is NodeKind.WIRE:
                continue
            block = self._blocks[idx]
            pos = str(block[0]) if block is not None else "No Pos"
            lines.append(f'    n{idx} [ label = "{_label(node)}\\n({pos})" ];')
            for link in node.updates:
                color = ',color="blue"' if link.side else ""
                lines.append(f'    n{idx} -> n{link.node} [ label = "{link.ss}"{color} ];')
        lines.append("}")
        return "\n".join(lines) + "\n"

    def _block_change(self, idx: int) -> BlockChange:
        node = self._nodes[idx]
        block = self._blocks[idx]
        assert block is not None
        pos, block_id = block
        return BlockChange(
            pos=pos,
            block_id=block_id,
            kind=node.ty.kind,
            powered=node.powered,
            output_power=node.output_power,
            locked=node.locked,
        )

    def _schedule(self, node_id: int, delay: int, priority: TickPriority) -> None:
        self._nodes[node_id].pending_tick = True
        self._scheduler.schedule_tick(node_id, delay, priority)

    def _set_node(self, node_id: int, powered: bool, new_power: int) -> None:
        node = self._nodes[node_id]
        old_power = node.output_power
        node.changed = True
        node.powered = powered
        node.output_power = new_power
        for link in node.updates:
            old = max(0, old_power - link.ss)
            new = max(0, new_power - link.ss)
            if old == new:
                continue
            target = self._nodes[link.node]
            inputs = target.side_inputs if link.side else target.default_inputs
            inputs.ss_counts[old] -= 1
            inputs.ss_counts[new] += 1
            self._update_node(link.node)

    def _update_node(self, node_id: int) -> None:
        node = self._nodes[node_id]
        kind = node.ty.kind
        if kind is NodeKind.REPEATER:
            should_be_locked = node.side_inputs.any_powered()
            if should_be_locked != node.locked:
                node.locked = should_be_locked
                node.changed = True
            if node.locked or node.pending_tick:
                return
            should_be_powered = node.default_inputs.any_powered()
            if should_be_powered != node.powered:
                if node.ty.facing_diode:
                    priority = TickPriority.HIGHEST
                elif not should_be_powered:
                    priority = TickPriority.HIGHER
                else:
                    priority = TickPriority.HIGH
                self._schedule(node_id, int(node.ty.delay or 0), priority)
        elif kind is NodeKind.TORCH:
            if node.pending_tick:
                return
            if node.powered != (not node.default_inputs.any_powered()):
                self._schedule(node_id, 1, TickPriority.NORMAL)
        elif kind is NodeKind.COMPARATOR:
            if node.pending_tick:
                return
            if _comparator_output(node) != node.output_power:
                priority = TickPriority.HIGH if node.ty.facing_diode else TickPriority.NORMAL
                self._schedule(node_id, 1, priority)
        elif kind is NodeKind.LAMP:
            should_be_lit = node.default_inputs.any_powered()
            if node.powered and not should_be_lit:
                self._schedule(node_id, _LAMP_OFF_DELAY, TickPriority.NORMAL)
            elif not node.powered and should_be_lit:
                node.powered = True
                node.changed = True
        elif kind is NodeKind.TRAPDOOR:
            should_be_powered = node.default_inputs.any_powered()
            if node.powered != should_be_powered:
                node.powered = should_be_powered
                node.changed = True
        elif kind is NodeKind.WIRE:
            input_power = node.default_inputs.strongest()
            if node.output_power != input_power:
                node.output_power = input_power
                node.changed = True

    def _tick_node(self, node_id: int) -> None:
        node = self._nodes[node_id]
        node.pending_tick = False
        kind = node.ty.kind
        if kind is NodeKind.REPEATER:
            if node.locked:
                return
            should_be_powered = node.default_inputs.any_powered()
            if node.powered and not should_be_powered:
                self._set_node(node_id, False, 0)
            elif not node.powered:
                if not should_be_powered:
                    self._schedule(node_id, int(node.ty.delay or 0), TickPriority.HIGHER)
                self._set_node(node_id, True, MAX_SS)
        elif kind is NodeKind.TORCH:
            should_be_powered = not node.default_inputs.any_powered()
            if node.powered != should_be_powered:
                self._set_node(node_id, should_be_powered, _bool_to_ss(should_be_powered))
        elif kind is NodeKind.COMPARATOR:
            new_strength = _comparator_output(node)
            if new_strength != node.output_power:
                self._set_node(node_id, new_strength > 0, new_strength)
        elif kind is NodeKind.LAMP:
            if node.powered and not node.default_inputs.any_powered():
                self._set_node(node_id, False, 0)
        elif kind is NodeKind.BUTTON:
            if node.powered:
                self._set_node(node_id, False, 0)