"""A ring buffer of tick queues, one queue per priority for each upcoming tick."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum

from redcircuit.graph import BlockPos


class TickPriority(IntEnum):
    """Order in which ticks due on the same game tick are processed."""

    HIGHEST = 0
    HIGHER = 1
    HIGH = 2
    NORMAL = 3


@dataclass(frozen=True)
class TickEntry:
    """A tick pending for the block at ``pos``."""

    pos: BlockPos
    ticks_left: int
    priority: TickPriority


class TickScheduler:
    """Schedules node ticks up to 16 game ticks ahead."""

    NUM_PRIORITIES = len(TickPriority)
    NUM_QUEUES = 16

    def __init__(self) -> None:
        self._queues: list[list[list[int]]] = [
            self._empty_slot() for _ in range(self.NUM_QUEUES)
        ]
        self._pos = 0

    @classmethod
    def _empty_slot(cls) -> list[list[int]]:
        return [[] for _ in range(cls.NUM_PRIORITIES)]

    def schedule_tick(self, node: int, delay: int, priority: TickPriority) -> None:
        """Queue ``node`` to tick ``delay`` game ticks from now (modulo 16)."""
        if delay < 0:
            raise ValueError(f"delay must not be negative: {delay}")
        slot = (self._pos + delay) % self.NUM_QUEUES
        self._queues[slot][TickPriority(priority)].append(node)

    def next_tick(self) -> list[int]:
        """Advance one game tick and return the nodes due, highest priority first."""
        self._pos = (self._pos + 1) % self.NUM_QUEUES
        slot = self._queues[self._pos]
        self._queues[self._pos] = self._empty_slot()
        return [node for queue in slot for node in queue]

    def drain(self) -> list[tuple[int, int, TickPriority]]:
        """Remove every pending tick, returning ``(node, delay, priority)`` for each."""
        pending = []
        for idx, slot in enumerate(self._queues):
            if self._pos >= idx:
                delay = idx + self.NUM_QUEUES - self._pos
            else:
                delay = idx - self._pos
            for priority, queue in zip(TickPriority, slot):
                pending.extend((node, delay, priority) for node in queue)
        self._queues = [self._empty_slot() for _ in range(self.NUM_QUEUES)]
        return pending