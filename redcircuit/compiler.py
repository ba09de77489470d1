"""The circuit compiler: runs optimisation passes and drives the backend."""

from __future__ import annotations

import logging
import time
from typing import Iterable, Optional

from redcircuit.backend.direct import BlockChange, DirectBackend
from redcircuit.backend.node import Node
from redcircuit.backend.scheduler import TickEntry
from redcircuit.graph import BlockPos, CompileGraph
from redcircuit.options import BackendVariant, CompilerOptions
from redcircuit.passes.base import PassManager
from redcircuit.passes.folding import ConstantCoalesce, ConstantFold, UnreachableOutput
from redcircuit.passes.merging import AnalogRepeaters, Coalesce
from redcircuit.passes.pruning import ClampWeights, DedupLinks, PruneOrphans
from redcircuit.task_monitor import TaskMonitor

logger = logging.getLogger(__name__)

_BACKENDS = {BackendVariant.DIRECT: DirectBackend}


def default_pass_manager() -> PassManager:
    """The passes run on every compile, in order."""
    return PassManager(
        [
            ClampWeights(),
            DedupLinks(),
            AnalogRepeaters(),
            ConstantFold(),
            UnreachableOutput(),
            ConstantCoalesce(),
            Coalesce(),
            PruneOrphans(),
        ]
    )


class Compiler:
    """Compiles a circuit graph and runs it until reset."""

    def __init__(self) -> None:
        self._active = False
        self._backend: Optional[DirectBackend] = None
        self._variant: Optional[BackendVariant] = None
        self._options = CompilerOptions()

    def is_active(self) -> bool:
        return self._active

    def current_flags(self) -> Optional[CompilerOptions]:
        """The options of the running compile, or None when inactive."""
        return self._options if self._active else None

    def compile(
        self,
        graph: CompileGraph,
        options: CompilerOptions,
        ticks: Iterable[TickEntry] = (),
        monitor: Optional[TaskMonitor] = None,
    ) -> None:
        """Optimise ``graph`` in place and load it into the backend.

        Nothing is loaded if ``monitor`` is cancelled while the passes run.
        """
        if monitor is None:
            monitor = TaskMonitor()
        logger.debug("Starting compile")
        start = time.perf_counter()

        graph = default_pass_manager().run_passes(options, monitor, graph)
        if monitor.cancelled():
            return

        if self._backend is None or self._variant is not options.backend_variant:
            logger.debug("Switching backend to %s", options.backend_variant.value)
            self._backend = _BACKENDS[options.backend_variant]()
            self._variant = options.backend_variant

        monitor.set_message("Compiling backend")
        backend_start = time.perf_counter()
        self._backend.compile(graph, ticks, options, monitor)
        monitor.inc_progress()
        logger.debug("Backend compiled in %.6fs", time.perf_counter() - backend_start)

        self._options = options
        self._active = True
        logger.debug("Compile completed in %.6fs", time.perf_counter() - start)

    def reset(self, world) -> None:
        """Stop running, handing pending ticks and block states back to ``world``."""
        if self._active:
            self._active = False
            if self._backend is not None:
                self._backend.reset(world, self._options.io_only)
        self._options = CompilerOptions()

    def _running_backend(self) -> DirectBackend:
        if not self._active:
            raise RuntimeError("tried to get backend when inactive")
        if self._backend is None:
            raise RuntimeError("compiler is active but is missing its backend")
        return self._backend

    def tick(self) -> None:
        self._running_backend().tick()

    def on_use_block(self, pos: BlockPos) -> None:
        self._running_backend().on_use_block(pos)

    def set_pressure_plate(self, pos: BlockPos, powered: bool) -> None:
        self._running_backend().set_pressure_plate(pos, powered)

    def flush(self) -> list[BlockChange]:
        """Block changes since the last flush, honouring the ``io_only`` option."""
        io_only = self._options.io_only
        return self._running_backend().flush(io_only)

    def inspect(self, pos: BlockPos) -> Optional[Node]:
        if self._backend is None:
            logger.debug("cannot inspect when backend is not running")
            return None
        return self._backend.inspect(pos)