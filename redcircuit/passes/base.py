"""The pass interface and the manager that runs passes over a compile graph."""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from typing import Optional, Sequence

from redcircuit.graph import CompileGraph
from redcircuit.options import CompilerOptions
from redcircuit.task_monitor import TaskMonitor

logger = logging.getLogger(__name__)


class Pass(ABC):
    """A transformation applied to a compile graph in place."""

    status_message: str = ""
    """Shown to users while the pass runs."""

    @abstractmethod
    def run_pass(self, graph: CompileGraph, options: CompilerOptions) -> None:
        """Transform ``graph`` in place."""

    def should_run(self, options: CompilerOptions) -> bool:
        """Passes run only for optimised builds unless they say otherwise."""
        return options.optimize

    def name(self) -> str:
        """A name for debugging output; not a stable identifier."""
        return type(self).__name__


class PassManager:
    """Runs a fixed sequence of passes, reporting progress to a monitor."""

    def __init__(self, passes: Sequence[Pass]) -> None:
        self.passes: tuple[Pass, ...] = tuple(passes)

    def run_passes(
        self,
        options: CompilerOptions,
        monitor: TaskMonitor,
        graph: Optional[CompileGraph] = None,
    ) -> CompileGraph:
        """Run every applicable pass over ``graph`` and return it.

        Stops early, returning the graph as it stands, once the monitor is
        cancelled.
        """
        if graph is None:
            graph = CompileGraph()

        # One extra step for the backend compile that follows.
        monitor.set_max_progress(len(self.passes) + 1)

        for compile_pass in self.passes:
            if not compile_pass.should_run(options):
                logger.debug("Skipping pass: %s", compile_pass.name())
                monitor.inc_progress()
                continue

            if monitor.cancelled():
                return graph

            logger.debug("Running pass: %s", compile_pass.name())
            monitor.set_message(compile_pass.status_message)
            start = time.perf_counter()

            compile_pass.run_pass(graph, options)

            logger.debug("Completed pass in %.6fs", time.perf_counter() - start)
            logger.debug("node_count: %d", graph.node_count())
            logger.debug("edge_count: %d", graph.edge_count())
            monitor.inc_progress()

        return graph