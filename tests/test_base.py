import pytest

from redcircuit.graph import CompileGraph, CompileNode, NodeKind, NodeType
from redcircuit.options import CompilerOptions
from redcircuit.passes.base import Pass, PassManager
from redcircuit.task_monitor import TaskMonitor


class Recording(Pass):
    status_message = "Recording"

    def __init__(self, log, label, always=True):
        self.log = log
        self.label = label
        self.always = always

    def run_pass(self, graph, options):
        self.log.append(self.label)
        graph.add_node(CompileNode(NodeType.simple(NodeKind.LAMP)))

    def should_run(self, options):
        return self.always or options.optimize


class Cancelling(Pass):
    status_message = "Cancelling"

    def __init__(self, monitor, log):
        self.monitor = monitor
        self.log = log

    def run_pass(self, graph, options):
        self.log.append("cancel")
        self.monitor.cancel()


class OptimizeOnly(Pass):
    status_message = "Optimizing"

    def run_pass(self, graph, options):
        pass


def test_passes_run_in_order_and_progress_is_counted():
    log = []
    passes = [Recording(log, "a"), Recording(log, "b")]
    monitor = TaskMonitor()
    graph = PassManager(passes).run_passes(CompilerOptions(), monitor)
    assert log == ["a", "b"]
    assert graph.node_count() == len(passes)
    assert monitor.max_progress() == len(passes) + 1
    assert monitor.progress() == len(passes)


def test_skipped_pass_still_counts_progress():
    log = []
    passes = [Recording(log, "a"), Recording(log, "b", always=False)]
    monitor = TaskMonitor()
    PassManager(passes).run_passes(CompilerOptions(), monitor)
    assert log == ["a"]
    assert monitor.progress() == len(passes)


def test_optimize_enables_default_passes():
    log = []
    passes = [Recording(log, "a", always=False)]
    monitor = TaskMonitor()
    graph = PassManager(passes).run_passes(CompilerOptions(optimize=True), monitor)
    assert log == ["a"]
    assert graph.node_count() == 1
    assert monitor.progress() == 1
    assert monitor.message() == "Recording"


def test_given_graph_is_returned_and_modified():
    log = []
    graph = CompileGraph()
    graph.add_node(CompileNode(NodeType.simple(NodeKind.LEVER)))
    result = PassManager([Recording(log, "a")]).run_passes(
        CompilerOptions(), TaskMonitor(), graph
    )
    assert result is graph
    assert graph.node_count() == 2


def test_message_is_status_of_last_pass():
    log = []
    monitor = TaskMonitor()
    PassManager([Recording(log, "a")]).run_passes(CompilerOptions(), monitor)
    assert monitor.message() == "Recording"


def test_default_should_run_follows_optimize():
    p = OptimizeOnly()
    assert Pass.should_run(p, CompilerOptions()) is False
    assert Pass.should_run(p, CompilerOptions(optimize=True)) is True


def test_name_is_class_name():
    assert Pass.name(OptimizeOnly()) == "OptimizeOnly"


def test_pass_is_abstract():
    with pytest.raises(TypeError):
        Pass()