import pytest

from redcircuit.graph import (
    BlockPos,
    CompileGraph,
    CompileLink,
    CompileNode,
    ComparatorMode,
    LinkType,
    NodeKind,
    NodeState,
    NodeType,
)


def torch(**kwargs):
    return CompileNode(NodeType.simple(NodeKind.TORCH), **kwargs)


def test_node_state_constructors():
    assert NodeState.simple(True) == NodeState(True, False, 15)
    assert NodeState.simple(False) == NodeState(False, False, 0)
    assert NodeState.repeater(True, True) == NodeState(True, True, 15)
    assert NodeState.ss(7) == NodeState(False, False, 7)
    assert NodeState.comparator(True, 4) == NodeState(True, False, 4)


def test_node_type_equality():
    assert NodeType.repeater(1, False) == NodeType.repeater(1, False)
    assert NodeType.repeater(1, False) != NodeType.repeater(2, False)
    cmp = NodeType.comparator(ComparatorMode.SUBTRACT, None, True)
    assert cmp.kind is NodeKind.COMPARATOR
    assert cmp.mode is ComparatorMode.SUBTRACT
    assert NodeType.simple(NodeKind.CONSTANT) == NodeType(NodeKind.CONSTANT)


@pytest.mark.parametrize("kind", [NodeKind.REPEATER, NodeKind.COMPARATOR])
def test_simple_rejects_parameterised_kinds(kind):
    with pytest.raises(ValueError):
        NodeType.simple(kind)


@pytest.mark.parametrize(
    "is_input,is_output,expected",
    [(False, False, True), (True, False, False), (False, True, False), (True, True, False)],
)
def test_is_removable(is_input, is_output, expected):
    assert torch(is_input=is_input, is_output=is_output).is_removable() is expected


def test_link_constructors():
    assert CompileLink.default(3) == CompileLink(LinkType.DEFAULT, 3)
    assert CompileLink.side(2) == CompileLink(LinkType.SIDE, 2)


def test_add_nodes_and_edges():
    g = CompileGraph()
    a = g.add_node(torch(block=(BlockPos(1, 2, 3), 5)))
    b = g.add_node(torch())
    e = g.add_edge(a, b, CompileLink.default(2))
    assert g.node_count() == 2
    assert g.edge_count() == 1
    assert g.edge_endpoints(e) == (a, b)
    assert g.link(e) == CompileLink.default(2)
    assert g.outgoing(a) == [e]
    assert g.incoming(b) == [e]
    assert g.incoming(a) == []
    assert g[a].block == (BlockPos(1, 2, 3), 5)


def test_edges_listed_newest_first():
    g = CompileGraph()
    a, b, c = (g.add_node(torch()) for _ in range(3))
    e1 = g.add_edge(a, b, CompileLink.default(0))
    e2 = g.add_edge(c, b, CompileLink.side(0))
    assert g.incoming(b) == [e2, e1]


def test_remove_node_removes_incident_edges():
    g = CompileGraph()
    a, b, c = (g.add_node(torch()) for _ in range(3))
    g.add_edge(a, b, CompileLink.default(0))
    keep = g.add_edge(a, c, CompileLink.default(0))
    g.add_edge(b, b, CompileLink.default(0))
    g.remove_node(b)
    assert not g.contains_node(b)
    assert g.edge_count() == 1
    assert g.outgoing(a) == [keep]
    assert g.node_indices() == [a, c]


def test_indices_stay_stable_and_slots_reused_lifo():
    g = CompileGraph()
    a, b, c = (g.add_node(torch()) for _ in range(3))
    g.remove_node(a)
    g.remove_node(c)
    assert g.contains_node(b)
    assert g.node_bound() == b + 1
    first = g.add_node(torch())
    second = g.add_node(torch())
    assert first == c
    assert second == a
    assert g.node_bound() == c + 1


def test_edge_slot_reused():
    g = CompileGraph()
    a, b = g.add_node(torch()), g.add_node(torch())
    e = g.add_edge(a, b, CompileLink.default(0))
    assert g.remove_edge(e) == CompileLink.default(0)
    assert g.add_edge(b, a, CompileLink.side(1)) == e
    assert g.edge_endpoints(e) == (b, a)


def test_node_bound_empty_graph():
    g = CompileGraph()
    assert g.node_bound() == 0
    a = g.add_node(torch())
    g.remove_node(a)
    assert g.node_bound() == 0
    assert g.node_count() == 0


def test_missing_items_raise_key_error():
    g = CompileGraph()
    a = g.add_node(torch())
    with pytest.raises(KeyError):
        g[a + 1]
    with pytest.raises(KeyError):
        g.add_edge(a, a + 1, CompileLink.default(0))
    with pytest.raises(KeyError):
        g.remove_edge(0)
    g.remove_node(a)
    with pytest.raises(KeyError):
        g.remove_node(a)


def test_retain_edges():
    g = CompileGraph()
    a, b = g.add_node(torch()), g.add_node(torch())
    low = g.add_edge(a, b, CompileLink.default(3))
    g.add_edge(a, b, CompileLink.default(15))
    g.retain_edges(lambda edge: g.link(edge).ss < 15)
    assert g.incoming(b) == [low]
    assert g.edge_count() == 1


def test_retain_nodes():
    g = CompileGraph()
    a = g.add_node(torch(is_output=True))
    b = g.add_node(torch())
    g.add_edge(b, a, CompileLink.default(0))
    g.retain_nodes(lambda idx: not g[idx].is_removable())
    assert g.node_indices() == [a]
    assert g.edge_count() == 0


def test_nodes_are_mutable_through_indexing():
    g = CompileGraph()
    a = g.add_node(torch())
    g[a].ty = NodeType.simple(NodeKind.CONSTANT)
    g[a].state.output_strength = 9
    assert g[a].ty.kind is NodeKind.CONSTANT
    assert g[a].state.output_strength == 9