from addbuilder.generator.graph import DependencyGraph


def test_acyclic_graph_has_no_cycles():
    graph = DependencyGraph()
    graph.add("Person", ["Cat", "Address"])
    graph.add("Cat", [])
    graph.add("Address", ["Country"])
    assert graph.find_cycles() == []
    assert graph.records_in_cycles() == {}


def test_two_record_cycle_reported_once():
    graph = DependencyGraph()
    graph.add("B", ["A"])
    graph.add("A", ["B"])
    assert graph.find_cycles() == [["A", "B"]]
    assert graph.records_in_cycles() == {"A": ["A", "B"], "B": ["A", "B"]}


def test_self_reference_is_a_cycle():
    graph = DependencyGraph()
    graph.add("Node", ["Node"])
    assert graph.find_cycles() == [["Node"]]


def test_edges_to_unknown_records_are_ignored():
    graph = DependencyGraph()
    graph.add("Person", ["Cat"])
    graph.add("Owner", ["Person", "Foundation.Cat"])
    assert graph.find_cycles() == []
    assert graph.dependencies("Owner") == {"Person", "Cat"}
