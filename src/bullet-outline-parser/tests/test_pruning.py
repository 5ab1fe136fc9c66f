"""Unit tests for fold/hide pruning and edge normalization."""

from bullet_outline.compiler import compile_outline, parse_lines
from bullet_outline.edges import synthesize_edges
from bullet_outline.graph import EdgeKind, LinkGraph, build_graph, compute_dependency_size
from bullet_outline.pruning import (
    VisibilityState,
    build_reroute_table,
    merge_bidirectional_edges,
    normalize_links,
    prune_graph,
    remove_duplicate_edges,
    reroute_links,
)


def build(lines, id_supplier):
    graph = build_graph(parse_lines(lines, id_supplier=id_supplier))
    compute_dependency_size(graph.root)
    synthesize_edges(graph)
    return graph


def edge_set(links):
    return {
        (edge.source, edge.destination, edge.kind, edge.must_render)
        for edge in links.edges()
    }


def touched_ids(links):
    ids = set()
    for edge in links.edges():
        ids.update((edge.source, edge.destination))
    return ids


FOLD_DOC = [
    "- Root // root",
    "  - Child1 // c1 <gc",
    "  - Child2 // id_c2 [+]",
    "    - Grandchild // gc",
]


class TestVisibilityState:
    """Tests for inherited visibility."""

    def test_fold_sets_floor_once(self):
        """Test the floor stays at the outermost folded node."""
        fold_ids = {"a", "b"}
        state = VisibilityState().enter("a", fold_ids, set())
        state = state.enter("b", fold_ids, set())

        assert state.floor_reached
        assert state.floor_node_id == "a"
        assert not state.hidden

    def test_hidden_is_sticky(self):
        state = VisibilityState().enter("h", set(), {"h"}).enter("x", set(), set())

        assert state.hidden


class TestRerouteTable:
    """Tests for where each node id goes."""

    def test_folded_descendants_map_to_fold_root(self, id_supplier):
        """Test the grandchild of a folded node maps to the folded node."""
        graph = build(FOLD_DOC, id_supplier)

        _, table = build_reroute_table(graph)

        assert table == {"root": "root", "c1": "c1", "id_c2": "id_c2", "gc": "id_c2"}

    def test_hidden_subtree_removed(self, id_supplier):
        """Test a hidden node and its descendants map to nothing."""
        graph = build(["- A // a", "  - B // b [x]", "    - C // c", "  - D // d"], id_supplier)

        pruned_root, table = build_reroute_table(graph)

        assert table == {"a": "a", "b": None, "c": None, "d": "d"}
        assert [node.id for node in pruned_root.walk()] == ["a", "d"]

    def test_hide_inside_fold(self, id_supplier):
        """Test hiding wins over folding for a subtree inside a fold."""
        graph = build(
            ["- F // f [+]", "  - H // h [x]", "    - x // x", "  - k // k"], id_supplier
        )

        _, table = build_reroute_table(graph)

        assert table == {"f": "f", "h": None, "x": None, "k": "f"}

    def test_nested_folds_use_outermost(self, id_supplier):
        """Test a fold inside a fold reroutes to the outer fold root."""
        graph = build(["- A // a [+]", "  - B // b [+]", "    - C // c"], id_supplier)

        _, table = build_reroute_table(graph)

        assert table == {"a": "a", "b": "a", "c": "a"}

    def test_fold_and_hide_on_same_node(self, id_supplier):
        """Test a node both folded and hidden disappears with its subtree."""
        graph = build(["- A // a", "  - B // b", "- Z // z"], id_supplier)
        graph.fold_ids.add("a")
        graph.hide_ids.add("a")

        _, table = build_reroute_table(graph)

        assert table == {"a": None, "b": None, "z": "z"}

    def test_folded_node_keeps_its_size(self, id_supplier):
        """Test a fold root stays classified as folded after pruning."""
        graph = build(FOLD_DOC, id_supplier)

        pruned_root, _ = build_reroute_table(graph)
        (root,) = pruned_root.children
        child2 = root.children[0]

        assert child2.id == "id_c2"
        assert child2.children == []
        assert child2.dependency_size == 1
        assert child2.is_folded


class TestRerouteLinks:
    """Tests for rewriting edges through a reroute table."""

    def test_endpoints_rewritten(self):
        links = LinkGraph()
        links.add_edge("gc", "c1", EdgeKind.LINK)

        rerouted = reroute_links(links, {"gc": "id_c2", "c1": "c1"})

        assert edge_set(rerouted) == {("id_c2", "c1", EdgeKind.LINK, True)}

    def test_removed_endpoint_drops_edge(self):
        links = LinkGraph()
        links.add_edge("a", "b", EdgeKind.LINK)

        rerouted = reroute_links(links, {"a": "a", "b": None})

        assert len(rerouted) == 0

    def test_self_loop_dropped(self):
        links = LinkGraph()
        links.add_edge("x", "y", EdgeKind.LINK)

        rerouted = reroute_links(links, {"x": "f", "y": "f"})

        assert len(rerouted) == 0

    def test_hierarchy_edges_not_carried(self):
        links = LinkGraph()
        links.add_edge("a", "b", EdgeKind.HIERARCHY)
        links.add_edge("a", "b", EdgeKind.FLOW)

        rerouted = reroute_links(links, {"a": "a", "b": "b"})

        assert edge_set(rerouted) == {("a", "b", EdgeKind.FLOW, True)}

    def test_unknown_ids_pass_through(self):
        """Test references to undeclared ids are kept."""
        links = LinkGraph()
        links.add_edge("a", "ghost", EdgeKind.LINK)

        rerouted = reroute_links(links, {"a": "a"})

        assert edge_set(rerouted) == {("a", "ghost", EdgeKind.LINK, True)}


class TestPruneGraph:
    """Tests for the complete pruning step."""

    def test_fold_example(self, id_supplier):
        """Test edges of a folded grandchild now touch the folded node."""
        graph = compile_outline(FOLD_DOC, id_supplier=id_supplier)

        assert graph.node_ids() == ["root", "id_c2", "c1"]
        assert "gc" not in touched_ids(graph.links)
        assert ("id_c2", "c1", EdgeKind.LINK, True) in edge_set(graph.links)

    def test_hidden_ids_never_referenced(self, id_supplier):
        """Test no remaining edge touches a hidden node or its subtree."""
        graph = compile_outline(
            ["- Root // root", "  - A // a >b", "  - B // b [x]", "    - C // c <a"],
            id_supplier=id_supplier,
        )

        assert graph.node_ids() == ["root", "a"]
        assert touched_ids(graph.links) <= {"root", "a"}
        assert pairs_of_kind(graph.links, EdgeKind.LINK) == set()

    def test_fold_self_loops_removed(self, id_supplier):
        """Test links inside a folded subtree vanish."""
        graph = compile_outline(
            ["- F // f [+]", "  - x // x >y", "  - y // y"], id_supplier=id_supplier
        )

        assert graph.node_ids() == ["f"]
        assert len(graph.links) == 0

    def test_dangling_reference_kept(self, id_supplier):
        graph = compile_outline(["- A // a >ghost"], id_supplier=id_supplier)

        assert ("a", "ghost", EdgeKind.LINK, True) in edge_set(graph.links)

    def test_source_graph_untouched(self, id_supplier):
        """Test pruning builds a new graph."""
        graph = build(FOLD_DOC, id_supplier)

        pruned = prune_graph(graph)

        assert graph.node_ids() == ["root", "id_c2", "gc", "c1"]
        assert pruned.node_ids() == ["root", "id_c2", "c1"]
        assert list(pruned.fold_ids) == ["id_c2"]

    def test_idempotent_without_markers(self, id_supplier):
        """Test pruning a marker-free outline changes nothing."""
        lines = [
            "- Root // root",
            "  - S // s >z",
            "    - x // x",
            "    - y // y <root",
            "  > p1 // p1",
            "  > p2 // p2 >x",
            "- Z // z >s",
        ]

        pruned = compile_outline(lines, id_supplier=id_supplier, prune=True)
        unpruned = compile_outline(lines, id_supplier=id_supplier, prune=False)

        assert pruned.node_ids() == unpruned.node_ids()
        assert edge_set(pruned.links) == edge_set(unpruned.links)


def pairs_of_kind(links, kind):
    return {(edge.source, edge.destination) for edge in links.edges(kind)}


class TestRemoveDuplicateEdges:
    """Tests for edge deduplication."""

    def test_counts_removed_records(self):
        """Test both the output and the mirrored input copies are removed."""
        links = LinkGraph()
        links.add_edge("a", "b", EdgeKind.LINK)
        links.add_edge("a", "b", EdgeKind.LINK)

        assert remove_duplicate_edges(links) == 2
        assert len(links.outputs("a")) == 1
        assert len(links.inputs("b")) == 1

    def test_different_kinds_are_not_duplicates(self):
        links = LinkGraph()
        links.add_edge("a", "b", EdgeKind.LINK)
        links.add_edge("a", "b", EdgeKind.FLOW)

        assert remove_duplicate_edges(links) == 0

    def test_fixed_point(self):
        """Test normalizing twice equals normalizing once."""
        links = LinkGraph()
        for source, destination in [("a", "b"), ("a", "b"), ("b", "a"), ("c", "a")]:
            links.add_edge(source, destination, EdgeKind.LINK)

        normalize_links(links)
        once = edge_set(links)
        normalize_links(links)

        assert edge_set(links) == once
        assert remove_duplicate_edges(links) == 0


class TestMergeBidirectionalEdges:
    """Tests for merging opposite edge pairs."""

    def test_pair_becomes_single_renderable_bilink(self):
        links = LinkGraph()
        links.add_edge("a", "b", EdgeKind.LINK)
        links.add_edge("b", "a", EdgeKind.LINK)

        assert merge_bidirectional_edges(links) == 1

        renderable = [edge for edge in links.edges() if edge.must_render]
        assert [(e.source, e.destination, e.kind) for e in renderable] == [
            ("a", "b", EdgeKind.BILINK)
        ]
        assert all(edge.kind is EdgeKind.BILINK for edge in links.inputs("a"))
        assert all(edge.kind is EdgeKind.BILINK for edge in links.inputs("b"))

    def test_mixed_kinds_not_merged(self):
        links = LinkGraph()
        links.add_edge("a", "b", EdgeKind.FLOW)
        links.add_edge("b", "a", EdgeKind.LINK)

        assert merge_bidirectional_edges(links) == 0
        assert {edge.kind for edge in links.edges()} == {EdgeKind.FLOW, EdgeKind.LINK}

    def test_mutual_links_in_outline(self, id_supplier):
        """Test two bullets linking to each other render one double edge."""
        for lines in (["- A // a >b <b"], ["- A // a >b", "- B // b >a"]):
            graph = compile_outline(lines, id_supplier=id_supplier)

            between = [
                edge
                for edge in graph.links.edges()
                if {edge.source, edge.destination} == {"a", "b"}
                and edge.kind is not EdgeKind.HIERARCHY
            ]
            renderable = [edge for edge in between if edge.must_render]

            assert len(renderable) == 1
            assert renderable[0].kind is EdgeKind.BILINK
            assert all(edge.kind is EdgeKind.BILINK for edge in between)
