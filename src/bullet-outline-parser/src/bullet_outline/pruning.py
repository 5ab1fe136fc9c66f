"""Fold/hide pruning and edge normalization.

Pruning walks the tree top-down carrying the visibility state inherited
from the ancestors, and produces a pruned tree plus a reroute table telling,
for every original node id, which surviving id now stands for it (or that
it is gone). Edges are then rewritten through the table:

- a hidden node disappears together with all edges touching it
- descendants of a folded node disappear and their edges move to the fold
  root
"""

from dataclasses import dataclass
from typing import Optional

import structlog

from bullet_outline.graph import Edge, EdgeKind, IdSet, LinkGraph, ParsedGraph, TreeNode

logger = structlog.get_logger()

RerouteTable = dict[str, Optional[str]]


@dataclass(frozen=True)
class VisibilityState:
    """Visibility inherited along one root-to-node path.

    Attributes:
        floor_reached: A folded ancestor (or the node itself) was entered
        floor_node_id: Id of the node where folding began
        hidden: A hidden ancestor (or the node itself) was entered
    """

    floor_reached: bool = False
    floor_node_id: str = ""
    hidden: bool = False

    def enter(self, node_id: str, fold_ids: IdSet, hide_ids: IdSet) -> "VisibilityState":
        """State handed down to the children of ``node_id``."""
        floor_reached = self.floor_reached or node_id in fold_ids
        if floor_reached and not self.floor_reached:
            floor_node_id = node_id
        else:
            floor_node_id = self.floor_node_id

        return VisibilityState(
            floor_reached=floor_reached,
            floor_node_id=floor_node_id,
            hidden=self.hidden or node_id in hide_ids,
        )


def build_reroute_table(graph: ParsedGraph) -> tuple[TreeNode, RerouteTable]:
    """Prune the tree of a graph and record where each node id went.

    Args:
        graph: Graph with dependency sizes computed

    Returns:
        Tuple of (pruned synthetic root, reroute table). The table maps each
        node id to itself when the node survives, to its fold root when it
        was folded away, and to None when it was hidden.
    """
    pruned_root = TreeNode()
    table: RerouteTable = {}
    _reroute_nodes(
        graph.root, pruned_root, VisibilityState(), graph.fold_ids, graph.hide_ids, table
    )
    return pruned_root, table


def _reroute_nodes(
    node_in: TreeNode,
    node_out: Optional[TreeNode],
    state: VisibilityState,
    fold_ids: IdSet,
    hide_ids: IdSet,
    table: RerouteTable,
) -> None:
    for child in node_in.children:
        next_state = state.enter(child.id, fold_ids, hide_ids)
        child_out = None

        if next_state.hidden:
            table[child.id] = None
        elif state.floor_reached:
            table[child.id] = state.floor_node_id
        else:
            # A surviving child always has a surviving parent
            table[child.id] = child.id
            child_out = child.copy_without_children()
            node_out.children.append(child_out)

        _reroute_nodes(child, child_out, next_state, fold_ids, hide_ids, table)


def reroute_links(links: LinkGraph, table: RerouteTable) -> LinkGraph:
    """Rewrite edges through a reroute table.

    Hierarchy edges are skipped (they are regenerated on the pruned tree).
    Edges losing an endpoint or collapsing into a self-loop are dropped.
    Ids absent from the table (references to ids no bullet declares) are
    kept as they are.

    Returns:
        New LinkGraph
    """
    rerouted = LinkGraph()
    for edge in links.edges():
        if edge.kind is EdgeKind.HIERARCHY:
            continue

        source = table.get(edge.source, edge.source)
        destination = table.get(edge.destination, edge.destination)
        if source is None or destination is None:
            continue
        if source == destination:
            continue

        rerouted.add_edge(source, destination, edge.kind)

    return rerouted


def _remove_duplicates(edges: list[Edge]) -> int:
    kept: list[Edge] = []
    for edge in edges:
        if not any(edge.same_as(other) for other in kept):
            kept.append(edge)
    removed = len(edges) - len(kept)
    edges[:] = kept
    return removed


def remove_duplicate_edges(links: LinkGraph) -> int:
    """Drop repeated edges from every input and output list, in place.

    The first occurrence of an edge in a list is kept.

    Returns:
        Number of edge records removed
    """
    removed = 0
    for node_id in links.node_ids():
        node_links = links.links_of(node_id)
        removed += _remove_duplicates(node_links.inputs)
        removed += _remove_duplicates(node_links.outputs)
    return removed


def merge_bidirectional_edges(links: LinkGraph) -> int:
    """Turn pairs of opposite edges into one bidirectional edge, in place.

    For A -> B and B -> A of the same kind, all four records become BILINK
    and the output copy held by B is marked ``must_render = False``, so a
    renderer draws a single double-headed edge from A.

    Returns:
        Number of merged pairs
    """
    merged = 0
    for node_id in links.node_ids():
        node_links = links.links_of(node_id)
        for edge in node_links.outputs:
            if not edge.must_render:
                continue

            mirror = next((other for other in node_links.inputs if other.same_as(edge)), None)
            if mirror is None:
                continue

            kind = edge.kind
            edge.kind = EdgeKind.BILINK
            mirror.kind = EdgeKind.BILINK

            other_links = links.links_of(edge.destination)
            for reverse in other_links.outputs:
                if reverse.destination == node_id and reverse.kind is kind:
                    reverse.kind = EdgeKind.BILINK
                    reverse.must_render = False
            for reverse_mirror in other_links.inputs:
                if reverse_mirror.destination == node_id and reverse_mirror.kind is kind:
                    reverse_mirror.kind = EdgeKind.BILINK

            if kind is not EdgeKind.BILINK:
                merged += 1

    return merged


def normalize_links(links: LinkGraph) -> None:
    """Deduplicate edges, then merge opposite pairs into bidirectional edges."""
    removed = remove_duplicate_edges(links)
    merged = merge_bidirectional_edges(links)
    logger.debug("links_normalized", duplicates_removed=removed, pairs_merged=merged)


def prune_graph(graph: ParsedGraph) -> ParsedGraph:
    """Apply fold and hide markers, producing a new graph.

    The returned graph holds the pruned tree and the rerouted links, without
    hierarchy or flow edges for the pruned tree (see
    bullet_outline.edges.synthesize_edges) and without normalization.

    Args:
        graph: Graph with dependency sizes computed

    Returns:
        New ParsedGraph; ``graph`` is left untouched
    """
    pruned_root, table = build_reroute_table(graph)
    pruned = ParsedGraph(
        root=pruned_root,
        links=reroute_links(graph.links, table),
        fold_ids=graph.fold_ids.copy(),
        hide_ids=graph.hide_ids.copy(),
        duplicate_ids=graph.duplicate_ids.copy(),
    )

    logger.debug(
        "graph_pruned",
        rerouted=sum(1 for node_id, target in table.items() if target not in (node_id, None)),
        removed=sum(1 for target in table.values() if target is None),
    )
    return pruned
