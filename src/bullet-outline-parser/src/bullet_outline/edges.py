"""Implicit edges derived from the shape of the hierarchy tree.

Two kinds of edges are synthesized:

- hierarchy edges, connecting parents to children (leaf siblings are
  chained instead of all hanging off the parent)
- flow edges, chaining consecutive process bullets in document order,
  across subtree boundaries

Both passes run on the full tree and again on the pruned tree, since
pruning changes which nodes are leaves and which are subgraphs.
"""

from bullet_outline.graph import EdgeKind, LinkGraph, ParsedGraph, TreeNode
from bullet_outline.line import BulletKind

# Bullet kinds whose children may move; flow children keep their position
_REORDERED_KINDS = (BulletKind.DEFAULT, BulletKind.FLOW_BREAK)


def reorder_children(node: TreeNode) -> None:
    """Move subgraph children before leaf children, in place.

    Only children of the same bullet kind trade places, and the sort is
    stable. Flow children never move.
    """
    children = node.children
    for kind in _REORDERED_KINDS:
        positions = [i for i, child in enumerate(children) if child.bullet_kind is kind]
        ordered = sorted(
            (children[i] for i in positions), key=lambda child: not child.is_subgraph
        )
        for position, child in zip(positions, ordered):
            children[position] = child


def create_hierarchy_edges(node: TreeNode, links: LinkGraph) -> None:
    """Add hierarchy edges for a subtree.

    Per parent, children in order:

    - flow-break children get no edge
    - the first process child gets an edge from a non-process parent,
      later process children get none (flow edges connect them)
    - subgraph children always get an edge from the parent
    - the first leaf child gets an edge from the parent, each later leaf
      an edge from the previous leaf

    Every child is recursed into.
    """
    reorder_children(node)

    flow_child_linked = False
    last_leaf = None
    for child in node.children:
        if child.is_flow_break:
            pass
        elif child.is_process:
            if not node.is_process and not flow_child_linked:
                links.add_edge(node.id, child.id, EdgeKind.HIERARCHY)
                flow_child_linked = True
        elif child.is_subgraph:
            links.add_edge(node.id, child.id, EdgeKind.HIERARCHY)
        else:
            source = last_leaf if last_leaf is not None else node
            links.add_edge(source.id, child.id, EdgeKind.HIERARCHY)
            last_leaf = child

        create_hierarchy_edges(child, links)


def create_flow_edges(root: TreeNode, links: LinkGraph) -> None:
    """Chain process nodes visited consecutively in pre-order.

    A flow edge goes from the previously visited node to the current one
    when the current node is a process and the previous one is a process or
    a flow break. Flow-break nodes never receive a flow edge.
    """
    previous = None
    for node in root.walk():
        if (
            previous is not None
            and node.is_process
            and (previous.is_process or previous.is_flow_break)
        ):
            links.add_edge(previous.id, node.id, EdgeKind.FLOW)
        previous = node


def synthesize_edges(graph: ParsedGraph) -> None:
    """Reorder children and add hierarchy and flow edges to a graph."""
    create_hierarchy_edges(graph.root, graph.links)
    create_flow_edges(graph.root, graph.links)
