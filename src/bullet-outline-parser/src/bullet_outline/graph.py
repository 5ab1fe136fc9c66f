"""Hierarchy tree and link graph built from parsed outline lines.

The builder turns an ordered sequence of LineRecords into:

- a tree of TreeNodes (nesting from indentation), under a synthetic root
- a LinkGraph holding explicit links (and, later, synthesized edges)
- the sets of node ids marked fold and hide
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Iterator, Optional

import structlog

from bullet_outline.exceptions import OutlineStructureError
from bullet_outline.line import BulletKind, LineRecord, Visibility

logger = structlog.get_logger()


class EdgeKind(Enum):
    """Kind of a graph edge."""

    HIERARCHY = "hierarchy"
    FLOW = "flow"
    LINK = "link"
    BILINK = "bilink"


class NodeType(Enum):
    """Rendering classification of a tree node."""

    DATA = "data"
    SUBGRAPH = "subgraph"
    FOLDED = "folded"
    PROCESS = "process"
    SUBGRAPH_PROCESS = "subgraph_process"
    FOLDED_PROCESS = "folded_process"


@dataclass
class Edge:
    """Directed edge between two node ids.

    Attributes:
        source: Id the edge starts from
        destination: Id the edge points to
        kind: Edge kind
        must_render: False when a merged bidirectional counterpart is drawn instead
    """

    source: str
    destination: str
    kind: EdgeKind
    must_render: bool = True

    def same_as(self, other: "Edge") -> bool:
        """True if both edges join the same ids with the same kind."""
        return (
            self.source == other.source
            and self.destination == other.destination
            and self.kind == other.kind
        )


@dataclass
class NodeLinks:
    """Edges attached to one node.

    Input edges are stored from the receiving node's point of view: their
    ``source`` is the node owning the list and their ``destination`` is the
    node the edge comes from. An edge A -> B therefore appears as
    ``Edge(A, B)`` in A's outputs and as ``Edge(B, A)`` in B's inputs.
    """

    outputs: list[Edge] = field(default_factory=list)
    inputs: list[Edge] = field(default_factory=list)


class LinkGraph:
    """Mapping from node id to its outgoing and incoming edges."""

    def __init__(self) -> None:
        self._links: dict[str, NodeLinks] = {}

    def add_edge(self, source: str, destination: str, kind: EdgeKind) -> None:
        """Add an edge, creating entries for unseen ids.

        Edges touching an empty id (the synthetic root) are ignored.
        """
        if not source or not destination:
            return

        self._links.setdefault(source, NodeLinks()).outputs.append(
            Edge(source, destination, kind)
        )
        self._links.setdefault(destination, NodeLinks()).inputs.append(
            Edge(destination, source, kind)
        )

    def node_ids(self) -> list[str]:
        """Ids having at least one edge, in insertion order."""
        return list(self._links)

    def links_of(self, node_id: str) -> NodeLinks:
        """Edges of a node (empty for unknown ids)."""
        return self._links.get(node_id, NodeLinks())

    def outputs(self, node_id: str) -> list[Edge]:
        return self.links_of(node_id).outputs

    def inputs(self, node_id: str) -> list[Edge]:
        return self.links_of(node_id).inputs

    def edges(self, kind: Optional[EdgeKind] = None) -> Iterator[Edge]:
        """Iterate every edge once, in its real direction.

        Args:
            kind: Only yield edges of this kind
        """
        for node_links in self._links.values():
            for edge in node_links.outputs:
                if kind is None or edge.kind == kind:
                    yield edge

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._links

    def __len__(self) -> int:
        return sum(len(node_links.outputs) for node_links in self._links.values())


class IdSet:
    """Insertion-ordered set of node ids."""

    def __init__(self, ids: Iterable[str] = ()) -> None:
        self._ids: dict[str, None] = {}
        for node_id in ids:
            self.add(node_id)

    def add(self, node_id: str) -> None:
        self._ids.setdefault(node_id, None)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._ids

    def __iter__(self) -> Iterator[str]:
        return iter(self._ids)

    def __len__(self) -> int:
        return len(self._ids)

    def __repr__(self) -> str:
        return f"IdSet({list(self._ids)!r})"

    def copy(self) -> "IdSet":
        return IdSet(self._ids)


@dataclass
class TreeNode:
    """Node of the hierarchy tree.

    The synthetic root has an empty id and label. Children are owned by
    exactly one parent.
    """

    bullet_kind: BulletKind = BulletKind.DEFAULT
    label: str = ""
    id: str = ""
    is_highlight: bool = False
    dependency_size: int = 0
    children: list["TreeNode"] = field(default_factory=list)

    @classmethod
    def from_record(cls, record: LineRecord) -> "TreeNode":
        return cls(
            bullet_kind=record.bullet_kind,
            label=record.label,
            id=record.id,
            is_highlight=record.is_highlight,
        )

    def copy_without_children(self) -> "TreeNode":
        return TreeNode(
            bullet_kind=self.bullet_kind,
            label=self.label,
            id=self.id,
            is_highlight=self.is_highlight,
            dependency_size=self.dependency_size,
        )

    @property
    def is_leaf(self) -> bool:
        """No descendants at all, visible or not."""
        return self.dependency_size == 0

    @property
    def is_subgraph(self) -> bool:
        """Has visible children."""
        return len(self.children) > 0

    @property
    def is_folded(self) -> bool:
        """Has descendants, none of them visible."""
        return not self.is_leaf and not self.is_subgraph

    @property
    def is_process(self) -> bool:
        return self.bullet_kind is BulletKind.FLOW

    @property
    def is_flow_break(self) -> bool:
        return self.bullet_kind is BulletKind.FLOW_BREAK

    @property
    def node_type(self) -> NodeType:
        """Classification used by renderers to pick a style."""
        if self.bullet_kind is BulletKind.DEFAULT:
            if self.is_subgraph:
                return NodeType.SUBGRAPH
            if self.is_folded:
                return NodeType.FOLDED
            return NodeType.DATA

        if self.is_subgraph:
            return NodeType.SUBGRAPH_PROCESS
        if self.is_folded:
            return NodeType.FOLDED_PROCESS
        return NodeType.PROCESS

    def walk(self) -> Iterator["TreeNode"]:
        """Iterate descendants in pre-order (the node itself excluded)."""
        for child in self.children:
            yield child
            yield from child.walk()


@dataclass
class ParsedGraph:
    """Tree, link graph and visibility markers of one compiled outline.

    Attributes:
        root: Synthetic root node
        links: Link graph
        fold_ids: Ids of bullets marked fold
        hide_ids: Ids of bullets marked hide
        duplicate_ids: Ids declared explicitly by more than one bullet
    """

    root: TreeNode = field(default_factory=TreeNode)
    links: LinkGraph = field(default_factory=LinkGraph)
    fold_ids: IdSet = field(default_factory=IdSet)
    hide_ids: IdSet = field(default_factory=IdSet)
    duplicate_ids: IdSet = field(default_factory=IdSet)

    def nodes(self) -> Iterator[TreeNode]:
        """All tree nodes in pre-order, root excluded."""
        return self.root.walk()

    def node_ids(self) -> list[str]:
        return [node.id for node in self.nodes()]

    def find_node(self, node_id: str) -> Optional[TreeNode]:
        """Find a node by id.

        When several bullets declare the same id, the last one in document
        order wins.
        """
        found = None
        for node in self.nodes():
            if node.id == node_id:
                found = node
        return found


def build_graph(records: Iterable[LineRecord]) -> ParsedGraph:
    """Assemble parsed lines into a hierarchy tree and a link graph.

    Records must come in document order. Comments, scripts and blank lines
    are skipped. Dependency sizes are not computed here (see
    compute_dependency_size).

    Args:
        records: Parsed lines in document order

    Returns:
        New ParsedGraph

    Raises:
        OutlineStructureError: If a line is indented more than one level
            deeper than the previous bullet
    """
    graph = ParsedGraph()

    # parents[d] is the node receiving children at depth d
    parents: list[TreeNode] = [graph.root]
    explicit_ids: set[str] = set()

    for record in records:
        if not record.is_valid:
            continue

        depth = record.depth
        max_depth = len(parents) - 1
        if depth > max_depth:
            logger.warning(
                "outline_bad_indentation",
                line=record.line_index + 1,
                depth=depth,
                max_depth=max_depth,
            )
            raise OutlineStructureError(record.line_index, depth, max_depth)

        node = TreeNode.from_record(record)
        del parents[depth + 1:]
        parents[depth].children.append(node)
        parents.append(node)

        if record.explicit_id:
            if record.explicit_id in explicit_ids:
                graph.duplicate_ids.add(record.explicit_id)
                logger.warning(
                    "duplicate_id", node_id=record.explicit_id, line=record.line_index + 1
                )
            explicit_ids.add(record.explicit_id)

        # Links to the bullet itself carry no information
        for source_id in record.ids_in:
            if source_id != node.id:
                graph.links.add_edge(source_id, node.id, EdgeKind.LINK)
        for destination_id in record.ids_out:
            if destination_id != node.id:
                graph.links.add_edge(node.id, destination_id, EdgeKind.LINK)

        if record.visibility is Visibility.FOLD:
            graph.fold_ids.add(node.id)
        elif record.visibility is Visibility.HIDE:
            graph.hide_ids.add(node.id)

    logger.debug(
        "outline_built",
        links=len(graph.links),
        folds=len(graph.fold_ids),
        hides=len(graph.hide_ids),
    )
    return graph


def compute_dependency_size(node: TreeNode) -> int:
    """Store on every node the number of its descendants.

    Args:
        node: Subtree root

    Returns:
        Dependency size of ``node``
    """
    node.dependency_size = sum(
        compute_dependency_size(child) + 1 for child in node.children
    )
    return node.dependency_size
