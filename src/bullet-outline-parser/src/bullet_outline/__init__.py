"""Bullet outline compiler - Turn indented bullet outlines into graphs.

This package parses outline documents where each line is a bullet, nesting
comes from indentation and a metadata section after ``//`` carries ids,
links and fold/hide markers. It builds a hierarchy tree and a link graph,
prunes folded and hidden subtrees while rerouting their edges, and
normalizes the resulting edge set for a diagram renderer.

Key features:
- Line grammar with bullet kinds (``-`` data, ``>`` process, ``<`` flow break)
- Hierarchy and flow edges synthesized from the tree shape
- Fold/hide pruning with edge rerouting (no dangling edges, no self-loops)
- Edge deduplication and bidirectional link merging

Example:
    >>> from bullet_outline import compile_outline
    >>> graph = compile_outline(["- Root // root", "  - Child // child >root"])
    >>> [(e.source, e.destination, e.kind.value) for e in graph.links.edges()]
    [('child', 'root', 'link'), ('root', 'child', 'hierarchy')]
"""

from bullet_outline.compiler import compile_outline, compile_records, parse_lines
from bullet_outline.edges import synthesize_edges
from bullet_outline.exceptions import OutlineError, OutlineStructureError
from bullet_outline.graph import (
    Edge,
    EdgeKind,
    IdSet,
    LinkGraph,
    NodeType,
    ParsedGraph,
    TreeNode,
    build_graph,
    compute_dependency_size,
)
from bullet_outline.ids import IdSupplier
from bullet_outline.line import (
    BulletKind,
    LineRecord,
    Visibility,
    parse_line,
    render_component_section,
    rewrite_line,
)
from bullet_outline.pruning import normalize_links, prune_graph

__version__ = "0.1.0"

__all__ = [
    "BulletKind",
    "Edge",
    "EdgeKind",
    "IdSet",
    "IdSupplier",
    "LineRecord",
    "LinkGraph",
    "NodeType",
    "OutlineError",
    "OutlineStructureError",
    "ParsedGraph",
    "TreeNode",
    "Visibility",
    "build_graph",
    "compile_outline",
    "compile_records",
    "compute_dependency_size",
    "normalize_links",
    "parse_line",
    "parse_lines",
    "prune_graph",
    "render_component_section",
    "rewrite_line",
    "synthesize_edges",
]
