"""Graphviz DOT output for compiled outline graphs.

The file is laid out in blocks: a ``node [...]`` or ``edge [...]`` default
statement followed by the nodes or edges it applies to, one block per node
type and per edge kind. Labels are attached last, in nested ``cluster``
subgraphs mirroring the outline hierarchy.
"""

import math
import re
from typing import Iterator, Optional

import structlog

from bullet_outline.graph import EdgeKind, NodeType, ParsedGraph, TreeNode
from bulletgraph.models.config import RenderConfig

logger = structlog.get_logger()

TAB = "\t"

# Larger values keep font growth closer to linear
FONT_CURVE_FACTOR = 50
BASE_FONT_SIZE = 14

HIGHLIGHT_ATTRIBUTES = 'style="rounded,filled", fillcolor="#ddcc77", fontcolor=grey10'

NODE_STYLES = [
    (NodeType.SUBGRAPH, "subgraph data", "color=grey30, fontcolor=grey80, fontsize=14, shape=plain"),
    (NodeType.SUBGRAPH_PROCESS, "subgraph process", 'color=grey30, fontcolor="#aaaadd", fontsize=14, shape=plain'),
    (NodeType.DATA, "data", "color=grey20, fontcolor=grey60, fontsize=14, style=solid, shape=box"),
    (NodeType.PROCESS, "process", 'color=grey30, fontcolor="#8888bb", fontsize=14, style=rounded, shape=box'),
    (NodeType.FOLDED, "folded data", "color=grey40, fontcolor=grey70, fontsize=14, style=bold, shape=box3d"),
    (NodeType.FOLDED_PROCESS, "folded process", 'color=grey40, fontcolor="#aaaadd", fontsize=14, style="rounded,bold", shape=box'),
]

EDGE_STYLES = [
    (EdgeKind.FLOW, "flow", "color=grey50, style=solid, dir=forward"),
    (EdgeKind.HIERARCHY, "hierarchy", "color=grey20, style=invis, arrowtail=none, arrowhead=none"),
    (EdgeKind.LINK, "link", 'color="#aa5555", style=solid, dir=forward, arrowhead=normal'),
    (EdgeKind.BILINK, "bidirectional link", 'color="#aa5555", style=solid, dir=both, arrowtail=normal, arrowhead=normal'),
]

UNDECLARED_STYLE = 'color="#aa3333", fontcolor=grey10, style="rounded,filled", shape=box'

_PLAIN_ID = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def escape_label(text: str) -> str:
    """Escape text for a double-quoted DOT string."""
    return text.replace("\\", "\\\\").replace('"', '\\"')


def word_wrap(text: str, max_chars_on_line: int = 25) -> str:
    """Turn a label into DOT string content with line breaks.

    The label is cut into roughly equal lines; a break is only placed after
    a space, tab, dash or slash. Backslashes and quotes of the label are
    escaped, so the only escapes Graphviz sees are the inserted breaks.

    Args:
        text: Label text
        max_chars_on_line: Target line length

    Returns:
        Label with ``\\n`` escapes

    Example:
        >>> word_wrap("Collect the measurements from every station", 25)
        'Collect the measurements \\\\nfrom every station'
    """
    text = text.strip()

    line_count = math.ceil(len(text) / max_chars_on_line)
    if line_count <= 1:
        return escape_label(text)
    cut_step = round(len(text) / line_count)

    wrapped = []
    line_break = 1
    for position, char in enumerate(text):
        wrapped.append(escape_label(char))
        if char in " \t-\\/" and position >= line_break * cut_step:
            wrapped.append("\\n")
            line_break += 1

    return "".join(wrapped)


def font_size(dependency_size: int) -> int:
    """Font size growing with the number of descendants, damped by atan."""
    return round(BASE_FONT_SIZE + math.atan(dependency_size / FONT_CURVE_FACTOR) * FONT_CURVE_FACTOR)


def quote_id(node_id: str) -> str:
    """Quote an id unless it is a plain DOT identifier."""
    if _PLAIN_ID.match(node_id):
        return node_id
    return f'"{escape_label(node_id)}"'


def render_dot(graph: ParsedGraph, config: Optional[RenderConfig] = None) -> str:
    """Render a compiled graph as a DOT digraph.

    Only edges with ``must_render`` set are written, so a merged
    bidirectional pair is drawn once.

    Args:
        graph: Compiled (usually pruned) graph
        config: Rendering settings (defaults when omitted)

    Returns:
        DOT source text
    """
    if config is None:
        config = RenderConfig()

    indent = TAB
    out = ["digraph G {", ""]

    out.append(f"{indent}splines = {config.splines}")
    out.append("")

    font = quote_id(config.font_name)
    out.append(f"{indent}// High level default styles.")
    out.append(f"{indent}graph [bgcolor=grey10, fontcolor=grey50, fontname={font}]")
    out.append(f"{indent}edge [fontname={font}]")
    out.append(f"{indent}node [fontname={font}]")
    out.append("")

    for node_type, name, style in NODE_STYLES:
        out.append(f"{indent}// Node style for {name} nodes.")
        out.append(f"{indent}node [{style}]")
        out.extend(_node_lines(graph.root, node_type, indent, config))
        out.append("")

    undeclared = _undeclared_ids(graph)
    out.append(f"{indent}// Style for undeclared nodes (referenced but never declared).")
    out.append(f"{indent}node [{UNDECLARED_STYLE}]")
    out.extend(f"{indent}{quote_id(node_id)}" for node_id in undeclared)
    out.append("")

    for kind, name, style in EDGE_STYLES:
        out.append(f"{indent}// Edge style for {name} edges.")
        out.append(f"{indent}edge [{style}]")
        out.extend(
            f"{indent}{quote_id(edge.source)} -> {quote_id(edge.destination)}"
            for edge in graph.links.edges(kind)
            if edge.must_render
        )
        out.append("")

    out.append(f"{indent}// Subgraph node hierarchy.")
    out.append(f"{indent}subgraph clusterRoot {{")
    out.extend(_hierarchy_lines(graph.root.children, indent + TAB, config))
    out.append(f"{indent}}}")
    out.append("}")

    logger.info(
        "dot_rendered",
        nodes=sum(1 for _ in graph.nodes()),
        edges=sum(1 for edge in graph.links.edges() if edge.must_render),
        undeclared=len(undeclared),
    )
    return "\n".join(out) + "\n"


def _node_lines(
    root: TreeNode, node_type: NodeType, indent: str, config: RenderConfig
) -> Iterator[str]:
    for node in root.walk():
        if node.node_type is not node_type:
            continue

        attributes = []
        if config.scale_font_by_size and node.dependency_size:
            attributes.append(f"fontsize={font_size(node.dependency_size)}")
        if node.is_highlight:
            attributes.append(HIGHLIGHT_ATTRIBUTES)

        line = indent + quote_id(node.id)
        if attributes:
            line += f" [{', '.join(attributes)}]"
        yield f"{line} // {node.label}"


def _undeclared_ids(graph: ParsedGraph) -> list[str]:
    declared = set(graph.node_ids())
    undeclared = []
    for edge in graph.links.edges():
        if not edge.must_render:
            continue
        for node_id in (edge.source, edge.destination):
            if node_id not in declared and node_id not in undeclared:
                undeclared.append(node_id)
    return undeclared


def _hierarchy_lines(children: list[TreeNode], indent: str, config: RenderConfig) -> Iterator[str]:
    for node in children:
        label = word_wrap(node.label, config.wrap_width)
        if node.children:
            style = "style = rounded" if node.is_process else "style = solid"
            yield ""
            yield f"{indent}subgraph {quote_id('cluster_' + node.id)} {{"
            yield f"{indent}{TAB}color = gray30; {style}"
            yield f'{indent}{TAB}{quote_id(node.id)} [label="{label}"] // subgraph name'
            yield from _hierarchy_lines(node.children, indent + TAB, config)
            yield f"{indent}}}"
        else:
            yield f'{indent}{quote_id(node.id)} [label="{label}"]'
