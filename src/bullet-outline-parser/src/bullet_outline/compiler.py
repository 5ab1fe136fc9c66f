"""End-to-end compilation of outline text into a render-ready graph."""

from typing import Iterable, Optional

import structlog

from bullet_outline.edges import synthesize_edges
from bullet_outline.graph import ParsedGraph, build_graph, compute_dependency_size
from bullet_outline.ids import IdSupplierProtocol
from bullet_outline.line import DEFAULT_INDENT_SIZE, LineRecord, parse_line
from bullet_outline.pruning import normalize_links, prune_graph

logger = structlog.get_logger()


def parse_lines(
    lines: Iterable[str],
    *,
    id_supplier: Optional[IdSupplierProtocol] = None,
    indent_size: int = DEFAULT_INDENT_SIZE,
) -> list[LineRecord]:
    """Parse every line of a document, keeping blank and comment records."""
    return [
        parse_line(line, index, id_supplier=id_supplier, indent_size=indent_size)
        for index, line in enumerate(lines)
    ]


def compile_records(records: Iterable[LineRecord], *, prune: bool = True) -> ParsedGraph:
    """Build, prune and normalize the graph of already parsed lines.

    Args:
        records: Parsed lines in document order
        prune: Apply fold and hide markers

    Returns:
        Final graph

    Raises:
        OutlineStructureError: On bad indentation
    """
    graph = build_graph(records)
    compute_dependency_size(graph.root)
    synthesize_edges(graph)

    if prune:
        graph = prune_graph(graph)
        synthesize_edges(graph)

    normalize_links(graph.links)

    logger.info(
        "outline_compiled",
        nodes=sum(1 for _ in graph.nodes()),
        edges=len(graph.links),
        pruned=prune,
    )
    return graph


def compile_outline(
    lines: Iterable[str],
    *,
    id_supplier: Optional[IdSupplierProtocol] = None,
    indent_size: int = DEFAULT_INDENT_SIZE,
    prune: bool = True,
) -> ParsedGraph:
    """Compile raw outline lines into a pruned, normalized graph.

    Example:
        >>> graph = compile_outline(["- Root", "  - Child // [x]"])
        >>> [node.label for node in graph.nodes()]
        ['Root']
    """
    records = parse_lines(lines, id_supplier=id_supplier, indent_size=indent_size)
    return compile_records(records, prune=prune)
