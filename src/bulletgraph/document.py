"""Editable outline document.

OutlineDocument keeps the original lines of an outline file next to their
parsed records. Visibility, highlight and link edits change the records
and mark their lines dirty; render() rewrites only those lines so the rest
of the file stays byte for byte as the author wrote it.
"""

import re
from collections import Counter
from dataclasses import dataclass
from typing import Iterator, Optional

import structlog

from bullet_outline import compile_records
from bullet_outline.graph import ParsedGraph
from bullet_outline.ids import IdSupplier, IdSupplierProtocol
from bullet_outline.line import (
    DEFAULT_INDENT_SIZE,
    SCRIPT_TOKEN,
    LineRecord,
    Visibility,
    parse_line,
    render_component_section,
    rewrite_line,
)
from bulletgraph.services.exceptions import DocumentError

logger = structlog.get_logger()

_SCRIPT_WORD_SPLIT = re.compile(r"[ ,]+")


@dataclass
class DocumentLine:
    """A raw document line kept aside from the graph (script lines)."""

    index: int
    text: str


class OutlineDocument:
    """Parsed outline with in-place editing of bullet metadata.

    Attributes:
        lines: Original document lines
        records: Parsed records of every non-blank, non-script line, in order
        script_lines: Trimmed script lines with their line index
    """

    def __init__(
        self,
        lines: list[str],
        *,
        id_supplier: Optional[IdSupplierProtocol] = None,
        indent_size: int = DEFAULT_INDENT_SIZE,
        trailing_newline: bool = False,
    ):
        self.lines = lines
        self.id_supplier = id_supplier if id_supplier is not None else IdSupplier()
        self.indent_size = indent_size
        self.trailing_newline = trailing_newline
        self.records: list[LineRecord] = []
        self.script_lines: list[DocumentLine] = []
        self._positions: dict[int, int] = {}
        self._dirty: set[int] = set()

        for index, line in enumerate(lines):
            trimmed = line.strip()
            if not trimmed:
                continue
            if trimmed.startswith(SCRIPT_TOKEN):
                self.script_lines.append(DocumentLine(index, trimmed))
                continue

            record = parse_line(
                line, index, id_supplier=self.id_supplier, indent_size=indent_size
            )
            self._positions[index] = len(self.records)
            self.records.append(record)

    @classmethod
    def from_text(
        cls,
        text: str,
        *,
        id_supplier: Optional[IdSupplierProtocol] = None,
        indent_size: int = DEFAULT_INDENT_SIZE,
    ) -> "OutlineDocument":
        """Parse a whole outline file.

        Example:
            >>> doc = OutlineDocument.from_text("- A // a\\n  - B\\n")
            >>> [record.label for record in doc.bullets()]
            ['A', 'B']
        """
        return cls(
            text.splitlines(),
            id_supplier=id_supplier,
            indent_size=indent_size,
            trailing_newline=text.endswith("\n"),
        )

    # Lookups

    def bullets(self) -> Iterator[LineRecord]:
        """Valid bullet records in document order."""
        return (record for record in self.records if record.is_valid)

    def record_at(self, line_index: int) -> Optional[LineRecord]:
        """Record of a 0-based line, None for blank or script lines."""
        position = self._positions.get(line_index)
        return self.records[position] if position is not None else None

    def bullet_at(self, line_number: int) -> LineRecord:
        """Bullet on a 1-based line number.

        Raises:
            DocumentError: If the line does not exist or holds no bullet
        """
        record = self.record_at(line_number - 1)
        if record is None or not record.is_valid:
            raise DocumentError(line_number)
        return record

    def find_by_id(self, node_id: str) -> Optional[LineRecord]:
        """Bullet declaring an id; the last one wins for duplicated ids."""
        found = None
        for record in self.bullets():
            if record.id == node_id:
                found = record
        return found

    def is_parent(self, record: LineRecord) -> bool:
        """True if the next bullet is indented deeper."""
        for following in self.records[self._position(record) + 1:]:
            if following.is_valid:
                return following.depth > record.depth
        return False

    def parent_of(self, record: LineRecord) -> Optional[LineRecord]:
        for previous in reversed(self.records[: self._position(record)]):
            if previous.is_valid and previous.depth < record.depth:
                return previous
        return None

    def ancestors_of(self, record: LineRecord) -> list[LineRecord]:
        """Parents of a bullet, closest first."""
        ancestors = []
        parent = self.parent_of(record)
        while parent is not None:
            ancestors.append(parent)
            parent = self.parent_of(parent)
        return ancestors

    def descendants_of(self, record: LineRecord) -> list[LineRecord]:
        descendants = []
        for following in self.records[self._position(record) + 1:]:
            if not following.is_valid:
                continue
            if following.depth <= record.depth:
                break
            descendants.append(following)
        return descendants

    def connections_of(self, record: LineRecord) -> list[LineRecord]:
        """Bullets linked to or from a bullet, without repeats.

        Covers the ids the bullet references and the bullets referencing
        the bullet's own id.
        """
        connections: list[LineRecord] = []

        def add(other: Optional[LineRecord]) -> None:
            if other is not None and other is not record and other not in connections:
                connections.append(other)

        for node_id in record.ids_in + record.ids_out:
            add(self.find_by_id(node_id))

        for other in self.bullets():
            if record.id in other.ids_in or record.id in other.ids_out:
                add(other)

        return connections

    def _position(self, record: LineRecord) -> int:
        return self._positions[record.line_index]

    # Visibility editing

    def mark_dirty(self, record: LineRecord) -> None:
        self._dirty.add(record.line_index)

    @property
    def is_dirty(self) -> bool:
        return bool(self._dirty)

    def set_visibility(
        self, record: LineRecord, visibility: Visibility, skip_hidden: bool = False
    ) -> None:
        """Change the visibility marker of a bullet.

        Args:
            record: Bullet to edit
            visibility: New marker
            skip_hidden: Leave hidden bullets alone (they must be unhidden
                explicitly)
        """
        if skip_hidden and record.visibility is Visibility.HIDE:
            return

        if visibility is Visibility.HIDE:
            record.is_highlight = False

        if visibility is Visibility.FOLD and not self.is_parent(record):
            visibility = Visibility.NORMAL

        record.visibility = visibility
        self.mark_dirty(record)

    def _set_children_visibility(
        self, record: LineRecord, visibility: Visibility, skip_hidden: bool = False
    ) -> None:
        for child in self.descendants_of(record):
            self.set_visibility(child, visibility, skip_hidden)

    def _set_all_visibility(self, visibility: Visibility, skip_hidden: bool = False) -> None:
        for record in list(self.bullets()):
            self.set_visibility(record, visibility, skip_hidden)

    def fold(self, record: LineRecord) -> None:
        self.set_visibility(record, Visibility.FOLD, skip_hidden=True)

    def unfold(self, record: LineRecord) -> None:
        self.set_visibility(record, Visibility.NORMAL, skip_hidden=True)

    def hide(self, record: LineRecord) -> None:
        self.set_visibility(record, Visibility.HIDE)

    def unhide(self, record: LineRecord) -> None:
        self.set_visibility(record, Visibility.NORMAL)

    def fold_children(self, record: LineRecord) -> None:
        self._set_children_visibility(record, Visibility.FOLD, skip_hidden=True)

    def unfold_children(self, record: LineRecord) -> None:
        self._set_children_visibility(record, Visibility.NORMAL, skip_hidden=True)

    def hide_children(self, record: LineRecord) -> None:
        self._set_children_visibility(record, Visibility.HIDE)

    def unhide_children(self, record: LineRecord) -> None:
        """Unhide (and unfold) every descendant, and the bullet itself if hidden."""
        if record.visibility is Visibility.HIDE:
            self.set_visibility(record, Visibility.NORMAL)
        self._set_children_visibility(record, Visibility.NORMAL)

    def fold_all(self) -> None:
        self._set_all_visibility(Visibility.FOLD, skip_hidden=True)

    def unfold_all(self) -> None:
        self._set_all_visibility(Visibility.NORMAL, skip_hidden=True)

    def hide_all(self) -> None:
        self._set_all_visibility(Visibility.HIDE)

    def unhide_all(self) -> None:
        self._set_all_visibility(Visibility.NORMAL)

    def highlight(self, record: LineRecord, toggle: bool = False) -> None:
        record.is_highlight = not record.is_highlight if toggle else True
        self.mark_dirty(record)

    def reveal(self, record: LineRecord, highlight: bool = False) -> None:
        """Make a bullet visible as a folded node.

        Every ancestor is set back to normal, the bullet is folded and its
        descendants are unhidden.
        """
        for ancestor in self.ancestors_of(record):
            self.set_visibility(ancestor, Visibility.NORMAL)

        self.set_visibility(record, Visibility.FOLD)
        self.unhide_children(record)

        if highlight:
            self.highlight(record)

    def connect(self, record: LineRecord, connect_parents: bool = False) -> None:
        """Reveal a bullet together with everything it is linked with.

        Connections of the bullet's descendants are included, and those of
        its ancestors when ``connect_parents`` is set.
        """
        connections = self.connections_of(record)
        for child in self.descendants_of(record):
            connections.extend(self.connections_of(child))
        if connect_parents:
            for ancestor in self.ancestors_of(record):
                connections.extend(self.connections_of(ancestor))

        self.reveal(record)
        revealed = {record.line_index}
        for connection in connections:
            if connection.line_index not in revealed:
                self.reveal(connection)
                revealed.add(connection.line_index)

        self.highlight(record)

    def propagate_visibility(self) -> None:
        """Push fold and hide markers down to descendants.

        Descendants of a hidden bullet become hidden and descendants of a
        folded bullet become fold-hidden. A fold-hidden bullet no longer
        under a fold turns back into a fold root.
        """
        hide_depth = -1
        fold_depth = -1

        for record in self.bullets():
            if record.depth <= hide_depth:
                hide_depth = -1
            if record.depth <= fold_depth:
                fold_depth = -1

            if hide_depth >= 0 and record.depth > hide_depth:
                if record.visibility is not Visibility.HIDE or record.is_highlight:
                    self.set_visibility(record, Visibility.HIDE)
            elif fold_depth >= 0 and record.depth > fold_depth:
                if record.visibility not in (Visibility.FOLD_HIDDEN, Visibility.HIDE):
                    self.set_visibility(record, Visibility.FOLD_HIDDEN, skip_hidden=True)
            elif record.visibility is Visibility.HIDE:
                hide_depth = record.depth
            elif record.visibility is Visibility.FOLD:
                fold_depth = record.depth
            elif record.visibility is Visibility.FOLD_HIDDEN:
                self.set_visibility(record, Visibility.FOLD)
                if self.is_parent(record):
                    fold_depth = record.depth

    # Ids and links

    def used_ids(self) -> set[str]:
        """Every id declared or referenced in the document."""
        ids = set()
        for record in self.bullets():
            if record.explicit_id:
                ids.add(record.explicit_id)
            ids.update(record.ids_in)
            ids.update(record.ids_out)
        return ids

    def materialize_id(self, record: LineRecord) -> str:
        """Give a bullet a permanent id written into the document.

        Bullets with an authored id keep it.

        Returns:
            The bullet's explicit id
        """
        if record.explicit_id:
            return record.explicit_id

        used = self.used_ids()
        node_id = self.id_supplier.compact()
        while node_id in used:
            node_id = self.id_supplier.compact()

        record.explicit_id = node_id
        self.mark_dirty(record)
        logger.info("id_materialized", line=record.line_index + 1, node_id=node_id)
        return node_id

    def link(self, source: LineRecord, target: LineRecord) -> None:
        """Add an outgoing link from one bullet to another."""
        target_id = self.materialize_id(target)
        self.materialize_id(source)

        if target_id not in source.ids_out:
            source.ids_out.append(target_id)
            self.mark_dirty(source)
            logger.info(
                "link_added",
                source_line=source.line_index + 1,
                target_line=target.line_index + 1,
                target_id=target_id,
            )

    def cleanup_ids(self) -> int:
        """Remove ids nobody uses.

        An authored id is dropped when no link and no script line refers to
        it. A link is dropped when no bullet declares its id.

        Returns:
            Number of bullets edited
        """
        declared = {record.explicit_id for record in self.bullets() if record.explicit_id}

        references: Counter = Counter()
        for record in self.bullets():
            references.update(record.ids_in)
            references.update(record.ids_out)
        for script_line in self.script_lines:
            words = _SCRIPT_WORD_SPLIT.split(script_line.text[len(SCRIPT_TOKEN):].strip())
            references.update(word for word in words if word)

        edited = 0
        for record in self.bullets():
            changed = False

            if record.explicit_id and not references[record.explicit_id]:
                record.explicit_id = None
                changed = True

            ids_in = [node_id for node_id in record.ids_in if node_id in declared]
            ids_out = [node_id for node_id in record.ids_out if node_id in declared]
            if ids_in != record.ids_in or ids_out != record.ids_out:
                record.ids_in = ids_in
                record.ids_out = ids_out
                changed = True

            if changed:
                self.mark_dirty(record)
                edited += 1

        logger.info("ids_cleaned", edited=edited)
        return edited

    # Output

    def render(self) -> str:
        """Document text with edited lines rewritten."""
        lines = list(self.lines)
        for line_index in sorted(self._dirty):
            record = self.record_at(line_index)
            if record is None or not record.is_valid:
                continue
            if not record.has_component_section and not render_component_section(record):
                continue
            lines[line_index] = rewrite_line(record)

        text = "\n".join(lines)
        if self.trailing_newline:
            text += "\n"
        return text

    def to_graph(self, prune: bool = True) -> ParsedGraph:
        """Compile the current state of the document.

        Raises:
            OutlineStructureError: On bad indentation
        """
        return compile_records(self.records, prune=prune)
